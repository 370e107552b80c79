#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lookups in a local checkout of the VillagerDB data repository
(data/villagers/<slug>.json) and the matching image URLs on villagerdb.com.
"""

import json
import os
from dataclasses import dataclass

VILLAGERDB_IMAGE_URL = "https://villagerdb.com/images/villagers/full/{slug}.png"

# VillagerDB disambiguates villagers whose names clash with earlier games
SLUG_FIXES = {
    "sally": "sally2",
    "hazel": "hazel2",
    "carmen": "carmen2",
}


@dataclass(frozen=True)
class VillagerDbEntry:
    name: str
    species: str
    personality: str
    phrase: str


def villager_slug(name: str) -> str:
    """
    "Renée" -> "renee", "O'Hare" -> "ohare", "Sally" -> "sally2"
    """
    slug = (
        name.strip()
        .lower()
        .replace(" ", "-")
        .replace(".", "")
        .replace("'", "")
        .replace("é", "e")
    )
    return SLUG_FIXES.get(slug, slug)


def image_url(name: str) -> str:
    return VILLAGERDB_IMAGE_URL.format(slug=villager_slug(name))


def get_villager(name: str, data_dir: str) -> VillagerDbEntry:
    path = os.path.join(data_dir, "data", "villagers", f"{villager_slug(name)}.json")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    nh = (data.get("games") or {}).get("nh")
    if not isinstance(nh, dict):
        raise ValueError(f"{path}: no New Horizons data")

    return VillagerDbEntry(
        name=data["name"],
        species=data["species"],
        personality=nh["personality"],
        phrase=nh["phrase"],
    )

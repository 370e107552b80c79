#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Cross-wiki reconciliation of names.

Bugs, fish and fossils come from the English wiki and only know their English
name. The German wiki lists the same items with "<German><br/><English>" name
cells; those pairs give each English-wiki item its German name.

Matching is by English name, case-insensitive and whitespace-normalized.
Items without a German counterpart keep the placeholder name and are logged.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Sequence, TypeVar

from bs4.element import Tag

from catalog import DEU, ENG, UNKNOWN_NAME, Entity, IdRegistry
from wiki_client import WikiClient, cell, data_rows, name_pair

# ============================================================
# German wiki pages holding the name pairs, per category
# ============================================================

NAME_PAGES = {
    "bugs": "/acnh/insekten",
    "fish": "/acnh/fische",
    "fossils": "/acnh/fossilien",
}

# column of the name cell on those pages
NAME_COLUMN = 1

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


def name_key(name: str) -> str:
    return IdRegistry.key(name)


def collect_name_pairs(page: Tag) -> Dict[str, str]:
    """
    English name key -> German name, over every table of a German wiki page.
    """
    pairs: Dict[str, str] = {}
    for table in page.select("div.level2 table"):
        for cols in data_rows(table):
            names = name_pair(cell(cols, NAME_COLUMN))
            if names is None:
                continue
            german_name, english_name = names
            pairs.setdefault(name_key(english_name), german_name)
    return pairs


def reconcile(entities: Sequence[E], pairs: Dict[str, str], category: str = "") -> List[E]:
    out: List[E] = []
    missing = []
    for entity in entities:
        german_name = pairs.get(name_key(entity.names[ENG]))
        if german_name is None:
            if entity.names.get(DEU, UNKNOWN_NAME) == UNKNOWN_NAME:
                missing.append(entity.names[ENG])
            out.append(entity)
            continue
        out.append(replace(entity, names={**entity.names, DEU: german_name}))

    if missing:
        logger.warning("No German name for %d %s: %s", len(missing), category or "items", ", ".join(missing))
    return out


def fetch_name_pairs(client: WikiClient, category: str) -> Dict[str, str]:
    pairs = collect_name_pairs(client.german_page(NAME_PAGES[category]))
    logger.info("Collected %d German names for %s", len(pairs), category)
    return pairs


def reconcile_category(client: WikiClient, category: str, entities: Sequence[E]) -> List[E]:
    return reconcile(entities, fetch_name_pairs(client, category), category)

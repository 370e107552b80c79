#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Neighbours (villagers) from https://animalcrossingwiki.de/acnh/nachbarn

The overview page lists one table per species. Optional enrichment reads each
villager's own page (gender, birthday, personality, catchphrase) and a local
VillagerDB checkout (English species, personality and catchphrase).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from bs4.element import Tag

import villagerdb
from catalog import DEU, ENG, HI_RES, PRIMARY, Entity, IdRegistry, SchemaDrift, make_names
from image_assets import DEFAULT_WORKERS
from wiki_client import WikiClient, absolute_image_url, cell, clean_text, data_rows, img_src, name_pair

NEIGHBOURS_PAGE = "/acnh/nachbarn"
VILLAGER_PAGE = "/nachbarn/{name}"
CATEGORY = "neighbours"

UNKNOWN = "unknown"
MALE = "male"
FEMALE = "female"

GENDERS = {
    "weiblich": FEMALE,
    "männlich": MALE,
}

MONTHS = {
    "Januar": 1,
    "Februar": 2,
    "März": 3,
    "April": 4,
    "Mai": 5,
    "Juni": 6,
    "Juli": 7,
    "August": 8,
    "September": 9,
    "Oktober": 10,
    "November": 11,
    "Dezember": 12,
}

# typos on the German wiki
ENGLISH_NAME_FIXES = {
    "Marrcel": "Marcel",
    "Sidney": "Sydney",
    "Gretel": "Greta",
    "Candy": "Candi",
    "Stiches": "Stitches",
}

# profile fields we read but do not keep
IGNORED_FIELDS = {"tierart", "fotospruch", "auftreten"}

QUOTES = "„“\"”"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Neighbour(Entity):
    kind: str = ""
    is_new: bool = False
    gender: str = UNKNOWN
    birthday: Optional[List[int]] = None
    species: Dict[str, str] = field(default_factory=dict)
    personalities: Dict[str, str] = field(default_factory=dict)
    phrases: Dict[str, str] = field(default_factory=dict)

    prefix = "nb"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(
            {
                "kind": self.kind,
                "is_new": self.is_new,
                "gender": self.gender,
                "birthday": self.birthday,
                "species": dict(sorted(self.species.items())),
                "personalities": dict(sorted(self.personalities.items())),
                "phrase": dict(sorted(self.phrases.items())),
            }
        )
        return d


def parse_table(table: Tag, kind: str, registry: IdRegistry) -> List[Neighbour]:
    neighbours = []
    for cols in data_rows(table):
        src = img_src(cell(cols, 0))
        if src is None:
            logger.debug("Skipping neighbour row without image cell")
            continue

        names = name_pair(cell(cols, 1))
        if names is None:
            logger.debug("Skipping malformed neighbour row: %s", [c.get_text(" ", strip=True) for c in cols])
            continue
        german_name, english_name = names
        english_name = ENGLISH_NAME_FIXES.get(english_name, english_name)

        is_new_cell = cell(cols, 3)
        is_new = is_new_cell is not None and bool(is_new_cell.get_text().strip())

        neighbours.append(
            Neighbour(
                id=registry.assign(CATEGORY, english_name),
                names=make_names(english_name, german_name),
                asset_urls={
                    PRIMARY: absolute_image_url(src),
                    HI_RES: villagerdb.image_url(english_name),
                },
                kind=kind,
                is_new=is_new,
                species={DEU: kind},
            )
        )
    return neighbours


def parse_neighbours(page: Tag, registry: IdRegistry) -> List[Neighbour]:
    neighbours = []
    for table in page.select("table.inline"):
        heading = table.find_previous("h2")
        kind = heading.get_text(" ", strip=True) if heading else ""
        neighbours.extend(parse_table(table, kind, registry))
    logger.info("Parsed %d neighbours", len(neighbours))
    return neighbours


# -----------------------------
# Villager pages
# -----------------------------


def parse_gender(value: str) -> str:
    gender = GENDERS.get(value.strip().lower())
    if gender is None:
        raise SchemaDrift(f"unknown gender {value!r}")
    return gender


def parse_birthday(value: str) -> List[int]:
    """
    "12. März" -> [12, 3]
    """
    parts = [p.strip() for p in value.strip().split(".")]
    if len(parts) != 2 or not parts[0].isdigit():
        raise SchemaDrift(f"unknown birthday {value!r}")
    month = MONTHS.get(parts[1])
    if month is None:
        raise SchemaDrift(f"unknown month {parts[1]!r}")
    return [int(parts[0]), month]


def parse_phrase(value: str) -> str:
    for q in QUOTES:
        value = value.replace(q, "")
    return value.strip()


def parse_details(page: Tag) -> Dict[str, Any]:
    """
    Profile table of a villager page -> {"gender": .., "birthday": .., "personality": .., "phrase": ..}
    """
    table = page.select_one(".wrap_nachbarntabelle table")
    if table is None:
        raise SchemaDrift("villager page without profile table")

    details: Dict[str, Any] = {}
    for row in table.find_all("tr")[2:]:
        cols = row.find_all(["th", "td"])
        if len(cols) < 2:
            continue
        name = cols[0].get_text().strip().lower().rstrip(".")
        value = clean_text(cols[1].get_text(" "))

        if name == "geschlecht":
            details["gender"] = parse_gender(value)
        elif name == "persönlichkeit":
            details["personality"] = value
        elif name == "geburtstag":
            details["birthday"] = parse_birthday(value)
        elif name == "floskel":
            details["phrase"] = parse_phrase(value)
        elif name in IGNORED_FIELDS:
            continue
        else:
            raise SchemaDrift(f"unknown villager field {name!r}, value: {value!r}")
    return details


def with_details(neighbour: Neighbour, details: Dict[str, Any]) -> Neighbour:
    personalities = dict(neighbour.personalities)
    phrases = dict(neighbour.phrases)
    if "personality" in details:
        personalities[DEU] = details["personality"]
    if "phrase" in details:
        phrases[DEU] = details["phrase"]
    return replace(
        neighbour,
        gender=details.get("gender", neighbour.gender),
        birthday=details.get("birthday", neighbour.birthday),
        personalities=personalities,
        phrases=phrases,
    )


def with_villagerdb(neighbour: Neighbour, entry: villagerdb.VillagerDbEntry) -> Neighbour:
    if entry.name != neighbour.names[ENG]:
        raise SchemaDrift(f"VillagerDB name {entry.name!r} does not match {neighbour.names[ENG]!r}")
    return replace(
        neighbour,
        species={**neighbour.species, ENG: entry.species},
        personalities={**neighbour.personalities, ENG: entry.personality},
        phrases={**neighbour.phrases, ENG: entry.phrase},
    )


def fetch_details(client: WikiClient, neighbour: Neighbour) -> Neighbour:
    name = neighbour.names[DEU].lower().replace(" ", "_")
    page = client.german_page(VILLAGER_PAGE.format(name=name))
    return with_details(neighbour, parse_details(page))


def enrich(client: WikiClient, neighbours: List[Neighbour], workers: int = DEFAULT_WORKERS) -> List[Neighbour]:
    # first failing page propagates out of map()
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="villager") as executor:
        return list(executor.map(lambda n: fetch_details(client, n), neighbours))


def fetch_all(
    client: WikiClient,
    registry: IdRegistry,
    details: bool = False,
    workers: int = DEFAULT_WORKERS,
    villagerdb_dir: Optional[str] = None,
) -> List[Neighbour]:
    neighbours = parse_neighbours(client.german_page(NEIGHBOURS_PAGE), registry)
    if villagerdb_dir:
        neighbours = [with_villagerdb(n, villagerdb.get_villager(n.names[ENG], villagerdb_dir)) for n in neighbours]
    if details:
        neighbours = enrich(client, neighbours, workers=workers)
    return neighbours

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Flowers from https://animalcrossingwiki.de/acnh/blumen, including breeding sources.

The breeding cell of a hybrid colour reads like

  Rote Rose [x] Weiße Rose oder Rote Rose [★] [x] Gelbe Rose + Goldgießkanne

where [..] are icons. Parents may be listed in rows (or tables) further down the
page, so extraction runs in two passes: first every flower of the page is built,
then every breeding cell is resolved against that complete catalog.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Sequence, Tuple

from bs4.element import Comment, NavigableString, Tag

from catalog import DEU, PRIMARY, Entity, IdRegistry, SchemaDrift, make_names
from wiki_client import WikiClient, absolute_image_url, cell, data_rows, img_src, name_pair

FLOWERS_PAGE = "/acnh/blumen"
CATEGORY = "flowers"

STAR_ICON = "/stern.png"
STAR = "★"
CROSS_GLYPH = "×"

ALTERNATIVE_SEP = " oder "
PARENT_SEP = " x "
GOLD_CAN_SUFFIX = " + Goldgießkanne"
CULTIVATED_SUFFIX = " " + STAR

# german names missing on the wiki
GERMAN_NAME_FIXES = {
    "black cosmos": "Schwarzcosmea",
    "blue roses": "Blaurose",
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreedingSource:
    parents: Tuple[int, int]
    requires_gold_watering_can: bool = False
    requires_cultivated_parents: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flowers": list(self.parents),
            "requires_gold_watering_can": self.requires_gold_watering_can,
            "requires_cultivated_flowers": self.requires_cultivated_parents,
        }


@dataclass(frozen=True)
class Flower(Entity):
    category: str = ""
    sources: Tuple[BreedingSource, ...] = ()

    prefix = "fl"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["category"] = self.category
        d["sources"] = [s.to_dict() for s in self.sources]
        return d


# -----------------------------
# Breeding source resolution
# -----------------------------


def _icon_token(img: Tag) -> str:
    if STAR_ICON in (img.get("src") or ""):
        return STAR
    title = (img.get("title") or "").strip()
    if not title:
        raise SchemaDrift(f"breeding icon without title: {img}")
    return title


def _fragment_token(node: Any) -> str:
    if isinstance(node, Tag):
        if node.name == "img":
            return _icon_token(node)
        # DokuWiki wraps icons in links: <a class="media"><img/></a>
        inner = node.find("img")
        if inner is not None and not node.get_text().strip():
            return _icon_token(inner)
        text = node.get_text()
    elif isinstance(node, NavigableString) and not isinstance(node, Comment):
        text = str(node)
    else:
        return ""

    text = text.strip()
    if text == CROSS_GLYPH:
        return "x"
    return text


def breeding_text(raw_cell: Tag) -> str:
    """
    Renders a breeding cell into the flat token string the grammar works on.
    """
    tokens = [_fragment_token(node) for node in raw_cell.children]
    return " ".join(t for t in tokens if t)


def name_index(catalog: Sequence[Entity]) -> Dict[str, int]:
    """German display name -> id. The first entity of a name wins."""
    index: Dict[str, int] = {}
    for entity in catalog:
        index.setdefault(entity.names[DEU], entity.id)
    return index


def _strip_suffix(text: str, suffix: str) -> Tuple[str, bool]:
    if text.endswith(suffix):
        return text[: -len(suffix)], True
    return text, False


def parse_breeding_text(text: str, index: Dict[str, int]) -> List[BreedingSource]:
    if not text:
        return []

    sources = []
    for alternative in text.split(ALTERNATIVE_SEP):
        alternative, gold_can = _strip_suffix(alternative, GOLD_CAN_SUFFIX)

        parents = alternative.split(PARENT_SEP)
        if len(parents) != 2:
            raise SchemaDrift(f"expected 2 parents in {alternative!r}, got {len(parents)} (cell: {text!r})")

        cultivated = False
        ids = []
        for parent in parents:
            parent, starred = _strip_suffix(parent, CULTIVATED_SUFFIX)
            cultivated = cultivated or starred
            if parent not in index:
                raise SchemaDrift(f"unknown breeding parent {parent!r} (cell: {text!r})")
            ids.append(index[parent])

        sources.append(
            BreedingSource(
                parents=(ids[0], ids[1]),
                requires_gold_watering_can=gold_can,
                requires_cultivated_parents=cultivated,
            )
        )
    return sources


def resolve_breeding_sources(catalog: Sequence[Entity], raw_cell: Tag) -> List[BreedingSource]:
    """
    Breeding sources of one flower. catalog must already hold every flower of the page.
    """
    return parse_breeding_text(breeding_text(raw_cell), name_index(catalog))


# -----------------------------
# Table extraction
# -----------------------------


def parse_table(table: Tag, category: str, registry: IdRegistry) -> List[Tuple[Flower, Tag]]:
    """
    Flowers of one table together with their (unresolved) breeding cell.
    """
    rows: List[Tuple[Flower, Tag]] = []
    for cols in data_rows(table):
        src = img_src(cell(cols, 0))
        if src is None:
            logger.debug("Skipping flower row without image cell")
            continue

        names = name_pair(cell(cols, 1))
        if names is None or cell(cols, 2) is None:
            logger.debug("Skipping malformed flower row: %s", [c.get_text(" ", strip=True) for c in cols])
            continue
        german_name, english_name = names
        german_name = GERMAN_NAME_FIXES.get(english_name, german_name)

        flower = Flower(
            id=registry.assign(CATEGORY, english_name),
            names=make_names(english_name, german_name),
            asset_urls={PRIMARY: absolute_image_url(src)},
            category=category,
        )
        rows.append((flower, cols[2]))
    return rows


def build_flowers(page: Tag, registry: IdRegistry) -> List[Flower]:
    # pass 1: the complete catalog
    rows: List[Tuple[Flower, Tag]] = []
    for table in page.select("div.level2 table"):
        heading = table.find_previous("h2")
        category = heading.get_text(" ", strip=True) if heading else ""
        rows.extend(parse_table(table, category, registry))

    index = name_index([flower for flower, _ in rows])

    # pass 2: cross references
    flowers = [replace(flower, sources=tuple(parse_breeding_text(breeding_text(raw), index))) for flower, raw in rows]
    logger.info("Parsed %d flowers (%d with breeding sources)", len(flowers), sum(1 for f in flowers if f.sources))
    return flowers


def fetch_all(client: WikiClient, registry: IdRegistry) -> List[Flower]:
    return build_flowers(client.german_page(FLOWERS_PAGE), registry)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Paintings and statues sold by Reiner, from https://animalcrossingwiki.de/acnh/reiner

Rows of works that have a forgery carry more columns:

  genuine:   image | names | ...
  with fake: image | fake image | names | ... | fake description
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from bs4.element import Tag

from catalog import DEU, FAKE, PRIMARY, Entity, IdRegistry, SchemaDrift, make_names
from wiki_client import WikiClient, absolute_image_url, cell, clean_text, data_rows, img_src, name_pair

ART_PAGE = "/acnh/reiner"
CATEGORY = "art"

KINDS = ("statue", "painting")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artwork(Entity):
    kind: str = ""
    fake_exists: bool = False
    fake_description: Dict[str, str] = field(default_factory=dict)

    prefix = "art"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["kind"] = self.kind
        d["fake_exists"] = self.fake_exists
        d["fake_description"] = dict(self.fake_description)
        return d


def art_kind(english_name: str) -> str:
    for kind in KINDS:
        if kind in english_name:
            return kind
    raise SchemaDrift(f"unknown art kind: {english_name!r}")


def parse_table(table: Tag, registry: IdRegistry) -> List[Artwork]:
    works = []
    for cols in data_rows(table):
        fake_exists = len(cols) > 3
        name_index = 2 if fake_exists else 1

        src = img_src(cell(cols, 0))
        fake_src = img_src(cell(cols, 1)) if fake_exists else None
        if src is None or (fake_exists and fake_src is None):
            logger.debug("Skipping art row without image cell")
            continue

        names = name_pair(cell(cols, name_index))
        if names is None:
            logger.debug("Skipping malformed art row: %s", [c.get_text(" ", strip=True) for c in cols])
            continue
        german_name, english_name = names

        fake_description = {}
        if fake_exists and cell(cols, 4) is not None:
            fake_description[DEU] = clean_text(cols[4].get_text(" "))

        works.append(
            Artwork(
                id=registry.assign(CATEGORY, english_name),
                names=make_names(english_name, german_name),
                asset_urls={PRIMARY: absolute_image_url(src), FAKE: absolute_image_url(fake_src)},
                kind=art_kind(english_name),
                fake_exists=fake_exists,
                fake_description=fake_description,
            )
        )
    return works


def parse_art(page: Tag, registry: IdRegistry) -> List[Artwork]:
    works = []
    for table in page.select("div.level2 div.desktoponly table"):
        works.extend(parse_table(table, registry))
    logger.info("Parsed %d works of art (%d with fakes)", len(works), sum(1 for w in works if w.fake_exists))
    return works


def fetch_all(client: WikiClient, registry: IdRegistry) -> List[Artwork]:
    return parse_art(client.german_page(ART_PAGE), registry)

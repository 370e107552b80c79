#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Fossils from the English Fandom wiki: standalone fossils and the parts of
multi-part fossils, both tables read as name | image | price.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from bs4.element import Tag

from catalog import PRIMARY, UNKNOWN_NAME, Entity, IdRegistry, SchemaDrift, make_names
from creatures import parse_price
from wiki_client import FANDOM_BASE, WikiClient, absolute_image_url, cell, clean_text, img_src

FOSSILS_PAGE = "Fossils_(New_Horizons)"
CATEGORY = "fossils"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fossil(Entity):
    price: int = -1

    prefix = "fo"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["price"] = self.price
        return d


def parse_table(table: Tag, registry: IdRegistry) -> List[Fossil]:
    fossils = []
    for row in table.find_all("tr"):
        cols = row.find_all("td")
        if not cols:
            continue
        english_name = clean_text(cols[0].get_text(" "))
        if not english_name:
            continue

        fossils.append(
            Fossil(
                id=registry.assign(CATEGORY, english_name),
                names=make_names(english_name, UNKNOWN_NAME),
                asset_urls={PRIMARY: absolute_image_url(img_src(cell(cols, 1), prefer_lazy=True), base=FANDOM_BASE)},
                price=parse_price(cols[2].get_text()) if len(cols) > 2 else -1,
            )
        )
    return fossils


def parse_fossils(page: Tag, registry: IdRegistry) -> List[Fossil]:
    tables = page.select("table.sortable")
    if len(tables) < 2:
        raise SchemaDrift(f"expected standalone and multi-part fossil tables, found {len(tables)}")

    fossils = parse_table(tables[0], registry) + parse_table(tables[1], registry)
    logger.info("Parsed %d fossils", len(fossils))
    return fossils


def fetch_all(client: WikiClient, registry: IdRegistry) -> List[Fossil]:
    return parse_fossils(client.fandom_page(FOSSILS_PAGE), registry)

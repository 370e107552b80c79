#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bugs and fish from the English Fandom wiki.

Both pages carry one table per hemisphere with identical row order:

  name | image | price | location | [shadow] | time | Jan .. Dec

German names are not part of these pages; they are attached afterwards by
reconcile_names.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bs4.element import Tag

from catalog import PRIMARY, UNKNOWN_NAME, Entity, IdRegistry, SchemaDrift, make_names
from wiki_client import FANDOM_BASE, WikiClient, absolute_image_url, cell, clean_text, img_src

BUGS_PAGE = "Bugs_(New_Horizons)"
FISH_PAGE = "Fish_(New_Horizons)"

MONTHS = 12
AVAILABLE_MARK = "✓"
ALL_DAY = "All day"

TIME_RE = re.compile(r"^(\d{1,2})\s*(AM|PM)$")
TIME_SPAN_RE = re.compile(r"\s*[-–—]\s*")

logger = logging.getLogger(__name__)


def parse_price(price: str) -> int:
    digits = "".join(c for c in price if c.isdigit())
    return int(digits) if digits else -1


def parse_am_pm_time(time: str) -> int:
    """
    "12 AM" -> 0, "1 PM" -> 13, "11 PM" -> 23
    """
    m = TIME_RE.match(time.strip().upper())
    if not m:
        raise SchemaDrift(f"unknown time {time!r}")
    hour = int(m.group(1))
    if not 1 <= hour <= 12:
        raise SchemaDrift(f"unknown time {time!r}")
    hour %= 12
    if m.group(2) == "PM":
        hour += 12
    return hour


def parse_time_slots(time: str) -> List[List[int]]:
    """
    "4 AM - 8 AM & 5 PM - 7 PM" -> [[4, 8], [17, 19]]
    "All day" -> [[0, 24]]
    """
    slots = []
    for span in time.split("&"):
        span = clean_text(span)
        if not span:
            continue
        if span.lower() == ALL_DAY.lower():
            slots.append([0, 24])
            continue
        bounds = TIME_SPAN_RE.split(span)
        if len(bounds) != 2:
            raise SchemaDrift(f"unknown time span {span!r}")
        slots.append([parse_am_pm_time(bounds[0]), parse_am_pm_time(bounds[1])])
    return slots


def parse_months(cols: List[Tag], first: int) -> List[bool]:
    months = [c.get_text().strip() == AVAILABLE_MARK for c in cols[first : first + MONTHS]]
    return months + [False] * (MONTHS - len(months))


@dataclass(frozen=True)
class Shadow:
    size: int = -1
    is_narrow: bool = False
    has_fin: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "is_narrow": self.is_narrow, "has_fin": self.has_fin}


def parse_shadow(shadow: str) -> Shadow:
    shadow = shadow.lower()
    digits = "".join(c for c in shadow if c.isdigit())
    return Shadow(
        size=int(digits) if digits else -1,
        is_narrow="narrow" in shadow,
        has_fin="fin" in shadow,
    )


@dataclass(frozen=True)
class Bug(Entity):
    price: int = -1
    location: str = ""
    time: List[List[int]] = field(default_factory=list)
    months_north: List[bool] = field(default_factory=list)
    months_south: List[bool] = field(default_factory=list)

    prefix = "b"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(
            {
                "price": self.price,
                "location": self.location,
                "time": self.time,
                "months_north": self.months_north,
                "months_south": self.months_south,
            }
        )
        return d


@dataclass(frozen=True)
class Fish(Bug):
    shadow: Shadow = field(default_factory=Shadow)

    prefix = "f"

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["shadow"] = self.shadow.to_dict()
        return d


def hemisphere_tables(page: Tag) -> Tuple[Tag, Tag]:
    tables = page.select("table.sortable")
    if len(tables) < 2:
        raise SchemaDrift(f"expected north and south tables, found {len(tables)}")
    return tables[0], tables[1]


def _rows(table: Tag) -> List[List[Tag]]:
    rows = [row.find_all("td") for row in table.find_all("tr")]
    return [cols for cols in rows if cols]


def _text(cols: List[Tag], index: int) -> Optional[str]:
    c = cell(cols, index)
    return clean_text(c.get_text(" ")) if c is not None else None


def parse_creatures(page: Tag, category: str, registry: IdRegistry, with_shadow: bool) -> List[Bug]:
    north_table, south_table = hemisphere_tables(page)

    # shadow column shifts time and months by one
    offset = 1 if with_shadow else 0

    north_rows = _rows(north_table)
    south_rows = _rows(south_table)
    if len(north_rows) != len(south_rows):
        raise SchemaDrift(f"{category}: {len(north_rows)} northern rows but {len(south_rows)} southern rows")

    creatures: List[Bug] = []
    for north_cols, south_cols in zip(north_rows, south_rows):
        english_name = _text(north_cols, 0)
        if english_name != _text(south_cols, 0):
            raise SchemaDrift(f"{category}: hemisphere rows out of step ({english_name!r} vs {_text(south_cols, 0)!r})")
        if not english_name:
            logger.debug("Skipping %s row without name", category)
            continue

        kwargs: Dict[str, Any] = dict(
            id=registry.assign(category, english_name),
            names=make_names(english_name, UNKNOWN_NAME),
            asset_urls={PRIMARY: absolute_image_url(img_src(cell(north_cols, 1), prefer_lazy=True), base=FANDOM_BASE)},
            price=parse_price(_text(north_cols, 2) or ""),
            location=_text(north_cols, 3) or "",
            time=parse_time_slots(_text(north_cols, 4 + offset) or ""),
            months_north=parse_months(north_cols, 5 + offset),
            months_south=parse_months(south_cols, 5 + offset),
        )
        if with_shadow:
            creatures.append(Fish(shadow=parse_shadow(_text(north_cols, 4) or ""), **kwargs))
        else:
            creatures.append(Bug(**kwargs))

    logger.info("Parsed %d %s", len(creatures), category)
    return creatures


def fetch_bugs(client: WikiClient, registry: IdRegistry) -> List[Bug]:
    return parse_creatures(client.fandom_page(BUGS_PAGE), "bugs", registry, with_shadow=False)


def fetch_fish(client: WikiClient, registry: IdRegistry) -> List[Bug]:
    return parse_creatures(client.fandom_page(FISH_PAGE), "fish", registry, with_shadow=True)

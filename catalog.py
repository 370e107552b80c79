#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Shared catalog model: entities, asset roles, identifier registry, schema errors.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from image_assets import AssetDescriptor, Transform, convert_hi_res_to_png, convert_image_to_png

logger = logging.getLogger(__name__)

ENG = "eng"
DEU = "deu"

# placeholder for German names the English wiki cannot provide
UNKNOWN_NAME = "TBD"

PRIMARY = "primary"
HI_RES = "hi"
FAKE = "fake"

ROLE_SUFFIX = {PRIMARY: "", HI_RES: "_hi", FAKE: "_fake"}
ROLE_TRANSFORM: Dict[str, Transform] = {
    PRIMARY: convert_image_to_png,
    HI_RES: convert_hi_res_to_png,
    FAKE: convert_image_to_png,
}


class SchemaDrift(Exception):
    """
    The wiki layout no longer matches what the extractors expect
    (unresolvable cross-reference, unknown enumerated value, wrong token count).
    Always fatal for the run.
    """


def make_names(english: str, german: str) -> Dict[str, str]:
    return {ENG: english, DEU: german}


@dataclass(frozen=True)
class Entity:
    id: int
    names: Dict[str, str]
    asset_urls: Dict[str, Optional[str]] = field(default_factory=dict)

    # file name prefix of this category's images, e.g. "fl" -> fl12.png
    prefix: ClassVar[str] = ""

    @property
    def canonical_name(self) -> str:
        return self.names[ENG]

    def files(self) -> List[AssetDescriptor]:
        files = []
        for role in (PRIMARY, HI_RES, FAKE):
            url = self.asset_urls.get(role)
            if not url:
                continue
            files.append(
                AssetDescriptor(
                    url=url,
                    target_name=f"{self.prefix}{self.id}{ROLE_SUFFIX[role]}.png",
                    transform=ROLE_TRANSFORM[role],
                )
            )
        return files

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": dict(sorted(self.names.items())),
        }


class IdRegistry:
    """
    Injective canonical name -> id assignment per category.

    Ids of known names never change; a new name gets the next free id of its
    category. Persisting the registry between runs keeps ids stable, so two
    scrape runs can be diffed.

    Keys ignore case so a wiki fixing the capitalization of a name keeps its id.
    Within one run two spellings that differ only in case are SchemaDrift.
    """

    def __init__(self, ids: Optional[Dict[str, Dict[str, int]]] = None) -> None:
        self.ids: Dict[str, Dict[str, int]] = {k: dict(v) for k, v in (ids or {}).items()}
        self._spellings: Dict[Tuple[str, str], str] = {}

    @staticmethod
    def key(canonical_name: str) -> str:
        return " ".join(canonical_name.split()).lower()

    def assign(self, category: str, canonical_name: str) -> int:
        names = self.ids.setdefault(category, {})
        key = self.key(canonical_name)
        spelling = " ".join(canonical_name.split())
        seen = self._spellings.setdefault((category, key), spelling)
        if seen != spelling:
            raise SchemaDrift(f"{category}: {spelling!r} and {seen!r} map to the same id")
        if key not in names:
            names[key] = max(names.values(), default=-1) + 1
            logger.debug("New id %s/%d for %r", category, names[key], canonical_name)
        return names[key]

    @classmethod
    def load(cls, path: str) -> "IdRegistry":
        if not os.path.exists(path):
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: id registry root must be an object")
        return cls({str(cat): {str(k): int(v) for k, v in names.items()} for cat, names in data.items()})

    def save(self, path: str) -> None:
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self.ids, f, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp, path)

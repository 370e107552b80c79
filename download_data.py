#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Animal Crossing: New Horizons – Catalog Crawler
- Reads flowers, art and neighbours from the German wiki (https://animalcrossingwiki.de)
- Reads bugs, fish and fossils from the English Fandom wiki (https://animalcrossing.fandom.com)
- Attaches German names to English-wiki items (cross-wiki reconciliation)
- Resolves flower breeding sources into references between flower ids
- Downloads every picture and normalizes it to PNG

Usage:
  python download_data.py
  python download_data.py --out out_acnh --categories flowers art --workers 8
  python download_data.py --neighbour-details --villagerdb-dir ../villagerdb

Output:
  <out>/
    ids.json             stable name -> id assignment, reused by later runs
    <category>.json
    images/
      <prefix><id>[_hi|_fake].png

Exit codes: 0 ok, 1 image download failed, 2 wiki layout changed (nothing written).

Deps:
  pip install requests beautifulsoup4 Pillow
"""

import argparse
import datetime as dt
import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import artworks
import creatures
import flowers
import fossils
import neighbours
from catalog import Entity, IdRegistry, SchemaDrift
from image_assets import DEFAULT_WORKERS, BatchFailure, FetchPipeline, collect_descriptors
from reconcile_names import reconcile_category
from wiki_client import DE_WIKI_BASE, FANDOM_BASE, WikiClient

CATEGORIES = ("flowers", "bugs", "fish", "fossils", "art", "neighbours")

# categories whose German names come from the other wiki
RECONCILED = ("bugs", "fish", "fossils")

SOURCES = {
    "flowers": f"{DE_WIKI_BASE}{flowers.FLOWERS_PAGE}",
    "bugs": f"{FANDOM_BASE}/wiki/{creatures.BUGS_PAGE}",
    "fish": f"{FANDOM_BASE}/wiki/{creatures.FISH_PAGE}",
    "fossils": f"{FANDOM_BASE}/wiki/{fossils.FOSSILS_PAGE}",
    "art": f"{DE_WIKI_BASE}{artworks.ART_PAGE}",
    "neighbours": f"{DE_WIKI_BASE}{neighbours.NEIGHBOURS_PAGE}",
}

EXIT_OK = 0
EXIT_ASSETS_FAILED = 1
EXIT_SCHEMA_DRIFT = 2

logger = logging.getLogger("download_data")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def ensure_dir(p: str) -> None:
    os.makedirs(p, exist_ok=True)


def save_json(path: str, data: Dict[str, Any]) -> None:
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


def build_dataset(category: str, records: Sequence[Entity], retrieved_at: str) -> Dict[str, Any]:
    return {
        "meta": {
            "dataset": f"acnh-{category}",
            "source_url": SOURCES[category],
            "retrieved_at": retrieved_at,
            "count": len(records),
        },
        category: [r.to_dict() for r in records],
    }


def fetch_category(
    category: str,
    client: WikiClient,
    registry: IdRegistry,
    args: argparse.Namespace,
) -> List[Entity]:
    if category == "flowers":
        records: List[Entity] = flowers.fetch_all(client, registry)
    elif category == "bugs":
        records = creatures.fetch_bugs(client, registry)
    elif category == "fish":
        records = creatures.fetch_fish(client, registry)
    elif category == "fossils":
        records = fossils.fetch_all(client, registry)
    elif category == "art":
        records = artworks.fetch_all(client, registry)
    elif category == "neighbours":
        records = neighbours.fetch_all(
            client,
            registry,
            details=args.neighbour_details,
            workers=args.workers,
            villagerdb_dir=args.villagerdb_dir,
        )
    else:
        raise ValueError(f"unknown category {category!r}")

    if category in RECONCILED:
        records = reconcile_category(client, category, records)
    return records


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Harvest Animal Crossing catalog data from the community wikis")
    ap.add_argument("--out", default="out_acnh", help="Output directory")
    ap.add_argument(
        "--categories",
        nargs="+",
        choices=CATEGORIES,
        default=list(CATEGORIES),
        help="Categories to harvest (default: all)",
    )
    ap.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Parallel downloads")
    ap.add_argument("--skip-images", action="store_true", help="Write JSON only, do not download images")
    ap.add_argument("--neighbour-details", action="store_true", help="Read every villager page (gender, birthday, ...)")
    ap.add_argument("--villagerdb-dir", default=None, help="Local checkout of the VillagerDB data repository")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)
    if args.workers < 1:
        ap.error("--workers must be at least 1")
    return args


def main(argv: Optional[Sequence[str]] = None, client: Optional[WikiClient] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    out_dir = args.out
    images_dir = os.path.join(out_dir, "images")
    ids_path = os.path.join(out_dir, "ids.json")

    ensure_dir(out_dir)

    client = client or WikiClient()
    registry = IdRegistry.load(ids_path)
    retrieved_at = utc_now_iso()

    # 1) Build every catalog; layout problems abort before anything is written
    catalogs: Dict[str, List[Entity]] = {}
    try:
        for category in args.categories:
            catalogs[category] = fetch_category(category, client, registry, args)
    except SchemaDrift as e:
        logger.error("Wiki layout changed, aborting: %s", e)
        return EXIT_SCHEMA_DRIFT

    # 2) Records
    for category, records in catalogs.items():
        path = os.path.join(out_dir, f"{category}.json")
        save_json(path, build_dataset(category, records, retrieved_at))
        logger.info("Wrote %s (%s=%d)", path, category, len(records))
    registry.save(ids_path)

    if args.skip_images:
        return EXIT_OK

    # 3) Images
    descriptors = collect_descriptors(r for records in catalogs.values() for r in records)
    logger.info("Downloading %d images with %d workers", len(descriptors), args.workers)
    try:
        FetchPipeline(images_dir, workers=args.workers, fetch=client.download).run(descriptors)
    except BatchFailure as e:
        logger.error("%s", e)
        return EXIT_ASSETS_FAILED

    logger.info("Done: %s", out_dir)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())

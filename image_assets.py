#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Image assets: descriptors, PNG normalization and the concurrent fetch pipeline.

Every catalog record describes its pictures as AssetDescriptors
(url, target file name, transform). The pipeline drains all descriptors of a run
with a fixed number of worker threads:

  fetch url -> transform(bytes) -> write <destination>/<target_name>

A failing descriptor does not stop its siblings. It sets a shared failure signal;
once the signal is set no further descriptors are dispatched, work already handed
to the pool runs to completion, and the run as a whole is reported as failed.
Which descriptor failed is only visible in the log.
"""

import functools
import io
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from PIL import Image

from wiki_client import WikiClient

# -----------------------------
# CONFIG (defaults)
# -----------------------------

ASSET_MAX_SIDE = int(os.getenv("ACNH_ASSET_MAX_SIDE", "256"))
HI_RES_MAX_SIDE = int(os.getenv("ACNH_HI_RES_MAX_SIDE", "1024"))
DEFAULT_WORKERS = int(os.getenv("ACNH_WORKERS", "4"))

RESAMPLE = getattr(Image, "Resampling", Image).LANCZOS

logger = logging.getLogger(__name__)

Transform = Callable[[bytes], bytes]
Fetch = Callable[[str], bytes]


class AssetFetchFailure(Exception):
    """A single descriptor could not be fetched, transformed or written."""


class BatchFailure(Exception):
    """At least one descriptor of the batch failed."""


@dataclass(frozen=True)
class AssetDescriptor:
    url: str
    target_name: str
    transform: Transform


def to_png(data: bytes, max_side: int = ASSET_MAX_SIDE) -> bytes:
    """
    Decodes any raster image Pillow understands and re-encodes it as PNG,
    shrunk to fit into a max_side x max_side square (aspect ratio kept, never enlarged).
    Animated inputs contribute their first frame.
    """
    with Image.open(io.BytesIO(data)) as src:
        if getattr(src, "is_animated", False):
            src.seek(0)
        image = src.convert("RGBA")

    image.thumbnail((max_side, max_side), RESAMPLE)

    out = io.BytesIO()
    image.save(out, format="PNG", optimize=True)
    return out.getvalue()


convert_image_to_png: Transform = functools.partial(to_png, max_side=ASSET_MAX_SIDE)
convert_hi_res_to_png: Transform = functools.partial(to_png, max_side=HI_RES_MAX_SIDE)


def collect_descriptors(records: Iterable) -> List[AssetDescriptor]:
    """
    Flattens record.files() over all records of a run.
    Target names must be unique, otherwise two records would overwrite each other.
    """
    descriptors: List[AssetDescriptor] = []
    seen = set()
    for record in records:
        for descriptor in record.files():
            if descriptor.target_name in seen:
                raise ValueError(f"duplicate asset target name: {descriptor.target_name}")
            seen.add(descriptor.target_name)
            descriptors.append(descriptor)
    return descriptors


class FetchPipeline:
    """
    One pipeline per batch: the failure signal is never reset.

    fetch defaults to a plain requests GET; tests pass their own callable.
    """

    def __init__(
        self,
        destination_dir: Union[str, Path],
        workers: int = DEFAULT_WORKERS,
        fetch: Optional[Fetch] = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.destination_dir = Path(destination_dir)
        self.workers = workers
        if fetch is None:
            fetch = WikiClient().download
        self.fetch = fetch
        self.failure = threading.Event()

    @property
    def failed(self) -> bool:
        return self.failure.is_set()

    def _process(self, descriptor: AssetDescriptor) -> None:
        target = self.destination_dir / descriptor.target_name
        try:
            raw = self.fetch(descriptor.url)
            data = descriptor.transform(raw)
            target.write_bytes(data)
        except Exception as e:
            logger.error("Asset %s from %s failed: %s", descriptor.target_name, descriptor.url, e)
            raise AssetFetchFailure(descriptor.target_name) from e
        logger.debug("Wrote %s", target)

    def _worker(self, descriptor: AssetDescriptor) -> None:
        try:
            self._process(descriptor)
        except AssetFetchFailure:
            self.failure.set()

    def run(self, descriptors: Iterable[AssetDescriptor]) -> None:
        """
        Raises BatchFailure after all dispatched work has finished if any descriptor failed.
        """
        self.destination_dir.mkdir(parents=True, exist_ok=True)

        dispatched = 0
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="asset") as executor:
            futures = []
            for descriptor in descriptors:
                if self.failure.is_set():
                    logger.warning("Asset failure observed, not dispatching further downloads")
                    break
                futures.append(executor.submit(self._worker, descriptor))
                dispatched += 1
            wait(futures)

        if self.failure.is_set():
            raise BatchFailure(f"asset batch failed ({dispatched} dispatched), see log for details")
        logger.info("Wrote %d assets to %s", dispatched, self.destination_dir)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
HTTP access and HTML helpers for the two source wikis.

- animalcrossingwiki.de (DokuWiki): pages are fetched with a plain GET
- animalcrossing.fandom.com (MediaWiki): pages are rendered through api.php?action=parse

Every request is a single attempt. A failed request raises and aborts whatever
asked for it; there is no retry and no pause between requests.
"""

import copy
import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag

# -----------------------------
# CONFIG (defaults)
# -----------------------------

DE_WIKI_BASE = "https://animalcrossingwiki.de"

FANDOM_BASE = "https://animalcrossing.fandom.com"
FANDOM_API_URL = f"{FANDOM_BASE}/api.php"

DEFAULT_USER_AGENT = os.getenv(
    "USER_AGENT",
    "acnh-wiki-data crawler (+https://github.com/acnh-wiki-data)",
)

HTTP_CONNECT_TIMEOUT = float(os.getenv("HTTP_CONNECT_TIMEOUT", "5"))
HTTP_READ_TIMEOUT = float(os.getenv("HTTP_READ_TIMEOUT", "30"))

# DokuWiki placeholder picture for entries without an image
MISSING_IMAGE_MARKER = "bildfehlt"

# Fandom thumbnails: .../revision/latest/scale-to-width-down/50?cb=...
FANDOM_SCALE_RE = re.compile(r"/scale-to-(?:width|height)-down/\d+")
# DokuWiki thumbnails: /_media/...?w=50&tok=abc123
DOKUWIKI_RESIZE_PARAMS = {"w", "h", "tok"}

logger = logging.getLogger(__name__)


def clean_text(s: str) -> str:
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s).strip()
    s = re.sub(r"\[[0-9A-Za-z]+\]", "", s).strip()  # remove reference markers like [1]
    return s


def tweak_image_url(url: str) -> str:
    """
    Turns a thumbnail URL into the URL of the original upload.

    https://static.wikia.nocookie.net/x/Foo.png/revision/latest/scale-to-width-down/50?cb=1
      -> https://static.wikia.nocookie.net/x/Foo.png/revision/latest?cb=1
    /_media/acnh/blumen/rose_rot.png?w=50&tok=6b2d1e
      -> /_media/acnh/blumen/rose_rot.png
    """
    url = (url or "").strip()
    parts = urlsplit(url)
    path = FANDOM_SCALE_RE.sub("", parts.path)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in DOKUWIKI_RESIZE_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(query), parts.fragment))


def absolute_image_url(src: Optional[str], base: str = DE_WIKI_BASE) -> Optional[str]:
    """
    Normalizes an <img> src found on a wiki page.
    Returns None for missing pictures (placeholder image or no src at all).
    """
    if not src:
        return None
    url = tweak_image_url(src)
    if MISSING_IMAGE_MARKER in url:
        return None
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return urljoin(base, url)
    return url


def img_src(cell: Optional[Tag], prefer_lazy: bool = False) -> Optional[str]:
    """
    src of the first <img> in a table cell. Fandom lazy-loads images and keeps the
    real URL in data-src, so prefer_lazy checks that attribute first.
    """
    if cell is None:
        return None
    img = cell.find("img")
    if img is None:
        return None
    if prefer_lazy:
        return img.get("data-src") or img.get("src")
    return img.get("src")


def name_pair(cell: Optional[Tag]) -> Optional[List[str]]:
    """
    German wiki name cells hold "<German name><br/><English name>".
    Returns [german, english] or None if the cell does not have exactly two names.
    """
    if cell is None:
        return None
    cell = copy.copy(cell)
    for br in cell.find_all("br"):
        br.replace_with("\n")
    names = [line.strip() for line in cell.get_text().split("\n")]
    names = [n for n in names if n]
    if len(names) != 2:
        return None
    return names


def is_header_row(row: Tag) -> bool:
    return row.find("th") is not None


def data_rows(table: Tag) -> List[List[Tag]]:
    """
    The <td> cells of every row in a table, header rows excluded.
    """
    rows: List[List[Tag]] = []
    for row in table.find_all("tr"):
        if is_header_row(row):
            continue
        rows.append(row.find_all("td"))
    return rows


def cell(cols: List[Tag], index: int) -> Optional[Tag]:
    if index < len(cols):
        return cols[index]
    return None


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class WikiClient:
    """
    Thin requests wrapper shared by all extractors and the asset pipeline.
    Sessions are kept per thread so the client can be handed to worker pools.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.user_agent = user_agent
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        s = getattr(self._local, "session", None)
        if s is None:
            s = requests.Session()
            s.headers.update(
                {
                    "User-Agent": self.user_agent,
                    "Accept": "application/json,text/html;q=0.9,*/*;q=0.8",
                }
            )
            self._local.session = s
        return s

    def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        logger.debug("GET %s", url)
        r = self.session.get(url, params=params, timeout=(HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT))
        r.raise_for_status()
        return r

    def download(self, url: str) -> bytes:
        return self.get(url).content

    def german_page(self, path: str) -> BeautifulSoup:
        """
        /acnh/blumen -> parsed https://animalcrossingwiki.de/acnh/blumen
        """
        url = urljoin(DE_WIKI_BASE, path)
        logger.info("Fetching %s", url)
        return parse_html(self.get(url).text)

    def fandom_page(self, page_title: str) -> BeautifulSoup:
        """
        Renders a Fandom page through the parse API and returns its content root.
        """
        logger.info("Fetching %s/wiki/%s", FANDOM_BASE, page_title)
        data = self.get(
            FANDOM_API_URL,
            params={
                "action": "parse",
                "page": page_title,
                "prop": "text",
                "redirects": "1",
                "format": "json",
                "formatversion": "2",
            },
        ).json()
        if "error" in data:
            info = (data.get("error") or {}).get("info") or "unknown API error"
            raise RuntimeError(f"parse failed for {page_title}: {info}")

        html = ((data.get("parse") or {}).get("text") or "").strip()
        if not html:
            raise RuntimeError(f"empty HTML for {page_title}")
        soup = parse_html(html)
        return soup.select_one("div.mw-parser-output") or soup

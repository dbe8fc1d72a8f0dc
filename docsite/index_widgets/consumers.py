"""
Readers of the JSON index artifacts.

These helpers only rely on the artifact shape (a JSON array of objects with at
least `title` and `path`), never on how the artifacts were produced.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

log = logging.getLogger("mkdocs.plugins.docsite.index_widgets")

DUPLICATE_SLASHES = re.compile(r"/{2,}")
PAGE_PARAM = "page"


def artifact_url(base: str, name: str) -> str:
    """Join the site base path and an artifact name with single slashes."""
    return DUPLICATE_SLASHES.sub("/", f"/{base}/{name}")


def fetch_index(location: str, timeout: float = 10) -> list:
    """Fetch an index artifact over HTTP(S) or from a local path.

    Failures of any kind (bad status, network, JSON) give an empty list.
    """
    try:
        if location.startswith(("http://", "https://")):
            with urllib_request.urlopen(location, timeout=timeout) as response:
                status = getattr(response, "status", 200)
                if not 200 <= status < 300:
                    log.warning(f"[index_widgets] {location} answered HTTP {status}")
                    return []
                payload = response.read().decode("utf-8")
        else:
            payload = Path(location).read_text(encoding="utf-8")
        data = json.loads(payload)
    except (urllib_error.URLError, OSError, ValueError) as exc:
        log.warning(f"[index_widgets] error fetching index {location}: {exc}")
        return []
    if not isinstance(data, list):
        log.warning(f"[index_widgets] {location} is not a JSON array")
        return []
    return data


# ----- Pagination -------


def page_from_query(query: str) -> int:
    values = urllib_parse.parse_qs(query.lstrip("?")).get(PAGE_PARAM)
    if not values:
        return 1
    try:
        page = int(values[0])
    except ValueError:
        return 1
    return page if page > 0 else 1


def replace_page_query(url: str, page: int) -> str:
    """Return `url` with only its page parameter set to `page`."""
    parts = urllib_parse.urlsplit(url)
    query = [(k, v) for k, v in urllib_parse.parse_qsl(parts.query, keep_blank_values=True) if k != PAGE_PARAM]
    query.append((PAGE_PARAM, str(page)))
    return urllib_parse.urlunsplit(parts._replace(query=urllib_parse.urlencode(query)))


@dataclass
class Pagination:
    total: int
    page_size: int = 10
    page: int = 1

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        return min(self.start + self.page_size, self.total)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    def slice(self, items: Sequence) -> list:
        return list(items[self.start : self.end])


# ----- Prev / next -------


def _normalize_route(path: str) -> str:
    path = urllib_parse.unquote(path.split("#", 1)[0].split("?", 1)[0])
    path = "/" + path.strip("/")
    for suffix in ("/index.html", ".html", "/index"):
        if path.endswith(suffix):
            path = path[: -len(suffix)] or "/"
    return path


def strip_base(path: str, base: str) -> str:
    base = "/" + base.strip("/")
    if base != "/" and (path == base or path.startswith(base + "/")):
        return path[len(base) :] or "/"
    return path


def find_adjacent(items: Sequence[dict], route_path: str, base: str = "/") -> Tuple[Optional[dict], Optional[dict]]:
    """Neighbours of the item whose `path` matches the current route."""
    current = _normalize_route(strip_base(route_path, base))
    for idx, item in enumerate(items):
        if _normalize_route(str(item.get("path", ""))) == current:
            prev_item = items[idx - 1] if idx > 0 else None
            next_item = items[idx + 1] if idx + 1 < len(items) else None
            return prev_item, next_item
    return None, None

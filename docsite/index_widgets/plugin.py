import logging
import re
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin

from docsite.index_widgets.consumers import (
    Pagination,
    artifact_url,
    fetch_index,
    find_adjacent,
)
from docsite.index_widgets.widgets import render_listing, render_prev_next, render_recent

log = logging.getLogger("mkdocs.plugins.docsite.index_widgets")

PAGER_SCRIPT = Path(__file__).parent / "assets" / "index-widgets.js"

# <!-- index:listing articles-metadata.json sort=date -->
MARKER_PATTERN = re.compile(
    r"<!--\s*index:(?P<kind>listing|recent)\s+(?P<artifact>[^\s]+)(?P<options>(?:\s+\w+=\w+)*)\s*-->"
)

SORTS = {
    "date": lambda items: sorted(items, key=lambda i: str(i.get("date", "")), reverse=True),
    "title": lambda items: sorted(items, key=lambda i: str(i.get("title", "")).casefold()),
}


class IndexWidgetsPlugin(BasePlugin):
    """
    Renders index artifacts into pages.

    Markdown markers are replaced with a listing or a recent list. A listing
    holds every page, with only the first visible; the pager script (the
    `javascript` option, registered in `extra_javascript` and copied into the
    site after the build) shows the page named by `?page=N` and switches pages
    without reloading. Pages whose URL falls under a configured navigation
    prefix get previous/next links appended to their content.
    """

    config_scheme = (
        ("artifacts_dir", Type(str, default="public")),
        ("base_url", Type(str, default="/")),
        ("page_size", Type(int, default=10)),
        ("navigation", Type(list, default=[])),
        ("javascript", Type(str, default="assets/javascripts/index-widgets.js")),
    )

    def __init__(self):
        super().__init__()
        self._artifacts_root: Optional[Path] = None
        self._cache: Dict[str, List[dict]] = {}

    def on_config(self, config, **kwargs):
        self._artifacts_root = Path(config["docs_dir"]) / self.config["artifacts_dir"]
        script = self.config["javascript"]
        if script:
            scripts = config.setdefault("extra_javascript", [])
            if script not in [str(s) for s in scripts]:
                scripts.append(script)
        return config

    def on_post_build(self, config, **kwargs):
        script = self.config["javascript"]
        if not script:
            return
        target = Path(config["site_dir"]) / script
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(PAGER_SCRIPT, target)
        except OSError as e:
            log.error(f"[index_widgets] failed to copy pager script to {target}: {e}")
            return
        log.debug(f"[index_widgets] wrote {target}")

    def on_pre_build(self, config, **kwargs):
        # Artifacts are regenerated on every build
        self._cache = {}

    def load(self, artifact: str) -> List[dict]:
        if artifact not in self._cache:
            self._cache[artifact] = fetch_index(str(self._artifacts_root / artifact))
        return self._cache[artifact]

    def render_marker(self, match: re.Match, page_url: str) -> str:
        artifact = match.group("artifact")
        options = dict(opt.split("=", 1) for opt in match.group("options").split())
        items = self.load(artifact)
        sort = SORTS.get(options.get("sort", ""))
        if sort:
            items = sort(items)

        base = self.config["base_url"]
        if match.group("kind") == "recent":
            return render_recent(items, base)

        page_size = int(options.get("size", self.config["page_size"]))
        pagination = Pagination(total=len(items), page_size=page_size)
        return render_listing(
            items,
            pagination,
            url=artifact_url(base, page_url),
            base=base,
            source=artifact_url(base, artifact),
        )

    def on_page_markdown(self, markdown, page, config, files, **kwargs):
        if "index:" not in markdown:
            return markdown
        return MARKER_PATTERN.sub(lambda m: self.render_marker(m, page.url), markdown)

    def navigation_for(self, page_url: str) -> Optional[str]:
        path = "/" + page_url.lstrip("/")
        for entry in self.config["navigation"]:
            prefix = "/" + str(entry.get("prefix", "")).strip("/") + "/"
            if path.startswith(prefix) and path != prefix:
                return render_prev_next(
                    *find_adjacent(self.load(entry["artifact"]), path, "/"),
                    base=self.config["base_url"],
                )
        return None

    def on_post_page(self, output, *, page, config, **kwargs):
        nav_html = self.navigation_for(page.url)
        if not nav_html:
            return output

        soup = BeautifulSoup(output, "html.parser")
        container = soup.select_one(".md-content article") or soup.select_one(".md-content")
        if container is None:
            container = soup.find("article") or soup.body
        if container is None:
            return output
        container.append(BeautifulSoup(nav_html, "html.parser"))
        return str(soup)

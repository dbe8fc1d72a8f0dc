import logging
from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin

from docsite.content_index.index_builder import (
    CHRONOLOGICAL,
    FULL,
    RECENT,
    ArtifactWriter,
    ContentIndex,
)
from docsite.content_index.scanner import ContentScanner

log = logging.getLogger("mkdocs.plugins.docsite.content_index")


class ContentIndexPlugin(BasePlugin):
    """Scans a content collection (articles by default) and writes its JSON
    indexes into a web-servable directory before every build.

    `mkdocs serve` runs a build on start and on every change, so the indexes
    are regenerated in full each time; unchanged artifacts are not rewritten.
    """

    config_scheme = (
        ("content_dir", Type(str, default="articles")),
        ("collection", Type(str, default="articles")),
        ("recent_count", Type(int, default=5)),
        ("output_dir", Type(str, default="public")),
        ("metadata_file", Type(str, default="articles-metadata.json")),
        ("recent_file", Type(str, default="recent-articles.json")),
        ("chronological_file", Type(str, default="")),
    )

    def __init__(self):
        super().__init__()
        self.index = None
        self.command = None

    def on_startup(self, *, command, dirty):
        self.command = command

    def on_config(self, config, **kwargs):
        docs_dir = Path(config["docs_dir"])
        artifacts = {
            FULL: self.config["metadata_file"],
            RECENT: self.config["recent_file"],
        }
        if self.config["chronological_file"]:
            artifacts[CHRONOLOGICAL] = self.config["chronological_file"]

        self.index = ContentIndex(
            scanner=ContentScanner(
                docs_dir / self.config["content_dir"], self.config["collection"]
            ),
            writer=ArtifactWriter(docs_dir / self.config["output_dir"]),
            recent_count=self.config["recent_count"],
            artifacts=artifacts,
        )
        return config

    def on_pre_build(self, config, **kwargs):
        log.debug(
            f"[content_index] regenerating '{self.config['collection']}' index (command={self.command})"
        )
        self.index.regenerate()

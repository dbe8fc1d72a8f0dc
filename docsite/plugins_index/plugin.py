import logging
from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.plugins import BasePlugin

from docsite.content_index.index_builder import (
    ALPHABETICAL,
    RECENT,
    ArtifactWriter,
    ContentIndex,
)
from docsite.plugins_index.catalog import CatalogSource, load_catalog

log = logging.getLogger("mkdocs.plugins.docsite.plugins_index")


class PluginsIndexPlugin(BasePlugin):
    """Writes the plugin catalog as JSON: an alphabetical full list for the
    index page and the first `recent_count` entries, in catalog order, for the
    home page."""

    config_scheme = (
        ("catalog", Type(list, default=[])),
        ("catalog_file", Type(str, default="")),
        ("recent_count", Type(int, default=6)),
        ("output_dir", Type(str, default="public")),
        ("metadata_file", Type(str, default="plugins-metadata.json")),
        ("recent_file", Type(str, default="recent-plugins.json")),
    )

    def __init__(self):
        super().__init__()
        self.index = None

    def on_config(self, config, **kwargs):
        entries = list(self.config["catalog"])
        if self.config["catalog_file"]:
            config_file = config.get("config_file_path")
            project_root = Path(config_file).resolve().parent if config_file else Path.cwd()
            entries.extend(load_catalog(project_root / self.config["catalog_file"]))

        self.index = ContentIndex(
            scanner=CatalogSource(entries),
            writer=ArtifactWriter(Path(config["docs_dir"]) / self.config["output_dir"]),
            recent_count=self.config["recent_count"],
            artifacts={
                ALPHABETICAL: self.config["metadata_file"],
                RECENT: self.config["recent_file"],
            },
        )
        return config

    def on_pre_build(self, config, **kwargs):
        self.generate()

    def generate(self):
        """Regenerate the artifacts; returns the records in catalog order."""
        return self.index.regenerate()

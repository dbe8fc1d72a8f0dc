import logging
from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin

from docsite.registry.defaults import resolve_registry
from docsite.registry.registry import RegistryError
from docsite.versioned_sidebar.sidebar import SidebarComposer, tree_to_dicts

log = logging.getLogger("mkdocs.plugins.docsite.versioned_sidebar")


class VersionedSidebarPlugin(BasePlugin):
    """
    Composes one sidebar per registered version and hands them to the theme.

    After `on_config`, `config.extra.sidebars` maps each public path to its
    sidebar tree and `config.extra.versions` lists the version switcher entries.
    Each page additionally receives `sidebar` in its template context: the tree
    registered under the longest public path that prefixes the page URL.
    """

    config_scheme = (
        ("registry_file", Type(str, default="")),
        ("sidebar_dir", Type(str, default="")),
    )

    def __init__(self):
        super().__init__()
        self.registry = None
        self.sidebars = {}

    def on_config(self, config, **kwargs):
        config_file = config.get("config_file_path")
        try:
            self.registry = resolve_registry(self.config["registry_file"], config_file)
        except (OSError, RegistryError) as e:
            raise PluginError(f"[versioned_sidebar] invalid version registry: {e}")

        project_root = Path(config_file).resolve().parent if config_file else Path.cwd()
        base_dir = project_root / (self.config["sidebar_dir"] or self.registry.sidebar_base_dir)

        composer = SidebarComposer(self.registry, base_dir)
        for problem in composer.validate_sidebar_files():
            log.debug(
                f"[versioned_sidebar] {problem['locale']}/{problem['version']}: {problem['file']} unusable ({problem['error']})"
            )
        self.sidebars = {
            public_path: tree_to_dicts(tree)
            for public_path, tree in composer.compose().items()
        }

        extra = config["extra"]
        extra["sidebars"] = self.sidebars
        extra["versions"] = self.registry.version_nav_items()
        return config

    def sidebar_for_url(self, url: str):
        path = "/" + url.lstrip("/")
        matches = [p for p in self.sidebars if path.startswith(p)]
        if not matches:
            return None
        return self.sidebars[max(matches, key=len)]

    def on_page_context(self, context, page, config, nav, **kwargs):
        context["sidebar"] = self.sidebar_for_url(page.url)
        context["version"] = self.registry.version_by_path("/" + page.file.src_path)
        return context

import logging
from typing import Dict

from mkdocs.config.config_options import Type
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin
from packaging import version as packaging_version

from docsite.registry.defaults import resolve_registry
from docsite.registry.registry import RegistryError, VersionDescriptor
from docsite.version_replacer.fences import replace_fences

log = logging.getLogger("mkdocs.plugins.docsite.version_replacer")

DEFAULT_PLACEHOLDERS = {
    "|phpversion|": "**{php_version}**",
    "|minphpversion|": "*{min_php_version}*",
}

DEFAULT_VALUES = {
    "php_version": "8.1",
    "min_php_version": "8.1",
}


class _Defaults(dict):
    # Unknown fields render as empty strings instead of raising KeyError
    def __missing__(self, key):
        return ""


class VersionReplacerPlugin(BasePlugin):
    """
    Substitutes version placeholders in page sources before they are parsed,
    and swaps diagram fences (``` mermaid by default) for their wrapper
    element.

    Substitution is plain text replacement: a placeholder inside a code span
    or code block is replaced too.
    """

    config_scheme = (
        ("registry_file", Type(str, default="")),
        ("placeholders", Type(dict, default=DEFAULT_PLACEHOLDERS)),
        ("defaults", Type(dict, default=DEFAULT_VALUES)),
        ("version_bounds", Type(list, default=["min_php_version", "php_version"])),
        ("fence_language", Type(str, default="mermaid")),
        ("fence_class", Type(str, default="mermaid")),
    )

    def __init__(self):
        super().__init__()
        self.registry = None

    def on_config(self, config, **kwargs):
        try:
            self.registry = resolve_registry(
                self.config["registry_file"], config.get("config_file_path")
            )
        except (OSError, RegistryError) as e:
            raise PluginError(f"[version_replacer] invalid version registry: {e}")

        for locale in self.registry.registered_locales():
            for descriptor in self.registry.versions_by_locale[locale]:
                self.check_version_bounds(descriptor)
        return config

    def check_version_bounds(self, descriptor: VersionDescriptor) -> bool:
        """Warn when a descriptor's lower runtime bound exceeds its target."""
        bounds = self.config["version_bounds"]
        if len(bounds) != 2:
            return True
        values = self.values_for(descriptor)
        low, high = values[bounds[0]], values[bounds[1]]
        try:
            ok = packaging_version.parse(str(low)) <= packaging_version.parse(str(high))
        except packaging_version.InvalidVersion as e:
            log.warning(f"[version_replacer] version {descriptor.version}: {e}")
            return False
        if not ok:
            log.warning(
                f"[version_replacer] version {descriptor.version}: {bounds[0]}={low} is above {bounds[1]}={high}"
            )
        return ok

    def values_for(self, descriptor: VersionDescriptor) -> Dict[str, str]:
        values = _Defaults(self.config["defaults"])
        values.update({k: v for k, v in descriptor.extras.items() if v not in (None, "")})
        return values

    def substitute(self, markdown: str, descriptor: VersionDescriptor) -> str:
        values = self.values_for(descriptor)
        for placeholder, template in self.config["placeholders"].items():
            if placeholder in markdown:
                markdown = markdown.replace(placeholder, template.format_map(values))
        return markdown

    def render_source(self, markdown: str, src_path: str) -> str:
        descriptor = self.registry.version_by_path("/" + src_path.replace("\\", "/"))
        markdown = self.substitute(markdown, descriptor)
        if self.config["fence_language"]:
            markdown = replace_fences(
                markdown, self.config["fence_language"], self.config["fence_class"]
            )
        return markdown

    def on_page_markdown(self, markdown, page, config, files, **kwargs):
        return self.render_source(markdown, page.file.src_path)

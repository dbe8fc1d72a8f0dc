"""
Built-in version table used when a site does not point at its own registry
file. To add a language, list its code in `supported_locales`, add its
versions under `versions`, and drop its sidebar files under `sidebar.base_dir`.
"""

from pathlib import Path

from docsite.registry.registry import VersionRegistry, load_registry

DEFAULT_TABLE = {
    "default_locale": "en",
    "supported_locales": ["en"],
    "versions": {
        "en": [
            {
                "version": "plugins",
                "label": "Plugins",
                "display_name": "Evgeny's CakePHP Plugins",
                "path": "/",
                "public_path": "/",
                "is_current_version": True,
                "sidebar_file": "sidebar.json",
                "php_version": "8.4",
                "min_php_version": "8.1",
            }
        ],
    },
    "sidebar": {
        "base_dir": "cake",
        "update_links_for_current_version": True,
    },
}


def default_registry() -> VersionRegistry:
    return VersionRegistry.from_dict(DEFAULT_TABLE)


def resolve_registry(registry_file: str, config_file_path=None) -> VersionRegistry:
    """The registry named by a plugin's `registry_file` option, relative to
    mkdocs.yml, or the built-in table when the option is empty."""
    if not registry_file:
        return default_registry()
    path = Path(registry_file)
    if not path.is_absolute() and config_file_path:
        path = Path(config_file_path).resolve().parent / path
    return load_registry(path)

"""
Loading and composition of version-specific sidebar trees.

Every registered version points at a JSON sidebar file. A file maps source
paths to sidebar trees; a version uses the tree stored under its own `path`.
The composed result is keyed by each version's public path.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from docsite.registry.registry import VersionDescriptor, VersionRegistry

log = logging.getLogger("mkdocs.plugins.docsite.versioned_sidebar")


@dataclass(frozen=True)
class SidebarItem:
    text: str
    link: Optional[str] = None
    collapsed: Optional[bool] = None
    items: Optional[Tuple["SidebarItem", ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SidebarItem":
        if not isinstance(data, dict) or "text" not in data:
            raise ValueError(f"sidebar item needs a 'text' field: {data!r}")
        items = data.get("items")
        if items is not None and not isinstance(items, list):
            raise ValueError(f"sidebar item 'items' must be a list: {data!r}")
        return cls(
            text=data["text"],
            link=data.get("link"),
            collapsed=data.get("collapsed"),
            items=tuple(cls.from_dict(i) for i in items) if items is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"text": self.text}
        if self.collapsed is not None:
            out["collapsed"] = self.collapsed
        if self.items is not None:
            out["items"] = [i.to_dict() for i in self.items]
        if self.link is not None:
            out["link"] = self.link
        return out


SidebarTree = List[SidebarItem]


def parse_tree(data) -> SidebarTree:
    if isinstance(data, dict):
        return [SidebarItem.from_dict(data)]
    if not isinstance(data, list):
        raise ValueError(f"sidebar tree must be a list of items, got {type(data).__name__}")
    return [SidebarItem.from_dict(item) for item in data]


def tree_to_dicts(tree: SidebarTree) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in tree]


# ----- Link rewriting -------


def rewrite_link(link: str, from_path: str, to_path: str) -> str:
    """Swap a leading `from_path` for `to_path` without producing `//`."""
    if not link.startswith(from_path):
        return link
    rest = link[len(from_path) :]
    # "/v1" must not match "/v10/..."
    if rest and not from_path.endswith("/") and not rest.startswith(("/", "#", "?")):
        return link
    if not rest:
        return to_path
    if rest.startswith(("#", "?")):
        return to_path + rest
    return to_path.rstrip("/") + "/" + rest.lstrip("/")


def rewrite_links(tree: SidebarTree, from_path: str, to_path: str) -> SidebarTree:
    return [_rewrite_item(item, from_path, to_path) for item in tree]


def _rewrite_item(item: SidebarItem, from_path: str, to_path: str) -> SidebarItem:
    return SidebarItem(
        text=item.text,
        link=rewrite_link(item.link, from_path, to_path) if item.link is not None else None,
        collapsed=item.collapsed,
        items=(
            tuple(rewrite_links(list(item.items), from_path, to_path))
            if item.items is not None
            else None
        ),
    )


# ----- Loading & composing -------


def load_sidebar_file(path) -> Dict[str, Any]:
    """Read a sidebar file; raises OSError/ValueError on unreadable input.

    Trees stay raw here. Each version parses only the one stored under its
    own path, so a broken tree for one path does not take the others down.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must map source paths to sidebar trees")
    return data


def tree_for_path(data: Dict[str, Any], source_path: str) -> Optional[SidebarTree]:
    """Parsed tree stored under `source_path`, or None when there is none."""
    raw = data.get(source_path)
    if raw is None:
        return None
    return parse_tree(raw)


class SidebarComposer:
    def __init__(self, registry: VersionRegistry, base_dir):
        self.registry = registry
        self.base_dir = Path(base_dir)

    def sidebar_path(self, version: VersionDescriptor) -> Path:
        return self.base_dir / version.sidebar_file

    def load_sidebar_configurations(self, locale: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Raw sidebar files of a locale keyed by version id; failures are skipped."""
        sidebars = {}
        locale = locale or self.registry.default_locale
        for version in self.registry.versions_for_locale(locale):
            try:
                sidebars[version.version] = load_sidebar_file(self.sidebar_path(version))
            except (OSError, ValueError) as e:
                log.warning(
                    f"[versioned_sidebar] could not load sidebar for version {version.version} ({locale}): {e}"
                )
        return sidebars

    def compose(self) -> Dict[str, SidebarTree]:
        result: Dict[str, SidebarTree] = {}
        for locale in self.registry.registered_locales():
            loaded = self.load_sidebar_configurations(locale)
            for version in self.registry.versions_by_locale[locale]:
                version_sidebar = loaded.get(version.version)
                if version_sidebar is None:
                    log.warning(
                        f"[versioned_sidebar] skipping version {version.version} ({locale}): no sidebar data"
                    )
                    continue
                try:
                    tree = tree_for_path(version_sidebar, version.path)
                except ValueError as e:
                    log.warning(
                        f"[versioned_sidebar] invalid sidebar for path {version.path} in version {version.version} ({locale}): {e}"
                    )
                    continue
                if tree is None:
                    log.warning(
                        f"[versioned_sidebar] no sidebar for path {version.path} in version {version.version} ({locale})"
                    )
                    continue
                if version.is_current_version and self.registry.update_links_for_current_version:
                    tree = rewrite_links(tree, version.path, version.public_path)
                result[version.public_path] = tree
        log.info(f"[versioned_sidebar] composed {len(result)} sidebar(s)")
        return result

    def sidebar_for_version(self, version_id: str, locale: Optional[str] = None) -> Optional[SidebarTree]:
        version = next(
            (v for v in self.registry.versions_for_locale(locale) if v.version == version_id),
            None,
        )
        if version is None:
            return None
        try:
            return tree_for_path(load_sidebar_file(self.sidebar_path(version)), version.path)
        except (OSError, ValueError) as e:
            log.warning(f"[versioned_sidebar] could not load sidebar for version {version_id}: {e}")
            return None

    def validate_sidebar_files(self, locale: Optional[str] = None) -> List[Dict[str, str]]:
        """List versions whose sidebar file is missing or unreadable, or whose own
        tree is malformed. `None` checks all locales."""
        locales = [locale] if locale else self.registry.registered_locales()
        missing = []
        for loc in locales:
            for version in self.registry.versions_by_locale.get(loc, []):
                try:
                    tree_for_path(load_sidebar_file(self.sidebar_path(version)), version.path)
                except (OSError, ValueError) as e:
                    missing.append(
                        {
                            "locale": loc,
                            "version": version.version,
                            "file": version.sidebar_file,
                            "error": str(e),
                        }
                    )
        return missing

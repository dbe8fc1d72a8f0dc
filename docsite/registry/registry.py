import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

log = logging.getLogger("mkdocs.plugins.docsite.registry")

# Keys of a version table entry that the registry understands. Everything else
# lands in `extras` under its snake_case name, values untouched.
KNOWN_KEYS = {
    "version",
    "label",
    "display_name",
    "path",
    "public_path",
    "is_current_version",
    "sidebar_file",
}

# Tables may also be written in camelCase (publicPath, phpVersion, ...).
CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(key: str) -> str:
    return CAMEL_BOUNDARY.sub("_", key).lower()


class RegistryError(ValueError):
    """Raised when the version table breaks one of its invariants."""


@dataclass(frozen=True)
class VersionDescriptor:
    version: str
    label: str
    display_name: str
    path: str
    public_path: str
    is_current_version: bool = False
    sidebar_file: str = "sidebar.json"
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionDescriptor":
        normalized = {snake_case(str(k)): v for k, v in data.items()}
        missing = [k for k in ("version", "path", "public_path") if k not in normalized]
        if missing:
            raise RegistryError(
                f"version entry {data!r} is missing required keys: {', '.join(missing)}"
            )
        version = str(normalized["version"])
        label = normalized.get("label") or version
        return cls(
            version=version,
            label=label,
            display_name=normalized.get("display_name") or label,
            path=normalized["path"],
            public_path=normalized["public_path"],
            is_current_version=bool(normalized.get("is_current_version", False)),
            sidebar_file=normalized.get("sidebar_file", "sidebar.json"),
            extras={k: v for k, v in normalized.items() if k not in KNOWN_KEYS},
        )


class VersionRegistry:
    """
    Static table of locales and content versions with pure lookups.

    The table is validated once at construction: every locale must flag
    exactly one current version and must not reuse a public path.
    """

    def __init__(
        self,
        versions_by_locale: Dict[str, List[VersionDescriptor]],
        supported_locales: Optional[Iterable[str]] = None,
        default_locale: str = "en",
        sidebar_base_dir: str = "",
        update_links_for_current_version: bool = True,
    ):
        if default_locale not in versions_by_locale:
            raise RegistryError(
                f"no versions registered for default locale '{default_locale}'"
            )
        self.default_locale = default_locale
        self.versions_by_locale = {
            locale: list(versions) for locale, versions in versions_by_locale.items()
        }
        locales = list(supported_locales or [default_locale])
        if default_locale not in locales:
            locales.insert(0, default_locale)
        self.supported_locales = locales
        self.sidebar_base_dir = sidebar_base_dir
        self.update_links_for_current_version = update_links_for_current_version
        self._validate()

    def _validate(self) -> None:
        for locale, versions in self.versions_by_locale.items():
            flagged = [v.version for v in versions if v.is_current_version]
            if len(flagged) != 1:
                raise RegistryError(
                    f"locale '{locale}' must flag exactly one current version, found {len(flagged)}"
                    + (f" ({', '.join(flagged)})" if flagged else "")
                )
            seen = set()
            for v in versions:
                if v.public_path in seen:
                    raise RegistryError(
                        f"locale '{locale}' reuses public path '{v.public_path}'"
                    )
                seen.add(v.public_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionRegistry":
        default_locale = data.get("default_locale", "en")
        raw_versions = data.get("versions") or {}
        # A bare list is shorthand for "versions of the default locale".
        if isinstance(raw_versions, list):
            raw_versions = {default_locale: raw_versions}
        versions_by_locale = {
            locale: [VersionDescriptor.from_dict(entry) for entry in entries or []]
            for locale, entries in raw_versions.items()
        }
        sidebar_cfg = data.get("sidebar") or {}
        return cls(
            versions_by_locale,
            supported_locales=data.get("supported_locales"),
            default_locale=default_locale,
            sidebar_base_dir=sidebar_cfg.get("base_dir", ""),
            update_links_for_current_version=sidebar_cfg.get(
                "update_links_for_current_version", True
            ),
        )

    # ----- Lookups -------

    def versions_for_locale(self, locale: Optional[str] = None) -> List[VersionDescriptor]:
        locale = locale or self.default_locale
        versions = self.versions_by_locale.get(locale)
        if versions is None:
            return self.versions_by_locale[self.default_locale]
        return versions

    def current_version(self, locale: Optional[str] = None) -> VersionDescriptor:
        return next(v for v in self.versions_for_locale(locale) if v.is_current_version)

    def locale_supported(self, locale: str) -> bool:
        return locale in self.supported_locales

    def detect_locale(self, path: str) -> str:
        """Longest `/{locale}/` prefix of `path`; the default locale has no prefix."""
        matches = [
            locale
            for locale in self.supported_locales
            if locale != self.default_locale and path.startswith(f"/{locale}/")
        ]
        if not matches:
            return self.default_locale
        return max(matches, key=len)

    def version_by_path(self, path: str) -> VersionDescriptor:
        locale = self.detect_locale(path)
        for version in self.versions_for_locale(locale):
            if path.startswith(version.public_path):
                return version
        return self.current_version(locale)

    def version_label(self, path: str) -> str:
        return self.version_by_path(path).label

    def all_version_paths(self, locale: Optional[str] = None) -> List[str]:
        return [v.public_path for v in self.versions_for_locale(locale)]

    def version_nav_items(self, locale: Optional[str] = None) -> List[Dict[str, str]]:
        """Entries for a version switcher dropdown."""
        return [
            {
                "text": v.display_name,
                "link": v.public_path,
                "path": v.public_path,
                "version": v.version,
            }
            for v in self.versions_for_locale(locale)
        ]

    def registered_locales(self) -> List[str]:
        """Locales with a dedicated version list, default locale first."""
        return [self.default_locale] + [
            loc for loc in self.versions_by_locale if loc != self.default_locale
        ]


def load_registry(path) -> VersionRegistry:
    """Load a registry table from a YAML or JSON file."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or {}
    log.debug(f"[registry] loaded version table from {path}")
    return VersionRegistry.from_dict(data)

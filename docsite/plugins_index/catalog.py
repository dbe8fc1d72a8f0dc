import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

log = logging.getLogger("mkdocs.plugins.docsite.plugins_index")


@dataclass(frozen=True)
class PluginRecord:
    title: str
    description: str
    slug: str
    path: str
    name: str

    @classmethod
    def from_catalog_entry(cls, entry: Dict[str, Any]) -> "PluginRecord":
        return cls(
            title=entry["title"],
            description=entry.get("details", ""),
            slug=entry["name"],
            path=entry["link"],
            name=entry["name"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


def load_catalog(path) -> List[Dict[str, Any]]:
    """Load catalog entries from YAML; a missing or broken file yields []."""
    path = Path(path)
    if not path.exists():
        log.warning(f"[plugins_index] catalog file not found at {path}")
        return []
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        log.warning(f"[plugins_index] unable to read catalog {path}: {e}")
        return []
    if isinstance(data, dict):
        data = data.get("plugins")
    return data if isinstance(data, list) else []


class CatalogSource:
    """Projects the hand-maintained catalog into PluginRecords, in catalog order."""

    def __init__(self, entries: List[Dict[str, Any]]):
        self.entries = entries

    def scan(self) -> List[PluginRecord]:
        records = []
        for entry in self.entries:
            try:
                records.append(PluginRecord.from_catalog_entry(entry))
            except (KeyError, TypeError, AttributeError) as e:
                log.warning(f"[plugins_index] skipping catalog entry {entry!r}: {e}")
        return records

import json
import logging
import os
import tempfile
import unicodedata
from pathlib import Path
from typing import Dict, List, Optional, Sequence

log = logging.getLogger("mkdocs.plugins.docsite.content_index")


# ----- Derived views -------


def recent(records: Sequence, count: int) -> list:
    """First `count` records in scan order (not date sorted)."""
    return list(records[: max(count, 0)])


def collation_key(title: str):
    """Locale-aware ordering: accents and case only matter to break ties."""
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), title.casefold(), title)


def alphabetical(records: Sequence) -> list:
    return sorted(records, key=lambda r: collation_key(r.title))


def chronological(records: Sequence) -> list:
    # sorted() is stable, so records sharing a date keep scan order
    return sorted(records, key=lambda r: r.date, reverse=True)


def serialize(records: Sequence) -> str:
    payload = [r.to_dict() if hasattr(r, "to_dict") else r for r in records]
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def load_artifact(path) -> list:
    """Read a JSON artifact back; any failure yields an empty list."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.debug(f"[content_index] could not read artifact {path}: {e}")
        return []
    return data if isinstance(data, list) else []


# ----- Persistence -------


class ArtifactWriter:
    """Writes whole JSON artifacts into one flat output directory."""

    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)

    def write(self, name: str, records: Sequence) -> bool:
        target = self.output_dir / name
        content = serialize(records).encode("utf-8")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            if target.exists() and target.read_bytes() == content:
                log.debug(f"[content_index] {target} unchanged")
                return True
            self._replace(target, content)
        except OSError as e:
            log.warning(f"[content_index] failed to write {target}: {e}")
            return False
        log.debug(f"[content_index] wrote {target} ({len(records)} records)")
        return True

    @staticmethod
    def _replace(target: Path, content: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp_name, target)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


# ----- Process-scoped owner -------

FULL = "full"
RECENT = "recent"
ALPHABETICAL = "alphabetical"
CHRONOLOGICAL = "chronological"

VIEWS = {
    FULL: lambda records, count: list(records),
    RECENT: recent,
    ALPHABETICAL: lambda records, count: alphabetical(records),
    CHRONOLOGICAL: lambda records, count: chronological(records),
}


class ContentIndex:
    """
    Owns the scanned records of one collection and the artifacts derived from
    them. `regenerate()` is the only mutator: it rescans everything and rewrites
    every configured artifact.

    `artifacts` maps a view name (full, recent, alphabetical, chronological) to
    the file name it is written to.
    """

    def __init__(self, scanner, writer: ArtifactWriter, recent_count: int, artifacts: Dict[str, str]):
        unknown = set(artifacts) - set(VIEWS)
        if unknown:
            raise ValueError(f"unknown artifact views: {', '.join(sorted(unknown))}")
        self.scanner = scanner
        self.writer = writer
        self.recent_count = recent_count
        self.artifacts = dict(artifacts)
        self.records: Optional[List] = None

    def regenerate(self) -> list:
        records = self.scanner.scan()
        self.records = records
        written = 0
        for view, name in self.artifacts.items():
            if self.writer.write(name, VIEWS[view](records, self.recent_count)):
                written += 1
        log.info(
            f"[content_index] indexed {len(records)} records, wrote {written}/{len(self.artifacts)} artifacts to {self.writer.output_dir}"
        )
        return records

    def _ensure(self) -> list:
        if self.records is None:
            return self.regenerate()
        return self.records

    def recent(self) -> list:
        return recent(self._ensure(), self.recent_count)

    def alphabetical(self) -> list:
        return alphabetical(self._ensure())

    def chronological(self) -> list:
        return chronological(self._ensure())

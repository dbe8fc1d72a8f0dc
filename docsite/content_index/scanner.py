import datetime
import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import quote

import yaml

log = logging.getLogger("mkdocs.plugins.docsite.content_index")

FM_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)
PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

DESCRIPTION_LIMIT = 200
ELLIPSIS = "..."


@dataclass(frozen=True)
class ContentRecord:
    title: str
    date: str
    description: str
    slug: str
    path: str
    file: str
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            key: data[key]
            for key in ("title", "date", "description", "tags", "slug", "path", "file")
        }


def split_front_matter(source_text: str):
    """
    Return (front_matter_dict, body_text). If no FM, dict={} and body=source_text.
    Raises yaml.YAMLError when the front matter block is not valid YAML.
    """
    m = FM_PATTERN.match(source_text)
    if not m:
        return {}, source_text
    fm = yaml.safe_load(m.group(1)) or {}
    if not isinstance(fm, dict):
        fm = {}
    return fm, source_text[m.end() :]


def fallback_description(body: str) -> str:
    """First non-blank paragraph, cut to 200 characters with an ellipsis if longer."""
    first = next((p for p in PARAGRAPH_SPLIT.split(body) if p.strip()), "")
    first = first.strip()
    if len(first) > DESCRIPTION_LIMIT:
        return first[:DESCRIPTION_LIMIT] + ELLIPSIS
    return first


def normalize_date(value, today: Callable[[], datetime.date] = datetime.date.today) -> str:
    if value is None or value == "":
        return today().isoformat()
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    text = str(value).strip()
    if "T" in text:
        text = text.split("T", 1)[0]
    elif " " in text:
        text = text.split(" ", 1)[0]
    try:
        return datetime.date.fromisoformat(text).isoformat()
    except ValueError:
        log.warning(f"[content_index] unrecognised date '{value}', using today's date")
        return today().isoformat()


def encode_slug(slug: str) -> str:
    # Apostrophes are not in `safe`, so they come out as %27.
    return quote(slug, safe="!*()")


def normalize_tags(raw) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(t) for t in raw]
    return [str(raw)]


class ContentScanner:
    """Walks one collection directory and builds a ContentRecord per document."""

    def __init__(
        self,
        directory,
        collection: str,
        extension: str = ".md",
        index_name: str = "index",
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        self.directory = Path(directory)
        self.collection = collection.strip("/")
        self.extension = extension
        self.index_name = index_name
        self.today = today or datetime.date.today

    def scan(self) -> List[ContentRecord]:
        if not self.directory.exists() or not self.directory.is_dir():
            log.debug(f"[content_index] no '{self.collection}' directory at {self.directory}")
            return []

        try:
            return [self.read_record(p) for p in self._document_paths()]
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            log.warning(
                f"[content_index] could not scan '{self.collection}' in {self.directory}: {e}"
            )
            return []

    def _document_paths(self) -> List[Path]:
        paths = []
        for entry in sorted(self.directory.iterdir(), key=lambda p: p.name):
            if entry.suffix != self.extension or not entry.is_file():
                continue
            if entry.stem == self.index_name:
                continue
            paths.append(entry)
        return paths

    def read_record(self, file_path: Path) -> ContentRecord:
        text = file_path.read_text(encoding="utf-8")
        front_matter, body = split_front_matter(text)
        slug = file_path.stem

        description = front_matter.get("description") or ""
        if not description and body:
            description = fallback_description(body)

        return ContentRecord(
            title=str(front_matter.get("title") or slug),
            date=normalize_date(front_matter.get("date"), self.today),
            description=str(description),
            tags=normalize_tags(front_matter.get("tags")),
            slug=slug,
            path=f"/{self.collection}/{encode_slug(slug)}",
            file=file_path.name,
        )

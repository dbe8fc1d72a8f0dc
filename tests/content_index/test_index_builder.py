import json

import pytest

from docsite.content_index.index_builder import (
    ALPHABETICAL,
    CHRONOLOGICAL,
    FULL,
    RECENT,
    ArtifactWriter,
    ContentIndex,
    alphabetical,
    chronological,
    load_artifact,
    recent,
    serialize,
)
from docsite.content_index.scanner import ContentRecord, ContentScanner


def record(slug, title=None, date="2024-01-01"):
    return ContentRecord(
        title=title or slug,
        date=date,
        description="",
        slug=slug,
        path=f"/articles/{slug}",
        file=f"{slug}.md",
    )


class StaticSource:
    def __init__(self, records):
        self.records = records

    def scan(self):
        return list(self.records)


class TestViews:
    def test_recent_is_prefix_in_scan_order(self):
        records = [record("c", date="2020-01-01"), record("a", date="2024-01-01"), record("b")]
        assert recent(records, 2) == records[:2]
        assert recent(records, 10) == records
        assert recent(records, 0) == []

    def test_alphabetical_is_locale_aware(self):
        records = [record("1", "zebra"), record("2", "Émile"), record("3", "apple"), record("4", "Banana")]
        assert [r.title for r in alphabetical(records)] == ["apple", "Banana", "Émile", "zebra"]

    def test_alphabetical_is_permutation(self):
        records = [record(s, t) for s, t in (("x", "b"), ("y", "a"), ("z", "c"))]
        result = alphabetical(records)
        assert sorted(r.slug for r in result) == ["x", "y", "z"]

    def test_chronological_newest_first_and_stable(self):
        records = [
            record("old", date="2023-01-01"),
            record("tie-1", date="2024-06-01"),
            record("new", date="2025-01-01"),
            record("tie-2", date="2024-06-01"),
        ]
        assert [r.slug for r in chronological(records)] == ["new", "tie-1", "tie-2", "old"]

    def test_serialize_is_byte_stable(self):
        records = [record("a", "Ünïcode")]
        assert serialize(records) == serialize(list(records))
        assert "Ünïcode" in serialize(records)
        assert serialize(records).endswith("\n")


class TestArtifactWriter:
    def test_creates_directory_and_round_trips(self, tmp_path):
        writer = ArtifactWriter(tmp_path / "public" / "nested")
        records = [record("a"), record("b")]
        assert writer.write("articles-metadata.json", records) is True
        loaded = load_artifact(tmp_path / "public" / "nested" / "articles-metadata.json")
        assert loaded == [r.to_dict() for r in records]

    def test_rewrite_is_idempotent(self, tmp_path):
        writer = ArtifactWriter(tmp_path)
        writer.write("out.json", [record("a")])
        target = tmp_path / "out.json"
        first = target.read_bytes()
        mtime = target.stat().st_mtime_ns
        writer.write("out.json", [record("a")])
        assert target.read_bytes() == first
        assert target.stat().st_mtime_ns == mtime

    def test_write_failure_is_reported_not_raised(self, tmp_path, caplog):
        blocker = tmp_path / "public"
        blocker.write_text("a file where a directory should be", encoding="utf-8")
        writer = ArtifactWriter(blocker)
        assert writer.write("out.json", [record("a")]) is False
        assert "failed to write" in caplog.text

    def test_no_temp_files_left_behind(self, tmp_path):
        ArtifactWriter(tmp_path).write("out.json", [record("a")])
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]

    def test_load_artifact_missing_or_invalid(self, tmp_path):
        assert load_artifact(tmp_path / "missing.json") == []
        (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
        assert load_artifact(tmp_path / "bad.json") == []
        (tmp_path / "obj.json").write_text('{"a": 1}', encoding="utf-8")
        assert load_artifact(tmp_path / "obj.json") == []


class TestContentIndex:
    def make_index(self, tmp_path, records, artifacts=None):
        return ContentIndex(
            scanner=StaticSource(records),
            writer=ArtifactWriter(tmp_path),
            recent_count=2,
            artifacts=artifacts
            or {
                FULL: "full.json",
                RECENT: "recent.json",
                ALPHABETICAL: "alpha.json",
                CHRONOLOGICAL: "chrono.json",
            },
        )

    def test_regenerate_writes_every_view(self, tmp_path):
        records = [
            record("b", "Beta", "2024-01-01"),
            record("a", "Alpha", "2025-01-01"),
            record("c", "Gamma", "2023-01-01"),
        ]
        index = self.make_index(tmp_path, records)
        assert index.regenerate() == records

        def slugs(name):
            return [r["slug"] for r in json.loads((tmp_path / name).read_text(encoding="utf-8"))]

        assert slugs("full.json") == ["b", "a", "c"]
        assert slugs("recent.json") == ["b", "a"]
        assert slugs("alpha.json") == ["a", "b", "c"]
        assert slugs("chrono.json") == ["a", "b", "c"]

    def test_missing_collection_writes_empty_artifact(self, tmp_path):
        index = ContentIndex(
            scanner=ContentScanner(tmp_path / "nope", "articles"),
            writer=ArtifactWriter(tmp_path / "public"),
            recent_count=5,
            artifacts={FULL: "articles-metadata.json"},
        )
        assert index.regenerate() == []
        artifact = tmp_path / "public" / "articles-metadata.json"
        assert artifact.read_text(encoding="utf-8") == "[]\n"

    def test_records_survive_write_failure(self, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("", encoding="utf-8")
        records = [record("a")]
        index = ContentIndex(StaticSource(records), ArtifactWriter(blocker), 5, {FULL: "x.json"})
        assert index.regenerate() == records
        assert index.records == records

    def test_views_regenerate_lazily(self, tmp_path):
        records = [record("b", "B", "2020-01-01"), record("a", "A", "2021-01-01")]
        index = self.make_index(tmp_path, records, {FULL: "full.json"})
        assert index.records is None
        assert [r.slug for r in index.chronological()] == ["a", "b"]
        assert [r.slug for r in index.alphabetical()] == ["a", "b"]
        assert index.recent() == records

    def test_unknown_view_is_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="popular"):
            self.make_index(tmp_path, [], {"popular": "x.json"})

import io
import json
from urllib import error as urllib_error

import pytest

from docsite.index_widgets import consumers
from docsite.index_widgets.consumers import (
    Pagination,
    artifact_url,
    fetch_index,
    find_adjacent,
    page_from_query,
    replace_page_query,
)

ITEMS = [
    {"title": "First", "path": "/articles/first"},
    {"title": "Second", "path": "/articles/My%20Second"},
    {"title": "Third", "path": "/articles/third"},
]


class FakeResponse(io.BytesIO):
    def __init__(self, body: bytes, status: int = 200):
        super().__init__(body)
        self.status = status


class TestArtifactUrl:
    def test_collapses_duplicate_slashes(self):
        assert artifact_url("/docs-test/", "/articles-metadata.json") == "/docs-test/articles-metadata.json"
        assert artifact_url("/", "recent-articles.json") == "/recent-articles.json"
        assert artifact_url("", "a.json") == "/a.json"


class TestFetchIndex:
    def test_local_file(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text(json.dumps(ITEMS), encoding="utf-8")
        assert fetch_index(str(path)) == ITEMS

    def test_missing_file_is_empty(self, tmp_path, caplog):
        assert fetch_index(str(tmp_path / "missing.json")) == []
        assert "error fetching index" in caplog.text

    def test_non_array_payload_is_empty(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text('{"items": []}', encoding="utf-8")
        assert fetch_index(str(path)) == []

    def test_http_success(self, monkeypatch):
        monkeypatch.setattr(
            consumers.urllib_request, "urlopen", lambda url, timeout: FakeResponse(json.dumps(ITEMS).encode())
        )
        assert fetch_index("https://example.com/a.json") == ITEMS

    def test_http_non_ok_status(self, monkeypatch):
        monkeypatch.setattr(
            consumers.urllib_request, "urlopen", lambda url, timeout: FakeResponse(b"[]", status=204)
        )
        assert fetch_index("https://example.com/a.json") == []
        monkeypatch.setattr(
            consumers.urllib_request, "urlopen", lambda url, timeout: FakeResponse(b"[1]", status=302)
        )
        assert fetch_index("https://example.com/a.json") == []

    def test_http_error(self, monkeypatch):
        def boom(url, timeout):
            raise urllib_error.URLError("connection refused")

        monkeypatch.setattr(consumers.urllib_request, "urlopen", boom)
        assert fetch_index("http://example.com/a.json") == []


class TestPagination:
    def test_last_page_of_25(self):
        """25 items, 10 per page: page 3 shows items 21-25 and next is disabled."""
        items = list(range(1, 26))
        pagination = Pagination(total=25, page_size=10, page=3)
        assert pagination.slice(items) == [21, 22, 23, 24, 25]
        assert pagination.page_count == 3
        assert pagination.has_prev is True
        assert pagination.has_next is False

    def test_first_page(self):
        pagination = Pagination(total=25, page_size=10)
        assert (pagination.start, pagination.end) == (0, 10)
        assert pagination.has_prev is False
        assert pagination.has_next is True

    def test_empty(self):
        pagination = Pagination(total=0)
        assert pagination.page_count == 1
        assert pagination.slice([]) == []
        assert not pagination.has_next

    def test_page_beyond_range_shows_nothing(self):
        pagination = Pagination(total=5, page_size=10, page=4)
        assert pagination.slice(list(range(5))) == []
        assert pagination.has_next is False

    @pytest.mark.parametrize(
        "query, expected",
        [("", 1), ("?page=3", 3), ("page=0", 1), ("page=-2", 1), ("page=abc", 1), ("tag=x&page=2", 2)],
    )
    def test_page_from_query(self, query, expected):
        assert page_from_query(query) == expected

    def test_replace_page_query_keeps_other_params(self):
        assert replace_page_query("/articles/?tag=php&page=1", 2) == "/articles/?tag=php&page=2"
        assert replace_page_query("/articles/", 3) == "/articles/?page=3"
        assert replace_page_query("/articles/#top", 2) == "/articles/?page=2#top"


class TestFindAdjacent:
    def test_middle_item(self):
        prev_item, next_item = find_adjacent(ITEMS, "/articles/My%20Second/")
        assert prev_item["title"] == "First"
        assert next_item["title"] == "Third"

    def test_base_is_stripped(self):
        prev_item, next_item = find_adjacent(ITEMS, "/docs-test/articles/first", "/docs-test/")
        assert prev_item is None
        assert next_item["title"] == "Second"

    def test_last_item(self):
        prev_item, next_item = find_adjacent(ITEMS, "/articles/third.html")
        assert prev_item["title"] == "Second"
        assert next_item is None

    def test_no_match(self):
        assert find_adjacent(ITEMS, "/articles/unknown") == (None, None)
        assert find_adjacent([], "/articles/first") == (None, None)

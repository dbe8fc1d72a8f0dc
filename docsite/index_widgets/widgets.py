from dataclasses import replace
from html import escape
from typing import Optional, Sequence

from docsite.index_widgets.consumers import Pagination, artifact_url, replace_page_query

EMPTY_STATE = '<p class="index-empty">No items found.</p>'


def _href(base: str, path: str) -> str:
    return escape(artifact_url(base, path), quote=True)


def render_item(item: dict, base: str = "/") -> str:
    title = escape(str(item.get("title", "")))
    parts = [f'<a class="index-item__title" href="{_href(base, str(item.get("path", "")))}">{title}</a>']
    if item.get("date"):
        date = escape(str(item["date"]))
        parts.append(f'<time class="index-item__date" datetime="{date}">{date}</time>')
    if item.get("description"):
        parts.append(f'<p class="index-item__description">{escape(str(item["description"]))}</p>')
    return f'<li class="index-item">{"".join(parts)}</li>'


def render_recent(items: Sequence[dict], base: str = "/") -> str:
    if not items:
        return EMPTY_STATE
    body = "".join(render_item(item, base) for item in items)
    return f'<ul class="index-recent">{body}</ul>'


def render_pager(pagination: Pagination, url: str) -> str:
    def control(label: str, page: int, enabled: bool, rel: str) -> str:
        if not enabled:
            return f'<span class="index-pager__{rel} index-pager--disabled" aria-disabled="true">{label}</span>'
        href = escape(replace_page_query(url, page), quote=True)
        return f'<a class="index-pager__{rel}" rel="{rel}" href="{href}" data-page="{page}">{label}</a>'

    return (
        '<nav class="index-pager" aria-label="Pagination">'
        f'{control("Previous", pagination.page - 1, pagination.has_prev, "prev")}'
        f'<span class="index-pager__status">Page {pagination.page} of {pagination.page_count}</span>'
        f'{control("Next", pagination.page + 1, pagination.has_next, "next")}'
        "</nav>"
    )


def render_page(items: Sequence[dict], pagination: Pagination, url: str, base: str, visible: bool) -> str:
    body = "".join(render_item(item, base) for item in pagination.slice(items))
    hidden = "" if visible else " hidden"
    return (
        f'<section class="index-listing__page" data-page="{pagination.page}"{hidden}>'
        f'<ul class="index-listing__items">{body}</ul>'
        f"{render_pager(pagination, url)}"
        "</section>"
    )


def render_listing(
    items: Sequence[dict],
    pagination: Pagination,
    url: str = "",
    base: str = "/",
    source: str = "",
) -> str:
    """
    A paginated list with every page rendered; only `pagination.page` is
    visible (out-of-range pages show the first). The bundled index-widgets.js
    picks the page from `?page=N` and switches pages in place when a pager
    link is clicked. `source` is kept on the container for scripts that want
    to refetch the artifact.
    """
    if not items:
        return EMPTY_STATE
    current = pagination.page if 1 <= pagination.page <= pagination.page_count else 1
    pages = "".join(
        render_page(items, replace(pagination, page=number), url, base, number == current)
        for number in range(1, pagination.page_count + 1)
    )
    return (
        f'<div class="index-listing" data-src="{escape(source, quote=True)}" '
        f'data-page-size="{pagination.page_size}" data-page="{current}" '
        f'data-page-count="{pagination.page_count}">'
        f"{pages}"
        "</div>"
    )


def render_prev_next(prev_item: Optional[dict], next_item: Optional[dict], base: str = "/") -> str:
    if prev_item is None and next_item is None:
        return ""
    links = []
    if prev_item is not None:
        links.append(
            f'<a class="index-nav__prev" rel="prev" href="{_href(base, str(prev_item.get("path", "")))}">'
            f'{escape(str(prev_item.get("title", "")))}</a>'
        )
    if next_item is not None:
        links.append(
            f'<a class="index-nav__next" rel="next" href="{_href(base, str(next_item.get("path", "")))}">'
            f'{escape(str(next_item.get("title", "")))}</a>'
        )
    return f'<nav class="index-nav" aria-label="Adjacent pages">{"".join(links)}</nav>'

"""Wire actions — One HTTP request against the search engine REST API.

Builders in this module only assemble method, path, parameters and body;
sending is done by :class:`~searchbridge.client.client.SearchClient`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, Field

DEFAULT_TYPE = "_doc"


class Action(BaseModel):
    """A single REST call.

    ``ndjson`` holds the line objects of ``_bulk`` and ``_msearch``
    requests; it is mutually exclusive with ``body``.
    """

    name: str = Field(description="Short action name used in logs")
    method: str = Field(default="GET")
    path: str = Field(description="Request path, starting with '/'")
    params: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] | None = None
    ndjson: list[dict[str, Any]] | None = None


def _join(names: Iterable[str] | str | None) -> str:
    if names is None:
        return ""
    if isinstance(names, str):
        return quote(names, safe=",*")
    return ",".join(quote(n, safe="*") for n in names if n)


def _path(*parts: str) -> str:
    return "/" + "/".join(p for p in parts if p)


def _doc_path(index: str, type_name: str | None, doc_id: str) -> str:
    return _path(_join(index), _join(type_name or DEFAULT_TYPE), quote(doc_id, safe=""))


# ── Search ───────────────────────────────────────────────────────────────


def search(
    indices: Sequence[str],
    types: Sequence[str] | None,
    body: dict[str, Any],
    params: dict[str, str] | None = None,
) -> Action:
    return Action(
        name="Search",
        method="POST",
        path=_path(_join(indices), _join(types), "_search"),
        params=dict(params or {}),
        body=body,
    )


def count(indices: Sequence[str], types: Sequence[str] | None, body: dict[str, Any]) -> Action:
    return Action(name="Count", method="POST", path=_path(_join(indices), _join(types), "_count"), body=body)


def search_scroll(scroll_id: str, scroll: str) -> Action:
    return Action(
        name="SearchScroll",
        method="POST",
        path="/_search/scroll",
        body={"scroll": scroll, "scroll_id": scroll_id},
    )


def clear_scroll(scroll_ids: Sequence[str]) -> Action:
    return Action(
        name="ClearScroll",
        method="DELETE",
        path="/_search/scroll",
        body={"scroll_id": list(scroll_ids)},
    )


def multi_search(searches: Sequence[tuple[dict[str, Any], dict[str, Any]]]) -> Action:
    """Build an ``_msearch`` request from (header, body) pairs."""
    lines: list[dict[str, Any]] = []
    for header, body in searches:
        lines.append(header)
        lines.append(body)
    return Action(name="MultiSearch", method="POST", path="/_msearch", ndjson=lines)


# ── Documents ────────────────────────────────────────────────────────────


def get(index: str, type_name: str | None, doc_id: str) -> Action:
    return Action(name="Get", path=_doc_path(index, type_name, doc_id))


def multi_get(index: str, type_name: str | None, ids: Sequence[str]) -> Action:
    return Action(
        name="MultiGet",
        method="POST",
        path=_path(_join(index), _join(type_name or DEFAULT_TYPE), "_mget"),
        body={"ids": list(ids)},
    )


def index(
    index_name: str,
    type_name: str | None,
    doc_id: str | None,
    source: dict[str, Any],
    params: dict[str, str] | None = None,
) -> Action:
    """Index a document; the engine assigns an id when ``doc_id`` is ``None``."""
    if doc_id is None:
        return Action(
            name="Index",
            method="POST",
            path=_path(_join(index_name), _join(type_name or DEFAULT_TYPE)),
            params=dict(params or {}),
            body=source,
        )
    return Action(
        name="Index",
        method="PUT",
        path=_doc_path(index_name, type_name, doc_id),
        params=dict(params or {}),
        body=source,
    )


def update(index_name: str, type_name: str | None, doc_id: str, body: dict[str, Any]) -> Action:
    return Action(
        name="Update",
        method="POST",
        path=_doc_path(index_name, type_name, doc_id) + "/_update",
        body=body,
    )


def delete(index_name: str, type_name: str | None, doc_id: str) -> Action:
    return Action(name="Delete", method="DELETE", path=_doc_path(index_name, type_name, doc_id))


def bulk(lines: Sequence[dict[str, Any]], params: dict[str, str] | None = None) -> Action:
    return Action(name="Bulk", method="POST", path="/_bulk", params=dict(params or {}), ndjson=list(lines))


# ── Indices ──────────────────────────────────────────────────────────────


def create_index(index_name: str, body: dict[str, Any] | None = None) -> Action:
    return Action(name="CreateIndex", method="PUT", path=_path(_join(index_name)), body=body or None)


def delete_index(index_name: str) -> Action:
    return Action(name="DeleteIndex", method="DELETE", path=_path(_join(index_name)))


def index_exists(index_name: str) -> Action:
    return Action(name="IndicesExists", method="HEAD", path=_path(_join(index_name)))


def type_exists(index_name: str, type_name: str) -> Action:
    return Action(name="TypeExists", method="HEAD", path=_path(_join(index_name), "_mapping", _join(type_name)))


def put_mapping(index_name: str, type_name: str, mapping: dict[str, Any]) -> Action:
    return Action(
        name="PutMapping",
        method="PUT",
        path=_path(_join(index_name), "_mapping", _join(type_name)),
        body=mapping,
    )


def get_mapping(index_name: str, type_name: str) -> Action:
    return Action(name="GetMapping", path=_path(_join(index_name), "_mapping", _join(type_name)))


def get_settings(index_name: str) -> Action:
    return Action(name="GetSettings", path=_path(_join(index_name), "_settings"))


def refresh(index_name: str) -> Action:
    return Action(name="Refresh", method="POST", path=_path(_join(index_name), "_refresh"))


def modify_aliases(alias_actions: Sequence[dict[str, Any]]) -> Action:
    return Action(name="ModifyAliases", method="POST", path="/_aliases", body={"actions": list(alias_actions)})


def get_aliases(index_name: str) -> Action:
    return Action(name="GetAliases", path=_path(_join(index_name), "_alias"))

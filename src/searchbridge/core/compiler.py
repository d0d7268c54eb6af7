"""Request Compiler — Abstract queries to wire-ready search requests.

The compiler resolves target indices and types, pagination, projection,
sorting and the query and filter bodies. It keeps no state between calls:
every :class:`CompiledRequest` is built fresh.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from searchbridge.client import actions
from searchbridge.client.actions import Action
from searchbridge.core.criteria import build_filter, build_query
from searchbridge.core.exceptions import ConfigurationError
from searchbridge.models.document import DocumentDescriptor
from searchbridge.models.query import DEFAULT_PAGE_SIZE, CriteriaQuery, NativeQuery, Query, StringQuery

logger = logging.getLogger(__name__)

MATCH_ALL: dict[str, Any] = {"match_all": {}}


def scroll_param(scroll_ms: int) -> str:
    return f"{scroll_ms}ms"


class CompiledRequest(BaseModel):
    """A search or count request ready to be sent."""

    indices: list[str] = Field(min_length=1)
    types: list[str] = Field(default_factory=list)
    endpoint: Literal["_search", "_count"] = "_search"
    body: dict[str, Any] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)

    def to_action(self) -> Action:
        if self.endpoint == "_count":
            return actions.count(self.indices, self.types, self.body)
        return actions.search(self.indices, self.types, self.body, self.params)

    def msearch_header(self) -> dict[str, Any]:
        """Header line of this request inside an ``_msearch`` batch."""
        header: dict[str, Any] = {"index": self.indices}
        if self.types:
            header["type"] = self.types
        if "search_type" in self.params:
            header["search_type"] = self.params["search_type"]
        return header


class RequestCompiler:
    """Compiles :class:`Query` objects against a document descriptor."""

    def compile(
        self,
        query: Query,
        descriptor: DocumentDescriptor | None = None,
        *,
        scroll_ms: int | None = None,
    ) -> CompiledRequest:
        """Build a ``_search`` request.

        Args:
            query: Criteria, native or string query.
            descriptor: Target document, supplies the default index and type.
            scroll_ms: Open a scroll cursor with this keep-alive.

        Returns:
            The compiled request.

        Raises:
            ConfigurationError: If no index can be resolved.
        """
        indices, types = self._resolve_targets(query, descriptor)
        params: dict[str, str] = {"search_type": query.search_type.value}
        body: dict[str, Any] = {}

        query_body, filter_body = self._query_and_filter(query)
        body["query"] = query_body or MATCH_ALL
        if filter_body is not None:
            body["post_filter"] = filter_body

        pageable = query.pageable
        if scroll_ms is not None:
            body["from"] = 0
            params["scroll"] = scroll_param(scroll_ms)
            params["size"] = str(pageable.size or DEFAULT_PAGE_SIZE)
        elif pageable.is_paged:
            body["from"] = pageable.offset
            body["size"] = pageable.size
        else:
            body["from"] = 0

        source = self._source_directive(query)
        if source is not None:
            body["_source"] = source

        sort = [{order.field: {"order": order.direction.value}} for order in query.sort]
        if isinstance(query, NativeQuery):
            sort.extend(query.sorts)
        if sort:
            body["sort"] = sort

        if query.min_score > 0:
            body["min_score"] = query.min_score
        if query.track_scores:
            body["track_scores"] = True

        if isinstance(query, NativeQuery):
            self._apply_native(query, body)

        logger.debug("Compiled search on %s/%s: %s", ",".join(indices), ",".join(types), body)
        return CompiledRequest(indices=indices, types=types, endpoint="_search", body=body, params=params)

    def compile_count(self, query: Query, descriptor: DocumentDescriptor | None = None) -> CompiledRequest:
        """Build a count request.

        A query with a post filter cannot use ``_count``; it is sent as a
        ``size: 0`` search and the count is read from the hit total.
        """
        indices, types = self._resolve_targets(query, descriptor)
        query_body, filter_body = self._query_and_filter(query)
        if filter_body is None:
            return CompiledRequest(
                indices=indices, types=types, endpoint="_count", body={"query": query_body or MATCH_ALL}
            )
        return CompiledRequest(
            indices=indices,
            types=types,
            endpoint="_search",
            body={"query": query_body or MATCH_ALL, "post_filter": filter_body, "size": 0},
            params={"search_type": query.search_type.value},
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _resolve_targets(query: Query, descriptor: DocumentDescriptor | None) -> tuple[list[str], list[str]]:
        indices = list(query.indices)
        if not indices and descriptor is not None:
            indices = [descriptor.index_name]
        if not indices:
            raise ConfigurationError("No index defined for query")

        types = list(query.types)
        if not types and descriptor is not None and descriptor.type_name:
            types = [descriptor.type_name]
        return indices, types

    @staticmethod
    def _query_and_filter(query: Query) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        if isinstance(query, CriteriaQuery):
            return build_query(query.criteria), build_filter(query.criteria)
        if isinstance(query, NativeQuery):
            return query.query, query.filter
        if isinstance(query, StringQuery):
            encoded = base64.b64encode(query.source.encode("utf-8")).decode("ascii")
            return {"wrapper": {"query": encoded}}, None
        raise TypeError(f"Unsupported query type: {type(query).__name__}")

    @staticmethod
    def _source_directive(query: Query) -> dict[str, Any] | None:
        if query.fields:
            return {"includes": list(query.fields)}
        if query.source_filter is not None:
            directive: dict[str, Any] = {}
            if query.source_filter.includes:
                directive["includes"] = list(query.source_filter.includes)
            if query.source_filter.excludes:
                directive["excludes"] = list(query.source_filter.excludes)
            return directive or None
        return None

    @staticmethod
    def _apply_native(query: NativeQuery, body: dict[str, Any]) -> None:
        if query.highlight_fields:
            body["highlight"] = {"fields": {h.name: h.to_body() for h in query.highlight_fields}}
        if query.aggregations:
            body["aggregations"] = dict(query.aggregations)
        if query.indices_boost:
            body["indices_boost"] = [{b.index_name: b.boost} for b in query.indices_boost]
        if query.script_fields:
            body["script_fields"] = {s.field_name: {"script": s.script} for s in query.script_fields}
        if query.collapse is not None:
            body["collapse"] = query.collapse

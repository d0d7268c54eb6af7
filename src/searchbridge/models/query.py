"""Abstract query models — storage-agnostic requests compiled by the core.

Three search query flavours share the :class:`Query` base:

  - :class:`CriteriaQuery`: a chain of field predicates (see ``Criteria``)
  - :class:`NativeQuery`: pre-built query DSL fragments
  - :class:`StringQuery`: an opaque JSON query string

Write-side requests (index, update, delete, alias) have their own models.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from searchbridge.models.criteria import Criteria

DEFAULT_PAGE_SIZE = 10


class Direction(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SearchType(str, Enum):
    """Search execution type sent as the ``search_type`` parameter."""

    QUERY_THEN_FETCH = "query_then_fetch"
    DFS_QUERY_THEN_FETCH = "dfs_query_then_fetch"


class Order(BaseModel):
    """One sort key. The position in the sort list defines its priority."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Field to sort on")
    direction: Direction = Field(default=Direction.ASC, description="Sort direction")

    @classmethod
    def asc(cls, prop: str) -> Order:
        return cls(field=prop, direction=Direction.ASC)

    @classmethod
    def desc(cls, prop: str) -> Order:
        return cls(field=prop, direction=Direction.DESC)


class Pageable(BaseModel):
    """Page request: zero-based page number and page size.

    A ``size`` of ``None`` means unpaged; the server default applies.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=0, ge=0, description="Zero-based page number")
    size: int | None = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Page size, None when unpaged")

    @classmethod
    def of(cls, page: int, size: int) -> Pageable:
        return cls(page=page, size=size)

    @classmethod
    def unpaged(cls) -> Pageable:
        return cls(page=0, size=None)

    @property
    def is_paged(self) -> bool:
        return self.size is not None

    @property
    def offset(self) -> int:
        if self.size is None:
            return 0
        return self.page * self.size

    def next(self) -> Pageable:
        """Return the request for the following page."""
        if self.size is None:
            return self
        return Pageable(page=self.page + 1, size=self.size)


class SourceFilter(BaseModel):
    """Source projection: fields to include in / exclude from hit bodies."""

    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)


class HighlightField(BaseModel):
    """Highlighting request for a single field."""

    name: str
    fragment_size: int | None = None
    number_of_fragments: int | None = None
    pre_tags: list[str] | None = None
    post_tags: list[str] | None = None

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(exclude={"name"}, exclude_none=True)


class ScriptField(BaseModel):
    """Script-computed field returned with every hit."""

    field_name: str
    script: dict[str, Any]


class IndexBoost(BaseModel):
    index_name: str
    boost: float


class Query(BaseModel):
    """Options shared by every search query."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    indices: list[str] = Field(default_factory=list, description="Target index override")
    types: list[str] = Field(default_factory=list, description="Target type override")
    pageable: Pageable = Field(default_factory=Pageable, description="Page request")
    sort: list[Order] = Field(default_factory=list, description="Ordered sort keys")
    fields: list[str] = Field(default_factory=list, description="Fields to return; wins over source_filter")
    source_filter: SourceFilter | None = Field(default=None, description="Source include/exclude projection")
    min_score: float = Field(default=0.0, ge=0, description="Minimum score; ignored when 0")
    track_scores: bool = Field(default=False, description="Compute scores even when sorting")
    search_type: SearchType = Field(default=SearchType.QUERY_THEN_FETCH)


class CriteriaQuery(Query):
    """Query built from a :class:`Criteria` chain."""

    criteria: Criteria


class NativeQuery(Query):
    """Query assembled from raw query DSL fragments."""

    query: dict[str, Any] | None = Field(default=None, description="Structured query, match_all when None")
    filter: dict[str, Any] | None = Field(default=None, description="Post filter")
    sorts: list[dict[str, Any]] = Field(default_factory=list, description="Raw sort clauses, appended after `sort`")
    aggregations: dict[str, dict[str, Any]] = Field(default_factory=dict, description="Aggregations by name")
    highlight_fields: list[HighlightField] = Field(default_factory=list)
    script_fields: list[ScriptField] = Field(default_factory=list)
    indices_boost: list[IndexBoost] = Field(default_factory=list)
    collapse: dict[str, Any] | None = None
    ids: list[str] = Field(default_factory=list, description="Document ids, used by multi-get")


class StringQuery(Query):
    """Query whose body is an opaque JSON string."""

    source: str


class MoreLikeThisQuery(BaseModel):
    """Find documents similar to the document with the given id."""

    id: str
    index_name: str | None = None
    type_name: str | None = None
    fields: list[str] = Field(default_factory=list)
    min_term_freq: int | None = None
    max_query_terms: int | None = None
    stop_words: list[str] = Field(default_factory=list)
    min_doc_freq: int | None = None
    max_doc_freq: int | None = None
    min_word_length: int | None = None
    max_word_length: int | None = None
    boost_terms: float | None = None
    pageable: Pageable = Field(default_factory=Pageable)


class GetQuery(BaseModel):
    id: str


class IndexQuery(BaseModel):
    """Index a mapped object or a raw source.

    ``id`` wins over the identifier read from ``object``. When neither is
    present the engine generates one.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str | None = None
    object: Any = None
    source: dict[str, Any] | str | None = None
    index_name: str | None = None
    type_name: str | None = None
    version: int | None = Field(default=None, description="External version")
    parent_id: str | None = None


class UpdateQuery(BaseModel):
    """Partial update (``doc``) or scripted update of one document."""

    id: str
    doc: dict[str, Any] | None = None
    script: dict[str, Any] | None = None
    doc_as_upsert: bool = False
    index_name: str | None = None
    type_name: str | None = None
    document_class: type[Any] | None = None


class DeleteQuery(BaseModel):
    """Delete every document matching ``query``."""

    query: dict[str, Any]
    index: str | None = None
    type_name: str | None = None
    page_size: int | None = Field(default=None, ge=1)
    scroll_time_ms: int | None = Field(default=None, ge=1)


class AliasQuery(BaseModel):
    index_name: str
    alias_name: str
    filter: dict[str, Any] | None = None
    routing: str | None = None
    search_routing: str | None = None
    index_routing: str | None = None


class BulkOptions(BaseModel):
    """Batch-level parameters of a bulk request; unset ones are not sent."""

    timeout: str | None = None
    refresh_policy: str | None = None
    wait_for_active_shards: str | None = None
    pipeline: str | None = None
    routing_id: str | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.timeout is not None:
            params["timeout"] = self.timeout
        if self.refresh_policy is not None:
            params["refresh"] = self.refresh_policy
        if self.wait_for_active_shards is not None:
            params["wait_for_active_shards"] = self.wait_for_active_shards
        if self.pipeline is not None:
            params["pipeline"] = self.pipeline
        if self.routing_id is not None:
            params["routing"] = self.routing_id
        return params

"""Page model — One slice of a search result.

A single concrete type covers plain pages, aggregated pages and scrolled
pages: aggregations, facets and the scroll id are optional fields.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from searchbridge.models.aggregation import FacetResult
from searchbridge.models.query import Pageable

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Ordered documents of one page plus the total element count."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: list[T] = Field(default_factory=list, description="Documents of this page")
    pageable: Pageable = Field(default_factory=Pageable.unpaged, description="Request that produced this page")
    total: int = Field(default=0, ge=0, description="Total number of matching documents")
    scroll_id: str | None = Field(default=None, description="Scroll cursor, if any")
    hit_count: int | None = Field(default=None, ge=0, description="Raw hits behind this page, mapped or not")
    aggregations: dict[str, Any] | None = Field(default=None, description="Raw aggregation block")
    facets: list[FacetResult] = Field(default_factory=list, description="Typed aggregation results")

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    @property
    def number(self) -> int:
        return self.pageable.page if self.pageable.is_paged else 0

    @property
    def size(self) -> int:
        return self.pageable.size if self.pageable.size is not None else len(self.content)

    @property
    def total_pages(self) -> int:
        if self.size == 0:
            return 1
        return max(1, math.ceil(self.total / self.size))

    def has_content(self) -> bool:
        return bool(self.content)

    def has_next(self) -> bool:
        if not self.pageable.is_paged:
            return False
        return self.pageable.offset + len(self.content) < self.total

    def has_previous(self) -> bool:
        return self.number > 0

    def is_first(self) -> bool:
        return not self.has_previous()

    def is_last(self) -> bool:
        return not self.has_next()

    def has_aggregations(self) -> bool:
        return self.aggregations is not None

    def get_aggregation(self, name: str) -> dict[str, Any] | None:
        if not self.aggregations:
            return None
        return self.aggregations.get(name)

    def get_facet(self, name: str) -> FacetResult | None:
        return next((f for f in self.facets if f.name == name), None)

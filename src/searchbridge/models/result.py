"""Raw result models — Decoded engine responses before entity mapping.

``RawResult`` wraps one HTTP response. It exposes the parts of the search,
document, bulk and multi-search response shapes that the core reads.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field


def describe_error(error: Any) -> str | None:
    """Render an engine ``error`` element as a single line."""
    if error is None:
        return None
    if isinstance(error, dict):
        reason = error.get("reason")
        err_type = error.get("type")
        if reason and err_type:
            return f"{err_type}: {reason}"
        if reason:
            return str(reason)
        return json.dumps(error, sort_keys=True)
    return str(error)


class Hit(BaseModel):
    """One matched document within a search response."""

    id: str | None = None
    index: str | None = None
    type: str | None = None
    score: float | None = None
    version: int | None = None
    source: dict[str, Any] | None = None
    highlight: dict[str, list[str]] | None = None
    sort: list[Any] | None = None
    fields: dict[str, Any] | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Hit:
        return cls(
            id=data.get("_id"),
            index=data.get("_index"),
            type=data.get("_type"),
            score=data.get("_score"),
            version=data.get("_version"),
            source=data.get("_source"),
            highlight=data.get("highlight"),
            sort=data.get("sort"),
            fields=data.get("fields"),
        )


class BulkItemOutcome(BaseModel):
    """Result of one item of a bulk request."""

    operation: str
    id: str | None = None
    index: str | None = None
    status: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Deleting a missing document is not a failure."""
        if self.error is not None:
            return False
        return self.status < 300 or (self.operation == "delete" and self.status == 404)


class UpdateResponse(BaseModel):
    index: str | None = None
    type: str | None = None
    id: str
    version: int | None = None
    result: str | None = None


class AliasMetadata(BaseModel):
    alias: str
    filter: dict[str, Any] | None = None
    index_routing: str | None = None
    search_routing: str | None = None


class RawResult(BaseModel):
    """A decoded engine response.

    ``succeeded`` is true for 2xx responses without an ``error`` element.
    Item-level bulk failures do not affect it; they are reported through
    :attr:`items`.
    """

    status_code: int = Field(description="HTTP status code")
    body: dict[str, Any] | None = Field(default=None, description="Decoded JSON body")
    error_message: str | None = Field(default=None, description="Engine error, if any")

    @classmethod
    def from_response(cls, status_code: int, body: dict[str, Any] | None) -> RawResult:
        error = describe_error(body.get("error")) if body else None
        return cls(status_code=status_code, body=body, error_message=error)

    @property
    def succeeded(self) -> bool:
        return 200 <= self.status_code < 300 and self.error_message is None

    @property
    def message(self) -> str | None:
        if not self.body:
            return None
        value = self.body.get("message")
        return None if value is None else str(value)

    # ── Search ───────────────────────────────────────────────────────────

    @property
    def hits(self) -> list[Hit]:
        if not self.body:
            return []
        return [Hit.from_json(h) for h in self.body.get("hits", {}).get("hits", []) if isinstance(h, dict)]

    @property
    def total(self) -> int:
        if not self.body:
            return 0
        total = self.body.get("hits", {}).get("total", 0)
        if isinstance(total, dict):
            return int(total.get("value", 0))
        return int(total or 0)

    @property
    def max_score(self) -> float | None:
        if not self.body:
            return None
        return self.body.get("hits", {}).get("max_score")

    @property
    def scroll_id(self) -> str | None:
        if not self.body:
            return None
        return self.body.get("_scroll_id")

    @property
    def aggregations(self) -> dict[str, Any] | None:
        if not self.body:
            return None
        if "aggregations" in self.body:
            return self.body["aggregations"]
        return self.body.get("aggs")

    @property
    def count(self) -> int:
        if not self.body:
            return 0
        return int(self.body.get("count", 0))

    @property
    def acknowledged(self) -> bool:
        if not self.body or "acknowledged" not in self.body:
            return True
        return bool(self.body["acknowledged"])

    # ── Single document ──────────────────────────────────────────────────

    @property
    def id(self) -> str | None:
        return self.body.get("_id") if self.body else None

    @property
    def found(self) -> bool:
        return bool(self.body and self.body.get("found"))

    @property
    def source(self) -> dict[str, Any] | None:
        return self.body.get("_source") if self.body else None

    @property
    def version(self) -> int | None:
        return self.body.get("_version") if self.body else None

    # ── Multi-document ───────────────────────────────────────────────────

    @property
    def docs(self) -> list[dict[str, Any]]:
        if not self.body:
            return []
        return list(self.body.get("docs", []))

    @property
    def items(self) -> list[BulkItemOutcome]:
        """Per-item outcomes of a bulk response, in submission order."""
        if not self.body:
            return []
        outcomes: list[BulkItemOutcome] = []
        for item in self.body.get("items", []):
            for operation, data in item.items():
                outcomes.append(
                    BulkItemOutcome(
                        operation=operation,
                        id=data.get("_id"),
                        index=data.get("_index"),
                        status=int(data.get("status", 0)),
                        error=describe_error(data.get("error")),
                    )
                )
        return outcomes

    @property
    def responses(self) -> list[RawResult]:
        """Sub-results of a multi-search response, in submission order."""
        if not self.body:
            return []
        return [
            RawResult.from_response(int(resp.get("status", self.status_code)), resp)
            for resp in self.body.get("responses", [])
        ]

"""Bulk Failure Aggregator — Batched writes with per-item failure reporting.

A bulk request is not atomic: items that succeeded stay applied even when
others failed. All failures of a batch are reported together through one
:class:`BatchError`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from searchbridge.core.exceptions import BatchError
from searchbridge.core.executor import Executor
from searchbridge.models.query import BulkOptions
from searchbridge.models.result import BulkItemOutcome

logger = logging.getLogger(__name__)


class BulkMode(str, Enum):
    INDEX = "index"
    UPDATE = "update"
    DELETE = "delete"


class BulkItem(BaseModel):
    """One write of a bulk batch.

    ``body`` is the document source for ``INDEX`` and the update body
    (``doc``, ``script``, ``doc_as_upsert``) for ``UPDATE``.
    """

    mode: BulkMode
    index: str = Field(min_length=1)
    type_name: str | None = None
    id: str | None = None
    body: dict[str, Any] | None = None
    version: int | None = None
    parent_id: str | None = None

    def to_lines(self) -> list[dict[str, Any]]:
        meta: dict[str, Any] = {"_index": self.index}
        if self.type_name:
            meta["_type"] = self.type_name
        if self.id is not None:
            meta["_id"] = self.id
        if self.version is not None:
            meta["version"] = self.version
            meta["version_type"] = "external"
        if self.parent_id is not None:
            meta["parent"] = self.parent_id

        lines: list[dict[str, Any]] = [{self.mode.value: meta}]
        if self.mode is not BulkMode.DELETE:
            lines.append(self.body or {})
        return lines


class BulkFailureAggregator:
    """Submits bulk batches and collects item-level failures."""

    def __init__(self, executor: Executor) -> None:
        self.executor = executor

    def run_batch(self, items: Sequence[BulkItem], options: BulkOptions | None = None) -> list[BulkItemOutcome]:
        """Send ``items`` as one bulk request.

        Args:
            items: Writes to perform, in order.
            options: Batch-level parameters.

        Returns:
            Per-item outcomes, in submission order.

        Raises:
            BatchError: If at least one item failed.
        """
        if not items:
            return []

        lines: list[dict[str, Any]] = []
        for item in items:
            lines.extend(item.to_lines())

        params = options.to_params() if options else {}
        result = self.executor.execute_bulk(lines, params)
        outcomes = result.items

        failures: dict[str, str] = {}
        for position, outcome in enumerate(outcomes):
            if outcome.succeeded:
                continue
            key = outcome.id or (items[position].id if position < len(items) else None) or str(position)
            failures[key] = outcome.error or f"status {outcome.status}"

        if failures:
            logger.error("Bulk request had %d failed items out of %d", len(failures), len(items))
            raise BatchError(
                f"Bulk indexing has failures. Use BatchError.failures for detailed messages [{failures}]",
                failures,
            )

        logger.debug("Bulk request of %d items succeeded", len(items))
        return outcomes

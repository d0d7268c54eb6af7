"""Aggregation transformer — Typed facets from raw aggregation results.

Only the aggregation kinds below are recognised; any other requested
aggregation is skipped and remains available through ``Page.aggregations``:

  - ``terms``                       -> :class:`TermResult` (dropped when empty)
  - ``stats`` / ``extended_stats``  -> :class:`StatisticalResult`
  - ``histogram`` / ``date_histogram`` -> :class:`HistogramResult`
  - ``range``                       -> :class:`RangeResult`
"""

from __future__ import annotations

import logging
from typing import Any

from searchbridge.models.aggregation import (
    FacetResult,
    HistogramResult,
    IntervalUnit,
    Range,
    RangeResult,
    StatisticalResult,
    Term,
    TermResult,
)

logger = logging.getLogger(__name__)


def parse_aggregations(
    requested: dict[str, dict[str, Any]] | None,
    results: dict[str, Any] | None,
) -> list[FacetResult]:
    """Convert the results of the requested aggregations, in request order.

    Args:
        requested: Aggregation specs by name, as sent in the request.
        results: The ``aggregations`` block of the response.

    Returns:
        One facet per recognised aggregation that produced a result.
    """
    if not requested or not results:
        return []

    facets: list[FacetResult] = []
    for name, spec in requested.items():
        data = results.get(name)
        if not isinstance(data, dict):
            continue
        facet = _parse_one(name, spec, data)
        if facet is not None:
            facets.append(facet)
    return facets


def _parse_one(name: str, spec: dict[str, Any], data: dict[str, Any]) -> FacetResult | None:
    if "terms" in spec:
        return _parse_terms(name, data)
    if "extended_stats" in spec or "stats" in spec:
        return _parse_stats(name, data)
    if "histogram" in spec or "date_histogram" in spec:
        return _parse_histogram(name, data)
    if "range" in spec:
        return _parse_range(name, data)
    logger.debug("No facet conversion for aggregation %s (%s)", name, ", ".join(spec))
    return None


def _parse_terms(name: str, data: dict[str, Any]) -> TermResult | None:
    terms = [Term(term=str(b.get("key")), count=int(b.get("doc_count", 0))) for b in data.get("buckets", [])]
    return TermResult(name=name, terms=terms) if terms else None


def _parse_stats(name: str, data: dict[str, Any]) -> StatisticalResult:
    return StatisticalResult(
        name=name,
        count=int(data.get("count") or 0),
        min=data.get("min"),
        max=data.get("max"),
        avg=data.get("avg"),
        sum=data.get("sum"),
        sum_of_squares=data.get("sum_of_squares"),
        variance=data.get("variance"),
        std_deviation=data.get("std_deviation"),
    )


def _parse_histogram(name: str, data: dict[str, Any]) -> HistogramResult:
    intervals = [IntervalUnit(key=b.get("key"), count=int(b.get("doc_count", 0))) for b in data.get("buckets", [])]
    return HistogramResult(name=name, intervals=intervals)


def _parse_range(name: str, data: dict[str, Any]) -> RangeResult:
    buckets = data.get("buckets", [])
    if isinstance(buckets, dict):
        buckets = list(buckets.values())
    ranges = [Range(from_=b.get("from"), to=b.get("to"), count=int(b.get("doc_count", 0))) for b in buckets]
    return RangeResult(name=name, ranges=ranges)

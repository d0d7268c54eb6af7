"""Facet models — Typed views over common aggregation results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class Term(BaseModel):
    term: str
    count: int


class TermResult(BaseModel):
    kind: Literal["terms"] = "terms"
    name: str
    terms: list[Term] = Field(default_factory=list)


class StatisticalResult(BaseModel):
    kind: Literal["statistical"] = "statistical"
    name: str
    count: int = 0
    min: float | None = None
    max: float | None = None
    avg: float | None = None
    sum: float | None = None
    sum_of_squares: float | None = None
    variance: float | None = None
    std_deviation: float | None = None


class Range(BaseModel):
    """A range bucket; open bounds are ``None``."""

    from_: float | None = Field(default=None, alias="from")
    to: float | None = None
    count: int = 0

    model_config = {"populate_by_name": True}


class RangeResult(BaseModel):
    kind: Literal["range"] = "range"
    name: str
    ranges: list[Range] = Field(default_factory=list)


class IntervalUnit(BaseModel):
    key: float | str
    count: int


class HistogramResult(BaseModel):
    kind: Literal["histogram"] = "histogram"
    name: str
    intervals: list[IntervalUnit] = Field(default_factory=list)


FacetResult = TermResult | StatisticalResult | RangeResult | HistogramResult

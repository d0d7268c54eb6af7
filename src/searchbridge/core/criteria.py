"""Criteria processors — Compile a criteria chain into query DSL.

The chain compiles into two independent parts:

  - a query, from the text and range operators
  - a post filter, from the geo operators (``within`` and ``bounded_by``)

Either part is ``None`` when the chain has no operator of its kind.
"""

from __future__ import annotations

from typing import Any

from searchbridge.models.criteria import Criteria, CriteriaEntry, OperationKey

_RESERVED = frozenset('\\+-!():^[]"{}~*?|&/')


def escape_query_string(value: Any) -> str:
    """Escape query-string reserved characters in ``value``."""
    return "".join("\\" + ch if ch in _RESERVED else ch for ch in str(value))


def _query_string(field: str, text: str, *, analyze_wildcard: bool = False) -> dict[str, Any]:
    body: dict[str, Any] = {"query": text, "fields": [field], "default_operator": "and"}
    if analyze_wildcard:
        body["analyze_wildcard"] = True
    return {"query_string": body}


def _range(field: str, bounds: dict[str, Any]) -> dict[str, Any]:
    return {"range": {field: bounds}}


def _bool(occur: str, clauses: list[dict[str, Any]]) -> dict[str, Any]:
    return {"bool": {occur: clauses}}


def _with_boost(clause: dict[str, Any], boost: float | None) -> dict[str, Any]:
    if boost is None:
        return clause
    ((kind, body),) = clause.items()
    if kind in ("range", "fuzzy"):
        ((field, inner),) = body.items()
        return {kind: {field: {**inner, "boost": boost}}}
    return {kind: {**body, "boost": boost}}


# ── Query side ───────────────────────────────────────────────────────────


def compile_entry(field: str, entry: CriteriaEntry) -> dict[str, Any]:
    """Compile one query operator applied to ``field``."""
    key, value = entry.key, entry.value

    if key is OperationKey.EQUALS:
        return _query_string(field, escape_query_string(value))
    if key is OperationKey.CONTAINS:
        return _query_string(field, f"*{escape_query_string(value)}*", analyze_wildcard=True)
    if key is OperationKey.STARTS_WITH:
        return _query_string(field, f"{escape_query_string(value)}*", analyze_wildcard=True)
    if key is OperationKey.ENDS_WITH:
        return _query_string(field, f"*{escape_query_string(value)}", analyze_wildcard=True)
    if key is OperationKey.EXPRESSION:
        return _query_string(field, str(value))
    if key is OperationKey.LESS:
        return _range(field, {"lt": value})
    if key is OperationKey.LESS_EQUAL:
        return _range(field, {"lte": value})
    if key is OperationKey.GREATER:
        return _range(field, {"gt": value})
    if key is OperationKey.GREATER_EQUAL:
        return _range(field, {"gte": value})
    if key is OperationKey.BETWEEN:
        lower, upper = value
        bounds: dict[str, Any] = {}
        if lower is not None:
            bounds["gte"] = lower
        if upper is not None:
            bounds["lte"] = upper
        return _range(field, bounds)
    if key is OperationKey.FUZZY:
        return {"fuzzy": {field: {"value": value}}}
    if key is OperationKey.IN:
        return _bool("should", [_query_string(field, escape_query_string(v)) for v in value])
    if key is OperationKey.NOT_IN:
        return _bool("must_not", [_query_string(field, escape_query_string(v)) for v in value])
    raise ValueError(f"Operator {key.value} is not a query operator")


def _query_fragment(criteria: Criteria) -> dict[str, Any] | None:
    entries = criteria.query_entries
    if not entries:
        return None
    if len(entries) == 1:
        fragment = compile_entry(criteria.field, entries[0])
    else:
        fragment = _bool("must", [compile_entry(criteria.field, e) for e in entries])
    return _with_boost(fragment, criteria.boost_value)


def build_query(criteria: Criteria) -> dict[str, Any] | None:
    """Compile the query part of the chain ``criteria`` belongs to.

    OR links go to ``should``, negated links to ``must_not`` and the others
    to ``must``. The leading link is the first one with a query part (links
    holding only filters are passed over); it joins ``should`` when the rest
    of the chain only has OR links, and ``must`` (or ``must_not``) otherwise.
    """
    chain = criteria.chain
    if not chain:
        return None

    must: list[dict[str, Any]] = []
    must_not: list[dict[str, Any]] = []
    should: list[dict[str, Any]] = []

    fragments = []
    for link in chain:
        fragment = _query_fragment(link)
        if fragment is not None:
            fragments.append((link, fragment))
    if not fragments:
        return None

    (first, first_fragment), rest = fragments[0], fragments[1:]
    for link, fragment in rest:
        if link.is_or:
            should.append(fragment)
        elif link.negating:
            must_not.append(fragment)
        else:
            must.append(fragment)

    if should and not must and not must_not:
        should.insert(0, first_fragment)
    elif first.negating:
        must_not.insert(0, first_fragment)
    else:
        must.insert(0, first_fragment)

    body: dict[str, Any] = {}
    if must:
        body["must"] = must
    if must_not:
        body["must_not"] = must_not
    if should:
        body["should"] = should
    return {"bool": body}


# ── Filter side ──────────────────────────────────────────────────────────


def _geo_point(location: Any) -> Any:
    if isinstance(location, (tuple, list)) and len(location) == 2:
        lat, lon = location
        return {"lat": lat, "lon": lon}
    return location


def compile_filter_entry(field: str, entry: CriteriaEntry) -> dict[str, Any]:
    """Compile one geo operator applied to ``field``."""
    if entry.key is OperationKey.WITHIN:
        location, distance = entry.value
        return {"geo_distance": {field: _geo_point(location), "distance": distance}}
    if entry.key is OperationKey.BBOX:
        top_left, bottom_right = entry.value
        return {
            "geo_bounding_box": {
                field: {"top_left": _geo_point(top_left), "bottom_right": _geo_point(bottom_right)}
            }
        }
    raise ValueError(f"Operator {entry.key.value} is not a filter operator")


def _filter_fragments(criteria: Criteria) -> list[dict[str, Any]]:
    return [compile_filter_entry(criteria.field, e) for e in criteria.filter_entries]


def build_filter(criteria: Criteria) -> dict[str, Any] | None:
    """Compile the post-filter part of the chain ``criteria`` belongs to."""
    fragments: list[dict[str, Any]] = []
    for link in criteria.chain:
        parts = _filter_fragments(link)
        if not parts:
            continue
        if link.is_or:
            fragments.append(_bool("should", parts))
        elif link.negating:
            fragments.append(_bool("must_not", parts))
        else:
            fragments.extend(parts)

    if not fragments:
        return None
    if len(fragments) == 1:
        return fragments[0]
    return _bool("must", fragments)

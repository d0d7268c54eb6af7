"""Tests for query, pagination and write request models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from searchbridge.models.query import (
    DEFAULT_PAGE_SIZE,
    BulkOptions,
    Direction,
    HighlightField,
    NativeQuery,
    Order,
    Pageable,
)


class TestPageable:
    def test_defaults(self):
        p = Pageable()
        assert p.page == 0
        assert p.size == DEFAULT_PAGE_SIZE
        assert p.is_paged

    def test_offset(self):
        assert Pageable.of(3, 20).offset == 60

    def test_next(self):
        assert Pageable.of(1, 10).next() == Pageable.of(2, 10)

    def test_unpaged(self):
        p = Pageable.unpaged()
        assert not p.is_paged
        assert p.offset == 0
        assert p.next() is p

    def test_negative_page_rejected(self):
        with pytest.raises(ValidationError):
            Pageable(page=-1, size=10)

    def test_zero_size_rejected(self):
        with pytest.raises(ValidationError):
            Pageable(page=0, size=0)


class TestOrder:
    def test_factories(self):
        assert Order.asc("rate").direction is Direction.ASC
        assert Order.desc("rate").direction is Direction.DESC

    def test_default_direction(self):
        assert Order(field="rate").direction is Direction.ASC


class TestNativeQuery:
    def test_defaults(self):
        q = NativeQuery()
        assert q.query is None
        assert q.filter is None
        assert q.pageable == Pageable()
        assert q.ids == []

    def test_highlight_body_drops_unset(self):
        h = HighlightField(name="message", fragment_size=50)
        assert h.to_body() == {"fragment_size": 50}


class TestBulkOptions:
    def test_unset_options_not_sent(self):
        assert BulkOptions().to_params() == {}

    def test_renamed_params(self):
        params = BulkOptions(refresh_policy="wait_for", routing_id="r1", timeout="1m").to_params()
        assert params == {"refresh": "wait_for", "routing": "r1", "timeout": "1m"}

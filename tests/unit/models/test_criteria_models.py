"""Tests for the fluent criteria chain."""

from __future__ import annotations

import pytest

from searchbridge.models.criteria import Criteria, OperationKey


class TestCriteriaChain:
    def test_where_starts_single_link_chain(self):
        c = Criteria.where("message")
        assert c.field == "message"
        assert c.chain == [c]

    def test_and_or_share_chain(self):
        first = Criteria.where("message").is_("a")
        second = first.and_("rate").greater_than(5)
        third = second.or_("type").is_("demo")
        assert first.chain == [first, second, third]
        assert third.chain == first.chain
        assert not second.is_or
        assert third.is_or

    def test_chain_returns_copy(self):
        c = Criteria.where("message")
        c.chain.append(Criteria.where("other"))
        assert len(c.chain) == 1

    def test_empty_field_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            Criteria.where("")

    def test_not_marks_link_negating(self):
        c = Criteria.where("message").not_().is_("x")
        assert c.negating is True

    def test_boost(self):
        assert Criteria.where("message").boost(2.0).boost_value == 2.0

    def test_negative_boost_rejected(self):
        with pytest.raises(ValueError):
            Criteria.where("message").boost(-1)


class TestQueryOperators:
    def test_entries_accumulate_in_order(self):
        c = Criteria.where("message").is_("a").starts_with("b").ends_with("c")
        assert [e.key for e in c.query_entries] == [
            OperationKey.EQUALS,
            OperationKey.STARTS_WITH,
            OperationKey.ENDS_WITH,
        ]
        assert c.filter_entries == []

    @pytest.mark.parametrize("method", ["contains", "starts_with", "ends_with"])
    def test_wildcard_operators_reject_whitespace(self, method):
        with pytest.raises(ValueError, match="Cannot construct query"):
            getattr(Criteria.where("message"), method)("two words")

    def test_between_stores_bounds(self):
        entry = Criteria.where("rate").between(1, None).query_entries[0]
        assert entry.key is OperationKey.BETWEEN
        assert entry.value == (1, None)

    def test_between_rejects_open_range(self):
        with pytest.raises(ValueError, match=r"\[\* TO \*\]"):
            Criteria.where("rate").between(None, None)

    @pytest.mark.parametrize("method", ["less_than", "less_than_equal", "greater_than", "greater_than_equal"])
    def test_range_operators_require_value(self, method):
        with pytest.raises(ValueError):
            getattr(Criteria.where("rate"), method)(None)

    def test_in_materialises_iterable(self):
        entry = Criteria.where("type").in_(v for v in ("a", "b")).query_entries[0]
        assert entry.value == ["a", "b"]


class TestFilterOperators:
    def test_within_goes_to_filter_entries(self):
        c = Criteria.where("location").within({"lat": 1.0, "lon": 2.0}, "10km")
        assert c.query_entries == []
        assert c.filter_entries[0].key is OperationKey.WITHIN

    def test_within_requires_distance(self):
        with pytest.raises(ValueError):
            Criteria.where("location").within("1,2", "")

    def test_bounded_by_requires_both_corners(self):
        with pytest.raises(ValueError):
            Criteria.where("location").bounded_by((1, 2), None)

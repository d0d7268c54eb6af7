"""Tests for raw result decoding."""

from __future__ import annotations

from searchbridge.models.result import BulkItemOutcome, RawResult, describe_error


class TestDescribeError:
    def test_type_and_reason(self):
        assert describe_error({"type": "x_exception", "reason": "broken"}) == "x_exception: broken"

    def test_plain_string(self):
        assert describe_error("alias [a] missing") == "alias [a] missing"

    def test_none(self):
        assert describe_error(None) is None


class TestRawResult:
    def test_succeeded(self):
        assert RawResult.from_response(200, {"acknowledged": True}).succeeded
        assert not RawResult.from_response(404, None).succeeded

    def test_error_body_fails_even_on_2xx(self):
        result = RawResult.from_response(200, {"error": {"type": "t", "reason": "r"}})
        assert not result.succeeded
        assert result.error_message == "t: r"

    def test_search_fields(self):
        body = {
            "_scroll_id": "s1",
            "hits": {"total": 7, "max_score": 1.5, "hits": [{"_id": "1", "_score": 1.5, "_source": {"a": 1}}]},
            "aggregations": {"x": {}},
        }
        result = RawResult.from_response(200, body)
        assert result.total == 7
        assert result.max_score == 1.5
        assert result.scroll_id == "s1"
        assert result.hits[0].id == "1"
        assert result.hits[0].source == {"a": 1}
        assert result.aggregations == {"x": {}}

    def test_total_object_form(self):
        result = RawResult.from_response(200, {"hits": {"total": {"value": 12, "relation": "eq"}, "hits": []}})
        assert result.total == 12

    def test_acknowledged_defaults_true(self):
        assert RawResult.from_response(200, {}).acknowledged
        assert not RawResult.from_response(200, {"acknowledged": False}).acknowledged

    def test_bulk_items(self):
        body = {
            "items": [
                {"index": {"_id": "1", "status": 201}},
                {"index": {"_id": "2", "status": 400, "error": {"type": "mapper_parsing_exception", "reason": "bad"}}},
            ]
        }
        items = RawResult.from_response(200, body).items
        assert [i.succeeded for i in items] == [True, False]
        assert items[1].error == "mapper_parsing_exception: bad"

    def test_multi_search_responses(self):
        body = {"responses": [{"status": 200, "hits": {"total": 1, "hits": []}}, {"status": 404, "error": "gone"}]}
        responses = RawResult.from_response(200, body).responses
        assert responses[0].succeeded
        assert responses[1].status_code == 404
        assert not responses[1].succeeded


class TestBulkItemOutcome:
    def test_delete_not_found_is_success(self):
        assert BulkItemOutcome(operation="delete", id="1", status=404).succeeded

    def test_index_not_found_is_failure(self):
        assert not BulkItemOutcome(operation="index", id="1", status=404).succeeded

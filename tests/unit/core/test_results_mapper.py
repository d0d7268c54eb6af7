"""Tests for decoding raw results into documents and pages."""

from __future__ import annotations

import pytest
from documents import Book, NumericIdEntity, SampleEntity

from searchbridge.core.exceptions import MappingError
from searchbridge.core.mapper import DefaultResultsMapper, PydanticEntityDecoder, SearchPageMapper
from searchbridge.core.registry import DocumentRegistry, raw_descriptor
from searchbridge.models.aggregation import TermResult
from searchbridge.models.query import Pageable
from searchbridge.models.result import RawResult

# ── Helpers ──────────────────────────────────────────────────────────────────


def _search_result(*hits: dict, total: int | None = None, **extra) -> RawResult:
    body = {"hits": {"total": len(hits) if total is None else total, "hits": list(hits)}, **extra}
    return RawResult.from_response(200, body)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def mapper() -> DefaultResultsMapper:
    return DefaultResultsMapper()


@pytest.fixture
def descriptors():
    registry = DocumentRegistry()
    return {
        "sample": registry.register(SampleEntity, "test-index", score_field="score"),
        "numeric": registry.register(NumericIdEntity, "numeric-index"),
        "book": registry.register(Book, "books"),
    }


class TestDecoder:
    def test_decode_pydantic(self):
        entity = PydanticEntityDecoder().decode({"message": "hi", "rate": 3}, SampleEntity)
        assert entity == SampleEntity(message="hi", rate=3)

    def test_decode_dataclass(self):
        assert PydanticEntityDecoder().decode({"title": "t"}, Book) == Book(title="t")

    def test_decode_failure(self):
        with pytest.raises(MappingError, match="failed to map source"):
            PydanticEntityDecoder().decode({"rate": "not a number"}, SampleEntity)

    def test_decode_unknown_key_for_plain_class(self):
        with pytest.raises(MappingError):
            PydanticEntityDecoder().decode({"unknown": 1}, Book)

    def test_encode_drops_score_field(self, descriptors):
        data = PydanticEntityDecoder().encode(SampleEntity(id="1", score=2.0), descriptors["sample"])
        assert "score" not in data
        assert data["id"] == "1"

    def test_encode_dataclass(self):
        assert PydanticEntityDecoder().encode(Book(id="b", title="t")) == {"id": "b", "title": "t", "pages": 0}

    def test_encode_unsupported(self):
        with pytest.raises(MappingError):
            PydanticEntityDecoder().encode(42)


class TestMapSearch:
    def test_satisfies_protocol(self, mapper):
        assert isinstance(mapper, SearchPageMapper)

    def test_injects_id_and_score(self, mapper, descriptors):
        result = _search_result({"_id": "abc", "_score": 1.25, "_source": {"message": "hi"}}, total=4)
        page = mapper.map_search(result, descriptors["sample"], Pageable.of(0, 1))
        assert page.total == 4
        assert page.content[0].id == "abc"
        assert page.content[0].score == 1.25
        assert page.has_next()

    def test_numeric_id_not_overwritten(self, mapper, descriptors):
        result = _search_result({"_id": "99", "_source": {"id": 7, "name": "n"}})
        page = mapper.map_search(result, descriptors["numeric"], Pageable())
        assert page.content[0].id == 7

    def test_hits_without_source_skipped(self, mapper, descriptors):
        result = _search_result({"_id": "1"}, {"_id": "2", "_source": {"message": "x"}})
        page = mapper.map_search(result, descriptors["sample"], Pageable())
        assert [e.id for e in page.content] == ["2"]
        assert page.hit_count == 2

    def test_empty_source_still_mapped(self, mapper, descriptors):
        result = _search_result({"_id": "1", "_source": {}}, {"_id": "2", "_source": {"message": "x"}})
        page = mapper.map_search(result, descriptors["sample"], Pageable())
        assert [e.id for e in page.content] == ["1", "2"]
        assert page.content[0].message is None

    def test_facets(self, mapper, descriptors):
        result = _search_result(
            {"_id": "1", "_source": {"type": "a"}},
            aggregations={"types": {"buckets": [{"key": "a", "doc_count": 1}]}},
        )
        page = mapper.map_search(result, descriptors["sample"], Pageable(), {"types": {"terms": {"field": "type"}}})
        facet = page.get_facet("types")
        assert isinstance(facet, TermResult)
        assert facet.terms[0].count == 1

    def test_raw_dict_documents(self, mapper):
        descriptor = raw_descriptor("idx", id_field="_id")
        page = mapper.map_search(_search_result({"_id": "1", "_source": {"a": 1}}), descriptor, Pageable())
        assert page.content == [{"a": 1, "_id": "1"}]


class TestMapOthers:
    def test_map_scroll_is_unpaged(self, mapper, descriptors):
        result = _search_result({"_id": "1", "_source": {}}, {"_id": "2", "_source": {"message": "m"}}, _scroll_id="s")
        page = mapper.map_scroll(result, descriptors["sample"])
        assert not page.pageable.is_paged
        assert page.scroll_id == "s"
        assert [e.id for e in page.content] == ["1", "2"]
        assert page.hit_count == 2

    def test_map_single_found(self, mapper, descriptors):
        result = RawResult.from_response(200, {"_id": "b1", "found": True, "_source": {"title": "t"}})
        assert mapper.map_single(result, descriptors["book"]) == Book(id="b1", title="t")

    def test_map_single_missing(self, mapper, descriptors):
        assert mapper.map_single(RawResult.from_response(404, {"found": False}), descriptors["book"]) is None

    def test_map_multi_drops_missing(self, mapper, descriptors):
        result = RawResult.from_response(
            200,
            {"docs": [{"_id": "1", "found": True, "_source": {"title": "a"}}, {"_id": "2", "found": False}]},
        )
        books = mapper.map_multi(result, descriptors["book"])
        assert books == [Book(id="1", title="a")]

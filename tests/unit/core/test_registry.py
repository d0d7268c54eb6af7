"""Tests for the document registry."""

from __future__ import annotations

import pytest
from documents import Book, NumericIdEntity, SampleEntity
from pydantic import BaseModel

from searchbridge.core.exceptions import ConfigurationError
from searchbridge.core.registry import DocumentRegistry, raw_descriptor


@pytest.fixture
def registry() -> DocumentRegistry:
    return DocumentRegistry()


class TestRegister:
    def test_register_returns_descriptor(self, registry):
        d = registry.register(SampleEntity, "test-index", "test-type")
        assert d.index_name == "test-index"
        assert d.type_name == "test-type"
        assert registry.get(SampleEntity) is d
        assert registry.is_registered(SampleEntity)

    def test_default_type_name(self, registry):
        assert registry.register(Book, "books").type_name == "book"

    def test_decorator(self, registry):
        @registry.document(index_name="decorated", shards=2)
        class Decorated(BaseModel):
            id: str | None = None

        d = registry.get(Decorated)
        assert d.index_name == "decorated"
        assert d.shards == 2

    def test_unregistered_class(self, registry):
        with pytest.raises(ConfigurationError, match="is not a registered document"):
            registry.get(SampleEntity)

    def test_registered_types(self, registry):
        registry.register(SampleEntity, "a")
        registry.register(Book, "b")
        assert registry.registered_types == [SampleEntity, Book]

    def test_resolve(self, registry):
        d = registry.register(SampleEntity, "a")
        assert registry.resolve(SampleEntity) is d
        assert registry.resolve(d) is d
        assert registry.resolve(None) is None

    def test_unknown_score_field(self, registry):
        with pytest.raises(ConfigurationError, match="Score field"):
            registry.register(SampleEntity, "a", score_field="relevance")


class TestAccessors:
    def test_text_id_injected(self, registry):
        d = registry.register(SampleEntity, "a")
        entity = SampleEntity()
        d.inject_id(entity, "generated")
        assert entity.id == "generated"
        assert d.identifier_of(entity) == "generated"

    def test_numeric_id_not_injected(self, registry):
        d = registry.register(NumericIdEntity, "n")
        entity = NumericIdEntity(id=5)
        d.inject_id(entity, "generated")
        assert entity.id == 5
        assert d.identifier_of(entity) == "5"

    def test_dataclass_accessors(self, registry):
        d = registry.register(Book, "b")
        book = Book()
        d.inject_id(book, "x")
        assert book.id == "x"

    def test_class_without_id_field(self, registry):
        d = registry.register(SampleEntity, "a", id_field=None)
        assert d.identifier_of(SampleEntity(id="1")) is None

    def test_default_settings(self, registry):
        d = registry.register(SampleEntity, "a", shards=3, replicas=0, refresh_interval="5s")
        assert d.default_settings() == {
            "index.number_of_shards": "3",
            "index.number_of_replicas": "0",
            "index.refresh_interval": "5s",
            "index.store.type": "fs",
        }

    def test_server_configuration_skips_settings(self, registry):
        d = registry.register(SampleEntity, "a", use_server_configuration=True)
        assert d.default_settings() == {}


class TestRawDescriptor:
    def test_dict_documents(self):
        d = raw_descriptor("logs", id_field="doc_id")
        doc: dict = {}
        d.inject_id(doc, "1")
        assert doc == {"doc_id": "1"}
        assert d.document_class is dict
        assert d.type_name is None

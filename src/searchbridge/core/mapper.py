"""Result Decoder — Raw engine results to typed documents and pages.

Each mapping capability is a small protocol so a template can be given a
custom implementation of just one of them. :class:`DefaultResultsMapper`
implements all of them on top of pydantic.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from searchbridge.core.aggregations import parse_aggregations
from searchbridge.core.exceptions import MappingError
from searchbridge.models.document import DocumentDescriptor
from searchbridge.models.page import Page
from searchbridge.models.query import Pageable
from searchbridge.models.result import RawResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class EntityDecoder(Protocol):
    """Converts between document instances and JSON sources."""

    def decode(self, source: dict[str, Any], document_class: type[T]) -> T: ...

    def encode(self, entity: Any, descriptor: DocumentDescriptor | None = None) -> dict[str, Any]: ...


@runtime_checkable
class SearchPageMapper(Protocol):
    def map_search(
        self,
        result: RawResult,
        descriptor: DocumentDescriptor,
        pageable: Pageable,
        aggregations: dict[str, dict[str, Any]] | None = None,
    ) -> Page[Any]: ...


@runtime_checkable
class ScrollPageMapper(Protocol):
    def map_scroll(self, result: RawResult, descriptor: DocumentDescriptor) -> Page[Any]: ...


@runtime_checkable
class GetMapper(Protocol):
    def map_single(self, result: RawResult, descriptor: DocumentDescriptor) -> Any | None: ...


@runtime_checkable
class MultiGetMapper(Protocol):
    def map_multi(self, result: RawResult, descriptor: DocumentDescriptor) -> list[Any]: ...


@runtime_checkable
class ResultsMapper(SearchPageMapper, ScrollPageMapper, GetMapper, MultiGetMapper, Protocol):
    """Every read mapping at once; the default mapper of a template."""


class PydanticEntityDecoder:
    """Decodes pydantic models, dataclasses, plain classes and ``dict``."""

    def decode(self, source: dict[str, Any], document_class: type[T]) -> T:
        try:
            if issubclass(document_class, dict):
                return document_class(source)  # type: ignore[return-value]
            if issubclass(document_class, BaseModel):
                return document_class.model_validate(source)  # type: ignore[return-value]
            return document_class(**source)
        except (ValidationError, TypeError) as e:
            raise MappingError(f"failed to map source [{source}] to class {document_class.__name__}") from e

    def encode(self, entity: Any, descriptor: DocumentDescriptor | None = None) -> dict[str, Any]:
        if isinstance(entity, BaseModel):
            data = entity.model_dump(mode="json")
        elif isinstance(entity, dict):
            data = dict(entity)
        elif dataclasses.is_dataclass(entity) and not isinstance(entity, type):
            data = dataclasses.asdict(entity)
        elif hasattr(entity, "__dict__"):
            data = {k: v for k, v in vars(entity).items() if not k.startswith("_")}
        else:
            raise MappingError(f"Cannot convert {type(entity).__name__} to a document source")

        if descriptor is not None and descriptor.score_field:
            data.pop(descriptor.score_field, None)
        return data


class DefaultResultsMapper:
    """Default implementation of every mapping protocol.

    Ids are injected from hit metadata when the identifier field is text;
    scores are injected for search hits when a score field is declared.
    Hits without a source are skipped; an empty source still maps to a
    document. Pages record how many raw hits they were built from.
    """

    def __init__(self, decoder: EntityDecoder | None = None) -> None:
        self.decoder: EntityDecoder = decoder or PydanticEntityDecoder()

    def map_source(self, source: dict[str, Any] | None, doc_id: str | None, descriptor: DocumentDescriptor) -> Any:
        if source is None:
            return None
        entity = self.decoder.decode(source, descriptor.document_class)
        descriptor.inject_id(entity, doc_id)
        return entity

    def map_search(
        self,
        result: RawResult,
        descriptor: DocumentDescriptor,
        pageable: Pageable,
        aggregations: dict[str, dict[str, Any]] | None = None,
    ) -> Page[Any]:
        hits = result.hits
        content: list[Any] = []
        for hit in hits:
            entity = self.map_source(hit.source, hit.id, descriptor)
            if entity is None:
                logger.debug("Skipping hit %s without source", hit.id)
                continue
            descriptor.inject_score(entity, hit.score)
            content.append(entity)

        raw_aggregations = result.aggregations
        return Page(
            content=content,
            pageable=pageable,
            total=result.total,
            scroll_id=result.scroll_id,
            hit_count=len(hits),
            aggregations=raw_aggregations,
            facets=parse_aggregations(aggregations, raw_aggregations),
        )

    def map_scroll(self, result: RawResult, descriptor: DocumentDescriptor) -> Page[Any]:
        hits = result.hits
        content: list[Any] = []
        for hit in hits:
            entity = self.map_source(hit.source, hit.id, descriptor)
            if entity is None:
                logger.debug("Skipping scrolled hit %s without source", hit.id)
                continue
            content.append(entity)
        return Page(
            content=content,
            pageable=Pageable.unpaged(),
            total=result.total,
            scroll_id=result.scroll_id,
            hit_count=len(hits),
        )

    def map_single(self, result: RawResult, descriptor: DocumentDescriptor) -> Any | None:
        if not result.found:
            return None
        return self.map_source(result.source, result.id, descriptor)

    def map_multi(self, result: RawResult, descriptor: DocumentDescriptor) -> list[Any]:
        entities: list[Any] = []
        for doc in result.docs:
            if not doc.get("found"):
                logger.debug("Dropping unresolved id %s from multi-get", doc.get("_id"))
                continue
            entity = self.map_source(doc.get("_source"), doc.get("_id"), descriptor)
            if entity is not None:
                entities.append(entity)
        return entities

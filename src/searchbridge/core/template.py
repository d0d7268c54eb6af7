"""Search Template — The public operation surface.

The template wires the pipeline together::

    query ──> RequestCompiler ──> Executor ──> ErrorMapper ──> ResultsMapper ──> Page

Targets are given as a registered document class, an explicit
:class:`DocumentDescriptor`, or a plain index name (schemaless ``dict``
documents).

Example::

    registry = DocumentRegistry()
    registry.register(Article, "articles", "article")

    with SearchTemplate(SearchClient("http://localhost:9200"), registry) as template:
        template.create_index(Article)
        template.index(IndexQuery(object=Article(id="1", title="hello")))
        template.refresh(Article)
        page = template.query_for_page(CriteriaQuery(criteria=Criteria.where("title").is_("hello")), Article)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from searchbridge.client import actions
from searchbridge.client.client import SearchClient
from searchbridge.config.settings import ScrollSettings, Settings
from searchbridge.core.bulk import BulkFailureAggregator, BulkItem, BulkMode
from searchbridge.core.compiler import RequestCompiler, scroll_param
from searchbridge.core.criteria import build_query
from searchbridge.core.errors import ErrorMapper
from searchbridge.core.exceptions import ConfigurationError
from searchbridge.core.executor import Executor
from searchbridge.core.mapper import (
    DefaultResultsMapper,
    EntityDecoder,
    GetMapper,
    MultiGetMapper,
    PydanticEntityDecoder,
    ResultsMapper,
    ScrollPageMapper,
    SearchPageMapper,
)
from searchbridge.core.registry import DocumentRegistry, Target, raw_descriptor
from searchbridge.core.scroll import ScrollIterator
from searchbridge.models.document import DocumentDescriptor
from searchbridge.models.page import Page
from searchbridge.models.query import (
    AliasQuery,
    BulkOptions,
    CriteriaQuery,
    DeleteQuery,
    GetQuery,
    IndexQuery,
    MoreLikeThisQuery,
    NativeQuery,
    Pageable,
    Query,
    UpdateQuery,
)
from searchbridge.models.result import AliasMetadata, BulkItemOutcome, RawResult, UpdateResponse

logger = logging.getLogger(__name__)

TargetLike = Target | str


def _flatten(prefix: str, data: dict[str, Any], out: dict[str, str]) -> None:
    for key, value in data.items():
        name = f"{prefix}.{key}"
        if isinstance(value, dict):
            _flatten(name, value, out)
        elif isinstance(value, list):
            out[name] = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            out[name] = str(value).lower()
        elif value is not None:
            out[name] = str(value)


def _as_dict(value: dict[str, Any] | str | None) -> dict[str, Any] | None:
    if value is None or isinstance(value, dict):
        return value
    return json.loads(value)


class SearchTemplate:
    """Executes abstract queries and writes against a search engine.

    Args:
        client: HTTP client of the engine.
        registry: Registered document classes. Defaults to an empty registry.
        results_mapper: Default mapper for every read; individual reads accept
            a mapper override.
        decoder: Converts documents to sources on writes. Also backs the
            default results mapper.
        error_mapper: Decides which engine results are failures.
        scroll_settings: Scroll keep-alives and delete-by-query paging.
    """

    def __init__(
        self,
        client: SearchClient,
        registry: DocumentRegistry | None = None,
        *,
        results_mapper: ResultsMapper | None = None,
        decoder: EntityDecoder | None = None,
        error_mapper: ErrorMapper | None = None,
        scroll_settings: ScrollSettings | None = None,
    ) -> None:
        self.client = client
        self.registry = registry or DocumentRegistry()
        self.decoder: EntityDecoder = decoder or PydanticEntityDecoder()
        self.mapper: ResultsMapper = results_mapper or DefaultResultsMapper(self.decoder)
        self.executor = Executor(client, error_mapper)
        self.compiler = RequestCompiler()
        self.bulk = BulkFailureAggregator(self.executor)
        self.scroll_settings = scroll_settings or ScrollSettings()

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: DocumentRegistry | None = None, **kwargs: Any
    ) -> SearchTemplate:
        return cls(
            SearchClient.from_settings(settings.client),
            registry,
            scroll_settings=settings.scroll,
            **kwargs,
        )

    def __enter__(self) -> SearchTemplate:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    # ── Target resolution ────────────────────────────────────────────────

    def descriptor_for(self, target: TargetLike | None) -> DocumentDescriptor | None:
        """Resolve a class, descriptor or index name to a descriptor."""
        if isinstance(target, str):
            return raw_descriptor(target)
        return self.registry.resolve(target)

    def _required(self, target: TargetLike | None) -> DocumentDescriptor:
        descriptor = self.descriptor_for(target)
        if descriptor is None:
            raise ConfigurationError("No document class, descriptor or index given")
        return descriptor

    def _descriptor_of_entity(self, entity: Any) -> DocumentDescriptor | None:
        if entity is None or not self.registry.is_registered(type(entity)):
            return None
        return self.registry.get(type(entity))

    # ── Writes ───────────────────────────────────────────────────────────

    def _index_item(self, query: IndexQuery) -> BulkItem:
        descriptor = self._descriptor_of_entity(query.object)
        index_name = query.index_name or (descriptor.index_name if descriptor else None)
        type_name = query.type_name or (descriptor.type_name if descriptor else None)
        if not index_name:
            raise ConfigurationError("No index defined for IndexQuery")

        doc_id = query.id
        if doc_id is None and descriptor is not None:
            doc_id = descriptor.identifier_of(query.object)

        if query.object is not None:
            source = self.decoder.encode(query.object, descriptor)
        elif query.source is not None:
            source = _as_dict(query.source) or {}
        else:
            raise ConfigurationError("IndexQuery needs an object or a source")

        return BulkItem(
            mode=BulkMode.INDEX,
            index=index_name,
            type_name=type_name,
            id=doc_id,
            body=source,
            version=query.version,
            parent_id=query.parent_id,
        )

    def index(self, query: IndexQuery) -> str | None:
        """Index one document and return its id.

        When the engine generates the id it is written back into the indexed
        object, provided its identifier field is text.
        """
        item = self._index_item(query)
        params: dict[str, str] = {}
        if item.version is not None:
            params["version"] = str(item.version)
            params["version_type"] = "external"
        if item.parent_id is not None:
            params["parent"] = item.parent_id

        result = self.executor.execute(actions.index(item.index, item.type_name, item.id, item.body or {}, params))
        doc_id = result.id

        descriptor = self._descriptor_of_entity(query.object)
        if descriptor is not None:
            descriptor.inject_id(query.object, doc_id)
        return doc_id

    def bulk_index(self, queries: Sequence[IndexQuery], options: BulkOptions | None = None) -> list[BulkItemOutcome]:
        """Index many documents in one request.

        Raises:
            BatchError: With one entry per failed document.
        """
        return self.bulk.run_batch([self._index_item(q) for q in queries], options)

    def _update_item(self, query: UpdateQuery) -> BulkItem:
        descriptor = self.descriptor_for(query.document_class) if query.document_class else None
        index_name = query.index_name or (descriptor.index_name if descriptor else None)
        type_name = query.type_name or (descriptor.type_name if descriptor else None)
        if not index_name:
            raise ConfigurationError("No index defined for UpdateQuery")
        if query.doc is None and query.script is None:
            raise ConfigurationError("UpdateQuery needs a doc or a script")

        body: dict[str, Any] = {}
        if query.doc is not None:
            body["doc"] = query.doc
            if query.doc_as_upsert:
                body["doc_as_upsert"] = True
        if query.script is not None:
            body["script"] = query.script
        return BulkItem(mode=BulkMode.UPDATE, index=index_name, type_name=type_name, id=query.id, body=body)

    def update(self, query: UpdateQuery) -> UpdateResponse:
        item = self._update_item(query)
        result = self.executor.execute(actions.update(item.index, item.type_name, query.id, item.body or {}))
        body = result.body or {}
        return UpdateResponse(
            index=body.get("_index"),
            type=body.get("_type"),
            id=body.get("_id", query.id),
            version=body.get("_version"),
            result=body.get("result"),
        )

    def bulk_update(self, queries: Sequence[UpdateQuery], options: BulkOptions | None = None) -> list[BulkItemOutcome]:
        return self.bulk.run_batch([self._update_item(q) for q in queries], options)

    def delete(self, target: TargetLike, doc_id: str, type_name: str | None = None) -> str:
        """Delete one document; deleting a missing document is not an error."""
        descriptor = self._required(target)
        self.executor.execute(
            actions.delete(descriptor.index_name, type_name or descriptor.type_name, doc_id),
            accept_not_found=True,
        )
        return doc_id

    def delete_by_query(self, query: DeleteQuery, target: TargetLike | None = None) -> int:
        """Delete every document matching ``query.query``.

        Matching ids are collected through an ids-only scroll, then removed
        with a single bulk request. All ids are held in memory.

        Returns:
            Number of documents deleted.
        """
        descriptor = self.descriptor_for(target)
        index_name = query.index or (descriptor.index_name if descriptor else None)
        type_name = query.type_name or (descriptor.type_name if descriptor else None)
        if not index_name:
            raise ConfigurationError("No index defined for DeleteQuery")

        page_size = query.page_size or self.scroll_settings.delete_page_size
        scroll_ms = query.scroll_time_ms or self.scroll_settings.delete_scroll_ms

        search = NativeQuery(
            query=query.query,
            indices=[index_name],
            types=[type_name] if type_name else [],
            pageable=Pageable.of(0, page_size),
        )
        compiled = self.compiler.compile(search, scroll_ms=scroll_ms)
        compiled.body["_source"] = False

        result = self.executor.execute(compiled.to_action())
        scroll_id = result.scroll_id
        ids: list[str] = []
        try:
            while True:
                batch = [hit.id for hit in result.hits if hit.id is not None]
                if not batch:
                    break
                ids.extend(batch)
                if scroll_id is None:
                    break
                result = self.executor.execute(actions.search_scroll(scroll_id, scroll_param(scroll_ms)))
                scroll_id = result.scroll_id or scroll_id

            if ids:
                items = [BulkItem(mode=BulkMode.DELETE, index=index_name, type_name=type_name, id=i) for i in ids]
                self.bulk.run_batch(items)
        finally:
            if scroll_id is not None:
                self.clear_scroll(scroll_id)

        logger.info("Deleted %d documents from %s by query", len(ids), index_name)
        return len(ids)

    def delete_criteria(self, query: CriteriaQuery, target: TargetLike) -> int:
        """Delete every document matching a criteria query."""
        compiled = build_query(query.criteria)
        if compiled is None:
            raise ConfigurationError("Query can not be empty")
        return self.delete_by_query(DeleteQuery(query=compiled), target)

    # ── Reads ────────────────────────────────────────────────────────────

    def get(self, query: GetQuery, target: TargetLike, mapper: GetMapper | None = None) -> Any | None:
        """Fetch one document by id, ``None`` when it does not exist."""
        descriptor = self._required(target)
        result = self.executor.execute(
            actions.get(descriptor.index_name, descriptor.type_name, query.id),
            accept_not_found=True,
        )
        return (mapper or self.mapper).map_single(result, descriptor)

    def query_for_page(self, query: Query, target: TargetLike, mapper: SearchPageMapper | None = None) -> Page[Any]:
        descriptor = self._required(target)
        compiled = self.compiler.compile(query, descriptor)
        result = self.executor.execute(compiled.to_action())
        return (mapper or self.mapper).map_search(result, descriptor, query.pageable, self._aggregations_of(query))

    def query_for_object(self, query: Query | GetQuery, target: TargetLike) -> Any | None:
        """Return the single matching document, or ``None``.

        Raises:
            ValueError: If more than one document matches.
        """
        if isinstance(query, GetQuery):
            return self.get(query, target)
        page = self.query_for_page(query, target)
        if page.total > 1:
            raise ValueError(f"Expected 1 but found {page.total} results")
        return page.content[0] if page.content else None

    def query_for_list(self, query: Query, target: TargetLike) -> list[Any]:
        return list(self.query_for_page(query, target).content)

    def query_for_pages(
        self,
        queries: Sequence[Query],
        targets: TargetLike | Sequence[TargetLike],
        mapper: SearchPageMapper | None = None,
    ) -> list[Page[Any]]:
        """Run several searches in one multi-search round trip.

        Args:
            queries: Searches to run.
            targets: One target for every query, or one target per query.

        Returns:
            One page per query, in the order of ``queries``.
        """
        if isinstance(targets, (list, tuple)):
            if len(targets) != len(queries):
                raise ValueError("Expected one target per query")
            descriptors = [self._required(t) for t in targets]
        else:
            descriptors = [self._required(targets)] * len(queries)  # type: ignore[arg-type]

        compiled = [self.compiler.compile(q, d) for q, d in zip(queries, descriptors, strict=True)]
        results = self.executor.execute_batch(compiled)
        page_mapper = mapper or self.mapper
        return [
            page_mapper.map_search(r, d, q.pageable, self._aggregations_of(q))
            for r, d, q in zip(results, descriptors, queries, strict=True)
        ]

    def query_for_ids(self, query: Query, target: TargetLike | None = None) -> list[str]:
        compiled = self.compiler.compile(query, self.descriptor_for(target))
        compiled.body["_source"] = False
        result = self.executor.execute(compiled.to_action())
        return [hit.id for hit in result.hits if hit.id is not None]

    def multi_get(self, query: NativeQuery, target: TargetLike, mapper: MultiGetMapper | None = None) -> list[Any]:
        """Fetch documents by id, in id order; ids that do not resolve are dropped."""
        descriptor = self._required(target)
        if not query.ids:
            raise ConfigurationError("No id defined for multi-get")
        index_name = query.indices[0] if query.indices else descriptor.index_name
        type_name = query.types[0] if query.types else descriptor.type_name
        result = self.executor.execute(actions.multi_get(index_name, type_name, query.ids))
        return (mapper or self.mapper).map_multi(result, descriptor)

    def count(self, query: Query, target: TargetLike | None = None) -> int:
        compiled = self.compiler.compile_count(query, self.descriptor_for(target))
        result = self.executor.execute(compiled.to_action())
        if compiled.endpoint == "_count":
            return result.count
        return result.total

    def more_like_this(self, query: MoreLikeThisQuery, target: TargetLike) -> Page[Any]:
        """Documents similar to the document ``query.id``."""
        descriptor = self._required(target)
        index_name = query.index_name or descriptor.index_name
        type_name = query.type_name or descriptor.type_name

        like: dict[str, Any] = {"_index": index_name, "_id": query.id}
        if type_name:
            like["_type"] = type_name
        mlt: dict[str, Any] = {"like": [like]}
        if query.fields:
            mlt["fields"] = list(query.fields)
        if query.stop_words:
            mlt["stop_words"] = list(query.stop_words)
        for option in (
            "min_term_freq",
            "max_query_terms",
            "min_doc_freq",
            "max_doc_freq",
            "min_word_length",
            "max_word_length",
            "boost_terms",
        ):
            value = getattr(query, option)
            if value is not None:
                mlt[option] = value

        search = NativeQuery(query={"more_like_this": mlt}, pageable=query.pageable)
        return self.query_for_page(search, descriptor)

    @staticmethod
    def _aggregations_of(query: Query) -> dict[str, dict[str, Any]] | None:
        if isinstance(query, NativeQuery) and query.aggregations:
            return query.aggregations
        return None

    # ── Scroll ───────────────────────────────────────────────────────────

    def start_scroll(
        self,
        scroll_ms: int,
        query: Query,
        target: TargetLike,
        mapper: SearchPageMapper | None = None,
    ) -> Page[Any]:
        descriptor = self._required(target)
        compiled = self.compiler.compile(query, descriptor, scroll_ms=scroll_ms)
        result = self.executor.execute(compiled.to_action())
        return (mapper or self.mapper).map_search(result, descriptor, Pageable.unpaged(), self._aggregations_of(query))

    def continue_scroll(
        self,
        scroll_id: str,
        scroll_ms: int,
        target: TargetLike,
        mapper: ScrollPageMapper | None = None,
    ) -> Page[Any]:
        descriptor = self._required(target)
        result = self.executor.execute(actions.search_scroll(scroll_id, scroll_param(scroll_ms)))
        return (mapper or self.mapper).map_scroll(result, descriptor)

    def clear_scroll(self, scroll_id: str) -> None:
        self.executor.execute(actions.clear_scroll([scroll_id]), accept_not_found=True)

    def stream(self, query: Query, target: TargetLike) -> ScrollIterator[Any]:
        """Iterate every match through a scroll cursor.

        The iterator should be closed, or used as a context manager, so an
        undrained cursor is released.
        """
        descriptor = self._required(target)
        scroll_ms = self.scroll_settings.stream_scroll_ms
        first = self.start_scroll(scroll_ms, query, descriptor)
        return ScrollIterator(
            first,
            lambda scroll_id: self.continue_scroll(scroll_id, scroll_ms, descriptor),
            self.clear_scroll,
        )

    # ── Index lifecycle ──────────────────────────────────────────────────

    def create_index(self, target: TargetLike, settings: dict[str, Any] | str | None = None) -> bool:
        """Create an index.

        For a document class the descriptor's default settings apply unless
        ``settings`` is given or the class uses the server configuration.
        """
        descriptor = self._required(target)
        index_settings = _as_dict(settings)
        if index_settings is None and not isinstance(target, str):
            index_settings = descriptor.default_settings()
        body = {"settings": index_settings} if index_settings else None
        return self.executor.execute_with_ack(actions.create_index(descriptor.index_name, body))

    def delete_index(self, target: TargetLike) -> bool:
        """Delete an index; returns ``False`` when it does not exist."""
        descriptor = self._required(target)
        return self.index_exists(descriptor) and self.executor.execute_with_ack(
            actions.delete_index(descriptor.index_name)
        )

    def index_exists(self, target: TargetLike) -> bool:
        return self.executor.execute_with_ack(actions.index_exists(self._required(target).index_name))

    def type_exists(self, index_name: str, type_name: str) -> bool:
        return self.executor.execute_with_ack(actions.type_exists(index_name, type_name))

    def refresh(self, target: TargetLike) -> None:
        self.executor.execute(actions.refresh(self._required(target).index_name))

    def _index_and_type(self, target: TargetLike, type_name: str | None) -> tuple[str, str]:
        descriptor = self._required(target)
        resolved = type_name or descriptor.type_name
        if not resolved:
            raise ConfigurationError(f"No type defined for index {descriptor.index_name}")
        return descriptor.index_name, resolved

    def put_mapping(self, target: TargetLike, mapping: dict[str, Any] | str, type_name: str | None = None) -> bool:
        index_name, resolved_type = self._index_and_type(target, type_name)
        return self.executor.execute_with_ack(actions.put_mapping(index_name, resolved_type, _as_dict(mapping) or {}))

    def get_mapping(self, target: TargetLike, type_name: str | None = None) -> dict[str, Any] | None:
        """Mapping of one type, ``None`` when the index or the type is absent."""
        index_name, resolved_type = self._index_and_type(target, type_name)
        result = self.executor.execute(actions.get_mapping(index_name, resolved_type), accept_not_found=True)
        index_data = (result.body or {}).get(index_name)
        if not isinstance(index_data, dict):
            logger.info("Index %s did not exist when retrieving mappings for type %s.", index_name, resolved_type)
            return None
        mappings = index_data.get("mappings") or {}
        if resolved_type not in mappings:
            logger.info("Type %s did not exist in index %s when retrieving mappings.", resolved_type, index_name)
            return None
        return mappings[resolved_type]

    def get_setting(self, target: TargetLike) -> dict[str, str]:
        """Index settings flattened to ``index.*`` keys with string values."""
        index_name = self._required(target).index_name
        result = self.executor.execute(actions.get_settings(index_name))
        index_settings = (result.body or {}).get(index_name, {}).get("settings", {}).get("index", {})
        flattened: dict[str, str] = {}
        _flatten("index", index_settings, flattened)
        return flattened

    # ── Aliases ──────────────────────────────────────────────────────────

    def add_alias(self, query: AliasQuery) -> bool:
        add: dict[str, Any] = {"index": query.index_name, "alias": query.alias_name}
        if query.filter is not None:
            add["filter"] = query.filter
        if query.routing:
            add["routing"] = query.routing
        if query.search_routing:
            add["search_routing"] = query.search_routing
        if query.index_routing:
            add["index_routing"] = query.index_routing
        return self.executor.execute_with_ack(actions.modify_aliases([{"add": add}]))

    def remove_alias(self, query: AliasQuery) -> bool:
        remove = {"index": query.index_name, "alias": query.alias_name}
        return self.executor.execute_with_ack(actions.modify_aliases([{"remove": remove}]))

    def _aliases(self, name: str) -> RawResult:
        return self.executor.execute(actions.get_aliases(name), accept_not_found=True)

    def query_for_alias(self, index_name: str) -> list[AliasMetadata]:
        """Aliases of an index; empty when the index does not exist."""
        result = self._aliases(index_name)
        if not result.succeeded:
            return []
        aliases = (result.body or {}).get(index_name, {}).get("aliases", {})
        return [
            AliasMetadata(
                alias=name,
                filter=meta.get("filter"),
                index_routing=meta.get("index_routing"),
                search_routing=meta.get("search_routing"),
            )
            for name, meta in aliases.items()
        ]

    def get_indices_from_alias(self, alias_name: str) -> set[str]:
        result = self._aliases(alias_name)
        if not result.succeeded:
            return set()
        return set((result.body or {}).keys())

"""Document Registry — Maps document classes to their index descriptors.

The registry is the only place where document classes are inspected. The
identifier and score accessors are resolved once per class at registration
time; the mapper and template only call the resolved functions.

Example:
    >>> registry = DocumentRegistry()
    >>> @registry.document(index_name="test-index", type_name="test-type")
    ... class SampleEntity(BaseModel):
    ...     id: str | None = None
    ...     message: str | None = None
    >>> registry.get(SampleEntity).index_name
    'test-index'
"""

from __future__ import annotations

import logging
import operator
import types
import typing
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from searchbridge.core.exceptions import ConfigurationError
from searchbridge.models.document import DocumentAccessors, DocumentDescriptor

logger = logging.getLogger(__name__)

_C = TypeVar("_C", bound=type)

Target = type[Any] | DocumentDescriptor


def _is_text(annotation: Any) -> bool:
    """True for ``str`` and optional ``str`` annotations."""
    if annotation is str:
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return args == [str]
    return False


def _field_annotation(cls: type[Any], name: str) -> Any:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        info = cls.model_fields.get(name)
        return None if info is None else info.annotation
    try:
        return typing.get_type_hints(cls).get(name)
    except (NameError, TypeError):
        logger.debug("Cannot resolve type hints of %s", cls.__name__, exc_info=True)
        return None


def _has_field(cls: type[Any], name: str) -> bool:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return name in cls.model_fields
    try:
        return name in typing.get_type_hints(cls)
    except (NameError, TypeError):
        return False


def _setter(name: str) -> Callable[[Any, Any], None]:
    def _set(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return _set


def _item_setter(name: str) -> Callable[[Any, Any], None]:
    def _set(entity: Any, value: Any) -> None:
        entity[name] = value

    return _set


def resolve_accessors(cls: type[Any], id_field: str | None, score_field: str | None) -> DocumentAccessors:
    """Build the accessor functions of ``cls`` for its id and score fields."""
    if issubclass(cls, dict):
        return DocumentAccessors(
            get_id=(lambda d: d.get(id_field)) if id_field else None,
            set_id=_item_setter(id_field) if id_field else None,
            get_score=(lambda d: d.get(score_field)) if score_field else None,
            set_score=_item_setter(score_field) if score_field else None,
        )

    get_id = set_id = get_score = set_score = None
    if id_field and _has_field(cls, id_field):
        get_id = operator.attrgetter(id_field)
        if _is_text(_field_annotation(cls, id_field)):
            set_id = _setter(id_field)
        else:
            logger.debug("Identifier %s.%s is not text, generated ids will not be injected", cls.__name__, id_field)
    if score_field:
        if not _has_field(cls, score_field):
            raise ConfigurationError(f"Score field '{score_field}' not found on {cls.__name__}")
        get_score = operator.attrgetter(score_field)
        set_score = _setter(score_field)

    return DocumentAccessors(get_id=get_id, set_id=set_id, get_score=get_score, set_score=set_score)


def raw_descriptor(index_name: str, type_name: str | None = None, *, id_field: str | None = None) -> DocumentDescriptor:
    """Descriptor for schemaless ``dict`` documents, not bound to any registry.

    With ``id_field`` set, the hit id is written into that key of each source.
    """
    return DocumentDescriptor(
        document_class=dict,
        index_name=index_name,
        type_name=type_name,
        id_field=id_field,
        accessors=resolve_accessors(dict, id_field, None),
    )


class DocumentRegistry:
    """Registry of document classes and their descriptors.

    Registries are plain objects passed to the template at construction;
    there is no module-level default registry.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type[Any], DocumentDescriptor] = {}

    def register(
        self,
        document_class: type[Any],
        index_name: str,
        type_name: str | None = None,
        *,
        id_field: str | None = "id",
        score_field: str | None = None,
        **settings: Any,
    ) -> DocumentDescriptor:
        """Register a document class.

        Args:
            document_class: Pydantic model, dataclass or plain class (``dict``
                for schemaless documents).
            index_name: Index the documents live in.
            type_name: Document type name, defaults to the lower-cased class name.
            id_field: Identifier field, ``None`` when the class has none.
            score_field: Field receiving the relevance score of search hits.
            **settings: Index settings (``shards``, ``replicas``,
                ``refresh_interval``, ``index_store_type``,
                ``use_server_configuration``).

        Returns:
            The resolved descriptor.
        """
        if document_class in self._descriptors:
            logger.warning("Overwriting existing document registration: %s", document_class.__name__)

        descriptor = DocumentDescriptor(
            document_class=document_class,
            index_name=index_name,
            type_name=type_name or document_class.__name__.lower(),
            id_field=id_field,
            score_field=score_field,
            accessors=resolve_accessors(document_class, id_field, score_field),
            **settings,
        )
        self._descriptors[document_class] = descriptor
        logger.debug("Registered document %s -> %s/%s", document_class.__name__, index_name, descriptor.type_name)
        return descriptor

    def document(self, index_name: str, type_name: str | None = None, **kwargs: Any) -> Callable[[_C], _C]:
        """Class decorator form of :meth:`register`."""

        def _decorate(cls: _C) -> _C:
            self.register(cls, index_name, type_name, **kwargs)
            return cls

        return _decorate

    def get(self, document_class: type[Any]) -> DocumentDescriptor:
        """Return the descriptor of a registered class.

        Raises:
            ConfigurationError: If the class is not registered.
        """
        try:
            return self._descriptors[document_class]
        except KeyError:
            raise ConfigurationError(
                f"Unable to identify index name. {getattr(document_class, '__name__', document_class)} "
                "is not a registered document."
            ) from None

    def resolve(self, target: Target | None) -> DocumentDescriptor | None:
        """Accept a registered class, an explicit descriptor or ``None``."""
        if target is None or isinstance(target, DocumentDescriptor):
            return target
        return self.get(target)

    def is_registered(self, document_class: type[Any]) -> bool:
        return document_class in self._descriptors

    @property
    def registered_types(self) -> list[type[Any]]:
        return list(self._descriptors.keys())

"""Document descriptor model — Per-type index metadata and accessors.

A ``DocumentDescriptor`` is resolved once, when a document class is
registered with the ``DocumentRegistry``, and never changes afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class DocumentAccessors:
    """Identifier and score accessors resolved at registration time.

    ``set_id`` is ``None`` when the identifier field is not text-typed:
    engine-generated ids are always strings and are never written into
    numeric identifier fields.
    """

    get_id: Callable[[Any], Any] | None = None
    set_id: Callable[[Any, str], None] | None = None
    get_score: Callable[[Any], Any] | None = None
    set_score: Callable[[Any, float], None] | None = None


class DocumentDescriptor(BaseModel):
    """Index metadata of a document class."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    document_class: type[Any] = Field(description="Class hits are decoded into")
    index_name: str = Field(min_length=1, description="Index name")
    type_name: str | None = Field(default=None, description="Document type name")
    id_field: str | None = Field(default="id", description="Identifier field name")
    score_field: str | None = Field(default=None, description="Field receiving the hit score")
    shards: int = Field(default=5, ge=1)
    replicas: int = Field(default=1, ge=0)
    refresh_interval: str = Field(default="1s")
    index_store_type: str = Field(default="fs")
    use_server_configuration: bool = Field(default=False, description="Skip default index settings")
    accessors: DocumentAccessors = Field(default_factory=DocumentAccessors)

    def identifier_of(self, entity: Any) -> str | None:
        """Return the entity identifier as text, or ``None`` when unset."""
        if self.accessors.get_id is None:
            return None
        value = self.accessors.get_id(entity)
        return None if value is None else str(value)

    def inject_id(self, entity: Any, doc_id: str | None) -> None:
        if entity is None or doc_id is None or self.accessors.set_id is None:
            return
        self.accessors.set_id(entity, doc_id)

    def inject_score(self, entity: Any, score: float | None) -> None:
        if entity is None or score is None or self.accessors.set_score is None:
            return
        self.accessors.set_score(entity, float(score))

    def default_settings(self) -> dict[str, str]:
        """Index settings used when creating the index from this descriptor."""
        if self.use_server_configuration:
            return {}
        return {
            "index.number_of_shards": str(self.shards),
            "index.number_of_replicas": str(self.replicas),
            "index.refresh_interval": self.refresh_interval,
            "index.store.type": self.index_store_type,
        }

"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from documents import NumericIdEntity, SampleEntity
from fakes import FakeCluster

from searchbridge.client.client import SearchClient
from searchbridge.config.settings import Settings
from searchbridge.core.registry import DocumentRegistry
from searchbridge.core.template import SearchTemplate


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def cluster() -> FakeCluster:
    """An empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def client(cluster: FakeCluster) -> Iterator[SearchClient]:
    c = SearchClient("http://es.test:9200", transport=cluster.transport())
    yield c
    c.close()


@pytest.fixture
def registry() -> DocumentRegistry:
    r = DocumentRegistry()
    r.register(SampleEntity, "test-index", "test-type", score_field="score")
    r.register(NumericIdEntity, "numeric-index", "numeric-type")
    return r


@pytest.fixture
def template(client: SearchClient, registry: DocumentRegistry) -> SearchTemplate:
    return SearchTemplate(client, registry)


@pytest.fixture
def sample_entities() -> list[SampleEntity]:
    return [
        SampleEntity(id="1", type="test", message="some message", rate=10, available=True),
        SampleEntity(id="2", type="test", message="other message", rate=20, available=False),
        SampleEntity(id="3", type="demo", message="some text", rate=30, available=True),
    ]

"""Integration test fixtures — A live Elasticsearch 6 node.

Point the tests at a node with::

    docker run -d -p 9200:9200 -e discovery.type=single-node \
        docker.elastic.co/elasticsearch/elasticsearch:6.8.23
    SEARCHBRIDGE_IT_URL=http://localhost:9200 pytest -m integration

Every test gets its own index, deleted afterwards.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Iterator
from typing import Any

import pytest
from documents import Paper

from searchbridge.client.client import SearchClient
from searchbridge.core.registry import DocumentRegistry
from searchbridge.core.template import SearchTemplate
from searchbridge.models.query import IndexQuery

MOCK_DOCUMENTS: list[dict[str, Any]] = [
    {"id": "doc-001", "title": "Advances in Solar Nowcasting", "author": "Alice Johnson", "year": 2024},
    {"id": "doc-002", "title": "Transformer Models for Language", "author": "Bob Smith", "year": 2023},
    {"id": "doc-003", "title": "Solar Panel Degradation", "author": "Carol White", "year": 2021},
    {"id": "doc-004", "title": "Graph Neural Networks", "author": "Dan Brown", "year": 2022},
]


@pytest.fixture(scope="session")
def es_url() -> str:
    url = os.environ.get("SEARCHBRIDGE_IT_URL")
    if not url:
        pytest.skip("SEARCHBRIDGE_IT_URL not set")
    return url


@pytest.fixture
def index_name() -> str:
    return f"it-papers-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def template(es_url: str, index_name: str) -> Iterator[SearchTemplate]:
    registry = DocumentRegistry()
    registry.register(Paper, index_name, "paper", score_field="score", shards=1, replicas=0)
    with SearchTemplate(SearchClient(es_url, timeout=30.0), registry) as t:
        t.create_index(Paper)
        yield t
        t.delete_index(Paper)


@pytest.fixture
def seeded(template: SearchTemplate) -> SearchTemplate:
    template.bulk_index([IndexQuery(object=Paper(**doc)) for doc in MOCK_DOCUMENTS])
    template.refresh(Paper)
    return template

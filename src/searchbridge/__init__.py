"""searchbridge — Typed documents and abstract queries over the Elasticsearch REST API.

Quick start::

    from searchbridge import Criteria, CriteriaQuery, DocumentRegistry, SearchClient, SearchTemplate

    registry = DocumentRegistry()
    registry.register(Article, "articles", "article")

    with SearchTemplate(SearchClient("http://localhost:9200"), registry) as template:
        page = template.query_for_page(CriteriaQuery(criteria=Criteria.where("title").is_("hello")), Article)
"""

from searchbridge.client.client import SearchClient
from searchbridge.core.exceptions import (
    BatchError,
    ConfigurationError,
    EngineFault,
    MappingError,
    SearchBridgeError,
    TransportFault,
)
from searchbridge.core.registry import DocumentRegistry
from searchbridge.core.template import SearchTemplate
from searchbridge.models.criteria import Criteria
from searchbridge.models.page import Page
from searchbridge.models.query import (
    CriteriaQuery,
    GetQuery,
    IndexQuery,
    NativeQuery,
    Order,
    Pageable,
    StringQuery,
)

__version__ = "0.1.0"

__all__ = [
    "BatchError",
    "ConfigurationError",
    "Criteria",
    "CriteriaQuery",
    "DocumentRegistry",
    "EngineFault",
    "GetQuery",
    "IndexQuery",
    "MappingError",
    "NativeQuery",
    "Order",
    "Page",
    "Pageable",
    "SearchBridgeError",
    "SearchClient",
    "SearchTemplate",
    "StringQuery",
    "TransportFault",
    "__version__",
]

"""Search engine client — Wire actions and the HTTP client that sends them.

Quick start::

    from searchbridge.client import SearchClient, actions

    with SearchClient("http://localhost:9200") as client:
        result = client.execute(actions.refresh("articles"))
"""

from searchbridge.client.client import SearchClient

__all__ = ["SearchClient"]

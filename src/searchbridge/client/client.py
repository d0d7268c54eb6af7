"""Search engine HTTP client — Sends wire actions over ``httpx``.

Usage::

    with SearchClient("http://localhost:9200") as client:
        result = client.execute(actions.index_exists("articles"))
        print(result.status_code)

The client never raises on HTTP status codes; deciding what a status means
is the job of the error mapper. Only transport and decoding failures raise
:class:`~searchbridge.core.exceptions.TransportFault`.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from searchbridge.client.actions import Action
from searchbridge.core.exceptions import TransportFault
from searchbridge.models.result import RawResult

if TYPE_CHECKING:
    from searchbridge.config.settings import ClientSettings

logger = logging.getLogger(__name__)

_NDJSON = "application/x-ndjson"


def encode_ndjson(lines: list[dict[str, Any]]) -> bytes:
    """Newline-delimited JSON with the trailing newline the bulk API needs."""
    return "".join(json.dumps(line, separators=(",", ":")) + "\n" for line in lines).encode("utf-8")


class SearchClient:
    """Synchronous client for the search engine REST API.

    Args:
        base_url: Engine URL, e.g. ``"http://localhost:9200"``.
        timeout: Request timeout in seconds.
        headers: Extra headers sent with every request.
        verify_ssl: Whether to verify TLS certificates.
        transport: Optional ``httpx`` transport, used by tests.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.Client``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:9200",
        *,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
        verify_ssl: bool = True,
        transport: httpx.BaseTransport | None = None,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", **(headers or {})},
            verify=verify_ssl,
            transport=transport,
            **httpx_kwargs,
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> SearchClient:
        return cls(
            settings.base_url,
            timeout=settings.timeout,
            headers=settings.headers,
            verify_ssl=settings.verify_ssl,
            **kwargs,
        )

    def __enter__(self) -> SearchClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def execute(self, action: Action) -> RawResult:
        """Send one action and decode its response.

        Raises:
            TransportFault: On connection errors, timeouts or undecodable bodies.
        """
        content: bytes | None = None
        headers: dict[str, str] = {}
        if action.ndjson is not None:
            content = encode_ndjson(action.ndjson)
            headers["Content-Type"] = _NDJSON
        elif action.body is not None:
            content = json.dumps(action.body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        t0 = time.monotonic()
        try:
            resp = self._client.request(
                action.method,
                action.path,
                params=action.params or None,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            elapsed = (time.monotonic() - t0) * 1000
            logger.warning("%s %s %s failed elapsed_ms=%.1f: %s", action.name, action.method, action.path, elapsed, exc)
            raise TransportFault(f"{action.name} request to {self.base_url} failed: {exc}") from exc

        elapsed = (time.monotonic() - t0) * 1000
        logger.debug(
            "%s %s %s status=%d elapsed_ms=%.1f", action.name, action.method, action.path, resp.status_code, elapsed
        )
        return RawResult.from_response(resp.status_code, _decode(resp, action))


def _decode(resp: httpx.Response, action: Action) -> dict[str, Any] | None:
    if action.method == "HEAD" or not resp.content:
        return None
    try:
        data = resp.json()
    except json.JSONDecodeError as exc:
        raise TransportFault(
            f"{action.name} returned a non-JSON body (status {resp.status_code}): {resp.text[:200]}"
        ) from exc
    if isinstance(data, dict):
        return data
    return {"value": data}

"""Execution Core — Send actions and route every result through the error mapper."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from searchbridge.client import actions
from searchbridge.client.actions import Action
from searchbridge.client.client import SearchClient
from searchbridge.core.compiler import CompiledRequest
from searchbridge.core.errors import DefaultErrorMapper, ErrorMapper
from searchbridge.core.exceptions import EngineFault
from searchbridge.models.result import RawResult

logger = logging.getLogger(__name__)


class Executor:
    """Runs actions against a :class:`SearchClient`.

    There is no caching and no retry: a failed call surfaces immediately.

    Args:
        client: HTTP client used for every call.
        error_mapper: Decides which results are failures.
    """

    def __init__(self, client: SearchClient, error_mapper: ErrorMapper | None = None) -> None:
        self.client = client
        self.error_mapper: ErrorMapper = error_mapper or DefaultErrorMapper()

    def execute(self, action: Action, accept_not_found: bool = False) -> RawResult:
        """Execute one action.

        Args:
            action: The request to send.
            accept_not_found: Treat a 404 as a normal, empty result.

        Raises:
            EngineFault: If the engine reports a failure.
            TransportFault: If the request cannot be sent or decoded.
        """
        result = self.client.execute(action)
        self.error_mapper.map_error(result, accept_not_found)
        return result

    def execute_with_ack(self, action: Action) -> bool:
        """Execute an index-management action and report whether it was acknowledged."""
        result = self.execute(action, accept_not_found=True)
        return result.succeeded and result.acknowledged

    def execute_batch(self, requests: Sequence[CompiledRequest]) -> list[RawResult]:
        """Run several searches in one ``_msearch`` round trip.

        Returns:
            One result per request, in submission order.

        Raises:
            EngineFault: If any search failed or the response count does not
                match the request count.
        """
        if not requests:
            return []
        action = actions.multi_search([(r.msearch_header(), r.body) for r in requests])
        envelope = self.execute(action)
        responses = envelope.responses
        if len(responses) != len(requests):
            message = f"Multi-search returned {len(responses)} responses for {len(requests)} requests"
            logger.error(message)
            raise EngineFault(message, envelope)
        for response in responses:
            self.error_mapper.map_error(response)
        return responses

    def execute_bulk(self, lines: Sequence[dict[str, Any]], params: dict[str, str] | None = None) -> RawResult:
        """Send a ``_bulk`` request; item-level failures are left to the caller."""
        return self.execute(actions.bulk(lines, params))

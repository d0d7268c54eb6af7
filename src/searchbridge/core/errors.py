"""Error mapping — Decide whether a raw engine response is a failure."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from searchbridge.core.exceptions import EngineFault
from searchbridge.models.result import RawResult

logger = logging.getLogger(__name__)


@runtime_checkable
class ErrorMapper(Protocol):
    """Inspects every raw result before it is decoded."""

    def map_error(self, result: RawResult, accept_not_found: bool = False) -> None:
        """Raise for failed results; return normally otherwise."""
        ...


def failure_message(result: RawResult) -> str:
    return (
        f"Cannot execute action, response code : {result.status_code} , "
        f"error : {result.error_message} , message : {result.message}"
    )


class DefaultErrorMapper:
    """Raises :class:`EngineFault` for non-2xx results and error bodies.

    With ``accept_not_found``, a 404 (or a 2xx carrying an error element) is
    logged at debug level and treated as a normal empty result.
    """

    def map_error(self, result: RawResult, accept_not_found: bool = False) -> None:
        if result.succeeded:
            return

        message = failure_message(result)
        if accept_not_found and (result.status_code < 300 or result.status_code == 404):
            logger.debug(message)
            return

        logger.error(message)
        raise EngineFault(message, result)

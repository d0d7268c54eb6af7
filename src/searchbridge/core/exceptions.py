"""Exceptions raised by the searchbridge core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from searchbridge.models.result import RawResult


class SearchBridgeError(Exception):
    """Base exception for searchbridge errors."""


class TransportFault(SearchBridgeError):
    """Raised when a request cannot be sent or its response cannot be decoded."""


class EngineFault(SearchBridgeError):
    """Raised when the search engine answers with a failure.

    The raw result is kept on the exception for inspection by the caller.
    """

    def __init__(self, message: str, result: RawResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class BatchError(SearchBridgeError):
    """Raised when one or more items of a bulk request failed.

    Items that succeeded are not rolled back.
    """

    def __init__(self, message: str, failures: dict[str, str]) -> None:
        super().__init__(message)
        self.failures = failures


class ConfigurationError(SearchBridgeError):
    """Raised when an index, type or identifier cannot be resolved."""


class MappingError(SearchBridgeError):
    """Raised when a document source cannot be converted to its target class."""

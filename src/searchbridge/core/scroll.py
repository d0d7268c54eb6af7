"""Scroll Iterator — Closeable iteration over a server-side scroll cursor.

States::

    READY ──has_next() with empty buffer──> ADVANCING ──page──> READY
      │                                         └──page without hits──> EXHAUSTED
      └──close()──> CLOSED  (EXHAUSTED ──close()──> CLOSED)

Exhaustion is decided from the raw hits of a page, so a page whose hits
all mapped to nothing does not end the iteration.

The iterator holds at most one cursor id and runs at most one continuation
at a time. It is meant to be consumed by a single thread.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from searchbridge.models.page import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _hit_count(page: Page[Any]) -> int:
    return max(page.hit_count or 0, len(page.content))


class ScrollState(str, Enum):
    READY = "ready"
    ADVANCING = "advancing"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class ScrollIterator(Generic[T]):
    """Iterates every document behind a scroll cursor.

    Args:
        first_page: Page returned when the scroll was opened.
        continue_scroll: Fetches the next page for a cursor id.
        clear_scroll: Releases a cursor id on the server.

    Example::

        with template.stream(query, Article) as articles:
            for article in articles:
                ...
    """

    def __init__(
        self,
        first_page: Page[T],
        continue_scroll: Callable[[str], Page[T]],
        clear_scroll: Callable[[str], Any],
    ) -> None:
        self._continue = continue_scroll
        self._clear = clear_scroll
        self._buffer: deque[T] = deque(first_page.content)
        self._scroll_id = first_page.scroll_id
        self._state = ScrollState.READY if _hit_count(first_page) else ScrollState.EXHAUSTED

    @property
    def state(self) -> ScrollState:
        return self._state

    @property
    def scroll_id(self) -> str | None:
        return self._scroll_id

    def has_next(self) -> bool:
        """True when another document is available, fetching a page if needed."""
        if self._buffer:
            return True
        if self._state in (ScrollState.EXHAUSTED, ScrollState.CLOSED):
            return False
        if self._scroll_id is None:
            self._state = ScrollState.EXHAUSTED
            return False

        while not self._buffer:
            self._state = ScrollState.ADVANCING
            try:
                page = self._continue(self._scroll_id)
            except Exception:
                self._state = ScrollState.READY
                raise

            self._buffer.extend(page.content)
            if page.scroll_id is not None:
                self._scroll_id = page.scroll_id
            if not _hit_count(page):
                self._state = ScrollState.EXHAUSTED
                return False

        self._state = ScrollState.READY
        return True

    def __iter__(self) -> ScrollIterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        return self._buffer.popleft()

    def close(self) -> None:
        """Release the cursor unless it was drained. Safe to call twice."""
        if self._state is ScrollState.CLOSED:
            return
        if self._state is not ScrollState.EXHAUSTED and self._scroll_id is not None:
            try:
                self._clear(self._scroll_id)
            except Exception as exc:
                logger.warning("Failed to clear scroll %s: %s", self._scroll_id, exc)
        self._buffer.clear()
        self._state = ScrollState.CLOSED

    def __enter__(self) -> ScrollIterator[T]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

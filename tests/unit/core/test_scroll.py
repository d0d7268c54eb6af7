"""Tests for the scroll iterator state machine."""

from __future__ import annotations

import pytest

from searchbridge.core.scroll import ScrollIterator, ScrollState
from searchbridge.models.page import Page

# ── Helpers ──────────────────────────────────────────────────────────────────


class FakeCursor:
    """Serves pre-built pages and records calls."""

    def __init__(self, pages: list[list[int]], fail_on: int | None = None) -> None:
        self.pages = pages
        self.fail_on = fail_on
        self.continued = 0
        self.cleared: list[str] = []

    def continue_scroll(self, scroll_id: str) -> Page[int]:
        self.continued += 1
        if self.fail_on == self.continued:
            raise ConnectionError("lost")
        content = self.pages.pop(0) if self.pages else []
        return Page(content=content, scroll_id=scroll_id)

    def clear_scroll(self, scroll_id: str) -> None:
        self.cleared.append(scroll_id)


def _iterator(first: list[int], cursor: FakeCursor, scroll_id: str | None = "s1") -> ScrollIterator[int]:
    return ScrollIterator(Page(content=first, scroll_id=scroll_id), cursor.continue_scroll, cursor.clear_scroll)


class TestScrollIterator:
    def test_drains_every_page(self):
        cursor = FakeCursor([[3, 4], [5]])
        it = _iterator([1, 2], cursor)
        assert list(it) == [1, 2, 3, 4, 5]
        assert it.state is ScrollState.EXHAUSTED
        assert cursor.continued == 3

    def test_empty_first_page_is_exhausted(self):
        cursor = FakeCursor([[1]])
        it = _iterator([], cursor)
        assert it.state is ScrollState.EXHAUSTED
        assert list(it) == []
        assert cursor.continued == 0

    def test_no_scroll_id_stops_after_first_page(self):
        cursor = FakeCursor([[9]])
        it = _iterator([1], cursor, scroll_id=None)
        assert list(it) == [1]
        assert cursor.continued == 0

    def test_has_next_is_idempotent(self):
        cursor = FakeCursor([[2]])
        it = _iterator([1], cursor)
        next(it)
        assert it.has_next()
        assert it.has_next()
        assert cursor.continued == 1
        assert next(it) == 2

    def test_close_clears_undrained_cursor(self):
        cursor = FakeCursor([[2]])
        it = _iterator([1], cursor)
        next(it)
        it.close()
        assert cursor.cleared == ["s1"]
        assert it.state is ScrollState.CLOSED
        assert not it.has_next()

    def test_close_after_exhaustion_does_not_clear(self):
        cursor = FakeCursor([])
        it = _iterator([1], cursor)
        list(it)
        it.close()
        assert cursor.cleared == []
        assert it.state is ScrollState.CLOSED

    def test_close_twice(self):
        cursor = FakeCursor([[2]])
        it = _iterator([1], cursor)
        it.close()
        it.close()
        assert cursor.cleared == ["s1"]

    def test_context_manager_closes(self):
        cursor = FakeCursor([[2]])
        with _iterator([1], cursor) as it:
            next(it)
        assert cursor.cleared == ["s1"]

    def test_failed_continuation_propagates_and_can_retry(self):
        cursor = FakeCursor([[2]], fail_on=1)
        it = _iterator([1], cursor)
        next(it)
        with pytest.raises(ConnectionError):
            it.has_next()
        assert it.state is ScrollState.READY
        assert next(it) == 2

    def test_clear_failure_is_logged_not_raised(self):
        def _broken_clear(scroll_id: str) -> None:
            raise ConnectionError("down")

        it = ScrollIterator(Page(content=[1], scroll_id="s1"), lambda sid: Page(), _broken_clear)
        it.close()
        assert it.state is ScrollState.CLOSED

    def test_page_of_unmapped_hits_does_not_end_iteration(self):
        pages = [Page(content=[], hit_count=2, scroll_id="s1"), Page(content=[7], hit_count=1, scroll_id="s1"), Page()]
        it = ScrollIterator(Page(content=[], hit_count=3, scroll_id="s1"), lambda sid: pages.pop(0), lambda sid: None)
        assert it.state is ScrollState.READY
        assert list(it) == [7]
        assert it.state is ScrollState.EXHAUSTED
        assert pages == []

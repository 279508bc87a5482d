"""Offset-based paging over foreign expenses."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from splitledger.domain.ports.foreign_ledger import ForeignExpense

log = getLogger(__name__)

type PageFetcher = Callable[[int, int], Sequence[ForeignExpense]]
"""Called as ``fetch(limit, offset)``."""


class ExpensePages:
    """Lazy, finite sequence of expense batches.

    Pages are requested one after another with a fixed ``page_size``. Iteration stops
    after the first page holding fewer than ``page_size`` records. ``offset`` points at
    the first record of the page being consumed and only moves past it once the next
    page is requested, so a run that failed mid-way can be resumed with
    ``ExpensePages(fetch, page_size=..., start_offset=pages.offset)``.
    """

    def __init__(self, fetch: PageFetcher, *, page_size: int, start_offset: int = 0) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if start_offset < 0:
            raise ValueError("start_offset must not be negative")
        self._fetch = fetch
        self.page_size = page_size
        self.start_offset = start_offset
        self.offset = start_offset
        self.pages_fetched = 0

    def __iter__(self) -> Iterator[Sequence[ForeignExpense]]:
        self.offset = self.start_offset
        self.pages_fetched = 0
        while True:
            page = self._fetch(self.page_size, self.offset)
            self.pages_fetched += 1
            log.debug("Fetched %d expense(s) at offset %d", len(page), self.offset)
            if page:
                yield page
                self.offset += len(page)
            if len(page) < self.page_size:
                return

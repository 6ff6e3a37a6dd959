"""Paginated catalogue feed and debounced search.

This module holds the list-screen state that does not depend on any UI:
which query is active, which page was loaded last, and the accumulated
items. Presentation layers call into it and render `CatalogFeed.items`.

Rules:
- Loading page 1 replaces the items; later pages append, skipping ids that
  are already present.
- A failed load raises `CatalogError` and leaves the current state untouched.
- A response that arrives after the feed moved to another query is dropped.
- Cancellation is never reported as a failure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from core.config import AppSettings
from core.domain.errors import CatalogError
from core.domain.models import CatalogItem, CatalogPage
from core.interfaces.catalog import CatalogSource

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


@dataclass
class FeedHooks:
    """Optional callbacks for UI layers."""

    loaded: Callable[[CatalogPage], None] | None = None
    failed: Callable[[CatalogError], None] | None = None


class CatalogFeed:
    """Accumulates pages of either the popular listing or a search."""

    def __init__(self, source: CatalogSource) -> None:
        self._source = source
        self._items: list[CatalogItem] = []
        self._seen_ids: set[int] = set()
        self._query: str | None = None
        self._current_page = 0
        self._total_pages = 1
        self._generation = 0

    @property
    def items(self) -> list[CatalogItem]:
        return list(self._items)

    @property
    def query(self) -> str | None:
        return self._query

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def has_more(self) -> bool:
        return self._current_page < self._total_pages

    @property
    def is_search(self) -> bool:
        return self._query is not None

    async def load_first_page(self, query: str | None = None) -> CatalogPage | None:
        """Load page 1 of `query` (or of the popular listing when blank).

        Returns None when a newer load superseded this one before it finished.
        """

        normalized = query.strip() if query and query.strip() else None
        self._generation += 1
        generation = self._generation

        page = await self._fetch(normalized, 1)
        if generation != self._generation:
            logger.debug("Dropping stale page 1 for %r", normalized)
            return None

        self._items = []
        self._seen_ids = set()
        self._query = normalized
        self._apply(page)
        return page

    async def load_next_page(self) -> CatalogPage | None:
        """Append the next page, or return None when there is nothing more to load."""

        if self._current_page == 0:
            return await self.load_first_page(self._query)
        if not self.has_more:
            return None

        generation = self._generation
        query = self._query
        page = await self._fetch(query, self._current_page + 1)
        if generation != self._generation:
            logger.debug("Dropping stale page %d for %r", page.page_number, query)
            return None

        self._apply(page)
        return page

    def reset(self) -> None:
        """Back to an empty popular listing; in-flight loads become stale."""

        self._generation += 1
        self._items = []
        self._seen_ids = set()
        self._query = None
        self._current_page = 0
        self._total_pages = 1

    async def _fetch(self, query: str | None, page: int) -> CatalogPage:
        if query is None:
            return await self._source.list_popular(page)
        return await self._source.search(query, page)

    def _apply(self, page: CatalogPage) -> None:
        added = 0
        for item in page.items:
            if item.id in self._seen_ids:
                continue
            self._seen_ids.add(item.id)
            self._items.append(item)
            added += 1
        self._current_page = page.page_number
        self._total_pages = page.total_pages
        logger.debug(
            "Feed page %d/%d applied (%d new, %d total)",
            page.page_number,
            page.total_pages,
            added,
            len(self._items),
        )


class SearchDebouncer:
    """Runs a search only after the input has been quiet for `delay` seconds.

    Each `submit` cancels the previous pending search; that cancellation is
    silent (no hook is called). Blank queries are ignored.
    """

    def __init__(
        self,
        feed: CatalogFeed,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        hooks: FeedHooks | None = None,
    ) -> None:
        self._feed = feed
        self._delay = max(0.0, delay)
        self._hooks = hooks or FeedHooks()
        self._pending: asyncio.Task[CatalogPage | None] | None = None

    @classmethod
    def from_settings(
        cls,
        feed: CatalogFeed,
        settings: AppSettings,
        *,
        hooks: FeedHooks | None = None,
    ) -> SearchDebouncer:
        """Debouncer using `AppSettings.search_debounce_seconds` as the delay."""

        return cls(feed, delay=settings.search_debounce_seconds, hooks=hooks)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def submit(self, query: str) -> asyncio.Task[CatalogPage | None] | None:
        if not query or not query.strip():
            return None
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._run(query.strip()))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def wait(self) -> CatalogPage | None:
        """Wait for the pending search, if any. A cancelled search yields None."""

        task = self._pending
        if task is None:
            return None
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def _run(self, query: str) -> CatalogPage | None:
        await asyncio.sleep(self._delay)
        try:
            page = await self._feed.load_first_page(query)
        except CatalogError as exc:
            logger.warning("Search %r failed: %s", query, exc)
            if self._hooks.failed:
                self._hooks.failed(exc)
            return None
        if page is not None and self._hooks.loaded:
            self._hooks.loaded(page)
        return page

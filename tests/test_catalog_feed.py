"""Tests for CatalogFeed pagination state and SearchDebouncer."""

from __future__ import annotations

import asyncio

import pytest

from core.domain.errors import CatalogError, ErrorKind
from core.domain.models import CatalogPage, TrailerReference
from core.interfaces.catalog import CatalogSource
from core.services.catalog_feed import CatalogFeed, FeedHooks, SearchDebouncer
from tests.conftest import make_settings, page_payload


class FakeCatalog:
    """In-memory CatalogSource: pages keyed by (query, page)."""

    def __init__(self, pages: dict[tuple[str | None, int], CatalogPage]) -> None:
        self.pages = pages
        self.calls: list[tuple[str | None, int]] = []
        self.fail_with: CatalogError | None = None
        self.gates: dict[tuple[str | None, int], asyncio.Event] = {}

    async def _get(self, query: str | None, page: int) -> CatalogPage:
        self.calls.append((query, page))
        gate = self.gates.get((query, page))
        if gate is not None:
            await gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return self.pages[(query, page)]

    async def list_popular(self, page: int = 1) -> CatalogPage:
        return await self._get(None, page)

    async def search(self, query: str, page: int = 1) -> CatalogPage:
        return await self._get(query, page)

    async def fetch_trailer(self, item_id: int) -> TrailerReference:
        raise CatalogError(ErrorKind.MISSING_DATA)


def _page(page: int, ids: list[int], total_pages: int) -> CatalogPage:
    return CatalogPage.model_validate(page_payload(page, ids, total_pages=total_pages))


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        {
            (None, 1): _page(1, [1, 2, 3], total_pages=2),
            (None, 2): _page(2, [3, 4, 5], total_pages=2),
            ("alien", 1): _page(1, [10, 11], total_pages=1),
            ("aliens", 1): _page(1, [12], total_pages=1),
        }
    )


class TestCatalogFeed:
    """Page accumulation rules."""

    def test_fake_satisfies_protocol(self, catalog):
        assert isinstance(catalog, CatalogSource)

    @pytest.mark.asyncio
    async def test_first_page_then_next_appends_without_duplicates(self, catalog):
        feed = CatalogFeed(catalog)

        await feed.load_first_page()
        assert feed.has_more
        await feed.load_next_page()

        assert [item.id for item in feed.items] == [1, 2, 3, 4, 5]
        assert feed.current_page == 2
        assert not feed.has_more
        assert await feed.load_next_page() is None
        assert catalog.calls == [(None, 1), (None, 2)]

    @pytest.mark.asyncio
    async def test_next_page_on_empty_feed_loads_first(self, catalog):
        feed = CatalogFeed(catalog)

        page = await feed.load_next_page()

        assert page.page_number == 1
        assert catalog.calls == [(None, 1)]

    @pytest.mark.asyncio
    async def test_search_replaces_items(self, catalog):
        feed = CatalogFeed(catalog)
        await feed.load_first_page()

        await feed.load_first_page("  alien ")

        assert feed.query == "alien"
        assert feed.is_search
        assert [item.id for item in feed.items] == [10, 11]
        assert not feed.has_more

    @pytest.mark.asyncio
    async def test_failed_load_keeps_existing_items(self, catalog):
        feed = CatalogFeed(catalog)
        await feed.load_first_page()
        catalog.fail_with = CatalogError.from_status(500)

        with pytest.raises(CatalogError):
            await feed.load_next_page()
        with pytest.raises(CatalogError):
            await feed.load_first_page("alien")

        assert [item.id for item in feed.items] == [1, 2, 3]
        assert feed.current_page == 1
        assert feed.query is None

    @pytest.mark.asyncio
    async def test_stale_next_page_is_dropped(self, catalog):
        feed = CatalogFeed(catalog)
        await feed.load_first_page()
        catalog.gates[(None, 2)] = asyncio.Event()

        next_task = asyncio.create_task(feed.load_next_page())
        await asyncio.sleep(0)
        await feed.load_first_page("alien")
        catalog.gates[(None, 2)].set()

        assert await next_task is None
        assert [item.id for item in feed.items] == [10, 11]

    @pytest.mark.asyncio
    async def test_reset(self, catalog):
        feed = CatalogFeed(catalog)
        await feed.load_first_page("alien")

        feed.reset()

        assert feed.items == []
        assert feed.query is None
        assert feed.current_page == 0


class TestSearchDebouncer:
    """Debounced search behaviour."""

    @pytest.mark.asyncio
    async def test_only_last_query_runs(self, catalog):
        loaded: list[CatalogPage] = []
        failed: list[CatalogError] = []
        feed = CatalogFeed(catalog)
        debouncer = SearchDebouncer(feed, delay=0.01, hooks=FeedHooks(loaded=loaded.append, failed=failed.append))

        debouncer.submit("ali")
        debouncer.submit("alien")
        debouncer.submit("aliens")
        page = await debouncer.wait()

        assert catalog.calls == [("aliens", 1)]
        assert page is loaded[0]
        assert failed == []
        assert [item.id for item in feed.items] == [12]

    @pytest.mark.asyncio
    async def test_superseded_search_is_silent(self, catalog):
        loaded: list[CatalogPage] = []
        failed: list[CatalogError] = []
        debouncer = SearchDebouncer(
            CatalogFeed(catalog),
            delay=0.01,
            hooks=FeedHooks(loaded=loaded.append, failed=failed.append),
        )

        first = debouncer.submit("alien")
        debouncer.submit("aliens")
        await debouncer.wait()
        await asyncio.sleep(0)

        assert first.cancelled()
        assert len(loaded) == 1
        assert failed == []

    @pytest.mark.asyncio
    async def test_blank_query_is_ignored(self, catalog):
        debouncer = SearchDebouncer(CatalogFeed(catalog), delay=0.01)

        assert debouncer.submit("   ") is None
        assert not debouncer.pending
        assert await debouncer.wait() is None

    @pytest.mark.asyncio
    async def test_failure_goes_to_hook(self, catalog):
        failed: list[CatalogError] = []
        catalog.fail_with = CatalogError(ErrorKind.TRANSPORT)
        debouncer = SearchDebouncer(CatalogFeed(catalog), delay=0.0, hooks=FeedHooks(failed=failed.append))

        debouncer.submit("alien")
        assert await debouncer.wait() is None

        assert [error.kind for error in failed] == [ErrorKind.TRANSPORT]

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_search(self, catalog):
        debouncer = SearchDebouncer(CatalogFeed(catalog), delay=0.05)

        task = debouncer.submit("alien")
        debouncer.cancel()
        await asyncio.sleep(0.1)

        assert task.cancelled()
        assert catalog.calls == []

    @pytest.mark.asyncio
    async def test_delay_comes_from_settings(self, catalog):
        settings = make_settings(search_debounce_seconds=0.02)
        loaded: list[CatalogPage] = []
        debouncer = SearchDebouncer.from_settings(CatalogFeed(catalog), settings, hooks=FeedHooks(loaded=loaded.append))

        assert debouncer.delay == 0.02

        debouncer.submit("alien")
        await asyncio.sleep(0)
        assert catalog.calls == []
        await debouncer.wait()

        assert catalog.calls == [("alien", 1)]
        assert len(loaded) == 1

"""Pytest fixtures and configuration."""

import asyncio
import os
from typing import Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pokedex.data.source import DataSource, DataSourceError
from pokedex.domain.models import PAGE_SIZE, Entity, ListFilters, SortKey, SortOrder

NAMED = {
    1: "bulbasaur",
    4: "charmander",
    5: "charmeleon",
    6: "charizard",
    25: "pikachu",
}


def make_catalog(total: int = 137) -> list[Entity]:
    """Entities 1..total; a few carry real names for search tests."""
    return [
        Entity(
            id=i,
            display_name=NAMED.get(i, f"mon-{i:03d}"),
            category_tags=("fire",) if i in (4, 5, 6) else ("normal",),
            group_id=1,
        )
        for i in range(1, total + 1)
    ]


class FakeDataSource(DataSource):
    """In-memory data source that answers immediately and records calls."""

    def __init__(self, catalog: Optional[list[Entity]] = None, page_size: int = PAGE_SIZE):
        self.catalog = catalog if catalog is not None else make_catalog()
        self.page_size = page_size
        self.calls: list[tuple] = []
        self.error: Optional[Exception] = None
        self.closed = False

    def _page(self, rows: list[Entity], page: int) -> list[Entity]:
        start = (page - 1) * self.page_size
        return rows[start:start + self.page_size]

    async def fetch_page(self, filters, sort_order, sort_by, page):
        self.calls.append(("fetch", filters, sort_order, sort_by, page))
        if self.error:
            raise self.error

        rows = [e for e in self.catalog if not filters.type or filters.type in e.category_tags]
        key = (lambda e: e.id) if sort_by == SortKey.ID else (lambda e: e.display_name)
        rows.sort(key=key, reverse=sort_order == SortOrder.DESC)
        return self._page(rows, page)

    async def search_page(self, query, page):
        self.calls.append(("search", query, page))
        if self.error:
            raise self.error

        rows = [e for e in self.catalog if query in e.display_name]
        return self._page(rows, page)

    async def close(self):
        self.closed = True

    @property
    def pages_requested(self) -> list[int]:
        return [call[-1] for call in self.calls]


class ControlledDataSource(DataSource):
    """Data source whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.calls: list[tuple] = []
        self._futures: list[asyncio.Future] = []

    async def _wait(self, call: tuple) -> list[Entity]:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(call)
        self._futures.append(future)
        return await future

    async def fetch_page(self, filters, sort_order, sort_by, page):
        return await self._wait(("fetch", filters, sort_order, sort_by, page))

    async def search_page(self, query, page):
        return await self._wait(("search", query, page))

    def resolve(self, index: int, items: list[Entity]) -> None:
        self._futures[index].set_result(items)

    def fail(self, index: int, error: Exception) -> None:
        self._futures[index].set_exception(error)


async def settle() -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def make_entity():
    """Factory fixture for creating test entities."""

    def _make(**kwargs):
        defaults = {
            "id": 1,
            "display_name": "bulbasaur",
            "category_tags": ("grass", "poison"),
            "group_id": 1,
        }
        defaults.update(kwargs)
        return Entity(**defaults)

    return _make


@pytest.fixture
def make_batch():
    """Factory fixture for a batch of ``count`` entities starting at ``start``."""

    def _make(count: int, start: int = 1):
        return [Entity(id=i, display_name=f"mon-{i:03d}") for i in range(start, start + count)]

    return _make


@pytest.fixture
def fake_source():
    return FakeDataSource()


@pytest.fixture
def controlled_source():
    return ControlledDataSource()


@pytest.fixture
def fire_filters():
    return ListFilters(type="fire")


@pytest.fixture
def transient_error():
    return DataSourceError("connection reset by peer")


@pytest.fixture
def make_source():
    """Factory fixture for a FakeDataSource over a custom catalog."""

    def _make(total: int = 137, page_size: int = PAGE_SIZE):
        return FakeDataSource(make_catalog(total), page_size=page_size)

    return _make


@pytest.fixture
def drain_loop():
    """Coroutine function that lets pending tasks run until they block."""
    return settle

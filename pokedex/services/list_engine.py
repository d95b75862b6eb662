"""List engine: the single writer of the list view state.

Accepts intents (load, load more, search, update filters), issues the
matching data source fetch and commits the result as a new ViewState.

Every fetching intent takes a new generation token. A result whose token is
no longer current was superseded by a later intent and is dropped, so the
last *issued* request wins rather than the last to *resolve*.
"""

import asyncio
import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject

from pokedex.data.resilience import get_user_message
from pokedex.data.source import DataSource, DataSourceError
from pokedex.domain.models import (
    PAGE_SIZE,
    Entity,
    Failed,
    Fetching,
    Intent,
    ListFilters,
    LoadList,
    LoadMore,
    Ready,
    Search,
    SortKey,
    SortOrder,
    UpdateFilters,
    ViewState,
)
from pokedex.services import pagination
from pokedex.state.observable import StateStore

logger = logging.getLogger(__name__)


class ListEngine(QObject):
    """State machine driving the paginated, searchable list.

    The data source is injected; the engine holds no global client.

    Example:
        >>> engine = ListEngine(GraphQLDataSource.from_settings(settings.api))
        >>> engine.subscribe(render)
        >>> engine.load_list()
        >>> engine.load_more()
    """

    def __init__(
        self,
        source: DataSource,
        page_size: int = PAGE_SIZE,
        parent: Optional[QObject] = None,
    ):
        """Initialize engine in the Idle state.

        Args:
            source: Data source for browse and search pages
            page_size: Rows per page, must match the source's page size
            parent: Optional Qt parent object
        """
        super().__init__(parent)
        self._source = source
        self._page_size = page_size
        self._store = StateStore(parent=self)
        self._generation = 0
        self._load_more_in_flight = False
        self._tasks: set[asyncio.Task] = set()

        # Last browse criteria, used to leave search mode
        self._filters = ListFilters()
        self._sort_order = SortOrder.ASC
        self._sort_by = SortKey.ID

    # Observation

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def state(self) -> ViewState:
        return self._store.value

    def current_state(self) -> ViewState:
        return self._store.value

    def subscribe(self, callback: Callable[[ViewState], None]) -> Callable[[], None]:
        """Subscribe to every emitted state.

        Returns:
            Function that removes the subscription
        """
        return self._store.subscribe(callback)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        """True from acceptance of a LoadMore until its fetch settles."""
        return self._load_more_in_flight

    @property
    def page_size(self) -> int:
        return self._page_size

    # Dispatch surface

    def dispatch(self, intent: Intent) -> Optional[asyncio.Task]:
        """Schedule an intent on the running event loop.

        Args:
            intent: Intent to process

        Returns:
            Task processing the intent, or None if the intent is a no-op
        """
        if isinstance(intent, LoadMore):
            if not self._accepts_load_more():
                return None
            # Claim the slot now; a second LoadMore in the same tick is refused
            self._load_more_in_flight = True
            work = self._load_more(claimed_generation=self._generation)
        else:
            work = self.handle(intent)

        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def load_list(
        self,
        filters: Optional[ListFilters] = None,
        sort_order: SortOrder = SortOrder.ASC,
        sort_by: SortKey = SortKey.ID,
        focus_id: int = 1,
    ) -> Optional[asyncio.Task]:
        return self.dispatch(LoadList(filters or ListFilters(), sort_order, sort_by, focus_id))

    def load_more(self) -> Optional[asyncio.Task]:
        return self.dispatch(LoadMore())

    def search(self, query: str) -> Optional[asyncio.Task]:
        return self.dispatch(Search(query))

    def update_filters(
        self,
        filters: Optional[ListFilters] = None,
        sort_order: SortOrder = SortOrder.ASC,
        sort_by: SortKey = SortKey.ID,
        ability: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """Apply new browse criteria from the filter dialog.

        Args:
            filters: Type/generation/ability filters
            sort_order: Ascending or descending
            sort_by: Field to order by
            ability: Ability filter, overrides ``filters.ability`` when given
        """
        filters = filters or ListFilters()
        if ability is not None:
            filters = filters.with_updates(ability=ability or None)
        return self.dispatch(UpdateFilters(filters, sort_order, sort_by))

    async def drain(self) -> None:
        """Wait until every dispatched intent has been processed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def shutdown(self) -> None:
        """Cancel outstanding work; results of cancelled fetches are never committed."""
        self._generation += 1
        self._load_more_in_flight = False
        for task in list(self._tasks):
            task.cancel()

    async def handle(self, intent: Intent) -> None:
        """Process one intent to completion.

        Args:
            intent: Intent to process

        Raises:
            TypeError: If ``intent`` is not a known intent
        """
        logger.debug(f"Handling {intent}")

        if isinstance(intent, LoadMore):
            await self._load_more()
        elif isinstance(intent, Search):
            await self._search(intent.query)
        elif isinstance(intent, LoadList):
            await self._load_list(intent.filters, intent.sort_order, intent.sort_by, intent.focus_id)
        elif isinstance(intent, UpdateFilters):
            await self._load_list(intent.filters, intent.sort_order, intent.sort_by, focus_id=1)
        else:
            raise TypeError(f"Unknown intent: {intent!r}")

    # Transitions

    def _next_generation(self) -> int:
        self._generation += 1
        # A pending append belongs to the superseded list
        self._load_more_in_flight = False
        return self._generation

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation != self._generation:
            logger.debug(f"Discarding stale {what} result (generation {generation}, current {self._generation})")
            return True
        return False

    def _accepts_load_more(self) -> bool:
        if self._load_more_in_flight:
            logger.debug("LoadMore ignored: another page is already in flight")
            return False
        if not pagination.can_load_more(self.state):
            logger.debug(f"LoadMore ignored in state {type(self.state).__name__}")
            return False
        return True

    def _fail(self, error: Exception, what: str) -> str:
        if isinstance(error, DataSourceError):
            logger.warning(f"{what} failed: {error}")
        else:
            logger.exception(f"{what} failed with unexpected error")
        return str(error) or type(error).__name__

    async def _load_list(
        self,
        filters: ListFilters,
        sort_order: SortOrder,
        sort_by: SortKey,
        focus_id: int,
    ) -> None:
        self._filters = filters
        self._sort_order = sort_order
        self._sort_by = sort_by

        generation = self._next_generation()
        self._store.set(Fetching())

        try:
            batch = await self._source.fetch_page(filters, sort_order, sort_by, 1)
        except Exception as e:
            if not self._is_stale(generation, "load"):
                self._store.set(Failed(self._fail(e, "Load")))
            return

        if self._is_stale(generation, "load"):
            return

        self._store.set(Ready(
            items=tuple(batch),
            active_focus_id=focus_id,
            filters=filters,
            sort_order=sort_order,
            sort_by=sort_by,
            exhausted=pagination.is_exhausted(len(batch), self._page_size),
        ))
        logger.info(f"Loaded {len(batch)} entities ({filters})")

    async def _search(self, query: str) -> None:
        query = query.strip()
        if not query:
            await self._load_list(self._filters, self._sort_order, self._sort_by, focus_id=1)
            return

        generation = self._next_generation()
        self._store.set(Fetching())

        try:
            batch = await self._source.search_page(query, 1)
        except Exception as e:
            if not self._is_stale(generation, "search"):
                self._store.set(Failed(self._fail(e, f"Search for {query!r}")))
            return

        if self._is_stale(generation, "search"):
            return

        self._store.set(Ready(
            items=tuple(batch),
            active_focus_id=1,
            search_query=query,
            filters=self._filters,
            sort_order=self._sort_order,
            sort_by=self._sort_by,
            exhausted=pagination.is_exhausted(len(batch), self._page_size),
            search_page_cursor=1,
        ))
        logger.info(f"Search {query!r} returned {len(batch)} entities")

    async def _load_more(self, claimed_generation: Optional[int] = None) -> None:
        if claimed_generation is None:
            if not self._accepts_load_more():
                return
        elif claimed_generation != self._generation:
            logger.debug("LoadMore dropped: the list was replaced before it started")
            return

        state: Ready = self.state
        page = pagination.next_page(state, self._page_size)
        generation = self._next_generation()
        self._load_more_in_flight = True

        try:
            batch = await self._fetch_more(state, page)
        except Exception as e:
            if not self._is_stale(generation, "load more"):
                self._load_more_in_flight = False
                self._fail(e, f"Loading page {page}")
                self._store.set(state.with_updates(load_more_error=get_user_message(e)))
            return

        if self._is_stale(generation, "load more"):
            return

        self._load_more_in_flight = False
        exhausted = pagination.is_exhausted(len(batch), self._page_size)
        items = state.items + tuple(batch)

        if state.is_search_mode:
            cursor = page
        else:
            cursor = state.search_page_cursor
            pagination.check_batch_alignment(len(items), self._page_size, exhausted)

        self._store.set(state.with_updates(
            items=items,
            exhausted=exhausted,
            search_page_cursor=cursor,
            load_more_error=None,
        ))
        logger.debug(f"Appended page {page}: {len(batch)} entities, {len(items)} total")

    async def _fetch_more(self, state: Ready, page: int) -> list[Entity]:
        if state.is_search_mode:
            return await self._source.search_page(state.search_query, page)
        return await self._source.fetch_page(state.filters, state.sort_order, state.sort_by, page)

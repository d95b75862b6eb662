"""Application context and dependency injection.

The ApplicationContext wires together the data source, list engine and
input collaborators and provides them to the UI layer.
"""

import logging
from pathlib import Path
from typing import Optional

from pokedex.data.graphql_source import GraphQLDataSource
from pokedex.data.source import DataSource
from pokedex.domain.models import Fetching, ViewState
from pokedex.domain.settings import AppSettings
from pokedex.services.debounce import DebounceGate, DebounceTimer
from pokedex.services.list_engine import ListEngine
from pokedex.services.scroll_trigger import ScrollTrigger
from pokedex.state.persistence import SettingsStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ApplicationContext:
    """Application context providing dependency injection.

    Example:
        >>> ctx = ApplicationContext()
        >>> ctx.engine.subscribe(render)
        >>> ctx.search_box_changed("pik")   # debounced
        >>> ctx.scrolled(950, 1000)         # may trigger load more
        >>> await ctx.close()
    """

    def __init__(
        self,
        settings_path: Optional[Path] = None,
        source: Optional[DataSource] = None,
        debounce_timer: Optional[DebounceTimer] = None,
        settings: Optional[AppSettings] = None,
    ):
        """Initialize application context.

        Args:
            settings_path: Optional settings file path.
                           Defaults to ~/.pokedex_settings.json
            source: Data source override; a GraphQL source is built from
                    settings when omitted
            debounce_timer: Timer override for the search debounce
            settings: Settings override; loaded from the store when omitted
        """
        self.settings_store = SettingsStore(settings_path)
        self.settings: AppSettings = settings or self.settings_store.load()

        page_size = self.settings.paging.page_size
        self.source: DataSource = source or GraphQLDataSource.from_settings(
            self.settings.api, page_size=page_size
        )

        self.engine = ListEngine(self.source, page_size=page_size)

        self.search_gate = DebounceGate(self.settings.search.debounce_ms, timer=debounce_timer)
        self.search_gate.connect_to(self.engine)

        self.scroll_trigger = ScrollTrigger(self.settings.scroll.threshold)
        self.scroll_trigger.connect_to(self.engine)

        self.engine.subscribe(self._on_state_changed)

    def _on_state_changed(self, state: ViewState) -> None:
        # A replacing fetch starts a new list; scroll position starts over
        if isinstance(state, Fetching):
            self.scroll_trigger.reset()

    def configure_logging(self) -> None:
        """Apply the configured log level to the root logger."""
        logging.basicConfig(level=self.settings.logging.level, format=LOG_FORMAT)
        logging.getLogger().setLevel(self.settings.logging.level)
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)

    def search_box_changed(self, text: str) -> None:
        """Forward a keystroke to the debounce gate."""
        self.search_gate.feed(text)

    def scrolled(self, offset: float, max_extent: float) -> None:
        """Forward a scroll position to the scroll trigger."""
        self.scroll_trigger.observe(offset, max_extent)

    def save_settings(self) -> None:
        self.settings_store.save(self.settings)

    async def close(self) -> None:
        """Cancel pending work and release the data source."""
        self.search_gate.cancel()
        self.engine.shutdown()
        await self.source.close()
        logger.info("Application context closed")

"""Scroll trigger for infinite scroll."""

import logging
from typing import TYPE_CHECKING, Optional

from PySide6.QtCore import QObject, Signal

if TYPE_CHECKING:
    from pokedex.services.list_engine import ListEngine

logger = logging.getLogger(__name__)


class ScrollTrigger(QObject):
    """Emits ``load_more_requested`` when the list is scrolled near its end.

    Fires once per crossing of the threshold. It re-arms when the offset
    drops back below the threshold or when the scroll extent grows (a new
    page was rendered).

    Signals:
        load_more_requested(): Emitted once per threshold crossing
    """

    load_more_requested = Signal()

    def __init__(self, threshold: float = 0.9, parent: Optional[QObject] = None):
        """Initialize trigger.

        Args:
            threshold: Fraction of the maximum extent that triggers loading
            parent: Optional Qt parent object
        """
        super().__init__(parent)
        if not 0.0 < threshold <= 1.0:
            raise ValueError("Threshold must be in (0, 1]")

        self._threshold = threshold
        self._armed = True
        self._last_extent = 0.0

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def armed(self) -> bool:
        return self._armed

    def observe(self, offset: float, max_extent: float) -> bool:
        """Report the current scroll position.

        Args:
            offset: Current scroll offset
            max_extent: Maximum scroll offset

        Returns:
            True if a load was requested by this call
        """
        if max_extent > self._last_extent:
            self._armed = True
        self._last_extent = max_extent

        # Nothing to scroll yet
        if max_extent <= 0:
            return False

        if offset < max_extent * self._threshold:
            self._armed = True
            return False

        if not self._armed:
            return False

        self._armed = False
        logger.debug(f"Scroll threshold crossed at {offset:.0f}/{max_extent:.0f}")
        self.load_more_requested.emit()
        return True

    def reset(self) -> None:
        """Re-arm, e.g. after the list was replaced."""
        self._armed = True
        self._last_extent = 0.0

    def connect_to(self, engine: "ListEngine") -> None:
        """Route load requests to ``engine.load_more``."""
        self.load_more_requested.connect(engine.load_more)

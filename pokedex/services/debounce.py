"""Debounce gate between the search box and the list engine.

Raw keystrokes go in through ``feed``; a normalized query comes out through
``query_ready`` once the input has been quiet for the debounce window.
"""

import logging
import re
import unicodedata
from typing import TYPE_CHECKING, Callable, Optional, Protocol

from PySide6.QtCore import QObject, QTimer, Signal

if TYPE_CHECKING:
    from pokedex.services.list_engine import ListEngine

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500

_WHITESPACE = re.compile(r"\s+")


def normalize_query(text: str) -> str:
    """Normalize raw search input.

    Example:
        >>> normalize_query("  Mr.   MIME ")
        'mr. mime'
    """
    text = unicodedata.normalize("NFKC", text)
    return _WHITESPACE.sub(" ", text).strip().lower()


class DebounceTimer(Protocol):
    """Single-shot timer the gate restarts on every keystroke."""

    def set_callback(self, callback: Callable[[], None]) -> None: ...

    def start(self, interval_ms: int) -> None: ...

    def stop(self) -> None: ...

    def is_active(self) -> bool: ...


class QtDebounceTimer:
    """DebounceTimer backed by a single-shot QTimer."""

    def __init__(self, parent: Optional[QObject] = None):
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._on_timeout)

    def set_callback(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def start(self, interval_ms: int) -> None:
        # QTimer.start restarts an active timer
        self._timer.start(interval_ms)

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self) -> None:
        if self._callback:
            self._callback()


class DebounceGate(QObject):
    """Suppresses intermediate keystrokes so only a settled query is searched.

    At most one ``query_ready`` per quiet window; the last keystroke is
    always delivered once the window elapses.

    Signals:
        query_ready(str): Normalized query, emitted after the quiet window
    """

    query_ready = Signal(str)

    def __init__(
        self,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        timer: Optional[DebounceTimer] = None,
        parent: Optional[QObject] = None,
    ):
        """Initialize gate.

        Args:
            debounce_ms: Quiet window in milliseconds
            timer: Timer implementation, a QTimer-backed one by default
            parent: Optional Qt parent object
        """
        super().__init__(parent)
        self._debounce_ms = debounce_ms
        self._timer = timer or QtDebounceTimer(self)
        self._timer.set_callback(self._on_quiet)
        self._pending: Optional[str] = None

    @property
    def debounce_ms(self) -> int:
        return self._debounce_ms

    @property
    def pending(self) -> Optional[str]:
        """Raw text waiting for the window to elapse, if any."""
        return self._pending

    def feed(self, text: str) -> None:
        """Accept a keystroke; restarts the quiet window.

        Args:
            text: Full current contents of the search box
        """
        self._pending = text
        self._timer.stop()
        self._timer.start(self._debounce_ms)

    def flush(self) -> None:
        """Emit the pending query now (Enter pressed)."""
        self._timer.stop()
        text = self._pending
        self._pending = None
        if text is not None:
            self._emit(normalize_query(text))

    def cancel(self) -> None:
        """Drop the pending query without emitting."""
        self._timer.stop()
        self._pending = None

    def connect_to(self, engine: "ListEngine") -> None:
        """Route emitted queries to ``engine.search``."""
        self.query_ready.connect(engine.search)

    def _on_quiet(self) -> None:
        text = self._pending
        self._pending = None
        if text is None:
            return

        self._emit(normalize_query(text))

    def _emit(self, query: str) -> None:
        logger.debug(f"Search query settled: {query!r}")
        self.query_ready.emit(query)

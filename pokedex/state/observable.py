"""Observable view-state holder with Qt signal integration.

The list engine is the only writer; views subscribe and re-render on every
emitted snapshot.
"""

from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from pokedex.domain.models import Idle, ViewState


class StateStore(QObject):
    """Holds the current ViewState and broadcasts every transition.

    Unlike a plain value observable, ``set`` always emits: two consecutive
    ``Fetching`` states are still two transitions the view may care about.

    Signals:
        changed(ViewState): Emitted with the new state
        transitioned(ViewState, ViewState): Emitted with (previous, new)

    Example:
        >>> store = StateStore()
        >>> store.subscribe(lambda state: print(type(state).__name__))
        >>> store.set(Fetching())  # Prints: "Fetching"
    """

    changed = Signal(object)
    transitioned = Signal(object, object)

    def __init__(self, initial: Optional[ViewState] = None, parent: Optional[QObject] = None):
        """Initialize store.

        Args:
            initial: Starting state, ``Idle`` when omitted
            parent: Optional Qt parent object
        """
        super().__init__(parent)
        self._value: ViewState = initial if initial is not None else Idle()
        self._emit_count = 0

    @property
    def value(self) -> ViewState:
        return self._value

    @property
    def emit_count(self) -> int:
        """Number of states emitted since construction."""
        return self._emit_count

    def set(self, new_state: ViewState) -> None:
        """Replace the current state and notify subscribers.

        Args:
            new_state: State to publish
        """
        previous = self._value
        self._value = new_state
        self._emit_count += 1
        self.transitioned.emit(previous, new_state)
        self.changed.emit(new_state)

    def subscribe(self, callback: Callable[[ViewState], None]) -> Callable[[], None]:
        """Subscribe to state changes.

        Args:
            callback: Function called with each new state

        Returns:
            Function that removes the subscription
        """
        self.changed.connect(callback)

        def unsubscribe() -> None:
            self.changed.disconnect(callback)

        return unsubscribe

"""Observable state containers.

A notifier owns one immutable snapshot. Mutators build a new snapshot and
swap it in; every swap is pushed to the subscribed listeners.

Snapshots are computed and swapped under the notifier lock; listeners are
called after it is released.
"""
import logging
import threading
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class StateNotifier(Generic[T]):
    def __init__(self, initial: T):
        self._state = initial
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._sequence = 0

    @property
    def state(self) -> T:
        return self._state

    def _notify(self, new_state: T) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(new_state)
            except Exception:
                logger.exception(f"{type(self).__name__} listener failed")

    def _set_state(self, new_state: T) -> None:
        with self._lock:
            self._state = new_state
        self._notify(new_state)

    def _modify(self, change: Callable[[T], Optional[T]]) -> Optional[T]:
        """Swap in ``change(state)``; a ``None`` result leaves the state untouched."""
        with self._lock:
            new_state = change(self._state)
            if new_state is None:
                return None
            self._state = new_state
        self._notify(new_state)
        return new_state

    def _update(self, **changes) -> T:
        """Replace the snapshot with a copy carrying ``changes``."""
        return self._modify(lambda state: state.copy_with(**changes))

    def subscribe(self, listener: Listener, fire_immediately: bool = False) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        if fire_immediately:
            listener(self._state)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------
    # request ordering
    # ------------------------------------------------------------

    def _next_sequence(self) -> int:
        with self._lock:
            self._sequence += 1
            return self._sequence

    def _is_latest(self, sequence: int) -> bool:
        """False once a newer request has started; its result must not be applied."""
        return sequence == self._sequence

    def _update_if_latest(self, sequence: int, **changes) -> bool:
        """Apply ``changes`` only if no newer request has started since ``sequence``."""
        new_state = self._modify(
            lambda state: state.copy_with(**changes) if self._is_latest(sequence) else None
        )
        return new_state is not None

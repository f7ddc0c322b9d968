"""A small synchronous event emitter."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from mediasoup.log import new_logger

Listener = Callable[..., Any]

_logger = new_logger("EventEmitter")


@dataclass(eq=False)
class _Entry:
    listener: Listener
    once: bool


class EventEmitter:
    """Registers listeners per event and calls them synchronously on emit."""

    def __init__(self) -> None:
        self._listeners: dict[Hashable, list[_Entry]] = {}
        self._listeners_lock = threading.RLock()

    def on(self, event: Hashable, listener: Listener) -> None:
        """Call ``listener`` every time ``event`` is emitted."""
        self._add(event, listener, once=False)

    def once(self, event: Hashable, listener: Listener) -> None:
        """Call ``listener`` the next time ``event`` is emitted, then forget it."""
        self._add(event, listener, once=True)

    def off(self, event: Hashable, listener: Listener) -> None:
        """Remove the first registration of ``listener`` for ``event``."""
        with self._listeners_lock:
            entries = self._listeners.get(event)
            if not entries:
                return
            for index, entry in enumerate(entries):
                if entry.listener == listener:
                    del entries[index]
                    break
            if not entries:
                del self._listeners[event]

    def emit(self, event: Hashable, *args: Any) -> bool:
        """Call the listeners of ``event``; their exceptions propagate.

        Returns whether any listener was registered.
        """
        entries = self._take(event)
        for entry in entries:
            entry.listener(*args)
        return bool(entries)

    def safe_emit(self, event: Hashable, *args: Any) -> bool:
        """Like :meth:`emit`, but a failing listener is logged and skipped."""
        entries = self._take(event)
        for entry in entries:
            try:
                entry.listener(*args)
            except Exception as exc:  # noqa: BLE001 - listeners must not break emitters
                _logger.error("safe_emit() | event listener threw an error [event:%s]: %s", event, exc)
        return bool(entries)

    def remove_all_listeners(self, event: Hashable | None = None) -> None:
        """Remove the listeners of ``event``, or of every event when it is None."""
        with self._listeners_lock:
            if event is None:
                self._listeners.clear()
            else:
                self._listeners.pop(event, None)

    def listener_count(self, event: Hashable) -> int:
        """Number of listeners registered for ``event``."""
        with self._listeners_lock:
            return len(self._listeners.get(event, ()))

    def _add(self, event: Hashable, listener: Listener, once: bool) -> None:
        if not callable(listener):
            raise TypeError("listener must be callable")
        with self._listeners_lock:
            self._listeners.setdefault(event, []).append(_Entry(listener, once))

    def _take(self, event: Hashable) -> list[_Entry]:
        with self._listeners_lock:
            current = self._listeners.get(event)
            if not current:
                return []
            snapshot = list(current)
            remaining = [entry for entry in current if not entry.once]
            if remaining:
                self._listeners[event] = remaining
            else:
                del self._listeners[event]
            return snapshot
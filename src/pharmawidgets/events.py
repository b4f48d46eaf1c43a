"""Small in-process event bus.

The grid emits ``ITEM_CREATED`` after a row has been created. Listeners
(usually the hosting page) refetch their own data; the event carries no
payload contract.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

ITEM_CREATED = "item-created"

Listener = Callable[[Optional[Any]], None]


class EventBus:
    """Named fire-and-forget events with explicit subscribe/unsubscribe."""

    def __init__(self) -> None:
        self._subs: dict[str, list[Listener]] = {}

    def subscribe(self, name: str, callback: Listener) -> Callable[[], None]:
        """Register ``callback`` for ``name``. Returns an unsubscribe function."""
        self._subs.setdefault(name, []).append(callback)

        def _unsubscribe() -> None:
            subs = self._subs.get(name, [])
            if callback in subs:
                subs.remove(callback)

        return _unsubscribe

    def emit(self, name: str, payload: Optional[Any] = None) -> None:
        subs = list(self._subs.get(name, []))
        logger.debug("emit %r to %d listener(s)", name, len(subs))
        for cb in subs:
            try:
                cb(payload)
            except Exception:
                logger.exception("Error in %r listener", name)

    def listener_count(self, name: str) -> int:
        return len(self._subs.get(name, []))


_default_bus = EventBus()


def get_event_bus() -> EventBus:
    """Return the process-wide bus used when no bus is injected."""
    return _default_bus

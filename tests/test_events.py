"""Tests for the in-process event bus."""

from __future__ import annotations

from typing import Any

from pharmawidgets.events import ITEM_CREATED, EventBus, get_event_bus


def test_subscribe_emit_unsubscribe() -> None:
    bus = EventBus()
    seen: list[Any] = []
    unsubscribe = bus.subscribe(ITEM_CREATED, seen.append)
    assert bus.listener_count(ITEM_CREATED) == 1

    bus.emit(ITEM_CREATED)
    bus.emit(ITEM_CREATED, {"id": 9})
    assert seen == [None, {"id": 9}]

    unsubscribe()
    unsubscribe()  # second call is a no-op
    bus.emit(ITEM_CREATED)
    assert seen == [None, {"id": 9}]
    assert bus.listener_count(ITEM_CREATED) == 0


def test_failing_listener_does_not_stop_others() -> None:
    bus = EventBus()
    seen: list[Any] = []

    def bad(_payload: Any) -> None:
        raise RuntimeError("listener bug")

    bus.subscribe("x", bad)
    bus.subscribe("x", seen.append)
    bus.emit("x", 1)
    assert seen == [1]


def test_listener_may_unsubscribe_during_emit() -> None:
    bus = EventBus()
    seen: list[str] = []
    unsub_holder: list[Any] = []

    def once(_payload: Any) -> None:
        seen.append("once")
        unsub_holder[0]()

    unsub_holder.append(bus.subscribe("x", once))
    bus.subscribe("x", lambda _p: seen.append("always"))
    bus.emit("x")
    bus.emit("x")
    assert seen == ["once", "always", "always"]


def test_default_bus_is_shared() -> None:
    assert get_event_bus() is get_event_bus()

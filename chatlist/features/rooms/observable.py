from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Observer = Callable[[T], None]
Unsubscribe = Callable[[], None]


class EventStream(Generic[T]):
    """Broadcast channel of discrete events.

    Nothing is retained between emissions, so a subscriber only sees events
    emitted after it subscribed.
    """

    def __init__(self):
        self._observers: list[Observer[T]] = []

    def subscribe(self, observer: Observer[T]) -> Unsubscribe:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def emit(self, value: T) -> None:
        for observer in list(self._observers):
            observer(value)

    @property
    def observer_count(self) -> int:
        return len(self._observers)


class LiveValue(Generic[T]):
    """Holds a current value and notifies observers on every `set`."""

    def __init__(self, initial: T):
        self._value = initial
        self._changes: EventStream[T] = EventStream()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._changes.emit(value)

    def observe(self, observer: Observer[T]) -> Unsubscribe:
        return self._changes.subscribe(observer)

    @property
    def observer_count(self) -> int:
        return self._changes.observer_count

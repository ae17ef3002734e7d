from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChangeKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    SELECTED = "selected"


@dataclass(frozen=True)
class RegistryEvent:
    """Notification that an entity in a registry changed."""

    kind: ChangeKind
    entity_id: int | None


class Observable(Generic[T]):
    """Synchronous observer list.

    Callbacks run in registration order on the caller's thread. A callback
    that raises is logged and does not prevent delivery to the rest.
    """

    def __init__(self) -> None:
        self._observers: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._observers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Callable[[T], None]) -> None:
        try:
            self._observers.remove(callback)
        except ValueError:
            pass

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def _notify(self, value: T) -> None:
        for observer in list(self._observers):
            try:
                observer(value)
            except Exception:
                logger.exception("Observer %r failed", observer)

"""Ordered subscriber registries and fan-out."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .models import EventKind

_LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class EventDispatcher:
    """Append-only subscriber lists per EventKind.

    Registration order is invocation order. Each subscriber runs in
    isolation: a failure is logged and collected, and the remaining
    subscribers still run.
    """

    def __init__(self) -> None:
        self._subscribers: dict[EventKind, list[Subscriber]] = {
            kind: [] for kind in EventKind
        }

    def subscribe(self, kind: EventKind, callback: Subscriber) -> None:
        """Register *callback* for events of *kind*."""
        self._subscribers[kind].append(callback)

    def dispatch(self, kind: EventKind, payload: Any) -> list[Exception]:
        """Invoke every subscriber of *kind* with *payload*.

        Returns the exceptions raised by subscribers, in order.
        """
        errors: list[Exception] = []
        for callback in list(self._subscribers[kind]):
            try:
                callback(payload)
            except Exception as err:  # noqa: BLE001
                _LOGGER.exception("Error in %s subscriber", kind.value)
                errors.append(err)
        return errors

    def subscriber_count(self, kind: EventKind) -> int:
        return len(self._subscribers[kind])

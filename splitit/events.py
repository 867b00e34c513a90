"""In-process publish/subscribe bus for application-wide notifications.

Subscribers receive an explicit :class:`Subscription` handle and are
expected to release it when their owner is torn down.

A failing handler is logged and never prevents delivery to the others.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger("splitit.events")

TRANSACTION_UPDATED = "splitItApp:transactionUpdate"

Handler = Callable[[Any], None]


class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`."""

    def __init__(self, bus: "EventBus", event: str, token: int) -> None:
        self._bus = bus
        self._event = event
        self._token = token
        self._active = True
        self._lock = threading.Lock()

    @property
    def event(self) -> str:
        return self._event

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> bool:
        """Release the subscription. Returns ``False`` if it was already released."""
        with self._lock:
            if not self._active:
                return False
            self._active = False
        self._bus._remove(self._event, self._token)
        return True

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class EventBus:
    """Named-event dispatcher with per-subscription handles."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Tuple[int, Handler]]] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, event: str, handler: Handler) -> Subscription:
        if not event:
            raise ValueError("Event name must not be empty")
        if not callable(handler):
            raise TypeError("Event handler must be callable")
        with self._lock:
            token = next(self._tokens)
            self._handlers.setdefault(event, []).append((token, handler))
        logger.debug("Subscribed handler #%s to %s", token, event)
        return Subscription(self, event, token)

    def publish(self, event: str, payload: Any = None) -> int:
        """Deliver ``payload`` to every current subscriber of ``event``.

        Returns the number of handlers that ran without raising.
        """
        with self._lock:
            handlers = list(self._handlers.get(event, ()))

        delivered = 0
        for token, handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler #%s for %s failed", token, event)
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, event: str) -> int:
        with self._lock:
            return len(self._handlers.get(event, ()))

    def _remove(self, event: str, token: int) -> None:
        with self._lock:
            handlers = self._handlers.get(event)
            if not handlers:
                return
            remaining = [entry for entry in handlers if entry[0] != token]
            if remaining:
                self._handlers[event] = remaining
            else:
                self._handlers.pop(event, None)
        logger.debug("Released handler #%s from %s", token, event)


__all__ = ["EventBus", "Subscription", "TRANSACTION_UPDATED"]

"""Detail view mirroring a single transaction."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from .events import TRANSACTION_UPDATED, EventBus
from .models import NavigationState

logger = logging.getLogger("splitit.detail")


class TransactionDetailView:
    """Hold a transaction and replace it whenever an update is broadcast.

    Updates are applied without comparing ids with the displayed
    transaction. The subscription lives exactly as long as the view; call
    :meth:`destroy` or use the view as a context manager.
    """

    def __init__(
        self,
        bus: EventBus,
        entity: Mapping[str, Any],
        previous_state: NavigationState,
        *,
        on_change: Optional[Callable[[Mapping[str, Any]], None]] = None,
    ) -> None:
        self.transaction: Mapping[str, Any] = entity
        self.previous_state = previous_state.name
        self._on_change = on_change
        self._subscription = bus.subscribe(TRANSACTION_UPDATED, self._handle_update)

    @property
    def destroyed(self) -> bool:
        return not self._subscription.active

    def destroy(self) -> None:
        if self._subscription.unsubscribe():
            logger.debug("Detail view for transaction %s torn down", self.transaction.get("id"))

    def _handle_update(self, payload: Mapping[str, Any]) -> None:
        if self.destroyed:
            return
        self.transaction = payload
        if self._on_change is not None:
            self._on_change(payload)

    def __enter__(self) -> "TransactionDetailView":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()


__all__ = ["TransactionDetailView"]

"""Modal dialog host handle."""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger("splitit.modal")


class ModalOutcome(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    DISMISSED = "dismissed"


class ModalInstance:
    """Handle a controller uses to close or dismiss the modal hosting it.

    The first ``close`` or ``dismiss`` settles the modal and notifies the
    listeners; later calls are ignored.
    """

    def __init__(self, name: str = "modal") -> None:
        self.name = name
        self._outcome = ModalOutcome.OPEN
        self._value: Any = None
        self._listeners: List[Callable[[ModalOutcome, Any], None]] = []

    @property
    def outcome(self) -> ModalOutcome:
        return self._outcome

    @property
    def is_open(self) -> bool:
        return self._outcome is ModalOutcome.OPEN

    @property
    def result(self) -> Any:
        return self._value if self._outcome is ModalOutcome.CLOSED else None

    @property
    def reason(self) -> Optional[str]:
        return self._value if self._outcome is ModalOutcome.DISMISSED else None

    def on_settled(self, listener: Callable[[ModalOutcome, Any], None]) -> None:
        self._listeners.append(listener)

    def close(self, result: Any = None) -> bool:
        return self._settle(ModalOutcome.CLOSED, result)

    def dismiss(self, reason: str = "cancel") -> bool:
        return self._settle(ModalOutcome.DISMISSED, reason)

    def _settle(self, outcome: ModalOutcome, value: Any) -> bool:
        if not self.is_open:
            logger.debug("Ignoring %s of %s; already %s", outcome.value, self.name, self._outcome.value)
            return False
        self._outcome = outcome
        self._value = value
        logger.debug("Modal %s %s (%r)", self.name, outcome.value, value)
        for listener in list(self._listeners):
            listener(outcome, value)
        return True


__all__ = ["ModalInstance", "ModalOutcome"]

"""User-facing alert collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger("splitit.alerts")

CATEGORIES = ("error", "warning", "info", "success")


@dataclass(frozen=True)
class Alert:
    category: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "message": self.message}


class AlertService:
    """Collect alerts for the next render, flash-message style."""

    def __init__(self) -> None:
        self._pending: List[Alert] = []

    def add(self, message: str, *, category: str = "info") -> Alert:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown alert category '{category}'")
        alert = Alert(category=category, message=str(message))
        self._pending.append(alert)
        level = logging.WARNING if category == "error" else logging.INFO
        logger.log(level, "[%s] %s", category, alert.message)
        return alert

    def error(self, message: str) -> Alert:
        return self.add(message, category="error")

    def warning(self, message: str) -> Alert:
        return self.add(message, category="warning")

    def info(self, message: str) -> Alert:
        return self.add(message, category="info")

    def success(self, message: str) -> Alert:
        return self.add(message, category="success")

    @property
    def pending(self) -> List[Alert]:
        return list(self._pending)

    def consume(self) -> List[Alert]:
        alerts, self._pending = self._pending, []
        return alerts


__all__ = ["Alert", "AlertService"]

"""In-memory session handling for the splitIt web front."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional


@dataclass
class _SessionRecord:
    login: str
    api_token: str
    expires_at: datetime


@dataclass(frozen=True)
class WebSession:
    """Backend credentials bound to a browser session."""

    login: str
    api_token: str


class SessionManager:
    """Generate, validate, and revoke web sessions.

    Backend bearer tokens stay on the server; the browser only receives the
    opaque session id.
    """

    def __init__(self, *, ttl: timedelta = timedelta(hours=8)) -> None:
        self._ttl = ttl
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def create(self, login: str, api_token: str) -> str:
        session_id = secrets.token_urlsafe(32)
        record = _SessionRecord(login=login, api_token=api_token, expires_at=self._now() + self._ttl)
        with self._lock:
            self._sessions[session_id] = record
        return session_id

    def resolve(self, session_id: str) -> Optional[WebSession]:
        now = self._now()
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(session_id, None)
                return None
            record.expires_at = now + self._ttl
            return WebSession(login=record.login, api_token=record.api_token)

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["SessionManager", "WebSession"]

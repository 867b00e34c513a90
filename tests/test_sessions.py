import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from splitit.sessions import SessionManager


def test_session_resolves_to_backend_credentials() -> None:
    manager = SessionManager()
    session_id = manager.create("alice", "jwt-token")

    resolved = manager.resolve(session_id)

    assert resolved is not None
    assert resolved.login == "alice"
    assert resolved.api_token == "jwt-token"
    assert "jwt-token" not in session_id


def test_expired_session_is_dropped() -> None:
    manager = SessionManager(ttl=timedelta(seconds=-1))
    session_id = manager.create("alice", "jwt-token")

    assert manager.resolve(session_id) is None


def test_destroy_revokes_session() -> None:
    manager = SessionManager()
    session_id = manager.create("alice", "jwt-token")

    manager.destroy(session_id)

    assert manager.resolve(session_id) is None
    assert manager.resolve("unknown") is None

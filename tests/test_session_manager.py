from __future__ import annotations

from datetime import datetime, timezone

import pytest

from integrations.backend import AuthSession, BackendError, User
from services.auth import SessionManager
from services.errors import AuthError


class StubAuthClient:
    def __init__(self) -> None:
        self.sign_up_result: AuthSession | None = None
        self.refresh_error: str | None = None
        self.sign_out_error: str | None = None

    def _session(self, uid: str, email: str, suffix: str = "") -> AuthSession:
        return AuthSession(
            user=User(uid=uid, email=email),
            id_token=f"id-{uid}{suffix}",
            refresh_token=f"refresh-{uid}",
            expires_at=datetime.now(timezone.utc),
        )

    def sign_up(self, email, password):
        return self.sign_up_result

    def sign_in(self, email, password):
        if password != "pass1234":
            raise BackendError("INVALID_LOGIN_CREDENTIALS")
        return self._session("u1", email)

    def refresh(self, refresh_token):
        if self.refresh_error:
            raise BackendError(self.refresh_error)
        return self._session("u1", "a@x.com", suffix="-renewed")

    def sign_out(self, session):
        if self.sign_out_error:
            raise BackendError(self.sign_out_error)


def _observe(manager: SessionManager):
    seen: list[User | None] = []
    unsubscribe = manager.observe_session(seen.append)
    return seen, unsubscribe


def test_listener_fires_on_registration_with_no_user() -> None:
    seen, _ = _observe(SessionManager(StubAuthClient()))
    assert seen == [None]


def test_sign_in_and_sign_out_transitions() -> None:
    manager = SessionManager(StubAuthClient())
    seen, _ = _observe(manager)

    manager.sign_in("a@x.com", "pass1234")
    manager.sign_out()

    assert seen == [None, User(uid="u1", email="a@x.com"), None]
    assert manager.current_user is None
    assert manager.id_token() is None


def test_failed_sign_in_raises_and_keeps_anonymous() -> None:
    manager = SessionManager(StubAuthClient())
    seen, _ = _observe(manager)

    with pytest.raises(AuthError, match="INVALID_LOGIN_CREDENTIALS"):
        manager.sign_in("a@x.com", "wrong")

    assert seen == [None]
    assert manager.current_user is None


def test_unsubscribe_stops_notifications_and_is_idempotent() -> None:
    manager = SessionManager(StubAuthClient())
    seen, unsubscribe = _observe(manager)

    unsubscribe()
    unsubscribe()
    manager.sign_in("a@x.com", "pass1234")

    assert seen == [None]


def test_sign_up_adopts_session_issued_by_backend() -> None:
    client = StubAuthClient()
    client.sign_up_result = client._session("u9", "new@x.com")
    manager = SessionManager(client)

    manager.sign_up("new@x.com", "pass1234")

    assert manager.current_user == User(uid="u9", email="new@x.com")


def test_sign_up_without_backend_session_stays_anonymous() -> None:
    manager = SessionManager(StubAuthClient())
    manager.sign_up("new@x.com", "pass1234")
    assert manager.current_user is None


def test_refresh_renews_token_without_notifying() -> None:
    manager = SessionManager(StubAuthClient())
    manager.sign_in("a@x.com", "pass1234")
    seen, _ = _observe(manager)

    manager.refresh()

    assert manager.id_token() == "id-u1-renewed"
    assert len(seen) == 1


def test_rejected_refresh_invalidates_session() -> None:
    client = StubAuthClient()
    manager = SessionManager(client)
    manager.sign_in("a@x.com", "pass1234")
    seen, _ = _observe(manager)

    client.refresh_error = "TOKEN_EXPIRED"
    assert manager.refresh() is None

    assert seen == [User(uid="u1", email="a@x.com"), None]


def test_restore_with_rejected_token_stays_anonymous() -> None:
    client = StubAuthClient()
    client.refresh_error = "INVALID_REFRESH_TOKEN"
    manager = SessionManager(client)

    assert manager.restore("stale") is None
    assert manager.restore(None) is None
    assert manager.current_user is None


def test_sign_out_failure_keeps_session() -> None:
    client = StubAuthClient()
    manager = SessionManager(client)
    manager.sign_in("a@x.com", "pass1234")
    client.sign_out_error = "UNAVAILABLE"

    with pytest.raises(AuthError):
        manager.sign_out()

    assert manager.current_user is not None


def test_restore_against_local_backend(local_backend) -> None:
    first = SessionManager(local_backend.auth_client())
    first.sign_up("a@x.com", "pass1234")
    first.sign_in("a@x.com", "pass1234")

    second = SessionManager(local_backend.auth_client())
    restored = second.restore(first.refresh_token)

    assert restored is not None
    assert second.current_user == first.current_user

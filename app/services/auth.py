from __future__ import annotations

import logging
from typing import Callable, Optional

from integrations.backend import AuthClient, AuthSession, BackendError, User
from services.errors import AuthError

SessionListener = Callable[[Optional[User]], None]
logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip()


class SessionManager:
    """Owns the current auth session and tells listeners when it changes.

    Listeners receive the signed-in ``User`` or ``None``. They are called once
    when registered and then on every transition: sign-in, sign-out, and a
    refresh the backend rejects. A token refresh for the same user is not a
    transition.
    """

    def __init__(self, client: AuthClient) -> None:
        self._client = client
        self._session: AuthSession | None = None
        self._listeners: list[SessionListener] = []

    @property
    def current_user(self) -> User | None:
        return self._session.user if self._session else None

    @property
    def refresh_token(self) -> str | None:
        return self._session.refresh_token if self._session else None

    def id_token(self) -> str | None:
        return self._session.id_token if self._session else None

    def observe_session(self, callback: SessionListener) -> Callable[[], None]:
        self._listeners.append(callback)
        released = False

        def unsubscribe() -> None:
            nonlocal released
            if released:
                return
            released = True
            self._listeners.remove(callback)

        callback(self.current_user)
        return unsubscribe

    def _set_session(self, session: AuthSession | None) -> None:
        previous = self.current_user
        self._session = session
        if previous != self.current_user:
            for listener in list(self._listeners):
                listener(self.current_user)

    def sign_up(self, email: str, password: str) -> None:
        email = _normalize_email(email)
        try:
            session = self._client.sign_up(email, password)
        except BackendError as exc:
            logger.warning("sign_up.failed", extra={"email": email, "error": exc.message})
            raise AuthError(exc.message) from exc
        logger.info("sign_up.success", extra={"email": email, "signed_in": session is not None})
        if session is not None:
            self._set_session(session)

    def sign_in(self, email: str, password: str) -> None:
        email = _normalize_email(email)
        try:
            session = self._client.sign_in(email, password)
        except BackendError as exc:
            logger.warning("sign_in.failed", extra={"email": email, "error": exc.message})
            raise AuthError(exc.message) from exc
        logger.info("sign_in.success", extra={"email": email, "uid": session.user.uid})
        self._set_session(session)

    def sign_out(self) -> None:
        session = self._session
        if session is None:
            return
        try:
            self._client.sign_out(session)
        except BackendError as exc:
            logger.warning("sign_out.failed", extra={"uid": session.user.uid, "error": exc.message})
            raise AuthError(exc.message) from exc
        logger.info("sign_out.success", extra={"uid": session.user.uid})
        self._set_session(None)

    def refresh(self) -> AuthSession | None:
        session = self._session
        if session is None:
            return None
        try:
            renewed = self._client.refresh(session.refresh_token)
        except BackendError as exc:
            logger.warning("session.invalidated", extra={"uid": session.user.uid, "error": exc.message})
            self._set_session(None)
            return None
        self._set_session(renewed)
        return renewed

    def restore(self, refresh_token: str | None) -> AuthSession | None:
        if not refresh_token or self._session is not None:
            return self._session
        try:
            restored = self._client.refresh(refresh_token)
        except BackendError as exc:
            logger.info("session.restore_failed", extra={"error": exc.message})
            return None
        logger.info("session.restored", extra={"uid": restored.user.uid})
        self._set_session(restored)
        return restored

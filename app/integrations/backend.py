from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable


class BackendError(Exception):
    """Raised by backend clients; ``message`` is the backend's own error text."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class User:
    uid: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    user: User
    id_token: str
    refresh_token: str
    expires_at: datetime


@runtime_checkable
class AuthClient(Protocol):
    """Email/password identity provider."""

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        ...

    def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    def refresh(self, refresh_token: str) -> AuthSession:
        ...

    def sign_out(self, session: AuthSession) -> None:
        ...


@runtime_checkable
class DocumentClient(Protocol):
    """Collection of flat documents, queried by field equality."""

    def query_equal(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        ...

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        ...

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        ...

    def delete(self, collection: str, document_id: str) -> None:
        ...

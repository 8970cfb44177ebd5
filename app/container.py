from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from config import BACKEND_FIREBASE, Settings
from integrations.backend import AuthClient, DocumentClient
from integrations.firebase import FirebaseAuthClient, FirestoreClient
from integrations.local_backend import LocalBackend
from services.auth import SessionManager
from services.todos import TodoStore


@dataclass(frozen=True)
class AppServices:
    session: SessionManager
    store: TodoStore


class Backend:
    """Process-wide backend connection; hands out per-session clients."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._http: httpx.Client | None = None
        self._local: LocalBackend | None = None
        if settings.backend == BACKEND_FIREBASE:
            self._http = httpx.Client(timeout=settings.http_timeout)
        else:
            self._local = LocalBackend(settings.database_url)

    def auth_client(self) -> AuthClient:
        if self._local is not None:
            return self._local.auth_client()
        return FirebaseAuthClient(self.settings.firebase_api_key, self._http)

    def document_client(self, token_provider: Callable[[], Optional[str]]) -> DocumentClient:
        if self._local is not None:
            return self._local.document_client(token_provider)
        return FirestoreClient(self.settings.firebase_project_id, self._http, token_provider)

    def create_services(self) -> AppServices:
        session = SessionManager(self.auth_client())
        store = TodoStore(self.document_client(session.id_token), collection=self.settings.collection)
        return AppServices(session=session, store=store)

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
        if self._local is not None:
            self._local.engine.dispose()

from __future__ import annotations

from pathlib import Path
import sys

import pytest

APP_PATH = Path(__file__).resolve().parents[1] / "app"
if str(APP_PATH) not in sys.path:
    sys.path.insert(0, str(APP_PATH))

from integrations.local_backend import LocalBackend
from services.auth import SessionManager
from services.todos import TodoStore


class RecordingDocumentClient:
    """Wraps a document client and records every call made through it."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls: list[tuple[str, tuple]] = []

    def query_equal(self, collection, field, value):
        self.calls.append(("query_equal", (collection, field, value)))
        return self.inner.query_equal(collection, field, value)

    def add(self, collection, fields):
        self.calls.append(("add", (collection, dict(fields))))
        return self.inner.add(collection, fields)

    def update(self, collection, document_id, fields):
        self.calls.append(("update", (collection, document_id, dict(fields))))
        return self.inner.update(collection, document_id, fields)

    def delete(self, collection, document_id):
        self.calls.append(("delete", (collection, document_id)))
        return self.inner.delete(collection, document_id)


@pytest.fixture()
def local_backend(tmp_path: Path) -> LocalBackend:
    backend = LocalBackend(f"sqlite:///{tmp_path}/todos.db")
    yield backend
    backend.engine.dispose()


@pytest.fixture()
def session_manager(local_backend: LocalBackend) -> SessionManager:
    return SessionManager(local_backend.auth_client())


@pytest.fixture()
def recording_client(local_backend: LocalBackend, session_manager: SessionManager) -> RecordingDocumentClient:
    return RecordingDocumentClient(local_backend.document_client(session_manager.id_token))


@pytest.fixture()
def todo_store(recording_client: RecordingDocumentClient) -> TodoStore:
    return TodoStore(recording_client)


@pytest.fixture()
def signed_in(session_manager: SessionManager):
    """Create ``a@x.com`` and sign in; returns the user."""
    session_manager.sign_up("a@x.com", "pass1234")
    session_manager.sign_in("a@x.com", "pass1234")
    return session_manager.current_user

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from integrations.backend import BackendError, DocumentClient
from services.errors import StoreError

DEFAULT_COLLECTION = "todos"
OWNER_FIELD = "userId"
logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Todo:
    id: str
    text: str
    completed: bool
    user_id: str
    timestamp: str

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Todo":
        return cls(
            id=str(document["id"]),
            text=str(document.get("text") or ""),
            completed=bool(document.get("completed", False)),
            user_id=str(document.get(OWNER_FIELD) or ""),
            timestamp=str(document.get("timestamp") or ""),
        )


class TodoStore:
    """Todo persistence scoped to one owner id per call.

    Reads only ever query ``userId == user_id``. Whether the caller may touch a
    given document on update or delete is decided by the backend.
    """

    def __init__(self, client: DocumentClient, collection: str = DEFAULT_COLLECTION) -> None:
        self._client = client
        self._collection = collection

    def list_for_user(self, user_id: str) -> list[Todo]:
        try:
            documents = self._client.query_equal(self._collection, OWNER_FIELD, user_id)
        except BackendError as exc:
            raise StoreError(exc.message) from exc
        return [Todo.from_document(document) for document in documents]

    def create(self, user_id: str, text: str) -> Optional[Todo]:
        if not (text or "").strip() or not user_id:
            return None
        fields = {
            "text": text,
            "completed": False,
            OWNER_FIELD: user_id,
            "timestamp": _utc_timestamp(),
        }
        try:
            todo_id = self._client.add(self._collection, fields)
        except BackendError as exc:
            raise StoreError(exc.message) from exc
        logger.info("todos.created", extra={"todo_id": todo_id, "user_id": user_id})
        return Todo.from_document({**fields, "id": todo_id})

    def update(self, todo_id: str, *, text: str | None = None, completed: bool | None = None) -> None:
        fields: dict[str, Any] = {}
        if text is not None:
            fields["text"] = text
        if completed is not None:
            fields["completed"] = bool(completed)
        if not fields:
            raise ValueError("Nothing to update")
        try:
            self._client.update(self._collection, todo_id, fields)
        except BackendError as exc:
            raise StoreError(exc.message) from exc
        logger.info("todos.updated", extra={"todo_id": todo_id, "fields": sorted(fields)})

    def toggle(self, todo: Todo) -> None:
        self.update(todo.id, completed=not todo.completed)

    def delete(self, todo_id: str) -> None:
        try:
            self._client.delete(self._collection, todo_id)
        except BackendError as exc:
            raise StoreError(exc.message) from exc
        logger.info("todos.deleted", extra={"todo_id": todo_id})

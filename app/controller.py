from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from integrations.backend import User
from services.auth import SessionManager
from services.errors import AuthError, StoreError
from services.todos import Todo, TodoStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class EditingTodo:
    id: Optional[str] = None
    text: str = ""


NOT_EDITING = EditingTodo()


class TodoAppController:
    """UI state and actions for the todo app, independent of any widget toolkit.

    Every mutation is followed by a full refetch of the user's todos. Fetch
    failures are only logged and keep the previous list. Mutation failures are
    shown in ``error``, which the next action clears.
    """

    def __init__(self, session: SessionManager, store: TodoStore) -> None:
        self.session = session
        self.store = store
        self.state = SessionState.UNKNOWN
        self.user: User | None = None
        self.todos: list[Todo] = []
        self.new_todo = ""
        self.email = ""
        self.password = ""
        self.error = ""
        self.editing = NOT_EDITING
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def loading(self) -> bool:
        return self.state is SessionState.UNKNOWN

    # --- session ---
    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.session.observe_session(self._on_session)

    def close(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _on_session(self, user: User | None) -> None:
        self.user = user
        self.state = SessionState.AUTHENTICATED if user else SessionState.ANONYMOUS
        if user:
            self.fetch_todos()
        else:
            self.todos = []

    def sign_in(self) -> None:
        self.error = ""
        try:
            self.session.sign_in(self.email, self.password)
        except AuthError as exc:
            self.error = f"Failed to sign in: {exc}"
        else:
            self.email = ""
            self.password = ""

    def sign_up(self) -> None:
        self.error = ""
        try:
            self.session.sign_up(self.email, self.password)
        except AuthError as exc:
            self.error = f"Failed to create account: {exc}"
        else:
            self.email = ""
            self.password = ""

    def sign_out(self) -> None:
        try:
            self.session.sign_out()
        except AuthError:
            self.error = "Failed to sign out"

    # --- todos ---
    def fetch_todos(self) -> None:
        if self.user is None:
            return
        try:
            self.todos = self.store.list_for_user(self.user.uid)
        except StoreError as exc:
            logger.error("todos.fetch_failed", extra={"uid": self.user.uid, "error": str(exc)})

    def add_todo(self) -> None:
        if not self.new_todo.strip() or self.user is None:
            return
        self.error = ""
        try:
            self.store.create(self.user.uid, self.new_todo)
        except StoreError as exc:
            logger.error("todos.add_failed", extra={"uid": self.user.uid, "error": str(exc)})
            self.error = "Failed to add todo"
            return
        self.new_todo = ""
        self.fetch_todos()

    def start_editing(self, todo: Todo) -> None:
        # One shared slot: editing another row drops unsaved text.
        self.editing = EditingTodo(id=todo.id, text=todo.text)

    def set_editing_text(self, text: str) -> None:
        self.editing = EditingTodo(id=self.editing.id, text=text or "")

    def cancel_editing(self) -> None:
        self.editing = NOT_EDITING

    def save_edit(self, todo_id: str) -> None:
        if not self.editing.text.strip():
            return
        self.error = ""
        try:
            self.store.update(todo_id, text=self.editing.text)
        except StoreError as exc:
            logger.error("todos.update_failed", extra={"todo_id": todo_id, "error": str(exc)})
            self.error = "Failed to update todo"
            return
        self.editing = NOT_EDITING
        self.fetch_todos()

    def toggle_complete(self, todo: Todo) -> None:
        self.error = ""
        try:
            self.store.toggle(todo)
        except StoreError as exc:
            logger.error("todos.toggle_failed", extra={"todo_id": todo.id, "error": str(exc)})
            self.error = "Failed to update todo"
            return
        self.fetch_todos()

    def delete_todo(self, todo_id: str) -> None:
        self.error = ""
        try:
            self.store.delete(todo_id)
        except StoreError as exc:
            logger.error("todos.delete_failed", extra={"todo_id": todo_id, "error": str(exc)})
            self.error = "Failed to delete todo"
            return
        self.fetch_todos()

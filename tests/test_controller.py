from __future__ import annotations

import pytest

from controller import NOT_EDITING, SessionState, TodoAppController
from integrations.backend import BackendError
from services.todos import TodoStore


class FlakyDocumentClient:
    """Document client that fails the named operations on demand."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.failing: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            raise BackendError("UNAVAILABLE", status_code=503)

    def query_equal(self, collection, field, value):
        self._maybe_fail("query_equal")
        return self.inner.query_equal(collection, field, value)

    def add(self, collection, fields):
        self._maybe_fail("add")
        return self.inner.add(collection, fields)

    def update(self, collection, document_id, fields):
        self._maybe_fail("update")
        return self.inner.update(collection, document_id, fields)

    def delete(self, collection, document_id):
        self._maybe_fail("delete")
        return self.inner.delete(collection, document_id)


@pytest.fixture()
def flaky_client(local_backend, session_manager) -> FlakyDocumentClient:
    return FlakyDocumentClient(local_backend.document_client(session_manager.id_token))


@pytest.fixture()
def controller(session_manager, flaky_client) -> TodoAppController:
    controller = TodoAppController(session_manager, TodoStore(flaky_client))
    controller.attach()
    yield controller
    controller.close()


def _sign_in(controller: TodoAppController, email: str = "a@x.com", password: str = "pass1234") -> None:
    controller.email, controller.password = email, password
    controller.sign_in()


def _add(controller: TodoAppController, text: str) -> None:
    controller.new_todo = text
    controller.add_todo()


def test_loading_until_first_session_callback(session_manager, flaky_client) -> None:
    controller = TodoAppController(session_manager, TodoStore(flaky_client))
    assert controller.loading is True

    controller.attach()

    assert controller.loading is False
    assert controller.state is SessionState.ANONYMOUS


def test_full_scenario(controller) -> None:
    controller.email, controller.password = "a@x.com", "pass1234"
    controller.sign_up()
    assert controller.error == ""
    assert controller.state is SessionState.ANONYMOUS

    _sign_in(controller)
    assert controller.state is SessionState.AUTHENTICATED
    assert controller.user.email == "a@x.com"
    assert (controller.email, controller.password, controller.error) == ("", "", "")

    _add(controller, "buy milk")
    assert [(t.text, t.completed) for t in controller.todos] == [("buy milk", False)]
    assert controller.new_todo == ""

    controller.toggle_complete(controller.todos[0])
    assert [(t.text, t.completed) for t in controller.todos] == [("buy milk", True)]

    controller.delete_todo(controller.todos[0].id)
    assert controller.todos == []

    controller.sign_out()
    assert controller.state is SessionState.ANONYMOUS
    assert controller.user is None


def test_invalid_sign_in_sets_error_and_next_attempt_clears_it(controller, session_manager) -> None:
    session_manager.sign_up("a@x.com", "pass1234")

    _sign_in(controller, password="wrong-pass")
    assert controller.state is SessionState.ANONYMOUS
    assert controller.error.startswith("Failed to sign in: ")
    assert controller.password == "wrong-pass"

    _sign_in(controller)
    assert controller.state is SessionState.AUTHENTICATED
    assert controller.error == ""


def test_failed_sign_up_shows_prefixed_backend_message(controller) -> None:
    controller.email, controller.password = "a@x.com", "123"
    controller.sign_up()
    assert controller.error.startswith("Failed to create account: WEAK_PASSWORD")


def test_blank_new_todo_is_ignored(controller, session_manager) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)

    _add(controller, "   ")

    assert controller.todos == []
    assert controller.new_todo == "   "


def test_starting_another_edit_discards_unsaved_text(controller, session_manager) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)
    _add(controller, "first")
    _add(controller, "second")
    first = next(t for t in controller.todos if t.text == "first")
    second = next(t for t in controller.todos if t.text == "second")

    controller.start_editing(first)
    controller.set_editing_text("first, edited")
    controller.start_editing(second)

    assert (controller.editing.id, controller.editing.text) == (second.id, "second")
    controller.fetch_todos()
    assert sorted(t.text for t in controller.todos) == ["first", "second"]


def test_save_edit_updates_text_and_leaves_edit_mode(controller, session_manager) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)
    _add(controller, "draft")
    todo = controller.todos[0]

    controller.start_editing(todo)
    controller.set_editing_text("   ")
    controller.save_edit(todo.id)
    assert controller.editing.id == todo.id

    controller.set_editing_text("final")
    controller.save_edit(todo.id)

    assert controller.editing == NOT_EDITING
    assert [t.text for t in controller.todos] == ["final"]


def test_fetch_failure_is_logged_and_keeps_stale_list(controller, session_manager, flaky_client, caplog) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)
    _add(controller, "kept")

    flaky_client.failing.add("query_equal")
    controller.fetch_todos()

    assert [t.text for t in controller.todos] == ["kept"]
    assert controller.error == ""
    assert "todos.fetch_failed" in caplog.text


@pytest.mark.parametrize(
    ("operation", "action", "message"),
    [
        ("delete", lambda c: c.delete_todo(c.todos[0].id), "Failed to delete todo"),
        ("update", lambda c: c.toggle_complete(c.todos[0]), "Failed to update todo"),
        ("add", lambda c: _add(c, "another"), "Failed to add todo"),
    ],
)
def test_mutation_failures_are_shown(controller, session_manager, flaky_client, operation, action, message) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)
    _add(controller, "existing")

    flaky_client.failing.add(operation)
    action(controller)

    assert controller.error == message
    assert [t.text for t in controller.todos] == ["existing"]


def test_close_releases_subscription(controller, session_manager) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    controller.close()
    controller.close()

    session_manager.sign_in("a@x.com", "pass1234")

    assert controller.user is None
    assert controller.state is SessionState.ANONYMOUS


def test_next_mutation_clears_previous_error(controller, session_manager, flaky_client) -> None:
    session_manager.sign_up("a@x.com", "pass1234")
    _sign_in(controller)
    _add(controller, "existing")

    flaky_client.failing.add("delete")
    controller.delete_todo(controller.todos[0].id)
    assert controller.error == "Failed to delete todo"

    flaky_client.failing.clear()
    _add(controller, "another")
    assert controller.error == ""

    flaky_client.failing.add("update")
    controller.toggle_complete(controller.todos[0])
    assert controller.error == "Failed to update todo"

    flaky_client.failing.clear()
    controller.toggle_complete(controller.todos[0])
    assert controller.error == ""

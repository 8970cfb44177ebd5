from __future__ import annotations

from nicegui import ui

from controller import TodoAppController
from pages.auth import Dispatch, _error_label
from services.todos import Todo
from styles import (
    STYLE_BTN_DANGER,
    STYLE_BTN_PRIMARY,
    STYLE_BTN_SMALL_MUTED,
    STYLE_BTN_SMALL_SUCCESS,
    STYLE_CARD,
    STYLE_INPUT,
    STYLE_LINK_DANGER,
    STYLE_LINK_PRIMARY,
    STYLE_MUTED,
    STYLE_PAGE_TITLE,
    STYLE_TODO_ROW,
    STYLE_TODO_TEXT,
    STYLE_TODO_TEXT_DONE,
)


def _render_edit_row(controller: TodoAppController, todo: Todo, dispatch: Dispatch) -> None:
    with ui.row().classes("items-center gap-2 flex-1"):
        ui.input(
            value=controller.editing.text,
            on_change=lambda e: controller.set_editing_text(e.value),
        ).props("dense outlined").classes("flex-1")
        ui.button("Save", on_click=lambda: dispatch(controller.save_edit, todo.id)).classes(STYLE_BTN_SMALL_SUCCESS)
        ui.button("Cancel", on_click=lambda: dispatch(controller.cancel_editing)).classes(STYLE_BTN_SMALL_MUTED)


def _render_display_row(controller: TodoAppController, todo: Todo, dispatch: Dispatch) -> None:
    with ui.row().classes("items-center justify-between flex-1"):
        with ui.row().classes("items-center gap-2"):
            ui.checkbox(
                value=todo.completed,
                on_change=lambda: dispatch(controller.toggle_complete, todo),
            )
            ui.label(todo.text).classes(STYLE_TODO_TEXT_DONE if todo.completed else STYLE_TODO_TEXT)
        with ui.row().classes("gap-2"):
            ui.button("Edit", on_click=lambda: dispatch(controller.start_editing, todo)).props("flat").classes(
                STYLE_LINK_PRIMARY
            )
            ui.button("Delete", on_click=lambda: dispatch(controller.delete_todo, todo.id)).props("flat").classes(
                STYLE_LINK_DANGER
            )


def render_todo_list(controller: TodoAppController, dispatch: Dispatch) -> None:
    user = controller.user
    with ui.column().classes(f"{STYLE_CARD} gap-4"):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("Todo List").classes(STYLE_PAGE_TITLE)
            with ui.row().classes("items-center gap-4"):
                ui.label(user.email if user else "").classes(STYLE_MUTED)
                ui.button("Sign Out", on_click=lambda: dispatch(controller.sign_out)).classes(STYLE_BTN_DANGER)

        _error_label(controller.error)

        with ui.row().classes("w-full gap-2 items-center"):
            new_todo_input = (
                ui.input(placeholder="Add a new todo")
                .props("outlined dense")
                .classes(f"{STYLE_INPUT} flex-1")
                .bind_value(controller, "new_todo")
            )
            new_todo_input.on("keydown.enter", lambda: dispatch(controller.add_todo))
            ui.button("Add", on_click=lambda: dispatch(controller.add_todo)).classes(STYLE_BTN_PRIMARY)

        with ui.column().classes("w-full gap-2"):
            for todo in controller.todos:
                with ui.row().classes(STYLE_TODO_ROW):
                    if controller.editing.id == todo.id:
                        _render_edit_row(controller, todo, dispatch)
                    else:
                        _render_display_row(controller, todo, dispatch)

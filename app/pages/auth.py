from __future__ import annotations

from typing import Awaitable, Callable

from nicegui import ui

from controller import TodoAppController
from styles import (
    STYLE_BTN_PRIMARY,
    STYLE_BTN_SUCCESS,
    STYLE_CARD,
    STYLE_ERROR,
    STYLE_INPUT,
    STYLE_PAGE_TITLE,
)

Dispatch = Callable[..., Awaitable[None]]


def _error_label(message: str) -> ui.label:
    label = ui.label(message).classes(STYLE_ERROR)
    label.set_visibility(bool(message))
    return label


def render_auth_form(controller: TodoAppController, dispatch: Dispatch) -> None:
    with ui.column().classes(f"{STYLE_CARD} gap-4"):
        ui.label("Authentication").classes(STYLE_PAGE_TITLE)
        _error_label(controller.error)
        ui.input("Email", placeholder="Email").props("outlined dense type=email").classes(
            STYLE_INPUT
        ).bind_value(controller, "email")
        ui.input("Password", placeholder="Password", password=True).props("outlined dense").classes(
            STYLE_INPUT
        ).bind_value(controller, "password")
        with ui.row().classes("gap-4"):
            ui.button("Sign In", on_click=lambda: dispatch(controller.sign_in)).classes(STYLE_BTN_PRIMARY)
            ui.button("Sign Up", on_click=lambda: dispatch(controller.sign_up)).classes(STYLE_BTN_SUCCESS)

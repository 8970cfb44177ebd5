# =========================
# APP/MAIN.PY
# =========================

from __future__ import annotations

import logging
from typing import Any, Callable

from nicegui import app, run, ui

from config import ConfigError, Settings
from container import Backend
from controller import TodoAppController
from env import load_env
from logging_setup import setup_logging
from pages import bind_controller_to_client, render_auth_form, render_todo_list
from styles import STYLE_BG, STYLE_MUTED
from ui_theme import apply_global_ui_theme, apply_page_colors

REFRESH_TOKEN_KEY = "refresh_token"
logger = logging.getLogger(__name__)

load_env()
settings = Settings.from_env()
setup_logging(settings.log_path, debug=settings.debug)
backend = Backend(settings)
app.on_shutdown(backend.close)
apply_global_ui_theme(no_cache=settings.no_cache)


def _remember_session(controller: TodoAppController) -> None:
    refresh_token = controller.session.refresh_token
    if refresh_token:
        app.storage.user[REFRESH_TOKEN_KEY] = refresh_token
    else:
        app.storage.user.pop(REFRESH_TOKEN_KEY, None)


@ui.page("/")
async def index_page() -> None:
    apply_page_colors()
    services = backend.create_services()
    controller = TodoAppController(services.session, services.store)

    @ui.refreshable
    def view() -> None:
        with ui.element("div").classes(STYLE_BG):
            if controller.loading:
                ui.label("Loading...").classes(f"{STYLE_MUTED} mt-8")
            elif controller.user is None:
                render_auth_form(controller, dispatch)
            else:
                render_todo_list(controller, dispatch)

    async def dispatch(action: Callable[..., Any], *args: Any) -> None:
        # Backend calls leave the event loop free; overlapping actions are not serialized.
        await run.io_bound(action, *args)
        _remember_session(controller)
        view.refresh()

    async def refresh_session() -> None:
        if controller.user is None:
            return
        await dispatch(services.session.refresh)

    view()
    client = ui.context.client
    bind_controller_to_client(client, controller)
    await client.connected()

    await run.io_bound(services.session.restore, app.storage.user.get(REFRESH_TOKEN_KEY))
    await run.io_bound(controller.attach)
    _remember_session(controller)
    view.refresh()
    ui.timer(settings.token_refresh_seconds, refresh_session)


def run_app() -> None:
    if not settings.storage_secret:
        raise ConfigError("TODO_STORAGE_SECRET must be set")
    ui.run(
        title="Secure Todo",
        host="0.0.0.0",
        port=settings.port,
        storage_secret=settings.storage_secret,
        favicon="✅",
        reload=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    run_app()

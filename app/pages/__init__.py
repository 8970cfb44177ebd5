from __future__ import annotations

from .auth import render_auth_form
from .lifecycle import bind_controller_to_client
from .todos import render_todo_list

__all__ = ["bind_controller_to_client", "render_auth_form", "render_todo_list"]

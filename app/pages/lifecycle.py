from __future__ import annotations

from typing import Any

from controller import TodoAppController


def bind_controller_to_client(client: Any, controller: TodoAppController) -> None:
    """Release the controller's session subscription when the page goes away.

    A socket that drops and reconnects within the reconnect timeout keeps the
    same page and controller, so disconnects are not a teardown; only deleting
    the client is.
    """
    client.on_delete(controller.close)

"""Out-of-band notifications exchanged with the editor extension.

The extension sends ``server_start(path)`` and ``server_stop()`` when a live
game server starts or stops, and ``compile`` to force a full recompile. After
a successful save-triggered recompile the language server sends
``reload_server`` back; nothing is awaited in either direction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dpscript_lsp.server.session import RELOAD_SERVER

if TYPE_CHECKING:
    from dpscript_lsp.server.app import DPScriptLanguageServer

logger = logging.getLogger(__name__)

COMPILE = "compile"
SERVER_START = "server_start"
SERVER_STOP = "server_stop"

__all__ = ["COMPILE", "RELOAD_SERVER", "SERVER_START", "SERVER_STOP", "register_bridge", "string_argument"]


def string_argument(params: Any) -> str | None:
    """Extract the single string argument of a custom notification.

    Clients send it bare, wrapped in a one-element array, or as ``{"path": ...}``.
    """
    if params is None:
        return None
    if isinstance(params, str):
        return params
    if isinstance(params, (list, tuple)):
        return string_argument(params[0]) if params else None
    if isinstance(params, dict):
        value = params.get("path")
    else:
        value = getattr(params, "path", None)
    return value if isinstance(value, str) else None


def register_bridge(server: DPScriptLanguageServer) -> None:
    @server.feature(SERVER_START)
    def server_start(ls: DPScriptLanguageServer, params: Any) -> None:
        path = string_argument(params)
        if path is None:
            logger.warning("%s without a path: %r", SERVER_START, params)
            return
        if ls.session is not None:
            ls.session.server_started(path)

    @server.feature(SERVER_STOP)
    def server_stop(ls: DPScriptLanguageServer, params: Any) -> None:
        if ls.session is not None:
            ls.session.server_stopped()

    @server.feature(COMPILE)
    async def compile_request(ls: DPScriptLanguageServer, params: Any) -> None:
        if ls.session is not None:
            await ls.session.request_compile()

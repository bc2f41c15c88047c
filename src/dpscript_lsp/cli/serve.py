from typing import Annotated

import typer

from dpscript_lsp.config import get_settings
from dpscript_lsp.logs import configure_logging, stderr_console


def serve(
    tcp: Annotated[bool, typer.Option(help="Listen on TCP instead of stdio.")] = False,
    host: Annotated[str, typer.Option(help="TCP host.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="TCP port.")] = 2087,
    log_level: Annotated[str | None, typer.Option(help="Override DPSCRIPT_LOG_LEVEL.")] = None,
) -> None:
    """Start the language server."""
    from dpscript_lsp.server.app import create_language_server

    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    server = create_language_server(settings)
    if tcp:
        stderr_console.print(f"[green]Starting language server on {host}:{port}[/green]")
        server.start_tcp(host, port)
    else:
        server.start_io()

import logging

from rich.console import Console
from rich.logging import RichHandler

# stdout carries the LSP stdio transport
stderr_console = Console(stderr=True)


def configure_logging(level: str = "INFO") -> None:
    """Route all logging to stderr through rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=stderr_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )

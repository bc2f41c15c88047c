from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from dpscript_lsp.core.classifier import classify
from dpscript_lsp.core.completion import entries_for_context, signature_help

console = Console()


def classify_line(
    line: Annotated[str, typer.Argument(help="Line of DPScript source.")],
    cursor: Annotated[int | None, typer.Option(help="Cursor offset (default: end of line).")] = None,
    trigger: Annotated[str | None, typer.Option(help="Trigger character, e.g. @ [ , .")] = None,
) -> None:
    """Show the completion context and items at a cursor position."""
    offset = len(line) if cursor is None else cursor
    context = classify(line, offset, trigger)
    anchor = "-" if context.anchor is None else str(context.anchor)
    console.print(f"context: [bold]{context.kind.value}[/bold] (anchor {anchor})")

    entries = entries_for_context(context)
    if entries:
        table = Table(show_lines=False)
        for header in ("label", "insert", "detail"):
            table.add_column(header)
        for entry in entries:
            table.add_row(entry.label, entry.insert_text or "", entry.detail or "")
        console.print(table)
    console.print(f"({len(entries)} items)")

    result = signature_help(line, offset)
    if result is not None and result.signatures:
        info = result.signatures[0]
        console.print(f"signature: {info.label} (parameter {info.active_parameter})")

"""One-shot and watch-mode compiles outside an editor."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated

import typer
from pygls.uris import to_fs_path
from rich.console import Console
from rich.table import Table

from dpscript_lsp.compiler.batch import BatchCompiler
from dpscript_lsp.config import Settings, get_settings
from dpscript_lsp.core.diagnostics import DiagnosticTranslator
from dpscript_lsp.logs import configure_logging
from dpscript_lsp.models import DiagnosticRecord
from dpscript_lsp.watcher.watchfiles_adapter import WatchfilesWatcher

console = Console()


class DiskDocuments:
    """``DocumentSource`` that reads documents straight from disk."""

    def __init__(self, folders: Sequence[Path]) -> None:
        self._folders = list(folders)

    def get_text(self, uri: str) -> str | None:
        path = to_fs_path(uri)
        if path is None:
            return None
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError:
            return None

    def open_uris(self) -> list[str]:
        return []

    async def workspace_folders(self) -> list[Path]:
        return list(self._folders)


class CollectingPublisher:
    def __init__(self) -> None:
        self.published: dict[str, list[DiagnosticRecord]] = {}

    def publish(self, uri: str, diagnostics: Sequence[DiagnosticRecord]) -> None:
        self.published[uri] = list(diagnostics)


async def compile_folders(
    folders: Sequence[Path], settings: Settings, translator: DiagnosticTranslator | None = None
) -> Mapping[str, list[DiagnosticRecord]]:
    """Compile each folder in turn and return the diagnostics now standing."""
    if translator is None:
        translator = DiagnosticTranslator(DiskDocuments(folders), CollectingPublisher())
    batch = BatchCompiler(settings)
    for folder, report in await batch.run_all(folders):
        translator.apply_report(folder, report)
    return translator.store.snapshot()


def _render(diagnostics: Mapping[str, list[DiagnosticRecord]]) -> int:
    records = [record for uri in sorted(diagnostics) for record in diagnostics[uri]]
    if not records:
        console.print("[green]No errors.[/green]")
        return 0
    table = Table(show_lines=False)
    for header in ("file", "line", "column", "message"):
        table.add_column(header)
    for record in records:
        table.add_row(to_fs_path(record.uri) or record.uri, str(record.line + 1), str(record.column), record.message)
    console.print(table)
    console.print(f"[red]{len(records)} error(s)[/red]")
    return len(records)


def compile_command(
    folders: Annotated[list[Path], typer.Argument(help="Datapack folders to compile, in order.")],
    log_level: Annotated[str | None, typer.Option(help="Override DPSCRIPT_LOG_LEVEL.")] = None,
) -> None:
    """Compile datapack folders once and print the reported errors."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    resolved = [folder.resolve() for folder in folders]
    diagnostics = asyncio.run(compile_folders(resolved, settings))
    if _render(diagnostics):
        raise typer.Exit(1)


def watch_command(
    folder: Annotated[Path, typer.Argument(help="Datapack folder to watch.")],
    log_level: Annotated[str | None, typer.Option(help="Override DPSCRIPT_LOG_LEVEL.")] = None,
) -> None:
    """Recompile a datapack folder whenever one of its sources changes."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    root = folder.resolve()
    translator = DiagnosticTranslator(DiskDocuments([root]), CollectingPublisher())

    async def _recompile(_changed: set[Path] | None = None) -> None:
        _render(await compile_folders([root], settings, translator))

    async def _run() -> None:
        await _recompile()
        watcher = WatchfilesWatcher(root, _recompile)
        await watcher.start()
        try:
            await watcher.wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from dpscript_lsp.config import Settings
from dpscript_lsp.errors import CompilerTimeoutError, ReportError
from dpscript_lsp.models import CompilerReport

logger = logging.getLogger(__name__)


def read_report(path: Path) -> CompilerReport | None:
    """Load a batch report; ``None`` when no report was written."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return None
    try:
        return CompilerReport.model_validate_json(raw)
    except (ValidationError, UnicodeDecodeError) as exc:
        raise ReportError(f"invalid compiler report {path}: {exc}") from exc


class BatchCompiler:
    """One-shot compiler invocations, strictly one at a time.

    Every invocation writes the same report file, so a folder is compiled
    only after the previous folder's process exited and its report was read.

    Implements the ``BatchCompilerPort`` protocol.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._lock = asyncio.Lock()

    async def run_folder(self, folder: Path) -> CompilerReport | None:
        async with self._lock:
            return await self._run_locked(folder)

    async def run_all(self, folders: Sequence[Path]) -> list[tuple[Path, CompilerReport | None]]:
        results: list[tuple[Path, CompilerReport | None]] = []
        async with self._lock:
            for folder in folders:
                results.append((folder, await self._run_locked(folder)))
        return results

    async def _run_locked(self, folder: Path) -> CompilerReport | None:
        argv = self._settings.batch_invocation_argv(folder)
        report_path = self._settings.report_path
        logger.info("Compiling datapack %s", folder)
        try:
            # a report left by an earlier invocation must not be read as this one's
            report_path.unlink(missing_ok=True)
            await self._invoke(argv)
        except (OSError, CompilerTimeoutError):
            logger.exception("Compiler invocation failed for %s", folder)
            return None

        try:
            report = read_report(report_path)
        except (OSError, ReportError):
            logger.exception("Could not read compiler report %s", report_path)
            return None
        if report is None:
            logger.info("No compiler report at %s", report_path)
        else:
            logger.info("Compiler reported %d error(s) for %s", len(report.errors), folder)
        return report

    async def _invoke(self, argv: list[str]) -> int:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(self._settings.compiler_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._settings.compile_timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise CompilerTimeoutError(
                f"compiler exceeded {self._settings.compile_timeout:.0f}s and was killed"
            ) from exc
        for stream in (stdout, stderr):
            text = stream.decode("utf-8", errors="replace").strip()
            if text:
                logger.info("compiler: %s", text)
        if process.returncode:
            logger.warning("Compiler exited with code %s", process.returncode)
        return process.returncode if process.returncode is not None else 0

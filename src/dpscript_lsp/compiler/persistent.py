from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from pathlib import Path

from dpscript_lsp.config import Settings
from dpscript_lsp.errors import CompilerNotRunningError, CompilerTimeoutError

logger = logging.getLogger(__name__)

COMMAND_TERMINATOR = "\r\n"
# longest output line passed on whole; longer lines are dropped
STREAM_LIMIT = 4 * 1024 * 1024


class PersistentCompiler:
    """Long-lived compiler process bound to one workspace root.

    Commands go to stdin one at a time; stderr lines are handed to
    ``on_stderr_line`` and stdout is logged. ``on_exit`` fires once when the
    process ends for any reason other than :meth:`stop`.

    Implements the ``PersistentCompilerPort`` protocol.
    """

    def __init__(
        self,
        settings: Settings,
        root: str | Path,
        on_stderr_line: Callable[[str], object],
        on_exit: Callable[[int | None], None] | None = None,
        stream_limit: int = STREAM_LIMIT,
    ) -> None:
        self._settings = settings
        self._root = Path(root)
        self._on_stderr_line = on_stderr_line
        self._on_exit = on_exit
        self._stream_limit = stream_limit
        self._process: asyncio.subprocess.Process | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._write_lock = asyncio.Lock()
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    async def start(self) -> None:
        if self.is_running:
            return
        argv = self._settings.persistent_argv(self._root)
        logger.info("Launching compiler: %s", " ".join(argv))
        self._stopping = False
        self._process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=self._stream_limit,
        )
        pumps = [
            asyncio.create_task(self._pump_stdout(self._process)),
            asyncio.create_task(self._pump_stderr(self._process)),
        ]
        self._tasks = [*pumps, asyncio.create_task(self._wait_exit(self._process, pumps))]
        logger.info("Compiler started (pid %s)", self._process.pid)

    async def stop(self) -> None:
        process = self._process
        if process is None:
            return
        self._stopping = True
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self._settings.command_timeout)
            except asyncio.TimeoutError:
                logger.warning("Compiler did not terminate, killing pid %s", process.pid)
                process.kill()
                await process.wait()
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        self._process = None
        logger.info("Compiler stopped")

    def kill(self) -> None:
        """Terminate the process without waiting; used on server shutdown."""
        if self._process is not None and self._process.returncode is None:
            self._stopping = True
            self._process.kill()

    async def send(self, command: str) -> None:
        """Write one command and wait until it is flushed to the process."""
        async with self._write_lock:
            process = self._process
            if process is None or process.returncode is not None or process.stdin is None:
                raise CompilerNotRunningError("compiler process is not running")
            logger.debug("compiler <- %s", command)
            process.stdin.write((command + COMMAND_TERMINATOR).encode("utf-8"))
            try:
                await asyncio.wait_for(process.stdin.drain(), timeout=self._settings.command_timeout)
            except asyncio.TimeoutError as exc:
                logger.error(
                    "Compiler did not accept %r within %.1fs, killing it", command, self._settings.command_timeout
                )
                process.kill()
                raise CompilerTimeoutError(f"timed out sending {command!r}") from exc
            except (BrokenPipeError, ConnectionResetError) as exc:
                raise CompilerNotRunningError("compiler closed its input") from exc

    async def log_errors(self) -> None:
        await self.send("/logerrors")

    async def compile(self, output_dir: str) -> None:
        await self.send(f"/compile {output_dir}")

    async def _pump_stdout(self, process: asyncio.subprocess.Process) -> None:
        assert process.stdout is not None
        async for line in self._lines(process.stdout, "stdout"):
            line = line.strip()
            if line:
                logger.info("compiler: %s", line)

    async def _pump_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        async for line in self._lines(process.stderr, "stderr"):
            try:
                self._on_stderr_line(line)
            except Exception:
                logger.exception("Error handling compiler output line")

    async def _lines(self, stream: asyncio.StreamReader, name: str) -> AsyncIterator[str]:
        while True:
            try:
                raw = await stream.readline()
            except ValueError:
                # the overlong part is dropped; reading resumes after it
                logger.warning("Dropped compiler %s output longer than %d bytes", name, self._stream_limit)
                continue
            if not raw:
                return
            yield raw.decode("utf-8", errors="replace")

    async def _wait_exit(self, process: asyncio.subprocess.Process, pumps: list[asyncio.Task[None]]) -> None:
        code = await process.wait()
        # drain buffered output before reporting the exit
        for result in await asyncio.gather(*pumps, return_exceptions=True):
            if isinstance(result, Exception):
                logger.error("Compiler output reader failed", exc_info=result)
        if self._stopping:
            return
        logger.warning("Compiler exited with code %s; diagnostics suspended until restart", code)
        if self._process is process:
            self._process = None
        if self._on_exit is not None:
            self._on_exit(code)

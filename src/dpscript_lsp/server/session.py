"""Per-connection state of the language server.

One :class:`Session` is built when the client initializes and torn down on
shutdown. It owns the compiler handle, the diagnostic store and the output
path recorded by ``server_start``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from dpscript_lsp.compiler.batch import BatchCompiler
from dpscript_lsp.compiler.persistent import PersistentCompiler
from dpscript_lsp.config import CompilerMode, Settings
from dpscript_lsp.core.diagnostics import DiagnosticTranslator
from dpscript_lsp.core.ports.compiler import BatchCompilerPort, PersistentCompilerPort
from dpscript_lsp.core.ports.documents import DocumentSource
from dpscript_lsp.core.ports.publisher import DiagnosticPublisher, SessionNotifier
from dpscript_lsp.errors import DPScriptError

logger = logging.getLogger(__name__)

RELOAD_SERVER = "reload_server"

PersistentFactory = Callable[
    [Settings, Path, Callable[[str], object], Callable[[int | None], None]], PersistentCompilerPort
]
BatchFactory = Callable[[Settings], BatchCompilerPort]


class Session:
    def __init__(
        self,
        settings: Settings,
        documents: DocumentSource,
        publisher: DiagnosticPublisher,
        notifier: SessionNotifier,
        persistent_factory: PersistentFactory = PersistentCompiler,
        batch_factory: BatchFactory = BatchCompiler,
    ) -> None:
        self.settings = settings
        self.documents = documents
        self.translator = DiagnosticTranslator(documents, publisher)
        self.output_path: str | None = None
        self.compiler: PersistentCompilerPort | None = None
        self.batch: BatchCompilerPort | None = None
        self.root: Path | None = None
        self._notifier = notifier
        self._persistent_factory = persistent_factory
        self._batch_factory = batch_factory
        self._compile_lock = asyncio.Lock()

    @property
    def diagnostics_enabled(self) -> bool:
        if self.settings.mode is CompilerMode.BATCH:
            return self.batch is not None
        return self.compiler is not None and self.compiler.is_running

    # -- lifecycle ------------------------------------------------------------

    async def start(self, root: Path | None) -> None:
        self.root = root
        if self.settings.mode is CompilerMode.BATCH:
            self.batch = self._batch_factory(self.settings)
            logger.info("Using one-shot compiler invocations")
            return
        if root is None:
            logger.warning("No workspace folder open; compiler not started")
            return
        await self.spawn_compiler()

    async def spawn_compiler(self) -> bool:
        """Launch the persistent compiler; returns whether it is running."""
        if self.root is None:
            return False
        compiler = self._persistent_factory(
            self.settings, self.root, self.translator.feed_line, self._on_compiler_exit
        )
        try:
            await compiler.start()
        except OSError:
            logger.exception("Could not launch compiler; diagnostics disabled")
            self.compiler = None
            return False
        self.compiler = compiler
        return True

    async def restart_compiler(self) -> bool:
        if self.settings.mode is CompilerMode.BATCH:
            return self.batch is not None
        async with self._compile_lock:
            if self.compiler is not None:
                await self.compiler.stop()
                self.compiler = None
            self.translator.reset_stream()
            return await self.spawn_compiler()

    def _on_compiler_exit(self, code: int | None) -> None:
        self.compiler = None
        self.translator.reset_stream()

    async def close(self) -> None:
        if self.compiler is not None:
            await self.compiler.stop()
            self.compiler = None
        self.translator.reset_stream()

    def kill(self) -> None:
        """Stop the compiler without awaiting, for synchronous shutdown paths."""
        if self.compiler is not None:
            self.compiler.kill()
            self.compiler = None
        self.translator.reset_stream()

    # -- notification bridge ----------------------------------------------------

    def server_started(self, path: str) -> None:
        logger.info("Live server started; recompiling into %s on save", path)
        self.output_path = path

    def server_stopped(self) -> None:
        logger.info("Live server stopped")
        self.output_path = None

    # -- compile passes ---------------------------------------------------------

    async def on_save(self, uri: str) -> None:
        async with self._compile_lock:
            if self.settings.mode is CompilerMode.BATCH:
                await self._batch_pass()
                return
            compiler = self.compiler
            if compiler is None or not compiler.is_running:
                logger.debug("Save of %s ignored, no compiler running", uri)
                return
            logger.info("Recompiling after save of %s", uri)
            self.translator.begin_pass([uri])
            try:
                await compiler.log_errors()
                if self.output_path:
                    await compiler.compile(self.output_path)
                    self._notifier.notify(RELOAD_SERVER)
            except DPScriptError:
                logger.exception("Recompile after save failed")

    async def request_compile(self) -> None:
        async with self._compile_lock:
            if self.settings.mode is CompilerMode.BATCH:
                await self._batch_pass()
                return
            compiler = self.compiler
            if compiler is None or not compiler.is_running or self.root is None:
                logger.warning("Compile requested but no compiler is running")
                return
            output_dir = str(self.root / self.settings.output_subdir)
            self.translator.begin_pass()
            try:
                await compiler.log_errors()
                await compiler.compile(output_dir)
            except DPScriptError:
                logger.exception("Manual compile failed")

    async def _batch_pass(self) -> None:
        if self.batch is None:
            return
        folders = await self.documents.workspace_folders()
        if not folders and self.root is not None:
            folders = [self.root]
        for folder in folders:
            report = await self.batch.run_folder(folder)
            self.translator.apply_report(folder, report)

    def on_close(self, uri: str) -> None:
        self.translator.forget(uri)

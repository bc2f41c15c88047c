"""Tests for the per-connection session with fake compilers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from dpscript_lsp.config import CompilerMode, Settings
from dpscript_lsp.errors import CompilerNotRunningError
from dpscript_lsp.models import CompilerReport, ReportEntry
from dpscript_lsp.server.session import RELOAD_SERVER, Session

ROOT = Path("/ws/pack")
URI_A = "file:///ws/pack/a.dps"


class FakePersistentCompiler:
    def __init__(
        self,
        settings: Settings,
        root: Path,
        on_stderr_line: Callable[[str], object],
        on_exit: Callable[[int | None], None],
    ) -> None:
        self.root = root
        self.on_stderr_line = on_stderr_line
        self.on_exit = on_exit
        self.commands: list[str] = []
        self.running = False
        self.fail_start = False
        self.fail_compile = False
        self.killed = False

    @property
    def is_running(self) -> bool:
        return self.running

    async def start(self) -> None:
        if self.fail_start:
            raise FileNotFoundError("java")
        self.running = True

    async def stop(self) -> None:
        self.running = False

    def kill(self) -> None:
        self.killed = True
        self.running = False

    async def log_errors(self) -> None:
        self.commands.append("/logerrors")

    async def compile(self, output_dir: str) -> None:
        if self.fail_compile:
            raise CompilerNotRunningError("gone")
        self.commands.append(f"/compile {output_dir}")
        self.on_stderr_line("error:/ws/pack/a.dps|2-1|bad\n")


class FakeBatchCompiler:
    def __init__(self, reports: dict[Path, CompilerReport | None]) -> None:
        self.reports = reports
        self.folders: list[Path] = []

    async def run_folder(self, folder: Path) -> CompilerReport | None:
        self.folders.append(folder)
        return self.reports.get(folder)

    async def run_all(self, folders: Sequence[Path]) -> list[tuple[Path, CompilerReport | None]]:
        return [(folder, await self.run_folder(folder)) for folder in folders]


class CompilerFactory:
    def __init__(self, fail_start: bool = False) -> None:
        self.created: list[FakePersistentCompiler] = []
        self.fail_start = fail_start

    def __call__(self, settings, root, on_stderr_line, on_exit) -> FakePersistentCompiler:
        compiler = FakePersistentCompiler(settings, root, on_stderr_line, on_exit)
        compiler.fail_start = self.fail_start
        self.created.append(compiler)
        return compiler

    @property
    def last(self) -> FakePersistentCompiler:
        return self.created[-1]


@pytest.fixture
def factory() -> CompilerFactory:
    return CompilerFactory()


@pytest.fixture
def session(documents, publisher, factory) -> Session:
    return Session(Settings(), documents, publisher, publisher, persistent_factory=factory)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_spawns_compiler_for_root(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(ROOT)
        assert factory.last.root == ROOT
        assert session.diagnostics_enabled

    @pytest.mark.asyncio
    async def test_no_root_means_no_compiler(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(None)
        assert factory.created == []
        assert not session.diagnostics_enabled

    @pytest.mark.asyncio
    async def test_launch_failure_disables_diagnostics(self, documents, publisher) -> None:
        session = Session(Settings(), documents, publisher, publisher, persistent_factory=CompilerFactory(True))
        await session.start(ROOT)
        assert session.compiler is None
        assert not session.diagnostics_enabled

    @pytest.mark.asyncio
    async def test_exit_disables_diagnostics(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(ROOT)
        factory.last.on_stderr_line("error:/ws/pack/a.dps|1-0|bad")
        factory.last.running = False

        factory.last.on_exit(1)

        assert session.compiler is None
        assert len(session.translator.accumulator) == 0
        assert [r.message for r in session.translator.store.get(URI_A)] == ["bad"]

    @pytest.mark.asyncio
    async def test_restart_replaces_compiler(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(ROOT)
        first = factory.last

        assert await session.restart_compiler() is True

        assert not first.running
        assert session.compiler is factory.last
        assert factory.last is not first

    @pytest.mark.asyncio
    async def test_kill_on_shutdown(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(ROOT)
        compiler = factory.last
        session.kill()
        assert compiler.killed
        assert session.compiler is None


class TestSaves:
    @pytest.mark.asyncio
    async def test_save_without_live_server(self, session: Session, factory: CompilerFactory, publisher) -> None:
        await session.start(ROOT)

        await session.on_save(URI_A)

        assert factory.last.commands == ["/logerrors"]
        assert publisher.calls == [(URI_A, [])]
        assert publisher.notifications == []

    @pytest.mark.asyncio
    async def test_save_with_live_server(self, session: Session, factory: CompilerFactory, publisher) -> None:
        await session.start(ROOT)
        session.server_started("/srv/world/datapacks")

        await session.on_save(URI_A)

        assert factory.last.commands == ["/logerrors", "/compile /srv/world/datapacks"]
        assert publisher.notifications == [(RELOAD_SERVER, None)]
        assert [r.message for r in publisher.last(URI_A)] == ["bad"]

    @pytest.mark.asyncio
    async def test_server_stop_forgets_output(self, session: Session, factory: CompilerFactory, publisher) -> None:
        await session.start(ROOT)
        session.server_started("/srv/world/datapacks")
        session.server_stopped()

        await session.on_save(URI_A)

        assert factory.last.commands == ["/logerrors"]
        assert publisher.notifications == []

    @pytest.mark.asyncio
    async def test_save_without_compiler_is_ignored(self, session: Session, publisher) -> None:
        await session.start(None)
        await session.on_save(URI_A)
        assert publisher.calls == []

    @pytest.mark.asyncio
    async def test_failed_compile_sends_no_reload(self, session: Session, factory: CompilerFactory, publisher) -> None:
        await session.start(ROOT)
        session.server_started("/srv/world/datapacks")
        factory.last.fail_compile = True

        await session.on_save(URI_A)

        assert publisher.notifications == []

    @pytest.mark.asyncio
    async def test_manual_compile_targets_output_subdir(self, session: Session, factory: CompilerFactory) -> None:
        await session.start(ROOT)
        await session.request_compile()
        assert factory.last.commands == ["/logerrors", f"/compile {ROOT / 'ignore/out'}"]

    @pytest.mark.asyncio
    async def test_close_clears_document(self, session: Session, factory: CompilerFactory, publisher) -> None:
        await session.start(ROOT)
        factory.last.on_stderr_line("error:/ws/pack/a.dps|1-0|bad")

        session.on_close(URI_A)

        assert publisher.last(URI_A) == []
        assert URI_A not in session.translator.accumulator


class TestBatchMode:
    @pytest.mark.asyncio
    async def test_save_compiles_every_folder_in_order(self, documents, publisher) -> None:
        other = Path("/ws/other")
        documents.folders = [ROOT, other]
        report = CompilerReport(errors=[ReportEntry(file="a.dps", line=1, column=0, message="bad")])
        batch = FakeBatchCompiler({ROOT: report})
        session = Session(
            Settings(mode=CompilerMode.BATCH),
            documents,
            publisher,
            publisher,
            batch_factory=lambda settings: batch,
        )
        await session.start(ROOT)

        await session.on_save(URI_A)

        assert batch.folders == [ROOT, other]
        assert [r.message for r in publisher.last(URI_A)] == ["bad"]
        assert publisher.notifications == []

    @pytest.mark.asyncio
    async def test_falls_back_to_root(self, documents, publisher) -> None:
        batch = FakeBatchCompiler({})
        session = Session(
            Settings(mode=CompilerMode.BATCH),
            documents,
            publisher,
            publisher,
            batch_factory=lambda settings: batch,
        )
        await session.start(ROOT)

        await session.request_compile()

        assert batch.folders == [ROOT]
        assert session.diagnostics_enabled

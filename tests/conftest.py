"""Shared fixtures and helpers for tests."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from dpscript_lsp.config import CompilerMode, Settings
from dpscript_lsp.models import DiagnosticRecord

_TESTS_DIR = Path(__file__).parent
_FIXTURES_DIR = _TESTS_DIR / "fixtures"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_TESTS_DIR)
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# In-memory editor collaborators
# ---------------------------------------------------------------------------


class InMemoryDocuments:
    """``DocumentSource`` holding open documents in a dict keyed by uri."""

    def __init__(self, texts: dict[str, str] | None = None, folders: Sequence[Path] = ()) -> None:
        self.texts: dict[str, str] = dict(texts or {})
        self.folders = list(folders)

    def get_text(self, uri: str) -> str | None:
        return self.texts.get(uri)

    def open_uris(self) -> list[str]:
        return list(self.texts)

    async def workspace_folders(self) -> list[Path]:
        return list(self.folders)


class RecordingPublisher:
    """Collects every publish and notification in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[DiagnosticRecord]]] = []
        self.notifications: list[tuple[str, Any]] = []

    def publish(self, uri: str, diagnostics: Sequence[DiagnosticRecord]) -> None:
        self.calls.append((uri, list(diagnostics)))

    def notify(self, method: str, params: Any = None) -> None:
        self.notifications.append((method, params))

    def last(self, uri: str) -> list[DiagnosticRecord] | None:
        for published_uri, diagnostics in reversed(self.calls):
            if published_uri == uri:
                return diagnostics
        return None

    def uris(self) -> list[str]:
        return [uri for uri, _ in self.calls]


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def documents() -> InMemoryDocuments:
    return InMemoryDocuments()


# ---------------------------------------------------------------------------
# Fake compilers
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_server_argv() -> list[str]:
    return [sys.executable, str(_FIXTURES_DIR / "fake_server_compiler.py")]


@pytest.fixture
def fake_batch_argv() -> list[str]:
    return [sys.executable, str(_FIXTURES_DIR / "fake_batch_compiler.py")]


@pytest.fixture
def persistent_settings(tmp_path: Path, fake_server_argv: list[str]) -> Settings:
    return Settings(compiler_dir=tmp_path, server_argv=fake_server_argv, command_timeout=5.0)


@pytest.fixture
def batch_settings(tmp_path: Path, fake_batch_argv: list[str]) -> Settings:
    compiler_dir = tmp_path / "compiler"
    compiler_dir.mkdir()
    return Settings(
        compiler_dir=compiler_dir,
        batch_argv=fake_batch_argv,
        mode=CompilerMode.BATCH,
        compile_timeout=20.0,
    )

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from dpscript_lsp.models import CompilerReport


class PersistentCompilerPort(Protocol):
    @property
    def is_running(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    def kill(self) -> None: ...

    async def log_errors(self) -> None: ...

    async def compile(self, output_dir: str) -> None: ...


class BatchCompilerPort(Protocol):
    async def run_folder(self, folder: Path) -> CompilerReport | None: ...

    async def run_all(self, folders: Sequence[Path]) -> list[tuple[Path, CompilerReport | None]]: ...

"""Runtime settings for the compiler supervisor and the language server."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_ENV_PREFIX = "DPSCRIPT_"


class CompilerMode(str, Enum):
    PERSISTENT = "persistent"
    BATCH = "batch"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    java: str = "java"
    compiler_dir: Path = Field(default_factory=Path.cwd)
    server_jar: str = "DPScriptServer.jar"
    batch_jar: str = "DPScript.jar"
    report_file: str = "compilerOutput.json"
    mode: CompilerMode = CompilerMode.PERSISTENT
    output_subdir: str = "ignore/out"
    command_timeout: float = Field(default=10.0, gt=0)
    compile_timeout: float = Field(default=120.0, gt=0)
    log_level: str = "INFO"
    server_argv: list[str] | None = None
    batch_argv: list[str] | None = None

    @property
    def report_path(self) -> Path:
        return self.compiler_dir / self.report_file

    def persistent_argv(self, root: str | Path) -> list[str]:
        """Command line for the long-lived compiler bound to ``root``."""
        if self.server_argv:
            return [*self.server_argv, str(root)]
        return [self.java, "-jar", str(self.compiler_dir / self.server_jar), str(root)]

    def batch_invocation_argv(self, folder: str | Path) -> list[str]:
        """Command line for one one-shot compile of ``folder``."""
        if self.batch_argv:
            return [*self.batch_argv, str(folder)]
        return [self.java, "-jar", str(self.compiler_dir / self.batch_jar), str(folder)]

    def with_overrides(self, options: Mapping[str, Any] | None) -> Settings:
        """Return a validated copy updated from client-supplied options.

        Keys may be the camelCase aliases (as sent by editors) or field names.
        Unknown keys are ignored.
        """
        if not options:
            return self
        names = {to_camel(name): name for name in Settings.model_fields}
        updates: dict[str, Any] = {}
        for key, value in options.items():
            name = names.get(str(key), str(key))
            if name in Settings.model_fields:
                updates[name] = value
        if not updates:
            return self
        return Settings.model_validate({**self.model_dump(), **updates})


def get_settings() -> Settings:
    """Build settings from ``DPSCRIPT_*`` environment variables."""
    values: dict[str, Any] = {}
    for name in Settings.model_fields:
        if name in ("server_argv", "batch_argv"):
            continue
        raw = os.getenv(_ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = raw
    return Settings.model_validate(values)


def apply_log_level(raw: str | None) -> None:
    """Set the root logger level from a name such as ``debug`` or ``warning``."""
    if not raw:
        return
    level = getattr(logging, raw.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)
    else:
        logger.warning("Ignoring unknown log level %r", raw)

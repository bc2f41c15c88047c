from collections.abc import Sequence
from typing import Any, Protocol

from dpscript_lsp.models import DiagnosticRecord


class DiagnosticPublisher(Protocol):
    def publish(self, uri: str, diagnostics: Sequence[DiagnosticRecord]) -> None: ...


class SessionNotifier(Protocol):
    def notify(self, method: str, params: Any = None) -> None: ...

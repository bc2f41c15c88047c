from typing import Any

from lsprotocol.types import DiagnosticSeverity
from pydantic import BaseModel, ConfigDict

DIAGNOSTIC_SOURCE = "dpscript"


class DiagnosticRecord(BaseModel):
    """One compiler error resolved to a zero-length range in a document."""

    model_config = ConfigDict(frozen=True)

    uri: str
    line: int
    column: int
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.Error
    source: str = DIAGNOSTIC_SOURCE


class ReportEntry(BaseModel):
    file: str
    line: int
    column: int
    message: str


class CompilerReport(BaseModel):
    """JSON report written by a one-shot compiler invocation."""

    errors: list[ReportEntry] = []
    suggestions: list[Any] = []

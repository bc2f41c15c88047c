"""Turn compiler output into per-document diagnostics.

Two inputs are understood: the persistent compiler's stderr stream, one
``error:<file>|<line>-<col>|<message>`` record per line, and the JSON report
written by a one-shot compile. Lines and columns arrive 1-based and 0-based
respectively; a line of ``-1`` means "end of document".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pygls.uris import from_fs_path

from dpscript_lsp.core.ports.documents import DocumentSource
from dpscript_lsp.core.ports.publisher import DiagnosticPublisher
from dpscript_lsp.models import CompilerReport, DiagnosticRecord

logger = logging.getLogger(__name__)

ERROR_PREFIX = "error:"
END_OF_DOCUMENT = -1


@dataclass(frozen=True)
class StreamedError:
    file: str
    line: int
    column: int
    message: str


def parse_error_line(raw: str) -> StreamedError | None:
    """Parse one stderr line.

    Returns ``None`` for informational output. Raises ``ValueError`` when the
    line carries the error prefix but not the ``file|line-col|message`` shape.
    """
    text = raw.rstrip("\r\n")
    if not text.startswith(ERROR_PREFIX):
        return None
    sep1 = text.find("|", len(ERROR_PREFIX))
    if sep1 < 0:
        raise ValueError(f"missing file separator in {text!r}")
    # skip one character so a negative line number keeps its sign
    dash = text.find("-", sep1 + 2)
    if dash < 0:
        raise ValueError(f"missing line/column separator in {text!r}")
    sep2 = text.find("|", dash + 1)
    if sep2 < 0:
        raise ValueError(f"missing message separator in {text!r}")
    return StreamedError(
        file=text[len(ERROR_PREFIX) : sep1],
        line=int(text[sep1 + 1 : dash]),
        column=int(text[dash + 1 : sep2]),
        message=text[sep2 + 1 :],
    )


def end_of_document(text: str) -> tuple[int, int]:
    """Position of the last character offset in ``text``."""
    if not text:
        return 0, 0
    offset = len(text) - 1
    line = text.count("\n", 0, offset)
    character = offset - (text.rfind("\n", 0, offset) + 1)
    return line, character


def resolve_position(line: int, column: int, text: str | None) -> tuple[int, int]:
    if line == END_OF_DOCUMENT:
        return end_of_document(text or "")
    return max(line - 1, 0), max(column, 0)


def path_to_uri(path: str) -> str | None:
    return from_fs_path(path)


def _is_within(uri: str, folder_uri: str) -> bool:
    return uri.startswith(folder_uri.rstrip("/") + "/")


class DiagnosticStore:
    """Last published diagnostics per document uri."""

    def __init__(self, publisher: DiagnosticPublisher) -> None:
        self._publisher = publisher
        self._entries: dict[str, list[DiagnosticRecord]] = {}

    def publish(self, uri: str, records: Sequence[DiagnosticRecord]) -> None:
        if records:
            self._entries[uri] = list(records)
        else:
            self._entries.pop(uri, None)
        self._publisher.publish(uri, list(records))

    def get(self, uri: str) -> list[DiagnosticRecord]:
        return list(self._entries.get(uri, []))

    def uris(self) -> list[str]:
        return list(self._entries)

    def snapshot(self) -> Mapping[str, list[DiagnosticRecord]]:
        return {uri: list(records) for uri, records in self._entries.items()}


class StreamingAccumulator:
    """Diagnostics streamed so far in the current compile pass."""

    def __init__(self) -> None:
        self._records: dict[str, list[DiagnosticRecord]] = {}

    def append(self, record: DiagnosticRecord) -> list[DiagnosticRecord]:
        records = self._records.setdefault(record.uri, [])
        records.append(record)
        return list(records)

    def evict(self, uri: str) -> None:
        self._records.pop(uri, None)

    def reset(self) -> None:
        self._records.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self._records

    def __len__(self) -> int:
        return len(self._records)


class DiagnosticTranslator:
    def __init__(self, documents: DocumentSource, publisher: DiagnosticPublisher) -> None:
        self._documents = documents
        self.store = DiagnosticStore(publisher)
        self.accumulator = StreamingAccumulator()

    def to_record(self, file: str, line: int, column: int, message: str) -> DiagnosticRecord | None:
        uri = path_to_uri(file)
        if uri is None:
            logger.warning("Cannot map compiler path %r to a document uri", file)
            return None
        text = self._documents.get_text(uri) if line == END_OF_DOCUMENT else None
        resolved_line, resolved_column = resolve_position(line, column, text)
        return DiagnosticRecord(uri=uri, line=resolved_line, column=resolved_column, message=message)

    # -- streaming format ---------------------------------------------------

    def begin_pass(self, extra_uris: Iterable[str] = ()) -> None:
        """Start a streamed compile pass.

        Clears the accumulator and publishes an empty list for every document
        that carried diagnostics, plus ``extra_uris``.
        """
        self.accumulator.reset()
        for uri in dict.fromkeys([*self.store.uris(), *extra_uris]):
            self.store.publish(uri, [])

    def feed_line(self, raw: str) -> DiagnosticRecord | None:
        try:
            parsed = parse_error_line(raw)
        except ValueError:
            logger.warning("Discarding malformed compiler error line: %r", raw.rstrip())
            return None
        if parsed is None:
            if raw.strip():
                logger.info("compiler: %s", raw.strip())
            return None

        record = self.to_record(parsed.file, parsed.line, parsed.column, parsed.message)
        if record is None:
            return None
        self.store.publish(record.uri, self.accumulator.append(record))
        return record

    def reset_stream(self) -> None:
        self.accumulator.reset()

    # -- batch report format ------------------------------------------------

    def apply_report(self, folder: Path, report: CompilerReport | None) -> dict[str, list[DiagnosticRecord]]:
        """Publish the result of one one-shot compile of ``folder``.

        A missing report counts as an empty result set. Documents inside
        ``folder`` that are open or carried diagnostics, and are absent from
        the result, get an empty list before the new diagnostics are published.
        """
        grouped: dict[str, list[DiagnosticRecord]] = {}
        if report is not None:
            for entry in report.errors:
                record = self.to_record(str(folder / entry.file), entry.line, entry.column, entry.message)
                if record is not None:
                    grouped.setdefault(record.uri, []).append(record)

        folder_uri = path_to_uri(str(folder))
        if folder_uri is not None:
            candidates = dict.fromkeys([*self._documents.open_uris(), *self.store.uris()])
            for uri in candidates:
                if uri not in grouped and _is_within(uri, folder_uri):
                    self.store.publish(uri, [])

        for uri, records in grouped.items():
            logger.debug("Publishing %d diagnostic(s) to %s", len(records), uri)
            self.store.publish(uri, records)
        return grouped

    # -- lifecycle ------------------------------------------------------------

    def forget(self, uri: str) -> None:
        """Drop everything known about a closed document."""
        self.accumulator.evict(uri)
        self.store.publish(uri, [])

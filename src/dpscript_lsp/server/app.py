"""pygls language server exposing completion, signature help and compiler diagnostics."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from lsprotocol import types as lsp
from pydantic import ValidationError
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from dpscript_lsp.config import Settings, apply_log_level, get_settings
from dpscript_lsp.core.classifier import (
    MEMBER_TRIGGER,
    PARAM_TRIGGERS,
    TARGET_TRIGGER,
    ContextKind,
    classify,
)
from dpscript_lsp.core.completion import CompletionEntry, SignatureResult, entries_for_context, signature_help
from dpscript_lsp.models import DiagnosticRecord
from dpscript_lsp.server.bridge import register_bridge
from dpscript_lsp.server.session import Session

logger = logging.getLogger(__name__)

SERVER_NAME = "dpscript-lsp"
SERVER_VERSION = "0.1.0"

COMPILE_COMMAND = "dpscript.compile"
RESTART_COMMAND = "dpscript.restartCompiler"

COMPLETION_TRIGGERS = [TARGET_TRIGGER, *sorted(PARAM_TRIGGERS), MEMBER_TRIGGER]
SIGNATURE_TRIGGERS = ["(", ","]

_ITEM_KINDS = {
    ContextKind.SELECTOR_TARGET: lsp.CompletionItemKind.Class,
    ContextKind.SELECTOR_PARAM: lsp.CompletionItemKind.Property,
    ContextKind.SELECTOR_MEMBER: lsp.CompletionItemKind.Method,
}


class DPScriptLanguageServer(LanguageServer):
    def __init__(self, settings: Settings, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_settings = settings
        self.session: Session | None = None


class WorkspaceDocuments:
    """``DocumentSource`` backed by the pygls workspace."""

    def __init__(self, ls: LanguageServer) -> None:
        self._ls = ls

    def get_text(self, uri: str) -> str | None:
        try:
            return self._ls.workspace.get_text_document(uri).source
        except OSError:
            return None

    def open_uris(self) -> list[str]:
        return list(self._ls.workspace.text_documents)

    async def workspace_folders(self) -> list[Path]:
        folders = []
        for folder in self._ls.workspace.folders.values():
            path = to_fs_path(folder.uri)
            if path:
                folders.append(Path(path))
        if not folders and self._ls.workspace.root_path:
            folders.append(Path(self._ls.workspace.root_path))
        return folders


class LspPublisher:
    """``DiagnosticPublisher`` and ``SessionNotifier`` over the client connection."""

    def __init__(self, ls: LanguageServer) -> None:
        self._ls = ls

    def publish(self, uri: str, diagnostics: Sequence[DiagnosticRecord]) -> None:
        self._ls.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=[to_lsp_diagnostic(d) for d in diagnostics])
        )

    def notify(self, method: str, params: Any = None) -> None:
        self._ls.protocol.notify(method, params)


def to_lsp_diagnostic(record: DiagnosticRecord) -> lsp.Diagnostic:
    position = lsp.Position(line=record.line, character=record.column)
    return lsp.Diagnostic(
        range=lsp.Range(start=position, end=position),
        message=record.message,
        severity=record.severity,
        source=record.source,
    )


def to_completion_item(entry: CompletionEntry, kind: lsp.CompletionItemKind | None = None) -> lsp.CompletionItem:
    return lsp.CompletionItem(
        label=entry.label,
        kind=kind,
        detail=entry.detail,
        documentation=entry.documentation,
        insert_text=entry.insert_text,
        insert_text_format=lsp.InsertTextFormat.Snippet if entry.is_snippet else None,
    )


def to_signature_help(result: SignatureResult) -> lsp.SignatureHelp:
    signatures = [
        lsp.SignatureInformation(
            label=info.label,
            documentation=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=info.documentation),
            parameters=[
                lsp.ParameterInformation(label=param.name, documentation=param.documentation)
                for param in info.parameters
            ],
        )
        for info in result.signatures
    ]
    if not signatures:
        return lsp.SignatureHelp(signatures=[])
    return lsp.SignatureHelp(
        signatures=signatures,
        active_signature=0,
        active_parameter=result.signatures[0].active_parameter,
    )


def _line_at(ls: LanguageServer, uri: str, line: int) -> str | None:
    try:
        lines = ls.workspace.get_text_document(uri).lines
    except OSError:
        return None
    if line < 0 or line >= len(lines):
        return ""
    return lines[line].rstrip("\r\n")


def _dpscript_section(settings: Any) -> dict[str, Any] | None:
    if isinstance(settings, dict):
        section = settings.get("dpscript", settings)
        return section if isinstance(section, dict) else None
    return None


def create_language_server(settings: Settings | None = None) -> DPScriptLanguageServer:
    """Create a language server with every feature registered."""

    server = DPScriptLanguageServer(
        settings or get_settings(),
        SERVER_NAME,
        SERVER_VERSION,
        text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
    )

    @server.feature(lsp.INITIALIZE)
    def initialize(ls: DPScriptLanguageServer, params: lsp.InitializeParams) -> None:
        settings = ls.base_settings
        options = params.initialization_options
        if isinstance(options, dict):
            try:
                settings = settings.with_overrides(options)
            except ValidationError:
                logger.exception("Ignoring invalid initializationOptions")
        apply_log_level(settings.log_level)
        publisher = LspPublisher(ls)
        ls.session = Session(settings, WorkspaceDocuments(ls), publisher, publisher)

    @server.feature(lsp.INITIALIZED)
    async def initialized(ls: DPScriptLanguageServer, params: lsp.InitializedParams) -> None:
        if ls.session is None:
            return
        folders = await ls.session.documents.workspace_folders()
        root = folders[0] if folders else None
        await ls.session.start(root)

    @server.feature(lsp.SHUTDOWN)
    def shutdown(ls: DPScriptLanguageServer, params: None) -> None:
        if ls.session is not None:
            ls.session.kill()
            ls.session = None

    @server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
    def did_change_configuration(ls: DPScriptLanguageServer, params: lsp.DidChangeConfigurationParams) -> None:
        section = _dpscript_section(params.settings)
        if ls.session is None or not section:
            return
        try:
            ls.session.settings = ls.session.settings.with_overrides(section)
        except ValidationError:
            logger.exception("Ignoring invalid dpscript configuration")
            return
        apply_log_level(ls.session.settings.log_level)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    async def did_save(ls: DPScriptLanguageServer, params: lsp.DidSaveTextDocumentParams) -> None:
        if ls.session is not None:
            await ls.session.on_save(params.text_document.uri)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: DPScriptLanguageServer, params: lsp.DidCloseTextDocumentParams) -> None:
        if ls.session is not None:
            ls.session.on_close(params.text_document.uri)

    @server.feature(
        lsp.TEXT_DOCUMENT_COMPLETION,
        lsp.CompletionOptions(trigger_characters=COMPLETION_TRIGGERS),
    )
    def completion(ls: DPScriptLanguageServer, params: lsp.CompletionParams) -> lsp.CompletionList | None:
        line = _line_at(ls, params.text_document.uri, params.position.line)
        if line is None:
            return None
        trigger = None
        if params.context is not None and params.context.trigger_kind == lsp.CompletionTriggerKind.TriggerCharacter:
            trigger = params.context.trigger_character
        context = classify(line, params.position.character, trigger)
        if context.kind is ContextKind.NONE:
            return None
        kind = _ITEM_KINDS.get(context.kind)
        items = [to_completion_item(entry, kind) for entry in entries_for_context(context)]
        return lsp.CompletionList(is_incomplete=False, items=items)

    @server.feature(
        lsp.TEXT_DOCUMENT_SIGNATURE_HELP,
        lsp.SignatureHelpOptions(trigger_characters=SIGNATURE_TRIGGERS),
    )
    def signature(ls: DPScriptLanguageServer, params: lsp.SignatureHelpParams) -> lsp.SignatureHelp | None:
        line = _line_at(ls, params.text_document.uri, params.position.line)
        if line is None:
            return None
        result = signature_help(line, params.position.character)
        if result is None:
            return None
        return to_signature_help(result)

    @server.command(COMPILE_COMMAND)
    async def compile_command(ls: DPScriptLanguageServer, *args: Any) -> None:
        if ls.session is not None:
            await ls.session.request_compile()

    @server.command(RESTART_COMMAND)
    async def restart_command(ls: DPScriptLanguageServer, *args: Any) -> bool:
        if ls.session is None:
            return False
        return await ls.session.restart_compiler()

    register_bridge(server)
    return server

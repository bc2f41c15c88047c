"""Tests for the language server wiring and LSP conversions."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from lsprotocol import types as lsp

from dpscript_lsp.config import Settings
from dpscript_lsp.core.completion import CompletionEntry, SignatureInfo, SignatureParameter, SignatureResult
from dpscript_lsp.models import DiagnosticRecord
from dpscript_lsp.server.app import (
    COMPILE_COMMAND,
    COMPLETION_TRIGGERS,
    RESTART_COMMAND,
    DPScriptLanguageServer,
    _dpscript_section,
    create_language_server,
    to_completion_item,
    to_lsp_diagnostic,
    to_signature_help,
)
from dpscript_lsp.server.bridge import COMPILE, SERVER_START, SERVER_STOP, string_argument


class TestConversions:
    def test_diagnostic_is_zero_length_error(self) -> None:
        record = DiagnosticRecord(uri="file:///a.dps", line=11, column=4, message="unexpected token")
        diagnostic = to_lsp_diagnostic(record)
        assert diagnostic.range.start == lsp.Position(line=11, character=4)
        assert diagnostic.range.end == diagnostic.range.start
        assert diagnostic.severity == lsp.DiagnosticSeverity.Error
        assert diagnostic.source == "dpscript"
        assert diagnostic.message == "unexpected token"

    def test_snippet_completion_item(self) -> None:
        entry = CompletionEntry(label="tag", documentation="Adds a tag", insert_text="tag($0)", is_snippet=True)
        item = to_completion_item(entry, lsp.CompletionItemKind.Method)
        assert item.insert_text == "tag($0)"
        assert item.insert_text_format == lsp.InsertTextFormat.Snippet
        assert item.kind == lsp.CompletionItemKind.Method

    def test_plain_completion_item(self) -> None:
        item = to_completion_item(CompletionEntry(label="pig", documentation="Targets all pigs."))
        assert item.insert_text is None
        assert item.insert_text_format is None

    def test_signature_help(self) -> None:
        info = SignatureInfo(
            label="tag(name)",
            documentation="Adds a tag",
            parameters=(SignatureParameter("name", "Tag to add"),),
            active_parameter=0,
        )
        help_ = to_signature_help(SignatureResult(signatures=(info,)))
        assert help_.active_signature == 0
        assert help_.active_parameter == 0
        assert help_.signatures[0].label == "tag(name)"
        assert help_.signatures[0].parameters[0].label == "name"

    def test_empty_signature_help(self) -> None:
        assert to_signature_help(SignatureResult()).signatures == []


class TestStringArgument:
    @pytest.mark.parametrize(
        "params",
        ["/srv/world", ["/srv/world"], {"path": "/srv/world"}, SimpleNamespace(path="/srv/world")],
        ids=["bare", "array", "object", "attribute"],
    )
    def test_accepted_shapes(self, params: object) -> None:
        assert string_argument(params) == "/srv/world"

    @pytest.mark.parametrize("params", [None, [], {}, {"path": 3}, 42])
    def test_rejected_shapes(self, params: object) -> None:
        assert string_argument(params) is None


class TestConfigurationSection:
    def test_nested_section(self) -> None:
        assert _dpscript_section({"dpscript": {"mode": "batch"}}) == {"mode": "batch"}

    def test_flat_settings(self) -> None:
        assert _dpscript_section({"mode": "batch"}) == {"mode": "batch"}

    def test_not_a_mapping(self) -> None:
        assert _dpscript_section(None) is None


class TestCreateLanguageServer:
    def test_builds_server_without_session(self) -> None:
        server = create_language_server(Settings())
        assert isinstance(server, DPScriptLanguageServer)
        assert server.session is None

    def test_registers_features(self) -> None:
        server = create_language_server(Settings())
        features = server.protocol.fm.features
        for method in (
            lsp.TEXT_DOCUMENT_COMPLETION,
            lsp.TEXT_DOCUMENT_SIGNATURE_HELP,
            lsp.TEXT_DOCUMENT_DID_SAVE,
            lsp.TEXT_DOCUMENT_DID_CLOSE,
            SERVER_START,
            SERVER_STOP,
            COMPILE,
        ):
            assert method in features
        assert COMPILE_COMMAND in server.protocol.fm.commands
        assert RESTART_COMMAND in server.protocol.fm.commands

    def test_completion_triggers(self) -> None:
        assert COMPLETION_TRIGGERS == ["@", ",", "[", "."]

from __future__ import annotations

from dataclasses import dataclass

from dpscript_lsp.core.classifier import CompletionContext, ContextKind, classify, is_word_char
from dpscript_lsp.core.tables import (
    ENTITIES,
    MEMBERS_BY_NAME,
    PLURAL_OVERRIDES,
    SELECTOR_ALIASES,
    SELECTOR_MEMBERS,
    SELECTOR_PARAMS,
)


@dataclass(frozen=True)
class CompletionEntry:
    label: str
    documentation: str | None = None
    detail: str | None = None
    insert_text: str | None = None
    is_snippet: bool = False


@dataclass(frozen=True)
class SignatureParameter:
    name: str
    documentation: str


@dataclass(frozen=True)
class SignatureInfo:
    label: str
    documentation: str
    parameters: tuple[SignatureParameter, ...]
    active_parameter: int = 0


@dataclass(frozen=True)
class SignatureResult:
    """Signature help answer; an empty ``signatures`` tuple means "known call, nothing to show"."""

    signatures: tuple[SignatureInfo, ...] = ()


def pluralize_entity(entity: str) -> str:
    """Plural used in target documentation, e.g. ``wolf`` -> ``wolves``."""
    plural = entity.replace("_", " ") + "s"
    return PLURAL_OVERRIDES.get(plural, plural)


def _target_entries() -> list[CompletionEntry]:
    entries = [
        CompletionEntry(
            label=entity,
            documentation=f"Targets all {pluralize_entity(entity)}. (Translates to @e[type={entity}])",
        )
        for entity in ENTITIES
    ]
    entries.extend(
        CompletionEntry(
            label=alias.name,
            documentation=alias.doc,
            detail="Aliases: " + ", ".join(alias.aliases),
        )
        for alias in SELECTOR_ALIASES
    )
    return entries


def _param_entries() -> list[CompletionEntry]:
    return [CompletionEntry(label=name, documentation=doc) for name, doc in SELECTOR_PARAMS.items()]


def _member_entries() -> list[CompletionEntry]:
    entries = []
    for member in SELECTOR_MEMBERS:
        if member.snippet:
            insert_text, is_snippet = member.snippet, True
        elif member.insert:
            insert_text, is_snippet = member.insert, False
        else:
            insert_text, is_snippet = member.name, False
        entries.append(
            CompletionEntry(
                label=member.name,
                documentation=member.doc,
                detail=member.usage,
                insert_text=insert_text,
                is_snippet=is_snippet,
            )
        )
    return entries


def entries_for_context(context: CompletionContext) -> list[CompletionEntry]:
    if context.kind is ContextKind.SELECTOR_TARGET:
        return _target_entries()
    if context.kind is ContextKind.SELECTOR_PARAM:
        return _param_entries()
    if context.kind is ContextKind.SELECTOR_MEMBER:
        return _member_entries()
    return []


def complete(line: str, cursor: int, trigger: str | None = None) -> list[CompletionEntry]:
    """Completion entries for ``cursor`` in ``line``; empty when no selector context applies."""
    return entries_for_context(classify(line, cursor, trigger))


def find_open_call(line: str, cursor: int) -> tuple[int, int] | None:
    """Locate the nearest unmatched ``(`` before ``cursor``.

    Returns the offset of the parenthesis and the number of top-level commas
    between it and the cursor, or ``None`` when every parenthesis is closed.
    """
    depth = 0
    commas = 0
    for index in range(min(cursor, len(line)) - 1, -1, -1):
        ch = line[index]
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth == 0:
                return index, commas
            depth -= 1
        elif ch == "," and depth == 0:
            commas += 1
    return None


def _member_documentation(doc: str, params: dict[str, str]) -> str:
    lines = [doc, "", "Parameters:"]
    lines.extend(f"- `{name}`: {description}" for name, description in params.items())
    return "\n".join(lines)


def signature_help(line: str, cursor: int) -> SignatureResult | None:
    """Signature of the member call enclosing ``cursor``.

    ``None`` when the cursor is not inside a call; an empty result when the
    called name is unknown or carries no usage string.
    """
    call = find_open_call(line, cursor)
    if call is None:
        return None
    paren, commas = call

    start = paren
    while start > 0 and is_word_char(line[start - 1]):
        start -= 1
    member = MEMBERS_BY_NAME.get(line[start:paren])
    if member is None or member.usage is None:
        return SignatureResult()

    parameters = tuple(SignatureParameter(name, doc) for name, doc in member.params.items())
    active = min(commas, len(parameters) - 1) if parameters else 0
    info = SignatureInfo(
        label=member.usage,
        documentation=_member_documentation(member.doc, dict(member.params)),
        parameters=parameters,
        active_parameter=active,
    )
    return SignatureResult(signatures=(info,))

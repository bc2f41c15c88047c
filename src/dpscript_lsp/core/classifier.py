"""Decide which selector completion applies at a cursor position.

Selector syntax on a line looks like ``@e[type=pig,tag=x].kill()``: an ``@``,
a head word, an optional bracketed parameter list and dot-suffixed members.
The line prefix is scanned left to right by a four-state machine:

``NONE``
    outside any selector.
``AFTER_AT``
    an ``@`` was seen, followed by zero or more head characters (whitespace
    is tolerated between ``@`` and the head).
``IN_BRACKET``
    inside the ``[`` that directly follows a selector head.
``AFTER_BRACKET_CLOSE``
    the selector's ``]`` was closed; trailing whitespace keeps this state.

Any character the current state does not expect drops back to ``NONE``, so
bracket text unrelated to a selector never enables parameter or member
completion. Member completion is further limited to a selector whose ``@``
follows every bracket group on the line except its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ContextKind(Enum):
    NONE = "none"
    SELECTOR_TARGET = "selector_target"
    SELECTOR_PARAM = "selector_param"
    SELECTOR_MEMBER = "selector_member"


@dataclass(frozen=True)
class CompletionContext:
    kind: ContextKind
    anchor: int | None = None


NO_CONTEXT = CompletionContext(ContextKind.NONE)

TARGET_TRIGGER = "@"
PARAM_TRIGGERS = frozenset("[,")
MEMBER_TRIGGER = "."


class PrefixState(Enum):
    NONE = "none"
    AFTER_AT = "after_at"
    IN_BRACKET = "in_bracket"
    AFTER_BRACKET_CLOSE = "after_bracket_close"


@dataclass(frozen=True)
class PrefixScan:
    state: PrefixState
    head_length: int = 0
    bracket_index: int = -1


def is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def word_range_at(line: str, offset: int) -> tuple[int, int] | None:
    """Return the ``[start, end)`` of the word touching ``offset``, if any."""
    offset = max(0, min(offset, len(line)))
    start = offset
    while start > 0 and is_word_char(line[start - 1]):
        start -= 1
    end = offset
    while end < len(line) and is_word_char(line[end]):
        end += 1
    if start == end:
        return None
    return start, end


def _step(scan: PrefixScan, index: int, ch: str) -> PrefixScan:
    state = scan.state
    if state is PrefixState.IN_BRACKET:
        if ch == "]":
            return PrefixScan(PrefixState.AFTER_BRACKET_CLOSE)
        if ch == "[":
            # nested lists are not selector parameters
            return PrefixScan(PrefixState.NONE)
        return scan
    if ch == "@":
        return PrefixScan(PrefixState.AFTER_AT)
    if state is PrefixState.AFTER_AT:
        if is_word_char(ch):
            return PrefixScan(PrefixState.AFTER_AT, scan.head_length + 1)
        if ch.isspace() and scan.head_length == 0:
            return scan
        if ch == "[" and scan.head_length > 0:
            return PrefixScan(PrefixState.IN_BRACKET, bracket_index=index)
        return PrefixScan(PrefixState.NONE)
    if state is PrefixState.AFTER_BRACKET_CLOSE and ch.isspace():
        return scan
    return PrefixScan(PrefixState.NONE)


def scan_prefix(prefix: str) -> PrefixScan:
    """Run the selector state machine over ``prefix``."""
    scan = PrefixScan(PrefixState.NONE)
    for index, ch in enumerate(prefix):
        scan = _step(scan, index, ch)
    return scan


def _selector_param(prefix: str) -> CompletionContext | None:
    scan = scan_prefix(prefix)
    if scan.state is PrefixState.IN_BRACKET:
        return CompletionContext(ContextKind.SELECTOR_PARAM, scan.bracket_index)
    return None


def _selector_member(line: str, cursor: int, trigger: str | None) -> CompletionContext | None:
    if cursor > 0 and line[cursor - 1] == MEMBER_TRIGGER:
        dot = cursor - 1
    elif trigger is None:
        word = word_range_at(line, cursor)
        if word is None or word[0] == 0 or line[word[0] - 1] != MEMBER_TRIGGER:
            return None
        dot = word[0] - 1
    else:
        return None

    prefix = line[:dot]
    scan = scan_prefix(prefix)
    if not (
        scan.state is PrefixState.AFTER_BRACKET_CLOSE or (scan.state is PrefixState.AFTER_AT and scan.head_length > 0)
    ):
        return None
    if not _owns_brackets(prefix):
        return None
    return CompletionContext(ContextKind.SELECTOR_MEMBER, dot)


def _owns_brackets(prefix: str) -> bool:
    """Whether the last ``@`` in ``prefix`` owns the bracket groups around it.

    The last ``@`` must come before the last ``[`` (or no ``[`` exists) and
    after the ``]`` that precedes the last ``]``. A selector written after any
    earlier bracket group on the line, as in ``list[0] @e.``, does not qualify.
    """
    last_at = prefix.rfind(TARGET_TRIGGER)
    last_open = prefix.rfind("[")
    previous_close = prefix.rfind("]", 0, max(prefix.rfind("]"), 0))
    return (last_open == -1 or last_at < last_open) and last_at > previous_close


def _selector_target(line: str, cursor: int, trigger: str | None) -> CompletionContext | None:
    if trigger == TARGET_TRIGGER:
        return CompletionContext(ContextKind.SELECTOR_TARGET, cursor)
    word = word_range_at(line, cursor)
    if word is None:
        return None
    start = word[0]
    if start > 0 and line[start - 1] == TARGET_TRIGGER:
        return CompletionContext(ContextKind.SELECTOR_TARGET, start)
    return None


def classify(line: str, cursor: int, trigger: str | None = None) -> CompletionContext:
    """Classify the completion context at ``cursor`` in ``line``.

    Rules are tried in the order parameter, member, target and only when the
    trigger character (if any) belongs to the rule. The anchor is the offset
    of the ``[``, the ``.`` or the start of the selector head respectively.
    """
    cursor = max(0, min(cursor, len(line)))
    context: CompletionContext | None = None
    if trigger is None or trigger in PARAM_TRIGGERS:
        context = _selector_param(line[:cursor])
    if context is None and trigger in (None, MEMBER_TRIGGER):
        context = _selector_member(line, cursor, trigger)
    if context is None and trigger in (None, TARGET_TRIGGER):
        context = _selector_target(line, cursor, trigger)
    return context or NO_CONTEXT

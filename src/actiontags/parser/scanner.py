# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Character-level scanner that splits annotation text into tags and plain text.

The scanner is a single pass over the input. Each mode of the state machine is
a small dataclass holding only the data that mode needs; a handler receives the
current state and character and returns the next state plus whether the
character was consumed. A handler that does not consume hands the same
character to the next state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from actiontags.config.settings import ParserConfig
from actiontags.model.segments import (
    ArgsParam,
    ConditionalBranches,
    IntegerParam,
    JsonParam,
    Parameter,
    ParseWarning,
    QuotedStringParam,
    Segment,
    SegmentKind,
    UnquotedStringParam,
)
from actiontags.parser.conditional import split_with_offsets

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

NOT_A_STARTER = "Did not qualify as Action Tag starter."
NOT_A_VALID_NAME = "Did not qualify as a valid Action Tag name."
MISSING_END_QUOTE = "Incomplete potential parameter. Missing end quote [{quote}]."
INCOMPLETE_JSON = "Incomplete or broken potential JSON parameter."
INCOMPLETE_ARGS = "Incomplete potential argument-style parameter (inside parentheses)."

JSON_ESCAPE_OUTSIDE_STRING = "Invalid JSON syntax: Escape character '\\' may only occur inside string literals."
JSON_INVALID_ESCAPE = (
    "Invalid escape sequence. See https://json.org for a list of allowed escape sequences inside JSON strings."
)
JSON_SINGLE_QUOTE = (
    "Invalid JSON syntax. Single quotes are only allowed inside strings. Did you mean to use a double quote?"
)
ARGS_ESCAPE_OUTSIDE_STRING = "Invalid parameter syntax: Escape character '\\' may only occur inside string literals."


def parse(
    text: str,
    offset: int = 0,
    *,
    tags_only: bool = False,
    config: ParserConfig | None = None,
) -> list[Segment]:
    """Split annotation text into outside-tag text and action tag segments.

    Never raises: malformed tag candidates become annotated OTS segments and
    suspicious parameter content becomes warnings on the tag. Unless
    *tags_only* is set, the returned segments cover the input exactly once
    and in order.

    Args:
        text: The text to scan.
        offset: Position of ``text[0]`` in the outermost input. All spans in
            the result are shifted by it. A positive offset marks a nested
            invocation, in which a comma also ends a tag name.
        tags_only: Drop OTS segments from the result.
        config: Parser settings; defaults to :class:`ParserConfig()`.

    Returns:
        The segments in input order. Well-formed conditional tags carry their
        recursively parsed branches.
    """
    segments = _Scanner(text, offset, config or ParserConfig()).scan()
    logger.debug("Parsed %d segment(s) from %d character(s) at offset %d", len(segments), len(text), offset)
    if tags_only:
        return [s for s in segments if s.is_tag]
    return segments


# ################
# Implementation
# ################

_ESCAPE = "\\"
_TAG_START = "@"
_NAME_FIRST_LAST = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
_NAME_MID = _NAME_FIRST_LAST | {"_", "-"}
_WHITESPACE = frozenset(" \t\n\r")
_NAME_TERMINATORS = frozenset(" \t=({\n\r")
_DIGITS = frozenset("0123456789")
_QUOTES = frozenset("\"'")
_JSON_OPENERS = {"{": "}", "[": "]"}
# Characters that may follow a backslash in a JSON string besides '"' and '\'.
_JSON_ESCAPABLE = frozenset("/bfnrtu")


@dataclass
class _PendingTag:
    """A validated tag name waiting for its (optional) parameter."""

    start: int
    name: str
    warnings: list[ParseWarning] = field(default_factory=list)

    @property
    def name_end(self) -> int:
        return self.start + len(self.name) - 1


@dataclass
class _OutsideTag:
    escaped: bool = False


@dataclass
class _InTagName:
    start: int


@dataclass
class _SearchingParam:
    tag: _PendingTag
    after_equals: bool = False


@dataclass
class _InIntegerParam:
    tag: _PendingTag
    start: int


@dataclass
class _InUnquotedParam:
    tag: _PendingTag
    start: int


@dataclass
class _InQuotedParam:
    tag: _PendingTag
    start: int
    quote: str
    chars: list[str] = field(default_factory=list)
    escaped: bool = False


@dataclass
class _InJsonParam:
    tag: _PendingTag
    start: int
    opener: str
    closer: str
    depth: int = 1
    in_string: bool = False
    escaped: bool = False


@dataclass
class _InArgsParam:
    tag: _PendingTag
    start: int
    depth: int = 1
    quote: str = ""
    escaped: bool = False
    line: list[str] = field(default_factory=list)
    in_comment: bool = False


_State = (
    _OutsideTag
    | _InTagName
    | _SearchingParam
    | _InIntegerParam
    | _InUnquotedParam
    | _InQuotedParam
    | _InJsonParam
    | _InArgsParam
)


class _Scanner:
    """Internal scanner state machine."""

    def __init__(self, source: str, offset: int, config: ParserConfig, depth: int = 0) -> None:
        self._source = source
        self._offset = offset
        self._config = config
        self._depth = depth
        self._nested = offset > 0 or depth > 0
        self._segments: list[Segment] = []
        # Start of the plain-text run not yet emitted, if any.
        self._run_start: int | None = None

    def scan(self) -> list[Segment]:
        """Run the state machine to the end of the input and return all segments."""
        state: _State | None = _OutsideTag()
        pos = 0
        while state is not None:
            state, advance = self._step(state, pos, self._char(pos))
            if advance:
                pos += 1
        return self._segments

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _char(self, pos: int) -> str:
        """Return the character at *pos*, or '' at end of input."""
        if 0 <= pos < len(self._source):
            return self._source[pos]
        return ""

    def _abs(self, pos: int) -> int:
        """Translate a position in this scanner's text to the outermost input."""
        return pos + self._offset

    # ------------------------------------------------------------------
    # State dispatcher
    # ------------------------------------------------------------------

    def _step(self, state: _State, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Dispatch the current character to the handler of the current mode."""
        if isinstance(state, _OutsideTag):
            return self._outside_tag(state, pos, ch)
        if isinstance(state, _InTagName):
            return self._in_tag_name(state, pos, ch)
        if isinstance(state, _SearchingParam):
            return self._searching_param(state, pos, ch)
        if isinstance(state, _InIntegerParam):
            return self._in_integer_param(state, pos, ch)
        if isinstance(state, _InUnquotedParam):
            return self._in_unquoted_param(state, pos, ch)
        if isinstance(state, _InQuotedParam):
            return self._in_quoted_param(state, pos, ch)
        if isinstance(state, _InJsonParam):
            return self._in_json_param(state, pos, ch)
        return self._in_args_param(state, pos, ch)

    # ------------------------------------------------------------------
    # Plain text and tag names
    # ------------------------------------------------------------------

    def _outside_tag(self, state: _OutsideTag, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Accumulate plain text until a qualifying '@' or the end of input."""
        if ch == "":
            self._flush_run(pos)
            return None, False
        if ch == _ESCAPE:
            self._extend_run(pos)
            return _OutsideTag(escaped=not state.escaped), True
        if ch == _TAG_START and not state.escaped:
            self._flush_run(pos)
            if not self._is_tag_start(pos):
                self._emit_ots(pos, pos, annotation=NOT_A_STARTER)
                return _OutsideTag(), True
            return _InTagName(start=pos), True
        # An escaped '@' or any other character stays in the text run.
        self._extend_run(pos)
        return _OutsideTag(), True

    def _is_tag_start(self, pos: int) -> bool:
        """Return True if the '@' at *pos* may start a tag name."""
        if self._char(pos + 1) not in _NAME_FIRST_LAST:
            return False
        return pos == 0 or self._source[pos - 1] in _WHITESPACE

    def _in_tag_name(self, state: _InTagName, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume name characters until a terminator decides the candidate's fate."""
        if ch == "" or ch in _NAME_TERMINATORS or (self._nested and ch == ","):
            name = self._source[state.start : pos]
            if name[-1] in _NAME_FIRST_LAST:
                return _SearchingParam(tag=_PendingTag(start=state.start, name=name)), False
            self._emit_ots(state.start, pos - 1, annotation=NOT_A_VALID_NAME)
            return _OutsideTag(), False
        if ch in _NAME_MID:
            return state, True
        self._emit_ots(state.start, pos - 1, annotation=NOT_A_VALID_NAME)
        return _OutsideTag(), False

    # ------------------------------------------------------------------
    # Parameter detection
    # ------------------------------------------------------------------

    def _searching_param(self, state: _SearchingParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Look past a valid tag name for the start of a parameter.

        Whitespace and '=' are held in the pending text run; they become part
        of the tag when a parameter follows and stay plain text otherwise.
        """
        if ch in _WHITESPACE:
            self._extend_run(pos)
            return state, True
        if not state.after_equals:
            if ch == "=":
                self._extend_run(pos)
                return _SearchingParam(tag=state.tag, after_equals=True), True
            if ch == "(":
                self._run_start = None
                return _InArgsParam(tag=state.tag, start=pos), True
        elif ch != "":
            self._run_start = None
            if ch in _QUOTES:
                return _InQuotedParam(tag=state.tag, start=pos, quote=ch), True
            if ch in _JSON_OPENERS:
                return _InJsonParam(tag=state.tag, start=pos, opener=ch, closer=_JSON_OPENERS[ch]), True
            if ch in _DIGITS:
                return _InIntegerParam(tag=state.tag, start=pos), True
            return _InUnquotedParam(tag=state.tag, start=pos), True
        # No parameter: the tag ends with its name and this character is
        # handled again as plain text.
        self._emit_tag(state.tag)
        return _OutsideTag(), False

    # ------------------------------------------------------------------
    # Parameter scanners
    # ------------------------------------------------------------------

    def _in_integer_param(self, state: _InIntegerParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume digits; any other non-whitespace turns the parameter into an unquoted string."""
        if ch == "" or ch in _WHITESPACE:
            raw = self._source[state.start : pos]
            param = IntegerParam(start=self._abs(state.start), end=self._abs(pos - 1), text=raw, raw=raw)
            self._emit_tag(state.tag, param, pos - 1)
            return _OutsideTag(), False
        if ch in _DIGITS:
            return state, True
        return _InUnquotedParam(tag=state.tag, start=state.start), True

    def _in_unquoted_param(self, state: _InUnquotedParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume anything up to the next whitespace."""
        if ch == "" or ch in _WHITESPACE:
            raw = self._source[state.start : pos]
            param = UnquotedStringParam(start=self._abs(state.start), end=self._abs(pos - 1), text=raw, raw=raw)
            self._emit_tag(state.tag, param, pos - 1)
            return _OutsideTag(), False
        return state, True

    def _in_quoted_param(self, state: _InQuotedParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume a quoted string, un-escaping the quote character and backslash."""
        if ch == "":
            self._emit_incomplete(state.tag, pos, MISSING_END_QUOTE.format(quote=state.quote))
            return None, False
        if state.escaped:
            state.escaped = False
            if ch != state.quote and ch != _ESCAPE:
                state.chars.append(_ESCAPE)
            state.chars.append(ch)
            return state, True
        if ch == _ESCAPE:
            state.escaped = True
            return state, True
        if ch == state.quote:
            param = QuotedStringParam(
                start=self._abs(state.start),
                end=self._abs(pos),
                text="".join(state.chars),
                raw=self._source[state.start : pos + 1],
                quote_char=state.quote,
            )
            self._emit_tag(state.tag, param, pos)
            return _OutsideTag(), True
        state.chars.append(ch)
        return state, True

    def _in_json_param(self, state: _InJsonParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume a JSON object or array by counting brackets outside string literals."""
        if ch == "":
            self._emit_incomplete(state.tag, pos, INCOMPLETE_JSON)
            return None, False
        if ch == _ESCAPE:
            if not state.in_string:
                self._warn(state.tag, JSON_ESCAPE_OUTSIDE_STRING, pos, pos)
            else:
                state.escaped = not state.escaped
            return state, True
        if ch == '"':
            if not state.in_string:
                state.in_string = True
            elif state.escaped:
                state.escaped = False
            else:
                state.in_string = False
            return state, True
        if state.escaped:
            state.escaped = False
            if ch not in _JSON_ESCAPABLE:
                self._warn(state.tag, JSON_INVALID_ESCAPE, pos - 1, pos)
        if ch == "'":
            if not state.in_string:
                self._warn(state.tag, JSON_SINGLE_QUOTE, pos, pos)
            return state, True
        if state.in_string:
            return state, True
        if ch == state.opener:
            state.depth += 1
        elif ch == state.closer:
            state.depth -= 1
            if state.depth == 0:
                raw = self._source[state.start : pos + 1]
                valid, error = _validate_json(raw)
                param = JsonParam(
                    start=self._abs(state.start),
                    end=self._abs(pos),
                    text=raw,
                    raw=raw,
                    valid=valid,
                    error=error,
                )
                self._emit_tag(state.tag, param, pos)
                return _OutsideTag(), True
        return state, True

    def _in_args_param(self, state: _InArgsParam, pos: int, ch: str) -> tuple[_State | None, bool]:
        """Consume a parenthesized argument list.

        Parentheses inside string literals and line comments are not counted.
        A line comment starts with '#' or '//' as the first non-whitespace
        content of a line and ends at the next newline. Quotes and backslashes
        inside a comment are plain text, so an apostrophe in a comment does
        not open a string literal.
        """
        if ch == "":
            self._emit_incomplete(state.tag, pos, INCOMPLETE_ARGS)
            return None, False
        if ch == "\n":
            state.line = []
            state.in_comment = False
        else:
            state.line.append(ch)
        if state.in_comment:
            return state, True
        if not state.quote and self._starts_comment(state, pos, ch):
            state.in_comment = True
            return state, True
        if ch == _ESCAPE:
            if not state.quote:
                self._warn(state.tag, ARGS_ESCAPE_OUTSIDE_STRING, pos, pos)
            else:
                state.escaped = not state.escaped
            return state, True
        if state.quote:
            if ch == state.quote and not state.escaped:
                state.quote = ""
            state.escaped = False
            return state, True
        if ch in _QUOTES:
            state.quote = ch
            return state, True
        if ch == "(":
            state.depth += 1
        elif ch == ")":
            state.depth -= 1
            if state.depth == 0:
                body = self._source[state.start + 1 : pos]
                param = ArgsParam(start=self._abs(state.start + 1), end=self._abs(pos - 1), text=body, raw=body)
                self._emit_tag(state.tag, param, pos)
                return _OutsideTag(), True
        return state, True

    def _starts_comment(self, state: _InArgsParam, pos: int, ch: str) -> bool:
        """Return True if *ch* completes a comment marker at the start of its line."""
        line = "".join(state.line).strip()
        if ch == "#":
            return line == "#"
        if ch == "/" and pos > 0 and self._source[pos - 1] == "/":
            return line == "//"
        return False

    # ------------------------------------------------------------------
    # Segment emission
    # ------------------------------------------------------------------

    def _extend_run(self, pos: int) -> None:
        """Make sure a plain-text run is open; it will include *pos*."""
        if self._run_start is None:
            self._run_start = pos

    def _flush_run(self, pos: int) -> None:
        """Emit the open plain-text run, which ends just before *pos*."""
        if self._run_start is not None and self._run_start < pos:
            self._emit_ots(self._run_start, pos - 1)
        self._run_start = None

    def _emit_ots(
        self,
        start: int,
        end: int,
        annotation: str | None = None,
        warnings: list[ParseWarning] | None = None,
    ) -> None:
        text = self._source[start : end + 1]
        self._segments.append(
            Segment(
                kind=SegmentKind.OTS,
                start=self._abs(start),
                end=self._abs(end),
                text=text,
                full=text,
                annotation=annotation,
                warnings=warnings or [],
            )
        )

    def _emit_tag(self, tag: _PendingTag, param: Parameter | None = None, end: int | None = None) -> None:
        """Emit a tag ending at *end* (its name end when there is no parameter)."""
        if end is None:
            end = tag.name_end
        warnings = list(tag.warnings)
        conditional = None
        if tag.name == self._config.conditional_tag and isinstance(param, ArgsParam):
            conditional = self._parse_conditional(tag.name, param, warnings)
        self._segments.append(
            Segment(
                kind=SegmentKind.TAG,
                start=self._abs(tag.start),
                end=self._abs(end),
                text=tag.name,
                full=self._source[tag.start : end + 1],
                warnings=warnings,
                param=param,
                conditional=conditional,
            )
        )

    def _emit_incomplete(self, tag: _PendingTag, pos: int, annotation: str) -> None:
        """Emit a tag without its unterminated parameter, then the rest of the input as annotated text.

        Warnings collected for the parameter move to the text segment.
        """
        warnings = tag.warnings
        tag.warnings = []
        self._emit_tag(tag)
        self._emit_ots(tag.name_end + 1, pos - 1, annotation=annotation, warnings=warnings)

    def _warn(self, tag: _PendingTag, message: str, start: int, end: int) -> None:
        tag.warnings.append(ParseWarning(message=message, start=self._abs(start), end=self._abs(end)))

    # ------------------------------------------------------------------
    # Conditional tags
    # ------------------------------------------------------------------

    def _parse_conditional(
        self,
        name: str,
        param: ArgsParam,
        warnings: list[ParseWarning],
    ) -> ConditionalBranches | None:
        """Split a conditional's arguments and parse its then/else branches.

        Returns None (after recording a warning) when the body does not have
        exactly three top-level parts or the nesting limit is reached.
        """
        parts = split_with_offsets(param.text)
        if len(parts) != 3:
            logger.debug("%s at %d has %d argument(s), expected 3", name, param.start, len(parts))
            warnings.append(
                ParseWarning(
                    message=f"Invalid {name} syntax: expected 3 comma-separated arguments, found {len(parts)}."
                )
            )
            return None
        if self._depth >= self._config.max_nesting_depth:
            logger.debug("%s at %d exceeds the nesting limit", name, param.start)
            warnings.append(
                ParseWarning(message=f"{name} nesting exceeds the maximum depth of {self._config.max_nesting_depth}.")
            )
            return None

        (condition, _), (then_text, then_offset), (else_text, else_offset) = parts
        then_start = param.start + then_offset
        else_start = param.start + else_offset
        return ConditionalBranches(
            condition_text=condition,
            then_text=then_text,
            else_text=else_text,
            then_start=then_start,
            else_start=else_start,
            then_segments=_Scanner(then_text, then_start, self._config, self._depth + 1).scan(),
            else_segments=_Scanner(else_text, else_start, self._config, self._depth + 1).scan(),
        )


def _reject_constant(name: str) -> None:
    raise ValueError(f"Invalid JSON value: {name}")


def _validate_json(text: str) -> tuple[bool, str | None]:
    """Strictly parse *text* as JSON and return ``(valid, error message)``."""
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        return False, str(exc)
    return True, None

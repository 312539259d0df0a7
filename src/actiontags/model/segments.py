# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Segment and parameter representations produced by the action tag scanner.

All positions are 0-based codepoint indexes into the outermost input string.
Spans are inclusive on both ends.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class SegmentKind(Enum):
    """The two kinds of segments a parse result consists of."""

    OTS = "OTS"
    TAG = "TAG"


class ParamKind(Enum):
    """Parameter kinds an action tag can carry."""

    INTEGER = "INT"
    UNQUOTED_STRING = "STRING"
    QUOTED_STRING = "QUOTED-STRING"
    JSON = "JSON"
    ARGS = "ARGS"
    NONE = "NONE"


class ParseWarning(BaseModel):
    """A non-fatal issue found while scanning a tag or its parameter.

    Attributes:
        message: Human-readable description of the issue.
        start: First offending position, or None for tag-level defects.
        end: Last offending position, or None for tag-level defects.
    """

    model_config = ConfigDict(frozen=True)

    message: str
    start: int | None = None
    end: int | None = None


class IntegerParam(BaseModel):
    """A run of digits following ``=``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["INT"] = "INT"
    start: int
    end: int
    text: str
    raw: str


class UnquotedStringParam(BaseModel):
    """Any run of non-whitespace characters following ``=``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["STRING"] = "STRING"
    start: int
    end: int
    text: str
    raw: str


class QuotedStringParam(BaseModel):
    """A single- or double-quoted string; ``text`` holds the unescaped value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["QUOTED-STRING"] = "QUOTED-STRING"
    start: int
    end: int
    text: str
    raw: str
    quote_char: str


class JsonParam(BaseModel):
    """A bracket-balanced JSON object or array and the outcome of a strict parse."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["JSON"] = "JSON"
    start: int
    end: int
    text: str
    raw: str
    valid: bool
    error: str | None = None


class ArgsParam(BaseModel):
    """A parenthesized argument list.

    The span and text cover the body between the parentheses only.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["ARGS"] = "ARGS"
    start: int
    end: int
    text: str
    raw: str

    @property
    def normalized_body(self) -> str:
        """Return the content between the enclosing parentheses."""
        return self.text


# A tag parameter; the `kind` discriminator keeps (de)serialization unambiguous.
Parameter = Annotated[
    IntegerParam | UnquotedStringParam | QuotedStringParam | JsonParam | ArgsParam,
    _Field(discriminator="kind"),
]


class ConditionalBranches(BaseModel):
    """The three parts of a conditional tag and its recursively parsed branches."""

    model_config = ConfigDict(frozen=True)

    condition_text: str
    then_text: str
    else_text: str
    then_start: int
    else_start: int
    then_segments: list[Segment] = _Field(default_factory=list)
    else_segments: list[Segment] = _Field(default_factory=list)


class Segment(BaseModel):
    """One contiguous piece of parsed text: literal text (OTS) or an action tag.

    Attributes:
        kind: Whether this is outside-tag text or a tag.
        start: Position of the first character of the segment.
        end: Position of the last character (covers any parameter of a tag).
        text: The literal text for OTS segments, the tag name for tags.
        full: The exact source substring covered by the segment.
        annotation: Why a tag candidate was downgraded to OTS, if it was.
        warnings: Non-fatal issues with a tag or its parameter.
        param: The tag's parameter, if any.
        conditional: Parsed branches when the tag is a well-formed conditional.
    """

    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    start: int
    end: int
    text: str
    full: str
    annotation: str | None = None
    warnings: list[ParseWarning] = _Field(default_factory=list)
    param: Parameter | None = None
    conditional: ConditionalBranches | None = None

    @property
    def is_tag(self) -> bool:
        """Return True for TAG segments."""
        return self.kind == SegmentKind.TAG

    @property
    def length(self) -> int:
        """Return the number of characters covered by the segment."""
        return self.end - self.start + 1

    @property
    def name_end(self) -> int:
        """Return the position of the last character of a tag name (or of the OTS text)."""
        return self.start + len(self.text) - 1


# Resolve forward references between the mutually recursive models.
ConditionalBranches.model_rebuild()
Segment.model_rebuild()


def walk_tags(segments: list[Segment]) -> Iterator[tuple[Segment, Segment | None]]:
    """Yield every tag in pre-order, paired with its enclosing conditional tag.

    Both branches of each conditional are visited, then-branch first. Top-level
    tags are paired with None.
    """
    yield from _walk_tags(segments, None)


# ################
# Implementation
# ################


def _walk_tags(segments: list[Segment], parent: Segment | None) -> Iterator[tuple[Segment, Segment | None]]:
    for segment in segments:
        if not segment.is_tag:
            continue
        yield segment, parent
        if segment.conditional is not None:
            yield from _walk_tags(segment.conditional.then_segments, segment)
            yield from _walk_tags(segment.conditional.else_segments, segment)

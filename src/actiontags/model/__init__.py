# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parse result model for action tags (segments, parameters, conditionals)."""

from actiontags.model.segments import (
    ArgsParam,
    ConditionalBranches,
    IntegerParam,
    JsonParam,
    Parameter,
    ParamKind,
    ParseWarning,
    QuotedStringParam,
    Segment,
    SegmentKind,
    UnquotedStringParam,
    walk_tags,
)

__all__ = [
    # Kinds
    "SegmentKind",
    "ParamKind",
    # Parameters
    "IntegerParam",
    "UnquotedStringParam",
    "QuotedStringParam",
    "JsonParam",
    "ArgsParam",
    "Parameter",
    # Segments
    "ParseWarning",
    "ConditionalBranches",
    "Segment",
    "walk_tags",
]

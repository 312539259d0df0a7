# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of parse results.

Parse results are stored as compact JSON for exchange with other tools. The
format is versioned so future schema changes can be detected. Optional
attributes that are unset are omitted.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

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

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"


def serialize(segments: list[Segment]) -> str:
    """Serialize a parse result to a compact JSON string."""
    return json.dumps(to_dict(segments), separators=(",", ":"), ensure_ascii=False)


def to_dict(segments: list[Segment]) -> dict[str, Any]:
    """Return the versioned, JSON-compatible form of a parse result."""
    return {"v": ARTIFACT_FORMAT_VERSION, "segments": [_segment_to_dict(s) for s in segments]}


def deserialize(data: str) -> list[Segment]:
    """Deserialize a parse result from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed segments.

    Raises:
        ValueError: If the data is not valid JSON, the format version is not
            recognised, or a parameter kind is unknown.
    """
    obj = json.loads(data)
    version = obj.get("v") if isinstance(obj, dict) else None
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")
    return [_segment_from_dict(s) for s in obj.get("segments", [])]


def write_artifact(segments: list[Segment], path: Path) -> None:
    """Write a parse result to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(segments), encoding="utf-8")


def read_artifact(path: Path) -> list[Segment]:
    """Read and deserialize a parse result from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################

_PARAM_TYPES: dict[str, type[Any]] = {
    "INT": IntegerParam,
    "STRING": UnquotedStringParam,
    "QUOTED-STRING": QuotedStringParam,
    "JSON": JsonParam,
    "ARGS": ArgsParam,
}


def _segment_to_dict(segment: Segment) -> dict[str, Any]:
    d: dict[str, Any] = {
        "kind": segment.kind.value,
        "start": segment.start,
        "end": segment.end,
        "text": segment.text,
        "full": segment.full,
    }
    if segment.annotation is not None:
        d["annotation"] = segment.annotation
    if segment.warnings:
        d["warnings"] = [_warning_to_dict(w) for w in segment.warnings]
    if segment.param is not None:
        d["param"] = _param_to_dict(segment.param)
    if segment.conditional is not None:
        d["conditional"] = _conditional_to_dict(segment.conditional)
    return d


def _segment_from_dict(obj: dict[str, Any]) -> Segment:
    param = obj.get("param")
    conditional = obj.get("conditional")
    return Segment(
        kind=SegmentKind(obj["kind"]),
        start=obj["start"],
        end=obj["end"],
        text=obj["text"],
        full=obj["full"],
        annotation=obj.get("annotation"),
        warnings=[_warning_from_dict(w) for w in obj.get("warnings", [])],
        param=_param_from_dict(param) if param is not None else None,
        conditional=_conditional_from_dict(conditional) if conditional is not None else None,
    )


def _warning_to_dict(warning: ParseWarning) -> dict[str, Any]:
    d: dict[str, Any] = {"message": warning.message}
    if warning.start is not None:
        d["start"] = warning.start
    if warning.end is not None:
        d["end"] = warning.end
    return d


def _warning_from_dict(obj: dict[str, Any]) -> ParseWarning:
    return ParseWarning(message=obj["message"], start=obj.get("start"), end=obj.get("end"))


def _param_to_dict(param: Parameter) -> dict[str, Any]:
    d: dict[str, Any] = {
        "kind": param.kind,
        "start": param.start,
        "end": param.end,
        "text": param.text,
        "raw": param.raw,
    }
    if isinstance(param, QuotedStringParam):
        d["quote"] = param.quote_char
    elif isinstance(param, JsonParam):
        d["valid"] = param.valid
        if param.error is not None:
            d["error"] = param.error
    return d


def _param_from_dict(obj: dict[str, Any]) -> Parameter:
    kind = obj["kind"]
    param_type = _PARAM_TYPES.get(kind)
    if param_type is None:
        raise ValueError(f"Unknown parameter kind: {kind!r}")
    common = {"start": obj["start"], "end": obj["end"], "text": obj["text"], "raw": obj["raw"]}
    if param_type is QuotedStringParam:
        return QuotedStringParam(**common, quote_char=obj["quote"])
    if param_type is JsonParam:
        return JsonParam(**common, valid=obj["valid"], error=obj.get("error"))
    return param_type(**common)


def _conditional_to_dict(branches: ConditionalBranches) -> dict[str, Any]:
    return {
        "condition": branches.condition_text,
        "then": branches.then_text,
        "else": branches.else_text,
        "then_start": branches.then_start,
        "else_start": branches.else_start,
        "then_segments": [_segment_to_dict(s) for s in branches.then_segments],
        "else_segments": [_segment_to_dict(s) for s in branches.else_segments],
    }


def _conditional_from_dict(obj: dict[str, Any]) -> ConditionalBranches:
    return ConditionalBranches(
        condition_text=obj["condition"],
        then_text=obj["then"],
        else_text=obj["else"],
        then_start=obj["then_start"],
        else_start=obj["else_start"],
        then_segments=[_segment_from_dict(s) for s in obj.get("then_segments", [])],
        else_segments=[_segment_from_dict(s) for s in obj.get("else_segments", [])],
    )

# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""YAML files listing field annotations, the input of the aggregate commands.

A fields file is a mapping from field name to either the annotation text
itself or a mapping with an ``annotation`` and an optional field ``type``::

    age:
      type: text
      annotation: '@DEFAULT="18" @READONLY'
    consent: '@HIDDEN-SURVEY'
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############


class FieldsFileError(Exception):
    """Raised when a fields file is invalid or cannot be loaded."""


@dataclass(frozen=True)
class FieldSpec:
    """The annotation text of one data-collection field.

    Attributes:
        name: The field name.
        annotation: Free-form text that may contain action tags.
        field_type: Optional field type (e.g. ``text``, ``radio``).
    """

    name: str
    annotation: str
    field_type: str | None = None


def load_fields(path: Path) -> list[FieldSpec]:
    """Load a fields file, preserving the order of the fields.

    Raises:
        FieldsFileError: If the file cannot be read or is malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FieldsFileError(f"Fields file not found: {path}") from None
    except OSError as exc:
        raise FieldsFileError(f"Cannot read fields file: {exc}") from exc

    return _parse_fields(text, source_label=str(path))


def annotations_by_field(fields: list[FieldSpec]) -> dict[str, str]:
    """Return the ``{field name: annotation}`` mapping expected by the aggregator."""
    return {f.name: f.annotation for f in fields}


# ################
# Implementation
# ################


def _parse_fields(text: str, source_label: str = "<string>") -> list[FieldSpec]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FieldsFileError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return []
    if not isinstance(data, dict):
        raise FieldsFileError(f"{source_label}: fields file must be a YAML mapping")

    return [_parse_field(name, entry, source_label) for name, entry in data.items()]


def _parse_field(name: object, entry: object, source_label: str) -> FieldSpec:
    """Parse one ``name: entry`` pair of the fields mapping."""
    if not isinstance(name, str):
        raise FieldsFileError(f"{source_label}: field names must be strings, got {name!r}")
    location = f"{source_label}: field '{name}'"

    if isinstance(entry, str):
        return FieldSpec(name=name, annotation=entry)
    if entry is None:
        return FieldSpec(name=name, annotation="")
    if not isinstance(entry, dict):
        raise FieldsFileError(f"{location} must be a string or a mapping")

    annotation = entry.get("annotation", "")
    if annotation is None:
        annotation = ""
    if not isinstance(annotation, str):
        raise FieldsFileError(f"{location}: 'annotation' must be a string")

    field_type = entry.get("type")
    if field_type is not None and not isinstance(field_type, str):
        raise FieldsFileError(f"{location}: 'type' must be a string")

    return FieldSpec(name=name, annotation=annotation, field_type=field_type)

# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for loading field annotation files."""

from pathlib import Path

import pytest

from actiontags.config import FieldsFileError, FieldSpec, annotations_by_field, load_fields

# ###############
# Helpers
# ###############


def _write_fields(tmp_path: Path, content: str) -> Path:
    """Write a fields file and return its path."""
    fields_file = tmp_path / "fields.yaml"
    fields_file.write_text(content, encoding="utf-8")
    return fields_file


# ###############
# Normal Cases
# ###############


def test_plain_annotations(tmp_path: Path) -> None:
    """String entries become fields without a type."""
    fields = load_fields(_write_fields(tmp_path, "age: '@HIDDEN'\nname: Your name\n"))
    assert fields == [FieldSpec("age", "@HIDDEN"), FieldSpec("name", "Your name")]


def test_mapping_entries(tmp_path: Path) -> None:
    """Mapping entries carry an annotation and an optional type."""
    content = """\
age:
  type: text
  annotation: '@DEFAULT="18" @READONLY'
notes:
  annotation: '@RICHTEXT'
"""
    fields = load_fields(_write_fields(tmp_path, content))
    assert fields == [
        FieldSpec("age", '@DEFAULT="18" @READONLY', field_type="text"),
        FieldSpec("notes", "@RICHTEXT"),
    ]


def test_order_is_preserved(tmp_path: Path) -> None:
    """Fields keep the order of the file."""
    fields = load_fields(_write_fields(tmp_path, "z: a\nb: b\nm: c\n"))
    assert [f.name for f in fields] == ["z", "b", "m"]


def test_empty_entries(tmp_path: Path) -> None:
    """A field without a value or without an annotation has empty text."""
    fields = load_fields(_write_fields(tmp_path, "a:\nb:\n  type: radio\n"))
    assert fields == [FieldSpec("a", ""), FieldSpec("b", "", field_type="radio")]


def test_empty_file(tmp_path: Path) -> None:
    """An empty fields file has no fields."""
    assert load_fields(_write_fields(tmp_path, "")) == []


def test_annotations_by_field() -> None:
    """The aggregator mapping keeps field order."""
    fields = [FieldSpec("b", "@HIDDEN", field_type="text"), FieldSpec("a", "x")]
    assert annotations_by_field(fields) == {"b": "@HIDDEN", "a": "x"}
    assert list(annotations_by_field(fields)) == ["b", "a"]


# ###############
# Error Cases
# ###############


def test_missing_file(tmp_path: Path) -> None:
    """A missing fields file raises FieldsFileError."""
    with pytest.raises(FieldsFileError, match="not found"):
        load_fields(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path: Path) -> None:
    """Malformed YAML raises FieldsFileError."""
    with pytest.raises(FieldsFileError, match="Invalid YAML"):
        load_fields(_write_fields(tmp_path, "a: [unclosed\n"))


@pytest.mark.parametrize(
    "content, match",
    [
        ("- a\n", "must be a YAML mapping"),
        ("1: '@HIDDEN'\n", "field names must be strings"),
        ("a: [1, 2]\n", "must be a string or a mapping"),
        ("a:\n  annotation: 5\n", "'annotation' must be a string"),
        ("a:\n  type: [text]\n", "'type' must be a string"),
    ],
)
def test_malformed_entries(tmp_path: Path, content: str, match: str) -> None:
    """Entries of the wrong shape are rejected with a descriptive message."""
    with pytest.raises(FieldsFileError, match=match):
        load_fields(_write_fields(tmp_path, content))

# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Registry of known action tags and the parameters and field types they accept.

The registry is descriptive only: the scanner recognizes any well-formed tag
name, and validation consults the registry afterwards.
"""

from __future__ import annotations

import functools
import logging
from importlib import resources
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from actiontags.model.segments import ParamKind

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

REGISTRY_RESOURCE = "tags.yaml"

Scope = Literal["mobile-app", "survey", "data-entry", "calc", "import", "pdf"]


class RegistryError(Exception):
    """Raised when a tag registry file cannot be read or is invalid."""


class TagInfo(BaseModel):
    """What a single action tag accepts and where it applies."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    param: list[ParamKind] = Field(min_length=1)
    scope: list[Scope] = Field(default_factory=list)
    field_types: list[str] = Field(alias="field-types", default_factory=list)
    supports_piping: bool | None = Field(alias="supports-piping", default=None)
    warn_when_inside: list[str] = Field(alias="warn-when-inside", default_factory=list)
    args_limit: str | None = Field(alias="args-limit", default=None)
    max_per_form: int | None = Field(alias="max-per-form", default=None, ge=1)
    deprecated: bool = False
    equivalent_to: str | None = Field(alias="equivalent-to", default=None)
    not_together_with: list[str] = Field(alias="not-together-with", default_factory=list)

    def accepts(self, kind: ParamKind) -> bool:
        """Return True if the tag may carry a parameter of *kind*."""
        return kind in self.param

    def supports_field_type(self, field_type: str) -> bool:
        """Return True if the tag applies to fields of *field_type*."""
        return field_type in self.field_types


class TagRegistry(BaseModel):
    """All known tags, keyed by name including the leading '@'."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    # Holds YAML anchors shared by the tag entries; not used otherwise.
    field_type_sets: list[list[str]] = Field(alias="field-type-sets", default_factory=list)
    tags: dict[str, TagInfo] = Field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.tags

    def get(self, name: str) -> TagInfo | None:
        """Return the entry for *name*, or None for an unknown tag."""
        return self.tags.get(name)

    def names(self) -> list[str]:
        """Return all known tag names in sorted order."""
        return sorted(self.tags)


def load_registry(path: Path) -> TagRegistry:
    """Load and validate a tag registry from a YAML file.

    Args:
        path: Path to the registry file.

    Returns:
        A validated TagRegistry instance.

    Raises:
        RegistryError: If the file cannot be read, contains invalid YAML,
            or does not conform to the expected schema.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryError(f"Cannot read tag registry '{path}': {exc}") from exc
    return _parse_registry(raw, str(path))


@functools.cache
def default_registry() -> TagRegistry:
    """Return the registry shipped with the package (loaded once)."""
    raw = resources.files("actiontags.registry").joinpath(REGISTRY_RESOURCE).read_text(encoding="utf-8")
    return _parse_registry(raw, REGISTRY_RESOURCE)


# ################
# Implementation
# ################


def _parse_registry(raw: str, source_label: str) -> TagRegistry:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RegistryError(f"Invalid YAML in tag registry '{source_label}': {exc}") from exc

    if data is None:
        data = {}

    try:
        registry = TagRegistry.model_validate(data)
    except ValidationError as exc:
        raise RegistryError(f"Invalid tag registry '{source_label}': {exc}") from exc
    logger.debug("Loaded %d tag(s) from %s", len(registry.tags), source_label)
    return registry

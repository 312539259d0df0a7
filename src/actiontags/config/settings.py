# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the action tag parser settings file."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".actiontags.yaml"

DEFAULT_CONDITIONAL_TAG = "@IF"

DEFAULT_MAX_NESTING_DEPTH = 64


class ConfigError(Exception):
    """Raised when a settings file is invalid or cannot be loaded."""


@dataclass(frozen=True)
class ParserConfig:
    """Settings that influence parsing and tag aggregation.

    Attributes:
        conditional_tag: Name of the tag whose argument list is split into
            condition, then-branch, and else-branch.
        max_nesting_depth: Maximum number of nested conditionals whose
            branches are parsed. Deeper conditionals get a warning instead.
        cache_enabled: Whether the process-wide tag cache should be used.
    """

    conditional_tag: str = DEFAULT_CONDITIONAL_TAG
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH
    cache_enabled: bool = True


def load_config(path: Path) -> ParserConfig:
    """Load and parse a settings file.

    Args:
        path: Path to the `.actiontags.yaml` file.

    Returns:
        A ParserConfig populated from the file, with defaults for absent keys.

    Raises:
        ConfigError: If the file cannot be read or the settings are invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Settings file not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file: {exc}") from exc

    return _parse_config(text, source_label=str(path))


# ################
# Implementation
# ################

_KNOWN_KEYS = frozenset({"conditional-tag", "max-nesting-depth", "cache"})

_TAG_NAME = re.compile(r"^@[A-Z](?:[A-Z_-]*[A-Z])?$")


def _parse_config(text: str, source_label: str = "<string>") -> ParserConfig:
    """Parse settings YAML text into a ParserConfig.

    An empty document yields the defaults.

    Raises:
        ConfigError: If the YAML is invalid or a value has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return ParserConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{source_label}: settings must be a YAML mapping")

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{source_label}: unknown setting(s): {', '.join(unknown)}")

    conditional_tag = data.get("conditional-tag", DEFAULT_CONDITIONAL_TAG)
    if not isinstance(conditional_tag, str) or not _TAG_NAME.match(conditional_tag):
        raise ConfigError(f"{source_label}: 'conditional-tag' must be an action tag name such as '@IF'")

    max_depth = data.get("max-nesting-depth", DEFAULT_MAX_NESTING_DEPTH)
    # bool is a subclass of int
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        raise ConfigError(f"{source_label}: 'max-nesting-depth' must be a positive integer")

    cache_enabled = data.get("cache", True)
    if not isinstance(cache_enabled, bool):
        raise ConfigError(f"{source_label}: 'cache' must be true or false")

    return ParserConfig(
        conditional_tag=conditional_tag,
        max_nesting_depth=max_depth,
        cache_enabled=cache_enabled,
    )

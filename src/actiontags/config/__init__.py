# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parser settings and field annotation files."""

from actiontags.config.fields import FieldsFileError, FieldSpec, annotations_by_field, load_fields
from actiontags.config.settings import (
    CONFIG_FILE_NAME,
    DEFAULT_CONDITIONAL_TAG,
    DEFAULT_MAX_NESTING_DEPTH,
    ConfigError,
    ParserConfig,
    load_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DEFAULT_CONDITIONAL_TAG",
    "DEFAULT_MAX_NESTING_DEPTH",
    "FieldSpec",
    "FieldsFileError",
    "ParserConfig",
    "annotations_by_field",
    "load_config",
    "load_fields",
]

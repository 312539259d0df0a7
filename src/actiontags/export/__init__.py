# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Versioned JSON export of parse results."""

from actiontags.export.artifact import (
    ARTIFACT_FORMAT_VERSION,
    deserialize,
    read_artifact,
    serialize,
    to_dict,
    write_artifact,
)

__all__ = [
    "ARTIFACT_FORMAT_VERSION",
    "deserialize",
    "read_artifact",
    "serialize",
    "to_dict",
    "write_artifact",
]

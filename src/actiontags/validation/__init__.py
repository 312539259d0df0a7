# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Usage checks for parsed action tags (unknown tags, wrong parameters, conflicts)."""

from actiontags.validation.checks import (
    ValidationError,
    ValidationResult,
    ValidationWarning,
    check_fields,
    check_segments,
)

__all__ = [
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "check_fields",
    "check_segments",
]

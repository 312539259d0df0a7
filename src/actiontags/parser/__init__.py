# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Scanner and conditional splitter for action tag annotation text."""

from actiontags.parser.conditional import split_conditional
from actiontags.parser.scanner import parse

__all__ = [
    "parse",
    "split_conditional",
]

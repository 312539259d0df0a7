# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Aggregation of action tags across many field annotations, with memoization."""

from actiontags.aggregate.cache import TagCache, clear_cache, default_cache, disable_cache, enable_cache, make_key
from actiontags.aggregate.tags import (
    ConditionEvaluator,
    ResolutionContext,
    TagOccurrence,
    TagQueryError,
    get_tags,
    get_tags_by_field,
)

__all__ = [
    # Queries
    "get_tags",
    "get_tags_by_field",
    "ResolutionContext",
    "ConditionEvaluator",
    "TagOccurrence",
    "TagQueryError",
    # Cache
    "TagCache",
    "default_cache",
    "make_key",
    "enable_cache",
    "disable_cache",
    "clear_cache",
]

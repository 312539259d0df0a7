# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Known action tags and their accepted parameters, scopes, and field types."""

from actiontags.registry.registry import (
    REGISTRY_RESOURCE,
    RegistryError,
    Scope,
    TagInfo,
    TagRegistry,
    default_registry,
    load_registry,
)

__all__ = [
    "REGISTRY_RESOURCE",
    "RegistryError",
    "Scope",
    "TagInfo",
    "TagRegistry",
    "default_registry",
    "load_registry",
]

# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Memoization of tag aggregation results.

Results are keyed by an md5 digest of the canonical JSON form of all call
arguments. The cache never invalidates on its own: callers that change the
underlying field texts out of band must clear it.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class TagCache:
    """A thread-safe, digest-keyed result cache that can be switched off.

    A disabled cache neither returns nor stores entries, so enabling or
    disabling it never changes results, only their cost.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        """Return True if lookups and stores are active."""
        return self._enabled

    def enable(self) -> None:
        """Resume using cached entries."""
        self._enabled = True

    def disable(self) -> None:
        """Bypass the cache; existing entries are kept for when it is re-enabled."""
        self._enabled = False

    def clear(self) -> None:
        """Drop all cached entries."""
        with self._lock:
            self._entries.clear()
        logger.debug("Cleared tag cache")

    def get(self, key: str) -> Any | None:
        """Return the entry stored under *key*, or None on a miss or when disabled."""
        if not self._enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
        logger.debug("Tag cache %s for %s", "hit" if entry is not None else "miss", key)
        return entry

    def put(self, key: str, value: Any) -> None:
        """Store *value* under *key* unless the cache is disabled."""
        if not self._enabled:
            return
        with self._lock:
            self._entries[key] = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_key(*args: Any) -> str:
    """Return a deterministic digest of *args*.

    Mappings are serialized with sorted keys, pydantic models by their JSON
    dump, and sets as sorted lists, so equal arguments give equal keys.
    """
    payload = json.dumps(args, sort_keys=True, separators=(",", ":"), default=_to_jsonable)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


default_cache = TagCache()


def enable_cache() -> None:
    """Enable the process-wide tag cache."""
    default_cache.enable()


def disable_cache() -> None:
    """Disable the process-wide tag cache."""
    default_cache.disable()


def clear_cache() -> None:
    """Drop all entries from the process-wide tag cache."""
    default_cache.clear()


# ################
# Implementation
# ################


def _to_jsonable(value: Any) -> Any:
    """Fallback serializer for values :func:`json.dumps` does not handle natively."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if hasattr(value, "__dataclass_fields__"):
        return {name: getattr(value, name) for name in value.__dataclass_fields__}
    raise TypeError(f"Cannot derive a cache key from {type(value).__name__}")

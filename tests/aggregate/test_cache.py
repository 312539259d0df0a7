# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for memoization of tag aggregation results."""

import threading
from collections.abc import Iterator

import pytest

from actiontags.aggregate.cache import (
    TagCache,
    clear_cache,
    default_cache,
    disable_cache,
    enable_cache,
    make_key,
)
from actiontags.aggregate.tags import ResolutionContext, get_tags
from actiontags.config.settings import ParserConfig

# ###############
# Test Helpers
# ###############

_FIELDS = {"a": '@DEFAULT="x" @HIDDEN', "b": "@IF(c, @READONLY, @NOW)"}


@pytest.fixture(autouse=True)
def _fresh_default_cache() -> Iterator[None]:
    default_cache.clear()
    default_cache.enable()
    yield
    default_cache.clear()
    default_cache.enable()


# ###############
# Cache Object
# ###############


class TestTagCache:
    def test_put_and_get(self) -> None:
        cache = TagCache()
        cache.put("k", {"v": 1})
        assert cache.get("k") == {"v": 1}
        assert len(cache) == 1

    def test_miss_returns_none(self) -> None:
        assert TagCache().get("missing") is None

    def test_disabled_cache_neither_reads_nor_writes(self) -> None:
        cache = TagCache(enabled=False)
        cache.put("k", 1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_disable_keeps_entries_for_reenable(self) -> None:
        cache = TagCache()
        cache.put("k", 1)
        cache.disable()
        assert not cache.enabled
        assert cache.get("k") is None
        cache.enable()
        assert cache.get("k") == 1

    def test_clear(self) -> None:
        cache = TagCache()
        cache.put("k", 1)
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_writes(self) -> None:
        cache = TagCache()

        def worker(index: int) -> None:
            for n in range(200):
                cache.put(f"{index}-{n}", n)
                cache.get(f"{index}-{n}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(cache) == 8 * 200


# ###############
# Keys
# ###############


class TestMakeKey:
    def test_equal_arguments_give_equal_keys(self) -> None:
        assert make_key([("a", "x")], ["@A"]) == make_key([("a", "x")], ["@A"])

    def test_key_is_md5_hex_digest(self) -> None:
        key = make_key("x")
        assert len(key) == 32
        assert int(key, 16) >= 0

    def test_field_order_matters(self) -> None:
        assert make_key([("a", "1"), ("b", "2")]) != make_key([("b", "2"), ("a", "1")])

    def test_context_and_config_are_part_of_the_key(self) -> None:
        assert make_key(ResolutionContext(project_id=1)) != make_key(ResolutionContext(project_id=2))
        assert make_key(ParserConfig()) != make_key(ParserConfig(max_nesting_depth=2))

    def test_sets_are_order_independent(self) -> None:
        assert make_key({"@B", "@A"}) == make_key({"@A", "@B"})

    def test_unsupported_values_raise(self) -> None:
        with pytest.raises(TypeError):
            make_key(object())


# ###############
# Aggregation Caching
# ###############


class TestAggregationCaching:
    def test_repeat_call_is_served_from_cache(self) -> None:
        first = get_tags(_FIELDS)
        assert len(default_cache) == 1
        second = get_tags(_FIELDS)
        assert first == second
        assert len(default_cache) == 1

    def test_cached_and_uncached_results_are_identical(self) -> None:
        cached = get_tags(_FIELDS)
        uncached = get_tags(_FIELDS, cache=TagCache(enabled=False))
        assert cached == uncached
        assert [o.model_dump() for o in cached["@DEFAULT"]] == [o.model_dump() for o in uncached["@DEFAULT"]]

    def test_mutating_a_result_does_not_alter_the_cache(self) -> None:
        first = get_tags(_FIELDS)
        first["@DEFAULT"].clear()
        first["@NEW"] = []
        second = get_tags(_FIELDS)
        assert len(second["@DEFAULT"]) == 1
        assert "@NEW" not in second

    def test_different_arguments_get_different_entries(self) -> None:
        get_tags(_FIELDS)
        get_tags(_FIELDS, "@HIDDEN")
        get_tags(_FIELDS, field_filter="a")
        assert len(default_cache) == 3

    def test_changed_field_text_is_a_new_entry(self) -> None:
        get_tags(_FIELDS)
        result = get_tags({**_FIELDS, "a": "@READONLY"})
        assert "@DEFAULT" not in result

    def test_evaluator_is_not_part_of_the_key(self) -> None:
        context = {"project_id": 1, "record": "1", "event_id": 1, "instrument": "form"}
        calls: list[str] = []

        def evaluator(condition: str, ctx: ResolutionContext) -> object:
            calls.append(condition)
            return True

        first = get_tags(_FIELDS, context=context, evaluator=evaluator)
        second = get_tags(_FIELDS, context=context, evaluator=lambda condition, ctx: False)
        assert first == second
        assert calls == ["c"]

    def test_clearing_the_cache_applies_a_new_evaluator(self) -> None:
        context = {"project_id": 1, "record": "1", "event_id": 1, "instrument": "form"}
        assert "@READONLY" in get_tags(_FIELDS, context=context, evaluator=lambda condition, ctx: True)
        clear_cache()
        result = get_tags(_FIELDS, context=context, evaluator=lambda condition, ctx: False)
        assert "@READONLY" not in result
        assert "@NOW" in result

    def test_explicit_cache_object(self) -> None:
        cache = TagCache()
        get_tags(_FIELDS, cache=cache)
        assert len(cache) == 1
        assert len(default_cache) == 0


# ###############
# Process-Wide Cache Control
# ###############


class TestCacheControl:
    def test_disable_and_enable(self) -> None:
        disable_cache()
        get_tags(_FIELDS)
        assert len(default_cache) == 0
        enable_cache()
        get_tags(_FIELDS)
        assert len(default_cache) == 1

    def test_disabled_cache_does_not_change_results(self) -> None:
        enabled_result = get_tags(_FIELDS)
        disable_cache()
        assert get_tags(_FIELDS) == enabled_result

    def test_clear_cache(self) -> None:
        get_tags(_FIELDS)
        clear_cache()
        assert len(default_cache) == 0

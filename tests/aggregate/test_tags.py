# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for collecting action tags across field annotations."""

from collections.abc import Iterator

import pytest

from actiontags.aggregate.cache import TagCache, default_cache
from actiontags.aggregate.tags import (
    ResolutionContext,
    TagOccurrence,
    TagQueryError,
    get_tags,
    get_tags_by_field,
)
from actiontags.config.settings import ParserConfig

# ###############
# Test Helpers
# ###############

_FIELDS = {
    "age": '@DEFAULT="18" @READONLY',
    "name": "no tags here",
    "consent": '@IF([age] > 18, @HIDDEN, @READONLY @DEFAULT="no")',
}

_FULL_CONTEXT = {"project_id": 3, "record": "101", "event_id": 7, "instrument": "baseline"}


@pytest.fixture(autouse=True)
def _fresh_default_cache() -> Iterator[None]:
    default_cache.clear()
    default_cache.enable()
    yield
    default_cache.clear()
    default_cache.enable()


def _summary(result: dict[str, list[TagOccurrence]]) -> dict[str, list[tuple[int, str, int | None]]]:
    """Reduce a result to ``{tag: [(id, field, nested), ...]}``."""
    return {tag: [(o.id, o.field, o.nested) for o in occurrences] for tag, occurrences in result.items()}


# ###############
# Without Context
# ###############


class TestWithoutContext:
    def test_all_tags_including_both_branches(self) -> None:
        result = get_tags(_FIELDS)
        assert list(result) == ["@DEFAULT", "@READONLY", "@IF", "@HIDDEN"]
        assert _summary(result) == {
            "@DEFAULT": [(0, "age", None), (5, "consent", 2)],
            "@READONLY": [(1, "age", None), (4, "consent", 2)],
            "@IF": [(2, "consent", None)],
            "@HIDDEN": [(3, "consent", 2)],
        }

    def test_occurrence_carries_parameter_and_position(self) -> None:
        occurrence = get_tags(_FIELDS)["@DEFAULT"][0]
        assert occurrence.tag == "@DEFAULT"
        assert occurrence.params == '"18"'
        assert occurrence.value == "18"
        assert occurrence.start == 0
        assert occurrence.end == 12

    def test_tag_without_parameter_has_empty_params(self) -> None:
        occurrence = get_tags(_FIELDS)["@READONLY"][0]
        assert occurrence.params == ""
        assert occurrence.value == ""

    def test_conditional_params_are_the_argument_body(self) -> None:
        occurrence = get_tags(_FIELDS)["@IF"][0]
        assert occurrence.params == '[age] > 18, @HIDDEN, @READONLY @DEFAULT="no"'

    def test_partial_context_does_not_resolve(self) -> None:
        result = get_tags(_FIELDS, context={"project_id": 3, "record": "101"})
        assert "@IF" in result
        assert "@HIDDEN" in result

    def test_fields_without_at_are_skipped(self) -> None:
        assert get_tags({"a": "nothing", "b": ""}) == {}

    def test_empty_source(self) -> None:
        assert get_tags({}) == {}


# ###############
# Filters
# ###############


class TestFilters:
    def test_name_filter(self) -> None:
        result = get_tags(_FIELDS, {"@IF", "@HIDDEN", "@READONLY"})
        assert sorted(result) == ["@HIDDEN", "@IF", "@READONLY"]

    def test_name_filter_as_string(self) -> None:
        assert list(get_tags(_FIELDS, "@IF")) == ["@IF"]

    def test_branches_of_filtered_out_conditional_are_skipped(self) -> None:
        result = get_tags(_FIELDS, ["@DEFAULT"])
        assert _summary(result) == {"@DEFAULT": [(0, "age", None)]}

    def test_mutually_exclusive_branches_are_not_reported_as_top_level(self) -> None:
        source = {"f": '@IF(x, @SETVALUE="yes", @SETVALUE="no") @SETVALUE="top"'}
        result = get_tags(source, ["@SETVALUE"])
        assert [(o.value, o.nested) for o in result["@SETVALUE"]] == [("top", None)]

    def test_filter_keeping_the_conditional_reports_both_branches(self) -> None:
        source = {"f": '@IF(x, @SETVALUE="yes", @SETVALUE="no") @SETVALUE="top"'}
        result = get_tags(source, ["@IF", "@SETVALUE"])
        assert [(o.value, o.nested) for o in result["@SETVALUE"]] == [("yes", 0), ("no", 0), ("top", None)]

    def test_nested_refers_to_enclosing_conditional(self) -> None:
        result = get_tags(_FIELDS, ["@IF", "@HIDDEN"])
        assert _summary(result) == {"@IF": [(0, "consent", None)], "@HIDDEN": [(1, "consent", 0)]}

    def test_empty_name_filter_means_all(self) -> None:
        assert get_tags(_FIELDS, []) == get_tags(_FIELDS)

    def test_field_filter(self) -> None:
        result = get_tags(_FIELDS, field_filter=["age"])
        assert {o.field for occurrences in result.values() for o in occurrences} == {"age"}

    def test_field_filter_keeps_source_order(self) -> None:
        result = get_tags(_FIELDS, ["@IF", "@DEFAULT"], field_filter=["consent", "age"])
        assert [o.field for o in result["@DEFAULT"]] == ["age", "consent"]

    def test_unknown_field_in_filter_raises(self) -> None:
        with pytest.raises(TagQueryError, match="missing"):
            get_tags(_FIELDS, field_filter=["age", "missing"])


# ###############
# With Full Context
# ###############


class TestWithFullContext:
    def test_then_branch_selected(self) -> None:
        calls: list[tuple[str, ResolutionContext]] = []

        def evaluator(condition: str, context: ResolutionContext) -> object:
            calls.append((condition, context))
            return "1"

        result = get_tags(_FIELDS, context=_FULL_CONTEXT, evaluator=evaluator)
        assert _summary(result) == {
            "@DEFAULT": [(0, "age", None)],
            "@READONLY": [(1, "age", None)],
            "@HIDDEN": [(2, "consent", None)],
        }
        assert [condition for condition, _ in calls] == ["[age] > 18"]
        assert calls[0][1].record == "101"

    def test_else_branch_selected(self) -> None:
        result = get_tags(_FIELDS, context=_FULL_CONTEXT, evaluator=lambda condition, context: False)
        assert "@HIDDEN" not in result
        assert "@IF" not in result
        assert _summary(result)["@DEFAULT"] == [(0, "age", None), (3, "consent", None)]

    @pytest.mark.parametrize(
        ("value", "selects_then"),
        [(True, True), (1, True), ("1", True), (0, False), ("0", False), ("yes", False), (None, False)],
    )
    def test_evaluator_results(self, value: object, selects_then: bool) -> None:
        result = get_tags(
            {"f": "@IF(c, @A, @B)"},
            context=_FULL_CONTEXT,
            evaluator=lambda condition, context: value,
            cache=TagCache(enabled=False),
        )
        assert list(result) == (["@A"] if selects_then else ["@B"])

    def test_nested_conditionals_are_resolved(self) -> None:
        result = get_tags(
            {"f": "@IF(outer, @IF(inner, @A, @B), @C)"},
            context=_FULL_CONTEXT,
            evaluator=lambda condition, context: condition.strip() in {"outer", "inner"},
        )
        assert list(result) == ["@A"]

    def test_malformed_conditional_is_reported_as_tag(self) -> None:
        result = get_tags({"f": "@IF(a, b) @HIDDEN"}, context=_FULL_CONTEXT, evaluator=lambda c, ctx: True)
        assert list(result) == ["@IF", "@HIDDEN"]

    def test_context_object_is_accepted(self) -> None:
        context = ResolutionContext(**_FULL_CONTEXT)
        assert context.is_full
        result = get_tags(_FIELDS, context=context, evaluator=lambda c, ctx: True)
        assert "@HIDDEN" in result

    def test_missing_evaluator_raises(self) -> None:
        with pytest.raises(TagQueryError, match="evaluator"):
            get_tags(_FIELDS, context=_FULL_CONTEXT)


# ###############
# Context Validation
# ###############


class TestContextValidation:
    @pytest.mark.parametrize("context", [{}, {"project_id": 0}, {"project_id": "abc"}, {"record": "1"}])
    def test_invalid_context_raises(self, context: dict[str, object]) -> None:
        with pytest.raises(TagQueryError, match="project_id"):
            get_tags(_FIELDS, context=context)

    def test_non_mapping_context_raises(self) -> None:
        with pytest.raises(TagQueryError):
            get_tags(_FIELDS, context=42)  # type: ignore[arg-type]

    def test_numeric_record_is_accepted(self) -> None:
        context = {"project_id": 1, "record": 17, "event_id": 5, "instrument": "form"}
        seen: list[ResolutionContext] = []

        def evaluator(condition: str, ctx: ResolutionContext) -> object:
            seen.append(ctx)
            return "1"

        result = get_tags(_FIELDS, context=context, evaluator=evaluator)
        assert "@HIDDEN" in result
        assert seen[0].record == "17"
        assert seen[0].is_full

    def test_instance_defaults_to_one(self) -> None:
        assert ResolutionContext(project_id=1).instance == 1

    def test_partial_context_is_not_full(self) -> None:
        assert not ResolutionContext(project_id=1, record="1", event_id=2).is_full


# ###############
# Grouping by Field
# ###############


class TestByField:
    def test_regroups_by_field_then_tag(self) -> None:
        result = get_tags_by_field(_FIELDS)
        assert set(result) == {"age", "consent"}
        assert set(result["age"]) == {"@DEFAULT", "@READONLY"}
        assert set(result["consent"]) == {"@IF", "@HIDDEN", "@READONLY", "@DEFAULT"}
        assert [o.id for o in result["consent"]["@DEFAULT"]] == [5]

    def test_passes_filters_through(self) -> None:
        result = get_tags_by_field(_FIELDS, ["@IF", "@READONLY"], field_filter="consent")
        assert list(result) == ["consent"]
        assert list(result["consent"]) == ["@IF", "@READONLY"]

    def test_custom_conditional_tag(self) -> None:
        result = get_tags_by_field(
            {"f": "@WHEN(x, @A, @B)"},
            config=ParserConfig(conditional_tag="@WHEN"),
        )
        assert [o.nested for o in result["f"]["@A"]] == [0]

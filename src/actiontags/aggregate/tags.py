# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Collection of action tag occurrences across the annotations of many fields.

Every field's annotation is parsed and its tags are indexed by tag name. How
conditional tags are treated depends on the resolution context:

* **Without a full context** every tag is reported, including the tags in both
  branches of every conditional. Tags inside a branch point to the occurrence
  of their enclosing conditional through ``nested``. A name filter that
  rejects a conditional also hides the tags in its branches.

* **With a full context** (record, event, and instrument known) the condition
  of each well-formed conditional is evaluated by the caller-supplied
  evaluator and only the tags of the selected branch are reported, in place of
  the conditional itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic import Field as _Field

from actiontags.aggregate.cache import TagCache, default_cache, make_key
from actiontags.config.settings import ParserConfig
from actiontags.model.segments import Segment
from actiontags.parser.scanner import parse

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class TagQueryError(Exception):
    """Raised when a tag query is called with missing or inconsistent arguments."""


class ResolutionContext(BaseModel):
    """Identifies the record whose data conditional tags are resolved against.

    Only ``project_id`` is required. The context is *full* once record, event,
    and instrument are all known; only then are conditionals resolved. Record
    identifiers are opaque: numeric ids are stored as strings.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    project_id: int = _Field(ge=1)
    record: str | None = None
    event_id: int | None = None
    instrument: str | None = None
    instance: int = 1

    @property
    def is_full(self) -> bool:
        """Return True if conditionals can be resolved for this context."""
        return bool(self.record) and bool(self.event_id) and bool(self.instrument)


# Evaluates a condition for a context; True, 1, or "1" selects the then-branch.
ConditionEvaluator = Callable[[str, ResolutionContext], object]


class TagOccurrence(BaseModel):
    """One occurrence of an action tag in a field annotation.

    Attributes:
        id: Sequence number, increasing across all fields of one query.
        field: Name of the field whose annotation contains the tag.
        tag: The tag name including the leading '@'.
        params: Raw parameter text, or "" when the tag has no parameter.
        value: Normalized parameter text (unescaped for quoted strings).
        start: Position of the tag in the field annotation.
        end: Last position of the tag including its parameter.
        nested: Id of the enclosing conditional's occurrence, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    field: str
    tag: str
    params: str = ""
    value: str = ""
    start: int
    end: int
    nested: int | None = None


def get_tags(
    source_fields: Mapping[str, str],
    name_filter: str | Iterable[str] | None = None,
    context: ResolutionContext | Mapping[str, object] | None = None,
    *,
    field_filter: str | Iterable[str] | None = None,
    evaluator: ConditionEvaluator | None = None,
    cache: TagCache | None = None,
    config: ParserConfig | None = None,
) -> dict[str, list[TagOccurrence]]:
    """Collect action tags from field annotations, keyed by tag name.

    Args:
        source_fields: Ordered mapping from field name to annotation text.
        name_filter: Tag name(s) to report; all tags when empty or None.
        context: Resolution context. Conditionals are resolved only for a
            full context.
        field_filter: Field name(s) to scan; all fields when empty or None.
        evaluator: Evaluates conditions; required for a full context. It is
            not part of the cache key, so a repeated query is answered from
            the cache without calling it again. Clear the cache (or pass a
            disabled one) when the data the evaluator reads has changed.
        cache: Cache to use; defaults to the process-wide cache.
        config: Parser settings.

    Returns:
        A mapping from tag name to its occurrences in walk order.

    Raises:
        TagQueryError: If the context is invalid, a full context comes without
            an evaluator, or *field_filter* names unknown fields.
    """
    config = config or ParserConfig()
    cache = cache if cache is not None else default_cache
    resolved_context = _validate_context(context)
    tags = _as_name_list(name_filter)
    fields = _select_fields(source_fields, _as_name_list(field_filter))

    resolve = resolved_context is not None and resolved_context.is_full
    if resolve and evaluator is None:
        raise TagQueryError("A full resolution context requires a condition evaluator.")

    key = make_key(list(source_fields.items()), tags, fields, resolved_context, config)
    cached = cache.get(key)
    if cached is not None:
        return _copy_result(cached)

    collector = _Collector(tags)
    for field in fields:
        text = source_fields[field]
        if "@" not in text:
            continue
        segments = parse(text, config=config)
        if resolve:
            collector.add_resolved(field, segments, lambda cond: _selects_then(evaluator(cond, resolved_context)))
        else:
            collector.add(field, segments)

    logger.debug("Collected %d occurrence(s) of %d tag(s)", collector.count, len(collector.result))
    cache.put(key, collector.result)
    return _copy_result(collector.result)


def get_tags_by_field(
    source_fields: Mapping[str, str],
    name_filter: str | Iterable[str] | None = None,
    context: ResolutionContext | Mapping[str, object] | None = None,
    **kwargs: object,
) -> dict[str, dict[str, list[TagOccurrence]]]:
    """Like :func:`get_tags`, but grouped as ``{field: {tag name: occurrences}}``."""
    by_tag = get_tags(source_fields, name_filter, context, **kwargs)  # type: ignore[arg-type]
    by_field: dict[str, dict[str, list[TagOccurrence]]] = {}
    for tag_name, occurrences in by_tag.items():
        for occurrence in occurrences:
            by_field.setdefault(occurrence.field, {}).setdefault(tag_name, []).append(occurrence)
    return by_field


# ################
# Implementation
# ################


class _Collector:
    """Accumulates occurrences and hands out ids."""

    def __init__(self, tags: list[str]) -> None:
        self._tags = set(tags)
        self._next_id = 0
        self.result: dict[str, list[TagOccurrence]] = {}

    @property
    def count(self) -> int:
        return self._next_id

    def add(self, field: str, segments: list[Segment], nested: int | None = None) -> None:
        """Record every tag of *segments*, descending into both branches of reported conditionals.

        A conditional rejected by the name filter is skipped with its branches.
        """
        for segment in segments:
            if not segment.is_tag or not self._accepts(segment):
                continue
            current = self._record(field, segment, nested)
            if segment.conditional is not None:
                self.add(field, segment.conditional.then_segments, current)
                self.add(field, segment.conditional.else_segments, current)

    def add_resolved(self, field: str, segments: list[Segment], selects_then: Callable[[str], bool]) -> None:
        """Record tags, replacing each conditional with the branch its condition selects."""
        for segment in segments:
            if not segment.is_tag:
                continue
            branches = segment.conditional
            if branches is not None:
                chosen = branches.then_segments if selects_then(branches.condition_text) else branches.else_segments
                self.add_resolved(field, chosen, selects_then)
            elif self._accepts(segment):
                self._record(field, segment, None)

    def _accepts(self, segment: Segment) -> bool:
        return not self._tags or segment.text in self._tags

    def _record(self, field: str, segment: Segment, nested: int | None) -> int:
        param = segment.param
        occurrence = TagOccurrence(
            id=self._next_id,
            field=field,
            tag=segment.text,
            params=param.raw if param is not None else "",
            value=param.text if param is not None else "",
            start=segment.start,
            end=segment.end,
            nested=nested,
        )
        self.result.setdefault(segment.text, []).append(occurrence)
        self._next_id += 1
        return occurrence.id


def _validate_context(context: ResolutionContext | Mapping[str, object] | None) -> ResolutionContext | None:
    """Return *context* as a ResolutionContext, failing fast on invalid input."""
    if context is None or isinstance(context, ResolutionContext):
        return context
    if not isinstance(context, Mapping):
        raise TagQueryError(f"Invalid context: expected a mapping, got {type(context).__name__}")
    try:
        return ResolutionContext.model_validate(dict(context))
    except ValidationError as exc:
        raise TagQueryError(f"Invalid context provided. Context must at least provide a project_id: {exc}") from exc


def _as_name_list(names: str | Iterable[str] | None) -> list[str]:
    if names is None:
        return []
    if isinstance(names, str):
        return [names]
    return list(names)


def _select_fields(source_fields: Mapping[str, str], requested: list[str]) -> list[str]:
    """Return the fields to scan, in source order."""
    if not requested:
        return list(source_fields)
    missing = [name for name in requested if name not in source_fields]
    if missing:
        raise TagQueryError(f"Not all fields provided could be found in the source fields: {', '.join(missing)}")
    wanted = set(requested)
    return [name for name in source_fields if name in wanted]


def _selects_then(result: object) -> bool:
    """Interpret an evaluator result; True, 1, and "1" select the then-branch."""
    if isinstance(result, bool):
        return result
    return str(result).strip() == "1"


def _copy_result(result: dict[str, list[TagOccurrence]]) -> dict[str, list[TagOccurrence]]:
    """Return fresh containers so callers cannot alter a cached result."""
    return {name: list(occurrences) for name, occurrences in result.items()}

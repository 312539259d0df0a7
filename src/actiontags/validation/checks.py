# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Usage checks for parsed action tags.

The scanner accepts any well-formed tag. These checks compare the parse result
against the tag registry and report misuse: unknown tags, parameters of the
wrong kind, tags that do not apply to a field type, and broken parameters.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from actiontags.config.fields import FieldSpec
from actiontags.config.settings import ParserConfig
from actiontags.model.segments import JsonParam, ParamKind, Segment, walk_tags
from actiontags.parser.scanner import (
    INCOMPLETE_ARGS,
    INCOMPLETE_JSON,
    MISSING_END_QUOTE,
    NOT_A_VALID_NAME,
    parse,
)
from actiontags.registry.registry import TagRegistry, default_registry

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal issue with how an action tag is used.

    The annotation still works, but the tag is likely misspelled, misplaced,
    or ignored for the field.

    Attributes:
        message: Human-readable description of the warning.
    """

    message: str


@dataclass(frozen=True)
class ValidationError:
    """A defect that keeps an action tag from working as written.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


@dataclass
class ValidationResult:
    """Result of running usage checks.

    Attributes:
        warnings: Non-fatal issues found during validation.
        errors: Defects that should be corrected.
    """

    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any validation errors were found."""
        return len(self.errors) > 0

    def extend(self, other: ValidationResult, prefix: str = "") -> None:
        """Append the findings of *other*, optionally prefixing each message."""
        self.warnings.extend(ValidationWarning(prefix + w.message) for w in other.warnings)
        self.errors.extend(ValidationError(prefix + e.message) for e in other.errors)


def check_segments(
    segments: list[Segment],
    *,
    registry: TagRegistry | None = None,
    field_type: str | None = None,
) -> ValidationResult:
    """Run all usage checks on the parse result of one annotation.

    Checks performed (tags inside conditional branches included):

    1. **Unknown tags** (warning): the tag is not in the registry. No further
       registry checks apply to it.

    2. **Parameter kind** (warning): the tag's parameter, or its absence, is
       not one of the kinds the registry allows.

    3. **Deprecated tags** (warning): mentions the replacement if one exists.

    4. **Placement** (warning): the tag sits inside a conditional it should
       not be used in.

    5. **Field type** (warning): only when *field_type* is given.

    6. **Parser findings** (warning): every warning the scanner attached, and
       candidates downgraded to text because of an invalid name.

    7. **Broken parameters** (error): invalid JSON, and parameters that never
       end (missing quote or bracket).

    8. **Conflicting tags** (error): two tags that must not be combined.

    Args:
        segments: The result of :func:`actiontags.parser.parse`.
        registry: Tag registry; defaults to the packaged one.
        field_type: Type of the field the annotation belongs to, if known.

    Returns:
        A :class:`ValidationResult`; empty when nothing was found.
    """
    registry = registry or default_registry()
    result = ValidationResult()

    for segment, parent in _walk_segments(segments, None):
        if segment.is_tag:
            _check_tag(segment, parent, registry, field_type, result)
        else:
            _check_text(segment, result)

    result.errors.extend(_check_conflicts(segments, registry))
    return result


def check_fields(
    fields: list[FieldSpec],
    *,
    registry: TagRegistry | None = None,
    config: ParserConfig | None = None,
) -> ValidationResult:
    """Parse and check the annotations of all fields of a form.

    Each message is prefixed with the name of the field it concerns. In
    addition to the per-field checks, tags limited to a number of fields per
    form are counted across all fields.

    Args:
        fields: The fields of one form.
        registry: Tag registry; defaults to the packaged one.
        config: Parser settings.

    Returns:
        The combined :class:`ValidationResult`.
    """
    registry = registry or default_registry()
    result = ValidationResult()
    fields_by_tag: dict[str, list[str]] = {}

    for spec in fields:
        segments = parse(spec.annotation, config=config)
        result.extend(check_segments(segments, registry=registry, field_type=spec.field_type), f"{spec.name}: ")
        for name in sorted({tag.text for tag, _ in walk_tags(segments)}):
            fields_by_tag.setdefault(name, []).append(spec.name)

    for name, field_names in sorted(fields_by_tag.items()):
        info = registry.get(name)
        if info is None or info.max_per_form is None or len(field_names) <= info.max_per_form:
            continue
        result.errors.append(
            ValidationError(
                f"Action tag '{name}' may be used in at most {info.max_per_form} field(s) per form, "
                f"found in: {', '.join(field_names)}"
            )
        )
    return result


# ################
# Implementation
# ################

_INCOMPLETE_PREFIXES = (MISSING_END_QUOTE.split("[", 1)[0], INCOMPLETE_JSON, INCOMPLETE_ARGS)


def _walk_segments(segments: list[Segment], parent: Segment | None) -> Iterator[tuple[Segment, Segment | None]]:
    """Yield every segment in pre-order with its enclosing conditional tag."""
    for segment in segments:
        yield segment, parent
        if segment.conditional is not None:
            yield from _walk_segments(segment.conditional.then_segments, segment)
            yield from _walk_segments(segment.conditional.else_segments, segment)


def _param_kind(segment: Segment) -> ParamKind:
    if segment.param is None:
        return ParamKind.NONE
    return ParamKind(segment.param.kind)


def _check_tag(
    segment: Segment,
    parent: Segment | None,
    registry: TagRegistry,
    field_type: str | None,
    result: ValidationResult,
) -> None:
    name = segment.text
    where = f"at position {segment.start}"

    for warning in segment.warnings:
        result.warnings.append(ValidationWarning(f"{name} {where}: {warning.message}"))

    if isinstance(segment.param, JsonParam) and not segment.param.valid:
        result.errors.append(ValidationError(f"Invalid JSON parameter for '{name}' {where}: {segment.param.error}"))

    info = registry.get(name)
    if info is None:
        result.warnings.append(ValidationWarning(f"Unknown action tag '{name}' {where}"))
        return

    kind = _param_kind(segment)
    if not info.accepts(kind):
        allowed = ", ".join(k.value for k in info.param)
        result.warnings.append(
            ValidationWarning(
                f"Action tag '{name}' {where} does not take a parameter of kind {kind.value} (allowed: {allowed})"
            )
        )

    if info.deprecated:
        hint = f"; use '{info.equivalent_to}' instead" if info.equivalent_to else ""
        result.warnings.append(ValidationWarning(f"Action tag '{name}' {where} is deprecated{hint}"))

    if parent is not None and parent.text in info.warn_when_inside:
        result.warnings.append(
            ValidationWarning(f"Action tag '{name}' {where} should not be used inside '{parent.text}'")
        )

    if field_type is not None and not info.supports_field_type(field_type):
        result.warnings.append(
            ValidationWarning(f"Action tag '{name}' {where} does not apply to fields of type '{field_type}'")
        )


def _check_text(segment: Segment, result: ValidationResult) -> None:
    annotation = segment.annotation
    if annotation is None:
        return
    where = f"at position {segment.start}"
    if annotation == NOT_A_VALID_NAME:
        result.warnings.append(ValidationWarning(f"'{segment.text}' {where} is not a valid action tag name"))
    elif annotation.startswith(_INCOMPLETE_PREFIXES):
        result.errors.append(ValidationError(f"{annotation} {where.capitalize()}."))
    for warning in segment.warnings:
        result.warnings.append(ValidationWarning(f"Text {where}: {warning.message}"))


def _check_conflicts(segments: list[Segment], registry: TagRegistry) -> list[ValidationError]:
    present = {tag.text for tag, _ in walk_tags(segments)}
    errors: list[ValidationError] = []
    for name in sorted(present):
        info = registry.get(name)
        if info is None:
            continue
        for other in info.not_together_with:
            if other in present:
                errors.append(ValidationError(f"Action tags '{name}' and '{other}' cannot be used together"))
    return errors

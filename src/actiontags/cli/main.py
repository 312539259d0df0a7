# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the ActionTags command-line interface."""

import argparse
import json
import logging
import sys
from pathlib import Path

from yachalk import chalk

from actiontags.aggregate.cache import disable_cache
from actiontags.aggregate.tags import TagQueryError, get_tags, get_tags_by_field
from actiontags.config.fields import FieldsFileError, FieldSpec, annotations_by_field, load_fields
from actiontags.config.settings import CONFIG_FILE_NAME, ConfigError, ParserConfig, load_config
from actiontags.export.artifact import to_dict
from actiontags.model.segments import JsonParam, Segment
from actiontags.parser.scanner import parse
from actiontags.registry.registry import RegistryError
from actiontags.validation.checks import check_fields

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the ActionTags CLI."""
    parser = argparse.ArgumentParser(
        prog="actiontags",
        description="ActionTags - parser and checker for field annotation action tags",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help=f"Settings file (default: {CONFIG_FILE_NAME} in the current directory, if present)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # parse subcommand
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse annotation text and print the segments as JSON",
        description="Split annotation text into plain text and action tag segments.",
    )
    parse_parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File containing the annotation text, or '-' for standard input (default: -)",
    )
    parse_parser.add_argument(
        "--tags-only",
        action="store_true",
        help="Only print action tag segments",
    )

    # tags subcommand
    tags_parser = subparsers.add_parser(
        "tags",
        help="List the action tags used by the fields of a fields file",
        description="Collect action tag occurrences across all fields and print them as JSON.",
    )
    tags_parser.add_argument("fields", help="YAML file mapping field names to annotations")
    tags_parser.add_argument(
        "--tag",
        action="append",
        default=[],
        metavar="NAME",
        help="Only report this tag (may be repeated)",
    )
    tags_parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME",
        help="Only scan this field (may be repeated)",
    )
    tags_parser.add_argument(
        "--by-field",
        action="store_true",
        help="Group the occurrences by field instead of by tag",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check the action tags of a fields file for misuse",
        description="Validate action tags against the known tags and their parameters.",
    )
    check_parser.add_argument("fields", help="YAML file mapping field names to annotations")

    # explain subcommand
    explain_parser = subparsers.add_parser(
        "explain",
        help="Show how the annotations of a fields file are parsed",
        description="Print a colored breakdown of the segments of every field annotation.",
    )
    explain_parser.add_argument("fields", help="YAML file mapping field names to annotations")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    try:
        config = _load_settings(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if not config.cache_enabled:
        disable_cache()

    if args.command == "parse":
        return _cmd_parse(args, config)
    if args.command == "tags":
        return _cmd_tags(args, config)
    if args.command == "check":
        return _cmd_check(args, config)
    if args.command == "explain":
        return _cmd_explain(args, config)
    return 0


def _load_settings(args: argparse.Namespace) -> ParserConfig:
    """Return the settings from --config, the working directory, or the defaults."""
    if args.config is not None:
        return load_config(Path(args.config))
    default_file = Path.cwd() / CONFIG_FILE_NAME
    if default_file.exists():
        return load_config(default_file)
    return ParserConfig()


def _load_fields_or_report(path: str) -> list[FieldSpec] | None:
    """Load a fields file, printing the error and returning None on failure."""
    try:
        return load_fields(Path(path))
    except FieldsFileError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _cmd_parse(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle the parse subcommand."""
    if args.file == "-":
        text = sys.stdin.read()
    else:
        path = Path(args.file)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            print(f"Error: cannot read '{path}': {exc}", file=sys.stderr)
            return 1

    segments = parse(text, tags_only=args.tags_only, config=config)
    print(json.dumps(to_dict(segments), indent=2, ensure_ascii=False))
    return 0


def _cmd_tags(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle the tags subcommand."""
    fields = _load_fields_or_report(args.fields)
    if fields is None:
        return 1

    source = annotations_by_field(fields)
    try:
        if args.by_field:
            by_field = get_tags_by_field(source, args.tag, field_filter=args.field, config=config)
            output: object = {
                field: {tag: [o.model_dump() for o in occurrences] for tag, occurrences in tags.items()}
                for field, tags in by_field.items()
            }
        else:
            by_tag = get_tags(source, args.tag, field_filter=args.field, config=config)
            output = {tag: [o.model_dump() for o in occurrences] for tag, occurrences in by_tag.items()}
    except TagQueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def _cmd_check(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle the check subcommand."""
    fields = _load_fields_or_report(args.fields)
    if fields is None:
        return 1

    print(f"Checking {len(fields)} field(s)...")
    try:
        result = check_fields(fields, config=config)
    except RegistryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning.message}")
    for error in result.errors:
        print(f"Error: {error.message}", file=sys.stderr)

    if result.has_errors:
        return 1
    if not result.warnings:
        print("No issues found.")
    return 0


def _cmd_explain(args: argparse.Namespace, config: ParserConfig) -> int:
    """Handle the explain subcommand."""
    fields = _load_fields_or_report(args.fields)
    if fields is None:
        return 1

    for spec in fields:
        header = spec.name if spec.field_type is None else f"{spec.name} ({spec.field_type})"
        print(chalk.bold(header))
        segments = parse(spec.annotation, config=config)
        if not segments:
            print(chalk.gray("  (empty)"))
        for line in _explain_segments(segments, indent=1):
            print(line)
        print()
    return 0


def _explain_segments(segments: list[Segment], indent: int) -> list[str]:
    """Render one line per segment, with conditional branches indented below their tag."""
    pad = "  " * indent
    lines: list[str] = []
    for segment in segments:
        span = chalk.gray(f"[{segment.start}-{segment.end}]")
        if not segment.is_tag:
            if segment.annotation is not None:
                lines.append(f"{pad}{span} {chalk.yellow(repr(segment.text))} {chalk.yellow(segment.annotation)}")
            else:
                lines.append(f"{pad}{span} {chalk.gray(repr(segment.text))}")
        else:
            lines.append(f"{pad}{span} {chalk.cyan(segment.text)}{_explain_param(segment)}")
        for warning in segment.warnings:
            lines.append(f"{pad}  {chalk.yellow('! ' + warning.message)}")
        if segment.conditional is not None:
            branches = segment.conditional
            lines.append(f"{pad}  {chalk.magenta('if')} {branches.condition_text.strip()}")
            lines.append(f"{pad}  {chalk.magenta('then')}")
            lines.extend(_explain_segments(branches.then_segments, indent + 2))
            lines.append(f"{pad}  {chalk.magenta('else')}")
            lines.extend(_explain_segments(branches.else_segments, indent + 2))
    return lines


def _explain_param(segment: Segment) -> str:
    param = segment.param
    if param is None:
        return ""
    if isinstance(param, JsonParam) and not param.valid:
        return f" {chalk.red(param.kind)} {chalk.red(param.raw)}"
    return f" {chalk.green(param.kind)} {param.raw}"

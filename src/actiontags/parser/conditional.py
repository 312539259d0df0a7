# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Splitting of conditional tag argument lists into their top-level parts."""

# ###############
# Public Interface
# ###############


def split_conditional(body: str) -> list[str]:
    """Split an argument-list body at its top-level commas.

    A comma is top-level when it is outside any quoted string literal and no
    parenthesis opened outside a literal is still unmatched. A quote toggles
    literal state only when it matches the quote that opened the literal;
    backslashes get no special treatment here. An empty trailing part is not
    returned, so ``"a,b,"`` yields two parts and ``""`` yields none.

    Args:
        body: The argument-list text between the enclosing parentheses.

    Returns:
        The parts in order, with their surrounding whitespace preserved.
    """
    return [part for part, _ in split_with_offsets(body)]


def split_with_offsets(body: str) -> list[tuple[str, int]]:
    """Like :func:`split_conditional`, pairing each part with its start index in *body*."""
    parts: list[tuple[str, int]] = []
    depth = 0
    quote = ""
    part_start = 0

    for index, ch in enumerate(body):
        if ch in "\"'" and (not quote or ch == quote):
            quote = "" if quote else ch
        if quote:
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            # An unmatched closer leaves the count at zero.
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append((body[part_start:index], part_start))
            part_start = index + 1

    if part_start < len(body):
        parts.append((body[part_start:], part_start))
    return parts

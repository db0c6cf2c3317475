#!/usr/bin/env python3
"""
Serializer for Fluent-like (.flt) entries.

Writes entries back with the same grammar the parser accepts. Placeables
parsed from text are written from their verbatim source, so parse followed
by serialize reproduces the input byte for byte.
"""

from .base import (
    Entry,
    EntryKind,
    MessageRef,
    NumberLiteral,
    Placeable,
    Selector,
    StringLiteral,
    TermRef,
    Text,
    VariableRef,
)

VARIANT_INDENT = "        "


def serialize_expression(expression) -> str:
    """Canonical text of a placeable expression (without braces)."""
    if isinstance(expression, VariableRef):
        return f"${expression.name}"
    if isinstance(expression, TermRef):
        return f"-{expression.name}"
    if isinstance(expression, MessageRef):
        if expression.attribute:
            return f"{expression.name}.{expression.attribute}"
        return expression.name
    if isinstance(expression, StringLiteral):
        return f'"{expression.value}"'
    if isinstance(expression, NumberLiteral):
        return expression.value
    if isinstance(expression, Selector):
        lines = [f"{serialize_expression(expression.selector)} ->"]
        for variant in expression.variants:
            marker = "*" if variant.default else " "
            lines.append(f"{VARIANT_INDENT[:-1]}{marker}[{variant.key}] {serialize_pattern(variant.value)}")
        return "\n".join(lines) + "\n   "
    raise TypeError(f"Unknown expression type: {type(expression).__name__}")


def serialize_placeable(placeable: Placeable) -> str:
    if placeable.source is not None:
        return placeable.source
    return f"{{ {serialize_expression(placeable.expression)} }}"


def serialize_pattern(segments) -> str:
    """Render a segment sequence back to pattern text."""
    parts = []
    for segment in segments or ():
        if isinstance(segment, Text):
            parts.append(segment.value)
        else:
            parts.append(serialize_placeable(segment))
    return "".join(parts)


def serialize_body(entry: Entry) -> str:
    """Value plus attributes as written after the identifier (used for diffing)."""
    parts = [serialize_pattern(entry.value)]
    for attr in entry.attributes.values():
        parts.append(f"\n{attr.indent}.{attr.name}{attr.separator}{serialize_pattern(attr.value)}")
    return "".join(parts)


def serialize_entry(entry: Entry) -> str:
    """Render one entry; may span several lines but never ends with a newline."""
    if entry.kind in (EntryKind.COMMENT, EntryKind.BLANK):
        return entry.raw or ""
    return f"{entry.key}{entry.separator}{serialize_body(entry)}"


def serialize(entries: list[Entry]) -> str:
    """
    Render entries to file content.

    Every line of the original file is its own entry (the empty string after a
    trailing newline is a Blank entry), so joining with newlines restores the file.
    """
    return "\n".join(serialize_entry(e) for e in entries)

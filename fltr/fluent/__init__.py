#!/usr/bin/env python3
"""
Fluent-like (.flt) file model, parser and serializer.

Supported syntax:
- Messages and terms: `hello = Hello`, `-brand = Firefox`
- Attributes: indented `.placeholder = Email` lines
- Placeables: `{ $var }`, `{ message }`, `{ -term }`, `{ "literal" }`, `{ 42 }`
- Selectors: `{ $count -> [one] ... *[other] ... }` (one level)
- Comments and blank lines, preserved verbatim
"""

from .base import (
    Attribute,
    Entry,
    EntryKind,
    MessageRef,
    NumberLiteral,
    Placeable,
    Segment,
    Selector,
    StringLiteral,
    TermRef,
    Text,
    VariableRef,
    Variant,
    attached_comments,
    comment_text,
    index_entries,
)
from .parser import FluentParser, parse, parse_pattern
from .serializer import serialize, serialize_body, serialize_entry, serialize_pattern

__all__ = [
    'Attribute',
    'Entry',
    'EntryKind',
    'MessageRef',
    'NumberLiteral',
    'Placeable',
    'Segment',
    'Selector',
    'StringLiteral',
    'TermRef',
    'Text',
    'VariableRef',
    'Variant',
    'attached_comments',
    'comment_text',
    'index_entries',
    'FluentParser',
    'parse',
    'parse_pattern',
    'serialize',
    'serialize_body',
    'serialize_entry',
    'serialize_pattern',
]

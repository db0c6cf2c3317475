#!/usr/bin/env python3
"""
Entry model for Fluent-like (.flt) localization files.

Entry is the universal unit produced by the parser and consumed by the
serializer, the diff cache and the placeholder protector. Everything here is
immutable: pipeline stages derive new entries with dataclasses.replace().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class EntryKind(Enum):
    """Kind of a top-level entry."""
    MESSAGE = "message"
    TERM = "term"
    COMMENT = "comment"
    BLANK = "blank"


@dataclass(frozen=True)
class Text:
    """Literal, directly translatable text."""
    value: str

    @property
    def is_newline(self) -> bool:
        """True for the explicit line break + indentation segment of multiline values."""
        return self.value.startswith("\n") and not self.value.strip()


@dataclass(frozen=True)
class VariableRef:
    """`$name`"""
    name: str


@dataclass(frozen=True)
class MessageRef:
    """`name` or `name.attr`"""
    name: str
    attribute: Optional[str] = None


@dataclass(frozen=True)
class TermRef:
    """`-name`"""
    name: str


@dataclass(frozen=True)
class StringLiteral:
    """`"..."` - value is kept escaped, exactly as written."""
    value: str


@dataclass(frozen=True)
class NumberLiteral:
    value: str


InlineExpression = Union[VariableRef, MessageRef, TermRef, StringLiteral, NumberLiteral]


@dataclass(frozen=True)
class Variant:
    """One branch of a selector."""
    key: str
    value: tuple
    default: bool = False


@dataclass(frozen=True)
class Selector:
    """
    Variable-driven branch: `{ $var -> [key] text *[other] text }`.

    Attributes:
        selector: Expression the branches are chosen on
        variants: Ordered variants, exactly one marked default
    """
    selector: InlineExpression
    variants: tuple

    @property
    def default_variant(self) -> Variant:
        for variant in self.variants:
            if variant.default:
                return variant
        raise ValueError("Selector has no default variant")


@dataclass(frozen=True)
class Placeable:
    """
    Embedded expression delimited by `{ }`.

    Attributes:
        expression: Inline expression or Selector
        source: Verbatim text as parsed (braces included), None when built in code
    """
    expression: Union[InlineExpression, Selector]
    source: Optional[str] = None

    @property
    def is_selector(self) -> bool:
        return isinstance(self.expression, Selector)


Segment = Union[Text, Placeable]


@dataclass(frozen=True)
class Attribute:
    """
    `.name = value` line under a message.

    indent and separator hold the raw whitespace around the name so the
    serializer can write the line back byte-for-byte.
    """
    name: str
    value: tuple
    indent: str = "    "
    separator: str = " = "


@dataclass(frozen=True)
class Entry:
    """
    One localization unit.

    Attributes:
        identifier: Unique key (message id, `-term` id, or `#<line>` for comments/blanks)
        kind: Message, Term, Comment or Blank
        value: Segment sequence, None for comments and blanks
        attributes: Attribute name -> Attribute, in source order
        separator: Raw text between identifier and value (`" = "`)
        raw: Verbatim line for comments and blanks
        line: 1-based line number in the file it was parsed from
    """
    identifier: str
    kind: EntryKind
    value: Optional[tuple] = None
    attributes: dict = field(default_factory=dict)
    separator: str = " = "
    raw: Optional[str] = None
    line: int = 0

    @property
    def is_translatable(self) -> bool:
        return self.kind in (EntryKind.MESSAGE, EntryKind.TERM)

    @property
    def has_selector(self) -> bool:
        """Whether the value or any attribute holds a Selector placeable."""
        patterns = [self.value or ()] + [attr.value for attr in self.attributes.values()]
        return any(
            isinstance(seg, Placeable) and seg.is_selector
            for pattern in patterns
            for seg in pattern
        )

    @property
    def key(self) -> str:
        """Identifier as written in the file (terms carry a leading dash)."""
        if self.kind == EntryKind.TERM:
            return f"-{self.identifier}"
        return self.identifier


def index_entries(entries: list[Entry]) -> dict[str, Entry]:
    """Map identifier -> entry for messages and terms."""
    return {e.key: e for e in entries if e.is_translatable}


def attached_comments(entries: list[Entry]) -> dict[str, list[Entry]]:
    """
    Find the comment lines directly above each message or term.

    A comment is attached when there is no blank line between it and the entry.

    Returns:
        Map of entry key -> list of Comment entries (top to bottom)
    """
    attached = {}
    pending = []
    for entry in entries:
        if entry.kind == EntryKind.COMMENT:
            pending.append(entry)
        elif entry.kind == EntryKind.BLANK:
            pending = []
        else:
            if pending:
                attached[entry.key] = pending
            pending = []
    return attached


def comment_text(comments: list[Entry]) -> str:
    """Joined comment content without the leading `#` markers."""
    return "\n".join((c.raw or "").lstrip("#").strip() for c in comments)

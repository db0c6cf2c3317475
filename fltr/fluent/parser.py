#!/usr/bin/env python3
"""
Parser for Fluent-like (.flt) localization files.

The file is scanned line by line by FluentParser, a small state machine that
tracks the currently open message, attribute and placeable. Once an entry is
complete, its raw value text is handed to _PatternParser, which splits it into
Text and Placeable segments and validates braces and selectors.

Supported grammar:
```
# comment
hello-world = Hello, { $who }!
-brand = Firefox
login =
    Multiline value
    .placeholder = Email
shared-photos = { $user_name } { $photo_count ->
    [one] added a new photo
   *[other] added { $photo_count } new photos
}.
```
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..errors import FluentSyntaxError
from .base import (
    Attribute,
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
    Variant,
)

IDENTIFIER = r"[a-zA-Z][a-zA-Z0-9_-]*"

ENTRY_PATTERN = re.compile(rf"^(-?)({IDENTIFIER})([ \t]*=[ \t]*)(.*)$")
ATTRIBUTE_PATTERN = re.compile(rf"^([ \t]+)\.({IDENTIFIER})([ \t]*=[ \t]*)(.*)$")
IDENTIFIER_PATTERN = re.compile(IDENTIFIER)
NUMBER_PATTERN = re.compile(r"-?[0-9]+(\.[0-9]+)?")
VARIANT_KEY_PATTERN = re.compile(r"\[[ \t]*([^\]\s]+)[ \t]*\]")


def brace_depth(text: str) -> int:
    """
    Net number of open placeables at the end of text.

    String literals inside placeables are skipped so `{ "}" }` counts as closed.
    A negative result means there is a stray `}`.
    """
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return depth
        elif ch == '"' and depth > 0:
            i += 1
            while i < len(text) and text[i] not in '"\n':
                if text[i] == "\\":
                    i += 1
                i += 1
        i += 1
    return depth


class _PatternParser:
    """Character-level parser for one value or attribute pattern."""

    def __init__(self, text: str, line_num: int):
        self.text = text
        self.pos = 0
        self.start_line = line_num
        self.in_selector = False
        self.multiline_selector = False

    @property
    def line_num(self) -> int:
        return self.start_line + self.text.count("\n", 0, self.pos)

    def _current(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _error(self, expected: str, found: Optional[str] = None) -> FluentSyntaxError:
        if found is None:
            ch = self._current()
            found = repr(ch) if ch else "end of input"
        return FluentSyntaxError(self.line_num, expected, found)

    def _skip_blank(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in " \t\n":
            self.pos += 1

    def parse_pattern(self, stop: Optional[Callable[[], bool]] = None) -> tuple:
        segments = []
        buf = []

        def flush():
            if buf:
                segments.append(Text("".join(buf)))
                buf.clear()

        while self.pos < len(self.text):
            if stop and stop():
                break
            ch = self.text[self.pos]
            if ch == "\n":
                flush()
                start = self.pos
                self.pos += 1
                while self.pos < len(self.text) and self.text[self.pos] in " \t":
                    self.pos += 1
                segments.append(Text(self.text[start:self.pos]))
            elif ch == "{":
                flush()
                segments.append(self._parse_placeable())
            elif ch == "}":
                raise self._error("text or '{'", "unbalanced '}'")
            else:
                buf.append(ch)
                self.pos += 1

        flush()
        return tuple(segments)

    def _parse_placeable(self) -> Placeable:
        start = self.pos
        self.pos += 1
        self._skip_blank()
        expression = self._parse_inline_expression()
        self._skip_blank()

        if self.text.startswith("->", self.pos):
            if self.in_selector:
                raise self._error("'}'", "nested selector")
            self.pos += 2
            expression = self._parse_selector(expression)
        elif self._current() == "}":
            self.pos += 1
        else:
            raise self._error("'}'")

        return Placeable(expression, source=self.text[start:self.pos])

    def _parse_identifier(self) -> str:
        match = IDENTIFIER_PATTERN.match(self.text, self.pos)
        if not match:
            raise self._error("an identifier")
        name = match.group(0)
        # `$count->` : the arrow is not part of the name
        if name.endswith("-") and self.text.startswith(">", match.end()):
            name = name[:-1]
        self.pos += len(name)
        return name

    def _parse_inline_expression(self):
        ch = self._current()

        if ch == '"':
            self.pos += 1
            start = self.pos
            while self._current() != '"':
                if self._current() in ("", "\n"):
                    raise self._error("closing '\"'")
                if self._current() == "\\":
                    self.pos += 1
                self.pos += 1
            value = self.text[start:self.pos]
            self.pos += 1
            return StringLiteral(value)

        if ch == "$":
            self.pos += 1
            return VariableRef(self._parse_identifier())

        if ch == "-" or ch.isdigit():
            number = NUMBER_PATTERN.match(self.text, self.pos)
            if number:
                self.pos = number.end()
                return NumberLiteral(number.group(0))
            self.pos += 1
            return TermRef(self._parse_identifier())

        if ch.isalpha():
            name = self._parse_identifier()
            attribute = None
            if self._current() == ".":
                self.pos += 1
                attribute = self._parse_identifier()
            if self._current() == "(":
                raise self._error("'}'", f"call to function {name}()")
            return MessageRef(name, attribute)

        if ch == "{":
            raise self._error("an expression", "nested placeable")

        raise self._error("an expression")

    def _at_line_start(self) -> bool:
        line_start = self.text.rfind("\n", 0, self.pos) + 1
        return not self.text[line_start:self.pos].strip()

    def _at_variant_boundary(self) -> bool:
        ch = self._current()
        if ch == "}":
            return True
        if ch == "[" or self.text.startswith("*[", self.pos):
            # variants on their own lines: `[` inside the text is literal
            return not self.multiline_selector or self._at_line_start()
        return False

    def _parse_selector(self, expression) -> Selector:
        selector_line = self.line_num
        variants = []
        self.in_selector = True

        start = self.pos
        self._skip_blank()
        self.multiline_selector = "\n" in self.text[start:self.pos]

        while True:
            self._skip_blank()
            ch = self._current()
            if not ch:
                raise self._error("'}' closing the selector")
            if ch == "}":
                self.pos += 1
                break

            default = False
            if ch == "*":
                default = True
                self.pos += 1
            match = VARIANT_KEY_PATTERN.match(self.text, self.pos)
            if not match:
                raise self._error("a variant key '[key]'")
            self.pos = match.end()

            value = _trim(self.parse_pattern(stop=self._at_variant_boundary))
            variants.append(Variant(key=match.group(1), value=value, default=default))

        self.in_selector = False

        if not variants:
            raise FluentSyntaxError(selector_line, "at least one variant", "'}'")
        defaults = sum(1 for v in variants if v.default)
        if defaults == 0:
            raise FluentSyntaxError(
                selector_line, "exactly one default variant marked '*'", "none"
            )
        if defaults > 1:
            raise FluentSyntaxError(
                selector_line,
                "exactly one default variant marked '*'",
                f"{defaults} default variants",
            )

        return Selector(selector=expression, variants=tuple(variants))


def _trim(segments: tuple) -> tuple:
    """Strip surrounding whitespace from a variant value."""
    segs = list(segments)
    while segs and isinstance(segs[0], Text) and not segs[0].value.strip():
        segs.pop(0)
    while segs and isinstance(segs[-1], Text) and not segs[-1].value.strip():
        segs.pop()
    if segs and isinstance(segs[0], Text):
        segs[0] = Text(segs[0].value.lstrip())
    if segs and isinstance(segs[-1], Text):
        segs[-1] = Text(segs[-1].value.rstrip())
    return tuple(segs)


def parse_pattern(text: str, line_num: int = 1) -> tuple:
    """Parse a single value pattern into segments."""
    return _PatternParser(text, line_num).parse_pattern()


@dataclass
class _OpenAttribute:
    name: str
    indent: str
    separator: str
    line_num: int
    chunks: list = field(default_factory=list)


@dataclass
class _OpenEntry:
    """Accumulator for the message or term being scanned."""
    kind: EntryKind
    identifier: str
    separator: str
    line_num: int
    chunks: list = field(default_factory=list)
    attributes: list = field(default_factory=list)

    def target(self) -> list:
        if self.attributes:
            return self.attributes[-1].chunks
        return self.chunks

    def append(self, line: str) -> None:
        self.target().append(line)

    def placeable_open(self) -> bool:
        return brace_depth("\n".join(self.target())) > 0


class FluentParser:
    """
    Line-oriented state machine turning .flt text into Entry records.

    State between lines is the open entry (if any) and which of its
    patterns (value or last attribute) continuation lines belong to.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._entries: list[Entry] = []
        self._seen: set[str] = set()
        self._open: Optional[_OpenEntry] = None

    def parse(self, content: str) -> list[Entry]:
        """
        Parse file content into entries.

        Args:
            content: Raw file content

        Returns:
            Entries in file order, one Comment/Blank entry per comment/blank line

        Raises:
            FluentSyntaxError: On malformed input
        """
        self._entries = []
        self._seen = set()
        self._open = None

        lines = content.split("\n")
        try:
            for line_num, line in enumerate(lines, 1):
                self._feed(line, line_num)
            self._close()
        except FluentSyntaxError as e:
            if self.path:
                raise e.with_path(self.path) from None
            raise

        return self._entries

    def _feed(self, line: str, line_num: int) -> None:
        if self._open and self._open.placeable_open():
            self._open.append(line)
            return

        if line.startswith("#"):
            self._close()
            self._entries.append(Entry(
                identifier=f"#{line_num}",
                kind=EntryKind.COMMENT,
                raw=line,
                line=line_num,
            ))
            return

        if not line.strip():
            self._close()
            self._entries.append(Entry(
                identifier=f"#{line_num}",
                kind=EntryKind.BLANK,
                raw=line,
                line=line_num,
            ))
            return

        if line[0] in " \t":
            if not self._open:
                raise FluentSyntaxError(
                    line_num, "a message, term or comment", f"indented line {line.strip()[:40]!r}"
                )
            match = ATTRIBUTE_PATTERN.match(line)
            if match:
                indent, name, separator, value = match.groups()
                self._open.attributes.append(
                    _OpenAttribute(name, indent, separator, line_num, [value])
                )
            else:
                self._open.append(line)
            return

        match = ENTRY_PATTERN.match(line)
        if not match:
            raise FluentSyntaxError(line_num, "'identifier = value'", repr(line[:40]))

        self._close()
        dash, identifier, separator, value = match.groups()
        self._open = _OpenEntry(
            kind=EntryKind.TERM if dash else EntryKind.MESSAGE,
            identifier=identifier,
            separator=separator,
            line_num=line_num,
            chunks=[value],
        )

    def _close(self) -> None:
        """Finish the open entry, parsing its value and attributes."""
        open_entry = self._open
        if open_entry is None:
            return
        self._open = None

        key = f"-{open_entry.identifier}" if open_entry.kind == EntryKind.TERM else open_entry.identifier
        if key in self._seen:
            raise FluentSyntaxError(open_entry.line_num, "a unique identifier", f"duplicate {key!r}")
        self._seen.add(key)

        raw_value = "\n".join(open_entry.chunks)
        value = parse_pattern(raw_value, open_entry.line_num) if raw_value else None

        attributes = {}
        for attr in open_entry.attributes:
            if attr.name in attributes:
                raise FluentSyntaxError(attr.line_num, "a unique attribute", f"duplicate .{attr.name}")
            raw_attr = "\n".join(attr.chunks)
            if not raw_attr.strip():
                raise FluentSyntaxError(attr.line_num, "an attribute value", "end of line")
            attributes[attr.name] = Attribute(
                name=attr.name,
                value=parse_pattern(raw_attr, attr.line_num),
                indent=attr.indent,
                separator=attr.separator,
            )

        if value is None and (open_entry.kind == EntryKind.TERM or not attributes):
            raise FluentSyntaxError(open_entry.line_num, f"a value for {key!r}", "end of line")

        self._entries.append(Entry(
            identifier=open_entry.identifier,
            kind=open_entry.kind,
            value=value,
            attributes=attributes,
            separator=open_entry.separator,
            line=open_entry.line_num,
        ))


def parse(content: str, path: Optional[str] = None) -> list[Entry]:
    """Parse .flt content into entries."""
    return FluentParser(path).parse(content)

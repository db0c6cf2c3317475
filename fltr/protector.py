#!/usr/bin/env python3
"""
Placeholder protection for machine translation.

Before an entry is sent to the translation service every placeable is swapped
for a sentinel token (`___0___`, `___1___`, ...), giving the service plain text
it cannot break. After translation the tokens are swapped back.

Selectors are not translated per variant: a selector collapses to its default
variant, whose text joins the sentence and whose own placeables get tokens.

    shared-photos = { $user_name } { $photo_count -> ... *[other] added { $photo_count } new photos }.

is sent as

    ___0___ added ___1___ new photos.
"""

import re
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Optional

from .errors import PlaceholderLossError
from .fluent.base import Entry, Placeable, Text

SENTINEL_TEMPLATE = "___{}___"
SENTINEL_PATTERN = re.compile(r"___(\d+)___")
BRACE_PATTERN = re.compile(r"[{}]")
DEFAULT_INDENT = "    "


@dataclass(frozen=True)
class ProtectedText:
    """
    Plain text ready for translation plus what is needed to undo the rewrite.

    Attributes:
        text: Plain text with sentinel tokens, surrounding whitespace stripped
        placeables: Sentinel token -> original Placeable (or Text for token-like source text)
        leading: Raw whitespace stripped from the start
        trailing: Raw whitespace stripped from the end
        indent: Continuation indent used when the translation has line breaks
    """
    text: str
    placeables: dict = field(default_factory=dict)
    leading: str = ""
    trailing: str = ""
    indent: str = DEFAULT_INDENT


@dataclass(frozen=True)
class ProtectedEntry:
    """Protected value and attributes of one entry. Tokens are numbered per entry."""
    identifier: str
    value: Optional[ProtectedText] = None
    attributes: dict = field(default_factory=dict)

    def units(self) -> list[tuple[Optional[str], ProtectedText]]:
        """(attribute name or None for the value, protected text) pairs in order."""
        units = []
        if self.value is not None:
            units.append((None, self.value))
        units.extend(self.attributes.items())
        return units


def flatten(segments) -> tuple:
    """Replace every selector by the segments of its default variant."""
    flat = []
    for segment in segments or ():
        if isinstance(segment, Placeable) and segment.is_selector:
            flat.extend(segment.expression.default_variant.value)
        else:
            flat.append(segment)
    return tuple(flat)


def _continuation_indent(segments) -> str:
    for segment in segments or ():
        if isinstance(segment, Text) and segment.is_newline:
            return segment.value[1:] or DEFAULT_INDENT
    return DEFAULT_INDENT


def _split_whitespace(segments: tuple) -> tuple[str, list, str]:
    """Separate raw leading/trailing whitespace from the body segments."""
    segs = list(segments)
    leading = ""
    trailing = ""

    while segs and isinstance(segs[0], Text) and not segs[0].value.strip():
        leading += segs.pop(0).value
    while segs and isinstance(segs[-1], Text) and not segs[-1].value.strip():
        trailing = segs.pop().value + trailing

    if segs and isinstance(segs[0], Text):
        value = segs[0].value
        stripped = value.lstrip()
        leading += value[:len(value) - len(stripped)]
        segs[0] = Text(stripped)
    if segs and isinstance(segs[-1], Text):
        value = segs[-1].value
        stripped = value.rstrip()
        trailing = value[len(stripped):] + trailing
        segs[-1] = Text(stripped)

    return leading, segs, trailing


def _text_segments(text: str, indent: str) -> list:
    """
    Turn translated plain text back into segments.

    Line breaks become indented continuation lines; empty lines are dropped so
    the entry is not cut short.
    """
    segments = []
    for i, line in enumerate(text.split("\n")):
        if i and not (segments and isinstance(segments[-1], Text) and segments[-1].is_newline):
            segments.append(Text("\n" + indent))
        if not line.strip():
            continue
        if i:
            line = line.lstrip()
        segments.append(Text(line))
    return segments


class PlaceholderProtector:
    """Rewrites entries to and from sentinel-token plain text."""

    def protect(self, segments, start: int = 0) -> ProtectedText:
        """
        Replace placeables with sentinel tokens.

        Args:
            segments: Value or attribute segments
            start: First token number (tokens continue across one entry's patterns)

        Returns:
            ProtectedText with the plain text and the token mapping
        """
        indent = _continuation_indent(segments)
        leading, body, trailing = _split_whitespace(flatten(segments))

        parts = []
        placeables = {}

        def add(segment) -> str:
            token = SENTINEL_TEMPLATE.format(start + len(placeables))
            placeables[token] = segment
            return token

        for segment in body:
            if isinstance(segment, Placeable):
                parts.append(add(segment))
            elif segment.is_newline:
                parts.append("\n")
            else:
                # token-like text in the source is protected as well
                pos = 0
                for match in SENTINEL_PATTERN.finditer(segment.value):
                    parts.append(segment.value[pos:match.start()])
                    parts.append(add(Text(match.group(0))))
                    pos = match.end()
                parts.append(segment.value[pos:])

        return ProtectedText(
            text="".join(parts),
            placeables=placeables,
            leading=leading,
            trailing=trailing,
            indent=indent,
        )

    def restore(self, translated: str, protected: ProtectedText, identifier: str = "") -> tuple:
        """
        Put the original placeables back into translated text.

        Raises:
            PlaceholderLossError: If a token is missing, repeated or unknown, or
                the translation contains a brace
        """
        counts = Counter(
            SENTINEL_TEMPLATE.format(n) for n in SENTINEL_PATTERN.findall(translated)
        )
        missing = [token for token in protected.placeables if not counts.get(token)]
        unexpected = sorted(
            token for token, count in counts.items()
            if token not in protected.placeables or count > 1
        )
        unexpected.extend(sorted(set(BRACE_PATTERN.findall(translated))))
        if missing or unexpected:
            raise PlaceholderLossError(identifier, missing, unexpected)

        segments = []
        if protected.leading:
            segments.append(Text(protected.leading))
        for i, part in enumerate(SENTINEL_PATTERN.split(translated.strip())):
            if i % 2:
                segments.append(protected.placeables[SENTINEL_TEMPLATE.format(part)])
            else:
                segments.extend(_text_segments(part, protected.indent))
        if protected.trailing:
            segments.append(Text(protected.trailing))
        return tuple(segments)

    def protect_entry(self, entry: Entry) -> ProtectedEntry:
        """Protect the value and every attribute of an entry with one token sequence."""
        counter = 0
        value = None
        if entry.value:
            value = self.protect(entry.value, counter)
            counter += len(value.placeables)

        attributes = {}
        for name, attr in entry.attributes.items():
            attributes[name] = self.protect(attr.value, counter)
            counter += len(attributes[name].placeables)

        return ProtectedEntry(identifier=entry.key, value=value, attributes=attributes)

    def restore_entry(
        self,
        entry: Entry,
        protected: ProtectedEntry,
        translations: dict,
    ) -> Entry:
        """
        Build the translated entry.

        Args:
            entry: Source entry
            protected: Result of protect_entry(entry)
            translations: Attribute name (None for the value) -> translated text

        Raises:
            PlaceholderLossError: If any pattern lost a token
        """
        value = entry.value
        if protected.value is not None:
            value = self.restore(translations[None], protected.value, entry.key)

        attributes = {}
        for name, attr in entry.attributes.items():
            restored = self.restore(translations[name], protected.attributes[name], entry.key)
            attributes[name] = replace(attr, value=restored)

        return replace(entry, value=value, attributes=attributes)

    def fallback_entry(self, entry: Entry) -> Entry:
        """Source-language entry with selectors collapsed, used when translation fails."""
        return replace(
            entry,
            value=flatten(entry.value) if entry.value else entry.value,
            attributes={
                name: replace(attr, value=flatten(attr.value))
                for name, attr in entry.attributes.items()
            },
        )

#!/usr/bin/env python3
"""
Diff cache: decide which entries need (re)translation.

Compares the current source against the previous run's source and the
previous run's translated output. Unchanged entries reuse the prior
translation instead of going back to the translation service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import FluentSyntaxError
from .fluent import (
    Entry,
    EntryKind,
    attached_comments,
    comment_text,
    index_entries,
    parse,
    serialize_body,
)
from .logger import get_logger

logger = get_logger(__name__)

# Comment markers, matched as substrings of the comment directly above an entry
HAND_TRANSLATED_MARKER = "hand-translated"
LANGUAGE_NAME_MARKER = "lang-name"


class Action(Enum):
    REUSE = "reuse"
    TRANSLATE = "translate"
    LANGUAGE_NAME = "language_name"


@dataclass(frozen=True)
class Classification:
    """
    Diff result for one current entry.

    Attributes:
        entry: Current source entry
        action: REUSE, TRANSLATE or LANGUAGE_NAME
        prior: Entry to copy for REUSE (the prior translation, or the entry itself
            for comments and blanks)
        reason: Short explanation, for logs and reports
        comments: Attached comments to write instead of the source's (hand-translated entries)
    """
    entry: Entry
    action: Action
    prior: Optional[Entry] = None
    reason: str = ""
    comments: Optional[list] = None


@dataclass
class Snapshot:
    """Previous run: its source entries and its translated entries."""
    source: Optional[list] = None
    translated: Optional[list] = None
    warnings: list = field(default_factory=list)

    @classmethod
    def load(
        cls,
        source_text: Optional[str] = None,
        translated_text: Optional[str] = None,
        source_path: Optional[str] = None,
        translated_path: Optional[str] = None,
    ) -> "Snapshot":
        """
        Parse the previous source and translation.

        Missing text (None) means there is no snapshot. Text that fails to parse
        is logged and dropped, which makes every entry a TRANSLATE.
        """
        snapshot = cls()
        snapshot.source = snapshot._parse(source_text, source_path)
        snapshot.translated = snapshot._parse(translated_text, translated_path)
        return snapshot

    def _parse(self, text: Optional[str], path: Optional[str]) -> Optional[list]:
        if text is None:
            return None
        try:
            return parse(text, path=path)
        except FluentSyntaxError as e:
            message = f"Ignoring previous snapshot {path or '<text>'}: {e}"
            logger.warning(message)
            self.warnings.append(message)
            return None


class DiffCache:
    """
    Classifies current entries as REUSE or TRANSLATE against a snapshot.

    - REUSE: identifier present in both previous sequences and the serialized
      value + attributes are identical to the previous source.
    - TRANSLATE: new identifier, changed content, or no snapshot.
    - Comments and blank lines are always REUSE.
    - An entry whose previous translation is marked hand-translated is always REUSE.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        snapshot = snapshot or Snapshot()
        self.previous_source = index_entries(snapshot.source or [])
        self.previous_translated = index_entries(snapshot.translated or [])
        self.previous_comments = attached_comments(snapshot.translated or [])
        self.has_snapshot = snapshot.source is not None and snapshot.translated is not None

    def classify(self, entries: list[Entry]) -> list[Classification]:
        """Classify every entry, keeping file order."""
        current_comments = attached_comments(entries)
        results = []

        for entry in entries:
            if not entry.is_translatable:
                results.append(Classification(entry, Action.REUSE, prior=entry, reason="verbatim"))
                continue

            result = self._classify_entry(entry, current_comments.get(entry.key, []))
            logger.debug(f"[{entry.key}] {result.action.value}: {result.reason}")
            results.append(result)

        return results

    def _classify_entry(self, entry: Entry, comments: list) -> Classification:
        prior = self.previous_translated.get(entry.key)

        if prior is not None:
            prior_comments = self.previous_comments.get(entry.key, [])
            if HAND_TRANSLATED_MARKER in comment_text(prior_comments):
                return Classification(
                    entry, Action.REUSE, prior=prior,
                    reason="hand-translated", comments=prior_comments,
                )

        if self.has_snapshot and prior is not None:
            previous = self.previous_source.get(entry.key)
            if previous is not None and serialize_body(previous) == serialize_body(entry):
                return Classification(entry, Action.REUSE, prior=prior, reason="unchanged")
            reason = "new" if previous is None else "changed"
        elif not self.has_snapshot:
            reason = "no snapshot"
        else:
            reason = "new"

        if entry.kind == EntryKind.MESSAGE and LANGUAGE_NAME_MARKER in comment_text(comments):
            return Classification(entry, Action.LANGUAGE_NAME, reason="language name")

        return Classification(entry, Action.TRANSLATE, reason=reason)

    def stats(self, results: list[Classification]) -> dict:
        """Counts per action for messages and terms."""
        counts = {action.value: 0 for action in Action}
        for result in results:
            if result.entry.is_translatable:
                counts[result.action.value] += 1
        return counts

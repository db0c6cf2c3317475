#!/usr/bin/env python3
"""
Translation session: the pipeline that turns a source .flt file into a
translated one.

    parse -> diff -> protect -> translate -> restore -> merge -> serialize

Entries that need translation are sent to the provider on a bounded thread
pool; results are collected by identifier and merged back in source order.
Every entry ends up in the output: translated, reused from the previous run,
or (when translation fails) the source text with selectors collapsed.
"""

import os
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .config import TranslateConfig
from .diff_cache import Action, DiffCache, Snapshot
from .errors import (
    FltrError,
    OutputWriteError,
    PlaceholderLossError,
    TranslationTransportError,
)
from .fluent import Entry, EntryKind, Text, attached_comments, parse, serialize
from .logger import get_logger
from .protector import PlaceholderProtector, ProtectedText
from .providers import TranslationProvider

logger = get_logger(__name__)


class EntryState(Enum):
    """Pipeline states of one entry. Every entry finishes in MERGED."""
    PARSED = "parsed"
    CLASSIFIED = "classified"
    PROTECTED = "protected"
    TRANSLATED_RAW = "translated_raw"
    UNPROTECTED = "unprotected"
    FALLBACK = "fallback"
    MERGED = "merged"


@dataclass
class EntryOutcome:
    """What happened to one message or term."""
    identifier: str
    action: Action
    result: Entry
    states: list = field(default_factory=lambda: [EntryState.PARSED, EntryState.CLASSIFIED])
    warning: Optional[str] = None

    @property
    def state(self) -> EntryState:
        return self.states[-1]

    @property
    def fell_back(self) -> bool:
        return EntryState.FALLBACK in self.states

    def to_dict(self) -> dict:
        data = {
            "id": self.identifier,
            "action": self.action.value,
            "states": [s.value for s in self.states],
        }
        if self.warning:
            data["warning"] = self.warning
        return data


@dataclass
class SessionResult:
    """Merged entries, rendered output and per-entry outcomes of one run."""
    target_locale: str
    entries: list
    output: str
    outcomes: dict
    warnings: list = field(default_factory=list)
    output_file: Optional[str] = None

    def stats(self) -> dict:
        outcomes = list(self.outcomes.values())
        return {
            "total_entries": len(outcomes),
            "translated": sum(
                1 for o in outcomes if o.action == Action.TRANSLATE and not o.fell_back
            ),
            "reused": sum(1 for o in outcomes if o.action == Action.REUSE),
            "language_name": sum(1 for o in outcomes if o.action == Action.LANGUAGE_NAME),
            "fallback": sum(1 for o in outcomes if o.fell_back),
        }

    def to_dict(self) -> dict:
        stats = self.stats()
        summary = (
            f"{stats['translated']} translated, {stats['reused']} reused, "
            f"{stats['fallback']} kept in source language"
        )
        if self.output_file:
            summary = f"Translation complete! Output written to {Path(self.output_file).name}: {summary}"
        return {
            "status": "ok",
            "locale": self.target_locale,
            "output_file": self.output_file,
            "stats": stats,
            "warnings": self.warnings,
            "summary": summary,
        }


def write_atomic(path: Path, content: str) -> None:
    """
    Write content to path via a temporary file in the same directory.

    Raises:
        OutputWriteError: If anything fails; the destination is left untouched
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(f"Cannot write output file {path}: {e}") from e


def _read_optional(path: Optional[Path]) -> Optional[str]:
    if path is None or not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Cannot read {path}, ignoring it: {e}")
        return None


class TranslationSession:
    """
    Translates one source file into one target locale.

    Handles:
    - Diffing against the previous run to reuse unchanged translations
    - Sentinel-token protection of placeables
    - Concurrent provider calls with transport retries
    - Placeholder-loss retry and source-language fallback per entry
    - Atomic output writing
    """

    def __init__(
        self,
        provider: TranslationProvider,
        target_locale: str,
        concurrency: int = 8,
        max_retries: int = 2,
        retry_backoff: Optional[list] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize a translation session.

        Args:
            provider: Translate capability
            target_locale: Locale code to translate into
            concurrency: Maximum simultaneous provider calls
            max_retries: Transport retries per provider call
            retry_backoff: Seconds to wait before each retry (last value repeats)
            sleep: Sleep function (replaced in tests)
        """
        self.provider = provider
        self.target_locale = target_locale
        self.concurrency = concurrency
        self.max_retries = max_retries
        self.retry_backoff = list(retry_backoff) if retry_backoff is not None else [1.0, 4.0]
        self.protector = PlaceholderProtector()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: TranslateConfig, provider: TranslationProvider) -> "TranslationSession":
        return cls(
            provider=provider,
            target_locale=config.locale,
            concurrency=config.concurrency,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )

    def run(
        self,
        source_text: str,
        previous_source_text: Optional[str] = None,
        previous_translated_text: Optional[str] = None,
        source_path: Optional[str] = None,
        previous_source_path: Optional[str] = None,
        previous_translated_path: Optional[str] = None,
    ) -> SessionResult:
        """
        Translate source text.

        Args:
            source_text: Current source file content
            previous_source_text: Source content of the previous run (None: no diff)
            previous_translated_text: Output of the previous run (None: none)

        Returns:
            SessionResult with the merged entries and rendered output

        Raises:
            FluentSyntaxError: If the source does not parse
        """
        entries = parse(source_text, path=source_path)

        snapshot = Snapshot.load(
            previous_source_text,
            previous_translated_text,
            source_path=previous_source_path,
            translated_path=previous_translated_path,
        )
        diff = DiffCache(snapshot)
        classifications = diff.classify(entries)
        warnings = list(snapshot.warnings)

        counts = diff.stats(classifications)
        logger.info(
            f"[{self.target_locale}] {counts['translate']} to translate, "
            f"{counts['reuse']} to reuse"
        )

        outcomes = {}
        pending = []
        language_name = None
        for item in classifications:
            entry = item.entry
            if not entry.is_translatable:
                continue
            if item.action == Action.REUSE:
                outcomes[entry.key] = EntryOutcome(
                    entry.key, item.action, item.prior,
                    states=[EntryState.PARSED, EntryState.CLASSIFIED, EntryState.MERGED],
                )
            elif item.action == Action.LANGUAGE_NAME:
                if language_name is None:
                    language_name = self.provider.language_name(self.target_locale)
                # the value may have started on the next line
                named = replace(
                    entry,
                    value=(Text(language_name),),
                    separator=entry.separator.rstrip() + " ",
                )
                outcomes[entry.key] = EntryOutcome(
                    entry.key, item.action, named,
                    states=[EntryState.PARSED, EntryState.CLASSIFIED, EntryState.MERGED],
                )
            else:
                pending.append(entry)

        if pending:
            with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
                futures = {pool.submit(self._translate_entry, entry): entry.key for entry in pending}
                for future in as_completed(futures):
                    outcome = future.result()
                    outcomes[futures[future]] = outcome

        for item in classifications:
            outcome = outcomes.get(item.entry.key) if item.entry.is_translatable else None
            if outcome and outcome.warning:
                warnings.append(outcome.warning)

        merged = self._merge(entries, classifications, outcomes)
        return SessionResult(
            target_locale=self.target_locale,
            entries=merged,
            output=serialize(merged),
            outcomes=outcomes,
            warnings=warnings,
        )

    def translate_file(
        self,
        source_path: Path,
        output_path: Path,
        diff_path: Optional[Path] = None,
    ) -> SessionResult:
        """
        Translate a file and write the result atomically.

        The previous translation is the existing file at output_path; the
        previous source is diff_path. Either may be missing.
        """
        try:
            source_text = source_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FltrError(f"Cannot read source file {source_path}: {e}") from e

        result = self.run(
            source_text,
            previous_source_text=_read_optional(diff_path),
            previous_translated_text=_read_optional(output_path),
            source_path=str(source_path),
            previous_source_path=str(diff_path) if diff_path else None,
            previous_translated_path=str(output_path),
        )

        write_atomic(output_path, result.output)
        result.output_file = str(output_path)
        logger.info(f"[{self.target_locale}] wrote {output_path}")
        return result

    def _translate_entry(self, entry: Entry) -> EntryOutcome:
        """Protect, translate, restore one entry; fall back to source on failure."""
        outcome = EntryOutcome(entry.key, Action.TRANSLATE, entry)
        protected = self.protector.protect_entry(entry)
        outcome.states.append(EntryState.PROTECTED)

        try:
            translations = {
                name: self._translate_text(entry.key, unit)
                for name, unit in protected.units()
            }
            outcome.states.append(EntryState.TRANSLATED_RAW)
            outcome.result = self.protector.restore_entry(entry, protected, translations)
            outcome.states.append(EntryState.UNPROTECTED)
        except (PlaceholderLossError, TranslationTransportError) as e:
            outcome.warning = f"[{entry.key}] kept in source language: {e}"
            logger.warning(outcome.warning)
            outcome.result = self.protector.fallback_entry(entry)
            outcome.states.append(EntryState.FALLBACK)

        outcome.states.append(EntryState.MERGED)
        return outcome

    def _translate_text(self, identifier: str, unit: ProtectedText) -> str:
        """
        Translate one protected pattern, retrying once on placeholder loss.

        Raises:
            PlaceholderLossError: If the second attempt also loses a token
            TranslationTransportError: If transport retries are exhausted
        """
        if not unit.text.strip():
            return unit.text

        for attempt in (1, 2):
            translated = self._call_provider(unit.text)
            try:
                self.protector.restore(translated, unit, identifier)
                return translated
            except PlaceholderLossError as e:
                if attempt == 2:
                    raise
                logger.info(f"{e}; retrying once")
        raise AssertionError("unreachable")

    def _call_provider(self, text: str) -> str:
        """Provider call with bounded retries for transport failures."""
        attempt = 0
        while True:
            try:
                translated = self.provider.translate(text, self.target_locale)
                if not translated.strip():
                    raise TranslationTransportError("Translation service returned an empty text")
                return translated
            except TranslationTransportError as e:
                attempt += 1
                if attempt > self.max_retries:
                    raise
                wait_time = 0.0
                if self.retry_backoff:
                    wait_time = self.retry_backoff[min(attempt - 1, len(self.retry_backoff) - 1)]
                logger.warning(
                    f"Translate call failed (attempt {attempt} of {self.max_retries}: {e}). "
                    f"Retrying in {wait_time:g}s..."
                )
                self._sleep(wait_time)

    def _merge(
        self,
        entries: list,
        classifications: list,
        outcomes: dict,
    ) -> list:
        """
        Final entry sequence in source order.

        Hand-translated entries bring their own comment from the previous
        translation; the source comment attached to them is dropped.
        """
        source_comments = attached_comments(entries)
        replaced_comments = {
            comment.identifier
            for item in classifications
            if item.comments is not None
            for comment in source_comments.get(item.entry.key, [])
        }

        merged = []
        for item in classifications:
            entry = item.entry
            if entry.kind in (EntryKind.COMMENT, EntryKind.BLANK):
                if entry.identifier not in replaced_comments:
                    merged.append(item.prior)
                continue
            if item.comments is not None:
                merged.extend(item.comments)
            merged.append(outcomes[entry.key].result)
        return merged

"""
fltr - machine translation for Fluent-like (.flt) localization files

Parses a source .flt file, protects placeables behind sentinel tokens,
sends plain text to a translation service and writes the translated file,
reusing translations of entries that did not change since the last run.

Quick start:
    fltr translate --locale fr --from en.flt
    fltr translate --locale fr --from en.flt --diff en.old.flt
    fltr languages
    fltr check en.flt
"""

__version__ = "1.0.0"

from .diff_cache import Action, DiffCache, Snapshot
from .errors import (
    ConfigurationError,
    FltrError,
    FluentSyntaxError,
    OutputWriteError,
    PlaceholderLossError,
    TranslationTransportError,
)
from .protector import PlaceholderProtector
from .session import SessionResult, TranslationSession

__all__ = [
    "Action",
    "DiffCache",
    "Snapshot",
    "ConfigurationError",
    "FltrError",
    "FluentSyntaxError",
    "OutputWriteError",
    "PlaceholderLossError",
    "TranslationTransportError",
    "PlaceholderProtector",
    "SessionResult",
    "TranslationSession",
]

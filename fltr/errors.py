#!/usr/bin/env python3
"""
Error taxonomy for fltr.

Every error can render itself as a dict so the CLI can report it as JSON,
the same way validation errors are reported to agents.
"""

from typing import Optional


class FltrError(Exception):
    """Base exception for all fltr errors."""

    error_type = "FLTR_ERROR"

    def to_dict(self) -> dict:
        return {
            "type": self.error_type,
            "message": str(self),
        }


class FluentSyntaxError(FltrError):
    """Malformed .flt input. Fatal for the file being parsed."""

    error_type = "SYNTAX_ERROR"

    def __init__(
        self,
        line_num: int,
        expected: str,
        found: str,
        path: Optional[str] = None,
    ):
        self.line_num = line_num
        self.expected = expected
        self.found = found
        self.path = path
        location = f"{path}:{line_num}" if path else f"line {line_num}"
        super().__init__(f"{location}: expected {expected}, found {found}")

    def with_path(self, path: str) -> "FluentSyntaxError":
        """Copy of this error annotated with the file it came from."""
        return FluentSyntaxError(self.line_num, self.expected, self.found, path=path)

    def to_dict(self) -> dict:
        return {
            "type": self.error_type,
            "file": self.path,
            "line": self.line_num,
            "expected": self.expected,
            "found": self.found,
            "message": str(self),
        }


class PlaceholderLossError(FltrError):
    """The translation service dropped, duplicated or invented a sentinel token."""

    error_type = "PLACEHOLDER_LOSS"

    def __init__(self, identifier: str, missing: list[str], unexpected: list[str]):
        self.identifier = identifier
        self.missing = missing
        self.unexpected = unexpected
        details = []
        if missing:
            details.append(f"missing {', '.join(missing)}")
        if unexpected:
            details.append(f"unexpected {', '.join(unexpected)}")
        super().__init__(f"[{identifier}] placeholder mismatch: {'; '.join(details)}")

    def to_dict(self) -> dict:
        return {
            "type": self.error_type,
            "id": self.identifier,
            "missing": self.missing,
            "unexpected": self.unexpected,
            "message": str(self),
        }


class TranslationTransportError(FltrError):
    """Network or auth failure talking to the translation service."""

    error_type = "TRANSPORT_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OutputWriteError(FltrError):
    """Output file could not be written. Fatal; no partial file is left behind."""

    error_type = "OUTPUT_WRITE_ERROR"


class ConfigurationError(FltrError):
    """Invalid configuration, missing credentials, or unsupported locale."""

    error_type = "CONFIGURATION_ERROR"

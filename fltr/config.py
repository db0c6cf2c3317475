#!/usr/bin/env python3
"""
Configuration for translation runs.

Values are layered, later layers winning:
    1. TranslateConfig defaults
    2. YAML config file (fltr.yaml in the working directory, or --config)
    3. FLTR_* environment variables
    4. Command-line flags

Example fltr.yaml:
    provider: google
    project_id: my-project
    source: locales/en.flt
    outpath: locales
    concurrency: 8
    timeout: 30
"""

import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG_FILE = "fltr.yaml"

ENV_VARS = {
    "FLTR_ACCESS_TOKEN": "access_token",
    "FLTR_PROJECT_ID": "project_id",
    "FLTR_PROVIDER": "provider",
    "FLTR_LOG_MODE": "log_mode",
}

LOG_MODES = ("off", "info", "debug")


@dataclass
class TranslateConfig:
    """Settings for one translation run."""
    provider: str = "google"
    source: str = "en.flt"
    source_locale: str = "en"
    locale: Optional[str] = None
    outpath: str = "."
    diff: Optional[str] = None
    access_token: Optional[str] = None
    project_id: Optional[str] = None
    location: str = "us-central1"
    glossary: Optional[str] = None
    ignore_case: bool = False
    concurrency: int = 8  # worker threads; keep low to respect API rate limits
    timeout: float = 30.0  # seconds per translate call
    max_retries: int = 2  # transport retries per call
    retry_backoff: list = field(default_factory=lambda: [1.0, 4.0])
    log_mode: str = "info"

    @property
    def output_file(self) -> Path:
        """`<outpath>/<locale>.flt`"""
        if not self.locale:
            raise ConfigurationError("No target locale given (use --locale)")
        return Path(self.outpath) / f"{self.locale}.flt"

    def to_dict(self) -> dict:
        """Dictionary form with the access token masked."""
        data = asdict(self)
        if data["access_token"]:
            data["access_token"] = "***"
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TranslateConfig":
        """Create from a dictionary, rejecting unknown keys and wrong types."""
        return cls().merged(data)

    def merged(self, overrides: dict) -> "TranslateConfig":
        """
        Copy with overrides applied. None values are ignored.

        Raises:
            ConfigurationError: On unknown keys or values of the wrong type
        """
        known = {f.name: f for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            if key not in known:
                raise ConfigurationError(
                    f"Unknown configuration key: {key}. Available: {', '.join(known)}"
                )
            if value is None:
                continue
            changes[key] = _coerce(key, value, getattr(self, key))
        config = replace(self, **changes)
        config.validate()
        return config

    def validate(self) -> None:
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")
        if self.log_mode not in LOG_MODES:
            raise ConfigurationError(
                f"log_mode must be one of {', '.join(LOG_MODES)}, got '{self.log_mode}'"
            )


def _coerce(key: str, value, default):
    """Check a value against the type of the field default."""
    if key == "retry_backoff":
        if not isinstance(value, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in value
        ):
            raise ConfigurationError("retry_backoff must be a list of seconds")
        return [float(v) for v in value]
    if key == "log_mode" and value is False:
        # YAML reads a bare `off` as false
        return "off"
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        if not isinstance(value, bool):
            raise ConfigurationError(f"{key} must be true or false")
        return value
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise ConfigurationError(f"{key} must be an integer")
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got '{value}'") from None
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ConfigurationError(f"{key} must be a number")
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a number, got '{value}'") from None
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string")
    return value


def read_config_file(path: Path) -> dict:
    """
    Read a YAML config file.

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping of settings")
    return data


def load_config(
    path: Optional[str] = None,
    overrides: Optional[dict] = None,
    environ: Optional[dict] = None,
) -> TranslateConfig:
    """
    Build the effective configuration.

    Args:
        path: Explicit config file (must exist); defaults to ./fltr.yaml if present
        overrides: Values from command-line flags (None entries are ignored)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        TranslateConfig
    """
    environ = os.environ if environ is None else environ
    config = TranslateConfig()

    if path:
        config = config.merged(read_config_file(Path(path)))
    elif Path(DEFAULT_CONFIG_FILE).is_file():
        config = config.merged(read_config_file(Path(DEFAULT_CONFIG_FILE)))

    config = config.merged({
        key: environ[var] for var, key in ENV_VARS.items() if environ.get(var)
    })

    if overrides:
        config = config.merged(overrides)

    return config

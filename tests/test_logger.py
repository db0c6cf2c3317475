#!/usr/bin/env python3
"""Tests for the fltr logger hierarchy."""

import logging

import pytest

from fltr.logger import ROOT_LOGGER, get_logger, set_log_mode


@pytest.fixture(autouse=True)
def restore_level():
    yield
    set_log_mode("info")


def test_loggers_share_the_root():
    """Test 1: module loggers live under the fltr logger."""
    assert get_logger("session").name == "fltr.session"
    assert get_logger("fltr.cli").name == "fltr.cli"
    assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1


@pytest.mark.parametrize("mode, enabled, disabled", [
    ("off", None, logging.CRITICAL),
    ("info", logging.INFO, logging.DEBUG),
    ("debug", logging.DEBUG, None),
])
def test_log_modes(mode, enabled, disabled):
    """Test 2: log_mode picks the level."""
    set_log_mode(mode)
    logger = get_logger("session")
    if enabled is not None:
        assert logger.isEnabledFor(enabled)
    if disabled is not None:
        assert not logger.isEnabledFor(disabled)


def test_unknown_mode():
    """Test 3: unknown modes are rejected."""
    with pytest.raises(ValueError, match="Unknown log mode"):
        set_log_mode("loud")

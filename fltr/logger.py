import logging
import sys

ROOT_LOGGER = "fltr"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_LEVELS = {
    'off': logging.CRITICAL + 1,  # higher than CRITICAL disables everything
    'info': logging.INFO,
    'debug': logging.DEBUG,
}


def _root() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        # stdout is reserved for JSON results
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def set_log_mode(log_mode: str) -> None:
    """Switch all fltr loggers to 'off', 'info' or 'debug'."""
    if log_mode not in LOG_LEVELS:
        raise ValueError(f"Unknown log mode: {log_mode}. Available: {', '.join(LOG_LEVELS)}")
    _root().setLevel(LOG_LEVELS[log_mode])


def get_logger(name: str) -> logging.Logger:
    """Logger under the fltr hierarchy, sharing its stderr handler."""
    _root()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)

"""
Logging configuration for the UroTrack API.

Console output for the process supervisor plus a rotating file under
`logs/`. Webhook payloads must go through `sanitize_log_data` before they
are logged.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "stripe", "httpx", "httpcore", "alembic.runtime.migration")


def _configure(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure application logging.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        log_dir: Directory for urotrack.log (10MB x 5 rotations)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_configure(logging.StreamHandler(sys.stdout), level, CONSOLE_FORMAT))
    root.addHandler(_configure(
        RotatingFileHandler(directory / "urotrack.log", maxBytes=10 * 1024 * 1024, backupCount=5),
        level,
        FILE_FORMAT,
    ))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


SENSITIVE_KEYS = [
    "password", "token", "secret", "key", "api_key", "authorization",
    "cpf", "access_token",
]


def sanitize_log_data(data: dict) -> dict:
    """
    Sanitize log data to remove sensitive information.

    Nested dictionaries are sanitized recursively.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized copy without secrets
    """
    if not isinstance(data, dict):
        return data

    sanitized = {}
    for key, value in data.items():
        if any(sensitive in str(key).lower() for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "***REDACTED***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value

    return sanitized

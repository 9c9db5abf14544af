"""
Logging configuration for Interview Hub API.

Console plus a rotating file under logs/. Nothing that identifies a secret or
a full email address should reach either.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SENSITIVE_KEYS = (
    "password", "token", "secret", "api_key", "authorization",
    "openai_api_key", "videosdk_api_key", "database_url",
)
REDACTED = "***REDACTED***"

QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "httpx", "httpcore", "openai")


def setup_logging(log_level: str = "INFO", log_dir: str = "logs", log_file: str = "interview_hub.log"):
    """
    Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown values fall back to INFO
        log_dir: Directory for the rotating log file, created if missing
        log_file: File name inside log_dir
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        path / log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={logging.getLevelName(level)}")


def mask_email(email: str) -> str:
    """'jane.doe@example.com' -> 'j***@example.com'."""
    local, sep, domain = email.partition("@")
    if not sep:
        return REDACTED
    return f"{local[:1]}***@{domain}"


def sanitize_log_data(data: Any) -> Any:
    """
    Copy of data that is safe to log.

    Secret-looking keys are redacted and email values masked, recursing into
    nested dicts and lists.
    """
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(sensitive in lowered for sensitive in SENSITIVE_KEYS):
                sanitized[key] = REDACTED
            elif lowered == "email" and isinstance(value, str):
                sanitized[key] = mask_email(value)
            else:
                sanitized[key] = sanitize_log_data(value)
        return sanitized
    if isinstance(data, list):
        return [sanitize_log_data(item) for item in data]
    return data

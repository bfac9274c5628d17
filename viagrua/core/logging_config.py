"""
Logging configuration for ViaGrua API.

One root configuration for the app: console output for the container logs and
a rotating file for the server. Webhook and checkout payloads go through
sanitize_log_data before being logged.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

LOG_FILE_NAME = "viagrua.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(module)s.%(funcName)s:%(lineno)d %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that are noisy at INFO
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "urllib3", "mercadopago", "multipart")

REDACTED = "***REDACTED***"
SENSITIVE_KEYS = (
    "password",
    "token",
    "secret",
    "authorization",
    "api_key",
    "database_url",
    "identification",
)


def _handler(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown -> INFO)
        log_dir: Directory for viagrua.log, created if missing
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), CONSOLE_FORMAT, level))
    root.addHandler(_handler(
        RotatingFileHandler(
            log_path / LOG_FILE_NAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ),
        FILE_FORMAT,
        level,
    ))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def sanitize_log_data(data: dict) -> dict:
    """
    Copy of a payload with secrets and payer identification redacted.

    Nested dicts (MercadoPago sends data/payer/metadata objects) are walked too.
    """
    sanitized = {}
    for key, value in data.items():
        if any(marker in str(key).lower() for marker in SENSITIVE_KEYS):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value
    return sanitized

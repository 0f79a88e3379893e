"""
Logging setup.

Console output plus a rotating file in the data directory. A filter masks
API keys so a failed request URL or SDK error never leaks the credential.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "lazgo"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_KEY_PATTERNS = (
    re.compile(r"(key=)[A-Za-z0-9_\-]{8,}"),
    re.compile(r"AIza[0-9A-Za-z_\-]{20,}"),
)


def mask_secrets(text: str) -> str:
    masked = _KEY_PATTERNS[0].sub(r"\1********", text)
    return _KEY_PATTERNS[1].sub("********", masked)


class SecretMaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: mask_secrets(v) if isinstance(v, str) else v for k, v in record.args.items()}
            else:
                record.args = tuple(mask_secrets(a) if isinstance(a, str) else a for a in record.args)
        return True


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SecretMaskingFilter())
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=2 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SecretMaskingFilter())
        logger.addHandler(file_handler)

    return logger

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

MAX_BYTES = 10 * 1024 * 1024
MAX_FILES = 5
MAX_LINE_LENGTH = 8192

SECURITY_LOG_DIR = os.getenv("SECURITY_LOG_DIR", "").strip()

SECURITY_LOGGER = logging.getLogger("househelp.security")
SECURITY_LOGGER.propagate = False
SECURITY_LOGGER.setLevel(logging.INFO)
SECURITY_HANDLER: Optional[logging.Handler] = None


def _build_handler(log_dir: str) -> logging.Handler:
    if log_dir:
        try:
            log_dir_path = Path(log_dir)
            log_dir_path.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = RotatingFileHandler(
                log_dir_path / "security_events.jsonl",
                maxBytes=MAX_BYTES,
                backupCount=MAX_FILES,
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            return handler
        except OSError:
            logging.getLogger("househelp").warning(
                "Security log directory unusable, falling back to stream: %s", log_dir
            )
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


SECURITY_HANDLER = _build_handler(SECURITY_LOG_DIR)
SECURITY_LOGGER.addHandler(SECURITY_HANDLER)


def write_security_log(line: str) -> None:
    payload = line if len(line) <= MAX_LINE_LENGTH else line[:MAX_LINE_LENGTH]
    SECURITY_LOGGER.info(payload)

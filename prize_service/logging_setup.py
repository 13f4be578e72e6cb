import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path


def setup_logging() -> None:
    log_level = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    log_file = os.getenv("LOG_FILE")

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)
    root.addHandler(stream_handler)

    if log_file:
        max_mb = int(os.getenv("LOG_MAX_MB", "10") or "10")
        backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5") or "5")
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    # Access logs per request are noisy; keep warnings/errors.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

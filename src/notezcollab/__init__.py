"""notezcollab - collaborative editing bridge for markdown notes.

Converts markdown notes to and from the CRDT document the browser editor
works on, and provides the load/save/authenticate hooks a real-time
collaboration server is configured with.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"


def setup_logging(log_dir: Path | None = None) -> Path:
    """Configure logging to both console and rotating file.

    Call once from the host process entry point.

    Args:
        log_dir: Directory for the log file. Defaults to ``APP__LOG_DIR``.

    Returns:
        Path of the log file written by the file handler.
    """
    if log_dir is None:
        from notezcollab.config import get_settings

        log_dir = get_settings().app.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"notezcollab.{os.getpid()}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # File handler - detailed logging with rotation (10MB, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    # Console handler - less verbose
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info("Logging configured. Log file: %s", log_file.absolute())
    return log_file

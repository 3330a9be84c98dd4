"""SmartScript - smart typography transformations for HTML content.

Detects trademark, registered and copyright marks, ordinal numbers,
chemical formulas and math super/subscript notation in text and rewrites
them into ``<sup>``/``<sub>`` markup, either on a live selectolax tree or
on a serialised HTML string.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def configure_logging(debug: bool = False, log_dir: Path | None = None) -> None:
    """Configure the ``smartscript`` logger for console and optional file output.

    The library never calls this on import; the CLI (or a host application)
    does, once.

    Args:
        debug: Lower the console threshold from INFO to DEBUG.
        log_dir: When given, also write a rotating log file
            (10MB, keep 5 backups) into this directory.
    """
    package_logger = logging.getLogger(__name__)
    package_logger.setLevel(logging.DEBUG)
    # Reconfiguring replaces handlers from an earlier call
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    package_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "smartscript.log"
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        package_logger.addHandler(file_handler)
        package_logger.info("Logging configured. Log file: %s", log_file.absolute())

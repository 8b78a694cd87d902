"""Logging helpers shared by every streamlog module."""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = "WARNING"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach a single stderr handler to the ``streamlog`` logger.

    stdout is reserved for command output, so log lines never mix with
    rendered records. Calling this again only adjusts the level.
    """
    global _configured
    root = logging.getLogger("streamlog")
    resolved = (level or os.environ.get("STREAMLOG_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    root.setLevel(getattr(logging, resolved, logging.WARNING))
    if _configured:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name)

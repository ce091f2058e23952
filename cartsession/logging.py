"""
Logging for cartsession.

The root logger gets a stdout handler at import unless the host
application configured one already. Modules log through
``get_logger(__name__)``.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.setLevel(level)
    root.addHandler(handler)

    # One line per GraphQL/analytics request otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Shorten a token or id to its first 8 characters for log messages.

    Line breaks and tabs are escaped so a crafted value cannot forge
    log lines. Empty values render as "N/A".
    """
    if not id_value:
        return "N/A"
    value = str(id_value)[:8]
    return value.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t").replace("\x00", "")


__all__ = ["get_logger", "sanitize_id_for_logging"]

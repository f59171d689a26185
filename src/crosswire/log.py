"""Logging helpers.

Library modules only ever call ``logging.getLogger(__name__)``; handler setup
is left to applications, which may use ``configure_logging`` for a sane
default.
"""

import logging
from typing import Optional

from crosswire.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class _CrosswireHandler(logging.StreamHandler):
    """Stream handler attached by configure_logging."""


def configure_logging(level: Optional[str] = None, settings: Optional[Settings] = None) -> logging.Logger:
    """Attach a stream handler to the ``crosswire`` logger.

    Args:
        level: Explicit level name; falls back to ``settings.log_level``.
        settings: Settings to read the default level from.

    Returns:
        The package root logger.
    """
    if level is None:
        level = (settings or Settings()).log_level

    root = logging.getLogger("crosswire")
    root.setLevel(level.upper())

    if not any(isinstance(h, _CrosswireHandler) for h in root.handlers):
        handler = _CrosswireHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    return root


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Return ``"<count> <noun>"`` with the noun pluralized when needed."""
    noun = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {noun}"

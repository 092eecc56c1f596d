from __future__ import annotations

from typing import Callable

from .logging_config import get_logger

logger = get_logger(__name__)


def sync_backref(description: str, update: Callable[[], object]) -> bool:
    """Run a secondary back-reference update after the primary write succeeded.

    A failure here leaves the primary record in place; it is logged and reported
    to the caller as False, never raised.
    """
    try:
        update()
        return True
    except Exception:
        logger.warning("Back-reference update failed: %s", description, exc_info=True)
        return False

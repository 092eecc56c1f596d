from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root 'easydoor' logger once per process."""
    global _configured

    root = logging.getLogger("easydoor")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    # Module names look like 'src.easydoor.easydoor.visits.service'; keep everything under 'easydoor'.
    short = name.split("easydoor.easydoor.", 1)[-1] if "easydoor.easydoor." in name else name
    if short.startswith("easydoor"):
        return logging.getLogger(short)
    return logging.getLogger(f"easydoor.{short}")

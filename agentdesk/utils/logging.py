"""Root logger configuration."""

import logging
import sys

from agentdesk.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "telegram")


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger from ``settings.log_level``. Safe to call twice."""
    level_name = (level or settings.log_level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_agentdesk", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._agentdesk = True
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

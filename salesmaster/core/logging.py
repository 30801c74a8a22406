from __future__ import annotations

import logging

from salesmaster.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    root = logging.getLogger()
    # Repeated calls (app reload, CLI + app in one process) must not stack handlers.
    if not any(getattr(handler, "_salesmaster", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._salesmaster = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())

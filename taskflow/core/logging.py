import logging
import sys
from typing import Optional

from taskflow.core.config import settings

_configured = False


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure the root logger for the application (idempotent)."""
    global _configured
    level = (log_level or settings.LOG_LEVEL).upper()

    root = logging.getLogger()
    root.setLevel(level)
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        root.addHandler(handler)
        _configured = True

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

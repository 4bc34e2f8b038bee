"""
Logging entry points.

Application code imports from here:

    >>> from shared.logging import get_logger
    >>> log = get_logger(__name__)
    >>> log.info("login_success", user_id="123")
"""

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import (
    REDACTED_FIELDS,
    configure_structlog,
    redact_sensitive_fields,
    setup_logging,
)


def get_logger(name: str) -> BoundLogger:
    """Return a structlog logger bound to *name* (typically ``__name__``)."""
    return structlog.get_logger(name)


__all__ = [
    "get_logger",
    "REDACTED_FIELDS",
    "configure_structlog",
    "redact_sensitive_fields",
    "setup_logging",
]

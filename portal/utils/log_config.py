"""
Logging setup for the registration portal.
"""
import logging
import sys

from portal.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Attach a console handler to the ``portal`` logger tree (idempotent)."""
    root = logging.getLogger("portal")
    root.setLevel(level.upper())

    if any(getattr(h, "_portal_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._portal_handler = True
    root.addHandler(handler)

    # SQL echo stays off unless explicitly requested
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

"""
Logging Configuration
Sets up the ``nncalc`` logger for the session service.

Records are stamped with the id of the session whose event is being
handled (``-`` outside one), so controller and store lines from
concurrent sessions can be told apart.
"""
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(session)s] %(message)s'

current_session: ContextVar[str] = ContextVar("nncalc_session", default="-")


class SessionContextFilter(logging.Filter):
    """Adds ``record.session`` from the active session context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session = current_session.get()
        return True


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``session_id``."""
    token = current_session.set(session_id)
    try:
        yield
    finally:
        current_session.reset(token)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the logger for the 'nncalc' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path the service appends its log to.
    """
    logger = logging.getLogger("nncalc")
    logger.setLevel(level)

    # Re-running setup (app factory in tests) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(SessionContextFilter())
        logger.addHandler(handler)

    logger.debug("Logging initialized at %s.", logging.getLevelName(level))

"""In-memory calculator session store.

Each session owns a model, a recording view and a controller wired
together.  The store plays the view's part in the controller contract:
it only dispatches events whose enablement flag the view last received
as on, and refuses the rest with ``EventNotAllowedError``.

Each session carries its own lock, so every controller sees a single
logical thread of control while events on other sessions proceed.  The
store lock only guards the session table itself.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from nncalc.config import CalcConfig
from nncalc.controller import Controller
from nncalc.logging_config import session_context
from nncalc.model import Model
from nncalc.models import EventRequest, SessionState, _new_id, _utcnow
from nncalc.natural import to_decimal
from nncalc.spec import EnablementState, Event
from nncalc.view import RecordingView

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class EventNotAllowedError(Exception):
    """Raised when an event is posted while its flag is off."""

    def __init__(self, event: Event, flags: EnablementState) -> None:
        self.event = event
        self.flags = flags
        super().__init__(f"Event not allowed in the current state: {event.value}")


class SessionLimitError(Exception):
    """Raised when creating a session would exceed ``max_sessions``."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Session limit reached: {limit}")


@dataclass
class Session:
    id: str
    model: Model
    view: RecordingView
    controller: Controller
    created_at: datetime
    updated_at: datetime
    events_processed: int = 0
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def state(self) -> SessionState:
        with self.lock:
            return SessionState(
                id=self.id,
                top=to_decimal(self.view.top),
                bottom=to_decimal(self.view.bottom),
                subtract_allowed=self.view.subtract_allowed,
                divide_allowed=self.view.divide_allowed,
                root_allowed=self.view.root_allowed,
                power_allowed=self.view.power_allowed,
                events_processed=self.events_processed,
                created_at=self.created_at,
                updated_at=self.updated_at,
            )


class SessionStore:
    """In-memory store of calculator sessions."""

    def __init__(self, config: CalcConfig | None = None) -> None:
        self.config = config or CalcConfig()
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    # -- CRUD ----------------------------------------------------------------

    def create(self) -> Session:
        """Create a session with both registers at zero."""
        with self._lock:
            if len(self._sessions) >= self.config.max_sessions:
                raise SessionLimitError(self.config.max_sessions)
            now = _utcnow()
            model = Model()
            view = RecordingView()
            session = Session(
                id=_new_id(),
                model=model,
                view=view,
                controller=Controller(model, view, self.config),
                created_at=now,
                updated_at=now,
            )
            self._sessions[session.id] = session
        logger.info("Created session %s", session.id)
        return session

    def get(self, session_id: str) -> Session:
        """Retrieve a session by id."""
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list(self, *, offset: int = 0, limit: int = 50) -> list[Session]:
        """List sessions, newest first."""
        with self._lock:
            sessions = list(self._sessions.values())
        items = sorted(sessions, key=lambda s: s.created_at, reverse=True)
        return items[offset : offset + limit]

    def apply(self, session_id: str, request: EventRequest) -> Session:
        """Dispatch one event to a session's controller.

        Refused events and failed conversions leave the session as it was.
        Only the last push stays in the view's trace.
        """
        session = self.get(session_id)
        with session.lock, session_context(session_id):
            flags = session.view.flags
            if not flags.allows(request.event):
                logger.warning(
                    "Refused %s on session %s: %s",
                    request.event.value, session_id, flags,
                )
                raise EventNotAllowedError(request.event, flags)
            session.view.reset_trace()
            session.controller.dispatch(request.event, request.digit)
            session.events_processed += 1
            session.updated_at = _utcnow()
            return session

    def delete(self, session_id: str) -> Session:
        """Delete a session and return it."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info("Deleted session %s", session_id)
        return session

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions (useful for testing)."""
        with self._lock:
            self._sessions.clear()

"""FastAPI REST endpoints for calculator sessions.

Routes
------
POST   /sessions               Create a new session
GET    /sessions               List sessions
GET    /sessions/{id}          Retrieve a single session
POST   /sessions/{id}/events   Apply one event to a session
DELETE /sessions/{id}          Delete a session
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from nncalc.models import EventRequest, SessionListResponse, SessionState
from nncalc.natural import PreconditionViolation, RangeViolation
from nncalc.store import (
    EventNotAllowedError,
    SessionLimitError,
    SessionNotFoundError,
    SessionStore,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])

# The store instance is injected by the app factory (see app.py).
_store: SessionStore | None = None


def set_store(store: SessionStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> SessionStore:
    assert _store is not None, "Store not initialized"
    return _store


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=SessionState, status_code=201)
def create_session() -> SessionState:
    """Create a new session with both registers at zero."""
    store = get_store()
    try:
        return store.create().state()
    except SessionLimitError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


@router.get("", response_model=SessionListResponse)
def list_sessions(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=200, description="Pagination limit"),
) -> SessionListResponse:
    """List sessions, newest first."""
    store = get_store()
    items = [s.state() for s in store.list(offset=offset, limit=limit)]
    return SessionListResponse(items=items, total=store.count())


@router.get("/{session_id}", response_model=SessionState)
def get_session(session_id: str) -> SessionState:
    """Retrieve a single session by id."""
    store = get_store()
    try:
        return store.get(session_id).state()
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.post("/{session_id}/events", response_model=SessionState)
def apply_event(session_id: str, payload: EventRequest) -> SessionState:
    """Apply one event and return the updated session."""
    store = get_store()
    try:
        return store.apply(session_id, payload).state()
    except SessionNotFoundError:
        raise _not_found(session_id)
    except EventNotAllowedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except (RangeViolation, PreconditionViolation) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.delete("/{session_id}", response_model=SessionState)
def delete_session(session_id: str) -> SessionState:
    """Delete a session and return its final state."""
    store = get_store()
    try:
        return store.delete(session_id).state()
    except SessionNotFoundError:
        raise _not_found(session_id)

"""Wire models for calculator sessions.

A session is one calculator (model, view and controller) living in the
session store.  Clients drive it by posting events and read back the
state its view last received.  Register values travel as decimal
strings so arbitrarily large values survive any JSON client.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, model_validator

from nncalc.spec import Event


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class EventRequest(BaseModel):
    """One user event.  ``digit`` goes with ``add_digit`` and nothing else."""

    event: Event
    digit: int | None = Field(default=None, ge=0, le=9)

    @model_validator(mode="after")
    def digit_matches_event(self) -> EventRequest:
        if self.event == Event.ADD_DIGIT and self.digit is None:
            raise ValueError("add_digit requires a digit")
        if self.event != Event.ADD_DIGIT and self.digit is not None:
            raise ValueError(f"{self.event.value} does not take a digit")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class SessionState(BaseModel):
    """What the session's view currently shows."""

    id: str
    top: str = Field(..., pattern=r"^[0-9]+$")
    bottom: str = Field(..., pattern=r"^[0-9]+$")
    subtract_allowed: bool
    divide_allowed: bool
    root_allowed: bool
    power_allowed: bool
    events_processed: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime


class SessionListResponse(BaseModel):
    items: list[SessionState]
    total: int


class ErrorResponse(BaseModel):
    detail: str

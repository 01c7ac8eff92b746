"""Tests for the in-memory session store."""

from __future__ import annotations

import logging
import threading

import pytest

from nncalc.bounds import Bounds
from nncalc.config import CalcConfig
from nncalc.models import EventRequest
from nncalc.natural import RangeViolation
from nncalc.spec import Event
from nncalc.store import (
    EventNotAllowedError,
    SessionLimitError,
    SessionNotFoundError,
    SessionStore,
)


def ev(event: str, digit: int | None = None) -> EventRequest:
    return EventRequest(event=Event(event), digit=digit)


def type_number(store: SessionStore, session_id: str, number: int) -> None:
    for d in str(number):
        store.apply(session_id, ev("add_digit", int(d)))


class TestCreate:

    def test_create_starts_at_zero(self, store):
        session = store.create()
        assert session.id
        assert session.model.snapshot() == (0, 0)
        state = session.state()
        assert (state.top, state.bottom) == ("0", "0")
        assert state.subtract_allowed and state.power_allowed
        assert not state.divide_allowed and not state.root_allowed

    def test_create_sets_timestamps(self, store):
        session = store.create()
        assert session.updated_at == session.created_at

    def test_create_increments_count(self, store):
        assert store.count() == 0
        store.create()
        store.create()
        assert store.count() == 2

    def test_sessions_are_independent(self, store):
        a, b = store.create(), store.create()
        type_number(store, a.id, 12)
        assert b.model.snapshot() == (0, 0)

    def test_session_limit(self):
        store = SessionStore(CalcConfig(max_sessions=1))
        store.create()
        with pytest.raises(SessionLimitError):
            store.create()


class TestGet:

    def test_get_existing(self, store):
        session = store.create()
        assert store.get(session.id) is session

    def test_get_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.get("nonexistent")


class TestList:

    def test_list_pagination(self, store):
        for _ in range(5):
            store.create()
        assert len(store.list(limit=2)) == 2
        assert len(store.list(offset=4)) == 1
        assert store.list(offset=10) == []


class TestApply:

    def test_calculation(self, store):
        session = store.create()
        type_number(store, session.id, 12)
        store.apply(session.id, ev("enter"))
        store.apply(session.id, ev("clear"))
        type_number(store, session.id, 30)
        store.apply(session.id, ev("add"))
        state = session.state()
        assert (state.top, state.bottom) == ("0", "42")
        assert state.events_processed == 7

    def test_updates_timestamp(self, store):
        session = store.create()
        store.apply(session.id, ev("swap"))
        assert session.updated_at >= session.created_at

    def test_refuses_disallowed_event(self, store):
        session = store.create()
        with pytest.raises(EventNotAllowedError) as info:
            store.apply(session.id, ev("divide"))
        assert info.value.event == Event.DIVIDE
        assert session.events_processed == 0

    def test_refusal_is_logged(self, store, caplog):
        session = store.create()
        with caplog.at_level(logging.WARNING, logger="nncalc.store"):
            with pytest.raises(EventNotAllowedError):
                store.apply(session.id, ev("root"))
        assert "Refused root" in caplog.text

    def test_refuses_subtract_underflow(self, store):
        session = store.create()
        type_number(store, session.id, 5)
        with pytest.raises(EventNotAllowedError):
            store.apply(session.id, ev("subtract"))
        assert session.model.snapshot() == (0, 5)

    def test_range_violation_leaves_session(self):
        store = SessionStore(CalcConfig(exponent_bounds=Bounds(0, 5)))
        session = store.create()
        type_number(store, session.id, 2)
        store.apply(session.id, ev("enter"))
        store.apply(session.id, ev("clear"))
        type_number(store, session.id, 6)
        with pytest.raises(RangeViolation):
            store.apply(session.id, ev("power"))
        assert session.model.snapshot() == (2, 6)
        assert session.state().bottom == "6"
        assert session.events_processed == 4

    def test_apply_missing_session(self, store):
        with pytest.raises(SessionNotFoundError):
            store.apply("nonexistent", ev("clear"))

    def test_trace_holds_only_last_push(self, store):
        session = store.create()
        for _ in range(1000):
            store.apply(session.id, ev("swap"))
        assert session.view.last_push() == [name for name, _ in session.view.calls]
        assert len(session.view.calls) == 6

    def test_refused_event_keeps_trace(self, store):
        session = store.create()
        store.apply(session.id, ev("add_digit", 3))
        with pytest.raises(EventNotAllowedError):
            store.apply(session.id, ev("subtract"))
        assert session.view.calls[1] == ("bottom", 3)


class TestConcurrency:

    def test_slow_event_does_not_block_other_sessions(self, store):
        a, b = store.create(), store.create()
        entered, release = threading.Event(), threading.Event()

        def slow_dispatch(event, digit=None):
            entered.set()
            release.wait(5)

        a.controller.dispatch = slow_dispatch
        worker = threading.Thread(target=store.apply, args=(a.id, ev("swap")))
        worker.start()
        try:
            assert entered.wait(5)
            other = threading.Thread(
                target=store.apply, args=(b.id, ev("add_digit", 4))
            )
            other.start()
            other.join(5)
            assert not other.is_alive()
            assert b.model.snapshot() == (0, 4)
        finally:
            release.set()
            worker.join(5)
        assert a.events_processed == 1

    def test_same_session_events_are_serialized(self, store):
        session = store.create()

        def type_ones():
            for _ in range(200):
                store.apply(session.id, ev("add_digit", 1))

        workers = [threading.Thread(target=type_ones) for _ in range(4)]
        for w in workers:
            w.start()
        for w in workers:
            w.join(10)
        assert session.events_processed == 800
        assert session.model.bottom == int("1" * 800)

    def test_listing_while_sessions_come_and_go(self, store):
        stop = threading.Event()

        def churn():
            while not stop.is_set():
                store.delete(store.create().id)

        worker = threading.Thread(target=churn)
        worker.start()
        try:
            for _ in range(2000):
                assert len(store.list(limit=200)) <= 1
                assert store.count() <= 1
        finally:
            stop.set()
            worker.join(5)


class TestDelete:

    def test_delete_returns_session(self, store):
        session = store.create()
        assert store.delete(session.id) is session
        assert store.count() == 0

    def test_delete_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.delete("nonexistent")

    def test_clear(self, store):
        store.create()
        store.clear()
        assert store.count() == 0

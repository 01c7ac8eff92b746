"""Shared fixtures for calculator tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from nncalc.app import create_app
from nncalc.config import CalcConfig
from nncalc.controller import Controller
from nncalc.model import Model
from nncalc.store import SessionStore
from nncalc.view import RecordingView


@pytest.fixture
def model() -> Model:
    return Model()


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def controller(model, view) -> Controller:
    return Controller(model, view)


@pytest.fixture
def connect():
    """Factory: a controller whose registers start at (top, bottom).

    The construction push is dropped from the view trace, so the trace
    holds only what the test itself causes.
    """
    def _connect(top: int = 0, bottom: int = 0, config: CalcConfig | None = None):
        model = Model()
        view = RecordingView()
        controller = Controller(model, view, config)
        model.load(top, bottom)
        view.reset_trace()
        return model, view, controller

    return _connect


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(store) -> TestClient:
    return TestClient(create_app(store=store))

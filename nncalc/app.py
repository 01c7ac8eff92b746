"""Application factory and entry point.

Run with:
    uvicorn nncalc.app:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

from nncalc.api import router, set_store
from nncalc.config import CalcConfig
from nncalc.logging_config import setup_logging
from nncalc.store import SessionStore


def create_app(
    store: SessionStore | None = None, config: CalcConfig | None = None
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store and config for testing.  Without a config
    the settings are read from the environment.
    """
    if config is None:
        config = store.config if store is not None else CalcConfig.from_env()
    if store is None:
        store = SessionStore(config)

    setup_logging(config.level, config.log_file)
    set_store(store)

    app = FastAPI(
        title="Natural Number Calculator API",
        description=(
            "Two-register arbitrary-precision calculator sessions. Each "
            "session holds a top and a bottom register of unbounded size; "
            "events fold them together and report which operations are "
            "currently allowed."
        ),
        version="0.1.0",
    )
    app.include_router(router)
    return app


# Default app instance for `uvicorn nncalc.app:app`
app = create_app()

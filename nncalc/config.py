"""
Configuration
=============
Runtime settings for the calculator and its session service.

Settings come from constructor arguments, or from the environment via
``CalcConfig.from_env()``:

    NNCALC_EXPONENT_LIMIT   largest exponent / root degree accepted
                            (default 2**31 - 1)
    NNCALC_LOG_LEVEL        level name for the ``nncalc`` logger
                            (default WARNING)
    NNCALC_MAX_SESSIONS     maximum concurrent sessions (default 1024)
    NNCALC_LOG_FILE         file the service log is appended to
                            (default: console only)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from nncalc.bounds import BOUNDED_INT, Bounds

ENV_PREFIX = "NNCALC_"


@dataclass(frozen=True)
class CalcConfig:
    exponent_bounds: Bounds = field(default=BOUNDED_INT)
    log_level: str = "WARNING"
    max_sessions: int = 1024
    log_file: str | None = None

    def __post_init__(self) -> None:
        if self.exponent_bounds.lo < 0:
            raise ValueError(
                f"exponent bounds must be non-negative, got {self.exponent_bounds}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level {self.log_level!r}")
        if self.max_sessions < 1:
            raise ValueError(f"max_sessions must be >= 1, got {self.max_sessions}")

    @property
    def level(self) -> int:
        """``log_level`` as a numeric logging level."""
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CalcConfig:
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        limit = env.get(ENV_PREFIX + "EXPONENT_LIMIT")
        if limit is not None:
            kwargs["exponent_bounds"] = Bounds(lo=0, hi=_parse_int("EXPONENT_LIMIT", limit))

        level = env.get(ENV_PREFIX + "LOG_LEVEL")
        if level is not None:
            kwargs["log_level"] = level

        sessions = env.get(ENV_PREFIX + "MAX_SESSIONS")
        if sessions is not None:
            kwargs["max_sessions"] = _parse_int("MAX_SESSIONS", sessions)

        log_file = env.get(ENV_PREFIX + "LOG_FILE")
        if log_file:
            kwargs["log_file"] = log_file

        return cls(**kwargs)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None

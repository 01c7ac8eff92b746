"""
Bounds layer for the calculator.

Registers are unbounded, but a few operations need a *bounded* integer
taken from a register: the exponent of ``power`` and the degree of
``root``.  Bounds define the domain such a conversion may produce.
Outside the bounds the conversion refuses outright; it never truncates.

Digits supplied by the append-digit event are bounded the same way.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Bounds:
    """An inclusive integer interval [lo, hi]."""

    lo: int
    hi: int

    def __post_init__(self):
        if self.lo > self.hi:
            raise ValueError(f"lo ({self.lo}) must be <= hi ({self.hi})")

    @property
    def width(self) -> int:
        """Total number of representable values."""
        return self.hi - self.lo + 1

    def contains(self, value: int) -> bool:
        return self.lo <= value <= self.hi

    def all_values(self) -> range:
        return range(self.lo, self.hi + 1)

    def __str__(self) -> str:
        return f"[{self.lo}, {self.hi}]"


# ---------------------------------------------------------------------------
# Common bounds presets
# ---------------------------------------------------------------------------

# Non-negative half of a signed 32-bit machine integer.
BOUNDED_INT = Bounds(lo=0, hi=2**31 - 1)
DIGITS = Bounds(lo=0, hi=9)

# Small bounds useful for exhaustive verification
TINY = Bounds(lo=0, hi=15)

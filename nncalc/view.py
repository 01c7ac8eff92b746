"""View interface consumed by the controller.

The controller never renders anything itself.  After each event it
pushes six updates, always in the same order::

    top, bottom, subtract, divide, root, power

``RecordingView`` is the in-memory view used by the session store and
the tests.  It snapshots register values as ints at push time, so later
in-place mutation of the registers cannot leak into what it displays.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from nncalc.natural import NaturalNumber
from nncalc.spec import INITIAL_FLAGS, EnablementState


class View(Protocol):
    """What a controller needs from its view."""

    def update_top_display(self, value: NaturalNumber) -> None: ...

    def update_bottom_display(self, value: NaturalNumber) -> None: ...

    def update_subtract_allowed(self, allowed: bool) -> None: ...

    def update_divide_allowed(self, allowed: bool) -> None: ...

    def update_root_allowed(self, allowed: bool) -> None: ...

    def update_power_allowed(self, allowed: bool) -> None: ...


@dataclass
class RecordingView:
    """Keeps the last pushed state and an ordered trace of every update."""

    top: int = 0
    bottom: int = 0
    subtract_allowed: bool = INITIAL_FLAGS.subtract_allowed
    divide_allowed: bool = INITIAL_FLAGS.divide_allowed
    root_allowed: bool = INITIAL_FLAGS.root_allowed
    power_allowed: bool = INITIAL_FLAGS.power_allowed
    calls: list[tuple[str, Any]] = field(default_factory=list)

    def update_top_display(self, value: NaturalNumber) -> None:
        self.top = int(value)
        self.calls.append(("top", self.top))

    def update_bottom_display(self, value: NaturalNumber) -> None:
        self.bottom = int(value)
        self.calls.append(("bottom", self.bottom))

    def update_subtract_allowed(self, allowed: bool) -> None:
        self.subtract_allowed = allowed
        self.calls.append(("subtract", allowed))

    def update_divide_allowed(self, allowed: bool) -> None:
        self.divide_allowed = allowed
        self.calls.append(("divide", allowed))

    def update_root_allowed(self, allowed: bool) -> None:
        self.root_allowed = allowed
        self.calls.append(("root", allowed))

    def update_power_allowed(self, allowed: bool) -> None:
        self.power_allowed = allowed
        self.calls.append(("power", allowed))

    # -- helpers ------------------------------------------------------------

    @property
    def flags(self) -> EnablementState:
        return EnablementState(
            subtract_allowed=self.subtract_allowed,
            divide_allowed=self.divide_allowed,
            root_allowed=self.root_allowed,
            power_allowed=self.power_allowed,
        )

    def last_push(self) -> list[str]:
        """Names of the most recent six updates, oldest first."""
        return [name for name, _ in self.calls[-6:]]

    def reset_trace(self) -> None:
        self.calls.clear()

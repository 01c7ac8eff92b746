"""Calculator controller.

One handler per user event.  Each handler

  1. mutates the model's registers in place,
  2. derives the enablement flags for the new register pair,
  3. pushes both registers and all four flags to the view.

The controller trusts its caller: the view only raises events whose
flag is currently on, so handlers do not re-check the flags.  When an
event is forced anyway, the natural-number operation refuses before any
register changes and nothing is pushed to the view.
"""
from __future__ import annotations

import logging

from nncalc.config import CalcConfig
from nncalc.model import Model
from nncalc.natural import PreconditionViolation
from nncalc.spec import Event, EnablementState, INITIAL_FLAGS, enablement_after
from nncalc.view import View

logger = logging.getLogger(__name__)


class Controller:

    def __init__(
        self, model: Model, view: View, config: CalcConfig | None = None
    ) -> None:
        self.model = model
        self.view = view
        self.config = config or CalcConfig()
        self._push(INITIAL_FLAGS)

    # -- internal helpers ---------------------------------------------------

    def _push(self, flags: EnablementState) -> None:
        """Update the view to match the model, in the fixed order."""
        self.view.update_top_display(self.model.top)
        self.view.update_bottom_display(self.model.bottom)
        self.view.update_subtract_allowed(flags.subtract_allowed)
        self.view.update_divide_allowed(flags.divide_allowed)
        self.view.update_root_allowed(flags.root_allowed)
        self.view.update_power_allowed(flags.power_allowed)

    def _finish(self, event: Event) -> EnablementState:
        flags = enablement_after(event, self.model.top, self.model.bottom)
        self._push(flags)
        logger.debug(
            "%s -> top=%s bottom=%s %s",
            event.value, self.model.top, self.model.bottom, flags,
        )
        return flags

    # -- event handlers -----------------------------------------------------

    def process_clear_event(self) -> EnablementState:
        self.model.bottom.clear()
        return self._finish(Event.CLEAR)

    def process_swap_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        temp = top.new_instance()
        temp.transfer_from(top)
        top.transfer_from(bottom)
        bottom.transfer_from(temp)
        return self._finish(Event.SWAP)

    def process_enter_event(self) -> EnablementState:
        self.model.top.copy_from(self.model.bottom)
        return self._finish(Event.ENTER)

    def process_add_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        bottom.add(top)
        top.clear()
        return self._finish(Event.ADD)

    def process_subtract_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        top.subtract(bottom, clamp=True)
        bottom.transfer_from(top)
        return self._finish(Event.SUBTRACT)

    def process_multiply_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        bottom.multiply(top)
        top.clear()
        return self._finish(Event.MULTIPLY)

    def process_divide_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        # top keeps the remainder
        quotient = top.divide(bottom)
        bottom.transfer_from(quotient)
        return self._finish(Event.DIVIDE)

    def process_root_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        top.root(bottom.to_int(self.config.exponent_bounds))
        bottom.transfer_from(top)
        return self._finish(Event.ROOT)

    def process_power_event(self) -> EnablementState:
        top, bottom = self.model.top, self.model.bottom
        top.power(bottom.to_int(self.config.exponent_bounds))
        bottom.transfer_from(top)
        return self._finish(Event.POWER)

    def process_add_digit_event(self, digit: int) -> EnablementState:
        self.model.bottom.multiply_by_10(digit)
        return self._finish(Event.ADD_DIGIT)

    # -- routing ------------------------------------------------------------

    def dispatch(self, event: Event, digit: int | None = None) -> EnablementState:
        """Route ``event`` to its handler.

        Branches: DISPATCH-PLAIN, DISPATCH-DIGIT
        """
        if event == Event.ADD_DIGIT:                              # DISPATCH-DIGIT
            if digit is None:
                raise PreconditionViolation("add_digit requires a digit")
            return self.process_add_digit_event(digit)
        handler = getattr(self, f"process_{event.value}_event")  # DISPATCH-PLAIN
        return handler()

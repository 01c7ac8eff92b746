"""Executable contract for the two-register calculator.

The calculator keeps two natural-number registers, ``top`` and
``bottom``.  Every user event mutates them and is followed by a fresh
set of *enablement flags* telling the view which operations may be
raised next.

This module holds the parts that are pure:

- ``policy``: the enablement rules as a function of the register pair
- ``OVERRIDES``: per-event flags that are fixed rather than derived
- ``build_spec``: the machine-readable contract of every event
  (preconditions, postconditions, error conditions, multi-event
  properties and the decision branches white-box tests must cover)

Validation tools iterate over the contract to generate conformance
tests and search for counterexamples.

Layers
------
Event             the ten user events
EnablementState   the four flags pushed to the view
FlagOverride      fixed flags for one event
OperationSpec     per-event contract (pre/post/error)
SequenceProperty  relationships spanning several events
BranchSpec        every decision point that white-box tests must cover
CalculatorSpec    the full contract for a configured calculator
build_spec()      constructs a CalculatorSpec for a given configuration
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Union

from nncalc.bounds import BOUNDED_INT, DIGITS, Bounds
from nncalc.natural import NaturalNumber, PreconditionViolation, RangeViolation

Natural = Union[NaturalNumber, int]


# ---------------------------------------------------------------------------
# Events and flags
# ---------------------------------------------------------------------------

class Event(str, Enum):
    CLEAR = "clear"
    SWAP = "swap"
    ENTER = "enter"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    ROOT = "root"
    POWER = "power"
    ADD_DIGIT = "add_digit"


# Events gated by a flag; every other event is always allowed.
_GATES: dict[Event, str] = {
    Event.SUBTRACT: "subtract_allowed",
    Event.DIVIDE: "divide_allowed",
    Event.ROOT: "root_allowed",
    Event.POWER: "power_allowed",
}


@dataclass(frozen=True)
class EnablementState:
    """Which gated operations the view may currently raise."""

    subtract_allowed: bool
    divide_allowed: bool
    root_allowed: bool
    power_allowed: bool

    def allows(self, event: Event) -> bool:
        gate = _GATES.get(event)
        return True if gate is None else getattr(self, gate)


def policy(top: Natural, bottom: Natural) -> EnablementState:
    """Derive the enablement flags from a register pair.

    Pure: works on ``NaturalNumber`` or plain ``int`` values and never
    mutates its arguments.

    ================  ===============
    flag              condition
    ================  ===============
    subtract_allowed  top >= bottom
    divide_allowed    bottom != 0
    root_allowed      bottom >= 2
    power_allowed     always
    ================  ===============
    """
    return EnablementState(
        subtract_allowed=bool(top >= bottom),
        divide_allowed=bool(bottom != 0),
        root_allowed=bool(bottom >= 2),
        power_allowed=True,
    )


@dataclass(frozen=True)
class FlagOverride:
    """Flag values fixed by an event.  ``None`` defers to ``policy``."""

    subtract: bool | None = None
    divide: bool | None = None
    root: bool | None = None
    power: bool | None = True

    def apply(self, derived: EnablementState) -> EnablementState:
        """Merge the fixed flags over the derived ones.

        Branches: FLAG-FIXED, FLAG-DERIVED
        """
        def pick(fixed: bool | None, value: bool) -> bool:
            if fixed is None:                                     # FLAG-DERIVED
                return value
            return fixed                                          # FLAG-FIXED

        return EnablementState(
            subtract_allowed=pick(self.subtract, derived.subtract_allowed),
            divide_allowed=pick(self.divide, derived.divide_allowed),
            root_allowed=pick(self.root, derived.root_allowed),
            power_allowed=pick(self.power, derived.power_allowed),
        )


CLEARED = FlagOverride(subtract=True, divide=False, root=False, power=True)

# After a binary operation the result sits in bottom with top drained;
# subtract stays off even when bottom is also 0.
_COLLAPSED = FlagOverride(subtract=False)

OVERRIDES: dict[Event, FlagOverride] = {
    Event.CLEAR: CLEARED,
    Event.SWAP: FlagOverride(),
    Event.ENTER: FlagOverride(subtract=True),
    Event.ADD: _COLLAPSED,
    Event.SUBTRACT: _COLLAPSED,
    Event.MULTIPLY: _COLLAPSED,
    Event.DIVIDE: _COLLAPSED,
    Event.ROOT: _COLLAPSED,
    Event.POWER: _COLLAPSED,
    Event.ADD_DIGIT: FlagOverride(),
}

# Flags pushed when a controller is first connected.
INITIAL_FLAGS = CLEARED.apply(policy(0, 0))


def enablement_after(event: Event, top: Natural, bottom: Natural) -> EnablementState:
    """Flags to push once ``event`` has finished mutating the registers."""
    return OVERRIDES[event].apply(policy(top, bottom))


# ---------------------------------------------------------------------------
# Contract building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transition:
    """One handled event, observed as plain integers."""

    top: int
    bottom: int
    new_top: int
    new_bottom: int
    flags: EnablementState
    digit: int | None = None


@dataclass(frozen=True)
class Precondition:
    name: str
    description: str
    check: Callable[[int, int, int | None], bool]


@dataclass(frozen=True)
class Postcondition:
    name: str
    description: str
    check: Callable[[Transition], bool]


@dataclass(frozen=True)
class ErrorCondition:
    name: str
    description: str
    trigger: Callable[[int, int, int | None], bool]
    exception: type


@dataclass(frozen=True)
class Invariant:
    """Holds for the register pair at every observation point."""

    name: str
    description: str
    check: Callable[[int, int], bool]


@dataclass(frozen=True)
class SequenceProperty:
    """Relationship between the state before and after several events."""

    name: str
    description: str
    events: tuple[Event, ...]
    check: Callable[[tuple[int, int], tuple[int, int], EnablementState], bool]


@dataclass(frozen=True)
class OperationSpec:
    event: Event
    preconditions: list[Precondition]
    postconditions: list[Postcondition]
    error_conditions: list[ErrorCondition] = field(default_factory=list)

    def permits(self, top: int, bottom: int, digit: int | None = None) -> bool:
        return all(p.check(top, bottom, digit) for p in self.preconditions)

    def expected_error(
        self, top: int, bottom: int, digit: int | None = None
    ) -> ErrorCondition | None:
        for err in self.error_conditions:
            if err.trigger(top, bottom, digit):
                return err
        return None


@dataclass(frozen=True)
class BranchSpec:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which operation / helper this belongs to


@dataclass(frozen=True)
class CalculatorSpec:
    """Complete contract for a configured calculator."""

    exponent_bounds: Bounds
    operations: dict[Event, OperationSpec]
    invariants: list[Invariant]
    properties: list[SequenceProperty]
    branches: list[BranchSpec]

    @property
    def all_postconditions(self) -> list[tuple[Event, Postcondition]]:
        out: list[tuple[Event, Postcondition]] = []
        for event, op in self.operations.items():
            for post in op.postconditions:
                out.append((event, post))
        return out

    @property
    def branch_ids(self) -> set[str]:
        return {b.id for b in self.branches}


# ---------------------------------------------------------------------------
# Helpers used inside the contract predicates
# ---------------------------------------------------------------------------

def iroot_bracket(value: int, root: int, degree: int) -> bool:
    """True iff ``root`` is the floor of the ``degree``-th root of ``value``."""
    return root ** degree <= value < (root + 1) ** degree


def _flags(subtract: bool, new_bottom: int) -> EnablementState:
    return EnablementState(
        subtract_allowed=subtract,
        divide_allowed=new_bottom != 0,
        root_allowed=new_bottom >= 2,
        power_allowed=True,
    )


def _collapsed_flags(t: Transition) -> bool:
    return t.flags == _flags(False, t.new_bottom)


def _collapsed(event: Event, name: str, description: str,
               result: Callable[[Transition], bool],
               preconditions: list[Precondition] | None = None,
               error_conditions: list[ErrorCondition] | None = None,
               ) -> OperationSpec:
    """Contract shared by events that fold both registers into bottom."""
    return OperationSpec(
        event=event,
        preconditions=preconditions or [],
        postconditions=[
            Postcondition(name, description, result),
            Postcondition(
                "top_drained", "Top is 0 afterwards",
                lambda t: t.new_top == 0,
            ),
            Postcondition(
                "flags", "Subtract fixed off; divide/root from bottom; power on",
                _collapsed_flags,
            ),
        ],
        error_conditions=error_conditions or [],
    )


# ---------------------------------------------------------------------------
# Spec builder
# ---------------------------------------------------------------------------

def build_spec(exponent_bounds: Bounds = BOUNDED_INT) -> CalculatorSpec:
    """Construct the full calculator contract for a configuration."""

    exponent_fits = Precondition(
        "exponent_fits",
        f"Bottom converts to a bounded integer in {exponent_bounds}",
        lambda t, b, d: exponent_bounds.contains(b),
    )
    exponent_out_of_range = ErrorCondition(
        "exponent_out_of_range",
        "RangeViolation when bottom does not fit the exponent bounds",
        lambda t, b, d: not exponent_bounds.contains(b),
        RangeViolation,
    )

    operations = {
        # ------------------------------------------------------------ clear
        Event.CLEAR: OperationSpec(
            event=Event.CLEAR,
            preconditions=[],
            postconditions=[
                Postcondition(
                    "bottom_cleared", "Bottom is 0",
                    lambda t: t.new_bottom == 0,
                ),
                Postcondition(
                    "top_untouched", "Top keeps its value",
                    lambda t: t.new_top == t.top,
                ),
                Postcondition(
                    "flags", "Subtract and power on; divide and root off",
                    lambda t: t.flags == EnablementState(True, False, False, True),
                ),
            ],
        ),
        # ------------------------------------------------------------- swap
        Event.SWAP: OperationSpec(
            event=Event.SWAP,
            preconditions=[],
            postconditions=[
                Postcondition(
                    "exchanged", "Registers exchange values",
                    lambda t: (t.new_top, t.new_bottom) == (t.bottom, t.top),
                ),
                Postcondition(
                    "flags", "All flags derived from the new pair",
                    lambda t: t.flags == _flags(t.new_top >= t.new_bottom, t.new_bottom),
                ),
            ],
        ),
        # ------------------------------------------------------------ enter
        Event.ENTER: OperationSpec(
            event=Event.ENTER,
            preconditions=[],
            postconditions=[
                Postcondition(
                    "top_copies_bottom", "Top holds a copy of bottom",
                    lambda t: t.new_top == t.bottom,
                ),
                Postcondition(
                    "bottom_untouched", "Bottom keeps its value",
                    lambda t: t.new_bottom == t.bottom,
                ),
                Postcondition(
                    "flags", "Subtract fixed on; divide/root from bottom; power on",
                    lambda t: t.flags == _flags(True, t.new_bottom),
                ),
            ],
        ),
        # -------------------------------------------------------------- add
        Event.ADD: _collapsed(
            Event.ADD, "sum_in_bottom", "Bottom holds top + bottom",
            lambda t: t.new_bottom == t.top + t.bottom,
        ),
        # --------------------------------------------------------- subtract
        Event.SUBTRACT: _collapsed(
            Event.SUBTRACT, "difference_in_bottom",
            "Bottom holds top - bottom, floored at 0",
            lambda t: t.new_bottom == max(t.top - t.bottom, 0),
            preconditions=[
                Precondition(
                    "no_underflow", "Top is at least bottom",
                    lambda t, b, d: t >= b,
                ),
            ],
        ),
        # --------------------------------------------------------- multiply
        Event.MULTIPLY: _collapsed(
            Event.MULTIPLY, "product_in_bottom", "Bottom holds top * bottom",
            lambda t: t.new_bottom == t.top * t.bottom,
        ),
        # ----------------------------------------------------------- divide
        Event.DIVIDE: OperationSpec(
            event=Event.DIVIDE,
            preconditions=[
                Precondition(
                    "nonzero_divisor", "Bottom is not 0",
                    lambda t, b, d: b != 0,
                ),
            ],
            postconditions=[
                Postcondition(
                    "quotient_in_bottom", "Bottom holds top // bottom",
                    lambda t: t.new_bottom == t.top // t.bottom,
                ),
                Postcondition(
                    "remainder_in_top", "Top holds top % bottom",
                    lambda t: t.new_top == t.top % t.bottom,
                ),
                Postcondition(
                    "recombination", "old top == new bottom * old bottom + new top",
                    lambda t: t.top == t.new_bottom * t.bottom + t.new_top,
                ),
                Postcondition(
                    "flags", "Subtract fixed off; divide/root from bottom; power on",
                    _collapsed_flags,
                ),
            ],
            error_conditions=[
                ErrorCondition(
                    "division_by_zero",
                    "PreconditionViolation when bottom is 0",
                    lambda t, b, d: b == 0,
                    PreconditionViolation,
                ),
            ],
        ),
        # ------------------------------------------------------------- root
        Event.ROOT: _collapsed(
            Event.ROOT, "root_in_bottom",
            "Bottom holds the floor of the bottom-th root of top",
            lambda t: iroot_bracket(t.top, t.new_bottom, t.bottom),
            preconditions=[
                Precondition(
                    "degree_at_least_two", "Bottom is at least 2",
                    lambda t, b, d: b >= 2,
                ),
                exponent_fits,
            ],
            error_conditions=[
                exponent_out_of_range,
                ErrorCondition(
                    "degree_below_two",
                    "PreconditionViolation when bottom is below 2",
                    lambda t, b, d: b < 2 and exponent_bounds.contains(b),
                    PreconditionViolation,
                ),
            ],
        ),
        # ------------------------------------------------------------ power
        Event.POWER: _collapsed(
            Event.POWER, "power_in_bottom", "Bottom holds top ** bottom",
            lambda t: t.new_bottom == t.top ** t.bottom,
            preconditions=[exponent_fits],
            error_conditions=[exponent_out_of_range],
        ),
        # -------------------------------------------------------- add digit
        Event.ADD_DIGIT: OperationSpec(
            event=Event.ADD_DIGIT,
            preconditions=[
                Precondition(
                    "is_digit", f"Digit lies in {DIGITS}",
                    lambda t, b, d: d is not None and DIGITS.contains(d),
                ),
            ],
            postconditions=[
                Postcondition(
                    "digit_appended", "Bottom holds bottom * 10 + digit",
                    lambda t: t.new_bottom == t.bottom * 10 + t.digit,
                ),
                Postcondition(
                    "top_untouched", "Top keeps its value",
                    lambda t: t.new_top == t.top,
                ),
                Postcondition(
                    "flags", "All flags derived from the new pair",
                    lambda t: t.flags == _flags(t.new_top >= t.new_bottom, t.new_bottom),
                ),
            ],
            error_conditions=[
                ErrorCondition(
                    "not_a_digit",
                    "PreconditionViolation when the digit is missing or outside [0, 9]",
                    lambda t, b, d: d is None or not DIGITS.contains(d),
                    PreconditionViolation,
                ),
            ],
        ),
    }

    invariants = [
        Invariant(
            "non_negative", "Both registers are >= 0",
            lambda top, bottom: top >= 0 and bottom >= 0,
        ),
        Invariant(
            "divide_flag", "divide_allowed iff bottom != 0",
            lambda top, bottom: policy(top, bottom).divide_allowed == (bottom != 0),
        ),
        Invariant(
            "root_flag", "root_allowed iff bottom >= 2",
            lambda top, bottom: policy(top, bottom).root_allowed == (bottom >= 2),
        ),
        Invariant(
            "deterministic", "policy gives identical flags on repeated calls",
            lambda top, bottom: policy(top, bottom) == policy(top, bottom),
        ),
    ]

    properties = [
        SequenceProperty(
            "clear_idempotent", "Clear twice equals clear once",
            (Event.CLEAR, Event.CLEAR),
            lambda start, end, flags: (
                end == (start[0], 0) and flags == INITIAL_FLAGS
            ),
        ),
        SequenceProperty(
            "swap_involution", "Swap twice restores the registers",
            (Event.SWAP, Event.SWAP),
            lambda start, end, flags: end == start,
        ),
        SequenceProperty(
            "enter_subtract_zero", "Enter then subtract leaves both registers 0",
            (Event.ENTER, Event.SUBTRACT),
            lambda start, end, flags: end == (0, 0),
        ),
        SequenceProperty(
            "enter_add_doubles", "Enter then add doubles bottom",
            (Event.ENTER, Event.ADD),
            lambda start, end, flags: end == (0, 2 * start[1]),
        ),
    ]

    branches = [
        # Subtraction (NaturalNumber.subtract)
        BranchSpec("SUB-NORMAL", "No underflow", "self >= other", "subtract"),
        BranchSpec(
            "SUB-UNDERFLOW-CLAMP", "Underflow floored at 0",
            "self < other and clamp", "subtract",
        ),
        BranchSpec(
            "SUB-UNDERFLOW-ERROR", "PreconditionViolation on underflow",
            "self < other and not clamp", "subtract",
        ),
        # Division (NaturalNumber.divide)
        BranchSpec("DIV-NORMAL", "Quotient returned, remainder kept", "other != 0", "divide"),
        BranchSpec("DIV-ZERO-ERROR", "PreconditionViolation on zero divisor", "other == 0", "divide"),
        # Power (NaturalNumber.power)
        BranchSpec("POW-NORMAL", "Value raised to k", "k >= 0", "power"),
        BranchSpec("POW-NEGATIVE-ERROR", "PreconditionViolation on negative k", "k < 0", "power"),
        # Root (NaturalNumber.root / _iroot)
        BranchSpec("ROOT-DEGREE-ERROR", "PreconditionViolation on degree < 2", "k < 2", "root"),
        BranchSpec("ROOT-SMALL", "0 and 1 are their own roots", "value < 2", "root"),
        BranchSpec(
            "ROOT-WIDE-DEGREE", "Degree at least the bit length gives 1",
            "k >= value.bit_length()", "root",
        ),
        BranchSpec("ROOT-NORMAL", "Newton iteration", "2 <= k < value.bit_length()", "root"),
        # Digit append (NaturalNumber.multiply_by_10)
        BranchSpec("DIGIT-VALID", "Digit appended", "0 <= digit <= 9", "multiply_by_10"),
        BranchSpec("DIGIT-INVALID", "PreconditionViolation on non-digit", "digit outside [0, 9]", "multiply_by_10"),
        # Bounded conversion (NaturalNumber.to_int)
        BranchSpec("CONV-IN-RANGE", "Value returned as int", "bounds.contains(value)", "to_int"),
        BranchSpec("CONV-OUT-OF-RANGE", "RangeViolation raised", "not bounds.contains(value)", "to_int"),
        # Enablement (FlagOverride.apply)
        BranchSpec("FLAG-FIXED", "Flag fixed by the event", "override is not None", "enablement"),
        BranchSpec("FLAG-DERIVED", "Flag taken from policy", "override is None", "enablement"),
        # Event routing (Controller.dispatch)
        BranchSpec("DISPATCH-PLAIN", "Event without argument routed", "event != ADD_DIGIT", "dispatch"),
        BranchSpec("DISPATCH-DIGIT", "Digit event routed with its digit", "event == ADD_DIGIT", "dispatch"),
    ]

    return CalculatorSpec(
        exponent_bounds=exponent_bounds,
        operations=operations,
        invariants=invariants,
        properties=properties,
        branches=branches,
    )

"""Counterexample search — discovers gaps in the controller or its contract.

This module runs independently of the test suite.  It walks every
register pair in a small domain, drives a fresh controller through each
event and searches for:

1. Postcondition violations: transitions whose registers or flags do not
   match the contract in ``spec.build_spec``.
2. Error condition violations: forced events that should be refused but
   aren't (or are refused with the wrong exception, or mutate the
   registers on the way out).
3. View violations: pushes that are out of order or disagree with the
   model.
4. Sequence property and invariant violations.

Run directly::

    python -m nncalc.counterexample_search [limit]
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field

from nncalc.bounds import DIGITS, TINY, Bounds
from nncalc.config import CalcConfig
from nncalc.controller import Controller
from nncalc.model import Model
from nncalc.spec import CalculatorSpec, Event, Transition, build_spec
from nncalc.view import RecordingView

PUSH_ORDER = ["top", "bottom", "subtract", "divide", "root", "power"]

# Valid digits plus one just outside on each side.
DIGIT_PROBES = (DIGITS.lo - 1, *DIGITS.all_values(), DIGITS.hi + 1)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Counterexample:
    category: str
    operation: str
    inputs: tuple
    expected: str
    actual: str
    description: str


@dataclass
class SearchReport:
    counterexamples: list[Counterexample] = field(default_factory=list)
    checks_run: int = 0

    @property
    def passed(self) -> bool:
        return len(self.counterexamples) == 0

    def summary(self) -> str:
        lines = [
            "Counterexample Search Report",
            "=" * 40,
            f"Total checks: {self.checks_run}",
            f"Counterexamples found: {len(self.counterexamples)}",
        ]
        if self.counterexamples:
            lines.append("")
            for i, cx in enumerate(self.counterexamples, 1):
                lines.append(f"  [{i}] {cx.category} / {cx.operation}")
                lines.append(f"      Inputs:   {cx.inputs}")
                lines.append(f"      Expected: {cx.expected}")
                lines.append(f"      Actual:   {cx.actual}")
                lines.append(f"      {cx.description}")
        else:
            lines.append("\nNo counterexamples found — all checks passed.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _connect(top: int, bottom: int, config: CalcConfig) -> tuple[Model, RecordingView, Controller]:
    """A controller whose registers start at (top, bottom), trace emptied."""
    model = Model()
    view = RecordingView()
    controller = Controller(model, view, config)
    model.load(top, bottom)
    view.reset_trace()
    return model, view, controller


def _inputs(event: Event, domain: Bounds):
    digits = DIGIT_PROBES if event == Event.ADD_DIGIT else (None,)
    for top in domain.all_values():
        for bottom in domain.all_values():
            for digit in digits:
                yield top, bottom, digit


def _view_problems(model: Model, view: RecordingView) -> list[str]:
    problems = []
    if [name for name, _ in view.calls] != PUSH_ORDER:
        problems.append(f"push order {[name for name, _ in view.calls]}")
    if (view.top, view.bottom) != model.snapshot():
        problems.append(f"view shows {(view.top, view.bottom)}, model holds {model.snapshot()}")
    return problems


# ---------------------------------------------------------------------------
# Search functions
# ---------------------------------------------------------------------------

def search_postcondition_violations(
    spec: CalculatorSpec,
    domain: Bounds,
    config: CalcConfig,
) -> tuple[list[Counterexample], int]:
    """Exhaustively verify postconditions for every event and input."""
    cxs: list[Counterexample] = []
    checks = 0

    for event, op_spec in spec.operations.items():
        for top, bottom, digit in _inputs(event, domain):
            # Inputs that are supposed to error are covered separately
            if op_spec.expected_error(top, bottom, digit) is not None:
                continue

            checks += 1
            model, view, controller = _connect(top, bottom, config)
            try:
                flags = controller.dispatch(event, digit)
            except Exception as e:
                cxs.append(Counterexample(
                    category="unexpected_error",
                    operation=event.value,
                    inputs=(top, bottom, digit),
                    expected="no error",
                    actual=f"{type(e).__name__}: {e}",
                    description="Event raised an unexpected exception",
                ))
                continue

            new_top, new_bottom = model.snapshot()
            transition = Transition(top, bottom, new_top, new_bottom, flags, digit)
            for post in op_spec.postconditions:
                if not post.check(transition):
                    cxs.append(Counterexample(
                        category="postcondition_violation",
                        operation=event.value,
                        inputs=(top, bottom, digit),
                        expected=post.description,
                        actual=f"registers={(new_top, new_bottom)} flags={flags}",
                        description=f"Postcondition '{post.name}' violated",
                    ))
            for inv in spec.invariants:
                if not inv.check(new_top, new_bottom):
                    cxs.append(Counterexample(
                        category="invariant_violation",
                        operation=event.value,
                        inputs=(top, bottom, digit),
                        expected=inv.description,
                        actual=f"registers={(new_top, new_bottom)}",
                        description=f"Invariant '{inv.name}' violated",
                    ))
            for problem in _view_problems(model, view):
                cxs.append(Counterexample(
                    category="view_violation",
                    operation=event.value,
                    inputs=(top, bottom, digit),
                    expected=f"one push in order {PUSH_ORDER} matching the model",
                    actual=problem,
                    description="View out of step with the model",
                ))

    return cxs, checks


def search_error_condition_violations(
    spec: CalculatorSpec,
    domain: Bounds,
    config: CalcConfig,
) -> tuple[list[Counterexample], int]:
    """Verify forced events raise the declared exception and change nothing."""
    cxs: list[Counterexample] = []
    checks = 0

    for event, op_spec in spec.operations.items():
        for top, bottom, digit in _inputs(event, domain):
            ec = op_spec.expected_error(top, bottom, digit)
            if ec is None:
                continue

            checks += 1
            model, view, controller = _connect(top, bottom, config)
            try:
                controller.dispatch(event, digit)
                cxs.append(Counterexample(
                    category="missing_error",
                    operation=event.value,
                    inputs=(top, bottom, digit),
                    expected=ec.exception.__name__,
                    actual=f"registers={model.snapshot()}",
                    description=(
                        f"Error condition '{ec.name}' should have "
                        f"triggered but didn't"
                    ),
                ))
                continue
            except ec.exception:
                pass  # expected
            except Exception as e:
                cxs.append(Counterexample(
                    category="wrong_error",
                    operation=event.value,
                    inputs=(top, bottom, digit),
                    expected=ec.exception.__name__,
                    actual=f"{type(e).__name__}: {e}",
                    description=f"Wrong exception type for '{ec.name}'",
                ))
                continue

            if model.snapshot() != (top, bottom) or view.calls:
                cxs.append(Counterexample(
                    category="partial_mutation",
                    operation=event.value,
                    inputs=(top, bottom, digit),
                    expected="registers and view untouched",
                    actual=f"registers={model.snapshot()} pushes={len(view.calls)}",
                    description=f"'{ec.name}' left the calculator modified",
                ))

    return cxs, checks


def search_property_violations(
    spec: CalculatorSpec,
    domain: Bounds,
    config: CalcConfig,
) -> tuple[list[Counterexample], int]:
    """Exhaustively check sequence properties and pre-state invariants."""
    cxs: list[Counterexample] = []
    checks = 0

    for top in domain.all_values():
        for bottom in domain.all_values():
            for inv in spec.invariants:
                checks += 1
                if not inv.check(top, bottom):
                    cxs.append(Counterexample(
                        category="invariant_violation",
                        operation="policy",
                        inputs=(top, bottom),
                        expected=inv.description,
                        actual="invariant does not hold",
                        description=f"Invariant '{inv.name}' violated",
                    ))

            for prop in spec.properties:
                model, view, controller = _connect(top, bottom, config)
                flags = view.flags
                skipped = False
                for event in prop.events:
                    if not spec.operations[event].permits(*model.snapshot()):
                        skipped = True
                        break
                    flags = controller.dispatch(event)
                if skipped:
                    continue
                checks += 1
                if not prop.check((top, bottom), model.snapshot(), flags):
                    cxs.append(Counterexample(
                        category="property_violation",
                        operation="/".join(e.value for e in prop.events),
                        inputs=(top, bottom),
                        expected=prop.description,
                        actual=f"registers={model.snapshot()} flags={flags}",
                        description=f"Property '{prop.name}' violated",
                    ))

    return cxs, checks


# ---------------------------------------------------------------------------
# Top-level runner
# ---------------------------------------------------------------------------

def run_search(domain: Bounds = TINY, config: CalcConfig | None = None) -> SearchReport:
    """Run complete counterexample search for one configuration."""
    config = config or CalcConfig()
    spec = build_spec(config.exponent_bounds)
    report = SearchReport()

    for search_fn in (
        search_postcondition_violations,
        search_error_condition_violations,
        search_property_violations,
    ):
        cxs, checks = search_fn(spec, domain, config)
        report.counterexamples.extend(cxs)
        report.checks_run += checks

    return report


def main(argv: list[str] | None = None) -> None:
    """Run counterexample search across several configurations."""
    argv = sys.argv[1:] if argv is None else argv
    limit = int(argv[0]) if argv else TINY.hi + 1
    domain = Bounds(0, limit - 1)

    configs = [
        ("exponents [0, 2**31 - 1]", CalcConfig()),
        ("exponents [0, 4]", CalcConfig(exponent_bounds=Bounds(0, 4))),
        ("exponents [3, 6]", CalcConfig(exponent_bounds=Bounds(3, 6))),
    ]

    all_passed = True
    for name, config in configs:
        print(f"\n--- Configuration: {name}, registers {domain} ---")
        report = run_search(domain, config)
        print(report.summary())
        if not report.passed:
            all_passed = False

    print("\n" + "=" * 40)
    if all_passed:
        print("ALL CONFIGURATIONS PASSED")
    else:
        print("SOME CONFIGURATIONS HAD COUNTEREXAMPLES")
        sys.exit(1)


if __name__ == "__main__":
    main()

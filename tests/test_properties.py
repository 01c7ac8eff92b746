"""Property-based tests using Hypothesis.

These tests verify properties that must hold for *all* register pairs,
including values far beyond any machine integer.  They complement the
white-box tests by exploring the input space broadly rather than
targeting specific branches.
"""
from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis.strategies import integers, lists, sampled_from

from nncalc.controller import Controller
from nncalc.model import Model
from nncalc.natural import NaturalNumber
from nncalc.spec import Event, policy
from nncalc.view import RecordingView

# ---------------------------------------------------------------------------
# Shared configuration
# ---------------------------------------------------------------------------

naturals = integers(min_value=0, max_value=10**60)
small = integers(min_value=0, max_value=40)
digits = integers(min_value=0, max_value=9)


def connect(top: int, bottom: int):
    model = Model()
    view = RecordingView()
    controller = Controller(model, view)
    model.load(top, bottom)
    return model, view, controller


# ===================================================================
# POLICY
# ===================================================================

class TestPolicyProperties:

    @given(a=naturals, b=naturals)
    def test_determinism(self, a, b):
        assert policy(a, b) == policy(a, b)

    @given(a=naturals, b=naturals)
    def test_divide_iff_nonzero(self, a, b):
        assert policy(a, b).divide_allowed == (b != 0)

    @given(a=naturals, b=naturals)
    def test_root_iff_at_least_two(self, a, b):
        assert policy(a, b).root_allowed == (b >= 2)

    @given(a=naturals, b=naturals)
    def test_power_always(self, a, b):
        assert policy(a, b).power_allowed


# ===================================================================
# HANDLERS
# ===================================================================

class TestHandlerProperties:

    @given(a=naturals, b=naturals)
    def test_add_drains_top(self, a, b):
        model, view, controller = connect(a, b)
        controller.process_add_event()
        assert model.snapshot() == (0, a + b)

    @given(a=naturals, b=naturals)
    def test_divide_recombination(self, a, b):
        assume(b != 0)
        model, view, controller = connect(a, b)
        controller.process_divide_event()
        new_top, new_bottom = model.snapshot()
        assert a == new_bottom * b + new_top
        assert new_top < b

    @given(a=naturals, b=naturals)
    def test_swap_involution(self, a, b):
        model, view, controller = connect(a, b)
        controller.process_swap_event()
        controller.process_swap_event()
        assert model.snapshot() == (a, b)

    @given(a=naturals, b=naturals)
    def test_clear_idempotence(self, a, b):
        model, view, controller = connect(a, b)
        once = controller.process_clear_event()
        state = model.snapshot()
        twice = controller.process_clear_event()
        assert once == twice
        assert model.snapshot() == state == (a, 0)

    @given(a=naturals, b=naturals)
    def test_subtract_matches_policy_guard(self, a, b):
        assume(a >= b)
        model, view, controller = connect(a, b)
        controller.process_subtract_event()
        assert model.snapshot() == (0, a - b)

    @given(a=naturals, b=integers(min_value=2, max_value=64))
    def test_root_brackets(self, a, b):
        model, view, controller = connect(a, b)
        controller.process_root_event()
        r = model.bottom
        assert int(r) ** b <= a < (int(r) + 1) ** b

    @given(a=small, b=small)
    def test_power_then_root_returns_base(self, a, b):
        assume(b >= 2)
        model, view, controller = connect(a, b)
        controller.process_power_event()
        controller.process_enter_event()
        # top and bottom both hold a ** b; restore the degree
        model.bottom.copy_from(NaturalNumber(b))
        controller.process_root_event()
        assert model.bottom == a

    @given(b=naturals, ds=lists(digits, max_size=30))
    def test_digits_append_in_decimal(self, b, ds):
        model, view, controller = connect(0, b)
        for d in ds:
            controller.process_add_digit_event(d)
        expected = int(str(b) + "".join(map(str, ds)))
        assert model.bottom == expected


# ===================================================================
# RANDOM EVENT SEQUENCES
# ===================================================================

gated_or_not = sampled_from([
    Event.CLEAR, Event.SWAP, Event.ENTER, Event.ADD, Event.SUBTRACT,
    Event.MULTIPLY, Event.DIVIDE, Event.ROOT, Event.ADD_DIGIT,
])


class TestSequences:

    @given(
        start=lists(digits, min_size=1, max_size=6),
        events=lists(gated_or_not, max_size=25),
        digit=digits,
    )
    @settings(max_examples=300, deadline=None)
    def test_allowed_sequences_keep_invariants(self, start, events, digit):
        """Only raising allowed events never breaks the invariants."""
        model, view, controller = connect(0, 0)
        for d in start:
            controller.process_add_digit_event(d)
        for event in events:
            if not view.flags.allows(event):
                continue
            if event == Event.ROOT and not model.bottom.can_convert_to_int():
                continue
            controller.dispatch(event, digit if event == Event.ADD_DIGIT else None)
            top, bottom = model.snapshot()
            assert top >= 0 and bottom >= 0
            assert (view.top, view.bottom) == (top, bottom)
            assert view.flags.divide_allowed == (bottom != 0)
            assert view.flags.root_allowed == (bottom >= 2)
            assert view.flags.power_allowed

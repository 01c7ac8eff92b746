"""Tests for the bounds layer."""

from __future__ import annotations

import pytest

from nncalc.bounds import BOUNDED_INT, DIGITS, TINY, Bounds


class TestBoundsConstruction:

    def test_valid(self):
        b = Bounds(lo=0, hi=10)
        assert b.lo == 0
        assert b.hi == 10

    def test_single_value(self):
        b = Bounds(lo=5, hi=5)
        assert b.width == 1

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            Bounds(lo=10, hi=0)

    def test_frozen(self):
        b = Bounds(0, 1)
        with pytest.raises(AttributeError):
            b.lo = 5


class TestBoundsQueries:

    def test_contains_edges(self):
        assert DIGITS.contains(0)
        assert DIGITS.contains(9)
        assert not DIGITS.contains(-1)
        assert not DIGITS.contains(10)

    def test_all_values(self):
        assert list(DIGITS.all_values()) == list(range(10))
        assert len(TINY.all_values()) == TINY.width == 16

    def test_str(self):
        assert str(DIGITS) == "[0, 9]"


class TestPresets:

    def test_bounded_int_is_signed_32_bit_max(self):
        assert BOUNDED_INT.lo == 0
        assert BOUNDED_INT.hi == 2_147_483_647
        assert not BOUNDED_INT.contains(2**31)

    def test_digits(self):
        assert DIGITS.width == 10

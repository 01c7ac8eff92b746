"""Arbitrary-precision natural numbers.

``NaturalNumber`` is a mutable, non-negative integer of unbounded
magnitude.  The calculator's registers are instances of it, and the
controller works on them in place: values are cleared, copied and
*transferred* (moved, leaving the source at zero) rather than rebound.

Python's ``int`` already provides the unbounded magnitude, so this class
is only the mutable shell around it plus the contract each operation
must honour.  Every failing operation raises *before* mutating, so a
refused call leaves the instance exactly as it was.

Decision branches are annotated with their branch-IDs (see ``nncalc.spec``
``build_spec``) so white-box tests can trace coverage back to the
contract.
"""
from __future__ import annotations

from functools import lru_cache, total_ordering

from nncalc.bounds import BOUNDED_INT, DIGITS, Bounds


class PreconditionViolation(ValueError):
    """An operation was invoked with arguments outside its contract."""


class RangeViolation(OverflowError):
    """A value does not fit the requested bounded-integer range."""

    def __init__(self, value: int, bounds: Bounds) -> None:
        self.value = value
        self.bounds = bounds
        super().__init__(f"{to_decimal(value)} is outside bounds {bounds}")


# Decimal text past this many digits is split in halves before ``str`` or
# ``int`` sees it, keeping every piece under the interpreter's
# integer/string conversion limit.
_CHUNK_DIGITS = 1000
_CHUNK_LIMIT = 10 ** _CHUNK_DIGITS


@lru_cache(maxsize=64)
def _pow10(k: int) -> int:
    return 10 ** k


def to_decimal(n: int) -> str:
    """Decimal digits of ``n >= 0``, of any length."""
    if n < _CHUNK_LIMIT:
        return str(n)
    # floor(bits * log10(2)) never exceeds the digit count, so hi > 0
    k = (n.bit_length() * 30102 // 100000) // 2
    hi, lo = divmod(n, _pow10(k))
    return to_decimal(hi) + to_decimal(lo).zfill(k)


def from_decimal(text: str) -> int:
    """Parse a string of ASCII decimal digits, of any length."""
    if len(text) <= _CHUNK_DIGITS:
        return int(text)
    k = len(text) // 2
    return from_decimal(text[:-k]) * _pow10(k) + from_decimal(text[-k:])


def _iroot(n: int, k: int) -> int:
    """Floor of the k-th root of n, for n >= 0 and k >= 2."""
    if n < 2:                                                     # ROOT-SMALL
        return n
    bits = n.bit_length()
    if k >= bits:                                                 # ROOT-WIDE-DEGREE
        # 2**k > n, so the root lies in [1, 2)
        return 1
    # ROOT-NORMAL: Newton iteration from an upper bound decreases
    # monotonically onto the floor root.
    x = 1 << -(-bits // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


@total_ordering
class NaturalNumber:
    """A mutable natural number (non-negative integer) of any size."""

    __slots__ = ("_value",)

    def __init__(self, value: int | str | NaturalNumber = 0) -> None:
        if isinstance(value, NaturalNumber):
            value = value._value
        elif isinstance(value, str):
            if not (value.isascii() and value.isdigit()):
                raise PreconditionViolation(
                    f"{value!r} is not a decimal natural number"
                )
            value = from_decimal(value)
        if value < 0:
            raise PreconditionViolation("negative values are not natural numbers")
        self._value = int(value)

    # -- lifecycle ----------------------------------------------------------

    def new_instance(self) -> NaturalNumber:
        return NaturalNumber()

    def clear(self) -> None:
        self._value = 0

    def copy_from(self, other: NaturalNumber) -> None:
        self._value = other._value

    def transfer_from(self, other: NaturalNumber) -> None:
        """Move ``other``'s value into this instance and clear ``other``."""
        value = other._value
        other._value = 0
        self._value = value

    # -- queries ------------------------------------------------------------

    def compare_to(self, other: NaturalNumber) -> int:
        if self._value < other._value:
            return -1
        return 1 if self._value > other._value else 0

    def is_zero(self) -> bool:
        return self._value == 0

    def can_convert_to_int(self, bounds: Bounds = BOUNDED_INT) -> bool:
        return bounds.contains(self._value)

    def to_int(self, bounds: Bounds = BOUNDED_INT) -> int:
        """Return the value as a bounded integer.

        Branches: CONV-IN-RANGE, CONV-OUT-OF-RANGE
        """
        if not bounds.contains(self._value):                      # CONV-OUT-OF-RANGE
            raise RangeViolation(self._value, bounds)
        return self._value                                        # CONV-IN-RANGE

    # -- arithmetic ---------------------------------------------------------

    def add(self, other: NaturalNumber) -> None:
        self._value += other._value

    def subtract(self, other: NaturalNumber, clamp: bool = False) -> None:
        """Subtract ``other`` from this instance.

        Without ``clamp`` the caller must guarantee ``self >= other``;
        with it the result floors at zero.

        Branches: SUB-NORMAL, SUB-UNDERFLOW-CLAMP, SUB-UNDERFLOW-ERROR
        """
        if self._value < other._value:
            if not clamp:                                         # SUB-UNDERFLOW-ERROR
                raise PreconditionViolation(
                    f"cannot subtract {other} from {self}"
                )
            self._value = 0                                       # SUB-UNDERFLOW-CLAMP
            return
        self._value -= other._value                               # SUB-NORMAL

    def multiply(self, other: NaturalNumber) -> None:
        self._value *= other._value

    def divide(self, other: NaturalNumber) -> NaturalNumber:
        """Divide by ``other``: return the quotient, keep the remainder.

        Branches: DIV-NORMAL, DIV-ZERO-ERROR
        """
        if other._value == 0:                                     # DIV-ZERO-ERROR
            raise PreconditionViolation("division by zero")
        quotient, self._value = divmod(self._value, other._value) # DIV-NORMAL
        return NaturalNumber(quotient)

    def power(self, k: int) -> None:
        """Raise to the ``k``-th power (``0 ** 0 == 1``).

        Branches: POW-NORMAL, POW-NEGATIVE-ERROR
        """
        if k < 0:                                                 # POW-NEGATIVE-ERROR
            raise PreconditionViolation(f"negative exponent {k}")
        self._value **= k                                         # POW-NORMAL

    def root(self, k: int) -> None:
        """Replace the value with the floor of its ``k``-th root.

        Branches: ROOT-DEGREE-ERROR, ROOT-SMALL, ROOT-WIDE-DEGREE,
                  ROOT-NORMAL
        """
        if k < 2:                                                 # ROOT-DEGREE-ERROR
            raise PreconditionViolation(f"root degree {k} is less than 2")
        self._value = _iroot(self._value, k)

    def multiply_by_10(self, digit: int) -> None:
        """Append ``digit`` as the new least significant decimal digit.

        Branches: DIGIT-VALID, DIGIT-INVALID
        """
        if not DIGITS.contains(digit):                            # DIGIT-INVALID
            raise PreconditionViolation(f"{digit} is not a decimal digit")
        self._value = self._value * 10 + digit                    # DIGIT-VALID

    def divide_by_10(self) -> int:
        """Remove and return the least significant decimal digit."""
        self._value, digit = divmod(self._value, 10)
        return digit

    # -- conversions & comparisons -------------------------------------------

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return to_decimal(self._value)

    def __repr__(self) -> str:
        return f"NaturalNumber({self})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NaturalNumber):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, NaturalNumber):
            return self._value < other._value
        if isinstance(other, int):
            return self._value < other
        return NotImplemented

    # Mutable: equal values may later diverge.
    __hash__ = None  # type: ignore[assignment]

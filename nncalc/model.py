"""
Calculator Model
================
The two registers of the calculator.

Views read from this object; the controller writes to it.  The registers
are created once, at zero, and then only ever cleared or overwritten in
place, so anyone holding a reference to ``model.top`` keeps seeing the
live register.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from nncalc.natural import NaturalNumber


@dataclass
class Model:
    top: NaturalNumber = field(default_factory=NaturalNumber)
    bottom: NaturalNumber = field(default_factory=NaturalNumber)

    def snapshot(self) -> tuple[int, int]:
        """Current register values as plain ints."""
        return int(self.top), int(self.bottom)

    def load(self, top: int, bottom: int) -> None:
        """Overwrite both registers in place."""
        self.top.copy_from(NaturalNumber(top))
        self.bottom.copy_from(NaturalNumber(bottom))

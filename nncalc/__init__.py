"""Two-register arbitrary-precision natural number calculator."""

__version__ = "0.1.0"

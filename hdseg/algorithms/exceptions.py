"""Exceptions raised by the change point detection components."""

from __future__ import annotations

from typing import Iterable


class InvalidInput(ValueError):
    """Raised when data or parameters cannot describe a valid problem."""


class UnsupportedSplit(ValueError):
    """Raised when resampling is requested around a non-splittable candidate."""


class NumericDegeneracy(ArithmeticError):
    """Raised when a statistic cannot be standardised.

    Parameters
    ----------
    message : str
        Human readable description.
    rows : iterable of int, optional
        Indices of the observations that triggered the failure.
    """

    def __init__(self, message: str, rows: Iterable[int] = ()) -> None:
        self.rows = tuple(int(r) for r in rows)
        super().__init__(message)

    def shift(self, offset: int) -> "NumericDegeneracy":
        """Return a copy with ``rows`` translated by ``offset``."""

        return type(self)(self.args[0], rows=(r + offset for r in self.rows))

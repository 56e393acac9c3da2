"""Lookup of dissimilarity measures by name or callable."""

from __future__ import annotations

from typing import Any, Callable, Union

import numpy as np

from ..exceptions import InvalidInput
from .base import BaseDissimilarity

DissimilarityLike = Union[str, BaseDissimilarity, Callable[[np.ndarray], np.ndarray]]


class CallableDissimilarity(BaseDissimilarity):
    """Adapter for user supplied ``f(data) -> matrix`` functions.

    Nothing is known about how the function treats row order, so the matrix
    is recomputed for every resample.
    """

    model = "callable"
    permutation_equivariant = False

    def __init__(self, func: Callable[[np.ndarray], np.ndarray]) -> None:
        self.func = func

    def compute(self, data: np.ndarray) -> np.ndarray:
        return self.func(data)

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"CallableDissimilarity({name})"


def dissimilarity_factory(model: str, *args: Any, **kwargs: Any) -> BaseDissimilarity:
    """Return a dissimilarity registered under ``model``."""

    for subclass in BaseDissimilarity.__subclasses__():
        if subclass.model == model:
            return subclass(*args, **kwargs)
    raise InvalidInput(f"Unknown dissimilarity model: {model}")


def resolve_dissimilarity(dissimilarity: DissimilarityLike) -> BaseDissimilarity:
    if isinstance(dissimilarity, BaseDissimilarity):
        return dissimilarity
    if isinstance(dissimilarity, str):
        return dissimilarity_factory(dissimilarity)
    if callable(dissimilarity):
        return CallableDissimilarity(dissimilarity)
    raise InvalidInput(
        "dissimilarity must be a model name, a BaseDissimilarity or a callable, "
        f"saw {type(dissimilarity)}"
    )

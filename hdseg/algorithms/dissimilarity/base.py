"""Base class for dissimilarity measures between observations."""

from __future__ import annotations

import abc

import numpy as np

from ..exceptions import InvalidInput


class BaseDissimilarity(metaclass=abc.ABCMeta):
    """Map an (n_samples, n_features) matrix to an (n_samples, n_samples) one.

    Subclasses set ``permutation_equivariant`` to ``True`` when permuting the
    rows of the data permutes both axes of the result in the same way. The
    permutation test relies on this to reuse a single matrix across
    resamples.
    """

    permutation_equivariant: bool = True

    def __call__(self, data: np.ndarray) -> np.ndarray:
        matrix = np.asarray(self.compute(data), dtype=float)
        n_samples = np.shape(data)[0]
        if matrix.shape != (n_samples, n_samples):
            raise InvalidInput(
                f"{type(self).__name__} returned shape {matrix.shape}, "
                f"expected {(n_samples, n_samples)}"
            )
        return matrix

    @abc.abstractmethod
    def compute(self, data: np.ndarray) -> np.ndarray:
        """Return the pairwise dissimilarity matrix of ``data``."""

    @property
    @abc.abstractmethod
    def model(self) -> str:
        """Identifier used by :func:`dissimilarity_factory`."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

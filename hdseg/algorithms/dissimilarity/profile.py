"""Dissimilarity built on the (mean, standard deviation) profile of each row."""

from __future__ import annotations

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial.distance import pdist, squareform

from ..exceptions import InvalidInput
from .base import BaseDissimilarity


def profile_points(data: np.ndarray) -> np.ndarray:
    """Return the (mean, population std) coordinates of every row."""

    data = np.asarray(data, dtype=float)
    return np.column_stack([data.mean(axis=1), data.std(axis=1)])


def _accumulate_rows(distances: np.ndarray, start: int, stop: int) -> np.ndarray:
    # sum_k |E[i, k] - E[j, k]| for i in [start, stop) and every j
    out = np.empty((stop - start, distances.shape[0]))
    for offset, i in enumerate(range(start, stop)):
        out[offset] = np.abs(distances[i] - distances).sum(axis=1)
    return out


class ProfileDissimilarity(BaseDissimilarity):
    r"""Compare how two observations relate to the rest of the sample.

    Every row :math:`X_i` is summarised by its profile
    :math:`(\mu_i, \sigma_i)`, the mean and population standard deviation of
    its coordinates. With :math:`e(i, k)` the Euclidean distance between
    profiles,

    .. math::

        d(i, j) = \frac{1}{N - 2} \sum_{k \notin \{i, j\}}
                  \left| e(i, k) - e(j, k) \right|.

    Two observations are close when they sit at the same distance from every
    third observation, whatever their direct distance.

    Parameters
    ----------
    n_jobs : int or None, default=None
        Number of joblib workers used to accumulate row blocks.
    block_size : int, default=128
        Number of rows handled by one joblib task.
    """

    model = "profile"
    permutation_equivariant = True

    def __init__(self, n_jobs: int | None = None, block_size: int = 128) -> None:
        if block_size < 1:
            raise InvalidInput("block_size must be at least 1")
        self.n_jobs = n_jobs
        self.block_size = int(block_size)

    def compute(self, data: np.ndarray) -> np.ndarray:
        n_samples = np.shape(data)[0]
        if n_samples < 3:
            raise InvalidInput(
                f"The profile dissimilarity needs at least 3 observations, saw {n_samples}"
            )
        distances = squareform(pdist(profile_points(data)))
        starts = range(0, n_samples, self.block_size)
        blocks = Parallel(n_jobs=self.n_jobs)(
            delayed(_accumulate_rows)(distances, start, min(start + self.block_size, n_samples))
            for start in starts
        )
        # k == i and k == j each contribute e(i, j) to the full sum
        matrix = (np.vstack(blocks) - 2.0 * distances) / (n_samples - 2)
        np.maximum(matrix, 0.0, out=matrix)
        np.fill_diagonal(matrix, 0.0)
        return matrix

    def __repr__(self) -> str:
        return f"ProfileDissimilarity(n_jobs={self.n_jobs}, block_size={self.block_size})"

"""Plain Euclidean distance scaled by the square root of the dimension."""

from __future__ import annotations

import numpy as np
from scipy.spatial.distance import pdist, squareform

from .base import BaseDissimilarity


class EuclideanDissimilarity(BaseDissimilarity):
    """Euclidean distance between raw observations divided by ``sqrt(p)``."""

    model = "euclidean"
    permutation_equivariant = True

    def compute(self, data: np.ndarray) -> np.ndarray:
        data = np.asarray(data, dtype=float)
        return squareform(pdist(data, metric="euclidean")) / np.sqrt(data.shape[1])

"""Dissimilarity measures for high-dimensional observations."""

from __future__ import annotations

import numpy as np

from ..utils import check_data
from .base import BaseDissimilarity
from .euclidean import EuclideanDissimilarity
from .factory import (
    CallableDissimilarity,
    DissimilarityLike,
    dissimilarity_factory,
    resolve_dissimilarity,
)
from .profile import ProfileDissimilarity, profile_points


def compute_dissimilarity(data, dissimilarity: DissimilarityLike = "profile") -> np.ndarray:
    """Return the symmetric, zero-diagonal dissimilarity matrix of ``data``.

    Parameters
    ----------
    data : array-like of shape (n_samples, n_features)
        Observations in rows, ``n_samples >= 3``.
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
        Measure to apply.
    """

    return resolve_dissimilarity(dissimilarity)(check_data(data))


__all__ = [
    "BaseDissimilarity",
    "CallableDissimilarity",
    "DissimilarityLike",
    "EuclideanDissimilarity",
    "ProfileDissimilarity",
    "compute_dissimilarity",
    "dissimilarity_factory",
    "profile_points",
    "resolve_dissimilarity",
]

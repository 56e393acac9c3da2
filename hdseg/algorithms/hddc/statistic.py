"""Single split candidate and the T / W contrast statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..dissimilarity import DissimilarityLike, resolve_dissimilarity
from ..utils import check_data

logger = logging.getLogger(__name__)

__all__ = [
    "ChangePointStatistic",
    "RowProfiles",
    "candidate_from_matrix",
    "is_degenerate_candidate",
    "row_profiles",
    "statistic_from_matrix",
    "test_statistic",
]


@dataclass(frozen=True)
class RowProfiles:
    """Per-row moments of an (n_samples, n_features) matrix.

    Attributes
    ----------
    means : np.ndarray
        Mean of every row.
    variances : np.ndarray
        Population variance (``ddof=0``) of every row.
    sample_stds : np.ndarray
        Sample standard deviation (``ddof=1``) of every row.
    fourth_moments : np.ndarray
        Sum of the fourth powers of the centred coordinates of every row.
    n_features : int
        Row dimension ``p``.
    """

    means: np.ndarray
    variances: np.ndarray
    sample_stds: np.ndarray
    fourth_moments: np.ndarray
    n_features: int


def row_profiles(data: np.ndarray) -> RowProfiles:
    data = np.asarray(data, dtype=float)
    means = data.mean(axis=1)
    centred = data - means[:, np.newaxis]
    return RowProfiles(
        means=means,
        variances=(centred**2).mean(axis=1),
        sample_stds=data.std(axis=1, ddof=1),
        fourth_moments=(centred**4).sum(axis=1),
        n_features=data.shape[1],
    )


@dataclass(frozen=True)
class ChangePointStatistic:
    """Best split candidate of a segment with its contrast statistics.

    ``candidate`` is the first row of the after-segment. ``T`` contrasts
    dissimilarities across the boundary and ``W`` contrasts the
    (mean, standard deviation) pairs of the observations.
    """

    candidate: int
    T: float
    W: float
    n_samples: int

    @property
    def n_before(self) -> int:
        return self.candidate

    @property
    def n_after(self) -> int:
        return self.n_samples - self.candidate

    @property
    def is_degenerate(self) -> bool:
        return is_degenerate_candidate(self.candidate, self.n_samples)


def is_degenerate_candidate(candidate: int, n_samples: int) -> bool:
    """Return ``True`` for candidates too close to an edge to be tested."""

    return candidate <= 1 or candidate >= n_samples - 1


def candidate_from_matrix(matrix: np.ndarray) -> int:
    """Return the column whose dissimilarities jump most from its predecessor.

    Ties resolve to the first column. Column 0 has no predecessor and scores
    zero.
    """

    scores = np.zeros(matrix.shape[1])
    scores[1:] = np.abs(np.diff(matrix, axis=1)).mean(axis=0)
    return int(np.argmax(scores))


def _mean_square_gap(values: np.ndarray, segment: np.ndarray) -> np.ndarray:
    # mean_j (values[i] - segment[j])**2 for every i
    return segment.var() + (values - segment.mean()) ** 2


def statistic_from_matrix(
    matrix: np.ndarray, means: np.ndarray, stds: np.ndarray
) -> ChangePointStatistic:
    """Compute the candidate and the T / W statistics from a dissimilarity matrix.

    Parameters
    ----------
    matrix : np.ndarray of shape (n_samples, n_samples)
        Dissimilarity matrix of the segment.
    means, stds : np.ndarray of shape (n_samples,)
        Row means and sample standard deviations, in the same row order as
        ``matrix``.

    Returns
    -------
    ChangePointStatistic
        ``T`` and ``W`` are zero for degenerate candidates.
    """

    n_samples = matrix.shape[0]
    candidate = candidate_from_matrix(matrix)
    if is_degenerate_candidate(candidate, n_samples):
        return ChangePointStatistic(candidate, 0.0, 0.0, n_samples)

    before = matrix[:, :candidate]
    after = matrix[:, candidate:]
    # mean over (j, jj) of (a_j - b_jj)**2 = var(a) + var(b) + (mean a - mean b)**2
    distance_n = (
        before.var(axis=1)
        + after.var(axis=1)
        + (before.mean(axis=1) - after.mean(axis=1)) ** 2
    )
    wt = (
        _mean_square_gap(means, means[:candidate])
        + _mean_square_gap(stds, stds[:candidate])
        + _mean_square_gap(means, means[candidate:])
        + _mean_square_gap(stds, stds[candidate:])
    )
    return ChangePointStatistic(candidate, float(distance_n.mean()), float(wt.mean()), n_samples)


def test_statistic(data, dissimilarity: DissimilarityLike = "profile") -> ChangePointStatistic:
    """Locate the best split candidate of ``data`` and compute T and W.

    Parameters
    ----------
    data : array-like of shape (n_samples, n_features)
        Observations in time order.
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
        Measure used to build the dissimilarity matrix.

    Returns
    -------
    ChangePointStatistic
    """

    data = check_data(data)
    matrix = resolve_dissimilarity(dissimilarity)(data)
    profiles = row_profiles(data)
    statistic = statistic_from_matrix(matrix, profiles.means, profiles.sample_stds)
    logger.debug(
        "candidate=%d T=%.6g W=%.6g (n=%d)",
        statistic.candidate,
        statistic.T,
        statistic.W,
        statistic.n_samples,
    )
    return statistic


# Not a pytest test function.
test_statistic.__test__ = False

"""Significance tests for a single change point candidate.

Two tests are available:

* ``"permutation"`` compares the observed T statistic with its distribution
  over resamples in which every observation except an anchor next to the
  candidate is shuffled;
* ``"asymptotic"`` standardises the W statistic with its closed-form null
  mean and variance and compares it to a two-sided normal critical value.

Both return a :class:`SignificanceResult` whose ``change_point`` is either
:class:`Found` or the :data:`NOT_FOUND` marker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

import numpy as np
from joblib import Parallel, delayed
from scipy.stats import norm

from ..dissimilarity import BaseDissimilarity, DissimilarityLike, resolve_dissimilarity
from ..exceptions import InvalidInput, NumericDegeneracy, UnsupportedSplit
from ..utils import RandomState, check_alpha, check_data, permutation_rank, spawn_generators
from .statistic import ChangePointStatistic, RowProfiles, row_profiles, statistic_from_matrix

logger = logging.getLogger(__name__)

TestKind = Literal["asymptotic", "permutation"]
TESTS = ("asymptotic", "permutation")

__all__ = [
    "ChangePoint",
    "Found",
    "NOT_FOUND",
    "NotFound",
    "SignificanceResult",
    "asymptotic_test",
    "null_moments",
    "permutation_test",
    "permute_around",
    "test_single_changepoint",
]


# ---------------------------------------------------------------------------
# Outcome types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Found:
    """A confirmed change point at ``index``."""

    index: int

    def shift(self, offset: int) -> "Found":
        return Found(self.index + offset)


class NotFound:
    """Marker for "no significant change point". Use :data:`NOT_FOUND`."""

    _instance: Optional["NotFound"] = None

    def __new__(cls) -> "NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self):
        return (NotFound, ())


NOT_FOUND = NotFound()
ChangePoint = Union[Found, NotFound]


@dataclass(frozen=True)
class SignificanceResult:
    """Outcome of a single change point test.

    Attributes
    ----------
    change_point : Found or NotFound
        ``NOT_FOUND`` whenever ``significant`` is ``False``.
    significant : bool
        Whether the candidate passed the test.
    statistic : ChangePointStatistic
        Candidate and statistics the decision was based on.
    score : float or None
        Standardised W for the asymptotic test, observed T for the
        permutation test, ``None`` when no test was run.
    threshold : float or None
        Critical value the score was compared with.
    """

    change_point: ChangePoint
    significant: bool
    statistic: ChangePointStatistic
    score: Optional[float] = None
    threshold: Optional[float] = None


def _decide(
    statistic: ChangePointStatistic, significant: bool, score: float, threshold: float
) -> SignificanceResult:
    change_point: ChangePoint = Found(statistic.candidate) if significant else NOT_FOUND
    return SignificanceResult(change_point, bool(significant), statistic, float(score), float(threshold))


# ---------------------------------------------------------------------------
# Permutation test
# ---------------------------------------------------------------------------


def _check_anchor(candidate: int) -> None:
    if candidate <= 1:
        raise UnsupportedSplit(
            f"Cannot resample around candidate {candidate}: no observations before the anchor"
        )


def permute_around(n_samples: int, candidate: int, rng: np.random.Generator) -> np.ndarray:
    """Return a row order shuffling every row except the anchor ``candidate - 1``.

    Raises
    ------
    UnsupportedSplit
        If ``candidate <= 1``: there is no observation before the anchor to
        exchange it with.
    """

    _check_anchor(candidate)
    anchor = candidate - 1
    shuffled = rng.permutation(np.delete(np.arange(n_samples), anchor))
    return np.insert(shuffled, anchor, anchor)


def _permuted_T(
    data: np.ndarray,
    measure: BaseDissimilarity,
    matrix: np.ndarray,
    profiles: RowProfiles,
    candidate: int,
    rng: np.random.Generator,
) -> float:
    order = permute_around(data.shape[0], candidate, rng)
    if measure.permutation_equivariant:
        permuted = matrix[np.ix_(order, order)]
    else:
        permuted = measure(data[order])
    return statistic_from_matrix(permuted, profiles.means[order], profiles.sample_stds[order]).T


def _run_permutation_test(
    data: np.ndarray,
    measure: BaseDissimilarity,
    matrix: np.ndarray,
    profiles: RowProfiles,
    statistic: ChangePointStatistic,
    n_permutations: int,
    alpha: float,
    random_state: RandomState,
    n_jobs: int | None,
) -> SignificanceResult:
    rank = permutation_rank(n_permutations, alpha)
    _check_anchor(statistic.candidate)

    generators = spawn_generators(random_state, int(n_permutations))
    null = Parallel(n_jobs=n_jobs)(
        delayed(_permuted_T)(data, measure, matrix, profiles, statistic.candidate, rng)
        for rng in generators
    )
    threshold = float(np.sort(np.asarray(null))[rank - 1])
    significant = statistic.T > threshold
    logger.debug(
        "permutation test: candidate=%d T=%.6g threshold=%.6g significant=%s",
        statistic.candidate,
        statistic.T,
        threshold,
        significant,
    )
    return _decide(statistic, significant, statistic.T, threshold)


def permutation_test(
    data,
    dissimilarity: DissimilarityLike = "profile",
    *,
    n_permutations: int = 200,
    alpha: float = 0.05,
    random_state: RandomState = None,
    n_jobs: int | None = None,
) -> SignificanceResult:
    """Test the best candidate of ``data`` against resampled T statistics.

    Each resample keeps the observation just before the candidate in place
    and shuffles all the others, then recomputes the full statistic
    (candidate included). The candidate is significant when the observed T
    exceeds the ``floor(n_permutations * (1 - alpha))``-th smallest
    resampled T.

    Parameters
    ----------
    data : array-like of shape (n_samples, n_features)
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
    n_permutations : int, default=200
    alpha : float, default=0.05
    random_state : None, int, SeedSequence or Generator
        Seed of the resampling streams. Every resample draws from its own
        spawned generator, so results do not depend on ``n_jobs``.
    n_jobs : int or None, default=None
        Number of joblib workers evaluating resamples.

    Raises
    ------
    UnsupportedSplit
        If the candidate is 0 or 1.
    """

    data = check_data(data)
    alpha = check_alpha(alpha)
    measure = resolve_dissimilarity(dissimilarity)
    matrix = measure(data)
    profiles = row_profiles(data)
    statistic = statistic_from_matrix(matrix, profiles.means, profiles.sample_stds)
    return _run_permutation_test(
        data, measure, matrix, profiles, statistic, n_permutations, alpha, random_state, n_jobs
    )


# ---------------------------------------------------------------------------
# Asymptotic test
# ---------------------------------------------------------------------------


def _row_variances(profiles: RowProfiles) -> tuple[np.ndarray, np.ndarray]:
    """Return the null variance terms of the row means and of the row scales."""

    p = profiles.n_features
    degenerate = np.flatnonzero(profiles.variances <= 0.0)
    if degenerate.size:
        raise NumericDegeneracy(
            f"Rows {degenerate.tolist()} have zero variance; W cannot be standardised",
            rows=degenerate,
        )
    v = profiles.variances / p
    v_star = (profiles.fourth_moments / p**2) / (4.0 * profiles.variances)
    return v, v_star


def _overlap_sum(
    pair: np.ndarray, single: np.ndarray, in_j: np.ndarray, in_l: np.ndarray
) -> float:
    """Sum the covariance contributions of (i, j, k, l) with j in J and l in L.

    ``i`` and ``k`` range over every row. Index quadruples contribute
    according to which indices coincide:

    * ``i == j`` or ``k == l``: nothing;
    * ``{k, l} == {i, j}``: ``2 * pair[i, j]``;
    * only ``i`` in ``{k, l}``: ``single[i] / 2``;
    * only ``j`` in ``{k, l}``: ``single[j] / 2``;
    * disjoint: nothing.

    Counting the admissible ``(k, l)`` for each category gives an O(N^2)
    sum instead of enumerating quadruples.
    """

    n = pair.shape[0]
    l_i = in_l.astype(float)[:, np.newaxis]
    l_j = in_l.astype(float)[np.newaxis, :]
    # l in L distinct from both i and j, paired with k at i or j
    free_l = in_l.sum() - l_i - l_j
    both = l_i + l_j
    only_i = free_l + l_i * (n - 2)
    only_j = free_l + l_j * (n - 2)

    terms = (
        2.0 * pair * both
        + 0.5 * single[:, np.newaxis] * only_i
        + 0.5 * single[np.newaxis, :] * only_j
    )
    mask = np.broadcast_to(in_j[np.newaxis, :], (n, n)) & ~np.eye(n, dtype=bool)
    return float(terms[mask].sum())


def null_moments(profiles: RowProfiles, candidate: int) -> tuple[float, float]:
    """Return the null mean and variance terms ``(sum_m, sum_c)`` of W.

    Both are expressed on the scale of ``n * n_before * n_after * W``.
    """

    v, v_star = _row_variances(profiles)
    n = v.shape[0]
    n_before, n_after = candidate, n - candidate
    in_before = np.arange(n) < candidate
    in_after = ~in_before

    u = v + v_star
    total = u.sum()
    sum_m = n_after * (n_before * total + n * u[:candidate].sum()) + n_before * (
        n_after * total + n * u[candidate:].sum()
    )

    pair = (v[:, np.newaxis] + v[np.newaxis, :]) ** 2 + (
        v_star[:, np.newaxis] + v_star[np.newaxis, :]
    ) ** 2
    single = np.diag(pair).copy()
    sum_c = (
        _overlap_sum(pair, single, in_before, in_before) * n_after * n_after
        + _overlap_sum(pair, single, in_before, in_after) * n_before * n_after
        + _overlap_sum(pair, single, in_after, in_before) * n_before * n_after
        + _overlap_sum(pair, single, in_after, in_after) * n_before * n_before
    )
    return float(sum_m), float(sum_c)


def _run_asymptotic_test(
    profiles: RowProfiles, statistic: ChangePointStatistic, alpha: float
) -> SignificanceResult:
    sum_m, sum_c = null_moments(profiles, statistic.candidate)
    if not sum_c > 0.0:
        raise NumericDegeneracy(f"Null variance of W is not positive ({sum_c})")

    scale = statistic.n_samples * statistic.n_before * statistic.n_after
    z = scale * (statistic.W - sum_m / scale) / np.sqrt(sum_c)
    critical = float(norm.ppf(1.0 - alpha / 2.0))
    significant = abs(z) >= critical
    logger.debug(
        "asymptotic test: candidate=%d W=%.6g z=%.4f critical=%.4f significant=%s",
        statistic.candidate,
        statistic.W,
        z,
        critical,
        significant,
    )
    return _decide(statistic, significant, z, critical)


def asymptotic_test(
    data, dissimilarity: DissimilarityLike = "profile", *, alpha: float = 0.05
) -> SignificanceResult:
    """Test the best candidate of ``data`` with the normal approximation of W.

    Degenerate candidates are not tested and come back as ``NOT_FOUND``.

    Raises
    ------
    NumericDegeneracy
        If a row has zero variance; ``rows`` lists the offending rows.
    """

    data = check_data(data)
    alpha = check_alpha(alpha)
    matrix = resolve_dissimilarity(dissimilarity)(data)
    profiles = row_profiles(data)
    statistic = statistic_from_matrix(matrix, profiles.means, profiles.sample_stds)
    if statistic.is_degenerate:
        return SignificanceResult(NOT_FOUND, False, statistic)
    return _run_asymptotic_test(profiles, statistic, alpha)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def test_single_changepoint(
    data,
    dissimilarity: DissimilarityLike = "profile",
    test: TestKind = "asymptotic",
    n_permutations: int = 200,
    alpha: float = 0.05,
    random_state: RandomState = None,
    n_jobs: int | None = None,
) -> SignificanceResult:
    """Find the best change point candidate of ``data`` and test it.

    Candidates within one row of either edge cannot be split and are
    reported as ``NOT_FOUND`` without running a test: their statistics are
    zero, which no resampled or asymptotic null can exceed.

    Parameters
    ----------
    data : array-like of shape (n_samples, n_features)
        Observations in time order, ``n_samples >= 3``.
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
        Measure used to build the dissimilarity matrix.
    test : {"asymptotic", "permutation"}, default="asymptotic"
        Significance test.
    n_permutations : int, default=200
        Number of resamples for the permutation test.
    alpha : float, default=0.05
        Significance level.
    random_state : None, int, SeedSequence or Generator
        Seed of the permutation test.
    n_jobs : int or None, default=None
        joblib workers for the permutation test.

    Returns
    -------
    SignificanceResult
    """

    if test not in TESTS:
        raise InvalidInput(f"test must be one of {TESTS}, saw {test!r}")
    data = check_data(data)
    alpha = check_alpha(alpha)
    if test == "permutation":
        permutation_rank(n_permutations, alpha)

    measure = resolve_dissimilarity(dissimilarity)
    matrix = measure(data)
    profiles = row_profiles(data)
    statistic = statistic_from_matrix(matrix, profiles.means, profiles.sample_stds)
    if statistic.is_degenerate:
        logger.debug("candidate %d of %d is not splittable", statistic.candidate, statistic.n_samples)
        return SignificanceResult(NOT_FOUND, False, statistic)

    if test == "permutation":
        return _run_permutation_test(
            data, measure, matrix, profiles, statistic, n_permutations, alpha, random_state, n_jobs
        )
    return _run_asymptotic_test(profiles, statistic, alpha)


test_single_changepoint.__test__ = False

"""High-dimensional change point detector aligned with the BaseSegmenter API."""

from __future__ import annotations

import numpy as np

from ..base import BaseSegmenter
from ..exceptions import InvalidInput
from ..utils import check_alpha, check_min_segment, permutation_rank
from .segmentation import SegmentNode, segment_tree
from .significance import TESTS

__all__ = ["HDChangePointDetector"]


class HDChangePointDetector(BaseSegmenter):
    """Binary segmentation of high-dimensional sequences.

    Each observation is summarised by the mean and standard deviation of its
    coordinates. Two observations are dissimilar when they relate differently
    to all the other observations; the split whose dissimilarity pattern
    changes most abruptly is tested for significance, and accepted splits are
    segmented again until segments become too short.

    Parameters
    ----------
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
        ``"profile"`` for the profile-based dissimilarity, ``"euclidean"`` for
        the Euclidean distance scaled by ``sqrt(n_features)``, or any
        callable mapping an (n, p) matrix to an (n, n) one.
    test : {"asymptotic", "permutation"}, default="asymptotic"
        Significance test of each candidate.
    n_permutations : int, default=200
        Number of resamples of the permutation test.
    alpha : float, default=0.05
        Significance level of each test.
    min_segment : int, default=10
        Segments of at most this many observations are not split further.
    random_state : int, SeedSequence, Generator or None, default=None
        Seed of the permutation test.
    n_jobs : int or None, default=None
        joblib workers for segment tests and resamples.
    axis : int, default=0
        Axis representing time in the input array.

    Attributes
    ----------
    change_points_ : np.ndarray
        Sorted change points of the fitted series.
    tree_ : SegmentNode
        Segmentation tree of the fitted series.

    References
    ----------
    .. [1] R. Drikvandi, "High dimensional change point detection",
       ``HDDchangepoint`` R package.

    Examples
    --------
    >>> import numpy as np
    >>> from hdseg.algorithms import HDChangePointDetector
    >>> rng = np.random.default_rng(3)
    >>> X = np.vstack([rng.normal(0, 1, (25, 80)), rng.normal(4, 1, (25, 80))])
    >>> HDChangePointDetector().fit_predict(X)  # doctest: +SKIP
    array([25])
    """

    _tags = {
        "capability:univariate": False,
        "capability:multivariate": True,
        "capability:multithreading": True,
        "fit_is_empty": False,
        "returns_dense": True,
        "detector_type": "change_point_detection",
        "capability:unsupervised": True,
        "capability:semi_supervised": False,
    }

    def __init__(
        self,
        *,
        dissimilarity="profile",
        test: str = "asymptotic",
        n_permutations: int = 200,
        alpha: float = 0.05,
        min_segment: int = 10,
        random_state=None,
        n_jobs: int | None = None,
        axis: int = 0,
    ) -> None:
        if test not in TESTS:
            raise InvalidInput(f"test must be one of {TESTS}, saw {test!r}")
        check_alpha(alpha)
        if test == "permutation":
            permutation_rank(n_permutations, alpha)
        check_min_segment(min_segment)

        self.dissimilarity = dissimilarity
        self.test = test
        self.n_permutations = n_permutations
        self.alpha = alpha
        self.min_segment = min_segment
        self.random_state = random_state
        self.n_jobs = n_jobs
        self._signal: np.ndarray | None = None
        super().__init__(axis=axis)

    def get_tags(self):
        tags = super().get_tags()
        # tracks set_params
        tags["non_deterministic"] = self.test == "permutation" and self.random_state is None
        return tags

    def _segment(self, signal: np.ndarray) -> SegmentNode:
        return segment_tree(
            signal,
            dissimilarity=self.dissimilarity,
            min_segment=self.min_segment,
            test=self.test,
            n_permutations=self.n_permutations,
            alpha=self.alpha,
            random_state=self.random_state,
            n_jobs=self.n_jobs,
        )

    def _fit(self, X, y=None):
        self.tree_ = self._segment(X)
        self.change_points_ = self.tree_.change_points()
        self._signal = X
        return self

    def _predict(self, X):
        if self._signal is None or not np.array_equal(X, self._signal):
            self.tree_ = self._segment(X)
            self.change_points_ = self.tree_.change_points()
            self._signal = X
        return self.change_points_.copy()

    def get_fitted_params(self, deep: bool = True):
        self._check_is_fitted()
        return {
            "change_points": self.change_points_.copy(),
            "segments": self.tree_.segments(),
        }

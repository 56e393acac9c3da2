"""Recursive binary segmentation driven by the single change point test.

The recursion is unrolled into an interval tree built breadth first: every
frontier of untested segments is evaluated in one joblib batch, accepted
splits produce two children, and children no longer than ``min_segment``
are left untested. All indices stored in the tree are global.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterator, Optional

import numpy as np
from joblib import Parallel, delayed

from ..dissimilarity import DissimilarityLike
from ..exceptions import InvalidInput, NumericDegeneracy
from ..utils import RandomState, check_alpha, check_data, check_min_segment, check_random_state
from .significance import (
    NOT_FOUND,
    TESTS,
    ChangePoint,
    Found,
    SignificanceResult,
    TestKind,
    test_single_changepoint,
)

logger = logging.getLogger(__name__)

# splitter(segment, random_state=rng) -> SignificanceResult with a local index
Splitter = Callable[..., SignificanceResult]

__all__ = [
    "SegmentNode",
    "Splitter",
    "is_admissible_split",
    "multiple_changepoint_detection",
    "segment_tree",
]


@dataclass(eq=False)
class SegmentNode:
    """Segment ``[start, end)`` of the original sequence.

    ``change_point`` is :data:`NOT_FOUND` for leaves and the global index of
    the first row of ``after`` for split nodes. ``result`` keeps the test
    outcome, ``None`` when the segment was too short to be tested.
    """

    start: int
    end: int
    change_point: ChangePoint = NOT_FOUND
    before: Optional["SegmentNode"] = None
    after: Optional["SegmentNode"] = None
    result: Optional[SignificanceResult] = field(default=None, repr=False)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_leaf(self) -> bool:
        return self.before is None and self.after is None

    def split(self, change_point: Found) -> tuple["SegmentNode", "SegmentNode"]:
        """Attach children on each side of the global ``change_point``."""

        if not isinstance(change_point, Found):
            raise TypeError(f"Only a Found change point can split a segment, saw {change_point!r}")
        if not self.start < change_point.index < self.end:
            raise ValueError(
                f"Change point {change_point.index} outside segment [{self.start}, {self.end})"
            )
        self.change_point = change_point
        self.before = SegmentNode(self.start, change_point.index)
        self.after = SegmentNode(change_point.index, self.end)
        return self.before, self.after

    def iter_nodes(self) -> Iterator["SegmentNode"]:
        """Yield the nodes of the subtree in pre-order."""

        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(child for child in (node.after, node.before) if child is not None)

    def change_points(self) -> np.ndarray:
        """Return the sorted, unique change points of the subtree."""

        found = {
            node.change_point.index
            for node in self.iter_nodes()
            if isinstance(node.change_point, Found)
        }
        return np.array(sorted(found), dtype=int)

    def segments(self) -> list[tuple[int, int]]:
        """Return the ``(start, end)`` intervals of the leaves, in order."""

        return sorted((node.start, node.end) for node in self.iter_nodes() if node.is_leaf)


def is_admissible_split(candidate: int, length: int) -> bool:
    """Return ``True`` when ``candidate`` leaves room on both sides to recurse."""

    return 2 <= candidate <= length - 4


def _test_segment(
    splitter: Splitter, data: np.ndarray, start: int, end: int, rng: np.random.Generator
) -> SignificanceResult:
    try:
        return splitter(data[start:end], random_state=rng)
    except NumericDegeneracy as exc:
        raise exc.shift(start) from exc


def segment_tree(
    data,
    dissimilarity: DissimilarityLike = "profile",
    min_segment: int = 10,
    test: TestKind = "asymptotic",
    n_permutations: int = 200,
    alpha: float = 0.05,
    random_state: RandomState = None,
    n_jobs: int | None = None,
    splitter: Splitter | None = None,
) -> SegmentNode:
    """Build the binary segmentation tree of ``data``.

    Parameters
    ----------
    data : array-like of shape (n_samples, n_features)
        Observations in time order.
    dissimilarity : str, BaseDissimilarity or callable, default="profile"
        Measure passed to :func:`test_single_changepoint`.
    min_segment : int, default=10
        Segments of at most this many observations are not tested.
    test : {"asymptotic", "permutation"}, default="asymptotic"
    n_permutations : int, default=200
    alpha : float, default=0.05
    random_state : None, int, SeedSequence or Generator
        Root seed. Each tested segment receives its own spawned generator.
    n_jobs : int or None, default=None
        joblib workers used for every frontier of segments and for the
        permutation resamples.
    splitter : callable, optional
        Replacement for the single change point test, called as
        ``splitter(segment, random_state=rng)`` and returning a
        :class:`SignificanceResult` with a segment-local change point. When
        given, ``dissimilarity``, ``test``, ``n_permutations`` and ``alpha``
        are not used.

    Returns
    -------
    SegmentNode
        Root covering ``[0, n_samples)``.
    """

    data = check_data(data)
    min_segment = check_min_segment(min_segment)
    if splitter is None:
        if test not in TESTS:
            raise InvalidInput(f"test must be one of {TESTS}, saw {test!r}")
        splitter = partial(
            test_single_changepoint,
            dissimilarity=dissimilarity,
            test=test,
            n_permutations=n_permutations,
            alpha=check_alpha(alpha),
            n_jobs=n_jobs,
        )

    n_samples = data.shape[0]
    root = SegmentNode(0, n_samples)
    if n_samples <= min_segment:
        warnings.warn(
            f"min_segment={min_segment} is not smaller than the {n_samples} observations; "
            "no split is possible",
            UserWarning,
        )
        return root

    rng = check_random_state(random_state)
    frontier = [root]
    depth = 0
    while frontier:
        generators = rng.spawn(len(frontier))
        results = Parallel(n_jobs=n_jobs)(
            delayed(_test_segment)(splitter, data, node.start, node.end, generator)
            for node, generator in zip(frontier, generators)
        )
        next_frontier: list[SegmentNode] = []
        for node, result in zip(frontier, results):
            node.result = result
            if not (result.significant and isinstance(result.change_point, Found)):
                continue
            local = result.change_point.index
            if not is_admissible_split(local, node.length):
                logger.debug(
                    "significant candidate %d too close to the edges of [%d, %d)",
                    local,
                    node.start,
                    node.end,
                )
                continue
            before, after = node.split(result.change_point.shift(node.start))
            logger.debug("split [%d, %d) at %d", node.start, node.end, node.change_point.index)
            next_frontier.extend(child for child in (before, after) if child.length > min_segment)
        frontier = next_frontier
        depth += 1
    logger.debug("segmentation finished after %d level(s)", depth)
    return root


def multiple_changepoint_detection(
    data,
    dissimilarity: DissimilarityLike = "profile",
    min_segment: int = 10,
    test: TestKind = "asymptotic",
    n_permutations: int = 200,
    alpha: float = 0.05,
    random_state: RandomState = None,
    n_jobs: int | None = None,
    splitter: Splitter | None = None,
) -> np.ndarray:
    """Detect every significant change point of ``data``.

    Parameters are those of :func:`segment_tree`.

    Returns
    -------
    np.ndarray of int
        Sorted, unique global change points; each is the first row of a new
        segment. Empty when nothing is significant or when
        ``n_samples <= min_segment``.

    Examples
    --------
    >>> import numpy as np
    >>> rng = np.random.default_rng(0)
    >>> X = np.vstack([rng.normal(0, 1, (20, 50)), rng.normal(5, 1, (20, 50))])
    >>> multiple_changepoint_detection(X)  # doctest: +SKIP
    array([20])
    """

    return segment_tree(
        data,
        dissimilarity=dissimilarity,
        min_segment=min_segment,
        test=test,
        n_permutations=n_permutations,
        alpha=alpha,
        random_state=random_state,
        n_jobs=n_jobs,
        splitter=splitter,
    ).change_points()

"""Input checks and random state helpers shared by the detectors."""

from __future__ import annotations

from typing import Any, Union

import numpy as np
import pandas as pd

from .exceptions import InvalidInput

RandomState = Union[None, int, np.random.SeedSequence, np.random.Generator]


def check_data(X: Any, *, min_samples: int = 3) -> np.ndarray:
    """Coerce ``X`` into a finite 2D float array of shape (n_samples, n_features).

    Parameters
    ----------
    X : array-like or pd.DataFrame
        Observations in rows. Rows are ordered in time, columns are treated
        as exchangeable coordinates.
    min_samples : int, default=3
        Minimum number of rows required.

    Returns
    -------
    np.ndarray
        The validated data.

    Raises
    ------
    InvalidInput
        If the input is ragged, non-numeric, not two-dimensional, contains
        missing or infinite values, or is too small.
    """

    if isinstance(X, pd.DataFrame):
        if not all(pd.api.types.is_numeric_dtype(X[col]) for col in X.columns):
            raise InvalidInput("pd.DataFrame dtype must be numeric")
        X = X.to_numpy()

    try:
        data = np.asarray(X, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Data must be a rectangular numeric matrix: {exc}") from exc

    if data.ndim != 2:
        raise InvalidInput(f"Data must be two-dimensional, saw {data.ndim} dimension(s)")
    n_samples, n_features = data.shape
    if n_samples < min_samples:
        raise InvalidInput(
            f"At least {min_samples} observations are required, saw {n_samples}"
        )
    if n_features < 2:
        raise InvalidInput(
            f"Each observation needs at least 2 coordinates, saw {n_features}"
        )
    if not np.isfinite(data).all():
        raise InvalidInput("Missing or infinite values are not supported")
    return data


def check_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 < alpha < 1.0:
        raise InvalidInput(f"alpha must lie in (0, 1), saw {alpha}")
    return alpha


def check_random_state(random_state: RandomState) -> np.random.Generator:
    """Return a :class:`numpy.random.Generator` for ``random_state``.

    Generators are passed through untouched so that callers can share a
    stream; anything else seeds a fresh generator.
    """

    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


def spawn_generators(random_state: RandomState, n: int) -> list[np.random.Generator]:
    """Return ``n`` statistically independent child generators."""

    return check_random_state(random_state).spawn(n)


def check_min_segment(min_segment: int) -> int:
    if int(min_segment) != min_segment or min_segment < 2:
        raise InvalidInput(f"min_segment must be an integer >= 2, saw {min_segment}")
    return int(min_segment)


def permutation_rank(n_permutations: int, alpha: float) -> int:
    """Return the 1-based order statistic used as permutation threshold."""

    if int(n_permutations) != n_permutations or n_permutations < 1:
        raise InvalidInput(f"n_permutations must be a positive integer, saw {n_permutations}")
    rank = int(np.floor(n_permutations * (1.0 - alpha) + 1e-9))
    if rank < 1:
        raise InvalidInput(f"n_permutations={n_permutations} is too small for alpha={alpha}")
    return rank

"""Shared fixtures for the hdseg algorithm test suite.

Every fixture draws from ``np.random.default_rng`` with a fixed seed so the
whole suite is deterministic. Panels are (n_samples, n_features) matrices
with observations in rows and piecewise-constant row means.
"""

from __future__ import annotations

import numpy as np
import pytest

# ======================================================================
# Helpers
# ======================================================================


def segmented_panel(
    rng: np.random.Generator,
    lengths: list[int],
    means: list[float],
    n_features: int = 50,
    scale: float = 1.0,
) -> np.ndarray:
    """Stack Gaussian blocks of ``lengths[k]`` rows centred on ``means[k]``."""
    blocks = [
        rng.normal(loc=mu, scale=scale, size=(length, n_features))
        for length, mu in zip(lengths, means)
    ]
    return np.vstack(blocks).astype(np.float64)


def literal_dissimilarity(X: np.ndarray) -> np.ndarray:
    """Triple loop over (i, j, k), straight from the definition."""
    n = X.shape[0]
    mu = X.mean(axis=1)
    sigma = X.std(axis=1)
    D = np.zeros((n, n))
    for i in range(n - 1):
        for j in range(i + 1, n):
            part = 0.0
            for k in range(n):
                if k in (i, j):
                    continue
                dik = np.hypot(mu[i] - mu[k], sigma[i] - sigma[k])
                djk = np.hypot(mu[j] - mu[k], sigma[j] - sigma[k])
                part += abs(dik - djk)
            D[i, j] = D[j, i] = part / (n - 2)
    return D


# ======================================================================
# Session-scoped synthetic data
# ======================================================================


@pytest.fixture(scope="session")
def single_shift():
    """40 observations in 50 dimensions, mean shifted by 5 sd from row 20."""
    rng = np.random.default_rng(2024)
    X = segmented_panel(rng, [20, 20], [0.0, 5.0])
    return {"X": X, "change_points": np.array([20])}


@pytest.fixture(scope="session")
def two_shifts():
    """60 observations in 50 dimensions with shifts at rows 20 and 40."""
    rng = np.random.default_rng(7)
    X = segmented_panel(rng, [20, 20, 20], [0.0, 5.0, 10.0])
    return {"X": X, "change_points": np.array([20, 40])}


@pytest.fixture
def small_panel():
    """A short panel for brute-force cross-checks."""
    rng = np.random.default_rng(11)
    return rng.standard_normal((9, 6)) * rng.uniform(0.5, 2.0, size=(9, 1))

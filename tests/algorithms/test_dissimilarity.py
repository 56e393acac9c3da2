"""Tests for hdseg.algorithms.dissimilarity."""

from __future__ import annotations

import numpy as np
import pytest

from hdseg.algorithms.dissimilarity import (
    BaseDissimilarity,
    CallableDissimilarity,
    EuclideanDissimilarity,
    ProfileDissimilarity,
    compute_dissimilarity,
    dissimilarity_factory,
    profile_points,
    resolve_dissimilarity,
)
from hdseg.algorithms.exceptions import InvalidInput

from .conftest import literal_dissimilarity


class TestMatrixInvariants:
    """Any measure must return a symmetric, zero-diagonal, non-negative matrix."""

    @pytest.mark.parametrize("model", ["profile", "euclidean"])
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_symmetric_zero_diagonal_non_negative(self, model, seed):
        rng = np.random.default_rng(seed)
        X = rng.normal(size=(15, 30)) * rng.uniform(0.1, 3.0, size=(15, 1))
        D = compute_dissimilarity(X, model)
        assert D.shape == (15, 15)
        np.testing.assert_array_equal(D, D.T)
        np.testing.assert_array_equal(np.diag(D), 0.0)
        assert (D >= 0).all()

    def test_identical_rows_give_zero_matrix(self):
        X = np.tile(np.arange(8.0), (5, 1))
        np.testing.assert_array_equal(compute_dissimilarity(X), np.zeros((5, 5)))


class TestProfileDissimilarity:
    def test_matches_definition(self, small_panel):
        np.testing.assert_allclose(
            compute_dissimilarity(small_panel), literal_dissimilarity(small_panel), atol=1e-12
        )

    def test_profile_points(self, small_panel):
        points = profile_points(small_panel)
        np.testing.assert_allclose(points[:, 0], small_panel.mean(axis=1))
        np.testing.assert_allclose(points[:, 1], small_panel.std(axis=1))

    def test_columns_are_exchangeable(self, small_panel):
        """Only row means and spreads matter, not coordinate order."""
        shuffled = small_panel[:, ::-1]
        np.testing.assert_allclose(
            compute_dissimilarity(small_panel), compute_dissimilarity(shuffled), atol=1e-12
        )

    def test_row_permutation_permutes_matrix(self, small_panel):
        order = np.random.default_rng(3).permutation(small_panel.shape[0])
        D = compute_dissimilarity(small_panel)
        np.testing.assert_allclose(
            compute_dissimilarity(small_panel[order]), D[np.ix_(order, order)], atol=1e-12
        )

    def test_blocks_and_workers_do_not_change_result(self, small_panel):
        reference = ProfileDissimilarity()(small_panel)
        blocked = ProfileDissimilarity(n_jobs=2, block_size=2)(small_panel)
        np.testing.assert_allclose(reference, blocked, atol=1e-12)

    def test_needs_three_observations(self):
        with pytest.raises(InvalidInput):
            ProfileDissimilarity()(np.ones((2, 4)))

    def test_invalid_block_size(self):
        with pytest.raises(InvalidInput):
            ProfileDissimilarity(block_size=0)


def test_euclidean_is_scaled_by_sqrt_dimension(small_panel):
    D = EuclideanDissimilarity()(small_panel)
    p = small_panel.shape[1]
    expected = np.linalg.norm(small_panel[0] - small_panel[3]) / np.sqrt(p)
    assert D[0, 3] == pytest.approx(expected)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestResolve:
    def test_factory_by_name(self):
        assert isinstance(dissimilarity_factory("profile"), ProfileDissimilarity)
        assert isinstance(dissimilarity_factory("euclidean"), EuclideanDissimilarity)

    def test_unknown_model(self):
        with pytest.raises(InvalidInput, match="Unknown dissimilarity"):
            dissimilarity_factory("manhattan")

    def test_instances_pass_through(self):
        measure = ProfileDissimilarity(block_size=4)
        assert resolve_dissimilarity(measure) is measure

    def test_callable_is_wrapped(self, small_panel):
        measure = resolve_dissimilarity(lambda X: np.zeros((X.shape[0], X.shape[0])))
        assert isinstance(measure, CallableDissimilarity)
        assert isinstance(measure, BaseDissimilarity)
        assert not measure.permutation_equivariant
        np.testing.assert_array_equal(measure(small_panel), 0.0)

    def test_callable_with_wrong_shape(self, small_panel):
        measure = resolve_dissimilarity(lambda X: np.zeros((2, 2)))
        with pytest.raises(InvalidInput, match="expected"):
            measure(small_panel)

    def test_rejects_other_types(self):
        with pytest.raises(InvalidInput):
            resolve_dissimilarity(42)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "X",
    [
        np.ones((2, 5)),
        np.ones(10),
        np.ones((4, 1)),
        np.ones((3, 3, 3)),
        [[1.0, 2.0, 3.0], [1.0, 2.0], [4.0, 5.0, 6.0]],
        np.array([["a", "b"], ["c", "d"], ["e", "f"]]),
    ],
    ids=["too-few-rows", "1d", "single-column", "3d", "ragged", "strings"],
)
def test_invalid_input_raises(X):
    with pytest.raises(InvalidInput):
        compute_dissimilarity(X)


def test_missing_values_raise():
    X = np.random.default_rng(0).normal(size=(6, 4))
    X[2, 1] = np.nan
    with pytest.raises(InvalidInput, match="(?i)missing"):
        compute_dissimilarity(X)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        compute_dissimilarity(np.ones((2, 5)))

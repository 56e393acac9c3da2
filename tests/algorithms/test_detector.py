"""Tests for the HDChangePointDetector estimator API."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from hdseg.algorithms import HDChangePointDetector, InvalidInput
from hdseg.algorithms.base import BaseSegmenter
from hdseg.algorithms.hddc import multiple_changepoint_detection

# ======================================================================
# Fit / predict
# ======================================================================


class TestFitPredict:
    def test_matches_functional_api(self, two_shifts):
        detector = HDChangePointDetector(min_segment=20)
        predicted = detector.fit_predict(two_shifts["X"])
        expected = multiple_changepoint_detection(two_shifts["X"], min_segment=20)
        np.testing.assert_array_equal(predicted, expected)
        np.testing.assert_array_equal(detector.change_points_, expected)

    def test_axis_one_transposes(self, single_shift):
        X = single_shift["X"]
        rows = HDChangePointDetector().fit_predict(X)
        cols = HDChangePointDetector(axis=1).fit_predict(X.T)
        np.testing.assert_array_equal(rows, cols)

    def test_accepts_dataframe(self, single_shift):
        X = single_shift["X"]
        frame = pd.DataFrame(X, columns=[f"x{i}" for i in range(X.shape[1])])
        np.testing.assert_array_equal(
            HDChangePointDetector().fit_predict(frame),
            HDChangePointDetector().fit_predict(X),
        )

    def test_predict_on_new_series_refits(self, single_shift, two_shifts):
        detector = HDChangePointDetector(min_segment=20).fit(single_shift["X"])
        predicted = detector.predict(two_shifts["X"])
        assert len(predicted) == 2
        np.testing.assert_array_equal(detector.change_points_, predicted)

    def test_predict_returns_a_copy(self, single_shift):
        detector = HDChangePointDetector().fit(single_shift["X"])
        predicted = detector.predict(single_shift["X"])
        predicted[:] = -1
        assert (detector.change_points_ >= 0).all()

    def test_fitted_params(self, single_shift):
        detector = HDChangePointDetector().fit(single_shift["X"])
        params = detector.get_fitted_params()
        np.testing.assert_array_equal(params["change_points"], detector.change_points_)
        assert params["segments"][0][0] == 0
        assert params["segments"][-1][1] == single_shift["X"].shape[0]

    def test_predict_before_fit(self, single_shift):
        with pytest.raises(NotFittedError):
            HDChangePointDetector().predict(single_shift["X"])

    def test_fitted_params_before_fit(self):
        with pytest.raises(NotFittedError):
            HDChangePointDetector().get_fitted_params()

    def test_rejects_missing_values(self, single_shift):
        X = single_shift["X"].copy()
        X[3, 3] = np.nan
        with pytest.raises(InvalidInput):
            HDChangePointDetector().fit(X)


# ======================================================================
# Parameters
# ======================================================================


@pytest.mark.parametrize(
    "kwargs",
    [
        {"test": "bootstrap"},
        {"alpha": 0.0},
        {"alpha": 1.0},
        {"min_segment": 1},
        {"test": "permutation", "n_permutations": 0},
        {"axis": 2},
    ],
)
def test_invalid_parameters(kwargs):
    with pytest.raises(InvalidInput):
        HDChangePointDetector(**kwargs)


def test_positional_parameters_are_rejected():
    with pytest.raises(TypeError):
        HDChangePointDetector("profile")


class TestEstimatorProtocol:
    def test_get_params(self):
        detector = HDChangePointDetector(test="permutation", n_permutations=99, random_state=4)
        params = detector.get_params()
        assert params["test"] == "permutation"
        assert params["n_permutations"] == 99
        assert params["random_state"] == 4
        assert params["axis"] == 0

    def test_clone(self):
        detector = HDChangePointDetector(alpha=0.01, min_segment=15)
        cloned = clone(detector)
        assert cloned is not detector
        assert cloned.get_params() == detector.get_params()

    def test_is_a_segmenter(self):
        assert issubclass(HDChangePointDetector, BaseSegmenter)


# ======================================================================
# Tags
# ======================================================================


class TestTags:
    def test_class_tags(self):
        tags = HDChangePointDetector.get_class_tags()
        assert tags["capability:multivariate"] is True
        assert tags["capability:univariate"] is False
        assert tags["detector_type"] == "change_point_detection"
        # inherited from the base class
        assert tags["capability:missing_values"] is False

    def test_unseeded_permutation_is_non_deterministic(self):
        assert HDChangePointDetector(test="permutation").get_tag("non_deterministic")
        assert not HDChangePointDetector(test="permutation", random_state=0).get_tag(
            "non_deterministic"
        )
        assert not HDChangePointDetector().get_tag("non_deterministic")

    def test_non_deterministic_tag_follows_set_params(self):
        detector = HDChangePointDetector()
        detector.set_params(test="permutation")
        assert detector.get_tag("non_deterministic")
        detector.set_params(random_state=7)
        assert not detector.get_tag("non_deterministic")
        assert not clone(detector).get_tag("non_deterministic")

    def test_unknown_tag(self):
        detector = HDChangePointDetector()
        with pytest.raises(ValueError):
            detector.get_tag("capability:teleport")
        assert detector.get_tag("capability:teleport", raise_error=False, tag_value_default=3) == 3


# ======================================================================
# Label conversions
# ======================================================================


def test_to_clusters():
    labels = HDChangePointDetector.to_clusters([3, 7], 10)
    np.testing.assert_array_equal(labels, [0, 0, 0, 1, 1, 1, 1, 2, 2, 2])


def test_to_classification():
    labels = HDChangePointDetector.to_classification([3, 7], 10)
    np.testing.assert_array_equal(labels, [0, 0, 0, 1, 0, 0, 0, 1, 0, 0])

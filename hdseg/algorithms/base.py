"""Base class for hdseg segmenters.

The estimators follow the scikit-learn conventions: hyper-parameters are
keyword arguments of ``__init__`` stored under the same name (so
:meth:`get_params`, :meth:`set_params` and :func:`sklearn.base.clone` work),
data only enters through :meth:`fit` / :meth:`predict`, and fitted state lives
in attributes ending with an underscore.

Capabilities are declared in a class-level ``_tags`` dictionary. Tags are
merged along the MRO, so subclasses only list what they change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.exceptions import NotFittedError

from .exceptions import InvalidInput
from .utils import check_data

__all__ = ["BaseSegmenter"]


class BaseSegmenter(BaseEstimator, ABC):
    """Base class for change point segmenters of high-dimensional sequences.

    Parameters
    ----------
    axis : int, default=0
        Axis of the input holding the observations (time). With ``axis=1``
        the input is transposed before processing.
    """

    _tags: Dict[str, Any] = {
        "capability:univariate": False,
        "capability:multivariate": True,
        "capability:missing_values": False,
        "capability:multithreading": False,
        "non_deterministic": False,
        "fit_is_empty": False,
        "returns_dense": True,
        "detector_type": "change_point_detection",
    }

    def __init__(self, axis: int = 0) -> None:
        if axis not in (0, 1):
            raise InvalidInput("axis should be 0 or 1")
        self.axis = axis
        self.is_fitted = False
        self._tags_dynamic: Dict[str, Any] = {}
        super().__init__()

    # ------------------------------------------------------------------
    # Tag utilities
    # ------------------------------------------------------------------

    @classmethod
    def get_class_tags(cls) -> Dict[str, Any]:
        """Collect class tags respecting inheritance order."""

        collected: Dict[str, Any] = {}
        for parent in reversed(cls.__mro__):
            if "_tags" in vars(parent):
                collected.update(vars(parent)["_tags"])
        return deepcopy(collected)

    def get_tags(self) -> Dict[str, Any]:
        tags = self.get_class_tags()
        tags.update(getattr(self, "_tags_dynamic", {}))
        return tags

    def get_tag(self, tag_name: str, raise_error: bool = True, tag_value_default: Any = None) -> Any:
        tags = self.get_tags()
        if tag_name in tags:
            return tags[tag_name]
        if raise_error:
            raise ValueError(f"Tag with name {tag_name} could not be found.")
        return tag_value_default

    def set_tags(self, **tag_dict: Any) -> "BaseSegmenter":
        self._tags_dynamic.update(deepcopy(tag_dict))
        return self

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fit(self, X: Any, y: Any | None = None, axis: int | None = None) -> "BaseSegmenter":
        if self.get_tag("fit_is_empty"):
            self.is_fitted = True
            return self

        X_inner = self._preprocess(X, self.axis if axis is None else axis)
        self._fit(X_inner, y=y)
        self.is_fitted = True
        return self

    def predict(self, X: Any, axis: int | None = None) -> np.ndarray:
        if not self.get_tag("fit_is_empty"):
            self._check_is_fitted()
        X_inner = self._preprocess(X, self.axis if axis is None else axis)
        return self._predict(X_inner)

    def fit_predict(self, X: Any, y: Any | None = None, axis: int | None = None) -> np.ndarray:
        self.fit(X, y, axis=axis)
        return self.predict(X, axis=axis)

    # Hooks for subclasses ---------------------------------------------

    def _fit(self, X: np.ndarray, y: Any | None = None) -> "BaseSegmenter":
        return self

    @abstractmethod
    def _predict(self, X: np.ndarray) -> np.ndarray:
        ...

    # Helpers ----------------------------------------------------------

    def _preprocess(self, X: Any, axis: int) -> np.ndarray:
        if axis not in (0, 1):
            raise InvalidInput(f"Input axis should be 0 or 1, saw {axis}")
        if axis == 1:
            X = np.asarray(X).T
        return check_data(X)

    def _check_is_fitted(self) -> None:
        if not getattr(self, "is_fitted", False):
            raise NotFittedError(
                f"This instance of {self.__class__.__name__} has not been fitted yet;"
                " please call `fit` first."
            )

    @classmethod
    def to_clusters(cls, change_points, length: int) -> np.ndarray:
        """Label every observation with the index of its segment."""

        labels = np.zeros(length, dtype=int)
        for cp in change_points:
            labels[cp:] += 1
        return labels

    @classmethod
    def to_classification(cls, change_points, length: int) -> np.ndarray:
        """Return a 0/1 vector marking the first observation of each new segment."""

        labels = np.zeros(length, dtype=int)
        labels[np.asarray(change_points, dtype=int)] = 1
        return labels

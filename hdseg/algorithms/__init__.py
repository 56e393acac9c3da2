from .dissimilarity import (
    EuclideanDissimilarity,
    ProfileDissimilarity,
    compute_dissimilarity,
)
from .exceptions import InvalidInput, NumericDegeneracy, UnsupportedSplit
from .hddc import (
    NOT_FOUND,
    Found,
    HDChangePointDetector,
    NotFound,
    multiple_changepoint_detection,
    segment_tree,
    test_single_changepoint,
    test_statistic,
)

__all__ = [
    "EuclideanDissimilarity",
    "Found",
    "HDChangePointDetector",
    "InvalidInput",
    "NOT_FOUND",
    "NotFound",
    "NumericDegeneracy",
    "ProfileDissimilarity",
    "UnsupportedSplit",
    "compute_dissimilarity",
    "multiple_changepoint_detection",
    "segment_tree",
    "test_single_changepoint",
    "test_statistic",
]

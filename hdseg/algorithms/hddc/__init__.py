from .detector import HDChangePointDetector
from .segmentation import SegmentNode, multiple_changepoint_detection, segment_tree
from .significance import (
    NOT_FOUND,
    Found,
    NotFound,
    SignificanceResult,
    asymptotic_test,
    permutation_test,
    test_single_changepoint,
)
from .statistic import ChangePointStatistic, test_statistic

__all__ = [
    "ChangePointStatistic",
    "Found",
    "HDChangePointDetector",
    "NOT_FOUND",
    "NotFound",
    "SegmentNode",
    "SignificanceResult",
    "asymptotic_test",
    "multiple_changepoint_detection",
    "permutation_test",
    "segment_tree",
    "test_single_changepoint",
    "test_statistic",
]

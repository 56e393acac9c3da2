"""
hdseg: change point detection for high-dimensional sequences.
"""

__version__ = "0.1.0"

from .algorithms import (
    HDChangePointDetector,
    compute_dissimilarity,
    multiple_changepoint_detection,
    test_single_changepoint,
    test_statistic,
)

__all__ = [
    "HDChangePointDetector",
    "compute_dissimilarity",
    "multiple_changepoint_detection",
    "test_single_changepoint",
    "test_statistic",
]

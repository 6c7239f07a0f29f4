"""Object classifier validation against ground-truth point annotations."""

from .classifiers import (
    ClassificationError,
    ObjectClassifier,
    PassthroughClassifier,
    SerializedClassifier,
    SingleMeasurementClassifier,
    load_classifier,
)
from .confusion import UNMATCHED, ConfusionAggregate
from .data import ClassExtraction, extract_ground_truth_classes, select_entries
from .matching import MatchPolicy, match_entry, match_points
from .pipeline import ValidationConfig, ValidationResult, run_validation
from .reporting import ConfusionMatrix, ValidationReport, build_matrix, build_report, write_reports
from .scoring import EntryStatistics, compute_entry_statistics, f1_score, safe_ratio
from .types import EntryOutcome, ImageEntry

__all__ = [
    "ClassificationError",
    "ObjectClassifier",
    "PassthroughClassifier",
    "SerializedClassifier",
    "SingleMeasurementClassifier",
    "load_classifier",
    "UNMATCHED",
    "ConfusionAggregate",
    "ClassExtraction",
    "extract_ground_truth_classes",
    "select_entries",
    "MatchPolicy",
    "match_entry",
    "match_points",
    "ValidationConfig",
    "ValidationResult",
    "run_validation",
    "ConfusionMatrix",
    "ValidationReport",
    "build_matrix",
    "build_report",
    "write_reports",
    "EntryStatistics",
    "compute_entry_statistics",
    "f1_score",
    "safe_ratio",
    "EntryOutcome",
    "ImageEntry",
]

from __future__ import annotations

import logging

from conftest import FakeEntry, point, square

from classifier_validation import extract_ground_truth_classes, select_entries
from project_io import PathClass


def test_select_entries_exact_match_in_input_order() -> None:
    entries = [
        FakeEntry(3, metadata={"Set": "Validation"}),
        FakeEntry(1, metadata={"Set": "Training"}),
        FakeEntry(2, metadata={"Set": "validation"}),
        FakeEntry(4, metadata={}),
        FakeEntry(5, metadata={"Set": "Validation", "Other": "x"}),
    ]

    selected = select_entries(entries, "Set", "Validation")

    assert [e.stable_id for e in selected] == [3, 5]


def test_select_entries_empty_value_only_matches_empty_value() -> None:
    entries = [FakeEntry(1, metadata={"Set": ""}), FakeEntry(2, metadata={})]
    assert [e.stable_id for e in select_entries(entries, "Set", "")] == [1]


def test_extract_classes_sorted_unique_points_only() -> None:
    entries = [
        FakeEntry(1, annotations=[point(0, 0, "Tumor"), point(1, 1, "Immune"), point(2, 2, None)]),
        FakeEntry(2, annotations=[point(3, 3, "Tumor")], detections=[square(0, 0, 5, 5, "Stroma")]),
    ]

    extraction = extract_ground_truth_classes(entries)

    assert extraction.classes == (PathClass("Immune"), PathClass("Tumor"))
    assert extraction.failed == {}


def test_extract_classes_ignores_non_point_annotations() -> None:
    line = point(0, 0, "Line", (5, 5))
    line.roi_type = "line"
    extraction = extract_ground_truth_classes([FakeEntry(1, annotations=[line])])
    assert extraction.classes == ()


def test_extract_classes_continues_after_read_failure(caplog) -> None:
    entries = [
        FakeEntry(1, annotations=[point(0, 0, "A")]),
        FakeEntry(2, name="broken", annotations=[point(0, 0, "Z")], fail_on=["annotations"]),
        FakeEntry(3, annotations=[point(0, 0, "B")]),
    ]

    with caplog.at_level(logging.WARNING, logger="classifier_validation"):
        extraction = extract_ground_truth_classes(entries)

    assert extraction.classes == (PathClass("A"), PathClass("B"))
    assert list(extraction.failed) == [2]
    assert "broken" in caplog.text

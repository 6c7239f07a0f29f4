from __future__ import annotations

import csv
import json
from pathlib import Path

from classifier_validation import ConfusionAggregate, EntryOutcome, build_matrix, build_report, write_reports
from classifier_validation.reporting import format_ratio
from classifier_validation.types import STATUS_OK, STATUS_READ_FAILED
from project_io import PathClass
from validation_config import build_layout

A = PathClass("A")
B = PathClass("B")


def _read_csv(path: Path) -> list[list[str]]:
    with path.open("r", encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


def _report():
    agg = ConfusionAggregate()
    agg.increment(2, A, A, 2)
    agg.increment(2, B, A, 1)
    agg.increment("b", B, B, 1)
    agg.register(10)
    outcomes = [
        EntryOutcome(entry_id="b", name="slide-b", status=STATUS_OK),
        EntryOutcome(entry_id=10, name="slide-10", status=STATUS_OK),
        EntryOutcome(entry_id=2, name="slide-2", status=STATUS_OK),
        EntryOutcome(entry_id=5, name="slide-5", status=STATUS_READ_FAILED, message="disk error"),
    ]
    return build_report(classifier_name="stored", aggregate=agg, classes=[A, B], outcomes=outcomes)


def test_build_matrix_rows_are_ground_truth() -> None:
    agg = ConfusionAggregate()
    agg.increment(1, A, B, 2)
    agg.increment(2, A, B, 1)
    agg.increment(2, B, None, 4)

    matrix = build_matrix(agg, [A, B], include_unmatched=True)

    assert matrix.cells.tolist() == [[0, 3, 0], [0, 0, 4]]
    assert matrix.column_labels() == ["Predicted - A", "Predicted - B", "Unmatched"]
    assert matrix.as_table()[0] == {"Ground Truth": "GT - A", "Predicted - A": 0, "Predicted - B": 3, "Unmatched": 0}


def test_build_report_orders_entries_by_stable_id() -> None:
    report = _report()

    assert [s.entry_id for s in report.entries] == [2, 10, "b"]
    assert report.selected_count == 4
    assert [o.entry_id for o in report.skipped] == [5]
    assert (report.totals.tp, report.totals.fp, report.totals.fn) == (3, 1, 1)


def test_write_reports_outputs(tmp_path) -> None:
    report = _report()
    layout = build_layout(reports_root=tmp_path / "reports", classifier_name="stored", run_id="r1")

    out = write_reports(layout, report, {"run_id": "r1"})

    matches = _read_csv(Path(out["matches_csv"]))
    assert matches == [
        ["Ground Truth", "Predicted - A", "Predicted - B"],
        ["GT - A", "2", "0"],
        ["GT - B", "1", "1"],
    ]

    per_image = _read_csv(Path(out["per_image_csv"]))
    assert per_image[0] == ["Entry Name", "TP", "FP", "FN", "Precision", "Recall", "F1 Score"]
    assert per_image[1][:4] == ["slide-2", "2", "1", "1"]
    assert per_image[2] == ["slide-10", "0", "0", "0", "NaN", "NaN", "NaN"]
    assert per_image[3] == ["slide-b", "1", "0", "0", "1.000000", "1.000000", "1.000000"]

    payload = json.loads(Path(out["report_json"]).read_text(encoding="utf-8"))
    assert payload["classes"] == ["A", "B"]
    assert payload["matrix"]["cells"] == [[2, 0], [1, 1]]
    assert payload["entries"][1]["precision"] is None
    assert payload["skipped"] == [{"entry_id": 5, "name": "slide-5", "status": "read_failed", "message": "disk error"}]
    assert payload["config"] == {"run_id": "r1"}

    summary = Path(out["summary_md"]).read_text(encoding="utf-8")
    assert "- TP / FP / FN: 3 / 1 / 1" in summary
    assert "slide-10: TP=0, FP=0, FN=0, precision=n/a" in summary
    assert "- slide-5: read_failed (disk error)" in summary

    latest = json.loads(layout.latest_run_json.read_text(encoding="utf-8"))
    assert latest == {"classifier": "stored", "run_root": str(layout.run_root)}


def test_format_ratio() -> None:
    assert format_ratio(None) == "n/a"
    assert format_ratio(0.5) == "0.5000"


def test_build_matrix_skips_classes_outside_the_canonical_set() -> None:
    agg = ConfusionAggregate()
    agg.increment(1, A, A, 2)
    agg.increment(1, PathClass("Z"), A, 5)
    agg.increment(1, A, None, 1)

    matrix = build_matrix(agg, [A])

    assert matrix.cells.tolist() == [[2]]

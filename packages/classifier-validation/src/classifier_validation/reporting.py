from __future__ import annotations

import csv
from dataclasses import dataclass, field
import json
import math
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from project_io import PathClass
from validation_config import ReportLayout

from .confusion import UNMATCHED, ConfusionAggregate
from .scoring import EntryStatistics, compute_entry_statistics, summarize_totals
from .types import EntryOutcome, entry_sort_key

LABEL_COLUMN = "Ground Truth"
UNMATCHED_LABEL = "Unmatched"
PER_IMAGE_COLUMNS = ["Entry Name", "TP", "FP", "FN", "Precision", "Recall", "F1 Score"]


@dataclass(slots=True)
class ConfusionMatrix:
    classes: list[PathClass]
    columns: list[PathClass | None]
    cells: np.ndarray  # (len(classes), len(columns)) int64

    def cell(self, gt: PathClass, pred: PathClass | None) -> int:
        return int(self.cells[self.classes.index(gt), self.columns.index(pred)])

    def column_labels(self) -> list[str]:
        return [
            f"Predicted - {c.name}" if c is not None else UNMATCHED_LABEL
            for c in self.columns
        ]

    def as_table(self) -> list[dict[str, Any]]:
        labels = self.column_labels()
        rows: list[dict[str, Any]] = []
        for i, gt in enumerate(self.classes):
            row: dict[str, Any] = {LABEL_COLUMN: f"GT - {gt.name}"}
            for j, label in enumerate(labels):
                row[label] = int(self.cells[i, j])
            rows.append(row)
        return rows


@dataclass(slots=True)
class ValidationReport:
    classifier_name: str
    classes: list[PathClass]
    matrix: ConfusionMatrix
    entries: list[EntryStatistics]
    totals: EntryStatistics
    selected_count: int
    skipped: list[EntryOutcome] = field(default_factory=list)
    cancelled: bool = False

    def per_image_table(self) -> list[dict[str, Any]]:
        return [
            {
                "Entry Name": s.name,
                "TP": s.tp,
                "FP": s.fp,
                "FN": s.fn,
                "Precision": s.precision,
                "Recall": s.recall,
                "F1 Score": s.f1,
            }
            for s in self.entries
        ]


def build_matrix(
    aggregate: ConfusionAggregate,
    classes: Sequence[PathClass],
    *,
    include_unmatched: bool = False,
) -> ConfusionMatrix:
    columns: list[PathClass | None] = list(classes)
    if include_unmatched:
        columns.append(UNMATCHED)
    rows = {c: i for i, c in enumerate(classes)}
    cols = {c: j for j, c in enumerate(columns)}
    cells = np.zeros((len(classes), len(columns)), dtype=np.int64)
    for (_, gt, pred), value in aggregate.items():
        if gt in rows and pred in cols:
            cells[rows[gt], cols[pred]] += value
    return ConfusionMatrix(classes=list(classes), columns=columns, cells=cells)


def build_report(
    *,
    classifier_name: str,
    aggregate: ConfusionAggregate,
    classes: Sequence[PathClass],
    outcomes: Sequence[EntryOutcome],
    include_unmatched: bool = False,
    cancelled: bool = False,
) -> ValidationReport:
    processed = sorted((o for o in outcomes if o.ok), key=lambda o: entry_sort_key(o.entry_id))
    entries = [compute_entry_statistics(aggregate, o.entry_id, o.name, classes) for o in processed]
    return ValidationReport(
        classifier_name=classifier_name,
        classes=list(classes),
        matrix=build_matrix(aggregate, classes, include_unmatched=include_unmatched),
        entries=entries,
        totals=summarize_totals(entries),
        selected_count=len(outcomes),
        skipped=[o for o in outcomes if not o.ok],
        cancelled=cancelled,
    )


def _csv_value(v: Any) -> Any:
    if v is None:
        return "NaN"
    if isinstance(v, float):
        return "NaN" if math.isnan(v) else f"{v:.6f}"
    return v


def _write_csv(path: Path, columns: list[str], rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: _csv_value(row.get(k)) for k in columns})


def format_ratio(v: float | None, digits: int = 4) -> str:
    if v is None:
        return "n/a"
    return f"{float(v):.{digits}f}"


def report_payload(report: ValidationReport, config: dict[str, Any]) -> dict[str, Any]:
    return {
        "classifier": report.classifier_name,
        "config": config,
        "classes": [c.name for c in report.classes],
        "matrix": {
            "rows": [c.name for c in report.matrix.classes],
            "columns": [c.name if c is not None else UNMATCHED_LABEL for c in report.matrix.columns],
            "cells": report.matrix.cells.tolist(),
        },
        "entries": [s.as_dict() for s in report.entries],
        "totals": report.totals.as_dict(),
        "selected_entries": report.selected_count,
        "processed_entries": len(report.entries),
        "skipped": [
            {"entry_id": o.entry_id, "name": o.name, "status": o.status, "message": o.message}
            for o in report.skipped
        ],
        "cancelled": report.cancelled,
    }


def write_reports(layout: ReportLayout, report: ValidationReport, config: dict[str, Any]) -> dict[str, str]:
    layout.run_root.mkdir(parents=True, exist_ok=True)

    _write_csv(
        layout.matches_csv,
        [LABEL_COLUMN, *report.matrix.column_labels()],
        report.matrix.as_table(),
    )
    _write_csv(layout.per_image_csv, PER_IMAGE_COLUMNS, report.per_image_table())

    payload = report_payload(report, config)
    layout.report_json.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")

    totals = report.totals
    lines = [
        f"# {report.classifier_name} - Validation Summary",
        "",
        f"- classes: {', '.join(c.name for c in report.classes) or 'none'}",
        f"- entries selected: {report.selected_count}",
        f"- entries processed: {len(report.entries)}",
        f"- entries skipped: {len(report.skipped)}",
        f"- TP / FP / FN: {totals.tp} / {totals.fp} / {totals.fn}",
        f"- precision: {format_ratio(totals.precision)}",
        f"- recall: {format_ratio(totals.recall)}",
        f"- F1 score: {format_ratio(totals.f1)}",
    ]
    if report.cancelled:
        lines.append("- run was cancelled before all entries were processed")
    lines.extend(["", "## Per Image"])
    for s in report.entries:
        lines.append(
            f"- {s.name}: TP={s.tp}, FP={s.fp}, FN={s.fn}, "
            f"precision={format_ratio(s.precision)}, recall={format_ratio(s.recall)}, f1={format_ratio(s.f1)}"
        )
    if report.skipped:
        lines.extend(["", "## Skipped"])
        for o in report.skipped:
            lines.append(f"- {o.name}: {o.status} ({o.message})")
    layout.summary_md.write_text("\n".join(lines) + "\n", encoding="utf-8")

    layout.latest_run_json.parent.mkdir(parents=True, exist_ok=True)
    layout.latest_run_json.write_text(
        json.dumps({"classifier": layout.classifier_key, "run_root": str(layout.run_root)}, indent=2),
        encoding="utf-8",
    )

    return {
        "matches_csv": str(layout.matches_csv),
        "per_image_csv": str(layout.per_image_csv),
        "report_json": str(layout.report_json),
        "summary_md": str(layout.summary_md),
    }

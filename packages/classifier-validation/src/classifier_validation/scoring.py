from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Sequence

from project_io import PathClass

from .confusion import ConfusionAggregate


@dataclass(slots=True)
class EntryStatistics:
    entry_id: Hashable
    name: str
    tp: int
    fp: int
    fn: int
    precision: float | None
    recall: float | None
    f1: float | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "name": self.name,
            "tp": self.tp,
            "fp": self.fp,
            "fn": self.fn,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
        }


def safe_ratio(num: float, den: float) -> float | None:
    """``num / den``, or None when the denominator is zero."""
    if den <= 0:
        return None
    return float(num / den)


def f1_score(precision: float | None, recall: float | None) -> float | None:
    if precision is None or recall is None:
        return None
    return safe_ratio(2.0 * precision * recall, precision + recall)


def micro_counts(aggregate: ConfusionAggregate, entry_id: Hashable, classes: Iterable[PathClass]) -> tuple[int, int, int]:
    tp = fp = fn = 0
    for gt in classes:
        tp += aggregate.get_tp(entry_id, gt)
        fp += aggregate.get_fp(entry_id, gt)
        fn += aggregate.get_fn(entry_id, gt)
    return tp, fp, fn


def statistics_from_counts(entry_id: Hashable, name: str, tp: int, fp: int, fn: int) -> EntryStatistics:
    precision = safe_ratio(tp, tp + fp)
    recall = safe_ratio(tp, tp + fn)
    return EntryStatistics(
        entry_id=entry_id,
        name=name,
        tp=int(tp),
        fp=int(fp),
        fn=int(fn),
        precision=precision,
        recall=recall,
        f1=f1_score(precision, recall),
    )


def compute_entry_statistics(
    aggregate: ConfusionAggregate,
    entry_id: Hashable,
    name: str,
    classes: Sequence[PathClass],
) -> EntryStatistics:
    tp, fp, fn = micro_counts(aggregate, entry_id, classes)
    return statistics_from_counts(entry_id, name, tp, fp, fn)


def summarize_totals(rows: Sequence[EntryStatistics]) -> EntryStatistics:
    return statistics_from_counts(
        "all",
        "All entries",
        sum(r.tp for r in rows),
        sum(r.fp for r in rows),
        sum(r.fn for r in rows),
    )

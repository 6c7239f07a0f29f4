from __future__ import annotations

from collections import Counter
from typing import Hashable, Iterator

from project_io import PathClass

# Predicted-class key for ground-truth points no qualifying detection contains.
UNMATCHED = None

CellKey = tuple[PathClass, "PathClass | None"]
CountKey = tuple[Hashable, PathClass, "PathClass | None"]


class ConfusionAggregate:
    """Match counts keyed by ``(entry id, ground-truth class, predicted class)``.

    Counts are held in one ``Counter`` per entry, so per-entry totals only
    touch that entry's cells. Counts only ever grow during a run. Every query
    defaults to 0 for keys that were never incremented.
    """

    def __init__(self) -> None:
        self._shards: dict[Hashable, Counter[CellKey]] = {}

    def register(self, entry_id: Hashable) -> Counter[CellKey]:
        shard = self._shards.get(entry_id)
        if shard is None:
            shard = self._shards[entry_id] = Counter()
        return shard

    def increment(self, entry_id: Hashable, gt: PathClass, pred: PathClass | None, count: int = 1) -> None:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        self.register(entry_id)[(gt, pred)] += count

    def merge(self, other: ConfusionAggregate) -> None:
        for entry_id, cells in other._shards.items():
            self.register(entry_id).update(cells)

    def entry_ids(self) -> list[Hashable]:
        return list(self._shards)

    def items(self) -> Iterator[tuple[CountKey, int]]:
        for entry_id, cells in self._shards.items():
            for (gt, pred), value in cells.items():
                yield (entry_id, gt, pred), value

    def count(self, entry_id: Hashable, gt: PathClass, pred: PathClass | None) -> int:
        cells = self._shards.get(entry_id)
        if cells is None:
            return 0
        return cells.get((gt, pred), 0)

    def total(self) -> int:
        return int(sum(sum(cells.values()) for cells in self._shards.values()))

    def sum_across_entries(self, gt: PathClass, pred: PathClass | None) -> int:
        return int(sum(cells.get((gt, pred), 0) for cells in self._shards.values()))

    def row_total(self, entry_id: Hashable, gt: PathClass) -> int:
        cells = self._shards.get(entry_id, {})
        return int(sum(v for (g, _), v in cells.items() if g == gt))

    def column_total(self, entry_id: Hashable, pred: PathClass) -> int:
        cells = self._shards.get(entry_id, {})
        return int(sum(v for (_, p), v in cells.items() if p == pred))

    def get_tp(self, entry_id: Hashable, gt: PathClass) -> int:
        return self.count(entry_id, gt, gt)

    def get_fn(self, entry_id: Hashable, gt: PathClass) -> int:
        return self.row_total(entry_id, gt) - self.get_tp(entry_id, gt)

    def get_fp(self, entry_id: Hashable, gt: PathClass) -> int:
        return self.column_total(entry_id, gt) - self.get_tp(entry_id, gt)

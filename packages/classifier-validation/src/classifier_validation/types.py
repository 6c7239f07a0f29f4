from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Hashable, Protocol, Sequence

from project_io import AnnotationObject, DetectionRegion

if TYPE_CHECKING:
    from .confusion import ConfusionAggregate

STATUS_OK = "ok"
STATUS_READ_FAILED = "read_failed"
STATUS_CLASSIFICATION_FAILED = "classification_failed"
STATUS_MATCH_FAILED = "match_failed"
STATUS_CANCELLED = "cancelled"


class ImageEntry(Protocol):
    """One image of a project, read lazily on every call."""

    @property
    def name(self) -> str: ...

    @property
    def stable_id(self) -> Hashable: ...

    def metadata(self) -> dict[str, str]: ...

    def read_annotations(self) -> Sequence[AnnotationObject]: ...

    def read_detections(self) -> Sequence[DetectionRegion]: ...

    def read_image_data(self) -> Any: ...


@dataclass(slots=True)
class EntryOutcome:
    entry_id: Hashable
    name: str
    status: str
    message: str | None = None
    counts: ConfusionAggregate | None = None
    num_points: int = 0
    num_detections: int = 0

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


def entry_sort_key(stable_id: Hashable) -> tuple[int, Any]:
    if isinstance(stable_id, int) and not isinstance(stable_id, bool):
        return (0, stable_id)
    return (1, str(stable_id))

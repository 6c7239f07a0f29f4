from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Hashable, Iterable, Sequence

from project_io import AnnotationObject, PathClass

from .types import ImageEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClassExtraction:
    classes: tuple[PathClass, ...]
    failed: dict[Hashable, str] = field(default_factory=dict)


def select_entries(entries: Iterable[ImageEntry], metadata_key: str, metadata_value: str) -> list[ImageEntry]:
    """Entries whose metadata maps ``metadata_key`` to exactly ``metadata_value``, in input order."""
    selected: list[ImageEntry] = []
    for entry in entries:
        metadata = entry.metadata()
        if metadata_key in metadata and metadata[metadata_key] == metadata_value:
            selected.append(entry)
    return selected


def point_annotations(annotations: Iterable[AnnotationObject]) -> list[AnnotationObject]:
    return [a for a in annotations if a.is_point]


def extract_ground_truth_classes(entries: Sequence[ImageEntry]) -> ClassExtraction:
    found: set[PathClass | None] = set()
    failed: dict[Hashable, str] = {}
    for entry in entries:
        try:
            points = point_annotations(entry.read_annotations())
        except Exception as exc:
            logger.warning("Could not read annotations for %s: %s", entry.name, exc)
            failed[entry.stable_id] = str(exc)
            continue
        found.update(p.path_class for p in points)
    classes = tuple(sorted(c for c in found if c is not None))
    return ClassExtraction(classes=classes, failed=failed)

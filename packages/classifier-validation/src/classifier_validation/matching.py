from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Hashable, Iterable, Sequence

from project_io import AnnotationObject, DetectionRegion, PathClass

from .classifiers import ObjectClassifier
from .confusion import UNMATCHED, ConfusionAggregate
from .data import point_annotations
from .geometry import containing_detections, detection_boxes
from .types import (
    STATUS_CLASSIFICATION_FAILED,
    STATUS_MATCH_FAILED,
    STATUS_OK,
    STATUS_READ_FAILED,
    EntryOutcome,
    ImageEntry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatchPolicy:
    """How a ground-truth coordinate turns into counts.

    With both flags off every qualifying detection containing a coordinate
    adds one count, and a coordinate no qualifying detection contains adds
    nothing.
    """

    deduplicate_overlaps: bool = False
    count_unmatched_points: bool = False


def match_points(
    entry_id: Hashable,
    points: Iterable[AnnotationObject],
    detections: Sequence[DetectionRegion],
    classes: Iterable[PathClass],
    policy: MatchPolicy = MatchPolicy(),
) -> ConfusionAggregate:
    allowed = frozenset(classes)
    shard = ConfusionAggregate()
    shard.register(entry_id)

    qualifying = [d for d in detections if d.path_class in allowed]
    boxes = detection_boxes(qualifying)
    for point in points:
        if not point.is_point or point.path_class not in allowed:
            continue
        for x, y in point.coordinates:
            hits = containing_detections(float(x), float(y), qualifying, boxes)
            if not hits:
                if policy.count_unmatched_points:
                    shard.increment(entry_id, point.path_class, UNMATCHED)
                continue
            if policy.deduplicate_overlaps:
                hits = [min(hits, key=lambda d: d.area())]
            for det in hits:
                shard.increment(entry_id, point.path_class, det.path_class)
    return shard


def match_entry(
    entry: ImageEntry,
    classifier: ObjectClassifier,
    classes: Sequence[PathClass],
    *,
    policy: MatchPolicy = MatchPolicy(),
    compute_measurements: bool = True,
) -> EntryOutcome:
    entry_id = entry.stable_id
    try:
        detections = list(entry.read_detections())
        points = point_annotations(entry.read_annotations())
        image_data = entry.read_image_data()
    except Exception as exc:
        logger.warning("Could not read objects for %s: %s", entry.name, exc)
        return EntryOutcome(entry_id=entry_id, name=entry.name, status=STATUS_READ_FAILED, message=str(exc))

    try:
        classifier.classify(image_data, detections, compute_measurements)
    except Exception as exc:
        logger.warning("Classifier %s failed on %s: %s", classifier.name, entry.name, exc)
        return EntryOutcome(
            entry_id=entry_id,
            name=entry.name,
            status=STATUS_CLASSIFICATION_FAILED,
            message=str(exc),
            num_points=len(points),
            num_detections=len(detections),
        )

    try:
        shard = match_points(entry_id, points, detections, classes, policy)
    except Exception as exc:
        logger.warning("Could not match points for %s: %s", entry.name, exc)
        return EntryOutcome(
            entry_id=entry_id,
            name=entry.name,
            status=STATUS_MATCH_FAILED,
            message=str(exc),
            num_points=len(points),
            num_detections=len(detections),
        )
    logger.debug(
        "%s: %d points, %d detections, %d matches",
        entry.name,
        len(points),
        len(detections),
        shard.total(),
    )
    return EntryOutcome(
        entry_id=entry_id,
        name=entry.name,
        status=STATUS_OK,
        counts=shard,
        num_points=len(points),
        num_detections=len(detections),
    )

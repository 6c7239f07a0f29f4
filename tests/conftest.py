from __future__ import annotations

import copy
from typing import Any, Sequence

import numpy as np
import pytest

from classifier_validation.classifiers import ObjectClassifier
from project_io import AnnotationObject, DetectionRegion, ImageData, PathClass, PolygonPart


def square(x0: float, y0: float, x1: float, y1: float, cls: str | None = None, object_id: str | None = None) -> DetectionRegion:
    ring = np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], dtype=np.float64)
    return DetectionRegion(object_id=object_id, parts=[PolygonPart(exterior=ring)], path_class=PathClass.from_name(cls))


def point(x: float, y: float, cls: str | None, *more: tuple[float, float]) -> AnnotationObject:
    coords = np.array([[x, y], *more], dtype=np.float64)
    return AnnotationObject(object_id=None, roi_type="point", coordinates=coords, path_class=PathClass.from_name(cls))


class FakeEntry:
    def __init__(
        self,
        stable_id: Any,
        name: str | None = None,
        metadata: dict[str, str] | None = None,
        annotations: Sequence[AnnotationObject] = (),
        detections: Sequence[DetectionRegion] = (),
        fail_on: Sequence[str] = (),
    ) -> None:
        self.stable_id = stable_id
        self.name = name or f"entry-{stable_id}"
        self._metadata = dict(metadata if metadata is not None else {"Set": "Validation"})
        self._annotations = list(annotations)
        self._detections = list(detections)
        self.fail_on = set(fail_on)
        self.reads: list[str] = []

    def metadata(self) -> dict[str, str]:
        return dict(self._metadata)

    def _read(self, what: str, payload: Any) -> Any:
        self.reads.append(what)
        if what in self.fail_on:
            raise OSError(f"cannot read {what} of {self.name}")
        return copy.deepcopy(payload)

    def read_annotations(self) -> list[AnnotationObject]:
        return self._read("annotations", self._annotations)

    def read_detections(self) -> list[DetectionRegion]:
        return self._read("detections", self._detections)

    def read_image_data(self) -> ImageData:
        return self._read("image", ImageData(name=self.name))


class FixedClassifier(ObjectClassifier):
    """Assigns classes by detection object id; unknown ids keep their stored class."""

    def __init__(self, classes_by_id: dict[str, str] | None = None, *, fail_for: Sequence[str] = (), thread_safe: bool = True) -> None:
        self.name = "fixed"
        self.classes_by_id = dict(classes_by_id or {})
        self.fail_for = set(fail_for)
        self.thread_safe = thread_safe
        self.calls: list[str] = []

    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        self.calls.append(image_data.name)
        if image_data.name in self.fail_for:
            raise RuntimeError(f"model exploded on {image_data.name}")
        for det in detections:
            if det.object_id in self.classes_by_id:
                det.path_class = PathClass.from_name(self.classes_by_id[det.object_id])


@pytest.fixture
def scenario_a_entry() -> FakeEntry:
    return FakeEntry(
        1,
        annotations=[point(5, 5, "A"), point(25, 5, "A"), point(45, 5, "B")],
        detections=[
            square(0, 0, 10, 10, "A"),
            square(20, 0, 30, 10, "A"),
            square(40, 0, 50, 10, "B"),
        ],
    )

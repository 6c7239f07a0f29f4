"""Classifier capabilities that assign predicted classes to detections.

A classifier overwrites ``path_class`` on each detection it is handed, in
place. Validation only consumes this capability; nothing here trains or
persists a model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import importlib
from threading import Lock
from typing import Any, Sequence

import numpy as np

from project_io import DetectionRegion, PathClass

from .geometry import add_intensity_measurements


class ClassificationError(RuntimeError):
    pass


class ObjectClassifier(ABC):
    name: str = "classifier"
    thread_safe: bool = True

    @abstractmethod
    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        """Assign a predicted class to every detection in place."""

    def __str__(self) -> str:
        return self.name


class PassthroughClassifier(ObjectClassifier):
    """Keeps the classes already stored on the detections."""

    def __init__(self, name: str = "stored") -> None:
        self.name = name

    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        return None


class SingleMeasurementClassifier(ObjectClassifier):
    """Threshold one detection measurement into an ``above`` and a ``below`` class.

    With ``compute_measurements`` the per-detection intensity statistics of
    ``channel`` (``Channel N: Mean/Min/Max``) are computed from the pixels
    first. Detections missing the measurement, or holding NaN, end up
    unclassified.
    """

    def __init__(
        self,
        measurement: str,
        threshold: float,
        above: PathClass | None,
        below: PathClass | None = None,
        *,
        channel: int = 0,
        inclusive: bool = True,
        name: str | None = None,
    ) -> None:
        self.measurement = measurement
        self.threshold = float(threshold)
        self.above = above
        self.below = below
        self.channel = int(channel)
        self.inclusive = bool(inclusive)
        self.name = name or f"{measurement} >= {self.threshold:g}"

    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        if compute_measurements and detections:
            try:
                add_intensity_measurements(image_data.pixels(), detections, self.channel)
            except (OSError, ValueError) as exc:
                raise ClassificationError(f"could not measure detections: {exc}") from exc
        for det in detections:
            value = det.measurements.get(self.measurement)
            if value is None or not np.isfinite(value):
                det.path_class = None
                continue
            hit = value >= self.threshold if self.inclusive else value > self.threshold
            det.path_class = self.above if hit else self.below


class PluginClassifier(ObjectClassifier):
    """Adapter for any object exposing ``classify(image_data, detections, compute_measurements)``."""

    def __init__(self, inner: Any, name: str) -> None:
        if not callable(getattr(inner, "classify", None)):
            raise TypeError(f"plugin classifier {inner!r} has no classify() method")
        self.inner = inner
        self.name = name
        self.thread_safe = bool(getattr(inner, "thread_safe", False))

    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        self.inner.classify(image_data, detections, compute_measurements)


class SerializedClassifier(ObjectClassifier):
    """Runs one ``classify`` call at a time for classifiers that are not thread safe."""

    thread_safe = True

    def __init__(self, inner: ObjectClassifier) -> None:
        self.inner = inner
        self.name = inner.name
        self._lock = Lock()

    def classify(self, image_data: Any, detections: Sequence[DetectionRegion], compute_measurements: bool) -> None:
        with self._lock:
            self.inner.classify(image_data, detections, compute_measurements)


def import_factory(path: str) -> Any:
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"plugin factory must look like 'package.module:factory', got '{path}'")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target


def load_classifier(spec: dict[str, Any]) -> ObjectClassifier:
    kind = str(spec.get("kind", "passthrough"))
    name = str(spec.get("name") or kind)
    options = dict(spec.get("options") or {})

    if kind == "passthrough":
        return PassthroughClassifier(name=name)

    if kind == "single_measurement":
        missing = sorted({"measurement", "threshold", "above"} - set(options))
        if missing:
            raise ValueError(f"missing required keys in classifier.options: {missing}")
        return SingleMeasurementClassifier(
            measurement=str(options["measurement"]),
            threshold=float(options["threshold"]),
            above=PathClass.from_name(options["above"]),
            below=PathClass.from_name(options.get("below")),
            channel=int(options.get("channel", 0)),
            inclusive=bool(options.get("inclusive", True)),
            name=name,
        )

    if kind == "plugin":
        factory = import_factory(str(spec["factory"]))
        inner = factory(**options)
        if isinstance(inner, ObjectClassifier):
            return inner
        return PluginClassifier(inner, name=name)

    raise ValueError(f"unsupported classifier kind: {kind}")

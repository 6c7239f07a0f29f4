from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering

import numpy as np

from .geometry import point_in_polygon, polygon_area, polygon_bounds

POINT_ROI = "point"
POLYGON_ROI = "polygon"
LINE_ROI = "line"


@total_ordering
@dataclass(frozen=True, slots=True)
class PathClass:
    name: str

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PathClass):
            return NotImplemented
        return self.name < other.name

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_name(cls, name: str | None) -> PathClass | None:
        if name is None:
            return None
        name = str(name)
        if not name:
            return None
        return cls(name)


@dataclass(slots=True)
class AnnotationObject:
    object_id: str | None
    roi_type: str
    coordinates: np.ndarray  # (N, 2) pixel coordinates
    path_class: PathClass | None = None

    @property
    def is_point(self) -> bool:
        return self.roi_type == POINT_ROI


@dataclass(slots=True)
class PolygonPart:
    exterior: np.ndarray  # (M, 2)
    holes: list[np.ndarray] = field(default_factory=list)

    def area(self) -> float:
        return polygon_area(self.exterior) - sum(polygon_area(h) for h in self.holes)

    def contains(self, x: float, y: float) -> bool:
        if point_in_polygon(self.exterior, x, y) < 0:
            return False
        # on a hole boundary is still on the region boundary
        return all(point_in_polygon(h, x, y) <= 0 for h in self.holes)


@dataclass(slots=True)
class DetectionRegion:
    object_id: str | None
    parts: list[PolygonPart]
    path_class: PathClass | None = None
    measurements: dict[str, float] = field(default_factory=dict)

    def bounds(self) -> tuple[float, float, float, float]:
        boxes = [polygon_bounds(p.exterior) for p in self.parts]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def area(self) -> float:
        return float(sum(p.area() for p in self.parts))

    def contains(self, x: float, y: float) -> bool:
        """Boundary-inclusive containment of a pixel coordinate."""
        return any(p.contains(x, y) for p in self.parts)

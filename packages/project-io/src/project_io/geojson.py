from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

import numpy as np

from .geometry import as_points_px, as_ring_px
from .objects import LINE_ROI, POINT_ROI, POLYGON_ROI, AnnotationObject, DetectionRegion, PathClass, PolygonPart

ANNOTATION_TYPES = {"annotation"}
DETECTION_TYPES = {"detection", "cell", "tile"}


@dataclass(slots=True)
class ObjectCollection:
    annotations: list[AnnotationObject] = field(default_factory=list)
    detections: list[DetectionRegion] = field(default_factory=list)


def _parse_class(props: dict[str, Any]) -> PathClass | None:
    raw = props.get("classification")
    if raw is None:
        return None
    if isinstance(raw, str):
        return PathClass.from_name(raw)
    if isinstance(raw, dict):
        return PathClass.from_name(raw.get("name"))
    raise ValueError(f"unsupported classification value: {raw!r}")


def _parse_measurements(props: dict[str, Any]) -> dict[str, float]:
    raw = props.get("measurements")
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(k): float(v) for k, v in raw.items() if v is not None}
    if isinstance(raw, list):
        out: dict[str, float] = {}
        for item in raw:
            if item.get("value") is None:
                continue
            out[str(item["name"])] = float(item["value"])
        return out
    raise ValueError(f"unsupported measurements value: {raw!r}")


def _polygon_parts(geometry: dict[str, Any]) -> list[PolygonPart]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "Polygon":
        polys = [coords]
    elif gtype == "MultiPolygon":
        polys = list(coords)
    else:
        raise ValueError(f"detection geometry must be Polygon or MultiPolygon, got {gtype}")
    if not polys:
        raise ValueError(f"{gtype} detection without polygons")
    parts: list[PolygonPart] = []
    for rings in polys:
        if not rings:
            raise ValueError("polygon without rings")
        parts.append(
            PolygonPart(
                exterior=as_ring_px(rings[0]),
                holes=[as_ring_px(r) for r in rings[1:]],
            )
        )
    return parts


def _annotation_roi(geometry: dict[str, Any]) -> tuple[str, Any]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if gtype == "Point":
        return POINT_ROI, [coords]
    if gtype == "MultiPoint":
        return POINT_ROI, coords
    if gtype == "LineString":
        return LINE_ROI, coords
    if gtype == "Polygon":
        return POLYGON_ROI, coords[0]
    if gtype == "MultiPolygon":
        return POLYGON_ROI, [pt for poly in coords for pt in poly[0]]
    raise ValueError(f"unsupported annotation geometry: {gtype}")


def parse_feature(feature: dict[str, Any]) -> AnnotationObject | DetectionRegion | None:
    props = feature.get("properties") or {}
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        raise ValueError("feature has no geometry")
    object_type = str(props.get("objectType", "annotation")).lower()
    object_id = feature.get("id", props.get("id"))
    object_id = None if object_id is None else str(object_id)
    path_class = _parse_class(props)

    if object_type in DETECTION_TYPES:
        return DetectionRegion(
            object_id=object_id,
            parts=_polygon_parts(geometry),
            path_class=path_class,
            measurements=_parse_measurements(props),
        )
    if object_type in ANNOTATION_TYPES:
        roi_type, coords = _annotation_roi(geometry)
        return AnnotationObject(
            object_id=object_id,
            roi_type=roi_type,
            coordinates=as_points_px(coords),
            path_class=path_class,
        )
    return None


def parse_feature_collection(payload: Any) -> ObjectCollection:
    if isinstance(payload, list):
        features = payload
    elif isinstance(payload, dict) and payload.get("type") == "FeatureCollection":
        features = payload.get("features") or []
    elif isinstance(payload, dict) and payload.get("type") == "Feature":
        features = [payload]
    else:
        raise ValueError("expected a GeoJSON FeatureCollection, Feature or feature list")

    out = ObjectCollection()
    for idx, feature in enumerate(features):
        try:
            obj = parse_feature(feature)
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid feature #{idx}: {exc}") from exc
        if isinstance(obj, DetectionRegion):
            out.detections.append(obj)
        elif isinstance(obj, AnnotationObject):
            out.annotations.append(obj)
    return out


def load_objects(path: Path) -> ObjectCollection:
    if not path.exists():
        return ObjectCollection()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid GeoJSON at {path}: {exc}") from exc
    try:
        return parse_feature_collection(payload)
    except ValueError as exc:
        raise ValueError(f"{path}: {exc}") from exc


def feature_for(obj: AnnotationObject | DetectionRegion) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if isinstance(obj, DetectionRegion):
        props["objectType"] = "detection"
        polys = [
            [np.asarray(ring).tolist() for ring in [p.exterior, *p.holes]]
            for p in obj.parts
        ]
        geometry = (
            {"type": "Polygon", "coordinates": polys[0]}
            if len(polys) == 1
            else {"type": "MultiPolygon", "coordinates": polys}
        )
        if obj.measurements:
            props["measurements"] = dict(obj.measurements)
    else:
        props["objectType"] = "annotation"
        pts = obj.coordinates.tolist()
        if obj.roi_type == POINT_ROI:
            geometry = {"type": "Point", "coordinates": pts[0]} if len(pts) == 1 else {"type": "MultiPoint", "coordinates": pts}
        elif obj.roi_type == LINE_ROI:
            geometry = {"type": "LineString", "coordinates": pts}
        else:
            geometry = {"type": "Polygon", "coordinates": [pts + [pts[0]]]}
    if obj.path_class is not None:
        props["classification"] = {"name": obj.path_class.name}
    feature: dict[str, Any] = {"type": "Feature", "geometry": geometry, "properties": props}
    if obj.object_id is not None:
        feature["id"] = obj.object_id
    return feature


def write_objects(path: Path, objects: list[AnnotationObject | DetectionRegion]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"type": "FeatureCollection", "features": [feature_for(o) for o in objects]}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

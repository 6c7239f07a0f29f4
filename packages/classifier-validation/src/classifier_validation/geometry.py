from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from project_io import DetectionRegion


def detection_boxes(detections: Sequence[DetectionRegion]) -> np.ndarray:
    if not detections:
        return np.zeros((0, 4), dtype=np.float64)
    return np.array([d.bounds() for d in detections], dtype=np.float64)


def containing_detections(
    x: float,
    y: float,
    detections: Sequence[DetectionRegion],
    boxes: np.ndarray | None = None,
) -> list[DetectionRegion]:
    """Detections whose region contains ``(x, y)``, boundary included, in input order."""
    if not detections:
        return []
    if boxes is None:
        boxes = detection_boxes(detections)
    near = np.nonzero(
        (boxes[:, 0] <= x) & (boxes[:, 2] >= x) & (boxes[:, 1] <= y) & (boxes[:, 3] >= y)
    )[0]
    return [detections[i] for i in near if detections[i].contains(x, y)]


def intensity_measurement_names(channel: int) -> dict[str, str]:
    prefix = f"Channel {channel + 1}"
    return {
        "mean": f"{prefix}: Mean",
        "min": f"{prefix}: Min",
        "max": f"{prefix}: Max",
    }


def _channel_plane(pixels: np.ndarray, channel: int) -> np.ndarray:
    if pixels.ndim == 2:
        if channel != 0:
            raise ValueError(f"single-channel image has no channel {channel}")
        return pixels
    if pixels.ndim != 3:
        raise ValueError(f"unsupported image shape: {pixels.shape}")
    if channel < 0 or channel >= pixels.shape[2]:
        raise ValueError(f"channel {channel} out of range for {pixels.shape[2]} channels")
    return pixels[:, :, channel]


def region_mask(detection: DetectionRegion, x0: int, y0: int, w: int, h: int) -> np.ndarray:
    mask = np.zeros((h, w), dtype=np.uint8)
    offset = np.array([[x0, y0]], dtype=np.float64)
    for part in detection.parts:
        cv2.fillPoly(mask, [np.round(part.exterior - offset).astype(np.int32)], 1)
        for hole in part.holes:
            cv2.fillPoly(mask, [np.round(hole - offset).astype(np.int32)], 0)
    return mask


def add_intensity_measurements(pixels: np.ndarray, detections: Sequence[DetectionRegion], channel: int = 0) -> None:
    plane = _channel_plane(pixels, channel)
    img_h, img_w = plane.shape[:2]
    names = intensity_measurement_names(channel)
    for det in detections:
        bx0, by0, bx1, by1 = det.bounds()
        x0 = max(0, int(np.floor(bx0)))
        y0 = max(0, int(np.floor(by0)))
        x1 = min(img_w, int(np.ceil(bx1)) + 1)
        y1 = min(img_h, int(np.ceil(by1)) + 1)
        values = np.zeros((0,), dtype=np.float64)
        if x1 > x0 and y1 > y0:
            mask = region_mask(det, x0, y0, x1 - x0, y1 - y0)
            values = plane[y0:y1, x0:x1][mask > 0].astype(np.float64)
        if values.size == 0:
            det.measurements[names["mean"]] = float("nan")
            det.measurements[names["min"]] = float("nan")
            det.measurements[names["max"]] = float("nan")
            continue
        det.measurements[names["mean"]] = float(np.mean(values))
        det.measurements[names["min"]] = float(np.min(values))
        det.measurements[names["max"]] = float(np.max(values))

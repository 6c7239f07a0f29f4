from __future__ import annotations

import cv2
import numpy as np


def as_points_px(coords) -> np.ndarray:
    arr = np.asarray(coords, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] < 2:
        raise ValueError(f"expected a non-empty (N, 2) coordinate array, got shape {arr.shape}")
    return arr[:, :2].copy()


def as_ring_px(coords) -> np.ndarray:
    ring = as_points_px(coords)
    if ring.shape[0] > 1 and np.array_equal(ring[0], ring[-1]):
        ring = ring[:-1]
    if ring.shape[0] < 3:
        raise ValueError(f"polygon ring needs at least 3 distinct vertices, got {ring.shape[0]}")
    return ring


def polygon_area(poly: np.ndarray) -> float:
    x = poly[:, 0]
    y = poly[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) * 0.5)


def polygon_bounds(poly: np.ndarray) -> tuple[float, float, float, float]:
    mins = np.min(poly, axis=0)
    maxs = np.max(poly, axis=0)
    return float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])


def point_in_polygon(poly: np.ndarray, x: float, y: float) -> float:
    """+1 inside, 0 on an edge, -1 outside."""
    contour = poly.astype(np.float32).reshape(-1, 1, 2)
    return float(cv2.pointPolygonTest(contour, (float(x), float(y)), False))

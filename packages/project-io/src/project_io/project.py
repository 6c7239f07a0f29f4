from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from .geojson import ObjectCollection, load_objects
from .objects import AnnotationObject, DetectionRegion
from .paths import resolve_project_file

_ALLOWED_ENTRY_KEYS = {"id", "name", "image", "objects", "metadata"}


@dataclass(slots=True)
class ImageData:
    name: str
    path: Path | None = None
    cached_pixels: np.ndarray | None = field(default=None, repr=False)

    def pixels(self) -> np.ndarray:
        if self.cached_pixels is None:
            if self.path is None:
                raise OSError(f"no image file attached to entry '{self.name}'")
            img = cv2.imread(str(self.path), cv2.IMREAD_UNCHANGED)
            if img is None:
                raise OSError(f"failed to read image: {self.path}")
            self.cached_pixels = img
        return self.cached_pixels

    @property
    def shape(self) -> tuple[int, int]:
        h, w = self.pixels().shape[:2]
        return int(h), int(w)


@dataclass(slots=True)
class ProjectImageEntry:
    stable_id: int | str
    name: str
    objects_path: Path
    image_path: Path | None = None
    metadata_map: dict[str, str] = field(default_factory=dict)

    def metadata(self) -> dict[str, str]:
        return dict(self.metadata_map)

    def read_objects(self) -> ObjectCollection:
        return load_objects(self.objects_path)

    def read_annotations(self) -> list[AnnotationObject]:
        return self.read_objects().annotations

    def read_detections(self) -> list[DetectionRegion]:
        return self.read_objects().detections

    def read_image_data(self) -> ImageData:
        if self.image_path is not None and not self.image_path.exists():
            raise FileNotFoundError(f"image not found for entry '{self.name}': {self.image_path}")
        return ImageData(name=self.name, path=self.image_path)


@dataclass(frozen=True, slots=True)
class Project:
    root: Path
    project_file: Path
    entries: list[ProjectImageEntry]


def _entry_from_payload(root: Path, raw: Any, idx: int) -> ProjectImageEntry:
    if not isinstance(raw, dict):
        raise ValueError(f"images[{idx}] must be an object")
    extra = sorted(set(raw) - _ALLOWED_ENTRY_KEYS)
    if extra:
        raise ValueError(f"unknown keys in images[{idx}]: {extra}")
    if "id" not in raw:
        raise ValueError(f"missing required keys in images[{idx}]: ['id']")

    stable_id = raw["id"]
    if not isinstance(stable_id, (int, str)) or isinstance(stable_id, bool):
        raise ValueError(f"images[{idx}].id must be an int or a string")
    name = str(raw.get("name") or stable_id)
    objects_rel = raw.get("objects") or f"data/{stable_id}/objects.geojson"
    image_rel = raw.get("image")
    metadata = raw.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError(f"images[{idx}].metadata must be an object")

    return ProjectImageEntry(
        stable_id=stable_id,
        name=name,
        objects_path=(root / str(objects_rel)).resolve(),
        image_path=None if image_rel is None else (root / str(image_rel)).resolve(),
        metadata_map={str(k): str(v) for k, v in metadata.items() if v is not None},
    )


def load_project(path: Path | str) -> Project:
    project_file = resolve_project_file(Path(path))
    payload = json.loads(project_file.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"project file must contain an object: {project_file}")
    images = payload.get("images", [])
    if not isinstance(images, list):
        raise ValueError("project images must be a list")

    root = project_file.parent
    entries = [_entry_from_payload(root, raw, idx) for idx, raw in enumerate(images)]
    seen: set[int | str] = set()
    for e in entries:
        if e.stable_id in seen:
            raise ValueError(f"duplicate image id in {project_file}: {e.stable_id}")
        seen.add(e.stable_id)
    return Project(root=root, project_file=project_file, entries=entries)

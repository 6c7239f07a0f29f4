from .runtime import configure_logging, resolve_log_level
from .paths import resolve_project_file
from .geometry import point_in_polygon, polygon_area, polygon_bounds
from .objects import AnnotationObject, DetectionRegion, PathClass, PolygonPart
from .geojson import ObjectCollection, load_objects, parse_feature_collection, write_objects
from .project import ImageData, Project, ProjectImageEntry, load_project

__all__ = [
    "configure_logging",
    "resolve_log_level",
    "resolve_project_file",
    "point_in_polygon",
    "polygon_area",
    "polygon_bounds",
    "AnnotationObject",
    "DetectionRegion",
    "PathClass",
    "PolygonPart",
    "ObjectCollection",
    "load_objects",
    "parse_feature_collection",
    "write_objects",
    "ImageData",
    "Project",
    "ProjectImageEntry",
    "load_project",
]

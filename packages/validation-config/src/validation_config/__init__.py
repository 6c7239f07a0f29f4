from .schema import ValidationRunConfig, load_validation_config
from .layout import ReportLayout, build_layout, sanitize_name

__all__ = [
    "ValidationRunConfig",
    "ReportLayout",
    "load_validation_config",
    "build_layout",
    "sanitize_name",
]

from __future__ import annotations

from pathlib import Path

PROJECT_FILE_NAMES = ("project.json", "project.qpproj")


def resolve_project_file(project_root: Path) -> Path:
    if project_root.is_file():
        return project_root.resolve()
    if not project_root.exists():
        raise FileNotFoundError(f"project not found: {project_root}")
    for name in PROJECT_FILE_NAMES:
        candidate = project_root / name
        if candidate.exists():
            return candidate.resolve()
    raise FileNotFoundError(
        f"could not find any of {list(PROJECT_FILE_NAMES)} under {project_root}"
    )

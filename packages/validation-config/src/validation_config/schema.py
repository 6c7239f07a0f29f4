from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any


_ALLOWED_TOP = {
    "paths",
    "run",
    "selection",
    "classifier",
    "validation",
    "logging",
}
_REQUIRED_TOP = {"paths", "selection", "classifier"}

CLASSIFIER_KINDS = {"passthrough", "single_measurement", "plugin"}


@dataclass(frozen=True, slots=True)
class ValidationRunConfig:
    config_path: Path
    config_root: Path
    paths: dict[str, Any]
    run: dict[str, Any]
    selection: dict[str, Any]
    classifier: dict[str, Any]
    validation: dict[str, Any]
    logging: dict[str, Any]



def _expect_dict(payload: Any, where: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"{where} must be an object")
    return payload



def _expect_keys(obj: dict[str, Any], allowed: set[str], where: str, required: set[str] | None = None) -> None:
    extra = sorted(set(obj) - allowed)
    if extra:
        raise ValueError(f"unknown keys in {where}: {extra}")
    req = required if required is not None else set()
    missing = sorted(req - set(obj))
    if missing:
        raise ValueError(f"missing required keys in {where}: {missing}")



def _resolve_path(config_root: Path, raw: str | Path) -> Path:
    p = Path(raw)
    if not p.is_absolute():
        p = (config_root / p).resolve()
    else:
        p = p.resolve()
    return p



def _expect_bool(obj: dict[str, Any], key: str, where: str, default: bool) -> bool:
    value = obj.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{where}.{key} must be a boolean, got {value!r}")
    return value



def _normalize_run(run: dict[str, Any]) -> dict[str, Any]:
    run_id = str(run.get("run_id") or datetime.now(timezone.utc).strftime("run-%Y%m%d-%H%M%S"))
    return {"run_id": run_id}



def _normalize_selection(selection: dict[str, Any]) -> dict[str, str]:
    key = selection["metadata_key"]
    value = selection["metadata_value"]
    if not isinstance(key, str) or not key:
        raise ValueError("selection.metadata_key must be a non-empty string")
    if not isinstance(value, str):
        raise ValueError("selection.metadata_value must be a string")
    return {"metadata_key": key, "metadata_value": value}



def _normalize_classifier(classifier: dict[str, Any]) -> dict[str, Any]:
    kind = str(classifier["kind"])
    if kind not in CLASSIFIER_KINDS:
        raise ValueError(f"classifier.kind must be one of {sorted(CLASSIFIER_KINDS)}, got '{kind}'")
    options = _expect_dict(classifier.get("options", {}), "classifier.options")
    if kind == "plugin" and not classifier.get("factory"):
        raise ValueError("classifier.factory is required when classifier.kind is 'plugin'")
    return {
        "kind": kind,
        "name": str(classifier.get("name") or kind),
        "factory": classifier.get("factory"),
        "compute_measurements": _expect_bool(classifier, "compute_measurements", "classifier", True),
        "options": dict(options),
    }



def _normalize_validation(validation: dict[str, Any]) -> dict[str, Any]:
    workers = int(validation.get("workers", 1))
    if workers < 1:
        raise ValueError("validation.workers must be >= 1")
    return {
        "workers": workers,
        "deduplicate_overlaps": _expect_bool(validation, "deduplicate_overlaps", "validation", False),
        "count_unmatched_points": _expect_bool(validation, "count_unmatched_points", "validation", False),
        "progress": _expect_bool(validation, "progress", "validation", False),
    }



def load_validation_config(path: Path | str = "config.json") -> ValidationRunConfig:
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"config not found: {config_path}")

    payload = json.loads(config_path.read_text(encoding="utf-8"))
    payload = _expect_dict(payload, "config")
    _expect_keys(payload, _ALLOWED_TOP, "config", required=_REQUIRED_TOP)

    config_root = config_path.parent

    paths = _expect_dict(payload.get("paths", {}), "paths")
    _expect_keys(paths, {"project_root", "reports_root"}, "paths", required={"project_root"})
    project_root = _resolve_path(config_root, str(paths["project_root"]))
    reports_root = _resolve_path(config_root, str(paths.get("reports_root", "reports")))

    run = _expect_dict(payload.get("run", {}), "run")
    _expect_keys(run, {"run_id"}, "run")

    selection = _expect_dict(payload.get("selection", {}), "selection")
    _expect_keys(
        selection,
        {"metadata_key", "metadata_value"},
        "selection",
        required={"metadata_key", "metadata_value"},
    )

    classifier = _expect_dict(payload.get("classifier", {}), "classifier")
    _expect_keys(
        classifier,
        {"kind", "name", "factory", "compute_measurements", "options"},
        "classifier",
        required={"kind"},
    )

    validation = _expect_dict(payload.get("validation", {}), "validation")
    _expect_keys(
        validation,
        {"workers", "deduplicate_overlaps", "count_unmatched_points", "progress"},
        "validation",
    )

    log_cfg = _expect_dict(payload.get("logging", {}), "logging")
    _expect_keys(log_cfg, {"level"}, "logging")

    return ValidationRunConfig(
        config_path=config_path,
        config_root=config_root,
        paths={"project_root": project_root, "reports_root": reports_root},
        run=_normalize_run(run),
        selection=_normalize_selection(selection),
        classifier=_normalize_classifier(classifier),
        validation=_normalize_validation(validation),
        logging={"level": str(log_cfg.get("level", "INFO"))},
    )

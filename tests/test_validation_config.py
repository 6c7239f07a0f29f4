from __future__ import annotations

import json
from pathlib import Path

import pytest

from validation_config import build_layout, load_validation_config, sanitize_name


def _minimal_config() -> dict:
    return {
        "paths": {"project_root": "project", "reports_root": "reports"},
        "run": {"run_id": "r1"},
        "selection": {"metadata_key": "Set", "metadata_value": "Validation"},
        "classifier": {
            "kind": "single_measurement",
            "name": "Mean threshold",
            "options": {"measurement": "Channel 1: Mean", "threshold": 100, "above": "Positive"},
        },
        "validation": {"workers": 2, "deduplicate_overlaps": True},
        "logging": {"level": "DEBUG"},
    }


def _write(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_validation_config_rejects_unknown_top_key(tmp_path) -> None:
    payload = _minimal_config()
    payload["extra"] = 1

    with pytest.raises(ValueError, match="unknown keys"):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_rejects_unknown_nested_key(tmp_path) -> None:
    payload = _minimal_config()
    payload["validation"]["threads"] = 4

    with pytest.raises(ValueError, match=r"unknown keys in validation: \['threads'\]"):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_requires_selection(tmp_path) -> None:
    payload = _minimal_config()
    del payload["selection"]

    with pytest.raises(ValueError, match="missing required keys in config"):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_requires_metadata_value(tmp_path) -> None:
    payload = _minimal_config()
    del payload["selection"]["metadata_value"]

    with pytest.raises(ValueError, match="metadata_value"):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_resolves_paths_and_defaults(tmp_path) -> None:
    cfg = load_validation_config(_write(tmp_path, _minimal_config()))

    assert cfg.config_root == tmp_path.resolve()
    assert cfg.paths["project_root"] == (tmp_path / "project").resolve()
    assert cfg.paths["reports_root"] == (tmp_path / "reports").resolve()
    assert cfg.run["run_id"] == "r1"
    assert cfg.classifier["kind"] == "single_measurement"
    assert cfg.classifier["compute_measurements"] is True
    assert cfg.validation == {
        "workers": 2,
        "deduplicate_overlaps": True,
        "count_unmatched_points": False,
        "progress": False,
    }
    assert cfg.logging["level"] == "DEBUG"


def test_load_validation_config_generates_run_id(tmp_path) -> None:
    payload = _minimal_config()
    del payload["run"]

    cfg = load_validation_config(_write(tmp_path, payload))
    assert cfg.run["run_id"].startswith("run-")


@pytest.mark.parametrize(
    "classifier, message",
    [
        ({"kind": "neural"}, "classifier.kind must be one of"),
        ({"kind": "plugin"}, "classifier.factory is required"),
        ({"kind": "passthrough", "options": []}, "classifier.options must be an object"),
    ],
)
def test_load_validation_config_rejects_bad_classifier(tmp_path, classifier, message) -> None:
    payload = _minimal_config()
    payload["classifier"] = classifier

    with pytest.raises(ValueError, match=message):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_rejects_zero_workers(tmp_path) -> None:
    payload = _minimal_config()
    payload["validation"]["workers"] = 0

    with pytest.raises(ValueError, match="workers must be >= 1"):
        load_validation_config(_write(tmp_path, payload))


def test_load_validation_config_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_validation_config(tmp_path / "nope.json")


def test_build_layout_paths() -> None:
    layout = build_layout(reports_root=Path("reports"), classifier_name="Mean threshold", run_id="rid")
    assert layout.classifier_key == "Mean_threshold"
    assert str(layout.run_root).endswith("reports/Mean_threshold/runs/rid")
    assert layout.matches_csv.name == "matches_Mean_threshold.csv"
    assert layout.per_image_csv.name == "per_image_Mean_threshold.csv"
    assert layout.report_json.name == "validation_report_Mean_threshold.json"
    assert layout.summary_md.name == "validation_summary_Mean_threshold.md"
    assert layout.latest_run_json == Path("reports") / "latest_run.json"


def test_sanitize_name_falls_back_when_empty() -> None:
    assert sanitize_name("Channel 1: Mean >= 100") == "Channel_1_Mean_100"
    assert sanitize_name("///") == "classifier"


@pytest.mark.parametrize(
    "section, key",
    [
        ("classifier", "compute_measurements"),
        ("validation", "deduplicate_overlaps"),
        ("validation", "count_unmatched_points"),
        ("validation", "progress"),
    ],
)
def test_load_validation_config_rejects_non_boolean_flags(tmp_path, section, key) -> None:
    payload = _minimal_config()
    payload[section][key] = "false"

    with pytest.raises(ValueError, match=f"{section}.{key} must be a boolean"):
        load_validation_config(_write(tmp_path, payload))

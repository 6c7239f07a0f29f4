from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re


def sanitize_name(name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]+", "_", name.strip())
    cleaned = cleaned.strip("._-")
    return cleaned or "classifier"


@dataclass(frozen=True, slots=True)
class ReportLayout:
    classifier_key: str
    classifier_root: Path
    run_root: Path
    matches_csv: Path
    per_image_csv: Path
    report_json: Path
    summary_md: Path
    latest_run_json: Path



def build_layout(*, reports_root: Path, classifier_name: str, run_id: str) -> ReportLayout:
    key = sanitize_name(classifier_name)
    classifier_root = reports_root / key
    run_root = classifier_root / "runs" / sanitize_name(run_id)
    return ReportLayout(
        classifier_key=key,
        classifier_root=classifier_root,
        run_root=run_root,
        matches_csv=run_root / f"matches_{key}.csv",
        per_image_csv=run_root / f"per_image_{key}.csv",
        report_json=run_root / f"validation_report_{key}.json",
        summary_md=run_root / f"validation_summary_{key}.md",
        latest_run_json=reports_root / "latest_run.json",
    )

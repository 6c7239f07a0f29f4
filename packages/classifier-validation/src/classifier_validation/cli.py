from __future__ import annotations

import argparse
from pathlib import Path

from project_io import configure_logging, load_project
from validation_config import build_layout, load_validation_config

from .classifiers import load_classifier
from .matching import MatchPolicy
from .pipeline import ValidationConfig, run_validation
from .reporting import format_ratio, write_reports


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Validate an object classifier against ground-truth point annotations")
    parser.add_argument("--config", type=Path, default=Path("config.json"))
    parser.add_argument("--log-level", default=None, help="override logging.level from the config")
    args = parser.parse_args(argv)

    shared = load_validation_config(args.config)
    configure_logging(args.log_level or shared.logging["level"])

    project = load_project(shared.paths["project_root"])
    classifier = load_classifier(shared.classifier)
    vc = shared.validation

    result = run_validation(
        project.entries,
        classifier,
        ValidationConfig(
            metadata_key=shared.selection["metadata_key"],
            metadata_value=shared.selection["metadata_value"],
            policy=MatchPolicy(
                deduplicate_overlaps=vc["deduplicate_overlaps"],
                count_unmatched_points=vc["count_unmatched_points"],
            ),
            compute_measurements=shared.classifier["compute_measurements"],
            workers=vc["workers"],
            progress=vc["progress"],
        ),
    )

    layout = build_layout(
        reports_root=shared.paths["reports_root"],
        classifier_name=classifier.name,
        run_id=shared.run["run_id"],
    )
    report_config = {
        "project_file": str(project.project_file),
        "selection": shared.selection,
        "classifier": {k: v for k, v in shared.classifier.items() if k != "options"},
        "classifier_options": shared.classifier["options"],
        "validation": vc,
        "run_id": shared.run["run_id"],
    }
    out = write_reports(layout, result.report, report_config)

    report = result.report
    totals = report.totals
    print("Selection")
    print(f"- project: {project.project_file}")
    print(f"- filter: {shared.selection['metadata_key']} = {shared.selection['metadata_value']}")
    print(f"- entries_selected: {report.selected_count} of {len(project.entries)}")
    print(f"- entries_processed: {len(report.entries)}")
    print(f"- entries_skipped: {len(report.skipped)}")
    print("")
    print("Validation")
    print(f"- classifier: {classifier.name}")
    print(f"- classes: {', '.join(c.name for c in report.classes) or 'none'}")
    print(f"- tp/fp/fn: {totals.tp}/{totals.fp}/{totals.fn}")
    print(f"- precision: {format_ratio(totals.precision)}")
    print(f"- recall: {format_ratio(totals.recall)}")
    print(f"- f1: {format_ratio(totals.f1)}")
    print("")
    print("Artifacts")
    print(f"- matches_csv: {out['matches_csv']}")
    print(f"- per_image_csv: {out['per_image_csv']}")
    print(f"- report_json: {out['report_json']}")
    print(f"- summary_md: {out['summary_md']}")


if __name__ == "__main__":
    main()

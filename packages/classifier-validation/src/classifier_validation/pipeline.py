from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import logging
from threading import Event
from typing import Hashable, Iterable

from tqdm import tqdm

from project_io import PathClass

from .classifiers import ObjectClassifier, SerializedClassifier
from .confusion import ConfusionAggregate
from .data import extract_ground_truth_classes, select_entries
from .matching import MatchPolicy, match_entry
from .reporting import ValidationReport, build_report
from .types import STATUS_CANCELLED, STATUS_READ_FAILED, EntryOutcome, ImageEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ValidationConfig:
    metadata_key: str
    metadata_value: str
    policy: MatchPolicy = field(default_factory=MatchPolicy)
    compute_measurements: bool = True
    workers: int = 1
    progress: bool = False

    def validate(self) -> None:
        if not self.metadata_key:
            raise ValueError("metadata_key must not be empty")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")


@dataclass(slots=True)
class ValidationResult:
    selected: list[ImageEntry]
    classes: tuple[PathClass, ...]
    aggregate: ConfusionAggregate
    outcomes: list[EntryOutcome]
    report: ValidationReport
    cancelled: bool = False


def _cancelled_outcome(entry: ImageEntry) -> EntryOutcome:
    return EntryOutcome(
        entry_id=entry.stable_id,
        name=entry.name,
        status=STATUS_CANCELLED,
        message="run cancelled before this entry started",
    )


def run_validation(
    entries: Iterable[ImageEntry],
    classifier: ObjectClassifier,
    config: ValidationConfig,
    *,
    cancel_event: Event | None = None,
) -> ValidationResult:
    config.validate()
    entries = list(entries)
    selected = select_entries(entries, config.metadata_key, config.metadata_value)
    logger.info(
        "Selected %d of %d entries with %s=%s",
        len(selected),
        len(entries),
        config.metadata_key,
        config.metadata_value,
    )
    seen: set[Hashable] = set()
    for entry in selected:
        if entry.stable_id in seen:
            raise ValueError(f"duplicate stable id among selected entries: {entry.stable_id!r}")
        seen.add(entry.stable_id)

    extraction = extract_ground_truth_classes(selected)
    classes = extraction.classes
    logger.info("Ground-truth classes: %s", ", ".join(c.name for c in classes) or "none")

    runner = classifier
    if config.workers > 1 and not classifier.thread_safe:
        runner = SerializedClassifier(classifier)

    outcomes: dict[Hashable, EntryOutcome] = {}
    for entry in selected:
        if entry.stable_id in extraction.failed:
            outcomes[entry.stable_id] = EntryOutcome(
                entry_id=entry.stable_id,
                name=entry.name,
                status=STATUS_READ_FAILED,
                message=extraction.failed[entry.stable_id],
            )
    pending = [e for e in selected if e.stable_id not in outcomes]

    def _task(entry: ImageEntry) -> EntryOutcome:
        if cancel_event is not None and cancel_event.is_set():
            return _cancelled_outcome(entry)
        return match_entry(
            entry,
            runner,
            classes,
            policy=config.policy,
            compute_measurements=config.compute_measurements,
        )

    with tqdm(total=len(pending), desc="validate", unit="entry", disable=not config.progress) as progress:
        if config.workers == 1:
            for entry in pending:
                outcomes[entry.stable_id] = _task(entry)
                progress.update(1)
        else:
            with ThreadPoolExecutor(max_workers=config.workers) as executor:
                future_to_entry = {executor.submit(_task, e): e for e in pending}
                for future in as_completed(future_to_entry):
                    entry = future_to_entry[future]
                    outcomes[entry.stable_id] = future.result()
                    progress.update(1)

    aggregate = ConfusionAggregate()
    ordered: list[EntryOutcome] = []
    for entry in selected:
        outcome = outcomes[entry.stable_id]
        ordered.append(outcome)
        if outcome.ok and outcome.counts is not None:
            aggregate.merge(outcome.counts)

    cancelled = any(o.status == STATUS_CANCELLED for o in ordered)
    if cancelled:
        logger.warning(
            "Validation cancelled; %d entries were not processed",
            sum(1 for o in ordered if o.status == STATUS_CANCELLED),
        )
    skipped = sum(1 for o in ordered if not o.ok)
    logger.info(
        "Processed %d entries (%d skipped), %d matches",
        len(ordered) - skipped,
        skipped,
        aggregate.total(),
    )

    report = build_report(
        classifier_name=classifier.name,
        aggregate=aggregate,
        classes=classes,
        outcomes=ordered,
        include_unmatched=config.policy.count_unmatched_points,
        cancelled=cancelled,
    )
    return ValidationResult(
        selected=selected,
        classes=classes,
        aggregate=aggregate,
        outcomes=ordered,
        report=report,
        cancelled=cancelled,
    )

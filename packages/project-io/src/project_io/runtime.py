from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_log_level(requested: str | int) -> int:
    if isinstance(requested, int):
        return requested
    level = logging.getLevelName(str(requested).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {requested}")
    return level


def configure_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(level=resolve_log_level(level), format=LOG_FORMAT, force=True)

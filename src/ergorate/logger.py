"""Structured JSON logger for assessment sessions and rater failures."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from ergorate.constants import ERROR_TRUNCATION_CHARS
from ergorate.logging_config import LOG_DATEFMT, LOG_FORMAT, resolve_level

__all__ = ["AssessmentLogger", "LOG_FORMAT", "LOG_DATEFMT"]


class AssessmentLogger:
    """Structured JSON logger with session_id correlation."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger("ergorate.assessment")
        self._logger.setLevel(resolve_level(level))

        log_path = str((log_dir / "assessment.log").resolve())
        if not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == log_path
            for h in self._logger.handlers
        ):
            handler = logging.FileHandler(log_path)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def log_session(
        self,
        session_id: str,
        artifact_id: str,
        raters_invoked: int,
        raters_completed: int,
        notation: str | None,
        category: str | None,
        duration_ms: float,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "session",
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": session_id,
                "artifact_id": artifact_id,
                "raters_invoked": raters_invoked,
                "raters_completed": raters_completed,
                "notation": notation,
                "category": category,
                "duration_ms": duration_ms,
            })
        )

    def log_rater_failure(
        self,
        session_id: str,
        artifact_id: str,
        rater_id: str,
        error_class: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "rater_failure",
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": session_id,
                "artifact_id": artifact_id,
                "rater_id": rater_id,
                "error_class": error_class,
                "error": error[:ERROR_TRUNCATION_CHARS],
            })
        )

    def log_stage(
        self,
        session_id: str,
        stage_name: str,
        status: str,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "stage",
                "timestamp": datetime.now(UTC).isoformat(),
                "session_id": session_id,
                "stage": stage_name,
                "status": status,
                "duration_ms": duration_ms,
                "error": error,
            })
        )

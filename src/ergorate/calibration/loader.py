"""Load calibration cases: example artifacts with their expected rating.

Calibration content is read-only fixture data kept outside the
classifier. Files are YAML with a top-level ``cases`` list.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ergorate.analysis.schemas import ClassificationContext
from ergorate.domain.notation import parse_notation
from ergorate.domain.value_objects import Artifact, RatingVector

_REQUIRED_KEYS = ("name", "expected", "content")


@dataclass(frozen=True)
class CalibrationCase:
    """One worked example."""

    name: str
    artifact: Artifact
    expected: RatingVector
    context: ClassificationContext
    notes: str = ""


def load_calibration_file(path: Path) -> list[CalibrationCase]:
    """Load every case in one YAML file.

    Raises ``FileNotFoundError`` if the file doesn't exist and
    ``ValueError`` for a malformed case.
    """
    if not path.is_file():
        msg = f"Calibration file not found: {path}"
        raise FileNotFoundError(msg)

    raw: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    entries: Any = raw.get("cases", []) if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        msg = f"{path.name}: expected a top-level 'cases' list"
        raise ValueError(msg)

    cases: list[CalibrationCase] = []
    for index, entry in enumerate(entries):  # pyright: ignore[reportUnknownVariableType]
        if not isinstance(entry, dict):
            msg = f"{path.name}: case #{index} is not a mapping"
            raise ValueError(msg)
        missing = [k for k in _REQUIRED_KEYS if k not in entry]
        if missing:
            msg = (
                f"{path.name}: case #{index} missing "
                f"{', '.join(missing)}"
            )
            raise ValueError(msg)
        cases.append(_parse_case(entry))  # pyright: ignore[reportUnknownArgumentType]
    return cases


def load_calibration_set(directory: Path) -> list[CalibrationCase]:
    """Load every ``*.yaml`` file under ``directory``, sorted by name."""
    if not directory.is_dir():
        msg = f"Calibration directory not found: {directory}"
        raise FileNotFoundError(msg)
    cases: list[CalibrationCase] = []
    for path in sorted(directory.glob("*.yaml")):
        cases.extend(load_calibration_file(path))
    names = [c.name for c in cases]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        msg = f"Duplicate calibration case names: {', '.join(dupes)}"
        raise ValueError(msg)
    return cases


def _parse_case(entry: dict[str, Any]) -> CalibrationCase:
    name = str(entry["name"])
    edges = tuple(
        (str(src), str(dst))
        for src, dst in entry.get("dependency_edges", [])
    )
    return CalibrationCase(
        name=name,
        artifact=Artifact(
            id=str(entry.get("id", name)),
            content_snapshot=str(entry["content"]),
            context_tag=entry.get("context_tag", "application"),
        ),
        expected=parse_notation(str(entry["expected"])),
        context=ClassificationContext(
            language=entry.get("language"),
            dependency_edges=edges,
        ),
        notes=str(entry.get("notes", "")),
    )

"""Environment-based configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from ergorate.constants import (
    DEFAULT_AXIS_PRIORITY,
    DEFAULT_MIN_RATERS,
    DEFAULT_RATER_CONCURRENCY,
    DEFAULT_RATER_TIMEOUT,
    Axis,
)
from ergorate.domain.axes import parse_axis
from ergorate.logging_config import resolve_level

logger = logging.getLogger(__name__)


def _split_list(v: Any) -> Any:
    """Accept a comma-separated string or a JSON array."""
    if isinstance(v, str):
        stripped = v.strip()
        if stripped.startswith("["):
            return json.loads(stripped)
        return [s.strip() for s in stripped.split(",") if s.strip()]
    return v


class Settings(BaseSettings):
    """Reads from .env file and environment variables (prefix ERGORATE_)."""

    # Consensus
    min_raters: int = DEFAULT_MIN_RATERS
    axis_priority: Annotated[list[Axis], NoDecode] = list(
        DEFAULT_AXIS_PRIORITY
    )

    # Rater sessions
    rater_timeout_seconds: float = DEFAULT_RATER_TIMEOUT
    rater_max_concurrency: int = DEFAULT_RATER_CONCURRENCY
    collect_all_raters: bool = False

    # Model-backed rater (first = primary, rest = fallbacks tried in order)
    litellm_model_chain: Annotated[list[str], NoDecode] = [
        "openai/gpt-4.1-mini",
        "anthropic/claude-3-5-haiku-latest",
    ]
    llm_timeout_seconds: int = 60

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    @field_validator("min_raters", "rater_max_concurrency")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("rater_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rater_timeout_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        resolve_level(v)
        return v.strip().upper()

    @field_validator("axis_priority", mode="before")
    @classmethod
    def _parse_priority(cls, v: Any) -> Any:
        v = _split_list(v)
        if isinstance(v, list):
            return [
                parse_axis(a) if isinstance(a, str) else a
                for a in v  # pyright: ignore[reportUnknownVariableType]
            ]
        return v

    @field_validator("axis_priority")
    @classmethod
    def _validate_priority(cls, v: list[Axis]) -> list[Axis]:
        if len(v) != len(DEFAULT_AXIS_PRIORITY) or set(v) != set(
            DEFAULT_AXIS_PRIORITY
        ):
            raise ValueError(
                "axis_priority must list each axis exactly once"
            )
        return v

    @field_validator("litellm_model_chain", mode="before")
    @classmethod
    def _parse_chain(cls, v: Any) -> Any:
        return _split_list(v)

    @field_validator("litellm_model_chain")
    @classmethod
    def _validate_chain(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError(
                "litellm_model_chain must contain at least one model"
            )
        seen: set[str] = set()
        dupes: list[str] = []
        for m in v:
            if m in seen:
                dupes.append(m)
            seen.add(m)
        if dupes:
            logger.warning(
                "Duplicate models in ERGORATE_LITELLM_MODEL_CHAIN: %s",
                ", ".join(dupes),
            )
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "ERGORATE_",
        "extra": "ignore",
    }

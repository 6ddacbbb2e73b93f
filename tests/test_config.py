"""Tests for Settings validators."""

from __future__ import annotations

import logging

import pytest

from ergorate.config import Settings
from ergorate.constants import DEFAULT_AXIS_PRIORITY, Axis


class TestDefaults:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.min_raters == 3
        assert s.axis_priority == list(DEFAULT_AXIS_PRIORITY)
        assert s.collect_all_raters is False

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ERGORATE_MIN_RATERS", "5")
        monkeypatch.setenv("ERGORATE_COLLECT_ALL_RATERS", "true")
        s = Settings()
        assert s.min_raters == 5
        assert s.collect_all_raters is True


class TestAxisPriority:
    def test_comma_separated_string(self) -> None:
        s = Settings(axis_priority="expressiveness, error_surface, DependencyFlow")  # type: ignore[arg-type]
        assert s.axis_priority == [
            Axis.EXPRESSIVENESS, Axis.ERROR_SURFACE, Axis.DEPENDENCY_FLOW,
        ]

    def test_from_env_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(
            "ERGORATE_AXIS_PRIORITY",
            '["dependency_flow", "expressiveness", "error_surface"]',
        )
        assert Settings().axis_priority[0] == Axis.DEPENDENCY_FLOW

    def test_incomplete_priority_raises(self) -> None:
        with pytest.raises(ValueError, match="exactly once"):
            Settings(axis_priority="expressiveness,error_surface")  # type: ignore[arg-type]

    def test_unknown_axis_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown axis"):
            Settings(axis_priority="speed,expressiveness,error_surface")  # type: ignore[arg-type]


class TestNumericValidation:
    def test_zero_min_raters_raises(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            Settings(min_raters=0)

    def test_non_positive_timeout_raises(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            Settings(rater_timeout_seconds=0)


class TestLogLevel:
    def test_normalized_to_upper(self) -> None:
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            Settings(log_level="chatty")


class TestModelChainParsing:
    def test_comma_separated_string_parsed_to_list(self) -> None:
        s = Settings(litellm_model_chain="model-a,model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_comma_separated_with_spaces(self) -> None:
        s = Settings(litellm_model_chain="model-a , model-b")  # type: ignore[arg-type]
        assert s.litellm_model_chain == ["model-a", "model-b"]

    def test_list_passthrough(self) -> None:
        s = Settings(litellm_model_chain=["model-a", "model-b"])
        assert s.litellm_model_chain == ["model-a", "model-b"]


class TestModelChainValidation:
    def test_empty_chain_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain=[])

    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one model"):
            Settings(litellm_model_chain="")  # type: ignore[arg-type]

    def test_duplicate_models_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Duplicate models in chain log a warning."""
        with caplog.at_level(logging.WARNING, logger="ergorate.config"):
            s = Settings(
                litellm_model_chain=["model-a", "model-a", "model-b"]
            )
        assert "Duplicate models in ERGORATE_LITELLM_MODEL_CHAIN" in caplog.text
        assert "model-a" in caplog.text
        # Chain is preserved as-is (no dedup)
        assert s.litellm_model_chain == ["model-a", "model-a", "model-b"]

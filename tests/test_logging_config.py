"""Tests for process-wide logging setup."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from unittest.mock import patch

import pytest

import ergorate.logging_config as logging_config
from ergorate.logging_config import (
    LOG_DATEFMT,
    LOG_FORMAT,
    cleanup_third_party_handlers,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _forget_completed_steps() -> Iterator[None]:
    logging_config._completed.clear()
    yield
    for name in logging_config._LITELLM_LOGGERS:
        logging.getLogger(name).handlers.clear()


class TestSetupLogging:
    def test_runs_once(self) -> None:
        with patch("ergorate.logging_config.logging.basicConfig") as basic:
            setup_logging("INFO")
            setup_logging("DEBUG")
        basic.assert_called_once()
        assert basic.call_args.kwargs["level"] == logging.INFO

    def test_root_uses_shared_format(self) -> None:
        with patch("ergorate.logging_config.logging.basicConfig") as basic:
            setup_logging("debug")
        assert basic.call_args.kwargs == {
            "level": logging.DEBUG,
            "format": LOG_FORMAT,
            "datefmt": LOG_DATEFMT,
        }

    def test_user_litellm_log_setting_kept(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LITELLM_LOG", "ERROR")
        with patch("ergorate.logging_config.logging.basicConfig"):
            setup_logging()
        assert os.environ["LITELLM_LOG"] == "ERROR"

    def test_litellm_log_defaults_to_warning(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("LITELLM_LOG", raising=False)
        with patch("ergorate.logging_config.logging.basicConfig"):
            setup_logging()
        assert os.environ["LITELLM_LOG"] == "WARNING"

    def test_provider_loggers_held_at_warning(self) -> None:
        with patch("ergorate.logging_config.logging.basicConfig"):
            setup_logging("DEBUG")
        levels = {
            name: logging.getLogger(name).level
            for name in logging_config._SUPPRESSED_LOGGERS
        }
        assert set(levels.values()) == {logging.WARNING}, levels
        assert "httpx" in levels

    def test_unknown_level_rejected_before_setup(self) -> None:
        with (
            patch("ergorate.logging_config.logging.basicConfig") as basic,
            pytest.raises(ValueError, match="Unknown log level 'chatty'"),
        ):
            setup_logging("chatty")
        basic.assert_not_called()

        # A rejected call does not use up the one setup
        with patch("ergorate.logging_config.logging.basicConfig") as basic:
            setup_logging("INFO")
        basic.assert_called_once()


class TestCleanup:
    def test_litellm_handlers_removed(self) -> None:
        for name in logging_config._LITELLM_LOGGERS:
            lg = logging.getLogger(name)
            lg.addHandler(logging.NullHandler())
            lg.propagate = False

        cleanup_third_party_handlers()

        for name in logging_config._LITELLM_LOGGERS:
            lg = logging.getLogger(name)
            assert lg.handlers == []
            assert lg.propagate

    def test_runs_once(self) -> None:
        lg = logging.getLogger("LiteLLM Router")
        cleanup_third_party_handlers()

        late = logging.NullHandler()
        lg.addHandler(late)
        cleanup_third_party_handlers()
        assert lg.handlers == [late]


@pytest.mark.parametrize(
    ("given", "expected"),
    [("debug", logging.DEBUG), (" Warning ", logging.WARNING), (40, 40)],
)
def test_resolve_level(given: str | int, expected: int) -> None:
    assert resolve_level(given) == expected

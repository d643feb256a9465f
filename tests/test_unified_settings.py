"""Tests for unified settings management.

Covers:
  - Env vars override .env and defaults
  - Safe defaults for non-required settings
  - Invalid DB path and ranking mode produce controlled errors
  - safe_dump exposes only what is logged at startup
"""

import os
import tempfile
from unittest.mock import patch

import pytest
from backend.app.core.settings import _DEFAULT_DB_PATH, Settings
from pydantic import ValidationError

# ---------------------------------------------------------------------------
# Env vars override .env and defaults
# ---------------------------------------------------------------------------


class TestEnvOverride:
    def test_override_db_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            custom = os.path.join(tmpdir, "override.db")
            s = Settings(
                app_db_path=custom,
                _env_file=None,  # type: ignore[call-arg]
            )
            assert s.app_db_path == custom

    def test_override_from_environment(self) -> None:
        with patch.dict(os.environ, {"LEADERBOARD_MAX_LIMIT": "50"}):
            s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.leaderboard_max_limit == 50

    def test_override_api_host(self) -> None:
        s = Settings(
            api_host="0.0.0.0",
            api_port=9000,
            _env_file=None,  # type: ignore[call-arg]
        )
        assert s.api_host == "0.0.0.0"
        assert s.api_port == 9000


# ---------------------------------------------------------------------------
# Defaults applied when no env / .env
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_default_db_path(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app_db_path == _DEFAULT_DB_PATH
        assert "trenz.db" in s.app_db_path

    def test_default_api_host_and_port(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.api_host == "127.0.0.1"
        assert s.api_port == 8000

    def test_default_leaderboard_settings(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.leaderboard_ranking == "sequential"
        assert s.leaderboard_max_limit == 500

    def test_default_trend_settings(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.trend_default_duration_days == 14
        assert s.trend_expiry_enabled is False
        assert s.trend_expiry_interval_seconds == 300

    def test_database_url_derived_from_path(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.database_url == f"sqlite:///{s.app_db_path}"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestRankingValidation:
    def test_competition_accepted_case_insensitively(self) -> None:
        s = Settings(
            leaderboard_ranking=" Competition ",
            _env_file=None,  # type: ignore[call-arg]
        )
        assert s.leaderboard_ranking == "competition"

    def test_unknown_ranking_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown leaderboard ranking"):
            Settings(
                leaderboard_ranking="dense",
                _env_file=None,  # type: ignore[call-arg]
            )


class TestDbPathValidation:
    def test_valid_path_creates_parent_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            from pathlib import Path

            path = os.path.join(tmpdir, "new", "nested", "test.db")
            Settings(
                app_db_path=path,
                _env_file=None,  # type: ignore[call-arg]
            )
            assert Path(path).parent.exists()

    def test_unwritable_path_raises_with_guidance(self) -> None:
        with pytest.raises(Exception, match="APP_DB_PATH"):
            with patch("pathlib.Path.mkdir", side_effect=OSError("Permission denied")):
                Settings(
                    app_db_path="/nonexistent/readonly/path/test.db",
                    _env_file=None,  # type: ignore[call-arg]
                )


# ---------------------------------------------------------------------------
# safe_dump and the shared singleton
# ---------------------------------------------------------------------------


class TestSafeDump:
    def test_includes_operational_fields(self) -> None:
        dump = Settings(_env_file=None).safe_dump()  # type: ignore[call-arg]
        for key in ("api_host", "api_port", "app_db_path", "log_level", "leaderboard_ranking"):
            assert key in dump

    def test_singleton_settings_importable(self) -> None:
        from backend.app.core.settings import settings

        assert isinstance(settings, Settings)

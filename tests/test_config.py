"""Tests for settings resolution: defaults, YAML overlay, env overrides."""

import pytest

from judgeflow.config import build_settings, load_settings, reset_settings_cache
from judgeflow.roles import Role


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for key in ("JUDGEFLOW_CONFIG_FILE", "JUDGEFLOW_DATABASE__URL", "JUDGEFLOW_DATABASE__ECHO"):
        monkeypatch.delenv(key, raising=False)
    # Keep any developer .env out of the picture
    monkeypatch.chdir(tmp_path)
    reset_settings_cache()
    yield
    reset_settings_cache()


class TestSettings:

    def test_defaults(self):
        settings = build_settings()
        assert settings.database.url == "sqlite+aiosqlite:///judgeflow.db"
        assert settings.database.echo is False
        assert settings.certification.required_roles == [
            Role.JUDGE, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD,
        ]

    def test_env_nested_override(self, monkeypatch):
        monkeypatch.setenv("JUDGEFLOW_DATABASE__URL", "sqlite+aiosqlite:///other.db")
        assert build_settings().database.url == "sqlite+aiosqlite:///other.db"

    def test_yaml_overlay(self, tmp_path):
        path = tmp_path / "judgeflow.yaml"
        path.write_text("database:\n  url: sqlite+aiosqlite:///from_yaml.db\n  echo: true\n")
        settings = build_settings(str(path))
        assert settings.database.url == "sqlite+aiosqlite:///from_yaml.db"
        assert settings.database.echo is True

    def test_env_wins_over_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "judgeflow.yaml"
        path.write_text("database:\n  url: sqlite+aiosqlite:///from_yaml.db\n  echo: true\n")
        monkeypatch.setenv("JUDGEFLOW_CONFIG_FILE", str(path))
        monkeypatch.setenv("JUDGEFLOW_DATABASE__URL", "sqlite+aiosqlite:///from_env.db")
        settings = build_settings()
        assert settings.database.url == "sqlite+aiosqlite:///from_env.db"
        assert settings.database.echo is True

    def test_missing_yaml_falls_back_to_defaults(self, tmp_path):
        settings = build_settings(str(tmp_path / "absent.yaml"))
        assert settings.database.url == "sqlite+aiosqlite:///judgeflow.db"

    def test_non_mapping_yaml_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            build_settings(str(path))

    def test_load_settings_is_cached(self):
        assert load_settings() is load_settings()
        first = load_settings()
        reset_settings_cache()
        assert load_settings() is not first

"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

import pauseflow.persistence as persistence
from pauseflow.config import load_config
from pauseflow.persistence import SQLiteCheckpointRepository, get_repository


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
runner:
  max_supersteps: 25
  emit_executor_events: true
database_url: sqlite://runs.db
"""
    )
    monkeypatch.setenv("PAUSEFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("PAUSEFLOW_DATABASE_URL", raising=False)

    config = load_config()
    assert config.runner.max_supersteps == 25
    assert config.runner.emit_executor_events is True
    assert config.database_url == "sqlite://runs.db"


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PAUSEFLOW_DATABASE_URL", raising=False)
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.runner.max_supersteps is None
    assert config.runner.emit_executor_events is False
    assert config.database_url is None


def test_env_database_url_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite://from-file.db\n")
    monkeypatch.setenv("PAUSEFLOW_DATABASE_URL", "sqlite://from-env.db")

    assert load_config(str(config_path)).database_url == "sqlite://from-env.db"


def test_superstep_limit_must_be_positive(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("runner:\n  max_supersteps: 0\n")

    with pytest.raises(ValidationError):
        load_config(str(config_path))


def test_get_repository_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"database_url: sqlite://{tmp_path / 'runs.db'}\n")
    monkeypatch.setenv("PAUSEFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("PAUSEFLOW_DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_repository_instance", None)

    repo = get_repository()
    assert isinstance(repo, SQLiteCheckpointRepository)
    assert repo.db_path == str(tmp_path / "runs.db")
    assert get_repository() is repo
    repo.close()


def test_get_repository_rejects_unknown_backend(monkeypatch):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    with pytest.raises(ValueError, match="Unsupported database backend"):
        get_repository("postgresql://localhost/runs")

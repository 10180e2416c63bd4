from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class RunnerConfig(BaseModel):
    """Settings applied to every workflow run."""

    max_supersteps: Optional[int] = Field(
        default=None, ge=1, description="Abort runs that need more supersteps per call"
    )
    emit_executor_events: bool = False


class PauseflowConfig(BaseModel):
    """Top-level configuration model."""

    runner: RunnerConfig = RunnerConfig()
    database_url: Optional[str] = None


def load_config(path: Optional[str] = None) -> PauseflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to PAUSEFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("PAUSEFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = PauseflowConfig(**data)
    else:
        config = PauseflowConfig()

    env_db_url = os.getenv("PAUSEFLOW_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config

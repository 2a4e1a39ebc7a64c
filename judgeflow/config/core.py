"""Application settings.

Resolution order (highest first): environment variables with the
``JUDGEFLOW_`` prefix and ``__`` nesting, then an optional YAML file named
by ``JUDGEFLOW_CONFIG_FILE``, then the defaults below.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from judgeflow.roles import REQUIRED_CERTIFICATION_ROLES, Role


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///judgeflow.db"
    echo: bool = False
    busy_timeout_seconds: float = Field(default=15.0, gt=0)


class CertificationSettings(BaseModel):
    required_roles: list[Role] = Field(default_factory=lambda: list(REQUIRED_CERTIFICATION_ROLES))
    signature_hash: str = Field(default="sha256", pattern=r"^sha256$")


class Settings(BaseSettings):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    certification: CertificationSettings = Field(default_factory=CertificationSettings)

    model_config = SettingsConfigDict(
        env_prefix="JUDGEFLOW_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def _read_yaml(path: str | os.PathLike[str]) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    with open(p) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping at the top level")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_settings(config_file: str | None = None) -> Settings:
    """Build a fresh Settings object, layering env over YAML over defaults."""
    config_file = config_file or os.environ.get("JUDGEFLOW_CONFIG_FILE")
    from_env = Settings()
    if not config_file:
        return from_env

    yaml_data = _read_yaml(config_file)
    # Only fields explicitly set from the environment win over the YAML file
    env_data = from_env.model_dump(exclude_unset=True)
    return Settings.model_validate(_deep_merge(yaml_data, env_data))


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return build_settings()


def reset_settings_cache() -> None:
    load_settings.cache_clear()


__all__ = [
    "CertificationSettings",
    "DatabaseSettings",
    "Settings",
    "build_settings",
    "load_settings",
    "reset_settings_cache",
]

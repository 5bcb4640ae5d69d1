"""設定ファイル読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_COOKIE_NAME,
    ONE_DAY_SECONDS,
    ONE_YEAR_SECONDS,
    AbtConfig,
)
from .exceptions import AbtError, AbtErrorCodes


class AbtSection(BaseModel):
    """YAML の abt セクション。"""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = Field(default=0.2, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    cache_ttl_seconds: float = Field(default=0.2, gt=0)
    sweep_interval_seconds: float = Field(default=ONE_DAY_SECONDS, gt=0)
    cookie_name: str = Field(default=DEFAULT_COOKIE_NAME, min_length=1)
    cookie_max_age_seconds: int = Field(default=ONE_YEAR_SECONDS, ge=0)
    server_flag_types: list[str] = Field(default_factory=lambda: ["flag", "redir"])
    single_flight: bool = False

    def to_config(self) -> AbtConfig:
        return AbtConfig(
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
            max_attempts=self.max_attempts,
            cache_ttl_seconds=self.cache_ttl_seconds,
            sweep_interval_seconds=self.sweep_interval_seconds,
            cookie_name=self.cookie_name,
            cookie_max_age_seconds=self.cookie_max_age_seconds,
            server_flag_types=tuple(self.server_flag_types),
            single_flight=self.single_flight,
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise AbtError(
            code=AbtErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data: dict[str, Any] = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise AbtError(
            code=AbtErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    return data


def load_config(path: Path) -> AbtConfig:
    """設定ファイルの abt セクションを読み込んで AbtConfig を返す。

    セクションが無い場合はデフォルト設定を返す。
    """
    data = _read_yaml(path)
    try:
        section = AbtSection.model_validate(data.get("abt") or {})
    except ValidationError as e:
        raise AbtError(
            code=AbtErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
    return section.to_config()

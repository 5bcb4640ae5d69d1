"""設定ファイル読み込みのユニットテスト"""

from pathlib import Path

import pytest
from k1s0_abt.config import AbtConfig
from k1s0_abt.exceptions import AbtError, AbtErrorCodes
from k1s0_abt.loader import load_config


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config() -> None:
    """デフォルト設定の確認。"""
    cfg = AbtConfig()
    assert cfg.base_url == "https://uaas.yandex.ru/v1/exps/"
    assert cfg.max_attempts == 3
    assert cfg.timeout_seconds == 0.2
    assert cfg.cache_ttl_seconds == 0.2
    assert cfg.sweep_interval_seconds == 86400
    assert cfg.cookie_name == "_ymab_param"
    assert cfg.cookie_max_age_seconds == 31536000
    assert cfg.server_flag_types == ("flag", "redir")
    assert cfg.single_flight is False


def test_load_abt_section(tmp_path: Path) -> None:
    """abt セクションを読み込めること。"""
    path = write(
        tmp_path,
        """
app:
  name: shop
abt:
  max_attempts: 5
  timeout_seconds: 0.5
  cookie_name: ab
  server_flag_types: [flag]
  single_flight: true
""",
    )
    cfg = load_config(path)
    assert cfg.max_attempts == 5
    assert cfg.timeout_seconds == 0.5
    assert cfg.cookie_name == "ab"
    assert cfg.server_flag_types == ("flag",)
    assert cfg.single_flight is True
    assert cfg.cache_ttl_seconds == 0.2


def test_missing_section_uses_defaults(tmp_path: Path) -> None:
    """abt セクションがなければデフォルト。"""
    assert load_config(write(tmp_path, "app:\n  name: shop\n")) == AbtConfig()


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    """空ファイルはデフォルト。"""
    assert load_config(write(tmp_path, "")) == AbtConfig()


def test_missing_file(tmp_path: Path) -> None:
    """ファイルがなければ READ_FILE_ERROR。"""
    with pytest.raises(AbtError) as exc_info:
        load_config(tmp_path / "nope.yaml")
    assert exc_info.value.code == AbtErrorCodes.READ_FILE


def test_invalid_yaml(tmp_path: Path) -> None:
    """YAML として不正なら PARSE_YAML_ERROR。"""
    with pytest.raises(AbtError) as exc_info:
        load_config(write(tmp_path, "abt: [unclosed\n"))
    assert exc_info.value.code == AbtErrorCodes.PARSE_YAML


def test_validation_error(tmp_path: Path) -> None:
    """範囲外の値は VALIDATION_ERROR。"""
    with pytest.raises(AbtError) as exc_info:
        load_config(write(tmp_path, "abt:\n  max_attempts: 0\n"))
    assert exc_info.value.code == AbtErrorCodes.VALIDATION

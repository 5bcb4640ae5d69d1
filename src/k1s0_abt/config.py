"""abt クライアント設定"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BASE_URL = "https://uaas.yandex.ru/v1/exps/"
DEFAULT_COOKIE_NAME = "_ymab_param"
ONE_YEAR_SECONDS = 60 * 60 * 24 * 365
ONE_DAY_SECONDS = 60 * 60 * 24


@dataclass
class AbtConfig:
    """実験割り当てクライアント設定。"""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 0.2
    max_attempts: int = 3
    cache_ttl_seconds: float = 0.2
    sweep_interval_seconds: float = ONE_DAY_SECONDS
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie_max_age_seconds: int = ONE_YEAR_SECONDS
    server_flag_types: tuple[str, ...] = ("flag", "redir")
    single_flight: bool = False

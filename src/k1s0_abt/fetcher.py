"""実験サービス HTTP フェッチャー"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .config import AbtConfig
from .exceptions import AbtError, AbtErrorCodes, AttemptsExhaustedError
from .identifier import decode_identifier
from .metrics import fetch_attempts_total
from .models import FetchRequest, RawAnswer


class AbtFetcher(ABC):
    """実験サービスフェッチャー抽象基底クラス。"""

    @abstractmethod
    async def fetch(
        self, request: FetchRequest, timeout_seconds: float | None = None
    ) -> RawAnswer:
        """割り当てを取得する。失敗時は AbtError。"""
        ...


def build_params(request: FetchRequest) -> dict[str, str]:
    """問い合わせのクエリパラメータを組み立てる。"""
    params: dict[str, str] = {"client_id": str(request.client_id)}
    if request.identifier:
        try:
            params["i"] = decode_identifier(request.identifier)
        except UnicodeDecodeError:
            params["i"] = request.identifier
    if request.page_url:
        params["url"] = request.page_url
    if request.client_features is not None:
        params["client_features"] = json.dumps(
            dict(request.client_features), separators=(",", ":")
        )
    return params


class HttpAbtFetcher(AbtFetcher):
    """httpx を使った実験サービスフェッチャー。

    試行は直列に最大 max_attempts 回（バックオフなし）。タイムアウトは
    試行ごとではなく呼び出し全体に一つだけ掛かり、期限を過ぎた時点で
    実行中の試行は破棄される。
    """

    def __init__(
        self,
        config: AbtConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if config.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._config = config
        self._transport = transport
        self._logger = logger or structlog.stdlib.get_logger("k1s0_abt")

    def _make_client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    async def _send_once(self, params: dict[str, str], timeout: float) -> RawAnswer:
        fetch_attempts_total.add(1)
        try:
            async with self._make_client(timeout) as client:
                resp = await client.get(self._config.base_url, params=params)
        except Exception as e:
            raise AbtError(
                code=AbtErrorCodes.TRANSPORT_ERROR,
                message=f"Failed to reach experiment service: {e!r}",
                cause=e,
            ) from e
        if resp.status_code != 200:
            raise AbtError(
                code=AbtErrorCodes.STATUS_ERROR,
                message=f"HTTP {resp.status_code}",
            )
        try:
            data: Any = resp.json()
            return RawAnswer.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise AbtError(
                code=AbtErrorCodes.PARSE_ERROR,
                message=f"Malformed answer: {e}",
                cause=e,
            ) from e

    async def _fetch_with_retry(self, params: dict[str, str], timeout: float) -> RawAnswer:
        last_error: AbtError | None = None
        for attempt in range(1, self._config.max_attempts + 1):
            try:
                return await self._send_once(params, timeout)
            except AbtError as e:
                last_error = e
                self._logger.debug(
                    "abt_fetch_attempt_failed",
                    attempt=attempt,
                    client_id=params.get("client_id"),
                    code=e.code,
                    error=str(e),
                )
        raise AttemptsExhaustedError(attempts=self._config.max_attempts, last_error=last_error)

    async def fetch(
        self, request: FetchRequest, timeout_seconds: float | None = None
    ) -> RawAnswer:
        timeout = self._config.timeout_seconds if timeout_seconds is None else timeout_seconds
        params = build_params(request)
        try:
            return await asyncio.wait_for(
                self._fetch_with_retry(params, timeout), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise AbtError(
                code=AbtErrorCodes.TIMEOUT,
                message=f"No answer within {timeout:.3f}s",
                cause=e,
            ) from e

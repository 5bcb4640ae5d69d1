"""AssignmentResolver: 実験割り当て解決のエントリポイント"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from types import TracebackType

import structlog

from .cache import AssignmentCache, CacheSweeper, InMemoryAssignmentCache
from .config import AbtConfig
from .cookie import CookieWriter
from .exceptions import AbtError, AbtErrorCodes
from .fetcher import AbtFetcher, HttpAbtFetcher
from .identifier import normalize_identifier, resolve_identifier
from .metrics import fetch_failures_total, resolutions_total
from .models import (
    Assignment,
    CacheKey,
    ClientId,
    FetchRequest,
    RequestLike,
    ResolveOptions,
    ResponseLike,
    get_header,
)
from .transformer import transform


def page_url_of(request: RequestLike) -> str | None:
    """リクエストのスキーム・Host・パスからページ URL を再構成する。"""
    host = get_header(request.headers, "Host")
    if not host:
        return None
    scheme = "https" if request.secure else "http"
    return f"{scheme}://{host}{request.path}"


def _validate_options(options: ResolveOptions) -> None:
    if options.timeout_seconds is not None and options.timeout_seconds <= 0:
        raise AbtError(
            code=AbtErrorCodes.INVALID_OPTIONS,
            message=f"timeout must be positive: {options.timeout_seconds}",
        )
    if options.client_features is not None and not isinstance(options.client_features, Mapping):
        raise AbtError(
            code=AbtErrorCodes.INVALID_OPTIONS,
            message="client_features must be a mapping",
        )


class AssignmentResolver:
    """訪問者の実験割り当てを解決する。

    識別子の解決、キャッシュ参照、実験サービスへの問い合わせ、応答の正規化、
    キャッシュ格納、Cookie 書き込みを順に行う。問い合わせの失敗は呼び出し元に
    送出せず、縮退した Assignment を返す。
    """

    def __init__(
        self,
        config: AbtConfig | None = None,
        fetcher: AbtFetcher | None = None,
        cache: AssignmentCache | None = None,
        cookie_writer: CookieWriter | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config or AbtConfig()
        self._logger = logger or structlog.stdlib.get_logger("k1s0_abt")
        self._fetcher = fetcher or HttpAbtFetcher(self._config, logger=self._logger)
        self._cache = cache if cache is not None else InMemoryAssignmentCache()
        self._cookie_writer = cookie_writer or CookieWriter(
            name=self._config.cookie_name,
            max_age=self._config.cookie_max_age_seconds,
        )
        self._sweeper = CacheSweeper(self._cache, self._config.sweep_interval_seconds)
        self._in_flight: dict[CacheKey, asyncio.Task[tuple[Assignment, bool]]] = {}
        self._stopped = False

    @property
    def cache(self) -> AssignmentCache:
        return self._cache

    @property
    def sweeping(self) -> bool:
        return self._sweeper.running

    async def start(self) -> None:
        """キャッシュの定期掃除を開始する。"""
        self._stopped = False
        self._sweeper.start()

    async def stop(self) -> None:
        """キャッシュの定期掃除を停止する。以後 resolve しても再開しない。"""
        self._stopped = True
        await self._sweeper.stop()

    async def __aenter__(self) -> AssignmentResolver:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def resolve(
        self,
        request: RequestLike,
        response: ResponseLike | None,
        client_id: ClientId,
        options: ResolveOptions | None = None,
    ) -> Assignment:
        """割り当てを解決する。

        Args:
            request: 受信リクエスト
            response: Cookie を書き込むレスポンス（None なら書き込まない）
            client_id: 連携アプリケーションの ID
            options: 識別子・ページ URL・クライアント特徴量・タイムアウトの上書き

        Returns:
            Assignment。ready は常に True

        Raises:
            AbtError: options が不正な場合のみ（INVALID_OPTIONS）
        """
        options = options or ResolveOptions()
        _validate_options(options)
        # stop() されるまで定期掃除は常に動かしておく
        if not self._stopped and not self._sweeper.running:
            self._sweeper.start()

        identifier = resolve_identifier(
            options.identifier,
            get_header(request.headers, "Cookie"),
            self._config.cookie_name,
        )

        key: CacheKey | None = None
        if identifier:
            key = CacheKey.of(client_id, identifier)
            cached = self._cache.get(key)
            if cached is not None:
                resolutions_total.add(1, {"outcome": "cache_hit"})
                return cached

        fetch_request = FetchRequest(
            client_id=client_id,
            identifier=identifier,
            page_url=options.page_url or page_url_of(request),
            client_features=options.client_features,
        )
        if self._config.single_flight and key is not None:
            assignment, fetched = await self._load_shared(
                key, fetch_request, options.timeout_seconds
            )
        else:
            assignment, fetched = await self._load(fetch_request, options.timeout_seconds)

        if fetched:
            self._cookie_writer.write(response, assignment, request.secure)
        return assignment

    async def _load_shared(
        self,
        key: CacheKey,
        fetch_request: FetchRequest,
        timeout_seconds: float | None,
    ) -> tuple[Assignment, bool]:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(fetch_request, timeout_seconds))
            self._in_flight[key] = task

            def _forget(done: asyncio.Task[tuple[Assignment, bool]]) -> None:
                if self._in_flight.get(key) is done:
                    del self._in_flight[key]

            task.add_done_callback(_forget)
        return await asyncio.shield(task)

    async def _load(
        self,
        fetch_request: FetchRequest,
        timeout_seconds: float | None,
    ) -> tuple[Assignment, bool]:
        """問い合わせて結果をキャッシュする。(assignment, 取得成功か) を返す。"""
        try:
            answer = await self._fetcher.fetch(fetch_request, timeout_seconds)
        except Exception as e:
            code = e.code if isinstance(e, AbtError) else AbtErrorCodes.TRANSPORT_ERROR
            fetch_failures_total.add(1, {"code": code})
            resolutions_total.add(1, {"outcome": "degraded"})
            self._logger.warning(
                "abt_fetch_failed",
                client_id=str(fetch_request.client_id),
                identifier=fetch_request.identifier,
                code=code,
                error=str(e),
            )
            return Assignment.degraded(fetch_request.identifier), False

        assignment = transform(answer, self._config.server_flag_types)
        if assignment.identifier:
            key = CacheKey.of(fetch_request.client_id, normalize_identifier(assignment.identifier))
            self._cache.put(key, assignment, self._config.cache_ttl_seconds)
        resolutions_total.add(1, {"outcome": "fetched"})
        return assignment, True

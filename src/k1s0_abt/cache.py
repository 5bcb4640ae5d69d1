"""AssignmentCache 実装"""

from __future__ import annotations

import asyncio
import contextlib
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

from .models import Assignment, CacheKey

Clock = Callable[[], float]


class AssignmentCache(ABC):
    """割り当て結果キャッシュ抽象基底クラス。"""

    @abstractmethod
    def get(self, key: CacheKey) -> Assignment | None:
        """有効期限内のエントリを返す。読み取りで期限は延長しない。"""
        ...

    @abstractmethod
    def put(self, key: CacheKey, assignment: Assignment, ttl: float) -> None:
        """エントリを無条件に上書きする。ttl は秒。"""
        ...

    @abstractmethod
    def sweep(self) -> int:
        """期限切れエントリを削除し、削除件数を返す。"""
        ...


class _CacheEntry:
    __slots__ = ("assignment", "expires_at")

    def __init__(self, assignment: Assignment, expires_at: float) -> None:
        self.assignment = assignment
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryAssignmentCache(AssignmentCache):
    """プロセスローカルの TTL キャッシュ。

    シングルスレッドの asyncio 上での利用を前提とし、ロックは持たない。
    格納時と取得時に Assignment を複製するため、呼び出し側の変更は反映されない。
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[CacheKey, _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: CacheKey) -> Assignment | None:
        entry = self._store.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.assignment.copy()

    def put(self, key: CacheKey, assignment: Assignment, ttl: float) -> None:
        if not assignment.identifier:
            raise ValueError("assignment without identifier is not cacheable")
        self._store[key] = _CacheEntry(assignment.copy(), self._clock() + ttl)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        return len(expired)


logger = structlog.stdlib.get_logger("k1s0_abt")


class CacheSweeper:
    """一定間隔でキャッシュを掃除する asyncio タスク。"""

    def __init__(self, cache: AssignmentCache, interval_seconds: float) -> None:
        self._cache = cache
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """掃除タスクを開始する。既に動いていれば何もしない。"""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """掃除タスクを停止する。"""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                removed = self._cache.sweep()
            except Exception as e:
                logger.error("abt_cache_sweep_failed", error=str(e))
                continue
            logger.debug("abt_cache_swept", removed=removed)

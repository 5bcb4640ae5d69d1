"""abt データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

ClientId = str | int


class FlagType(StrEnum):
    """実験サービスが返すフラグ種別。"""

    FLAG = "flag"
    VISUAL = "visual"
    REDIR = "redir"
    ADV = "adv"
    ADV_REPLACE_ID = "advReplaceId"
    INTEGRATION = "integration"


@dataclass(frozen=True)
class RawFlag:
    """サービス応答のフラグ 1 件。"""

    name: str
    value: str
    type: str = FlagType.FLAG.value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawFlag:
        return cls(
            name=str(data["n"]),
            value=str(data["v"]),
            type=str(data.get("t", FlagType.FLAG.value)),
        )


@dataclass
class RawAnswer:
    """実験サービスの応答ボディ。"""

    flags: list[RawFlag] = field(default_factory=list)
    identifier: str | None = None
    experiments: str | None = None
    test_ids: list[int] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawAnswer:
        """JSON 辞書から生成する。構造が不正なら KeyError / TypeError / ValueError。"""
        if not isinstance(data, dict):
            raise TypeError(f"expected JSON object, got {type(data).__name__}")
        flags = data.get("flags", [])
        if not isinstance(flags, list):
            raise TypeError("'flags' must be a list")
        identifier = data.get("i")
        experiments = data.get("experiments")
        for key, value in (("i", identifier), ("experiments", experiments)):
            if value is not None and not isinstance(value, str):
                raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
        test_ids = data.get("testids")
        return cls(
            flags=[RawFlag.from_dict(f) for f in flags],
            identifier=identifier or None,
            experiments=experiments,
            test_ids=[int(t) for t in test_ids] if test_ids is not None else None,
        )


@dataclass
class Assignment:
    """正規化済みの実験割り当て結果。

    ready は「解決処理が完了した」ことを示し、成否とは無関係に常に True。
    """

    flags: dict[str, list[str]] = field(default_factory=dict)
    identifier: str | None = None
    experiments: str | None = None
    test_ids: list[int] | None = None
    ready: bool = True

    @classmethod
    def degraded(cls, identifier: str | None) -> Assignment:
        """フェッチ失敗時の縮退結果を返す。"""
        return cls(flags={}, identifier=identifier, experiments=None)

    def copy(self) -> Assignment:
        """フラグ値のリストまで複製したコピーを返す。"""
        return Assignment(
            flags={name: list(values) for name, values in self.flags.items()},
            identifier=self.identifier,
            experiments=self.experiments,
            test_ids=list(self.test_ids) if self.test_ids is not None else None,
            ready=self.ready,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "flags": {name: list(values) for name, values in self.flags.items()},
            "ready": self.ready,
        }
        if self.identifier is not None:
            data["i"] = self.identifier
        if self.experiments is not None:
            data["experiments"] = self.experiments
        if self.test_ids is not None:
            data["testids"] = list(self.test_ids)
        return data


@dataclass(frozen=True)
class ResolveOptions:
    """割り当て解決のオプション。"""

    identifier: str | None = None
    page_url: str | None = None
    client_features: Mapping[str, str] | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class FetchRequest:
    """実験サービスへの問い合わせ内容。identifier は正規化済み。"""

    client_id: ClientId
    identifier: str | None = None
    page_url: str | None = None
    client_features: Mapping[str, str] | None = None


@dataclass(frozen=True)
class CacheKey:
    """キャッシュキー。identifier は正規化（パーセントエンコード）済み。"""

    client_id: str
    identifier: str

    @classmethod
    def of(cls, client_id: ClientId, identifier: str) -> CacheKey:
        return cls(client_id=str(client_id), identifier=identifier)


class RequestLike(Protocol):
    """受信リクエストのプロトコル。"""

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def path(self) -> str: ...

    @property
    def secure(self) -> bool: ...


class ResponseLike(Protocol):
    """送信レスポンスのプロトコル。"""

    @property
    def headers_sent(self) -> bool: ...

    def add_header(self, name: str, value: str) -> None: ...


@dataclass
class HttpRequest:
    """フレームワーク非依存の簡易リクエスト。"""

    headers: dict[str, str] = field(default_factory=dict)
    path: str = "/"
    secure: bool = False


@dataclass
class HttpResponse:
    """フレームワーク非依存の簡易レスポンス。"""

    headers: list[tuple[str, str]] = field(default_factory=list)
    headers_sent: bool = False

    def add_header(self, name: str, value: str) -> None:
        if self.headers_sent:
            raise RuntimeError("headers already sent")
        self.headers.append((name, value))

    def get_all(self, name: str) -> list[str]:
        lowered = name.lower()
        return [v for k, v in self.headers if k.lower() == lowered]


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """ヘッダーを大文字小文字を区別せずに取得する。"""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None

"""旧来の位置引数シグネチャ互換エントリポイント

過去の呼び出し形式 ``(req, res, client_id, identifier?, page_url?)``,
``(req, res, client_id, client_features)``, ``(req, res, client_id, timeout_ms)``
を実行時の型で判別して ResolveOptions に変換する。解決処理本体は
ResolveOptions しか受け取らない。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .exceptions import AbtError, AbtErrorCodes
from .models import Assignment, ClientId, RequestLike, ResolveOptions, ResponseLike
from .resolver import AssignmentResolver

_default_resolver: AssignmentResolver | None = None


def _invalid(message: str) -> AbtError:
    return AbtError(code=AbtErrorCodes.INVALID_OPTIONS, message=message)


def options_from_args(*args: Any) -> ResolveOptions:
    """位置引数を ResolveOptions に変換する。

    先頭の str は識別子、2 番目の str はページ URL、Mapping はクライアント
    特徴量、int / float はミリ秒単位のタイムアウトとして扱う。None は無視する。

    Raises:
        AbtError: 判別できない型、または同じ種類の引数が重複した場合
    """
    strings: list[str] = []
    features: Mapping[str, str] | None = None
    timeout_seconds: float | None = None

    for arg in args:
        if arg is None:
            continue
        if isinstance(arg, ResolveOptions):
            if len(args) != 1:
                raise _invalid("ResolveOptions cannot be combined with positional options")
            return arg
        if isinstance(arg, str):
            if len(strings) == 2:
                raise _invalid("too many string arguments")
            strings.append(arg)
        elif isinstance(arg, Mapping):
            if features is not None:
                raise _invalid("client features given twice")
            features = {str(k): str(v) for k, v in arg.items()}
        elif isinstance(arg, (int, float)) and not isinstance(arg, bool):
            if timeout_seconds is not None:
                raise _invalid("timeout given twice")
            if arg <= 0:
                raise _invalid(f"timeout must be positive: {arg}")
            timeout_seconds = arg / 1000
        else:
            raise _invalid(f"unsupported argument type: {type(arg).__name__}")

    return ResolveOptions(
        identifier=strings[0] if strings else None,
        page_url=strings[1] if len(strings) > 1 else None,
        client_features=features,
        timeout_seconds=timeout_seconds,
    )


def default_resolver() -> AssignmentResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = AssignmentResolver()
    return _default_resolver


async def get_abt(
    request: RequestLike,
    response: ResponseLike | None,
    client_id: ClientId,
    *args: Any,
    resolver: AssignmentResolver | None = None,
) -> Assignment:
    """位置引数形式で割り当てを解決する。"""
    options = options_from_args(*args)
    resolver = resolver or default_resolver()
    return await resolver.resolve(request, response, client_id, options)

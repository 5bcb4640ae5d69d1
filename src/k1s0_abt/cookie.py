"""識別子 Cookie の書き込み"""

from __future__ import annotations

import structlog

from .config import DEFAULT_COOKIE_NAME, ONE_YEAR_SECONDS
from .identifier import normalize_identifier
from .models import Assignment, ResponseLike

logger = structlog.stdlib.get_logger("k1s0_abt")


def build_set_cookie(
    identifier: str,
    secure: bool,
    name: str = DEFAULT_COOKIE_NAME,
    max_age: int = ONE_YEAR_SECONDS,
) -> str:
    """Set-Cookie ヘッダー値を組み立てる。

    SameSite=None は Secure なしだと拒否するブラウザが多いため、
    TLS 接続の場合にだけ付ける。
    """
    parts = [f"{name}={normalize_identifier(identifier)}", f"Max-Age={max_age}", "Path=/"]
    if secure:
        parts.extend(["SameSite=None", "Secure"])
    return "; ".join(parts)


class CookieWriter:
    """割り当て結果の識別子をレスポンスに Cookie として付与する。"""

    def __init__(
        self,
        name: str = DEFAULT_COOKIE_NAME,
        max_age: int = ONE_YEAR_SECONDS,
    ) -> None:
        self._name = name
        self._max_age = max_age

    def write(
        self,
        response: ResponseLike | None,
        assignment: Assignment,
        secure: bool,
    ) -> bool:
        """Cookie を書き込めたら True。例外は送出しない。"""
        if response is None or not assignment.identifier:
            return False
        if response.headers_sent:
            return False
        value = build_set_cookie(assignment.identifier, secure, self._name, self._max_age)
        try:
            response.add_header("Set-Cookie", value)
        except Exception as e:
            logger.warning("abt_cookie_write_failed", error=str(e))
            return False
        return True

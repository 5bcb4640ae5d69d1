"""訪問者識別子（i-cookie）の抽出と正規化"""

from __future__ import annotations

from urllib.parse import quote, unquote

from .config import DEFAULT_COOKIE_NAME

# encodeURIComponent 互換の非エスケープ文字
_SAFE_CHARS = "!~*'()"


def encode_identifier(value: str) -> str:
    return quote(value, safe=_SAFE_CHARS)


def decode_identifier(value: str) -> str:
    """パーセントデコードする。不正なエスケープは UnicodeDecodeError。"""
    return unquote(value, errors="strict")


def normalize_identifier(value: str) -> str:
    """識別子をパーセントエンコード済みの正規形にする。

    デコード可能なら一度デコードしてから再エンコードするため、
    既にエンコード済みの値を二重にエンコードしない。
    """
    try:
        decoded = decode_identifier(value)
    except UnicodeDecodeError:
        decoded = value
    return encode_identifier(decoded)


def parse_cookie_header(header: str | None) -> dict[str, str]:
    """Cookie ヘッダーを名前 -> 値の辞書にする。同名は先勝ち。"""
    cookies: dict[str, str] = {}
    if not header:
        return cookies
    for pair in header.split(";"):
        name, sep, value = pair.partition("=")
        if not sep:
            continue
        name = name.strip()
        if name and name not in cookies:
            cookies[name] = value.strip()
    return cookies


def get_cookie(header: str | None, name: str = DEFAULT_COOKIE_NAME) -> str | None:
    """Cookie ヘッダーから指定名の値を取得する（名前は大文字小文字を区別）。"""
    return parse_cookie_header(header).get(name)


def resolve_identifier(
    explicit: str | None,
    cookie_header: str | None,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> str | None:
    """明示指定、なければ Cookie から識別子を求め、正規形で返す。"""
    if explicit:
        return normalize_identifier(explicit)
    value = get_cookie(cookie_header, cookie_name)
    if not value:
        return None
    return normalize_identifier(value)

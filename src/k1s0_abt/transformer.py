"""サービス応答から Assignment への変換"""

from __future__ import annotations

from collections.abc import Collection

from .models import Assignment, FlagType, RawAnswer

SERVER_FLAG_TYPES: frozenset[str] = frozenset({FlagType.FLAG.value, FlagType.REDIR.value})


def transform(
    answer: RawAnswer,
    server_flag_types: Collection[str] = SERVER_FLAG_TYPES,
) -> Assignment:
    """応答を正規化する。

    サーバー側で意味を持つ種別のフラグだけを残し、同名フラグの値は
    出現順に連結する。
    """
    flags: dict[str, list[str]] = {}
    for flag in answer.flags:
        if flag.type not in server_flag_types:
            continue
        flags.setdefault(flag.name, []).append(flag.value)
    return Assignment(
        flags=flags,
        identifier=answer.identifier,
        experiments=answer.experiments,
        test_ids=list(answer.test_ids) if answer.test_ids is not None else None,
        ready=True,
    )

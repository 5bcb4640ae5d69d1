"""abt モデルのユニットテスト"""

import pytest
from k1s0_abt.exceptions import AbtError, AbtErrorCodes, AttemptsExhaustedError
from k1s0_abt.models import Assignment, FlagType, HttpResponse, RawAnswer, get_header


def test_flag_type_values() -> None:
    """FlagType の値がサービスの種別文字列と一致すること。"""
    assert FlagType.FLAG.value == "flag"
    assert FlagType.VISUAL.value == "visual"
    assert FlagType.REDIR.value == "redir"
    assert FlagType.ADV.value == "adv"
    assert FlagType.ADV_REPLACE_ID.value == "advReplaceId"
    assert FlagType.INTEGRATION.value == "integration"


def test_raw_answer_from_dict() -> None:
    """辞書から RawAnswer を生成できること。"""
    answer = RawAnswer.from_dict(
        {
            "flags": [{"n": "a", "v": "1", "t": "visual"}, {"n": "b", "v": "2"}],
            "i": "id-1",
            "experiments": "blob",
            "testids": [1, 2],
        }
    )
    assert [f.name for f in answer.flags] == ["a", "b"]
    assert answer.flags[0].type == "visual"
    assert answer.flags[1].type == "flag"
    assert answer.identifier == "id-1"
    assert answer.experiments == "blob"
    assert answer.test_ids == [1, 2]


def test_raw_answer_empty_identifier_is_none() -> None:
    """空文字の i は None として扱うこと。"""
    assert RawAnswer.from_dict({"flags": [], "i": ""}).identifier is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"flags": "nope"},
        {"flags": [{"v": "1"}]},
        {"flags": [], "testids": ["x"]},
        {"flags": [], "i": 12345},
        {"flags": [], "i": ["id-1"]},
        {"flags": [], "experiments": {"a": 1}},
    ],
)
def test_raw_answer_from_dict_rejects_malformed(payload: object) -> None:
    """構造が不正な応答は例外になること。"""
    with pytest.raises((KeyError, TypeError, ValueError)):
        RawAnswer.from_dict(payload)  # type: ignore[arg-type]


def test_assignment_degraded() -> None:
    """縮退結果は空のフラグと既知の識別子を持つこと。"""
    assignment = Assignment.degraded("id-1")
    assert assignment.flags == {}
    assert assignment.identifier == "id-1"
    assert assignment.experiments is None
    assert assignment.ready is True


def test_assignment_to_dict() -> None:
    """Assignment をサービスと同じキー名の辞書にできること。"""
    data = Assignment(flags={"a": ["1"]}, identifier="id", experiments="e", test_ids=[5]).to_dict()
    assert data == {"flags": {"a": ["1"]}, "i": "id", "experiments": "e", "testids": [5], "ready": True}
    assert Assignment().to_dict() == {"flags": {}, "ready": True}


def test_get_header_case_insensitive() -> None:
    """ヘッダー名は大文字小文字を区別しないこと。"""
    assert get_header({"cookie": "a=1"}, "Cookie") == "a=1"
    assert get_header({"Host": "h"}, "host") == "h"
    assert get_header({}, "Host") is None


def test_http_response_rejects_after_headers_sent() -> None:
    """送信済みレスポンスへのヘッダー追加はエラー。"""
    response = HttpResponse(headers_sent=True)
    with pytest.raises(RuntimeError):
        response.add_header("X", "1")


def test_abt_error_format() -> None:
    """AbtError のフォーマット。"""
    err = AbtError(AbtErrorCodes.STATUS_ERROR, "HTTP 500")
    assert str(err) == "STATUS_ERROR: HTTP 500"
    assert err.code == AbtErrorCodes.STATUS_ERROR


def test_attempts_exhausted_error_keeps_last_error() -> None:
    """AttemptsExhaustedError が最後のエラーを cause に持つこと。"""
    last = AbtError(AbtErrorCodes.STATUS_ERROR, "HTTP 503")
    err = AttemptsExhaustedError(attempts=3, last_error=last)
    assert err.code == AbtErrorCodes.ATTEMPTS_EXHAUSTED
    assert err.attempts == 3
    assert err.__cause__ is last
    assert "HTTP 503" in str(err)


def test_assignment_copy_is_independent() -> None:
    """copy はフラグ値のリストまで複製すること。"""
    original = Assignment(flags={"a": ["1"]}, identifier="id", test_ids=[1])
    copied = original.copy()
    assert copied == original
    copied.flags["a"].append("2")
    copied.test_ids.append(2)  # type: ignore[union-attr]
    assert original.flags == {"a": ["1"]}
    assert original.test_ids == [1]

"""応答変換のユニットテスト"""

from k1s0_abt.models import RawAnswer, RawFlag
from k1s0_abt.transformer import transform


def test_visual_flags_are_dropped() -> None:
    """visual フラグは除外され、flag だけが残ること。"""
    answer = RawAnswer(
        flags=[RawFlag("a", "1", "visual"), RawFlag("a", "2", "flag")],
        identifier="id-1",
    )
    assert transform(answer).flags == {"a": ["2"]}


def test_client_side_flag_types_are_dropped() -> None:
    """adv / advReplaceId / integration も除外されること。"""
    answer = RawAnswer(
        flags=[
            RawFlag("ad", "1", "adv"),
            RawFlag("ad", "2", "advReplaceId"),
            RawFlag("int", "3", "integration"),
            RawFlag("go", "/new", "redir"),
        ]
    )
    assert transform(answer).flags == {"go": ["/new"]}


def test_values_are_appended_in_encounter_order() -> None:
    """同名フラグの値は出現順に連結されること。"""
    answer = RawAnswer(
        flags=[
            RawFlag("b", "x"),
            RawFlag("a", "1"),
            RawFlag("b", "y"),
            RawFlag("a", "2"),
        ]
    )
    flags = transform(answer).flags
    assert list(flags) == ["b", "a"]
    assert flags == {"b": ["x", "y"], "a": ["1", "2"]}


def test_passthrough_fields() -> None:
    """identifier / experiments / test_ids はそのまま写されること。"""
    answer = RawAnswer(identifier="id-1", experiments="blob", test_ids=[10, 20])
    assignment = transform(answer)
    assert assignment.identifier == "id-1"
    assert assignment.experiments == "blob"
    assert assignment.test_ids == [10, 20]
    assert assignment.ready is True


def test_ready_is_true_for_empty_answer() -> None:
    """空の応答でも ready は True。"""
    assignment = transform(RawAnswer())
    assert assignment.flags == {}
    assert assignment.ready is True


def test_custom_server_flag_types() -> None:
    """残す種別を設定で変えられること。"""
    answer = RawAnswer(flags=[RawFlag("a", "1", "visual"), RawFlag("b", "2", "flag")])
    assert transform(answer, {"visual"}).flags == {"a": ["1"]}

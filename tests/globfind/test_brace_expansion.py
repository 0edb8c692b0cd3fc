from typing import List

import pytest

from globfind.brace_expansion import expand


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        ("a{b,c}d", ["abd", "acd"]),
        ("{a,b}{1,2}", ["a1", "a2", "b1", "b2"]),
        ("a{b,{c,d}}e", ["abe", "ace", "ade"]),
        ("{,a}b", ["b", "ab"]),
        ("x{{a,b}}y", ["x{a}y", "x{b}y"]),
        ("{x,y}.txt", ["x.txt", "y.txt"]),
        ("a/{b,c}/*.js", ["a/b/*.js", "a/c/*.js"]),
    ],
)
def test_comma_groups_should_expand_in_order(pattern: str, expected: List[str]) -> None:
    assert expand(pattern) == expected


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        ("{1..3}", ["1", "2", "3"]),
        ("{3..1}", ["3", "2", "1"]),
        ("{0..10..5}", ["0", "5", "10"]),
        ("{0..10..-5}", ["0", "5", "10"]),
        ("{1..2..0}", ["1", "2"]),
        ("{-1..1}", ["-1", "0", "1"]),
        ("{01..03}", ["01", "02", "03"]),
        ("{8..10}", ["8", "9", "10"]),
        ("{a..c}", ["a", "b", "c"]),
        ("{c..a}", ["c", "b", "a"]),
        ("{a..e..2}", ["a", "c", "e"]),
        ("file{1..2}.txt", ["file1.txt", "file2.txt"]),
    ],
)
def test_sequences_should_expand(pattern: str, expected: List[str]) -> None:
    assert expand(pattern) == expected


@pytest.mark.parametrize(
    "pattern",
    [
        "",
        "abc",
        "a{b}c",
        "{}",
        "a{}b",
        "${a,b}",
        "a\\{b,c}",
        "{a,b",
        "a}b{",
        "{1..}",
    ],
)
def test_patterns_without_expandable_groups_should_stay_unchanged(pattern: str) -> None:
    assert expand(pattern) == [pattern]


def test_escaped_comma_should_not_split() -> None:
    assert expand("{a\\,b,c}") == ["a,b", "c"]


def test_single_group_should_join_a_later_comma_group() -> None:
    assert expand("{a}{b,c}") == ["{a}b", "{a}c"]


def test_padded_sequence_should_use_width_of_wider_bound() -> None:
    assert expand("{001..3}") == ["001", "002", "003"]


def test_negative_padded_numbers_should_keep_sign_in_front() -> None:
    assert expand("{-01..1}") == ["-01", "000", "001"]


def test_top_level_empty_expansions_should_be_dropped() -> None:
    assert expand("{a,}") == ["a"]

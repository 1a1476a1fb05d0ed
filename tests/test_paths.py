"""Tests for the path algebra."""

import pytest

from resolve_json.engine.exceptions import InvalidPathError
from resolve_json.engine.paths import (
    abs_path,
    format_path,
    is_valid_path,
    locate,
    path_from_string,
    step,
)
from resolve_json.engine.sentinel import UNRESOLVED


class TestPathFromString:
    @pytest.mark.parametrize(
        ("definition", "expected"),
        [
            ("@/a/b", ["a", "b"]),
            ("@a/b", ["a", "b"]),
            ("@@/lookup", ["lookup"]),
            ("@@lookup/key", ["lookup", "key"]),
            ("@@../../data", ["..", "..", "data"]),
            ("@/a//b/", ["a", "b"]),
            ("@/", []),
            ("plain", []),
        ],
    )
    def test_strips_prefix_and_splits(self, definition: str, expected: list[str]) -> None:
        assert path_from_string(definition) == expected


class TestAbsPath:
    def test_appends_plain_segments(self) -> None:
        assert abs_path("a", 0, "b") == ["a", 0, "b"]

    def test_dot_is_a_no_op(self) -> None:
        assert abs_path("a", ".", "b", ".") == ["a", "b"]

    def test_dot_dot_pops(self) -> None:
        assert abs_path("step_data", "urls", "..", "..", "data", "client") == ["data", "client"]

    def test_dot_dot_past_root_raises(self) -> None:
        with pytest.raises(InvalidPathError) as exc_info:
            abs_path("a", "..", "..", "b")

        assert exc_info.value.segments == ["a", "..", "..", "b"]
        assert "ascends past the document root" in str(exc_info.value)

    def test_unresolved_segments_are_kept(self) -> None:
        assert abs_path("a", UNRESOLVED) == ["a", UNRESOLVED]


class TestValidity:
    def test_path_without_sentinel_is_valid(self) -> None:
        assert is_valid_path(["a", 0, "b"])
        assert is_valid_path([])

    def test_path_with_sentinel_is_invalid(self) -> None:
        assert not is_valid_path(["a", UNRESOLVED])


class TestStep:
    def test_dict_key(self) -> None:
        assert step({"a": 1}, "a") == 1

    def test_int_segment_on_dict_uses_string_key(self) -> None:
        assert step({"0": "zero"}, 0) == "zero"

    def test_digit_string_indexes_list(self) -> None:
        assert step(["x", "y"], "1") == "y"

    def test_negative_index(self) -> None:
        assert step([1, 2, 3], -1) == 3
        assert locate([1, 2, 3], "-1") == 2

    def test_missing_values_are_unresolved(self) -> None:
        assert step({"a": 1}, "b") is UNRESOLVED
        assert step([1], 5) is UNRESOLVED
        assert step([1], "x") is UNRESOLVED
        assert step("text", 0) is UNRESOLVED
        assert step(None, "a") is UNRESOLVED

    def test_booleans_do_not_index_lists(self) -> None:
        assert step([1, 2], True) is UNRESOLVED

    def test_unhashable_segment_on_dict(self) -> None:
        assert step({"a": 1}, ["a"]) is UNRESOLVED

    def test_none_value_is_found(self) -> None:
        assert step({"a": None}, "a") is None


def test_format_path() -> None:
    assert format_path(["users", 0, "name"]) == "/users/0/name"
    assert format_path([]) == "/"

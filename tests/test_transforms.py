"""Tests for the xf_* transform operators."""

import math
from datetime import datetime

import pytest

from resolve_json.engine.context import def_context
from resolve_json.engine.exceptions import ResolverError, TransformArityError, UnknownTransformError
from resolve_json.engine.nodes import Transform
from resolve_json.engine.resolver import resolve
from resolve_json.engine.sentinel import UNRESOLVED
from resolve_json.engine.transforms import is_truthy, strict_equal, to_text, transform

NAMES = [{"name": "Alice"}, {"name": "Frank"}, {"name": "Zorp"}]


class TestValueSemantics:
    @pytest.mark.parametrize("value", [False, None, 0, 0.0, "", math.nan, UNRESOLVED])
    def test_falsy(self, value: object) -> None:
        assert not is_truthy(value)

    @pytest.mark.parametrize("value", [True, 1, -1, "0", "false", {}, [], {"a": 1}])
    def test_truthy(self, value: object) -> None:
        assert is_truthy(value)

    def test_strict_equal_does_not_coerce(self) -> None:
        assert strict_equal(1, 1.0)
        assert strict_equal("a", "a")
        assert not strict_equal(1, "1")
        assert not strict_equal(1, True)
        assert not strict_equal(0, False)
        assert not strict_equal(None, False)

    def test_to_text(self) -> None:
        assert to_text(True) == "true"
        assert to_text(2.0) == "2"
        assert to_text(2.5) == "2.5"
        assert to_text({"a": [1, 2]}) == '{"a":[1,2]}'


class TestBool:
    def test_all_truthy(self) -> None:
        assert transform(["xf_bool", True, 1, "hello", {}, []]) is True

    @pytest.mark.parametrize("falsy", [0, "", False, None])
    def test_any_falsy(self, falsy: object) -> None:
        assert transform(["xf_bool", True, {}, [], 42, falsy]) is False

    def test_no_arguments(self) -> None:
        assert transform(["xf_bool"]) is True


class TestConcat:
    def test_arrays_are_flattened_one_level(self) -> None:
        assert transform(["xf_concat", 1, 2, [3, 4], 5]) == [1, 2, 3, 4, 5]
        assert transform(["xf_concat", [[1], 2]]) == [[1], 2]

    def test_single_value_is_wrapped(self) -> None:
        assert transform(["xf_concat", 12]) == [12]


class TestDateformat:
    def test_token_list(self) -> None:
        date = datetime(2022, 12, 31, 3, 30, 2)
        result = transform(
            ["xf_dateformat", date, ["MM", "/", "dd", "/", "yyyy", " @ ", "h", ":", "mm", "a"]]
        )
        assert result == "12/31/2022 @ 3:30am"

    def test_names_and_24h_clock(self) -> None:
        date = datetime(2023, 1, 2, 15, 4, 5)
        result = transform(["xf_dateformat", date, ["EEEE", ", ", "MMMM", " ", "d", " ", "HH", ":", "mm", "a"]])
        assert result == "Monday, January 2 15:04pm"

    def test_iso_string_and_strftime(self) -> None:
        assert transform(["xf_dateformat", "2022-12-31T03:30:02", "%Y/%m/%d"]) == "2022/12/31"

    def test_unparseable_value_is_returned(self) -> None:
        assert transform(["xf_dateformat", "not a date", ["yyyy"]]) == "not a date"

    def test_without_format(self) -> None:
        assert transform(["xf_dateformat", "2022-12-31T03:30:02"]) == "2022-12-31T03:30:02"


class TestEquality:
    def test_eq(self) -> None:
        assert transform(["xf_eq", 1, 1]) is True
        assert transform(["xf_eq", 1, "1"]) is False

    def test_eq_with_return_value(self) -> None:
        assert transform(["xf_eq", 1, 1, "yes"]) == "yes"
        assert transform(["xf_eq", 1, 2, "yes"]) is False

    def test_falsy_return_value_gives_boolean(self) -> None:
        assert transform(["xf_eq", 1, 1, 0]) is True

    def test_not_eq(self) -> None:
        assert transform(["xf_not_eq", 1, 2]) is True
        assert transform(["xf_not_eq", 1, 2, {"a": 1}]) == {"a": 1}
        assert transform(["xf_not_eq", "a", "a", "no"]) is False


class TestScalars:
    def test_hoist(self) -> None:
        assert transform(["xf_hoist", [{"a": 1}, {"a": 2}]]) == {"a": 1}
        assert transform(["xf_hoist", "single"]) == "single"
        assert transform(["xf_hoist", []]) is UNRESOLVED

    def test_invert(self) -> None:
        assert transform(["xf_invert", 0]) is True
        assert transform(["xf_invert", "x"]) is False
        assert transform(["xf_invert", []]) is False

    def test_join(self) -> None:
        assert transform(["xf_join", "a", 1, True, 2.0]) == "a1true2"

    def test_join_drops_nulls(self) -> None:
        assert transform(["xf_join", "a", None, "b"]) == "ab"
        assert transform(["xf_join"]) == ""


class TestPick:
    def test_returns_the_nested_path_value(self) -> None:
        root = {"data": {"array": ["one", "two"]}}
        result = resolve(["xf_pick", "@/data", ["array", 1]], def_context(root))

        assert isinstance(result, Transform)
        assert result.value == "two"

    def test_without_path(self) -> None:
        root = {"data": "data"}

        assert resolve(["xf_pick", "@/data"], def_context(root)).value == "data"
        assert resolve(["xf_pick", "@/data", []], def_context(root)).value == "data"

    def test_dotted_string_path(self) -> None:
        assert transform(["xf_pick", {"a": {"b": 3}}, "a.b"]) == 3

    def test_missing_path(self) -> None:
        assert transform(["xf_pick", {"a": 1}, ["b"]]) is UNRESOLVED


class TestFirst:
    def test_first_matching_candidate(self) -> None:
        result = transform(
            ["xf_first", [["xf_eq", 1, 1, "first"], ["xf_not_eq", 1, 2, "second"]]]
        )
        assert result == "first"

    def test_last_matching_candidate(self) -> None:
        result = transform(
            [
                "xf_first",
                [
                    ["xf_eq", 1, 2, "first"],
                    ["xf_not_eq", 1, 1, "second"],
                    ["xf_some", [1, 2, 3], 2, "third"],
                ],
            ]
        )
        assert result == "third"

    def test_absolute_reference_as_return_value(self) -> None:
        ctx = def_context({"data": 42})
        result = transform(["xf_first", [["xf_eq", 1, 2, "not_eq"], ["xf_eq", 1, 1, "@/data"]]], ctx)
        assert result == 42

    def test_relative_reference_as_return_value(self) -> None:
        root = {
            "nesting": {
                "data": 42,
                "xf": ["xf_first", [["xf_eq", 1, 1, "@data"], ["xf_eq", 1, 1, "should not reach me"]]],
            }
        }
        ctx = def_context(root, current_location=["nesting", "xf"])
        assert transform(root["nesting"]["xf"], ctx) == 42

    def test_plain_candidates_skip_nulls_and_pending(self) -> None:
        ctx = def_context({"a": None}, variables={"b": "bee"})
        assert transform(["xf_first", ["@/a", "$missing", "$b"]], ctx) == "bee"

    def test_no_match(self) -> None:
        assert transform(["xf_first", [["xf_eq", 1, 2]]]) is UNRESOLVED


class TestMap:
    @pytest.mark.parametrize(
        ("source", "mapper", "expected"),
        [
            (["Alice", "Frank", "Zorp"], ["xf_join", "__", "$", "__"], ["__Alice__", "__Frank__", "__Zorp__"]),
            (NAMES, ["xf_pick", "$", ["name"]], ["Alice", "Frank", "Zorp"]),
            ([0, False, "", 1, True, "testing"], ["xf_bool", "$"], [False, False, False, True, True, True]),
        ],
    )
    def test_transform_mappers(self, source: list, mapper: list, expected: list) -> None:
        assert transform(["xf_map", source, mapper]) == expected

    def test_map_as_source_of_map(self) -> None:
        definition = [
            "xf_map",
            ["xf_map", "$users", ["xf_pick", "$", ["name"]]],
            ["xf_join", "__", "$", "__"],
        ]
        result = resolve(definition, def_context({}, variables={"users": NAMES}))

        assert isinstance(result, Transform)
        assert result.value == ["__Alice__", "__Frank__", "__Zorp__"]

    def test_concat_as_source(self) -> None:
        root = {"data": {"one": "one", "two": "two", "three": "three"}, "numbers": [1, 2, 3]}
        definition = [
            "xf_map",
            ["xf_concat", "@/numbers", "@/data/one", "@/data/two", "@/data/three"],
            ["xf_pick", "$"],
        ]

        assert resolve(definition, def_context(root)).value == [1, 2, 3, "one", "two", "three"]

    def test_reference_sources(self) -> None:
        root = {
            "nesting": {
                "users": {"client_client": NAMES},
                "relative": ["xf_map", ["@@users", "$object_type"], ["xf_pick", "$", ["name"]]],
                "absolute": ["xf_map", ["@@/nesting/users", "$object_type"], ["xf_pick", "$", ["name"]]],
            },
            "names": ["xf_map", "@/users", ["xf_pick", "$", ["name"]]],
            "users": NAMES,
        }
        result = resolve(root, def_context(root, variables={"object_type": "client_client"}))

        assert result["nesting"]["relative"].value == ["Alice", "Frank", "Zorp"]
        assert result["nesting"]["absolute"].value == ["Alice", "Frank", "Zorp"]
        assert result["names"].value == ["Alice", "Frank", "Zorp"]

    def test_record_mapper(self) -> None:
        users = [
            {"first_name": "Alice", "last_name": "Smith"},
            {"first_name": "Frank", "last_name": "Smith"},
        ]
        root = {
            "names": [
                "xf_map",
                "$users",
                {
                    "full_name": [
                        "xf_join",
                        ["xf_pick", "$", ["first_name"]],
                        " ",
                        ["xf_pick", "$", ["last_name"]],
                    ]
                },
            ]
        }
        result = resolve(root, def_context(root, variables={"users": users}))

        assert result["names"].value == [{"full_name": "Alice Smith"}, {"full_name": "Frank Smith"}]

    def test_mapper_does_not_write_into_the_document(self) -> None:
        definition = [
            "xf_map",
            ["xf_map", "$users", ["xf_pick", "$", ["name"]]],
            {"data": ["xf_join", "@/prefix", "$"]},
        ]
        root = {"prefix": "__", "nesting": {"names": definition}}
        result = resolve(root, def_context(root, variables={"users": NAMES}))

        assert result["nesting"]["names"].value == [{"data": "__Alice"}, {"data": "__Frank"}, {"data": "__Zorp"}]
        assert set(result["nesting"]) == {"names"}
        assert definition[2] == {"data": ["xf_join", "@/prefix", "$"]}

    def test_pending_element_makes_the_map_pending(self) -> None:
        ctx = def_context({}, variables={"a": 1})
        assert transform(["xf_map", ["x", "y"], ["xf_join", "$", "$b"]], ctx) is UNRESOLVED

    def test_non_list_source(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            assert transform(["xf_map", "$user", "$"], def_context({}, variables={"user": {"a": 1}})) is UNRESOLVED

        assert "expects a list source" in caplog.text


class TestSome:
    def test_boolean_result_comparator(self) -> None:
        result = resolve(
            ["xf_some", "$users", ["xf_eq", ["xf_pick", "$", ["name"]], "Zorp"]],
            def_context({}, variables={"users": NAMES}),
        )

        assert isinstance(result, Transform)
        assert result.value is True

    def test_absolute_reference_comparator(self) -> None:
        result = transform(["xf_some", ["Alice", "Frank", "Zorp"], "@/data"], def_context({"data": "Frank"}))
        assert result is True

    def test_relative_reference_comparator(self) -> None:
        root = {"nesting": {"data": "Frank", "xf": "xf location..."}}
        ctx = def_context(root, current_location=["nesting", "xf"])

        assert transform(["xf_some", ["Alice", "Frank", "Zorp"], "@data"], ctx) is True

    def test_no_match(self) -> None:
        assert transform(["xf_some", [1, 2, 3], 4]) is False

    def test_return_value(self) -> None:
        assert transform(["xf_some", [1, 2, 3], 3, {"one": 1}]) == {"one": 1}
        assert transform(["xf_some", [1, 2, 3], 4, {"one": 1}]) is False


class TestUnknownTag:
    def test_raises(self) -> None:
        with pytest.raises(UnknownTransformError) as exc_info:
            transform(["xf_nope", 1])

        assert exc_info.value.tag == "xf_nope"

    def test_raises_with_location_during_resolution(self) -> None:
        document = {"a": {"b": ["xf_nope"]}}

        with pytest.raises(UnknownTransformError) as exc_info:
            resolve(document)

        assert exc_info.value.location == ["a", "b"]


class TestArity:
    @pytest.mark.parametrize(
        ("definition", "expected"),
        [
            (["xf_hoist"], "1"),
            (["xf_invert", 1, 2], "1"),
            (["xf_eq", 1], "2 to 3"),
            (["xf_not_eq", 1, 2, 3, 4], "2 to 3"),
            (["xf_pick"], "1 to 2"),
            (["xf_dateformat"], "1 to 2"),
            (["xf_first"], "1"),
            (["xf_map", [1, 2]], "2"),
            (["xf_some", [1], 1, 2, 3], "2 to 3"),
        ],
    )
    def test_wrong_argument_count(self, definition: list, expected: str) -> None:
        with pytest.raises(TransformArityError) as exc_info:
            transform(definition)

        assert exc_info.value.tag == definition[0]
        assert exc_info.value.count == len(definition) - 1
        assert exc_info.value.expected == expected

    def test_is_a_resolver_error(self) -> None:
        with pytest.raises(ResolverError):
            transform(["xf_hoist"])

    def test_raises_with_location_during_resolution(self) -> None:
        document = {"a": [{"h": ["xf_eq", 1]}]}

        with pytest.raises(TransformArityError) as exc_info:
            resolve(document)

        assert exc_info.value.location == ["a", 0, "h"]
        assert "'xf_eq' at a/0/h takes 2 to 3 argument(s), got 1" in str(exc_info.value)

    def test_variadic_operators_accept_no_arguments(self) -> None:
        assert transform(["xf_bool"]) is True
        assert transform(["xf_join"]) == ""
        assert transform(["xf_concat"]) == []

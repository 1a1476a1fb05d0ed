"""Tests for document loading and variable parsing."""

from pathlib import Path

import pytest

from resolve_json.engine.load_result import LoadResult
from resolve_json.engine.loader import load_document_from_file, load_document_from_string, parse_variables


class TestLoadFromFile:
    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "document.json"
        path.write_text('{"a": "@b", "b": 1}')

        result = load_document_from_file(path)

        assert result.is_success
        assert result.value == {"a": "@b", "b": 1}
        assert result.metadata["format"] == "json"

    @pytest.mark.parametrize("suffix", [".yaml", ".yml"])
    def test_yaml(self, tmp_path: Path, suffix: str) -> None:
        path = tmp_path / f"document{suffix}"
        path.write_text("names:\n  - xf_map\n  - $users\n  - [xf_pick, $, [name]]\n")

        result = load_document_from_file(path)

        assert result.is_success
        assert result.value == {"names": ["xf_map", "$users", ["xf_pick", "$", ["name"]]]}
        assert result.metadata["format"] == "yaml"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_document_from_file(tmp_path / "missing.json")

        assert result.is_failure
        assert "not found" in result.error

    def test_directory(self, tmp_path: Path) -> None:
        result = load_document_from_file(tmp_path)

        assert result.is_failure
        assert "not a file" in result.error

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = load_document_from_file(path)

        assert result.is_failure
        assert "Invalid JSON" in result.error
        assert str(path) in result.error


class TestLoadFromString:
    def test_null_document_is_a_success(self) -> None:
        result = load_document_from_string("null")

        assert result.is_success
        assert result.value is None

    def test_invalid_yaml(self) -> None:
        result = load_document_from_string("a: [unclosed", format="yaml")

        assert result.is_failure
        assert "Invalid YAML" in result.error

    def test_unsupported_format(self) -> None:
        result = load_document_from_string("<a/>", format="xml")

        assert result.is_failure
        assert "xml" in result.error


class TestParseVariables:
    def test_json_values(self) -> None:
        result = parse_variables(["count=3", 'user={"name": "Alice"}', "flag=true", "items=[1,2]"])

        assert result.unwrap() == {"count": 3, "user": {"name": "Alice"}, "flag": True, "items": [1, 2]}

    def test_plain_strings(self) -> None:
        result = parse_variables(["name=Alice", 'quoted="Alice"', "empty=", "url=https://x.io/?a=b"])

        assert result.unwrap() == {"name": "Alice", "quoted": "Alice", "empty": "", "url": "https://x.io/?a=b"}

    @pytest.mark.parametrize("assignment", ["novalue", "=value", " =1"])
    def test_invalid(self, assignment: str) -> None:
        result = parse_variables([assignment])

        assert result.is_failure
        assert "NAME=VALUE" in result.error


class TestLoadResult:
    def test_success(self) -> None:
        result = LoadResult.success({"a": 1}, metadata={"source": "x"})

        assert result.is_success
        assert not result.is_failure
        assert result.unwrap() == {"a": 1}
        assert result.metadata == {"source": "x"}

    def test_failure(self) -> None:
        result: LoadResult[dict] = LoadResult.failure("broken")

        assert result.is_failure
        assert result.value is None
        with pytest.raises(ValueError, match="broken"):
            result.unwrap()

    def test_failure_requires_a_message(self) -> None:
        with pytest.raises(ValueError):
            LoadResult.failure("")

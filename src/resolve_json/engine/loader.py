"""
Document loader.

Loads JSON or YAML documents for resolution.

Features:
- Load documents from files (format picked from the extension) or strings
- Errors are returned as LoadResult failures, never raised
- Variable bindings parsed from NAME=JSON pairs (used by the CLI)
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from .load_result import LoadResult

logger = logging.getLogger(__name__)

JSON_SUFFIXES = frozenset({".json"})
YAML_SUFFIXES = frozenset({".yaml", ".yml"})
FORMATS = ("json", "yaml")


def load_document_from_file(file_path: str | Path) -> LoadResult[Any]:
    """
    Load a document from a JSON or YAML file.

    ``.yaml``/``.yml`` files are parsed as YAML, everything else as JSON.

    Args:
        file_path: Path to the document

    Returns:
        LoadResult.success(document) if parsed
        LoadResult.failure(error_message) otherwise

    Example:
        result = load_document_from_file("config/form.yaml")
        if result.is_success:
            document = resolve(result.value, {"object_type": "client"})
        else:
            print(f"Failed to load: {result.error}")
    """
    path = Path(file_path)

    if not path.exists():
        return LoadResult.failure(f"Document file not found: {file_path}")

    if not path.is_file():
        return LoadResult.failure(f"Path is not a file: {file_path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except Exception as e:
        return LoadResult.failure(f"Failed to read file '{file_path}': {e}")

    document_format = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"
    logger.debug(f"Loading {document_format} document from {path}")
    return load_document_from_string(content, format=document_format, source=str(file_path))


def load_document_from_string(
    content: str, format: str = "json", source: str = "<string>"
) -> LoadResult[Any]:
    """
    Parse a document from a string.

    Args:
        content: Document text
        format: "json" or "yaml"
        source: Source identifier for error messages (default: "<string>")

    Returns:
        LoadResult.success(document) if parsed
        LoadResult.failure(error_message) otherwise
    """
    if format not in FORMATS:
        return LoadResult.failure(f"Unsupported document format '{format}' (expected json or yaml)")

    if format == "yaml":
        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError as e:
            return LoadResult.failure(f"Invalid YAML syntax in {source}: {e}")
    else:
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            return LoadResult.failure(f"Invalid JSON in {source}: {e}")

    return LoadResult.success(document, metadata={"source": source, "format": format})


def parse_variables(assignments: Iterable[str]) -> LoadResult[dict[str, Any]]:
    """
    Parse ``NAME=VALUE`` assignments into variable bindings.

    VALUE is read as JSON; anything that is not valid JSON is kept as a
    plain string, so ``name=Alice`` and ``name="Alice"`` bind the same value.

    Example:
        >>> parse_variables(["count=3", "name=Alice"]).value
        {'count': 3, 'name': 'Alice'}
    """
    variables: dict[str, Any] = {}

    for assignment in assignments:
        name, separator, raw = assignment.partition("=")
        name = name.strip()
        if not separator or not name:
            return LoadResult.failure(f"Invalid variable assignment '{assignment}' (expected NAME=VALUE)")

        try:
            variables[name] = json.loads(raw)
        except json.JSONDecodeError:
            variables[name] = raw

    return LoadResult.success(variables)


__all__ = ["load_document_from_file", "load_document_from_string", "parse_variables"]

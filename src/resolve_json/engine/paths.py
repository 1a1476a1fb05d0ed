"""
Path algebra for addressing locations inside a document.

A path is a list of segments (dict keys or list indices). Reference strings
carry their path after an addressing prefix:

    "@/a/b"          absolute string   -> ["a", "b"]
    "@a/b"           relative string   -> ["a", "b"] (against the parent)
    ["@@/a", ...]    absolute array    -> ["a", ...resolved args]
    ["@@a", ...]     relative array    -> ["a", ...resolved args]

Relative paths may contain "." (stay) and ".." (go to parent) segments,
folded by :func:`abs_path`.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from typing import Any

from .exceptions import InvalidPathError
from .sentinel import UNRESOLVED

PathSegment = str | int
Path = list[PathSegment]

ABSOLUTE_ARRAY_PREFIX = "@@/"
RELATIVE_ARRAY_PREFIX = "@@"
ABSOLUTE_STRING_PREFIX = "@/"
RELATIVE_STRING_PREFIX = "@"


def path_from_string(definition: str) -> list[str]:
    """
    Strip the addressing prefix and split the remainder on "/".

    Empty segments are discarded, so "@/a//b/" and "@/a/b" are the same path.

    Args:
        definition: A reference string or the head of a reference array

    Returns:
        List of string segments (empty if the string carries no prefix)

    Example:
        >>> path_from_string("@@../../data")
        ['..', '..', 'data']
    """
    if definition.startswith(ABSOLUTE_ARRAY_PREFIX):
        remainder = definition[len(ABSOLUTE_ARRAY_PREFIX) :]
    elif definition.startswith((RELATIVE_ARRAY_PREFIX, ABSOLUTE_STRING_PREFIX)):
        remainder = definition[2:]
    elif definition.startswith(RELATIVE_STRING_PREFIX):
        remainder = definition[1:]
    else:
        return []
    return [segment for segment in remainder.split("/") if segment]


def abs_path(*segments: Any) -> list[Any]:
    """
    Fold path parts left to right into a concrete path.

    "." is a no-op, ".." pops the last accumulated segment and any other
    value is appended.

    Raises:
        InvalidPathError: If ".." is applied to an empty accumulator
    """
    result: list[Any] = []
    for segment in segments:
        if segment == ".":
            continue
        if segment == "..":
            if not result:
                raise InvalidPathError(segments)
            result.pop()
            continue
        result.append(segment)
    return result


def is_valid_path(path: Iterable[Any]) -> bool:
    """A path is valid iff none of its segments is the sentinel."""
    return all(segment is not UNRESOLVED for segment in path)


def locate(container: Any, segment: Any) -> Any:
    """
    Concrete key or index addressed by ``segment`` inside ``container``.

    Digit strings index lists and negative indices are normalized. An int
    addressing a dict is retried as its string form. Returns ``UNRESOLVED``
    when nothing is there.
    """
    if isinstance(container, Mapping):
        if not isinstance(segment, Hashable):
            return UNRESOLVED
        if segment in container:
            return segment
        if isinstance(segment, int) and not isinstance(segment, bool) and str(segment) in container:
            return str(segment)
        return UNRESOLVED

    if isinstance(container, list | tuple):
        index = _as_index(segment)
        if index is None or not -len(container) <= index < len(container):
            return UNRESOLVED
        return index % len(container)

    return UNRESOLVED


def step(container: Any, segment: Any) -> Any:
    """Look up one segment in a dict or list, ``UNRESOLVED`` if missing."""
    key = locate(container, segment)
    if key is UNRESOLVED:
        return UNRESOLVED
    return container[key]


def format_path(path: Sequence[Any]) -> str:
    """Render a path for log and error messages."""
    return "/" + "/".join(str(segment) for segment in path)


def _as_index(segment: Any) -> int | None:
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment
    if isinstance(segment, str) and segment.lstrip("-").isdigit():
        return int(segment)
    return None


__all__ = [
    "Path",
    "PathSegment",
    "path_from_string",
    "abs_path",
    "is_valid_path",
    "locate",
    "step",
    "format_path",
]

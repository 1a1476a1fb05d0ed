"""Projection of a resolved document onto plain values."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .nodes import Node
from .paths import step
from .sentinel import UNRESOLVED


def deref(value: Any) -> Any:
    """If ``value`` is a node, return its cached value (through any level of nesting)."""
    while isinstance(value, Node):
        value = value.value
    return value


def get_in(value: Any, path: Sequence[Any] | str | None) -> Any:
    """
    Return the nested value at ``path`` inside ``value``, dereferencing nodes on the way.

    A string path is split on "."; an empty or missing path returns ``value``
    itself. Missing keys yield ``UNRESOLVED``.
    """
    result = deref(value)
    if path is None:
        return result
    if isinstance(path, str):
        path = [segment for segment in path.split(".") if segment]

    for segment in path:
        result = deref(step(result, segment))
        if result is UNRESOLVED:
            return UNRESOLVED
    return result


def to_plain_object(value: Any) -> Any:
    """
    Flatten a resolved tree into plain dicts, lists and scalars.

    Every node is replaced by its cached value; unresolved nodes become
    ``UNRESOLVED``, which callers can detect with ``is UNRESOLVED``. The
    input is not modified.

    Example:
        >>> to_plain_object(resolve({"a": 1, "b": "@a"}))
        {'a': 1, 'b': 1}
    """
    value = deref(value)

    if isinstance(value, dict):
        return {key: to_plain_object(item) for key, item in value.items()}

    if isinstance(value, list | tuple):
        return [to_plain_object(item) for item in value]

    return value


def is_fully_resolved(value: Any) -> bool:
    """True if neither ``value`` nor anything nested in it is unresolved."""
    value = deref(value)

    if value is UNRESOLVED:
        return False

    if isinstance(value, dict):
        return all(is_fully_resolved(item) for item in value.values())

    if isinstance(value, list | tuple):
        return all(is_fully_resolved(item) for item in value)

    return True


__all__ = ["deref", "get_in", "to_plain_object", "is_fully_resolved"]

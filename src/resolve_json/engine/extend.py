"""
Record inheritance with xf_inherit / xf_extend.

A record may list other records to merge with it:

    {
        "xf_inherit": [{"color": "red"}, "@/defaults"],
        "xf_extend": [["xf_eq", "$mode", "dark", {"color": "black"}]],
        "color": "blue",
    }

Entries of xf_inherit are merged under the record's own keys, entries of
xf_extend over them. An entry is a record, or any expression resolving to
one; entries that do not resolve to a record are ignored. Both keys are
removed from the result.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .classifier import ExpressionType, classify
from .context import ResolveContext, def_context
from .nodes import Node
from .projection import deref
from .resolver import resolve_immediate

INHERIT_KEY = "xf_inherit"
EXTEND_KEY = "xf_extend"


def resolve_to_record(value: Any, ctx: ResolveContext) -> dict[str, Any] | None:
    """Resolve ``value`` until it is a record; None if it never becomes one."""
    while True:
        if isinstance(value, Node):
            value = deref(value)
            continue

        kind = classify(value)
        if kind is ExpressionType.RECORD:
            return value
        if not kind.is_expression:
            return None

        value = deref(resolve_immediate(value, ctx))


def merge_records(entries: Any, ctx: ResolveContext) -> dict[str, Any]:
    """Merge the records ``entries`` resolve to, later entries winning."""
    merged: dict[str, Any] = {}
    if not isinstance(entries, list):
        return merged

    for entry in entries:
        record = resolve_to_record(entry, ctx)
        if record is not None:
            merged.update(record)
    return merged


def extend(
    document: Any,
    variables: Mapping[str, Any] | None = None,
    *,
    context: ResolveContext | None = None,
) -> Any:
    """
    Apply xf_inherit / xf_extend throughout ``document``.

    The document is not modified; records are rebuilt.

    Args:
        document: Document to extend
        variables: Variable bindings used by the merged expressions
        context: Resolution context (overrides ``variables``)

    Returns:
        A new document with every record merged

    Example:
        >>> extend({"xf_inherit": [{"a": 1, "b": 1}], "b": 2})
        {'a': 1, 'b': 2}
    """
    if context is None:
        context = def_context(document, variables=variables)
    return _extend(document, context)


def _extend(value: Any, ctx: ResolveContext) -> Any:
    if classify(value) is not ExpressionType.RECORD:
        return value

    own = {key: item for key, item in value.items() if key not in (INHERIT_KEY, EXTEND_KEY)}
    record = {
        **merge_records(value.get(INHERIT_KEY), ctx),
        **own,
        **merge_records(value.get(EXTEND_KEY), ctx),
    }

    return {key: _extend(item, ctx.descend(key)) for key, item in record.items()}


__all__ = ["extend", "merge_records", "resolve_to_record"]

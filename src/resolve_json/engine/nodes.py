"""
Node model.

When the resolver first visits an expression literal it replaces it, in
place, with one of these nodes. A node keeps the original literal, its
location, the cached value (``UNRESOLVED`` until computed) and the other
nodes discovered as its dependencies. Nodes are mutated on later visits,
never replaced.

Kinds:
    Variable   "$name", "$" or ["$name", ...path]
    Reference  "@/a/b", "@a/b", ["@@/a", ...], ["@@a", ...]
    Transform  ["xf_<tag>", ...args]
    Resource   {"method": ..., "path": ..., "query"?, "body"?, "headers"?}
               (asynchronous resolution only)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .sentinel import UNRESOLVED

if TYPE_CHECKING:
    from .context import ResolveContext

BOOLEAN_RESULT_TAGS = frozenset({"xf_bool", "xf_eq", "xf_invert", "xf_not_eq", "xf_some"})
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(eq=False)
class Node:
    """Common state of every resolvable node.

    Nodes compare and hash by identity: two nodes with equal definitions at
    different locations are different cells of the document.
    """

    definition: Any
    path: list[str | int]
    value: Any = UNRESOLVED
    references: list[Node] = field(default_factory=list)
    context: ResolveContext | None = field(default=None, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self.value is not UNRESOLVED

    def set_value(self, value: Any) -> None:
        self.value = value

    def set_references(self, references: list[Node]) -> None:
        self.references = list(references)

    @property
    def resources(self) -> list[Resource]:
        """Resources this node depends on, found transitively through its references."""
        found: list[Resource] = []
        seen: set[int] = {id(self)}
        for node in self._walk_references(seen):
            if isinstance(node, Resource):
                found.append(node)
        return found

    def _walk_references(self, seen: set[int]) -> Iterator[Node]:
        for ref in self.references:
            if id(ref) in seen:
                continue
            seen.add(id(ref))
            yield ref
            # A resource's inputs are awaited by its own task
            if not isinstance(ref, Resource):
                yield from ref._walk_references(seen)


@dataclass(eq=False)
class Variable(Node):
    """A caller-supplied binding, or the current loop element for ``"$"``."""

    @property
    def key(self) -> str:
        head = self.definition if isinstance(self.definition, str) else self.definition[0]
        return head if head == "$" else head[1:]


@dataclass(eq=False)
class Reference(Node):
    """The value found at another location of the same document."""

    abs_path: list[str | int] | Any = UNRESOLVED

    def set_abs_path(self, path: list[str | int]) -> None:
        self.abs_path = list(path)


@dataclass(eq=False)
class Transform(Node):
    """A named operation over resolved arguments."""

    @property
    def tag(self) -> str:
        return self.definition[0]

    @property
    def is_boolean_result(self) -> bool:
        return self.tag in BOOLEAN_RESULT_TAGS


@dataclass(eq=False)
class Resource(Node):
    """A fetchable endpoint whose address, query and body are expressions."""

    is_fetched: bool = False

    @property
    def method(self) -> str:
        return str(self.definition.get("method", "GET")).upper()

    @property
    def address(self) -> Any:
        return self.definition.get("path")

    @property
    def query(self) -> Any:
        return self.definition.get("query")

    @property
    def body(self) -> Any:
        return self.definition.get("body") if self.method in WRITE_METHODS else None

    @property
    def headers(self) -> Any:
        return self.definition.get("headers")

    @property
    def inputs(self) -> dict[str, Any]:
        """Expressions that must resolve before the fetch, by request field."""
        inputs = {"address": self.address}
        for name in ("query", "body", "headers"):
            value = getattr(self, name)
            if value is not None:
                inputs[name] = value
        return inputs

    def mark_fetched(self, value: Any) -> None:
        self.value = value
        self.is_fetched = True


def is_boolean_result_transform(definition: Any) -> bool:
    """True for a transform literal or node whose natural result is boolean."""
    if isinstance(definition, Transform):
        return definition.is_boolean_result
    return (
        isinstance(definition, list)
        and bool(definition)
        and isinstance(definition[0], str)
        and definition[0] in BOOLEAN_RESULT_TAGS
    )


def is_node(value: Any) -> bool:
    return isinstance(value, Node)


def is_unresolved(value: Any) -> bool:
    """True for the sentinel or for a node whose value is still the sentinel."""
    while isinstance(value, Node):
        value = value.value
    return value is UNRESOLVED


__all__ = [
    "Node",
    "Variable",
    "Reference",
    "Transform",
    "Resource",
    "BOOLEAN_RESULT_TAGS",
    "WRITE_METHODS",
    "is_boolean_result_transform",
    "is_node",
    "is_unresolved",
]

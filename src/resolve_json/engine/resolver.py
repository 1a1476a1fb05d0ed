"""
Synchronous resolver.

Walks a document, replacing every expression literal it visits with a node
stored at the same location, and computes node values where the inputs
allow it. Anything that cannot be computed yet stays ``UNRESOLVED`` and is
retried by the next call, which reuses every value committed so far.

Two modes:
    memoized   tree locations; nodes are written back into the document
    immediate  transform arguments and loop callbacks; nodes are transient
               and nothing is written back

Architecture:
    resolve()            entry point for a whole document (memoized)
    resolve_immediate()  entry point for argument expressions
    resolve_at()         on-demand lookup of a single location
    get_in_root()        walks the root, resolving what it passes through
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .classifier import ExpressionType, classify, is_absolute_reference
from .context import ResolveContext, def_context
from .exceptions import CircularReferenceError
from .nodes import Node, Reference, Resource, Transform, Variable, is_unresolved
from .paths import abs_path, format_path, is_valid_path, locate, path_from_string, step
from .projection import deref, get_in
from .sentinel import UNRESOLVED
from .transforms import TRANSFORMS, apply_iterating, check_transform, is_iterating, resolve_source

logger = logging.getLogger(__name__)

_NODE_KINDS: dict[type[Node], ExpressionType] = {
    Variable: ExpressionType.VARIABLE,
    Reference: ExpressionType.REFERENCE,
    Transform: ExpressionType.TRANSFORM,
    Resource: ExpressionType.RESOURCE,
}

_NODE_TYPES: dict[ExpressionType, type[Node]] = {kind: cls for cls, kind in _NODE_KINDS.items()}

# ============================================================================
# Entry points
# ============================================================================


def resolve(obj: Any, context: ResolveContext | None = None) -> Any:
    """
    Resolve ``obj`` in place and return it.

    Records and arrays are returned as the same objects with their
    expressions replaced by nodes. An expression at the root is returned as
    its node.

    Args:
        obj: Document (or the value at ``context.current_location``)
        context: Resolution context (a fresh one rooted at ``obj`` if omitted)

    Returns:
        ``obj`` itself, or the node standing for it

    Raises:
        InvalidPathError: A relative reference climbs above the root
        UnknownTransformError: A transform tag has no operator
        TransformArityError: A transform has the wrong number of arguments
        CircularReferenceError: A location depends on itself
        ReferenceDepthExceededError: A reference chain is too deep
    """
    if context is None:
        context = def_context(obj)
    return _resolve_in_tree(obj, context)


def resolve_immediate(
    obj: Any, context: ResolveContext | None = None, *, collect: list[Node] | None = None
) -> Any:
    """
    Resolve ``obj`` without writing anything at the current location.

    Expressions come back as transient nodes; records and arrays come back
    as new containers holding plain values.

    Args:
        obj: Expression or template to resolve
        context: Resolution context (a fresh one rooted at ``obj`` if omitted)
        collect: If given, every node resolved on the way is appended to it
    """
    if context is None:
        context = def_context(obj)

    kind = classify(obj)

    if kind is ExpressionType.NODE or kind.is_expression:
        if kind is ExpressionType.NODE:
            node = _refresh(obj, context)
        else:
            node = _resolve_node(kind, obj, context, memoize=False)
        if collect is not None:
            collect.append(node)
        return node

    if kind is ExpressionType.RECORD:
        return {
            key: deref(resolve_immediate(value, context.descend(key), collect=collect))
            for key, value in obj.items()
        }

    if kind is ExpressionType.ARRAY:
        return [
            deref(resolve_immediate(item, context.descend(index), collect=collect))
            for index, item in enumerate(obj)
        ]

    return obj


def resolve_at(root: Any, path: Sequence[Any] | str, context: ResolveContext | None = None) -> Any:
    """
    Resolve the location at ``path`` on demand and return its value.

    Only what the location needs is resolved (and memoized). ``path`` is a
    list of segments or a "/"-separated string.

    Returns:
        The value, possibly a container still holding nodes, or ``UNRESOLVED``
    """
    if context is None:
        context = def_context(root)
    if isinstance(path, str):
        path = [segment for segment in path.split("/") if segment]
    if not path:
        return deref(resolve(root, context))

    value, _ = get_in_root(list(path), context)
    return value


# ============================================================================
# Tree walk (memoized)
# ============================================================================


def _resolve_in_tree(value: Any, ctx: ResolveContext) -> Any:
    kind = classify(value, allow_resources=ctx.is_async)

    if kind is ExpressionType.NODE:
        # Variables refresh on every direct visit; other nodes are write-once
        if isinstance(value, Variable) or not value.is_resolved:
            return _resolve_node(
                _NODE_KINDS[type(value)], value, ctx.entering(ctx.current_location), memoize=True
            )
        return value

    if kind.is_expression or kind is ExpressionType.RESOURCE:
        return _resolve_node(kind, value, ctx.entering(ctx.current_location), memoize=True)

    if kind is ExpressionType.RECORD:
        _resolve_children(value.items(), ctx)
    elif kind is ExpressionType.ARRAY:
        _resolve_children(enumerate(value), ctx)

    return value


def _resolve_children(items: Any, ctx: ResolveContext) -> None:
    for key, child in list(items):
        child_ctx = ctx.descend(key)
        if ctx.is_in_progress(child_ctx.current_location):
            continue
        if isinstance(child, Node) and child.is_resolved:
            continue
        _resolve_in_tree(child, child_ctx)


def _place(node: Node, ctx: ResolveContext) -> None:
    """Store ``node`` at the current location unless a node already lives there."""
    location = ctx.current_location
    if not location:
        return

    parent = deref(ctx.root)
    for segment in location[:-1]:
        parent = deref(step(parent, segment))

    key = locate(parent, location[-1])
    if key is UNRESOLVED or isinstance(parent[key], Node):
        return
    parent[key] = node


def _check_not_self_containing(node: Node, ctx: ResolveContext) -> None:
    """
    Raises:
        CircularReferenceError: If the node's value is one of its own ancestors
    """
    value = deref(node.value)
    if not isinstance(value, dict | list):
        return

    container = deref(ctx.root)
    for segment in [None, *node.path[:-1]]:
        if segment is not None:
            container = deref(step(container, segment))
        if container is value:
            location = tuple(node.path)
            raise CircularReferenceError(location, [location])


# ============================================================================
# Nodes
# ============================================================================


def _refresh(node: Node, ctx: ResolveContext) -> Node:
    """Re-resolve an existing node at its own location without placing it."""
    if isinstance(node, Variable) or not node.is_resolved:
        return _resolve_node(_NODE_KINDS[type(node)], node, ctx.at(node.path), memoize=False)
    return node


def _resolve_node(kind: ExpressionType, value: Any, ctx: ResolveContext, *, memoize: bool) -> Node:
    node = value if isinstance(value, Node) else _NODE_TYPES[kind](value, list(ctx.current_location))
    node.context = ctx

    if memoize:
        _place(node, ctx)

    if ctx.should_log():
        logger.debug(
            f"Resolving {kind.value} {node.definition!r} at {format_path(ctx.current_location)} "
            f"(variables={sorted(ctx.variables)}, memoize={memoize})"
        )

    if kind is ExpressionType.VARIABLE:
        _resolve_variable(node, ctx)
    elif kind is ExpressionType.TRANSFORM:
        _resolve_transform(node, ctx)
    elif kind is ExpressionType.REFERENCE:
        _resolve_reference(node, ctx)
    else:
        _resolve_resource(node, ctx)

    if ctx.should_log():
        logger.debug(f"Resolved {format_path(ctx.current_location)} -> {node.value!r}")

    if memoize:
        if node.is_resolved:
            _check_not_self_containing(node, ctx)
        elif ctx.async_state is not None and not isinstance(node, Variable):
            ctx.async_state.register(node)

    return node


def _resolve_variable(node: Variable, ctx: ResolveContext) -> None:
    binding = ctx.variables.get(node.key, UNRESOLVED)

    if not isinstance(node.definition, list):
        node.set_value(binding)
        return

    path, references = resolve_args(node.definition[1:], ctx)
    node.set_references(references)
    if is_valid_path(path):
        node.set_value(get_in(binding, path))
    else:
        node.set_value(UNRESOLVED)


def _resolve_reference(node: Reference, ctx: ResolveContext) -> None:
    path, references = expand_ref(node.definition, ctx)

    if is_valid_path(path):
        value, dependencies = get_in_root(path, ctx)
        references = [*references, *dependencies]
        if value is not UNRESOLVED:
            node.set_value(value)
            node.set_abs_path(path)

    node.set_references(references)


def _resolve_transform(node: Transform, ctx: ResolveContext) -> None:
    tag = node.tag
    check_transform(node.definition, ctx)

    if is_iterating(tag):
        source = resolve_source(node.definition, ctx)
        references = [source] if isinstance(source, Node) else []
        node.set_references(references)
        if is_unresolved(source):
            return
        # references also hold the transient mapper, candidate and return value nodes
        value = apply_iterating(node.definition, source, ctx, collect=references)
        node.set_references(references)
    else:
        args, references = resolve_args(node.definition[1:], ctx)
        node.set_references(references)
        if not is_valid_path(args):
            return
        value = TRANSFORMS[tag](*args)

    if value is not UNRESOLVED:
        node.set_value(value)


def _resolve_resource(node: Resource, ctx: ResolveContext) -> None:
    # Fetching is the scheduler's job; here the inputs are only inspected
    # so that the node knows what it waits on.
    if node.is_fetched:
        return

    references: list[Node] = []
    for value in node.inputs.values():
        _, found = resolve_input(value, ctx)
        references.extend(found)
    node.set_references(references)


# ============================================================================
# Arguments and paths
# ============================================================================


def resolve_args(parts: Sequence[Any], ctx: ResolveContext) -> tuple[list[Any], list[Node]]:
    """
    Resolve expression arguments immediately.

    Expressions become their values (``UNRESOLVED`` if pending), anything
    else is passed through untouched.

    Returns:
        Tuple of (values, transient nodes created for the expressions)
    """
    values: list[Any] = []
    references: list[Node] = []

    for part in parts:
        kind = classify(part)
        if kind is ExpressionType.NODE:
            node = _refresh(part, ctx)
        elif kind.is_expression:
            node = _resolve_node(kind, part, ctx, memoize=False)
        else:
            values.append(part)
            continue
        references.append(node)
        values.append(deref(node))

    return values, references


def resolve_input(value: Any, ctx: ResolveContext) -> tuple[Any, list[Node]]:
    """
    Resolve a resource input: an expression or a container of expressions.

    Every expression is resolved against ``ctx`` (the resource's own
    location), so relative references address the resource's siblings.

    Returns:
        Tuple of (plain value, transient nodes created for the expressions)
    """
    references: list[Node] = []

    def visit(item: Any) -> Any:
        kind = classify(item)
        if kind is ExpressionType.NODE:
            node = _refresh(item, ctx)
        elif kind.is_expression:
            node = _resolve_node(kind, item, ctx, memoize=False)
        elif kind is ExpressionType.RECORD:
            return {key: visit(child) for key, child in item.items()}
        elif kind is ExpressionType.ARRAY:
            return [visit(child) for child in item]
        else:
            return item
        references.append(node)
        return deref(node)

    return visit(value), references


def expand_ref(definition: Any, ctx: ResolveContext) -> tuple[list[Any], list[Node]]:
    """
    Turn a reference definition into a concrete absolute path.

    Array forms resolve their trailing arguments first and append them as
    extra segments. Relative forms are prefixed with the parent of the
    current location and folded with :func:`abs_path`.

    Returns:
        Tuple of (path, transient nodes created for the arguments). The path
        contains ``UNRESOLVED`` where an argument is still pending.

    Raises:
        InvalidPathError: If ".." climbs above the root
    """
    if isinstance(definition, str):
        head, args, references = definition, [], []
    else:
        head, *rest = definition
        args, references = resolve_args(rest, ctx)

    segments = [*path_from_string(head), *args]

    if is_absolute_reference(head):
        return segments, references

    return abs_path(*ctx.parent_location, *segments), references


def get_in_root(path: Sequence[Any], ctx: ResolveContext) -> tuple[Any, list[Node]]:
    """
    Walk the root along ``path``, resolving what the walk passes through.

    Unresolved nodes and raw expressions met on the way are resolved at
    their own location (and memoized there), so a path may run through
    other references and transforms. A plain container at the end of the
    path is resolved in place, skipping children already in progress.

    Past a reference the walk continues from the referenced location. Past
    any other node (variable bindings, transform results, fetched data) the
    remaining segments are plain lookups: that data is never interpreted.

    Returns:
        Tuple of (value or ``UNRESOLVED``, unresolved nodes encountered)
    """
    dependencies: list[Node] = []
    # "$" is lexical: it never leaks into another location
    lexical = ctx.without_element()
    current = ctx.root
    location: list[Any] = []
    opaque = False
    last = len(path) - 1

    for index, segment in enumerate(path):
        container = deref(current)
        key = locate(container, segment)
        if key is UNRESOLVED:
            return UNRESOLVED, dependencies

        if opaque:
            current = deref(container[key])
            continue

        location.append(key)
        current = _visit(container[key], location, lexical, final=index == last)

        if not isinstance(current, Node):
            continue
        if is_unresolved(current):
            dependencies.append(current)
            return UNRESOLVED, dependencies
        if isinstance(current, Reference) and is_valid_path(current.abs_path):
            location = list(current.abs_path)
        else:
            opaque = True

    value = deref(current)
    if isinstance(value, dict | list):
        _collect_unresolved(value, dependencies)
    return value, dependencies


def _visit(value: Any, location: list[Any], ctx: ResolveContext, *, final: bool) -> Any:
    kind = classify(value, allow_resources=ctx.is_async)

    if kind is ExpressionType.NODE or kind.is_expression or kind is ExpressionType.RESOURCE:
        return _resolve_in_tree(value, ctx.at(location))

    if final and kind in (ExpressionType.RECORD, ExpressionType.ARRAY):
        return _resolve_in_tree(value, ctx.at(location))

    return value


def _collect_unresolved(container: Any, found: list[Node]) -> None:
    items = container.values() if isinstance(container, dict) else container
    for item in items:
        if isinstance(item, Node):
            if not item.is_resolved:
                found.append(item)
        elif isinstance(item, dict | list):
            _collect_unresolved(item, found)


__all__ = [
    "resolve",
    "resolve_immediate",
    "resolve_at",
    "resolve_args",
    "resolve_input",
    "expand_ref",
    "get_in_root",
]

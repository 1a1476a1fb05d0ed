"""
Public resolution API.

Thin wrappers that build a context from plain arguments and call the
engine. Documents are resolved in place and may be passed again with more
variables: committed values are reused.

Example:
    document = {"user": "$user", "greeting": ["xf_join", "Hello, ", "@user"]}
    resolve(document)                      # greeting pending
    resolve(document, {"user": "Alice"})   # greeting resolved
    to_plain_object(document)
    # {'user': 'Alice', 'greeting': 'Hello, Alice'}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .engine import resolver, scheduler
from .engine.context import FetchResource, def_context, def_context_async
from .engine.projection import to_plain_object
from .settings import ResolverSettings


def resolve(
    document: Any,
    variables: Mapping[str, Any] | None = None,
    *,
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> Any:
    """
    Resolve ``document`` in place.

    Args:
        document: JSON-like document containing expressions
        variables: Variable bindings ("$name" looks up "name")
        debug_scope: Location prefix whose resolution is logged at DEBUG
        settings: Resolver settings (defaults apply if omitted)

    Returns:
        The same document, expressions replaced by nodes
    """
    context = def_context(document, variables=variables, debug_scope=debug_scope, settings=settings)
    return resolver.resolve(document, context)


def resolve_at(
    document: Any,
    path: Sequence[str | int] | str,
    variables: Mapping[str, Any] | None = None,
    *,
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> Any:
    """
    Resolve a single location and return its plain value.

    Args:
        document: JSON-like document containing expressions
        path: List of segments or a "/"-separated string
        variables: Variable bindings

    Returns:
        Plain value at ``path`` (``UNRESOLVED`` if pending or missing)
    """
    context = def_context(document, variables=variables, debug_scope=debug_scope, settings=settings)
    return to_plain_object(resolver.resolve_at(document, path, context))


async def resolve_async(
    document: Any,
    *,
    variables: Mapping[str, Any] | None = None,
    fetch_resource: FetchResource | None = None,
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> Any:
    """
    Resolve ``document`` in place, fetching the resources it declares.

    Args:
        document: JSON-like document containing expressions and resources
        variables: Variable bindings
        fetch_resource: Callable receiving a FetchRequest and returning the
            response (sync or async). Without it resources never fetch.
        debug_scope: Location prefix whose resolution is logged at DEBUG
        settings: Resolver settings

    Returns:
        The same document, once every task that can progress has completed
    """
    context = def_context_async(
        document,
        variables=variables,
        fetch_resource=fetch_resource,
        debug_scope=debug_scope,
        settings=settings,
    )
    return await scheduler.resolve_async(document, context)


async def resolve_at_async(
    document: Any,
    path: Sequence[str | int] | str,
    *,
    variables: Mapping[str, Any] | None = None,
    fetch_resource: FetchResource | None = None,
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> Any:
    """Asynchronous resolve_at: resolves one location, fetching what it needs."""
    context = def_context_async(
        document,
        variables=variables,
        fetch_resource=fetch_resource,
        debug_scope=debug_scope,
        settings=settings,
    )
    return to_plain_object(await scheduler.resolve_at_async(document, path, context))


__all__ = ["resolve", "resolve_at", "resolve_async", "resolve_at_async", "to_plain_object"]

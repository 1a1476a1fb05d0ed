"""
Resolution context.

A ResolveContext is an immutable value threaded through every resolver
call: the document root, the location being resolved, the active variable
bindings and the guards against runaway recursion. Moving to another
location or binding "$" creates a new context; nothing is stored in
module state.

Asynchronous resolution adds an AsyncState shared by every context derived
during one top-level call. It holds the fetch collaborator and the set of
nodes waiting for the scheduler.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from ..settings import ResolverSettings
from .exceptions import CircularReferenceError, ReferenceDepthExceededError

if TYPE_CHECKING:
    from .fetch import FetchRequest
    from .nodes import Node

Location = tuple[str | int, ...]
FetchResource = Callable[["FetchRequest"], "Awaitable[Any] | Any"]


@dataclass(eq=False)
class AsyncState:
    """
    State shared by one asynchronous resolution call.

    Attributes:
        fetch_resource: Collaborator performing resource fetches (None disables fetching)
        tasks: Unresolved nodes registered for the scheduler, keyed by identity
        stack: Number of resolve_async calls currently on the stack
    """

    fetch_resource: FetchResource | None = None
    tasks: dict[int, Node] = field(default_factory=dict)
    stack: int = 0

    def register(self, node: Node) -> None:
        self.tasks.setdefault(id(node), node)

    @property
    def is_outermost(self) -> bool:
        return self.stack == 0


@dataclass(frozen=True, eq=False)
class ResolveContext:
    """
    Context for resolving one location of a document.

    Design:
    - Immutable (derive new contexts with at/descend/with_element)
    - Holds the root, never a copy of it
    - Tracks locations in progress to reject cycles
    """

    root: Any
    current_location: Location = ()
    variables: Mapping[str, Any] = field(default_factory=dict)
    visiting: frozenset[Location] = frozenset()
    depth: int = 0
    max_reference_depth: int = ResolverSettings().max_reference_depth
    debug_scope: Location | None = None
    async_state: AsyncState | None = None

    @property
    def is_async(self) -> bool:
        return self.async_state is not None

    @property
    def parent_location(self) -> Location:
        return self.current_location[:-1]

    def at(self, location: Iterable[str | int]) -> ResolveContext:
        """Context for another location of the same document."""
        return replace(self, current_location=tuple(location))

    def descend(self, key: str | int) -> ResolveContext:
        """Context for a child of the current location."""
        return replace(self, current_location=(*self.current_location, key))

    def with_element(self, element: Any) -> ResolveContext:
        """Context binding "$" to the current loop element."""
        return replace(self, variables={**self.variables, "$": element})

    def with_variables(self, variables: Mapping[str, Any]) -> ResolveContext:
        return replace(self, variables=dict(variables))

    def without_element(self) -> ResolveContext:
        """Context with the "$" loop binding removed."""
        if "$" not in self.variables:
            return self
        return replace(self, variables={k: v for k, v in self.variables.items() if k != "$"})

    def entering(self, location: Iterable[str | int]) -> ResolveContext:
        """
        Context for resolving the node stored at ``location``.

        Raises:
            CircularReferenceError: If ``location`` is already being resolved
            ReferenceDepthExceededError: If the reference chain is too deep
        """
        loc = tuple(location)
        if loc in self.visiting:
            raise CircularReferenceError(loc, sorted(self.visiting, key=len))
        if self.depth >= self.max_reference_depth:
            raise ReferenceDepthExceededError(loc, self.depth + 1, self.max_reference_depth)
        return replace(
            self,
            current_location=loc,
            visiting=self.visiting | {loc},
            depth=self.depth + 1,
        )

    def without_guards(self) -> ResolveContext:
        """Same bindings and location with an empty in-progress set."""
        return replace(self, visiting=frozenset(), depth=0)

    def is_in_progress(self, location: Iterable[str | int]) -> bool:
        return tuple(location) in self.visiting

    def should_log(self) -> bool:
        """True when debug_scope is a prefix of the current location."""
        if self.debug_scope is None:
            return False
        scope = self.debug_scope
        return self.current_location[: len(scope)] == scope


def def_context(
    root: Any,
    *,
    variables: Mapping[str, Any] | None = None,
    current_location: Iterable[str | int] = (),
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> ResolveContext:
    """
    Create a synchronous resolution context for ``root``.

    Without explicit ``settings`` the limits come from the environment
    (see ResolverSettings.from_env).
    """
    settings = settings or ResolverSettings.from_env()
    return ResolveContext(
        root=root,
        current_location=tuple(current_location),
        variables=dict(variables or {}),
        max_reference_depth=settings.max_reference_depth,
        debug_scope=tuple(debug_scope) if debug_scope is not None else None,
    )


def def_context_async(
    root: Any,
    *,
    variables: Mapping[str, Any] | None = None,
    current_location: Iterable[str | int] = (),
    fetch_resource: FetchResource | None = None,
    debug_scope: Iterable[str | int] | None = None,
    settings: ResolverSettings | None = None,
) -> ResolveContext:
    """Create an asynchronous resolution context with a fresh AsyncState."""
    context = def_context(
        root,
        variables=variables,
        current_location=current_location,
        debug_scope=debug_scope,
        settings=settings,
    )
    return replace(context, async_state=AsyncState(fetch_resource=fetch_resource))


__all__ = [
    "AsyncState",
    "FetchResource",
    "Location",
    "ResolveContext",
    "def_context",
    "def_context_async",
]

"""
Asynchronous scheduler.

resolve_async() first resolves the document exactly like the synchronous
resolver. Every Reference, Transform and Resource left unresolved in the
tree registers itself in the call's AsyncState. The outermost call then
drains that set: one asyncio task per node, joined with asyncio.gather.

Node task:
    1. After a round that resolved something, re-resolve once
    2. Join the tasks of the pending nodes it depends on
    3. Re-resolve itself through the synchronous resolver
    4. Repeat while still unresolved and new dependencies appeared

Resource task:
    1. Resolve address, query, body and headers concurrently
    2. Stay pending unless the address resolved and the rest resolved fully
    3. Call the fetch collaborator once and store the response

Draining runs in rounds until a round neither resolves a node nor
registers a new one.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from .context import ResolveContext
from .dag import DAGResolver
from .exceptions import CircularReferenceError
from .fetch import FetchRequest
from .nodes import Node, Resource
from .paths import format_path
from .projection import deref, is_fully_resolved
from .resolver import resolve, resolve_at, resolve_input
from .sentinel import UNRESOLVED

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Runs node tasks for one asynchronous resolution call.

    Tasks are created lazily and shared through a per-round task table, so
    a node awaited by several others runs once per round. Resources are
    fetched at most once.
    """

    def __init__(self, context: ResolveContext):
        if context.async_state is None:
            raise ValueError("Scheduler requires an asynchronous context")
        self.context = context
        self.state = context.async_state
        self._tasks: dict[int, asyncio.Task[None]] = {}
        self._waiting: dict[int, set[int]] = {}
        self._nodes: dict[int, Node] = {}
        self._refresh = False

    async def drain(self) -> None:
        """Run registered node tasks in rounds until nothing changes."""
        seen: set[int] = set()
        progressed = False
        round_number = 0

        while True:
            pending = [node for node in self.state.tasks.values() if not node.is_resolved]
            if not pending:
                break

            fresh = [node for node in pending if id(node) not in seen]
            if round_number and not fresh and not progressed:
                logger.debug(f"Scheduler idle with {len(pending)} pending node(s)")
                break

            seen.update(id(node) for node in pending)
            round_number += 1
            logger.debug(f"Scheduler round {round_number}: {len(pending)} pending node(s)")

            self._tasks = {}
            self._waiting = {}
            # nodes read what the previous round resolved before looking for waits
            self._refresh = progressed
            try:
                await asyncio.gather(*(self._task_for(node) for node in pending))
            except BaseException:
                for task in self._tasks.values():
                    task.cancel()
                raise

            progressed = any(node.is_resolved for node in pending)

    def _task_for(self, node: Node) -> asyncio.Task[None]:
        task = self._tasks.get(id(node))
        if task is None:
            self._nodes[id(node)] = node
            task = asyncio.create_task(self._run(node))
            self._tasks[id(node)] = task
        return task

    async def _run(self, node: Node) -> None:
        if isinstance(node, Resource):
            await self._run_resource(node)
            return

        if self._refresh and not node.is_resolved:
            self._reresolve(node)

        waited: set[int] = set()
        while not node.is_resolved:
            dependencies = [dep for dep in self._pending(node.references) if id(dep) not in waited]
            if not dependencies:
                break
            waited.update(id(dep) for dep in dependencies)
            await self._wait_for(node, dependencies)
            self._reresolve(node)

    def _reresolve(self, node: Node) -> None:
        resolve(node, (node.context or self.context).without_guards().at(node.path))

    def _is_tree_node(self, node: Node) -> bool:
        return id(node) in self.state.tasks

    # ------------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------------

    async def _run_resource(self, resource: Resource) -> None:
        if resource.is_fetched:
            return

        ctx = (resource.context or self.context).without_guards().at(resource.path)
        names = list(resource.inputs)
        values = await asyncio.gather(
            *(self._resolve_input(resource, resource.inputs[name], ctx) for name in names)
        )
        inputs = dict(zip(names, values, strict=True))

        if inputs["address"] is UNRESOLVED:
            logger.debug(f"Resource at {format_path(resource.path)} waits for its address")
            return
        for name in names:
            if not is_fully_resolved(inputs[name]):
                logger.debug(f"Resource at {format_path(resource.path)} waits for its {name}")
                return

        request = FetchRequest(
            method=resource.method,
            address=inputs["address"],
            query=inputs.get("query"),
            body=inputs.get("body"),
            headers=inputs.get("headers"),
        )
        await self._fetch(resource, request)

    async def _resolve_input(self, resource: Resource, value: Any, ctx: ResolveContext) -> Any:
        waited: set[int] = set()
        while True:
            resolved, references = resolve_input(value, ctx)
            if is_fully_resolved(resolved):
                return resolved

            dependencies = [dep for dep in self._pending(references) if id(dep) not in waited]
            if not dependencies:
                return resolved
            waited.update(id(dep) for dep in dependencies)
            await self._wait_for(resource, dependencies)

    async def _fetch(self, resource: Resource, request: FetchRequest) -> None:
        fetch_resource = self.state.fetch_resource
        if fetch_resource is None:
            logger.debug(f"No fetch collaborator; resource at {format_path(resource.path)} stays pending")
            return

        logger.info(f"Fetching resource at {format_path(resource.path)}: {request.method} {request.address}")
        try:
            result = fetch_resource(request)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Fetching resource at {format_path(resource.path)} failed: {e}", exc_info=True)
            raise

        resource.mark_fetched(result)

    # ------------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------------

    def _pending(self, references: Iterable[Node]) -> list[Node]:
        """
        Pending tree nodes and resources reachable from ``references``.

        The walk stops at tree nodes (their own task covers what they
        depend on) and never enters a resource.
        """
        found: list[Node] = []
        seen: set[int] = set()
        stack = list(references)

        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))

            if self._is_tree_node(node) or isinstance(node, Resource):
                if not node.is_resolved:
                    found.append(node)
                continue
            stack.extend(node.references)

        return found

    async def _wait_for(self, waiter: Node, dependencies: Sequence[Node]) -> None:
        """
        Suspend until the tasks of ``dependencies`` complete.

        Raises:
            CircularReferenceError: If the wait would close a cycle of tasks
        """
        self._nodes[id(waiter)] = waiter
        edges = self._waiting.setdefault(id(waiter), set())
        edges.update(id(dep) for dep in dependencies)

        check = DAGResolver(self._waiting.keys(), self._waiting).topological_sort()
        if check.is_failure:
            cycle = [self._nodes[vertex] for vertex in check.metadata["cycle"] if vertex in self._nodes]
            chain = [tuple(node.path) for node in cycle]
            raise CircularReferenceError(tuple(waiter.path), chain)

        try:
            await asyncio.gather(*(self._task_for(dep) for dep in dependencies))
        finally:
            edges.difference_update(id(dep) for dep in dependencies)


async def resolve_async(obj: Any, context: ResolveContext) -> Any:
    """
    Resolve ``obj`` and await every resource task it uncovers.

    Nested calls sharing the same AsyncState leave draining to the
    outermost one.

    Args:
        obj: Document to resolve in place
        context: Asynchronous context (see def_context_async)

    Returns:
        ``obj`` itself, or the node standing for it

    Raises:
        Any configuration error raised by the resolver, any exception raised
        by the fetch collaborator, or CircularReferenceError for tasks that
        would wait on each other
    """
    state = context.async_state
    if state is None:
        raise ValueError("resolve_async requires an asynchronous context")

    state.stack += 1
    try:
        result = resolve(obj, context)
    finally:
        state.stack -= 1

    if state.is_outermost and state.tasks:
        await Scheduler(context).drain()

    return result


async def resolve_at_async(root: Any, path: Sequence[Any] | str, context: ResolveContext) -> Any:
    """Asynchronous counterpart of resolve_at."""
    state = context.async_state
    if state is None:
        raise ValueError("resolve_at_async requires an asynchronous context")

    state.stack += 1
    try:
        value = resolve_at(root, path, context)
    finally:
        state.stack -= 1

    if state.is_outermost and state.tasks:
        await Scheduler(context).drain()
        value = resolve_at(root, path, context.without_guards())

    return deref(value)


__all__ = ["Scheduler", "resolve_async", "resolve_at_async"]

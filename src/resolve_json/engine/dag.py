"""
Wait-for graph checks for the asynchronous scheduler.

Before a node task suspends on other node tasks, the scheduler records the
edge "waiter -> dependency" and checks that the graph of all current waits
is still acyclic. A cycle means the tasks would wait on each other forever,
so it is reported instead of awaited.

This module is synchronous: pure in-memory graph algorithms (Kahn's
topological sort), called from the scheduler between suspension points.
"""

from collections import deque
from collections.abc import Hashable, Iterable

from .load_result import LoadResult


class DAGResolver:
    """Orders vertices of a dependency graph and detects cycles."""

    def __init__(self, vertices: Iterable[Hashable], dependencies: dict[Hashable, Iterable[Hashable]]):
        """
        Initialize DAG resolver.

        Args:
            vertices: Graph vertices (node ids)
            dependencies: Dict mapping a vertex to the vertices it waits on.
                Vertices only mentioned here are added to the graph.
        """
        self.vertices: list[Hashable] = list(dict.fromkeys(vertices))
        self.dependencies = {vertex: list(deps) for vertex, deps in dependencies.items()}

        known = set(self.vertices)
        for vertex, deps in self.dependencies.items():
            for candidate in (vertex, *deps):
                if candidate not in known:
                    known.add(candidate)
                    self.vertices.append(candidate)

    def topological_sort(self) -> LoadResult[list[Hashable]]:
        """
        Order vertices so that every vertex comes after what it waits on.

        Returns:
            Result containing the ordered vertices, or an error naming the
            vertices left on a cycle
        """
        in_degree = {vertex: 0 for vertex in self.vertices}
        adj_list: dict[Hashable, list[Hashable]] = {vertex: [] for vertex in self.vertices}

        for vertex, deps in self.dependencies.items():
            for dep in deps:
                adj_list[dep].append(vertex)
                in_degree[vertex] += 1

        # Kahn's algorithm
        queue = deque([vertex for vertex in self.vertices if in_degree[vertex] == 0])
        result = []

        while queue:
            current = queue.popleft()
            result.append(current)

            for neighbor in adj_list[current]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(result) != len(self.vertices):
            remaining = [vertex for vertex in self.vertices if in_degree[vertex] > 0]
            return LoadResult.failure(
                "Cyclic wait detected between tasks",
                metadata={"cycle": remaining},
            )

        return LoadResult.success(result)

    def has_cycle(self) -> bool:
        return self.topological_sort().is_failure


__all__ = ["DAGResolver"]

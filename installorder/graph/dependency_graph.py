"""Directed dependency graph over package names.

This module provides the DependencyGraph class, an adjacency-list graph where
an edge ``A -> B`` means package A depends on package B. It only stores
structure; ordering and cycle detection live in
:mod:`installorder.graph.traversal`.
"""

import structlog

logger = structlog.get_logger(__name__)


class VertexNotFoundError(LookupError):
    """Exception raised when an adjacency lookup names an unknown vertex."""

    def __init__(self, vertex: str):
        """Initialize the exception with the missing vertex name.

        Args:
            vertex: Name of the vertex that is not in the graph
        """
        self.vertex = vertex
        self.message = f"Vertex not found in graph: {vertex!r}"
        super().__init__(self.message)


class DependencyGraph:
    """Directed, unweighted graph of packages and their direct dependencies.

    Mutations never raise: adding an existing vertex or edge, removing a
    missing one, or passing an empty name are silently ignored so that the
    graph can be rebuilt idempotently from repeated or partial input.

    Thread-safety:
        This class is NOT thread-safe. Callers that share a graph between
        threads must serialize access externally (e.g., threading.Lock).

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_edge("app", "lib")  # app depends on lib
        >>> graph.adjacent_vertices_of("app")
        ('lib',)
        >>> graph.vertex_count(), graph.edge_count()
        (2, 1)
    """

    def __init__(self):
        """Initialize an empty dependency graph."""
        self._adjacency: dict[str, list[str]] = {}
        self._vertices: set[str] = set()
        self._vertex_count = 0
        self._edge_count = 0

    def add_vertex(self, name: str | None) -> None:
        """Add a vertex with no dependencies.

        Args:
            name: Package name. Ignored if None, empty, or already present.
        """
        if not name or name in self._vertices:
            return

        self._vertices.add(name)
        self._adjacency[name] = []
        self._vertex_count += 1

        logger.debug("vertex_added", vertex=name)

    def remove_vertex(self, name: str | None) -> None:
        """Remove a vertex and every edge that references it.

        Both the vertex's own dependency list and every incoming edge from
        other vertices are dropped.

        Args:
            name: Package name. Ignored if None or not in the graph.
        """
        if not name or name not in self._vertices:
            return

        removed_edges = len(self._adjacency.pop(name))
        for dependencies in self._adjacency.values():
            if name in dependencies:
                dependencies.remove(name)
                removed_edges += 1

        self._vertices.discard(name)
        self._vertex_count -= 1
        self._edge_count -= removed_edges

        logger.debug("vertex_removed", vertex=name, edges_removed=removed_edges)

    def add_edge(self, from_vertex: str | None, to_vertex: str | None) -> None:
        """Add a directed edge meaning ``from_vertex`` depends on ``to_vertex``.

        Missing endpoints are created first. The new dependency is appended,
        so adjacency lists keep declaration order.

        Args:
            from_vertex: The dependent package
            to_vertex: The package it depends on
        """
        if not from_vertex or not to_vertex:
            return
        if self.has_edge(from_vertex, to_vertex):
            return

        self.add_vertex(from_vertex)
        self.add_vertex(to_vertex)
        self._adjacency[from_vertex].append(to_vertex)
        self._edge_count += 1

        logger.debug("edge_added", from_vertex=from_vertex, to_vertex=to_vertex)

    def remove_edge(self, from_vertex: str | None, to_vertex: str | None) -> None:
        """Remove the edge ``from_vertex -> to_vertex`` if it exists."""
        if not from_vertex or not to_vertex:
            return
        if not self.has_edge(from_vertex, to_vertex):
            return

        self._adjacency[from_vertex].remove(to_vertex)
        self._edge_count -= 1

        logger.debug("edge_removed", from_vertex=from_vertex, to_vertex=to_vertex)

    def has_vertex(self, name: str | None) -> bool:
        """Return True if ``name`` is a vertex of the graph."""
        return name in self._vertices

    def has_edge(self, from_vertex: str | None, to_vertex: str | None) -> bool:
        """Return True if ``from_vertex`` directly depends on ``to_vertex``."""
        if not self.has_vertex(from_vertex) or not self.has_vertex(to_vertex):
            return False
        return to_vertex in self._adjacency[from_vertex]

    def all_vertices(self) -> frozenset[str]:
        """Get a snapshot of every vertex in the graph.

        Returns:
            Frozen set of vertex names. Later mutations of the graph are not
            reflected in it, and it cannot be used to modify the graph.
        """
        return frozenset(self._vertices)

    def adjacent_vertices_of(self, name: str) -> tuple[str, ...]:
        """Get the direct dependencies of a vertex in declaration order.

        Args:
            name: Vertex to look up

        Returns:
            Tuple of dependency names

        Raises:
            VertexNotFoundError: If ``name`` is not a vertex
        """
        try:
            return tuple(self._adjacency[name])
        except KeyError:
            raise VertexNotFoundError(name) from None

    def edge_count(self) -> int:
        """Return the number of edges (size) of the graph."""
        return self._edge_count

    def vertex_count(self) -> int:
        """Return the number of vertices (order) of the graph."""
        return self._vertex_count

    def get_stats(self) -> dict[str, int]:
        """Get statistics about the current graph state.

        Returns:
            Dictionary with graph statistics including:
                - total_vertices: Number of packages in the graph
                - total_edges: Number of dependency edges
                - leaf_vertices: Packages with no dependencies
        """
        stats = {
            "total_vertices": self._vertex_count,
            "total_edges": self._edge_count,
            "leaf_vertices": sum(1 for deps in self._adjacency.values() if not deps),
        }

        logger.debug("graph_stats_retrieved", **stats)

        return stats

    def copy(self) -> "DependencyGraph":
        """Create a deep copy of the graph structure.

        Returns:
            A new DependencyGraph with the same vertices and edges
        """
        new_graph = DependencyGraph()
        for vertex, dependencies in self._adjacency.items():
            new_graph.add_vertex(vertex)
            for dependency in dependencies:
                new_graph.add_edge(vertex, dependency)

        logger.debug("dependency_graph_copied", vertex_count=self._vertex_count)

        return new_graph

    def __contains__(self, name: object) -> bool:
        return name in self._vertices

    def __len__(self) -> int:
        return self._vertex_count

    def __repr__(self) -> str:
        return f"DependencyGraph(vertices={self._vertex_count}, edges={self._edge_count})"

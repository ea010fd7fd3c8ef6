"""Depth-first traversal producing dependency-first installation orders.

The traversal walks a DependencyGraph from one or more seed vertices, visiting
dependencies in ascending lexical order, and emits each vertex once all of its
dependencies have been emitted (post-order). The chain of vertices currently
being expanded is kept as an explicit recursion path so that back edges, and
therefore cycles, can be detected and inspected.
"""

from collections.abc import Callable, Iterator

import structlog

from installorder.graph.dependency_graph import DependencyGraph

logger = structlog.get_logger(__name__)


class CycleDetectedError(Exception):
    """Exception raised when a cycle is detected in the dependency graph.

    A cycle means that packages have circular dependencies, making it
    impossible to determine a valid installation order.

    Attributes:
        cycle: Path of the cycle, starting and ending with the same vertex
            (e.g. ``["A", "B", "A"]``)
    """

    def __init__(self, message: str, cycle: list[str] | None = None):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the cycle detection error
            cycle: Vertices forming the cycle, if known
        """
        super().__init__(message)
        self.message = message
        self.cycle = list(cycle or [])


class DepthFirstTraversal:
    """Iterative depth-first traversal with recursion-path cycle detection.

    One instance accumulates state across calls to :meth:`visit`: vertices
    completed by an earlier seed are skipped by later ones, so visiting several
    seeds yields one combined, duplicate-free order.

    The traversal uses an explicit stack of ``(vertex, successors)`` frames
    rather than Python recursion, so deep dependency chains cannot exhaust the
    interpreter's recursion limit.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_edge("A", "B")
        >>> graph.add_edge("B", "C")
        >>> DepthFirstTraversal(graph).visit("A")
        ['C', 'B', 'A']
    """

    def __init__(
        self,
        graph: DependencyGraph,
        on_cycle: Callable[[list[str]], None] | None = None,
    ):
        """Initialize the traversal.

        Args:
            graph: Graph to traverse. It is only read, never modified.
            on_cycle: Optional callback receiving each cycle path. When given,
                back edges are reported to it and skipped instead of raising
                CycleDetectedError.
        """
        self._graph = graph
        self._on_cycle = on_cycle
        self._path: list[str] = []
        self._on_path: set[str] = set()
        self._completed: set[str] = set()
        self.order: list[str] = []

    @property
    def path(self) -> tuple[str, ...]:
        """Vertices currently being expanded, outermost first."""
        return tuple(self._path)

    @property
    def on_path(self) -> frozenset[str]:
        """Set view of :attr:`path` used for back-edge checks."""
        return frozenset(self._on_path)

    @property
    def completed(self) -> frozenset[str]:
        """Vertices whose dependencies have all been emitted."""
        return frozenset(self._completed)

    def visit(self, start: str) -> list[str]:
        """Traverse everything reachable from ``start``.

        Args:
            start: Seed vertex. Must be a vertex of the graph.

        Returns:
            The accumulated installation order (shared across calls)

        Raises:
            CycleDetectedError: If a cycle is reachable from ``start`` and no
                ``on_cycle`` callback was supplied
            VertexNotFoundError: If ``start`` is not a vertex
        """
        if start in self._completed:
            return self.order

        stack: list[tuple[str, Iterator[str]]] = [(start, self._successors(start))]
        self._enter(start)

        while stack:
            vertex, successors = stack[-1]

            for successor in successors:
                if successor in self._on_path:
                    self._back_edge(successor)
                    continue
                if successor in self._completed:
                    continue

                stack.append((successor, self._successors(successor)))
                self._enter(successor)
                break
            else:
                stack.pop()
                self._leave(vertex)

        return self.order

    def _successors(self, vertex: str) -> Iterator[str]:
        return iter(sorted(self._graph.adjacent_vertices_of(vertex)))

    def _enter(self, vertex: str) -> None:
        self._path.append(vertex)
        self._on_path.add(vertex)

    def _leave(self, vertex: str) -> None:
        self._path.pop()
        self._on_path.discard(vertex)
        self._completed.add(vertex)
        self.order.append(vertex)

    def _back_edge(self, vertex: str) -> None:
        cycle = [*self._path[self._path.index(vertex) :], vertex]

        if self._on_cycle is not None:
            self._on_cycle(cycle)
            return

        cycle_path = " -> ".join(cycle)
        logger.warning("cycle_detected", cycle=cycle, depth=len(self._path))
        raise CycleDetectedError(f"Cycle detected in dependency graph: {cycle_path}", cycle)

"""Graph validation with detailed cycle detection and reporting.

This module provides non-raising diagnostics for dependency graphs: every
cycle with its full path, packages that cannot be installed because they
depend on a cycle, and isolated packages. It also renders the graph as a
Mermaid flowchart or Graphviz DOT source.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from installorder.graph.traversal import DepthFirstTraversal

if TYPE_CHECKING:
    from installorder.graph.dependency_graph import DependencyGraph

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    """Report containing validation results for a dependency graph.

    Attributes:
        is_valid: Whether the graph passed all validation checks
        errors: List of error messages (critical issues)
        warnings: List of warning messages (potential issues)
        cycles: List of detected cycles, each represented as a list of packages
        blocked_packages: Packages that depend, directly or not, on a cycle
        isolated_packages: Packages with neither dependencies nor dependents
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    blocked_packages: set[str] = field(default_factory=set)
    isolated_packages: set[str] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = []
        lines.append(f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}")
        lines.append(f"Errors: {len(self.errors)}")
        lines.append(f"Warnings: {len(self.warnings)}")
        lines.append(f"Cycles: {len(self.cycles)}")
        lines.append(f"Blocked Packages: {len(self.blocked_packages)}")
        lines.append(f"Isolated Packages: {len(self.isolated_packages)}")

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                lines.append(f"  {i}. {' -> '.join(cycle)}")

        return "\n".join(lines)


class GraphValidator:
    """Validator for dependency graphs with detailed error reporting.

    This class provides:
    - Cycle detection with complete path information
    - Detection of packages blocked by a cycle
    - Isolated package detection
    - Graph visualization generation
    """

    def validate(self, graph: "DependencyGraph") -> ValidationReport:
        """Validate a dependency graph and generate a detailed report.

        Args:
            graph: The DependencyGraph to validate

        Returns:
            ValidationReport containing all validation results
        """
        logger.info("starting_graph_validation", package_count=graph.vertex_count())

        report = ValidationReport()

        cycles = self._detect_cycles(graph)
        if cycles:
            report.cycles = cycles
            for cycle in cycles:
                report.add_error(f"Cycle detected: {' -> '.join(cycle)}")

            blocked = self._find_blocked_packages(graph, cycles)
            report.blocked_packages = blocked
            report.add_warning(
                f"Packages with no valid installation order: {', '.join(sorted(blocked))}",
            )

        isolated = self._find_isolated_packages(graph)
        if isolated:
            report.isolated_packages = isolated
            report.add_warning(
                f"Packages with no dependencies or dependents: {', '.join(sorted(isolated))}",
            )

        logger.info(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def _detect_cycles(self, graph: "DependencyGraph") -> list[list[str]]:
        """Collect every cycle closed by a back edge during a full traversal.

        Args:
            graph: The dependency graph

        Returns:
            List of cycles, each a path whose first and last entries match
        """
        cycles: list[list[str]] = []
        traversal = DepthFirstTraversal(graph, on_cycle=cycles.append)

        for vertex in sorted(graph.all_vertices()):
            traversal.visit(vertex)

        return cycles

    def _build_reverse_dependency_map(self, graph: "DependencyGraph") -> dict[str, set[str]]:
        """Build a map from each package to the packages that depend on it."""
        reverse_deps: dict[str, set[str]] = {vertex: set() for vertex in graph.all_vertices()}
        for vertex in graph.all_vertices():
            for dependency in graph.adjacent_vertices_of(vertex):
                reverse_deps[dependency].add(vertex)
        return reverse_deps

    def _find_blocked_packages(
        self,
        graph: "DependencyGraph",
        cycles: list[list[str]],
    ) -> set[str]:
        """Find packages that can reach a cycle, walking dependents breadth-first.

        Args:
            graph: The dependency graph
            cycles: Cycles found by :meth:`_detect_cycles`

        Returns:
            Set of packages with no valid installation order
        """
        reverse_deps = self._build_reverse_dependency_map(graph)
        blocked: set[str] = set()
        queue = [vertex for cycle in cycles for vertex in cycle]

        while queue:
            current = queue.pop(0)
            if current in blocked:
                continue

            blocked.add(current)
            queue.extend(dep for dep in reverse_deps[current] if dep not in blocked)

        logger.debug("blocked_packages_found", count=len(blocked))

        return blocked

    def _find_isolated_packages(self, graph: "DependencyGraph") -> set[str]:
        reverse_deps = self._build_reverse_dependency_map(graph)
        return {
            vertex
            for vertex in graph.all_vertices()
            if not graph.adjacent_vertices_of(vertex) and not reverse_deps[vertex]
        }

    def generate_visualization(
        self,
        graph: "DependencyGraph",
        output_format: str = "mermaid",
    ) -> str:
        """Generate a visual representation of the dependency graph.

        Args:
            graph: The DependencyGraph to visualize
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        if output_format == "mermaid":
            return self._generate_mermaid(graph)
        if output_format == "dot":
            return self._generate_graphviz(graph)
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _generate_mermaid(self, graph: "DependencyGraph") -> str:
        """Generate a Mermaid flowchart; arrows point from dependency to dependent."""
        lines = ["graph TD"]

        if not graph.vertex_count():
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        def escape_label(name: str) -> str:
            return name.replace('"', "#quot;")

        # Node ids are positional; package names only appear in labels.
        vertices = sorted(graph.all_vertices())
        node_ids = {vertex: f"n{index}" for index, vertex in enumerate(vertices)}
        lines.extend(f'    {node_ids[vertex]}["{escape_label(vertex)}"]' for vertex in vertices)

        for vertex in vertices:
            lines.extend(
                f"    {node_ids[dependency]} --> {node_ids[vertex]}"
                for dependency in sorted(graph.adjacent_vertices_of(vertex))
            )

        return "\n".join(lines)

    def _generate_graphviz(self, graph: "DependencyGraph") -> str:
        """Generate Graphviz DOT source."""

        def escape_dot_string(s: str) -> str:
            return s.replace('"', '\\"')

        lines = ["digraph DependencyGraph {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box, style=rounded];")

        if not graph.vertex_count():
            lines.append('    Empty [label="Empty Graph"];')
        else:
            vertices = sorted(graph.all_vertices())
            lines.extend(f'    "{escape_dot_string(vertex)}";' for vertex in vertices)

            for vertex in vertices:
                escaped_vertex = escape_dot_string(vertex)
                lines.extend(
                    f'    "{escape_dot_string(dependency)}" -> "{escaped_vertex}";'
                    for dependency in sorted(graph.adjacent_vertices_of(vertex))
                )

        lines.append("}")
        return "\n".join(lines)

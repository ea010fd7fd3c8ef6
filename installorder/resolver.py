"""Installation order resolution over a package dependency graph.

The Resolver ingests ``(package, dependencies)`` records into a
DependencyGraph and answers installation-order queries: the order for one
package, the order for every package, the packages still needed on top of an
existing installation, and which root package pulls in the most dependencies.

Dependencies are always visited in ascending lexical order, so identical
dependency sets produce identical orders whatever order a manifest lists them
in.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog

from installorder.graph.dependency_graph import DependencyGraph
from installorder.graph.traversal import CycleDetectedError, DepthFirstTraversal
from installorder.manifest import ManifestParser

logger = structlog.get_logger(__name__)

PackageRecord = tuple[str, Sequence[str]]


class PackageNotFoundError(Exception):
    """Exception raised when a queried package is not in the dependency graph."""

    def __init__(self, package: str):
        """Initialize the exception with the missing package name.

        Args:
            package: Name of the package the caller asked about
        """
        self.package = package
        self.message = f"Package not found: {package!r}"
        super().__init__(self.message)


class Resolver:
    """Computes valid installation orders from declared dependencies.

    The resolver owns a single DependencyGraph. Queries never modify it; all
    working state (completed packages, recursion path) is local to a query.

    Example:
        >>> resolver = Resolver()
        >>> resolver.ingest([("A", ["B", "C"]), ("C", ["D"])])
        >>> resolver.get_installation_order("A")
        ['B', 'D', 'C', 'A']
        >>> resolver.to_install("A", "C")
        ['B', 'A']
    """

    def __init__(self, records: Iterable[PackageRecord] | None = None):
        """Initialize the resolver, optionally ingesting records right away.

        Args:
            records: Optional ``(package, dependencies)`` records
        """
        self._graph = DependencyGraph()

        if records is not None:
            self.ingest(records)

    @classmethod
    def from_manifest(
        cls,
        path: str | Path,
        parser: ManifestParser | None = None,
    ) -> "Resolver":
        """Build a resolver from a JSON or YAML manifest file.

        Args:
            path: Path to the manifest
            parser: Parser to use; defaults to one with standard keys

        Returns:
            Resolver populated with the manifest's packages

        Raises:
            FileNotFoundError: If the manifest doesn't exist
            ManifestError: If the manifest is malformed
        """
        parser = parser or ManifestParser()
        return cls(parser.load(path))

    @property
    def graph(self) -> DependencyGraph:
        """The dependency graph built from ingested records."""
        return self._graph

    def ingest(self, records: Iterable[PackageRecord]) -> None:
        """Add packages and their direct dependencies to the graph.

        Re-ingesting a package is idempotent and duplicate edges are ignored.

        Args:
            records: ``(package, dependencies)`` pairs in manifest order
        """
        record_count = 0
        for package, dependencies in records:
            self._graph.add_vertex(package)
            for dependency in dependencies:
                self._graph.add_edge(package, dependency)
            record_count += 1

        logger.info(
            "packages_ingested",
            record_count=record_count,
            package_count=self._graph.vertex_count(),
            dependency_count=self._graph.edge_count(),
        )

    def get_all_packages(self) -> frozenset[str]:
        """Get every package known to the resolver."""
        return self._graph.all_vertices()

    def get_installation_order(self, package: str) -> list[str]:
        """Get a valid installation order for a package.

        Every package in the result appears after all packages it depends on;
        ``package`` itself is last.

        Args:
            package: Package to install

        Returns:
            List of packages to install, dependencies first

        Raises:
            PackageNotFoundError: If ``package`` is not in the graph
            CycleDetectedError: If a cycle is reachable from ``package``.
                Cycles elsewhere in the graph are ignored.
        """
        if not self._graph.has_vertex(package):
            logger.warning("package_not_found", package=package)
            raise PackageNotFoundError(package)

        order = DepthFirstTraversal(self._graph).visit(package)

        logger.debug("installation_order_resolved", package=package, length=len(order))

        return order

    def to_install(self, new_package: str, installed_package: str) -> list[str]:
        """Get the packages still needed to install one package on top of another.

        Args:
            new_package: Package to be installed
            installed_package: Package already installed, with its dependencies

        Returns:
            ``new_package``'s installation order without anything already
            installed, relative order preserved

        Raises:
            PackageNotFoundError: If either package is not in the graph
            CycleDetectedError: If a cycle is reachable from either package
        """
        installed = set(self.get_installation_order(installed_package))
        needed = [
            package
            for package in self.get_installation_order(new_package)
            if package not in installed
        ]

        logger.debug(
            "packages_to_install_resolved",
            new_package=new_package,
            installed_package=installed_package,
            count=len(needed),
        )

        return needed

    def detect_cycle(self) -> None:
        """Check the whole graph for cycles.

        Traversals are seeded from the lexically smallest unchecked package
        until every package has been checked.

        Raises:
            CycleDetectedError: If the graph contains any cycle
        """
        traversal = DepthFirstTraversal(self._graph)
        remaining = sorted(self._graph.all_vertices())

        while remaining:
            traversal.visit(remaining[0])
            checked = traversal.completed
            remaining = [vertex for vertex in remaining if vertex not in checked]

    def get_root_packages(self) -> list[str]:
        """Get packages that no other package depends on, sorted by name."""
        vertices = self._graph.all_vertices()
        dependencies = {
            dependency
            for vertex in vertices
            for dependency in self._graph.adjacent_vertices_of(vertex)
        }
        return sorted(vertices - dependencies)

    def get_installation_order_for_all_packages(self) -> list[str]:
        """Get a valid installation order for every package in the graph.

        Returns:
            List of all packages, each after everything it depends on

        Raises:
            CycleDetectedError: If the graph contains any cycle
        """
        self.detect_cycle()

        roots = self.get_root_packages()
        traversal = DepthFirstTraversal(self._graph)
        for root in roots:
            traversal.visit(root)

        logger.info(
            "global_installation_order_resolved",
            root_count=len(roots),
            package_count=len(traversal.order),
        )

        return traversal.order

    def get_package_with_max_dependencies(self) -> str | None:
        """Find the package with the most direct and transitive dependencies.

        Only root packages are considered, since any other package's
        dependencies are a subset of some root's. A package reachable through
        several paths is counted once. Ties go to the lexically smallest root.

        Returns:
            Name of the package, or None if the graph has no root package

        Raises:
            CycleDetectedError: If a cycle is reachable from any root
        """
        max_package = None
        max_size = 0

        for root in self.get_root_packages():
            size = len(self.get_installation_order(root))
            if size > max_size:
                max_package, max_size = root, size

        logger.debug("max_dependency_package_found", package=max_package, closure_size=max_size)

        return max_package


__all__ = ["CycleDetectedError", "PackageNotFoundError", "PackageRecord", "Resolver"]

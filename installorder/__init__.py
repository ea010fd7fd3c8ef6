"""Installation order resolution for package dependency graphs."""

from installorder.graph import (
    CycleDetectedError,
    DependencyGraph,
    GraphValidator,
    ValidationReport,
    VertexNotFoundError,
)
from installorder.manifest import ManifestError, ManifestParser
from installorder.resolver import PackageNotFoundError, Resolver

__version__ = "0.1.0"

__all__ = [
    "CycleDetectedError",
    "DependencyGraph",
    "GraphValidator",
    "ManifestError",
    "ManifestParser",
    "PackageNotFoundError",
    "Resolver",
    "ValidationReport",
    "VertexNotFoundError",
]

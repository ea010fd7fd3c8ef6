"""Graph module for package dependency modelling and traversal.

This module provides the adjacency-list DependencyGraph, the depth-first
traversal used to derive installation orders, and a validator for
diagnostics and visualization.
"""

from installorder.graph.dependency_graph import DependencyGraph, VertexNotFoundError
from installorder.graph.traversal import CycleDetectedError, DepthFirstTraversal
from installorder.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "CycleDetectedError",
    "DependencyGraph",
    "DepthFirstTraversal",
    "GraphValidator",
    "ValidationReport",
    "VertexNotFoundError",
]

"""Trellis graph engine.

Builds a weighted undirected graph from a vertex relation and an edge
relation, then answers read-only topology queries: degrees,
neighborhoods, triangles, hotspot rankings, trails and bounded paths.

Usage::

    from trellis.graph import GraphEngine

    engine = GraphEngine()
    result = engine.build_from_files("vertices.txt", "edges.txt")

    graph = result.graph
    hubs = graph.rank_by_triangles(10)
    path = graph.path_between(1, 4, depth=2)
"""

from trellis.graph.engine import GraphEngine, GraphResult
from trellis.graph.errors import FrozenGraphError, GraphError, GraphLoadError
from trellis.graph.exporters import GraphExporter
from trellis.graph.loader import LoadStats, RelationLoader
from trellis.graph.model import WeightedGraph

__all__ = [
    "GraphEngine",
    "GraphResult",
    "GraphError",
    "GraphLoadError",
    "FrozenGraphError",
    "GraphExporter",
    "LoadStats",
    "RelationLoader",
    "WeightedGraph",
]

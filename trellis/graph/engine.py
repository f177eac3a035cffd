"""Graph engine: high-level builder.

Wires the loader, the query facade and the exporter together.

Usage::

    engine = GraphEngine(precompute_hotspots=True)
    result = engine.build_from_files("vertices.txt", "edges.txt")

    result.graph.rank_by_triangles(10)
    result.graph.path_between(1, 4, depth=2)
    result.exporter.write_relations("out/")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from trellis.config.settings import Settings
from trellis.graph.exporters import GraphExporter
from trellis.graph.loader import LoadStats, RelationLoader
from trellis.graph.model import WeightedGraph

logger = logging.getLogger(__name__)


@dataclass
class GraphResult:
    """Result of a graph build: graph, exporter and load stats."""

    graph: WeightedGraph
    exporter: GraphExporter
    stats: LoadStats

    @property
    def vertex_count(self) -> int:
        return self.graph.vertex_count

    @property
    def edge_count(self) -> int:
        return self.graph.edge_count

    def summary(self) -> dict[str, Any]:
        """Combined summary of graph structure and load stats."""
        return {
            **self.exporter.summary(),
            "load_stats": {
                "vertex_lines": self.stats.vertex_lines,
                "vertices_loaded": self.stats.vertices_loaded,
                "name_collisions": self.stats.name_collisions,
                "edge_lines": self.stats.edge_lines,
                "edges_loaded": self.stats.edges_loaded,
                "duplicate_edges": self.stats.duplicate_edges,
                "self_loops": self.stats.self_loops,
                "orphan_references": self.stats.orphan_references,
                "isolated_vertices": self.stats.isolated_vertices,
            },
        }


class GraphEngine:
    """Build weighted graphs from vertex/edge relations.

    Parameters
    ----------
    precompute_hotspots:
        Compute the hotspot table eagerly at the end of ingestion.
    settings:
        Engine settings; the module-level settings are used when omitted.
    """

    def __init__(
        self,
        precompute_hotspots: bool | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._loader = RelationLoader(
            precompute_hotspots=precompute_hotspots,
            settings=settings,
        )

    def build_from_relations(
        self,
        vertex_lines: Iterable[str],
        edge_lines: Iterable[str],
    ) -> GraphResult:
        """Build a graph from in-memory relation lines."""
        graph, stats = self._loader.load(vertex_lines, edge_lines)
        return self._result(graph, stats)

    def build_from_files(
        self,
        vertices_path: str | Path,
        edges_path: str | Path,
    ) -> GraphResult:
        """Build a graph from relation files."""
        graph, stats = self._loader.load_files(vertices_path, edges_path)
        return self._result(graph, stats)

    def _result(self, graph: WeightedGraph, stats: LoadStats) -> GraphResult:
        logger.info(
            "Graph built: %d vertices, %d edges (%d edge lines, %d duplicates "
            "collapsed, %d orphan references)",
            stats.vertices_loaded, stats.edges_loaded,
            stats.edge_lines, stats.duplicate_edges, stats.orphan_references,
        )
        return GraphResult(graph=graph, exporter=GraphExporter(graph), stats=stats)

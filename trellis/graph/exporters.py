"""Graph export: networkx interop, summary statistics, flat relations.

The flat relation writer emits the generated relation format consumed
by :class:`~trellis.graph.loader.RelationLoader`:

  - vertex lines ``"<id>, <name>\\r\\n"``
  - edge lines ``"<id1>, <id2>\\r\\n"``

Each canonical edge is written once per unit of weight, so reloading the
written files reproduces every edge weight.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

import networkx as nx

from trellis.graph.model import WeightedGraph

logger = logging.getLogger(__name__)

LINE_END = "\r\n"


class GraphExporter:
    """Export a :class:`WeightedGraph`.

    Parameters
    ----------
    graph:
        The graph to export.
    """

    def __init__(self, graph: WeightedGraph) -> None:
        self._graph = graph

    # -- networkx ------------------------------------------------------------

    def to_networkx(self) -> nx.Graph:
        """Simple undirected networkx graph with the same vertices and edges.

        Nodes carry ``name`` (empty for edge-only vertices); edges carry
        ``weight`` and ``edge_id``. Self-loops are preserved.
        """
        nx_graph = nx.Graph()
        for vertex_id in self._graph.vertex_ids():
            nx_graph.add_node(vertex_id, name=self._graph.name_of(vertex_id) or "")
        for edge in self._graph.edges:
            nx_graph.add_edge(edge.a, edge.b, weight=edge.weight, edge_id=edge.id)
        return nx_graph

    def summary(self) -> dict[str, Any]:
        """Structural statistics for reporting."""
        nx_graph = self.to_networkx()
        total_weight = sum(edge.weight for edge in self._graph.edges)

        return {
            "vertex_count": nx_graph.number_of_nodes(),
            "cataloged_vertices": self._graph.vertex_count,
            "edge_count": nx_graph.number_of_edges(),
            "total_weight": total_weight,
            "density": nx.density(nx_graph) if nx_graph.number_of_nodes() > 1 else 0.0,
            "connected_components": (
                nx.number_connected_components(nx_graph)
                if nx_graph.number_of_nodes() else 0
            ),
            "self_loops": nx.number_of_selfloops(nx_graph),
            "isolated_vertices": sum(1 for _ in nx.isolates(nx_graph)),
            "triangle_count": self._graph.triangle_count(),
        }

    # -- Flat relations ------------------------------------------------------

    def vertex_relation_lines(self) -> Iterator[str]:
        for vertex_id, name in self._graph.catalog.items():
            yield f"{vertex_id}, {name}{LINE_END}"

    def edge_relation_lines(self) -> Iterator[str]:
        for edge in self._graph.edges:
            line = f"{edge.a}, {edge.b}{LINE_END}"
            for _ in range(edge.weight):
                yield line

    def write_relations(
        self,
        directory: str | Path,
        vertices_name: str = "vertices.txt",
        edges_name: str = "edges.txt",
    ) -> tuple[Path, Path]:
        """Write both relations to ``directory``; returns their paths."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        vertices_path = directory / vertices_name
        edges_path = directory / edges_name

        # newline="" keeps the \r\n line endings byte-exact on every platform
        with vertices_path.open("w", encoding="utf-8", newline="") as out:
            out.writelines(self.vertex_relation_lines())
        with edges_path.open("w", encoding="utf-8", newline="") as out:
            out.writelines(self.edge_relation_lines())

        logger.info(
            "Exported relations to %s (%d vertices, %d edges)",
            directory, self._graph.vertex_count, self._graph.edge_count,
        )
        return vertices_path, edges_path

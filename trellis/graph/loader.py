"""Vertex/edge relation ingestion.

Both relations are line oriented. A line is split on ``,`` when it
contains one and on whitespace otherwise; surrounding space is trimmed
and empty tokens are dropped.

- Vertex relation: ``<id><delim><name>``
- Edge relation: ``<id1><delim><id2>``

Repeated pairs collapse into one canonical edge whose weight counts the
occurrences. A malformed line aborts the whole load with
:class:`GraphLoadError`; no partial graph is produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from trellis.config.settings import Settings, settings as default_settings
from trellis.graph.catalog import VertexCatalog
from trellis.graph.errors import GraphLoadError
from trellis.graph.model import WeightedGraph
from trellis.graph.store import AdjacencyIndex, EdgeStore

logger = logging.getLogger(__name__)


def parse_relation_line(line: str) -> list[str]:
    """Split one relation line into trimmed, non-empty tokens."""
    line = line.strip()
    if "," in line:
        tokens = (token.strip() for token in line.split(","))
    else:
        tokens = iter(line.split())
    return [token for token in tokens if token]


def _parse_id(token: str, source: str, line_number: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise GraphLoadError(
            f"vertex id {token!r} is not an integer", source, line_number,
        ) from None


# ---------------------------------------------------------------------------
# Load statistics
# ---------------------------------------------------------------------------


@dataclass
class LoadStats:
    """Statistics from a relation load."""

    vertex_lines: int = 0
    vertices_loaded: int = 0
    name_collisions: int = 0
    edge_lines: int = 0
    edges_loaded: int = 0
    duplicate_edges: int = 0
    self_loops: int = 0
    orphan_references: int = 0
    isolated_vertices: int = 0


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class RelationLoader:
    """Build a :class:`WeightedGraph` from a vertex and an edge relation.

    Parameters
    ----------
    precompute_hotspots:
        Compute the full triangle ranking before returning the graph.
        Defaults to ``PRECOMPUTE_HOTSPOTS`` from settings.
    settings:
        Engine settings handed to the built graph.
    """

    def __init__(
        self,
        precompute_hotspots: bool | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or default_settings
        if precompute_hotspots is None:
            precompute_hotspots = self._settings.PRECOMPUTE_HOTSPOTS
        self._precompute_hotspots = precompute_hotspots

    def load(
        self,
        vertex_lines: Iterable[str],
        edge_lines: Iterable[str],
        vertex_source: str = "<vertices>",
        edge_source: str = "<edges>",
    ) -> tuple[WeightedGraph, LoadStats]:
        """Ingest both relations.

        Returns
        -------
        Tuple of (graph, load_stats).

        Raises
        ------
        GraphLoadError
            On a line with fewer than two tokens or a non-integer id.
        """
        stats = LoadStats()
        catalog = VertexCatalog()
        edges = EdgeStore()
        index = AdjacencyIndex()

        # Pass 1: vertices
        for line_number, line in enumerate(vertex_lines, start=1):
            tokens = parse_relation_line(line)
            if not tokens:
                continue
            if len(tokens) < 2:
                raise GraphLoadError(
                    f"expected '<id>, <name>', got {line.strip()!r}",
                    vertex_source, line_number,
                )
            vertex_id = _parse_id(tokens[0], vertex_source, line_number)
            catalog.add(vertex_id, tokens[1])
            stats.vertex_lines += 1

        # Pass 2: edges, in relation order
        orphans: set[int] = set()
        for line_number, line in enumerate(edge_lines, start=1):
            tokens = parse_relation_line(line)
            if not tokens:
                continue
            if len(tokens) < 2:
                raise GraphLoadError(
                    f"expected '<id1>, <id2>', got {line.strip()!r}",
                    edge_source, line_number,
                )
            a = _parse_id(tokens[0], edge_source, line_number)
            b = _parse_id(tokens[1], edge_source, line_number)
            stats.edge_lines += 1

            edge, created = edges.add(a, b)
            if created:
                if edge.is_self_loop:
                    stats.self_loops += 1
            else:
                stats.duplicate_edges += 1

            index.attach(a, edge.id)
            index.attach(b, edge.id)

            for endpoint in (a, b):
                if endpoint not in catalog and endpoint not in orphans:
                    orphans.add(endpoint)
                    logger.warning(
                        "%s:%d references vertex %d missing from the vertex relation",
                        edge_source, line_number, endpoint,
                    )

        catalog.freeze()
        edges.freeze()
        index.freeze()

        stats.vertices_loaded = len(catalog)
        stats.name_collisions = catalog.collisions
        stats.edges_loaded = len(edges)
        stats.orphan_references = len(orphans)
        stats.isolated_vertices = sum(1 for v in catalog if v not in index)

        graph = WeightedGraph(catalog, edges, index, settings=self._settings)
        if self._precompute_hotspots:
            graph.precompute_hotspots()

        return graph, stats

    def load_files(
        self,
        vertices_path: str | Path,
        edges_path: str | Path,
    ) -> tuple[WeightedGraph, LoadStats]:
        """Ingest both relations from text files (UTF-8)."""
        vertices_path = Path(vertices_path)
        edges_path = Path(edges_path)
        try:
            with vertices_path.open("r", encoding="utf-8") as vertex_file, \
                    edges_path.open("r", encoding="utf-8") as edge_file:
                return self.load(
                    vertex_file,
                    edge_file,
                    vertex_source=str(vertices_path),
                    edge_source=str(edges_path),
                )
        except OSError as exc:
            raise GraphLoadError(f"cannot read relation: {exc}") from exc

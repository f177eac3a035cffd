"""Read-only query facade over a built graph."""

from __future__ import annotations

import logging
from typing import Sequence

from trellis.config.settings import Settings, settings as default_settings
from trellis.graph.algorithms import (
    HotspotCache,
    RankingEngine,
    Triangle,
    TriangleEnumerator,
)
from trellis.graph.catalog import VertexCatalog
from trellis.graph.explorer import NeighborhoodExplorer, Route
from trellis.graph.paths import PathFinder
from trellis.graph.store import AdjacencyIndex, Edge, EdgeStore

logger = logging.getLogger(__name__)


class WeightedGraph:
    """Weighted undirected graph answering topology queries.

    The catalog, edge store and adjacency index are owned by the graph and
    never change after construction, so concurrent reads need no locking.
    The hotspot table is the only state filled in lazily, and it is
    computed at most once.

    Unknown vertex ids never raise: neighborhood, triangle and trail
    queries return empty results, and lookups return ``None``.

    Example::

        graph, stats = RelationLoader().load(vertex_lines, edge_lines)
        graph.degree(3)
        graph.neighbors(3, depth=2, sort_by_weight=True)
        graph.path_between(1, 4, depth=2)
    """

    def __init__(
        self,
        catalog: VertexCatalog,
        edges: EdgeStore,
        index: AdjacencyIndex,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._catalog = catalog
        self._edges = edges
        self._index = index

        self._hotspots = HotspotCache()
        self._explorer = NeighborhoodExplorer(edges, index, self._hotspots)
        self._triangles = TriangleEnumerator(edges, index)
        self._ranking = RankingEngine(index, self._triangles, self._hotspots, self._settings)
        self._paths = PathFinder(index, self._explorer, self._ranking, self._settings)

    # -- Components ----------------------------------------------------------

    @property
    def catalog(self) -> VertexCatalog:
        return self._catalog

    @property
    def edges(self) -> EdgeStore:
        return self._edges

    @property
    def index(self) -> AdjacencyIndex:
        return self._index

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def hotspot_cache(self) -> HotspotCache:
        return self._hotspots

    # -- Catalog and edges ---------------------------------------------------

    @property
    def vertex_count(self) -> int:
        return len(self._catalog)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def is_known(self, vertex_id: int) -> bool:
        return vertex_id in self._catalog or vertex_id in self._index

    def vertex_ids(self) -> list[int]:
        """Catalog ids followed by edge-only ids, in first-seen order."""
        ids = list(self._catalog)
        ids.extend(v for v in self._index.vertices() if v not in self._catalog)
        return ids

    def name_of(self, vertex_id: int) -> str | None:
        return self._catalog.name_of(vertex_id)

    def id_of(self, name: str, pattern_match: bool = False) -> int | None:
        return self._catalog.id_of(name, pattern_match=pattern_match)

    def edge(self, edge_id: int) -> Edge | None:
        return self._edges.get(edge_id)

    def weight(self, a: int, b: int) -> int | None:
        return self._edges.weight(a, b)

    def degree(self, vertex_id: int) -> int | None:
        """Number of distinct canonical edges at ``vertex_id``.

        ``0`` for a cataloged vertex without edges, ``None`` if unknown.
        """
        if not self.is_known(vertex_id):
            return None
        return self._index.degree(vertex_id)

    # -- Neighborhoods -------------------------------------------------------

    def neighbors(
        self,
        vertex_id: int,
        depth: int = 1,
        sort_by_weight: bool = False,
    ) -> dict[int, int]:
        return self._explorer.neighbors(vertex_id, depth, sort_by_weight)

    def neighbor_routes(
        self,
        vertex_id: int,
        depth: int = 1,
        sort_by_weight: bool = False,
    ) -> dict[int, Route]:
        return self._explorer.neighbor_routes(vertex_id, depth, sort_by_weight)

    # -- Triangles and ranking -----------------------------------------------

    def triangles_for_vertex(self, vertex_id: int) -> list[Triangle]:
        return self._triangles.triangles_for_vertex(vertex_id)

    def all_triangles(self) -> list[Triangle]:
        return self._triangles.all_triangles()

    def triangle_count(self, vertex_id: int | None = None) -> int:
        return self._triangles.triangle_count(vertex_id)

    def rank_by_triangles(self, max_vertices: int | None = None) -> dict[int, int]:
        return self._ranking.rank_by_triangles(max_vertices)

    def rank_by_degree(self, max_vertices: int | None = None) -> dict[int, int]:
        return self._ranking.rank_by_degree(max_vertices)

    def hotspots(self, fraction: float | None = None) -> list[int]:
        return self._ranking.hotspots(fraction)

    def precompute_hotspots(self) -> None:
        table = self._ranking.precompute()
        logger.info("Hotspot table precomputed for %d vertices", len(table))

    # -- Paths ---------------------------------------------------------------

    def is_directly_connected(self, a: int, b: int) -> bool:
        return self._paths.is_directly_connected(a, b)

    def best_trail(
        self,
        start: int,
        max_hops: int,
        sort_by_weight: bool = False,
    ) -> list[int]:
        return self._paths.best_trail(start, max_hops, sort_by_weight)

    def path_between(
        self,
        a: int,
        b: int,
        depth: int,
        sort_by_weight: bool = False,
    ) -> list[int] | None:
        """Bounded search for a chain of adjacent vertices from ``a`` to ``b``.

        ``None`` when either vertex is unknown, ``[a, b]`` when they share
        an edge, ``[]`` when nothing is found within the relay ceiling.
        """
        if not self.is_known(a) or not self.is_known(b):
            return None
        return self._paths.path_between(a, b, depth, sort_by_weight)

    def is_valid_path(self, path: Sequence[int]) -> bool:
        return self._paths.is_valid_path(path)

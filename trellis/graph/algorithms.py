"""Triangle enumeration and vertex ranking.

Triangles are reported as closed paths ``(v, n1, n2, v)``. Rankings are
ordered ``{vertex_id: metric}`` mappings, descending by metric with ties
broken by ascending vertex id so results are reproducible.

The triangle ranking of every indexed vertex doubles as the hotspot
table, which is computed once per graph and then shared by ranking,
neighborhood ordering and trail walking.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Iterator

from trellis.config.settings import Settings, settings as default_settings
from trellis.graph.store import AdjacencyIndex, EdgeStore, pair_key

logger = logging.getLogger(__name__)

Triangle = tuple[int, int, int, int]


def _ranked(metrics: dict[int, int]) -> dict[int, int]:
    return dict(sorted(metrics.items(), key=lambda item: (-item[1], item[0])))


def _top(table: dict[int, int], max_vertices: int | None) -> dict[int, int]:
    if max_vertices is None:
        return dict(table)
    if max_vertices <= 0:
        return {}
    ranked: dict[int, int] = {}
    for vertex_id, metric in table.items():
        if len(ranked) == max_vertices:
            break
        ranked[vertex_id] = metric
    return ranked


# ---------------------------------------------------------------------------
# Triangles
# ---------------------------------------------------------------------------


class TriangleEnumerator:
    """Find closed three-vertex paths through the adjacency index."""

    def __init__(self, edges: EdgeStore, index: AdjacencyIndex) -> None:
        self._edges = edges
        self._index = index

    def triangles_for_vertex(self, vertex_id: int) -> list[Triangle]:
        """Triangles with ``vertex_id`` as origin, one per neighbor pair."""
        return list(self._enumerate(vertex_id, set(), whole_graph=False))

    def all_triangles(self) -> list[Triangle]:
        """Every triangle in the graph, each reported once.

        The origin of a triangle is its member first reached in index order.
        """
        seen: set[tuple[int, ...]] = set()
        triangles: list[Triangle] = []
        for vertex_id in self._index.vertices():
            triangles.extend(self._enumerate(vertex_id, seen, whole_graph=True))
        return triangles

    def triangle_count(self, vertex_id: int | None = None) -> int:
        if vertex_id is None:
            return len(self.all_triangles())
        return len(self.triangles_for_vertex(vertex_id))

    def _enumerate(
        self,
        origin: int,
        seen: set[tuple[int, ...]],
        whole_graph: bool,
    ) -> Iterator[Triangle]:
        for edge_id in self._index.incident(origin):
            first = self._edges[edge_id].other(origin)
            if first == origin:
                continue

            for second_edge_id in self._index.incident(first):
                second = self._edges[second_edge_id].other(first)
                if second == origin or second == first:
                    continue
                if self._edges.find(origin, second) is None:
                    continue

                # The origin is fixed within one vertex, so the pair suffices
                # there; across the graph the full triple identifies a triangle.
                if whole_graph:
                    key: tuple[int, ...] = tuple(sorted((origin, first, second)))
                else:
                    key = pair_key(first, second)
                if key in seen:
                    continue
                seen.add(key)
                yield (origin, first, second, origin)


# ---------------------------------------------------------------------------
# Hotspot cache
# ---------------------------------------------------------------------------


class HotspotCache:
    """Compute-once holder for the full triangle ranking.

    Concurrent first callers serialize on a lock, so exactly one of them
    computes the table and all of them observe the same object.
    """

    def __init__(self) -> None:
        self._table: dict[int, int] | None = None
        self._lock = threading.Lock()

    def peek(self) -> dict[int, int] | None:
        return self._table

    def is_valid(self, vertex_count: int) -> bool:
        """A populated table covering exactly ``vertex_count`` vertices."""
        table = self._table
        return table is not None and len(table) == vertex_count

    def get_or_compute(self, compute: Callable[[], dict[int, int]]) -> dict[int, int]:
        table = self._table
        if table is not None:
            return table
        with self._lock:
            if self._table is None:
                self._table = compute()
                logger.debug("Hotspot table populated for %d vertices", len(self._table))
            return self._table


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class RankingEngine:
    """Rank indexed vertices by triangle count or by degree.

    Parameters
    ----------
    index:
        Adjacency index; only vertices with at least one edge are ranked.
    triangles:
        Enumerator used for the triangle metric.
    cache:
        Hotspot cache shared with the rest of the graph.
    """

    def __init__(
        self,
        index: AdjacencyIndex,
        triangles: TriangleEnumerator,
        cache: HotspotCache,
        settings: Settings | None = None,
    ) -> None:
        self._index = index
        self._triangles = triangles
        self._cache = cache
        self._settings = settings or default_settings

    @property
    def cache(self) -> HotspotCache:
        return self._cache

    def triangle_table(self) -> dict[int, int]:
        """Full triangle ranking, computed from scratch."""
        counts = {
            vertex_id: self._triangles.triangle_count(vertex_id)
            for vertex_id in self._index.vertices()
        }
        return _ranked(counts)

    def degree_table(self) -> dict[int, int]:
        counts = {
            vertex_id: self._index.degree(vertex_id)
            for vertex_id in self._index.vertices()
        }
        return _ranked(counts)

    def precompute(self) -> dict[int, int]:
        return self._cache.get_or_compute(self.triangle_table)

    def rank_by_triangles(self, max_vertices: int | None = None) -> dict[int, int]:
        """Top ``max_vertices`` vertices by triangle count.

        The full ranking is computed on first use and reused afterwards.
        """
        if self._cache.is_valid(len(self._index)):
            table = self._cache.peek() or {}
        else:
            table = self.precompute()
        return _top(table, max_vertices)

    def rank_by_degree(self, max_vertices: int | None = None) -> dict[int, int]:
        """Top ``max_vertices`` vertices by number of distinct incident edges."""
        return _top(self.degree_table(), max_vertices)

    def hotspots(self, fraction: float | None = None) -> list[int]:
        """Vertex ids in the top ``fraction`` of the triangle ranking.

        At least one vertex qualifies whenever the graph has edges.
        """
        if fraction is None:
            fraction = self._settings.HOTSPOT_FRACTION
        table = self.precompute()
        if not table:
            return []
        # round() absorbs float noise such as 30 * 0.1 == 3.0000000000000004
        count = max(1, math.ceil(round(len(table) * fraction, 9)))
        return list(table)[:count]

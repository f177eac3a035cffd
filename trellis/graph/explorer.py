"""Bounded-depth neighborhood exploration.

A neighborhood of depth ``d`` is every vertex reachable by walking at
most ``d`` edges. The walk keeps no visited set: a vertex reachable by
several routes is re-explored along each of them, and the weight stored
for a neighbor is the weight of the last edge that reached it during the
walk. Cost grows with branching factor to the power of ``depth``, so
callers must keep ``depth`` small.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from trellis.graph.store import AdjacencyIndex, EdgeStore

if TYPE_CHECKING:
    from trellis.graph.algorithms import HotspotCache

logger = logging.getLogger(__name__)

Route = tuple[int, ...]


class NeighborhoodExplorer:
    """Neighbor aggregation over the adjacency index.

    Parameters
    ----------
    edges:
        Canonical edge store.
    index:
        Adjacency index built alongside ``edges``.
    hotspots:
        Optional hotspot cache. When it holds a valid table, unsorted
        neighborhoods are ordered by descending triangle count.
    """

    def __init__(
        self,
        edges: EdgeStore,
        index: AdjacencyIndex,
        hotspots: HotspotCache | None = None,
    ) -> None:
        self._edges = edges
        self._index = index
        self._hotspots = hotspots

    def neighbors(
        self,
        vertex_id: int,
        depth: int,
        sort_by_weight: bool = False,
    ) -> dict[int, int]:
        """Map each neighbor within ``depth`` hops to an edge weight.

        Ordering:
        - ``sort_by_weight``: descending weight, then ascending id;
        - else, with a valid hotspot table: descending triangle count,
          then ascending id;
        - else discovery order.
        """
        weights, _ = self._explore(vertex_id, depth, track_routes=False)
        logger.debug("Neighborhood of %d at depth %d: %d vertices", vertex_id, depth, len(weights))
        return {n: weights[n] for n in self._order(weights, sort_by_weight)}

    def neighbor_routes(
        self,
        vertex_id: int,
        depth: int,
        sort_by_weight: bool = False,
    ) -> dict[int, Route]:
        """Same keys and order as :meth:`neighbors`, mapped to routes.

        Each route starts at ``vertex_id`` and ends at the neighbor; every
        consecutive pair in it is joined by an edge. The shortest route seen
        during the walk is kept (the first one among equals).
        """
        weights, routes = self._explore(vertex_id, depth, track_routes=True)
        return {n: routes[n] for n in self._order(weights, sort_by_weight)}

    # -- Internals -----------------------------------------------------------

    def _explore(
        self,
        vertex_id: int,
        depth: int,
        track_routes: bool,
    ) -> tuple[dict[int, int], dict[int, Route]]:
        weights: dict[int, int] = {}
        routes: dict[int, Route] = {}
        if depth <= 0 or vertex_id not in self._index:
            return weights, routes
        self._walk(vertex_id, depth, (vertex_id,), weights, routes if track_routes else None)
        return weights, routes

    def _walk(
        self,
        vertex_id: int,
        depth: int,
        route: Route,
        weights: dict[int, int],
        routes: dict[int, Route] | None,
    ) -> None:
        for edge_id in self._index.incident(vertex_id):
            edge = self._edges[edge_id]
            far = edge.other(vertex_id)
            weights[far] = edge.weight

            far_route = route
            if routes is not None:
                far_route = route + (far,)
                known = routes.get(far)
                if known is None or len(far_route) < len(known):
                    routes[far] = far_route

            if depth > 1:
                self._walk(far, depth - 1, far_route, weights, routes)

    def _order(self, weights: dict[int, int], sort_by_weight: bool) -> list[int]:
        if sort_by_weight:
            return sorted(weights, key=lambda n: (-weights[n], n))

        if self._hotspots is not None and self._hotspots.is_valid(len(self._index)):
            table = self._hotspots.peek() or {}
            return sorted(weights, key=lambda n: (-table.get(n, 0), n))

        return list(weights)

"""Connectivity tests, hotspot-biased trails and bounded path search.

None of these searches guarantee shortest results. ``path_between`` is a
depth-first relay search capped at ``PATH_HOP_CEILING`` relay levels: it
returns the first chain it discovers, or an empty list when the ceiling
is exhausted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

from trellis.config.settings import Settings, settings as default_settings
from trellis.graph.algorithms import RankingEngine
from trellis.graph.explorer import NeighborhoodExplorer, Route
from trellis.graph.store import AdjacencyIndex

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """One relay level of the path search."""

    vertex: int
    routes: dict[int, Route]
    candidates: Iterator[int]


class PathFinder:
    """Path queries over a built graph.

    Parameters
    ----------
    index:
        Adjacency index used for direct-connectivity tests.
    explorer:
        Neighborhood explorer supplying candidate relays.
    ranking:
        Ranking engine supplying the hotspot set for trails.
    """

    def __init__(
        self,
        index: AdjacencyIndex,
        explorer: NeighborhoodExplorer,
        ranking: RankingEngine,
        settings: Settings | None = None,
    ) -> None:
        self._index = index
        self._explorer = explorer
        self._ranking = ranking
        self._settings = settings or default_settings

    def is_directly_connected(self, a: int, b: int) -> bool:
        return self._index.shares_edge(a, b)

    def is_valid_path(self, path: Sequence[int]) -> bool:
        """True iff every consecutive pair in ``path`` shares an edge."""
        return all(
            self.is_directly_connected(u, v) for u, v in zip(path, path[1:])
        )

    # -- Trails --------------------------------------------------------------

    def best_trail(
        self,
        start: int,
        max_hops: int,
        sort_by_weight: bool = False,
    ) -> list[int]:
        """Greedy walk of up to ``max_hops`` single-edge steps.

        Each hop moves to the first unvisited neighbor (in neighborhood
        order) that is a hotspot. With ``TRAIL_FALLBACK="heaviest"`` a hop
        without hotspot candidates moves to the heaviest unvisited neighbor
        instead; with ``"stall"`` the walk stops there.

        The returned trail excludes ``start`` and never repeats a vertex.
        """
        if start not in self._index or max_hops <= 0:
            return []

        hotspots = set(self._ranking.hotspots())
        visited: set[int] = set()
        trail: list[int] = []
        current = start

        for hop in range(max_hops):
            candidates = self._explorer.neighbors(current, 1, sort_by_weight)
            step = next(
                (n for n in candidates if n in hotspots and n not in visited),
                None,
            )
            if step is None and self._settings.TRAIL_FALLBACK == "heaviest":
                step = next(
                    (
                        n
                        for n in sorted(candidates, key=lambda n: (-candidates[n], n))
                        if n not in visited
                    ),
                    None,
                )
            if step is None:
                # A stalled hop leaves the walk unchanged, so later hops would too.
                logger.debug("Trail from %d stalled at %d after %d hop(s)", start, current, hop)
                break

            visited.add(step)
            if step != start:
                trail.append(step)
            current = step

        return trail

    # -- Bounded path search -------------------------------------------------

    def path_between(
        self,
        a: int,
        b: int,
        depth: int,
        sort_by_weight: bool = False,
    ) -> list[int]:
        """Find a chain of adjacent vertices from ``a`` to ``b``.

        Returns
        -------
        ``[a, b]`` if they share an edge, ``[]`` if no chain is found within
        the relay ceiling (or either vertex has no edges), else the first
        chain discovered.

        Each relay level expands one vertex into its ``depth``-hop
        neighborhood. A neighborhood containing ``b`` ends the search;
        otherwise unvisited neighbors are expanded depth first, up to
        ``PATH_HOP_CEILING`` levels.
        """
        if a not in self._index or b not in self._index:
            return []
        if self.is_directly_connected(a, b):
            return [a, b]

        ceiling = self._settings.PATH_HOP_CEILING
        visited = {a}
        frames = [self._expand(a, depth, sort_by_weight)]
        if b in frames[0].routes:
            return self._stitch(frames, b)

        while frames:
            frame = frames[-1]
            relay = next(frame.candidates, None)
            if relay is None:
                frames.pop()
                continue
            if relay in visited or len(frames) >= ceiling:
                continue

            visited.add(relay)
            frames.append(self._expand(relay, depth, sort_by_weight))
            if b in frames[-1].routes:
                return self._stitch(frames, b)

        logger.debug("No path from %d to %d within %d relay levels", a, b, ceiling)
        return []

    def _expand(self, vertex_id: int, depth: int, sort_by_weight: bool) -> _Frame:
        routes = self._explorer.neighbor_routes(vertex_id, depth, sort_by_weight)
        return _Frame(vertex=vertex_id, routes=routes, candidates=iter(list(routes)))

    @staticmethod
    def _stitch(frames: list[_Frame], target: int) -> list[int]:
        """Join the per-level routes into one chain ending at ``target``.

        A route that walks back onto the chain cuts it back to that vertex,
        so the result never repeats a vertex.
        """
        path = [frames[0].vertex]
        position = {frames[0].vertex: 0}
        stops = [frame.vertex for frame in frames[1:]] + [target]
        for frame, stop in zip(frames, stops):
            for step in frame.routes[stop][1:]:
                if step in position:
                    for dropped in path[position[step] + 1:]:
                        del position[dropped]
                    del path[position[step] + 1:]
                    continue
                position[step] = len(path)
                path.append(step)
        return path

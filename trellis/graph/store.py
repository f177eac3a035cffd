"""Edge store and adjacency index.

Edges are undirected and canonical on the unordered vertex pair: the
first occurrence of a pair creates the edge, every later occurrence (in
either orientation) adds one to its weight. The adjacency index maps
each vertex to the ids of its incident canonical edges, in the order
those edges first touched the vertex.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from trellis.graph.errors import FrozenGraphError

logger = logging.getLogger(__name__)


@dataclass
class Edge:
    """Canonical undirected edge between ``a`` and ``b``."""

    id: int
    a: int
    b: int
    weight: int = 1

    @property
    def is_self_loop(self) -> bool:
        return self.a == self.b

    def touches(self, vertex_id: int) -> bool:
        return vertex_id == self.a or vertex_id == self.b

    def other(self, vertex_id: int) -> int:
        """Far endpoint as seen from ``vertex_id``."""
        if vertex_id == self.a:
            return self.b
        if vertex_id == self.b:
            return self.a
        raise ValueError(f"vertex {vertex_id} is not an endpoint of edge {self.id}")


def pair_key(a: int, b: int) -> tuple[int, int]:
    """Orientation-free key for the pair ``{a, b}``."""
    return (a, b) if a <= b else (b, a)


class EdgeStore:
    """Canonical edges keyed by id, with pair lookup.

    Every call to :meth:`add` consumes one raw counter value. A first-seen
    pair takes the current counter value as its id, so ids grow in
    first-occurrence order and skip the values consumed by duplicates.
    """

    def __init__(self) -> None:
        self._edges: dict[int, Edge] = {}
        self._by_pair: dict[tuple[int, int], int] = {}
        self._raw_count = 0
        self._frozen = False

    def add(self, a: int, b: int) -> tuple[Edge, bool]:
        """Record one raw occurrence of ``(a, b)``.

        Returns the canonical edge and whether it was created by this call.
        """
        if self._frozen:
            raise FrozenGraphError("edge store is read-only after ingestion")

        self._raw_count += 1
        key = pair_key(a, b)
        edge_id = self._by_pair.get(key)
        if edge_id is not None:
            edge = self._edges[edge_id]
            edge.weight += 1
            return edge, False

        edge = Edge(id=self._raw_count, a=a, b=b)
        self._edges[edge.id] = edge
        self._by_pair[key] = edge.id
        return edge, True

    def freeze(self) -> None:
        self._frozen = True
        logger.debug(
            "Edge store frozen: %d edges from %d lines",
            len(self._edges), self._raw_count,
        )

    @property
    def raw_count(self) -> int:
        return self._raw_count

    def get(self, edge_id: int) -> Edge | None:
        return self._edges.get(edge_id)

    def find(self, a: int, b: int) -> Edge | None:
        edge_id = self._by_pair.get(pair_key(a, b))
        return None if edge_id is None else self._edges[edge_id]

    def weight(self, a: int, b: int) -> int | None:
        edge = self.find(a, b)
        return None if edge is None else edge.weight

    def __getitem__(self, edge_id: int) -> Edge:
        return self._edges[edge_id]

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)


class AdjacencyIndex:
    """Vertex id -> ordered, duplicate-free incident edge ids."""

    def __init__(self) -> None:
        # dict keys double as an insertion-ordered set
        self._incident: dict[int, dict[int, None]] = {}
        self._frozen = False

    def attach(self, vertex_id: int, edge_id: int) -> None:
        if self._frozen:
            raise FrozenGraphError("adjacency index is read-only after ingestion")
        self._incident.setdefault(vertex_id, {})[edge_id] = None

    def freeze(self) -> None:
        self._frozen = True

    def incident(self, vertex_id: int) -> tuple[int, ...]:
        edge_ids = self._incident.get(vertex_id)
        return tuple(edge_ids) if edge_ids else ()

    def degree(self, vertex_id: int) -> int:
        return len(self._incident.get(vertex_id, ()))

    def vertices(self) -> list[int]:
        return list(self._incident)

    def shares_edge(self, a: int, b: int) -> bool:
        """True iff ``a`` and ``b`` have an incident edge id in common."""
        edges_a = self._incident.get(a)
        edges_b = self._incident.get(b)
        if not edges_a or not edges_b:
            return False
        if len(edges_a) > len(edges_b):
            edges_a, edges_b = edges_b, edges_a
        return any(edge_id in edges_b for edge_id in edges_a)

    def __contains__(self, vertex_id: object) -> bool:
        return vertex_id in self._incident

    def __len__(self) -> int:
        return len(self._incident)

"""Vertex catalog: bidirectional id <-> name mapping."""

from __future__ import annotations

import logging
from typing import Iterator

from trellis.graph.errors import FrozenGraphError

logger = logging.getLogger(__name__)


class VertexCatalog:
    """Ordered id <-> name mapping with O(1) lookups in both directions.

    The catalog is kept a bijection. When an insert collides with an
    existing entry, the last write wins and the displaced entry is
    retired:

    - re-adding an id under a new name drops the old name;
    - adding a name already owned by another id moves the name and
      drops the other id from the catalog.
    """

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        self._ids: dict[str, int] = {}
        self._frozen = False
        self.collisions = 0

    def add(self, vertex_id: int, name: str) -> None:
        if self._frozen:
            raise FrozenGraphError("vertex catalog is read-only after ingestion")

        previous_name = self._names.get(vertex_id)
        if previous_name is not None and previous_name != name:
            del self._ids[previous_name]
            self.collisions += 1
            logger.warning(
                "Vertex %d renamed from %r to %r", vertex_id, previous_name, name,
            )

        previous_id = self._ids.get(name)
        if previous_id is not None and previous_id != vertex_id:
            del self._names[previous_id]
            self.collisions += 1
            logger.warning(
                "Name %r moved from vertex %d to vertex %d", name, previous_id, vertex_id,
            )

        self._names[vertex_id] = name
        self._ids[name] = vertex_id

    def freeze(self) -> None:
        self._frozen = True

    def name_of(self, vertex_id: int) -> str | None:
        return self._names.get(vertex_id)

    def id_of(self, name: str, pattern_match: bool = False) -> int | None:
        """Look up a vertex id by name.

        With ``pattern_match`` set, a missing exact name falls back to the
        first catalog name (in insertion order) containing ``name`` as a
        substring.
        """
        vertex_id = self._ids.get(name)
        if vertex_id is not None or not pattern_match:
            return vertex_id

        for candidate, candidate_id in self._ids.items():
            if name in candidate:
                return candidate_id
        return None

    def items(self) -> Iterator[tuple[int, str]]:
        return iter(self._names.items())

    def __contains__(self, vertex_id: object) -> bool:
        return vertex_id in self._names

    def __iter__(self) -> Iterator[int]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

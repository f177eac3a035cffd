"""Exceptions raised by the graph engine."""

from __future__ import annotations


class GraphError(Exception):
    """Base class for graph engine failures."""


class GraphLoadError(GraphError):
    """Raised when a relation cannot be ingested.

    Construction is aborted: no partially built graph is ever returned.
    """

    def __init__(
        self,
        message: str,
        source: str = "",
        line_number: int | None = None,
    ) -> None:
        self.source = source
        self.line_number = line_number
        location = source
        if line_number is not None:
            location = f"{source}:{line_number}" if source else f"line {line_number}"
        super().__init__(f"{location}: {message}" if location else message)


class FrozenGraphError(GraphError):
    """Raised on an attempt to mutate a structure after ingestion."""

"""Trellis: an in-memory weighted undirected graph engine.

Loads a vertex relation and an edge relation, collapses repeated edges
into weighted canonical edges, and answers topology queries over the
result: neighborhoods, triangles, hotspot ranking and bounded path
discovery.
"""

__version__ = "0.3.0"

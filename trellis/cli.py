"""Trellis CLI: query a graph built from relation files.

Usage:
    trellis vertices.txt edges.txt stats
    trellis vertices.txt edges.txt neighbors Alice --depth 2 --by-weight
    trellis vertices.txt edges.txt triangles --vertex 3
    trellis vertices.txt edges.txt rank --by degree --top 10
    trellis vertices.txt edges.txt trail Alice --hops 5
    trellis vertices.txt edges.txt path Alice Dave --depth 2
    trellis vertices.txt edges.txt export out/

Vertex arguments take an id or a name; a name that matches nothing
exactly resolves to the first vertex whose name contains it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from trellis.config.settings import settings
from trellis.graph import GraphEngine, GraphError, WeightedGraph

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trellis",
        description="Trellis: weighted graph topology queries",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )
    parser.add_argument("vertices", help="Vertex relation file")
    parser.add_argument("edges", help="Edge relation file")
    parser.add_argument(
        "--precompute-hotspots", action="store_true",
        help="Rank all vertices by triangles during loading",
    )

    subparsers = parser.add_subparsers(dest="command")

    # stats
    subparsers.add_parser("stats", help="Graph and load statistics")

    # neighbors
    nb = subparsers.add_parser("neighbors", help="Neighborhood of a vertex")
    nb.add_argument("vertex", help="Vertex id or name")
    nb.add_argument("--depth", type=int, default=settings.DEFAULT_DEPTH)
    nb.add_argument("--by-weight", action="store_true", help="Order by edge weight")

    # triangles
    tri = subparsers.add_parser("triangles", help="Enumerate triangles")
    tri.add_argument("--vertex", help="Restrict to one origin vertex")
    tri.add_argument("--count", action="store_true", help="Print the count only")

    # rank
    rk = subparsers.add_parser("rank", help="Rank vertices")
    rk.add_argument("--by", choices=["triangles", "degree"], default="triangles")
    rk.add_argument("--top", type=int, default=10)

    # trail
    tr = subparsers.add_parser("trail", help="Hotspot-biased greedy trail")
    tr.add_argument("vertex", help="Start vertex id or name")
    tr.add_argument("--hops", type=int, default=settings.DEFAULT_MAX_HOPS)
    tr.add_argument("--by-weight", action="store_true")

    # path
    pth = subparsers.add_parser("path", help="Bounded path search")
    pth.add_argument("source", help="Source vertex id or name")
    pth.add_argument("target", help="Target vertex id or name")
    pth.add_argument("--depth", type=int, default=settings.DEFAULT_DEPTH)
    pth.add_argument("--by-weight", action="store_true")

    # export
    exp = subparsers.add_parser("export", help="Write the flat relations")
    exp.add_argument("directory", help="Output directory")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        result = GraphEngine(
            precompute_hotspots=args.precompute_hotspots or None,
        ).build_from_files(args.vertices, args.edges)

        if args.command == "stats":
            _emit(result.summary())
        elif args.command == "export":
            vertices_path, edges_path = result.exporter.write_relations(args.directory)
            _emit({"vertices": str(vertices_path), "edges": str(edges_path)})
        else:
            _emit(_query(result.graph, args))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except GraphError as exc:
        logger.error("Error: %s", exc)
        if args.verbose:
            raise
        sys.exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _query(graph: WeightedGraph, args: argparse.Namespace) -> Any:
    if args.command == "neighbors":
        vertex_id = resolve_vertex(graph, args.vertex)
        return _named(graph, graph.neighbors(vertex_id, args.depth, args.by_weight))

    if args.command == "triangles":
        if args.vertex is not None:
            triangles = graph.triangles_for_vertex(resolve_vertex(graph, args.vertex))
        else:
            triangles = graph.all_triangles()
        if args.count:
            return {"triangle_count": len(triangles)}
        return [list(t) for t in triangles]

    if args.command == "rank":
        if args.by == "degree":
            return _named(graph, graph.rank_by_degree(args.top))
        return _named(graph, graph.rank_by_triangles(args.top))

    if args.command == "trail":
        vertex_id = resolve_vertex(graph, args.vertex)
        return _labels(graph, graph.best_trail(vertex_id, args.hops, args.by_weight))

    if args.command == "path":
        source = resolve_vertex(graph, args.source)
        target = resolve_vertex(graph, args.target)
        path = graph.path_between(source, target, args.depth, args.by_weight)
        return {
            "found": bool(path),
            "path": _labels(graph, path or []),
        }

    raise ValueError(f"Unsupported command: {args.command}")


def resolve_vertex(graph: WeightedGraph, token: str) -> int:
    """Resolve a CLI vertex argument to an id.

    An integer token that is a known id resolves to that id. Any other token
    (including a number that is not a known id, e.g. a name like "2024") is
    looked up by exact name, then by partial name.

    Raises
    ------
    GraphError
        If the token is neither a known id nor a (partial) vertex name.
    """
    try:
        vertex_id = int(token)
    except ValueError:
        vertex_id = None
    if vertex_id is None or not graph.is_known(vertex_id):
        vertex_id = graph.id_of(token, pattern_match=True)
    if vertex_id is None or not graph.is_known(vertex_id):
        raise GraphError(f"Unknown vertex: {token!r}")
    return vertex_id


def _labels(graph: WeightedGraph, vertex_ids: list[int]) -> list[dict[str, Any]]:
    return [{"id": v, "name": graph.name_of(v)} for v in vertex_ids]


def _named(graph: WeightedGraph, metrics: dict[int, int]) -> list[dict[str, Any]]:
    return [
        {"id": v, "name": graph.name_of(v), "value": value}
        for v, value in metrics.items()
    ]


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()

"""Tests for trellis.graph: ingestion, catalog, edge store, queries, export.

Tests cover:
  - Relation parsing and loading (delimiters, collapse, fatal errors)
  - Vertex catalog lookups and collision handling
  - Neighborhood exploration and ordering
  - Triangle enumeration, checked against networkx
  - Degree/triangle rankings and the hotspot cache
  - Export (networkx, summary, flat relations) and the GraphEngine API

Uses small synthetic datasets:
  - "square" - four vertices, one triangle A-B-C plus a tail C-D
  - "clique" - a five-vertex clique with a pendant and repeated edges
"""

import threading
import time

import networkx as nx
import pytest

from trellis.config.settings import Settings
from trellis.graph import (
    FrozenGraphError,
    GraphEngine,
    GraphLoadError,
    RelationLoader,
)
from trellis.graph.algorithms import HotspotCache, RankingEngine, TriangleEnumerator
from trellis.graph.catalog import VertexCatalog
from trellis.graph.loader import parse_relation_line


# ---------------------------------------------------------------------------
# Test fixtures: synthetic relations
# ---------------------------------------------------------------------------

SQUARE_VERTICES = ["1,A", "2,B", "3,C", "4,D"]
SQUARE_EDGES = ["1,2", "2,3", "3,1", "3,4"]


def _build(vertex_lines, edge_lines, **loader_kwargs):
    """Helper to load a graph from in-memory relation lines."""
    graph, _ = RelationLoader(**loader_kwargs).load(vertex_lines, edge_lines)
    return graph


@pytest.fixture
def square():
    return _build(SQUARE_VERTICES, SQUARE_EDGES)


@pytest.fixture
def clique_lines() -> tuple[list[str], list[str]]:
    """Clique on 1..5, pendant 6 hanging off 5, some repeated edges."""
    vertices = [f"{i}, V{i}" for i in range(1, 7)]
    edges = [f"{a}, {b}" for a in range(1, 6) for b in range(a + 1, 6)]
    edges += ["5, 6", "2, 1", "1 2", "6,5"]
    return vertices, edges


def _oracle(graph) -> nx.Graph:
    reference = nx.Graph()
    reference.add_nodes_from(graph.index.vertices())
    reference.add_edges_from((edge.a, edge.b) for edge in graph.edges)
    return reference


# ---------------------------------------------------------------------------
# Parsing and loading
# ---------------------------------------------------------------------------


class TestRelationParsing:
    def test_comma_delimiter_wins(self):
        assert parse_relation_line(" 3 , Gamma Ray \r\n") == ["3", "Gamma Ray"]

    def test_whitespace_delimiter(self):
        assert parse_relation_line("2\tBeta") == ["2", "Beta"]
        assert parse_relation_line("  7   8 ") == ["7", "8"]

    def test_empty_tokens_dropped(self):
        assert parse_relation_line("1,,2") == ["1", "2"]

    def test_blank_line(self):
        assert parse_relation_line("   \r\n") == []


class TestRelationLoader:
    def test_loads_square(self, square):
        assert square.vertex_count == 4
        assert square.edge_count == 4
        assert square.name_of(3) == "C"
        assert square.id_of("D") == 4

    def test_edge_ids_follow_raw_line_counter(self):
        graph = _build(["1,A", "2,B", "3,C"], ["1,2", "2,1", "2,3"])
        # the duplicate consumes raw id 2
        assert [edge.id for edge in graph.edges] == [1, 3]
        assert graph.edges.raw_count == 3
        assert graph.edge(3).a == 2 and graph.edge(3).b == 3
        assert graph.edge(2) is None

    def test_duplicates_collapse_into_weight(self):
        graph, stats = RelationLoader().load(
            ["1,A", "2,B", "3,C"], ["1,2", "2,1", "1 2", "2,3"],
        )
        assert graph.edge_count == 2
        assert graph.weight(1, 2) == 3
        assert graph.weight(2, 1) == 3
        assert graph.weight(2, 3) == 1
        assert graph.weight(1, 3) is None
        assert stats.edge_lines == 4
        assert stats.duplicate_edges == 2

    def test_degree_counts_distinct_edges(self):
        graph = _build(["1,A", "2,B", "3,C"], ["1,2", "2,1", "1,2", "1,3"])
        assert graph.degree(1) == 2
        assert graph.degree(2) == 1
        assert graph.index.incident(1) == (1, 4)

    def test_self_loop_is_stored(self):
        graph, stats = RelationLoader().load(["1,A", "2,B"], ["1,1", "1,2", "1,1"])
        assert graph.weight(1, 1) == 2
        assert graph.degree(1) == 2
        assert stats.self_loops == 1
        assert graph.neighbors(1, 1) == {1: 2, 2: 1}

    def test_orphan_references_are_indexed(self):
        graph, stats = RelationLoader().load(["1,A"], ["1,9"])
        assert stats.orphan_references == 1
        assert graph.is_known(9)
        assert graph.name_of(9) is None
        assert graph.degree(9) == 1

    def test_blank_lines_skipped(self):
        graph = _build(["1,A", "", "2,B", "  "], ["1,2", "\r\n"])
        assert graph.vertex_count == 2
        assert graph.edge_count == 1

    def test_isolated_vertex_stats(self):
        graph, stats = RelationLoader().load(SQUARE_VERTICES + ["5,E"], SQUARE_EDGES)
        assert stats.isolated_vertices == 1
        assert stats.vertices_loaded == 5
        assert graph.degree(5) == 0

    def test_missing_token_is_fatal(self):
        with pytest.raises(GraphLoadError) as excinfo:
            RelationLoader().load(["1,A", "2"], [])
        assert excinfo.value.line_number == 2
        assert excinfo.value.source == "<vertices>"

    def test_non_integer_vertex_id_is_fatal(self):
        with pytest.raises(GraphLoadError, match="not an integer"):
            RelationLoader().load(["x,A"], [])

    def test_non_integer_edge_endpoint_is_fatal(self):
        with pytest.raises(GraphLoadError) as excinfo:
            RelationLoader().load(["1,A"], ["1,2", "1,b"])
        assert excinfo.value.line_number == 2
        assert excinfo.value.source == "<edges>"

    def test_load_files(self, tmp_path):
        vertices = tmp_path / "vertices.txt"
        edges = tmp_path / "edges.txt"
        vertices.write_bytes(b"1, A\r\n2, B\r\n3, C\r\n")
        edges.write_bytes(b"1, 2\r\n2, 3\r\n3, 1\r\n")

        graph, stats = RelationLoader().load_files(vertices, edges)
        assert graph.triangle_count() == 1
        assert stats.edges_loaded == 3

    def test_load_files_missing(self, tmp_path):
        with pytest.raises(GraphLoadError, match="cannot read relation"):
            RelationLoader().load_files(tmp_path / "nope.txt", tmp_path / "edges.txt")

    def test_error_reports_file_location(self, tmp_path):
        vertices = tmp_path / "vertices.txt"
        edges = tmp_path / "edges.txt"
        vertices.write_text("1, A\n")
        edges.write_text("1, 1\nbroken\n")

        with pytest.raises(GraphLoadError) as excinfo:
            RelationLoader().load_files(vertices, edges)
        assert str(excinfo.value).startswith(f"{edges}:2:")

    def test_graph_is_read_only(self, square):
        with pytest.raises(FrozenGraphError):
            square.edges.add(1, 4)
        with pytest.raises(FrozenGraphError):
            square.index.attach(1, 4)
        with pytest.raises(FrozenGraphError):
            square.catalog.add(9, "Z")


# ---------------------------------------------------------------------------
# Vertex catalog
# ---------------------------------------------------------------------------


class TestVertexCatalog:
    def test_round_trip(self, square):
        for vertex_id, name in square.catalog.items():
            assert square.id_of(name) == vertex_id
            assert square.name_of(square.id_of(name)) == name

    def test_unknown_lookups(self, square):
        assert square.name_of(42) is None
        assert square.id_of("Nobody") is None
        assert square.id_of("Nobody", pattern_match=True) is None

    def test_pattern_match_takes_first_in_catalog_order(self):
        catalog = VertexCatalog()
        catalog.add(5, "Blue Whale")
        catalog.add(2, "Whale Shark")
        assert catalog.id_of("Whale") is None
        assert catalog.id_of("Whale", pattern_match=True) == 5
        assert catalog.id_of("Shark", pattern_match=True) == 2

    def test_exact_match_preferred(self):
        catalog = VertexCatalog()
        catalog.add(1, "Ann Arbor")
        catalog.add(2, "Ann")
        assert catalog.id_of("Ann", pattern_match=True) == 2

    def test_name_collision_last_write_wins(self):
        catalog = VertexCatalog()
        catalog.add(1, "A")
        catalog.add(2, "A")
        assert catalog.id_of("A") == 2
        assert catalog.name_of(1) is None
        assert len(catalog) == 1
        assert catalog.collisions == 1

    def test_id_rename_retires_old_name(self):
        catalog = VertexCatalog()
        catalog.add(1, "A")
        catalog.add(1, "B")
        assert catalog.id_of("A") is None
        assert catalog.name_of(1) == "B"

    def test_readding_same_entry_is_not_a_collision(self):
        catalog = VertexCatalog()
        catalog.add(1, "A")
        catalog.add(1, "A")
        assert catalog.collisions == 0


# ---------------------------------------------------------------------------
# Neighborhoods
# ---------------------------------------------------------------------------


class TestNeighborhoodExplorer:
    def test_one_hop(self, square):
        assert square.neighbors(1, 1) == {2: 1, 3: 1}
        assert list(square.neighbors(3, 1)) == [2, 1, 4]

    def test_non_positive_depth(self, square):
        assert square.neighbors(1, 0) == {}
        assert square.neighbors(1, -3) == {}

    def test_unknown_and_isolated_vertex(self):
        graph = _build(SQUARE_VERTICES + ["5,E"], SQUARE_EDGES)
        assert graph.neighbors(5, 2) == {}
        assert graph.neighbors(99, 2) == {}

    def test_depth_two_last_writer_wins(self):
        graph = _build(["1,A", "2,B", "3,C"], ["1,2", "2,3", "1,3", "3,1"])
        found = graph.neighbors(1, 2)
        # the origin itself is reachable through a back edge
        assert found == {2: 1, 1: 2, 3: 2}
        assert list(found) == [2, 1, 3]

    def test_sort_by_weight(self):
        graph = _build(["1,A", "2,B", "3,C"], ["2,3", "1,2", "2,1", "1,2"])
        assert list(graph.neighbors(2, 1)) == [3, 1]
        assert list(graph.neighbors(2, 1, sort_by_weight=True)) == [1, 3]

    def test_weight_ties_break_by_id(self):
        graph = _build(["1,A", "2,B", "3,C", "4,D"], ["1,4", "1,3", "1,2"])
        assert list(graph.neighbors(1, 1, sort_by_weight=True)) == [2, 3, 4]

    def test_hotspot_ordering_once_cached(self, square):
        assert list(square.neighbors(3, 1)) == [2, 1, 4]
        square.rank_by_triangles()
        assert list(square.neighbors(3, 1)) == [1, 2, 4]

    def test_routes_are_adjacent_chains(self, square):
        routes = square.neighbor_routes(1, 2)
        assert routes[4] == (1, 3, 4)
        assert routes[3] == (1, 3)
        for route in routes.values():
            assert route[0] == 1
            assert square.is_valid_path(route)


# ---------------------------------------------------------------------------
# Triangles
# ---------------------------------------------------------------------------


class TestTriangles:
    def test_square_scenario(self, square):
        assert square.triangle_count() == 1
        assert square.all_triangles() == [(1, 2, 3, 1)]
        assert square.triangles_for_vertex(3) == [(3, 2, 1, 3)]
        assert square.triangle_count(4) == 0

    def test_unknown_and_isolated(self):
        graph = _build(SQUARE_VERTICES + ["5,E"], SQUARE_EDGES)
        assert graph.triangles_for_vertex(5) == []
        assert graph.triangles_for_vertex(99) == []

    def test_matches_networkx(self, clique_lines):
        graph = _build(*clique_lines)
        reference = _oracle(graph)
        per_vertex = nx.triangles(reference)

        assert graph.triangle_count() == sum(per_vertex.values()) // 3
        for vertex_id, count in per_vertex.items():
            assert graph.triangle_count(vertex_id) == count

    def test_multi_digit_ids_do_not_collide(self):
        # pairs (1, 23) and (12, 3) share the digits 1, 2, 3
        vertices = ["100,Hub", "1,a", "23,b", "12,c", "3,d"]
        edges = ["100,1", "100,23", "1,23", "100,12", "100,3", "12,3"]
        graph = _build(vertices, edges)
        assert graph.triangle_count(100) == 2
        assert graph.triangle_count() == 2

    def test_self_loops_do_not_form_triangles(self):
        graph = _build(["1,A", "2,B"], ["1,2", "2,2", "1,1"])
        assert graph.triangle_count() == 0
        assert graph.triangle_count(1) == 0

    def test_closed_paths(self, clique_lines):
        graph = _build(*clique_lines)
        for origin, first, second, closing in graph.all_triangles():
            assert origin == closing
            assert len({origin, first, second}) == 3
            assert graph.is_valid_path([origin, first, second, closing])


# ---------------------------------------------------------------------------
# Ranking and the hotspot cache
# ---------------------------------------------------------------------------


class TestRanking:
    def test_rank_by_degree(self, square):
        assert square.rank_by_degree() == {3: 3, 1: 2, 2: 2, 4: 1}
        assert square.rank_by_degree(2) == {3: 3, 1: 2}

    def test_rank_by_degree_size(self, clique_lines):
        graph = _build(*clique_lines)
        indexed = len(graph.index)
        for k in (0, 1, 3, indexed, indexed + 10):
            assert len(graph.rank_by_degree(k)) == min(k, indexed)

    def test_rank_by_degree_matches_networkx(self, clique_lines):
        graph = _build(*clique_lines)
        reference = _oracle(graph)
        ranked = graph.rank_by_degree()
        assert ranked == {v: reference.degree(v) for v in ranked}
        assert list(ranked.items()) == sorted(
            ranked.items(), key=lambda item: (-item[1], item[0]),
        )

    def test_rank_by_triangles(self, square):
        assert square.rank_by_triangles() == {1: 1, 2: 1, 3: 1, 4: 0}
        assert square.rank_by_triangles(1) == {1: 1}
        assert square.rank_by_triangles(0) == {}

    def test_rank_by_triangles_idempotent(self, clique_lines):
        graph = _build(*clique_lines)
        first = graph.rank_by_triangles(3)
        table = graph.hotspot_cache.peek()
        assert graph.rank_by_triangles(3) == first
        assert graph.hotspot_cache.peek() is table

    def test_precompute(self):
        graph = _build(SQUARE_VERTICES, SQUARE_EDGES, precompute_hotspots=True)
        assert graph.hotspot_cache.is_valid(len(graph.index))
        assert graph.hotspot_cache.peek() == {1: 1, 2: 1, 3: 1, 4: 0}

    def test_precompute_from_settings(self):
        graph = _build(
            SQUARE_VERTICES, SQUARE_EDGES,
            settings=Settings(PRECOMPUTE_HOTSPOTS=True),
        )
        assert graph.hotspot_cache.peek() is not None

    def test_lazy_by_default(self, square):
        assert square.hotspot_cache.peek() is None
        assert not square.hotspot_cache.is_valid(len(square.index))

    def test_hotspots_fraction(self, clique_lines):
        graph = _build(*clique_lines)
        # six indexed vertices; clique members 1..5 have six triangles each
        assert graph.hotspots(0.1) == [1]
        assert graph.hotspots(0.5) == [1, 2, 3]
        assert graph.hotspots(1.0) == [1, 2, 3, 4, 5, 6]

    def test_hotspots_empty_graph(self):
        graph = _build(["1,A"], [])
        assert graph.hotspots() == []
        assert graph.rank_by_triangles() == {}

    def test_cache_computed_once_under_concurrency(self, square):
        calls = []
        triangles = TriangleEnumerator(square.edges, square.index)
        ranking = RankingEngine(square.index, triangles, HotspotCache())
        original = ranking.triangle_table

        def slow_table():
            calls.append(threading.get_ident())
            time.sleep(0.05)
            return original()

        ranking.triangle_table = slow_table

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(ranking.rank_by_triangles()))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(result == results[0] for result in results)


# ---------------------------------------------------------------------------
# GraphExporter
# ---------------------------------------------------------------------------


class TestGraphExporter:
    @pytest.fixture
    def weighted_result(self):
        engine = GraphEngine()
        return engine.build_from_relations(
            ["1,A", "2,B", "3,C", "4,D"],
            ["1,2", "2,1", "2,3", "3,1", "3,4"],
        )

    def test_to_networkx(self, weighted_result):
        nx_graph = weighted_result.exporter.to_networkx()
        assert nx_graph.number_of_nodes() == 4
        assert nx_graph.number_of_edges() == 4
        assert nx_graph[1][2]["weight"] == 2
        assert nx_graph[1][2]["edge_id"] == 1
        assert nx_graph.nodes[4]["name"] == "D"

    def test_to_networkx_keeps_orphans(self):
        result = GraphEngine().build_from_relations(["1,A"], ["1,7"])
        nx_graph = result.exporter.to_networkx()
        assert nx_graph.nodes[7]["name"] == ""

    def test_summary(self, weighted_result):
        summary = weighted_result.exporter.summary()
        assert summary["vertex_count"] == 4
        assert summary["edge_count"] == 4
        assert summary["total_weight"] == 5
        assert summary["connected_components"] == 1
        assert summary["triangle_count"] == 1
        assert summary["self_loops"] == 0
        assert summary["density"] > 0

    def test_relation_lines(self, weighted_result):
        exporter = weighted_result.exporter
        assert list(exporter.vertex_relation_lines()) == [
            "1, A\r\n", "2, B\r\n", "3, C\r\n", "4, D\r\n",
        ]
        assert list(exporter.edge_relation_lines()) == [
            "1, 2\r\n", "1, 2\r\n", "2, 3\r\n", "3, 1\r\n", "3, 4\r\n",
        ]

    def test_write_relations_round_trip(self, weighted_result, tmp_path):
        vertices_path, edges_path = weighted_result.exporter.write_relations(tmp_path)
        assert vertices_path.read_bytes() == b"1, A\r\n2, B\r\n3, C\r\n4, D\r\n"

        reloaded = GraphEngine().build_from_files(vertices_path, edges_path).graph
        original = weighted_result.graph
        assert reloaded.vertex_count == original.vertex_count
        assert reloaded.edge_count == original.edge_count
        for edge in original.edges:
            assert reloaded.weight(edge.a, edge.b) == edge.weight


# ---------------------------------------------------------------------------
# GraphEngine
# ---------------------------------------------------------------------------


class TestGraphEngine:
    def test_build_from_relations(self):
        result = GraphEngine().build_from_relations(SQUARE_VERTICES, SQUARE_EDGES)
        assert result.vertex_count == 4
        assert result.edge_count == 4
        assert result.stats.vertices_loaded == 4
        assert result.exporter is not None

    def test_summary(self):
        result = GraphEngine().build_from_relations(
            SQUARE_VERTICES, SQUARE_EDGES + ["4,3"],
        )
        summary = result.summary()
        assert summary["vertex_count"] == 4
        assert summary["load_stats"]["edge_lines"] == 5
        assert summary["load_stats"]["duplicate_edges"] == 1

    def test_build_empty(self):
        result = GraphEngine().build_from_relations([], [])
        assert result.vertex_count == 0
        assert result.edge_count == 0
        assert result.summary()["connected_components"] == 0

    def test_precompute_hotspots(self):
        result = GraphEngine(precompute_hotspots=True).build_from_relations(
            SQUARE_VERTICES, SQUARE_EDGES,
        )
        assert result.graph.hotspot_cache.peek() is not None

    def test_build_failure_returns_nothing(self):
        with pytest.raises(GraphLoadError):
            GraphEngine().build_from_relations(SQUARE_VERTICES, ["1,2", "3"])

"""Unit tests for the document graph."""

import pytest

from modulizer.core.graph import DocumentGraph
from modulizer.core.types import DependencyEdge


def make_graph(*pairs):
    graph = DocumentGraph()
    for order, (source, target) in enumerate(pairs):
        graph.add_edge(DependencyEdge(source=source, target=target, order=order))
    return graph


class TestGraphStructure:
    def test_add_edge_creates_documents(self):
        graph = make_graph(("a.html", "b.html"))
        assert graph.has_document("a.html")
        assert graph.has_document("b.html")
        assert graph.document_count == 2
        assert graph.edge_count == 1

    def test_duplicate_edge_returns_existing(self):
        graph = make_graph(("a.html", "b.html"))
        first = graph.get_edge("a.html", "b.html")
        again = graph.add_edge(DependencyEdge(source="a.html", target="b.html", order=5))
        assert again is first
        assert graph.edge_count == 1

    def test_out_edges_keep_include_order(self):
        graph = make_graph(("a.html", "c.html"), ("a.html", "b.html"))
        assert [e.target for e in graph.out_edges("a.html")] == ["c.html", "b.html"]

    def test_add_document_is_idempotent(self):
        graph = DocumentGraph()
        assert graph.add_document("a.html") == graph.add_document("a.html")
        assert list(graph.iter_documents()) == ["a.html"]


class TestDependencyOrder:
    def test_includes_come_before_includers(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "c.html"))
        assert graph.dependency_order(["a.html"]) == ["c.html", "b.html", "a.html"]

    def test_sibling_includes_follow_document_order(self):
        graph = make_graph(("a.html", "b.html"), ("a.html", "c.html"))
        assert graph.dependency_order(["a.html"]) == ["b.html", "c.html", "a.html"]

    def test_cycle_is_broken_at_revisited_document(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        assert graph.dependency_order(["a.html"]) == ["b.html", "a.html"]

    def test_unknown_roots_are_ignored(self):
        graph = make_graph(("a.html", "b.html"))
        assert graph.dependency_order(["missing.html", "a.html"]) == ["b.html", "a.html"]


class TestCycles:
    def test_back_edge_is_marked(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        marked = graph.detect_cycles(["a.html"])

        assert [e.describe() for e in marked] == ["b.html -> a.html"]
        assert graph.get_edge("b.html", "a.html").cyclic
        assert not graph.get_edge("a.html", "b.html").cyclic

    def test_root_order_decides_flagged_edge(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        marked = graph.detect_cycles(["b.html"])
        assert [e.describe() for e in marked] == ["a.html -> b.html"]

    def test_detection_is_not_repeated(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        graph.detect_cycles(["a.html"])
        assert graph.detect_cycles(["a.html"]) == []

    def test_acyclic_graph_has_no_cycles(self):
        graph = make_graph(("a.html", "b.html"), ("a.html", "c.html"), ("b.html", "c.html"))
        assert graph.detect_cycles(["a.html"]) == []

    def test_cycle_message(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        edge = graph.detect_cycles(["a.html"])[0]
        assert graph.cycle_message(edge) == (
            "Cycle in dependency graph found where b.html imports a.html.\n"
            "    Modulizer does not yet support rewriting references among cyclic dependencies."
        )

    def test_stats_count_cyclic_edges(self):
        graph = make_graph(("a.html", "b.html"), ("b.html", "a.html"))
        graph.detect_cycles(["a.html"])
        stats = graph.get_stats()
        assert stats["total_documents"] == 2
        assert stats["cyclic_edges"] == 1


class TestReachability:
    @pytest.fixture
    def cyclic(self):
        graph = make_graph(
            ("a.html", "b.html"),
            ("b.html", "a.html"),
            ("b.html", "c.html"),
        )
        graph.detect_cycles(["a.html"])
        return graph

    def test_descendants(self, cyclic):
        assert {"b.html", "c.html"} <= cyclic.get_descendants("a.html")
        assert cyclic.get_descendants("c.html") == set()
        assert cyclic.get_descendants("missing.html") == set()

    def test_acyclic_descendants_skip_cyclic_edges(self, cyclic):
        assert cyclic.get_descendants("b.html", acyclic_only=True) == {"c.html"}

    def test_degraded_only_across_cyclic_edges(self, cyclic):
        assert cyclic.is_degraded("b.html", "a.html")
        assert not cyclic.is_degraded("a.html", "b.html")
        assert not cyclic.is_degraded("b.html", "c.html")
        assert not cyclic.is_degraded("a.html", "a.html")

    def test_unrelated_documents_are_not_degraded(self, cyclic):
        cyclic.add_document("d.html")
        assert not cyclic.is_degraded("a.html", "d.html")

"""Tests for merge, relation indexing and ownership resolution."""

import pytest

from graph2md.indexer import build_index
from graph2md.merge import merge_graphs
from graph2md.models import Graph, Node, Relationship
from graph2md.ownership import resolve_ownership


def _index(graph: Graph):
    return build_index(graph.nodes, graph.relationships)


class TestMergeGraphs:
    """Tests for first-wins node dedup."""

    def test_first_occurrence_wins(self, builder):
        first = builder.file("F1", "src/a.ts", language="typescript").build()
        second = Graph(
            nodes=[
                Node("F1", ("File",), {"path": "other/a.ts"}),
                Node("F2", ("File",), {"path": "src/b.ts"}),
            ],
            relationships=[Relationship("r9", "IMPORTS", "F1", "F2")],
        )

        merged = merge_graphs([first, second])

        assert [n.id for n in merged.nodes] == ["F1", "F2"]
        assert merged.nodes[0].properties["path"] == "src/a.ts"
        assert len(merged.relationships) == 1

    def test_relationships_are_not_deduplicated(self):
        rel = Relationship("r1", "IMPORTS", "A", "B")
        merged = merge_graphs([Graph([], [rel]), Graph([], [rel])])
        assert len(merged.relationships) == 2

    def test_no_graphs(self):
        merged = merge_graphs([])
        assert merged.nodes == [] and merged.relationships == []


class TestRelationIndex:
    """Tests for forward / reverse adjacency."""

    def test_forward_and_reverse_maps(self, sample_graph):
        index = _index(sample_graph)

        assert index.imports["F1"] == ("F2",)
        assert index.imported_by["F2"] == ("F1",)
        assert index.calls["fn1"] == ("fn2",)
        assert index.called_by["fn2"] == ("fn1",)
        assert index.defines_function["F2"] == ("fn2",)
        assert index.declares_class["F2"] == ("c1",)
        assert index.file_of_function["fn1"] == "F1"
        assert index.file_of_class["c1"] == "F2"
        assert index.contains_file["dir1"] == ("F1", "F2")

    def test_insertion_order_is_kept(self, builder):
        graph = (
            builder
            .rel("IMPORTS", "A", "Z")
            .rel("IMPORTS", "A", "B")
            .rel("IMPORTS", "A", "M")
            .build()
        )
        assert _index(graph).imports["A"] == ("Z", "B", "M")

    def test_belongs_to_resolves_names(self, sample_graph):
        index = _index(sample_graph)
        assert index.belongs_to_domain == {"m1": "Auth"}
        assert index.belongs_to_subdomain == {"fn2": "Tokens"}
        assert index.part_of_domain == {"s1": "Auth"}

    def test_unknown_types_and_targets_are_ignored(self, builder):
        graph = (
            builder
            .node("x", "Function", name="x")
            .rel("REFERENCES", "x", "y")
            .rel("belongsTo", "x", "nowhere")
            .build()
        )
        index = _index(graph)
        assert index.belongs_to_domain == {}
        assert index.imports == {}

    def test_index_is_read_only(self, sample_graph):
        index = _index(sample_graph)
        with pytest.raises(TypeError):
            index.imports["F1"] = ("x",)


class TestOwnership:
    """Tests for domain / subdomain inference."""

    def test_file_inherits_from_class_method(self, sample_graph):
        index = _index(sample_graph)
        ownership = resolve_ownership(sample_graph.nodes, index)

        assert ownership.domain("F2") == "Auth"
        assert ownership.subdomain("F2") == "Tokens"
        assert ownership.domain("F1") == ""

    def test_subdomain_propagates_domain(self, sample_graph):
        ownership = resolve_ownership(sample_graph.nodes, _index(sample_graph))
        # fn2 only has a direct subdomain edge; its subdomain is partOf Auth.
        assert ownership.domain("fn2") == "Auth"

    def test_direct_edge_is_never_overwritten(self, builder):
        graph = (
            builder
            .file("F1", "src/a.ts")
            .function("fn1", "run")
            .node("d1", "Domain", name="Billing")
            .node("d2", "Domain", name="Auth")
            .rel("DEFINES_FUNCTION", "F1", "fn1")
            .rel("belongsTo", "fn1", "d2")
            .rel("belongsTo", "F1", "d1")
            .build()
        )
        ownership = resolve_ownership(graph.nodes, _index(graph))
        assert ownership.domain("F1") == "Billing"

    def test_function_match_beats_class_match(self, builder):
        graph = (
            builder
            .file("F1", "src/a.ts")
            .cls("c1", "A")
            .function("fn1", "run")
            .node("d1", "Domain", name="First")
            .node("d2", "Domain", name="Second")
            .rel("DECLARES_CLASS", "F1", "c1")
            .rel("DEFINES_FUNCTION", "F1", "fn1")
            .rel("belongsTo", "c1", "d2")
            .rel("belongsTo", "fn1", "d1")
            .build()
        )
        ownership = resolve_ownership(graph.nodes, _index(graph))
        assert ownership.domain("F1") == "First"

    def test_domain_and_subdomain_are_independent(self, builder):
        graph = (
            builder
            .file("F1", "src/a.ts")
            .function("fn1", "run")
            .node("s1", "Subdomain", name="Orphan")
            .rel("DEFINES_FUNCTION", "F1", "fn1")
            .rel("belongsTo", "fn1", "s1")
            .build()
        )
        ownership = resolve_ownership(graph.nodes, _index(graph))
        assert ownership.subdomain("F1") == "Orphan"
        assert ownership.domain("F1") == ""

    def test_membership_lists(self, sample_graph):
        ownership = resolve_ownership(sample_graph.nodes, _index(sample_graph))

        assert ownership.files_in_domain("Auth") == ("F2",)
        assert ownership.files_in_subdomain("Tokens") == ("F2",)
        assert ownership.subdomain_functions["Tokens"] == ("fn2",)
        assert ownership.domain_subdomains["Auth"] == ("s1",)
        assert ownership.domain_node_by_name["Auth"] == "d1"

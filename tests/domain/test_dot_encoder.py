from __future__ import annotations

from domain.graph import Graph
from domain.services.encode_dot_graph import encode_dot_graph


def test_encode_empty_graph(graph: Graph) -> None:
    assert encode_dot_graph(graph) == "digraph {\n}\n"


def test_encode_nodes_and_grouped_children(graph: Graph) -> None:
    a = graph.create_vertex(1.0, 0.5)
    b = graph.create_vertex(2.0, 1.25)
    c = graph.create_vertex(0.75, 0.75)
    a.add_child(c)
    a.add_child(b)
    c.add_child(c)

    assert encode_dot_graph(graph) == (
        "digraph {\n"
        "C [width=1.0 height=0.5 shape=box]\n"
        "C -> {D, E} [arrowhead=none]\n"
        "D [width=2.0 height=1.25 shape=box]\n"
        "E [width=0.75 height=0.75 shape=box]\n"
        "E -> {E} [arrowhead=none]\n"
        "}\n"
    )


def test_encode_uses_current_size(graph: Graph) -> None:
    vertex = graph.create_vertex(1, 1)
    vertex.set_size(3, 0.1)

    assert "C [width=3.0 height=0.1 shape=box]" in encode_dot_graph(graph)


def test_encode_skips_removed_vertices(graph: Graph) -> None:
    a = graph.create_vertex(1, 1)
    b = graph.create_vertex(1, 1)
    a.add_child(b)
    graph.remove_vertex(b)

    assert encode_dot_graph(graph) == "digraph {\nC [width=1.0 height=1.0 shape=box]\n}\n"


def test_encode_writes_sizes_without_exponent(graph: Graph) -> None:
    graph.create_vertex(1e-05, 1e17)

    assert "C [width=0.00001 height=100000000000000000 shape=box]" in encode_dot_graph(graph)

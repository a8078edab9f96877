from __future__ import annotations

from decimal import Decimal

from domain.graph import Graph, Vertex


def encode_dot_graph(graph: Graph) -> str:
    lines: list[str] = ["digraph {"]
    for vertex in graph.vertices:
        lines.append(_node_statement(vertex))
        edge = _edge_statement(vertex)
        if edge:
            lines.append(edge)
    lines.append("}")
    return "\n".join(lines) + "\n"


def format_dot_number(value: float) -> str:
    """Positional form of ``repr(value)``; DOT numerals have no exponent."""
    return format(Decimal(repr(float(value))), "f")


def _node_statement(vertex: Vertex) -> str:
    return (
        f"{vertex.id} [width={format_dot_number(vertex.width_inches)} "
        f"height={format_dot_number(vertex.height_inches)} shape=box]"
    )


def _edge_statement(vertex: Vertex) -> str:
    children = sorted(vertex.child_ids)
    if not children:
        return ""
    # arrowhead=none keeps the last spline point on the head vertex boundary.
    return f"{vertex.id} -> {{{', '.join(children)}}} [arrowhead=none]"

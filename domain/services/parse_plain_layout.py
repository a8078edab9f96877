"""Parser for the layout engine's ``plain`` output format.

Statements are one per line with tokens separated by single spaces::

    graph scale width height
    node name x y width height label style shape color fillcolor
    edge tail head n x1 y1 ... xn yn style color
    stop

All lengths are in inches. Node records keep inches and convert centre
coordinates to the top-left corner; edge control points are scaled to device
units while parsing. Any malformed statement fails the whole parse.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NoReturn

from domain.bspline import BSpline
from domain.errors import LayoutConsistencyError, ParseError, ValidationError
from domain.models import Point, Rect

GRAPH_TOKEN_COUNT = 4
NODE_TOKEN_COUNT = 11
EDGE_MIN_TOKEN_COUNT = 6
EDGE_TRAILING_TOKEN_COUNT = 2


@dataclass(frozen=True)
class NodeLayout:
    node_id: str
    x: float
    y: float
    width: float
    height: float

    def to_device(self, dpi: float) -> Rect:
        return Rect(self.x, self.y, self.width, self.height).scaled(dpi)


@dataclass(frozen=True)
class EdgeSpline:
    tail_id: str
    head_id: str
    control_points: tuple[Point, ...]
    spline: BSpline = field(compare=False, repr=False)

    @classmethod
    def from_points(cls, tail_id: str, head_id: str, points: Sequence[Point]) -> EdgeSpline:
        return cls(tail_id, head_id, tuple(points), BSpline(points))


@dataclass(frozen=True)
class PlainLayout:
    scale: float
    width: float
    height: float
    nodes: dict[str, NodeLayout]
    edges_by_head: dict[str, list[EdgeSpline]]

    def node(self, node_id: str) -> NodeLayout:
        try:
            return self.nodes[node_id]
        except KeyError as exc:
            msg = f"Layout output has no node for vertex {node_id!r}"
            raise LayoutConsistencyError(msg) from exc

    def edges_to(self, head_id: str) -> list[EdgeSpline]:
        return list(self.edges_by_head.get(head_id, []))

    @property
    def edges(self) -> list[EdgeSpline]:
        return [edge for edges in self.edges_by_head.values() for edge in edges]


def parse_plain_layout(text: str, dpi: float) -> PlainLayout:
    if not dpi > 0:
        msg = f"dpi must be > 0, got {dpi!r}"
        raise ValidationError(msg)

    scale = 1.0
    width = 1.0
    height = 1.0
    nodes: dict[str, NodeLayout] = {}
    edges_by_head: dict[str, list[EdgeSpline]] = {}

    for line_number, line in enumerate(text.splitlines(), start=1):
        tokens = line.split(" ")
        kind = tokens[0]
        if kind == "graph":
            scale, width, height = _parse_graph(tokens, line_number)
        elif kind == "node":
            node = _parse_node(tokens, line_number)
            nodes[node.node_id] = node
        elif kind == "edge":
            edge = _parse_edge(tokens, line_number, dpi)
            edges_by_head.setdefault(edge.head_id, []).append(edge)

    return PlainLayout(
        scale=scale,
        width=width,
        height=height,
        nodes=nodes,
        edges_by_head=edges_by_head,
    )


def _parse_graph(tokens: list[str], line_number: int) -> tuple[float, float, float]:
    _expect_count(tokens, GRAPH_TOKEN_COUNT, line_number)
    return (
        _parse_number(tokens[1], line_number),
        _parse_number(tokens[2], line_number),
        _parse_number(tokens[3], line_number),
    )


def _parse_node(tokens: list[str], line_number: int) -> NodeLayout:
    _expect_count(tokens, NODE_TOKEN_COUNT, line_number)
    center_x = _parse_number(tokens[2], line_number)
    center_y = _parse_number(tokens[3], line_number)
    width = _parse_number(tokens[4], line_number)
    height = _parse_number(tokens[5], line_number)
    return NodeLayout(
        node_id=tokens[1],
        x=center_x - width / 2.0,
        y=center_y - height / 2.0,
        width=width,
        height=height,
    )


def _parse_edge(tokens: list[str], line_number: int, dpi: float) -> EdgeSpline:
    if len(tokens) < EDGE_MIN_TOKEN_COUNT:
        _raise_count(tokens, f"at least {EDGE_MIN_TOKEN_COUNT}", line_number)
    try:
        count = int(tokens[3])
    except ValueError as exc:
        msg = f"Line {line_number}: invalid edge point count {tokens[3]!r}"
        raise ParseError(msg) from exc
    if count < 1:
        msg = f"Line {line_number}: edge needs at least one control point, got {count}"
        raise ParseError(msg)
    _expect_count(tokens, 4 + 2 * count + EDGE_TRAILING_TOKEN_COUNT, line_number)

    points: list[Point] = []
    for i in range(count):
        x = _parse_number(tokens[4 + 2 * i], line_number)
        y = _parse_number(tokens[4 + 2 * i + 1], line_number)
        points.append(Point(dpi * x, dpi * y))
    return EdgeSpline.from_points(tokens[1], tokens[2], points)


def _parse_number(token: str, line_number: int) -> float:
    try:
        value = float(token)
    except ValueError as exc:
        msg = f"Line {line_number}: invalid number {token!r}"
        raise ParseError(msg) from exc
    if not math.isfinite(value):
        msg = f"Line {line_number}: non-finite number {token!r}"
        raise ParseError(msg)
    return value


def _expect_count(tokens: list[str], expected: int, line_number: int) -> None:
    if len(tokens) != expected:
        _raise_count(tokens, str(expected), line_number)


def _raise_count(tokens: list[str], expected: str, line_number: int) -> NoReturn:
    line = " ".join(tokens)
    msg = (
        f"Line {line_number}: unexpected number of tokens for {tokens[0]!r} "
        f"(expected {expected}, got {len(tokens)}): {line!r}"
    )
    raise ParseError(msg)

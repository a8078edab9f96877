from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass

from domain.errors import DetachedVertexError, ValidationError
from domain.models import (
    PLACEHOLDER_GEOMETRY,
    VERTEX_COLUMNS,
    Rect,
    RenderableEdge,
    RoleKey,
    Variant,
    role_name,
)
from domain.ports.presentation import PresentationSink

_OCTAL_TO_ALPHA = str.maketrans("01234567", "ABCDEFGH")


def encode_vertex_id(value: int) -> str:
    """Octal digits of ``value`` mapped onto ``A``-``H``.

    The result only contains upper-case letters, so it can be used unquoted
    as a DOT identifier and survives the plain output format unchanged.
    """
    if value < 0:
        msg = f"Vertex id counter must be non-negative, got {value}"
        raise ValidationError(msg)
    return format(value, "o").translate(_OCTAL_TO_ALPHA)


def _geometry_values(rect: Rect) -> dict[str, Variant]:
    return {
        "x": Variant.real(rect.x),
        "y": Variant.real(rect.y),
        "width": Variant.real(rect.width),
        "height": Variant.real(rect.height),
    }


def _check_size(width: float, height: float) -> tuple[float, float]:
    checked: list[float] = []
    for label, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"{label} must be a number, got {value!r}"
            raise ValidationError(msg)
        if not math.isfinite(value) or value <= 0:
            msg = f"{label} must be > 0, got {value}"
            raise ValidationError(msg)
        checked.append(float(value))
    return checked[0], checked[1]


class Vertex:
    """A node in a :class:`Graph`.

    Child and parent links are kept as sets of vertex ids and resolved through
    the owning graph, so the vertex never holds its neighbours directly. Once
    the vertex is removed from the graph every operation except ``id`` raises
    :class:`DetachedVertexError`.
    """

    def __init__(
        self,
        vertex_id: str,
        width_inches: float,
        height_inches: float,
        graph: Graph,
        row: MutableMapping[str, Variant],
    ) -> None:
        self._id = vertex_id
        self._graph: Graph | None = graph
        self._row = row
        self._children: set[str] = set()
        self._parents: set[str] = set()
        self._width_inches, self._height_inches = _check_size(width_inches, height_inches)

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_attached(self) -> bool:
        return self._graph is not None

    @property
    def width_inches(self) -> float:
        self._attached_graph()
        return self._width_inches

    @property
    def height_inches(self) -> float:
        self._attached_graph()
        return self._height_inches

    def set_size(self, width_inches: float, height_inches: float) -> None:
        width, height = _check_size(width_inches, height_inches)
        self._attached_graph()
        self._width_inches = width
        self._height_inches = height

    def add_child(self, child: Vertex) -> None:
        self._check_same_graph(child)
        self._children.add(child.id)
        child._parents.add(self._id)

    def remove_child(self, child: Vertex) -> bool:
        self._check_same_graph(child)
        if child.id not in self._children:
            return False
        self._children.discard(child.id)
        child._parents.discard(self._id)
        return True

    @property
    def children(self) -> list[Vertex]:
        graph = self._attached_graph()
        return [graph.get_vertex(child_id) for child_id in sorted(self._children)]

    @property
    def parents(self) -> list[Vertex]:
        graph = self._attached_graph()
        return [graph.get_vertex(parent_id) for parent_id in sorted(self._parents)]

    @property
    def child_ids(self) -> frozenset[str]:
        self._attached_graph()
        return frozenset(self._children)

    @property
    def parent_ids(self) -> frozenset[str]:
        self._attached_graph()
        return frozenset(self._parents)

    def is_root(self) -> bool:
        self._attached_graph()
        return not self._parents

    def is_leaf(self) -> bool:
        self._attached_graph()
        return not self._children

    def get(self, key: RoleKey) -> Variant | None:
        name = role_name(key)
        self._attached_graph()
        return self._row.get(name)

    def put(self, key: RoleKey, value: object) -> None:
        graph = self._attached_graph()
        name = graph.check_user_role(key)
        self._row[name] = Variant.of(value)

    def remove(self, key: RoleKey) -> bool:
        graph = self._attached_graph()
        name = graph.check_user_role(key)
        return self._row.pop(name, None) is not None

    @property
    def x(self) -> float:
        return self._geometry_value("x")

    @property
    def y(self) -> float:
        return self._geometry_value("y")

    @property
    def device_width(self) -> float:
        return self._geometry_value("width")

    @property
    def device_height(self) -> float:
        return self._geometry_value("height")

    @property
    def geometry(self) -> Rect:
        return Rect(self.x, self.y, self.device_width, self.device_height)

    def _geometry_value(self, column: str) -> float:
        self._attached_graph()
        return self._row[column].as_float()

    def _apply_geometry(self, values: Mapping[str, Variant]) -> None:
        self._row.update(values)

    def _attached_graph(self) -> Graph:
        if self._graph is None:
            msg = f"Vertex {self._id} was removed from its graph"
            raise DetachedVertexError(msg)
        return self._graph

    def _check_same_graph(self, other: Vertex) -> Graph:
        if other is None:
            msg = "vertex is None"
            raise ValidationError(msg)
        graph = self._attached_graph()
        if other._graph is not graph:
            msg = f"Vertex {other.id} is not from the same graph as vertex {self._id}"
            raise ValidationError(msg)
        return graph

    def _detach(self) -> None:
        self._graph = None
        self._children.clear()
        self._parents.clear()

    def __repr__(self) -> str:
        if self._graph is None:
            return f"Vertex(id={self._id!r}, detached)"
        return (
            f"Vertex(id={self._id!r}, size=({self._width_inches}, {self._height_inches}), "
            f"children={sorted(self._children)}, parents={sorted(self._parents)})"
        )


@dataclass(frozen=True)
class GraphBounds:
    width: float
    height: float


class Graph:
    """Mutable directed graph whose presentation rows live in a sink.

    A vertex row is added with placeholder geometry when the vertex is
    created and is updated in place by every layout. Edges are derived from
    child sets when the graph is encoded and only exist as rows after a
    layout has been published.
    """

    def __init__(
        self,
        sink: PresentationSink,
        *,
        dpi: float,
        user_keys: Iterable[RoleKey] | None = None,
    ) -> None:
        if isinstance(dpi, bool) or not isinstance(dpi, (int, float)) or not dpi > 0:
            msg = f"dpi must be > 0, got {dpi!r}"
            raise ValidationError(msg)
        self._sink = sink
        self._dpi = float(dpi)
        self._vertices: dict[str, Vertex] = {}
        self._next_id = 1
        self._user_keys: frozenset[str] | None = None
        if user_keys is not None:
            self._user_keys = frozenset(self._check_reserved(role_name(key)) for key in user_keys)
        # One inch square until the first layout replaces it.
        self._sink.graph["width"] = Variant.real(self._dpi)
        self._sink.graph["height"] = Variant.real(self._dpi)

    @property
    def dpi(self) -> float:
        return self._dpi

    @property
    def sink(self) -> PresentationSink:
        return self._sink

    @property
    def user_keys(self) -> frozenset[str] | None:
        return self._user_keys

    @property
    def width(self) -> float:
        return self._sink.graph["width"].as_float()

    @property
    def height(self) -> float:
        return self._sink.graph["height"].as_float()

    @property
    def bounds(self) -> GraphBounds:
        return GraphBounds(self.width, self.height)

    @property
    def vertices(self) -> list[Vertex]:
        return list(self._vertices.values())

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(list(self._vertices.values()))

    def __contains__(self, vertex: object) -> bool:
        return isinstance(vertex, Vertex) and self._vertices.get(vertex.id) is vertex

    def get_vertex(self, vertex_id: str) -> Vertex:
        try:
            return self._vertices[vertex_id]
        except KeyError as exc:
            msg = f"Vertex {vertex_id!r} is not part of this graph"
            raise ValidationError(msg) from exc

    def create_vertex(
        self,
        width_inches: float,
        height_inches: float,
        initial_attributes: Mapping[RoleKey, object] | None = None,
    ) -> Vertex:
        _check_size(width_inches, height_inches)
        attributes: dict[str, Variant] = {}
        for key, value in (initial_attributes or {}).items():
            attributes[self.check_user_role(key)] = Variant.of(value)

        self._next_id += 1
        vertex_id = encode_vertex_id(self._next_id)
        row: dict[str, Variant] = {
            "id": Variant.string(vertex_id),
            "x": Variant.real(PLACEHOLDER_GEOMETRY.x),
            "y": Variant.real(PLACEHOLDER_GEOMETRY.y),
            "width": Variant.real(PLACEHOLDER_GEOMETRY.width),
            "height": Variant.real(PLACEHOLDER_GEOMETRY.height),
        }
        row.update(attributes)
        index = self._sink.vertices.add_row(row)
        vertex = Vertex(
            vertex_id,
            width_inches,
            height_inches,
            self,
            self._sink.vertices.get_row(index),
        )
        self._vertices[vertex_id] = vertex
        return vertex

    def remove_vertex(self, vertex: Vertex) -> bool:
        if vertex is None:
            msg = "vertex is None"
            raise ValidationError(msg)
        if vertex._graph is not None and vertex._graph is not self:
            msg = f"Vertex {vertex.id} is not owned by this graph"
            raise ValidationError(msg)
        if self._vertices.get(vertex.id) is not vertex:
            return False

        for child_id in vertex._children:
            self._vertices[child_id]._parents.discard(vertex.id)
        for parent_id in vertex._parents:
            self._vertices[parent_id]._children.discard(vertex.id)
        self._remove_vertex_row(vertex.id)
        del self._vertices[vertex.id]
        vertex._detach()
        return True

    def clear(self) -> None:
        self._sink.vertices.clear()
        self._sink.edges.clear()
        for vertex in self._vertices.values():
            vertex._detach()
        self._vertices.clear()

    def check_user_role(self, key: RoleKey) -> str:
        name = self._check_reserved(role_name(key))
        if self._user_keys is not None and name not in self._user_keys:
            msg = f"Role {name!r} was not declared for this graph"
            raise ValidationError(msg)
        return name

    def publish_layout(
        self,
        bounds: GraphBounds,
        geometry: Mapping[str, Rect],
        edges: Iterable[RenderableEdge],
    ) -> None:
        missing = [vertex_id for vertex_id in self._vertices if vertex_id not in geometry]
        if missing:
            msg = f"No geometry for vertices: {', '.join(missing)}"
            raise ValidationError(msg)
        # All values are converted before the first write to the sink.
        graph_row = {"width": Variant.real(bounds.width), "height": Variant.real(bounds.height)}
        vertex_rows = {
            vertex_id: _geometry_values(geometry[vertex_id]) for vertex_id in self._vertices
        }
        edge_rows = [edge.to_row() for edge in edges]

        self._sink.graph.update(graph_row)
        for vertex_id, vertex in self._vertices.items():
            vertex._apply_geometry(vertex_rows[vertex_id])
        self._sink.edges.clear()
        for row in edge_rows:
            self._sink.edges.add_row(row)

    def _remove_vertex_row(self, vertex_id: str) -> None:
        rows = self._sink.vertices
        for index in range(rows.size()):
            if rows.get_row(index)["id"].value == vertex_id:
                rows.remove_row(index)
                return

    @staticmethod
    def _check_reserved(name: str) -> str:
        if name in VERTEX_COLUMNS:
            msg = f"Role {name!r} collides with a built-in vertex column"
            raise ValidationError(msg)
        return name

from __future__ import annotations

from typing import Dict, List, Optional, Set, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from domain.graph import Graph, Vertex
from domain.models import Point
from domain.ports.presentation import PresentationSink


class PointValue(BaseModel):
    x: float
    y: float

    def to_point(self) -> Point:
        return Point(self.x, self.y)


AttributeValue = Union[bool, int, float, str, PointValue, List[PointValue]]


class VertexSpec(BaseModel):
    key: str = Field(..., min_length=1)
    width: float = Field(1.0, gt=0)
    height: float = Field(1.0, gt=0)
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)

    def attribute_values(self) -> Dict[str, object]:
        values: Dict[str, object] = {}
        for name, value in self.attributes.items():
            if isinstance(value, PointValue):
                values[name] = value.to_point()
            elif isinstance(value, list):
                values[name] = [item.to_point() for item in value]
            else:
                values[name] = value
        return values


class EdgeSpec(BaseModel):
    tail: str = Field(..., min_length=1)
    head: str = Field(..., min_length=1)


class GraphDocument(BaseModel):
    """Caller-facing description of a graph, keyed by caller-chosen names."""

    user_keys: Optional[List[str]] = None
    vertices: List[VertexSpec] = Field(default_factory=list)
    edges: List[EdgeSpec] = Field(default_factory=list)

    @field_validator("vertices", mode="after")
    @classmethod
    def ensure_unique_vertex_keys(cls, vertices: List[VertexSpec]) -> List[VertexSpec]:
        seen: Set[str] = set()
        for vertex in vertices:
            if vertex.key in seen:
                msg = f"Duplicate vertex key found: {vertex.key}"
                raise ValueError(msg)
            seen.add(vertex.key)
        return vertices

    @model_validator(mode="after")
    def ensure_known_edge_endpoints(self) -> GraphDocument:
        keys = {vertex.key for vertex in self.vertices}
        for edge in self.edges:
            for endpoint in (edge.tail, edge.head):
                if endpoint not in keys:
                    msg = f"Edge {edge.tail} -> {edge.head} references unknown vertex {endpoint}"
                    raise ValueError(msg)
        return self


def build_graph(
    document: GraphDocument,
    sink: PresentationSink,
    dpi: float,
) -> tuple[Graph, Dict[str, Vertex]]:
    graph = Graph(sink, dpi=dpi, user_keys=document.user_keys)
    by_key: Dict[str, Vertex] = {}
    for entry in document.vertices:
        by_key[entry.key] = graph.create_vertex(entry.width, entry.height, entry.attribute_values())
    for edge in document.edges:
        by_key[edge.tail].add_child(by_key[edge.head])
    return graph, by_key

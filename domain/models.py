from __future__ import annotations

import math
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from domain.errors import ValidationError

VERTEX_COLUMNS = ("id", "x", "y", "width", "height")
EDGE_COLUMNS = ("polyline", "head_id", "tail_id")
GRAPH_COLUMNS = ("width", "height")

VariantKind = Literal["bool", "int", "real", "string", "point", "point_list"]


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    def distance_sq(self, other: Point) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def scaled(self, factor: float) -> Rect:
        return Rect(
            self.x * factor,
            self.y * factor,
            self.width * factor,
            self.height * factor,
        )


PLACEHOLDER_GEOMETRY = Rect(0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True)
class Variant:
    """Tagged value stored in presentation rows and vertex attributes."""

    kind: VariantKind
    value: Any

    @classmethod
    def boolean(cls, value: bool) -> Variant:
        return cls("bool", bool(value))

    @classmethod
    def integer(cls, value: int) -> Variant:
        return cls("int", int(value))

    @classmethod
    def real(cls, value: float) -> Variant:
        number = float(value)
        if not math.isfinite(number):
            msg = f"Variant real value must be finite, got {value!r}"
            raise ValidationError(msg)
        return cls("real", number)

    @classmethod
    def string(cls, value: str) -> Variant:
        return cls("string", str(value))

    @classmethod
    def point(cls, value: Point) -> Variant:
        return cls("point", _finite_point(value))

    @classmethod
    def point_list(cls, points: Sequence[Point]) -> Variant:
        return cls("point_list", tuple(_finite_point(point) for point in points))

    @classmethod
    def of(cls, raw: object) -> Variant:
        if raw is None:
            msg = "value is None"
            raise ValidationError(msg)
        if isinstance(raw, Variant):
            return raw
        # bool is a subclass of int and must be matched first.
        if isinstance(raw, bool):
            return cls.boolean(raw)
        if isinstance(raw, int):
            return cls.integer(raw)
        if isinstance(raw, float):
            return cls.real(raw)
        if isinstance(raw, str):
            return cls.string(raw)
        if isinstance(raw, Point):
            return cls.point(raw)
        if isinstance(raw, (list, tuple)) and all(isinstance(item, Point) for item in raw):
            return cls.point_list(raw)
        msg = f"Unsupported variant value type: {type(raw).__name__}"
        raise ValidationError(msg)

    def as_float(self) -> float:
        if self.kind not in ("int", "real"):
            msg = f"Variant of kind {self.kind!r} is not numeric"
            raise ValidationError(msg)
        return float(self.value)

    def to_json(self) -> Any:
        if self.kind == "point":
            return {"x": self.value.x, "y": self.value.y}
        if self.kind == "point_list":
            return [{"x": point.x, "y": point.y} for point in self.value]
        return self.value


def _finite_point(value: Point) -> Point:
    point = Point(float(value.x), float(value.y))
    if not (math.isfinite(point.x) and math.isfinite(point.y)):
        msg = f"Variant point must have finite coordinates, got {value!r}"
        raise ValidationError(msg)
    return point


RoleKey = Hashable


def role_name(key: RoleKey) -> str:
    """Stable string identifier for a caller-defined attribute key.

    Strings are used as-is, enum members by their member name, and any other
    object must expose a ``role_name`` string attribute. The result has to be a
    valid identifier so presentation layers can bind it as a column name.
    """
    if key is None:
        msg = "key is None"
        raise ValidationError(msg)
    if isinstance(key, Enum):
        name = key.name
    elif isinstance(key, str):
        name = key
    else:
        name = getattr(key, "role_name", None)
        if not isinstance(name, str):
            msg = f"Key {key!r} has no string role_name"
            raise ValidationError(msg)
    if not name.isidentifier():
        msg = f"Role name {name!r} is not a valid identifier"
        raise ValidationError(msg)
    return name


@dataclass(frozen=True)
class RenderableEdge:
    tail_id: str
    head_id: str
    polyline: tuple[Point, ...]

    def to_row(self) -> dict[str, Variant]:
        return {
            "polyline": Variant.point_list(self.polyline),
            "head_id": Variant.string(self.head_id),
            "tail_id": Variant.string(self.tail_id),
        }

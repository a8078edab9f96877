from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from domain.bspline import BSpline
from domain.errors import ValidationError
from domain.models import Point, RenderableEdge
from domain.services.parse_plain_layout import EdgeSpline

_ARROW_ANGLE = math.radians(30.0)


@dataclass(frozen=True)
class EdgeGeometryConfig:
    arrow_length_inches: float = 0.125
    flatness: float = 0.5
    min_interpolation_distance_sq: float = 10.0 * 10.0
    max_subdivision_depth: int = 16


@dataclass(frozen=True)
class _Sample:
    t: float
    point: Point


class EdgeGeometryBuilder:
    """Turns an edge spline into a polyline ending in an arrowhead."""

    def __init__(self, config: EdgeGeometryConfig | None = None) -> None:
        self.config = config or EdgeGeometryConfig()
        if self.config.arrow_length_inches < 0:
            msg = f"arrow_length_inches must be >= 0, got {self.config.arrow_length_inches}"
            raise ValidationError(msg)

    def build(self, edge: EdgeSpline, dpi: float) -> RenderableEdge:
        curve = self.sample(edge.spline)
        arrow = arrowhead(curve, self.config.arrow_length_inches * dpi)
        return RenderableEdge(
            tail_id=edge.tail_id,
            head_id=edge.head_id,
            polyline=tuple(curve) + arrow,
        )

    def sample(self, spline: BSpline) -> list[Point]:
        start = _Sample(0.0, spline.evaluate(0.0))
        end = _Sample(1.0, spline.evaluate(1.0))
        samples = [start, end]
        self._subdivide(spline, start, end, samples, depth=0)
        samples.sort(key=lambda sample: sample.t)
        return [sample.point for sample in samples]

    def _subdivide(
        self,
        spline: BSpline,
        start: _Sample,
        end: _Sample,
        samples: list[_Sample],
        depth: int,
    ) -> None:
        middle_t = (start.t + end.t) / 2.0
        middle = _Sample(middle_t, spline.evaluate(middle_t))
        samples.append(middle)
        if depth >= self.config.max_subdivision_depth:
            return
        if self._needs_more_points(start.point, middle.point, end.point):
            self._subdivide(spline, start, middle, samples, depth + 1)
            self._subdivide(spline, middle, end, samples, depth + 1)

    def _needs_more_points(self, start: Point, middle: Point, end: Point) -> bool:
        if line_distance(start, end, middle) < self.config.flatness:
            return False
        limit = self.config.min_interpolation_distance_sq
        return start.distance_sq(middle) > limit or middle.distance_sq(end) > limit


def arrowhead(curve: Sequence[Point], arrow_length: float) -> tuple[Point, Point, Point]:
    """Wing, tip, wing for an arrow that ends on the last curve point.

    The direction comes from the last two distinct samples; a curve that
    collapses to a single point gets wings on the tip.
    """
    if not curve:
        msg = "curve has no points"
        raise ValidationError(msg)
    tip = curve[-1]
    previous = next((point for point in reversed(curve[:-1]) if point != tip), None)
    if previous is None or arrow_length == 0:
        return tip, tip, tip

    delta = previous - tip
    length = math.sqrt(delta.x * delta.x + delta.y * delta.y)
    normal = delta.scaled(arrow_length / length)
    return tip + _rotate(normal, _ARROW_ANGLE), tip, tip + _rotate(normal, -_ARROW_ANGLE)


def line_distance(start: Point, end: Point, point: Point) -> float:
    """Perpendicular distance from ``point`` to the line through start and end."""
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.sqrt(point.distance_sq(start))
    cross = (point.x - start.x) * dy - (point.y - start.y) * dx
    return abs(cross) / math.sqrt(length_sq)


def _rotate(vector: Point, angle: float) -> Point:
    cosine = math.cos(angle)
    sine = math.sin(angle)
    return Point(
        cosine * vector.x - sine * vector.y,
        sine * vector.x + cosine * vector.y,
    )

from __future__ import annotations

from collections.abc import Sequence

from domain.errors import ValidationError
from domain.models import Point

DEGREE = 3


class BSpline:
    """Clamped cubic B-spline over the parameter range [0, 1].

    The knot vector has ``m + 1`` entries with ``m = p + n + 1``: ``p + 1``
    zeros, uniformly spaced interior knots and ``p + 1`` ones. With fewer than
    four control points the leading zeros and trailing ones overlap and the
    ones win, which keeps the vector non-decreasing.
    """

    def __init__(self, control_points: Sequence[Point]) -> None:
        if not control_points:
            msg = "BSpline requires at least one control point"
            raise ValidationError(msg)
        p = DEGREE
        n = len(control_points) - 1
        m = p + n + 1

        knots = [0.0] * (m + 1)
        interior_count = m - 2 * p - 1
        for i in range(p + 1, m - p):
            knots[i] = (i - p) / (interior_count + 1)
        for i in range(max(m - p, 0), m + 1):
            knots[i] = 1.0

        self._n = n
        self._knots = tuple(knots)
        self._control_x = tuple(float(point.x) for point in control_points)
        self._control_y = tuple(float(point.y) for point in control_points)

    @property
    def knots(self) -> tuple[float, ...]:
        return self._knots

    @property
    def control_points(self) -> list[Point]:
        return [Point(x, y) for x, y in zip(self._control_x, self._control_y)]

    def evaluate(self, t: float) -> Point:
        if not 0.0 <= t <= 1.0:
            msg = f"t is not in the range [0, 1]: t={t}"
            raise ValidationError(msg)

        # Basis functions use half-open spans, so t == 1 never lands in one.
        if t == 1.0:
            return Point(self._control_x[-1], self._control_y[-1])
        if t == 0.0:
            return Point(self._control_x[0], self._control_y[0])

        x = 0.0
        y = 0.0
        for i in range(self._n + 1):
            basis = self._basis(i, DEGREE, t)
            x += self._control_x[i] * basis
            y += self._control_y[i] * basis
        return Point(x, y)

    def _basis(self, i: int, j: int, t: float) -> float:
        knots = self._knots
        if j == 0:
            return 1.0 if knots[i] <= t < knots[i + 1] else 0.0

        left_span = knots[i + j] - knots[i]
        left = (t - knots[i]) / left_span if left_span != 0.0 else 0.0
        right_span = knots[i + j + 1] - knots[i + 1]
        right = (knots[i + j + 1] - t) / right_span if right_span != 0.0 else 0.0
        return left * self._basis(i, j - 1, t) + right * self._basis(i + 1, j - 1, t)

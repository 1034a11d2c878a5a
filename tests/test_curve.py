"""Tests for the `NurbsCurve` type."""

from __future__ import annotations

import math

import numpy as np
import numpy.testing as nptest
import pytest

from nurbskit.curve import NurbsCurve
from nurbskit.errors import DegenerateGeometryError, InvalidGeometryError
from nurbskit.knots import KnotVector

QUADRATIC_BEZIER = [0.0, 0.0, 0.0, 1.0, 1.0, 1.0]
EIGHTH_CIRCLE = 1.0 / (1.0 + math.sqrt(2.0))


@pytest.fixture
def arc() -> NurbsCurve:
    """Quarter of the unit circle as a rational quadratic Bézier curve."""
    return NurbsCurve(
        2, QUADRATIC_BEZIER, [[1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]], [1.0, 1.0, 2.0]
    )


@pytest.fixture
def line() -> NurbsCurve:
    """A straight segment of length 5."""
    return NurbsCurve(1, [0.0, 0.0, 1.0, 1.0], [[0.0, 0.0], [3.0, 4.0]])


class TestConstruction:
    """Tests for building curves and validating their data."""

    def test_properties(self, arc: NurbsCurve) -> None:
        """Basic properties of a rational curve."""
        assert arc.degree == 2
        assert isinstance(arc.knots, KnotVector)
        assert arc.dimension == 3
        assert arc.num_control_points == 3
        assert arc.domain == (0.0, 1.0)
        assert arc.is_rational
        nptest.assert_allclose(arc.weights, [1.0, 1.0, 2.0])
        nptest.assert_allclose(arc.control_points[2], [0.0, 1.0, 0.0])
        nptest.assert_allclose(arc.homogeneous_points[2], [0.0, 2.0, 0.0, 2.0])

    def test_constant_weights_are_not_rational(self) -> None:
        """Equal weights give a polynomial curve."""
        pts = [[0.0, 0.0], [1.0, 2.0], [2.0, 0.0]]
        weighted = NurbsCurve(2, QUADRATIC_BEZIER, pts, [2.0, 2.0, 2.0])
        plain = NurbsCurve(2, QUADRATIC_BEZIER, pts)
        assert not weighted.is_rational
        nptest.assert_allclose(weighted.point_at(0.3), plain.point_at(0.3))

    def test_immutable(self, arc: NurbsCurve) -> None:
        """Homogeneous control points cannot be modified in place."""
        with pytest.raises(ValueError):
            arc.homogeneous_points[0, 0] = 5.0

    def test_from_points(self) -> None:
        """Curves on uniform clamped knots over [0, 1]."""
        curve = NurbsCurve.from_points([[0, 0], [1, 1], [2, 0], [3, 1]], 2)
        nptest.assert_allclose(curve.knots.values, [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0])
        nptest.assert_allclose(curve.point_at(1.0), [3.0, 1.0])

    def test_from_points_too_few(self) -> None:
        """Too few points for the degree are reported as invalid geometry."""
        with pytest.raises(InvalidGeometryError, match="at least degree\\+1"):
            NurbsCurve.from_points([[0, 0], [1, 1]], 3)

    @pytest.mark.parametrize(
        ("degree", "knots", "points", "weights", "match"),
        [
            (0, [0, 1], [[0, 0]], None, "degree must be an integer"),
            (1.5, [0, 0, 1, 1], [[0, 0], [1, 1]], None, "degree must be an integer"),
            (2, QUADRATIC_BEZIER, [[0, 0], [1, 1]], None, "needs at least 3 control points"),
            (2, [0, 0, 0, 1, 1], [[0, 0], [1, 1], [2, 0]], None, "invalid knot vector"),
            (2, QUADRATIC_BEZIER, [[0, 0], [1, 1], [2, 0]], [1, 1], "one weight per control point"),
            (2, QUADRATIC_BEZIER, [[0, 0], [1, 1], [2, 0]], [1, -1, 1], "strictly positive"),
            (1, [0, 0, 1, 1], [0.0, 1.0], None, "2D array"),
            (1, [0, 0, 1, 1], [[0, 0], [np.inf, 1]], None, "finite"),
        ],
    )
    def test_invalid(
        self,
        degree: float,
        knots: list[float],
        points: list[list[float]],
        weights: list[float] | None,
        match: str,
    ) -> None:
        """Invalid definitions raise InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError, match=match):
            NurbsCurve(degree, knots, points, weights)  # type: ignore[arg-type]

    def test_equality_and_copy(self, arc: NurbsCurve) -> None:
        """Curves compare by value."""
        assert arc.copy() == arc
        assert arc.copy() is not arc
        other = NurbsCurve(2, QUADRATIC_BEZIER, arc.control_points, [1.0, 1.0, 1.0])
        assert arc != other
        assert arc != "arc"
        assert "NurbsCurve(degree=2" in repr(arc)


class TestDifferentialGeometry:
    """Tests for tangents and curvature."""

    def test_unit_tangent(self, arc: NurbsCurve) -> None:
        """The unit tangent at the start of the arc points along y."""
        nptest.assert_allclose(arc.tangent_at(0.0), [0.0, 1.0, 0.0], atol=1e-14)
        assert np.linalg.norm(arc.tangent_at(0.7)) == pytest.approx(1.0)

    def test_degenerate_tangent(self) -> None:
        """A repeated first control point gives a vanishing tangent."""
        curve = NurbsCurve(2, QUADRATIC_BEZIER, [[0.0, 0.0], [0.0, 0.0], [1.0, 1.0]])
        with pytest.raises(DegenerateGeometryError, match="tangent vanishes"):
            curve.tangent_at(0.0)

    @pytest.mark.parametrize("t", [0.0, 0.3, 0.8, 1.0])
    def test_circle_curvature(self, arc: NurbsCurve, t: float) -> None:
        """The curvature vector of a unit circle points to its center."""
        nptest.assert_allclose(arc.curvature_at(t), -arc.point_at(t), atol=1e-10)

    def test_straight_curvature(self, line: NurbsCurve) -> None:
        """Straight curves have a zero curvature vector."""
        nptest.assert_array_equal(line.curvature_at(0.5), [0.0, 0.0])


class TestMeasures:
    """Tests for length, closest point and bounding box queries."""

    def test_line_length(self, line: NurbsCurve) -> None:
        """Length and partial length of a line."""
        assert line.length() == pytest.approx(5.0)
        assert line.length_at(0.5) == pytest.approx(2.5)
        assert line.parameter_at_length(2.5) == pytest.approx(0.5, abs=1e-5)
        nptest.assert_allclose(line.point_at_length(2.5), [1.5, 2.0], atol=1e-4)

    def test_arc_length(self, arc: NurbsCurve) -> None:
        """The quarter circle has length pi/2."""
        assert arc.length() == pytest.approx(math.pi / 2, rel=1e-8)
        assert arc.length_at(EIGHTH_CIRCLE) == pytest.approx(math.pi / 4, rel=1e-8)
        assert arc.parameter_at_length(math.pi / 4) == pytest.approx(EIGHTH_CIRCLE, abs=1e-5)

    def test_parameter_at_length_bounds(self, arc: NurbsCurve) -> None:
        """Lengths outside the curve map to the domain ends."""
        assert arc.parameter_at_length(-1.0) == 0.0
        assert arc.parameter_at_length(10.0) == 1.0

    def test_closest_parameter_on_line(self, line: NurbsCurve) -> None:
        """Orthogonal projection onto a line and clamping at its end."""
        assert line.closest_parameter([3.0, 0.0]) == pytest.approx(0.36, abs=1e-6)
        assert line.closest_parameter([10.0, 10.0]) == pytest.approx(1.0)

    def test_closest_point_on_arc(self, arc: NurbsCurve) -> None:
        """Radial projection onto the arc."""
        closest = arc.closest_point([2.0, 2.0, 0.0])
        nptest.assert_allclose(closest, [math.sqrt(0.5), math.sqrt(0.5), 0.0], atol=1e-3)

    def test_closest_parameter_dimension(self, line: NurbsCurve) -> None:
        """The point must match the curve dimension."""
        with pytest.raises(ValueError, match="point must have shape"):
            line.closest_parameter([1.0, 2.0, 3.0])

    def test_tight_bounding_box(self) -> None:
        """Polynomial curves get the box of their extrema."""
        parabola = NurbsCurve(2, QUADRATIC_BEZIER, [[0.0, 0.0], [1.0, 2.0], [2.0, 0.0]])
        box = parabola.bounding_box()
        nptest.assert_allclose(box.min_point, [0.0, 0.0])
        nptest.assert_allclose(box.max_point, [2.0, 1.0])

    def test_rational_bounding_box(self, arc: NurbsCurve) -> None:
        """Rational curves get the box of their control points."""
        box = arc.bounding_box()
        nptest.assert_allclose(box.min_point, [0.0, 0.0, 0.0])
        nptest.assert_allclose(box.max_point, [1.0, 1.0, 0.0])

    def test_bounding_box_contains_curve(self) -> None:
        """Every curve point lies inside the box."""
        curve = NurbsCurve.from_points([[0, 0], [1, 3], [2, -2], [3, 2], [4, 0]], 3)
        box = curve.bounding_box()
        for point in curve.points_at(np.linspace(0.0, 1.0, 101)):
            assert box.contains(point, tol=1e-12)

    def test_is_closed(self, line: NurbsCurve) -> None:
        """Open and closed curves."""
        assert not line.is_closed()
        square = NurbsCurve(1, [0, 0, 1, 2, 3, 4, 4], [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]])
        assert square.is_closed()
        assert not square.is_periodic()

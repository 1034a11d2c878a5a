"""Tests for curve-curve, curve-plane and curve self-intersections."""

from __future__ import annotations

import math

import numpy.testing as nptest
import pytest

from nurbskit.curve import NurbsCurve
from nurbskit.intersection import (
    CurvesIntersectionResult,
    curve_curve_intersection,
    curve_plane_intersection,
    curve_self_intersection,
)
from nurbskit.plane import Plane

LINEAR = [0.0, 0.0, 1.0, 1.0]
QUADRATIC_BEZIER = [0.0, 0.0, 0.0, 1.0, 1.0, 1.0]
# Roots of 3t(1 - t) = 1/2.
LOW_ROOT = 0.5 - math.sqrt(3.0) / 6.0
HIGH_ROOT = 0.5 + math.sqrt(3.0) / 6.0


@pytest.fixture
def parabola() -> NurbsCurve:
    """The graph of y = 3x(1 - x) over [0, 1], parametrized by x."""
    return NurbsCurve(2, QUADRATIC_BEZIER, [[0.0, 0.0], [0.5, 1.5], [1.0, 0.0]])


class TestCurveCurve:
    """Tests for `curve_curve_intersection`."""

    def test_crossing_lines(self) -> None:
        """Two diagonals of a square meet at their middles."""
        a = NurbsCurve(1, LINEAR, [[0.0, 0.0, 0.0], [2.0, 2.0, 0.0]])
        b = NurbsCurve(1, LINEAR, [[0.0, 2.0, 0.0], [2.0, 0.0, 0.0]])
        results = curve_curve_intersection(a, b, seed=0)
        assert len(results) == 1
        result = results[0]
        assert isinstance(result, CurvesIntersectionResult)
        assert result.parameter_a == pytest.approx(0.5, abs=1e-6)
        assert result.parameter_b == pytest.approx(0.5, abs=1e-6)
        nptest.assert_allclose(result.point_a, [1.0, 1.0, 0.0], atol=1e-6)
        nptest.assert_allclose(result.point_b, result.point_a, atol=1e-3)

    def test_parabola_and_line(self, parabola: NurbsCurve) -> None:
        """A horizontal line cuts the parabola twice."""
        line = NurbsCurve(1, LINEAR, [[0.0, 0.5], [1.0, 0.5]])
        results = curve_curve_intersection(parabola, line, seed=0)
        assert len(results) == 2
        nptest.assert_allclose([r.parameter_a for r in results], [LOW_ROOT, HIGH_ROOT], atol=1e-6)
        nptest.assert_allclose([r.parameter_b for r in results], [LOW_ROOT, HIGH_ROOT], atol=1e-6)
        for result in results:
            assert result.point_a[1] == pytest.approx(0.5, abs=1e-6)

    def test_rational_curve(self) -> None:
        """The unit quarter circle meets the diagonal at 45 degrees."""
        arc = NurbsCurve(
            2, QUADRATIC_BEZIER, [[1.0, 0.0], [1.0, 1.0], [0.0, 1.0]], [1.0, 1.0, 2.0]
        )
        diagonal = NurbsCurve(1, LINEAR, [[0.0, 0.0], [2.0, 2.0]])
        results = curve_curve_intersection(arc, diagonal, seed=1)
        assert len(results) == 1
        nptest.assert_allclose(results[0].point_a, [math.sqrt(0.5)] * 2, atol=1e-6)
        assert results[0].parameter_b == pytest.approx(math.sqrt(0.5) / 2.0, abs=1e-6)

    def test_disjoint(self, parabola: NurbsCurve) -> None:
        """A line above the parabola does not meet it."""
        line = NurbsCurve(1, LINEAR, [[0.0, 2.0], [1.0, 2.0]])
        assert curve_curve_intersection(parabola, line, seed=0) == []

    def test_dimension_mismatch(self, parabola: NurbsCurve) -> None:
        """Curves must live in the same space."""
        line = NurbsCurve(1, LINEAR, [[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        with pytest.raises(ValueError, match="same dimension"):
            curve_curve_intersection(parabola, line)

    def test_tolerance(self, parabola: NurbsCurve) -> None:
        """The tolerance must be positive."""
        with pytest.raises(ValueError, match="tol must be positive"):
            curve_curve_intersection(parabola, parabola, tol=0.0)


class TestCurvePlane:
    """Tests for `curve_plane_intersection`."""

    @pytest.fixture
    def arch(self) -> NurbsCurve:
        """The parabola of the other tests raised into the xz plane."""
        return NurbsCurve(
            2, QUADRATIC_BEZIER, [[0.0, 0.0, 0.0], [0.5, 0.0, 1.5], [1.0, 0.0, 0.0]]
        )

    def test_two_crossings(self, arch: NurbsCurve) -> None:
        """The plane z = 1/2 cuts the arch twice."""
        plane = Plane([0.0, 0.0, 0.5], [0.0, 0.0, 1.0])
        results = curve_plane_intersection(arch, plane, seed=0)
        nptest.assert_allclose([r.parameter for r in results], [LOW_ROOT, HIGH_ROOT], atol=1e-6)
        for result in results:
            assert plane.signed_distance(result.point) == pytest.approx(0.0, abs=1e-3)

    def test_oblique_plane(self, arch: NurbsCurve) -> None:
        """A vertical plane through the apex."""
        plane = Plane([0.5, 3.0, 0.0], [1.0, 0.0, 0.0])
        results = curve_plane_intersection(arch, plane, seed=0)
        assert len(results) == 1
        assert results[0].parameter == pytest.approx(0.5, abs=1e-6)
        nptest.assert_allclose(results[0].point, [0.5, 0.0, 0.75], atol=1e-6)

    def test_no_crossing(self, arch: NurbsCurve) -> None:
        """A plane above the arch is missed."""
        plane = Plane([0.0, 0.0, 2.0], [0.0, 0.0, 1.0])
        assert curve_plane_intersection(arch, plane, seed=0) == []

    def test_needs_3D(self, parabola: NurbsCurve) -> None:
        """Planar curves cannot be intersected with planes."""
        plane = Plane([0.0, 0.0, 0.0], [0.0, 0.0, 1.0])
        with pytest.raises(ValueError, match="needs a 3D curve"):
            curve_plane_intersection(parabola, plane)


class TestSelfIntersection:
    """Tests for `curve_self_intersection`."""

    def test_loop(self) -> None:
        """A symmetric cubic loop crosses itself once on its axis."""
        loop = NurbsCurve(
            3,
            [0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 1.0],
            [[0.0, 0.0], [2.0, 1.0], [-1.0, 1.0], [1.0, 0.0]],
        )
        results = curve_self_intersection(loop, seed=0)
        assert len(results) == 1
        result = results[0]
        # x(t) = 1/2 has the roots 1/2 and 1/2 +- sqrt(15)/10.
        offset = math.sqrt(15.0) / 10.0
        assert result.parameter_a == pytest.approx(0.5 - offset, abs=1e-6)
        assert result.parameter_b == pytest.approx(0.5 + offset, abs=1e-6)
        nptest.assert_allclose(result.point_a, [0.5, 0.3], atol=1e-6)

    def test_simple_curve(self, parabola: NurbsCurve) -> None:
        """A parabola never crosses itself."""
        assert curve_self_intersection(parabola, seed=0) == []

    def test_tolerance(self, parabola: NurbsCurve) -> None:
        """The tolerance must be positive."""
        with pytest.raises(ValueError, match="tol must be positive"):
            curve_self_intersection(parabola, tol=-1.0)

"""Tests for line segments and poly-curves."""

from __future__ import annotations

import math

import numpy as np
import numpy.testing as nptest
import pytest

from nurbskit.curve import NurbsCurve
from nurbskit.errors import InvalidGeometryError
from nurbskit.polycurve import LineSegment, PolyCurve

QUADRATIC_BEZIER = [0.0, 0.0, 0.0, 1.0, 1.0, 1.0]


@pytest.fixture
def quarter() -> NurbsCurve:
    """Quarter circle of radius one centered at (1, 1), from (2, 1) to (1, 2)."""
    return NurbsCurve(2, QUADRATIC_BEZIER, [[2.0, 1.0], [2.0, 2.0], [1.0, 2.0]], [1.0, 1.0, 2.0])


@pytest.fixture
def chain(quarter: NurbsCurve) -> PolyCurve:
    """Two segments and an arc going around a rounded corner."""
    return PolyCurve([LineSegment([0.0, 0.0], [2.0, 0.0]), LineSegment([2.0, 0.0], [2.0, 1.0]), quarter])


class TestLineSegment:
    """Tests for `LineSegment`."""

    def test_properties(self) -> None:
        """End points, dimension and length."""
        segment = LineSegment([1.0, 1.0, 0.0], [4.0, 5.0, 0.0])
        assert segment.dimension == 3
        assert segment.domain == (0.0, 1.0)
        assert segment.length() == pytest.approx(5.0)
        nptest.assert_array_equal(segment.start, [1.0, 1.0, 0.0])
        nptest.assert_array_equal(segment.end, [4.0, 5.0, 0.0])

    def test_evaluation(self) -> None:
        """Points are linear in the parameter and the tangent is constant."""
        segment = LineSegment([0.0, 0.0], [3.0, 4.0])
        nptest.assert_allclose(segment.point_at(0.5), [1.5, 2.0])
        nptest.assert_allclose(segment.tangent_at(0.1), [0.6, 0.8])

    def test_closest_parameter(self) -> None:
        """Projections are clipped to the segment."""
        segment = LineSegment([0.0, 0.0], [2.0, 0.0])
        assert segment.closest_parameter([1.5, 3.0]) == pytest.approx(0.75)
        assert segment.closest_parameter([-1.0, 0.0]) == 0.0
        assert segment.closest_parameter([5.0, 1.0]) == 1.0

    def test_invalid(self) -> None:
        """End points must be distinct vectors of one size."""
        with pytest.raises(InvalidGeometryError, match="must be distinct"):
            LineSegment([1.0, 1.0], [1.0, 1.0])
        with pytest.raises(InvalidGeometryError, match="same size"):
            LineSegment([0.0, 0.0], [1.0, 1.0, 1.0])

    def test_outside_domain(self) -> None:
        """Parameters far outside [0, 1] are rejected."""
        with pytest.raises(ValueError, match="outside the domain"):
            LineSegment([0.0, 0.0], [1.0, 0.0]).point_at(2.0)


class TestPolyCurve:
    """Tests for `PolyCurve`."""

    def test_properties(self, chain: PolyCurve) -> None:
        """Domain, dimension and length."""
        assert len(chain) == 3
        assert chain.domain == (0.0, 3.0)
        assert chain.dimension == 2
        assert chain.length() == pytest.approx(3.0 + math.pi / 2)
        assert not chain.is_closed()

    def test_global_parameters(self, chain: PolyCurve) -> None:
        """Segment i covers [i, i + 1]."""
        nptest.assert_allclose(chain.point_at(0.0), [0.0, 0.0])
        nptest.assert_allclose(chain.point_at(0.5), [1.0, 0.0])
        nptest.assert_allclose(chain.point_at(1.5), [2.0, 0.5])
        nptest.assert_allclose(chain.point_at(3.0), [1.0, 2.0])
        nptest.assert_allclose(chain.tangent_at(1.5), [0.0, 1.0])
        nptest.assert_allclose(chain.tangent_at(2.0), [0.0, 1.0], atol=1e-12)

    def test_closest_parameter(self, chain: PolyCurve) -> None:
        """The closest point is searched over every segment."""
        assert chain.closest_parameter([1.0, -1.0]) == pytest.approx(0.5)
        assert chain.closest_parameter([3.0, 0.5]) == pytest.approx(1.5)
        closest = chain.closest_point([3.0, 3.0])
        nptest.assert_allclose(closest, [1.0 + math.sqrt(0.5), 1.0 + math.sqrt(0.5)], atol=1e-3)

    def test_append_and_close(self, chain: PolyCurve) -> None:
        """Appending returns a new poly-curve."""
        closed = chain.append(LineSegment([1.0, 2.0], [0.0, 2.0])).append(
            LineSegment([0.0, 2.0], [0.0, 0.0])
        )
        assert len(chain) == 3
        assert len(closed) == 5
        assert closed.is_closed()
        assert closed.length() == pytest.approx(chain.length() + 3.0)

    def test_invalid(self, quarter: NurbsCurve) -> None:
        """Empty, mixed, disconnected or foreign segments are rejected."""
        with pytest.raises(InvalidGeometryError, match="at least one segment"):
            PolyCurve([])
        with pytest.raises(InvalidGeometryError, match="same dimension"):
            PolyCurve([LineSegment([2.0, 1.0, 0.0], [2.0, 0.0, 0.0]), quarter])
        with pytest.raises(InvalidGeometryError, match="segments 0 and 1 are not connected"):
            PolyCurve([LineSegment([0.0, 0.0], [1.0, 0.0]), quarter])
        with pytest.raises(TypeError, match="got list"):
            PolyCurve([[0.0, 0.0]])  # type: ignore[list-item]

    def test_single_curve(self, quarter: NurbsCurve) -> None:
        """A poly-curve of one NURBS curve reparametrizes it onto [0, 1]."""
        single = PolyCurve([quarter])
        for t in np.linspace(0.0, 1.0, 5):
            nptest.assert_allclose(single.point_at(t), quarter.point_at(t))

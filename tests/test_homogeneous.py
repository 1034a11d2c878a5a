"""Tests for homogeneous coordinate conversions."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest

from nurbskit.errors import DegenerateGeometryError, GeometryError, InvalidGeometryError
from nurbskit.homogeneous import (
    binomial,
    dehomogenize_point,
    dehomogenize_points,
    get_weights,
    homogenize_points,
    homogenize_points_2D,
    strip_weights,
)


class TestHomogenizePoints:
    """Tests for `homogenize_points`."""

    def test_unit_weights_by_default(self) -> None:
        """Without weights every point gets weight one."""
        pw = homogenize_points([[1.0, 2.0], [3.0, 4.0]])
        nptest.assert_allclose(pw, [[1.0, 2.0, 1.0], [3.0, 4.0, 1.0]])

    def test_weights_multiply_coordinates(self) -> None:
        """Coordinates are premultiplied by their weight."""
        pw = homogenize_points([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], [0.5, 2.0])
        nptest.assert_allclose(pw, [[0.5, 1.0, 1.5, 0.5], [8.0, 10.0, 12.0, 2.0]])

    def test_missing_weights_are_padded(self) -> None:
        """Trailing points without a weight get weight one."""
        pw = homogenize_points([[1.0], [2.0], [3.0]], [2.0])
        nptest.assert_allclose(get_weights(pw), [2.0, 1.0, 1.0])

    def test_too_many_weights(self) -> None:
        """More weights than points are rejected."""
        with pytest.raises(InvalidGeometryError, match="cannot exceed"):
            homogenize_points([[1.0, 2.0]], [1.0, 1.0])

    @pytest.mark.parametrize("bad_weight", [0.0, -1.0, np.nan, np.inf])
    def test_invalid_weights(self, bad_weight: float) -> None:
        """Non-positive and non-finite weights are rejected."""
        with pytest.raises(InvalidGeometryError, match="weights must be"):
            homogenize_points([[0.0, 0.0], [1.0, 1.0]], [1.0, bad_weight])

    def test_not_2D(self) -> None:
        """A flat list of coordinates is rejected."""
        with pytest.raises(ValueError, match="2D array"):
            homogenize_points([1.0, 2.0, 3.0])

    def test_errors_are_value_errors(self) -> None:
        """Geometry errors can be caught as ValueError."""
        assert issubclass(InvalidGeometryError, GeometryError)
        assert issubclass(DegenerateGeometryError, ValueError)


class TestHomogenizePoints2D:
    """Tests for `homogenize_points_2D`."""

    def test_grid(self) -> None:
        """A point grid is lifted along its last axis."""
        pts = np.arange(12, dtype=np.float64).reshape(2, 2, 3)
        weights = np.array([[1.0, 2.0], [3.0, 4.0]])
        pw = homogenize_points_2D(pts, weights)
        assert pw.shape == (2, 2, 4)
        nptest.assert_allclose(pw[1, 1], [9.0 * 4, 10.0 * 4, 11.0 * 4, 4.0])
        nptest.assert_allclose(dehomogenize_points(pw), pts)

    def test_shape_mismatch(self) -> None:
        """Weights must match the grid shape."""
        with pytest.raises(ValueError, match="does not match"):
            homogenize_points_2D(np.zeros((2, 3, 2)), np.ones((3, 2)))

    def test_not_3D(self) -> None:
        """A list of points is not a grid."""
        with pytest.raises(ValueError, match="3D array"):
            homogenize_points_2D(np.zeros((2, 3)))


class TestDehomogenize:
    """Tests for splitting and projecting homogeneous points."""

    def test_weights_and_strip(self) -> None:
        """Weights and weighted coordinates are separated."""
        pw = np.array([[2.0, 4.0, 2.0], [3.0, 3.0, 3.0]])
        nptest.assert_allclose(get_weights(pw), [2.0, 3.0])
        nptest.assert_allclose(strip_weights(pw), [[2.0, 4.0], [3.0, 3.0]])
        nptest.assert_allclose(dehomogenize_points(pw), [[1.0, 2.0], [1.0, 1.0]])

    def test_single_point(self) -> None:
        """A single homogeneous point projects to a single point."""
        nptest.assert_allclose(dehomogenize_point([2.0, 6.0, 2.0]), [1.0, 3.0])

    def test_single_point_requires_1D(self) -> None:
        """`dehomogenize_point` rejects lists of points."""
        with pytest.raises(ValueError, match="1D array"):
            dehomogenize_point([[2.0, 6.0, 2.0]])

    def test_zero_weight(self) -> None:
        """Points at infinity cannot be projected."""
        with pytest.raises(DegenerateGeometryError, match="zero weight"):
            dehomogenize_points([[1.0, 1.0, 0.0]])


class TestBinomial:
    """Tests for `binomial`."""

    @pytest.mark.parametrize(
        ("n", "k", "expected"),
        [
            (0, 0, 1.0),
            (4, 2, 6.0),
            (5, 1, 5.0),
            (10, 3, 120.0),
            (40, 20, 137846528820.0),
            (3, 4, 0.0),
            (3, -1, 0.0),
        ],
    )
    def test_values(self, n: int, k: int, expected: float) -> None:
        """Known binomial coefficients, including out-of-range ones."""
        assert binomial(n, k) == expected
        assert isinstance(binomial(n, k), float)

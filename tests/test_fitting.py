"""Tests for global curve interpolation."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest

from nurbskit.errors import InvalidGeometryError
from nurbskit.fitting import interpolate_curve

POINTS = np.array([[0.0, 0.0], [1.0, 2.0], [3.0, 2.5], [4.0, 0.5], [6.0, 1.0], [7.0, 3.0]])


def _chord_parameters(points: np.ndarray, power: float = 1.0) -> np.ndarray:
    chords = np.linalg.norm(np.diff(points, axis=0), axis=1) ** power
    params = np.concatenate(([0.0], np.cumsum(chords)))
    return params / params[-1]


class TestInterpolation:
    """Tests for `interpolate_curve`."""

    @pytest.mark.parametrize("degree", [1, 2, 3, 5])
    def test_passes_through_points(self, degree: int) -> None:
        """The curve hits every point at its chord-length parameter."""
        curve = interpolate_curve(POINTS, degree)
        assert curve.degree == degree
        assert curve.num_control_points == POINTS.shape[0]
        assert curve.domain == (0.0, 1.0)
        assert not curve.is_rational
        nptest.assert_allclose(curve.points_at(_chord_parameters(POINTS)), POINTS, atol=1e-10)

    def test_linear_is_the_polyline(self) -> None:
        """Degree one interpolation keeps the points as control points."""
        curve = interpolate_curve(POINTS, 1)
        nptest.assert_allclose(curve.control_points, POINTS, atol=1e-12)

    def test_centripetal(self) -> None:
        """Centripetal parameters use square roots of the chords."""
        curve = interpolate_curve(POINTS, 3, centripetal=True)
        nptest.assert_allclose(curve.points_at(_chord_parameters(POINTS, 0.5)), POINTS, atol=1e-10)

    def test_end_tangents(self) -> None:
        """End derivatives match the given tangents."""
        start_tangent = np.array([0.0, 5.0])
        end_tangent = np.array([4.0, 0.0])
        curve = interpolate_curve(POINTS, 3, start_tangent=start_tangent, end_tangent=end_tangent)
        assert curve.num_control_points == POINTS.shape[0] + 2
        nptest.assert_allclose(curve.points_at(_chord_parameters(POINTS)), POINTS, atol=1e-10)
        nptest.assert_allclose(curve.derivatives_at(0.0, 1)[1], start_tangent, atol=1e-10)
        nptest.assert_allclose(curve.derivatives_at(1.0, 1)[1], end_tangent, atol=1e-10)

    def test_3D(self) -> None:
        """Points in space."""
        points = [[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 0.0, 2.0], [3.0, 1.0, 1.0]]
        curve = interpolate_curve(points, 2)
        assert curve.dimension == 3
        nptest.assert_allclose(curve.point_at(1.0), points[-1], atol=1e-12)

    @pytest.mark.parametrize(
        ("points", "degree", "kwargs", "match"),
        [
            ([[0.0, 0.0], [0.0, 0.0], [1.0, 1.0]], 2, {}, "must not coincide"),
            (POINTS, 0, {}, "degree must be at least 1"),
            (POINTS[:3], 3, {}, "at least degree\\+1=4 points"),
            (POINTS, 3, {"start_tangent": [1.0, 0.0]}, "must be given together"),
            (
                POINTS,
                3,
                {"start_tangent": [1.0, 0.0, 0.0], "end_tangent": [1.0, 0.0, 0.0]},
                "dimension of the points",
            ),
            ([0.0, 1.0, 2.0], 1, {}, "2D array"),
        ],
    )
    def test_invalid(
        self, points: np.ndarray, degree: int, kwargs: dict[str, object], match: str
    ) -> None:
        """Invalid input raises InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError, match=match):
            interpolate_curve(points, degree, **kwargs)  # type: ignore[arg-type]

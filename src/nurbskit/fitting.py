"""Global curve interpolation through a list of points."""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt

from .basis import compute_one_basis_function
from .curve import NurbsCurve
from .errors import DegenerateGeometryError, InvalidGeometryError
from .knots import KnotVector
from .tolerance import EPSILON

logger = logging.getLogger(__name__)


def _curve_parameters(points: npt.NDArray[np.float64], centripetal: bool) -> npt.NDArray[np.float64]:
    """Chord-length or centripetal parameters of the points on `[0, 1]`.

    Raises:
        InvalidGeometryError: If two consecutive points coincide.
    """
    chords = np.linalg.norm(np.diff(points, axis=0), axis=1)
    if np.any(chords < EPSILON):
        raise InvalidGeometryError("consecutive points must not coincide")
    if centripetal:
        chords = np.sqrt(chords)
    cumulative = np.concatenate(([0.0], np.cumsum(chords)))
    return cumulative / cumulative[-1]


def _averaged_knots(params: npt.NDArray[np.float64], degree: int, with_tangents: bool) -> KnotVector:
    """Knots whose interior values average `degree` consecutive parameters."""
    first = 0 if with_tangents else 1
    last = params.size - degree + 1 if with_tangents else params.size - degree
    interior = [float(np.mean(params[i : i + degree])) for i in range(first, last)]
    return KnotVector(
        np.concatenate((np.zeros(degree + 1), interior, np.ones(degree + 1)))
    )


def interpolate_curve(
    points: npt.ArrayLike,
    degree: int,
    centripetal: bool = False,
    start_tangent: npt.ArrayLike | None = None,
    end_tangent: npt.ArrayLike | None = None,
) -> NurbsCurve:
    """Build a curve passing through all the given points.

    The points are parametrized by chord length (or its square root for the
    centripetal method), the knots are averaged from the parameters, and the
    control points solve the collocation system `N P = Q`. When both end
    tangents are given two extra control points make the curve match them.

    Args:
        points (npt.ArrayLike): Points with shape (n, dim), `n >= degree + 1`.
        degree (int): Curve degree, at least 1.
        centripetal (bool): Use centripetal parameters. Defaults to False.
        start_tangent (npt.ArrayLike | None): Derivative at the start.
        end_tangent (npt.ArrayLike | None): Derivative at the end.

    Returns:
        NurbsCurve: Polynomial curve on `[0, 1]` through the points.

    Raises:
        InvalidGeometryError: If there are too few points, consecutive points
            coincide or only one tangent is given.
        DegenerateGeometryError: If the collocation system is singular.

    Example:
        >>> curve = interpolate_curve([[0, 0], [1, 1], [2, 0]], 2)
        >>> curve.point_at(0.5)
        array([1., 1.])
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2:  # noqa: PLR2004
        raise InvalidGeometryError("points must be a 2D array of shape (n, dim)")
    if degree < 1:
        raise InvalidGeometryError("degree must be at least 1")
    if pts.shape[0] < degree + 1:
        raise InvalidGeometryError(
            f"at least degree+1={degree + 1} points are needed, got {pts.shape[0]}"
        )
    if (start_tangent is None) != (end_tangent is None):
        raise InvalidGeometryError("start_tangent and end_tangent must be given together")
    with_tangents = start_tangent is not None

    params = _curve_parameters(pts, centripetal)
    knots = _averaged_knots(params, degree, with_tangents)
    n_ctrl = pts.shape[0] + 2 if with_tangents else pts.shape[0]

    rows = [
        [compute_one_basis_function(degree, knots, i, float(u)) for i in range(n_ctrl)]
        for u in params
    ]
    rhs = list(pts)
    if with_tangents:
        d0 = np.asarray(start_tangent, dtype=np.float64)
        d1 = np.asarray(end_tangent, dtype=np.float64)
        if d0.shape != (pts.shape[1],) or d1.shape != (pts.shape[1],):
            raise InvalidGeometryError("tangents must have the dimension of the points")
        start_row = np.zeros(n_ctrl)
        start_row[:2] = (-1.0, 1.0)
        end_row = np.zeros(n_ctrl)
        end_row[-2:] = (-1.0, 1.0)
        rows.insert(1, list(start_row))
        rows.insert(len(rows) - 1, list(end_row))
        rhs.insert(1, d0 * knots[degree + 1] / degree)
        rhs.insert(len(rhs) - 1, d1 * (1.0 - knots[len(knots) - degree - 2]) / degree)

    try:
        ctrl_pts = np.linalg.solve(np.array(rows), np.array(rhs))
    except np.linalg.LinAlgError as err:
        raise DegenerateGeometryError("the interpolation system is singular") from err
    logger.debug("interpolated %d points with %d control points", pts.shape[0], n_ctrl)

    return NurbsCurve(degree, knots, ctrl_pts)


__all__ = ["interpolate_curve"]

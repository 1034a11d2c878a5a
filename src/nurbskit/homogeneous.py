"""Conversions between Euclidean control points with weights and homogeneous points.

A homogeneous point stores a control point `P` with weight `w` as
`(w * P, w)`. Rational curves and surfaces are evaluated with the same
machinery as polynomial ones by working on these lifted points and dividing
by the weight component at the end.
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

from .errors import DegenerateGeometryError, InvalidGeometryError
from .tolerance import EPSILON


def _validate_weights(weights: npt.NDArray[np.float64]) -> None:
    """Check that all weights are finite and strictly positive.

    Raises:
        InvalidGeometryError: If any weight is non-finite or non-positive.
    """
    if not np.all(np.isfinite(weights)):
        raise InvalidGeometryError("weights must be finite")
    if np.any(weights <= 0.0):
        raise InvalidGeometryError("weights must be strictly positive")


def homogenize_points(
    points: npt.ArrayLike,
    weights: npt.ArrayLike | None = None,
) -> npt.NDArray[np.float64]:
    """Lift a list of points to homogeneous coordinates.

    Args:
        points (npt.ArrayLike): Points with shape (n, d).
        weights (npt.ArrayLike | None): Weights with at most n entries. Missing
            trailing weights are set to 1.0. Defaults to None (all ones).

    Returns:
        npt.NDArray[np.float64]: Homogeneous points with shape (n, d+1).

    Raises:
        ValueError: If points is not 2D.
        InvalidGeometryError: If there are more weights than points, or a weight
            is non-finite or non-positive.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2:
        raise ValueError("points must be a 2D array of shape (n, d)")

    n_pts = pts.shape[0]
    w = np.ones(n_pts, dtype=np.float64)
    if weights is not None:
        given = np.asarray(weights, dtype=np.float64).ravel()
        if given.size > n_pts:
            raise InvalidGeometryError("the number of weights cannot exceed the number of points")
        w[: given.size] = given
    _validate_weights(w)

    return np.hstack((pts * w[:, np.newaxis], w[:, np.newaxis]))


def homogenize_points_2D(
    points: npt.ArrayLike,
    weights: npt.ArrayLike | None = None,
) -> npt.NDArray[np.float64]:
    """Lift a grid of points to homogeneous coordinates.

    Args:
        points (npt.ArrayLike): Points with shape (nu, nv, d).
        weights (npt.ArrayLike | None): Weights with shape (nu, nv). Defaults to
            None (all ones).

    Returns:
        npt.NDArray[np.float64]: Homogeneous points with shape (nu, nv, d+1).

    Raises:
        ValueError: If the shapes of points and weights do not match.
        InvalidGeometryError: If a weight is non-finite or non-positive.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 3:  # noqa: PLR2004
        raise ValueError("points must be a 3D array of shape (nu, nv, d)")

    if weights is None:
        w = np.ones(pts.shape[:2], dtype=np.float64)
    else:
        w = np.asarray(weights, dtype=np.float64)
        if w.shape != pts.shape[:2]:
            raise ValueError(
                f"weights shape {w.shape} does not match the point grid {pts.shape[:2]}"
            )
    _validate_weights(w)

    return np.concatenate((pts * w[..., np.newaxis], w[..., np.newaxis]), axis=-1)


def get_weights(homogeneous_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Extract the weights of homogeneous points of any leading shape."""
    return np.array(np.asarray(homogeneous_points, dtype=np.float64)[..., -1])


def strip_weights(homogeneous_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Drop the weight component, keeping the weighted coordinates `w * P`."""
    return np.array(np.asarray(homogeneous_points, dtype=np.float64)[..., :-1])


def dehomogenize_points(homogeneous_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Project homogeneous points back to Euclidean space.

    Works for single points, lists of points and grids of points: the last
    axis holds the homogeneous coordinates.

    Args:
        homogeneous_points (npt.ArrayLike): Points with shape (..., d+1).

    Returns:
        npt.NDArray[np.float64]: Euclidean points with shape (..., d).

    Raises:
        DegenerateGeometryError: If any weight is numerically zero.
    """
    pw = np.asarray(homogeneous_points, dtype=np.float64)
    w = pw[..., -1:]
    if np.any(np.abs(w) < EPSILON):
        raise DegenerateGeometryError("cannot dehomogenize a point with zero weight")
    return pw[..., :-1] / w


def dehomogenize_point(homogeneous_point: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Project a single homogeneous point back to Euclidean space.

    Raises:
        ValueError: If the input is not a 1D array.
        DegenerateGeometryError: If the weight is numerically zero.
    """
    pw = np.asarray(homogeneous_point, dtype=np.float64)
    if pw.ndim != 1:
        raise ValueError("homogeneous_point must be a 1D array")
    return dehomogenize_points(pw)


def binomial(n: int, k: int) -> float:
    """Binomial coefficient `C(n, k)` as a float; zero when k is out of range."""
    if k < 0 or k > n:
        return 0.0
    return float(math.comb(n, k))


__all__ = [
    "binomial",
    "dehomogenize_point",
    "dehomogenize_points",
    "get_weights",
    "homogenize_points",
    "homogenize_points_2D",
    "strip_weights",
]

"""Planes in 3D space."""

from __future__ import annotations

from typing import cast

import numpy as np
import numpy.typing as npt

from .errors import InvalidGeometryError
from .tolerance import EPSILON


class Plane:
    """A plane through an origin with a unit normal.

    Attributes:
        _origin (npt.NDArray[np.float64]): Point on the plane.
        _normal (npt.NDArray[np.float64]): Unit normal.
    """

    def __init__(self, origin: npt.ArrayLike, normal: npt.ArrayLike) -> None:
        """Initialize a plane.

        Args:
            origin (npt.ArrayLike): Point on the plane, shape (3,).
            normal (npt.ArrayLike): Normal direction, shape (3,). It is
                normalized.

        Raises:
            InvalidGeometryError: If the arrays are not 3D vectors or the normal
                is zero.
        """
        o = np.asarray(origin, dtype=np.float64)
        n = np.asarray(normal, dtype=np.float64)
        if o.shape != (3,) or n.shape != (3,):
            raise InvalidGeometryError("origin and normal must be 3D vectors")
        length = float(np.linalg.norm(n))
        if length < EPSILON:
            raise InvalidGeometryError("plane normal cannot be zero")
        self._origin = o
        self._normal = n / length

    @classmethod
    def from_points(cls, p1: npt.ArrayLike, p2: npt.ArrayLike, p3: npt.ArrayLike) -> Plane:
        """Create the plane through three points.

        The origin is `p1` and the normal is `(p2 - p1) x (p3 - p1)`.

        Raises:
            InvalidGeometryError: If the points are collinear.
        """
        a = np.asarray(p1, dtype=np.float64)
        b = np.asarray(p2, dtype=np.float64)
        c = np.asarray(p3, dtype=np.float64)
        normal = np.cross(b - a, c - a)
        if float(np.linalg.norm(normal)) < EPSILON:
            raise InvalidGeometryError("cannot create a plane from collinear points")
        return cls(a, normal)

    @property
    def origin(self) -> npt.NDArray[np.float64]:
        return self._origin.copy()

    @property
    def normal(self) -> npt.NDArray[np.float64]:
        return self._normal.copy()

    def signed_distance(self, point: npt.ArrayLike) -> float:
        """Distance from a point to the plane, positive on the normal side."""
        return float(np.dot(np.asarray(point, dtype=np.float64) - self._origin, self._normal))

    def signed_distances(self, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Vectorized version of `signed_distance` for points of shape (n, 3)."""
        pts = np.asarray(points, dtype=np.float64)
        return cast(npt.NDArray[np.float64], (pts - self._origin) @ self._normal)

    def closest_point(self, point: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Orthogonal projection of a point onto the plane."""
        pt = np.asarray(point, dtype=np.float64)
        return pt - self.signed_distance(pt) * self._normal

    def __repr__(self) -> str:
        return f"Plane({self._origin.tolist()}, {self._normal.tolist()})"


__all__ = ["Plane"]

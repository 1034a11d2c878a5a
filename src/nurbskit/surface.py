"""Tensor-product NURBS surfaces."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from .errors import InvalidGeometryError
from .evaluation import rational_surface_derivatives, rational_surface_normal, surface_point_at
from .homogeneous import _validate_weights, dehomogenize_points, homogenize_points_2D
from .knots import KnotVector
from .modify import SurfaceDirection, _apply_transform, split_surface, surface_knot_refine
from .tolerance import EPSILON


def _check_direction(degree: int, knots: KnotVector, n_pts: int, name: str) -> None:
    if int(degree) != degree or degree < 1:
        raise InvalidGeometryError(f"degree_{name} must be an integer greater than or equal to 1")
    if n_pts < degree + 1:
        raise InvalidGeometryError(
            f"a surface of degree_{name}={degree} needs at least {degree + 1} control points "
            f"along {name}"
        )
    if not knots.is_valid(int(degree), n_pts):
        raise InvalidGeometryError(
            f"invalid knot vector along {name} for degree {degree} and {n_pts} control points"
        )


class NurbsSurface:
    """A NURBS surface with a grid of `(nu, nv)` control points.

    The first grid axis follows the u direction and the second one the v
    direction.

    Attributes:
        _degree_u (int): Degree along u.
        _degree_v (int): Degree along v.
        _knots_u (KnotVector): Knot vector along u.
        _knots_v (KnotVector): Knot vector along v.
        _homogeneous_points (npt.NDArray[np.float64]): Read-only homogeneous
            control points with shape (nu, nv, dim+1).
    """

    def __init__(  # noqa: PLR0913
        self,
        degree_u: int,
        degree_v: int,
        knots_u: KnotVector | npt.ArrayLike,
        knots_v: KnotVector | npt.ArrayLike,
        control_points: npt.ArrayLike,
        weights: npt.ArrayLike | None = None,
    ) -> None:
        """Initialize a surface.

        Args:
            degree_u (int): Degree along u, at least 1.
            degree_v (int): Degree along v, at least 1.
            knots_u (KnotVector | npt.ArrayLike): Knot vector along u.
            knots_v (KnotVector | npt.ArrayLike): Knot vector along v.
            control_points (npt.ArrayLike): Control points with shape
                (nu, nv, dim).
            weights (npt.ArrayLike | None): Positive weights with shape
                (nu, nv). Defaults to None (all ones).

        Raises:
            InvalidGeometryError: If the data does not define a valid surface.
        """
        pts = np.asarray(control_points, dtype=np.float64)
        if pts.ndim != 3:  # noqa: PLR2004
            raise InvalidGeometryError("control_points must be a 3D array of shape (nu, nv, dim)")
        try:
            pw = homogenize_points_2D(pts, weights)
        except InvalidGeometryError:
            raise
        except ValueError as err:
            raise InvalidGeometryError(str(err)) from err
        self._set_state(degree_u, degree_v, knots_u, knots_v, pw)

    def _set_state(  # noqa: PLR0913
        self,
        degree_u: int,
        degree_v: int,
        knots_u: KnotVector | npt.ArrayLike,
        knots_v: KnotVector | npt.ArrayLike,
        homogeneous_points: npt.ArrayLike,
    ) -> None:
        pw = np.array(homogeneous_points, dtype=np.float64)
        if pw.ndim != 3 or pw.shape[2] < 2:  # noqa: PLR2004
            raise InvalidGeometryError("homogeneous points must have shape (nu, nv, dim+1)")
        if not np.all(np.isfinite(pw)):
            raise InvalidGeometryError("control points must be finite")
        _validate_weights(pw[..., -1])

        ku = knots_u if isinstance(knots_u, KnotVector) else KnotVector(knots_u)
        kv = knots_v if isinstance(knots_v, KnotVector) else KnotVector(knots_v)
        _check_direction(degree_u, ku, pw.shape[0], "u")
        _check_direction(degree_v, kv, pw.shape[1], "v")

        pw = np.ascontiguousarray(pw)
        pw.flags.writeable = False
        self._degree_u = int(degree_u)
        self._degree_v = int(degree_v)
        self._knots_u = ku
        self._knots_v = kv
        self._homogeneous_points = pw

    @classmethod
    def from_homogeneous(  # noqa: PLR0913
        cls,
        degree_u: int,
        degree_v: int,
        knots_u: KnotVector | npt.ArrayLike,
        knots_v: KnotVector | npt.ArrayLike,
        homogeneous_points: npt.ArrayLike,
    ) -> NurbsSurface:
        """Create a surface from homogeneous control points `(w * P, w)`."""
        surface = cls.__new__(cls)
        surface._set_state(degree_u, degree_v, knots_u, knots_v, homogeneous_points)
        return surface

    @classmethod
    def from_corners(
        cls,
        p1: npt.ArrayLike,
        p2: npt.ArrayLike,
        p3: npt.ArrayLike,
        p4: npt.ArrayLike,
    ) -> NurbsSurface:
        """Create a bilinear surface from four corners given counterclockwise.

        `S(0, 0) = p1`, `S(1, 0) = p2`, `S(1, 1) = p3` and `S(0, 1) = p4`.

        Example:
            >>> s = NurbsSurface.from_corners([0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0])
            >>> s.point_at(0.5, 0.5)
            array([0.5, 0.5, 0. ])
        """
        corners = [np.asarray(p, dtype=np.float64) for p in (p1, p2, p3, p4)]
        pts = np.array([[corners[0], corners[3]], [corners[1], corners[2]]])
        knots = [0.0, 0.0, 1.0, 1.0]
        return cls(1, 1, knots, knots, pts)

    @property
    def degree_u(self) -> int:
        return self._degree_u

    @property
    def degree_v(self) -> int:
        return self._degree_v

    @property
    def knots_u(self) -> KnotVector:
        return self._knots_u

    @property
    def knots_v(self) -> KnotVector:
        return self._knots_v

    @property
    def homogeneous_points(self) -> npt.NDArray[np.float64]:
        return self._homogeneous_points

    @property
    def control_points(self) -> npt.NDArray[np.float64]:
        return dehomogenize_points(self._homogeneous_points)

    @property
    def weights(self) -> npt.NDArray[np.float64]:
        return self._homogeneous_points[..., -1].copy()

    @property
    def dimension(self) -> int:
        return int(self._homogeneous_points.shape[2] - 1)

    @property
    def domain_u(self) -> tuple[float, float]:
        return self._knots_u.get_domain(self._degree_u)

    @property
    def domain_v(self) -> tuple[float, float]:
        return self._knots_v.get_domain(self._degree_v)

    def point_at(self, u: float, v: float) -> npt.NDArray[np.float64]:
        """Evaluate the surface at `(u, v)`."""
        return surface_point_at(self, u, v)

    def derivatives_at(self, u: float, v: float, order: int = 1) -> npt.NDArray[np.float64]:
        """Evaluate the mixed partial derivatives, shape (order+1, order+1, dim)."""
        return rational_surface_derivatives(self, u, v, order)

    def normal_at(self, u: float, v: float) -> npt.NDArray[np.float64]:
        """Evaluate the unit normal of a 3D surface."""
        return rational_surface_normal(self, u, v)

    def knot_refine(
        self, knots_to_insert: npt.ArrayLike, direction: SurfaceDirection | str
    ) -> NurbsSurface:
        """Insert knots along a direction without changing the shape."""
        return surface_knot_refine(self, knots_to_insert, SurfaceDirection(direction))

    def split_at(
        self, t: float, direction: SurfaceDirection | str
    ) -> tuple[NurbsSurface, NurbsSurface]:
        """Split the surface in two along a direction."""
        return split_surface(self, t, SurfaceDirection(direction))

    def transform(self, matrix: npt.ArrayLike) -> NurbsSurface:
        """Apply a (dim+1, dim+1) homogeneous transformation to the control points."""
        pts = _apply_transform(self.control_points, matrix)
        return type(self)(
            self._degree_u, self._degree_v, self._knots_u, self._knots_v, pts, self.weights
        )

    def equals(self, other: NurbsSurface, tol: float = EPSILON) -> bool:
        """Compare two surfaces value by value within a tolerance."""
        if (self._degree_u, self._degree_v) != (other.degree_u, other.degree_v):
            return False
        if self._homogeneous_points.shape != other.homogeneous_points.shape:
            return False
        if not (self._knots_u.equals(other.knots_u, tol) and self._knots_v.equals(other.knots_v, tol)):
            return False
        return bool(np.allclose(self._homogeneous_points, other.homogeneous_points, rtol=0.0, atol=tol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NurbsSurface):
            return NotImplemented
        return self.equals(other)

    def copy(self) -> NurbsSurface:
        return type(self).from_homogeneous(
            self._degree_u,
            self._degree_v,
            self._knots_u.copy(),
            self._knots_v.copy(),
            self._homogeneous_points.copy(),
        )

    def __repr__(self) -> str:
        nu, nv = self._homogeneous_points.shape[:2]
        return (
            f"NurbsSurface(degree_u={self._degree_u}, degree_v={self._degree_v}, "
            f"control_points=({nu}, {nv}), dimension={self.dimension})"
        )


__all__ = ["NurbsSurface", "SurfaceDirection"]

"""Non-uniform rational B-spline curves.

`NurbsCurve` is an immutable value: every modification returns a new curve.
Control points are stored in homogeneous form `(w * P, w)` so that rational
and polynomial curves share the same evaluation and modification code.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from .analysis import (
    curvature_vector,
    curve_closest_parameter,
    curve_length,
    curve_parameter_at_length,
)
from .bounding_box import BoundingBox
from .errors import DegenerateGeometryError, InvalidGeometryError
from .evaluation import (
    compute_bezier_extrema,
    curve_point_at,
    curve_points_at,
    rational_curve_derivatives,
)
from .homogeneous import _validate_weights, dehomogenize_points, homogenize_points
from .knots import KnotVector, create_uniform_knot_vector
from .modify import (
    close_curve,
    curve_knot_refine,
    decompose_curve_into_beziers,
    elevate_curve_degree,
    reverse_curve,
    split_curve,
    split_curve_at,
    sub_curve,
    transform_curve,
)
from .tolerance import EPSILON, MIN_TOLERANCE


class NurbsCurve:
    """A NURBS curve in any dimension.

    Attributes:
        _degree (int): Polynomial degree.
        _knots (KnotVector): Knot vector with `n + degree + 1` values.
        _homogeneous_points (npt.NDArray[np.float64]): Read-only homogeneous
            control points with shape (n, dim+1).
    """

    _degree: int
    _knots: KnotVector
    _homogeneous_points: npt.NDArray[np.float64]

    def __init__(
        self,
        degree: int,
        knots: KnotVector | npt.ArrayLike,
        control_points: npt.ArrayLike,
        weights: npt.ArrayLike | None = None,
    ) -> None:
        """Initialize a curve.

        Args:
            degree (int): Degree, at least 1.
            knots (KnotVector | npt.ArrayLike): Knot vector valid for the degree
                and the number of control points.
            control_points (npt.ArrayLike): Control points with shape (n, dim).
            weights (npt.ArrayLike | None): One positive weight per control
                point. Defaults to None (all ones, a polynomial curve).

        Raises:
            InvalidGeometryError: If the degree, the control points, the weights
                or the knots do not define a valid curve.
        """
        pts = np.asarray(control_points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] < 1:  # noqa: PLR2004
            raise InvalidGeometryError("control_points must be a 2D array of shape (n, dim)")
        if weights is not None and np.asarray(weights).size != pts.shape[0]:
            raise InvalidGeometryError("there must be one weight per control point")
        self._set_state(degree, knots, homogenize_points(pts, weights))

    def _set_state(
        self,
        degree: int,
        knots: KnotVector | npt.ArrayLike,
        homogeneous_points: npt.ArrayLike,
    ) -> None:
        """Validate and store the curve definition."""
        if int(degree) != degree or degree < 1:
            raise InvalidGeometryError("degree must be an integer greater than or equal to 1")
        degree = int(degree)

        pw = np.array(homogeneous_points, dtype=np.float64)
        if pw.ndim != 2 or pw.shape[1] < 2:  # noqa: PLR2004
            raise InvalidGeometryError("homogeneous points must have shape (n, dim+1)")
        if pw.shape[0] < degree + 1:
            raise InvalidGeometryError(
                f"a curve of degree {degree} needs at least {degree + 1} control points"
            )
        if not np.all(np.isfinite(pw)):
            raise InvalidGeometryError("control points must be finite")
        _validate_weights(pw[:, -1])

        knot_vector = knots if isinstance(knots, KnotVector) else KnotVector(knots)
        if not knot_vector.is_valid(degree, pw.shape[0]):
            raise InvalidGeometryError(
                f"invalid knot vector for degree {degree} and {pw.shape[0]} control points"
            )

        pw = np.ascontiguousarray(pw)
        pw.flags.writeable = False
        self._degree = degree
        self._knots = knot_vector
        self._homogeneous_points = pw

    @classmethod
    def from_homogeneous(
        cls,
        degree: int,
        knots: KnotVector | npt.ArrayLike,
        homogeneous_points: npt.ArrayLike,
    ) -> NurbsCurve:
        """Create a curve from homogeneous control points `(w * P, w)`.

        Raises:
            InvalidGeometryError: If the data does not define a valid curve.
        """
        curve = cls.__new__(cls)
        curve._set_state(degree, knots, homogeneous_points)
        return curve

    @classmethod
    def from_points(
        cls,
        points: npt.ArrayLike,
        degree: int,
        weights: npt.ArrayLike | None = None,
    ) -> NurbsCurve:
        """Create a curve on a uniform clamped knot vector over `[0, 1]`.

        Args:
            points (npt.ArrayLike): Control points with shape (n, dim).
            degree (int): Degree. At least `n - 1` must hold.
            weights (npt.ArrayLike | None): Optional weights.

        Returns:
            NurbsCurve: The curve.
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2:  # noqa: PLR2004
            raise InvalidGeometryError("points must be a 2D array of shape (n, dim)")
        try:
            knots = create_uniform_knot_vector(degree, pts.shape[0])
        except ValueError as err:
            raise InvalidGeometryError(str(err)) from err
        return cls(degree, knots, pts, weights)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def knots(self) -> KnotVector:
        return self._knots

    @property
    def homogeneous_points(self) -> npt.NDArray[np.float64]:
        """Get the (read-only) homogeneous control points, shape (n, dim+1)."""
        return self._homogeneous_points

    @property
    def control_points(self) -> npt.NDArray[np.float64]:
        """Get a copy of the Euclidean control points, shape (n, dim)."""
        return dehomogenize_points(self._homogeneous_points)

    @property
    def weights(self) -> npt.NDArray[np.float64]:
        return self._homogeneous_points[:, -1].copy()

    @property
    def dimension(self) -> int:
        return int(self._homogeneous_points.shape[1] - 1)

    @property
    def num_control_points(self) -> int:
        return int(self._homogeneous_points.shape[0])

    @property
    def domain(self) -> tuple[float, float]:
        """Get the parametric domain `(knots[degree], knots[-degree-1])`."""
        return self._knots.get_domain(self._degree)

    @property
    def is_rational(self) -> bool:
        """Check whether the weights differ, making the curve truly rational."""
        w = self._homogeneous_points[:, -1]
        return bool(np.any(np.abs(w - w[0]) > EPSILON))

    def point_at(self, t: float) -> npt.NDArray[np.float64]:
        """Evaluate the curve at a parameter."""
        return curve_point_at(self, t)

    def points_at(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Evaluate the curve at an array of parameters."""
        return curve_points_at(self, pts)

    def derivatives_at(self, t: float, order: int = 1) -> npt.NDArray[np.float64]:
        """Evaluate the point and its derivatives up to `order`, shape (order+1, dim)."""
        return rational_curve_derivatives(self, t, order)

    def tangent_at(self, t: float) -> npt.NDArray[np.float64]:
        """Evaluate the unit tangent at a parameter.

        Raises:
            DegenerateGeometryError: If the first derivative vanishes.
        """
        derivative = rational_curve_derivatives(self, t, 1)[1]
        length = float(np.linalg.norm(derivative))
        if length < EPSILON:
            raise DegenerateGeometryError(f"the tangent vanishes at t={t}")
        return derivative / length

    def curvature_at(self, t: float) -> npt.NDArray[np.float64]:
        """Evaluate the curvature vector, whose length is the radius of curvature."""
        ders = rational_curve_derivatives(self, t, 2)
        return curvature_vector(ders[1], ders[2])

    def length(self) -> float:
        """Approximate the arc length of the whole curve."""
        return curve_length(self)

    def length_at(self, t: float) -> float:
        """Approximate the arc length from the domain start to `t`."""
        return curve_length(self, t)

    def parameter_at_length(self, length: float, tol: float = MIN_TOLERANCE) -> float:
        """Find the parameter at an arc length from the domain start."""
        return curve_parameter_at_length(self, length, tol)

    def point_at_length(self, length: float) -> npt.NDArray[np.float64]:
        """Evaluate the point at an arc length from the domain start."""
        return self.point_at(self.parameter_at_length(length))

    def closest_parameter(self, point: npt.ArrayLike) -> float:
        """Find the parameter of the curve point closest to `point`."""
        return curve_closest_parameter(self, point)

    def closest_point(self, point: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Find the curve point closest to `point`."""
        return self.point_at(self.closest_parameter(point))

    def bounding_box(self) -> BoundingBox:
        """Compute an axis-aligned box containing the curve.

        Polynomial curves get a tight box from the end points and
        the extrema of their Bézier segments. Other curves get the box of
        their control points, which contains the curve as well.
        """
        if self.is_rational:
            return BoundingBox.from_points(self.control_points)

        points = []
        for bezier in decompose_curve_into_beziers(self):
            params = np.concatenate((bezier.domain, compute_bezier_extrema(bezier)))
            points.append(bezier.points_at(params))
        return BoundingBox.from_points(np.vstack(points))

    def split_at(self, t: float) -> tuple[NurbsCurve, NurbsCurve]:
        """Split the curve in two at an interior parameter."""
        return split_curve(self, t)

    def split_at_parameters(self, parameters: npt.ArrayLike) -> list[NurbsCurve]:
        """Split the curve at several interior parameters."""
        return split_curve_at(self, parameters)

    def sub_curve(self, start: float, end: float) -> NurbsCurve:
        """Extract the part of the curve between two parameters."""
        return sub_curve(self, start, end)

    def decompose_into_beziers(self, normalize: bool = False) -> list[NurbsCurve]:
        """Decompose the curve into Bézier segments."""
        return decompose_curve_into_beziers(self, normalize)

    def knot_refine(self, knots_to_insert: npt.ArrayLike) -> NurbsCurve:
        """Insert knots without changing the shape."""
        return curve_knot_refine(self, knots_to_insert)

    def elevate_degree(self, final_degree: int) -> NurbsCurve:
        """Raise the degree without changing the shape."""
        return elevate_curve_degree(self, final_degree)

    def reverse(self) -> NurbsCurve:
        return reverse_curve(self)

    def transform(self, matrix: npt.ArrayLike) -> NurbsCurve:
        """Apply a (dim+1, dim+1) homogeneous transformation matrix."""
        return transform_curve(self, matrix)

    def close(self) -> NurbsCurve:
        """Build a closed periodic curve from the control polygon."""
        return close_curve(self)

    def is_closed(self, tol: float = MIN_TOLERANCE) -> bool:
        """Check whether the start and end points coincide within `tol`."""
        start, end = self.domain
        return bool(np.linalg.norm(self.point_at(start) - self.point_at(end)) < tol)

    def is_periodic(self) -> bool:
        """Check whether the knot vector is periodic."""
        return self._knots.is_periodic(self._degree)

    def equals(self, other: NurbsCurve, tol: float = EPSILON) -> bool:
        """Compare two curves value by value within a tolerance.

        Args:
            other (NurbsCurve): Curve to compare with.
            tol (float): Tolerance on knots and homogeneous control points.

        Returns:
            bool: True when degree, knots, control points and weights match.
        """
        if self._degree != other.degree:
            return False
        if self._homogeneous_points.shape != other.homogeneous_points.shape:
            return False
        if not self._knots.equals(other.knots, tol):
            return False
        return bool(np.allclose(self._homogeneous_points, other.homogeneous_points, rtol=0.0, atol=tol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NurbsCurve):
            return NotImplemented
        return self.equals(other)

    def copy(self) -> NurbsCurve:
        """Return an independent copy of the curve."""
        return type(self).from_homogeneous(
            self._degree, self._knots.copy(), self._homogeneous_points.copy()
        )

    def __repr__(self) -> str:
        return (
            f"NurbsCurve(degree={self._degree}, knots={self._knots.values.tolist()}, "
            f"control_points={self.control_points.tolist()}, weights={self.weights.tolist()})"
        )


__all__ = ["NurbsCurve"]

"""Point and derivative evaluation of NURBS curves and surfaces.

Evaluation goes knot vector -> span -> basis functions -> weighted sum of
homogeneous control points. Derivatives of the rational (dehomogenized)
geometry are recovered from the homogeneous ones with the quotient rule:

    C^(k) = (A^(k) - sum_{i=1..k} C(k, i) w^(i) C^(k-i)) / w

and its bivariate (Leibniz) analogue for surfaces.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import numpy as np
import numpy.typing as npt
from numpy.polynomial import Polynomial

from ._evaluation_impl import (
    _curve_derivatives_impl,
    _curve_point_impl,
    _curve_points_impl,
    _surface_derivatives_impl,
    _surface_point_impl,
)
from .errors import DegenerateGeometryError
from .homogeneous import binomial, dehomogenize_point, dehomogenize_points
from .tolerance import EPSILON, MAX_TOLERANCE

if TYPE_CHECKING:
    from .curve import NurbsCurve
    from .surface import NurbsSurface


def _clamp_parameter(t: float, domain: tuple[float, float], name: str = "t") -> float:
    """Snap a parameter onto its domain or reject it.

    Values within `MAX_TOLERANCE` outside the domain are moved onto the
    closest end.

    Args:
        t (float): Parameter.
        domain (tuple[float, float]): Domain `(start, end)`.
        name (str): Parameter name used in the error message.

    Returns:
        float: Parameter inside the domain.

    Raises:
        ValueError: If the parameter is not finite or lies outside the domain
            by more than `MAX_TOLERANCE`.
    """
    t = float(t)
    start, end = domain
    if not np.isfinite(t):
        raise ValueError(f"{name} must be finite")
    if t < start - MAX_TOLERANCE or t > end + MAX_TOLERANCE:
        raise ValueError(f"{name}={t} is outside the domain [{start}, {end}]")
    return min(max(t, start), end)


def _clamp_parameters(
    pts: npt.ArrayLike, domain: tuple[float, float], name: str = "t"
) -> npt.NDArray[np.float64]:
    """Vectorized version of `_clamp_parameter`."""
    pts_arr = np.asarray(pts, dtype=np.float64)
    start, end = domain
    if not np.all(np.isfinite(pts_arr)):
        raise ValueError(f"{name} must be finite")
    if np.any(pts_arr < start - MAX_TOLERANCE) or np.any(pts_arr > end + MAX_TOLERANCE):
        raise ValueError(f"{name} values must be inside the domain [{start}, {end}]")
    return np.clip(pts_arr, start, end)


def _check_order(order: int) -> None:
    if order < 0:
        raise ValueError("order must be non-negative")


def curve_point_at(curve: NurbsCurve, t: float) -> npt.NDArray[np.float64]:
    """Evaluate a curve at a parameter.

    Args:
        curve (NurbsCurve): Curve to evaluate.
        t (float): Parameter inside the curve domain.

    Returns:
        npt.NDArray[np.float64]: Euclidean point with shape (dim,).

    Raises:
        ValueError: If `t` is outside the domain.
    """
    t = _clamp_parameter(t, curve.domain)
    pw = _curve_point_impl(curve.degree, curve.knots.values, curve.homogeneous_points, t, EPSILON)
    return dehomogenize_point(pw)


def curve_points_at(curve: NurbsCurve, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Evaluate a curve at several parameters.

    Args:
        curve (NurbsCurve): Curve to evaluate.
        pts (npt.ArrayLike): Parameters inside the curve domain.

    Returns:
        npt.NDArray[np.float64]: Points with shape (*pts.shape, dim).
    """
    pts_arr = _clamp_parameters(pts, curve.domain)
    flat = np.ascontiguousarray(pts_arr.ravel())
    pw = _curve_points_impl(
        curve.degree, curve.knots.values, curve.homogeneous_points, flat, EPSILON
    )
    return dehomogenize_points(pw).reshape(*pts_arr.shape, curve.dimension)


def curve_derivatives(curve: NurbsCurve, t: float, order: int) -> npt.NDArray[np.float64]:
    """Evaluate the derivatives of the homogeneous curve `(A(t), w(t))`.

    Args:
        curve (NurbsCurve): Curve to evaluate.
        t (float): Parameter inside the curve domain.
        order (int): Highest derivative order.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, dim+1). Row `k`
            holds `(A^(k)(t), w^(k)(t))`; rows above the degree are zero.
    """
    _check_order(order)
    t = _clamp_parameter(t, curve.domain)
    return cast(
        npt.NDArray[np.float64],
        _curve_derivatives_impl(
            curve.degree, curve.knots.values, curve.homogeneous_points, t, int(order), EPSILON
        ),
    )


def rational_curve_derivatives(
    curve: NurbsCurve, t: float, order: int = 1
) -> npt.NDArray[np.float64]:
    """Evaluate the point and derivatives of a (rational) curve.

    Args:
        curve (NurbsCurve): Curve to evaluate.
        t (float): Parameter inside the curve domain.
        order (int): Highest derivative order. Defaults to 1.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, dim). Row 0 is the
            point, row `k` the `k`-th derivative.

    Raises:
        DegenerateGeometryError: If the weight function vanishes at `t`.

    Example:
        A quarter circle as a rational quadratic Bézier curve:

        >>> arc = NurbsCurve(2, [0, 0, 0, 1, 1, 1],
        ...                  [[1, 0, 0], [1, 1, 0], [0, 1, 0]], [1, 1, 2])
        >>> rational_curve_derivatives(arc, 0.0, 2)
        array([[ 1.,  0.,  0.],
               [ 0.,  2.,  0.],
               [-4.,  0.,  0.]])
    """
    ders = curve_derivatives(curve, t, order)
    a_ders = ders[:, :-1]
    w_ders = ders[:, -1]
    if abs(w_ders[0]) < EPSILON:
        raise DegenerateGeometryError(f"the curve weight vanishes at t={t}")

    ck = np.zeros_like(a_ders)
    for k in range(order + 1):
        value = a_ders[k].copy()
        for i in range(1, k + 1):
            value -= binomial(k, i) * w_ders[i] * ck[k - i]
        ck[k] = value / w_ders[0]
    return ck


def rational_curve_tangent(curve: NurbsCurve, t: float) -> npt.NDArray[np.float64]:
    """Evaluate the (non-normalized) first derivative of a curve."""
    return rational_curve_derivatives(curve, t, 1)[1]


def surface_point_at(surface: NurbsSurface, u: float, v: float) -> npt.NDArray[np.float64]:
    """Evaluate a surface at a pair of parameters.

    Args:
        surface (NurbsSurface): Surface to evaluate.
        u (float): Parameter along u inside the u domain.
        v (float): Parameter along v inside the v domain.

    Returns:
        npt.NDArray[np.float64]: Euclidean point with shape (dim,).

    Raises:
        ValueError: If a parameter is outside its domain.
    """
    u = _clamp_parameter(u, surface.domain_u, "u")
    v = _clamp_parameter(v, surface.domain_v, "v")
    pw = _surface_point_impl(
        surface.degree_u,
        surface.degree_v,
        surface.knots_u.values,
        surface.knots_v.values,
        surface.homogeneous_points,
        u,
        v,
        EPSILON,
    )
    return dehomogenize_point(pw)


def surface_derivatives(
    surface: NurbsSurface, u: float, v: float, order: int
) -> npt.NDArray[np.float64]:
    """Evaluate the mixed partial derivatives of the homogeneous surface.

    Args:
        surface (NurbsSurface): Surface to evaluate.
        u (float): Parameter along u.
        v (float): Parameter along v.
        order (int): Highest total derivative order.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, order+1, dim+1);
            entry `[k, l]` is the homogeneous derivative `k` times in u and
            `l` times in v (zero when `k + l > order`).
    """
    _check_order(order)
    u = _clamp_parameter(u, surface.domain_u, "u")
    v = _clamp_parameter(v, surface.domain_v, "v")
    return cast(
        npt.NDArray[np.float64],
        _surface_derivatives_impl(
            surface.degree_u,
            surface.degree_v,
            surface.knots_u.values,
            surface.knots_v.values,
            surface.homogeneous_points,
            u,
            v,
            int(order),
            EPSILON,
        ),
    )


def rational_surface_derivatives(
    surface: NurbsSurface, u: float, v: float, order: int = 1
) -> npt.NDArray[np.float64]:
    """Evaluate the point and mixed partial derivatives of a (rational) surface.

    Args:
        surface (NurbsSurface): Surface to evaluate.
        u (float): Parameter along u.
        v (float): Parameter along v.
        order (int): Highest total derivative order. Defaults to 1.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, order+1, dim);
            entry `[k, l]` is the derivative `k` times in u and `l` times in
            v, for `k + l <= order`.

    Raises:
        DegenerateGeometryError: If the weight function vanishes at `(u, v)`.
    """
    ders = surface_derivatives(surface, u, v, order)
    a_ders = ders[..., :-1]
    w_ders = ders[..., -1]
    if abs(w_ders[0, 0]) < EPSILON:
        raise DegenerateGeometryError(f"the surface weight vanishes at (u, v)=({u}, {v})")

    skl = np.zeros_like(a_ders)
    for k in range(order + 1):
        for l in range(order - k + 1):  # noqa: E741
            value = a_ders[k, l].copy()
            for j in range(1, l + 1):
                value -= binomial(l, j) * w_ders[0, j] * skl[k, l - j]
            for i in range(1, k + 1):
                value -= binomial(k, i) * w_ders[i, 0] * skl[k - i, l]
                mixed = np.zeros_like(value)
                for j in range(1, l + 1):
                    mixed += binomial(l, j) * w_ders[i, j] * skl[k - i, l - j]
                value -= binomial(k, i) * mixed
            skl[k, l] = value / w_ders[0, 0]
    return skl


def rational_surface_normal(surface: NurbsSurface, u: float, v: float) -> npt.NDArray[np.float64]:
    """Evaluate the unit normal `S_u x S_v` of a 3D surface.

    Raises:
        ValueError: If the surface is not embedded in 3D.
        DegenerateGeometryError: If the partial derivatives are parallel.
    """
    if surface.dimension != 3:  # noqa: PLR2004
        raise ValueError("normals are only defined for surfaces in 3D")
    skl = rational_surface_derivatives(surface, u, v, 1)
    normal = np.cross(skl[1, 0], skl[0, 1])
    length = float(np.linalg.norm(normal))
    if length < EPSILON:
        raise DegenerateGeometryError(f"the surface normal vanishes at (u, v)=({u}, {v})")
    return cast(npt.NDArray[np.float64], normal / length)


def compute_bezier_extrema(curve: NurbsCurve) -> npt.NDArray[np.float64]:
    """Find the parameters where a Bézier curve has a zero derivative component.

    The derivative of each coordinate of the control-point polygon is
    written in power form and its real roots inside the domain are kept.
    Weights are not taken into account.

    Args:
        curve (NurbsCurve): A Bézier curve (clamped, no interior knots).

    Returns:
        npt.NDArray[np.float64]: Sorted parameters of the extrema in the curve
            domain (possibly empty).

    Raises:
        ValueError: If the curve is not a single Bézier segment.
    """
    degree = curve.degree
    if curve.num_control_points != degree + 1 or not curve.knots.is_clamped(degree):
        raise ValueError("curve must be a single Bézier segment")

    start, end = curve.domain
    pts = curve.control_points
    # Control points of the derivative, on the reference interval [0, 1].
    der_pts = degree * np.diff(pts, axis=0)
    der_degree = degree - 1

    s = Polynomial([0.0, 1.0])
    one_minus_s = Polynomial([1.0, -1.0])
    bernstein = [
        binomial(der_degree, j) * s**j * one_minus_s ** (der_degree - j)
        for j in range(der_degree + 1)
    ]

    roots: list[float] = []
    for coord in range(curve.dimension):
        poly = sum(
            (der_pts[j, coord] * bernstein[j] for j in range(der_degree + 1)),
            Polynomial([0.0]),
        )
        if np.all(np.abs(poly.coef) < EPSILON):
            continue
        for root in poly.roots():
            if abs(root.imag) > EPSILON:
                continue
            value = float(root.real)
            if -EPSILON <= value <= 1.0 + EPSILON:
                roots.append(start + min(max(value, 0.0), 1.0) * (end - start))

    return np.unique(np.asarray(roots, dtype=np.float64))


__all__ = [
    "compute_bezier_extrema",
    "curve_derivatives",
    "curve_point_at",
    "curve_points_at",
    "rational_curve_derivatives",
    "rational_curve_tangent",
    "rational_surface_derivatives",
    "rational_surface_normal",
    "surface_derivatives",
    "surface_point_at",
]

"""Numba kernels for curve and surface evaluation on homogeneous control points.

The kernels combine span search, basis functions and control points
(Piegl and Tiller, A3.1, A3.2, A3.5 and A3.6). They operate on homogeneous
points and never divide by the weights. All functions assume validated,
contiguous float64 input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

from ._basis_impl import _compute_basis_function_derivatives_impl, _compute_basis_functions_impl
from ._knots_impl import _find_span_impl

F = TypeVar("F", bound=Callable[..., Any])

if TYPE_CHECKING:
    # During type-checking, make the decorator a no-op that preserves types.
    def nb_jit(*args: object, **kwargs: object) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            return func

        return decorator
else:
    # At runtime, use the real Numba decorator.
    nb_jit = nb.jit  # type: ignore[attr-defined]


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _curve_point_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    t: float,
    eps: float,
) -> npt.NDArray[np.float64]:
    """Evaluate a curve on its homogeneous control points.

    Args:
        degree (int): Curve degree.
        knots (npt.NDArray[np.float64]): Knot vector.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (n, dim+1).
        t (float): Parameter.
        eps (float): Tolerance for the span search.

    Returns:
        npt.NDArray[np.float64]: Homogeneous point with shape (dim+1,).

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    span = _find_span_impl(knots, degree, t, eps)
    basis = _compute_basis_functions_impl(degree, knots, span, t)

    point = np.zeros(ctrl_pts.shape[1], dtype=np.float64)
    first = span - degree
    for j in range(degree + 1):
        point += basis[j] * ctrl_pts[first + j]
    return point


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _curve_points_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    pts: npt.NDArray[np.float64],
    eps: float,
) -> npt.NDArray[np.float64]:
    """Vectorized version of `_curve_point_impl` over a 1D array of parameters.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    out = np.empty((pts.size, ctrl_pts.shape[1]), dtype=np.float64)
    for i in range(pts.size):
        out[i, :] = _curve_point_impl(degree, knots, ctrl_pts, pts[i], eps)
    return out


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _curve_derivatives_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    t: float,
    order: int,
    eps: float,
) -> npt.NDArray[np.float64]:
    """Evaluate the derivatives of a curve on its homogeneous control points.

    Args:
        degree (int): Curve degree.
        knots (npt.NDArray[np.float64]): Knot vector.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (n, dim+1).
        t (float): Parameter.
        order (int): Highest derivative order.
        eps (float): Tolerance for the span search.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, dim+1) with the
            homogeneous derivatives. Orders above `degree` are zero.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    du = min(order, degree)
    ders = np.zeros((order + 1, ctrl_pts.shape[1]), dtype=np.float64)

    span = _find_span_impl(knots, degree, t, eps)
    nders = _compute_basis_function_derivatives_impl(span, t, degree, du, knots)

    first = span - degree
    for k in range(du + 1):
        for j in range(degree + 1):
            for c in range(ctrl_pts.shape[1]):
                ders[k, c] += nders[k, j] * ctrl_pts[first + j, c]
    return ders


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _surface_point_impl(  # noqa: PLR0913
    degree_u: int,
    degree_v: int,
    knots_u: npt.NDArray[np.float64],
    knots_v: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    u: float,
    v: float,
    eps: float,
) -> npt.NDArray[np.float64]:
    """Evaluate a tensor-product surface on its homogeneous control points.

    Args:
        degree_u (int): Degree along u.
        degree_v (int): Degree along v.
        knots_u (npt.NDArray[np.float64]): Knot vector along u.
        knots_v (npt.NDArray[np.float64]): Knot vector along v.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (nu, nv, dim+1).
        u (float): Parameter along u.
        v (float): Parameter along v.
        eps (float): Tolerance for the span search.

    Returns:
        npt.NDArray[np.float64]: Homogeneous point with shape (dim+1,).

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    span_u = _find_span_impl(knots_u, degree_u, u, eps)
    span_v = _find_span_impl(knots_v, degree_v, v, eps)
    basis_u = _compute_basis_functions_impl(degree_u, knots_u, span_u, u)
    basis_v = _compute_basis_functions_impl(degree_v, knots_v, span_v, v)

    dim = ctrl_pts.shape[2]
    point = np.zeros(dim, dtype=np.float64)
    temp = np.zeros(dim, dtype=np.float64)

    first_u = span_u - degree_u
    for l in range(degree_v + 1):  # noqa: E741
        temp[:] = 0.0
        v_ind = span_v - degree_v + l
        for k in range(degree_u + 1):
            temp += basis_u[k] * ctrl_pts[first_u + k, v_ind]
        point += basis_v[l] * temp
    return point


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _surface_derivatives_impl(  # noqa: PLR0913
    degree_u: int,
    degree_v: int,
    knots_u: npt.NDArray[np.float64],
    knots_v: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    u: float,
    v: float,
    order: int,
    eps: float,
) -> npt.NDArray[np.float64]:
    """Evaluate the mixed partial derivatives of a surface on homogeneous points.

    Args:
        degree_u (int): Degree along u.
        degree_v (int): Degree along v.
        knots_u (npt.NDArray[np.float64]): Knot vector along u.
        knots_v (npt.NDArray[np.float64]): Knot vector along v.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (nu, nv, dim+1).
        u (float): Parameter along u.
        v (float): Parameter along v.
        order (int): Highest total derivative order.
        eps (float): Tolerance for the span search.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, order+1, dim+1) where
            entry `[k, l]` is the derivative `k` times in u and `l` times in v,
            for `k + l <= order`. Other entries are zero.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    du = min(order, degree_u)
    dv = min(order, degree_v)
    dim = ctrl_pts.shape[2]
    skl = np.zeros((order + 1, order + 1, dim), dtype=np.float64)

    span_u = _find_span_impl(knots_u, degree_u, u, eps)
    span_v = _find_span_impl(knots_v, degree_v, v, eps)
    nu_ders = _compute_basis_function_derivatives_impl(span_u, u, degree_u, du, knots_u)
    nv_ders = _compute_basis_function_derivatives_impl(span_v, v, degree_v, dv, knots_v)

    temp = np.zeros((degree_v + 1, dim), dtype=np.float64)
    first_u = span_u - degree_u
    first_v = span_v - degree_v
    for k in range(du + 1):
        temp[:, :] = 0.0
        for s in range(degree_v + 1):
            for r in range(degree_u + 1):
                for c in range(dim):
                    temp[s, c] += nu_ders[k, r] * ctrl_pts[first_u + r, first_v + s, c]
        dd = min(order - k, dv)
        for l in range(dd + 1):  # noqa: E741
            for s in range(degree_v + 1):
                for c in range(dim):
                    skl[k, l, c] += nv_ders[l, s] * temp[s, c]
    return skl


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call."""
    knots_dummy = np.array([0.0, 0.0, 1.0, 1.0], dtype=np.float64)
    curve_dummy = np.array([[0.0, 0.0, 1.0], [1.0, 1.0, 1.0]], dtype=np.float64)
    surface_dummy = np.zeros((2, 2, 3), dtype=np.float64)
    surface_dummy[..., 2] = 1.0
    pts_dummy = np.array([0.5], dtype=np.float64)
    tol_dummy = 1e-10

    _curve_point_impl(1, knots_dummy, curve_dummy, 0.5, tol_dummy)
    _curve_points_impl(1, knots_dummy, curve_dummy, pts_dummy, tol_dummy)
    _curve_derivatives_impl(1, knots_dummy, curve_dummy, 0.5, 1, tol_dummy)
    _surface_point_impl(1, 1, knots_dummy, knots_dummy, surface_dummy, 0.5, 0.5, tol_dummy)
    _surface_derivatives_impl(
        1, 1, knots_dummy, knots_dummy, surface_dummy, 0.5, 0.5, 1, tol_dummy
    )


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_curve_derivatives_impl",
    "_curve_point_impl",
    "_curve_points_impl",
    "_surface_derivatives_impl",
    "_surface_point_impl",
]

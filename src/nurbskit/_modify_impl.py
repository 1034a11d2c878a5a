"""Numba kernels for knot refinement and degree elevation of curves.

The algorithms follow "The NURBS Book" by Piegl and Tiller (A5.4 and A5.9)
and act on homogeneous control points, so they are valid for rational
curves as well. All functions assume validated, contiguous float64 input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

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
def _knot_refine_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    new_knots: npt.NDArray[np.float64],
    eps: float,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Insert a sorted list of knots into a curve without changing its shape.

    Piegl and Tiller, A5.4. The control points and knots that are not
    affected by the insertion are copied at both ends; the remaining ones are
    built backwards as affine blends of their neighbours.

    Args:
        degree (int): Curve degree.
        knots (npt.NDArray[np.float64]): Knot vector.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (n, dim+1).
        new_knots (npt.NDArray[np.float64]): Non-empty sorted knots to insert,
            inside the curve domain.
        eps (float): Tolerance below which a blending factor is considered zero.

    Returns:
        tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]: The refined knot
            vector and the refined homogeneous control points.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    p = degree
    n = ctrl_pts.shape[0] - 1
    m = n + p + 1
    r = new_knots.size - 1

    a = _find_span_impl(knots, p, new_knots[0], eps)
    b = _find_span_impl(knots, p, new_knots[r], eps) + 1

    out_pts = np.zeros((n + r + 2, ctrl_pts.shape[1]), dtype=np.float64)
    out_knots = np.zeros(m + r + 2, dtype=np.float64)

    for j in range(a - p + 1):
        out_pts[j, :] = ctrl_pts[j, :]
    for j in range(b - 1, n + 1):
        out_pts[j + r + 1, :] = ctrl_pts[j, :]
    for j in range(a + 1):
        out_knots[j] = knots[j]
    for j in range(b + p, m + 1):
        out_knots[j + r + 1] = knots[j]

    i = b + p - 1
    k = b + p + r
    for j in range(r, -1, -1):
        while new_knots[j] <= knots[i] and i > a:
            out_pts[k - p - 1, :] = ctrl_pts[i - p - 1, :]
            out_knots[k] = knots[i]
            k -= 1
            i -= 1

        out_pts[k - p - 1, :] = out_pts[k - p, :]
        for l in range(1, p + 1):  # noqa: E741
            ind = k - p + l
            alpha = out_knots[k + l] - new_knots[j]
            if abs(alpha) < eps:
                out_pts[ind - 1, :] = out_pts[ind, :]
            else:
                alpha = alpha / (out_knots[k + l] - knots[i - p + l])
                out_pts[ind - 1, :] = alpha * out_pts[ind - 1, :] + (1.0 - alpha) * out_pts[ind, :]

        out_knots[k] = new_knots[j]
        k -= 1

    return out_knots, out_pts


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _binomial_impl(n: int, k: int) -> float:
    """Binomial coefficient `C(n, k)` as a float; zero when k is out of range."""
    if k < 0 or k > n:
        return 0.0
    k = min(k, n - k)
    result = 1.0
    for i in range(1, k + 1):
        result = result * (n - k + i) / i
    return result


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _elevate_degree_impl(  # noqa: PLR0912, PLR0915
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    times: int,
    eps: float,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Raise the degree of a clamped curve by `times` without changing its shape.

    Piegl and Tiller, A5.9. The curve is processed one Bézier segment at a
    time: each segment is extracted by knot insertion, degree-elevated with
    the Bézier elevation coefficients, and the knots inserted for the
    extraction are removed again.

    Args:
        degree (int): Current curve degree.
        knots (npt.NDArray[np.float64]): Clamped knot vector.
        ctrl_pts (npt.NDArray[np.float64]): Homogeneous control points with
            shape (n, dim+1).
        times (int): Number of degrees to add. Must be positive.
        eps (float): Tolerance for detecting repeated knots.

    Returns:
        tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]: The new knot
            vector and homogeneous control points.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    p = degree
    t = times
    n = ctrl_pts.shape[0] - 1
    m = n + p + 1
    ph = p + t
    ph2 = ph // 2
    dim = ctrl_pts.shape[1]

    # Bézier degree elevation coefficients.
    bezalfs = np.zeros((ph + 1, p + 1), dtype=np.float64)
    bezalfs[0, 0] = 1.0
    bezalfs[ph, p] = 1.0
    for i in range(1, ph2 + 1):
        inv = 1.0 / _binomial_impl(ph, i)
        mpi = min(p, i)
        for j in range(max(0, i - t), mpi + 1):
            bezalfs[i, j] = inv * _binomial_impl(p, j) * _binomial_impl(t, i - j)
    for i in range(ph2 + 1, ph):
        mpi = min(p, i)
        for j in range(max(0, i - t), mpi + 1):
            bezalfs[i, j] = bezalfs[ph - i, p - j]

    bpts = np.zeros((p + 1, dim), dtype=np.float64)
    ebpts = np.zeros((ph + 1, dim), dtype=np.float64)
    next_bpts = np.zeros((max(p - 1, 1), dim), dtype=np.float64)
    alphas = np.zeros(max(p - 1, 1), dtype=np.float64)

    out_pts = np.zeros((n + 1 + t * (m + 1), dim), dtype=np.float64)
    out_knots = np.zeros(m + 1 + t * (m + 2), dtype=np.float64)

    mh = ph
    kind = ph + 1
    r = -1
    a = p
    b = p + 1
    cind = 1
    ua = knots[0]

    out_pts[0, :] = ctrl_pts[0, :]
    for i in range(ph + 1):
        out_knots[i] = ua

    for i in range(p + 1):
        bpts[i, :] = ctrl_pts[i, :]

    while b < m:
        i = b
        while b < m and abs(knots[b] - knots[b + 1]) < eps:
            b += 1
        mul = b - i + 1
        mh = mh + mul + t
        ub = knots[b]
        oldr = r
        r = p - mul

        lbz = (oldr + 2) // 2 if oldr > 0 else 1
        rbz = ph - (r + 1) // 2 if r > 0 else ph

        # Insert knot ub r times to extract the Bézier segment.
        if r > 0:
            numer = ub - ua
            for k in range(p, mul, -1):
                alphas[k - mul - 1] = numer / (knots[a + k] - ua)
            for j in range(1, r + 1):
                save = r - j
                s = mul + j
                for k in range(p, s - 1, -1):
                    alpha = alphas[k - s]
                    bpts[k, :] = alpha * bpts[k, :] + (1.0 - alpha) * bpts[k - 1, :]
                next_bpts[save, :] = bpts[p, :]

        # Degree-elevate the Bézier segment.
        for i in range(lbz, ph + 1):
            ebpts[i, :] = 0.0
            mpi = min(p, i)
            for j in range(max(0, i - t), mpi + 1):
                ebpts[i, :] = ebpts[i, :] + bezalfs[i, j] * bpts[j, :]

        # Remove the knot ua oldr times.
        if oldr > 1:
            first = kind - 2
            last = kind
            den = ub - ua
            bet = (ub - out_knots[kind - 1]) / den
            for tr in range(1, oldr):
                i = first
                j = last
                kj = j - kind + 1
                while j - i > tr:
                    if i < cind:
                        alf = (ub - out_knots[i]) / (ua - out_knots[i])
                        out_pts[i, :] = alf * out_pts[i, :] + (1.0 - alf) * out_pts[i - 1, :]
                    if j >= lbz:
                        if j - tr <= kind - ph + oldr:
                            gam = (ub - out_knots[j - tr]) / den
                            ebpts[kj, :] = gam * ebpts[kj, :] + (1.0 - gam) * ebpts[kj + 1, :]
                        else:
                            ebpts[kj, :] = bet * ebpts[kj, :] + (1.0 - bet) * ebpts[kj + 1, :]
                    i += 1
                    j -= 1
                    kj -= 1
                first -= 1
                last += 1

        # Load the knot ua.
        if a != p:
            for i in range(ph - oldr):
                out_knots[kind] = ua
                kind += 1

        # Load the control points.
        for j in range(lbz, rbz + 1):
            out_pts[cind, :] = ebpts[j, :]
            cind += 1

        if b < m:
            # Set up for the next segment.
            for j in range(r):
                bpts[j, :] = next_bpts[j, :]
            for j in range(r, p + 1):
                bpts[j, :] = ctrl_pts[b - p + j, :]
            a = b
            b += 1
            ua = ub
        else:
            # End knot.
            for i in range(ph + 1):
                out_knots[kind + i] = ub

    n_pts = mh - ph
    return out_knots[: mh + 1].copy(), out_pts[:n_pts].copy()


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call."""
    knots_dummy = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0], dtype=np.float64)
    ctrl_dummy = np.array([[0.0, 0.0, 1.0], [1.0, 1.0, 1.0], [2.0, 0.0, 1.0]], dtype=np.float64)
    new_knots_dummy = np.array([0.5], dtype=np.float64)
    tol_dummy = 1e-10

    _knot_refine_impl(2, knots_dummy, ctrl_dummy, new_knots_dummy, tol_dummy)
    _elevate_degree_impl(2, knots_dummy, ctrl_dummy, 1, tol_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_binomial_impl",
    "_elevate_degree_impl",
    "_knot_refine_impl",
]

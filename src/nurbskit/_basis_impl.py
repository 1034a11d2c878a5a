"""Numba kernels for B-spline basis functions and their derivatives.

The algorithms follow "The NURBS Book" by Piegl and Tiller (A2.2, A2.3 and
A2.4). All functions assume validated, contiguous float64 input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

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
def _compute_basis_functions_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    span: int,
    t: float,
) -> npt.NDArray[np.float64]:
    """Evaluate the `degree+1` non-vanishing basis functions at a parameter.

    Cox-de Boor triangle (Piegl and Tiller, A2.2). The running `saved` term
    carries the right-hand contribution of each row into the next entry.

    Args:
        degree (int): Curve degree.
        knots (npt.NDArray[np.float64]): Knot vector.
        span (int): Knot span containing `t`.
        t (float): Parameter.

    Returns:
        npt.NDArray[np.float64]: Values `N[span-degree], ..., N[span]` at `t`.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    basis = np.zeros(degree + 1, dtype=np.float64)
    left = np.zeros(degree + 1, dtype=np.float64)
    right = np.zeros(degree + 1, dtype=np.float64)

    basis[0] = 1.0
    for j in range(1, degree + 1):
        left[j] = t - knots[span + 1 - j]
        right[j] = knots[span + j] - t
        saved = 0.0
        for r in range(j):
            temp = basis[r] / (right[r + 1] + left[j - r])
            basis[r] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        basis[j] = saved

    return basis


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _compute_basis_function_derivatives_impl(
    span: int,
    t: float,
    degree: int,
    order: int,
    knots: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Evaluate the non-vanishing basis functions and their derivatives.

    Piegl and Tiller, A2.3. The triangular table `ndu` stores the basis
    functions (upper triangle) and the knot differences (lower triangle).
    Each derivative row is built from two alternating rows of coefficients
    and finally scaled by `degree * (degree-1) * ... * (degree-k+1)`.

    Args:
        span (int): Knot span containing `t`.
        t (float): Parameter.
        degree (int): Curve degree.
        order (int): Highest derivative order. Orders above `degree` are zero.
        knots (npt.NDArray[np.float64]): Knot vector.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, degree+1) where row
            `k` holds the `k`-th derivatives of `N[span-degree], ..., N[span]`.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    ders = np.zeros((order + 1, degree + 1), dtype=np.float64)
    n_ders = min(order, degree)

    ndu = np.zeros((degree + 1, degree + 1), dtype=np.float64)
    left = np.zeros(degree + 1, dtype=np.float64)
    right = np.zeros(degree + 1, dtype=np.float64)

    ndu[0, 0] = 1.0
    for j in range(1, degree + 1):
        left[j] = t - knots[span + 1 - j]
        right[j] = knots[span + j] - t
        saved = 0.0
        for r in range(j):
            # Lower triangle.
            ndu[j, r] = right[r + 1] + left[j - r]
            temp = ndu[r, j - 1] / ndu[j, r]
            # Upper triangle.
            ndu[r, j] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        ndu[j, j] = saved

    for j in range(degree + 1):
        ders[0, j] = ndu[j, degree]

    a = np.zeros((2, degree + 1), dtype=np.float64)
    for r in range(degree + 1):
        s1 = 0
        s2 = 1
        a[0, 0] = 1.0
        for k in range(1, n_ders + 1):
            d = 0.0
            rk = r - k
            pk = degree - k
            if r >= k:
                a[s2, 0] = a[s1, 0] / ndu[pk + 1, rk]
                d = a[s2, 0] * ndu[rk, pk]

            j1 = 1 if rk >= -1 else -rk
            j2 = k - 1 if r - 1 <= pk else degree - r

            for j in range(j1, j2 + 1):
                a[s2, j] = (a[s1, j] - a[s1, j - 1]) / ndu[pk + 1, rk + j]
                d += a[s2, j] * ndu[rk + j, pk]

            if r <= pk:
                a[s2, k] = -a[s1, k - 1] / ndu[pk + 1, r]
                d += a[s2, k] * ndu[r, pk]

            ders[k, r] = d
            s1, s2 = s2, s1

    factor = float(degree)
    for k in range(1, n_ders + 1):
        for j in range(degree + 1):
            ders[k, j] *= factor
        factor *= degree - k

    return ders


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _compute_one_basis_function_impl(
    degree: int,
    knots: npt.NDArray[np.float64],
    index: int,
    t: float,
    eps: float,
) -> float:
    """Evaluate a single basis function `N[index, degree]` at a parameter.

    Piegl and Tiller, A2.4. The first and last basis functions are one at the
    respective end of a clamped knot vector.

    Args:
        degree (int): Curve degree.
        knots (npt.NDArray[np.float64]): Knot vector.
        index (int): Index of the basis function.
        t (float): Parameter.
        eps (float): Tolerance for the end-point checks.

    Returns:
        float: Value of the basis function.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    m = knots.size - 1
    if (index == 0 and abs(t - knots[0]) <= eps) or (
        index == m - degree - 1 and abs(t - knots[m]) <= eps
    ):
        return 1.0

    if t < knots[index] or t >= knots[index + degree + 1]:
        return 0.0

    values = np.zeros(degree + 1, dtype=np.float64)
    for j in range(degree + 1):
        if knots[index + j] <= t and t < knots[index + j + 1]:
            values[j] = 1.0

    for k in range(1, degree + 1):
        if values[0] == 0.0:
            saved = 0.0
        else:
            saved = ((t - knots[index]) * values[0]) / (knots[index + k] - knots[index])

        for j in range(degree - k + 1):
            knot_left = knots[index + j + 1]
            knot_right = knots[index + j + k + 1]
            if values[j + 1] == 0.0:
                values[j] = saved
                saved = 0.0
            else:
                temp = values[j + 1] / (knot_right - knot_left)
                values[j] = saved + (knot_right - t) * temp
                saved = (t - knot_left) * temp

    return float(values[0])


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call."""
    knots_dummy = np.array([0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0], dtype=np.float64)
    degree_dummy = 2
    span_dummy = 2
    t_dummy = 0.25

    _compute_basis_functions_impl(degree_dummy, knots_dummy, span_dummy, t_dummy)
    _compute_basis_function_derivatives_impl(span_dummy, t_dummy, degree_dummy, 2, knots_dummy)
    _compute_one_basis_function_impl(degree_dummy, knots_dummy, 1, t_dummy, 1e-10)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_compute_basis_function_derivatives_impl",
    "_compute_basis_functions_impl",
    "_compute_one_basis_function_impl",
]

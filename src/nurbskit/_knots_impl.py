"""Numba kernels for knot vector queries.

All functions in this module assume validated, contiguous float64 input.
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
def _find_span_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    t: float,
    eps: float,
) -> int:
    """Find the knot span index containing a parameter.

    Returns the index `i` such that `knots[i] <= t < knots[i+1]`, restricted to
    the range `[degree, n]` with `n = len(knots) - degree - 2`. Parameters
    within `eps` of the last domain knot map to `n`, and parameters within `eps`
    of the first domain knot map to `degree`.

    Args:
        knots (npt.NDArray[np.float64]): Knot vector.
        degree (int): Curve degree.
        t (float): Parameter to locate.
        eps (float): Tolerance for the boundary short-circuits.

    Returns:
        int: Knot span index.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    n = knots.size - degree - 2

    if t > knots[n + 1] - eps:
        return n
    if t < knots[degree] + eps:
        return degree

    low = degree
    high = n + 1
    mid = (low + high) // 2
    while t < knots[mid] or t >= knots[mid + 1]:
        if t < knots[mid]:
            high = mid
        else:
            low = mid
        mid = (low + high) // 2
    return mid


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _find_spans_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    pts: npt.NDArray[np.float64],
    eps: float,
) -> npt.NDArray[np.int_]:
    """Vectorized version of `_find_span_impl` over a 1D array of parameters.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    spans = np.empty(pts.size, dtype=np.int_)
    for i in range(pts.size):
        spans[i] = _find_span_impl(knots, degree, pts[i], eps)
    return spans


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _count_multiplicity_impl(
    knots: npt.NDArray[np.float64],
    value: float,
    tol: float,
) -> int:
    """Count the knots lying within `tol` of `value`.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    count = 0
    for knot in knots:
        if abs(knot - value) <= tol:
            count += 1
    return count


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _get_unique_knots_and_multiplicity_impl(
    knots: npt.NDArray[np.float64],
    tol: float,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
    """Group adjacent knots closer than `tol` and count each group.

    Each group is represented by its first knot. The scan is linear and relies
    on the knots being sorted.

    Args:
        knots (npt.NDArray[np.float64]): Non-decreasing knot vector.
        tol (float): Tolerance for grouping adjacent knots.

    Returns:
        tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]: Distinct knot values
            and their multiplicities, both of the same length.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    n = knots.size
    unique_knots = np.empty(n, dtype=np.float64)
    mults = np.zeros(n, dtype=np.int_)

    j = -1
    for i in range(n):
        if j >= 0 and abs(knots[i] - knots[i - 1]) <= tol:
            mults[j] += 1
        else:
            j += 1
            unique_knots[j] = knots[i]
            mults[j] = 1

    return unique_knots[: j + 1].copy(), mults[: j + 1].copy()


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _are_valid_knots_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    num_control_points: int,
    unset_value: float,
    mult_tol: float,
    eps: float,
) -> bool:
    """Check a knot vector against a degree and a number of control points.

    The knot vector must be non-empty, hold at least `2*(degree+1)` values and
    exactly `num_control_points + degree + 1` of them, contain only finite set
    values, be non-decreasing up to `eps` and, if any end knot is repeated,
    have its first and last `degree+1` values constant up to `eps`.

    Args:
        knots (npt.NDArray[np.float64]): Knot vector.
        degree (int): Curve degree.
        num_control_points (int): Number of control points.
        unset_value (float): Sentinel for unset doubles.
        mult_tol (float): Tolerance for the end-knot multiplicity check.
        eps (float): Tolerance for ordering and clamping checks.

    Returns:
        bool: Whether the knot vector is valid. Never raises.
    """
    count = knots.size
    if count == 0:
        return False
    if count < 2 * (degree + 1):
        return False
    if num_control_points + degree + 1 != count:
        return False

    for knot in knots:
        if knot == unset_value or not np.isfinite(knot):
            return False

    ends_repeated = (
        _count_multiplicity_impl(knots, knots[0], mult_tol) > 1
        or _count_multiplicity_impl(knots, knots[count - 1], mult_tol) > 1
    )

    previous = knots[0]
    for i in range(count):
        if ends_repeated:
            if i < degree + 1 and abs(knots[i] - previous) > eps:
                return False
            if i > count - degree - 1 and abs(knots[i] - previous) > eps:
                return False
        if knots[i] < previous - eps:
            return False
        previous = knots[i]

    return True


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call."""
    knots_dummy = np.array([0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.25, 0.75], dtype=np.float64)
    degree_dummy = 2
    tol_dummy = 1e-10

    _find_span_impl(knots_dummy, degree_dummy, 0.25, tol_dummy)
    _find_spans_impl(knots_dummy, degree_dummy, pts_dummy, tol_dummy)
    _count_multiplicity_impl(knots_dummy, 0.0, tol_dummy)
    _get_unique_knots_and_multiplicity_impl(knots_dummy, tol_dummy)
    _are_valid_knots_impl(knots_dummy, degree_dummy, 4, -1.0e308, 1e-3, tol_dummy)


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_are_valid_knots_impl",
    "_count_multiplicity_impl",
    "_find_span_impl",
    "_find_spans_impl",
    "_get_unique_knots_and_multiplicity_impl",
]

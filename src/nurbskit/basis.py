"""Evaluation of B-spline basis functions and their derivatives.

The functions in this module validate their input and delegate the actual
computation to the numba kernels in `_basis_impl`.
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from ._basis_impl import (
    _compute_basis_function_derivatives_impl,
    _compute_basis_functions_impl,
    _compute_one_basis_function_impl,
)
from ._knots_impl import _find_span_impl
from .knots import KnotVector
from .tolerance import EPSILON


def _as_knot_array(knots: KnotVector | npt.ArrayLike, degree: int) -> npt.NDArray[np.float64]:
    """Convert knots to a contiguous float64 array and check them against a degree.

    Args:
        knots (KnotVector | npt.ArrayLike): Knot vector.
        degree (int): Degree the knots are used with.

    Returns:
        npt.NDArray[np.float64]: Knot values.

    Raises:
        ValueError: If degree is negative, there are fewer than `2*degree+2`
            knots or the knots are decreasing.
        TypeError: If knots is not one-dimensional.
    """
    if degree < 0:
        raise ValueError("degree must be non-negative")

    values = knots.values if isinstance(knots, KnotVector) else np.asarray(knots, np.float64)
    if values.ndim != 1:
        raise TypeError("knots must be a 1D array")
    if values.size < 2 * degree + 2:
        raise ValueError("knots must have at least 2*degree+2 elements")
    if np.any(np.diff(values) < -EPSILON):
        raise ValueError("knots must be non-decreasing")
    return np.ascontiguousarray(values, dtype=np.float64)


def _check_span(knots: npt.NDArray[np.float64], degree: int, span: int) -> None:
    """Raise if the span index is outside `[degree, len(knots) - degree - 2]`."""
    last = knots.size - degree - 2
    if span < degree or span > last:
        raise ValueError(f"span must be between {degree} and {last}. Got {span}")


def compute_basis_functions(
    degree: int,
    knots: KnotVector | npt.ArrayLike,
    span: int,
    t: float,
) -> npt.NDArray[np.float64]:
    """Evaluate the non-vanishing basis functions at a parameter.

    Args:
        degree (int): Curve degree.
        knots (KnotVector | npt.ArrayLike): Knot vector.
        span (int): Knot span containing `t`.
        t (float): Parameter.

    Returns:
        npt.NDArray[np.float64]: The `degree+1` values
            `N[span-degree], ..., N[span]` at `t`. They sum to one.

    Raises:
        ValueError: If degree, knots or span are invalid.

    Example:
        >>> knots = [0, 0, 0, 1, 2, 3, 4, 4, 5, 5, 5]
        >>> compute_basis_functions(2, knots, 4, 2.5)
        array([0.125, 0.75 , 0.125])
    """
    knots_arr = _as_knot_array(knots, degree)
    _check_span(knots_arr, degree, span)
    return _compute_basis_functions_impl(int(degree), knots_arr, int(span), float(t))


def compute_basis_functions_at(
    degree: int,
    knots: KnotVector | npt.ArrayLike,
    t: float,
) -> tuple[int, npt.NDArray[np.float64]]:
    """Locate the span of a parameter and evaluate the basis functions there.

    Args:
        degree (int): Curve degree.
        knots (KnotVector | npt.ArrayLike): Knot vector.
        t (float): Parameter.

    Returns:
        tuple[int, npt.NDArray[np.float64]]: Span index and basis values.
    """
    knots_arr = _as_knot_array(knots, degree)
    span = int(_find_span_impl(knots_arr, int(degree), float(t), EPSILON))
    return span, _compute_basis_functions_impl(int(degree), knots_arr, span, float(t))


def compute_basis_function_derivatives(
    span: int,
    t: float,
    degree: int,
    order: int,
    knots: KnotVector | npt.ArrayLike,
) -> npt.NDArray[np.float64]:
    """Evaluate the non-vanishing basis functions and their derivatives.

    Args:
        span (int): Knot span containing `t`.
        t (float): Parameter.
        degree (int): Curve degree.
        order (int): Highest derivative order. Must be non-negative. Rows above
            `degree` are zero.
        knots (KnotVector | npt.ArrayLike): Knot vector.

    Returns:
        npt.NDArray[np.float64]: Array of shape (order+1, degree+1); row `k`
            holds the `k`-th derivatives.

    Raises:
        ValueError: If order is negative or degree, knots or span are invalid.
    """
    if order < 0:
        raise ValueError("order must be non-negative")
    knots_arr = _as_knot_array(knots, degree)
    _check_span(knots_arr, degree, span)
    return _compute_basis_function_derivatives_impl(
        int(span), float(t), int(degree), int(order), knots_arr
    )


def compute_one_basis_function(
    degree: int,
    knots: KnotVector | npt.ArrayLike,
    index: int,
    t: float,
) -> float:
    """Evaluate the single basis function `N[index, degree]` at a parameter.

    Args:
        degree (int): Curve degree.
        knots (KnotVector | npt.ArrayLike): Knot vector.
        index (int): Basis function index, between 0 and
            `len(knots) - degree - 2`.
        t (float): Parameter.

    Returns:
        float: Value of the basis function.

    Raises:
        ValueError: If the index is out of range.
    """
    knots_arr = _as_knot_array(knots, degree)
    n_basis = knots_arr.size - degree - 1
    if index < 0 or index >= n_basis:
        raise ValueError(f"index must be between 0 and {n_basis - 1}. Got {index}")
    return float(
        _compute_one_basis_function_impl(int(degree), knots_arr, int(index), float(t), EPSILON)
    )


__all__ = [
    "compute_basis_function_derivatives",
    "compute_basis_functions",
    "compute_basis_functions_at",
    "compute_one_basis_function",
]

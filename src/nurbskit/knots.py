"""Knot vectors for B-spline and NURBS curves and surfaces.

This module provides the immutable `KnotVector` type, with span search,
validity checks, multiplicity analysis, normalization and reversal, together
with generators for uniform clamped, unclamped and periodic knot vectors.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, cast, overload

import numpy as np
import numpy.typing as npt

from ._knots_impl import (
    _are_valid_knots_impl,
    _count_multiplicity_impl,
    _find_span_impl,
    _find_spans_impl,
    _get_unique_knots_and_multiplicity_impl,
)
from .tolerance import EPSILON, MAX_TOLERANCE, UNSET_VALUE


class KnotVector:
    """An immutable, non-decreasing sequence of parameter values.

    The values are stored in a read-only float64 array; operations that
    change the knots (normalization, reversal, refinement) always return new
    instances.

    Attributes:
        _knots (npt.NDArray[np.float64]): Read-only knot values.
    """

    _knots: npt.NDArray[np.float64]

    def __init__(self, knots: npt.ArrayLike | KnotVector) -> None:
        """Initialize a knot vector.

        The values are copied, so later changes to `knots` do not affect the
        new instance. No ordering check is done here: use `is_valid` to query
        validity against a degree and a number of control points.

        Args:
            knots (npt.ArrayLike | KnotVector): Knot values.

        Raises:
            TypeError: If the knots are not a 1D sequence of numbers.
        """
        if isinstance(knots, KnotVector):
            values = knots.values.copy()
        else:
            try:
                values = np.array(knots, dtype=np.float64)
            except (TypeError, ValueError) as err:
                raise TypeError("knots must be a 1D sequence of numbers") from err
        if values.ndim != 1:
            raise TypeError("knots must be a 1D sequence of numbers")

        values = np.ascontiguousarray(values)
        values.flags.writeable = False
        self._knots = values

    @property
    def values(self) -> npt.NDArray[np.float64]:
        """Get the (read-only) knot values.

        Returns:
            npt.NDArray[np.float64]: Knot values.
        """
        return self._knots

    @property
    def domain(self) -> float:
        """Get the length of the full knot range, `last - first`.

        Returns:
            float: Difference between the last and first knots.

        Raises:
            ValueError: If the knot vector is empty.
        """
        if self._knots.size == 0:
            raise ValueError("knot vector is empty")
        return float(self._knots[-1] - self._knots[0])

    def get_domain(self, degree: int) -> tuple[float, float]:
        """Get the parametric domain of a curve of the given degree.

        The domain spans from the `degree`-th knot to the `degree`-th knot
        counted from the end. For clamped knot vectors this is the full range.

        Args:
            degree (int): Curve degree.

        Returns:
            tuple[float, float]: Start and end of the domain.
        """
        self._check_degree(degree)
        return float(self._knots[degree]), float(self._knots[-degree - 1])

    def _check_degree(self, degree: int) -> None:
        """Raise if the knot vector is too short for the degree."""
        if degree < 0:
            raise ValueError("degree must be non-negative")
        if self._knots.size < 2 * degree + 2:
            raise ValueError("knots must have at least 2*degree+2 elements")

    def span(self, degree: int, t: float) -> int:
        """Find the knot span containing a parameter.

        Parameters within `EPSILON` of either domain end are assigned to the
        first or last span, so the result always lies in
        `[degree, len(knots) - degree - 2]`.

        Args:
            degree (int): Curve degree.
            t (float): Parameter.

        Returns:
            int: Span index `i` such that `knots[i] <= t < knots[i+1]`.

        Raises:
            ValueError: If the knot vector is too short for the degree.
        """
        self._check_degree(degree)
        return int(_find_span_impl(self._knots, degree, float(t), EPSILON))

    def spans(self, degree: int, pts: npt.ArrayLike) -> npt.NDArray[np.int_]:
        """Vectorized version of `span` over an array of parameters.

        Args:
            degree (int): Curve degree.
            pts (npt.ArrayLike): Parameters.

        Returns:
            npt.NDArray[np.int_]: Span indices with the same shape as `pts`.
        """
        self._check_degree(degree)
        pts_arr = np.asarray(pts, dtype=np.float64)
        flat = np.ascontiguousarray(pts_arr.ravel())
        return cast(
            npt.NDArray[np.int_],
            _find_spans_impl(self._knots, degree, flat, EPSILON).reshape(pts_arr.shape),
        )

    def is_valid(self, degree: int, num_control_points: int) -> bool:
        """Check whether the knots can define a curve of the given size.

        Args:
            degree (int): Curve degree.
            num_control_points (int): Number of control points.

        Returns:
            bool: True when the length matches `num_control_points + degree + 1`,
                the values are finite and non-decreasing and, if the end knots
                are repeated, the first and last `degree+1` values are clamped.
                This query never raises.
        """
        if degree < 0 or num_control_points < 0:
            return False
        return bool(
            _are_valid_knots_impl(
                self._knots,
                int(degree),
                int(num_control_points),
                UNSET_VALUE,
                MAX_TOLERANCE,
                EPSILON,
            )
        )

    def is_clamped(self, degree: int) -> bool:
        """Check if the first and last `degree+1` knots are repeated.

        Args:
            degree (int): Curve degree.

        Returns:
            bool: Whether the knot vector is clamped at both ends.
        """
        self._check_degree(degree)
        k = self._knots
        return bool(abs(k[0] - k[degree]) <= EPSILON and abs(k[-1] - k[-degree - 1]) <= EPSILON)

    def is_periodic(self, degree: int) -> bool:
        """Check if the knot vector is periodic for the given degree.

        A periodic knot vector has no repeated end knots and its first
        `2*degree` knot spacings are repeated, shifted by the number of
        domain intervals, at the end of the vector.

        Args:
            degree (int): Curve degree.

        Returns:
            bool: Whether the knot vector is periodic.
        """
        self._check_degree(degree)
        if degree < 1:
            return False
        k = self._knots
        if not (k[degree] - k[0] > EPSILON and k[-1] - k[-degree - 1] > EPSILON):
            return False

        spacings = np.diff(k)
        n_domain = spacings.size - 2 * degree
        if n_domain < 1:
            return False
        head = spacings[: 2 * degree]
        tail = spacings[n_domain : n_domain + 2 * degree]
        return bool(np.allclose(head, tail, rtol=0.0, atol=MAX_TOLERANCE))

    def multiplicity(self, knot: float) -> int:
        """Count how many knots coincide with a value within `MAX_TOLERANCE`.

        Args:
            knot (float): Knot value.

        Returns:
            int: Multiplicity (0 if the value is not a knot).
        """
        return int(_count_multiplicity_impl(self._knots, float(knot), MAX_TOLERANCE))

    def unique_knots_and_multiplicities(
        self,
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
        """Get the distinct knot values and their multiplicities.

        Adjacent knots closer than `EPSILON` are grouped together.

        Returns:
            tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]: Distinct values
                and multiplicities, in increasing order.
        """
        return cast(
            tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]],
            _get_unique_knots_and_multiplicity_impl(self._knots, EPSILON),
        )

    def multiplicities(self) -> dict[float, int]:
        """Get an ordered mapping from distinct knot value to multiplicity.

        Returns:
            dict[float, int]: Multiplicity of each distinct knot.
        """
        unique_knots, mults = self.unique_knots_and_multiplicities()
        return {float(k): int(m) for k, m in zip(unique_knots, mults, strict=True)}

    def normalize(self) -> KnotVector:
        """Remap the knots onto `[0, 1]`.

        Returns:
            KnotVector: New knot vector `(v - first) / (last - first)`.

        Raises:
            ValueError: If the knot vector is empty or has zero length.
        """
        if self._knots.size == 0:
            raise ValueError("knot vector is empty")
        first, last = self._knots[0], self._knots[-1]
        if last - first <= 0.0:
            raise ValueError("cannot normalize a knot vector with zero length")
        return KnotVector((self._knots - first) / (last - first))

    def reverse(self) -> KnotVector:
        """Reverse the knot spacing, keeping the first knot in place.

        Returns:
            KnotVector: New knot vector whose spacings are those of this one in
                reverse order, starting at the same first knot.
        """
        if self._knots.size == 0:
            return KnotVector(self._knots)
        spacings = np.diff(self._knots)[::-1]
        reversed_knots = np.empty_like(self._knots)
        reversed_knots[0] = self._knots[0]
        reversed_knots[1:] = self._knots[0] + np.cumsum(spacings)
        return KnotVector(reversed_knots)

    def copy(self) -> KnotVector:
        """Return an independent copy of the knot vector."""
        return KnotVector(self._knots.copy())

    def equals(self, other: KnotVector, tol: float = EPSILON) -> bool:
        """Compare two knot vectors value by value within a tolerance."""
        if self._knots.shape != other.values.shape:
            return False
        return bool(np.all(np.abs(self._knots - other.values) <= tol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KnotVector):
            return NotImplemented
        return self.equals(other)

    def __len__(self) -> int:
        return int(self._knots.size)

    @overload
    def __getitem__(self, index: int) -> float: ...

    @overload
    def __getitem__(self, index: slice) -> KnotVector: ...

    def __getitem__(self, index: int | slice) -> float | KnotVector:
        if isinstance(index, slice):
            return KnotVector(self._knots[index])
        return float(self._knots[index])

    def __iter__(self) -> Iterator[float]:
        return iter(self._knots.tolist())

    def __array__(self, dtype: npt.DTypeLike = None, copy: bool | None = None) -> npt.NDArray[Any]:
        if dtype is None:
            return self._knots.copy()
        return self._knots.astype(dtype)

    def __repr__(self) -> str:
        return f"KnotVector({self._knots.tolist()})"


def create_uniform_knot_vector(
    degree: int,
    num_control_points: int,
    clamped: bool = True,
) -> KnotVector:
    """Create a uniform knot vector on `[0, 1]`.

    A clamped vector repeats `0` and `1` `degree+1` times and places the
    `num_control_points - degree - 1` interior knots evenly in between. An
    unclamped vector has `num_control_points + degree + 1` evenly spaced knots.

    Args:
        degree (int): Curve degree. Must be at least 1.
        num_control_points (int): Number of control points. Must be at least
            `degree + 1`.
        clamped (bool): Whether to repeat the end knots. Defaults to True.

    Returns:
        KnotVector: The uniform knot vector.

    Raises:
        ValueError: If degree or num_control_points are invalid.

    Example:
        >>> list(create_uniform_knot_vector(2, 4))
        [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0]
    """
    if degree < 1:
        raise ValueError("degree must be at least 1")
    if num_control_points < degree + 1:
        raise ValueError("num_control_points must be at least degree+1")

    if clamped:
        n_repeat = degree
        n_values = num_control_points - degree + 1
    else:
        n_repeat = 0
        n_values = num_control_points + degree + 1

    return KnotVector(
        np.concatenate(
            (
                np.zeros(n_repeat),
                np.linspace(0.0, 1.0, n_values),
                np.ones(n_repeat),
            )
        )
    )


def create_uniform_periodic_knot_vector(degree: int, num_control_points: int) -> KnotVector:
    """Create a uniform periodic knot vector whose domain is `[0, 1]`.

    The knots are evenly spaced with step `1 / (num_control_points - degree)`,
    the `degree`-th knot is `0` and the vector extends beyond the domain on
    both sides.

    Args:
        degree (int): Curve degree. Must be at least 2.
        num_control_points (int): Number of control points (including the
            wrapped ones). Must be greater than `degree`.

    Returns:
        KnotVector: The periodic knot vector.

    Raises:
        ValueError: If degree or num_control_points are invalid.
    """
    if degree < 2:  # noqa: PLR2004
        raise ValueError("degree must be at least 2")
    if num_control_points <= degree:
        raise ValueError("num_control_points must be greater than degree")

    delta = 1.0 / (num_control_points - degree)
    indices = np.arange(num_control_points + degree + 1, dtype=np.float64) - degree
    return KnotVector(indices * delta)


__all__ = [
    "KnotVector",
    "create_uniform_knot_vector",
    "create_uniform_periodic_knot_vector",
]

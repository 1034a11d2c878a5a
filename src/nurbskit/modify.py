"""Shape-preserving and shape-changing modifications of curves and surfaces.

Knot refinement, splitting, Bézier decomposition and degree elevation never
change the geometry; they only change its representation. Reversal,
transformation and closing produce new geometry. All functions return new
objects of the same type as their input.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, TypeVar

import numpy as np
import numpy.typing as npt

from ._knots_impl import _get_unique_knots_and_multiplicity_impl
from ._modify_impl import _elevate_degree_impl, _knot_refine_impl
from .knots import create_uniform_periodic_knot_vector
from .tolerance import EPSILON

if TYPE_CHECKING:
    from .curve import NurbsCurve
    from .surface import NurbsSurface

CurveT = TypeVar("CurveT", bound="NurbsCurve")
SurfaceT = TypeVar("SurfaceT", bound="NurbsSurface")


class SurfaceDirection(Enum):
    """Parametric direction of a tensor-product surface."""

    U = "u"
    V = "v"


def _check_insertion_knots(
    knots_to_insert: npt.ArrayLike, domain: tuple[float, float]
) -> npt.NDArray[np.float64]:
    """Sort the knots to insert and check they are strictly inside the domain.

    Raises:
        ValueError: If a knot is not finite or not inside the open domain.
    """
    values = np.sort(np.asarray(knots_to_insert, dtype=np.float64).ravel())
    if values.size == 0:
        return values
    if not np.all(np.isfinite(values)):
        raise ValueError("knots to insert must be finite")
    start, end = domain
    if values[0] <= start or values[-1] >= end:
        raise ValueError(f"knots to insert must lie strictly inside the domain ({start}, {end})")
    return np.ascontiguousarray(values)


def _refine(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    new_knots: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    if new_knots.size == 0:
        return knots.copy(), ctrl_pts.copy()
    return _knot_refine_impl(
        degree,
        np.ascontiguousarray(knots),
        np.ascontiguousarray(ctrl_pts),
        new_knots,
        EPSILON,
    )


def _clamp_homogeneous(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Clamp the knot vector at both domain ends without changing the curve.

    The domain ends are inserted until they have multiplicity `degree+1`;
    the knots and control points outside the domain are then dropped.
    """
    start, end = knots[degree], knots[knots.size - degree - 1]
    to_insert = []
    for value in (start, end):
        multiplicity = int(np.count_nonzero(np.abs(knots - value) <= EPSILON))
        to_insert.extend([value] * max(degree + 1 - multiplicity, 0))
    new_knots, new_pts = _refine(degree, knots, ctrl_pts, np.array(to_insert, dtype=np.float64))

    first = int(np.searchsorted(new_knots, start - EPSILON, side="left"))
    last = int(np.searchsorted(new_knots, end + EPSILON, side="right"))
    return new_knots[first:last].copy(), new_pts[first : last - degree - 1].copy()


def _split_knots(
    knots: npt.NDArray[np.float64], degree: int, t: float
) -> tuple[npt.NDArray[np.float64], float]:
    """Knots to insert so that `t` reaches multiplicity `degree+1`.

    Returns:
        tuple[npt.NDArray[np.float64], float]: The knots to insert and the
            split parameter, snapped onto an existing knot within `EPSILON`.
    """
    close = np.abs(knots - t) <= EPSILON
    if np.any(close):
        t = float(knots[np.argmax(close)])
    multiplicity = int(np.count_nonzero(close))
    return np.full(max(degree + 1 - multiplicity, 0), t, dtype=np.float64), t


def _split_homogeneous(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
    t: float,
) -> tuple[
    tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]],
    tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]],
]:
    """Split homogeneous control points (first axis) at an interior parameter."""
    knots, ctrl_pts = _clamp_homogeneous(degree, knots, ctrl_pts)
    to_insert, t = _split_knots(knots, degree, t)
    new_knots, new_pts = _refine(degree, knots, ctrl_pts, to_insert)

    k_start = int(np.searchsorted(new_knots, t, side="left"))
    k_end = k_start + degree + 1

    left_knots = new_knots[:k_end]
    right_knots = new_knots[k_start:]
    n_left = left_knots.size - degree - 1
    n_right = right_knots.size - degree - 1
    return (left_knots, new_pts[:n_left]), (right_knots, new_pts[new_pts.shape[0] - n_right :])


def _split_at_breaks(
    degree: int,
    knots: npt.NDArray[np.float64],
    ctrl_pts: npt.NDArray[np.float64],
) -> list[tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]]:
    """Cut clamped homogeneous data at interior knots of multiplicity `degree+1`.

    Returns:
        list[tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]]: Knots
            and control points of each piece, in order. A curve without such
            knots gives a single piece.
    """
    unique_knots, mults = _get_unique_knots_and_multiplicity_impl(knots, EPSILON)
    pieces = []
    for value, mult in zip(unique_knots[1:-1], mults[1:-1], strict=True):
        if mult > degree:
            left, (knots, ctrl_pts) = _split_homogeneous(degree, knots, ctrl_pts, float(value))
            pieces.append(left)
    pieces.append((knots, ctrl_pts))
    return pieces


def _check_split_parameter(t: float, domain: tuple[float, float]) -> float:
    t = float(t)
    start, end = domain
    if not start + EPSILON < t < end - EPSILON:
        raise ValueError(f"split parameter {t} must lie strictly inside the domain ({start}, {end})")
    return t


def curve_knot_refine(curve: CurveT, knots_to_insert: npt.ArrayLike) -> CurveT:
    """Insert knots into a curve without changing its shape.

    Args:
        curve (NurbsCurve): Curve to refine.
        knots_to_insert (npt.ArrayLike): Knots to insert, in any order and
            possibly repeated. An empty list returns a copy of the curve.

    Returns:
        NurbsCurve: Refined curve with `len(knots_to_insert)` more control points.

    Raises:
        ValueError: If a knot lies outside the open curve domain.
    """
    new_knots = _check_insertion_knots(knots_to_insert, curve.domain)
    knots, pts = _refine(curve.degree, curve.knots.values, curve.homogeneous_points, new_knots)
    return type(curve).from_homogeneous(curve.degree, knots, pts)


def split_curve(curve: CurveT, t: float) -> tuple[CurveT, CurveT]:
    """Split a curve in two at a parameter.

    The parameter is inserted until its multiplicity equals `degree+1`, and
    the knots and control points are divided there. The two halves keep the
    original parametrization: the first covers `[start, t]`, the second
    `[t, end]`.

    Args:
        curve (NurbsCurve): Curve to split.
        t (float): Split parameter, strictly inside the domain.

    Returns:
        tuple[NurbsCurve, NurbsCurve]: The two halves.

    Raises:
        ValueError: If `t` is not strictly inside the domain.
    """
    t = _check_split_parameter(t, curve.domain)
    (lk, lp), (rk, rp) = _split_homogeneous(
        curve.degree, curve.knots.values, curve.homogeneous_points, t
    )
    cls = type(curve)
    return (
        cls.from_homogeneous(curve.degree, lk, lp),
        cls.from_homogeneous(curve.degree, rk, rp),
    )


def split_curve_at(curve: CurveT, parameters: npt.ArrayLike) -> list[CurveT]:
    """Split a curve at several parameters.

    Args:
        curve (NurbsCurve): Curve to split.
        parameters (npt.ArrayLike): Split parameters inside the domain, in any
            order. Parameters closer than `EPSILON` count as one.

    Returns:
        list[NurbsCurve]: One more piece than distinct parameters.

    Raises:
        ValueError: If a parameter is not strictly inside the domain.
    """
    values: list[float] = []
    for t in np.sort(np.asarray(parameters, dtype=np.float64).ravel()):
        if not values or t - values[-1] > EPSILON:
            values.append(float(t))
    pieces: list[CurveT] = []
    remainder = curve
    for t in values:
        _check_split_parameter(float(t), curve.domain)
        left, remainder = split_curve(remainder, float(t))
        pieces.append(left)
    pieces.append(remainder)
    return pieces


def sub_curve(curve: CurveT, start: float, end: float) -> CurveT:
    """Extract the part of a curve between two parameters.

    Args:
        curve (NurbsCurve): Curve to trim.
        start (float): Start parameter.
        end (float): End parameter, greater than `start`.

    Returns:
        NurbsCurve: Curve on `[start, end]`.

    Raises:
        ValueError: If the interval is empty or not inside the domain.
    """
    start, end = float(start), float(end)
    domain_start, domain_end = curve.domain
    if end - start <= EPSILON:
        raise ValueError("sub-curve end must be greater than its start")
    if start < domain_start - EPSILON or end > domain_end + EPSILON:
        raise ValueError(f"[{start}, {end}] is not inside the domain [{domain_start}, {domain_end}]")

    result = curve.copy()
    if start > domain_start + EPSILON:
        result = split_curve(result, start)[1]
    if end < domain_end - EPSILON:
        result = split_curve(result, end)[0]
    return result


def decompose_curve_into_beziers(curve: CurveT, normalize: bool = False) -> list[CurveT]:
    """Decompose a curve into its Bézier segments.

    Unclamped curves are clamped first. Every interior knot is then raised to
    multiplicity `degree+1`, after which each knot span owns its own group of
    `degree+1` control points.

    Args:
        curve (NurbsCurve): Curve to decompose.
        normalize (bool): If True, every segment is parametrized on `[0, 1]`;
            otherwise it keeps its knot span. Defaults to False.

    Returns:
        list[NurbsCurve]: One Bézier curve per non-empty knot span of the domain.
    """
    p = curve.degree
    knots, pts = _clamp_homogeneous(p, curve.knots.values, curve.homogeneous_points)

    unique_knots, mults = _get_unique_knots_and_multiplicity_impl(knots, EPSILON)
    to_insert = [
        np.full(p + 1 - int(m), k)
        for k, m in zip(unique_knots[1:-1], mults[1:-1], strict=True)
        if m < p + 1
    ]
    new_knots = np.concatenate(to_insert) if to_insert else np.empty(0, dtype=np.float64)
    knots, pts = _refine(p, knots, pts, new_knots)

    cls = type(curve)
    segments: list[CurveT] = []
    for i in range(unique_knots.size - 1):
        a, b = (0.0, 1.0) if normalize else (float(unique_knots[i]), float(unique_knots[i + 1]))
        seg_knots = np.concatenate((np.full(p + 1, a), np.full(p + 1, b)))
        first = i * (p + 1)
        segments.append(cls.from_homogeneous(p, seg_knots, pts[first : first + p + 1]))
    return segments


def elevate_curve_degree(curve: CurveT, final_degree: int) -> CurveT:
    """Raise the degree of a curve without changing its shape.

    Unclamped curves are clamped first.

    Args:
        curve (NurbsCurve): Curve to elevate.
        final_degree (int): Target degree, not lower than the current one.

    Returns:
        NurbsCurve: Clamped curve of degree `final_degree`. Every distinct knot
            gains `final_degree - degree` multiplicity.

    Raises:
        ValueError: If `final_degree` is lower than the degree.
    """
    times = int(final_degree) - curve.degree
    if times < 0:
        raise ValueError(
            f"final_degree ({final_degree}) cannot be lower than the degree ({curve.degree})"
        )
    if times == 0:
        return curve.copy()

    knots, pts = _clamp_homogeneous(curve.degree, curve.knots.values, curve.homogeneous_points)
    # The kernel handles interior multiplicities up to the degree; pieces
    # joined at full-multiplicity knots are elevated separately.
    new_degree = int(final_degree)
    joined_knots: list[npt.NDArray[np.float64]] = []
    joined_pts: list[npt.NDArray[np.float64]] = []
    for piece_knots, piece_pts in _split_at_breaks(curve.degree, knots, pts):
        piece_knots, piece_pts = _elevate_degree_impl(
            curve.degree,
            np.ascontiguousarray(piece_knots),
            np.ascontiguousarray(piece_pts),
            times,
            EPSILON,
        )
        if joined_knots:
            joined_knots[-1] = joined_knots[-1][: -(new_degree + 1)]
        joined_knots.append(piece_knots)
        joined_pts.append(piece_pts)
    return type(curve).from_homogeneous(
        new_degree, np.concatenate(joined_knots), np.concatenate(joined_pts)
    )


def reverse_curve(curve: CurveT) -> CurveT:
    """Reverse the direction of a curve.

    The reversed curve `R` satisfies `R(start + end - t) = C(t)`.
    """
    return type(curve).from_homogeneous(
        curve.degree, curve.knots.reverse(), curve.homogeneous_points[::-1]
    )


def _apply_transform(
    points: npt.NDArray[np.float64], matrix: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """Apply a `(d+1, d+1)` homogeneous transformation to points of shape (..., d)."""
    dim = points.shape[-1]
    mat = np.asarray(matrix, dtype=np.float64)
    if mat.shape != (dim + 1, dim + 1):
        raise ValueError(f"transformation matrix must have shape {(dim + 1, dim + 1)}")

    lifted = np.concatenate((points, np.ones((*points.shape[:-1], 1))), axis=-1)
    mapped = lifted @ mat.T
    scale = mapped[..., -1:]
    if np.any(np.abs(scale) < EPSILON):
        raise ValueError("transformation maps a control point to infinity")
    return mapped[..., :-1] / scale


def transform_curve(curve: CurveT, matrix: npt.ArrayLike) -> CurveT:
    """Apply a homogeneous transformation matrix to the control points.

    Args:
        curve (NurbsCurve): Curve to transform.
        matrix (npt.ArrayLike): Matrix of shape (dim+1, dim+1), acting on
            column vectors `(x, 1)`.

    Returns:
        NurbsCurve: Transformed curve with the same weights and knots.

    Raises:
        ValueError: If the matrix has the wrong shape.
    """
    pts = _apply_transform(curve.control_points, matrix)
    return type(curve)(curve.degree, curve.knots, pts, curve.weights)


def close_curve(curve: CurveT) -> CurveT:
    """Build a closed periodic curve from the control polygon of a curve.

    The first `degree` control points (and weights) are appended at the end
    and a uniform periodic knot vector is used, so the result is closed and
    smooth at the seam. The new domain is `[0, 1]`.

    Raises:
        ValueError: If the degree is lower than 2.
    """
    p = curve.degree
    pts = np.vstack((curve.control_points, curve.control_points[:p]))
    weights = np.concatenate((curve.weights, curve.weights[:p]))
    knots = create_uniform_periodic_knot_vector(p, pts.shape[0])
    return type(curve)(p, knots, pts, weights)


def surface_knot_refine(
    surface: SurfaceT,
    knots_to_insert: npt.ArrayLike,
    direction: SurfaceDirection,
) -> SurfaceT:
    """Insert knots into a surface along one direction without changing its shape.

    Every row (or column) of control points is refined as a curve.

    Args:
        surface (NurbsSurface): Surface to refine.
        knots_to_insert (npt.ArrayLike): Knots to insert in that direction.
        direction (SurfaceDirection): Direction of the knots.

    Returns:
        NurbsSurface: Refined surface.

    Raises:
        ValueError: If a knot lies outside the open domain of that direction.
    """
    direction = SurfaceDirection(direction)
    pw = surface.homogeneous_points
    if direction is SurfaceDirection.U:
        degree, knots, domain = surface.degree_u, surface.knots_u.values, surface.domain_u
        # Refine columns as curves along u.
        pw = np.swapaxes(pw, 0, 1)
    else:
        degree, knots, domain = surface.degree_v, surface.knots_v.values, surface.domain_v

    new_knots = _check_insertion_knots(knots_to_insert, domain)
    rows = [_refine(degree, knots, row, new_knots) for row in pw]
    out_knots = rows[0][0]
    out_pts = np.stack([row[1] for row in rows])

    cls = type(surface)
    if direction is SurfaceDirection.U:
        return cls.from_homogeneous(
            surface.degree_u,
            surface.degree_v,
            out_knots,
            surface.knots_v,
            np.swapaxes(out_pts, 0, 1),
        )
    return cls.from_homogeneous(
        surface.degree_u, surface.degree_v, surface.knots_u, out_knots, out_pts
    )


def split_surface(
    surface: SurfaceT, t: float, direction: SurfaceDirection
) -> tuple[SurfaceT, SurfaceT]:
    """Split a surface in two along one direction.

    Args:
        surface (NurbsSurface): Surface to split.
        t (float): Split parameter, strictly inside the domain of `direction`.
        direction (SurfaceDirection): Direction of the split parameter.

    Returns:
        tuple[NurbsSurface, NurbsSurface]: The parts before and after `t`.

    Raises:
        ValueError: If `t` is not strictly inside the domain.
    """
    direction = SurfaceDirection(direction)
    pw = surface.homogeneous_points
    if direction is SurfaceDirection.U:
        degree, knots, domain = surface.degree_u, surface.knots_u.values, surface.domain_u
        pw = np.swapaxes(pw, 0, 1)
    else:
        degree, knots, domain = surface.degree_v, surface.knots_v.values, surface.domain_v
    t = _check_split_parameter(t, domain)

    rows = [_split_homogeneous(degree, knots, row, t) for row in pw]
    first_knots, second_knots = rows[0][0][0], rows[0][1][0]
    first_pts = np.stack([row[0][1] for row in rows])
    second_pts = np.stack([row[1][1] for row in rows])

    cls = type(surface)
    du, dv = surface.degree_u, surface.degree_v
    if direction is SurfaceDirection.U:
        return (
            cls.from_homogeneous(du, dv, first_knots, surface.knots_v, np.swapaxes(first_pts, 0, 1)),
            cls.from_homogeneous(
                du, dv, second_knots, surface.knots_v, np.swapaxes(second_pts, 0, 1)
            ),
        )
    return (
        cls.from_homogeneous(du, dv, surface.knots_u, first_knots, first_pts),
        cls.from_homogeneous(du, dv, surface.knots_u, second_knots, second_pts),
    )


__all__ = [
    "SurfaceDirection",
    "close_curve",
    "curve_knot_refine",
    "decompose_curve_into_beziers",
    "elevate_curve_degree",
    "reverse_curve",
    "split_curve",
    "split_curve_at",
    "split_surface",
    "sub_curve",
    "surface_knot_refine",
    "transform_curve",
]

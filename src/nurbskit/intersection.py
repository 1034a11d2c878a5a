"""Curve-curve, curve-plane and curve self-intersections.

Intersections are found in two phases. A broad phase walks bounding box
trees of the curves and collects pairs of small sub-curves whose boxes
overlap. A narrow phase minimizes the distance between each pair within the
sub-curve domains and keeps the minima that are actual intersections.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import NamedTuple, TypeVar

import numpy as np
import numpy.typing as npt

from .bbt import (
    LazyCurveBoundingBoxTree,
    intersect_bounding_box_tree_with_plane,
    intersect_bounding_box_trees,
    self_intersect_bounding_box_tree,
)
from .curve import NurbsCurve
from .optimization import (
    CurvePlaneIntersectionObjective,
    CurvesIntersectionObjective,
    minimize_objective,
)
from .plane import Plane
from .tolerance import MIN_TOLERANCE

logger = logging.getLogger(__name__)

_DUPLICATE_FACTOR = 5.0

R = TypeVar("R", bound=tuple)


class CurvesIntersectionResult(NamedTuple):
    """Intersection between two curves.

    Attributes:
        point_a (npt.NDArray[np.float64]): Point on the first curve.
        point_b (npt.NDArray[np.float64]): Point on the second curve.
        parameter_a (float): Parameter on the first curve.
        parameter_b (float): Parameter on the second curve.
    """

    point_a: npt.NDArray[np.float64]
    point_b: npt.NDArray[np.float64]
    parameter_a: float
    parameter_b: float


class CurvePlaneIntersectionResult(NamedTuple):
    """Intersection between a curve and a plane.

    Attributes:
        point (npt.NDArray[np.float64]): Point on the curve.
        parameter (float): Curve parameter.
    """

    point: npt.NDArray[np.float64]
    parameter: float


def _refine_curve_pair(
    piece_a: NurbsCurve, piece_b: NurbsCurve
) -> tuple[npt.NDArray[np.float64], float]:
    """Minimize the squared distance between two sub-curves inside their domains."""
    objective = CurvesIntersectionObjective(piece_a, piece_b)
    bounds = [piece_a.domain, piece_b.domain]
    guess = [0.5 * (low + high) for low, high in bounds]
    params = minimize_objective(objective, guess, bounds)
    return params, objective.value(params)


def _polish_curve_pair(
    curve_a: NurbsCurve,
    curve_b: NurbsCurve,
    params: npt.NDArray[np.float64],
    bounds: list[tuple[float, float]],
) -> tuple[npt.NDArray[np.float64], float]:
    """Restart the minimization from a sub-curve solution on wider bounds.

    A minimum found on the boundary of a sub-curve domain can be a near miss
    next to an intersection that belongs to a neighbouring sub-curve; on the
    wider bounds it moves onto that intersection.
    """
    objective = CurvesIntersectionObjective(curve_a, curve_b)
    params = minimize_objective(objective, params, bounds)
    return params, objective.value(params)


def _deduplicate(
    results: Iterable[R], key: Callable[[R], npt.ArrayLike], tol: float
) -> list[R]:
    """Drop results whose parameters are closer than `5 * tol` to a kept one."""
    kept: list[R] = []
    kept_keys: list[npt.NDArray[np.float64]] = []
    for result in results:
        params = np.asarray(key(result), dtype=np.float64)
        if any(np.all(np.abs(params - other) < _DUPLICATE_FACTOR * tol) for other in kept_keys):
            continue
        kept.append(result)
        kept_keys.append(params)
    return kept


def _check_tolerance(tol: float) -> None:
    if tol <= 0.0:
        raise ValueError("tol must be positive")


def curve_curve_intersection(
    curve_a: NurbsCurve,
    curve_b: NurbsCurve,
    tol: float = MIN_TOLERANCE,
    seed: int | None = None,
) -> list[CurvesIntersectionResult]:
    """Find the intersections between two curves.

    Args:
        curve_a (NurbsCurve): First curve.
        curve_b (NurbsCurve): Second curve, with the same dimension.
        tol (float): Largest squared distance between the two points of an
            intersection. Defaults to `MIN_TOLERANCE`.
        seed (int | None): Seed for the tree split jitter.

    Returns:
        list[CurvesIntersectionResult]: Intersections sorted by `parameter_a`.

    Raises:
        ValueError: If the curves have different dimensions or `tol` is not
            positive.

    Example:
        >>> a = NurbsCurve(1, [0, 0, 1, 1], [[0, 0, 0], [2, 2, 0]])
        >>> b = NurbsCurve(1, [0, 0, 1, 1], [[0, 2, 0], [2, 0, 0]])
        >>> [round(r.parameter_a, 6) for r in curve_curve_intersection(a, b)]
        [0.5]
    """
    _check_tolerance(tol)
    if curve_a.dimension != curve_b.dimension:
        raise ValueError("curves must have the same dimension")

    rng = np.random.default_rng(seed)
    tree_a = LazyCurveBoundingBoxTree(curve_a, rng=rng)
    tree_b = LazyCurveBoundingBoxTree(curve_b, rng=rng)

    candidates: list[CurvesIntersectionResult] = []
    n_pairs = 0
    for piece_a, piece_b in intersect_bounding_box_trees(tree_a, tree_b, 0.0):
        n_pairs += 1
        params, distance2 = _refine_curve_pair(piece_a, piece_b)
        if distance2 >= tol:
            continue
        (u, v), distance2 = _polish_curve_pair(
            curve_a, curve_b, params, [curve_a.domain, curve_b.domain]
        )
        if distance2 < tol:
            candidates.append(
                CurvesIntersectionResult(curve_a.point_at(u), curve_b.point_at(v), float(u), float(v))
            )

    candidates.sort(key=lambda r: r.parameter_a)
    results = _deduplicate(candidates, lambda r: (r.parameter_a, r.parameter_b), tol)
    logger.debug("%d candidate pairs, %d intersections", n_pairs, len(results))
    return results


def curve_plane_intersection(
    curve: NurbsCurve,
    plane: Plane,
    tol: float = MIN_TOLERANCE,
    seed: int | None = None,
) -> list[CurvePlaneIntersectionResult]:
    """Find the intersections between a 3D curve and a plane.

    Args:
        curve (NurbsCurve): Curve in 3D.
        plane (Plane): Plane.
        tol (float): Largest squared distance from the plane. Defaults to
            `MIN_TOLERANCE`.
        seed (int | None): Seed for the tree split jitter.

    Returns:
        list[CurvePlaneIntersectionResult]: Intersections sorted by parameter.

    Raises:
        ValueError: If the curve is not 3D or `tol` is not positive.
    """
    _check_tolerance(tol)
    if curve.dimension != 3:  # noqa: PLR2004
        raise ValueError("curve-plane intersection needs a 3D curve")

    tree = LazyCurveBoundingBoxTree(curve, seed=seed)
    candidates: list[CurvePlaneIntersectionResult] = []
    n_leaves = 0
    for piece in intersect_bounding_box_tree_with_plane(tree, plane, 0.0):
        n_leaves += 1
        objective = CurvePlaneIntersectionObjective(piece, plane)
        low, high = piece.domain
        params = minimize_objective(objective, [0.5 * (low + high)], [(low, high)])
        if objective.value(params) >= tol:
            continue
        # Polish on the whole curve, see _polish_curve_pair.
        full_objective = CurvePlaneIntersectionObjective(curve, plane)
        params = minimize_objective(full_objective, params, [curve.domain])
        if full_objective.value(params) < tol:
            t = float(params[0])
            candidates.append(CurvePlaneIntersectionResult(curve.point_at(t), t))

    candidates.sort(key=lambda r: r.parameter)
    results = _deduplicate(candidates, lambda r: (r.parameter,), tol)
    logger.debug("%d candidate leaves, %d intersections", n_leaves, len(results))
    return results


def curve_self_intersection(
    curve: NurbsCurve,
    tol: float = MIN_TOLERANCE,
    seed: int | None = None,
) -> list[CurvesIntersectionResult]:
    """Find the points where a curve crosses itself.

    The curve tree is split once and the two halves are intersected. Minima
    whose two parameters coincide, as happens at the split point, are not
    self-intersections and are discarded.

    Args:
        curve (NurbsCurve): Curve to check.
        tol (float): Largest squared distance between the two points of an
            intersection. Defaults to `MIN_TOLERANCE`.
        seed (int | None): Seed for the tree split jitter.

    Returns:
        list[CurvesIntersectionResult]: Self-intersections with
            `parameter_a < parameter_b`, sorted by `parameter_a`.

    Raises:
        ValueError: If `tol` is not positive.
    """
    _check_tolerance(tol)
    tree = LazyCurveBoundingBoxTree(curve, seed=seed)

    candidates: list[CurvesIntersectionResult] = []
    for piece_a, piece_b in self_intersect_bounding_box_tree(tree, 0.0):
        params, distance2 = _refine_curve_pair(piece_a, piece_b)
        if distance2 >= tol or abs(params[0] - params[1]) <= _DUPLICATE_FACTOR * tol:
            continue
        # Keep the two parameters on either side of their midpoint.
        start, end = curve.domain
        mid = 0.5 * float(params[0] + params[1])
        first, second = (start, mid), (mid, end)
        if params[0] > params[1]:
            first, second = second, first
        (u, v), distance2 = _polish_curve_pair(curve, curve, params, [first, second])
        if distance2 >= tol or abs(u - v) <= _DUPLICATE_FACTOR * tol:
            continue
        u, v = min(u, v), max(u, v)
        candidates.append(
            CurvesIntersectionResult(curve.point_at(u), curve.point_at(v), float(u), float(v))
        )

    candidates.sort(key=lambda r: r.parameter_a)
    results = _deduplicate(candidates, lambda r: (r.parameter_a, r.parameter_b), tol)
    logger.debug("%d self-intersections", len(results))
    return results


__all__ = [
    "CurvePlaneIntersectionResult",
    "CurvesIntersectionResult",
    "curve_curve_intersection",
    "curve_plane_intersection",
    "curve_self_intersection",
]

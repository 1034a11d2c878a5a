"""Arc length, closest point, curvature and division of curves."""

from __future__ import annotations

import logging
from functools import cache
from typing import TYPE_CHECKING, cast

import numpy as np
import numpy.typing as npt

from .errors import DegenerateGeometryError
from .evaluation import _clamp_parameter, curve_points_at, rational_curve_derivatives
from .modify import decompose_curve_into_beziers
from .optimization import ChordLengthObjective, minimize_objective
from .tolerance import EPSILON, MAX_TOLERANCE, MIN_TOLERANCE

if TYPE_CHECKING:
    from .curve import NurbsCurve

logger = logging.getLogger(__name__)

_EXTRA_QUADRATURE_POINTS = 17
_MAX_NEWTON_ITERATIONS = 5
_COSINE_TOLERANCE = 0.0005
_MIN_CURVATURE = 1.49e-8


@cache
def _get_gauss_legendre_quadrature(
    n_points: int,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Get the Gauss-Legendre points and weights mapped to `[0, 1]`.

    Args:
        n_points (int): Number of quadrature points.

    Returns:
        tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]: Points in
            `[0, 1]` and weights summing to one.
    """
    points, weights = np.polynomial.legendre.leggauss(n_points)
    return 0.5 * (points + 1.0), 0.5 * weights


def _integrate_speed(curve: NurbsCurve, start: float, end: float) -> float:
    """Integrate `|C'(t)|` over `[start, end]` with `degree + 17` Gauss points."""
    if end - start <= 0.0:
        return 0.0
    points, weights = _get_gauss_legendre_quadrature(curve.degree + _EXTRA_QUADRATURE_POINTS)
    params = start + (end - start) * points
    speeds = np.array(
        [np.linalg.norm(rational_curve_derivatives(curve, t, 1)[1]) for t in params]
    )
    return float((end - start) * np.dot(weights, speeds))


def _length_segments(curve: NurbsCurve) -> list[tuple[NurbsCurve, float, float]]:
    """Split a curve into its Bézier segments for arc-length integration."""
    return [(bezier, *bezier.domain) for bezier in decompose_curve_into_beziers(curve)]


def bezier_curve_length(bezier: NurbsCurve, t: float | None = None) -> float:
    """Approximate the arc length of a Bézier curve.

    Args:
        bezier (NurbsCurve): A single polynomial or rational segment.
        t (float | None): End parameter. Defaults to None (the domain end).

    Returns:
        float: Length from the start of the domain to `t`.
    """
    start, end = bezier.domain
    if t is not None:
        end = _clamp_parameter(t, bezier.domain)
    return _integrate_speed(bezier, start, end)


def curve_length(curve: NurbsCurve, t: float | None = None) -> float:
    """Approximate the arc length of a curve.

    Args:
        curve (NurbsCurve): Curve to measure.
        t (float | None): End parameter. Defaults to None (the whole curve).

    Returns:
        float: Length from the start of the domain to `t`.

    Example:
        >>> line = NurbsCurve(1, [0, 0, 1, 1], [[0, 0], [3, 4]])
        >>> round(curve_length(line), 12)
        5.0
    """
    end_t = curve.domain[1] if t is None else _clamp_parameter(t, curve.domain)

    total = 0.0
    for piece, start, end in _length_segments(curve):
        if end_t <= start:
            break
        total += _integrate_speed(piece, start, min(end, end_t))
    return total


def bezier_parameter_at_length(bezier: NurbsCurve, length: float, tol: float = MIN_TOLERANCE) -> float:
    """Find the parameter of a Bézier curve at a given arc length by bisection.

    Args:
        bezier (NurbsCurve): A single segment.
        length (float): Arc length from the start of the domain.
        tol (float): Parameter tolerance. Non-positive values use `EPSILON`.

    Returns:
        float: Parameter. Negative lengths give the domain start and lengths
            beyond the total give the domain end.
    """
    start, end = bezier.domain
    return _bisect_length(bezier, start, end, length, tol)


def _bisect_length(curve: NurbsCurve, start: float, end: float, length: float, tol: float) -> float:
    if length < 0.0:
        return start
    if length > _integrate_speed(curve, start, end):
        return end

    tol = tol if tol > 0.0 else EPSILON
    low, high = start, end
    while high - low > tol:
        mid = 0.5 * (low + high)
        if _integrate_speed(curve, start, mid) > length:
            high = mid
        else:
            low = mid
    return 0.5 * (low + high)


def curve_parameter_at_length(curve: NurbsCurve, length: float, tol: float = MIN_TOLERANCE) -> float:
    """Find the parameter of a curve at a given arc length.

    The pieces of the curve are walked until the accumulated length exceeds
    `length`, and the piece containing it is bisected.

    Args:
        curve (NurbsCurve): Curve to walk.
        length (float): Arc length from the start of the domain.
        tol (float): Parameter tolerance. Defaults to `MIN_TOLERANCE`.

    Returns:
        float: Parameter. Non-positive lengths give the domain start and
            lengths beyond the total give the domain end.
    """
    start, end = curve.domain
    if length <= 0.0:
        return start

    accumulated = 0.0
    for piece, a, b in _length_segments(curve):
        piece_length = _integrate_speed(piece, a, b)
        if accumulated + piece_length > length + EPSILON:
            return _bisect_length(piece, a, b, length - accumulated, tol)
        accumulated += piece_length
    return end


def _project_on_polyline(
    point: npt.NDArray[np.float64],
    params: npt.NDArray[np.float64],
    samples: npt.NDArray[np.float64],
) -> float:
    """Parameter of the closest point on a sampled polyline, linearly interpolated."""
    best_distance = np.inf
    best_param = float(params[0])
    for i in range(samples.shape[0] - 1):
        p0, p1 = samples[i], samples[i + 1]
        segment = p1 - p0
        seg_length2 = float(np.dot(segment, segment))
        s = 0.0
        if seg_length2 > EPSILON:
            s = min(max(float(np.dot(point - p0, segment)) / seg_length2, 0.0), 1.0)
        diff = point - (p0 + s * segment)
        distance = float(np.dot(diff, diff))
        if distance < best_distance:
            best_distance = distance
            best_param = float(params[i] + s * (params[i + 1] - params[i]))
    return best_param


def curve_closest_parameter(curve: NurbsCurve, point: npt.ArrayLike) -> float:
    """Find the parameter of the curve point closest to a given point.

    The curve is sampled at `num_control_points * degree` regular parameters
    and the point is projected onto the resulting polyline. The estimate is
    then improved with at most five Newton iterations on `C'(t) . (C(t) - P)`.
    Iterations stop when the point lies on the curve or the cosine between
    `C'(t)` and `C(t) - P` vanishes. Closed curves wrap the parameter around
    the seam.

    Args:
        curve (NurbsCurve): Curve to project on.
        point (npt.ArrayLike): Point with the curve dimension.

    Returns:
        float: Parameter of the closest point.

    Raises:
        ValueError: If the point dimension does not match the curve.
    """
    pt = np.asarray(point, dtype=np.float64)
    if pt.shape != (curve.dimension,):
        raise ValueError(f"point must have shape ({curve.dimension},)")

    start, end = curve.domain
    n_samples = max(curve.num_control_points * curve.degree, 2)
    params = np.linspace(start, end, n_samples)
    t = _project_on_polyline(pt, params, curve_points_at(curve, params))

    closed = curve.is_closed()
    for iteration in range(_MAX_NEWTON_ITERATIONS):
        ders = rational_curve_derivatives(curve, t, 2)
        diff = ders[0] - pt
        distance = float(np.linalg.norm(diff))
        numerator = float(np.dot(ders[1], diff))
        denominator = float(np.linalg.norm(ders[1])) * distance

        on_curve = distance < MAX_TOLERANCE
        orthogonal = denominator < EPSILON or abs(numerator / denominator) < _COSINE_TOLERANCE
        if on_curve or orthogonal:
            logger.debug("closest parameter converged after %d iterations", iteration)
            return t

        step_denominator = float(np.dot(ders[2], diff) + np.dot(ders[1], ders[1]))
        if abs(step_denominator) < EPSILON:
            return t
        new_t = t - numerator / step_denominator

        if new_t < start:
            new_t = end - (start - new_t) if closed else start
        if new_t > end:
            new_t = start + (new_t - end) if closed else end

        if float(np.linalg.norm((new_t - t) * ders[1])) < MAX_TOLERANCE:
            return new_t
        t = new_t
    return t


def curvature_vector(
    first_derivative: npt.ArrayLike, second_derivative: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """Compute the curvature vector from the first two derivatives of a curve.

    The result points towards the center of curvature and its length is the
    radius of curvature.

    Args:
        first_derivative (npt.ArrayLike): First derivative `C'(t)`.
        second_derivative (npt.ArrayLike): Second derivative `C''(t)`.

    Returns:
        npt.NDArray[np.float64]: Curvature vector. A zero first derivative
            or a curvature below `1.49e-8` gives a zero vector.
    """
    d1 = np.asarray(first_derivative, dtype=np.float64)
    d2 = np.asarray(second_derivative, dtype=np.float64)
    speed = float(np.linalg.norm(d1))
    if speed == 0.0:
        return np.zeros_like(d1)

    tangent = d1 / speed
    curvature = (d2 - np.dot(d2, tangent) * tangent) / speed**2
    magnitude = float(np.linalg.norm(curvature))
    if magnitude < _MIN_CURVATURE:
        # Straight point: the radius is infinite and there is no direction.
        return np.zeros_like(d1)

    radius = 1.0 / magnitude
    return cast(npt.NDArray[np.float64], curvature / magnitude * radius)


def parameter_at_chord_length(curve: NurbsCurve, t: float, chord_length: float) -> float:
    """Find the parameter whose point lies at a chord distance from `C(t)`.

    The search starts at the parameter of the arc length `length_at(t) +
    chord_length` and minimizes `(|C(s) - C(t)| - chord_length)^2` for `s`
    between `t` and the domain end.

    Args:
        curve (NurbsCurve): Curve to walk.
        t (float): Start parameter.
        chord_length (float): Chord length. Must be positive.

    Returns:
        float: Parameter after `t`.

    Raises:
        ValueError: If the chord length is not positive.
    """
    if chord_length <= 0.0:
        raise ValueError("chord_length must be positive")
    t = _clamp_parameter(t, curve.domain)
    end = curve.domain[1]
    guess = curve_parameter_at_length(curve, curve_length(curve, t) + chord_length)
    objective = ChordLengthObjective(curve, t, chord_length)
    return float(minimize_objective(objective, [min(max(guess, t), end)], [(t, end)])[0])


def divide_curve_by_chord_length(curve: NurbsCurve, chord_length: float) -> list[float]:
    """Divide a curve into pieces whose chords have a given length.

    The remainder at the end of the curve is shorter than `chord_length`
    and is not reported.

    Args:
        curve (NurbsCurve): Curve to divide.
        chord_length (float): Chord length. Must be positive.

    Returns:
        list[float]: Parameters of the division points, excluding the start.

    Raises:
        ValueError: If the chord length is not positive.
    """
    if chord_length <= 0.0:
        raise ValueError("chord_length must be positive")

    total = curve_length(curve)
    t = curve.domain[0]
    walked = 0.0
    params: list[float] = []
    while walked + chord_length < total:
        t = parameter_at_chord_length(curve, t, chord_length)
        params.append(t)
        walked += chord_length
    logger.debug("divided curve into %d chords", len(params))
    return params


def divide_curve_by_count(curve: NurbsCurve, n_segments: int) -> npt.NDArray[np.float64]:
    """Divide a curve into pieces of equal arc length.

    Args:
        curve (NurbsCurve): Curve to divide.
        n_segments (int): Number of pieces. Must be positive.

    Returns:
        npt.NDArray[np.float64]: The `n_segments + 1` parameters of the
            division points, including both ends.

    Raises:
        ValueError: If `n_segments` is not positive.
        DegenerateGeometryError: If the curve has zero length.
    """
    if n_segments < 1:
        raise ValueError("n_segments must be positive")
    total = curve_length(curve)
    if total < EPSILON:
        raise DegenerateGeometryError("cannot divide a curve with zero length")

    start, end = curve.domain
    params = [start]
    params.extend(
        curve_parameter_at_length(curve, total * i / n_segments) for i in range(1, n_segments)
    )
    params.append(end)
    return np.asarray(params, dtype=np.float64)


__all__ = [
    "bezier_curve_length",
    "bezier_parameter_at_length",
    "curvature_vector",
    "curve_closest_parameter",
    "curve_length",
    "curve_parameter_at_length",
    "divide_curve_by_chord_length",
    "divide_curve_by_count",
    "parameter_at_chord_length",
]

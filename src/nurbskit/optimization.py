"""Objective functions and the bounded minimizer used by intersections.

Every objective exposes its value and analytic gradient at a vector of
curve parameters. `minimize_objective` feeds them to SciPy's L-BFGS-B
solver, keeping each parameter inside its curve domain.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

import numpy as np
import numpy.typing as npt
from scipy import optimize

from .evaluation import rational_curve_derivatives
from .tolerance import EPSILON

if TYPE_CHECKING:
    from .curve import NurbsCurve
    from .plane import Plane

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100


class ObjectiveFunction(Protocol):
    """A scalar function of curve parameters with an analytic gradient."""

    def value(self, params: npt.NDArray[np.float64]) -> float: ...

    def gradient(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]: ...


class CurvesIntersectionObjective:
    """Squared distance `|C_a(u) - C_b(v)|^2` between points of two curves.

    The gradient is `[2 C_a'(u) . r, -2 C_b'(v) . r]` with
    `r = C_a(u) - C_b(v)`.
    """

    def __init__(self, curve_a: NurbsCurve, curve_b: NurbsCurve) -> None:
        self._curve_a = curve_a
        self._curve_b = curve_b

    def _residual(
        self, params: npt.NDArray[np.float64]
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        ders_a = rational_curve_derivatives(self._curve_a, float(params[0]), 1)
        ders_b = rational_curve_derivatives(self._curve_b, float(params[1]), 1)
        return ders_a[0] - ders_b[0], ders_a[1], ders_b[1]

    def value(self, params: npt.NDArray[np.float64]) -> float:
        residual, _, _ = self._residual(params)
        return float(np.dot(residual, residual))

    def gradient(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        residual, der_a, der_b = self._residual(params)
        return np.array([2.0 * np.dot(der_a, residual), -2.0 * np.dot(der_b, residual)])


class CurvePlaneIntersectionObjective:
    """Squared signed distance `f(t)^2` from a curve point to a plane.

    With `f(t) = n . (C(t) - O)` the gradient is `2 f(t) (n . C'(t))`.
    """

    def __init__(self, curve: NurbsCurve, plane: Plane) -> None:
        self._curve = curve
        self._plane = plane

    def value(self, params: npt.NDArray[np.float64]) -> float:
        point = rational_curve_derivatives(self._curve, float(params[0]), 0)[0]
        return float(self._plane.signed_distance(point) ** 2)

    def gradient(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        ders = rational_curve_derivatives(self._curve, float(params[0]), 1)
        distance = self._plane.signed_distance(ders[0])
        return np.array([2.0 * distance * float(np.dot(self._plane.normal, ders[1]))])


class ChordLengthObjective:
    """Squared deviation between a chord length and `|C(t) - C(t0)|`."""

    def __init__(self, curve: NurbsCurve, start_parameter: float, chord_length: float) -> None:
        self._curve = curve
        self._start_point = rational_curve_derivatives(curve, start_parameter, 0)[0]
        self._chord_length = float(chord_length)

    def value(self, params: npt.NDArray[np.float64]) -> float:
        point = rational_curve_derivatives(self._curve, float(params[0]), 0)[0]
        chord = float(np.linalg.norm(point - self._start_point))
        return (chord - self._chord_length) ** 2

    def gradient(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        ders = rational_curve_derivatives(self._curve, float(params[0]), 1)
        diff = ders[0] - self._start_point
        chord = float(np.linalg.norm(diff))
        if chord < EPSILON:
            return np.zeros(1)
        return np.array([2.0 * (chord - self._chord_length) * np.dot(ders[1], diff) / chord])


def minimize_objective(
    objective: ObjectiveFunction,
    initial_guess: npt.ArrayLike,
    bounds: Sequence[tuple[float, float]],
) -> npt.NDArray[np.float64]:
    """Minimize an objective inside a box of parameter bounds.

    Args:
        objective (ObjectiveFunction): Function to minimize.
        initial_guess (npt.ArrayLike): Starting parameters.
        bounds (Sequence[tuple[float, float]]): `(low, high)` per parameter.

    Returns:
        npt.NDArray[np.float64]: Parameters at the minimum found. When the
            solver stops without converging the last iterate is returned; the
            caller decides from the objective value whether to keep it.
    """
    x0 = np.asarray(initial_guess, dtype=np.float64).ravel()
    if x0.size != len(bounds):
        raise ValueError("initial_guess and bounds must have the same length")

    result = optimize.minimize(
        objective.value,
        x0,
        jac=objective.gradient,
        method="L-BFGS-B",
        bounds=list(bounds),
        options={"maxiter": MAX_ITERATIONS, "ftol": 1e-15, "gtol": 1e-12},
    )
    if not result.success:
        logger.debug(
            "minimization stopped after %d iterations: %s", result.nit, result.message
        )
    return np.asarray(result.x, dtype=np.float64)


__all__ = [
    "ChordLengthObjective",
    "CurvePlaneIntersectionObjective",
    "CurvesIntersectionObjective",
    "ObjectiveFunction",
    "minimize_objective",
]

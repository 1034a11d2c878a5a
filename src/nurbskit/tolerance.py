"""Tolerance presets and scalar utilities for geometric comparisons."""

from __future__ import annotations

import math
from functools import cache
from typing import Final, NamedTuple

MAX_TOLERANCE: Final[float] = 1e-3
MIN_TOLERANCE: Final[float] = 1e-6
EPSILON: Final[float] = 1e-10
UNSET_VALUE: Final[float] = -1.23432101234321e308
ANGLE_TOLERANCE: Final[float] = 0.0174532925199433


class GeometricTolerances(NamedTuple):
    """A named tuple holding the tolerances used across the kernel.

    Attributes:
        max_tolerance (float): Coarse tolerance, used for knot multiplicity
            grouping, point coincidence and parameter snapping.
        min_tolerance (float): Fine tolerance, used for distances between
            points that are expected to coincide.
        epsilon (float): Tolerance for parametric comparisons (span search,
            knot ordering).
        angle_tolerance (float): Angular tolerance in radians.
    """

    max_tolerance: float
    min_tolerance: float
    epsilon: float
    angle_tolerance: float


_TOLERANCE_PRESETS = {
    "default": GeometricTolerances(MAX_TOLERANCE, MIN_TOLERANCE, EPSILON, ANGLE_TOLERANCE),
    "strict": GeometricTolerances(1e-5, 1e-9, 1e-13, ANGLE_TOLERANCE * 0.1),
    "conservative": GeometricTolerances(1e-2, 1e-4, 1e-8, ANGLE_TOLERANCE * 10.0),
}


@cache
def _get_preset(name: str) -> GeometricTolerances:
    """Cached lookup of a tolerance preset by name.

    Args:
        name (str): Preset name.

    Returns:
        GeometricTolerances: The preset.

    Raises:
        ValueError: If the preset does not exist.
    """
    if name not in _TOLERANCE_PRESETS:
        raise ValueError(f"Unknown tolerance preset: {name}")
    return _TOLERANCE_PRESETS[name]


def get_default_tolerances() -> GeometricTolerances:
    """Get the tolerances used when none are given explicitly.

    Returns:
        GeometricTolerances: Default tolerances.

    Example:
        >>> get_default_tolerances().epsilon
        1e-10
    """
    return _get_preset("default")


def get_strict_tolerances() -> GeometricTolerances:
    """Get tighter tolerances for high-precision comparisons.

    Returns:
        GeometricTolerances: Strict tolerances.
    """
    return _get_preset("strict")


def get_conservative_tolerances() -> GeometricTolerances:
    """Get looser tolerances for robust comparisons of noisy data.

    Returns:
        GeometricTolerances: Conservative tolerances.
    """
    return _get_preset("conservative")


def to_radians(degrees: float) -> float:
    """Convert an angle from degrees to radians."""
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    """Convert an angle from radians to degrees."""
    return radians * 180.0 / math.pi


def is_valid_double(value: float) -> bool:
    """Check that a value is a usable double.

    Args:
        value (float): Value to check.

    Returns:
        bool: False if the value is the unset sentinel, NaN or infinite.
    """
    value = float(value)
    return value != UNSET_VALUE and math.isfinite(value)


def remap_value(
    value: float,
    source: tuple[float, float],
    target: tuple[float, float],
) -> float:
    """Map a value from a source interval onto a target interval.

    Args:
        value (float): Value to remap.
        source (tuple[float, float]): Source interval `(s0, s1)`.
        target (tuple[float, float]): Target interval `(t0, t1)`.

    Returns:
        float: `t0 + (value - s0) * (t1 - t0) / (s1 - s0)`.

    Raises:
        ValueError: If the source interval has zero length.
    """
    s0, s1 = float(source[0]), float(source[1])
    t0, t1 = float(target[0]), float(target[1])
    if s1 == s0:
        raise ValueError("source interval must have non-zero length")
    return t0 + (float(value) - s0) * (t1 - t0) / (s1 - s0)


__all__ = [
    "ANGLE_TOLERANCE",
    "EPSILON",
    "MAX_TOLERANCE",
    "MIN_TOLERANCE",
    "UNSET_VALUE",
    "GeometricTolerances",
    "get_conservative_tolerances",
    "get_default_tolerances",
    "get_strict_tolerances",
    "is_valid_double",
    "remap_value",
    "to_degrees",
    "to_radians",
]

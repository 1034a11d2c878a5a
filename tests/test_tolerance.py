"""Tests for tolerance presets and scalar utilities."""

from __future__ import annotations

import inspect
import math

import pytest

from nurbskit.analysis import curve_parameter_at_length
from nurbskit.curve import NurbsCurve
from nurbskit.intersection import curve_curve_intersection
from nurbskit.polycurve import PolyCurve
from nurbskit.tolerance import (
    ANGLE_TOLERANCE,
    EPSILON,
    MAX_TOLERANCE,
    MIN_TOLERANCE,
    UNSET_VALUE,
    GeometricTolerances,
    _get_preset,
    get_conservative_tolerances,
    get_default_tolerances,
    get_strict_tolerances,
    is_valid_double,
    remap_value,
    to_degrees,
    to_radians,
)


class TestPresets:
    """Test suite for tolerance presets."""

    def test_default_matches_constants(self) -> None:
        """The default preset exposes the module constants."""
        tols = get_default_tolerances()
        assert tols == GeometricTolerances(MAX_TOLERANCE, MIN_TOLERANCE, EPSILON, ANGLE_TOLERANCE)
        assert tols.epsilon == 1e-10

    def test_strict_is_tighter(self) -> None:
        """Every strict tolerance is smaller than the default one."""
        strict = get_strict_tolerances()
        default = get_default_tolerances()
        for s, d in zip(strict, default, strict=True):
            assert s < d

    def test_conservative_is_looser(self) -> None:
        """Every conservative tolerance is larger than the default one."""
        conservative = get_conservative_tolerances()
        default = get_default_tolerances()
        for c, d in zip(conservative, default, strict=True):
            assert c > d

    def test_tolerance_ordering(self) -> None:
        """Within a preset, max > min > epsilon."""
        for tols in (get_default_tolerances(), get_strict_tolerances(), get_conservative_tolerances()):
            assert tols.max_tolerance > tols.min_tolerance > tols.epsilon > 0.0

    def test_unknown_preset(self) -> None:
        """Unknown preset names are rejected."""
        with pytest.raises(ValueError, match="Unknown tolerance preset"):
            _get_preset("sloppy")

    def test_presets_are_cached(self) -> None:
        """Repeated lookups return the same object."""
        assert get_default_tolerances() is get_default_tolerances()

    def test_operation_defaults(self) -> None:
        """Default `tol` arguments are fields of the default preset."""
        tols = get_default_tolerances()
        defaults = {
            curve_curve_intersection: tols.min_tolerance,
            curve_parameter_at_length: tols.min_tolerance,
            NurbsCurve.is_closed: tols.min_tolerance,
            NurbsCurve.equals: tols.epsilon,
            PolyCurve.is_closed: tols.max_tolerance,
        }
        for function, expected in defaults.items():
            assert inspect.signature(function).parameters["tol"].default == expected

    def test_operations_accept_preset_fields(self) -> None:
        """A looser preset turns a near miss into a closed curve."""
        curve = NurbsCurve(1, [0.0, 0.0, 0.5, 1.0, 1.0], [[0.0, 0.0], [1.0, 0.0], [0.0, 5e-6]])
        assert not curve.is_closed()
        assert curve.is_closed(tol=get_conservative_tolerances().min_tolerance)


class TestScalarUtilities:
    """Test suite for angle conversion, validity and remapping."""

    @pytest.mark.parametrize(("degrees", "radians"), [(0.0, 0.0), (180.0, math.pi), (-90.0, -math.pi / 2)])
    def test_angle_conversion(self, degrees: float, radians: float) -> None:
        """Degrees and radians convert both ways."""
        assert to_radians(degrees) == pytest.approx(radians)
        assert to_degrees(radians) == pytest.approx(degrees)

    def test_angle_tolerance_is_one_degree(self) -> None:
        """The angular tolerance is one degree."""
        assert to_degrees(ANGLE_TOLERANCE) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.0, True), (-3.5, True), (UNSET_VALUE, False), (math.nan, False), (math.inf, False)],
    )
    def test_is_valid_double(self, value: float, expected: bool) -> None:
        """The unset sentinel and non-finite values are invalid."""
        assert is_valid_double(value) is expected

    def test_remap_value(self) -> None:
        """Values map affinely between intervals, including reversed ones."""
        assert remap_value(0.5, (0.0, 1.0), (10.0, 20.0)) == pytest.approx(15.0)
        assert remap_value(2.0, (0.0, 4.0), (1.0, -1.0)) == pytest.approx(0.0)
        assert remap_value(-1.0, (0.0, 1.0), (0.0, 2.0)) == pytest.approx(-2.0)

    def test_remap_value_zero_length_source(self) -> None:
        """A degenerate source interval is rejected."""
        with pytest.raises(ValueError, match="non-zero length"):
            remap_value(1.0, (2.0, 2.0), (0.0, 1.0))

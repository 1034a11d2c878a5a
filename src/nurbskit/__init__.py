"""Public API surface for nurbskit.

Defines package metadata and exported interfaces.
"""

from typing import Final

# Private API imports (accessible but not in __all__)
# Users can access private functions via: nurbskit._knots_impl._function_name, etc.
from . import (
    _basis_impl,  # noqa: F401
    _evaluation_impl,  # noqa: F401
    _knots_impl,  # noqa: F401
    _modify_impl,  # noqa: F401
)

# Public API imports
from .analysis import (
    bezier_curve_length,
    bezier_parameter_at_length,
    curvature_vector,
    curve_closest_parameter,
    curve_length,
    curve_parameter_at_length,
    divide_curve_by_chord_length,
    divide_curve_by_count,
    parameter_at_chord_length,
)
from .basis import (
    compute_basis_function_derivatives,
    compute_basis_functions,
    compute_basis_functions_at,
    compute_one_basis_function,
)
from .bbt import (
    BoundingBoxTree,
    LazyCurveBoundingBoxTree,
    intersect_bounding_box_tree_with_plane,
    intersect_bounding_box_trees,
    self_intersect_bounding_box_tree,
)
from .bounding_box import BoundingBox, are_overlapping
from .curve import NurbsCurve
from .errors import DegenerateGeometryError, GeometryError, InvalidGeometryError
from .evaluation import (
    compute_bezier_extrema,
    curve_derivatives,
    curve_point_at,
    curve_points_at,
    rational_curve_derivatives,
    rational_curve_tangent,
    rational_surface_derivatives,
    rational_surface_normal,
    surface_derivatives,
    surface_point_at,
)
from .fitting import interpolate_curve
from .homogeneous import (
    binomial,
    dehomogenize_point,
    dehomogenize_points,
    get_weights,
    homogenize_points,
    homogenize_points_2D,
    strip_weights,
)
from .intersection import (
    CurvePlaneIntersectionResult,
    CurvesIntersectionResult,
    curve_curve_intersection,
    curve_plane_intersection,
    curve_self_intersection,
)
from .knots import KnotVector, create_uniform_knot_vector, create_uniform_periodic_knot_vector
from .modify import (
    SurfaceDirection,
    close_curve,
    curve_knot_refine,
    decompose_curve_into_beziers,
    elevate_curve_degree,
    reverse_curve,
    split_curve,
    split_curve_at,
    split_surface,
    sub_curve,
    surface_knot_refine,
    transform_curve,
)
from .optimization import (
    ChordLengthObjective,
    CurvePlaneIntersectionObjective,
    CurvesIntersectionObjective,
    ObjectiveFunction,
    minimize_objective,
)
from .plane import Plane
from .polycurve import LineSegment, PolyCurve
from .surface import NurbsSurface
from .tolerance import (
    ANGLE_TOLERANCE,
    EPSILON,
    MAX_TOLERANCE,
    MIN_TOLERANCE,
    UNSET_VALUE,
    GeometricTolerances,
    get_conservative_tolerances,
    get_default_tolerances,
    get_strict_tolerances,
    is_valid_double,
    remap_value,
    to_degrees,
    to_radians,
)

# Package metadata
__version__: Final[str] = "0.1.0"
__license__: Final[str] = "MIT"
__author__: Final[str] = "Pablo Antolin <pablo.antolin@epfl.ch>"

# Public interface: only functions/classes that don't start with _
__all__ = [
    "ANGLE_TOLERANCE",
    "EPSILON",
    "MAX_TOLERANCE",
    "MIN_TOLERANCE",
    "UNSET_VALUE",
    "BoundingBox",
    "BoundingBoxTree",
    "ChordLengthObjective",
    "CurvePlaneIntersectionObjective",
    "CurvePlaneIntersectionResult",
    "CurvesIntersectionObjective",
    "CurvesIntersectionResult",
    "DegenerateGeometryError",
    "GeometricTolerances",
    "GeometryError",
    "InvalidGeometryError",
    "KnotVector",
    "LazyCurveBoundingBoxTree",
    "LineSegment",
    "NurbsCurve",
    "NurbsSurface",
    "ObjectiveFunction",
    "Plane",
    "PolyCurve",
    "SurfaceDirection",
    "__author__",
    "__license__",
    "__version__",
    "are_overlapping",
    "bezier_curve_length",
    "bezier_parameter_at_length",
    "binomial",
    "close_curve",
    "compute_basis_function_derivatives",
    "compute_basis_functions",
    "compute_basis_functions_at",
    "compute_bezier_extrema",
    "compute_one_basis_function",
    "create_uniform_knot_vector",
    "create_uniform_periodic_knot_vector",
    "curvature_vector",
    "curve_closest_parameter",
    "curve_curve_intersection",
    "curve_derivatives",
    "curve_knot_refine",
    "curve_length",
    "curve_parameter_at_length",
    "curve_plane_intersection",
    "curve_point_at",
    "curve_points_at",
    "curve_self_intersection",
    "decompose_curve_into_beziers",
    "dehomogenize_point",
    "dehomogenize_points",
    "divide_curve_by_chord_length",
    "divide_curve_by_count",
    "elevate_curve_degree",
    "get_conservative_tolerances",
    "get_default_tolerances",
    "get_strict_tolerances",
    "get_weights",
    "homogenize_points",
    "homogenize_points_2D",
    "interpolate_curve",
    "intersect_bounding_box_tree_with_plane",
    "intersect_bounding_box_trees",
    "is_valid_double",
    "minimize_objective",
    "parameter_at_chord_length",
    "rational_curve_derivatives",
    "rational_curve_tangent",
    "rational_surface_derivatives",
    "rational_surface_normal",
    "remap_value",
    "reverse_curve",
    "self_intersect_bounding_box_tree",
    "split_curve",
    "split_curve_at",
    "split_surface",
    "strip_weights",
    "sub_curve",
    "surface_derivatives",
    "surface_knot_refine",
    "surface_point_at",
    "to_degrees",
    "to_radians",
    "transform_curve",
]

"""Exception types raised by the geometry kernel."""


class GeometryError(ValueError):
    """Base class for geometric failures."""


class InvalidGeometryError(GeometryError):
    """Raised when a curve, surface or primitive is built from invalid data.

    Examples are a degree lower than one, knot vectors that do not match the
    number of control points, non-positive weights or collinear points where
    a plane is expected.
    """


class DegenerateGeometryError(GeometryError):
    """Raised when a computation hits a numerically degenerate configuration.

    Examples are a zero weight while dehomogenizing, normalizing a zero-length
    vector or solving a singular linear system.
    """


__all__ = ["DegenerateGeometryError", "GeometryError", "InvalidGeometryError"]

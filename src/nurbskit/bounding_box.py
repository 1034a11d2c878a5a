"""Axis-aligned bounding boxes."""

from __future__ import annotations

import itertools

import numpy as np
import numpy.typing as npt

from .errors import InvalidGeometryError


class BoundingBox:
    """An axis-aligned box in any dimension.

    Attributes:
        _min_point (npt.NDArray[np.float64]): Lower corner.
        _max_point (npt.NDArray[np.float64]): Upper corner.
    """

    _min_point: npt.NDArray[np.float64]
    _max_point: npt.NDArray[np.float64]

    def __init__(self, min_point: npt.ArrayLike, max_point: npt.ArrayLike) -> None:
        """Initialize a box from two opposite corners.

        The corners are reordered per axis, so any two opposite corners work.

        Args:
            min_point (npt.ArrayLike): First corner.
            max_point (npt.ArrayLike): Opposite corner.

        Raises:
            InvalidGeometryError: If the corners are not 1D arrays of the same
                size or are not finite.
        """
        a = np.asarray(min_point, dtype=np.float64)
        b = np.asarray(max_point, dtype=np.float64)
        if a.ndim != 1 or a.shape != b.shape or a.size == 0:
            raise InvalidGeometryError("box corners must be 1D arrays of the same size")
        if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
            raise InvalidGeometryError("box corners must be finite")
        self._min_point = np.minimum(a, b)
        self._max_point = np.maximum(a, b)

    @classmethod
    def from_points(cls, points: npt.ArrayLike) -> BoundingBox:
        """Create the smallest box containing a set of points of shape (n, d)."""
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[0] == 0:  # noqa: PLR2004
            raise InvalidGeometryError("points must be a non-empty 2D array")
        return cls(pts.min(axis=0), pts.max(axis=0))

    @property
    def min_point(self) -> npt.NDArray[np.float64]:
        return self._min_point.copy()

    @property
    def max_point(self) -> npt.NDArray[np.float64]:
        return self._max_point.copy()

    @property
    def dimension(self) -> int:
        return int(self._min_point.size)

    @property
    def size(self) -> npt.NDArray[np.float64]:
        """Extent of the box along each axis."""
        return self._max_point - self._min_point

    @property
    def center(self) -> npt.NDArray[np.float64]:
        return 0.5 * (self._min_point + self._max_point)

    def corners(self) -> npt.NDArray[np.float64]:
        """Get the `2**dim` corners of the box.

        Returns:
            npt.NDArray[np.float64]: Corners with shape (2**dim, dim).
        """
        bounds = np.stack((self._min_point, self._max_point))
        return np.array(
            [
                [bounds[choice, axis] for axis, choice in enumerate(choices)]
                for choices in itertools.product((0, 1), repeat=self.dimension)
            ]
        )

    def union(self, other: BoundingBox) -> BoundingBox:
        """Get the smallest box containing both boxes."""
        self._check_dimension(other)
        return BoundingBox(
            np.minimum(self._min_point, other.min_point),
            np.maximum(self._max_point, other.max_point),
        )

    def contains(self, point: npt.ArrayLike, tol: float = 0.0) -> bool:
        """Check whether a point lies inside the box widened by `tol`."""
        pt = np.asarray(point, dtype=np.float64)
        if pt.shape != self._min_point.shape:
            raise ValueError(f"point must have shape ({self.dimension},)")
        return bool(np.all(pt >= self._min_point - tol) and np.all(pt <= self._max_point + tol))

    def _check_dimension(self, other: BoundingBox) -> None:
        if other.dimension != self.dimension:
            raise ValueError("bounding boxes must have the same dimension")

    def __repr__(self) -> str:
        return f"BoundingBox({self._min_point.tolist()}, {self._max_point.tolist()})"


def are_overlapping(box_a: BoundingBox, box_b: BoundingBox, tol: float = 0.0) -> bool:
    """Check whether two boxes overlap.

    The boxes overlap when their intervals overlap along every axis. Touching
    intervals count as overlapping, and `tol` widens them.

    Args:
        box_a (BoundingBox): First box.
        box_b (BoundingBox): Second box.
        tol (float): Extra margin on each interval. Defaults to 0.0.

    Returns:
        bool: Whether the boxes overlap.

    Raises:
        ValueError: If the boxes have different dimensions.
    """
    box_a._check_dimension(box_b)
    return bool(
        np.all(box_a.min_point <= box_b.max_point + tol)
        and np.all(box_b.min_point <= box_a.max_point + tol)
    )


__all__ = [
    "BoundingBox",
    "are_overlapping",
]

"""Chains of connected line segments and NURBS curves."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from .curve import NurbsCurve
from .errors import InvalidGeometryError
from .evaluation import _clamp_parameter
from .tolerance import EPSILON, MAX_TOLERANCE, remap_value


class LineSegment:
    """A straight segment parametrized on `[0, 1]`."""

    def __init__(self, start: npt.ArrayLike, end: npt.ArrayLike) -> None:
        """Initialize a segment between two distinct points.

        Raises:
            InvalidGeometryError: If the points have different shapes or
                coincide.
        """
        a = np.asarray(start, dtype=np.float64)
        b = np.asarray(end, dtype=np.float64)
        if a.ndim != 1 or a.shape != b.shape:
            raise InvalidGeometryError("segment end points must be 1D arrays of the same size")
        if float(np.linalg.norm(b - a)) < EPSILON:
            raise InvalidGeometryError("segment end points must be distinct")
        self._start = a
        self._end = b

    @property
    def start(self) -> npt.NDArray[np.float64]:
        return self._start.copy()

    @property
    def end(self) -> npt.NDArray[np.float64]:
        return self._end.copy()

    @property
    def dimension(self) -> int:
        return int(self._start.size)

    @property
    def domain(self) -> tuple[float, float]:
        return 0.0, 1.0

    def point_at(self, t: float) -> npt.NDArray[np.float64]:
        t = _clamp_parameter(t, self.domain)
        return self._start + t * (self._end - self._start)

    def tangent_at(self, t: float) -> npt.NDArray[np.float64]:
        _clamp_parameter(t, self.domain)
        direction = self._end - self._start
        return direction / np.linalg.norm(direction)

    def length(self) -> float:
        return float(np.linalg.norm(self._end - self._start))

    def closest_parameter(self, point: npt.ArrayLike) -> float:
        """Parameter of the orthogonal projection of a point, clipped to `[0, 1]`."""
        direction = self._end - self._start
        pt = np.asarray(point, dtype=np.float64)
        t = float(np.dot(pt - self._start, direction) / np.dot(direction, direction))
        return min(max(t, 0.0), 1.0)

    def __repr__(self) -> str:
        return f"LineSegment({self._start.tolist()}, {self._end.tolist()})"


Segment = LineSegment | NurbsCurve
_SEGMENT_TYPES = (LineSegment, NurbsCurve)


def _end_points(segment: Segment) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    start, end = segment.domain
    return segment.point_at(start), segment.point_at(end)


class PolyCurve:
    """A chain of segments joined end to start.

    The global parameter runs over `[0, n_segments]`; segment `i` covers
    `[i, i + 1]`, mapped linearly onto its own domain.

    Attributes:
        _segments (tuple[Segment, ...]): Segments in order.
    """

    def __init__(self, segments: Sequence[Segment]) -> None:
        """Initialize a poly-curve.

        Args:
            segments (Sequence[Segment]): Line segments and NURBS curves with
                the same dimension. Each one must start where the previous one
                ends, within `MAX_TOLERANCE`.

        Raises:
            TypeError: If a segment is neither a `LineSegment` nor a
                `NurbsCurve`.
            InvalidGeometryError: If there are no segments, the dimensions
                differ or two consecutive segments are not connected.
        """
        if len(segments) == 0:
            raise InvalidGeometryError("a poly-curve needs at least one segment")
        for segment in segments:
            if not isinstance(segment, _SEGMENT_TYPES):
                raise TypeError(
                    f"segments must be LineSegment or NurbsCurve, got {type(segment).__name__}"
                )
        if len({segment.dimension for segment in segments}) != 1:
            raise InvalidGeometryError("all segments must have the same dimension")

        for i in range(len(segments) - 1):
            end = _end_points(segments[i])[1]
            start = _end_points(segments[i + 1])[0]
            if float(np.linalg.norm(end - start)) > MAX_TOLERANCE:
                raise InvalidGeometryError(f"segments {i} and {i + 1} are not connected")

        self._segments: tuple[Segment, ...] = tuple(segments)

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def domain(self) -> tuple[float, float]:
        return 0.0, float(len(self._segments))

    @property
    def dimension(self) -> int:
        return self._segments[0].dimension

    def _locate(self, t: float) -> tuple[int, float]:
        """Segment index and local parameter of a global parameter."""
        t = _clamp_parameter(t, self.domain)
        index = min(int(math.floor(t)), len(self._segments) - 1)
        local = remap_value(t, (index, index + 1), self._segments[index].domain)
        return index, local

    def point_at(self, t: float) -> npt.NDArray[np.float64]:
        index, local = self._locate(t)
        return self._segments[index].point_at(local)

    def tangent_at(self, t: float) -> npt.NDArray[np.float64]:
        """Unit tangent at a global parameter."""
        index, local = self._locate(t)
        return self._segments[index].tangent_at(local)

    def length(self) -> float:
        return float(sum(segment.length() for segment in self._segments))

    def closest_parameter(self, point: npt.ArrayLike) -> float:
        """Global parameter of the closest point over all segments."""
        pt = np.asarray(point, dtype=np.float64)
        best_distance = math.inf
        best_param = 0.0
        for index, segment in enumerate(self._segments):
            local = segment.closest_parameter(pt)
            distance = float(np.linalg.norm(segment.point_at(local) - pt))
            if distance < best_distance:
                best_distance = distance
                best_param = remap_value(local, segment.domain, (index, index + 1))
        return best_param

    def closest_point(self, point: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return self.point_at(self.closest_parameter(point))

    def is_closed(self, tol: float = MAX_TOLERANCE) -> bool:
        start = _end_points(self._segments[0])[0]
        end = _end_points(self._segments[-1])[1]
        return bool(np.linalg.norm(end - start) <= tol)

    def append(self, segment: Segment) -> PolyCurve:
        """Return a new poly-curve with one more segment at the end."""
        return PolyCurve((*self._segments, segment))

    def __len__(self) -> int:
        return len(self._segments)

    def __repr__(self) -> str:
        return f"PolyCurve({list(self._segments)!r})"


__all__ = ["LineSegment", "PolyCurve", "Segment"]

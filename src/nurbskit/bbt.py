"""Bounding box trees for broad-phase intersection searches.

A bounding box tree is a lazily subdivided hierarchy of boxes around a
geometric item. Intersection searches walk two trees at once, discard pairs
of nodes whose boxes do not overlap and report the pairs of leaves that
survive. The leaves are then refined by a numerical minimization.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Protocol, TypeVar

import numpy as np

from .bounding_box import BoundingBox, are_overlapping
from .modify import split_curve

if TYPE_CHECKING:
    from .curve import NurbsCurve
    from .plane import Plane

logger = logging.getLogger(__name__)

T_co = TypeVar("T_co", covariant=True)
A = TypeVar("A")
B = TypeVar("B")

_DEFAULT_DIVISIONS = 64
_SPLIT_JITTER = 0.1


class BoundingBoxTree(Protocol[T_co]):
    """A node of a lazily built bounding box hierarchy around an item."""

    def bounding_box(self) -> BoundingBox:
        """Get the box containing the item of this node."""
        ...

    def split(self) -> tuple[BoundingBoxTree[T_co], BoundingBoxTree[T_co]]:
        """Split the node in two children."""
        ...

    def yield_item(self) -> T_co:
        """Get the item stored in this node."""
        ...

    def is_indivisible(self, tol: float) -> bool:
        """Check whether the node is a leaf."""
        ...

    def is_empty(self) -> bool:
        """Check whether the node contains nothing."""
        ...


class LazyCurveBoundingBoxTree:
    """Bounding box tree over a curve, split lazily at jittered midpoints.

    Each node wraps a sub-curve. Its box is the box of the sub-curve
    control points, computed on first access. Splitting cuts the parameter
    domain near its middle, moved by up to 10% of the width at random so
    that intersections do not repeatedly fall on split points.

    Attributes:
        _curve (NurbsCurve): Curve of this node.
        _knot_tolerance (float): Parametric width below which the node is a leaf.
        _rng (np.random.Generator): Random generator shared by the whole tree.
        _box (BoundingBox | None): Cached box.
    """

    def __init__(
        self,
        curve: NurbsCurve,
        knot_tolerance: float | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        """Initialize the tree.

        Args:
            curve (NurbsCurve): Curve to wrap.
            knot_tolerance (float | None): Parametric width of the leaves.
                Defaults to None (domain width / 64).
            rng (np.random.Generator | None): Generator for the split jitter.
            seed (int | None): Seed for a new generator when `rng` is None.

        Raises:
            ValueError: If both `rng` and `seed` are given, or the knot
                tolerance is not positive.
        """
        if rng is not None and seed is not None:
            raise ValueError("rng and seed cannot be given together")
        start, end = curve.domain
        if knot_tolerance is None:
            knot_tolerance = (end - start) / _DEFAULT_DIVISIONS
        if knot_tolerance <= 0.0:
            raise ValueError("knot_tolerance must be positive")

        self._curve = curve
        self._knot_tolerance = float(knot_tolerance)
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._box: BoundingBox | None = None

    @property
    def knot_tolerance(self) -> float:
        return self._knot_tolerance

    def bounding_box(self) -> BoundingBox:
        if self._box is None:
            self._box = BoundingBox.from_points(self._curve.control_points)
        return self._box

    def split(self) -> tuple[LazyCurveBoundingBoxTree, LazyCurveBoundingBoxTree]:
        start, end = self._curve.domain
        width = end - start
        t = 0.5 * (start + end) + width * self._rng.uniform(-_SPLIT_JITTER, _SPLIT_JITTER)
        first, second = split_curve(self._curve, t)
        return (
            LazyCurveBoundingBoxTree(first, self._knot_tolerance, rng=self._rng),
            LazyCurveBoundingBoxTree(second, self._knot_tolerance, rng=self._rng),
        )

    def yield_item(self) -> NurbsCurve:
        return self._curve

    def is_indivisible(self, tol: float) -> bool:
        """Check whether the parametric width is below the knot tolerance.

        The spatial tolerance `tol` is not used: leaves are defined in
        parameter space only.
        """
        start, end = self._curve.domain
        return end - start < self._knot_tolerance

    def is_empty(self) -> bool:
        return False


def intersect_bounding_box_trees(
    tree_a: BoundingBoxTree[A],
    tree_b: BoundingBoxTree[B],
    tol: float = 0.0,
) -> Iterator[tuple[A, B]]:
    """Find the pairs of leaves of two trees whose boxes overlap.

    The trees are walked depth-first with an explicit stack of node pairs.
    Pairs whose boxes do not overlap are dropped. When both nodes are leaves
    their items are yielded; otherwise the divisible nodes are split and the
    child pairs pushed.

    Args:
        tree_a (BoundingBoxTree[A]): First tree.
        tree_b (BoundingBoxTree[B]): Second tree.
        tol (float): Box overlap tolerance. Defaults to 0.0.

    Yields:
        tuple[A, B]: Items of overlapping leaves.
    """
    stack: list[tuple[BoundingBoxTree[A], BoundingBoxTree[B]]] = [(tree_a, tree_b)]
    n_visited = 0
    n_leaves = 0
    while stack:
        node_a, node_b = stack.pop()
        n_visited += 1
        if node_a.is_empty() or node_b.is_empty():
            continue
        if not are_overlapping(node_a.bounding_box(), node_b.bounding_box(), tol):
            continue

        leaf_a = node_a.is_indivisible(tol)
        leaf_b = node_b.is_indivisible(tol)
        if leaf_a and leaf_b:
            n_leaves += 1
            yield node_a.yield_item(), node_b.yield_item()
        elif leaf_a:
            b1, b2 = node_b.split()
            stack.extend(((node_a, b2), (node_a, b1)))
        elif leaf_b:
            a1, a2 = node_a.split()
            stack.extend(((a2, node_b), (a1, node_b)))
        else:
            a1, a2 = node_a.split()
            b1, b2 = node_b.split()
            stack.extend(((a2, b2), (a2, b1), (a1, b2), (a1, b1)))

    logger.debug("visited %d node pairs, %d overlapping leaf pairs", n_visited, n_leaves)


def self_intersect_bounding_box_tree(
    tree: BoundingBoxTree[A], tol: float = 0.0
) -> Iterator[tuple[A, A]]:
    """Find overlapping leaves between the two halves of a tree.

    The tree is split once and its halves are intersected. Leaves touching
    at the split point are reported too; the caller filters them out.

    Args:
        tree (BoundingBoxTree[A]): Tree to search.
        tol (float): Box overlap tolerance. Defaults to 0.0.

    Yields:
        tuple[A, A]: Items of overlapping leaves.
    """
    if tree.is_empty() or tree.is_indivisible(tol):
        return
    first, second = tree.split()
    yield from intersect_bounding_box_trees(first, second, tol)


def intersect_bounding_box_tree_with_plane(
    tree: BoundingBoxTree[A], plane: Plane, tol: float = 0.0
) -> Iterator[A]:
    """Find the leaves of a tree whose boxes cross a plane.

    A box crosses the plane unless all its corners lie farther than `tol`
    on the same side.

    Args:
        tree (BoundingBoxTree[A]): Tree over 3D items.
        plane (Plane): Plane to intersect with.
        tol (float): Distance tolerance. Defaults to 0.0.

    Yields:
        A: Items of the leaves crossing the plane.
    """
    stack: list[BoundingBoxTree[A]] = [tree]
    while stack:
        node = stack.pop()
        if node.is_empty():
            continue
        distances = plane.signed_distances(node.bounding_box().corners())
        if np.all(distances > tol) or np.all(distances < -tol):
            continue
        if node.is_indivisible(tol):
            yield node.yield_item()
        else:
            first, second = node.split()
            stack.extend((second, first))


__all__ = [
    "BoundingBoxTree",
    "LazyCurveBoundingBoxTree",
    "intersect_bounding_box_tree_with_plane",
    "intersect_bounding_box_trees",
    "self_intersect_bounding_box_tree",
]

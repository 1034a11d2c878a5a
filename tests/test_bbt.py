"""Tests for lazy bounding box trees and their broad-phase searches."""

from __future__ import annotations

import numpy as np
import numpy.testing as nptest
import pytest

from nurbskit.bbt import (
    LazyCurveBoundingBoxTree,
    intersect_bounding_box_tree_with_plane,
    intersect_bounding_box_trees,
    self_intersect_bounding_box_tree,
)
from nurbskit.curve import NurbsCurve
from nurbskit.plane import Plane

LINEAR = [0.0, 0.0, 1.0, 1.0]


def _leaves(tree: LazyCurveBoundingBoxTree) -> list[NurbsCurve]:
    leaves: list[NurbsCurve] = []
    stack = [tree]
    while stack:
        node = stack.pop()
        if node.is_indivisible(0.0):
            leaves.append(node.yield_item())
        else:
            stack.extend(node.split())
    return leaves


@pytest.fixture
def wave() -> NurbsCurve:
    """A cubic curve in the xy plane."""
    return NurbsCurve.from_points(
        [[0.0, 0.0, 0.0], [1.0, 2.0, 0.0], [2.0, -2.0, 0.0], [3.0, 2.0, 0.0], [4.0, 0.0, 0.0]], 3
    )


class TestLazyCurveBoundingBoxTree:
    """Tests for `LazyCurveBoundingBoxTree`."""

    def test_default_knot_tolerance(self, wave: NurbsCurve) -> None:
        """Leaves are 64 times narrower than the domain by default."""
        tree = LazyCurveBoundingBoxTree(wave, seed=0)
        assert tree.knot_tolerance == pytest.approx(1.0 / 64)
        assert not tree.is_empty()
        assert tree.yield_item() is wave

    def test_invalid_arguments(self, wave: NurbsCurve) -> None:
        """Generator and seed are exclusive, and leaves need a positive width."""
        with pytest.raises(ValueError, match="cannot be given together"):
            LazyCurveBoundingBoxTree(wave, rng=np.random.default_rng(0), seed=1)
        with pytest.raises(ValueError, match="knot_tolerance must be positive"):
            LazyCurveBoundingBoxTree(wave, knot_tolerance=0.0)

    def test_box_of_control_points(self, wave: NurbsCurve) -> None:
        """The root box is the box of the control points."""
        box = LazyCurveBoundingBoxTree(wave, seed=0).bounding_box()
        nptest.assert_allclose(box.min_point, wave.control_points.min(axis=0))
        nptest.assert_allclose(box.max_point, wave.control_points.max(axis=0))

    def test_split_is_jittered(self, wave: NurbsCurve) -> None:
        """Children cover the parent domain and meet near its middle."""
        first, second = LazyCurveBoundingBoxTree(wave, seed=3).split()
        assert first.yield_item().domain[0] == pytest.approx(0.0)
        assert second.yield_item().domain[1] == pytest.approx(1.0)
        split = first.yield_item().domain[1]
        assert split == pytest.approx(second.yield_item().domain[0])
        assert 0.4 <= split <= 0.6

    def test_same_seed_same_tree(self, wave: NurbsCurve) -> None:
        """Seeded trees split at the same parameters."""
        domains_a = [leaf.domain for leaf in _leaves(LazyCurveBoundingBoxTree(wave, seed=7))]
        domains_b = [leaf.domain for leaf in _leaves(LazyCurveBoundingBoxTree(wave, seed=7))]
        nptest.assert_allclose(domains_a, domains_b)

    def test_leaves_cover_the_curve(self, wave: NurbsCurve) -> None:
        """Leaves are narrow, cover the domain and contain the curve."""
        tree = LazyCurveBoundingBoxTree(wave, knot_tolerance=0.1, seed=0)
        leaves = sorted(_leaves(tree), key=lambda leaf: leaf.domain[0])
        widths = [leaf.domain[1] - leaf.domain[0] for leaf in leaves]
        assert max(widths) < 0.1
        assert sum(widths) == pytest.approx(1.0)
        for leaf in leaves:
            box = LazyCurveBoundingBoxTree(leaf, knot_tolerance=0.1).bounding_box()
            for t in np.linspace(*leaf.domain, 5):
                assert box.contains(wave.point_at(t), tol=1e-12)


class TestTreeSearches:
    """Tests for the broad-phase searches over trees."""

    def test_crossing_lines(self) -> None:
        """Overlapping leaves gather around the crossing point."""
        line_a = NurbsCurve(1, LINEAR, [[0.0, 0.0], [2.0, 2.0]])
        line_b = NurbsCurve(1, LINEAR, [[0.0, 2.0], [2.0, 0.0]])
        rng = np.random.default_rng(0)
        pairs = list(
            intersect_bounding_box_trees(
                LazyCurveBoundingBoxTree(line_a, rng=rng), LazyCurveBoundingBoxTree(line_b, rng=rng)
            )
        )
        assert pairs
        for piece_a, piece_b in pairs:
            start, end = piece_a.domain
            assert start - 0.05 <= 0.5 <= end + 0.05
            start, end = piece_b.domain
            assert start - 0.05 <= 0.5 <= end + 0.05

    def test_disjoint_curves(self, wave: NurbsCurve) -> None:
        """Curves far apart produce no pairs."""
        far = NurbsCurve(1, LINEAR, [[0.0, 10.0, 0.0], [4.0, 10.0, 0.0]])
        pairs = intersect_bounding_box_trees(
            LazyCurveBoundingBoxTree(wave, seed=0), LazyCurveBoundingBoxTree(far, seed=0)
        )
        assert list(pairs) == []

    def test_plane(self, wave: NurbsCurve) -> None:
        """Leaves crossing the plane x = 2 sit around the curve middle."""
        plane = Plane([2.0, 0.0, 0.0], [1.0, 0.0, 0.0])
        leaves = list(intersect_bounding_box_tree_with_plane(LazyCurveBoundingBoxTree(wave, seed=0), plane))
        assert leaves
        for leaf in leaves:
            start, end = leaf.domain
            assert start - 0.05 <= 0.5 <= end + 0.05

    def test_plane_missed(self, wave: NurbsCurve) -> None:
        """A plane away from the curve is never crossed."""
        plane = Plane([0.0, 0.0, 1.0], [0.0, 0.0, 1.0])
        tree = LazyCurveBoundingBoxTree(wave, seed=0)
        assert list(intersect_bounding_box_tree_with_plane(tree, plane)) == []

    def test_self_intersection_halves(self) -> None:
        """Pairs always come from opposite halves of the tree."""
        line = NurbsCurve(1, LINEAR, [[0.0, 0.0], [1.0, 1.0]])
        tree = LazyCurveBoundingBoxTree(line, seed=0)
        pairs = list(self_intersect_bounding_box_tree(tree))
        # A straight line only touches itself at the split point.
        assert len(pairs) == 1
        piece_a, piece_b = pairs[0]
        assert piece_a.domain[1] == pytest.approx(piece_b.domain[0])

    def test_self_intersection_of_leaf(self) -> None:
        """A tree that is already a leaf has nothing to compare."""
        line = NurbsCurve(1, LINEAR, [[0.0, 0.0], [1.0, 1.0]])
        tree = LazyCurveBoundingBoxTree(line, knot_tolerance=2.0)
        assert list(self_intersect_bounding_box_tree(tree)) == []

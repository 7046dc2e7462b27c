"""Tests for net discovery and branch-point resolution."""

from __future__ import annotations

import unittest

from autowire.router.freespace import build_free_space
from autowire.router.models import Obstacle, PathRequest, Wire
from autowire.router.topology import (
    BranchPoint, NetSegment, apply_pin_offset, closest_valid_point, discover_net,
    infer_direction, resolve_branch,
)
from tests.board_fixtures import grid_px, s1_to_d_wire, tee_near_pin, tee_onto_wire


BOARD = (-20, -20, 60, 60)


def _free_space(obstacles=(), wires=()):
    return build_free_space(list(obstacles), list(wires), 20, BOARD)


class TestDiscoverNet(unittest.TestCase):

    def setUp(self):
        self.wires = [
            Wire(points=[grid_px(0, 0), grid_px(10, 0)], source_port_id="a", dest_port_id="b"),
            # shares port "b" with wire 0
            Wire(points=[grid_px(30, 30), grid_px(30, 35)], source_port_id="b", dest_port_id="c"),
            # no port ids, but starts exactly where wire 1 ends
            Wire(points=[grid_px(30, 35), grid_px(25, 35)]),
            # unrelated
            Wire(points=[grid_px(-10, -10), grid_px(-10, -5)], source_port_id="x", dest_port_id="y"),
        ]

    def test_transitive_closure_by_port_and_location(self):
        net = discover_net(self.wires, "a", grid_px(99, 99), 20)
        self.assertEqual(net.wire_indices, {0, 1, 2})
        self.assertEqual(len(net.segments), 3)

    def test_seed_by_location_only(self):
        net = discover_net(self.wires, None, (600.4, 700.3), 20)
        self.assertEqual(net.wire_indices, {0, 1, 2})

    def test_unknown_port_is_empty(self):
        net = discover_net(self.wires, "zzz", grid_px(50, 50), 20)
        self.assertEqual(net.wire_indices, set())
        self.assertEqual(net.segments, [])

    def test_segments_carry_wire_pins(self):
        net = discover_net(self.wires, "x", grid_px(99, 99), 20)
        self.assertEqual(net.wire_indices, {3})
        self.assertEqual(net.segments[0].pins, ((-10, -10), (-10, -5)))
        self.assertFalse(net.segments[0].horizontal)


class TestBranchPoint(unittest.TestCase):

    def setUp(self):
        self.seg = NetSegment(p1=(0, 0), p2=(20, 0), wire_index=0, pins=((0, 0), (20, 0)))
        self.net = discover_net([s1_to_d_wire()], "d.p", grid_px(20, 0), 20)

    def test_interior_projection(self):
        hit = closest_valid_point((5, 6), self.net, _free_space())
        self.assertEqual(hit.point, (5, 0))
        self.assertEqual(hit.distance, 6)
        self.assertFalse(hit.at_endpoint)

    def test_projection_inside_obstacle_rejected(self):
        """An interior projection outside every MER is not a valid branch."""
        blocker = Obstacle(x=3, y=-1, width=4, height=2)
        self.assertIsNone(closest_valid_point((5, 6), self.net, _free_space([blocker])))

    def test_endpoint_projection_always_valid(self):
        blocker = Obstacle(x=-2, y=-1, width=3, height=2)
        hit = closest_valid_point((-3, 6), self.net, _free_space([blocker]))
        self.assertEqual(hit.point, (0, 0))
        self.assertTrue(hit.at_endpoint)

    def test_pin_offset_moves_inward(self):
        hit = BranchPoint(point=(0, 0), distance=9, segment=self.seg, at_endpoint=True)
        self.assertEqual(apply_pin_offset(hit), (1, 0))
        hit = BranchPoint(point=(20, 0), distance=9, segment=self.seg, at_endpoint=True)
        self.assertEqual(apply_pin_offset(hit), (19, 0))

    def test_pin_offset_abandoned_on_unit_segment(self):
        seg = NetSegment(p1=(4, 4), p2=(4, 5), wire_index=0, pins=((4, 4), (4, 5)))
        hit = BranchPoint(point=(4, 4), distance=3, segment=seg, at_endpoint=True)
        self.assertEqual(apply_pin_offset(hit), (4, 4))

    def test_interior_point_not_offset(self):
        hit = BranchPoint(point=(7, 0), distance=3, segment=self.seg, at_endpoint=False)
        self.assertEqual(apply_pin_offset(hit), (7, 0))

    def test_direction_perpendicular_for_interior_point(self):
        hit = BranchPoint(point=(5, 0), distance=6, segment=self.seg, at_endpoint=False)
        self.assertEqual(infer_direction(hit, (5, 0), (9, 6)), (0, 1))
        self.assertEqual(infer_direction(hit, (5, 0), (1, -6)), (0, -1))

    def test_direction_perpendicular_after_pin_offset(self):
        """An offset point is inside the segment, so it never leaves along the wire."""
        hit = BranchPoint(point=(0, 0), distance=11, segment=self.seg, at_endpoint=True)
        self.assertEqual(infer_direction(hit, (1, 0), (-3, 6)), (0, 1))
        self.assertEqual(infer_direction(hit, (1, 0), (-9, 2)), (0, 1))
        self.assertEqual(infer_direction(hit, (1, 0), (-9, -2)), (0, -1))

    def test_direction_dominant_axis_on_pin(self):
        seg = NetSegment(p1=(4, 4), p2=(4, 5), wire_index=0, pins=((4, 4), (4, 5)))
        hit = BranchPoint(point=(4, 4), distance=7, segment=seg, at_endpoint=True)
        self.assertEqual(infer_direction(hit, (4, 4), (10, 5)), (1, 0))
        self.assertEqual(infer_direction(hit, (4, 4), (5, -3)), (0, -1))


class TestResolveBranch(unittest.TestCase):

    def test_branch_onto_wire_interior(self):
        plan = resolve_branch(tee_onto_wire(), _free_space(wires=[s1_to_d_wire()]))
        self.assertTrue(plan.branched)
        self.assertEqual(plan.side, "end")
        self.assertEqual(plan.request.end, grid_px(5, 0))
        self.assertEqual(plan.request.end_direction, (0, 1))
        self.assertIsNone(plan.request.end_port_id)
        self.assertEqual(plan.request.start, grid_px(5, 6))

    def test_branch_next_to_pin(self):
        plan = resolve_branch(tee_near_pin(), _free_space(wires=[s1_to_d_wire()]))
        self.assertTrue(plan.branched)
        self.assertEqual(plan.request.end, grid_px(1, 0))

    def test_offset_branch_approaches_across_wire(self):
        request = PathRequest(
            start=grid_px(-9, 2), end=grid_px(20, 0),
            start_port_id="e.p", end_port_id="d.p",
            existing_wires=[s1_to_d_wire()],
        )
        plan = resolve_branch(request, _free_space(wires=[s1_to_d_wire()]))
        self.assertEqual(plan.request.end, grid_px(1, 0))
        self.assertEqual(plan.request.end_direction, (0, 1))

    def test_branch_from_start_side(self):
        """The start port's net lies close to the end port."""
        request = PathRequest(
            start=grid_px(20, 0), end=grid_px(5, 6),
            start_port_id="d.p", end_port_id="e.p",
            existing_wires=[s1_to_d_wire()],
        )
        plan = resolve_branch(request, _free_space(wires=[s1_to_d_wire()]))
        self.assertTrue(plan.branched)
        self.assertEqual(plan.side, "start")
        self.assertEqual(plan.request.start, grid_px(5, 0))
        self.assertIsNone(plan.request.start_port_id)
        self.assertEqual(plan.request.end, grid_px(5, 6))

    def test_same_net_not_rewritten(self):
        request = PathRequest(
            start=grid_px(0, 0), end=grid_px(20, 0),
            start_port_id="s1.p", end_port_id="d.p",
            existing_wires=[s1_to_d_wire()],
        )
        plan = resolve_branch(request, _free_space(wires=[s1_to_d_wire()]))
        self.assertFalse(plan.branched)
        self.assertIs(plan.request, request)

    def test_marginal_gain_ignored(self):
        """A branch must beat the direct distance by more than one unit."""
        request = PathRequest(
            start=grid_px(21, 1), end=grid_px(20, 3),
            end_port_id="d.p",
            existing_wires=[s1_to_d_wire()],
        )
        plan = resolve_branch(request, _free_space(wires=[s1_to_d_wire()]))
        self.assertFalse(plan.branched)

    def test_no_wires(self):
        request = PathRequest(start=(0.0, 0.0), end=(100.0, 0.0))
        self.assertFalse(resolve_branch(request, _free_space()).branched)


if __name__ == "__main__":
    unittest.main()

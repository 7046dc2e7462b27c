"""Net topology resolution: branch new wires off existing nets.

A new connection between two ports should extend the nets already
attached to them as a tree (T-junction) rather than draw a parallel
duplicate wire.  Before routing, the resolver:

  1. Discovers Net A (wires reachable from the start port) and Net B
     (wires reachable from the end port).
  2. Skips everything if the two nets already share a wire.
  3. Compares three candidates and keeps the cheapest:
       a. start -> end                      (direct)
       b. start -> closest point on Net B
       c. closest point on Net A -> end
     A branch candidate must beat the best so far by more than one
     grid unit, which suppresses micro-branches.
  4. Moves a branch point that lands exactly on a pin one unit inward,
     and infers the approach direction at the branch point.

The rewritten request is then routed as usual; the relaxation pipeline
does not know a branch occurred.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Sequence

from .freespace import FreeSpace
from .geometry import (
    closest_point_on_segment, manhattan, path_to_grid, point_to_grid,
    point_to_pixel, sign,
)
from .models import GridPoint, PathRequest, PixelPoint, Wire


log = logging.getLogger(__name__)

# Endpoints closer than this (pixels, per axis) count as coincident
COINCIDENT_PX = 1.0


# ── Data structures ────────────────────────────────────────────────


@dataclass
class NetSegment:
    """One straight piece of a wire in a net, in grid units."""

    p1: GridPoint
    p2: GridPoint
    wire_index: int
    pins: tuple[GridPoint, GridPoint]   # first and last point of the owning wire

    @property
    def horizontal(self) -> bool:
        return self.p1[1] == self.p2[1]


@dataclass
class Net:
    """The wires transitively connected to one endpoint."""

    wire_indices: set[int] = field(default_factory=set)
    segments: list[NetSegment] = field(default_factory=list)


@dataclass
class BranchPoint:
    """The closest valid point of a net to some target."""

    point: GridPoint
    distance: float
    segment: NetSegment
    at_endpoint: bool   # projection coincides with a segment endpoint


@dataclass
class BranchPlan:
    """Outcome of topology resolution."""

    request: PathRequest
    branched: bool = False
    side: str | None = None   # "start" or "end" when branched


# ── Net discovery ──────────────────────────────────────────────────


def _coincident(a: PixelPoint, b: PixelPoint) -> bool:
    return abs(a[0] - b[0]) < COINCIDENT_PX and abs(a[1] - b[1]) < COINCIDENT_PX


def _wire_ends(wire: Wire) -> tuple[PixelPoint, PixelPoint]:
    return wire.points[0], wire.points[-1]


def _port_ids(wire: Wire) -> set[str]:
    return {p for p in (wire.source_port_id, wire.dest_port_id) if p}


def _wires_connected(a: Wire, b: Wire) -> bool:
    """Shared port identifier or a coincident endpoint."""
    if _port_ids(a) & _port_ids(b):
        return True
    return any(_coincident(pa, pb) for pa in _wire_ends(a) for pb in _wire_ends(b))


def discover_net(
    wires: Sequence[Wire],
    port_id: str | None,
    point: PixelPoint,
    grid_size: float,
) -> Net:
    """Breadth-first traversal over *wires* from a port.

    A wire seeds the net if it names *port_id* as source or destination,
    or if one of its ends coincides with *point*.  Any wire connected to
    a wire already in the net joins it.
    """
    net = Net()
    usable = [i for i, w in enumerate(wires) if w.points]

    queue: deque[int] = deque()
    for i in usable:
        w = wires[i]
        by_port = port_id is not None and port_id in _port_ids(w)
        by_location = any(_coincident(p, point) for p in _wire_ends(w))
        if by_port or by_location:
            net.wire_indices.add(i)
            queue.append(i)

    while queue:
        cur = queue.popleft()
        for i in usable:
            if i not in net.wire_indices and _wires_connected(wires[cur], wires[i]):
                net.wire_indices.add(i)
                queue.append(i)

    for i in sorted(net.wire_indices):
        grid_pts = path_to_grid(wires[i].points, grid_size)
        pins = (grid_pts[0], grid_pts[-1])
        for p1, p2 in zip(grid_pts, grid_pts[1:]):
            net.segments.append(NetSegment(p1=p1, p2=p2, wire_index=i, pins=pins))
    return net


# ── Candidate evaluation ───────────────────────────────────────────


def closest_valid_point(
    target: GridPoint,
    net: Net,
    free_space: FreeSpace,
) -> BranchPoint | None:
    """Closest point of *net* to *target* that lies in routable space.

    A projection strictly inside a segment must fall inside some MER;
    a projection onto a segment endpoint is always structurally valid.
    """
    best: BranchPoint | None = None
    for seg in net.segments:
        pt = closest_point_on_segment(target, seg.p1, seg.p2)
        at_endpoint = pt == seg.p1 or pt == seg.p2
        if not at_endpoint and not free_space.contains(pt):
            continue
        d = manhattan(target, pt)
        if best is None or d < best.distance:
            best = BranchPoint(point=pt, distance=d, segment=seg, at_endpoint=at_endpoint)
    return best


def apply_pin_offset(branch: BranchPoint) -> GridPoint:
    """Move a branch point off a wire pin, one unit along its segment.

    A junction exactly on a pin is ambiguous on a schematic.  If the
    segment is a single unit long the shift would land on the other pin,
    so the offset is abandoned and the pin itself is used.
    """
    pt = branch.point
    seg = branch.segment
    if pt not in seg.pins:
        return pt

    if pt == seg.p1:
        toward = seg.p2
    elif pt == seg.p2:
        toward = seg.p1
    else:
        return pt
    shifted = (pt[0] + sign(toward[0] - pt[0]), pt[1] + sign(toward[1] - pt[1]))
    if shifted in seg.pins or shifted == pt:
        return pt
    return shifted


def infer_direction(branch: BranchPoint, point: GridPoint, other: GridPoint) -> GridPoint:
    """Forced approach direction at a branch *point* toward *other*.

    Interior branch points leave perpendicular to their segment, and so
    does a point the pin offset moved inward.  Points still on a segment
    endpoint use the dominant axis of displacement instead.
    """
    dx = other[0] - point[0]
    dy = other[1] - point[1]
    if branch.at_endpoint and point == branch.point:
        if abs(dx) > abs(dy):
            return (sign(dx), 0)
        if dy == 0:
            return (0, 0)
        return (0, sign(dy))
    if branch.segment.horizontal:
        return (0, -1) if other[1] < point[1] else (0, 1)
    return (-1, 0) if other[0] < point[0] else (1, 0)


def resolve_branch(request: PathRequest, free_space: FreeSpace) -> BranchPlan:
    """Rewrite *request* to branch onto an existing net when that is shorter."""
    gs = request.grid_size
    wires = request.existing_wires
    if not wires:
        return BranchPlan(request=request)

    start_g = point_to_grid(request.start, gs)
    end_g = point_to_grid(request.end, gs)

    net_a = discover_net(wires, request.start_port_id, request.start, gs)
    net_b = discover_net(wires, request.end_port_id, request.end, gs)

    if net_a.wire_indices & net_b.wire_indices:
        log.debug("Topology: endpoints already on the same net, routing directly")
        return BranchPlan(request=request)

    best_dist = manhattan(start_g, end_g)
    plan = BranchPlan(request=request)

    # Start -> closest point on Net B
    if net_b.segments:
        hit = closest_valid_point(start_g, net_b, free_space)
        if hit is not None and hit.distance < best_dist - 1:
            point = apply_pin_offset(hit)
            direction = infer_direction(hit, point, start_g)
            best_dist = hit.distance
            plan = BranchPlan(
                request=replace(
                    request,
                    end=point_to_pixel(point, gs),
                    end_direction=direction,
                    end_port_id=None,
                ),
                branched=True,
                side="end",
            )

    # Closest point on Net A -> end
    if net_a.segments:
        hit = closest_valid_point(end_g, net_a, free_space)
        if hit is not None and hit.distance < best_dist - 1:
            point = apply_pin_offset(hit)
            direction = infer_direction(hit, point, end_g)
            best_dist = hit.distance
            plan = BranchPlan(
                request=replace(
                    request,
                    start=point_to_pixel(point, gs),
                    start_direction=direction,
                    start_port_id=None,
                ),
                branched=True,
                side="start",
            )

    if plan.branched:
        log.debug("Topology: branching %s onto existing net at %s (dist=%s)",
                  plan.side,
                  plan.request.end if plan.side == "end" else plan.request.start,
                  best_dist)
    return plan

"""Path post-processing: collinear simplification and segment nudging."""

from __future__ import annotations

import logging
from typing import Sequence, TypeVar

from .freespace import FreeSpace
from .geometry import path_to_grid
from .models import GridPoint, Obstacle, Wire


log = logging.getLogger(__name__)

P = TypeVar("P", bound=tuple)


def simplify_path(points: Sequence[P]) -> list[P]:
    """Drop repeated points and interior points collinear with both neighbours.

    (0,0) -> (20,0) -> (40,0) becomes (0,0) -> (40,0).  Each point is
    compared against the last point kept, so simplifying an already
    simplified path returns it unchanged.
    """
    if len(points) < 2:
        return list(points)

    out: list[P] = []
    for p in points:
        if out and out[-1] == p:
            continue
        while len(out) >= 2:
            a, b = out[-2], out[-1]
            same_horizontal = a[1] == b[1] == p[1]
            same_vertical = a[0] == b[0] == p[0]
            if not (same_horizontal or same_vertical):
                break
            out.pop()
        out.append(p)
    return out


# ── Nudging ────────────────────────────────────────────────────────


def hugging_push(p1: GridPoint, p2: GridPoint, obstacles: Sequence[Obstacle]) -> GridPoint | None:
    """Outward push vector if the segment runs one unit outside an obstacle.

    A horizontal segment hugs an obstacle when it overlaps the obstacle
    horizontally and sits on the row just above (push up) or just below
    (push down) it; vertical segments likewise on columns.  Returns None
    when the segment is not hugging anything.
    """
    min_x, max_x = min(p1[0], p2[0]), max(p1[0], p2[0])
    min_y, max_y = min(p1[1], p2[1]), max(p1[1], p2[1])
    horizontal = p1[1] == p2[1]

    for obs in obstacles:
        if horizontal:
            if max_x >= obs.x and min_x <= obs.x2:
                if p1[1] == obs.y - 1:
                    return (0, -1)
                if p1[1] == obs.y2:
                    return (0, 1)
        else:
            if max_y >= obs.y and min_y <= obs.y2:
                if p1[0] == obs.x - 1:
                    return (-1, 0)
                if p1[0] == obs.x2:
                    return (1, 0)
    return None


def _boxes_overlap(a1: GridPoint, a2: GridPoint, b1: GridPoint, b2: GridPoint) -> bool:
    if max(a1[0], a2[0]) < min(b1[0], b2[0]) or min(a1[0], a2[0]) > max(b1[0], b2[0]):
        return False
    if max(a1[1], a2[1]) < min(b1[1], b2[1]) or min(a1[1], a2[1]) > max(b1[1], b2[1]):
        return False
    return True


def wire_segments(wires: Sequence[Wire], grid_size: float) -> list[tuple[GridPoint, GridPoint]]:
    segs: list[tuple[GridPoint, GridPoint]] = []
    for w in wires:
        if not w.points or len(w.points) < 2:
            continue
        pts = path_to_grid(w.points, grid_size)
        segs.extend(zip(pts, pts[1:]))
    return segs


def segment_is_clear(
    p1: GridPoint,
    p2: GridPoint,
    free_space: FreeSpace,
    existing: Sequence[tuple[GridPoint, GridPoint]],
) -> bool:
    """Both ends in some MER and no bounding-box contact with any wire."""
    if not free_space.contains(p1) or not free_space.contains(p2):
        return False
    return not any(_boxes_overlap(p1, p2, a, b) for a, b in existing)


def nudge_segments(
    grid_path: Sequence[GridPoint],
    obstacles: Sequence[Obstacle],
    wires: Sequence[Wire],
    free_space: FreeSpace,
    grid_size: float,
) -> list[GridPoint]:
    """Shift wall-hugging interior segments one unit away from the wall.

    Single left-to-right pass over the interior segments; the first and
    last segments attach to ports and are never moved.  Adjacent
    segments of a simplified path are perpendicular, so moving both ends
    of one segment stretches or shrinks its neighbours without breaking
    the Manhattan property.  Returns a new (unsimplified) list.
    """
    existing = wire_segments(wires, grid_size)
    path = list(grid_path)
    moved = 0
    for i in range(1, len(path) - 2):
        p1, p2 = path[i], path[i + 1]
        if p1[0] != p2[0] and p1[1] != p2[1]:
            continue

        push = hugging_push(p1, p2, obstacles)
        if push is None:
            continue

        n1 = (p1[0] + push[0], p1[1] + push[1])
        n2 = (p2[0] + push[0], p2[1] + push[1])
        if segment_is_clear(n1, n2, free_space, existing):
            path[i] = n1
            path[i + 1] = n2
            moved += 1

    if moved:
        log.debug("Nudged %d segment(s) away from component walls", moved)
    return path

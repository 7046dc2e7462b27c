"""Free-space decomposition into Maximal Empty Rectangles (MERs).

The board rectangle is split recursively around obstacles:

  1. Take a rectangle of free space.
  2. Find the first obstacle intersecting it.
  3. Split the rectangle into up to four pieces around the obstacle:
     top and bottom as full-width strips, left and right confined to the
     obstacle's vertical span so no area is covered twice.
  4. Repeat on every piece until no obstacle intersects it.

The leaves are the MERs.  Each MER also records which of its
sub-squares an existing wire passes through; the resulting density makes
the coarse corridor search avoid crowded regions without forbidding them.

The MER graph is used for three things: the coarse corridor search that
masks the fine grid search, validating net-branch points, and validating
nudged segments.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from shapely.geometry import Point, box
from shapely.strtree import STRtree

from .geometry import manhattan, path_to_grid
from .grid import RoutingMaps
from .models import GridPoint, Obstacle, RouterConfig, Wire


log = logging.getLogger(__name__)

Rect = tuple[int, int, int, int]   # (x, y, w, h) in grid units

_DEFAULT_CFG = RouterConfig()


@dataclass
class FreeRect:
    """A maximal obstacle-free rectangle in grid units."""

    id: int
    x: int
    y: int
    width: int
    height: int
    square_size: int = 2
    # (i, j) indices of sub-squares an existing wire passes through
    wire_squares: set[tuple[int, int]] = field(default_factory=set)

    @property
    def has_wire(self) -> bool:
        return bool(self.wire_squares)

    @property
    def square_count(self) -> int:
        s = self.square_size
        return max(1, math.ceil(self.width / s) * math.ceil(self.height / s))

    @property
    def density(self) -> float:
        """Fraction of sub-squares occupied by wires."""
        return len(self.wire_squares) / self.square_count

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, p: Sequence[float]) -> bool:
        """Closed containment: points on the border count as inside."""
        return (self.x <= p[0] <= self.x + self.width
                and self.y <= p[1] <= self.y + self.height)

    def cells(self) -> Iterable[GridPoint]:
        """Every grid node of the rectangle, borders included."""
        for gx in range(self.x, self.x + self.width + 1):
            for gy in range(self.y, self.y + self.height + 1):
                yield (gx, gy)


# ── Decomposition ──────────────────────────────────────────────────


def _intersects(space: Rect, obs: Rect) -> bool:
    sx, sy, sw, sh = space
    ox, oy, ow, oh = obs
    return not (ox >= sx + sw or ox + ow <= sx or oy >= sy + sh or oy + oh <= sy)


def _split(space: Rect, obs: Rect) -> list[Rect]:
    """The up-to-four pieces of *space* surrounding *obs*."""
    sx, sy, sw, sh = space
    ox, oy, ow, oh = obs
    pieces: list[Rect] = []

    # Top strip (full width)
    if oy > sy:
        pieces.append((sx, sy, sw, oy - sy))
    # Bottom strip (full width)
    if oy + oh < sy + sh:
        pieces.append((sx, oy + oh, sw, (sy + sh) - (oy + oh)))

    # Left and right strips, confined to the obstacle's vertical span
    y1 = max(sy, oy)
    y2 = min(sy + sh, oy + oh)
    if ox > sx and y2 > y1:
        pieces.append((sx, y1, ox - sx, y2 - y1))
    if ox + ow < sx + sw and y2 > y1:
        pieces.append((ox + ow, y1, (sx + sw) - (ox + ow), y2 - y1))
    return pieces


def decompose(board: Rect, obstacles: Sequence[Obstacle]) -> list[Rect]:
    """Split *board* into obstacle-free rectangles.

    Uses an explicit stack; the output order matches a depth-first
    recursion visiting top, bottom, left and right pieces in turn.
    """
    obs_rects = [
        (o.x, o.y, o.width, o.height)
        for o in obstacles
        if o.width > 0 and o.height > 0
    ]
    if board[2] <= 0 or board[3] <= 0:
        return []

    result: list[Rect] = []
    stack: list[Rect] = [board]
    while stack:
        space = stack.pop()
        hit = next((o for o in obs_rects if _intersects(space, o)), None)
        if hit is None:
            result.append(space)
            continue
        stack.extend(reversed(_split(space, hit)))
    return result


def board_bounds(
    obstacles: Sequence[Obstacle],
    wires: Sequence[Wire],
    points: Iterable[GridPoint],
    grid_size: float,
    margin: int,
) -> Rect:
    """Bounding box of all drawn geometry, grown by *margin* cells."""
    xs: list[int] = []
    ys: list[int] = []
    for o in obstacles:
        xs += [o.x, o.x + o.width]
        ys += [o.y, o.y + o.height]
    for w in wires:
        for gx, gy in path_to_grid(w.points or [], grid_size):
            xs.append(gx)
            ys.append(gy)
    for gx, gy in points:
        xs.append(gx)
        ys.append(gy)
    if not xs:
        return (-margin, -margin, 2 * margin, 2 * margin)
    x0, y0 = min(xs) - margin, min(ys) - margin
    x1, y1 = max(xs) + margin, max(ys) + margin
    return (x0, y0, x1 - x0, y1 - y0)


# ── The MER graph ──────────────────────────────────────────────────


class FreeSpace:
    """The MERs of a board with spatial lookup and adjacency."""

    def __init__(self, rects: list[FreeRect]) -> None:
        self.rects = rects
        self._boxes = [box(r.x, r.y, r.x + r.width, r.y + r.height) for r in rects]
        self._tree = STRtree(self._boxes) if rects else None
        self._adjacency: dict[int, list[int]] | None = None

    # ── Point queries ──────────────────────────────────────────────

    def rect_at(self, p: GridPoint) -> FreeRect | None:
        """The first MER containing *p* (borders included), or None."""
        if self._tree is None:
            return None
        hits = self._tree.query(Point(p[0], p[1]), predicate="intersects")
        if len(hits) == 0:
            return None
        return self.rects[int(min(hits))]

    def contains(self, p: GridPoint) -> bool:
        return self.rect_at(p) is not None

    # ── Adjacency ──────────────────────────────────────────────────

    def neighbours(self, rect_id: int) -> list[FreeRect]:
        """MERs sharing a border of nonzero length with *rect_id*."""
        if self._adjacency is None:
            self._adjacency = self._build_adjacency()
        return [self.rects[j] for j in self._adjacency.get(rect_id, [])]

    def _build_adjacency(self) -> dict[int, list[int]]:
        adj: dict[int, list[int]] = {r.id: [] for r in self.rects}
        if self._tree is None:
            return adj
        for i, geom in enumerate(self._boxes):
            for j in self._tree.query(geom, predicate="touches"):
                j = int(j)
                if j == i:
                    continue
                # Corner contact gives a point (length 0), not a shared border
                if geom.intersection(self._boxes[j]).length > 0:
                    adj[i].append(j)
        return adj

    # ── Coarse corridor search ─────────────────────────────────────

    def find_corridor(
        self,
        start: FreeRect,
        end: FreeRect,
        penalties: dict[int, float] | None = None,
        config: RouterConfig | None = None,
    ) -> list[FreeRect]:
        """A* over the MER adjacency graph.

        Edge cost is the centre-to-centre Manhattan distance, plus a
        density cost for rectangles that already carry wires, plus any
        fatigue penalty left by earlier failed attempts.  Returns the
        rectangles from *start* to *end*, or ``[]``.
        """
        cfg = config or _DEFAULT_CFG
        penalties = penalties or {}
        end_center = end.center

        counter = itertools.count()
        heap: list[tuple[float, int, float, int]] = [
            (manhattan(start.center, end_center), next(counter), 0.0, start.id),
        ]
        g_scores: dict[int, float] = {start.id: 0.0}
        parents: dict[int, int | None] = {start.id: None}
        closed: set[int] = set()

        while heap:
            _f, _cnt, g, rid = heapq.heappop(heap)
            if rid in closed:
                continue
            if rid == end.id:
                path: list[FreeRect] = []
                k: int | None = rid
                while k is not None:
                    path.append(self.rects[k])
                    k = parents[k]
                path.reverse()
                return path
            closed.add(rid)

            current = self.rects[rid]
            for nb in self.neighbours(rid):
                if nb.id in closed:
                    continue
                cost = manhattan(current.center, nb.center)
                if nb.has_wire:
                    cost += cfg.wire_rect_cost + nb.density * cfg.density_weight
                cost += penalties.get(nb.id, 0.0)

                new_g = g + cost
                if new_g < g_scores.get(nb.id, math.inf):
                    g_scores[nb.id] = new_g
                    parents[nb.id] = rid
                    h = manhattan(nb.center, end_center)
                    heapq.heappush(heap, (new_g + h, next(counter), new_g, nb.id))

        return []


def corridor_mask(rects: Iterable[FreeRect], extra: Iterable[GridPoint] = ()) -> set[GridPoint]:
    """Grid nodes the fine search may use inside a corridor."""
    allowed: set[GridPoint] = set()
    for r in rects:
        allowed.update(r.cells())
    allowed.update(extra)
    return allowed


# ── Construction ───────────────────────────────────────────────────


def build_free_space(
    obstacles: Sequence[Obstacle],
    wires: Sequence[Wire],
    grid_size: float,
    board: Rect,
    sub_square_size: int = _DEFAULT_CFG.sub_square_size,
) -> FreeSpace:
    """Decompose *board* and annotate every MER with wire density."""
    rects = [
        FreeRect(id=i, x=x, y=y, width=w, height=h, square_size=sub_square_size)
        for i, (x, y, w, h) in enumerate(decompose(board, obstacles))
    ]
    space = FreeSpace(rects)

    wire_cells = RoutingMaps()
    for wire in wires:
        if wire.points and len(wire.points) >= 2:
            wire_cells.mark_wire(path_to_grid(wire.points, grid_size))

    s = sub_square_size
    for cx, cy in wire_cells.occupancy:
        r = space.rect_at((cx, cy))
        if r is None:
            continue
        # Sub-squares are half-open; a cell on the far border falls in the last one
        i = min((cx - r.x) // s, max(0, math.ceil(r.width / s) - 1))
        j = min((cy - r.y) // s, max(0, math.ceil(r.height / s) - 1))
        r.wire_squares.add((i, j))

    log.debug("Free space: %d MERs on board %s (%d with wires)",
              len(rects), board, sum(1 for r in rects if r.has_wire))
    return space

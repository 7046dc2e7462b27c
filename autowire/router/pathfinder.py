"""A* pathfinder for Manhattan wire routing on the sparse grid.

Supports:
  - Unidirectional search (find_path), g-scores keyed by cell and arrival
    direction so the turn penalty is exact
  - Bi-directional search (find_path_bidirectional), two frontiers
    expanded alternately, optionally masked to a coarse corridor
  - Turn penalty to prefer straight runs
  - Crossing penalty for perpendicular moves over an existing wire
  - Collinear overlap with an existing wire rejected, or heavily
    penalised when ``allow_collinear`` is set

Every search returns ``[]`` when the iteration cap is hit or the frontier
runs dry.
"""

from __future__ import annotations

import heapq
import itertools
import math
from typing import AbstractSet

from .geometry import ZERO, is_turn, manhattan
from .grid import RoutingMaps
from .models import GridPoint, RouterConfig, WIRE_HORIZONTAL, WIRE_VERTICAL


# Manhattan directions: (dx, dy), screen coordinates
MOVES: tuple[GridPoint, ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))

_DEFAULT_CFG = RouterConfig()


def _step_cost(
    maps: RoutingMaps,
    cell: GridPoint,
    move: GridPoint,
    allow_collinear: bool,
    cfg: RouterConfig,
) -> float | None:
    """Cost of entering *cell* moving along *move*, or None if forbidden."""
    cell_cost = maps.cost.get(cell, 0)
    if cell_cost == math.inf:
        return None

    bits = maps.occupancy.get(cell, 0)
    if move[0] != 0:
        same_axis, other_axis = WIRE_HORIZONTAL, WIRE_VERTICAL
    else:
        same_axis, other_axis = WIRE_VERTICAL, WIRE_HORIZONTAL

    cost = cfg.base_move + cell_cost
    if bits & same_axis:
        if not allow_collinear:
            return None
        cost += cfg.overlap_penalty
    if bits & other_axis:
        cost += cfg.crossing_penalty
    return cost


def _reverse(d: GridPoint) -> GridPoint:
    return (-d[0], -d[1])


# ── Unidirectional A* ──────────────────────────────────────────────


def find_path(
    maps: RoutingMaps,
    start: GridPoint,
    goal: GridPoint,
    start_dir: GridPoint = ZERO,
    *,
    allow_collinear: bool = False,
    allowed: AbstractSet[GridPoint] | None = None,
    config: RouterConfig | None = None,
) -> list[GridPoint]:
    """A* from *start* to *goal*.

    *start_dir* is the forced exit direction of the start port: leaving
    *start* in any other direction costs a turn.  Returns the list of
    grid cells from start to goal, or ``[]``.
    """
    cfg = config or _DEFAULT_CFG
    if start == goal:
        return [start]

    mult = cfg.heuristic_multiplier
    counter = itertools.count()
    start_state = (start, start_dir)
    h0 = manhattan(start, goal) * mult
    heap: list[tuple[float, int, float, GridPoint, GridPoint]] = [
        (h0, next(counter), 0.0, start, start_dir),
    ]
    g_scores: dict[tuple[GridPoint, GridPoint], float] = {start_state: 0.0}
    parents: dict[tuple[GridPoint, GridPoint], tuple[GridPoint, GridPoint] | None] = {
        start_state: None,
    }

    iterations = 0
    while heap:
        iterations += 1
        if iterations > cfg.max_iterations:
            break

        _f, _cnt, g, cell, direction = heapq.heappop(heap)
        state = (cell, direction)
        if g > g_scores.get(state, math.inf):
            continue

        if cell == goal:
            path: list[GridPoint] = []
            k: tuple[GridPoint, GridPoint] | None = state
            while k is not None:
                path.append(k[0])
                k = parents[k]
            path.reverse()
            return path

        cx, cy = cell
        for move in MOVES:
            nxt = (cx + move[0], cy + move[1])
            if allowed is not None and nxt not in allowed:
                continue
            step = _step_cost(maps, nxt, move, allow_collinear, cfg)
            if step is None:
                continue
            new_g = g + step
            if is_turn(direction, move):
                new_g += cfg.turn_penalty

            nstate = (nxt, move)
            if new_g < g_scores.get(nstate, math.inf):
                g_scores[nstate] = new_g
                parents[nstate] = state
                h = manhattan(nxt, goal) * mult
                heapq.heappush(heap, (new_g + h, next(counter), new_g, nxt, move))

    return []


# ── Bi-directional A* ──────────────────────────────────────────────


class _Frontier:
    """One side of the bi-directional search.

    In direction-keyed mode a search state is ``(cell, arrival_dir)``;
    otherwise it is the bare cell and only the latest arrival direction
    is remembered.
    """

    def __init__(self, target: GridPoint, keyed: bool, counter, multiplier: float) -> None:
        self.target = target
        self.keyed = keyed
        self.heap: list[tuple[float, int, float, GridPoint, GridPoint]] = []
        self.g: dict = {}
        self.parents: dict = {}
        # cell -> {arrival_dir: g}, used to detect contact with the other side
        self.labels: dict[GridPoint, dict[GridPoint, float]] = {}
        self._counter = counter
        self._mult = multiplier

    def key(self, cell: GridPoint, direction: GridPoint):
        return (cell, direction) if self.keyed else cell

    def cell_of(self, key) -> GridPoint:
        return key[0] if self.keyed else key

    def top(self) -> float:
        return self.heap[0][0] if self.heap else math.inf

    def push(self, cell: GridPoint, direction: GridPoint, g: float, parent) -> bool:
        k = self.key(cell, direction)
        if g >= self.g.get(k, math.inf):
            return False
        self.g[k] = g
        self.parents[k] = parent
        if self.keyed:
            self.labels.setdefault(cell, {})[direction] = g
        else:
            self.labels[cell] = {direction: g}
        h = manhattan(cell, self.target) * self._mult
        heapq.heappush(self.heap, (g + h, next(self._counter), g, cell, direction))
        return True

    def chain(self, key) -> list[GridPoint]:
        """Cells from *key* back to this frontier's seed."""
        cells: list[GridPoint] = []
        while key is not None:
            cells.append(self.cell_of(key))
            key = self.parents[key]
        return cells


def find_path_bidirectional(
    maps: RoutingMaps,
    start: GridPoint,
    goal: GridPoint,
    *,
    start_dir: GridPoint = ZERO,
    goal_dir: GridPoint = ZERO,
    allowed: AbstractSet[GridPoint] | None = None,
    allow_collinear: bool = False,
    direction_keyed: bool = True,
    config: RouterConfig | None = None,
) -> list[GridPoint]:
    """Bi-directional A* between *start* and *goal*.

    *start_dir* is the direction the path travels when it leaves *start*;
    *goal_dir* is the direction pointing from the goal's port out through
    *goal*, i.e. the direction the backward search continues in for free.

    If *allowed* is given, only those cells may be entered.

    With ``direction_keyed=False`` both frontiers key their g-scores by
    cell alone and the search stops at the first node popped that the
    other side has already reached.  This is fast but can miss the
    turn-optimal path.  With ``direction_keyed=True`` states carry the
    arrival direction, every contact between the frontiers updates the
    best meeting cost (plus a turn penalty if the halves meet at an
    angle), and the search stops once that cost is no greater than the
    larger of the two frontier minima.

    Returns the list of grid cells from start to goal, or ``[]``.
    """
    cfg = config or _DEFAULT_CFG
    if start == goal:
        return [start]

    counter = itertools.count()
    mult = cfg.heuristic_multiplier
    fwd = _Frontier(goal, direction_keyed, counter, mult)
    bwd = _Frontier(start, direction_keyed, counter, mult)
    fwd.push(start, start_dir, 0.0, None)
    bwd.push(goal, goal_dir, 0.0, None)

    best = math.inf
    meet: tuple | None = None   # (forward key, backward key)

    def meeting_cost(g_fwd: float, d_fwd: GridPoint, g_bwd: float, d_bwd: GridPoint) -> float:
        cost = g_fwd + g_bwd
        if is_turn(d_fwd, _reverse(d_bwd)):
            cost += cfg.turn_penalty
        return cost

    def expand(side: _Frontier, other: _Frontier, forward: bool) -> bool:
        """Pop and expand one node.  Returns True when the frontiers met
        in first-contact mode."""
        nonlocal best, meet
        _f, _cnt, g, cell, direction = heapq.heappop(side.heap)
        cur_key = side.key(cell, direction)
        if g > side.g.get(cur_key, math.inf):
            return False

        if not direction_keyed and cell in other.g:
            meet = (cell, cell)
            return True

        cx, cy = cell
        for move in MOVES:
            nxt = (cx + move[0], cy + move[1])
            if allowed is not None and nxt not in allowed:
                continue
            step = _step_cost(maps, nxt, move, allow_collinear, cfg)
            if step is None:
                continue
            new_g = g + step
            if is_turn(direction, move):
                new_g += cfg.turn_penalty

            if not side.push(nxt, move, new_g, cur_key) or not direction_keyed:
                continue

            for other_dir, other_g in other.labels.get(nxt, {}).items():
                if forward:
                    cost = meeting_cost(new_g, move, other_g, other_dir)
                    pair = ((nxt, move), (nxt, other_dir))
                else:
                    cost = meeting_cost(other_g, other_dir, new_g, move)
                    pair = ((nxt, other_dir), (nxt, move))
                if cost < best:
                    best = cost
                    meet = pair
        return False

    iterations = 0
    while fwd.heap and bwd.heap:
        if direction_keyed and max(fwd.top(), bwd.top()) >= best:
            break
        iterations += 1
        if iterations > cfg.max_bidirectional_iterations:
            break
        if expand(fwd, bwd, True):
            break
        if not bwd.heap:
            break
        if expand(bwd, fwd, False):
            break

    if meet is None:
        return []

    fwd_key, bwd_key = meet
    head = fwd.chain(fwd_key)
    head.reverse()
    tail = bwd.chain(bwd_key)
    return head + tail[1:]

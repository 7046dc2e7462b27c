"""Sparse routing maps: hard-blocked cells and wire occupancy.

The board is unbounded, so instead of a dense cell array the router
keeps two sparse dictionaries keyed by grid cell:

  cost       cell -> extra cost; ``math.inf`` marks a hard-blocked cell
             (component body plus buffer).
  occupancy  cell -> bitmask of wire orientations already passing through
             (WIRE_HORIZONTAL | WIRE_VERTICAL), giving O(1) crossing and
             overlap tests during search.

Maps are rebuilt for every relaxation stage since the buffer differs.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from .geometry import path_to_grid
from .models import GridPoint, Obstacle, Wire, WIRE_HORIZONTAL, WIRE_VERTICAL


class RoutingMaps:
    """Cost map and wire-occupancy map for one search configuration."""

    def __init__(self) -> None:
        self.cost: dict[GridPoint, float] = {}
        self.occupancy: dict[GridPoint, int] = {}

    # ── Cell queries ───────────────────────────────────────────────

    def is_blocked(self, cell: GridPoint) -> bool:
        return self.cost.get(cell, 0) == math.inf

    def cell_cost(self, cell: GridPoint) -> float:
        return self.cost.get(cell, 0)

    def wire_bits(self, cell: GridPoint) -> int:
        return self.occupancy.get(cell, 0)

    # ── Cell mutation ──────────────────────────────────────────────

    def block_rect(self, x: int, y: int, width: int, height: int, buffer: int = 0) -> None:
        """Hard-block ``[x-buf, x+w+buf) × [y-buf, y+h+buf)``."""
        for gx in range(x - buffer, x + width + buffer):
            for gy in range(y - buffer, y + height + buffer):
                self.cost[(gx, gy)] = math.inf

    def unblock(self, cells: Iterable[GridPoint]) -> None:
        """Remove any cost from *cells*.

        Ports sit inside their own component's footprint, so the router
        frees each port and its stub before searching.
        """
        for cell in cells:
            self.cost.pop(cell, None)

    def mark_wire(self, points: Sequence[GridPoint]) -> None:
        """OR the orientation bit of each segment into every cell it covers."""
        for (x1, y1), (x2, y2) in zip(points, points[1:]):
            if y1 == y2:
                for gx in range(min(x1, x2), max(x1, x2) + 1):
                    self.occupancy[(gx, y1)] = self.occupancy.get((gx, y1), 0) | WIRE_HORIZONTAL
            else:
                for gy in range(min(y1, y2), max(y1, y2) + 1):
                    self.occupancy[(x1, gy)] = self.occupancy.get((x1, gy), 0) | WIRE_VERTICAL


def build_maps(
    obstacles: Sequence[Obstacle],
    wires: Sequence[Wire],
    buffer_size: int,
    grid_size: float,
) -> RoutingMaps:
    """Build the cost and occupancy maps.

    *buffer_size* is the number of cells around each obstacle treated as
    hard wall: 1 keeps wires off component edges ("strict"), 0 lets them
    hug the edges ("soft").
    """
    maps = RoutingMaps()
    for obs in obstacles:
        maps.block_rect(obs.x, obs.y, obs.width, obs.height, buffer=buffer_size)
    for wire in wires:
        if not wire.points or len(wire.points) < 2:
            continue
        maps.mark_wire(path_to_grid(wire.points, grid_size))
    return maps

"""Low-level geometry helpers for the router.

Pixel coordinates follow the canvas convention (+y points down), so the
"top" side of a symbol is the unit vector (0, -1).
"""

from __future__ import annotations

import math
from typing import Sequence

from autowire.config import WIRING_RULES

from .models import Direction, GridPoint, PixelPoint


_SIDE_VECTORS: dict[str, GridPoint] = {
    "top": (0, -1),
    "bottom": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

ZERO: GridPoint = (0, 0)


# ── Pixel ↔ grid conversion ────────────────────────────────────────


def to_grid(value: float, grid_size: float = WIRING_RULES.grid_size_px) -> int:
    """Convert a pixel coordinate to the nearest grid line (halves round up)."""
    return int(math.floor(value / grid_size + 0.5))


def to_pixel(value: int, grid_size: float = WIRING_RULES.grid_size_px) -> float:
    """Convert a grid coordinate to pixels."""
    return value * grid_size


def point_to_grid(p: PixelPoint, grid_size: float = WIRING_RULES.grid_size_px) -> GridPoint:
    return (to_grid(p[0], grid_size), to_grid(p[1], grid_size))


def point_to_pixel(p: GridPoint, grid_size: float = WIRING_RULES.grid_size_px) -> PixelPoint:
    return (to_pixel(p[0], grid_size), to_pixel(p[1], grid_size))


def path_to_grid(
    points: Sequence[PixelPoint],
    grid_size: float = WIRING_RULES.grid_size_px,
) -> list[GridPoint]:
    return [point_to_grid(p, grid_size) for p in points]


def path_to_pixels(
    points: Sequence[GridPoint],
    grid_size: float = WIRING_RULES.grid_size_px,
) -> list[PixelPoint]:
    return [point_to_pixel(p, grid_size) for p in points]


# ── Directions ─────────────────────────────────────────────────────


def direction_vector(direction: Direction) -> GridPoint:
    """Resolve a side name or vector to an integer unit vector.

    ``None``, unknown side names and diagonal vectors map to the zero
    vector, which means "no forced direction".
    """
    if direction is None:
        return ZERO
    if isinstance(direction, str):
        return _SIDE_VECTORS.get(direction.lower(), ZERO)
    dx, dy = direction
    if dx and dy:
        return ZERO
    return (sign(dx), sign(dy))


def sign(v: float) -> int:
    if v > 0:
        return 1
    if v < 0:
        return -1
    return 0


def is_turn(d1: GridPoint, d2: GridPoint) -> bool:
    """True if moving in *d2* after *d1* changes direction.

    The zero vector never counts as a turn; it means no direction yet.
    """
    if d1 == ZERO or d2 == ZERO:
        return False
    return d1 != d2


def stub_of(port: GridPoint, direction: GridPoint) -> GridPoint:
    """The cell one step beyond *port* along its exit direction."""
    return (port[0] + direction[0], port[1] + direction[1])


# ── Distances and projections ──────────────────────────────────────


def manhattan(a: Sequence[float], b: Sequence[float]) -> float:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def closest_point_on_segment(p: GridPoint, a: GridPoint, b: GridPoint) -> GridPoint:
    """Project *p* onto the axis-aligned segment *a*–*b*, clamped to its extent.

    Diagonal segments do not occur in orthogonal routing; for those the
    segment start is returned.
    """
    if a[1] == b[1]:
        lo, hi = min(a[0], b[0]), max(a[0], b[0])
        return (max(lo, min(p[0], hi)), a[1])
    if a[0] == b[0]:
        lo, hi = min(a[1], b[1]), max(a[1], b[1])
        return (a[0], max(lo, min(p[1], hi)))
    return a


def is_manhattan(path: Sequence[Sequence[float]]) -> bool:
    """True if every consecutive pair differs in exactly one coordinate."""
    for (x0, y0), (x1, y1) in zip(path, path[1:]):
        if (x0 == x1) == (y0 == y1):
            return False
    return True

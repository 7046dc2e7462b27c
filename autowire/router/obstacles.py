"""Turn placed schematic symbols into grid-unit routing obstacles.

A symbol's drawn body is not known to the router, only where its ports
are.  The body rectangle is therefore inferred from the port layout:

  1 port    ground, supply rails.  A small square sitting 2.5 cells
            behind the port, so the port cell itself stays free.
  2 ports   resistors, capacitors.  The port bounding box contracted by
            half a cell along the port axis and one cell thick across it.
            Only grid nodes inside that body are blocked.
  3+ ports  ICs, transistors.  The port bounding box plus one cell of
            padding all round.

Ports always end up inside or on the edge of their own obstacle; the
router unblocks them (and their stubs) before every search.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from autowire.config import WIRING_RULES

from .geometry import sign
from .models import GridPoint, Obstacle, PixelPoint


log = logging.getLogger(__name__)


# ── Data structures ────────────────────────────────────────────────


@dataclass
class PortDef:
    """A port in the symbol's local frame (pixels, unrotated)."""

    id: str
    x: float
    y: float


@dataclass
class PlacedSymbol:
    """A symbol placed on the schematic."""

    id: str
    kind: str
    x: float                 # pixel position of the symbol origin
    y: float
    rotation: int = 0        # degrees, clockwise on screen
    ports: list[PortDef] = field(default_factory=list)


@dataclass
class WorldPort:
    """A port resolved to its absolute pixel position and exit direction."""

    id: str
    x: float
    y: float
    direction: GridPoint = (0, 0)


# ── Port geometry ──────────────────────────────────────────────────


def port_world_xy(
    port_local: tuple[float, float],
    cx: float, cy: float,
    rotation_deg: int,
) -> PixelPoint:
    """Transform a symbol-local port position to schematic pixels.

    Coordinates are rounded to 6 decimals so that a port sitting on a
    grid line stays exactly on it after rotation; the obstacle shaper
    takes floor/ceil of these values.
    """
    lx, ly = port_local
    theta = math.radians(rotation_deg)
    c, s = math.cos(theta), math.sin(theta)
    wx = cx + lx * c - ly * s
    wy = cy + lx * s + ly * c
    return (round(wx, 6), round(wy, 6))


def port_direction(port_local: tuple[float, float], rotation_deg: int) -> GridPoint:
    """Exit direction of a port from its local offset and the rotation.

    Ports are assumed to lie on the symbol's perimeter: the dominant
    axis of the offset from the origin decides the side.  The rotation
    is applied clockwise in 90° steps; other angles leave the direction
    unrotated.
    """
    px, py = port_local
    if abs(px) > abs(py):
        dx, dy = sign(px), 0
    else:
        dx, dy = 0, sign(py)

    rot = rotation_deg % 360
    if rot == 90:
        return (-dy, dx)
    if rot == 180:
        return (-dx, -dy)
    if rot == 270:
        return (dy, -dx)
    return (dx, dy)


def world_ports(symbol: PlacedSymbol) -> list[WorldPort]:
    ports: list[WorldPort] = []
    for p in symbol.ports:
        wx, wy = port_world_xy((p.x, p.y), symbol.x, symbol.y, symbol.rotation)
        ports.append(WorldPort(
            id=p.id, x=wx, y=wy,
            direction=port_direction((p.x, p.y), symbol.rotation),
        ))
    return ports


# ── Obstacle shaping ───────────────────────────────────────────────


def obstacle_from_ports(
    ports: Sequence[WorldPort],
    grid_size: float = WIRING_RULES.grid_size_px,
    *,
    id: str = "",
    kind: str = "",
) -> Obstacle | None:
    """Infer the obstacle rectangle of one symbol from its ports.

    Returns None for a symbol without ports.
    """
    if not ports:
        return None

    rules = WIRING_RULES
    min_x = min(p.x for p in ports)
    max_x = max(p.x for p in ports)
    min_y = min(p.y for p in ports)
    max_y = max(p.y for p in ports)

    if len(ports) == 1:
        dx, dy = ports[0].direction
        cx = min_x - dx * rules.one_port_body_offset * grid_size
        cy = min_y - dy * rules.one_port_body_offset * grid_size
        half = rules.one_port_body_size * grid_size / 2

        gx1 = math.floor((cx - half) / grid_size)
        gx2 = math.ceil((cx + half) / grid_size)
        gy1 = math.floor((cy - half) / grid_size)
        gy2 = math.ceil((cy + half) / grid_size)
        return Obstacle(x=gx1, y=gy1, width=gx2 - gx1, height=gy2 - gy1, id=id, kind=kind)

    if len(ports) == 2:
        inner = grid_size / 2
        thickness = grid_size / 2
        if (max_x - min_x) > (max_y - min_y):
            body_x1, body_x2 = min_x + inner, max_x - inner
            cy = (min_y + max_y) / 2
            body_y1, body_y2 = cy - thickness, cy + thickness
        else:
            body_y1, body_y2 = min_y + inner, max_y - inner
            cx = (min_x + max_x) / 2
            body_x1, body_x2 = cx - thickness, cx + thickness

        # Grid nodes n with body_min <= n * grid_size <= body_max
        gx1 = math.ceil(body_x1 / grid_size)
        gx2 = math.floor(body_x2 / grid_size)
        gy1 = math.ceil(body_y1 / grid_size)
        gy2 = math.floor(body_y2 / grid_size)
        return Obstacle(
            x=gx1, y=gy1,
            width=max(0, gx2 - gx1 + 1),
            height=max(0, gy2 - gy1 + 1),
            id=id, kind=kind,
        )

    pad = rules.multi_port_padding
    gx1 = math.floor(min_x / grid_size)
    gx2 = math.ceil(max_x / grid_size)
    gy1 = math.floor(min_y / grid_size)
    gy2 = math.ceil(max_y / grid_size)
    return Obstacle(
        x=gx1 - pad,
        y=gy1 - pad,
        width=(gx2 - gx1) + 2 * pad,
        height=(gy2 - gy1) + 2 * pad,
        id=id, kind=kind,
    )


def build_obstacles(
    symbols: Sequence[PlacedSymbol],
    grid_size: float = WIRING_RULES.grid_size_px,
) -> list[Obstacle]:
    """Obstacles for every placed symbol that has ports."""
    obstacles: list[Obstacle] = []
    for sym in symbols:
        obs = obstacle_from_ports(world_ports(sym), grid_size, id=sym.id, kind=sym.kind)
        if obs is None:
            log.debug("Obstacles: %s (%s) has no ports, skipped", sym.id, sym.kind)
            continue
        obstacles.append(obs)
    log.debug("Obstacles: %d from %d symbols", len(obstacles), len(symbols))
    return obstacles

"""Board fixtures: hand-built schematics for router tests.

All obstacle coordinates are grid units, port positions are pixels on a
20 px grid.

  straight_run         two facing ports on one row, nothing in between
  blocked_row          a component centred between two same-row ports
  tee_onto_wire        a new port below an existing S1 -> D wire
  tee_near_pin         a new port closest to the S1 pin of that wire
  tee_behind_pin       a new port beyond the S1 end, nearly level with the wire
  u_trap               target port inside a U-shaped ring, two cells wide
  sealed_box           target port inside a fully closed ring
  slotted_wall         ports on either side of a wall whose slot is too
                       narrow once buffered; the wall can be walked around
  gated_ring           target port inside a ring whose only gap carries
                       an existing wire along the way in
"""

from __future__ import annotations

from autowire.router.models import Obstacle, PathRequest, Wire


GRID = 20.0


def grid_px(gx: int, gy: int) -> tuple[float, float]:
    return (gx * GRID, gy * GRID)


def straight_run() -> PathRequest:
    return PathRequest(
        start=(0.0, 0.0),
        end=(200.0, 0.0),
        start_direction="right",
        end_direction="left",
        grid_size=GRID,
    )


BLOCKER = Obstacle(x=8, y=-2, width=5, height=5, id="u1", kind="ic")


def blocked_row() -> PathRequest:
    return PathRequest(
        start=grid_px(0, 0),
        end=grid_px(20, 0),
        obstacles=[BLOCKER],
        grid_size=GRID,
    )


def s1_to_d_wire() -> Wire:
    return Wire(
        points=[grid_px(0, 0), grid_px(20, 0)],
        source_component_id="s1",
        source_port_id="s1.p",
        dest_component_id="d",
        dest_port_id="d.p",
        id="w1",
    )


def tee_onto_wire() -> PathRequest:
    return PathRequest(
        start=grid_px(5, 6),
        end=grid_px(20, 0),
        start_direction="top",
        end_direction="right",
        start_port_id="e.p",
        end_port_id="d.p",
        existing_wires=[s1_to_d_wire()],
        grid_size=GRID,
    )


def tee_near_pin() -> PathRequest:
    return PathRequest(
        start=grid_px(-3, 6),
        end=grid_px(20, 0),
        start_direction="top",
        end_direction="right",
        start_port_id="e.p",
        end_port_id="d.p",
        existing_wires=[s1_to_d_wire()],
        grid_size=GRID,
    )


def tee_behind_pin() -> PathRequest:
    return PathRequest(
        start=grid_px(-9, 2),
        end=grid_px(20, 0),
        end_direction="right",
        start_port_id="e.p",
        end_port_id="d.p",
        existing_wires=[s1_to_d_wire()],
        grid_size=GRID,
    )


# Walls at x=0 and x=3 leave an interior two cells wide (x=1, x=2).
# With a one-cell buffer the interior is fully blocked.
U_WALLS = [
    Obstacle(x=0, y=0, width=1, height=6, id="wall_l"),
    Obstacle(x=3, y=0, width=1, height=6, id="wall_r"),
    Obstacle(x=0, y=6, width=4, height=1, id="wall_b"),
]


def u_trap() -> PathRequest:
    return PathRequest(
        start=grid_px(10, -5),
        end=grid_px(1, 4),
        end_direction="top",
        obstacles=list(U_WALLS),
        grid_size=GRID,
    )


SEALED_RING = [
    Obstacle(x=8, y=8, width=5, height=1, id="ring_t"),
    Obstacle(x=8, y=12, width=5, height=1, id="ring_b"),
    Obstacle(x=8, y=9, width=1, height=3, id="ring_l"),
    Obstacle(x=12, y=9, width=1, height=3, id="ring_r"),
]


def sealed_box() -> PathRequest:
    return PathRequest(
        start=grid_px(0, 0),
        end=grid_px(10, 10),
        obstacles=list(SEALED_RING),
        grid_size=GRID,
    )


# A horizontal wall at y=10..11 with a two-cell slot at x=8..9.  On the
# board below the slot is its own MER, so the shortest corridor runs
# through it even though the one-cell buffer closes it for the fine search.
SLOT_WALL = [
    Obstacle(x=0, y=10, width=8, height=2, id="wall_w"),
    Obstacle(x=10, y=10, width=8, height=2, id="wall_e"),
]
SLOT_BOARD = (-4, -4, 26, 28)


def slotted_wall() -> PathRequest:
    return PathRequest(
        start=grid_px(9, 0),
        end=grid_px(9, 20),
        start_direction="bottom",
        end_direction="top",
        obstacles=list(SLOT_WALL),
        grid_size=GRID,
        board=SLOT_BOARD,
    )


# SEALED_RING with the right wall opened at (12, 10).  A wire lies
# horizontally across the gap, so the only way in runs along it.
GATED_RING = [
    Obstacle(x=8, y=8, width=5, height=1, id="ring_t"),
    Obstacle(x=8, y=12, width=5, height=1, id="ring_b"),
    Obstacle(x=8, y=9, width=1, height=3, id="ring_l"),
    Obstacle(x=12, y=9, width=1, height=1, id="ring_r_top"),
    Obstacle(x=12, y=11, width=1, height=1, id="ring_r_bottom"),
]


def gated_ring() -> PathRequest:
    return PathRequest(
        start=grid_px(0, 0),
        end=grid_px(10, 10),
        obstacles=list(GATED_RING),
        existing_wires=[Wire(points=[grid_px(12, 10), grid_px(13, 10)], id="gate")],
        grid_size=GRID,
    )

"""Shared wiring rules for the schematic router.

These values describe the drawing conventions of the schematic canvas:
the size of one grid cell in pixels, how far the free-space board extends
past the drawn geometry, and how component symbols are turned into
routing obstacles.  Both the obstacle shaper and the router read them
from this single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WiringRules:
    """Drawing rules for schematic wires.

    Distances are in grid cells unless the name says otherwise.
    """

    grid_size_px: float = 20.0
    """Pixels per grid cell."""

    board_margin_cells: int = 10
    """Free space added around the drawn geometry when no explicit
    board rectangle is given."""

    sub_square_cells: int = 2
    """Edge length of the sub-squares used to measure wire density
    inside a free-space rectangle."""

    one_port_body_offset: float = 2.5
    """Distance from the pin to the body centre of a single-port symbol
    (ground, supply rail)."""

    one_port_body_size: float = 1.5
    """Edge length of the body square of a single-port symbol."""

    multi_port_padding: int = 1
    """Padding around the port bounding box of 3+ port symbols."""


# Module-level singleton, importable everywhere.
WIRING_RULES = WiringRules()

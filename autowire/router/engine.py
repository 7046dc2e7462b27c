"""Main routing engine: one Manhattan wire between two ports.

Algorithm overview:
  1. Snap both endpoints to the grid and resolve their forced directions.
  2. Decompose the board into Maximal Empty Rectangles (MERs).
  3. Optionally rewrite the request so the new wire branches onto an
     existing net instead of running parallel to it.
  4. Walk the relaxation ladder, first non-empty result wins:
       corridor-strict  A* masked to a coarse MER corridor, up to
                        three corridors with fatigue on failed ones
       global-strict    whole grid, one-cell buffer around components
       global-soft      whole grid, wires may hug component edges
       global-overlap   collinear overlap allowed (opt-in only)
  5. Simplify, nudge wall-hugging segments outward, simplify again.
  6. If every stage failed, build a deterministic "S" path through the
     horizontal midpoint and flag the result as a fallback.

Nothing is raised for a well-formed request; every failure degrades to
a worse but non-empty path.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Sequence

from autowire.config import WIRING_RULES

from .freespace import (
    FreeSpace, board_bounds, build_free_space, corridor_mask,
)
from .geometry import (
    direction_vector, is_manhattan, path_to_pixels, point_to_grid,
    point_to_pixel, stub_of,
)
from .grid import RoutingMaps, build_maps
from .models import (
    FALLBACK_STAGE, GridPoint, PathRequest, PixelPoint, RouteResult,
    RouterConfig, Stage,
)
from .pathfinder import find_path, find_path_bidirectional
from .postprocess import nudge_segments, simplify_path
from .topology import resolve_branch


log = logging.getLogger(__name__)


# ── Endpoint bookkeeping ───────────────────────────────────────────


class _Terminals:
    """Grid-snapped endpoints of one request with their stubs.

    ``end_dir`` points out of the end port, so the end stub is the cell
    the wire passes through just before arriving.
    """

    def __init__(self, request: PathRequest) -> None:
        gs = request.grid_size
        self.start: GridPoint = point_to_grid(request.start, gs)
        self.end: GridPoint = point_to_grid(request.end, gs)
        self.start_dir: GridPoint = direction_vector(request.start_direction)
        self.end_dir: GridPoint = direction_vector(request.end_direction)
        self.start_stub: GridPoint = stub_of(self.start, self.start_dir)
        self.end_stub: GridPoint = stub_of(self.end, self.end_dir)

    @property
    def cells(self) -> list[GridPoint]:
        return [self.start, self.start_stub, self.end, self.end_stub]

    def complete(self, search_path: Sequence[GridPoint]) -> list[GridPoint]:
        """Attach the ports to a stub-to-stub search result."""
        return [self.start, *search_path, self.end]


# ── Stage execution ────────────────────────────────────────────────


def _search(
    maps: RoutingMaps,
    term: _Terminals,
    stage: Stage,
    allowed: set[GridPoint] | None,
    config: RouterConfig,
) -> list[GridPoint]:
    if config.bidirectional:
        return find_path_bidirectional(
            maps, term.start_stub, term.end_stub,
            start_dir=term.start_dir,
            goal_dir=term.end_dir,
            allowed=allowed,
            allow_collinear=stage.allow_collinear,
            direction_keyed=config.direction_keyed_bidirectional,
            config=config,
        )
    return find_path(
        maps, term.start_stub, term.end_stub, term.start_dir,
        allow_collinear=stage.allow_collinear,
        allowed=allowed,
        config=config,
    )


def _corridor_search(
    maps: RoutingMaps,
    term: _Terminals,
    stage: Stage,
    free_space: FreeSpace,
    config: RouterConfig,
) -> list[GridPoint]:
    """Fine search restricted to successive coarse corridors.

    Every rectangle of a corridor the fine search could not get through
    (other than the two endpoint rectangles) is made more expensive, so
    the next coarse search looks elsewhere.
    """
    start_rect = free_space.rect_at(term.start_stub)
    end_rect = free_space.rect_at(term.end_stub)
    if start_rect is None or end_rect is None:
        log.debug("Corridor: stub outside free space, skipping corridor stage")
        return []

    penalties: dict[int, float] = {}
    for attempt in range(1, config.corridor_attempts + 1):
        corridor = free_space.find_corridor(start_rect, end_rect, penalties, config)
        if not corridor:
            log.debug("Corridor: no MER path between rects %d and %d",
                      start_rect.id, end_rect.id)
            return []

        allowed = corridor_mask(corridor, extra=term.cells)
        path = _search(maps, term, stage, allowed, config)
        if path:
            log.debug("Corridor: attempt %d succeeded through %d rects",
                      attempt, len(corridor))
            return path

        log.debug("Corridor: attempt %d failed through %d rects", attempt, len(corridor))
        for rect in corridor:
            if rect.id in (start_rect.id, end_rect.id):
                continue
            penalties[rect.id] = penalties.get(rect.id, 0.0) + config.fatigue_penalty
    return []


def run_stage(
    stage: Stage,
    request: PathRequest,
    free_space: FreeSpace | None = None,
    config: RouterConfig | None = None,
) -> list[GridPoint]:
    """Run one relaxation stage; the full grid path from port to port, or ``[]``.

    Maps are rebuilt for the stage's buffer, then the ports and their
    stubs are unblocked since pins sit inside their own component.
    """
    cfg = config or RouterConfig()
    term = _Terminals(request)

    maps = build_maps(request.obstacles, request.existing_wires,
                      stage.buffer, request.grid_size)
    maps.unblock(term.cells)

    if stage.corridor:
        if free_space is None:
            return []
        path = _corridor_search(maps, term, stage, free_space, cfg)
    else:
        path = _search(maps, term, stage, None, cfg)

    if not path:
        return []
    return term.complete(path)


def geometric_fallback(request: PathRequest) -> list[GridPoint]:
    """Obstacle-blind "S" path through the horizontal midpoint of the stubs."""
    term = _Terminals(request)
    sx, sy = term.start_stub
    ex, ey = term.end_stub
    mid_x = math.floor((sx + ex) / 2)
    return [
        term.start,
        term.start_stub,
        (mid_x, sy),
        (mid_x, ey),
        term.end_stub,
        term.end,
    ]


# ── Main entry points ──────────────────────────────────────────────


def route_wire(request: PathRequest, config: RouterConfig | None = None) -> RouteResult:
    """Route one wire.

    Parameters
    ----------
    request : PathRequest
        Endpoints in pixels, forced directions, obstacles (grid units)
        and the wires already on the schematic.
    config : RouterConfig | None
        Feature flags and cost model.  Uses the most capable preset
        when *None*.

    Returns
    -------
    RouteResult
        The pixel polyline, the stage that produced it (``"fallback"``
        when every stage failed) and whether the request was rewritten
        to branch onto an existing net.
    """
    if config is None:
        config = RouterConfig()

    if not request.grid_size > 0:
        log.warning("Router: grid size %r is not positive, using %s px",
                    request.grid_size, WIRING_RULES.grid_size_px)
        request = replace(request, grid_size=WIRING_RULES.grid_size_px)

    gs = request.grid_size
    term = _Terminals(request)
    log.info("Router: %s -> %s (%d obstacles, %d wires)",
             term.start, term.end, len(request.obstacles), len(request.existing_wires))

    board = request.board
    if board is None:
        board = board_bounds(request.obstacles, request.existing_wires,
                             term.cells, gs, config.board_margin)
    free_space = build_free_space(request.obstacles, request.existing_wires,
                                  gs, board, config.sub_square_size)

    branched = False
    if config.use_net_topology:
        plan = resolve_branch(request, free_space)
        request = plan.request
        branched = plan.branched

    grid_path: list[GridPoint] = []
    stage_name = FALLBACK_STAGE
    for stage in config.stages():
        grid_path = run_stage(stage, request, free_space, config)
        if grid_path:
            stage_name = stage.name
            break
        log.debug("Router: stage %s found no path", stage.name)

    if grid_path:
        grid_path = simplify_path(grid_path)
        if config.use_nudging:
            grid_path = simplify_path(nudge_segments(
                grid_path, request.obstacles, request.existing_wires, free_space, gs,
            ))
    else:
        grid_path = simplify_path(geometric_fallback(request))
        log.warning("Router: all stages failed for %s -> %s, using geometric fallback",
                    request.start, request.end)

    if not is_manhattan(grid_path):
        log.warning("Router: non-Manhattan path produced at stage %s", stage_name)

    final = _Terminals(request)
    result = RouteResult(
        path=path_to_pixels(grid_path, gs),
        stage=stage_name,
        branched=branched,
        start=point_to_pixel(final.start, gs),
        end=point_to_pixel(final.end, gs),
    )
    log.info("Router: done via %s, %d points%s",
             stage_name, len(result.path), " (branched)" if branched else "")
    return result


def route(request: PathRequest, config: RouterConfig | None = None) -> list[PixelPoint]:
    """Route one wire and return just its pixel polyline."""
    return route_wire(request, config).path


"""Router data model, stage descriptors and configuration constants."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

from autowire.config import WIRING_RULES


GridPoint = tuple[int, int]
PixelPoint = tuple[float, float]

# A forced approach direction: a side name ("top", "bottom", "left",
# "right"), a unit vector, or None for "no preference".
Direction = Union[str, tuple[int, int], None]


# ── Input dataclasses ──────────────────────────────────────────────


@dataclass
class Obstacle:
    """A component body in grid units.

    Covers the cells ``[x, x + width) × [y, y + height)``.
    """

    x: int
    y: int
    width: int
    height: int
    id: str = ""
    kind: str = ""

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height


@dataclass
class Wire:
    """An already-drawn wire: a pixel-space polyline between two ports."""

    points: list[PixelPoint]
    source_component_id: str | None = None
    source_port_id: str | None = None
    dest_component_id: str | None = None
    dest_port_id: str | None = None
    id: str = ""


@dataclass
class PathRequest:
    """One routing request between two pixel-space endpoints."""

    start: PixelPoint
    end: PixelPoint
    start_direction: Direction = None
    end_direction: Direction = None
    start_port_id: str | None = None
    end_port_id: str | None = None
    obstacles: list[Obstacle] = field(default_factory=list)
    existing_wires: list[Wire] = field(default_factory=list)
    grid_size: float = WIRING_RULES.grid_size_px
    board: tuple[int, int, int, int] | None = None   # (x, y, w, h) in grid units


# ── Output dataclasses ─────────────────────────────────────────────


FALLBACK_STAGE = "fallback"


@dataclass
class RouteResult:
    """The routed polyline plus how it was obtained."""

    path: list[PixelPoint]
    stage: str                       # name of the winning stage, or "fallback"
    branched: bool = False           # True if the request was rewritten onto a net
    start: PixelPoint | None = None  # endpoints after topology correction
    end: PixelPoint | None = None

    @property
    def fallback(self) -> bool:
        return self.stage == FALLBACK_STAGE

    @property
    def ok(self) -> bool:
        return bool(self.path) and not self.fallback


# ── Search cost model ──────────────────────────────────────────────

BASE_MOVE = 10
TURN_PENALTY = 500
CROSSING_PENALTY = 2000
OVERLAP_PENALTY = 100000
HEURISTIC_MULTIPLIER = 1.01

MAX_ITERATIONS = 50000
MAX_BIDIRECTIONAL_ITERATIONS = 30000

# Wire orientation bits in the occupancy map
WIRE_HORIZONTAL = 1
WIRE_VERTICAL = 2


# ── Relaxation stages ──────────────────────────────────────────────


@dataclass(frozen=True)
class Stage:
    """One attempt configuration of the relaxation ladder."""

    name: str
    buffer: int               # obstacle buffer in cells (1 = strict, 0 = soft)
    allow_collinear: bool     # permit running on top of a parallel wire
    corridor: bool = False    # restrict the search to a coarse MER corridor


CORRIDOR_STRICT = Stage("corridor-strict", buffer=1, allow_collinear=False, corridor=True)
GLOBAL_STRICT = Stage("global-strict", buffer=1, allow_collinear=False)
GLOBAL_SOFT = Stage("global-soft", buffer=0, allow_collinear=False)
GLOBAL_OVERLAP = Stage("global-overlap", buffer=0, allow_collinear=True)


class Strategy(enum.Enum):
    """Router presets, from the simplest to the most capable."""

    BASIC = "basic"            # one strict unidirectional search
    RELAXED = "relaxed"        # strict then soft, unidirectional
    CORRIDOR = "corridor"      # MER corridors + relaxation, bidirectional
    NUDGED = "nudged"          # corridors + wall-hugging segment nudging
    NET_AWARE = "net-aware"    # nudged + branching onto existing nets


DEFAULT_STRATEGY = Strategy.NET_AWARE


# ── Router configuration ──────────────────────────────────────────


@dataclass
class RouterConfig:
    """All tuneable router parameters in one place.

    Drawing rules (board margin, sub-square size) come from
    ``WIRING_RULES``; the search cost model and the feature flags live
    here.
    """

    # ── Cost model ─────────────────────────────────────────────
    base_move: int = BASE_MOVE
    turn_penalty: int = TURN_PENALTY
    crossing_penalty: int = CROSSING_PENALTY
    overlap_penalty: int = OVERLAP_PENALTY
    heuristic_multiplier: float = HEURISTIC_MULTIPLIER

    # ── Search caps ────────────────────────────────────────────
    max_iterations: int = MAX_ITERATIONS
    max_bidirectional_iterations: int = MAX_BIDIRECTIONAL_ITERATIONS
    corridor_attempts: int = 3

    # ── Coarse corridor search ─────────────────────────────────
    fatigue_penalty: float = 500.0        # added to every rect of a failed corridor
    wire_rect_cost: float = 30.0          # flat cost for entering a rect with wires
    density_weight: float = 100.0         # scaled by the rect's wire density

    # ── Free space ─────────────────────────────────────────────
    board_margin: int = WIRING_RULES.board_margin_cells
    sub_square_size: int = WIRING_RULES.sub_square_cells

    # ── Feature flags ──────────────────────────────────────────
    use_net_topology: bool = True
    use_corridors: bool = True
    use_soft_stage: bool = True
    use_nudging: bool = True
    bidirectional: bool = True
    direction_keyed_bidirectional: bool = True
    allow_overlap_stage: bool = False

    @classmethod
    def for_strategy(cls, strategy: Strategy | str, **overrides) -> "RouterConfig":
        """Build the preset configuration for *strategy*.

        Keyword *overrides* are applied on top of the preset.
        """
        strategy = Strategy(strategy)
        presets: dict[Strategy, dict] = {
            Strategy.BASIC: dict(
                use_net_topology=False, use_corridors=False, use_soft_stage=False,
                use_nudging=False, bidirectional=False,
            ),
            Strategy.RELAXED: dict(
                use_net_topology=False, use_corridors=False,
                use_nudging=False, bidirectional=False,
            ),
            Strategy.CORRIDOR: dict(use_net_topology=False, use_nudging=False),
            Strategy.NUDGED: dict(use_net_topology=False),
            Strategy.NET_AWARE: dict(),
        }
        params = dict(presets[strategy])
        params.update(overrides)
        return cls(**params)

    def stages(self) -> list[Stage]:
        """The ordered relaxation ladder for this configuration."""
        stages: list[Stage] = []
        if self.use_corridors:
            stages.append(CORRIDOR_STRICT)
        stages.append(GLOBAL_STRICT)
        if self.use_soft_stage:
            stages.append(GLOBAL_SOFT)
        if self.allow_overlap_stage:
            stages.append(GLOBAL_OVERLAP)
        return stages

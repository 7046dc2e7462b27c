"""Router: orthogonal wire routing between schematic ports.

Submodules:
  models        Request/result dataclasses, stages, presets and constants.
  geometry      Pixel/grid conversion, directions, projections.
  grid          Sparse cost and wire-occupancy maps.
  pathfinder    A* pathfinding (unidirectional and bi-directional).
  freespace     Maximal Empty Rectangle decomposition and corridor search.
  topology      Net discovery and branching onto existing nets.
  postprocess   Path simplification and segment nudging.
  obstacles     Obstacle rectangles inferred from symbol ports.
  engine        Main routing algorithm (relaxation ladder with fallback).
  serialization JSON conversion (parse_request, result_to_dict).
"""

from .models import (
    Obstacle, Wire, PathRequest, RouteResult, RouterConfig, Stage, Strategy,
)
from .engine import route, route_wire
from .obstacles import PlacedSymbol, PortDef, build_obstacles
from .serialization import (
    RequestError, request_to_dict, parse_request, result_to_dict, parse_result,
)

__all__ = [
    # Models
    "Obstacle", "Wire", "PathRequest", "RouteResult", "RouterConfig",
    "Stage", "Strategy",
    # Engine
    "route", "route_wire",
    # Obstacles
    "PlacedSymbol", "PortDef", "build_obstacles",
    # Serialization
    "RequestError", "request_to_dict", "parse_request",
    "result_to_dict", "parse_result",
]

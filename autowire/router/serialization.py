"""Routing serialization: JSON conversion of requests and results.

Points are ``[x, y]`` lists.  A request may describe its obstacles
directly (grid units) or as placed ``symbols`` whose ports are turned
into obstacles by :mod:`.obstacles`; both lists are combined.
"""

from __future__ import annotations

from typing import Any

from .models import Direction, Obstacle, PathRequest, RouteResult, Wire
from .obstacles import PlacedSymbol, PortDef, build_obstacles


class RequestError(ValueError):
    """A routing request payload is malformed."""


# ── Helpers ────────────────────────────────────────────────────────


def _point(value: Any, what: str) -> tuple[float, float]:
    try:
        x, y = value
        return (float(x), float(y))
    except (TypeError, ValueError) as exc:
        raise RequestError(f"{what}: expected [x, y], got {value!r}") from exc


def _direction(value: Any, what: str) -> Direction:
    if value is None or isinstance(value, str):
        return value
    try:
        dx, dy = value
        vector = (int(dx), int(dy))
    except (TypeError, ValueError) as exc:
        raise RequestError(f"{what}: expected side name or [dx, dy], got {value!r}") from exc
    if vector[0] and vector[1]:
        raise RequestError(f"{what}: direction must be axis-aligned, got {value!r}")
    return vector


def _direction_out(value: Direction) -> Any:
    if value is None or isinstance(value, str):
        return value
    return list(value)


def _obstacle(data: dict, index: int) -> Obstacle:
    try:
        return Obstacle(
            x=int(data["x"]),
            y=int(data["y"]),
            width=int(data["width"]),
            height=int(data["height"]),
            id=str(data.get("id", "")),
            kind=str(data.get("kind", "")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RequestError(f"obstacles[{index}]: {exc}") from exc


def _wire(data: dict, index: int) -> Wire:
    if not isinstance(data, dict) or "points" not in data:
        raise RequestError(f"existing_wires[{index}]: missing 'points'")
    if not isinstance(data["points"], list):
        raise RequestError(f"existing_wires[{index}].points: expected a list")
    return Wire(
        points=[_point(p, f"existing_wires[{index}].points") for p in data["points"]],
        source_component_id=data.get("source_component_id"),
        source_port_id=data.get("source_port_id"),
        dest_component_id=data.get("dest_component_id"),
        dest_port_id=data.get("dest_port_id"),
        id=str(data.get("id", "")),
    )


def _symbol(data: dict, index: int) -> PlacedSymbol:
    try:
        return PlacedSymbol(
            id=str(data["id"]),
            kind=str(data.get("kind", "")),
            x=float(data["x"]),
            y=float(data["y"]),
            rotation=int(data.get("rotation", 0)),
            ports=[
                PortDef(id=str(p["id"]), x=float(p["x"]), y=float(p["y"]))
                for p in data.get("ports", [])
            ],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RequestError(f"symbols[{index}]: {exc}") from exc


# ── Requests ───────────────────────────────────────────────────────


def request_to_dict(request: PathRequest) -> dict:
    """Serialize a PathRequest to a JSON-safe dict."""
    return {
        "start": list(request.start),
        "end": list(request.end),
        "start_direction": _direction_out(request.start_direction),
        "end_direction": _direction_out(request.end_direction),
        "start_port_id": request.start_port_id,
        "end_port_id": request.end_port_id,
        "grid_size": request.grid_size,
        "board": list(request.board) if request.board is not None else None,
        "obstacles": [
            {
                "x": o.x, "y": o.y, "width": o.width, "height": o.height,
                "id": o.id, "kind": o.kind,
            }
            for o in request.obstacles
        ],
        "existing_wires": [
            {
                "points": [list(p) for p in w.points],
                "source_component_id": w.source_component_id,
                "source_port_id": w.source_port_id,
                "dest_component_id": w.dest_component_id,
                "dest_port_id": w.dest_port_id,
                "id": w.id,
            }
            for w in request.existing_wires
        ],
    }


def parse_request(data: dict) -> PathRequest:
    """Parse a request dict into a PathRequest.

    Raises
    ------
    RequestError
        If a required field is missing or has the wrong shape.
    """
    if not isinstance(data, dict):
        raise RequestError(f"request must be an object, got {type(data).__name__}")
    for key in ("start", "end"):
        if key not in data:
            raise RequestError(f"missing required field {key!r}")

    try:
        grid_size = float(data.get("grid_size", 20.0))
    except (TypeError, ValueError) as exc:
        raise RequestError(f"grid_size: {exc}") from exc
    if grid_size <= 0:
        raise RequestError(f"grid_size must be positive, got {grid_size}")

    board = data.get("board")
    if board is not None:
        try:
            bx, by, bw, bh = (int(v) for v in board)
        except (TypeError, ValueError) as exc:
            raise RequestError(f"board: expected [x, y, w, h], got {board!r}") from exc
        board = (bx, by, bw, bh)

    obstacles = [_obstacle(o, i) for i, o in enumerate(data.get("obstacles", []))]
    symbols = [_symbol(s, i) for i, s in enumerate(data.get("symbols", []))]
    obstacles += build_obstacles(symbols, grid_size)

    return PathRequest(
        start=_point(data["start"], "start"),
        end=_point(data["end"], "end"),
        start_direction=_direction(data.get("start_direction"), "start_direction"),
        end_direction=_direction(data.get("end_direction"), "end_direction"),
        start_port_id=data.get("start_port_id"),
        end_port_id=data.get("end_port_id"),
        obstacles=obstacles,
        existing_wires=[_wire(w, i) for i, w in enumerate(data.get("existing_wires", []))],
        grid_size=grid_size,
        board=board,
    )


# ── Results ────────────────────────────────────────────────────────


def result_to_dict(result: RouteResult) -> dict:
    """Serialize a RouteResult to a JSON-safe dict."""
    return {
        "path": [list(p) for p in result.path],
        "stage": result.stage,
        "fallback": result.fallback,
        "branched": result.branched,
        "start": list(result.start) if result.start is not None else None,
        "end": list(result.end) if result.end is not None else None,
    }


def parse_result(data: dict) -> RouteResult:
    """Parse a result dict back into a RouteResult."""
    start = data.get("start")
    end = data.get("end")
    return RouteResult(
        path=[tuple(p) for p in data.get("path", [])],
        stage=data.get("stage", ""),
        branched=bool(data.get("branched", False)),
        start=tuple(start) if start is not None else None,
        end=tuple(end) if end is not None else None,
    )

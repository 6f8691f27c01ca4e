"""Mission records and polygon-to-fleet assignment rules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, TypeVar

from core.snapshot import MissionState


MIN_POLYGON_POINTS = 3

Point = tuple[float, float]


class Routable(Protocol):
    def current_waypoint(self) -> Point | None: ...


AgentT = TypeVar("AgentT", bound=Routable)


class InvalidPolygonError(ValueError):
    """Raised when a mission polygon has too few or malformed vertices."""


def coerce_point(value: Any) -> Point:
    """Normalize an ``(x, y)`` pair or ``{"x", "y"}``/``{"lng", "lat"}`` mapping."""
    if isinstance(value, Mapping):
        if "x" in value and "y" in value:
            raw = (value["x"], value["y"])
        elif "lng" in value and "lat" in value:
            raw = (value["lng"], value["lat"])
        else:
            raise ValueError(f"Point mapping needs x/y or lng/lat keys, got {sorted(value)}.")
    elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        raw = (value[0], value[1])
    else:
        raise ValueError(f"Unsupported point value: {value!r}.")

    try:
        x, y = float(raw[0]), float(raw[1])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Point coordinates must be numbers, got {raw!r}.") from exc
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Point coordinates must be finite, got {raw!r}.")
    return (x, y)


def validate_polygon(points: Sequence[Any]) -> tuple[Point, ...]:
    """Return normalized vertices or raise ``InvalidPolygonError``."""
    if isinstance(points, (str, bytes)) or not isinstance(points, Sequence):
        raise InvalidPolygonError("Polygon must be a sequence of points.")
    if len(points) < MIN_POLYGON_POINTS:
        raise InvalidPolygonError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(points)}."
        )
    try:
        return tuple(coerce_point(point) for point in points)
    except ValueError as exc:
        raise InvalidPolygonError(str(exc)) from exc


def agents_for_polygon(vertex_count: int) -> int:
    """One vehicle per two vertices, never fewer than one."""
    return max(1, int(vertex_count) // 2)


def select_idle_agents(agents: Sequence[AgentT], vertex_count: int) -> list[AgentT]:
    """Pick idle agents in registration order, up to the polygon's quota."""
    idle = [agent for agent in agents if agent.current_waypoint() is None]
    return idle[: agents_for_polygon(vertex_count)]


@dataclass(frozen=True)
class Mission:
    """Polygon route shared by the agents it was assigned to at creation."""

    mission_id: str
    polygon: tuple[Point, ...]
    assigned_agent_ids: tuple[str, ...]
    created_at: float

    def to_state(self) -> MissionState:
        return MissionState(
            id=self.mission_id,
            polygon=self.polygon,
            assigned_agent_ids=self.assigned_agent_ids,
            created_at=self.created_at,
        )

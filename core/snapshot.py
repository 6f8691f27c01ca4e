"""Immutable snapshot and analytics contracts for streaming and queries."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AgentState:
    """Public projection of one vehicle."""

    id: str
    x: float
    y: float
    heading: float
    speed: float
    current_waypoint: tuple[float, float] | None
    waypoints_completed: int
    collisions_avoided: int
    has_active_waypoint: bool


@dataclass(frozen=True)
class MissionState:
    """Public projection of one mission."""

    id: str
    polygon: tuple[tuple[float, float], ...]
    assigned_agent_ids: tuple[str, ...]
    created_at: float


@dataclass(frozen=True)
class SwarmSnapshot:
    """Consistent frame of the whole world taken at the end of a tick."""

    timestamp: float
    elapsed_simulation_ms: int
    agents: tuple[AgentState, ...] = field(default_factory=tuple)
    missions: tuple[MissionState, ...] = field(default_factory=tuple)
    bounds: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class AnalyticsReport:
    """Lifetime aggregates across the swarm."""

    total_collisions_avoided: int
    total_waypoints_completed: int
    agents_reached_goal: int
    active_agents: int
    total_agents: int
    average_time_per_waypoint_seconds: float
    simulation_uptime_seconds: int
    active_missions: int

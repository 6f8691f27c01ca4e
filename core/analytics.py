"""Swarm analytics utilities decoupled from transport and UI."""

from __future__ import annotations

from typing import Iterable, Protocol

from core.snapshot import AnalyticsReport


class AgentCounters(Protocol):
    """Fields of an agent that analytics aggregates over."""

    collisions_avoided: int
    waypoints_completed: int

    @property
    def has_active_waypoint(self) -> bool: ...

    @property
    def reached_goal(self) -> bool: ...


def build_analytics(
    agents: Iterable[AgentCounters],
    mission_count: int,
    elapsed_seconds: float,
) -> AnalyticsReport:
    """Aggregate lifetime counters and derived rates for the whole swarm.

    Average time per waypoint is elapsed time divided by the total completed
    waypoints, and 0.0 until the first arrival.
    """
    rows = list(agents)
    total_collisions = sum(int(agent.collisions_avoided) for agent in rows)
    total_waypoints = sum(int(agent.waypoints_completed) for agent in rows)
    elapsed = max(0.0, float(elapsed_seconds))

    average = elapsed / total_waypoints if total_waypoints > 0 else 0.0
    return AnalyticsReport(
        total_collisions_avoided=total_collisions,
        total_waypoints_completed=total_waypoints,
        agents_reached_goal=sum(1 for agent in rows if agent.reached_goal),
        active_agents=sum(1 for agent in rows if agent.has_active_waypoint),
        total_agents=len(rows),
        average_time_per_waypoint_seconds=round(average, 1),
        simulation_uptime_seconds=int(round(elapsed)),
        active_missions=int(mission_count),
    )

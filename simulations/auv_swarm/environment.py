"""Bounded world that owns the swarm and drives the fixed-rate tick."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from core.analytics import build_analytics
from core.event_bus import EventBus
from core.snapshot import AgentState, AnalyticsReport, SwarmSnapshot
from core.ticker import FixedRateTicker
from simulations.auv_swarm.agents import AuvAgent, normalize_angle
from simulations.auv_swarm.missions import Mission, coerce_point, select_idle_agents, validate_polygon


LOGGER = logging.getLogger(__name__)

SNAPSHOT_EVENT = "snapshot"
DEFAULT_TICK_INTERVAL = 0.2
DEFAULT_BOUNDARY_MARGIN = 5.0


class AgentNotFoundError(LookupError):
    """Raised when an agent id is not part of the world."""


class PopulationError(RuntimeError):
    """Raised when a population cannot be installed into the world."""


@dataclass(frozen=True)
class WorldBounds:
    """Axis-aligned rectangle the swarm is contained in."""

    min_x: float = -50.0
    max_x: float = 50.0
    min_y: float = -50.0
    max_y: float = 50.0

    def __post_init__(self) -> None:
        if not (self.min_x < self.max_x and self.min_y < self.max_y):
            raise ValueError(f"Degenerate world bounds: {self}.")

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def near_wall(self, x: float, y: float, margin: float) -> bool:
        return (
            x < self.min_x + margin
            or x > self.max_x - margin
            or y < self.min_y + margin
            or y > self.max_y - margin
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.max_x, self.min_y, self.max_y)


class SwarmWorld:
    """Owns agents and missions; every read and write goes through one lock.

    The tick, external commands (missions, waypoints, reset) and reads
    (snapshot, analytics) are serialized, so a read never observes a
    half-advanced swarm and a new route only takes effect from the next tick.
    """

    def __init__(
        self,
        bounds: WorldBounds | None = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        boundary_margin: float = DEFAULT_BOUNDARY_MARGIN,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.bounds = bounds or WorldBounds()
        self.tick_interval = float(tick_interval)
        self.boundary_margin = float(boundary_margin)
        self.event_bus = event_bus
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self._agents: list[AuvAgent] = []
        self._agents_by_id: dict[str, AuvAgent] = {}
        self._missions: list[Mission] = []
        self._mission_counter = 0
        self._tick_count = 0
        self._start_time = clock()
        self._last_tick_time = self._start_time
        self._ticker = FixedRateTicker(self.tick_interval, self.tick, name="swarm-tick")

    @property
    def agents(self) -> tuple[AgentState, ...]:
        """Read-only projection of the fleet; the agents themselves stay private."""
        with self._lock:
            return tuple(agent.to_state() for agent in self._agents)

    @property
    def agent_count(self) -> int:
        with self._lock:
            return len(self._agents)

    @property
    def missions(self) -> tuple[Mission, ...]:
        with self._lock:
            return tuple(self._missions)

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def is_running(self) -> bool:
        return self._ticker.is_running

    def populate(self, agents: Iterable[AuvAgent]) -> None:
        """Install the fleet into an empty world."""
        fleet = list(agents)
        with self._lock:
            if self._agents:
                raise PopulationError(
                    f"World already holds {len(self._agents)} agents; reset it before repopulating."
                )
            by_id: dict[str, AuvAgent] = {}
            for agent in fleet:
                if agent.agent_id in by_id:
                    raise PopulationError(f"Duplicate agent id '{agent.agent_id}'.")
                by_id[agent.agent_id] = agent
            self._agents = fleet
            self._agents_by_id = by_id
        LOGGER.info("Installed %d agents", len(fleet))

    def start(self) -> None:
        with self._lock:
            # Idle time before start must not show up as one huge first step.
            self._last_tick_time = self._clock()
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    def tick(self) -> SwarmSnapshot:
        """Advance by the wall-clock time elapsed since the previous tick."""
        with self._lock:
            now = self._clock()
            delta = now - self._last_tick_time
            self._last_tick_time = now
            snapshot = self._advance(delta)
        self._publish(snapshot)
        return snapshot

    def step(self, delta_seconds: float) -> SwarmSnapshot:
        """Advance by a fixed ``delta_seconds``, independent of the clock."""
        with self._lock:
            snapshot = self._advance(float(delta_seconds))
        self._publish(snapshot)
        return snapshot

    def create_mission(self, polygon: Sequence[Any]) -> Mission:
        """Share ``polygon`` as a route among idle agents.

        Raises ``InvalidPolygonError`` before touching any state when fewer
        than three valid points are given.
        """
        vertices = validate_polygon(polygon)
        with self._lock:
            selected = select_idle_agents(self._agents, len(vertices))
            for agent in selected:
                agent.set_waypoints(vertices)
            self._mission_counter += 1
            mission = Mission(
                mission_id=f"mission-{self._mission_counter}",
                polygon=vertices,
                assigned_agent_ids=tuple(agent.agent_id for agent in selected),
                created_at=self._wall_clock(),
            )
            self._missions.append(mission)
        LOGGER.info("Created %s, assigned to %d agents", mission.mission_id, len(selected))
        return mission

    def assign_waypoint(self, agent_id: str, point: Any) -> None:
        with self._lock:
            agent = self._require_agent(agent_id)
            agent.add_waypoint(coerce_point(point))

    def agent_state(self, agent_id: str) -> AgentState:
        with self._lock:
            return self._require_agent(agent_id).to_state()

    def snapshot(self) -> SwarmSnapshot:
        with self._lock:
            return self._build_snapshot()

    def analytics(self) -> AnalyticsReport:
        with self._lock:
            return build_analytics(
                self._agents,
                mission_count=len(self._missions),
                elapsed_seconds=self._clock() - self._start_time,
            )

    def reset(self) -> None:
        """Stop ticking and discard every agent and mission.

        Repopulating afterwards is up to the caller (see ``populate``).
        """
        # Stop outside the lock: the tick thread may be waiting on it.
        self.stop()
        with self._lock:
            self._agents = []
            self._agents_by_id = {}
            self._missions = []
            self._mission_counter = 0
            self._tick_count = 0
            self._start_time = self._clock()
            self._last_tick_time = self._start_time
        LOGGER.info("World reset")

    def _require_agent(self, agent_id: str) -> AuvAgent:
        agent = self._agents_by_id.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(f"Agent '{agent_id}' not found.")
        return agent

    def _advance(self, delta: float) -> SwarmSnapshot:
        # Every agent reacts to the same pre-tick positions.
        neighbors = tuple(agent.as_neighbor() for agent in self._agents)
        for agent in self._agents:
            try:
                agent.step(delta, neighbors)
            except Exception:
                LOGGER.exception("Agent %s failed to step", agent.agent_id)
            self._contain(agent)
        self._tick_count += 1
        return self._build_snapshot()

    def _contain(self, agent: AuvAgent) -> None:
        """Point agents near a wall at the centre; recover non-finite state."""
        center_x, center_y = self.bounds.center
        if not agent.has_finite_state():
            LOGGER.warning(
                "Agent %s has non-finite state (x=%s, y=%s, heading=%s); recentring",
                agent.agent_id,
                agent.x,
                agent.y,
                agent.heading,
            )
            agent.x, agent.y = center_x, center_y
            agent.heading = 0.0
            return
        if self.bounds.near_wall(agent.x, agent.y, self.boundary_margin):
            agent.heading = normalize_angle(math.atan2(center_y - agent.y, center_x - agent.x))

    def _build_snapshot(self) -> SwarmSnapshot:
        elapsed = self._clock() - self._start_time
        return SwarmSnapshot(
            timestamp=self._wall_clock(),
            elapsed_simulation_ms=int(max(0.0, elapsed) * 1000),
            agents=tuple(agent.to_state() for agent in self._agents),
            missions=tuple(mission.to_state() for mission in self._missions),
            bounds=self.bounds.as_tuple(),
        )

    def _publish(self, snapshot: SwarmSnapshot) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(SNAPSHOT_EVENT, snapshot)

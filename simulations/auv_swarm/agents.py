"""AUV agent model: kinematics, waypoint queue and reactive avoidance."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from core.deterministic_rng import RandomSource
from core.snapshot import AgentState


Point = tuple[float, float]

ARRIVAL_TOLERANCE = 2.0
MAX_TURN_RATE = 2.0  # rad/s
AVOIDANCE_SPEED_FACTOR = 0.5
AVOIDANCE_PERTURBATION = 0.25  # rad
DEFAULT_SAFETY_RADIUS = 5.0

_TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Wrap ``angle`` into (-pi, pi].

    Non-finite input is returned unchanged; the world recovers such agents
    during containment.
    """
    if not math.isfinite(angle):
        return angle
    wrapped = math.remainder(angle, _TWO_PI)
    if wrapped <= -math.pi:
        return math.pi
    return wrapped


@dataclass(frozen=True)
class NeighborView:
    """Read-only pre-tick position of another agent."""

    agent_id: str
    x: float
    y: float


@dataclass
class AuvAgent:
    """Single vehicle state for the swarm simulation."""

    agent_id: str
    x: float
    y: float
    heading: float = 0.0
    speed: float = 1.0
    safety_radius: float = DEFAULT_SAFETY_RADIUS
    rng: RandomSource = field(default_factory=random.Random, repr=False, compare=False)
    waypoints: list[Point] = field(default_factory=list)
    waypoint_index: int = 0
    waypoints_completed: int = 0
    collisions_avoided: int = 0
    travel_time: float = 0.0
    last_waypoint_time: float | None = None

    def __post_init__(self) -> None:
        self.x = float(self.x)
        self.y = float(self.y)
        self.heading = normalize_angle(float(self.heading))
        self.speed = float(self.speed)
        self.safety_radius = float(self.safety_radius)
        self.waypoints = [(float(wx), float(wy)) for wx, wy in self.waypoints]

    def set_waypoints(self, route: Sequence[Point]) -> None:
        """Replace the whole queue and restart at its first point."""
        self.waypoints = [(float(wx), float(wy)) for wx, wy in route]
        self.waypoint_index = 0

    def add_waypoint(self, point: Point) -> None:
        self.waypoints.append((float(point[0]), float(point[1])))

    def current_waypoint(self) -> Point | None:
        if self.waypoint_index < len(self.waypoints):
            return self.waypoints[self.waypoint_index]
        return None

    @property
    def has_active_waypoint(self) -> bool:
        return self.current_waypoint() is not None

    @property
    def reached_goal(self) -> bool:
        """True once a non-empty route has been fully consumed."""
        return bool(self.waypoints) and self.current_waypoint() is None

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(x - self.x, y - self.y)

    def has_finite_state(self) -> bool:
        return all(math.isfinite(value) for value in (self.x, self.y, self.heading))

    def as_neighbor(self) -> NeighborView:
        return NeighborView(agent_id=self.agent_id, x=self.x, y=self.y)

    def step(self, delta_time: float, neighbors: Iterable[NeighborView]) -> None:
        """Advance one tick: arrival, steering, avoidance, then motion.

        ``neighbors`` is the pre-tick view of the whole swarm (self included,
        skipped by id). Only the first neighbor inside the safety radius is
        reacted to. A non-positive ``delta_time`` still runs the arrival and
        avoidance checks but leaves heading and position untouched.
        """
        if self._has_reached_current_waypoint():
            self._advance_waypoint()

        desired_heading = self._desired_heading()

        avoiding = False
        for other in neighbors:
            if other.agent_id == self.agent_id:
                continue
            if self.distance_to(other.x, other.y) < self.safety_radius:
                desired_heading = self._avoidance_heading(other)
                self.collisions_avoided += 1
                avoiding = True
                break

        if not delta_time > 0:
            return
        self.travel_time += delta_time

        heading_diff = normalize_angle(desired_heading - self.heading)
        max_turn = MAX_TURN_RATE * delta_time
        if abs(heading_diff) > max_turn:
            self.heading += math.copysign(max_turn, heading_diff)
        else:
            self.heading += heading_diff
        self.heading = normalize_angle(self.heading)

        effective_speed = self.speed * AVOIDANCE_SPEED_FACTOR if avoiding else self.speed
        self.x += math.cos(self.heading) * effective_speed * delta_time
        self.y += math.sin(self.heading) * effective_speed * delta_time

    def to_state(self) -> AgentState:
        """Project public fields for snapshots."""
        waypoint = self.current_waypoint()
        return AgentState(
            id=self.agent_id,
            x=round(self.x, 2),
            y=round(self.y, 2),
            heading=round(self.heading, 2),
            speed=self.speed,
            current_waypoint=waypoint,
            waypoints_completed=int(self.waypoints_completed),
            collisions_avoided=int(self.collisions_avoided),
            has_active_waypoint=waypoint is not None,
        )

    def _has_reached_current_waypoint(self) -> bool:
        waypoint = self.current_waypoint()
        if waypoint is None:
            return False
        return self.distance_to(*waypoint) < ARRIVAL_TOLERANCE

    def _advance_waypoint(self) -> None:
        self.waypoint_index += 1
        self.waypoints_completed += 1
        self.last_waypoint_time = self.travel_time

    def _desired_heading(self) -> float:
        waypoint = self.current_waypoint()
        if waypoint is None:
            return self.heading
        return math.atan2(waypoint[1] - self.y, waypoint[0] - self.x)

    def _avoidance_heading(self, other: NeighborView) -> float:
        away = math.atan2(self.y - other.y, self.x - other.x)
        # Perturbation breaks symmetric head-on deadlocks.
        return away + self.rng.uniform(-AVOIDANCE_PERTURBATION, AVOIDANCE_PERTURBATION)

"""Behavior tests for the per-tick AUV state machine."""

from __future__ import annotations

import math
import random

import pytest

from simulations.auv_swarm.agents import (
    AVOIDANCE_PERTURBATION,
    AuvAgent,
    NeighborView,
    normalize_angle,
)


class _ZeroRandom:
    def __init__(self) -> None:
        self.calls: list[tuple[float, float]] = []

    def uniform(self, a: float, b: float) -> float:
        self.calls.append((a, b))
        return 0.0


def _agent(agent_id: str = "auv-0", x: float = 0.0, y: float = 0.0, **overrides: object) -> AuvAgent:
    params: dict[str, object] = {"heading": 0.0, "speed": 1.0, "safety_radius": 5.0, "rng": _ZeroRandom()}
    params.update(overrides)
    return AuvAgent(agent_id=agent_id, x=x, y=y, **params)  # type: ignore[arg-type]


def test_normalize_angle_maps_into_half_open_interval() -> None:
    assert normalize_angle(-math.pi) == math.pi
    assert normalize_angle(math.pi) == math.pi
    assert normalize_angle(2.5 * math.pi) == pytest.approx(0.5 * math.pi)
    assert normalize_angle(-1.5 * math.pi) == pytest.approx(0.5 * math.pi)
    assert normalize_angle(0.3) == pytest.approx(0.3)


def test_constructor_normalizes_heading() -> None:
    agent = _agent(heading=3 * math.pi / 2)
    assert agent.heading == pytest.approx(-math.pi / 2)


def test_set_waypoints_replaces_queue_and_resets_cursor() -> None:
    agent = _agent(waypoints=[(1.0, 1.0), (2.0, 2.0)])
    agent.waypoint_index = 2

    agent.set_waypoints([(5, 5), (6, 6), (7, 7)])

    assert agent.waypoints == [(5.0, 5.0), (6.0, 6.0), (7.0, 7.0)]
    assert agent.waypoint_index == 0
    assert agent.current_waypoint() == (5.0, 5.0)


def test_add_waypoint_keeps_cursor() -> None:
    agent = _agent(waypoints=[(30.0, 0.0)])
    agent.waypoint_index = 1
    assert agent.current_waypoint() is None

    agent.add_waypoint((40.0, 0.0))

    assert agent.waypoint_index == 1
    assert agent.current_waypoint() == (40.0, 0.0)


def test_distance_strictly_decreases_until_single_arrival() -> None:
    agent = _agent(speed=2.0, waypoints=[(20.0, 0.0)])
    distances: list[float] = []

    for _ in range(100):
        if agent.current_waypoint() is None:
            break
        distances.append(agent.distance_to(20.0, 0.0))
        agent.step(0.2, [agent.as_neighbor()])

    assert agent.current_waypoint() is None
    assert all(later < earlier for earlier, later in zip(distances, distances[1:]))
    assert agent.waypoints_completed == 1
    assert agent.waypoint_index == 1

    for _ in range(20):
        agent.step(0.2, [agent.as_neighbor()])
    assert agent.waypoints_completed == 1
    assert agent.waypoint_index == 1


def test_arrival_advances_then_steers_to_next_waypoint() -> None:
    agent = _agent(heading=1.0, waypoints=[(1.5, 0.0), (0.0, 10.0)])

    agent.step(0.1, [])

    assert agent.waypoint_index == 1
    assert agent.waypoints_completed == 1
    assert agent.last_waypoint_time == 0.0
    # Desired heading is now pi/2 toward (0, 10); the turn is clamped to 0.2 rad.
    assert agent.heading == pytest.approx(1.2)


def test_turn_rate_is_clamped() -> None:
    agent = _agent(waypoints=[(0.0, 10.0)])

    agent.step(0.1, [])

    assert agent.heading == pytest.approx(0.2)
    assert agent.x == pytest.approx(math.cos(0.2) * 0.1)
    assert agent.y == pytest.approx(math.sin(0.2) * 0.1)


def test_empty_queue_never_advances() -> None:
    agent = _agent(heading=0.7)

    for _ in range(50):
        agent.step(0.2, [])

    assert agent.waypoint_index == 0
    assert agent.waypoints_completed == 0
    assert agent.heading == pytest.approx(0.7)
    assert agent.x == pytest.approx(math.cos(0.7) * 10.0)


def test_only_first_close_neighbor_triggers_avoidance() -> None:
    rng = _ZeroRandom()
    agent = _agent(heading=math.pi, rng=rng)
    neighbors = [
        agent.as_neighbor(),
        NeighborView(agent_id="auv-1", x=1.0, y=0.0),
        NeighborView(agent_id="auv-2", x=0.0, y=1.0),
    ]

    agent.step(1.0, neighbors)

    assert agent.collisions_avoided == 1
    assert rng.calls == [(-AVOIDANCE_PERTURBATION, AVOIDANCE_PERTURBATION)]
    assert agent.heading == pytest.approx(math.pi)
    # Avoiding halves the speed.
    assert agent.x == pytest.approx(-0.5)
    assert agent.y == pytest.approx(0.0, abs=1e-9)


def test_neighbor_at_safety_radius_is_ignored() -> None:
    agent = _agent()
    agent.step(0.2, [NeighborView(agent_id="auv-1", x=5.0, y=0.0)])
    assert agent.collisions_avoided == 0


def test_self_is_never_a_neighbor() -> None:
    agent = _agent()
    agent.step(0.2, [agent.as_neighbor()])
    assert agent.collisions_avoided == 0


def test_non_positive_delta_keeps_kinematics() -> None:
    agent = _agent(heading=0.4, waypoints=[(1.0, 0.0), (50.0, 50.0)])

    agent.step(0.0, [])
    agent.step(-1.0, [NeighborView(agent_id="auv-1", x=0.5, y=0.0)])

    assert (agent.x, agent.y) == (0.0, 0.0)
    assert agent.heading == pytest.approx(0.4)
    # Arrival and avoidance bookkeeping still happen.
    assert agent.waypoints_completed == 1
    assert agent.collisions_avoided == 1
    assert agent.travel_time == 0.0


def test_heading_stays_normalized_over_random_ticks() -> None:
    rng = random.Random(3)
    agent = _agent(rng=random.Random(4), speed=3.0)
    for _ in range(200):
        if agent.current_waypoint() is None:
            agent.add_waypoint((rng.uniform(-40, 40), rng.uniform(-40, 40)))
        neighbor = NeighborView(agent_id="ghost", x=agent.x + rng.uniform(-6, 6), y=agent.y + rng.uniform(-6, 6))
        agent.step(rng.uniform(0.0, 0.5), [neighbor])
        assert -math.pi < agent.heading <= math.pi


def test_to_state_rounds_public_fields() -> None:
    agent = _agent(x=1.23456, y=-7.891, heading=0.12345, speed=2.5, waypoints=[(3.0, 4.0)])

    state = agent.to_state()

    assert state.id == "auv-0"
    assert (state.x, state.y, state.heading) == (1.23, -7.89, 0.12)
    assert state.speed == 2.5
    assert state.current_waypoint == (3.0, 4.0)
    assert state.has_active_waypoint is True


def test_reached_goal_requires_consumed_route() -> None:
    idle = _agent()
    done = _agent(waypoints=[(0.5, 0.0)])
    done.step(0.1, [])

    assert idle.reached_goal is False
    assert done.reached_goal is True
    assert done.has_active_waypoint is False

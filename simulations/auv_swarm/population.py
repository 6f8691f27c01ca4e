"""Random initial fleet generation."""

from __future__ import annotations

import math
from typing import Any, Mapping

from core.deterministic_rng import DeterministicRNG
from simulations.auv_swarm.agents import AuvAgent


def seed_population(params: Mapping[str, Any], rng: DeterministicRNG) -> list[AuvAgent]:
    """Create ``num_agents`` vehicles scattered around the world centre.

    Roughly ``initial_route_probability`` of them start with a short random
    route; the rest are idle and available for missions. All draws come from
    ``rng`` so the same seed yields the same fleet.
    """
    count = max(0, int(params["num_agents"]))
    extent = float(params["spawn_extent"])
    center_x = (float(params["min_x"]) + float(params["max_x"])) / 2.0
    center_y = (float(params["min_y"]) + float(params["max_y"])) / 2.0
    min_waypoints = int(params["min_initial_waypoints"])
    max_waypoints = int(params["max_initial_waypoints"])

    gen = rng.numpy_rng
    positions = gen.uniform(-extent, extent, size=(count, 2))
    headings = gen.uniform(0.0, 2.0 * math.pi, size=count)
    speeds = gen.uniform(float(params["min_speed"]), float(params["max_speed"]), size=count)
    with_route = gen.random(count) < float(params["initial_route_probability"])
    avoidance = rng.avoidance_source()

    fleet: list[AuvAgent] = []
    for index in range(count):
        agent = AuvAgent(
            agent_id=f"auv-{index}",
            x=center_x + float(positions[index, 0]),
            y=center_y + float(positions[index, 1]),
            heading=float(headings[index]),
            speed=float(speeds[index]),
            safety_radius=float(params["safety_radius"]),
            rng=avoidance,
        )
        if with_route[index]:
            num_waypoints = int(gen.integers(min_waypoints, max_waypoints + 1))
            for wx, wy in gen.uniform(-extent, extent, size=(num_waypoints, 2)):
                agent.add_waypoint((center_x + float(wx), center_y + float(wy)))
        fleet.append(agent)
    return fleet

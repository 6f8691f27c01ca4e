"""Composition root: build a populated swarm world from configuration."""

from __future__ import annotations

import logging
import time

from configs.loader import DEFAULT_CONFIG_PATH, ConfigLoader, SwarmConfig
from core.deterministic_rng import DeterministicRNG
from core.event_bus import EventBus
from core.snapshot import AnalyticsReport
from simulations.auv_swarm.environment import SwarmWorld, WorldBounds
from simulations.auv_swarm.population import seed_population


LOGGER = logging.getLogger(__name__)


def build_world(config: SwarmConfig, event_bus: EventBus | None = None) -> SwarmWorld:
    """Build a world from configuration and install a seeded fleet."""
    world = SwarmWorld(
        bounds=WorldBounds(
            min_x=config.min_x,
            max_x=config.max_x,
            min_y=config.min_y,
            max_y=config.max_y,
        ),
        tick_interval=config.tick_interval,
        boundary_margin=config.boundary_margin,
        event_bus=event_bus,
    )
    world.populate(seed_population(config.to_dict(), DeterministicRNG(config.seed)))
    return world


def reset_and_reseed(world: SwarmWorld, config: SwarmConfig, num_agents: int | None = None) -> None:
    """Reset ``world`` and give it a fresh fleet.

    The world's own reset leaves it empty; repopulating is this caller's
    policy. Passing ``num_agents`` changes the fleet size for the new session.
    """
    if num_agents is not None:
        config = config.with_overrides(num_agents=int(num_agents))
    world.reset()
    world.populate(seed_population(config.to_dict(), DeterministicRNG(config.seed)))
    LOGGER.info("Reseeded world with %d agents", config.num_agents)


def main(config_path: str = str(DEFAULT_CONFIG_PATH), seconds: float = 10.0) -> AnalyticsReport:
    """Load config, run the live tick for ``seconds`` and return analytics."""
    config = ConfigLoader.load(config_path)
    world = build_world(config)
    world.start()
    try:
        time.sleep(max(0.0, float(seconds)))
    finally:
        world.stop()
    return world.analytics()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print(main())

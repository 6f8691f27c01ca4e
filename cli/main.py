"""Command-line entry points for running, serving, and inspecting the swarm."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

# Allow `python cli/main.py ...` execution from IDEs by adding repo root to sys.path.
if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from configs.loader import DEFAULT_CONFIG_PATH, ConfigLoader, SwarmConfig
from core.event_bus import EventBus
from main import build_world, main as run_headless
from simulations.auv_swarm.environment import SNAPSHOT_EVENT
from streaming.state_serializer import serialize_state
from streaming.websocket_server import SnapshotServer


LOGGER = logging.getLogger(__name__)


async def _serve(config: SwarmConfig) -> None:
    bus = EventBus(max_workers=2)
    world = build_world(config, event_bus=bus)
    server = SnapshotServer(world.snapshot, host=config.websocket_host, port=config.websocket_port)
    await server.start()
    bus.subscribe(SNAPSHOT_EVENT, server.broadcast_threadsafe)
    world.start()
    LOGGER.info("Simulation running with %d AUVs", world.agent_count)
    try:
        await asyncio.Event().wait()
    finally:
        world.stop()
        await server.stop()
        bus.close()


def run_cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="auv-swarm")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="run the live tick headless and print analytics")
    run_cmd.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    run_cmd.add_argument("--seconds", type=float, default=10.0)

    serve_cmd = sub.add_parser("serve", help="run the live tick and stream snapshots over websockets")
    serve_cmd.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    serve_cmd.add_argument("--port", type=int)

    snap_cmd = sub.add_parser("snapshot", help="advance fixed steps and print the snapshot")
    snap_cmd.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    snap_cmd.add_argument("--ticks", type=int, default=10)
    snap_cmd.add_argument("--dt", type=float, default=0.2)

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    if args.command == "run":
        report = run_headless(args.config, seconds=args.seconds)
        print(serialize_state(report).decode("utf-8"))
        return 0

    if args.command == "serve":
        config = ConfigLoader.load(args.config)
        if args.port is not None:
            config = config.with_overrides(websocket_port=args.port)
        try:
            asyncio.run(_serve(config))
        except KeyboardInterrupt:
            LOGGER.info("Shutting down")
        return 0

    if args.command == "snapshot":
        world = build_world(ConfigLoader.load(args.config))
        for _ in range(max(0, args.ticks)):
            world.step(args.dt)
        print(serialize_state(world.snapshot()).decode("utf-8"))
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(run_cli())

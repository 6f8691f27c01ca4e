"""Swarm snapshot websocket streaming server and broadcaster."""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import websockets

from core.snapshot import SwarmSnapshot
from streaming.state_serializer import build_message


LOGGER = logging.getLogger(__name__)

FULL_STATE = "full_state"
AGENT_POSITIONS_ONLY = "agent_positions_only"
INITIAL_STATE = "initial_state"
SIMULATION_UPDATE = "simulation_update"


@dataclass
class _Client:
    websocket: Any
    mode: str = FULL_STATE
    queue: asyncio.Queue[bytes] = field(default_factory=lambda: asyncio.Queue(maxsize=1))


class SnapshotServer:
    """Push swarm snapshots to websocket clients.

    Each client gets an ``initial_state`` frame on connect and a
    ``simulation_update`` frame per broadcast. A client that falls behind only
    ever has the newest frame queued.
    """

    def __init__(
        self,
        snapshot_provider: Callable[[], SwarmSnapshot],
        host: str = "127.0.0.1",
        port: int = 8080,
        handshake_timeout: float = 0.5,
    ) -> None:
        self.snapshot_provider = snapshot_provider
        self.host = host
        self.port = port
        self.handshake_timeout = handshake_timeout
        self._clients: list[_Client] = []
        self._server = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        """Start websocket listener."""
        self._loop = asyncio.get_running_loop()
        self._server = await websockets.serve(self._handle, self.host, self.port)
        LOGGER.info("Snapshot server listening on ws://%s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop listener and disconnect clients."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            LOGGER.info("Snapshot server stopped")

    async def _handle(self, ws: Any) -> None:
        mode = await self._read_mode(ws)
        client = _Client(websocket=ws, mode=mode)
        # snapshot_provider may block on the world lock.
        initial = await asyncio.to_thread(self.snapshot_provider)
        self._enqueue(client, INITIAL_STATE, initial)
        self._clients.append(client)
        LOGGER.info("Client connected (%s). Total clients: %d", mode, len(self._clients))
        sender = asyncio.create_task(self._sender_loop(client))
        try:
            await ws.wait_closed()
        finally:
            if client in self._clients:
                self._clients.remove(client)
            sender.cancel()
            LOGGER.info("Client disconnected. Total clients: %d", len(self._clients))

    async def _read_mode(self, ws: Any) -> str:
        """Optional first message ``{"mode": ...}``; defaults to full state."""
        try:
            first_msg = await asyncio.wait_for(ws.recv(), timeout=self.handshake_timeout)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return FULL_STATE
        try:
            mode = json.loads(first_msg).get("mode", FULL_STATE)
        except (ValueError, AttributeError):
            return FULL_STATE
        return mode if mode in {FULL_STATE, AGENT_POSITIONS_ONLY} else FULL_STATE

    async def _sender_loop(self, client: _Client) -> None:
        while True:
            frame = await client.queue.get()
            try:
                await client.websocket.send(frame)
            except websockets.ConnectionClosed:
                return

    async def broadcast(self, snapshot: SwarmSnapshot) -> None:
        """Queue ``snapshot`` for every client, replacing any unsent frame."""
        for client in list(self._clients):
            self._enqueue(client, SIMULATION_UPDATE, snapshot)

    def broadcast_threadsafe(self, snapshot: SwarmSnapshot) -> None:
        """Event-bus callback: hand ``snapshot`` over to the server loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        future = asyncio.run_coroutine_threadsafe(self.broadcast(snapshot), loop)
        future.add_done_callback(self._log_broadcast_failure)

    @staticmethod
    def _log_broadcast_failure(future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            LOGGER.error("Snapshot broadcast failed", exc_info=exc)

    def _enqueue(self, client: _Client, message_type: str, snapshot: SwarmSnapshot) -> None:
        frame = build_message(message_type, self._apply_filter(snapshot, client.mode))
        if client.queue.full():
            client.queue.get_nowait()
        client.queue.put_nowait(frame)

    @staticmethod
    def _apply_filter(snapshot: SwarmSnapshot, mode: str) -> Any:
        if mode == AGENT_POSITIONS_ONLY:
            return {
                "timestamp": snapshot.timestamp,
                "elapsed_simulation_ms": snapshot.elapsed_simulation_ms,
                "agents": [
                    {"id": agent.id, "x": agent.x, "y": agent.y, "heading": agent.heading}
                    for agent in snapshot.agents
                ],
            }
        return snapshot

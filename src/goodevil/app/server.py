from __future__ import annotations

import asyncio
import json
from collections import deque
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from loguru import logger

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.engine import GoodEvil
from ..sim.core.errors import GoodEvilError
from ..sim.utils.timing import TickMeter, TimeAccumulator


@dataclass(frozen=True)
class QueuedSnapshot:
    generation: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, frame_interval: float = 1.0 / 60.0):
        self.config = config
        self.engine = GoodEvil.from_config(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.frame_interval = frame_interval
        self.running = False
        self.speed_multiplier = 1.0
        self.error: Optional[str] = None
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._accumulator = TimeAccumulator(config.time_step)
        self._tick_meter = TickMeter()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self.engine.generation

    @property
    def generations_per_second(self) -> float:
        return self._tick_meter.measure()

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self.running = self.error is None

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.engine.reset()
            self.error = None
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def step(self) -> bool:
        """Advance one generation; returns False once the engine has failed."""
        async with self._lock:
            try:
                self.engine.advance()
            except GoodEvilError as exc:
                logger.exception("Simulation halted at generation {}", self.engine.generation)
                self.error = f"{type(exc).__name__}: {exc}"
                self.running = False
                return False
            self._tick_meter.tick()
        if self.generation % self.broadcast_interval == 0:
            await self._broadcast_snapshot()
        return True

    async def _loop(self) -> None:
        last = perf_counter()
        while True:
            await asyncio.sleep(self.frame_interval)
            now = perf_counter()
            elapsed = (now - last) * self.speed_multiplier
            last = now
            if not self.running:
                continue
            for _ in self._accumulator.update(elapsed):
                if not await self.step():
                    break

    async def acknowledge(self, generation: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].generation <= generation:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.engine.snapshot()
        payload = {
            "type": "snapshot",
            "generation": snapshot.generation,
            "payload": {
                "generation": snapshot.generation,
                "stats": asdict(snapshot.stats) if snapshot.stats is not None else None,
                "cells": snapshot.cells,
                "board": asdict(snapshot.board),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(generation=snapshot.generation, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.generation > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.generation
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="GoodEvil Simulation")
app_config = AppConfig()
controller = SimulationController(app_config.simulation, broadcast_interval=app_config.broadcast_interval)


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    stats = controller.engine.stats
    return JSONResponse(
        {
            "running": controller.running,
            "generation": controller.generation,
            "specimens": len(controller.engine.specimens()),
            "generations_per_second": controller.generations_per_second,
            "error": controller.error,
            "stats": asdict(stats) if stats is not None else None,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": controller.running})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "generation": controller.generation})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                generation = payload.get("generation")
                if isinstance(generation, int):
                    await controller.acknowledge(generation)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]

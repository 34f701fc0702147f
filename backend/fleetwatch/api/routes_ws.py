from __future__ import annotations

import asyncio
import json
import logging
from typing import Dict, Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger("fleetwatch.ws")
router = APIRouter()

FLEET_CHANNEL = "fleet"


class WsHub:
    def __init__(self):
        self._clients: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, ws: WebSocket) -> None:
        await ws.accept()
        async with self._lock:
            self._clients.setdefault(channel, set()).add(ws)

    async def disconnect(self, channel: str, ws: WebSocket) -> None:
        async with self._lock:
            if channel in self._clients and ws in self._clients[channel]:
                self._clients[channel].remove(ws)
                if not self._clients[channel]:
                    self._clients.pop(channel, None)

    async def broadcast(self, channel: str, message: dict) -> None:
        # Copy references to avoid mutation while iterating
        async with self._lock:
            clients = list(self._clients.get(channel, set()))
        if not clients:
            return

        kind = message.get("kind", "?")
        logger.debug("Broadcasting %s to %d client(s) on %s", kind, len(clients), channel)
        payload = json.dumps(message, ensure_ascii=False)
        dead = []
        for ws in clients:
            try:
                await ws.send_text(payload)
            except Exception:
                dead.append(ws)
        # Clean dead sockets
        for ws in dead:
            await self.disconnect(channel, ws)


hub = WsHub()


async def _serve(channel: str, ws: WebSocket) -> None:
    logger.info("WS connect: channel=%s", channel)
    await hub.connect(channel, ws)
    try:
        while True:
            _ = await ws.receive_text()
    except WebSocketDisconnect:
        logger.info("WS disconnect: channel=%s", channel)
    finally:
        await hub.disconnect(channel, ws)


@router.websocket("/ws/fleet")
async def ws_fleet(ws: WebSocket):
    await _serve(FLEET_CHANNEL, ws)


@router.websocket("/ws/vehicles/{vehicle_id}")
async def ws_vehicle(vehicle_id: str, ws: WebSocket):
    await _serve(f"vehicle:{vehicle_id}", ws)

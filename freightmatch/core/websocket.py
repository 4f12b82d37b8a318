"""
Chat WebSocket relay.

Every frame a client sends with type "chat" is rebroadcast verbatim to all
open sockets. Room filtering is done by the clients.
"""

import asyncio
import json
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open sockets and fans out frames to all of them."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._connections.discard(websocket)

    async def broadcast(self, message: dict) -> int:
        """Send to every socket; drop the ones that error. Returns deliveries."""
        async with self._lock:
            connections = self._connections.copy()

        data = json.dumps(message)
        closed = []
        delivered = 0
        for ws in connections:
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception:
                # Connection closed or errored
                closed.append(ws)

        if closed:
            async with self._lock:
                for ws in closed:
                    self._connections.discard(ws)
        return delivered


manager = ConnectionManager()

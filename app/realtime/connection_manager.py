"""
WebSocket connection manager for the notification push channel.

Clients keep one socket per open session; after a derivation run or a read
mutation the owner's sockets receive a small message telling them to re-fetch.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks websocket connections per user and broadcasts to them."""

    def __init__(self):
        self.user_connections: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: str):
        """Accept a websocket and register it for the user."""
        await websocket.accept()
        self.user_connections.setdefault(user_id, set()).add(websocket)
        await websocket.send_json({
            "type": "connection_established",
            "timestamp": datetime.utcnow().isoformat(),
            "user_id": user_id
        })
        logger.info(f"User {user_id} connected. Connections for user: {len(self.user_connections[user_id])}")

    def disconnect(self, websocket: WebSocket, user_id: str):
        """Forget a websocket; drops the user entry once empty."""
        connections = self.user_connections.get(user_id)
        if not connections:
            return
        connections.discard(websocket)
        if not connections:
            del self.user_connections[user_id]
        logger.info(f"User {user_id} disconnected")

    def connection_count(self, user_id: str) -> int:
        return len(self.user_connections.get(user_id, ()))

    async def broadcast_to_user(self, user_id: str, message: Dict[str, Any]):
        """Send a message to every connection of one user, pruning dead sockets."""
        connections = self.user_connections.get(user_id)
        if not connections:
            return

        message["timestamp"] = datetime.utcnow().isoformat()

        disconnected = set()
        for connection in list(connections):
            try:
                await connection.send_json(message)
            except WebSocketDisconnect:
                disconnected.add(connection)
            except Exception as e:
                logger.error(f"Error sending message to user {user_id}: {e}")
                disconnected.add(connection)

        for connection in disconnected:
            self.disconnect(connection, user_id)

    async def notify_notifications_changed(self, user_id: str, event: str, **data):
        """Tell the user's clients that their notification feed changed."""
        await self.broadcast_to_user(user_id, {"type": event, "user_id": user_id, "data": data})


# Global connection manager instance
connection_manager = ConnectionManager()

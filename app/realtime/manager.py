# =============================================================================
# app/realtime/manager.py - Notification Connection Manager
# =============================================================================
# Tracks WebSocket connections to the notification channel, grouped by
# group name, and fans messages out to them.
#
# Usage:
#   manager = request.app.state.connection_manager
#
#   await manager.connect("all", websocket)
#   await manager.broadcast("all", {"type": "notification", ...})
#   manager.disconnect("all", websocket)
# =============================================================================

import logging
import re
from typing import Dict, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "all"

_GROUP_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


def is_valid_group(group: str) -> bool:
    """Group names are 1-64 letters, digits, '-', '_' or '.'."""
    return bool(_GROUP_PATTERN.match(group))


class ConnectionManager:
    """
    Manages WebSocket connections organized by group.

    A client joins exactly one group when it connects. Broadcasting to a
    group reaches every client in it; connections that fail to receive
    are dropped.
    """

    def __init__(self):
        # group -> set of WebSocket connections
        self.connections: Dict[str, Set[WebSocket]] = {}
        self._total_connections = 0

    async def connect(self, group: str, websocket: WebSocket) -> None:
        """
        Accept a new WebSocket connection and track it.

        Args:
            group: The group this connection joins
            websocket: The WebSocket connection
        """
        await websocket.accept()

        self.connections.setdefault(group, set()).add(websocket)
        self._total_connections += 1

        logger.info(
            f"WebSocket joined group {group}. "
            f"Total connections: {self._total_connections}"
        )

    def disconnect(self, group: str, websocket: WebSocket) -> None:
        """
        Remove a WebSocket connection from tracking.

        Unknown connections are ignored, so this is safe to call twice.
        """
        members = self.connections.get(group)
        if members is None or websocket not in members:
            return

        members.discard(websocket)
        self._total_connections -= 1

        if not members:
            del self.connections[group]

        logger.info(
            f"WebSocket left group {group}. "
            f"Total connections: {self._total_connections}"
        )

    async def broadcast(self, group: str, message: dict) -> int:
        """
        Broadcast a message to all connections in a group.

        Args:
            group: The group to broadcast to
            message: The message dict to send (will be JSON encoded)

        Returns:
            int: Number of clients the message was sent to
        """
        if group not in self.connections:
            logger.debug(f"No connections in group {group}, skipping broadcast")
            return 0

        dead_connections: Set[WebSocket] = set()
        sent_count = 0

        # Copy: a failing send may race with disconnect()
        for websocket in list(self.connections[group]):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead_connections.add(websocket)

        for ws in dead_connections:
            self.disconnect(group, ws)

        if dead_connections:
            logger.info(f"Cleaned up {len(dead_connections)} dead connections")

        logger.debug(
            f"Broadcast to group {group}: "
            f"type={message.get('type')}, sent to {sent_count} clients"
        )

        return sent_count

    def get_connection_count(self, group: Optional[str] = None) -> int:
        """
        Get the number of active connections.

        Args:
            group: If provided, count for that group. Otherwise total.
        """
        if group:
            return len(self.connections.get(group, set()))
        return self._total_connections

    def get_active_groups(self) -> list[str]:
        """Get the groups with at least one connection."""
        return sorted(self.connections.keys())

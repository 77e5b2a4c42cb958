# =============================================================================
# app/realtime/__init__.py - Real-time Notification Channel
# =============================================================================
# WebSocket notification channel mounted at /api/notify.
#
# Usage:
#   # Broadcast from a route handler
#   manager = request.app.state.connection_manager
#   await manager.broadcast("all", {"type": "order_updated", "payload": {...}})
#
#   # Fan out across worker processes
#   from app.realtime import publish_notification
#   await publish_notification(redis_client, "all", message)
# =============================================================================

from app.realtime.manager import DEFAULT_GROUP, ConnectionManager, is_valid_group
from app.realtime.broadcast import (
    NOTIFY_CHANNEL,
    create_redis_client,
    publish_notification,
    redis_listener,
)

__all__ = [
    "DEFAULT_GROUP",
    "ConnectionManager",
    "is_valid_group",
    "NOTIFY_CHANNEL",
    "create_redis_client",
    "publish_notification",
    "redis_listener",
]

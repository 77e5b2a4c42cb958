# =============================================================================
# app/realtime/routes.py - Notification Channel Routes
# =============================================================================
# Real-time notification channel.
#
# Handshake: POST /api/notify/negotiate
# Connect:   ws://host/api/notify?group={group}&id={connectionId}
# Send:      POST /api/v1/notifications (bearer token required)
#
# Messages pushed to clients:
#   - {"type": "connected", "connectionId": "...", "group": "..."}
#   - {"type": "<notification type>", "payload": {...}, "sender": "..."}
# =============================================================================

import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from app.exceptions import GroupNameError, NotificationPublishError
from app.realtime.broadcast import publish_notification
from app.realtime.manager import DEFAULT_GROUP, ConnectionManager, is_valid_group

logger = logging.getLogger(__name__)

router = APIRouter()

NEGOTIATE_VERSION = 1


# =============================================================================
# Request / Response Models
# =============================================================================

class TransportInfo(BaseModel):
    transport: str
    transferFormats: list[str]


class NegotiateResponse(BaseModel):
    """Handshake result telling the client how to connect."""
    negotiateVersion: int
    connectionId: str
    connectionToken: str
    availableTransports: list[TransportInfo]


class NotificationRequest(BaseModel):
    """
    Notification to broadcast.

    Example:
        {
            "group": "all",
            "type": "order_updated",
            "payload": {"order_id": 42}
        }
    """
    group: str = Field(default=DEFAULT_GROUP, description="Target group")
    type: str = Field(
        default="notification",
        min_length=1,
        max_length=64,
        description="Event type clients dispatch on"
    )
    payload: dict[str, Any] = Field(default_factory=dict)


class NotificationResponse(BaseModel):
    group: str
    published: bool
    # Local recipients; None when fan-out went through Redis
    delivered: Optional[int] = None


class ChannelStatus(BaseModel):
    total_connections: int
    active_groups: list[str]
    group_count: int


# =============================================================================
# Dependencies
# =============================================================================

def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/api/notify/negotiate", response_model=NegotiateResponse)
async def negotiate() -> NegotiateResponse:
    """
    Negotiate a connection to the notification channel.

    Returns the connection id to pass as `id` when opening the WebSocket.
    """
    return NegotiateResponse(
        negotiateVersion=NEGOTIATE_VERSION,
        connectionId=uuid.uuid4().hex,
        connectionToken=uuid.uuid4().hex,
        availableTransports=[
            TransportInfo(transport="WebSockets", transferFormats=["Text"]),
        ],
    )


@router.websocket("/api/notify")
async def notify_websocket(
    websocket: WebSocket,
    group: str = Query(DEFAULT_GROUP, description="Group to join"),
    connection_id: Optional[str] = Query(None, alias="id", description="Connection id from negotiate"),
):
    """
    WebSocket endpoint for real-time notifications.

    The client receives a `connected` message, then every notification
    sent to its group. Sending "ping" returns "pong".
    """
    if not is_valid_group(group):
        logger.warning(f"WebSocket rejected: invalid group {group!r}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid group")
        return

    manager: ConnectionManager = websocket.app.state.connection_manager
    connection_id = connection_id or uuid.uuid4().hex

    await manager.connect(group, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "connectionId": connection_id,
            "group": group,
        })

        while True:
            data = await websocket.receive_text()

            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client {connection_id} disconnected from group {group}")
    finally:
        manager.disconnect(group, websocket)


@router.post(
    "/api/v1/notifications",
    response_model=NotificationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_notification(
    body: NotificationRequest,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    manager: ConnectionManager = Depends(get_connection_manager),
) -> NotificationResponse:
    """
    Broadcast a notification to a group.

    Raises:
        400: If the group name is invalid
        401: If not authenticated
        503: If the message broker rejects the message
    """
    if not is_valid_group(body.group):
        raise GroupNameError(body.group)

    message = {
        "type": body.type,
        "payload": body.payload,
        "sender": user.id,
    }

    redis_client = request.app.state.redis
    if redis_client is None:
        delivered = await manager.broadcast(body.group, message)
        return NotificationResponse(group=body.group, published=True, delivered=delivered)

    if not await publish_notification(redis_client, body.group, message):
        raise NotificationPublishError(body.group, "broker unavailable")

    return NotificationResponse(group=body.group, published=True)


@router.get("/api/notify/status", response_model=ChannelStatus)
async def channel_status(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> ChannelStatus:
    """Connection counts for the notification channel."""
    groups = manager.get_active_groups()
    return ChannelStatus(
        total_connections=manager.get_connection_count(),
        active_groups=groups,
        group_count=len(groups),
    )

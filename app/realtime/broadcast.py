# =============================================================================
# app/realtime/broadcast.py - Cross-Process Broadcasting
# =============================================================================
# With several worker processes each holding its own WebSocket connections,
# a notification sent to one process must reach clients of every process.
#
# Uses Redis pub/sub for cross-process communication:
# - publish_notification() sends the message to the Redis channel
# - redis_listener() runs in every process and hands received messages to
#   the local ConnectionManager
#
# Without REDIS_URL, notifications are delivered in-process only.
# =============================================================================

import asyncio
import json
import logging
from typing import Any

from app.realtime.manager import ConnectionManager

logger = logging.getLogger(__name__)

# Redis channel for notification events
NOTIFY_CHANNEL = "notify:events"


def create_redis_client(redis_url: str):
    """Create an asyncio Redis client for pub/sub operations."""
    import redis.asyncio as aioredis
    return aioredis.from_url(redis_url)


async def publish_notification(redis_client, group: str, message: dict[str, Any]) -> bool:
    """
    Publish a notification for every process to broadcast.

    Args:
        redis_client: asyncio Redis client
        group: The group to broadcast to
        message: The message dict clients will receive

    Returns:
        bool: True if published successfully
    """
    try:
        payload = json.dumps({"group": group, **message})
        await redis_client.publish(NOTIFY_CHANNEL, payload)

        logger.debug(f"Published {message.get('type')} notification for group {group}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish notification: {e}")
        return False


async def redis_listener(
    redis_client,
    manager: ConnectionManager,
    shutdown_event: asyncio.Event,
) -> None:
    """
    Background task relaying Redis pub/sub messages to local WebSockets.

    Runs until cancelled or until shutdown_event is set.
    """
    logger.info("Starting Redis pub/sub listener for notifications")

    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(NOTIFY_CHANNEL)

        async for message in pubsub.listen():
            if shutdown_event.is_set():
                break

            if message["type"] != "message":
                continue

            try:
                data = json.loads(message["data"])
                if not isinstance(data, dict):
                    logger.warning(f"Ignoring non-object Redis message: {type(data).__name__}")
                    continue

                group = data.pop("group", None)

                if group:
                    await manager.broadcast(group, data)

            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(f"Invalid JSON in Redis message: {e}")
            except Exception as e:
                logger.error(f"Error processing Redis message: {e}")

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
        raise
    except Exception as e:
        logger.error(f"Redis pub/sub listener error: {e}")
    finally:
        try:
            await pubsub.unsubscribe(NOTIFY_CHANNEL)
            await pubsub.aclose()
        except Exception as e:
            logger.debug(f"Error closing Redis pub/sub: {e}")

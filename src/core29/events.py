"""Best-effort Redis pub/sub events for the notification layer."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

ACHIEVEMENT_EARNED_CHANNEL = "pubsub:achievement_earned"
BATTLE_UPDATE_CHANNEL = "pubsub:battle_update"


async def publish_event(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON payload. Never raises: delivery is not part of the core's contract."""
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
        return False
    return True

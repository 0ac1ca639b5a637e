"""Push notifications through an HTTP push gateway (FCM relay)."""
from __future__ import annotations

import logging

import httpx

from kids_scheduler.config import settings
from kids_scheduler.errors import DeliveryError

logger = logging.getLogger(__name__)


def build_push_message(token: str, title: str, body: str, data: dict[str, str]) -> dict:
    return {
        "token": token,
        "notification": {"title": title, "body": body},
        "data": data,
        "apns": {"payload": {"aps": {"badge": 1, "sound": "default"}}},
    }


async def send_push(token: str, title: str, body: str, data: dict[str, str]) -> bool:
    """POST one push message to the gateway.

    Returns False when push is not configured, raises DeliveryError when
    the gateway rejects the message or cannot be reached.
    """
    if not settings.push_gateway_url:
        logger.info(f"Push disabled, dropping '{data.get('type')}' notification")
        return False

    headers = {}
    if settings.push_api_key:
        headers["Authorization"] = f"Bearer {settings.push_api_key}"

    try:
        async with httpx.AsyncClient(timeout=settings.push_timeout_seconds) as client:
            resp = await client.post(
                settings.push_gateway_url,
                json={"message": build_push_message(token, title, body, data)},
                headers=headers,
            )
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise DeliveryError(
            "push", f"gateway returned HTTP {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        raise DeliveryError("push", str(e) or type(e).__name__) from e
    return True

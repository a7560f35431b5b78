"""Client for the HTTP SMS gateway used for alert text messages."""

from __future__ import annotations

import logging

import httpx

from app.config import get_settings
from app.domain.entities import Notification

logger = logging.getLogger(__name__)

_MAX_SMS_LENGTH = 160


def build_alert_sms(notification: Notification) -> str:
    """Return the text message announcing ``notification``."""

    text = f"New alert: {notification.display_title} (#{notification.alert_id})"
    if len(text) > _MAX_SMS_LENGTH:
        text = text[: _MAX_SMS_LENGTH - 3] + "..."
    return text


def send_sms(phone: str, message: str, *, client: httpx.Client | None = None) -> bool:
    """Post ``message`` for ``phone`` to the configured gateway.

    Returns ``False`` when the gateway is not configured or rejects the request.
    """

    settings = get_settings()
    if not settings.sms_gateway_url:
        logger.info("SMS gateway not configured; skipping SMS delivery")
        return False

    headers = {"Accept": "application/json"}
    if settings.sms_gateway_token:
        headers["Authorization"] = f"Bearer {settings.sms_gateway_token}"

    http = client or httpx.Client(timeout=settings.sms_gateway_timeout_seconds)
    try:
        response = http.post(
            settings.sms_gateway_url,
            json={"to": phone, "message": message},
            headers=headers,
        )
    except httpx.HTTPError as exc:
        logger.error("SMS gateway request failed: %s", exc)
        return False
    finally:
        if client is None:
            http.close()

    if not response.is_success:
        logger.error(
            "SMS gateway responded with status %s: %s",
            response.status_code,
            response.text[:200],
        )
        return False
    return True


def send_alert_sms(phone: str, notification: Notification) -> bool:
    """Text ``phone`` about a new alert."""

    return send_sms(phone, build_alert_sms(notification))


__all__ = ["build_alert_sms", "send_alert_sms", "send_sms"]

"""
Telegram Admin Alerts

Posts short HTML messages to the admin chat through the Bot API. Disabled
unless both TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are configured.
"""

import logging

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


async def send_admin_message(text: str) -> bool:
    """
    Send a message to the admin chat.

    Returns:
        True if Telegram accepted the message, False otherwise
    """
    if not settings.telegram_enabled:
        logger.debug("Telegram not configured - skipping admin alert")
        return False

    url = f"{TELEGRAM_API_URL}/bot{settings.telegram_bot_token}/sendMessage"
    payload = {
        "chat_id": settings.telegram_chat_id,
        "text": text,
        "parse_mode": "HTML",
    }

    try:
        async with httpx.AsyncClient(timeout=settings.notification_timeout_seconds) as client:
            response = await client.post(url, json=payload)
        if response.status_code >= 400:
            logger.error(f"Telegram rejected admin alert: {response.status_code} {response.text}")
            return False
        return True
    except httpx.HTTPError as e:
        logger.error(f"Failed to send Telegram admin alert: {e}")
        return False

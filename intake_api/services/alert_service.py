"""Alert service for sending operator notifications to Telegram."""

from typing import Optional

import httpx

from intake_api.config import settings
from intake_api.logging_config import get_logger

logger = get_logger("alert_service")

LEVEL_MARKERS = {"INFO": "[i]", "WARNING": "[!]", "ERROR": "[x]", "CRITICAL": "[!!!]"}


def send_alert(level: str, message: str, context: Optional[dict] = None) -> bool:
    """Send alert to the operators' Telegram chat.

    Args:
        level: INFO, WARNING, ERROR, CRITICAL
        message: Alert message
        context: Optional context dict (ids and flags only, no patient text)

    Returns:
        True if sent successfully
    """
    bot_token = settings.alert_bot_token
    chat_id = settings.alert_chat_id
    if not bot_token or not chat_id:
        logger.warning(f"Alert not configured: {level} - {message}", extra={"context": context or {}})
        return False

    text = f"{LEVEL_MARKERS.get(level, '[-]')} *{level}*\n\n{message}"

    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        text += f"\n\n```\n{context_str}\n```"

    try:
        with httpx.Client(timeout=10) as client:
            response = client.post(
                f"https://api.telegram.org/bot{bot_token}/sendMessage",
                json={"chat_id": chat_id, "text": text, "parse_mode": "Markdown"},
            )
            return response.status_code == 200
    except Exception as e:
        logger.error(f"Failed to send alert: {e}")
        return False


def alert_warning(message: str, context: Optional[dict] = None) -> bool:
    """Shortcut for WARNING level alert."""
    return send_alert("WARNING", message, context)


def alert_error(message: str, context: Optional[dict] = None) -> bool:
    """Shortcut for ERROR level alert."""
    return send_alert("ERROR", message, context)

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from intake_api.schemas.inbound import Channel, InboundMessage

WHATSAPP_SCHEME_PREFIX = "whatsapp:"


class MalformedPayloadError(Exception):
    def __init__(self, message: str, channel: Channel):
        self.message = message
        self.channel = channel
        super().__init__(message)


def detect_channel(content_type: Optional[str]) -> Channel:
    """JSON bodies come from the Baileys bridge, everything else from Twilio."""
    if content_type and "application/json" in content_type.lower():
        return Channel.BAILEYS
    return Channel.TWILIO


def normalize_address(raw: Optional[str]) -> str:
    """Strip the ``whatsapp:`` scheme and the leading ``+`` from an address."""
    address = (raw or "").strip()
    if address.startswith(WHATSAPP_SCHEME_PREFIX):
        address = address[len(WHATSAPP_SCHEME_PREFIX):]
    address = address.strip()
    if address.startswith("+"):
        address = address[1:]
    return address


def _coerce_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple)):
        return ""
    return str(value)


def _coerce_media_count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def normalize_json_payload(payload: Any, *, now: Optional[datetime] = None) -> InboundMessage:
    """Normalize a Baileys bridge JSON payload."""
    data = payload if isinstance(payload, dict) else {}

    message_id = _coerce_text(data.get("messageSid")) or _coerce_text(data.get("messageId"))
    if not message_id:
        now = now or datetime.now(timezone.utc)
        message_id = f"{Channel.BAILEYS.value}-{int(now.timestamp() * 1000)}"

    return InboundMessage(
        channel=Channel.BAILEYS,
        sender_address=normalize_address(_coerce_text(data.get("from"))),
        recipient_address=normalize_address(_coerce_text(data.get("to"))),
        text=_coerce_text(data.get("body")) or _coerce_text(data.get("message")),
        external_message_id=message_id,
        num_media=_coerce_media_count(data.get("numMedia")),
    )


def normalize_form_payload(form: Mapping[str, Any]) -> InboundMessage:
    """Normalize a Twilio form-encoded webhook payload."""
    return InboundMessage(
        channel=Channel.TWILIO,
        sender_address=normalize_address(_coerce_text(form.get("From"))),
        recipient_address=normalize_address(_coerce_text(form.get("To"))),
        text=_coerce_text(form.get("Body")),
        external_message_id=_coerce_text(form.get("MessageSid")),
        num_media=_coerce_media_count(form.get("NumMedia")),
    )


def validate_message(message: InboundMessage, *, strict: bool) -> InboundMessage:
    """Reject messages without addresses when strict validation is enabled.

    Lenient mode passes empty fields through unchanged.
    """
    if not strict:
        return message
    missing = [
        name
        for name, value in (("from", message.sender_address), ("to", message.recipient_address))
        if not value
    ]
    if missing:
        raise MalformedPayloadError(f"Missing required fields: {', '.join(missing)}", message.channel)
    return message

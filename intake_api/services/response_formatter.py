from typing import Optional
from uuid import UUID
from xml.sax.saxutils import escape

from fastapi import status
from fastapi.responses import JSONResponse, Response

from intake_api.schemas.inbound import Channel
from intake_api.schemas.webhook import WebhookResponse

NOT_CONFIGURED_ERROR = "Service not configured"
NOT_CONFIGURED_MESSAGE = "Sorry, this service is not configured. Please contact the hospital directly."
APOLOGY_MESSAGE = "Sorry, there was an error processing your message. Please try again."

TWIML_MEDIA_TYPE = "text/xml"


def build_twiml(message: Optional[str] = None) -> str:
    """TwiML envelope; an empty ``<Response>`` tells Twilio not to reply."""
    body = f"<Message>{escape(message)}</Message>" if message else ""
    return f'<?xml version="1.0" encoding="UTF-8"?><Response>{body}</Response>'


def _json(payload: WebhookResponse, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        content=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        status_code=status_code,
    )


def _twiml(message: Optional[str] = None) -> Response:
    return Response(content=build_twiml(message), media_type=TWIML_MEDIA_TYPE)


def success_response(
    channel: Channel,
    *,
    reply_text: str,
    conversation_id: Optional[UUID],
    conversation_state: Optional[str],
    reply_sent_via_api: bool,
) -> Response:
    if channel == Channel.BAILEYS:
        return _json(
            WebhookResponse(
                success=True,
                response=reply_text,
                conversation_id=conversation_id,
                conversation_state=conversation_state,
            )
        )
    # Twilio: the reply already went out through the Messages API, or rides back in the envelope.
    return _twiml(None if reply_sent_via_api else reply_text)


def not_configured_response(channel: Channel) -> Response:
    if channel == Channel.BAILEYS:
        return _json(WebhookResponse(success=False, error=NOT_CONFIGURED_ERROR, response=NOT_CONFIGURED_MESSAGE))
    return _twiml(NOT_CONFIGURED_MESSAGE)


def error_response(channel: Channel, error: Optional[str] = None) -> Response:
    """Apology reply. Only the JSON channel sees the error detail."""
    if channel == Channel.BAILEYS:
        return _json(
            WebhookResponse(success=False, error=error or "Internal error", response=APOLOGY_MESSAGE),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return _twiml(APOLOGY_MESSAGE)

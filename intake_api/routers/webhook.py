from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from intake_api.config import settings
from intake_api.database import get_db
from intake_api.logging_config import get_logger
from intake_api.schemas.inbound import Channel, InboundMessage
from intake_api.services.appointment_service import AppointmentClient
from intake_api.services.intake_pipeline import IntakePipeline
from intake_api.services.normalizer import detect_channel, normalize_form_payload, normalize_json_payload
from intake_api.services.response_formatter import error_response, not_configured_response, success_response
from intake_api.services.tenant_service import TenantNotConfiguredError

logger = get_logger("webhook")

router = APIRouter()

_pipeline: Optional[IntakePipeline] = None
_appointment_client: Optional[AppointmentClient] = None


def get_pipeline() -> IntakePipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = IntakePipeline.from_settings(settings)
    return _pipeline


def get_appointment_client() -> AppointmentClient:
    global _appointment_client
    if _appointment_client is None:
        _appointment_client = AppointmentClient(
            settings.appointment_service_url,
            api_key=settings.service_role_key,
            timeout_seconds=settings.appointment_timeout_seconds,
        )
    return _appointment_client


async def _parse_inbound(request: Request, channel: Channel) -> InboundMessage:
    if channel == Channel.BAILEYS:
        payload = await request.json()
        logger.info("Baileys bot message detected")
        return normalize_json_payload(payload)

    form = await request.form()
    logger.info("Twilio message detected")
    return normalize_form_payload(form)


@router.get("/whatsapp-webhook")
async def whatsapp_webhook_probe():
    """Health probe for provider console checks; real messages must use POST."""
    return {"ok": True, "message": "Use POST with form-encoded (Twilio) or JSON (Baileys) payload"}


@router.post("/whatsapp-webhook")
async def whatsapp_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    pipeline: IntakePipeline = Depends(get_pipeline),
    appointment_client: AppointmentClient = Depends(get_appointment_client),
) -> Response:
    """Handle an inbound WhatsApp message from Twilio or the Baileys bridge.

    Always answers with a well-formed reply for the originating channel, even
    when processing fails.
    """
    channel = detect_channel(request.headers.get("content-type"))

    try:
        message = await _parse_inbound(request, channel)
        outcome = await run_in_threadpool(pipeline.process, db, message)
    except TenantNotConfiguredError as e:
        db.rollback()
        logger.error(
            "No hospital found for WhatsApp number",
            extra={"context": {"recipient": e.recipient_address, "channel": channel.value}},
        )
        return not_configured_response(channel)
    except Exception as e:
        db.rollback()
        logger.exception("Webhook processing failed", extra={"context": {"channel": channel.value}})
        return error_response(channel, str(e))

    if outcome.appointment_request is not None:
        background_tasks.add_task(appointment_client.dispatch, outcome.appointment_request)

    logger.info(
        "Webhook processed",
        extra={
            "context": {
                "channel": channel.value,
                "conversation_id": str(outcome.conversation_id),
                "conversation_state": outcome.conversation_state,
                "created_conversation": outcome.created_conversation,
                "appointment_triggered": outcome.appointment_request is not None,
            }
        },
    )
    return success_response(
        channel,
        reply_text=outcome.reply_text,
        conversation_id=outcome.conversation_id,
        conversation_state=outcome.conversation_state,
        reply_sent_via_api=outcome.reply_sent_via_api,
    )

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from intake_api.config import Settings
from intake_api.logging_config import LoggerAdapter, get_logger
from intake_api.schemas.appointment import AppointmentRequest
from intake_api.schemas.inbound import Channel, InboundMessage
from intake_api.schemas.reasoning import ReasoningRequest
from intake_api.services.appointment_service import (
    build_appointment_request,
    claim_appointment,
    should_create_appointment,
)
from intake_api.services.conversation_service import get_or_create_conversation, record_inbound_turn
from intake_api.services.normalizer import validate_message
from intake_api.services.reasoning_client import ReasoningClient
from intake_api.services.state_merge import apply_merged_state, merge_session_state
from intake_api.services.tenant_service import TenantNotConfiguredError, resolve_tenant
from intake_api.services.transcript import TurnRole, append_turn, build_turn
from intake_api.services.twilio_service import TwilioClient

logger = get_logger("intake_pipeline")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IntakeOutcome:
    tenant_id: UUID
    conversation_id: UUID
    conversation_state: str
    reply_text: str
    created_conversation: bool = False
    reply_sent_via_api: bool = False
    appointment_request: Optional[AppointmentRequest] = None


class IntakePipeline:
    """Routes one inbound message through tenant, session, reasoning and appointment steps.

    Each call handles a single message and either returns an outcome or
    raises; the caller owns the DB session and the reply formatting.
    """

    def __init__(
        self,
        settings: Settings,
        reasoning_client: ReasoningClient,
        twilio_client: TwilioClient,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings
        self.reasoning_client = reasoning_client
        self.twilio_client = twilio_client
        self.clock = clock
        self.session_window = timedelta(hours=settings.session_window_hours)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntakePipeline":
        return cls(
            settings,
            ReasoningClient(
                settings.reasoning_service_url,
                api_key=settings.service_role_key,
                timeout_seconds=settings.reasoning_timeout_seconds,
            ),
            TwilioClient(
                settings.twilio_account_sid,
                settings.twilio_auth_token,
                api_base=settings.twilio_api_base,
                timeout_seconds=settings.twilio_timeout_seconds,
            ),
        )

    def process(self, db: Session, message: InboundMessage) -> IntakeOutcome:
        log = LoggerAdapter(
            logger,
            {"channel": message.channel.value, "message_id": message.external_message_id},
        )
        message = validate_message(message, strict=self.settings.strict_payload_validation)
        log.info(f"Message from {message.sender_address} to {message.recipient_address}")

        # 1. Tenant
        tenant = resolve_tenant(
            db,
            message.recipient_address,
            fallback_enabled=self.settings.tenant_fallback_enabled,
            fallback_organization_type=self.settings.fallback_organization_type,
        )
        if tenant is None:
            raise TenantNotConfiguredError(message.recipient_address)

        # 2. Session
        received_at = self.clock()
        conversation, created = get_or_create_conversation(
            db,
            tenant.id,
            message.sender_address,
            now=received_at,
            window=self.session_window,
        )
        appointment_already_created = bool(conversation.appointment_created)

        # 3. Inbound turn is durable before the reasoning call
        inbound_turn = build_turn(TurnRole.PATIENT, message.text, received_at, message.external_message_id)
        transcript = record_inbound_turn(db, conversation, inbound_turn, now=received_at)

        # 4. Reasoning
        result = self.reasoning_client.converse(
            ReasoningRequest(
                conversation_id=conversation.id,
                patient_phone=message.sender_address,
                hospital_id=tenant.id,
                hospital_name=tenant.name,
                message=message.text,
                transcript=transcript,
                conversation_state=conversation.conversation_state,
                existing_symptoms=conversation.collected_symptoms,
                existing_triage_level=conversation.triage_level,
                existing_patient_name=conversation.patient_name,
            )
        )

        reply_sent_via_api = False
        if message.channel == Channel.TWILIO and self.settings.twilio_send_via_api:
            sent = self.twilio_client.send_whatsapp_message(
                message.recipient_address,
                message.sender_address,
                result.response,
            )
            reply_sent_via_api = sent is not None

        # 5. Merge + outbound turn
        merged = merge_session_state(conversation, result)
        outbound_turn = build_turn(TurnRole.ASSISTANT, result.response, self.clock())
        final_transcript = append_turn(transcript, outbound_turn)
        apply_merged_state(db, conversation, merged, final_transcript)

        # 6. Appointment gate, evaluated against the pre-request flag
        appointment_request = None
        if should_create_appointment(appointment_already_created, result, merged):
            if claim_appointment(db, conversation.id):
                appointment_request = build_appointment_request(conversation, merged, final_transcript)
                log.info("Triggering appointment creation", context={"conversation_id": str(conversation.id)})
            else:
                log.info(
                    "Appointment already claimed by another request",
                    context={"conversation_id": str(conversation.id)},
                )

        return IntakeOutcome(
            tenant_id=tenant.id,
            conversation_id=conversation.id,
            conversation_state=merged.conversation_state,
            reply_text=result.response,
            created_conversation=created,
            reply_sent_via_api=reply_sent_via_api,
            appointment_request=appointment_request,
        )

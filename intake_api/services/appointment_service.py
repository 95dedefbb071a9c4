from typing import Any, Optional
from uuid import UUID

import httpx
from sqlalchemy import text
from sqlalchemy.orm import Session

from intake_api.logging_config import get_logger
from intake_api.models import ConversationSession
from intake_api.schemas.appointment import DEFAULT_PATIENT_NAME, AppointmentRequest
from intake_api.schemas.reasoning import ReasoningResult
from intake_api.services.alert_service import alert_error
from intake_api.services.result import Result
from intake_api.services.state_merge import MergedState

logger = get_logger("appointment_service")

# Handled by the emergency escalation path, never auto-scheduled.
HIGHEST_SEVERITY_TRIAGE_LEVEL = "CRITICAL"


def _has_symptoms(symptoms: Any) -> bool:
    if symptoms is None:
        return False
    if isinstance(symptoms, (dict, list, tuple, str)):
        return len(symptoms) > 0
    return True


def is_highest_severity(triage_level: Optional[str]) -> bool:
    return bool(triage_level) and triage_level.strip().upper() == HIGHEST_SEVERITY_TRIAGE_LEVEL


def should_create_appointment(
    appointment_already_created: bool,
    result: ReasoningResult,
    merged: MergedState,
) -> bool:
    """Decide whether this message triggers appointment creation.

    ``appointment_already_created`` is the flag as read before the request
    started. A CRITICAL triage never schedules, even when the reasoning
    service asks for it.
    """
    if appointment_already_created:
        return False
    if is_highest_severity(merged.triage_level):
        return False
    if result.create_appointment is True:
        return True
    return _has_symptoms(merged.collected_symptoms) and bool(merged.triage_level)


def claim_appointment(db: Session, conversation_id: UUID) -> bool:
    """Flip ``appointment_created`` false -> true atomically.

    Only the caller whose update matched the row may dispatch; a concurrent
    request for the same session gets False.
    """
    row = db.execute(
        text(
            """
            UPDATE whatsapp_conversations
            SET appointment_created = TRUE
            WHERE id = :id AND appointment_created = FALSE
            RETURNING id
            """
        ),
        {"id": conversation_id},
    ).first()
    db.commit()
    return row is not None


def build_appointment_request(
    conversation: ConversationSession,
    merged: MergedState,
    transcript: list[dict[str, Any]],
) -> AppointmentRequest:
    return AppointmentRequest(
        conversation_id=conversation.id,
        hospital_id=conversation.hospital_id,
        patient_phone=conversation.patient_phone,
        patient_name=merged.patient_name or DEFAULT_PATIENT_NAME,
        symptoms=merged.collected_symptoms,
        triage_level=merged.triage_level,
        urgency_score=merged.urgency_score,
        first_aid_given=merged.first_aid_given,
        preferred_date=merged.preferred_date,
        preferred_time=merged.preferred_time,
        transcript=transcript,
    )


class AppointmentClient:
    """Fire-and-forget client for the appointment-creation service."""

    def __init__(self, url: str, api_key: Optional[str] = None, timeout_seconds: float = 30.0):
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def dispatch(self, request: AppointmentRequest) -> Result[int]:
        """Send the appointment request. Never raises; failures are logged and alerted."""
        context = {"conversation_id": str(request.conversation_id), "hospital_id": str(request.hospital_id)}
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.url,
                    headers=headers,
                    json=request.model_dump(mode="json", by_alias=True),
                )
        except Exception as e:
            logger.error(f"Appointment dispatch failed: {e}", extra={"context": context})
            alert_error("Appointment dispatch failed", {**context, "error": str(e)})
            return Result.from_exception(e, "dispatch_error")

        if response.status_code >= 400:
            logger.error(
                f"Appointment service error: status={response.status_code}, body={response.text[:200]}",
                extra={"context": context},
            )
            alert_error("Appointment service rejected request", {**context, "status": response.status_code})
            return Result.failure(f"Appointment service returned {response.status_code}", "http_error")

        logger.info("Appointment dispatched", extra={"context": {**context, "status": response.status_code}})
        return Result.success(response.status_code)

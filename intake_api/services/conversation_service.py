from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.orm import Session

from intake_api.logging_config import get_logger
from intake_api.models import ConversationSession
from intake_api.services.state_machine import INITIAL_STATE, TERMINAL_STATES, is_terminal
from intake_api.services.transcript import append_turn

logger = get_logger("conversation_service")

SESSION_WINDOW = timedelta(hours=2)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_active(conversation: ConversationSession, now: datetime, window: timedelta = SESSION_WINDOW) -> bool:
    """A session is active while it is not completed and inside the liveness window.

    Computed on read; expiry is never written back to the row.
    """
    if is_terminal(conversation.conversation_state):
        return False
    last_message_at = _as_utc(conversation.last_message_at)
    if last_message_at is None:
        return False
    return _as_utc(now) - last_message_at <= window


def lock_sender(db: Session, hospital_id: UUID, patient_phone: str) -> None:
    """Serialize find-or-create for one (tenant, sender) pair until the transaction ends."""
    db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
        {"key": f"{hospital_id}:{patient_phone}"},
    )


def find_active_conversation(
    db: Session,
    hospital_id: UUID,
    patient_phone: str,
    *,
    now: datetime,
    window: timedelta = SESSION_WINDOW,
) -> Optional[ConversationSession]:
    """Most recently created non-completed session with activity inside the window."""
    cutoff = _as_utc(now) - window
    return (
        db.query(ConversationSession)
        .filter(
            ConversationSession.hospital_id == hospital_id,
            ConversationSession.patient_phone == patient_phone,
            ConversationSession.conversation_state.notin_(TERMINAL_STATES),
            ConversationSession.last_message_at >= cutoff,
        )
        .order_by(ConversationSession.created_at.desc())
        .first()
    )


def get_or_create_conversation(
    db: Session,
    hospital_id: UUID,
    patient_phone: str,
    *,
    now: Optional[datetime] = None,
    window: timedelta = SESSION_WINDOW,
) -> tuple[ConversationSession, bool]:
    """Find the active session for the sender or start a new one.

    Returns ``(conversation, created)``. Insert failures propagate to the caller.
    """
    now = _as_utc(now) or datetime.now(timezone.utc)

    lock_sender(db, hospital_id, patient_phone)
    conversation = find_active_conversation(db, hospital_id, patient_phone, now=now, window=window)
    if conversation:
        logger.info(
            "Found existing conversation",
            extra={"context": {"conversation_id": str(conversation.id), "hospital_id": str(hospital_id)}},
        )
        return conversation, False

    conversation = ConversationSession(
        hospital_id=hospital_id,
        patient_phone=patient_phone,
        conversation_state=INITIAL_STATE.value,
        transcript=[],
        appointment_created=False,
        last_message_at=now,
        created_at=now,
    )
    db.add(conversation)
    db.flush()

    logger.info(
        "Created new conversation",
        extra={"context": {"conversation_id": str(conversation.id), "hospital_id": str(hospital_id)}},
    )
    return conversation, True


def record_inbound_turn(
    db: Session,
    conversation: ConversationSession,
    turn: dict[str, Any],
    *,
    now: datetime,
) -> list[dict[str, Any]]:
    """Append the patient turn and commit before any downstream call is made."""
    transcript = append_turn(conversation.transcript, turn)
    conversation.transcript = transcript
    conversation.last_message_at = now
    db.commit()
    return transcript

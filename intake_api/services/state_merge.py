from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from intake_api.models import ConversationSession
from intake_api.schemas.reasoning import ReasoningResult


@dataclass
class MergedState:
    conversation_state: str
    collected_symptoms: Optional[Any] = None
    triage_level: Optional[str] = None
    urgency_score: Optional[int] = None
    first_aid_given: Optional[bool] = None
    patient_name: Optional[str] = None
    # Transient: used for the appointment decision only, never stored on the session.
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None


def _prefer(update: Any, current: Any) -> Any:
    return update if update is not None else current


def merge_session_state(conversation: ConversationSession, result: ReasoningResult) -> MergedState:
    """Field-by-field merge where a supplied value wins and an absent one keeps the stored value.

    Falsy values such as ``0``, ``False`` or ``""`` count as supplied; only
    ``None`` falls through.
    """
    return MergedState(
        conversation_state=_prefer(result.new_state, conversation.conversation_state),
        collected_symptoms=_prefer(result.symptoms, conversation.collected_symptoms),
        triage_level=_prefer(result.triage_level, conversation.triage_level),
        urgency_score=_prefer(result.urgency_score, conversation.urgency_score),
        first_aid_given=_prefer(result.first_aid, conversation.first_aid_given),
        patient_name=_prefer(result.patient_name, conversation.patient_name),
        preferred_date=result.preferred_date,
        preferred_time=result.preferred_time,
    )


def apply_merged_state(
    db: Session,
    conversation: ConversationSession,
    merged: MergedState,
    transcript: list[dict[str, Any]],
) -> ConversationSession:
    """Persist the merged fields and the transcript with the assistant turn."""
    conversation.transcript = transcript
    conversation.conversation_state = merged.conversation_state
    conversation.collected_symptoms = merged.collected_symptoms
    conversation.triage_level = merged.triage_level
    conversation.urgency_score = merged.urgency_score
    conversation.first_aid_given = merged.first_aid_given
    conversation.patient_name = merged.patient_name
    db.commit()
    return conversation

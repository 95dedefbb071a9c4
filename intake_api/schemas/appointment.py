from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PATIENT_NAME = "WhatsApp Patient"


class AppointmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: UUID = Field(serialization_alias="conversationId")
    hospital_id: UUID = Field(serialization_alias="hospitalId")
    patient_phone: str = Field(serialization_alias="patientPhone")
    patient_name: str = Field(default=DEFAULT_PATIENT_NAME, serialization_alias="patientName")
    symptoms: Optional[Any] = None
    triage_level: Optional[str] = Field(default=None, serialization_alias="triageLevel")
    urgency_score: Optional[int] = Field(default=None, serialization_alias="urgencyScore")
    first_aid_given: Optional[bool] = Field(default=None, serialization_alias="firstAidGiven")
    preferred_date: Optional[str] = Field(default=None, serialization_alias="preferredDate")
    preferred_time: Optional[str] = Field(default=None, serialization_alias="preferredTime")
    transcript: list[dict[str, Any]] = Field(default_factory=list)

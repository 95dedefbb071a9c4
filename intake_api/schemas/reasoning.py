import math
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ReasoningRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: UUID = Field(serialization_alias="conversationId")
    patient_phone: str = Field(serialization_alias="patientPhone")
    hospital_id: UUID = Field(serialization_alias="hospitalId")
    hospital_name: str = Field(serialization_alias="hospitalName")
    message: str
    transcript: list[dict[str, Any]]
    conversation_state: str = Field(serialization_alias="conversationState")
    existing_symptoms: Optional[Any] = Field(default=None, serialization_alias="existingSymptoms")
    existing_triage_level: Optional[str] = Field(default=None, serialization_alias="existingTriageLevel")
    existing_patient_name: Optional[str] = Field(default=None, serialization_alias="existingPatientName")


class ReasoningResult(BaseModel):
    """Reply from the reasoning service. Every field except the reply is optional."""

    response: str = ""
    new_state: Optional[str] = Field(default=None, validation_alias=AliasChoices("newState", "new_state"))
    symptoms: Optional[Any] = None
    triage_level: Optional[str] = Field(default=None, validation_alias=AliasChoices("triageLevel", "triage_level"))
    patient_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("patientName", "patient_name"))
    urgency_score: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("urgencyScore", "urgency_score"),
    )
    first_aid: Optional[bool] = Field(default=None, validation_alias=AliasChoices("firstAid", "first_aid"))
    create_appointment: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("createAppointment", "create_appointment"),
    )
    preferred_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("preferredDate", "preferred_date"),
    )
    preferred_time: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("preferredTime", "preferred_time"),
    )

    @field_validator("urgency_score", mode="before")
    @classmethod
    def round_urgency_score(cls, value: object) -> object:
        # Stored in an integer column; fractional scores are rounded half up.
        if isinstance(value, float) and math.isfinite(value):
            return math.floor(value + 0.5)
        return value

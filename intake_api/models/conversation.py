import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from intake_api.database import Base


class ConversationSession(Base):
    __tablename__ = "whatsapp_conversations"
    __table_args__ = (
        Index("ix_whatsapp_conversations_lookup", "hospital_id", "patient_phone", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    hospital_id = Column(UUID(as_uuid=True), ForeignKey("hospitals.id"), nullable=False)
    patient_phone = Column(Text, nullable=False)
    conversation_state = Column(Text, nullable=False, default="greeting")  # greeting, collecting, triage, completed
    collected_symptoms = Column(JSONB)
    triage_level = Column(Text)
    urgency_score = Column(Integer)
    first_aid_given = Column(Boolean)
    patient_name = Column(Text)
    appointment_created = Column(Boolean, nullable=False, default=False)
    transcript = Column(JSONB, nullable=False, default=list)
    last_message_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    tenant = relationship("Tenant", back_populates="conversations")

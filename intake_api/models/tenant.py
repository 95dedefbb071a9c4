import uuid

from sqlalchemy import Boolean, Column, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from intake_api.database import Base


class Tenant(Base):
    __tablename__ = "hospitals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    whatsapp_number = Column(Text, index=True)  # stored bare or with a leading "+"
    whatsapp_enabled = Column(Boolean, nullable=False, default=False)
    organization_type = Column(Text, nullable=False, default="hospital")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    conversations = relationship("ConversationSession", back_populates="tenant")

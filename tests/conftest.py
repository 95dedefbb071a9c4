from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock, patch
from uuid import uuid4

import pytest

from intake_api.config import Settings
from intake_api.models import ConversationSession
from intake_api.services.conversation_service import is_active


class FakeResult:
    def __init__(self, row=None):
        self._row = row

    def first(self):
        return self._row


class FakeDB:
    """In-memory stand-in for a SQLAlchemy session holding conversation rows.

    Understands the two raw statements the services issue: the advisory lock
    and the appointment compare-and-set.
    """

    def __init__(self):
        self.conversations: list[ConversationSession] = []
        self.commits = 0
        self.rollbacks = 0
        self.executed: list[str] = []

    def add(self, obj):
        self.conversations.append(obj)

    def flush(self):
        for conversation in self.conversations:
            if conversation.id is None:
                conversation.id = uuid4()

    def commit(self):
        self.flush()
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def execute(self, statement, params=None):
        sql = str(statement)
        self.executed.append(sql)
        if "appointment_created" in sql:
            for conversation in self.conversations:
                if conversation.id == params["id"] and not conversation.appointment_created:
                    conversation.appointment_created = True
                    return FakeResult((conversation.id,))
            return FakeResult(None)
        return FakeResult(None)

    def find_active(self, db, hospital_id, patient_phone, *, now, window):
        candidates = [
            c
            for c in self.conversations
            if c.hospital_id == hospital_id and c.patient_phone == patient_phone and is_active(c, now, window)
        ]
        candidates.sort(key=lambda c: c.created_at, reverse=True)
        return candidates[0] if candidates else None


@pytest.fixture
def db_session():
    """Mock database session."""
    return Mock()


@pytest.fixture
def fake_db():
    db = FakeDB()
    with patch("intake_api.services.conversation_service.find_active_conversation", side_effect=db.find_active):
        yield db


@pytest.fixture
def tenant():
    return SimpleNamespace(id=uuid4(), name="St. Mary Hospital", whatsapp_number="15559876543")


@pytest.fixture
def test_settings():
    return Settings(
        service_role_key="test-key",
        twilio_account_sid=None,
        twilio_auth_token=None,
        _env_file=None,
    )


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


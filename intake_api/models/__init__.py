from intake_api.models.conversation import ConversationSession
from intake_api.models.tenant import Tenant

__all__ = [
    "Tenant",
    "ConversationSession",
]

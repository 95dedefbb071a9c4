from intake_api.schemas.appointment import AppointmentRequest
from intake_api.schemas.inbound import Channel, InboundMessage
from intake_api.schemas.reasoning import ReasoningRequest, ReasoningResult
from intake_api.schemas.webhook import WebhookResponse

__all__ = [
    "AppointmentRequest",
    "Channel",
    "InboundMessage",
    "ReasoningRequest",
    "ReasoningResult",
    "WebhookResponse",
]

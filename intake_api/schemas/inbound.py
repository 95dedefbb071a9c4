from enum import Enum

from pydantic import BaseModel


class Channel(str, Enum):
    TWILIO = "twilio"  # form-encoded webhook, TwiML replies
    BAILEYS = "baileys"  # JSON bridge, JSON replies


class InboundMessage(BaseModel):
    """Transport-independent view of one inbound WhatsApp message.

    Addresses are already stripped of the ``whatsapp:`` scheme and the leading
    ``+`` sign.
    """

    channel: Channel
    sender_address: str = ""
    recipient_address: str = ""
    text: str = ""
    external_message_id: str = ""
    num_media: int = 0

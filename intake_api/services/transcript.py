from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence


class TurnRole(str, Enum):
    PATIENT = "patient"
    ASSISTANT = "assistant"


def build_turn(
    role: TurnRole,
    content: str,
    timestamp: datetime,
    external_message_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a transcript turn in its stored JSON shape."""
    turn: dict[str, Any] = {
        "role": role.value,
        "content": content,
        "timestamp": timestamp.isoformat(),
    }
    if external_message_id:
        turn["messageSid"] = external_message_id
    return turn


def append_turn(transcript: Optional[Sequence[dict[str, Any]]], turn: dict[str, Any]) -> list[dict[str, Any]]:
    """Return a new transcript with ``turn`` appended; the input is left untouched."""
    return [*(transcript or []), turn]

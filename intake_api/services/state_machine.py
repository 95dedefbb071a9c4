from enum import Enum
from typing import Optional


class ConversationState(str, Enum):
    """Known conversation states.

    The reasoning service owns the transitions; the router only reads the
    current token, forwards it and stores whatever comes back, so values
    outside this enum are accepted as-is.
    """

    GREETING = "greeting"
    COLLECTING = "collecting"
    TRIAGE = "triage"
    COMPLETED = "completed"


INITIAL_STATE = ConversationState.GREETING
TERMINAL_STATES = {ConversationState.COMPLETED.value}


def is_terminal(state: Optional[str]) -> bool:
    """Check if a conversation in this state can no longer be resumed."""
    return state in TERMINAL_STATES

"""Conversation data models."""
from dataclasses import dataclass
from datetime import datetime

USER_SENDER = "user"
AI_SENDER = "ai"


@dataclass(frozen=True)
class Turn:
    """One persisted exchange: a user message and the reply generated for it."""
    session_id: str
    user_message: str
    assistant_reply: str
    created_at: datetime


@dataclass(frozen=True)
class HistoryEntry:
    """A single renderable message in a session transcript."""
    sender: str  # "user" or "ai"
    text: str

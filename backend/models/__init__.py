"""Data models for the Support Chat backend."""
from .conversation import Turn, HistoryEntry, USER_SENDER, AI_SENDER
from .api import MessageRequest, MessageResponse, HistoryRequest, HistoryMessage, HistoryResponse

__all__ = [
    "Turn",
    "HistoryEntry",
    "USER_SENDER",
    "AI_SENDER",
    "MessageRequest",
    "MessageResponse",
    "HistoryRequest",
    "HistoryMessage",
    "HistoryResponse",
]

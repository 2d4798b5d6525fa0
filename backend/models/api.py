"""Request and response models for the chat API."""
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field

from config import MAX_MESSAGE_LENGTH, MAX_SESSION_ID_LENGTH


class MessageRequest(BaseModel):
    """Body of POST /chat/message."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    session_id: str = Field(
        ...,
        alias="sessionId",
        min_length=1,
        max_length=MAX_SESSION_ID_LENGTH,
        description="Client-generated conversation identifier",
    )
    message: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="Text submitted by the customer",
    )


class MessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    session_id: str = Field(..., alias="sessionId")


class HistoryRequest(BaseModel):
    """Body of POST /chat/history."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    session_id: str = Field(
        ...,
        alias="sessionId",
        min_length=1,
        max_length=MAX_SESSION_ID_LENGTH,
    )


class HistoryMessage(BaseModel):
    sender: Literal["user", "ai"]
    text: str


class HistoryResponse(BaseModel):
    data: List[HistoryMessage]

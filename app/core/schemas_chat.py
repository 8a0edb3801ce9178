"""Pydantic schemas for chat turns, persisted rows and stream events."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageRole(str, Enum):
    """Author of a message."""
    USER = "user"
    ASSISTANT = "assistant"


class StreamEventType(str, Enum):
    """Event names of the chat stream protocol."""
    META = "meta"
    DELTA = "delta"
    DONE = "done"
    ERROR = "error"


# ============================================================================
# Request
# ============================================================================


class ChatRequest(BaseModel):
    """Inbound body of POST /v1/chat."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    message: str

    @field_validator("conversation_id")
    @classmethod
    def _conversation_id_present(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("conversationId é obrigatório.")
        return v

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Mensagem vazia.")
        return v


# ============================================================================
# Persisted rows
# ============================================================================


class Conversation(BaseModel):
    """A conversation owned by one account."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Message(BaseModel):
    """One immutable message of a conversation."""

    model_config = ConfigDict(extra="ignore")

    id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: Optional[datetime] = None


class AttachedDocument(BaseModel):
    """A PDF attached to a conversation (row of ``pdf_files``)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    conversation_id: str
    file_name: Optional[str] = None
    storage_path: str
    openai_file_id: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================================
# Sharing
# ============================================================================


class ShareCreateRequest(BaseModel):
    """Body of POST /v1/shares."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")


class ShareCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    share_id: str = Field(..., serialization_alias="shareId")


class SharedConversationInfo(BaseModel):
    """Public fields of a shared conversation (no owner identity)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None


class SharedConversationResponse(BaseModel):
    """Read-only view of a shared conversation."""

    conversation: Optional[SharedConversationInfo]
    messages: list[Message]

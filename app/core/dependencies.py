"""Collaborators of the chat pipeline, built once per process.

Routes receive them through ``Depends(get_chat_dependencies)``; tests swap in fakes
with ``app.dependency_overrides``.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional, Protocol

from app.core.config import Settings, get_settings

if TYPE_CHECKING:
    from app.core.auth_middleware import AuthContext
    from app.core.context_assembler import PromptPayload
    from app.core.schemas_chat import (
        AttachedDocument,
        Conversation,
        Message,
        MessageRole,
        SharedConversationInfo,
    )


class Authenticator(Protocol):
    async def authenticate(self, token: Optional[str]) -> Optional["AuthContext"]: ...


class ChatStore(Protocol):
    async def get_conversation(self, conversation_id: str) -> Optional["Conversation"]: ...

    async def set_conversation_title(self, conversation_id: str, title: str) -> None: ...

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list["Message"]: ...

    async def list_messages(self, conversation_id: str) -> list["Message"]: ...

    async def insert_message(
        self, conversation_id: str, role: "MessageRole", content: str
    ) -> "Message": ...

    async def get_active_document(
        self, conversation_id: str, user_id: str
    ) -> Optional["AttachedDocument"]: ...

    async def set_document_file_id(self, document_id: str, openai_file_id: str) -> None: ...

    async def upsert_share(self, conversation_id: str) -> Optional[str]: ...

    async def get_shared_conversation_id(self, share_id: str) -> Optional[str]: ...

    async def get_shared_conversation_info(
        self, conversation_id: str
    ) -> Optional["SharedConversationInfo"]: ...


class DocumentBytes(Protocol):
    async def download(self, storage_path: str) -> Optional[bytes]: ...


class TextExtractor(Protocol):
    async def extract(self, file_bytes: bytes, filename: str = ...) -> Optional[str]: ...


class Generator(Protocol):
    def stream_text(self, instructions: str, payload: "PromptPayload") -> AsyncIterator[str]: ...

    async def upload_file(self, filename: str, data: bytes) -> str: ...


@dataclass
class ChatDependencies:
    """Everything a chat turn talks to."""

    settings: Settings
    repository: ChatStore
    storage: DocumentBytes
    extractor: TextExtractor
    generator: Generator
    authenticator: Authenticator


def build_chat_dependencies(settings: Settings, supabase: Any, openai_client: Any) -> ChatDependencies:
    """Wire the production collaborators around already-constructed clients."""
    from app.core.auth_middleware import SupabaseAuthenticator
    from app.core.document_processing import PDFTextExtractor
    from app.core.generation_stream import OpenAIGenerationClient
    from app.db.chat_repository import ChatRepository
    from app.db.document_storage import DocumentStorage

    return ChatDependencies(
        settings=settings,
        repository=ChatRepository(supabase),
        storage=DocumentStorage(supabase, settings.PDF_BUCKET),
        extractor=PDFTextExtractor(),
        generator=OpenAIGenerationClient(
            openai_client, enable_web_search=settings.ENABLE_WEB_SEARCH
        ),
        authenticator=SupabaseAuthenticator(supabase),
    )


@lru_cache(maxsize=1)
def get_chat_dependencies() -> ChatDependencies:
    """Process-wide collaborators (constructed on first use)."""
    from openai import AsyncOpenAI

    from app.db.supabase_client import get_supabase

    settings = get_settings()
    return build_chat_dependencies(
        settings=settings,
        supabase=get_supabase(),
        openai_client=AsyncOpenAI(api_key=settings.OPENAI_API_KEY),
    )

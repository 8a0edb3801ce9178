"""Database operations for conversations, messages, attached PDFs and shares."""

import asyncio
from typing import Any, Optional

from supabase import Client

from app.core.logging import get_logger
from app.core.schemas_chat import (
    AttachedDocument,
    Conversation,
    Message,
    MessageRole,
    SharedConversationInfo,
)

logger = get_logger(__name__)

CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"
PDF_FILES_TABLE = "pdf_files"
SHARES_TABLE = "conversation_shares"


class ChatRepository:
    """Typed row-level access to the chat tables.

    Each method issues one read or one write. The Supabase client is synchronous,
    so calls run in a worker thread to keep the event loop free.
    """

    def __init__(self, client: Client):
        self._client = client

    async def _execute(self, query: Any) -> Any:
        return await asyncio.to_thread(query.execute)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Get a conversation by ID."""
        response = await self._execute(
            self._client.table(CONVERSATIONS_TABLE)
            .select("id, user_id, title, created_at, updated_at")
            .eq("id", conversation_id)
            .limit(1)
        )
        return Conversation(**response.data[0]) if response.data else None

    async def set_conversation_title(self, conversation_id: str, title: str) -> None:
        await self._execute(
            self._client.table(CONVERSATIONS_TABLE)
            .update({"title": title})
            .eq("id", conversation_id)
        )

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def list_recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """
        Get the most recent messages of a conversation.

        Args:
            conversation_id: Conversation ID
            limit: Maximum number of messages

        Returns:
            Messages in chronological order (oldest first)
        """
        if limit <= 0:
            return []
        response = await self._execute(
            self._client.table(MESSAGES_TABLE)
            .select("id, conversation_id, role, content, created_at")
            .eq("conversation_id", conversation_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        newest_first = [Message(**row) for row in response.data or []]
        return list(reversed(newest_first))

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation, oldest first."""
        response = await self._execute(
            self._client.table(MESSAGES_TABLE)
            .select("id, conversation_id, role, content, created_at")
            .eq("conversation_id", conversation_id)
            .order("created_at")
        )
        return [Message(**row) for row in response.data or []]

    async def insert_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
    ) -> Message:
        """
        Insert one message.

        Returns:
            The stored row, with its assigned id and timestamp

        Raises:
            ValueError: If the insert returned no row
        """
        response = await self._execute(
            self._client.table(MESSAGES_TABLE).insert(
                {
                    "conversation_id": conversation_id,
                    "role": role.value,
                    "content": content,
                }
            )
        )
        if not response.data:
            raise ValueError(f"Failed to insert {role.value} message")
        return Message(**response.data[0])

    # ------------------------------------------------------------------
    # Attached PDFs
    # ------------------------------------------------------------------

    async def get_active_document(
        self,
        conversation_id: str,
        user_id: str,
    ) -> Optional[AttachedDocument]:
        """The most recently attached PDF of a conversation, scoped to its uploader."""
        response = await self._execute(
            self._client.table(PDF_FILES_TABLE)
            .select("id, conversation_id, file_name, storage_path, openai_file_id, created_at")
            .eq("conversation_id", conversation_id)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(1)
        )
        return AttachedDocument(**response.data[0]) if response.data else None

    async def set_document_file_id(self, document_id: str, openai_file_id: str) -> None:
        """Cache the provider file reference on a PDF row."""
        await self._execute(
            self._client.table(PDF_FILES_TABLE)
            .update({"openai_file_id": openai_file_id})
            .eq("id", document_id)
        )

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    async def upsert_share(self, conversation_id: str) -> Optional[str]:
        """Create (or reuse) the single share of a conversation and return its share_id."""
        response = await self._execute(
            self._client.table(SHARES_TABLE).upsert(
                {"conversation_id": conversation_id},
                on_conflict="conversation_id",
            )
        )
        if not response.data:
            return None
        share_id = str(response.data[0].get("share_id") or "").strip()
        return share_id or None

    async def get_shared_conversation_id(self, share_id: str) -> Optional[str]:
        response = await self._execute(
            self._client.table(SHARES_TABLE)
            .select("conversation_id")
            .eq("share_id", share_id)
            .limit(1)
        )
        if not response.data:
            return None
        return response.data[0].get("conversation_id")

    async def get_shared_conversation_info(
        self,
        conversation_id: str,
    ) -> Optional[SharedConversationInfo]:
        response = await self._execute(
            self._client.table(CONVERSATIONS_TABLE)
            .select("id, title, created_at")
            .eq("id", conversation_id)
            .limit(1)
        )
        return SharedConversationInfo(**response.data[0]) if response.data else None

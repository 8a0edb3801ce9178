"""Conversation sharing endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import AuthContext, require_auth
from app.core.dependencies import ChatDependencies, get_chat_dependencies
from app.core.logging import get_logger
from app.core.schemas_chat import (
    ShareCreateRequest,
    ShareCreateResponse,
    SharedConversationResponse,
)

logger = get_logger(__name__)

router = APIRouter()


def _require_uuid(value: str, detail: str) -> str:
    try:
        return str(UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(status_code=400, detail=detail)


@router.post("/shares", response_model=ShareCreateResponse, response_model_by_alias=True)
async def create_share(
    body: ShareCreateRequest,
    auth: AuthContext = Depends(require_auth),
    deps: ChatDependencies = Depends(get_chat_dependencies),
) -> ShareCreateResponse:
    """
    Create (or reuse) the public share of a conversation.

    Only the conversation owner may share it; a conversation has at most one share.

    Returns:
        ShareCreateResponse with the public ``shareId``
    """
    conversation_id = _require_uuid(body.conversation_id.strip(), "conversationId inválido.")

    try:
        conversation = await deps.repository.get_conversation(conversation_id)
    except Exception as e:
        logger.error(f"Conversation lookup failed for {conversation_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao validar conversa.")

    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversa não encontrada.")
    if not auth.owns(conversation.user_id):
        raise HTTPException(status_code=403, detail="Acesso negado a esta conversa.")

    try:
        share_id = await deps.repository.upsert_share(conversation_id)
    except Exception as e:
        logger.error(f"Failed to create share for {conversation_id}: {e}", exc_info=True)
        share_id = None

    if not share_id:
        raise HTTPException(status_code=500, detail="Falha ao criar link de compartilhamento.")

    logger.info(f"Shared conversation {conversation_id} as {share_id}")
    return ShareCreateResponse(share_id=share_id)


@router.get("/public/shares/{share_id}", response_model=SharedConversationResponse)
async def get_shared_conversation(
    share_id: str,
    deps: ChatDependencies = Depends(get_chat_dependencies),
) -> SharedConversationResponse:
    """
    Read-only view of a shared conversation. No authentication.

    Raises:
        HTTPException: 400 for a malformed share id, 404 for an unknown share
    """
    share_id = _require_uuid(share_id.strip(), "shareId inválido.")

    try:
        conversation_id = await deps.repository.get_shared_conversation_id(share_id)
        if not conversation_id:
            raise HTTPException(status_code=404, detail="Link não encontrado.")

        conversation = await deps.repository.get_shared_conversation_info(conversation_id)
        messages = await deps.repository.list_messages(conversation_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load share {share_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro ao carregar conversa compartilhada.")

    return SharedConversationResponse(conversation=conversation, messages=messages)

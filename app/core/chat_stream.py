"""Chat turn engine: validation, ownership, grounding, streaming generation and persistence.

A turn yields SSE events: meta → delta* → done | error.
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncGenerator
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from app.core.auth_middleware import AuthContext
from app.core.context_assembler import build_prompt
from app.core.dependencies import ChatDependencies
from app.core.document_context import resolve_document_context
from app.core.errors import TurnError
from app.core.generation_stream import TranscriptAccumulator, iterate_with_deadline
from app.core.logging import get_logger, log_with_context
from app.core.schemas_chat import (
    ChatRequest,
    Conversation,
    Message,
    MessageRole,
    StreamEventType,
)
from app.core.system_prompt import build_instructions
from app.core.web_first import should_force_web_first

logger = get_logger(__name__)

INVALID_BODY = "Corpo da requisição inválido."
CONVERSATION_REQUIRED = "conversationId é obrigatório."
EMPTY_MESSAGE = "Mensagem vazia."
CONVERSATION_NOT_FOUND = "Conversa não encontrada."
CONVERSATION_FORBIDDEN = "Acesso negado a esta conversa."
CONVERSATION_LOOKUP_FAILED = "Erro ao validar conversa."
USER_MESSAGE_NOT_SAVED = "Não foi possível salvar a mensagem do usuário."
NO_RESPONSE = "Não foi possível obter uma resposta da IA."
ASSISTANT_MESSAGE_NOT_SAVED = "Não foi possível salvar a resposta da IA."
UNEXPECTED = "Erro inesperado ao processar a requisição."


class TurnState(str, Enum):
    LOADING_HISTORY = "loading_history"
    RESOLVING_DOCUMENT = "resolving_document"
    STREAMING = "streaming"
    PERSISTING = "persisting"
    COMPLETED = "completed"


@dataclass
class PreparedTurn:
    """A validated, authenticated turn against a conversation the caller owns."""

    request: ChatRequest
    auth: AuthContext
    conversation: Conversation

    @property
    def conversation_id(self) -> str:
        return self.request.conversation_id


def format_sse_event(event: StreamEventType, data: dict[str, Any]) -> str:
    """Format one named SSE event."""
    return f"event: {event.value}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def error_event(user_message: str) -> str:
    return format_sse_event(StreamEventType.ERROR, {"error": user_message})


def _message_payload(message: Message) -> dict[str, Any]:
    return message.model_dump(mode="json")


# ── Validating ───────────────────────────────────────────────────────


def _absent_or_blank(err: dict[str, Any]) -> bool:
    return err["type"] in ("missing", "value_error") or err.get("input") is None


def _validation_message(exc: ValidationError) -> str:
    errors = [err for err in exc.errors() if err.get("loc")]
    # Wrongly typed fields (numbers, lists) are malformed bodies, not missing ones
    if not all(_absent_or_blank(err) for err in errors):
        return INVALID_BODY
    fields = {str(err["loc"][0]) for err in errors}
    if fields & {"conversationId", "conversation_id"}:
        return CONVERSATION_REQUIRED
    if "message" in fields:
        return EMPTY_MESSAGE
    return INVALID_BODY


def parse_chat_request(raw_body: bytes) -> ChatRequest:
    """
    Parse and validate a raw request body.

    Raises:
        TurnError: client fault for malformed JSON, a non-object body or missing fields
    """
    try:
        body = json.loads(raw_body or b"")
    except (ValueError, UnicodeDecodeError):
        raise TurnError.client(INVALID_BODY)

    if not isinstance(body, dict):
        raise TurnError.client(INVALID_BODY)

    try:
        return ChatRequest.model_validate(body)
    except ValidationError as e:
        raise TurnError.client(_validation_message(e))


# ── Authenticating / Authorizing ─────────────────────────────────────


async def prepare_turn(
    raw_body: bytes,
    token: Optional[str],
    deps: ChatDependencies,
) -> PreparedTurn:
    """
    Run every check that must pass before anything is persisted.

    Args:
        raw_body: Request body as received
        token: Bearer token, if any
        deps: Pipeline collaborators

    Returns:
        PreparedTurn

    Raises:
        TurnError: client, authentication or authorization fault
    """
    request = parse_chat_request(raw_body)

    auth = await deps.authenticator.authenticate(token)
    if auth is None:
        raise TurnError.unauthenticated()

    try:
        conversation = await deps.repository.get_conversation(request.conversation_id)
    except Exception as e:
        logger.error(f"Conversation lookup failed for {request.conversation_id}: {e}", exc_info=True)
        raise TurnError.persistence(CONVERSATION_LOOKUP_FAILED)

    if conversation is None:
        raise TurnError.forbidden(CONVERSATION_NOT_FOUND, status_code=404)

    if not auth.owns(conversation.user_id):
        log_with_context(
            logger,
            logging.WARNING,
            "Conversation ownership mismatch",
            conversation_id=request.conversation_id,
            user_id=auth.user_id,
        )
        raise TurnError.forbidden(CONVERSATION_FORBIDDEN)

    return PreparedTurn(request=request, auth=auth, conversation=conversation)


# ── Title inference ──────────────────────────────────────────────────


def infer_title(message: str, max_chars: int) -> str:
    """Conversation title from a first message: whitespace collapsed, truncated."""
    title = re.sub(r"\s+", " ", message).strip()
    if len(title) > max_chars:
        title = title[:max_chars].rstrip() + "…"
    return title


async def _maybe_set_title(
    turn: PreparedTurn,
    history: list[Message],
    deps: ChatDependencies,
) -> None:
    if turn.conversation.title or history:
        return
    title = infer_title(turn.request.message, deps.settings.CONVERSATION_TITLE_MAX_CHARS)
    if not title:
        return
    try:
        await deps.repository.set_conversation_title(turn.conversation_id, title)
    except Exception as e:
        logger.warning(f"Failed to set title for {turn.conversation_id}: {e}")


# ── Turn ─────────────────────────────────────────────────────────────


async def generate_turn_events(
    turn: PreparedTurn,
    deps: ChatDependencies,
) -> AsyncGenerator[str, None]:
    """
    Run a prepared turn and yield its SSE events.

    The user message is stored before any provider call, the assistant message only
    after the stream ends with a non-empty transcript. Exactly one ``done`` or ``error``
    event ends the stream. On client disconnect the generator is cancelled and nothing
    more is written.
    """
    settings = deps.settings
    cid = turn.conversation_id
    state = TurnState.LOADING_HISTORY
    transcript = TranscriptAccumulator()

    try:
        try:
            history = await deps.repository.list_recent_messages(cid, settings.MAX_HISTORY_MESSAGES)
        except Exception as e:
            logger.warning(f"Failed to load history for {cid}, continuing without it: {e}")
            history = []

        try:
            user_message = await deps.repository.insert_message(
                cid, MessageRole.USER, turn.request.message
            )
        except Exception as e:
            logger.error(f"Failed to persist user message for {cid}: {e}", exc_info=True)
            raise TurnError.persistence(USER_MESSAGE_NOT_SAVED)

        yield format_sse_event(StreamEventType.META, {"userMessage": _message_payload(user_message)})

        await _maybe_set_title(turn, history, deps)

        state = TurnState.RESOLVING_DOCUMENT
        document = await resolve_document_context(
            deps, cid, turn.auth.user_id, turn.request.message
        )

        web_first = settings.ENABLE_WEB_SEARCH and should_force_web_first(turn.request.message)
        payload = build_prompt(
            turn.request.message,
            history,
            document.chunks,
            document.file_id,
            max_chars=settings.MAX_PROMPT_CHARS,
            model_with_file=settings.OPENAI_MODEL_WITH_PDF,
            model_text_only=settings.OPENAI_MODEL_NO_PDF,
        )
        log_with_context(
            logger,
            logging.INFO,
            "Starting generation",
            conversation_id=cid,
            model=payload.model,
            excerpts=len(document.chunks),
            file_id=document.file_id,
            web_first=web_first,
            prompt_chars=len(payload.text),
        )

        state = TurnState.STREAMING
        try:
            increments = deps.generator.stream_text(build_instructions(web_first), payload)
            async with aclosing(
                iterate_with_deadline(increments, settings.GENERATION_TIMEOUT_SECONDS)
            ) as bounded:
                async for increment in bounded:
                    yield format_sse_event(
                        StreamEventType.DELTA, {"text": transcript.add(increment)}
                    )
        except asyncio.TimeoutError:
            logger.error(
                f"Generation for {cid} exceeded {settings.GENERATION_TIMEOUT_SECONDS}s"
            )
            raise TurnError.generation(NO_RESPONSE)
        except Exception as e:
            logger.error(f"Generation failed for {cid}: {e}", exc_info=True)
            raise TurnError.generation(NO_RESPONSE)

        assistant_text = transcript.text
        if not assistant_text:
            logger.error(f"Empty generation transcript for {cid}")
            raise TurnError.generation(NO_RESPONSE)

        state = TurnState.PERSISTING
        try:
            assistant_message = await deps.repository.insert_message(
                cid, MessageRole.ASSISTANT, assistant_text
            )
        except Exception as e:
            logger.error(f"Failed to persist assistant message for {cid}: {e}", exc_info=True)
            raise TurnError.persistence(ASSISTANT_MESSAGE_NOT_SAVED)

        state = TurnState.COMPLETED
        yield format_sse_event(
            StreamEventType.DONE, {"assistantMessage": _message_payload(assistant_message)}
        )

    except TurnError as e:
        log_with_context(
            logger,
            logging.ERROR,
            f"Turn failed during {state.value}",
            conversation_id=cid,
            kind=e.kind.value,
            status=e.status_code,
        )
        yield error_event(e.user_message)

    except (asyncio.CancelledError, GeneratorExit):
        logger.info(f"Client disconnected during {state.value} for {cid}; turn abandoned")
        raise

    except Exception as e:
        logger.error(f"Unexpected error in chat turn {cid}: {e}", exc_info=True)
        yield error_event(UNEXPECTED)

"""Chat API endpoint."""

from collections.abc import AsyncIterator
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials

from app.core.auth_middleware import bearer_token, security
from app.core.chat_stream import error_event, generate_turn_events, prepare_turn
from app.core.dependencies import ChatDependencies, get_chat_dependencies
from app.core.errors import TurnError
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def _sse_response(events: AsyncIterator[str], status_code: int = 200) -> StreamingResponse:
    return StreamingResponse(
        events,
        status_code=status_code,
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def _single_event(event: str) -> AsyncIterator[str]:
    yield event


@router.post("/chat")
async def chat(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    deps: ChatDependencies = Depends(get_chat_dependencies),
) -> StreamingResponse:
    """
    Run one chat turn and stream it as Server-Sent Events.

    Body: ``{"conversationId": str, "message": str}``.

    Events: ``meta`` (persisted user message), ``delta`` (text increment), then
    ``done`` (persisted assistant message) or ``error``. Validation, authentication and
    ownership failures answer with their HTTP status and a single ``error`` event.
    """
    raw_body = await request.body()

    try:
        turn = await prepare_turn(raw_body, bearer_token(credentials), deps)
    except TurnError as e:
        logger.info(f"Chat request rejected: {e!r}")
        return _sse_response(_single_event(error_event(e.user_message)), status_code=e.status_code)

    logger.info(f"Chat turn for conversation {turn.conversation_id} by user {turn.auth.user_id}")
    return _sse_response(generate_turn_events(turn, deps))

"""Generation stream adapter: OpenAI Responses API streaming to plain text increments."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from app.core.context_assembler import PromptPayload
from app.core.logging import get_logger

logger = get_logger(__name__)

TEXT_DELTA_EVENT = "response.output_text.delta"
FAILURE_EVENTS = frozenset({"response.failed", "error"})


class GenerationFailed(Exception):
    """Raised when the provider reports a failure mid-stream."""


def format_assistant_text(text: str) -> str:
    """Normalize line endings and trim the final transcript."""
    return text.replace("\r\n", "\n").strip()


class OpenAIGenerationClient:
    """Streaming generation and file upload against the OpenAI API."""

    def __init__(self, client: AsyncOpenAI, enable_web_search: bool = True):
        self._client = client
        self.enable_web_search = enable_web_search

    async def stream_text(
        self,
        instructions: str,
        payload: PromptPayload,
    ) -> AsyncIterator[str]:
        """
        Stream one generation and yield only its text increments.

        Provider events other than text deltas (tool use, web search progress, lifecycle)
        are ignored. A failure event raises ``GenerationFailed``; transport errors propagate.

        Args:
            instructions: System instructions
            payload: Assembled prompt, model and optional file reference

        Yields:
            Incremental text fragments, in order
        """
        request: dict[str, Any] = {
            "model": payload.model,
            "instructions": instructions,
            "input": payload.to_input(),
            "stream": True,
        }
        if self.enable_web_search:
            request["tools"] = [{"type": "web_search"}]

        stream = await self._client.responses.create(**request)
        # Leaving the block on any path closes the provider HTTP response
        async with stream:
            async for event in stream:
                event_type = getattr(event, "type", None)
                if event_type == TEXT_DELTA_EVENT:
                    delta = getattr(event, "delta", None)
                    if delta:
                        yield delta
                elif event_type in FAILURE_EVENTS:
                    logger.error(f"Provider reported failure event: {event}")
                    raise GenerationFailed(f"provider event {event_type}")

    async def upload_file(self, filename: str, data: bytes) -> str:
        """Upload a PDF to the provider file store and return its file id."""
        uploaded = await self._client.files.create(
            file=(filename, data, "application/pdf"),
            purpose="user_data",
        )
        logger.info(f"Uploaded {filename} to provider file store as {uploaded.id}")
        return uploaded.id


class TranscriptAccumulator:
    """Relays increments unchanged while keeping the running transcript.

    Forwarding happens increment by increment; the transcript only serves persistence.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []

    def add(self, increment: str) -> str:
        self._parts.append(increment)
        return increment

    @property
    def raw(self) -> str:
        return "".join(self._parts)

    @property
    def text(self) -> str:
        return format_assistant_text(self.raw)


async def iterate_with_deadline(
    increments: AsyncIterator[str],
    timeout_seconds: float,
) -> AsyncIterator[str]:
    """
    Re-yield ``increments`` until the stream ends or ``timeout_seconds`` elapse overall.

    Raises:
        asyncio.TimeoutError: When the overall deadline passes
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds
    iterator = increments.__aiter__()
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise asyncio.TimeoutError()
            try:
                item = await asyncio.wait_for(iterator.__anext__(), timeout=remaining)
            except StopAsyncIteration:
                return
            yield item
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()

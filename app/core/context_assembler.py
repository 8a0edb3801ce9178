"""Prompt assembly for a chat turn.

Merges document excerpts, recent history and the new question into one bounded text
payload, and picks the model according to whether a raw file reference rides along.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from app.core.chunking import Chunk
from app.core.schemas_chat import Message, MessageRole

USER_LABEL = "Usuário"
ASSISTANT_LABEL = "Publ.IA"

HISTORY_HEADER = (
    "Histórico recente da conversa (não repita literalmente, use apenas como contexto):"
)
GROUNDING_HEADER = "Trechos relevantes do documento anexado pelo usuário:"
GROUNDING_REMINDER = (
    "Baseie a resposta nos trechos do documento; qualquer afirmação que não esteja "
    "neles deve ser sinalizada como \"não encontrado no documento\"."
)
QUESTION_HEADER = "Nova pergunta do usuário:"


@dataclass(frozen=True)
class PromptPayload:
    """Everything the generation call needs besides the system instructions."""

    text: str
    model: str
    file_id: Optional[str] = None

    def to_input(self) -> list[dict[str, Any]]:
        """Render as a Responses API ``input`` list."""
        content: list[dict[str, Any]] = [{"type": "input_text", "text": self.text}]
        if self.file_id:
            content.append({"type": "input_file", "file_id": self.file_id})
        return [{"role": "user", "content": content}]


def select_model(file_id: Optional[str], model_with_file: str, model_text_only: str) -> str:
    """Model for the turn: file-backed turns and text-only turns use different models."""
    return model_with_file if file_id else model_text_only


def render_history(history: Sequence[Message]) -> str:
    lines = []
    for message in history:
        label = USER_LABEL if message.role == MessageRole.USER else ASSISTANT_LABEL
        lines.append(f"{label}: {message.content}")
    return "\n\n".join(lines)


def render_grounding(chunks: Sequence[Chunk]) -> str:
    excerpts = [f"[Trecho {chunk.index + 1}]\n{chunk.text}" for chunk in chunks]
    return GROUNDING_HEADER + "\n\n" + "\n\n".join(excerpts)


def _keep_tail(text: str, max_chars: int, protected: int) -> str:
    """Last ``max_chars`` of ``text``, starting on a line boundary when one exists.

    The boundary search never enters the final ``protected`` characters.
    """
    if len(text) <= max_chars:
        return text
    cut = len(text) - max_chars
    if text[cut - 1] != "\n":
        boundary = text.find("\n", cut, len(text) - protected)
        if boundary != -1:
            cut = boundary + 1
    return text[cut:].lstrip("\n")


def build_prompt(
    question: str,
    history: Sequence[Message],
    chunks: Optional[Sequence[Chunk]],
    file_id: Optional[str],
    *,
    max_chars: int,
    model_with_file: str,
    model_text_only: str,
) -> PromptPayload:
    """
    Assemble the bounded prompt for one turn.

    Layout, oldest material first: document excerpts, history, then the grounding reminder
    (only with excerpts) and the new question. When the result exceeds ``max_chars`` the
    head is dropped, cutting at a line boundary where possible, so the reminder and the
    live question survive.

    Args:
        question: New user message
        history: Prior messages, oldest first
        chunks: Selected document excerpts (None or empty when ungrounded)
        file_id: Provider file reference for the raw document, if any
        max_chars: Hard ceiling on the text payload
        model_with_file: Model used when ``file_id`` is set
        model_text_only: Model used otherwise

    Returns:
        PromptPayload
    """
    question = question.strip()
    sections: list[str] = []

    if chunks:
        sections.append(render_grounding(chunks))

    if history:
        sections.append(HISTORY_HEADER + "\n\n" + render_history(history))

    if sections:
        closing = QUESTION_HEADER + "\n" + question
        if chunks:
            closing = GROUNDING_REMINDER + "\n\n" + closing
        text = "\n\n".join(sections + [closing])
    else:
        closing = text = question

    text = _keep_tail(text, max_chars, protected=len(closing))

    return PromptPayload(
        text=text,
        model=select_model(file_id, model_with_file, model_text_only),
        file_id=file_id,
    )

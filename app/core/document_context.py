"""Resolves the grounding for a turn from the conversation's active PDF.

Best-effort throughout: any failure degrades the turn to fewer (or no) grounding
inputs, it never fails the turn.
"""

from dataclasses import dataclass, field
from typing import Optional

from app.core.chunking import Chunk, segment
from app.core.dependencies import ChatDependencies
from app.core.logging import get_logger
from app.core.relevance import select_chunks
from app.core.schemas_chat import AttachedDocument

logger = get_logger(__name__)

DEFAULT_PDF_NAME = "documento.pdf"


@dataclass
class DocumentContext:
    """Grounding inputs for one turn."""

    document: Optional[AttachedDocument] = None
    chunks: list[Chunk] = field(default_factory=list)
    file_id: Optional[str] = None

    @property
    def grounded(self) -> bool:
        return bool(self.chunks) or self.file_id is not None


async def _extract_text(deps: ChatDependencies, data: bytes, filename: str) -> Optional[str]:
    try:
        return await deps.extractor.extract(data, filename)
    except Exception as e:
        logger.warning(f"Text extraction raised for {filename}: {e}")
        return None


async def _download(deps: ChatDependencies, document: AttachedDocument) -> Optional[bytes]:
    try:
        return await deps.storage.download(document.storage_path)
    except Exception as e:
        logger.warning(f"Download of {document.storage_path} failed: {e}")
        return None


async def _upload_fallback(
    deps: ChatDependencies,
    document: AttachedDocument,
    data: bytes,
    filename: str,
) -> Optional[str]:
    """Upload the raw PDF once and cache the reference on its row."""
    try:
        file_id = await deps.generator.upload_file(filename, data)
    except Exception as e:
        logger.warning(f"Upload of {filename} to provider failed, continuing ungrounded: {e}")
        return None

    try:
        await deps.repository.set_document_file_id(document.id, file_id)
    except Exception as e:
        # The reference still serves this turn; the next turn uploads again
        logger.warning(f"Failed to cache openai_file_id on pdf_files {document.id}: {e}")

    return file_id


async def resolve_document_context(
    deps: ChatDependencies,
    conversation_id: str,
    user_id: str,
    question: str,
) -> DocumentContext:
    """
    Build the grounding for a turn.

    Text path: download, extract, segment and select the excerpts relevant to ``question``.
    File path (no extractable text): reuse the cached provider file reference, or upload
    the PDF once and cache it. With neither, the turn runs ungrounded.

    Args:
        deps: Pipeline collaborators
        conversation_id: Conversation ID
        user_id: Caller ID (documents are scoped to their uploader)
        question: New user message, used to rank excerpts

    Returns:
        DocumentContext (empty when no PDF is attached)
    """
    settings = deps.settings

    try:
        document = await deps.repository.get_active_document(conversation_id, user_id)
    except Exception as e:
        logger.warning(f"Failed to look up pdf_files for {conversation_id}: {e}")
        return DocumentContext()

    if document is None:
        return DocumentContext()

    filename = document.file_name or DEFAULT_PDF_NAME
    data = await _download(deps, document)

    text = await _extract_text(deps, data, filename) if data else None
    if text:
        chunks = segment(
            text,
            chunk_size=settings.CHUNK_SIZE,
            overlap=settings.CHUNK_OVERLAP,
            max_chunks=settings.MAX_CHUNKS,
        )
        selected = select_chunks(
            chunks,
            question,
            max_chunks=settings.MAX_SELECTED_CHUNKS,
            max_chars=settings.MAX_SELECTED_CHARS,
            min_score=settings.MIN_CHUNK_SCORE,
        )
        if selected:
            logger.info(
                f"Grounding {conversation_id} on {len(selected)} excerpts of {filename}: "
                f"{[c.index for c in selected]}"
            )
            return DocumentContext(document=document, chunks=selected)

    if document.openai_file_id:
        logger.info(f"Reusing provider file {document.openai_file_id} for {filename}")
        return DocumentContext(document=document, file_id=document.openai_file_id)

    if not data:
        logger.warning(f"No bytes for {filename}; continuing ungrounded")
        return DocumentContext(document=document)

    file_id = await _upload_fallback(deps, document, data, filename)
    return DocumentContext(document=document, file_id=file_id)

"""Publ.IA chat service.

Serves the streaming chat turn (``POST /v1/chat``) and conversation sharing under ``/v1``.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api import router as api_router

SERVICE_NAME = "publia-chat"

app = FastAPI(
    title="Publ.IA Chat",
    description=(
        "Public-procurement assistant: SSE chat turns grounded on the conversation's "
        "attached PDF, plus read-only share links"
    ),
    version="0.1.0",
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Liveness only; does not touch Supabase or the model provider."""
    return JSONResponse(content={"status": "ok", "service": SERVICE_NAME}, status_code=200)


app.include_router(api_router, prefix="/v1", tags=["v1"])

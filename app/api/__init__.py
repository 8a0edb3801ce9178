"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import chat, shares

router = APIRouter()

# Chat turn streaming
router.include_router(chat.router, tags=["chat"])

# Conversation sharing (owner-only create, public read)
router.include_router(shares.router, tags=["shares"])

"""Conversation endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response

from ..models.chat import UpdateConversationRequest
from ..services.conversation_store import ConversationNotFoundError, ConversationStore
from .chat import get_conversation_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("")
async def list_conversations(
    store: ConversationStore = Depends(get_conversation_store),
) -> List[Dict[str, Any]]:
    """List conversations, most recently updated first."""
    return [conversation.summary() for conversation in await store.list()]


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Get a conversation with its messages in creation order."""
    try:
        conversation = await store.get(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation.to_dict()


@router.patch("/{conversation_id}")
async def update_conversation(
    conversation_id: str,
    request: UpdateConversationRequest,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Rename a conversation."""
    try:
        conversation = await store.update_title(conversation_id, request.title)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation.summary()


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Delete a conversation and all of its messages."""
    if not await store.delete(conversation_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    logger.info(f"Deleted conversation {conversation_id}")
    return Response(status_code=204)

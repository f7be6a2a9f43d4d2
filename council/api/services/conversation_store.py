"""Process-local conversation store used by the chat endpoints."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ConversationStoreError(Exception):
    """Base error for conversation store operations."""


class ConversationNotFoundError(ConversationStoreError):
    """Raised when conversation id is unknown."""


@dataclass
class StoredMessage:
    """One persisted conversation message."""

    id: str
    conversation_id: str
    role: str
    content: str
    persona_id: Optional[str] = None
    model_id: Optional[str] = None
    parent_message_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "role": self.role,
            "content": self.content,
            "personaId": self.persona_id,
            "modelId": self.model_id,
            "parentMessageId": self.parent_message_id,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at,
        }


@dataclass
class Conversation:
    """Conversation header plus its ordered messages."""

    id: str
    title: str
    mode: str
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    messages: List[StoredMessage] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "mode": self.mode,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "messageCount": len(self.messages),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "mode": self.mode,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "messages": [message.to_dict() for message in self.messages],
        }


class ConversationStore:
    """In-memory conversation persistence with parent-message lookup."""

    def __init__(self, *, max_conversations: int = 500) -> None:
        self.max_conversations = int(max_conversations)
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, StoredMessage] = {}

    async def create(self, *, title: str, mode: str = "quick") -> Conversation:
        if len(self._conversations) >= self.max_conversations:
            self._evict_oldest()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            title=title.strip()[:100] or "New Conversation",
            mode=mode,
        )
        self._conversations[conversation.id] = conversation
        return conversation

    async def get(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def list(self) -> List[Conversation]:
        """Conversations, most recently updated first."""
        return sorted(self._conversations.values(), key=lambda item: item.updated_at, reverse=True)

    async def touch(self, conversation_id: str) -> None:
        conversation = await self.get(conversation_id)
        conversation.updated_at = time.time()

    async def update_title(self, conversation_id: str, title: str) -> Conversation:
        conversation = await self.get(conversation_id)
        conversation.title = title.strip()[:100] or conversation.title
        conversation.updated_at = time.time()
        return conversation

    async def delete(self, conversation_id: str) -> bool:
        """Remove a conversation and its messages; False when unknown."""
        conversation = self._conversations.pop(conversation_id, None)
        if conversation is None:
            return False
        for message in conversation.messages:
            self._messages.pop(message.id, None)
        return True

    async def add_message(
        self,
        conversation_id: str,
        *,
        role: str,
        content: str,
        persona_id: Optional[str] = None,
        model_id: Optional[str] = None,
        parent_message_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> StoredMessage:
        conversation = await self.get(conversation_id)
        message = StoredMessage(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content,
            persona_id=persona_id,
            model_id=model_id,
            parent_message_id=parent_message_id,
            metadata=dict(metadata or {}),
        )
        conversation.messages.append(message)
        conversation.updated_at = message.created_at
        self._messages[message.id] = message
        return message

    async def get_message(self, message_id: str) -> Optional[StoredMessage]:
        return self._messages.get(message_id)

    async def get_by_parent_id(self, parent_message_id: str) -> List[StoredMessage]:
        message = self._messages.get(parent_message_id)
        if message is None:
            return []
        conversation = self._conversations.get(message.conversation_id)
        if conversation is None:
            return []
        return [item for item in conversation.messages if item.parent_message_id == parent_message_id]

    def _evict_oldest(self) -> None:
        oldest = min(self._conversations.values(), key=lambda item: item.updated_at)
        self._conversations.pop(oldest.id, None)
        for message in oldest.messages:
            self._messages.pop(message.id, None)

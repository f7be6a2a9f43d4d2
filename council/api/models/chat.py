"""
Chat request data models

Request bodies for the advisor and synthesis streaming endpoints. Field
names follow the camelCase wire format used by the client.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

ConversationMode = Literal["quick", "brain-trust"]


class TranscriptMessage(BaseModel):
    """One transcript entry sent by the client"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    role: Literal["user", "advisor", "synthesis", "assistant"]
    content: str = ""
    advisor_id: Optional[str] = Field(None, alias="advisorId")
    metadata: Optional[Dict[str, Any]] = None


class ChatRequest(BaseModel):
    """Request model for one advisor turn"""
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(None, alias="conversationId")
    persona_id: str = Field(..., alias="personaId")
    mode: ConversationMode = "quick"
    parent_message_id: Optional[str] = Field(None, alias="parentMessageId")
    messages: List[TranscriptMessage] = Field(default_factory=list)


class SynthesisRequest(BaseModel):
    """Request model for the synthesis stream"""
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(None, alias="conversationId")
    user_question_id: Optional[str] = Field(None, alias="userQuestionId")
    messages: List[TranscriptMessage] = Field(default_factory=list)


class UpdateConversationRequest(BaseModel):
    """Request model for renaming a conversation"""
    title: str = Field(..., min_length=1, max_length=100)

"""Advisor and synthesis streaming endpoints."""

import logging
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from langchain_core.messages import HumanMessage

from ..config import settings
from ..models.chat import ChatRequest, SynthesisRequest, TranscriptMessage
from ..services.conversation_store import ConversationNotFoundError, ConversationStore
from ..services.llm_service import LLMService
from ..services.persona_service import PersonaService
from ..services.prompts import (
    SYNTHESIS_SYSTEM_PROMPT,
    advisor_responses,
    build_synthesis_prompt,
    build_system_prompt,
    conversation_title,
    last_user_content,
    to_langchain_messages,
)
from ..services.ui_stream import SSE_HEADERS, UIMessageStreamEncoder
from ...brain_trust.http_client import CONVERSATION_ID_HEADER, USER_MESSAGE_ID_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

_conversation_store = ConversationStore()


def get_conversation_store() -> ConversationStore:
    """Dependency injection for the process-local conversation store."""
    return _conversation_store


def get_persona_service() -> PersonaService:
    """Dependency injection for PersonaService."""
    return PersonaService(settings.advisors_config_path)


def get_llm_service() -> LLMService:
    """Dependency injection for LLMService."""
    return LLMService(settings)


async def _stream_and_save(
    deltas: AsyncIterator[str],
    on_complete: Callable[[str], Awaitable[None]],
) -> AsyncIterator[str]:
    """Pass deltas through and hand the full text to on_complete once the source finishes."""
    parts: List[str] = []
    async for delta in deltas:
        parts.append(delta)
        yield delta
    await on_complete("".join(parts))


async def _advisor_names(personas: PersonaService) -> Dict[str, str]:
    return {persona.id: persona.name for persona in await personas.get_personas()}


@router.post("/chat")
async def chat(
    request: ChatRequest,
    personas: PersonaService = Depends(get_persona_service),
    store: ConversationStore = Depends(get_conversation_store),
    llm: LLMService = Depends(get_llm_service),
):
    """Stream one advisor's reply to the transcript so far.

    Returns:
        StreamingResponse with UI message stream SSE frames, plus
        X-Conversation-Id (and X-User-Message-Id when the user message was
        saved by this call) headers

    Raises:
        400: No messages provided
        404: Persona or conversation not found
    """
    if not request.messages:
        raise HTTPException(status_code=400, detail="No messages provided")

    try:
        persona = await personas.get_persona(request.persona_id)
        advisor_names = await _advisor_names(personas)
    except Exception as e:
        logger.error(f"[chat] Failed to load personas: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Persona config error: {str(e)}")
    if persona is None:
        raise HTTPException(status_code=404, detail="Persona not found")

    question = last_user_content(request.messages)
    logger.info(f"[chat] {persona.name} (mode={request.mode}, conversation={request.conversation_id})")

    conversation_id = request.conversation_id
    try:
        if conversation_id:
            await store.touch(conversation_id)
        else:
            conversation = await store.create(title=conversation_title(question), mode=request.mode)
            conversation_id = conversation.id
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")

    # In Brain Trust mode the user message is saved by the first advisor call only;
    # later calls pass it back as parentMessageId.
    user_message_id: Optional[str] = None
    if question and not request.parent_message_id:
        user_message = await store.add_message(conversation_id, role="user", content=question)
        user_message_id = user_message.id
    parent_message_id = request.parent_message_id or user_message_id

    system_prompt = build_system_prompt(
        persona.system_prompt,
        request.mode,
        settings.brain_trust_addendum_enabled,
    )
    deltas = llm.stream_text(
        model_id=persona.model_id,
        system_prompt=system_prompt,
        messages=to_langchain_messages(request.messages, advisor_names),
        temperature=persona.temperature,
    )

    async def save_reply(text: str) -> None:
        if not text.strip():
            logger.warning(f"[chat] Empty response from {persona.name}, not saving")
            return
        await store.add_message(
            conversation_id,
            role="advisor",
            content=text,
            persona_id=persona.id,
            model_id=persona.model_id,
            parent_message_id=parent_message_id,
        )

    metadata = {
        "personaId": persona.id,
        "conversationId": conversation_id,
        "userMessageId": parent_message_id,
    }
    headers = {**SSE_HEADERS, CONVERSATION_ID_HEADER: conversation_id}
    if user_message_id:
        headers[USER_MESSAGE_ID_HEADER] = user_message_id

    encoder = UIMessageStreamEncoder()
    return StreamingResponse(
        encoder.encode(_stream_and_save(deltas, save_reply), metadata=metadata),
        media_type="text/event-stream",
        headers=headers,
    )


async def _transcript_from_store(store: ConversationStore, user_question_id: str) -> List[TranscriptMessage]:
    question = await store.get_message(user_question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="User question not found")
    transcript = [TranscriptMessage(id=question.id, role="user", content=question.content)]
    for reply in await store.get_by_parent_id(user_question_id):
        if reply.role == "advisor":
            transcript.append(
                TranscriptMessage(
                    id=reply.id,
                    role="advisor",
                    content=reply.content,
                    advisor_id=reply.persona_id,
                )
            )
    return transcript


@router.post("/chat/synthesis")
async def synthesis(
    request: SynthesisRequest,
    personas: PersonaService = Depends(get_persona_service),
    store: ConversationStore = Depends(get_conversation_store),
    llm: LLMService = Depends(get_llm_service),
):
    """Stream the synthesis of every advisor reply to the user's question.

    The transcript comes from the request body, or from the store when only
    userQuestionId is given.

    Raises:
        400: No transcript or no advisor replies
        404: Conversation or user question not found
    """
    messages = list(request.messages)
    if not messages:
        if not request.user_question_id:
            raise HTTPException(status_code=400, detail="No messages provided")
        messages = await _transcript_from_store(store, request.user_question_id)

    if request.conversation_id:
        try:
            await store.touch(request.conversation_id)
        except ConversationNotFoundError:
            raise HTTPException(status_code=404, detail="Conversation not found")

    try:
        advisor_names = await _advisor_names(personas)
    except Exception as e:
        logger.error(f"[synthesis] Failed to load personas: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Persona config error: {str(e)}")

    responses = advisor_responses(messages, advisor_names)
    if not responses:
        raise HTTPException(status_code=400, detail="No advisor messages found for this question")

    logger.info(f"[synthesis] {len(responses)} advisor response(s), model={settings.synthesis_model_id}")
    prompt = build_synthesis_prompt(last_user_content(messages), responses)
    deltas = llm.stream_text(
        model_id=settings.synthesis_model_id,
        system_prompt=SYNTHESIS_SYSTEM_PROMPT,
        messages=[HumanMessage(content=prompt)],
    )

    async def save_synthesis(text: str) -> None:
        if not request.conversation_id or not text.strip():
            return
        await store.add_message(
            request.conversation_id,
            role="synthesis",
            content=text,
            model_id=settings.synthesis_model_id,
            parent_message_id=request.user_question_id,
            metadata={"advisorCount": len(responses)},
        )

    headers = dict(SSE_HEADERS)
    if request.conversation_id:
        headers[CONVERSATION_ID_HEADER] = request.conversation_id

    encoder = UIMessageStreamEncoder()
    return StreamingResponse(
        encoder.encode(_stream_and_save(deltas, save_synthesis)),
        media_type="text/event-stream",
        headers=headers,
    )

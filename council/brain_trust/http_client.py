"""httpx collaborator that fetches advisor and synthesis streams from the Council API."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .types import Advisor, Transcript

logger = logging.getLogger(__name__)

CONVERSATION_ID_HEADER = "X-Conversation-Id"
USER_MESSAGE_ID_HEADER = "X-User-Message-Id"


class HttpxStreamResponse:
    """Adapt an httpx response opened with ``stream=True`` to StreamResponse.

    The body can be iterated once; closing the iterator closes the response.
    """

    def __init__(self, response: httpx.Response):
        self.response = response
        self._body: Optional[AsyncIterator[bytes]] = None

    @property
    def ok(self) -> bool:
        return self.response.is_success

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def conversation_id(self) -> Optional[str]:
        return self.response.headers.get(CONVERSATION_ID_HEADER)

    @property
    def user_message_id(self) -> Optional[str]:
        return self.response.headers.get(USER_MESSAGE_ID_HEADER)

    @property
    def body(self) -> AsyncIterator[bytes]:
        if self._body is None:
            self._body = self._iter_body()
        return self._body

    async def text(self) -> str:
        try:
            await self.response.aread()
            return self.response.text
        finally:
            await self.response.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()

    async def _iter_body(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.response.aclose()


def transcript_payload(transcript: Transcript) -> List[Dict[str, Any]]:
    return [message.to_dict() for message in transcript]


class CouncilHttpClient:
    """Fetch collaborators for BrainTrust backed by the Council HTTP API.

    The first advisor response assigns the conversation; later advisor calls
    send it back together with the user message id so the server threads
    every reply onto the same question.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: Optional[httpx.AsyncClient] = None,
        mode: str = "brain-trust",
        timeout: float = 120.0,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.mode = mode
        self.conversation_id: Optional[str] = None
        self.user_message_id: Optional[str] = None

    def reset(self) -> None:
        """Forget the current conversation so the next call starts a new one."""
        self.conversation_id = None
        self.user_message_id = None

    async def fetch_advisor(self, advisor: Advisor, transcript: Transcript) -> HttpxStreamResponse:
        payload: Dict[str, Any] = {
            "personaId": advisor.id,
            "mode": self.mode,
            "messages": transcript_payload(transcript),
        }
        if self.conversation_id:
            payload["conversationId"] = self.conversation_id
        if self.user_message_id:
            payload["parentMessageId"] = self.user_message_id

        logger.info("Fetching advisor %s (conversation=%s)", advisor.name, self.conversation_id)
        response = await self._post("/api/chat", payload)
        if response.ok:
            self.conversation_id = response.conversation_id or self.conversation_id
            self.user_message_id = response.user_message_id or self.user_message_id
        return response

    async def fetch_synthesis(self, transcript: Transcript) -> HttpxStreamResponse:
        payload: Dict[str, Any] = {"messages": transcript_payload(transcript)}
        if self.conversation_id:
            payload["conversationId"] = self.conversation_id
        if self.user_message_id:
            payload["userQuestionId"] = self.user_message_id

        logger.info("Fetching synthesis (conversation=%s)", self.conversation_id)
        return await self._post("/api/chat/synthesis", payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _post(self, url: str, payload: Dict[str, Any]) -> HttpxStreamResponse:
        request = self.client.build_request("POST", url, json=payload)
        response = await self.client.send(request, stream=True)
        return HttpxStreamResponse(response)

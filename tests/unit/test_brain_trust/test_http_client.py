"""Tests for the httpx-backed fetch collaborators."""

import json

import httpx
import pytest

from council.brain_trust import (
    Advisor,
    AdvisorFailure,
    BrainTrust,
    BrainTrustConfig,
    BrainTrustStatus,
    CouncilHttpClient,
    Message,
    MessageRole,
    extract_stream_metadata,
    parse_sse_stream,
)


def _sse_body(*parts):
    return "".join(f"data: {json.dumps(part)}\n" for part in parts).encode("utf-8") + b"data: [DONE]\n"


class _RecordingServer:
    """MockTransport handler emulating /api/chat and /api/chat/synthesis."""

    def __init__(self, *, fail_persona=None):
        self.requests = []
        self.fail_persona = fail_persona

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append((request.url.path, payload))

        if request.url.path == "/api/chat":
            if payload["personaId"] == self.fail_persona:
                return httpx.Response(500, text="boom")
            answer = f"{payload['personaId']} says hi"
            return httpx.Response(
                200,
                headers={"X-Conversation-Id": "conv-1", "X-User-Message-Id": "user-1"},
                content=_sse_body(
                    {"type": "start", "messageMetadata": {"conversationId": "conv-1"}},
                    {"type": "text-delta", "id": "t", "delta": answer},
                    {"type": "finish"},
                ),
            )
        if request.url.path == "/api/chat/synthesis":
            return httpx.Response(
                200,
                content=_sse_body({"type": "text-delta", "id": "t", "delta": "All agree."}),
            )
        return httpx.Response(404, text="not found")


def _client(server):
    http = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://council.test")
    return CouncilHttpClient(client=http), http


@pytest.fixture
def advisors():
    return [Advisor(id="sage", name="The Sage"), Advisor(id="skeptic", name="The Skeptic")]


@pytest.mark.asyncio
async def test_first_advisor_call_starts_new_conversation(advisors):
    server = _RecordingServer()
    client, http = _client(server)
    question = Message(role=MessageRole.USER, content="Q")

    try:
        response = await client.fetch_advisor(advisors[0], [question])
        chunks = [chunk async for chunk in parse_sse_stream(response)]
    finally:
        await http.aclose()

    path, payload = server.requests[0]
    assert path == "/api/chat"
    assert payload == {
        "personaId": "sage",
        "mode": "brain-trust",
        "messages": [{"id": question.id, "role": "user", "content": "Q"}],
    }
    assert chunks == ["sage says hi"]
    assert response.ok is True
    assert client.conversation_id == "conv-1"
    assert client.user_message_id == "user-1"
    assert response.response.is_closed is True


@pytest.mark.asyncio
async def test_later_calls_thread_conversation_and_parent(advisors):
    server = _RecordingServer()
    client, http = _client(server)

    try:
        brain_trust = BrainTrust(
            BrainTrustConfig(fetch_advisor=client.fetch_advisor, fetch_synthesis=client.fetch_synthesis)
        )
        await brain_trust.start("Q", advisors)
    finally:
        await http.aclose()

    assert brain_trust.status == BrainTrustStatus.COMPLETE
    assert [m.content for m in brain_trust.messages[1:]] == ["sage says hi", "skeptic says hi"]
    assert brain_trust.synthesis_content == "All agree."

    (_, first), (_, second), (synthesis_path, synthesis) = server.requests
    assert "conversationId" not in first
    assert second["conversationId"] == "conv-1"
    assert second["parentMessageId"] == "user-1"
    assert [m["role"] for m in second["messages"]] == ["user", "advisor"]
    assert second["messages"][1]["advisorId"] == "sage"
    assert synthesis_path == "/api/chat/synthesis"
    assert synthesis["conversationId"] == "conv-1"
    assert synthesis["userQuestionId"] == "user-1"
    assert len(synthesis["messages"]) == 3


@pytest.mark.asyncio
async def test_synthesis_without_server_ids_sends_only_transcript():
    server = _RecordingServer()
    client, http = _client(server)
    question = Message(role=MessageRole.USER, content="Q")

    try:
        response = await client.fetch_synthesis([question])
        await response.aclose()
    finally:
        await http.aclose()

    _, payload = server.requests[0]
    assert payload == {"messages": [question.to_dict()]}


@pytest.mark.asyncio
async def test_error_response_text_reaches_advisor_failure(advisors):
    server = _RecordingServer(fail_persona="skeptic")
    client, http = _client(server)

    try:
        brain_trust = BrainTrust(
            BrainTrustConfig(fetch_advisor=client.fetch_advisor, fetch_synthesis=client.fetch_synthesis)
        )
        with pytest.raises(AdvisorFailure) as exc:
            await brain_trust.start("Q", advisors)
    finally:
        await http.aclose()

    assert str(exc.value) == "Advisor The Skeptic failed: boom"
    assert brain_trust.status == BrainTrustStatus.ERROR
    assert [path for path, _ in server.requests] == ["/api/chat", "/api/chat"]


@pytest.mark.asyncio
async def test_failed_response_does_not_update_conversation(advisors):
    server = _RecordingServer(fail_persona="sage")
    client, http = _client(server)

    try:
        response = await client.fetch_advisor(advisors[0], [Message(role=MessageRole.USER, content="Q")])
        detail = await response.text()
    finally:
        await http.aclose()

    assert response.ok is False
    assert response.status_code == 500
    assert detail == "boom"
    assert client.conversation_id is None
    assert response.response.is_closed is True


@pytest.mark.asyncio
async def test_metadata_from_live_response(advisors):
    client, http = _client(_RecordingServer())

    try:
        response = await client.fetch_advisor(advisors[0], [Message(role=MessageRole.USER, content="Q")])
        metadata = await extract_stream_metadata(response)
        await response.body.aclose()
    finally:
        await http.aclose()

    assert metadata == {"conversationId": "conv-1"}


@pytest.mark.asyncio
async def test_reset_forgets_conversation(advisors):
    client, http = _client(_RecordingServer())

    try:
        response = await client.fetch_advisor(advisors[0], [Message(role=MessageRole.USER, content="Q")])
        await response.aclose()
        client.reset()
    finally:
        await http.aclose()

    assert client.conversation_id is None
    assert client.user_message_id is None


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    http = httpx.AsyncClient(transport=httpx.MockTransport(_RecordingServer()))
    client = CouncilHttpClient(client=http)

    await client.aclose()

    assert http.is_closed is False
    await http.aclose()

"""Unit tests for SSE text-delta parsing and start-metadata extraction."""

import pytest

from council.brain_trust import StreamUnavailable, extract_stream_metadata, parse_sse_stream


async def _collect(response):
    chunks = []
    async for chunk in parse_sse_stream(response):
        chunks.append(chunk)
    return chunks


def _delta(sse_line, text):
    return sse_line({"type": "text-delta", "delta": text})


@pytest.mark.asyncio
async def test_parses_multiple_text_deltas(stream_response, sse_line):
    response = stream_response([
        _delta(sse_line, "Hello") + _delta(sse_line, " world") + _delta(sse_line, "!"),
    ])

    assert await _collect(response) == ["Hello", " world", "!"]


@pytest.mark.asyncio
async def test_frame_split_across_reads_yields_single_delta(stream_response):
    response = stream_response([
        'data: {"type": "text-',
        'delta", "delta": "Hel',
        'lo"}\n',
    ])

    assert await _collect(response) == ["Hello"]


@pytest.mark.asyncio
async def test_chunking_does_not_change_output(stream_response, sse_line):
    deltas = ["Alpha", " beta", " gamma", " δέλτα"]
    frames = "".join(_delta(sse_line, d) for d in deltas)

    for size in (1, 3, 7, len(frames)):
        chunks = [frames[i:i + size] for i in range(0, len(frames), size)]
        assert await _collect(stream_response(chunks)) == deltas


@pytest.mark.asyncio
async def test_multibyte_codepoint_split_across_chunks(stream_response, sse_line):
    raw = _delta(sse_line, "naïve 🦉").encode("utf-8")
    owl_start = raw.index("🦉".encode("utf-8"))
    response = stream_response([raw[: owl_start + 2], raw[owl_start + 2:]])

    assert await _collect(response) == ["naïve 🦉"]


@pytest.mark.asyncio
async def test_non_text_events_are_ignored(stream_response, sse_line):
    response = stream_response([
        sse_line({"type": "start", "messageMetadata": {"conversationId": "c1"}})
        + sse_line({"type": "text-start", "id": "t1"})
        + _delta(sse_line, "Hello")
        + sse_line({"type": "reasoning-delta", "delta": "hmm"})
        + sse_line({"type": "some-future-event", "payload": 1})
        + _delta(sse_line, " world")
        + sse_line({"type": "finish"})
        + sse_line("[DONE]"),
    ])

    assert await _collect(response) == ["Hello", " world"]


@pytest.mark.asyncio
async def test_malformed_json_is_skipped(stream_response, sse_line):
    response = stream_response([
        _delta(sse_line, "one") + "data: {not json}\n" + "data: [1, 2]\n" + _delta(sse_line, "two"),
    ])

    assert await _collect(response) == ["one", "two"]


@pytest.mark.asyncio
async def test_lines_without_data_prefix_and_blank_lines_are_skipped(stream_response, sse_line):
    response = stream_response([
        ": keep-alive\n\n   \n"
        "event: message\n"
        'data:{"type": "text-delta", "delta": "no space"}\n'
        + _delta(sse_line, "kept"),
    ])

    assert await _collect(response) == ["kept"]


@pytest.mark.asyncio
async def test_empty_or_missing_delta_yields_nothing(stream_response, sse_line):
    response = stream_response([
        sse_line({"type": "text-delta", "delta": ""})
        + sse_line({"type": "text-delta"})
        + sse_line({"type": "text-delta", "delta": 42})
        + _delta(sse_line, "ok"),
    ])

    assert await _collect(response) == ["ok"]


@pytest.mark.asyncio
async def test_legacy_text_events_are_supported(stream_response, sse_line):
    response = stream_response([
        sse_line({"type": "text", "text": "old"}) + _delta(sse_line, " new"),
    ])

    assert await _collect(response) == ["old", " new"]


@pytest.mark.asyncio
async def test_final_frame_without_trailing_newline_is_flushed(stream_response, sse_line):
    response = stream_response([
        _delta(sse_line, "first"),
        'data: {"type": "text-delta", "delta": "last"}',
    ])

    assert await _collect(response) == ["first", "last"]


@pytest.mark.asyncio
async def test_special_characters_survive(stream_response, sse_line):
    response = stream_response([
        _delta(sse_line, "line1\nline2") + _delta(sse_line, 'quote " and \\ backslash'),
    ])

    assert await _collect(response) == ["line1\nline2", 'quote " and \\ backslash']


@pytest.mark.asyncio
async def test_missing_body_raises_stream_unavailable(stream_response):
    response = stream_response(has_body=False)

    with pytest.raises(StreamUnavailable):
        await _collect(response)


@pytest.mark.asyncio
async def test_reader_is_released_after_normal_completion(stream_response, sse_line):
    response = stream_response([_delta(sse_line, "a")])

    await _collect(response)

    assert response.stream.closed is True


@pytest.mark.asyncio
async def test_reader_is_released_when_consumer_stops_early(stream_response, sse_line):
    response = stream_response([_delta(sse_line, "a"), _delta(sse_line, "b"), _delta(sse_line, "c")])

    stream = parse_sse_stream(response)
    first = await stream.__anext__()
    await stream.aclose()

    assert first == "a"
    assert response.stream.closed is True
    assert response.stream.reads == 1


@pytest.mark.asyncio
async def test_metadata_is_extracted_from_start_event(stream_response, sse_line):
    response = stream_response([
        sse_line({"type": "start", "messageMetadata": {"conversationId": "c1"}}) + _delta(sse_line, "Hi"),
    ])

    assert await extract_stream_metadata(response) == {"conversationId": "c1"}


@pytest.mark.asyncio
async def test_metadata_first_start_event_wins(stream_response, sse_line):
    response = stream_response([
        "data: {broken\n"
        + sse_line({"type": "start", "messageMetadata": {"conversationId": "first"}})
        + sse_line({"type": "start", "messageMetadata": {"conversationId": "second"}}),
    ])

    assert await extract_stream_metadata(response) == {"conversationId": "first"}


@pytest.mark.asyncio
async def test_metadata_only_reads_first_chunk(stream_response, sse_line):
    response = stream_response([
        _delta(sse_line, "no metadata here"),
        sse_line({"type": "start", "messageMetadata": {"conversationId": "late"}}),
    ])

    assert await extract_stream_metadata(response) is None
    assert response.stream.reads == 1
    assert response.stream.closed is False


@pytest.mark.asyncio
async def test_metadata_returns_none_without_usable_start(stream_response, sse_line):
    assert await extract_stream_metadata(stream_response(has_body=False)) is None
    assert await extract_stream_metadata(stream_response([])) is None
    assert await extract_stream_metadata(stream_response([sse_line({"type": "start"})])) is None
    assert await extract_stream_metadata(
        stream_response([sse_line({"type": "start", "messageMetadata": {}})])
    ) is None

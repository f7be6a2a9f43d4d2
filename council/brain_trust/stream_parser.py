"""Server-Sent-Events parsing for UI message streams.

Producers emit one JSON event per ``data: `` line::

    data: {"type": "start", "messageMetadata": {"conversationId": "c1"}}
    data: {"type": "text-delta", "delta": "Hello"}
    data: {"type": "finish"}
    data: [DONE]

Only text events carry output. Anything unparseable is skipped.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from .errors import StreamUnavailable
from .types import StreamResponse

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def _new_decoder() -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


def split_lines(buffer: str) -> Tuple[List[str], str]:
    """Split buffered text into complete lines and the held-back remainder."""
    lines = buffer.split("\n")
    return lines[:-1], lines[-1]


def parse_frame(line: str) -> Optional[Dict[str, Any]]:
    """Return the JSON event carried by one SSE line, or None when there is none."""
    trimmed = line.strip()
    if not trimmed or not trimmed.startswith(DATA_PREFIX):
        return None
    payload = trimmed[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return None
    try:
        event = json.loads(payload)
    except ValueError:
        return None
    if not isinstance(event, dict):
        return None
    return event


def text_from_event(event: Dict[str, Any]) -> Optional[str]:
    """Extract the text delta of one event, accepting the legacy ``text`` form."""
    event_type = event.get("type")
    if event_type == "text-delta":
        value = event.get("delta")
    elif event_type == "text":
        value = event.get("text")
    else:
        return None
    if isinstance(value, str) and value:
        return value
    return None


def _text_from_line(line: str) -> Optional[str]:
    event = parse_frame(line)
    if event is None:
        return None
    return text_from_event(event)


async def parse_sse_stream(response: StreamResponse) -> AsyncIterator[str]:
    """Yield text deltas from a streaming response body.

    The body iterator is closed on every exit path, including when the
    consumer stops iterating early.

    Raises:
        StreamUnavailable: response has no body
    """
    body = response.body
    if body is None:
        raise StreamUnavailable("Response body is null")

    reader = body.__aiter__()
    decoder = _new_decoder()
    buffer = ""

    try:
        while True:
            try:
                chunk = await reader.__anext__()
            except StopAsyncIteration:
                break

            buffer += decoder.decode(chunk)
            lines, buffer = split_lines(buffer)
            for line in lines:
                text = _text_from_line(line)
                if text:
                    yield text

        buffer += decoder.decode(b"", final=True)
        if buffer.strip():
            text = _text_from_line(buffer)
            if text:
                yield text
    finally:
        aclose = getattr(reader, "aclose", None)
        if aclose is not None:
            await aclose()


async def extract_stream_metadata(response: StreamResponse) -> Optional[Dict[str, Any]]:
    """Return ``messageMetadata`` of the first ``start`` event in the first chunk.

    Only one read is made, so a start event arriving in a later chunk is not
    seen. The body is left open for the caller.
    """
    body = response.body
    if body is None:
        return None

    reader = body.__aiter__()
    try:
        chunk = await reader.__anext__()
    except StopAsyncIteration:
        return None

    lines, remainder = split_lines(_new_decoder().decode(chunk))
    for line in [*lines, remainder]:
        event = parse_frame(line)
        if event is None or event.get("type") != "start":
            continue
        metadata = event.get("messageMetadata")
        if isinstance(metadata, dict) and metadata:
            return metadata

    logger.debug("No start metadata found in first stream chunk")
    return None

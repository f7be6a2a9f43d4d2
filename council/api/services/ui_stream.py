"""Helpers to emit UI message stream SSE frames.

Frame grammar (one JSON event per ``data:`` line, terminated by ``[DONE]``)::

    data: {"type": "start", "messageId": "...", "messageMetadata": {...}}
    data: {"type": "text-start", "id": "..."}
    data: {"type": "text-delta", "id": "...", "delta": "Hel"}
    data: {"type": "text-end", "id": "..."}
    data: {"type": "finish"}
    data: [DONE]
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "X-Vercel-AI-UI-Message-Stream": "v1",
}


def encode_sse_frame(part: Dict[str, Any]) -> str:
    return f"data: {json.dumps(part, ensure_ascii=False, default=str)}\n\n"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class UIMessageStreamEncoder:
    """Build the events of one streamed assistant message."""

    message_id: str = field(default_factory=_new_id)
    text_id: str = field(default_factory=_new_id)

    def start(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        part: Dict[str, Any] = {"type": "start", "messageId": self.message_id}
        if metadata:
            part["messageMetadata"] = metadata
        return part

    def text_start(self) -> Dict[str, Any]:
        return {"type": "text-start", "id": self.text_id}

    def text_delta(self, delta: str) -> Dict[str, Any]:
        return {"type": "text-delta", "id": self.text_id, "delta": str(delta)}

    def text_end(self) -> Dict[str, Any]:
        return {"type": "text-end", "id": self.text_id}

    def error(self, message: str) -> Dict[str, Any]:
        return {"type": "error", "errorText": str(message)}

    def finish(self) -> Dict[str, Any]:
        return {"type": "finish"}

    async def encode(
        self,
        deltas: AsyncIterator[str],
        *,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[str]:
        """Wrap text deltas into SSE frames.

        A failure of the delta source is logged and reported in-band as an
        ``error`` event; the stream is still closed with finish and [DONE].
        """
        yield encode_sse_frame(self.start(metadata))
        yield encode_sse_frame(self.text_start())
        try:
            async for delta in deltas:
                if delta:
                    yield encode_sse_frame(self.text_delta(delta))
        except Exception as e:
            logger.error(f"Stream source failed: {e}", exc_info=True)
            yield encode_sse_frame(self.error(str(e)))
        yield encode_sse_frame(self.text_end())
        yield encode_sse_frame(self.finish())
        yield DONE_FRAME

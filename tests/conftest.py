"""Shared pytest fixtures for all tests."""

import json
import pytest
import shutil
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from council.brain_trust import Advisor


def _create_workspace_temp_dir(kind: str) -> Path:
    """Create a temporary directory under repository-local .pytest_work."""
    repo_root = Path(__file__).resolve().parents[1]
    root_dir = repo_root / ".pytest_work" / kind
    root_dir.mkdir(parents=True, exist_ok=True)
    temp_dir = root_dir / f"{kind}_{uuid.uuid4().hex[:8]}"
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


@pytest.fixture
def tmp_path():
    """Workspace-local replacement for pytest's tmp_path fixture."""
    temp_dir = _create_workspace_temp_dir("tmp_path")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def temp_config_dir():
    """Create temporary directory for config files."""
    temp_dir = _create_workspace_temp_dir("config")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


class FakeByteStream:
    """Async byte iterator that records how far it was read and whether it was closed."""

    def __init__(self, chunks: List[bytes]):
        self._chunks = list(chunks)
        self.reads = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self.closed or not self._chunks:
            raise StopAsyncIteration
        self.reads += 1
        return self._chunks.pop(0)

    async def aclose(self) -> None:
        self.closed = True


class FakeStreamResponse:
    """Minimal StreamResponse double."""

    def __init__(
        self,
        chunks: Optional[List[Union[str, bytes]]] = None,
        *,
        ok: bool = True,
        error_text: str = "",
        has_body: bool = True,
    ):
        self.ok = ok
        self._error_text = error_text
        encoded = [chunk.encode("utf-8") if isinstance(chunk, str) else chunk for chunk in chunks or []]
        self.stream = FakeByteStream(encoded) if has_body else None

    @property
    def body(self):
        return self.stream

    async def text(self) -> str:
        return self._error_text


def sse(part: Union[Dict[str, Any], str]) -> str:
    """Format one SSE data line."""
    payload = part if isinstance(part, str) else json.dumps(part, ensure_ascii=False)
    return f"data: {payload}\n"


def text_stream(text: str, *, chunk_size: Optional[int] = None) -> List[str]:
    """Frames for one streamed message, optionally split into tiny chunks."""
    frames = sse({"type": "start"}) + sse({"type": "text-delta", "delta": text}) + sse({"type": "finish"}) + sse("[DONE]")
    if chunk_size is None:
        return [frames]
    return [frames[i:i + chunk_size] for i in range(0, len(frames), chunk_size)]


@pytest.fixture
def stream_response():
    """Factory for fake streaming responses."""
    return FakeStreamResponse


@pytest.fixture
def sse_line():
    return sse


@pytest.fixture
def text_frames():
    return text_stream


@pytest.fixture
def sample_advisors():
    """Three advisors in council order."""
    return [
        Advisor(id="sage", name="The Sage", system_prompt="Be wise.", model_id="gpt-4o"),
        Advisor(id="skeptic", name="The Skeptic", system_prompt="Push back.", model_id="gpt-4o"),
        Advisor(
            id="strategist",
            name="The Strategist",
            system_prompt="Add structure.",
            model_id="gpt-4o-mini",
            extra={"avatar_emoji": "🦅"},
        ),
    ]


@pytest.fixture
def sample_persona_config():
    """Sample persona configuration for testing."""
    return {
        "personas": [
            {
                "id": "sage",
                "name": "The Sage",
                "model_id": "gpt-4o",
                "system_prompt": "Be wise.",
                "is_default": True,
            },
            {
                "id": "skeptic",
                "name": "The Skeptic",
                "model_id": "gpt-4o",
                "system_prompt": "Push back.",
                "is_default": True,
            },
            {
                "id": "historian",
                "name": "The Historian",
                "model_id": "gpt-4o-mini",
                "system_prompt": "Cite precedent.",
            },
            {
                "id": "retired",
                "name": "The Retired",
                "model_id": "gpt-4o-mini",
                "system_prompt": "Gone fishing.",
                "enabled": False,
            },
        ]
    }

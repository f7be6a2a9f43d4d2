"""Data contracts shared by the Brain Trust orchestrator and its collaborators."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Literal,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)


class MessageRole(str, Enum):
    """Author of one transcript message."""

    USER = "user"
    ADVISOR = "advisor"
    SYNTHESIS = "synthesis"


class BrainTrustStatus(str, Enum):
    """Visible state of the orchestration state machine."""

    IDLE = "idle"
    QUERYING = "querying"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


ErrorPhase = Literal["advisor", "synthesis"]


@dataclass(frozen=True)
class Advisor:
    """One advisor persona taking part in a run.

    ``extra`` carries caller-specific metadata the core never inspects.
    """

    id: str
    name: str
    system_prompt: Optional[str] = None
    model_id: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)


def new_message_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Message:
    """One immutable transcript entry."""

    role: MessageRole
    content: str
    id: str = field(default_factory=new_message_id)
    advisor_id: Optional[str] = None
    metadata: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape used on the wire."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
        }
        if self.advisor_id is not None:
            payload["advisorId"] = self.advisor_id
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        metadata = data.get("metadata")
        return cls(
            id=str(data.get("id") or new_message_id()),
            role=MessageRole(data["role"]),
            content=str(data.get("content") or ""),
            advisor_id=data.get("advisorId") or data.get("advisor_id"),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else None,
        )


@dataclass(frozen=True)
class BrainTrustProgress:
    """Progress view derived from the orchestrator counters."""

    current: int
    total: int
    phase: BrainTrustStatus


@dataclass(frozen=True)
class BrainTrustState:
    """Snapshot of the orchestrator state delivered to subscribers."""

    messages: Tuple[Message, ...] = ()
    status: BrainTrustStatus = BrainTrustStatus.IDLE
    current_advisor_index: int = 0
    streaming_content: str = ""
    streaming_advisor_id: Optional[str] = None
    synthesis_content: str = ""
    error: Optional[str] = None


class StreamResponse(Protocol):
    """HTTP-like streaming response returned by the fetch collaborators."""

    @property
    def ok(self) -> bool: ...

    @property
    def body(self) -> Optional[AsyncIterable[bytes]]: ...

    async def text(self) -> str: ...


Transcript = Sequence[Message]
AdvisorFetcher = Callable[[Advisor, Transcript], Awaitable[StreamResponse]]
SynthesisFetcher = Callable[[Transcript], Awaitable[StreamResponse]]
StreamParser = Callable[[StreamResponse], AsyncIterator[str]]
MaybeAwaitable = Union[None, Awaitable[None]]
AdvisorCompleteCallback = Callable[[Advisor, Message], MaybeAwaitable]
SynthesisCompleteCallback = Callable[[str], MaybeAwaitable]
ErrorCallback = Callable[[Exception, ErrorPhase, Optional[Advisor]], MaybeAwaitable]
StateListener = Callable[[BrainTrustState], None]

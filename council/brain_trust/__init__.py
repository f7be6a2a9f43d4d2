"""Brain Trust: sequential multi-advisor orchestration primitives."""

from .errors import (
    AdvisorFailure,
    BrainTrustError,
    InvalidArgument,
    StreamUnavailable,
    SynthesisFailure,
)
from .http_client import CouncilHttpClient, HttpxStreamResponse
from .orchestrator import BrainTrust, BrainTrustConfig, CancelToken
from .stream_parser import extract_stream_metadata, parse_sse_stream
from .types import (
    Advisor,
    BrainTrustProgress,
    BrainTrustState,
    BrainTrustStatus,
    ErrorPhase,
    Message,
    MessageRole,
    StreamResponse,
)

__all__ = [
    "AdvisorFailure",
    "BrainTrustError",
    "InvalidArgument",
    "StreamUnavailable",
    "SynthesisFailure",
    "CouncilHttpClient",
    "HttpxStreamResponse",
    "BrainTrust",
    "BrainTrustConfig",
    "CancelToken",
    "extract_stream_metadata",
    "parse_sse_stream",
    "Advisor",
    "BrainTrustProgress",
    "BrainTrustState",
    "BrainTrustStatus",
    "ErrorPhase",
    "Message",
    "MessageRole",
    "StreamResponse",
]

"""Errors raised by the Brain Trust core."""


class BrainTrustError(Exception):
    """Base error for Brain Trust orchestration."""


class InvalidArgument(BrainTrustError, ValueError):
    """Raised when a run is started with unusable input."""


class StreamUnavailable(BrainTrustError):
    """Raised when a streaming response has no readable body."""


class AdvisorFailure(BrainTrustError):
    """Raised when one advisor call does not produce a usable stream."""

    def __init__(self, advisor_name: str, detail: str):
        self.advisor_name = advisor_name
        self.detail = detail
        super().__init__(f"Advisor {advisor_name} failed: {detail}")


class SynthesisFailure(BrainTrustError):
    """Raised when the synthesis call does not produce a usable stream."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Synthesis failed: {detail}")

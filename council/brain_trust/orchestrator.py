"""Sequential multi-advisor orchestration ("Brain Trust").

Advisors answer one at a time, each seeing the full transcript so far,
and a synthesis step runs over the finished transcript::

    brain_trust = BrainTrust(BrainTrustConfig(
        fetch_advisor=client.fetch_advisor,
        fetch_synthesis=client.fetch_synthesis,
    ))
    unsubscribe = brain_trust.subscribe(render)
    await brain_trust.start("Should I take the job?", advisors)
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence, Tuple

from .errors import AdvisorFailure, BrainTrustError, InvalidArgument, SynthesisFailure
from .stream_parser import parse_sse_stream
from .types import (
    Advisor,
    AdvisorCompleteCallback,
    AdvisorFetcher,
    BrainTrustProgress,
    BrainTrustState,
    BrainTrustStatus,
    ErrorCallback,
    ErrorPhase,
    Message,
    MessageRole,
    StateListener,
    StreamParser,
    StreamResponse,
    SynthesisCompleteCallback,
    SynthesisFetcher,
)

logger = logging.getLogger(__name__)


@dataclass
class CancelToken:
    """Cooperative cancellation flag shared with one run."""

    is_cancelled: bool = False
    reason: str = "cancelled"

    def cancel(self, reason: Optional[str] = None) -> None:
        """Mark the token as cancelled with an optional reason."""
        self.is_cancelled = True
        if reason:
            self.reason = str(reason).strip() or self.reason


@dataclass
class BrainTrustConfig:
    """Collaborators injected into a BrainTrust orchestrator.

    Callbacks may be plain functions or coroutine functions.
    """

    fetch_advisor: AdvisorFetcher
    fetch_synthesis: SynthesisFetcher
    parse_stream: StreamParser = parse_sse_stream
    on_advisor_complete: Optional[AdvisorCompleteCallback] = None
    on_synthesis_complete: Optional[SynthesisCompleteCallback] = None
    on_error: Optional[ErrorCallback] = None


class BrainTrust:
    """State machine driving advisors in order, then a synthesis.

    States: idle -> querying -> synthesizing -> complete, with error reachable
    from querying/synthesizing and idle reachable any time through abort().
    """

    def __init__(self, config: BrainTrustConfig):
        self.config = config
        self._messages: List[Message] = []
        self._status = BrainTrustStatus.IDLE
        self._current_advisor_index = 0
        self._streaming_content = ""
        self._streaming_advisor_id: Optional[str] = None
        self._synthesis_content = ""
        self._error: Optional[str] = None
        self._advisors: Tuple[Advisor, ...] = ()
        self._cancel_token: Optional[CancelToken] = None
        self._listeners: List[StateListener] = []

    # State views

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def status(self) -> BrainTrustStatus:
        return self._status

    @property
    def current_advisor_index(self) -> int:
        return self._current_advisor_index

    @property
    def streaming_content(self) -> str:
        return self._streaming_content

    @property
    def streaming_advisor_id(self) -> Optional[str]:
        return self._streaming_advisor_id

    @property
    def synthesis_content(self) -> str:
        return self._synthesis_content

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def advisors(self) -> Tuple[Advisor, ...]:
        return self._advisors

    @property
    def cancel_token(self) -> Optional[CancelToken]:
        """Token of the active run, for fetchers that want to observe cancellation."""
        return self._cancel_token

    @property
    def current_advisor(self) -> Optional[Advisor]:
        if not self.is_active:
            return None
        if 0 <= self._current_advisor_index < len(self._advisors):
            return self._advisors[self._current_advisor_index]
        return None

    @property
    def is_complete(self) -> bool:
        return self._status in (BrainTrustStatus.COMPLETE, BrainTrustStatus.ERROR)

    @property
    def is_active(self) -> bool:
        return self._status in (BrainTrustStatus.QUERYING, BrainTrustStatus.SYNTHESIZING)

    @property
    def progress(self) -> BrainTrustProgress:
        return BrainTrustProgress(
            current=self._current_advisor_index,
            total=len(self._advisors),
            phase=self._status,
        )

    @property
    def completed_advisors(self) -> List[Advisor]:
        """Advisors whose message already exists in the transcript."""
        answered = {
            message.advisor_id
            for message in self._messages
            if message.role == MessageRole.ADVISOR
        }
        return [advisor for advisor in self._advisors if advisor.id in answered]

    @property
    def state(self) -> BrainTrustState:
        return BrainTrustState(
            messages=tuple(self._messages),
            status=self._status,
            current_advisor_index=self._current_advisor_index,
            streaming_content=self._streaming_content,
            streaming_advisor_id=self._streaming_advisor_id,
            synthesis_content=self._synthesis_content,
            error=self._error,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener receiving a state snapshot after every change.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Public operations

    async def start(self, question: str, advisors: Sequence[Advisor]) -> None:
        """Run every advisor in order, then the synthesis.

        A cancelled run returns normally. Exceptions raised by the completion
        callbacks stop the run and propagate unchanged.

        Raises:
            InvalidArgument: advisors is empty
            AdvisorFailure: an advisor call failed
            SynthesisFailure: the synthesis call failed
        """
        advisors = tuple(advisors)
        if not advisors:
            raise InvalidArgument("At least one advisor is required")

        self.reset()
        token = CancelToken()
        self._cancel_token = token
        self._advisors = advisors
        self._messages = [Message(role=MessageRole.USER, content=question)]
        self._status = BrainTrustStatus.QUERYING
        self._emit()
        logger.info("Brain Trust run started with %s advisor(s)", len(advisors))

        try:
            await self._run(advisors, token)
        except BrainTrustError:
            raise
        except Exception:
            logger.error("Brain Trust callback failed, stopping run", exc_info=True)
            if self._cancel_token is token:
                self._cancel_active_run()
                self._emit()
            raise

    async def _run(self, advisors: Tuple[Advisor, ...], token: CancelToken) -> None:
        for index, advisor in enumerate(advisors):
            if token.is_cancelled:
                self._finish_cancelled(token)
                return
            self._current_advisor_index = index
            logger.info("Querying advisor %s/%s: %s", index + 1, len(advisors), advisor.name)
            await self._query_advisor(advisor, token)

        if token.is_cancelled:
            self._finish_cancelled(token)
            return

        self._status = BrainTrustStatus.SYNTHESIZING
        self._emit()
        await self._synthesize(token)

        if token.is_cancelled:
            self._finish_cancelled(token)
            return

        self._status = BrainTrustStatus.COMPLETE
        self._emit()
        logger.info("Brain Trust run complete (%s messages)", len(self._messages))

    def abort(self) -> None:
        """Cancel the active run, if any, and return to idle."""
        self._cancel_active_run()
        self._emit()

    def reset(self) -> None:
        """Abort and clear all state to initial values."""
        self._cancel_active_run()
        self._clear()
        self._emit()

    def load_messages(
        self,
        messages: Sequence[Message],
        synthesis_content: Optional[str] = None,
    ) -> None:
        """Install a previously completed transcript for display."""
        self._cancel_active_run()
        self._clear()
        self._messages = list(messages)
        self._synthesis_content = synthesis_content or ""
        self._status = BrainTrustStatus.COMPLETE if self._messages else BrainTrustStatus.IDLE
        self._emit()

    # Sub-procedures

    async def _query_advisor(self, advisor: Advisor, token: CancelToken) -> None:
        self._streaming_advisor_id = advisor.id
        self._streaming_content = ""
        self._emit()

        try:
            response = await self.config.fetch_advisor(advisor, self.messages)
            if token.is_cancelled:
                await _close_response(response)
                return
            if not response.ok:
                raise AdvisorFailure(advisor.name, await response.text())

            if not await self._consume(response, token, self._append_streaming):
                return

            message = Message(
                role=MessageRole.ADVISOR,
                content=self._streaming_content,
                advisor_id=advisor.id,
            )
            self._messages.append(message)
            self._streaming_advisor_id = None
            self._streaming_content = ""
            self._emit()
        except AdvisorFailure as exc:
            if await self._fail(token, exc, "advisor", advisor):
                raise
            return
        except Exception as exc:
            failure = AdvisorFailure(advisor.name, str(exc))
            if await self._fail(token, failure, "advisor", advisor):
                raise failure from exc
            return
        finally:
            if self._cancel_token is token and (
                self._streaming_advisor_id is not None or self._streaming_content
            ):
                self._streaming_advisor_id = None
                self._streaming_content = ""
                self._emit()

        await _invoke(self.config.on_advisor_complete, advisor, message)

    async def _synthesize(self, token: CancelToken) -> None:
        self._synthesis_content = ""

        try:
            response = await self.config.fetch_synthesis(self.messages)
            if token.is_cancelled:
                await _close_response(response)
                return
            if not response.ok:
                raise SynthesisFailure(await response.text())

            if not await self._consume(response, token, self._append_synthesis):
                return
        except SynthesisFailure as exc:
            if await self._fail(token, exc, "synthesis", None):
                raise
            return
        except Exception as exc:
            failure = SynthesisFailure(str(exc))
            if await self._fail(token, failure, "synthesis", None):
                raise failure from exc
            return

        await _invoke(self.config.on_synthesis_complete, self._synthesis_content)

    async def _consume(
        self,
        response: StreamResponse,
        token: CancelToken,
        append: Callable[[str], None],
    ) -> bool:
        """Feed parsed deltas to ``append``; False when the run was cancelled."""
        stream: AsyncIterator[str] = self.config.parse_stream(response)
        try:
            async for delta in stream:
                if token.is_cancelled:
                    return False
                append(delta)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return not token.is_cancelled

    def _append_streaming(self, delta: str) -> None:
        self._streaming_content += delta
        self._emit()

    def _append_synthesis(self, delta: str) -> None:
        self._synthesis_content += delta
        self._emit()

    async def _fail(
        self,
        token: CancelToken,
        error: BrainTrustError,
        phase: ErrorPhase,
        advisor: Optional[Advisor],
    ) -> bool:
        """Record a phase failure; False when the run was already cancelled."""
        if token.is_cancelled:
            logger.info("Ignoring %s failure of a cancelled run: %s", phase, error)
            self._finish_cancelled(token)
            return False
        logger.warning("Brain Trust %s phase failed: %s", phase, error)
        self._error = str(error)
        self._status = BrainTrustStatus.ERROR
        self._emit()
        await _invoke(self.config.on_error, error, phase, advisor)
        return True

    def _finish_cancelled(self, token: CancelToken) -> None:
        logger.info("Brain Trust run cancelled: %s", token.reason)
        # A token cancelled through cancel_token is still installed; abort() and
        # a newer start() have already moved the state on.
        if self._cancel_token is token:
            self._cancel_active_run()
            self._emit()

    def _cancel_active_run(self) -> None:
        if self._cancel_token is not None:
            self._cancel_token.cancel("aborted")
            self._cancel_token = None
        self._streaming_advisor_id = None
        self._streaming_content = ""
        self._status = BrainTrustStatus.IDLE

    def _clear(self) -> None:
        self._messages = []
        self._current_advisor_index = 0
        self._synthesis_content = ""
        self._error = None
        self._advisors = ()

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)


async def _invoke(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def _close_response(response: StreamResponse) -> None:
    """Release a response that will not be parsed."""
    aclose = getattr(response, "aclose", None)
    if aclose is None:
        aclose = getattr(response.body, "aclose", None)
    if aclose is not None:
        await aclose()

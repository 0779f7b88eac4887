"""
Dify stream normalizer.

Turns the heterogeneous Dify event sequence into one ordered sequence of
normalized stream parts:

    response-metadata, text-start, text-delta*, text-end, finish

``dispatch`` is a pure transition function: it takes the current
``StreamState`` and one decode result, and returns the parts to emit plus the
next state. ``normalize`` threads the state through a whole payload sequence.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass, field, replace
import logging
from typing import Any, ClassVar

from ._exceptions import APICallError, InvalidEventError
from ._http import ERROR_PREFIX
from ._types import FinishReason, Usage, WorkflowData
from ._utils import generate_id
from .events import (
    DecodeFailure,
    DecodeResult,
    ErrorEvent,
    EventKind,
    MessageEndEvent,
    MessageEvent,
    TextChunkEvent,
    UpstreamEvent,
    WorkflowFinishedEvent,
    WorkflowStartedEvent,
    as_token_count,
    validate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamPart:
    """Base class for all normalized stream parts."""

    type: ClassVar[str]


@dataclass(frozen=True)
class TextStartPart(StreamPart):
    type = "text-start"

    id: str


@dataclass(frozen=True)
class TextDeltaPart(StreamPart):
    type = "text-delta"

    id: str
    delta: str


@dataclass(frozen=True)
class TextEndPart(StreamPart):
    type = "text-end"

    id: str


@dataclass(frozen=True)
class ResponseMetadataPart(StreamPart):
    type = "response-metadata"

    id: str


@dataclass(frozen=True)
class FinishPart(StreamPart):
    type = "finish"

    finish_reason: FinishReason
    usage: Usage
    provider_metadata: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorPart(StreamPart):
    type = "error"

    error: Any


@dataclass(frozen=True)
class StreamState:
    """Cross-event state for one open stream.

    Ids follow last-non-empty-wins: an event without an id never clears one
    seen earlier.
    """

    generated_id: str
    workflow_run_id: str | None = None
    task_id: str | None = None
    conversation_id: str | None = None
    message_id: str | None = None
    text_span_open: bool = False
    # set once text-end went out, so a stream never gets a second span
    text_span_closed: bool = False

    @classmethod
    def start(cls, id_factory: Callable[[], str] = generate_id) -> StreamState:
        return cls(generated_id=id_factory())

    def absorb(self, event: UpstreamEvent) -> StreamState:
        """Merge the ids carried by ``event`` into the state."""
        return replace(
            self,
            workflow_run_id=event.workflow_run_id or self.workflow_run_id,
            task_id=event.task_id or self.task_id,
            conversation_id=event.conversation_id or self.conversation_id,
            message_id=event.message_id or self.message_id,
        )

    def workflow_data(self) -> WorkflowData:
        return WorkflowData(
            workflow_run_id=self.workflow_run_id,
            task_id=self.task_id,
            conversation_id=self.conversation_id,
            message_id=self.message_id,
        )


# Events that neither touch the state nor emit anything.
_IGNORED = frozenset({EventKind.UNRECOGNIZED, EventKind.TTS_MESSAGE, EventKind.TTS_MESSAGE_END})
_TELEMETRY = frozenset({EventKind.NODE_STARTED, EventKind.NODE_FINISHED})


def workflow_finished_usage(event: WorkflowFinishedEvent) -> Usage:
    """All of a workflow run's tokens are reported as output tokens."""
    total = event.total_tokens or 0
    return Usage(input_tokens=0, output_tokens=total, total_tokens=total)


def message_end_usage(event: MessageEndEvent) -> Usage:
    """Resolve usage for ``message_end``; first match wins.

    1. ``data.total_tokens`` present and numeric (zero included)
    2. ``metadata.usage`` object
    3. all zero
    """
    total = event.total_tokens
    if total is not None:
        return Usage(input_tokens=0, output_tokens=total, total_tokens=total)

    usage = event.usage
    if usage is not None:
        return Usage(
            input_tokens=as_token_count(usage.get("prompt_tokens")) or 0,
            output_tokens=as_token_count(usage.get("completion_tokens")) or 0,
            total_tokens=as_token_count(usage.get("total_tokens")) or 0,
        )
    return Usage()


def resolve_usage(event: UpstreamEvent) -> Usage:
    """Usage triple for a terminal event."""
    if isinstance(event, WorkflowFinishedEvent):
        return workflow_finished_usage(event)
    if isinstance(event, MessageEndEvent):
        return message_end_usage(event)
    raise TypeError(f"{event.kind.value} is not a terminal event")


def _open_span(state: StreamState, response_id: str) -> tuple[list[StreamPart], StreamState]:
    if state.text_span_open or state.text_span_closed:
        return [], state
    parts: list[StreamPart] = [
        ResponseMetadataPart(id=response_id),
        TextStartPart(id=state.generated_id),
    ]
    return parts, replace(state, text_span_open=True)


def _finish(state: StreamState, usage: Usage) -> tuple[list[StreamPart], StreamState]:
    parts: list[StreamPart] = []
    if state.text_span_open:
        parts.append(TextEndPart(id=state.generated_id))
        state = replace(state, text_span_open=False, text_span_closed=True)
    parts.append(
        FinishPart(
            finish_reason="stop",
            usage=usage,
            provider_metadata=state.workflow_data().provider_metadata(),
        )
    )
    return parts, state


def dispatch(state: StreamState, result: DecodeResult) -> tuple[list[StreamPart], StreamState]:
    """Map one decoded event onto the parts it produces and the next state."""
    if isinstance(result, DecodeFailure):
        return [], state

    event = result.event
    kind = event.kind
    if kind in _IGNORED:
        logger.debug("Ignoring %s event", getattr(event, "event", None) or kind.value)
        return [], state

    state = state.absorb(event)

    if kind in _TELEMETRY:
        return [], state

    if isinstance(event, WorkflowStartedEvent):
        return _open_span(state, event.id or state.workflow_run_id or event.data["id"])

    if isinstance(event, TextChunkEvent | MessageEvent):
        delta = event.text if isinstance(event, TextChunkEvent) else event.answer
        if not delta:
            return [], state
        parts, state = _open_span(state, event.id or state.message_id or state.generated_id)
        parts.append(TextDeltaPart(id=state.generated_id, delta=delta))
        return parts, state

    if isinstance(event, ErrorEvent):
        error = APICallError(
            f"{ERROR_PREFIX}{event.message}", status_code=event.status, code=event.code
        )
        return [ErrorPart(error=error)], state

    return _finish(state, resolve_usage(event))


def normalize(
    payloads: Iterable[str], state: StreamState | None = None
) -> Generator[StreamPart, None, StreamState]:
    """
    Validate and dispatch every payload, yielding parts in arrival order.

    Payloads that are not JSON are skipped. JSON that is not a valid event is
    skipped before the first part went out and reported as an ``error`` part
    afterwards; the stream keeps going either way.

    Returns:
        The final state (as the generator's return value)
    """
    state = state or StreamState.start()
    started = False
    for payload in payloads:
        result = validate(payload)
        if isinstance(result, DecodeFailure) and result.stage == "schema" and started:
            yield ErrorPart(error=InvalidEventError(result.reason, raw_text=result.raw_text))
            continue

        parts, state = dispatch(state, result)
        for part in parts:
            started = True
            yield part
    return state

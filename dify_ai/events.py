"""
Dify streaming event schema.

Each SSE payload from ``/chat-messages`` or ``/workflows/run`` is a JSON object
tagged by its ``event`` field. ``validate`` turns one payload into a typed
event (or an opaque failure) and never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import json
import logging
import math
from typing import Any, ClassVar

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Upstream event discriminants."""

    MESSAGE = "message"
    AGENT_MESSAGE = "agent_message"
    MESSAGE_END = "message_end"
    WORKFLOW_STARTED = "workflow_started"
    WORKFLOW_FINISHED = "workflow_finished"
    NODE_STARTED = "node_started"
    NODE_FINISHED = "node_finished"
    TEXT_CHUNK = "text_chunk"
    TTS_MESSAGE = "tts_message"
    TTS_MESSAGE_END = "tts_message_end"
    ERROR = "error"

    # Anything else the upstream adds later
    UNRECOGNIZED = "unrecognized"


class SchemaError(ValueError):
    """Payload is JSON but not a well-formed Dify event."""


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise SchemaError(f"'{key}' must be a string, got {type(value).__name__}")


def _opt_obj(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None or isinstance(value, dict):
        return value
    raise SchemaError(f"'{key}' must be an object, got {type(value).__name__}")


def as_token_count(value: Any) -> int | None:
    """Return ``value`` as a token count if it is a real number, else None."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _node_data(data: dict[str, Any]) -> dict[str, Any]:
    payload = _opt_obj(data, "data")
    if payload is None:
        raise SchemaError("'data' is required")
    if not isinstance(payload.get("id"), str):
        raise SchemaError("'data.id' must be a string")
    return payload


@dataclass
class UpstreamEvent:
    """Fields every Dify stream event may carry."""

    kind: ClassVar[EventKind]

    raw: dict[str, Any]
    id: str | None = None
    conversation_id: str | None = None
    message_id: str | None = None
    task_id: str | None = None
    workflow_run_id: str | None = None

    @classmethod
    def _common(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "raw": data,
            "id": _opt_str(data, "id"),
            "conversation_id": _opt_str(data, "conversation_id"),
            "message_id": _opt_str(data, "message_id"),
            "task_id": _opt_str(data, "task_id"),
            "workflow_run_id": _opt_str(data, "workflow_run_id"),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UpstreamEvent:
        """Build the variant matching ``data["event"]``.

        Raises:
            SchemaError: the payload is not an event object or a field has the wrong type.
        """
        if not isinstance(data, dict):
            raise SchemaError(f"event payload must be an object, got {type(data).__name__}")
        tag = data.get("event")
        if not isinstance(tag, str):
            raise SchemaError("'event' discriminant is missing")

        variant = _VARIANTS.get(tag)
        if variant is None:
            return UnrecognizedEvent(event=tag, **cls._common(data))
        return variant._parse(data)

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        return cls(**cls._common(data))


@dataclass
class MessageEvent(UpstreamEvent):
    """Chat answer delta."""

    kind = EventKind.MESSAGE

    answer: str = ""

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        return cls(answer=_opt_str(data, "answer") or "", **cls._common(data))


@dataclass
class AgentMessageEvent(MessageEvent):
    """Agent-mode answer delta."""

    kind = EventKind.AGENT_MESSAGE


@dataclass
class TextChunkEvent(UpstreamEvent):
    """Workflow text output delta, carried in ``data.text``."""

    kind = EventKind.TEXT_CHUNK

    text: str = ""

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        payload = _opt_obj(data, "data") or {}
        return cls(text=_opt_str(payload, "text") or "", **cls._common(data))


@dataclass
class MessageEndEvent(UpstreamEvent):
    """Terminal event of a chat turn."""

    kind = EventKind.MESSAGE_END

    data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    @property
    def total_tokens(self) -> int | None:
        """Nested ``data.total_tokens``, when present and numeric."""
        if self.data is None:
            return None
        return as_token_count(self.data.get("total_tokens"))

    @property
    def usage(self) -> dict[str, Any] | None:
        """``metadata.usage`` object, when present."""
        if self.metadata is None:
            return None
        usage = self.metadata.get("usage")
        return usage if isinstance(usage, dict) else None

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        return cls(
            data=_opt_obj(data, "data"),
            metadata=_opt_obj(data, "metadata"),
            **cls._common(data),
        )


@dataclass
class _WorkflowEvent(UpstreamEvent):
    """Lifecycle event with a nested ``data`` object carrying at least ``id``."""

    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        return cls(data=_node_data(data), **cls._common(data))


@dataclass
class WorkflowStartedEvent(_WorkflowEvent):
    kind = EventKind.WORKFLOW_STARTED


@dataclass
class WorkflowFinishedEvent(_WorkflowEvent):
    """Terminal event of a workflow run."""

    kind = EventKind.WORKFLOW_FINISHED

    @property
    def total_tokens(self) -> int | None:
        return as_token_count(self.data.get("total_tokens"))


@dataclass
class NodeStartedEvent(_WorkflowEvent):
    kind = EventKind.NODE_STARTED


@dataclass
class NodeFinishedEvent(_WorkflowEvent):
    kind = EventKind.NODE_FINISHED


@dataclass
class TTSMessageEvent(UpstreamEvent):
    kind = EventKind.TTS_MESSAGE

    audio: str | None = None

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        return cls(audio=_opt_str(data, "audio"), **cls._common(data))


@dataclass
class TTSMessageEndEvent(TTSMessageEvent):
    kind = EventKind.TTS_MESSAGE_END


@dataclass
class ErrorEvent(UpstreamEvent):
    """Upstream reported a failure mid-stream."""

    kind = EventKind.ERROR

    message: str = "Unknown error"
    code: str | None = None
    status: int | None = None

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> UpstreamEvent:
        status = data.get("status")
        code = data.get("code")
        return cls(
            message=str(data.get("message") or "Unknown error"),
            code=str(code) if code is not None else None,
            status=status if isinstance(status, int) else None,
            **cls._common(data),
        )


@dataclass
class UnrecognizedEvent(UpstreamEvent):
    """Event kind this SDK does not know yet."""

    kind = EventKind.UNRECOGNIZED

    event: str = ""


_VARIANTS: dict[str, type[UpstreamEvent]] = {
    variant.kind.value: variant
    for variant in (
        MessageEvent,
        AgentMessageEvent,
        TextChunkEvent,
        MessageEndEvent,
        WorkflowStartedEvent,
        WorkflowFinishedEvent,
        NodeStartedEvent,
        NodeFinishedEvent,
        TTSMessageEvent,
        TTSMessageEndEvent,
        ErrorEvent,
    )
}


@dataclass(frozen=True)
class DecodeSuccess:
    event: UpstreamEvent


@dataclass(frozen=True)
class DecodeFailure:
    """Payload could not be decoded. Carries no partial data."""

    raw_text: str
    reason: str
    # "syntax" for non-JSON text, "schema" for JSON that is not a valid event
    stage: str = "syntax"


DecodeResult = DecodeSuccess | DecodeFailure


def validate(payload: str) -> DecodeResult:
    """Decode one SSE data payload. Never raises."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug("Skipping non-JSON SSE payload: %s", str(payload)[:200])
        return DecodeFailure(raw_text=str(payload), reason=str(e), stage="syntax")

    try:
        return DecodeSuccess(UpstreamEvent.from_dict(data))
    except SchemaError as e:
        logger.warning("Invalid Dify event payload (%s): %s", e, payload[:200])
        return DecodeFailure(raw_text=payload, reason=str(e), stage="schema")

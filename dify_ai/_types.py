"""Dataclass models for normalized results and Dify blocking response schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from ._exceptions import InvalidResponseDataError

FinishReason = Literal[
    "stop", "length", "content-filter", "tool-calls", "error", "other", "unknown"
]

PROVIDER_METADATA_KEY = "difyWorkflowData"


@dataclass(frozen=True)
class Usage:
    """Token usage triple."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class WorkflowData:
    """Identifiers Dify attaches to a response, passed through untouched."""

    workflow_run_id: str | None = None
    task_id: str | None = None
    conversation_id: str | None = None
    message_id: str | None = None

    def to_dict(self) -> dict[str, str]:
        pairs = {
            "workflowRunId": self.workflow_run_id,
            "taskId": self.task_id,
            "conversationId": self.conversation_id,
            "messageId": self.message_id,
        }
        return {k: v for k, v in pairs.items() if v is not None}

    def provider_metadata(self) -> dict[str, dict[str, str]]:
        return {PROVIDER_METADATA_KEY: self.to_dict()}


@dataclass
class GenerateResult:
    """Normalized result of a blocking call."""

    content: list[dict[str, str]]
    usage: Usage
    finish_reason: FinishReason
    provider_metadata: dict[str, dict[str, str]]
    response_id: str | None = None
    body: dict[str, Any] | None = None

    @property
    def text(self) -> str:
        return "".join(part["text"] for part in self.content if part.get("type") == "text")


def _require_str(data: dict, key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise InvalidResponseDataError(f"{where}: '{key}' must be a string")
    return value


def _opt_str(data: dict, key: str, where: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidResponseDataError(f"{where}: '{key}' must be a string")
    return value


@dataclass
class ChatMessageResponse:
    """Blocking ``POST /chat-messages`` body."""

    answer: str
    id: str | None
    task_id: str | None
    conversation_id: str | None
    message_id: str | None
    usage: dict[str, Any] | None
    raw: dict[str, Any] = field(repr=False, default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ChatMessageResponse:
        where = "chat-messages response"
        if not isinstance(data, dict):
            raise InvalidResponseDataError(f"{where}: expected a JSON object")
        metadata = data.get("metadata")
        usage = metadata.get("usage") if isinstance(metadata, dict) else None
        return cls(
            answer=_require_str(data, "answer", where),
            id=_opt_str(data, "id", where),
            task_id=_opt_str(data, "task_id", where),
            conversation_id=_opt_str(data, "conversation_id", where),
            message_id=_opt_str(data, "message_id", where),
            usage=usage if isinstance(usage, dict) else None,
            raw=data,
        )


@dataclass
class WorkflowRunResponse:
    """Blocking ``POST /workflows/run`` body."""

    task_id: str
    workflow_run_id: str | None
    outputs: dict[str, Any] | None
    raw: dict[str, Any] = field(repr=False, default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> WorkflowRunResponse:
        where = "workflows/run response"
        if not isinstance(data, dict):
            raise InvalidResponseDataError(f"{where}: expected a JSON object")
        run = data.get("data")
        if not isinstance(run, dict):
            raise InvalidResponseDataError(f"{where}: 'data' must be an object")
        outputs = run.get("outputs")
        if outputs is not None and not isinstance(outputs, dict):
            raise InvalidResponseDataError(f"{where}: 'data.outputs' must be an object")
        _require_str(run, "id", where)
        _require_str(run, "workflow_id", where)
        return cls(
            task_id=_require_str(data, "task_id", where),
            workflow_run_id=_opt_str(data, "workflow_run_id", where),
            outputs=outputs,
            raw=data,
        )

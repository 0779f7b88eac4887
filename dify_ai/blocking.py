"""Blocking-mode reducer: one decoded Dify response to one GenerateResult."""

from __future__ import annotations

from typing import Any

from ._types import ChatMessageResponse, GenerateResult, Usage, WorkflowData, WorkflowRunResponse
from ._utils import generate_id
from .events import as_token_count


def _text_content(text: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": text}] if text else []


def reduce_chat_response(response: ChatMessageResponse) -> GenerateResult:
    usage = response.usage or {}
    return GenerateResult(
        content=_text_content(response.answer),
        usage=Usage(
            input_tokens=as_token_count(usage.get("prompt_tokens")) or 0,
            output_tokens=as_token_count(usage.get("completion_tokens")) or 0,
            total_tokens=as_token_count(usage.get("total_tokens")) or 0,
        ),
        finish_reason="stop",
        provider_metadata=WorkflowData(
            conversation_id=response.conversation_id,
            message_id=response.message_id,
        ).provider_metadata(),
        response_id=response.message_id or response.id or generate_id(),
        body=response.raw,
    )


def reduce_workflow_response(response: WorkflowRunResponse) -> GenerateResult:
    # Workflow runs report no usage in blocking mode.
    result = (response.outputs or {}).get("result")
    return GenerateResult(
        content=_text_content(result if isinstance(result, str) else ""),
        usage=Usage(),
        finish_reason="stop",
        provider_metadata=WorkflowData(
            workflow_run_id=response.workflow_run_id,
            task_id=response.task_id,
        ).provider_metadata(),
        response_id=response.workflow_run_id or generate_id(),
        body=response.raw,
    )


def reduce(response: ChatMessageResponse | WorkflowRunResponse | dict[str, Any]) -> GenerateResult:
    """Reduce a blocking response of either shape.

    Raw dicts are validated first: a body with ``answer`` is a chat message,
    anything else must be a workflow run.
    """
    if isinstance(response, dict):
        if "answer" in response:
            response = ChatMessageResponse.from_dict(response)
        else:
            response = WorkflowRunResponse.from_dict(response)

    if isinstance(response, ChatMessageResponse):
        return reduce_chat_response(response)
    return reduce_workflow_response(response)

"""Dify language models: chat apps (``/chat-messages``) and workflow apps (``/workflows/run``)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from ._exceptions import InvalidPromptError, InvalidResponseDataError
from ._streaming import DifyStream
from ._types import ChatMessageResponse, GenerateResult, WorkflowRunResponse
from ._utils import _build_body
from .blocking import reduce_chat_response, reduce_workflow_response

if TYPE_CHECKING:
    from ._http import HTTPClient

logger = logging.getLogger(__name__)

ResponseMode = Literal["streaming", "blocking"]
Prompt = str | list[dict[str, Any]]

USER_ID_HEADER = "user-id"
DEFAULT_USER_ID = "you_should_pass_user-id"


@dataclass
class DifyChatSettings:
    """Per-model settings for a chat app."""

    inputs: dict[str, Any] = field(default_factory=dict)
    response_mode: ResponseMode = "streaming"
    api_key: str | None = None
    conversation_id: str | None = None


@dataclass
class DifyCompletionSettings:
    """Per-model settings for a workflow app."""

    inputs: dict[str, Any] = field(default_factory=dict)
    response_mode: ResponseMode = "streaming"
    api_key: str | None = None


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict) and part.get("type") == "text":
        return part.get("text") or ""
    return ""


def extract_query(prompt: Prompt) -> str:
    """Return the text of the latest user message.

    Raises:
        InvalidPromptError: empty prompt, last message not from the user, or an image part.
    """
    if isinstance(prompt, str):
        prompt = [{"role": "user", "content": prompt}]
    if not prompt:
        raise InvalidPromptError("No messages provided")

    latest = prompt[-1]
    if latest.get("role") != "user":
        raise InvalidPromptError("The last message must be a user message")

    content = latest.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        if any(isinstance(part, dict) and part.get("type") == "image" for part in content):
            raise InvalidPromptError("Dify provider does not currently support image attachments")
        return " ".join(text for text in map(_part_text, content) if text)
    return ""


def split_user_id(headers: dict[str, str] | None) -> tuple[str, dict[str, str]]:
    """Pull the caller's ``user-id`` header out of ``headers``.

    Returns:
        (user id or the placeholder, remaining headers)
    """
    user_id = DEFAULT_USER_ID
    remaining: dict[str, str] = {}
    for name, value in (headers or {}).items():
        if name.lower() == USER_ID_HEADER:
            user_id = value
        else:
            remaining[name] = value
    return user_id, remaining


class DifyModel(ABC):
    """Shared request plumbing for both app types."""

    path: ClassVar[str]
    provider: ClassVar[str]

    def __init__(self, model_id: str, settings: Any, http: HTTPClient):
        self.model_id = model_id
        self.settings = settings
        self._http = http

    @property
    def url(self) -> str:
        return f"{self._http.base_url}{self.path}"

    @abstractmethod
    def _body(self, query: str, *, user: str, response_mode: ResponseMode, **kwargs: Any) -> dict:
        """Request body for this app type."""

    @abstractmethod
    def _reduce(self, data: Any) -> GenerateResult:
        """Turn a blocking response body into a result."""

    def _prepare(
        self,
        prompt: Prompt,
        headers: dict[str, str] | None,
        response_mode: ResponseMode,
        **kwargs: Any,
    ) -> tuple[dict, dict[str, str]]:
        query = extract_query(prompt)
        user, headers = split_user_id(headers)
        logger.debug("%s %s request for user %s", self.provider, response_mode, user)
        return self._body(query, user=user, response_mode=response_mode, **kwargs), headers

    def generate(
        self, prompt: Prompt, *, headers: dict[str, str] | None = None, **kwargs: Any
    ) -> GenerateResult:
        """Send a blocking request and reduce the response."""
        body, headers = self._prepare(prompt, headers, "blocking", **kwargs)
        resp = self._http.request("POST", self.path, json=body, headers=headers)
        try:
            data = resp.json()
        except ValueError as e:
            raise InvalidResponseDataError(
                f"{self.provider}: response is not JSON", status_code=resp.status_code, url=self.url
            ) from e
        return self._reduce(data)

    def stream(
        self, prompt: Prompt, *, headers: dict[str, str] | None = None, **kwargs: Any
    ) -> DifyStream:
        """Open a streaming request. The returned stream is iterable once."""
        body, headers = self._prepare(prompt, headers, "streaming", **kwargs)
        resp = self._http.stream("POST", self.path, json=body, headers=headers)
        return DifyStream(resp)

    def invoke(
        self, prompt: Prompt, *, headers: dict[str, str] | None = None, **kwargs: Any
    ) -> GenerateResult | DifyStream:
        """``stream`` or ``generate``, depending on ``settings.response_mode``."""
        if self.settings.response_mode == "blocking":
            return self.generate(prompt, headers=headers, **kwargs)
        return self.stream(prompt, headers=headers, **kwargs)


class DifyChatModel(DifyModel):
    """Chat, agent and chatflow apps."""

    path = "/chat-messages"
    provider = "dify.chat"

    def __init__(self, model_id: str, settings: DifyChatSettings | None, http: HTTPClient):
        super().__init__(model_id, settings or DifyChatSettings(), http)

    def _body(
        self,
        query: str,
        *,
        user: str,
        response_mode: ResponseMode,
        conversation_id: str | None = None,
    ) -> dict:
        return _build_body(
            inputs=dict(self.settings.inputs),
            query=query,
            response_mode=response_mode,
            conversation_id=conversation_id or self.settings.conversation_id,
            user=user,
        )

    def _reduce(self, data: Any) -> GenerateResult:
        return reduce_chat_response(ChatMessageResponse.from_dict(data))


class DifyCompletionModel(DifyModel):
    """Workflow apps. The query is sent as the ``query`` input variable."""

    path = "/workflows/run"
    provider = "dify.completion"

    def __init__(self, model_id: str, settings: DifyCompletionSettings | None, http: HTTPClient):
        super().__init__(model_id, settings or DifyCompletionSettings(), http)

    def _body(self, query: str, *, user: str, response_mode: ResponseMode) -> dict:
        return {
            "inputs": {"query": query, **self.settings.inputs},
            "response_mode": response_mode,
            "user": user,
        }

    def _reduce(self, data: Any) -> GenerateResult:
        return reduce_workflow_response(WorkflowRunResponse.from_dict(data))

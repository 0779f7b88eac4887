"""
dify_ai - Python SDK for Dify chat and workflow apps

Normalizes Dify's blocking and streaming responses into one result shape:
text, token usage, finish reason and provider metadata.
"""

__version__ = "0.1.0"

from ._exceptions import (
    APICallError,
    APIConnectionError,
    AuthenticationError,
    BadRequestError,
    DifyError,
    InvalidEventError,
    InvalidPromptError,
    InvalidResponseDataError,
    LoadAPIKeyError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
)
from ._streaming import DifyStream
from ._types import GenerateResult, Usage, WorkflowData
from .client import Dify, create_dify_provider
from .models import DifyChatModel, DifyChatSettings, DifyCompletionModel, DifyCompletionSettings
from .projections import project_part, project_result
from .streaming import (
    ErrorPart,
    FinishPart,
    ResponseMetadataPart,
    StreamPart,
    StreamState,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
    dispatch,
    normalize,
)

__all__ = [
    "APICallError",
    "APIConnectionError",
    "AuthenticationError",
    "BadRequestError",
    # Main client
    "Dify",
    "DifyChatModel",
    "DifyChatSettings",
    "DifyCompletionModel",
    "DifyCompletionSettings",
    "DifyError",
    "DifyStream",
    "ErrorPart",
    "FinishPart",
    "GenerateResult",
    "InvalidEventError",
    "InvalidPromptError",
    "InvalidResponseDataError",
    "LoadAPIKeyError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "ResponseMetadataPart",
    "StreamPart",
    "StreamState",
    "TextDeltaPart",
    "TextEndPart",
    "TextStartPart",
    "Usage",
    "WorkflowData",
    "create_dify_provider",
    "dispatch",
    "normalize",
    "project_part",
    "project_result",
]

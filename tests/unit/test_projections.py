"""Tests for v1/v2 projections."""

import pytest

from dify_ai._types import GenerateResult, Usage
from dify_ai.projections import project_part, project_result
from dify_ai.streaming import (
    ErrorPart,
    FinishPart,
    ResponseMetadataPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)

FINISH = FinishPart(
    finish_reason="stop",
    usage=Usage(input_tokens=10, output_tokens=25, total_tokens=35),
    provider_metadata={"difyWorkflowData": {"conversationId": "conv1"}},
)


class TestV2:
    def test_text_parts(self):
        assert project_part(TextStartPart(id="g")) == {"type": "text-start", "id": "g"}
        assert project_part(TextDeltaPart(id="g", delta="Hi")) == {
            "type": "text-delta",
            "id": "g",
            "delta": "Hi",
        }
        assert project_part(TextEndPart(id="g")) == {"type": "text-end", "id": "g"}

    def test_finish(self):
        assert project_part(FINISH, "v2") == {
            "type": "finish",
            "finishReason": "stop",
            "usage": {"inputTokens": 10, "outputTokens": 25, "totalTokens": 35},
            "providerMetadata": {"difyWorkflowData": {"conversationId": "conv1"}},
        }

    def test_error(self):
        err = RuntimeError("x")
        assert project_part(ErrorPart(error=err)) == {"type": "error", "error": err}


class TestV1:
    def test_span_markers_dropped(self):
        assert project_part(TextStartPart(id="g"), "v1") is None
        assert project_part(TextEndPart(id="g"), "v1") is None

    def test_flat_delta(self):
        assert project_part(TextDeltaPart(id="g", delta="Hi"), "v1") == {
            "type": "text-delta",
            "textDelta": "Hi",
        }

    def test_finish_uses_prompt_completion(self):
        assert project_part(FINISH, "v1")["usage"] == {"promptTokens": 10, "completionTokens": 25}

    def test_response_metadata_shared(self):
        part = ResponseMetadataPart(id="wfr1")
        assert project_part(part, "v1") == project_part(part, "v2")


class TestResults:
    result = GenerateResult(
        content=[{"type": "text", "text": "Hello world"}],
        usage=Usage(5, 7, 12),
        finish_reason="stop",
        provider_metadata={"difyWorkflowData": {"messageId": "msg1"}},
    )

    def test_v2_result(self):
        projected = project_result(self.result, "v2")
        assert projected["content"] == [{"type": "text", "text": "Hello world"}]
        assert projected["usage"] == {"inputTokens": 5, "outputTokens": 7, "totalTokens": 12}
        assert projected["warnings"] == []

    def test_v1_result(self):
        projected = project_result(self.result, "v1")
        assert projected["text"] == "Hello world"
        assert projected["usage"] == {"promptTokens": 5, "completionTokens": 7}

    def test_unknown_version(self):
        with pytest.raises(ValueError):
            project_result(self.result, "v3")
        with pytest.raises(ValueError):
            project_part(FINISH, "v3")

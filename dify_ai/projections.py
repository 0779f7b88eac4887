"""
Projections of normalized parts and results onto the external contract shapes.

``v2`` is the split start/delta/end shape with input/output/total usage.
``v1`` is the older flat shape: no text-start/text-end, ``textDelta`` and
prompt/completion usage.
"""

from __future__ import annotations

from typing import Any, Literal

from ._types import GenerateResult, Usage
from .streaming import (
    ErrorPart,
    FinishPart,
    ResponseMetadataPart,
    StreamPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)

SpecificationVersion = Literal["v1", "v2"]


def usage_v1(usage: Usage) -> dict[str, int]:
    return {"promptTokens": usage.input_tokens, "completionTokens": usage.output_tokens}


def usage_v2(usage: Usage) -> dict[str, int]:
    return {
        "inputTokens": usage.input_tokens,
        "outputTokens": usage.output_tokens,
        "totalTokens": usage.total_tokens,
    }


def part_v2(part: StreamPart) -> dict[str, Any]:
    if isinstance(part, TextStartPart | TextEndPart | ResponseMetadataPart):
        return {"type": part.type, "id": part.id}
    if isinstance(part, TextDeltaPart):
        return {"type": part.type, "id": part.id, "delta": part.delta}
    if isinstance(part, FinishPart):
        return {
            "type": part.type,
            "finishReason": part.finish_reason,
            "usage": usage_v2(part.usage),
            "providerMetadata": part.provider_metadata,
        }
    if isinstance(part, ErrorPart):
        return {"type": part.type, "error": part.error}
    raise TypeError(f"Unknown stream part: {part!r}")


def part_v1(part: StreamPart) -> dict[str, Any] | None:
    """Project onto the flat shape. Returns None for parts v1 has no slot for."""
    if isinstance(part, TextStartPart | TextEndPart):
        return None
    if isinstance(part, TextDeltaPart):
        return {"type": part.type, "textDelta": part.delta}
    if isinstance(part, FinishPart):
        return {
            "type": part.type,
            "finishReason": part.finish_reason,
            "usage": usage_v1(part.usage),
            "providerMetadata": part.provider_metadata,
        }
    return part_v2(part)


def project_part(part: StreamPart, version: SpecificationVersion = "v2") -> dict[str, Any] | None:
    if version == "v1":
        return part_v1(part)
    if version == "v2":
        return part_v2(part)
    raise ValueError(f"Unknown specification version: {version}")


def project_result(
    result: GenerateResult, version: SpecificationVersion = "v2"
) -> dict[str, Any]:
    if version == "v1":
        return {
            "text": result.text,
            "finishReason": result.finish_reason,
            "usage": usage_v1(result.usage),
            "providerMetadata": result.provider_metadata,
        }
    if version == "v2":
        return {
            "content": [dict(part) for part in result.content],
            "finishReason": result.finish_reason,
            "usage": usage_v2(result.usage),
            "providerMetadata": result.provider_metadata,
            "warnings": [],
        }
    raise ValueError(f"Unknown specification version: {version}")

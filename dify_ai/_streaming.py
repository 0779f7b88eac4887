"""DifyStream context manager wrapping the SSE framer and the stream normalizer."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from ._sse import iter_lines, iter_payloads
from ._types import FinishReason, Usage
from .projections import SpecificationVersion, project_part
from .streaming import ErrorPart, FinishPart, StreamPart, StreamState, TextDeltaPart, normalize

if TYPE_CHECKING:
    import requests


class DifyStream:
    """Iterable stream of normalized parts. Use as context manager or iterate directly.

    Usage:
        with model.stream("Hi") as stream:
            for part in stream:
                print(part.type)
        print(stream.text, stream.usage)
    """

    def __init__(self, response: requests.Response, state: StreamState | None = None):
        self._response = response
        self._state = state or StreamState.start()
        self._closed = False
        self._text_parts: list[str] = []
        self.errors: list[Any] = []
        self.finish: FinishPart | None = None

    def _close(self) -> None:
        """Close the underlying response (idempotent)."""
        if not self._closed:
            self._closed = True
            self._response.close()

    def __iter__(self) -> Iterator[StreamPart]:
        try:
            for part in normalize(iter_payloads(iter_lines(self._response)), self._state):
                if isinstance(part, TextDeltaPart):
                    self._text_parts.append(part.delta)
                elif isinstance(part, FinishPart):
                    self.finish = part
                elif isinstance(part, ErrorPart):
                    self.errors.append(part.error)
                yield part
        finally:
            self._close()

    def __enter__(self) -> DifyStream:
        return self

    def __exit__(self, *_: object) -> None:
        self._close()

    def iter_dicts(self, version: SpecificationVersion = "v2") -> Iterator[dict[str, Any]]:
        """Iterate parts projected onto the given contract version."""
        for part in self:
            projected = project_part(part, version)
            if projected is not None:
                yield projected

    @property
    def text(self) -> str:
        """Full accumulated text after iteration."""
        return "".join(self._text_parts)

    @property
    def usage(self) -> Usage | None:
        return self.finish.usage if self.finish else None

    @property
    def finish_reason(self) -> FinishReason | None:
        return self.finish.finish_reason if self.finish else None

    @property
    def provider_metadata(self) -> dict[str, dict[str, str]] | None:
        return self.finish.provider_metadata if self.finish else None

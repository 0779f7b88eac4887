"""Server-Sent Events framing for Dify streaming responses."""

from collections.abc import Generator, Iterable


def frame_payload(frame: str) -> str | None:
    """
    Extract the data payload of a single SSE frame.

    Args:
        frame: SSE frame content (one or more lines, without trailing blank line)

    Returns:
        The joined ``data:`` lines, or None for comment-only / event-only frames
        such as Dify's ``event: ping`` keep-alives.
    """
    if not frame or not frame.strip():
        return None

    data_lines: list[str] = []
    for raw_line in frame.splitlines():
        stripped = raw_line.strip()
        if not stripped or stripped.startswith(":"):
            continue
        if raw_line.startswith("data:"):
            data_lines.append(raw_line[5:].lstrip(" "))

    if not data_lines:
        return None

    payload = "\n".join(data_lines).strip()
    return payload or None


def iter_lines(response: object) -> Iterable[str]:
    # SSE is always UTF-8, whatever charset requests guesses from the headers.
    for line in response.iter_lines():  # type: ignore[attr-defined]
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        yield line


def iter_payloads(lines: Iterable[str]) -> Generator[str, None, None]:
    """
    Reassemble SSE lines into payload strings, in arrival order.

    Args:
        lines: decoded lines, blank line terminating each frame

    Yields:
        One payload string per data-bearing frame
    """
    frame_lines: list[str] = []
    for line in lines:
        # Empty line terminates an SSE frame.
        if line == "":
            if frame_lines:
                payload = frame_payload("\n".join(frame_lines))
                frame_lines = []
                if payload is not None:
                    yield payload
            continue

        frame_lines.append(line)

    # Flush trailing frame if stream ended without a final blank line.
    if frame_lines:
        payload = frame_payload("\n".join(frame_lines))
        if payload is not None:
            yield payload

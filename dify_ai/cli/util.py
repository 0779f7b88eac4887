"""Helpers for the dify-ai CLI: input parsing and interrupt handling."""

from __future__ import annotations

from collections.abc import Callable
import signal
import sys
from typing import Any

CANCELLED_EXIT = 130  # POSIX: 128 + SIGINT (2)


def parse_inputs(pairs: list[str] | None) -> dict[str, str]:
    """Turn repeated ``KEY=VALUE`` arguments into an app inputs dict.

    Raises:
        ValueError: an item has no ``=`` or an empty key.
    """
    inputs: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        inputs[key] = value
    return inputs


def graceful_main(fn: Callable[[list[str]], int], argv: list[str]) -> int:
    """
    Run ``fn(argv)``, turning Ctrl-C or SIGTERM into a quiet exit.

    Streams are closed by their context managers while the interrupt unwinds.

    Returns:
        ``fn``'s exit code, or 130 when interrupted
    """

    def _on_term(_signum: int, _frame: Any) -> None:
        raise KeyboardInterrupt()

    previous = signal.signal(signal.SIGTERM, _on_term)
    try:
        return int(fn(argv) or 0)
    except KeyboardInterrupt:
        sys.stderr.write("\n✖ Cancelled\n")
        sys.stderr.flush()
        return CANCELLED_EXIT
    finally:
        signal.signal(signal.SIGTERM, previous)

"""
CLI display components for normalized stream parts.

- VerboseDisplay: rich output with a usage footer
- CompactDisplay: only the answer text
- JsonDisplay: one projected part per line, for scripting and debugging
"""

from abc import ABC, abstractmethod
import json

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel

from .._types import GenerateResult, Usage
from ..projections import project_part, project_result
from ..streaming import ErrorPart, FinishPart, StreamPart, TextDeltaPart


class StreamDisplay(ABC):
    """Base class for stream display renderers."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.text_parts: list[str] = []

    @abstractmethod
    def on_part(self, part: StreamPart) -> None:
        """
        Handle a stream part.

        Args:
            part: Normalized part to display
        """

    def finish(self) -> None:
        """Called after the last part or on error."""

    @abstractmethod
    def show_result(self, result: GenerateResult) -> None:
        """Render a blocking result."""

    def get_final_text(self) -> str:
        return "".join(self.text_parts)


class CompactDisplay(StreamDisplay):
    """Minimal output: just the answer text."""

    def on_part(self, part: StreamPart) -> None:
        if isinstance(part, TextDeltaPart):
            self.text_parts.append(part.delta)
            print(part.delta, end="", flush=True)
        elif isinstance(part, ErrorPart):
            self.console.print(f"\n[red]❌ Error: {escape(str(part.error))}[/red]")

    def finish(self) -> None:
        if self.text_parts:
            print()  # Final newline after text

    def show_result(self, result: GenerateResult) -> None:
        print(result.text)


def _usage_line(usage: Usage) -> str:
    return (
        f"input {usage.input_tokens} · output {usage.output_tokens} · "
        f"total {usage.total_tokens} tokens"
    )


def _ids_line(provider_metadata: dict[str, dict[str, str]]) -> str:
    ids = next(iter(provider_metadata.values()), {})
    return " ".join(f"{key}={value}" for key, value in ids.items())


class VerboseDisplay(StreamDisplay):
    """Streams text as it arrives, then prints usage and ids."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__(console=console)
        self.finish_part: FinishPart | None = None

    def on_part(self, part: StreamPart) -> None:
        if isinstance(part, TextDeltaPart):
            self.text_parts.append(part.delta)
            self.console.print(part.delta, end="", style="white", markup=False, highlight=False)
        elif isinstance(part, FinishPart):
            self.finish_part = part
        elif isinstance(part, ErrorPart):
            self.console.print(f"\n[red]❌ Error: {escape(str(part.error))}[/red]")

    def finish(self) -> None:
        if self.text_parts:
            self.console.print()
        if self.finish_part is None:
            self.console.print("[yellow]Stream ended without a finish event[/yellow]")
            return
        self.console.print(
            f"[dim]{self.finish_part.finish_reason} · {_usage_line(self.finish_part.usage)}[/dim]"
        )
        ids = _ids_line(self.finish_part.provider_metadata)
        if ids:
            self.console.print(f"[dim]{escape(ids)}[/dim]")

    def show_result(self, result: GenerateResult) -> None:
        self.console.print(Panel(Markdown(result.text or "_(empty)_"), title="Answer"))
        self.console.print(f"[dim]{result.finish_reason} · {_usage_line(result.usage)}[/dim]")
        ids = _ids_line(result.provider_metadata)
        if ids:
            self.console.print(f"[dim]{escape(ids)}[/dim]")


class JsonDisplay(StreamDisplay):
    """Outputs each projected part as a JSON line for machine consumption."""

    def on_part(self, part: StreamPart) -> None:
        projected = project_part(part, "v2")
        if projected is not None:
            print(json.dumps(projected, default=str), flush=True)

    def show_result(self, result: GenerateResult) -> None:
        print(json.dumps(project_result(result, "v2"), default=str), flush=True)


def create_display(format: str = "verbose", console: Console | None = None) -> StreamDisplay:
    """
    Factory function to create appropriate display.

    Args:
        format: Display format ("verbose", "compact", or "json")

    Returns:
        StreamDisplay instance
    """
    if format == "compact":
        return CompactDisplay(console)
    elif format == "json":
        return JsonDisplay(console)
    else:  # "verbose" is default
        return VerboseDisplay(console)

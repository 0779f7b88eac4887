"""
Main CLI entry point for dify_ai.

    dify-ai chat "What is Dify?" --user alice
    dify-ai run "Summarize this" --input language=en --format json
"""

import argparse
import logging
import sys

from dify_ai import __version__

from .._exceptions import DifyError
from ..client import Dify
from ..models import DifyChatSettings, DifyCompletionSettings, DifyModel
from .display import StreamDisplay, create_display
from .util import graceful_main, parse_inputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dify-ai",
        description="Talk to a Dify chat or workflow app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--api-key", help="Dify app API key (or set DIFY_API_KEY)")
    parser.add_argument("--base-url", help="Dify API base URL (or set DIFY_BASE_URL)")
    parser.add_argument("--debug", action="store_true", help="Log requests and skipped events")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    chat = subparsers.add_parser("chat", help="Send a message to a chat app")
    run = subparsers.add_parser("run", help="Run a workflow app with a query")

    for sub in (chat, run):
        sub.add_argument("prompt", help="Message sent as the query")
        sub.add_argument("--user", help="End-user identifier sent to Dify")
        sub.add_argument(
            "--input",
            action="append",
            metavar="KEY=VALUE",
            help="App input variable (repeatable)",
        )
        sub.add_argument("--blocking", action="store_true", help="Wait for the full answer")
        sub.add_argument(
            "--format",
            choices=["verbose", "compact", "json"],
            default="verbose",
            help="Output format (default: verbose)",
        )
    chat.add_argument("--conversation-id", help="Continue an existing conversation")
    return parser


def _build_model(args: argparse.Namespace) -> DifyModel:
    dify = Dify(api_key=args.api_key, base_url=args.base_url)
    inputs = parse_inputs(args.input)
    if args.command == "chat":
        return dify.chat(
            "chat", DifyChatSettings(inputs=inputs, conversation_id=args.conversation_id)
        )
    return dify.completion("workflow", DifyCompletionSettings(inputs=inputs))


def _run(model: DifyModel, args: argparse.Namespace, display: StreamDisplay) -> int:
    headers = {"user-id": args.user} if args.user else None
    if args.blocking:
        display.show_result(model.generate(args.prompt, headers=headers))
        return 0

    with model.stream(args.prompt, headers=headers) as stream:
        try:
            for part in stream:
                display.on_part(part)
        finally:
            display.finish()
    return 1 if stream.errors else 0


def _real_main(argv: list[str]) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        model = _build_model(args)
        return _run(model, args, create_display(args.format))
    except ValueError as e:
        print(f"❌ {e}")
        return 2
    except DifyError as e:
        print(f"❌ {e}")
        return 1


def main() -> None:
    """Main CLI entry point with graceful interrupt handling."""
    code = graceful_main(_real_main, sys.argv[1:])
    raise SystemExit(code)


if __name__ == "__main__":
    main()

"""CLI entry point for modelcurl.

Headless access to saved endpoints for scripting and terminal use. Same
registry, transport and telemetry as the Gradio UI.

Entry point:
    modelcurl-cli endpoints
    modelcurl-cli models --endpoint <name>
    modelcurl-cli test --endpoint <name>
    modelcurl-cli send --endpoint <name> --prompt <text> [--no-stream] [--json] [-o report.md]
    modelcurl-cli history [--clear]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from modelcurl.adapters import HttpTransport
from modelcurl.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    Endpoint,
    GenerationRequest,
    ReasoningConfig,
    ReasoningEffort,
)
from modelcurl.core import ModelCurlError
from modelcurl.export import format_metrics_lines, generate_json_report, generate_markdown_report, save_report
from modelcurl.parsers import build_messages
from modelcurl.provider import ReasoningProvider, detect_provider
from modelcurl.registry import EndpointRegistry
from modelcurl.session import RequestSession
from modelcurl.storage import JsonEndpointStore, JsonHistoryStore

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# ARGUMENT PARSING
# ─────────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelcurl-cli",
        description="Send prompts to saved chat-completion endpoints.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("endpoints", help="List saved endpoints")

    models_p = sub.add_parser("models", help="List models served by an endpoint")
    models_p.add_argument("--endpoint", "-e", default=None, help="Endpoint name (default: first)")

    test_p = sub.add_parser("test", help="Test connectivity to an endpoint")
    test_p.add_argument("--endpoint", "-e", default=None, help="Endpoint name (default: first)")

    send_p = sub.add_parser("send", help="Send a prompt and print response + metrics")
    send_p.add_argument("--endpoint", "-e", default=None, help="Endpoint name (default: first)")
    send_p.add_argument("--prompt", "-p", required=True, help="User message")
    send_p.add_argument("--system", default="", help="System message")
    send_p.add_argument("--model", default=None, help="Override the endpoint's model")
    send_p.add_argument("--temperature", type=float, default=DEFAULT_TEMPERATURE)
    send_p.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS)
    send_p.add_argument("--no-stream", action="store_true", help="Use a unary request")
    send_p.add_argument("--thinking", action="store_true", help="Enable thinking mode")
    send_p.add_argument(
        "--effort", choices=[e.value for e in ReasoningEffort], default=None,
        help="Reasoning effort (OpenAI reasoning models)",
    )
    send_p.add_argument("--max-completion-tokens", type=int, default=None)
    send_p.add_argument("--budget", type=int, default=None, help="Thinking budget tokens")
    send_p.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Print a JSON report instead of streaming text",
    )
    send_p.add_argument("-o", "--output", default=None, help="Write a report (.md or .json)")

    history_p = sub.add_parser("history", help="Show request history")
    history_p.add_argument("--clear", action="store_true", help="Delete all history")

    return parser


# ─────────────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────────────


async def _resolve_endpoint(registry: EndpointRegistry, name: Optional[str]) -> Endpoint:
    await registry.load()
    if name is None:
        endpoint = registry.selected
    else:
        endpoint = registry.find_by_name(name)
    if endpoint is None:
        raise ModelCurlError(
            f"No endpoint named '{name}'" if name else "No endpoints saved"
        )
    return endpoint


async def _cmd_endpoints(registry: EndpointRegistry) -> int:
    endpoints = await registry.load()
    if not endpoints:
        print("No endpoints saved.", file=sys.stderr)
        return 0
    for endpoint in endpoints:
        print(f"{endpoint.name}\t{endpoint.url}\t{endpoint.model}")
    return 0


async def _cmd_models(registry: EndpointRegistry, transport: HttpTransport, name) -> int:
    endpoint = await _resolve_endpoint(registry, name)
    for model_id in await transport.get_available_models(endpoint):
        print(model_id)
    return 0


async def _cmd_test(registry: EndpointRegistry, transport: HttpTransport, name) -> int:
    endpoint = await _resolve_endpoint(registry, name)
    result = await transport.check_connection(endpoint)
    print(result.message, file=sys.stdout if result.success else sys.stderr)
    return 0 if result.success else 1


def _reasoning_from_args(model: str, args: argparse.Namespace) -> Optional[ReasoningConfig]:
    if detect_provider(model) is ReasoningProvider.NONE:
        return None
    return ReasoningConfig(
        enable_thinking=args.thinking,
        reasoning_effort=ReasoningEffort(args.effort) if args.effort else None,
        max_completion_tokens=args.max_completion_tokens,
        thinking_budget_tokens=args.budget,
    )


async def _cmd_send(
    registry: EndpointRegistry,
    session: RequestSession,
    args: argparse.Namespace,
) -> int:
    endpoint = await _resolve_endpoint(registry, args.endpoint)
    model = args.model or endpoint.model
    request = GenerationRequest(
        model=model,
        messages=build_messages(args.prompt, args.system),
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        stream=not args.no_stream,
        reasoning_config=_reasoning_from_args(model, args),
    )

    def echo(token: str) -> None:
        sys.stdout.write(token)
        sys.stdout.flush()

    live = request.stream and not args.json_output
    await session.send_request(endpoint, request, on_token=echo if live else None)

    if args.json_output:
        print(generate_json_report(
            endpoint, request, session.response, session.metrics, session.last_response
        ))
    else:
        if not live:
            sys.stdout.write(session.response)
        sys.stdout.write("\n")
        for line in format_metrics_lines(session.metrics):
            print(line, file=sys.stderr)

    if args.output:
        if args.output.lower().endswith(".json"):
            content = generate_json_report(
                endpoint, request, session.response, session.metrics, session.last_response
            )
        else:
            content = generate_markdown_report(
                endpoint, request, session.response, session.metrics, session.last_response
            )
        save_report(content, args.output)
        print(f"Report written to {args.output}", file=sys.stderr)

    if session.error:
        print(f"Error: {session.error}", file=sys.stderr)
        return 1
    return 0


def _cmd_history(history: JsonHistoryStore, clear: bool) -> int:
    if clear:
        history.clear_history()
        print("History cleared.", file=sys.stderr)
        return 0
    for item in history.get_request_history():
        print(json.dumps(item.model_dump(mode="json")))
    return 0


async def _dispatch(args: argparse.Namespace) -> int:
    registry = EndpointRegistry(JsonEndpointStore())
    transport = HttpTransport()
    history = JsonHistoryStore()

    if args.command == "endpoints":
        return await _cmd_endpoints(registry)
    if args.command == "models":
        return await _cmd_models(registry, transport, args.endpoint)
    if args.command == "test":
        return await _cmd_test(registry, transport, args.endpoint)
    if args.command == "send":
        session = RequestSession(transport, history=history)
        return await _cmd_send(registry, session, args)
    if args.command == "history":
        return _cmd_history(history, args.clear)
    return 2


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point. Returns exit code."""
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 2

    try:
        return asyncio.run(_dispatch(args))
    except ModelCurlError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

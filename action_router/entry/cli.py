"""
CLI Entry Adapter.

Responsibility:
- Load a registration mapping from ``module:attribute``
- Run one request through the ActionRouter and render the response
- Render router events while debugging
- NO intent parsing, NO action logic
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from action_router.config import RouterSettings
from action_router.orchestrator.router import ActionRouter
from action_router.registry.action_registry import ActionRegistry
from action_router.shared.errors import ActionExecutionError, InvalidEnvelope
from action_router.shared.models import RouterEvent

console = Console()

STAGE_STYLES = {
    "INIT": "blue",
    "INPUT": "green",
    "ACTIONS": "yellow",
    "AI_REQUEST": "magenta",
    "AI_RESPONSE": "cyan",
    "PARSING": "bright_cyan",
    "VALIDATION": "bold bright_cyan",
    "WARNING": "bold yellow",
    "EXECUTION": "red",
    "RESULT": "bold green",
    "ERROR": "bold red",
}


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.INFO if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_actions(target: str) -> Mapping[str, Any]:
    """Import ``module:attribute``; callables are called to build the mapping."""
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got '{target}'")
    module = importlib.import_module(module_name)
    actions = getattr(module, attribute)
    if callable(actions) and not isinstance(actions, Mapping):
        actions = actions()
    if not isinstance(actions, (Mapping, ActionRegistry)):
        raise ValueError(f"'{target}' is not a mapping of actions")
    return actions


class EventPrinter:
    """Subscriber that prints router events with a colour per stage."""

    def __init__(self, out: Console):
        self.out = out

    def __call__(self, event: RouterEvent) -> None:
        style = STAGE_STYLES.get(event.stage, "white")
        line = Text()
        line.append(f"[{event.timestamp.astimezone().strftime('%H:%M:%S')}] ", style="dim")
        line.append(f"[{event.stage}]", style=style)
        line.append(f" {event.message}")
        self.out.print(line)
        if event.payload:
            self.out.print(Text("  └─ " + json.dumps(event.payload, indent=2, ensure_ascii=False, default=str), style="dim"))


def render_actions(registry: ActionRegistry, out: Console) -> None:
    table = Table(title="Registered Actions", box=box.SIMPLE_HEAVY, header_style="bold cyan")
    table.add_column("Action", style="bold white")
    table.add_column("Description", style="white")
    table.add_column("Schema", style="dim")
    for name, definition in registry.catalog():
        table.add_row(name, definition.describe(), definition.schema.description())
    out.print(table)


def render_response(response: str, out: Console) -> None:
    out.print(Panel(Text(response, style="bold green"), title="✅ Response", border_style="green", box=box.ROUNDED))


def render_failure(error: ActionExecutionError, out: Console) -> None:
    out.print(Panel(
        Text(f"Error: {error}", style="bold red"),
        title=f"❌ Failed at {error.stage}",
        border_style="red",
        box=box.ROUNDED,
    ))
    if isinstance(error, InvalidEnvelope):
        out.print(Text(f"  Raw model output: {error.raw_text}", style="dim"))


async def run_once(args: argparse.Namespace, actions: Mapping[str, Any], out: Console) -> int:
    overrides: dict[str, Any] = {}
    if args.mock_response is not None:
        overrides["mock_chat_response"] = args.mock_response
    if args.language:
        overrides["language"] = args.language
    if args.model:
        overrides["model"] = args.model
    if args.debug:
        overrides["debug"] = True

    settings = RouterSettings.from_env()
    on_event = EventPrinter(out) if (args.debug or settings.debug) else None
    async with ActionRouter.from_settings(actions, settings, on_event=on_event, **overrides) as router:
        try:
            response = await router.run(args.text)
        except ActionExecutionError as e:
            render_failure(e, out)
            return 1
    render_response(response, out)
    return 0


def main(argv: Sequence[str] | None = None, out: Console | None = None) -> int:
    """Entrypoint with CLI args."""
    out = out or console
    parser = argparse.ArgumentParser(prog="action-router", description="Route natural-language requests to actions")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("actions", help="List registered actions")
    list_parser.add_argument("--actions", required=True, help="Registration mapping as module:attribute")

    run_parser = subparsers.add_parser("run", help="Route one request")
    run_parser.add_argument("text", help="User input")
    run_parser.add_argument("--actions", required=True, help="Registration mapping as module:attribute")
    run_parser.add_argument("--mock-response", default=None, help="Use this text instead of calling the model")
    run_parser.add_argument("--language", default=None, help="Language of the response text")
    run_parser.add_argument("--model", default=None, help="Model name")
    run_parser.add_argument("--debug", action="store_true", help="Print router events")

    args = parser.parse_args(argv)
    setup_logging(getattr(args, "debug", False))

    if args.command is None:
        parser.print_help()
        return 2

    try:
        actions = load_actions(args.actions)
    except (ImportError, AttributeError, ValueError) as e:
        out.print(f"[bold red]Failed to load actions:[/] {e}")
        return 2

    if args.command == "actions":
        registry = actions if isinstance(actions, ActionRegistry) else ActionRegistry(actions)
        render_actions(registry, out)
        return 0

    return asyncio.run(run_once(args, actions, out))

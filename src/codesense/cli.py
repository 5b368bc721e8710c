"""
Command-line interface for codesense.
"""

from __future__ import annotations

import argparse
import asyncio
import difflib
import json
import signal
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import yaml
from rich.console import Console
from rich.prompt import Confirm
from rich.syntax import Syntax

from codesense.config import AgentConfig, api_key_from_env
from codesense.errors import ConfigurationError
from codesense.events import AgentCallbacks, ToolCallEvent, ToolResultEvent
from codesense.logging import setup_logging
from codesense.sessions import SessionPool

console = Console()

T = TypeVar("T")

CHAT_SESSION = "cli"


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="AI code review and editing agent",
        prog="codesense",
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug logging)",
    )
    parser.add_argument("--provider", help="LLM provider (gemini, openai, anthropic)")
    parser.add_argument("--model", help="Model name (defaults to the provider's default)")
    parser.add_argument("--config", type=Path, help="YAML config file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    chat_parser = subparsers.add_parser("chat", help="Interactive chat about a project")
    chat_parser.add_argument("directory", nargs="?", default=".", help="Project directory")

    review_parser = subparsers.add_parser("review", help="Review a project and propose fixes")
    review_parser.add_argument("directory", nargs="?", default=".", help="Project directory")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command", help="Config commands")
    config_subparsers.add_parser("show", help="Show the effective configuration")
    config_init_parser = config_subparsers.add_parser("init", help="Write a config file")
    config_init_parser.add_argument(
        "-o",
        "--output",
        default="codesense.yaml",
        help="Output file path",
    )

    args = parser.parse_args()

    # Setup logging based on verbosity
    if getattr(args, "verbose", False):
        setup_logging("DEBUG")
    else:
        setup_logging("WARNING")

    if args.command is None:
        parser.print_help()
        return

    try:
        config = _load_config(args)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(2)

    if args.command == "chat":
        asyncio.run(cmd_chat(args, config))
    elif args.command == "review":
        asyncio.run(cmd_review(args, config))
    elif args.command == "config":
        cmd_config(args, config)


def _load_config(args: argparse.Namespace) -> AgentConfig:
    """Build the config from a YAML file or the environment, then apply flags."""
    overrides = {}
    if args.provider:
        overrides["provider"] = args.provider
    if args.model:
        overrides["model"] = args.model

    if not args.config:
        return AgentConfig.from_env(**overrides)

    data = AgentConfig.from_yaml(args.config).to_dict()
    data.update(overrides)
    if not data.get("api_key"):
        data["api_key"] = api_key_from_env(data["provider"])
    return AgentConfig.from_dict(data)


# ---------------------------------------------------------------------------
# Host capabilities
# ---------------------------------------------------------------------------


def show_diff(path: str, before: str, after: str) -> None:
    """Print a unified diff of a file the agent just rewrote."""
    name = Path(path).name
    diff = "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{name}",
            tofile=f"b/{name}",
        )
    )
    if not diff:
        return
    console.print(f"\n[bold]Changes to {path}[/bold]")
    console.print(Syntax(diff, "diff", theme="ansi_dark"))


def _print_tool_event(event: ToolCallEvent | ToolResultEvent) -> None:
    if isinstance(event, ToolCallEvent):
        args = json.dumps(event.args, ensure_ascii=False)
        if len(args) > 120:
            args = args[:117] + "..."
        console.print(f"[dim]🔧 {event.name} {args}[/dim]")
    elif "error" in event.response:
        console.print(f"[yellow]  ✗ {event.response['error']}[/yellow]")


def _print_done(reason: str, message: str) -> None:
    if reason == "aborted":
        console.print(f"[yellow]{message}[/yellow]")
    elif reason == "max_turns":
        console.print("[yellow]Stopped after reaching the turn limit.[/yellow]")
    elif reason == "declined":
        console.print("[dim]No changes applied.[/dim]")


def _print_error(kind: str, detail: str) -> None:
    hints = {
        "network": "Check your internet connection.",
        "auth": "Check your API key.",
        "state": "The conversation was reset.",
        "config": "Check the provider and model settings.",
    }
    console.print(f"[red]Error ({kind}):[/red] {detail}")
    if kind in hints:
        console.print(f"[dim]{hints[kind]}[/dim]")


def _callbacks() -> AgentCallbacks:
    return AgentCallbacks(
        on_text=lambda text: console.print(f"\n[bold green]🤖[/bold green] {text}\n"),
        on_tool_event=_print_tool_event,
        on_done=_print_done,
        on_error=_print_error,
    )


async def _interruptible(run: Awaitable[T], on_interrupt: Callable[[], object]) -> T:
    """Await ``run`` with Ctrl-C mapped to ``on_interrupt`` instead of exiting."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, on_interrupt)
        installed = True
    except NotImplementedError:
        # Windows event loops have no signal handlers
        installed = False
    try:
        return await run
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_chat(args: argparse.Namespace, config: AgentConfig) -> None:
    """Interactive chat loop over one session."""
    directory = str(Path(args.directory).resolve())
    pool = SessionPool(config=config, notify_modified=show_diff)

    console.print(f"[bold]codesense[/bold] [dim]({config.provider}) in {directory}[/dim]")
    console.print("[dim]Ctrl-C stops a reply. Commands: /reset, /exit[/dim]\n")

    while True:
        try:
            text = console.input("[bold cyan]you>[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            return

        if not text:
            continue
        if text in ("/exit", "/quit"):
            return
        if text == "/reset":
            pool.reset(CHAT_SESSION)
            console.print("[dim]Conversation cleared.[/dim]")
            continue

        with console.status("[dim]Thinking...[/dim]"):
            await _interruptible(
                pool.submit(CHAT_SESSION, text, directory, _callbacks()),
                lambda: pool.cancel(CHAT_SESSION),
            )


async def cmd_review(args: argparse.Namespace, config: AgentConfig) -> None:
    """Single-shot review of a project directory."""
    directory = str(Path(args.directory).resolve())
    pool = SessionPool(config=config, notify_modified=show_diff)
    session_id = f"review:{directory}"

    def ask(question: str) -> bool:
        return Confirm.ask("[bold]Apply these fixes?[/bold]", console=console)

    console.print(f"[bold]Reviewing[/bold] {directory}\n")
    result = await _interruptible(
        pool.review(directory, ask, _callbacks(), session_id=session_id),
        lambda: pool.cancel(session_id),
    )
    if result is None:
        sys.exit(1)
    if result.finish_reason == "complete":
        console.print("[green]✓ Review complete.[/green]")


def cmd_config(args: argparse.Namespace, config: AgentConfig) -> None:
    """Configuration management commands."""
    if args.config_command == "show":
        data = config.to_dict()
        if data.get("api_key"):
            data["api_key"] = "***"
        console.print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif args.config_command == "init":
        output_path = Path(args.output)
        if output_path.exists():
            console.print(f"[red]File already exists: {output_path}[/red]")
            sys.exit(1)
        data = AgentConfig(provider=config.provider).to_dict()
        data.pop("api_key")
        with open(output_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        console.print(f"[green]Created config file: {output_path}[/green]")
    else:
        console.print("[yellow]Usage: codesense config <show|init>[/yellow]")


if __name__ == "__main__":
    main()

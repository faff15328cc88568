"""
Codeloop - Conversational Coding Assistant
Command-line host

Entry point for the interactive agent. Starts a new session or resumes a
saved one, then runs a read-eval loop in the terminal.

Usage:
    python app.py chat                    # new session
    python app.py chat --latest           # resume the most recent session
    python app.py chat --resume <run_id>  # resume a specific session
    python app.py chat --sequential       # run tool calls one at a time
    python app.py sessions                # list saved sessions
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ai import GeminiProvider
from config import GEMINI_MODEL, LOG_LEVEL
from core import Message, ToolCallRecord, ToolObserver
from services import (
    ChatService,
    Presenter,
    SessionNotFoundError,
    SessionSnapshot,
    SessionStore,
    new_session,
    resume_session,
)
from tools import execute_tool

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = typer.Typer(help="Codeloop - conversational coding assistant", add_completion=False)
console = Console()

EXIT_COMMANDS = ("/exit", "/quit", "exit", "quit")

HELP_TEXT = """Built-in commands:
  /help   Show this help
  /clear  Forget the conversation (the session id is kept)
  /exit   Leave the session"""


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

class ConsoleToolObserver(ToolObserver):
    """Prints one line per tool call as it starts and finishes."""

    def on_tool_start(self, tool_id: str, name: str, tool_input: Dict[str, Any]) -> None:
        args = ", ".join(f"{k}={str(v)[:40]!r}" for k, v in tool_input.items())
        console.print(f"[cyan]▶ {name}[/cyan]([dim]{args}[/dim])")

    def on_tool_complete(
        self,
        tool_id: str,
        name: str,
        tool_input: Dict[str, Any],
        result: str,
        error: bool,
    ) -> None:
        if error:
            console.print(f"[red]✗ {name}[/red] [dim]{result.splitlines()[0] if result else ''}[/dim]")
        else:
            console.print(f"[green]✓ {name}[/green]")


class ConsolePresenter(Presenter):
    """Shows the latest assistant text after each turn."""

    def render(self, conversation: List[Message], tool_calls: List[ToolCallRecord]) -> None:
        last = conversation[-1] if conversation else None
        if last is None or last.role.value != "assistant" or not isinstance(last.content, str):
            return
        console.print()
        console.print(Panel(Markdown(last.content), title="Assistant", border_style="green"))
        console.print()


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def start_session(
    store: SessionStore,
    resume: Optional[str] = None,
    latest: bool = False,
    working_dir: Optional[str] = None,
    model: str = GEMINI_MODEL,
) -> SessionSnapshot:
    """
    Create or resume the session for this process.

    A new session is written to disk after its first turn.

    Raises:
        SessionNotFoundError: A resume was requested but nothing matched
    """
    if resume or latest:
        return resume_session(store, resume)

    return new_session(working_dir=working_dir or os.getcwd(), model=model)


def handle_builtin(command: str, service: ChatService) -> bool:
    """
    Run a built-in slash command.

    Returns:
        True if the input was a built-in command
    """
    name = command.strip().lower()

    if name == "/help":
        console.print(HELP_TEXT)
        return True
    if name == "/clear":
        service.clear()
        console.print("[dim]Conversation cleared.[/dim]")
        return True
    return False


def _format_created_at(created_at: Any) -> str:
    try:
        return datetime.fromtimestamp(float(created_at) / 1000).strftime("%Y-%m-%d %H:%M:%S")
    except (TypeError, ValueError, OverflowError, OSError):
        return "unknown"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def chat(
    resume: Optional[str] = typer.Option(
        None, "--resume", "-r",
        help="Resume the session with this run id.",
    ),
    latest: bool = typer.Option(
        False, "--latest", "-l",
        help="Resume the most recently created session.",
    ),
    sequential: bool = typer.Option(
        False, "--sequential",
        help="Run tool calls one at a time instead of in parallel.",
    ),
):
    """Interactive chat session with the coding assistant."""
    store = SessionStore()

    try:
        session = start_session(store, resume=resume, latest=latest)
    except SessionNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    try:
        provider = GeminiProvider()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    service = ChatService.create(
        provider=provider,
        tool_executor=execute_tool,
        store=store,
        session=session,
        presenter=ConsolePresenter(),
        observer=ConsoleToolObserver(),
        parallel_tools=False if sequential else None,
    )

    async def _run():
        console.print(Panel(
            "[bold]Codeloop[/bold]\n"
            f"{session.working_dir}\n"
            "Type [bold]/help[/bold] for commands, [bold]/exit[/bold] to stop.",
            subtitle=f"[dim]run: {session.run_id}  |  model: {session.model}[/dim]",
            border_style="cyan",
        ))
        if session.conversation:
            console.print(f"[dim]Resumed {len(session.conversation)} messages.[/dim]\n")

        while True:
            try:
                query = Prompt.ask("[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if query.strip().lower() in EXIT_COMMANDS:
                console.print("[dim]Goodbye![/dim]")
                break
            if not query.strip():
                continue
            if handle_builtin(query, service):
                continue

            response = await service.process_message(query)
            if response.error:
                console.print(f"[red]{response.text}[/red]")

    asyncio.run(_run())


@app.command()
def sessions():
    """List saved sessions, newest first."""
    store = SessionStore()
    snapshots = [s for s in (store.load(run_id) for run_id in store.list()) if s is not None]

    if not snapshots:
        console.print("[dim]No saved sessions.[/dim]")
        return

    snapshots.sort(key=lambda s: s.created_at if isinstance(s.created_at, (int, float)) else -1, reverse=True)

    table = Table(box=box.SIMPLE)
    table.add_column("Run id")
    table.add_column("Created")
    table.add_column("Messages", justify="right")
    table.add_column("Working dir")
    for snapshot in snapshots:
        table.add_row(
            snapshot.run_id,
            _format_created_at(snapshot.created_at),
            str(len(snapshot.conversation)),
            snapshot.working_dir,
        )
    console.print(table)


if __name__ == "__main__":
    app()

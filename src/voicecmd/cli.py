"""Command line entry points."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from prompt_toolkit import PromptSession
from rich.console import Console
from rich.table import Table

from voicecmd.audit import AuditLog
from voicecmd.config import Settings, ensure_workspace, get_settings
from voicecmd.core.executor import CommandExecutor
from voicecmd.core.policy import CommandPolicy
from voicecmd.errors import ConfigurationError
from voicecmd.logging_utils import configure_logging
from voicecmd.types import ExecutionResult

EXIT_WORDS = {"quit", "exit", "q"}

app = typer.Typer(
    name="voicecmd",
    help="Sandboxed voice/text command console.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _load(workspace: Path | None) -> tuple[Settings, CommandExecutor]:
    settings = get_settings(workspace)
    try:
        ensure_workspace(settings)
    except ConfigurationError as exc:
        console.print(f"[bold red]Error:[/bold red] workspace is not usable: {exc!s}")
        raise typer.Exit(2) from exc
    return settings, CommandExecutor.from_settings(settings)


def render_result(result: ExecutionResult) -> None:
    if result.success:
        style = "green"
    elif result.blocked:
        style = "yellow"
    else:
        style = "red"
    header = f"[bold {style}]{result.action}[/bold {style}]"
    if result.error_code is not None:
        header += f" [dim]({result.error_code.value})[/dim]"
    console.print(header)
    console.print(result.result_text, markup=False, highlight=False)


@app.command()
def run(
    command: str = typer.Argument(..., help="Command text, e.g. 'create file notes.txt'"),
    workspace: Path | None = typer.Option(None, "--workspace", "-w", help="Sandbox root"),  # noqa: B008
    as_json: bool = typer.Option(False, "--json", help="Print the raw result payload"),
) -> None:
    """Execute one command and print its result."""

    configure_logging()
    _, executor = _load(workspace)
    result = asyncio.run(executor.execute(command))
    if as_json:
        console.print_json(data=result.to_dict())
    else:
        render_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def chat(
    workspace: Path | None = typer.Option(None, "--workspace", "-w", help="Sandbox root"),  # noqa: B008
) -> None:
    """Interactive loop; type 'quit' to leave."""

    configure_logging(profile="chat")
    settings, executor = _load(workspace)
    console.print(f"[bold]Working directory:[/bold] [cyan]{settings.workspace}[/cyan]")
    session: PromptSession[str] = PromptSession()

    async def _loop() -> None:
        while True:
            try:
                text = await session.prompt_async("voicecmd> ")
            except (EOFError, KeyboardInterrupt):
                return
            if not text.strip():
                continue
            if text.strip().lower() in EXIT_WORDS:
                return
            render_result(await executor.execute(text))

    asyncio.run(_loop())


@app.command()
def policy() -> None:
    """Show allowed commands and blocked fragments."""

    current = CommandPolicy()
    table = Table(title="Shell policy")
    table.add_column("Allowed commands", style="green")
    table.add_column("Blocked fragments", style="red")
    allowed = current.allowed_commands()
    blocked = current.blocked_fragments()
    for index in range(max(len(allowed), len(blocked))):
        table.add_row(
            allowed[index] if index < len(allowed) else "",
            blocked[index] if index < len(blocked) else "",
        )
    console.print(table)


@app.command()
def stats(
    workspace: Path | None = typer.Option(None, "--workspace", "-w", help="Sandbox root"),  # noqa: B008
) -> None:
    """Show security audit statistics."""

    settings = get_settings(workspace)
    summary = AuditLog(settings.audit_log_file).stats()
    console.print(f"Total commands: {summary.total}")
    console.print(f"Successful: {summary.successful}")
    console.print(f"Blocked: {summary.blocked}")
    console.print(f"Errors: {summary.errors}")
    console.print(f"Last activity: {summary.last_activity or '-'}")


@app.command()
def hooks(
    workspace: Path | None = typer.Option(None, "--workspace", "-w", help="Sandbox root"),  # noqa: B008
) -> None:
    """Show hook implementation mapping."""

    _, executor = _load(workspace)
    report = executor.hooks.hook_report()
    if not report:
        typer.echo("(no hook implementations)")
        return
    for hook_name, adapter_names in report.items():
        typer.echo(f"{hook_name}: {', '.join(adapter_names)}")

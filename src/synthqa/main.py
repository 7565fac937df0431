"""
SynthQA - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--browser, --visible, etc.)
    2. Environment variables (SYNTHQA__BROWSER__ENGINE, etc.)
    3. Config file (synthqa.yaml)

Usage:
    synthqa run login.spec.ts --visible
    synthqa parse login.spec.ts
    synthqa export recording.json -o login.spec.ts
    synthqa serve --port 8000
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from synthqa import __version__
from synthqa.config import load_config
from synthqa.config.settings import Settings
from synthqa.exceptions import SynthQAError
from synthqa.execution.session_manager import ExecutionSessionManager
from synthqa.models.actions import Recording
from synthqa.models.execution import ExecutionSession, ExecutionStatus, StepStatus
from synthqa.models.steps import Step
from synthqa.script.generator import ScriptGenerator
from synthqa.script.parser import parse_script
from synthqa.storage.artifacts import LocalArtifactStore
from synthqa.storage.memory import InMemoryExecutionStore, InMemoryScriptStore
from synthqa.utils.logging import setup_logging

app = typer.Typer(
    name="synthqa",
    help="Record, parse and execute browser test scripts",
    add_completion=False,
)

console = Console()


def _load_settings(config: Optional[str], verbose: bool) -> Settings:
    try:
        settings = load_config(config_path=config)
    except SynthQAError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=2)
    level = "DEBUG" if verbose else settings.logging.level
    setup_logging(level=level, log_file=settings.logging.file, json_format=settings.logging.json_format)
    return settings


def _read_script(file_path: str) -> str:
    path = Path(file_path)
    if not path.exists():
        console.print(f"[red]✗ File not found: {file_path}[/red]")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


def _build_manager(settings: Settings) -> ExecutionSessionManager:
    """Manager for a one-off local run; records stay in memory."""
    artifacts = LocalArtifactStore(Path(settings.execution.output_dir) / "artifacts", settings.execution.public_base_url)
    return ExecutionSessionManager(InMemoryExecutionStore(), InMemoryScriptStore(), artifacts, settings)


def _steps_table(steps: List[Step]) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", style="dim", width=3)
    table.add_column("Action")
    table.add_column("Description")
    table.add_column("Target", overflow="fold")
    for number, step in enumerate(steps, start=1):
        target = step.selector or step.value or step.command or ""
        table.add_row(str(number), step.action.value, step.description, target)
    return table


def _results_table(session: ExecutionSession) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", style="dim", width=3)
    table.add_column("Status")
    table.add_column("Description")
    table.add_column("Duration", justify="right")
    table.add_column("Error", overflow="fold")
    for result in session.step_results:
        status = "[green]✓ passed[/green]" if result.status == StepStatus.PASSED else "[red]✗ failed[/red]"
        table.add_row(
            str(result.step_number),
            status,
            result.description,
            f"{result.duration_ms}ms",
            result.error_message or "",
        )
    return table


@app.command()
def run(
    file_path: str = typer.Argument(..., help="Path to a test script"),
    browser: Optional[str] = typer.Option(None, "--browser", "-b", help="Browser: chromium, firefox, webkit"),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Execute a script file against a real browser.

    Examples:
        synthqa run login.spec.ts
        synthqa run login.spec.ts --browser firefox --visible
    """
    settings = _load_settings(config, verbose)
    steps = parse_script(_read_script(file_path))

    if not steps:
        console.print(f"[yellow]⚠ No executable steps found in {file_path}[/yellow]")
        raise typer.Exit(code=1)

    if browser and browser not in ("chromium", "firefox", "webkit"):
        console.print(f"[red]✗ Unknown browser: {browser}[/red]")
        raise typer.Exit(code=2)

    console.print(Panel.fit(
        f"[bold]Script:[/bold] {file_path}\n"
        f"[bold]Steps:[/bold] {len(steps)}\n"
        f"[bold]Browser:[/bold] {browser or settings.browser.engine}"
        f"{' (visible)' if visible else ''}",
        title="SynthQA",
    ))
    console.print(_steps_table(steps))
    console.print()

    manager = _build_manager(settings)
    try:
        session = asyncio.run(manager.run_steps(
            steps,
            browser=browser,
            headless=False if visible else None,
        ))
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")
        raise typer.Exit(code=130)

    console.print(_results_table(session))
    console.print()

    if session.status == ExecutionStatus.PASSED:
        console.print(Panel.fit(
            f"[green]✓ Passed[/green] {session.passed_steps}/{session.total_steps} steps "
            f"in {session.duration_ms}ms",
            border_style="green",
        ))
    else:
        console.print(Panel.fit(
            f"[red]✗ Failed[/red] {session.passed_steps}/{session.total_steps} steps passed\n"
            f"Error: {session.error_message}",
            border_style="red",
        ))
    if session.video_url:
        console.print(f"[dim]Video: {session.video_url}[/dim]")

    raise typer.Exit(code=0 if session.status == ExecutionStatus.PASSED else 1)


@app.command()
def parse(
    file_path: str = typer.Argument(..., help="Path to a test script"),
    as_json: bool = typer.Option(False, "--json", help="Print steps as JSON"),
):
    """Show the steps a script parses into, without running it."""
    steps = parse_script(_read_script(file_path))

    if as_json:
        console.print_json(json.dumps([step.model_dump(mode="json", exclude_none=True) for step in steps]))
        return

    if not steps:
        console.print(f"[yellow]⚠ No executable steps found in {file_path}[/yellow]")
        return
    console.print(_steps_table(steps))


@app.command()
def export(
    recording_path: str = typer.Argument(..., help="Path to a recording (JSON)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the script to this file"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Test name"),
):
    """Convert a recording into a test script."""
    path = Path(recording_path)
    if not path.exists():
        console.print(f"[red]✗ File not found: {recording_path}[/red]")
        raise typer.Exit(code=1)

    try:
        recording = Recording.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]✗ Invalid recording: {e.error_count()} error(s)[/red]")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(code=1)

    script = ScriptGenerator(test_name=name).generate(recording)
    if output:
        Path(output).write_text(script, encoding="utf-8")
        console.print(f"[green]✓ Wrote {len(recording.actions)} steps to {output}[/green]")
    else:
        typer.echo(script, nl=False)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind to"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """Start the HTTP API."""
    settings = _load_settings(config, verbose)

    from synthqa.api.server import run_server

    console.print(Panel.fit(
        f"[bold]SynthQA API[/bold]\n"
        f"http://{host or settings.server.host}:{port or settings.server.port}\n"
        f"[dim]Store: {settings.execution.store} ({settings.execution.output_dir})[/dim]",
        border_style="cyan",
    ))
    try:
        run_server(settings, host=host, port=port)
    except KeyboardInterrupt:
        console.print("\n[dim]Shutting down...[/dim]")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]SynthQA[/bold] v{__version__}")


if __name__ == "__main__":
    app()

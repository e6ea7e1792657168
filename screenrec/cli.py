"CLI layer: Typer commands for start, stop, status, config."

import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import click
import typer
from rich.console import Console

from . import config as config_module
from .errors import ScreenrecError
from .launcher import SessionLauncher, StartOptions
from .logs import setup_logging

app = typer.Typer(help="ScreenRec: record the desktop with ffmpeg and stop it from another terminal")
console = Console()

EXIT_FAILURE = 1


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@app.callback()
def cli(
    ctx: typer.Context,
    log_level: LogLevel = typer.Option(LogLevel.WARNING, "--log-level", help="Set logging level"),
):
    """Record the desktop in the foreground or background."""
    setup_logging(log_level.value)
    ctx.obj = {"log_level": log_level.value}


def _launcher(ctx, path, settings):
    directory = Path(path if path is not None else settings["path"])
    log_level = ctx.obj.get("log_level") if ctx.obj else None
    return SessionLauncher(directory, settings=settings, console=console, log_level=log_level)


@app.command()
def start(
    ctx: typer.Context,
    fps: Optional[int] = typer.Option(None, "-fps", "--fps", min=1, help="Capture frame rate (default: from config or 15)"),
    duration: int = typer.Option(0, "-duration", "--duration", min=0, help="Stop after N seconds (0 = until stopped)"),
    output: Optional[str] = typer.Option(None, "-output", "--output", help="Output file (default: from config or screen.mp4)"),
    background: bool = typer.Option(False, "-bg", "--bg", help="Run detached in the background"),
    path: Optional[str] = typer.Option(None, "--path", help="Directory for the PID and kill files (default: .)"),
):
    """Start a recording session."""
    settings = config_module.load_config()
    options = StartOptions(
        output=output if output is not None else settings["output"],
        fps=fps if fps is not None else settings["fps"],
        duration=duration,
        background=background,
        path=path if path is not None else settings["path"],
    )
    launcher = _launcher(ctx, options.path, settings)

    try:
        launcher.start(options)
    except ScreenrecError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(EXIT_FAILURE)

    if not background:
        console.print(f"[green]✅ Recording finished: {options.output}[/green]")


@app.command()
def stop(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(None, "--path", help="Directory for the PID and kill files (default: .)"),
    force: bool = typer.Option(False, "--force", help="Clear the session record if the recorder is no longer running"),
):
    """Ask the active recording session to stop."""
    settings = config_module.load_config()
    launcher = _launcher(ctx, path, settings)

    try:
        requested = launcher.stop(force=force)
    except ScreenrecError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(EXIT_FAILURE)

    if requested:
        console.print("[green]Kill file created; the recording process will shut down gracefully shortly.[/green]")
    else:
        console.print("[yellow]⚠ Recorder already dead, cleared stale session record[/yellow]")


@app.command()
def status(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(None, "--path", help="Directory for the PID and kill files (default: .)"),
):
    """Show whether a recording session is active."""
    settings = config_module.load_config()
    result = _launcher(ctx, path, settings).status()
    if result is None:
        console.print("No active session")
        return
    pid, alive = result
    if alive:
        console.print(f"[green]Recording (PID={pid})[/green]")
    else:
        console.print(f"[yellow]Stale session record (PID={pid} is not running)[/yellow]")


@app.command()
def config(
    key: str = typer.Argument(..., help="Config key: " + ", ".join(config_module.DEFAULTS)),
    value: str = typer.Argument(None, help="Value to set (omit to get current value)"),
):
    """Get or set configuration values."""
    if key not in config_module.DEFAULTS:
        console.print(f"[red]❌ Invalid key: {key}. Use one of: {', '.join(config_module.DEFAULTS)}[/red]")
        raise typer.Exit(EXIT_FAILURE)

    if value is None:
        settings = config_module.load_config()
        console.print(f"{key}: {settings[key]}")
        return

    try:
        stored = config_module.write_config_value(key, value)
    except ValueError:
        console.print(f"[red]❌ Invalid value for {key}: {value}[/red]")
        raise typer.Exit(EXIT_FAILURE)
    except OSError as e:
        console.print(f"[red]❌ Could not save config: {e}[/red]")
        raise typer.Exit(EXIT_FAILURE)
    console.print(f"[green]✅ Set {key} to {stored}[/green]")


def main(args=None):
    """Console entry point. Every failure, usage errors included, exits with status 1."""
    try:
        rv = app(args=args, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(EXIT_FAILURE)
    except click.Abort:
        console.print("[red]Aborted![/red]")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        console.print(f"[red]❌ Unexpected error: {e}[/red]")
        sys.exit(EXIT_FAILURE)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()

"""zlaunch CLI entrypoint.

Running `zlaunch` with no subcommand starts the daemon in the foreground.
Every other command is a thin client that sends one request over the
control socket and prints the reply.
"""

from __future__ import annotations

import functools
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from zlaunch.adapters.daemon.client import (
    DaemonClient,
    DaemonError,
    DaemonNotRunningError,
    DaemonRequestError,
)
from zlaunch.core.errors import (
    ExitCode,
    ZlaunchCliError,
    daemon_not_running_error,
    exit_code_for_reply,
)
from zlaunch.domain.exceptions import ValidationError, ZlaunchDomainError
from zlaunch.version import __version__


def handle_cli_errors(command_name: str):
    """Decorator mapping daemon and domain errors to ZlaunchCliError.

    ZlaunchCliError and click exceptions pass through untouched so they keep
    their own formatting and exit codes.

    Args:
        command_name: Name of the command for error messages.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (ZlaunchCliError, click.exceptions.Exit, click.Abort, click.UsageError):
                raise
            except DaemonNotRunningError:
                daemon_not_running_error()
            except DaemonRequestError as e:
                raise ZlaunchCliError(e.message, exit_code=exit_code_for_reply(e.code)) from e
            except DaemonError as e:
                raise ZlaunchCliError(
                    str(e), hint="Check the daemon log with --verbose for details"
                ) from e
            except ValidationError as e:
                raise ZlaunchCliError(e.message, hint=e.hint, exit_code=ExitCode.VALIDATION) from e
            except ZlaunchDomainError as e:
                raise ZlaunchCliError(e.message, hint=e.hint) from e
            except RuntimeError as e:
                raise ZlaunchCliError(str(e), hint="Run with --verbose for more details") from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise ZlaunchCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _client(ctx: click.Context) -> DaemonClient:
    return DaemonClient(socket_path=ctx.obj.get("socket"))


def _call(ctx: click.Context, command: str, args: dict[str, Any] | None = None) -> Any:
    return _client(ctx).call(command, args or {})


def _modes_option(modes: tuple[str, ...]) -> list[str] | None:
    names = [part.strip() for item in modes for part in item.split(",") if part.strip()]
    return names or None


def _echo(ctx: click.Context, message: str) -> None:
    if not ctx.obj.get("quiet", False):
        click.echo(message)


def _describe_snapshot(snapshot: dict[str, Any]) -> str:
    if not snapshot.get("visible"):
        return "Launcher hidden"
    cycle = ", ".join(snapshot.get("cycle", []))
    return f"Launcher visible: {snapshot.get('mode')} (modes: {cycle})"


def _run_foreground(ctx: click.Context) -> None:
    from zlaunch.adapters.daemon.runtime import run_daemon, setup_logging

    if ctx.obj.get("verbose"):
        level = "DEBUG"
    elif ctx.obj.get("quiet"):
        level = "WARNING"
    else:
        level = "INFO"
    setup_logging(level)
    code = run_daemon(socket_path=ctx.obj.get("socket"), config_path=ctx.obj.get("config"))
    ctx.exit(code)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="zlaunch")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option(
    "--socket",
    type=click.Path(path_type=Path),
    envvar="ZLAUNCH_SOCKET",
    default=None,
    help="Control socket path (default: $XDG_RUNTIME_DIR/zlaunch.sock).",
)
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file used when starting the daemon.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    socket: Path | None,
    config: Path | None,
) -> None:
    """zlaunch - application launcher daemon.

    Run without a command to start the daemon in the foreground.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["socket"] = socket
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        _run_foreground(ctx)


# ----------------------------------------------------------------------
# Session commands
# ----------------------------------------------------------------------


@cli.command()
@click.option("--modes", "-m", multiple=True, help="Modes to show, e.g. apps,windows.")
@click.pass_context
@handle_cli_errors("show")
def show(ctx: click.Context, modes: tuple[str, ...]) -> None:
    """Show the launcher."""
    snapshot = _call(ctx, "show", {"modes": _modes_option(modes)})
    _echo(ctx, _describe_snapshot(snapshot))


@cli.command()
@click.pass_context
@handle_cli_errors("hide")
def hide(ctx: click.Context) -> None:
    """Hide the launcher."""
    snapshot = _call(ctx, "hide")
    _echo(ctx, _describe_snapshot(snapshot))


@cli.command()
@click.option("--modes", "-m", multiple=True, help="Modes to show when opening.")
@click.pass_context
@handle_cli_errors("toggle")
def toggle(ctx: click.Context, modes: tuple[str, ...]) -> None:
    """Toggle launcher visibility."""
    snapshot = _call(ctx, "toggle", {"modes": _modes_option(modes)})
    _echo(ctx, _describe_snapshot(snapshot))


@cli.command()
@click.pass_context
@handle_cli_errors("quit")
def quit(ctx: click.Context) -> None:
    """Shut the daemon down."""
    _call(ctx, "quit")
    _echo(ctx, "Daemon is shutting down...")


@cli.command()
@click.pass_context
@handle_cli_errors("reload")
def reload(ctx: click.Context) -> None:
    """Reload the daemon configuration."""
    _call(ctx, "reload")
    _echo(ctx, "Daemon is reloading...")


# ----------------------------------------------------------------------
# Themes
# ----------------------------------------------------------------------


@cli.group(invoke_without_command=True)
@click.pass_context
@handle_cli_errors("theme")
def theme(ctx: click.Context) -> None:
    """Show or change the active theme."""
    if ctx.invoked_subcommand is None:
        name = _call(ctx, "theme", {"action": "get"})
        click.echo(f"Current theme: {name}")


@theme.command(name="list")
@click.pass_context
@handle_cli_errors("theme list")
def theme_list(ctx: click.Context) -> None:
    """List available themes."""
    themes = _call(ctx, "theme", {"action": "list"})
    click.echo("Available themes:")
    for item in themes:
        origin = "bundled" if item.get("is_bundled") else "user"
        click.echo(f"  {item['name']} ({origin})")


@theme.command(name="set")
@click.argument("name")
@click.pass_context
@handle_cli_errors("theme set")
def theme_set(ctx: click.Context, name: str) -> None:
    """Switch to theme NAME."""
    _call(ctx, "theme", {"action": "set", "name": name})
    click.echo(f"Theme set to '{name}'")


# ----------------------------------------------------------------------
# Inspection
# ----------------------------------------------------------------------


@cli.command()
@click.pass_context
@handle_cli_errors("status")
def status(ctx: click.Context) -> None:
    """Show session and module status."""
    info = _call(ctx, "status")
    console = Console()

    console.print(f"[green]✓[/green] Daemon is running (PID {info.get('pid')})")
    console.print(f"  Compositor: {info.get('compositor')}")
    console.print(f"  Theme: {info.get('theme')}")
    console.print(f"  {_describe_snapshot(info.get('session', {}))}")
    console.print(f"  Clipboard items: {info.get('clipboard_items', 0)}")

    table = Table(title="Modules", show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Generation", justify="right")
    table.add_column("Policy")
    table.add_column("State")
    for module in info.get("modules", []):
        if module.get("error"):
            state = f"[red]failed: {module['error']}[/red]"
        elif module.get("stale"):
            state = "[yellow]stale[/yellow]"
        else:
            state = "[green]fresh[/green]"
        table.add_row(
            module["module"],
            str(module.get("entries", 0)),
            str(module.get("generation", 0)),
            module.get("policy") or "",
            state,
        )
    console.print(table)


@cli.command()
@click.argument("text")
@click.option("--modes", "-m", multiple=True, help="Modes to search (default: active mode).")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_context
@handle_cli_errors("query")
def query(ctx: click.Context, text: str, modes: tuple[str, ...], limit: int) -> None:
    """Rank entries against TEXT without touching the launcher state."""
    args: dict[str, Any] = {"text": text, "limit": limit}
    mode_names = _modes_option(modes)
    if mode_names:
        args["modes"] = mode_names
    results = _call(ctx, "query", args)

    if not results:
        _echo(ctx, "No results")
        return

    table = Table(show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Module", style="cyan")
    table.add_column("Score", justify="right")
    for i, result in enumerate(results, start=1):
        table.add_row(str(i), result["title"], result["module"], f"{result['score']:.1f}")
    Console().print(table)


# ----------------------------------------------------------------------
# Process management
# ----------------------------------------------------------------------


def _lifecycle(ctx: click.Context):
    from zlaunch.adapters.daemon.lifecycle import DaemonLifecycle

    return DaemonLifecycle(
        socket_path=ctx.obj.get("socket"),
        config_path=ctx.obj.get("config"),
        log_level="DEBUG" if ctx.obj.get("verbose") else "INFO",
    )


@cli.group()
def daemon() -> None:
    """Manage the background daemon process."""
    pass


@daemon.command(name="run")
@click.pass_context
def daemon_run(ctx: click.Context) -> None:
    """Run the daemon in the foreground."""
    _run_foreground(ctx)


@daemon.command(name="start")
@click.pass_context
@handle_cli_errors("daemon start")
def daemon_start(ctx: click.Context) -> None:
    """Start the daemon in the background."""
    from zlaunch.adapters.daemon.lifecycle import DaemonStartError
    from zlaunch.core.progress import start_daemon_with_progress

    quiet = ctx.obj.get("quiet", False)
    lifecycle = _lifecycle(ctx)
    if lifecycle.is_running():
        _echo(ctx, "✓ Daemon is already running")
        return

    try:
        start_daemon_with_progress(lifecycle, quiet=quiet)
    except DaemonStartError as e:
        exit_code = e.exit_code if e.exit_code in (
            ExitCode.ADDRESS_IN_USE,
            ExitCode.CONFIG,
        ) else ExitCode.ERROR
        raise ZlaunchCliError(
            str(e),
            hint="Check 'zlaunch daemon status' for details",
            exit_code=exit_code,
        ) from e
    _echo(ctx, "✓ Daemon started successfully")


@daemon.command(name="stop")
@click.pass_context
@handle_cli_errors("daemon stop")
def daemon_stop(ctx: click.Context) -> None:
    """Stop the background daemon."""
    lifecycle = _lifecycle(ctx)
    if not lifecycle.is_running() and lifecycle.get_pid() is None:
        click.echo("Daemon is not running")
        return

    _echo(ctx, "Stopping daemon...")
    if not lifecycle.stop():
        raise ZlaunchCliError(
            "Failed to stop daemon",
            hint="The process may have already exited. Check 'zlaunch daemon status'",
        )
    _echo(ctx, "✓ Daemon stopped successfully")


@daemon.command(name="restart")
@click.pass_context
@handle_cli_errors("daemon restart")
def daemon_restart(ctx: click.Context) -> None:
    """Restart the background daemon."""
    _echo(ctx, "Restarting daemon...")
    if not _lifecycle(ctx).restart():
        raise ZlaunchCliError(
            "Failed to restart daemon",
            hint="Try 'zlaunch daemon stop' then 'zlaunch daemon start'",
        )
    _echo(ctx, "✓ Daemon restarted successfully")


@daemon.command(name="status")
@click.pass_context
@handle_cli_errors("daemon status")
def daemon_status(ctx: click.Context) -> None:
    """Show daemon process status."""
    status = _lifecycle(ctx).status()

    if status["running"]:
        click.echo(f"✓ Daemon is running (PID {status['pid']})")
    else:
        click.echo("✗ Daemon is not running")

    click.echo("\nDetails:")
    click.echo(f"  Status: {status['status']}")
    click.echo(f"  Socket: {status['socket']}")
    click.echo(f"  PID file: {status['pid_file']}")
    click.echo(f"  Log file: {status['log_file']}")

    if status.get("message") and status["status"] != "running":
        click.echo(f"\n{status['message']}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Entry point for lgc."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from lgc_cli import __version__
from lgc_cli.commands import calc as calc_commands
from lgc_cli.commands.analyze import history_command, summary_command
from lgc_cli.commands.imports import import_command
from lgc_cli.commands.log import checkin_command, log_command
from lgc_cli.core.config import ConfigError, default_config_path, load_config
from lgc_cli.core.state import CLIState

app = typer.Typer(
    add_completion=False,
    help="Lazy Gains Club command-line interface",
    invoke_without_command=True,
)


def _configure_logging(console: Console, verbose: bool) -> None:
    logger = logging.getLogger("lgc_cli")
    if not verbose:
        logger.setLevel(logging.WARNING)
        return
    handler = RichHandler(console=console, show_time=False, show_path=False)
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON where available"),
    plain_output: bool = typer.Option(
        False,
        "--plain",
        help="Output plain text (no rich formatting/tables)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="User id to act as", envvar="LGC_USER_ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Initialize global CLI state."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if json_output and plain_output:
        typer.echo("Options --json and --plain are mutually exclusive.")
        raise typer.Exit(code=2)

    cfg_path = (config or default_config_path()).expanduser().resolve()
    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    console = Console(
        quiet=quiet,
        no_color=plain_output,
        log_time=False,
        log_path=False,
    )
    _configure_logging(console, verbose and not quiet)
    ctx.obj = CLIState(
        json_output=(json_output and not plain_output),
        plain_output=plain_output,
        verbose=verbose,
        quiet=quiet,
        config_path=cfg_path,
        config=cfg,
        console=console,
        user_id=user_id,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


# Top-level commands
app.command("import")(import_command)
app.command("log")(log_command)
app.command("checkin")(checkin_command)
app.command("summary")(summary_command)
app.command("history")(history_command)
app.add_typer(calc_commands.app, name="calc")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()

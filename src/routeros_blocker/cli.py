"""Command-line interface for RouterOS Blocker using Click."""

import functools
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.console import Console

from . import __version__
from .apply import Outcome, synchronize
from .client import RouterClient
from .common import APP_NAME, ensure_log_dir, get_log_dir
from .config import (
    DEFAULT_ADDRESS,
    DEFAULT_API_PORT,
    DEFAULT_LIST_NAME,
    DEFAULT_SINK_ADDRESS,
    DEFAULT_SOURCE_URL,
    DEFAULT_SSH_PORT,
    DEFAULT_TAG,
    DEFAULT_TIMEOUT,
    STRATEGY_CHOICES,
    TARGET_CHOICES,
    Settings,
    build_settings,
)
from .exceptions import BlockerError
from .reconciler import reconcile
from .targets import get_target

SYSLOG_SOCKET = "/dev/log"

# =============================================================================
# LOGGING SETUP
# =============================================================================


def get_app_log_file() -> Path:
    """Get the app log file path."""
    return get_log_dir() / "app.log"


def setup_logging(verbose: bool = False, syslog: bool = False) -> None:
    """Setup logging configuration.

    Configures a file handler and a console handler, plus a syslog handler
    when requested. It avoids adding duplicate handlers if called multiple
    times.

    Args:
        verbose: If True, sets log level to DEBUG; otherwise INFO.
        syslog: If True, also send records to the local syslog daemon.
    """
    ensure_log_dir()

    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()

    # Avoid adding duplicate handlers
    if root_logger.handlers:
        root_logger.setLevel(level)
        return

    root_logger.setLevel(level)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    # File handler
    file_handler = logging.FileHandler(get_app_log_file())
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if syslog and os.path.exists(SYSLOG_SOCKET):
        syslog_handler = logging.handlers.SysLogHandler(address=SYSLOG_SOCKET)
        syslog_handler.ident = f"{APP_NAME}: "
        syslog_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        root_logger.addHandler(syslog_handler)


logger = logging.getLogger(__name__)
console = Console(highlight=False)


# =============================================================================
# SHARED OPTIONS
# =============================================================================


def router_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the router connection and record selection options to a command."""
    options = [
        click.option("--address", default=DEFAULT_ADDRESS, show_default=True,
                     help="Router address"),
        click.option("--port", "api_port", default=DEFAULT_API_PORT, show_default=True,
                     type=int, help="REST API port (80 uses plain HTTP)"),
        click.option("--ssh-port", default=DEFAULT_SSH_PORT, show_default=True, type=int,
                     help="SSH port used to upload import scripts"),
        click.option("-l", "--login", envvar="ROUTEROS_LOGIN", required=True,
                     help="Router login (env: ROUTEROS_LOGIN)"),
        click.option("-p", "--password", envvar="ROUTEROS_PASSWORD", default="",
                     help="Router password (env: ROUTEROS_PASSWORD)"),
        click.option("--target", type=click.Choice(TARGET_CHOICES), default="dns-static",
                     show_default=True, help="Record type to manage"),
        click.option("--tag", default=DEFAULT_TAG, show_default=True,
                     help="Comment marking records managed by this tool"),
        click.option("--list-name", default=DEFAULT_LIST_NAME, show_default=True,
                     help="Firewall address list name (address-list target)"),
        click.option("--sink-address", default=DEFAULT_SINK_ADDRESS, show_default=True,
                     help="Address blocked hostnames resolve to (dns-static target)"),
        click.option("--source-url", default=DEFAULT_SOURCE_URL,
                     help="Hosts-file blocklist URL"),
        click.option("--timeout", default=DEFAULT_TIMEOUT, show_default=True, type=int,
                     help="Per-request timeout in seconds"),
        click.option("--insecure", is_flag=True,
                     help="Do not verify the router's TLS certificate"),
        click.option("-v", "--verbose", is_flag=True, help="Verbose output"),
        click.option("--syslog", is_flag=True, help="Also log to the local syslog"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def make_settings(strategy: str = "auto", dry_run: bool = False, **kwargs: Any) -> Settings:
    """Build Settings from collected command options."""
    insecure = kwargs.pop("insecure")
    return build_settings(strategy=strategy, dry_run=dry_run, verify_tls=not insecure, **kwargs)


def fatal(func: Callable[..., Any]) -> Callable[..., Any]:
    """Log a BlockerError raised by a command at critical level and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BlockerError as e:
            logger.critical(str(e))
            console.print(f"\n  [red]Error: {e}[/red]\n", highlight=False)
            sys.exit(1)

    return wrapper


# =============================================================================
# CLICK CLI
# =============================================================================


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name=APP_NAME)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def main(ctx: click.Context, no_color: bool) -> None:
    """RouterOS Blocker - Keep router block records in line with a remote hosts list."""
    if no_color:
        console.no_color = True

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@main.command()
@router_options
@click.option("--strategy", type=click.Choice(STRATEGY_CHOICES), default="auto",
              show_default=True, help="How additions are applied")
@click.option("--dry-run", is_flag=True, help="Show changes without applying")
@fatal
def sync(verbose: bool, syslog: bool, strategy: str, dry_run: bool, **options: Any) -> None:
    """Synchronize router records with the remote blocklist."""
    setup_logging(verbose, syslog)

    settings = make_settings(strategy=strategy, dry_run=dry_run, **options)
    target = get_target(settings)

    if dry_run:
        console.print("\n  [yellow]DRY RUN MODE - No changes will be made[/yellow]\n")

    with RouterClient(settings) as client:
        client.connect()
        result = synchronize(settings, client, target)

    if result.outcome is Outcome.NOTHING_TO_DO:
        console.print("  Sync: [green]No changes needed[/green]")
    elif result.outcome is Outcome.DRY_RUN:
        console.print(
            f"  Would: [red]add {result.added}[/red], [green]delete {result.deleted}[/green]"
        )
    else:
        console.print(
            f"  Sync: [red]{result.added} added[/red], [green]{result.deleted} deleted[/green]"
        )


@main.command()
@router_options
@fatal
def status(verbose: bool, syslog: bool, **options: Any) -> None:
    """Show managed record counts and pending changes."""
    setup_logging(verbose, syslog)

    settings = make_settings(**options)
    target = get_target(settings)

    with RouterClient(settings) as client:
        identity = client.connect()
        changes, records = reconcile(settings, client, target)

    console.print("\n  [bold]RouterOS Blocker Status[/bold]")
    console.print("  [bold]-----------------------[/bold]")
    console.print(f"  Router: {identity or settings.address}")
    console.print(f"  Target: {target.name} ({target.path})")
    console.print(f"  Managed records: {len(records)}")
    console.print(f"  Pending additions: [red]{len(changes.to_add)}[/red]")
    console.print(f"  Pending deletions: [green]{len(changes.to_delete)}[/green]")
    if changes.is_empty:
        console.print("  State: [green]in sync[/green]")
    else:
        console.print("  State: [yellow]out of sync[/yellow]")
    console.print()

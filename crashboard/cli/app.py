"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.graph_client import GraphCalendarClient
from ..adapters.mock_graph_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.availability_engine import AvailabilityEngine
from ..domain.exceptions import CrashBoardError
from ..services.availability_service import AvailabilityReport, AvailabilityService

app = typer.Typer(
    name="crashboard",
    help="Find free days for the CrashBoard availability tile",
    add_completion=False
)

console = Console()
logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
TokenOption = Annotated[
    Optional[str],
    typer.Option("--token", envvar="CRASHBOARD_GRAPH_TOKEN", help="Microsoft Graph access token"),
]


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """An explicit --config must exist; the default location is optional."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)
    return AppConfig.load_or_default(get_default_config_path())


def _parse_date_option(value: Optional[str], label: str, tz: str):
    if value is None:
        return None
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse {label} date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _render_report(report: AvailabilityReport, verbose: bool) -> None:
    console.print(
        f"[bold cyan]Availability[/bold cyan] "
        f"{report.range_start.format('DD MMM YYYY', locale='en')} - "
        f"{report.range_end.subtract(days=1).format('DD MMM YYYY', locale='en')} "
        f"[dim]({report.timezone})[/dim]\n"
    )

    if not report.formatted:
        console.print(
            "[yellow]No days with enough free time found.[/yellow]\n"
            "Try a longer range or a lower min_free_minutes."
        )
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Free")
    table.add_column("Minutes", justify="right", style="dim")

    for day in report.formatted:
        table.add_row(day.day_label, day.summary, str(day.total_free_minutes))

    console.print(table)

    if verbose:
        console.print()
        for day in report.formatted:
            console.print(day.verbose, highlight=False)


@app.command()
def availability(
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="First day to scan (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Day after the last day to scan (YYYY-MM-DD)")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use bundled mock calendar data.")] = False,
    token: TokenOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Print one sentence per free period.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the report as JSON.")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging.")] = False,
):
    """
    Show the first days with enough free time.

    Examples:

        # Next Monday through two weeks later
        crashboard availability --token "$TOKEN"

        # Custom range with mock data
        crashboard availability --mock --start 2024-11-25 --end 2024-12-09 --verbose
    """
    _configure_logging(debug)

    try:
        config = _load_config(config_file)
        tz = config.timezone

        range_start = _parse_date_option(start, "start", tz)
        range_end = _parse_date_option(end, "end", tz)

        if mock:
            client = MockCalendarClient()
        elif token:
            client = GraphCalendarClient(
                access_token=token,
                base_url=config.graph.base_url,
                timeout=config.graph.timeout_seconds,
                page_size=config.graph.page_size,
            )
        else:
            console.print(
                "[bold red]Error:[/bold red] No Graph access token. "
                "Pass --token, set CRASHBOARD_GRAPH_TOKEN, or use --mock."
            )
            raise typer.Exit(1)

        service = AvailabilityService(
            calendar_client=client,
            engine=AvailabilityEngine(config.availability.to_policy()),
            timezone=tz,
            cache_ttl_seconds=config.cache_ttl_seconds,
        )

        report = asyncio.run(
            service.get_availability(
                user_key=config.user_key,
                range_start=range_start,
                range_end=range_end,
            )
        )

        if as_json:
            typer.echo(json.dumps(report.to_dict(), indent=2))
        else:
            _render_report(report, verbose)

    except typer.Exit:
        raise

    except (FileNotFoundError, ValueError, CrashBoardError) as e:
        logger.debug("availability failed", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def show_policy(config_file: ConfigOption = None):
    """
    Show the effective working-day policy.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    policy = config.availability

    table = Table(title="Working-day policy", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="bold yellow")
    table.add_column("Value")

    table.add_row("Timezone", config.timezone)
    table.add_row("Working hours", f"{policy.work_start_hour}:00 - {policy.work_end_hour}:00")
    table.add_row("Lunch", f"{policy.lunch_start_hour}:00 - {policy.lunch_end_hour}:00")
    table.add_row("Buffer", f"{policy.buffer_hours} h")
    table.add_row("Minimum free time", f"{policy.min_free_minutes} min")
    table.add_row("Days returned", str(policy.max_days_returned))
    table.add_row("Cache TTL", f"{config.cache_ttl_seconds} s")

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_connection(config_file: ConfigOption = None, token: TokenOption = None):
    """
    Check that a Microsoft Graph token works.
    """
    try:
        config = _load_config(config_file)

        if not token:
            console.print("[bold red]Error:[/bold red] No Graph access token provided.")
            raise typer.Exit(1)

        client = GraphCalendarClient(
            access_token=token,
            base_url=config.graph.base_url,
            timeout=config.graph.timeout_seconds,
        )
        user_info = client.test_connection()

        console.print(Panel.fit(
            f"[bold green]✓ Connected to Microsoft Graph[/bold green]\n\n"
            f"[bold]User:[/bold] {user_info.get('displayName', 'N/A')}\n"
            f"[bold]E-Mail:[/bold] {user_info.get('mail') or user_info.get('userPrincipalName', 'N/A')}",
            title="Connection test"
        ))

    except typer.Exit:
        raise

    except (FileNotFoundError, ValueError, CrashBoardError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]crashboard[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

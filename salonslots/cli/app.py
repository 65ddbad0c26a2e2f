"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.http_snapshot_source import HttpSnapshotSource
from ..adapters.json_snapshot_source import JsonSnapshotSource
from ..config import AppConfig, get_default_config_path
from ..domain.clock import BusinessClock
from ..domain.exceptions import SalonSlotsError
from ..domain.slot_calculator import AvailabilityCalculator
from ..domain.timefmt import parse_duration_to_minutes
from ..services.availability_service import AvailabilityService, SnapshotSourceProtocol
from ..services.snapshot_cache import SnapshotCache

app = typer.Typer(
    name="salonslots",
    help="Compute bookable grooming slots and garden days from a salon scheduling snapshot",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
SnapshotOption = Annotated[
    Optional[Path], typer.Option("--snapshot", "-s", help="Snapshot JSON file (overrides the config)")
]
StartOption = Annotated[Optional[str], typer.Option("--start", help="First day of the window (YYYY-MM-DD)")]
DaysOption = Annotated[Optional[int], typer.Option("--days", help="Days ahead to search")]
DurationOption = Annotated[
    Optional[str], typer.Option("--duration", "-d", help="Requested duration, e.g. 90, 1:30 or 1:30:00")
]
ServiceTypeOption = Annotated[
    str, typer.Option("--service-type", "-t", help="What to book: grooming, garden or both")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw response as JSON")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config; a missing default config falls back to built-in defaults."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _setup_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_source(config: AppConfig, snapshot: Optional[Path]) -> SnapshotSourceProtocol:
    if snapshot is not None:
        return JsonSnapshotSource(snapshot)
    if config.snapshot_file is not None:
        return JsonSnapshotSource(config.snapshot_file)
    if config.snapshot_url:
        return HttpSnapshotSource(
            base_url=config.snapshot_url,
            api_key=config.snapshot_api_key,
            timeout=config.request_timeout_seconds,
        )
    raise ValueError("No snapshot source configured. Pass --snapshot or set snapshot_file / snapshot_url.")


def _build_service(config: AppConfig, snapshot: Optional[Path]) -> AvailabilityService:
    calculator = AvailabilityCalculator(clock=BusinessClock(config.timezone))
    cache = SnapshotCache(max_entries=config.cache.max_entries) if config.cache.enabled else None
    return AvailabilityService(
        snapshot_source=_build_source(config, snapshot),
        calculator=calculator,
        defaults=config.defaults,
        cache=cache,
    )


def _parse_date(value: str, label: str):
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        raise ValueError(f"Invalid {label} '{value}', expected YYYY-MM-DD") from e


def _parse_duration(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    minutes = parse_duration_to_minutes(value)
    if minutes is None:
        raise ValueError(f"Invalid duration '{value}', use minutes (90) or H:MM (1:30)")
    return minutes


def _print_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _fail(e: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {e}")
    raise typer.Exit(1)


@app.command()
def dates(
    treatment_id: Annotated[str, typer.Argument(help="Treatment to book")],
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    start: StartOption = None,
    days: DaysOption = None,
    duration: DurationOption = None,
    service_type: ServiceTypeOption = "grooming",
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    List the days that still have bookable slots.

    Examples:

        salonslots dates tr-bath --snapshot snapshot.json

        salonslots dates tr-bath --start 2025-08-18 --days 7 --duration 1:30

        salonslots dates tr-bath --service-type garden
    """
    try:
        config = _load_config(config_file)
        _setup_logging(config, verbose)

        service = _build_service(config, snapshot)
        start_date = _parse_date(start, "start date") if start else None
        duration_minutes = _parse_duration(duration)

        result = asyncio.run(
            service.find_available_dates(
                treatment_id=treatment_id,
                start_date=start_date,
                days_ahead=days,
                duration_minutes=duration_minutes,
                service_type=service_type,
            )
        )
    except (SalonSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if as_json:
        _print_json({"success": True, "availableDates": [day.to_dict() for day in result]})
        return

    console.print()
    if not result:
        console.print("[yellow]No available dates found.[/yellow]")
        console.print("Try a longer window or a shorter duration.\n")
        return

    table = Table(
        title=f"Available dates for {treatment_id}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Weekday")
    table.add_column("Slots", justify="right")
    table.add_column("First")
    table.add_column("Last")

    for day in result:
        weekday = pendulum.from_format(day.date, "YYYY-MM-DD").format("dddd")
        table.add_row(
            day.date,
            weekday,
            str(day.slots),
            day.available_times[0].time if day.available_times else "-",
            day.available_times[-1].time if day.available_times else "-",
        )

    console.print(table)
    console.print()


@app.command()
def times(
    treatment_id: Annotated[str, typer.Argument(help="Treatment to book")],
    date: Annotated[str, typer.Argument(help="Day to inspect (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    start: StartOption = None,
    days: DaysOption = None,
    duration: DurationOption = None,
    service_type: ServiceTypeOption = "grooming",
    as_json: JsonOption = False,
    verbose: VerboseOption = False,
):
    """
    List the bookable start times of one day.

    Examples:

        salonslots times tr-bath 2025-08-21 --snapshot snapshot.json
    """
    try:
        config = _load_config(config_file)
        _setup_logging(config, verbose)

        service = _build_service(config, snapshot)
        _parse_date(date, "date")
        start_date = _parse_date(start, "start date") if start else None
        duration_minutes = _parse_duration(duration)

        result = asyncio.run(
            service.find_available_times(
                treatment_id=treatment_id,
                date_key=date,
                start_date=start_date,
                days_ahead=days,
                duration_minutes=duration_minutes,
                service_type=service_type,
            )
        )
    except (SalonSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if as_json:
        _print_json({"success": True, "availableTimes": [slot.to_dict() for slot in result]})
        return

    console.print()
    if not result:
        console.print(f"[yellow]No available times on {date}.[/yellow]\n")
        return

    table = Table(
        title=f"Available times on {date}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold yellow")
    table.add_column("Duration", justify="right")
    table.add_column("Station")
    table.add_column("Approval")

    for slot in result:
        table.add_row(
            slot.time,
            f"{slot.duration} min",
            slot.station_id,
            "required" if slot.requires_staff_approval else "-",
        )

    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

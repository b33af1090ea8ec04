"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..adapters.json_event_publisher import JsonEventPublisher
from ..adapters.mock_calendar_client import MockCalendarClient
from ..adapters.static_subtopics import StaticSubtopicGenerator
from ..domain.exceptions import StudyPlannerError
from ..domain.grouping import ScheduleGrouper
from ..domain.models import AvailabilityMap, PlacedEvent
from ..domain.plan_builder import TimePreference
from ..services.study_planner import AuthContext, PlanRequest, StudyPlannerService

app = typer.Typer(
    name="studyplanner",
    help="Place study lessons for a topic into free calendar time",
    add_completion=False
)

console = Console()

# The auth collaborator is out of scope here; the mock adapters ignore the token
MOCK_AUTH = AuthContext(access_token="mock_token", account="mock.user@example.com")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the explicit config file, the default one if present, or defaults."""
    if config_file:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()


def _render_schedule(grouped: Dict[str, List[PlacedEvent]], title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Time")
    table.add_column("Lesson", style="bold")
    table.add_column("Subtopic", style="dim")

    for day, events in grouped.items():
        label = ScheduleGrouper.format_day_label(day)
        for event in events:
            table.add_row(
                label,
                f"{event.start.format('HH:mm')} – {event.end.format('HH:mm')}",
                event.summary,
                event.description,
            )
            label = ""

    console.print(table)


def _render_availability(availability: AvailabilityMap, title: str = "Free blocks") -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Free")

    for day in sorted(availability):
        free = availability[day].free_intervals
        blocks = ", ".join(
            f"{interval.start.format('HH:mm')} – {interval.end.format('HH:mm')}"
            for interval in free
        )
        table.add_row(ScheduleGrouper.format_day_label(day), blocks or "[dim]none[/dim]")

    console.print(table)


@app.command()
def plan(
    topic: Annotated[str, typer.Argument(help="Topic to plan for, e.g. 'Linear Algebra'")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days, starting tomorrow")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Lesson duration in minutes")] = None,
    preference: Annotated[Optional[TimePreference], typer.Option("--preference", "-p", help="Preferred time of day")] = None,
    subtopic: Annotated[Optional[List[str]], typer.Option("--subtopic", "-s", help="Subtopic for the next day (repeatable)")] = None,
    busy_file: Annotated[Optional[Path], typer.Option("--busy", help="JSON file with busy intervals")] = None,
    regenerate: Annotated[int, typer.Option("--regenerate", "-r", help="Number of alternate arrangements to apply")] = 0,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write the placed events to this JSON file")] = None,
    show_free: Annotated[bool, typer.Option("--show-free", help="Also show the free time left after placing the lessons")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Draft a study plan and place its lessons into free time.

    Examples:

        studyplanner plan "Linear Algebra"

        studyplanner plan "Linear Algebra" --days 3 --duration 45 --preference evening

        studyplanner plan "Linear Algebra" --show-free

        studyplanner plan "Rust" -s Ownership -s Borrowing --busy busy.json -o plan.json
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)

        request = PlanRequest(
            topic=topic,
            plan_days=days if days is not None else config.defaults.plan_days,
            lesson_duration_minutes=duration if duration is not None else config.defaults.lesson_duration_minutes,
            time_preference=preference or config.defaults.time_preference,
        )

        service = StudyPlannerService(
            calendar_client=MockCalendarClient(busy_file or config.mock_calendar_file),
            subtopic_generator=StaticSubtopicGenerator(subtopic or []),
            event_publisher=JsonEventPublisher(output) if output else None,
            timezone=config.timezone,
            window_start_hour=config.defaults.window_start_hour,
            window_end_hour=config.defaults.window_end_hour,
        )

        study_plan = asyncio.run(service.draft_plan(auth=MOCK_AUTH, request=request))

        for _ in range(regenerate):
            study_plan = service.regenerate(study_plan)

        console.print()
        if not study_plan.events:
            console.print(
                "[yellow]⚠ No lessons could be placed.[/yellow]\n"
                "Try another time of day or a shorter lesson duration."
            )
        else:
            _render_schedule(service.group(study_plan), title=f"Study plan: {request.topic}")

        console.print(
            f"\nPlaced {len(study_plan.events)} of {len(study_plan.desired)} lesson(s)."
        )
        if study_plan.dropped_count:
            console.print(
                f"[yellow]{study_plan.dropped_count} lesson(s) did not fit into free time.[/yellow]"
            )

        if show_free:
            console.print()
            _render_availability(service.remaining_availability(study_plan), title="Free time left")

        if output:
            written = asyncio.run(service.confirm(auth=MOCK_AUTH, plan=study_plan))
            console.print(f"[green]✓ {written} event(s) written to {output}[/green]")

        console.print()

    except (StudyPlannerError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def free(
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days, starting tomorrow")] = None,
    preference: Annotated[Optional[TimePreference], typer.Option("--preference", "-p", help="Preferred time of day")] = None,
    busy_file: Annotated[Optional[Path], typer.Option("--busy", help="JSON file with busy intervals")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Show the free blocks the planner would pack lessons into.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)

        service = StudyPlannerService(
            calendar_client=MockCalendarClient(busy_file or config.mock_calendar_file),
            timezone=config.timezone,
            window_start_hour=config.defaults.window_start_hour,
            window_end_hour=config.defaults.window_end_hour,
        )

        availability = asyncio.run(
            service.fetch_availability(
                auth=MOCK_AUTH,
                preference=preference or config.defaults.time_preference,
                plan_days=days if days is not None else config.defaults.plan_days,
            )
        )

        console.print()
        _render_availability(availability)
        console.print()

    except (StudyPlannerError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(Panel.fit(f"[bold cyan]studyplanner[/bold cyan] version [bold]{__version__}[/bold]"))


if __name__ == "__main__":
    app()

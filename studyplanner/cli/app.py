"""
Main CLI application using Typer.
"""

from pathlib import Path
from typing import Optional, Annotated, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ..adapters.feed_client import JsonFeedClient
from ..adapters.snapshot_file import SnapshotFile
from ..config import PlannerConfig, get_default_config_path
from ..domain.exceptions import PlannerError
from ..domain.models import BlockCategory
from ..domain.timeutil import parse_date
from ..logging_config import configure_logging
from ..services.study_agenda import StudyAgendaService

app = typer.Typer(
    name="studyplanner",
    help="Plan study blocks around your classes",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]


def _load_service(config_file: Optional[Path]) -> Tuple[StudyAgendaService, SnapshotFile]:
    """Load config, restore the block store and build the agenda service."""
    config_path = config_file or get_default_config_path()
    config = PlannerConfig.load_from_yaml(config_path)
    configure_logging(config.log_level)

    snapshot = SnapshotFile(config.snapshot_file)
    store = snapshot.load(policy=config.validation)
    feed_client = JsonFeedClient(data_file=config.feed_file, timezone=config.timezone)

    service = StudyAgendaService(
        feed_client=feed_client,
        store=store,
        preferences=config.preferences.to_preferences(),
        timezone=config.timezone,
    )
    return service, snapshot


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Day to search (YYYY-MM-DD)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Slot length in minutes")] = 60,
    config_file: ConfigOption = None,
):
    """
    Show free slots for a day.
    """
    try:
        service, _ = _load_service(config_file)
        found = service.suggester.available_slots(parse_date(date), duration)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not found:
        console.print("[yellow]No free slot found.[/yellow] Try a shorter duration or another day.")
        return

    console.print(f"[bold green]{len(found)} free slot(s):[/bold green]")
    for slot in found:
        console.print(f"  {slot.format_display()}")


@app.command()
def check(
    date: Annotated[str, typer.Argument(help="Day (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:mm)")],
    end: Annotated[str, typer.Argument(help="End time (HH:mm)")],
    config_file: ConfigOption = None,
):
    """
    Check a time range for conflicts with blocks and class events.
    """
    try:
        service, _ = _load_service(config_file)
        info = service.check(parse_date(date), start, end)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not info.has_conflict:
        console.print("[green]✓ No conflicts.[/green]")
        return

    console.print("[bold yellow]⚠ Conflicts found:[/bold yellow]")
    for block in info.conflicting_blocks:
        console.print(f"  block {block.id}: {block}")
    for event in info.conflicting_events:
        console.print(f"  class {event.title or event.post_id}: {event.start_at.format('HH:mm')} - {event.effective_end.format('HH:mm')}")
    if info.next_available_slot:
        console.print(f"Next free slot: {info.next_available_slot.format_display()}")


@app.command()
def add(
    date: Annotated[str, typer.Argument(help="Day (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:mm)")],
    end: Annotated[str, typer.Argument(help="End time (HH:mm)")],
    category: Annotated[BlockCategory, typer.Option("--category", help="Block category")] = BlockCategory.STUDY,
    activity: Annotated[Optional[str], typer.Option("--activity", help="Activity the block supports")] = None,
    config_file: ConfigOption = None,
):
    """
    Add a planned block.
    """
    try:
        service, snapshot = _load_service(config_file)
        block = service.store.add(parse_date(date), start, end, category=category, activity_id=activity)
        snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Added {block.id}[/green] ({block})")


@app.command()
def remove(
    block_id: Annotated[str, typer.Argument(help="Block id")],
    config_file: ConfigOption = None,
):
    """
    Remove a planned block.
    """
    try:
        service, snapshot = _load_service(config_file)
        service.store.remove(block_id)
        snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Removed {block_id}[/green]")


@app.command()
def complete(
    block_id: Annotated[str, typer.Argument(help="Block id")],
    skip: Annotated[bool, typer.Option("--skip", help="Mark as skipped instead of completed")] = False,
    config_file: ConfigOption = None,
):
    """
    Mark a block as completed or skipped.
    """
    try:
        service, snapshot = _load_service(config_file)
        if skip:
            service.store.mark_skipped(block_id)
        else:
            service.store.mark_completed(block_id)
        snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ {block_id} marked {'skipped' if skip else 'completed'}[/green]")


@app.command("move-next")
def move_next(
    block_id: Annotated[str, typer.Argument(help="Block id")],
    config_file: ConfigOption = None,
):
    """
    Move a block to the next free slot.
    """
    try:
        service, snapshot = _load_service(config_file)
        moved = service.move_to_next_slot(block_id)
        if moved:
            snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not moved:
        console.print("[yellow]⚠ Could not find an alternative slot.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Moved to {service.store.get(block_id)}[/green]")


@app.command()
def snooze(
    block_id: Annotated[str, typer.Argument(help="Block id")],
    due: Annotated[Optional[str], typer.Option("--due", help="Latest allowed day (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
):
    """
    Push a block to a later day without passing its due date.
    """
    try:
        service, snapshot = _load_service(config_file)
        moved = service.smart_snooze(block_id, parse_date(due) if due else None)
        if moved:
            snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not moved:
        console.print("[yellow]⚠ No later slot before the due date.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Snoozed to {service.store.get(block_id)}[/green]")


@app.command()
def plan(
    activity_id: Annotated[str, typer.Argument(help="Activity post id")],
    save: Annotated[bool, typer.Option("--save", help="Store the suggested blocks")] = False,
    config_file: ConfigOption = None,
):
    """
    Suggest study blocks for an activity up to its due date.
    """
    try:
        service, snapshot = _load_service(config_file)
        study_plan = service.suggest_study_blocks(activity_id)
        if save and study_plan.suggestions:
            for suggestion in study_plan.suggestions:
                service.schedule_study_block(activity_id, suggestion.start_at, suggestion.duration, suggestion.category)
            snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not study_plan.suggestions:
        console.print("[yellow]No study blocks could be suggested.[/yellow]")
    else:
        table = Table(title=f"Study plan for {activity_id}", show_header=True, header_style="bold cyan")
        table.add_column("Start", style="bold yellow")
        table.add_column("End")
        table.add_column("Minutes", justify="right")
        table.add_column("Type", style="dim")
        for suggestion in study_plan.suggestions:
            table.add_row(
                suggestion.start_at.format("ddd DD.MM.YYYY HH:mm"),
                suggestion.end_at.format("HH:mm"),
                str(suggestion.duration),
                suggestion.category.value,
            )
        console.print(table)

    if study_plan.shortfall_minutes:
        console.print(f"[bold yellow]⚠ {study_plan.shortfall_minutes} minute(s) do not fit before the due date.[/bold yellow]")


@app.command()
def week(
    top: Annotated[int, typer.Option("--top", help="Number of activities to plan for")] = 3,
    save: Annotated[bool, typer.Option("--save", help="Store the suggested blocks")] = False,
    config_file: ConfigOption = None,
):
    """
    Suggest blocks for the most urgent activities in the current week.
    """
    try:
        service, snapshot = _load_service(config_file)
        suggestions = service.weekly_suggestions(top=top)
        if save and suggestions:
            for suggestion in suggestions:
                service.schedule_study_block(suggestion.activity_id, suggestion.start_at, suggestion.duration)
            snapshot.save(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not suggestions:
        console.print("[yellow]No suggestions for this week.[/yellow]")
        return

    table = Table(title="Suggestions for this week", show_header=True, header_style="bold cyan")
    table.add_column("Activity", style="dim")
    table.add_column("Start", style="bold yellow")
    table.add_column("End")
    table.add_column("Priority", justify="right")
    for suggestion in suggestions:
        table.add_row(
            suggestion.activity_id,
            suggestion.start_at.format("ddd DD.MM.YYYY HH:mm"),
            suggestion.end_at.format("HH:mm"),
            f"{suggestion.priority:.2f}",
        )
    console.print(table)


@app.command("list")
def list_blocks(
    week: Annotated[Optional[str], typer.Option("--week", help="Only the 7 days starting at this day (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
):
    """
    List planned blocks.
    """
    try:
        service, _ = _load_service(config_file)
        blocks = service.store.blocks_in_week(parse_date(week)) if week else list(service.store)
    except (PlannerError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not blocks:
        console.print("[yellow]No planned blocks.[/yellow]")
        return

    table = Table(title="Planned blocks", show_header=True, header_style="bold cyan")
    table.add_column("Id", style="dim")
    table.add_column("Day", style="bold yellow")
    table.add_column("Time")
    table.add_column("Category")
    table.add_column("Status")

    for block in sorted(blocks, key=lambda b: (b.date, b.start_minutes())):
        table.add_row(
            block.id,
            block.date.format("ddd DD.MM.YYYY"),
            f"{block.start_time} - {block.end_time}",
            block.category.value,
            block.status.value,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]studyplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

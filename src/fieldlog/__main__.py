"""CLI Runner for the Field Activity Log System.

Usage:
    fieldlog extract "Crew A inspected the north pad..." --title "Morning walkdown"
    fieldlog extract --file transcript.txt --no-save
    fieldlog logs list --sort location --direction ascending --search crane
    fieldlog logs map --output map.html
    fieldlog history list
    fieldlog history delete <transcription_id>
    fieldlog setup [--print-sql]
    fieldlog status
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fieldlog import __version__
from fieldlog.config import Settings, StoreBackend, get_settings
from fieldlog.errors import FieldLogError, NoResultsError
from fieldlog.models import ActivityLog, ActivityStatus
from fieldlog.utils.time_utils import format_timestamp

console = Console()

STATUS_STYLES = {
    "completed": "green",
    "in-progress": "blue",
    "planned": "magenta",
    "delayed": "yellow",
    "cancelled": "red",
}

STATUS_CHOICES = [status.value for status in ActivityStatus]


def configure_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(error: FieldLogError) -> NoReturn:
    """Print an error with its hint and exit."""
    console.print(f"[red]Error:[/red] {error.message}")
    if error.hint:
        console.print(f"  [dim]{error.hint}[/dim]")
    sys.exit(1)


def get_store(settings: Settings):
    """Create the configured backing store or exit."""
    from fieldlog.services.log_store import create_log_store

    try:
        return create_log_store(settings)
    except FieldLogError as e:
        fail(e)


def status_text(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def render_logs_table(logs: list[ActivityLog], title: str = "Activity Logs") -> Table:
    """Build a rich table of logs."""
    table = Table(title=title)
    table.add_column("Ref", style="cyan")
    table.add_column("Time")
    table.add_column("Location")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Equipment")
    table.add_column("Status")

    for log in logs:
        table.add_row(
            log.reference_id,
            format_timestamp(log.timestamp),
            log.location,
            log.activity_category or "-",
            log.activity_type or "-",
            log.equipment or "-",
            status_text(log.status),
        )
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Field Activity Log System.

    Turn field transcriptions into structured, mapped activity logs.
    """
    configure_logging(verbose)
    ctx.obj = get_settings()


# ============================================================================
# Extraction Commands
# ============================================================================


@cli.command("extract")
@click.argument("text", required=False)
@click.option("--file", "-f", "text_file", type=click.File("r"), default=None,
              help="Read the transcription from a file ('-' for stdin)")
@click.option("--title", "-t", default=None, help="Title for the saved transcription")
@click.option("--extractor", "-e", default=None, help="Preferred extractor passed to the service")
@click.option("--no-save", is_flag=True, help="Extract only; do not persist the logs")
@click.pass_obj
def extract(settings: Settings, text: Optional[str], text_file, title: Optional[str],
            extractor: Optional[str], no_save: bool):
    """Extract activity logs from a transcription and save them."""
    from fieldlog.services.extraction_client import ExtractionClient
    from fieldlog.services.pipeline import TranscriptionPipeline

    if text_file is not None:
        text = text_file.read()
    text = text or ""

    store = get_store(settings)
    try:
        client = ExtractionClient.from_settings(settings)
    except FieldLogError as e:
        fail(e)

    pipeline = TranscriptionPipeline(client, store)

    try:
        with console.status("Analyzing transcription..."):
            result = pipeline.process(
                text,
                title=title,
                preferred_extractor=extractor or settings.preferred_extractor,
                save=not no_save,
            )
    except NoResultsError as e:
        console.print(f"[yellow]{e.message}[/yellow]")
        if e.hint:
            console.print(f"  [dim]{e.hint}[/dim]")
        return
    except FieldLogError as e:
        fail(e)

    source = " (cached)" if result.from_cache else ""
    console.print(f"[green]Generated {len(result.logs)} log entries{source}[/green]")
    console.print(render_logs_table(result.logs))

    if result.persisted:
        console.print(f"[green]Saved transcription:[/green] {result.transcription_id}")
    for error in result.errors:
        console.print(f"[red]Not saved:[/red] {error.message}")
        if error.hint:
            console.print(f"  [dim]{error.hint}[/dim]")
    if result.errors:
        sys.exit(1)


@cli.command("status")
@click.pass_obj
def show_status(settings: Settings):
    """Check the extraction service and the backing store."""
    from fieldlog.services.extraction_client import ExtractionClient
    from fieldlog.services.schema_check import SchemaCapabilityCheck, SchemaStatus

    console.print(f"[bold]Store:[/bold] {settings.store_backend.value}")

    store = get_store(settings)
    schema = SchemaCapabilityCheck(store).status()
    schema_style = "green" if schema == SchemaStatus.READY else "yellow"
    console.print(f"  Schema: [{schema_style}]{schema.value}[/{schema_style}]")
    if schema == SchemaStatus.NEEDS_SETUP:
        console.print("  [dim]Run `fieldlog setup` to provision the activity tables.[/dim]")

    console.print("[bold]Extraction service:[/bold]")
    try:
        client = ExtractionClient.from_settings(settings)
    except FieldLogError as e:
        console.print(f"  [red]{e.message}[/red]")
        return

    console.print(f"  URL: {client.url}")
    if client.check_api_key_configured():
        console.print("  API key: [green]configured[/green]")
    else:
        console.print("  API key: [red]not configured[/red]")
        console.print(
            "  [dim]Set GEMINI_API_KEY in the extraction function's environment variables.[/dim]"
        )


@cli.command("setup")
@click.option("--print-sql", is_flag=True, help="Print the SQL setup script instead")
@click.pass_obj
def setup(settings: Settings, print_sql: bool):
    """Provision the activity tables."""
    if print_sql:
        if settings.store_backend == StoreBackend.SUPABASE:
            from fieldlog.services.supabase_store import POSTGRES_SCHEMA_SQL as sql
        else:
            from fieldlog.services.log_store import SQLITE_SCHEMA_SQL as sql
        click.echo(sql.strip())
        return

    store = get_store(settings)
    try:
        store.create_schema()
    except FieldLogError as e:
        fail(e)
    console.print("[green]Activity tables are ready.[/green]")


# ============================================================================
# Log Commands
# ============================================================================


@cli.group()
def logs():
    """Activity log commands."""
    pass


def _load_logs(settings: Settings) -> list[ActivityLog]:
    store = get_store(settings)
    try:
        return store.fetch_logs()
    except FieldLogError as e:
        fail(e)


@logs.command("list")
@click.option("--sort", "sort_key", default="timestamp", help="Field to sort by")
@click.option("--direction", type=click.Choice(["ascending", "descending"]),
              default="descending", help="Sort direction")
@click.option("--search", "-s", default="", help="Search text")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None)
@click.option("--category", default=None, help="Exact activity category")
@click.option("--location", default=None, help="Exact location")
@click.option("--limit", default=50, help="Maximum logs to show")
@click.pass_obj
def list_logs(settings: Settings, sort_key: str, direction: str, search: str,
              status: Optional[str], category: Optional[str], location: Optional[str],
              limit: int):
    """List activity logs."""
    from fieldlog.services.log_state import (
        DashboardState,
        LogFilter,
        set_filter,
        set_logs,
        visible_logs,
    )
    from fieldlog.services.table_sorter import SortConfig, SortDirection

    state = set_logs(DashboardState(), _load_logs(settings))
    state = set_filter(state, LogFilter(
        query=search,
        status=ActivityStatus(status) if status else None,
        category=category,
        location=location,
    ))

    try:
        state = replace(state, sort=SortConfig(key=sort_key, direction=SortDirection(direction)))
        shown = visible_logs(state)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not shown:
        console.print("No logs found.")
        return

    console.print(render_logs_table(shown[:limit]))
    if len(shown) > limit:
        console.print(f"[dim]Showing {limit} of {len(shown)} logs[/dim]")


@logs.command("show")
@click.argument("log_id")
@click.pass_obj
def show_log(settings: Settings, log_id: str):
    """Show every field of one log."""
    store = get_store(settings)
    try:
        log = store.get_log(log_id)
    except FieldLogError as e:
        fail(e)

    if not log:
        console.print(f"[red]Log not found:[/red] {log_id}")
        sys.exit(1)

    console.print(f"[bold]{log.reference_id}[/bold] ({log.id})")
    console.print(f"  Time: {format_timestamp(log.timestamp)}")
    console.print(f"  Location: {log.location}")
    if log.coordinates:
        console.print(f"  Coordinates: {log.coordinates[1]:.5f}, {log.coordinates[0]:.5f}")
    console.print(f"  Activity: {log.activity_category} / {log.activity_type}")
    console.print(f"  Equipment: {log.equipment or '-'}")
    console.print(f"  Personnel: {log.personnel or '-'}")
    console.print(f"  Material: {log.material or '-'}")
    if log.measurement:
        console.print(f"  Measurement: {log.measurement}")
    console.print(f"  Status: {status_text(log.status)}")
    if log.notes:
        console.print(f"  Notes: {log.notes}")
    if log.media:
        console.print(f"  Media: {log.media}")


@logs.command("delete")
@click.argument("log_id")
@click.pass_obj
def delete_log(settings: Settings, log_id: str):
    """Delete one activity log."""
    store = get_store(settings)
    try:
        deleted = store.delete_log(log_id)
    except FieldLogError as e:
        fail(e)

    if not deleted:
        console.print(f"[red]Log not found:[/red] {log_id}")
        sys.exit(1)
    console.print(f"[green]Deleted log:[/green] {log_id}")


@logs.command("set-status")
@click.argument("log_id")
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@click.pass_obj
def set_status(settings: Settings, log_id: str, status: str):
    """Change the status of a log."""
    store = get_store(settings)
    try:
        log = store.get_log(log_id)
        if not log:
            console.print(f"[red]Log not found:[/red] {log_id}")
            sys.exit(1)
        log.status = ActivityStatus(status)
        store.update_log(log)
    except FieldLogError as e:
        fail(e)
    console.print(f"[green]Updated {log.reference_id}:[/green] {status_text(log.status)}")


@logs.command("stats")
@click.pass_obj
def show_stats(settings: Settings):
    """Show log counts by status and category."""
    from fieldlog.services.log_stats import compute_log_stats

    stats = compute_log_stats(_load_logs(settings))
    console.print(f"[bold]{stats.total}[/bold] logs at {stats.location_count} locations")

    table = Table(title="By Status")
    table.add_column("Status")
    table.add_column("Count", justify="right")
    for status, count in stats.status_counts.items():
        table.add_row(status_text(status), str(count))
    console.print(table)

    if stats.category_counts:
        table = Table(title="By Category")
        table.add_column("Category")
        table.add_column("Count", justify="right")
        for category, count in stats.category_counts.items():
            table.add_row(category, str(count))
        console.print(table)


@logs.command("map")
@click.option("--output", "-o", required=True, help="Output HTML file path")
@click.option("--select", "selected_log_id", default=None, help="Log ID to highlight")
@click.option("--title", default="Activity Map", help="Page title")
@click.pass_obj
def generate_map(settings: Settings, output: str, selected_log_id: Optional[str], title: str):
    """Generate an interactive map of logs grouped by location."""
    from fieldlog.services.map_renderer import MapRenderer

    path = MapRenderer().write_map(
        _load_logs(settings), output, selected_log_id=selected_log_id, title=title
    )
    console.print(f"[green]Map saved to:[/green] {path}")


# ============================================================================
# History Commands
# ============================================================================


@cli.group()
def history():
    """Saved transcription commands."""
    pass


@history.command("list")
@click.pass_obj
def list_history(settings: Settings):
    """List saved transcriptions."""
    store = get_store(settings)
    try:
        transcriptions = store.fetch_transcriptions()
    except FieldLogError as e:
        fail(e)

    if not transcriptions:
        console.print("No saved transcriptions yet.")
        return

    table = Table(title="Transcription History")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Created")
    table.add_column("Logs", justify="right")

    for t in transcriptions:
        table.add_row(t.id, t.display_title, format_timestamp(t.created_at), str(t.log_count))

    console.print(table)


def _get_transcription(settings: Settings, transcription_id: str):
    store = get_store(settings)
    try:
        transcription = store.get_transcription(transcription_id)
    except FieldLogError as e:
        fail(e)
    if not transcription:
        console.print(f"[red]Transcription not found:[/red] {transcription_id}")
        sys.exit(1)
    return transcription


@history.command("show")
@click.argument("transcription_id")
@click.pass_obj
def show_transcription(settings: Settings, transcription_id: str):
    """Show a saved transcription."""
    transcription = _get_transcription(settings, transcription_id)
    console.print(f"[bold]{transcription.display_title}[/bold]")
    console.print(f"  Created: {format_timestamp(transcription.created_at)}")
    console.print(f"  Logs generated: {transcription.logs_generated}")
    console.print()
    console.print(transcription.text, markup=False)


@history.command("export")
@click.argument("transcription_id")
@click.option("--output", "-o", default=None, help="Output text file (default: <title>.txt)")
@click.pass_obj
def export_transcription(settings: Settings, transcription_id: str, output: Optional[str]):
    """Download a saved transcription as a text file."""
    transcription = _get_transcription(settings, transcription_id)
    path = Path(output or transcription.export_filename)
    try:
        path.write_text(transcription.text)
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not write {path}: {e.strerror or e}")
        sys.exit(1)
    console.print(f"[green]Transcription saved to:[/green] {path}")


@history.command("delete")
@click.argument("transcription_id")
@click.pass_obj
def delete_history(settings: Settings, transcription_id: str):
    """Delete a transcription and every log derived from it."""
    from fieldlog.services.pipeline import delete_transcription

    _get_transcription(settings, transcription_id)
    store = get_store(settings)
    try:
        deleted_logs = delete_transcription(store, transcription_id)
    except FieldLogError as e:
        fail(e)
    console.print(
        f"[green]Deleted transcription:[/green] {transcription_id} ({deleted_logs} logs)"
    )


if __name__ == "__main__":
    cli()

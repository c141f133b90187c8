"""CLI commands for MedEcho."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from medecho.config import get_settings

app = typer.Typer(
    name="medecho",
    help="Clinical scheduling and AI symptom intake",
    add_completion=False,
)
console = Console()


def _booking_service(session):
    from medecho.core.repository import SqlSchedulingBackend
    from medecho.scheduling import BookingService
    from medecho.scheduling.clock import calendar_from_settings

    return BookingService(
        SqlSchedulingBackend(session),
        calendar=calendar_from_settings(),
        step_minutes=get_settings().slot_step_minutes,
    )


@app.command("init-db")
def init_db(
    seed: bool = typer.Option(True, "--seed/--no-seed", help="Load demo doctors and patients"),
):
    """Create database tables and optionally load demo data."""
    from medecho.core.database import build_engine, create_tables, get_database_url, session_scope
    from medecho.core.seed import seed_demo_data

    async def _run() -> int:
        engine = build_engine(get_database_url())
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()
        if not seed:
            return 0
        async with session_scope() as session:
            return await seed_demo_data(session)

    added = asyncio.run(_run())
    console.print(f"[green]Database ready[/green] at {get_database_url()}")
    if seed:
        console.print(f"Seeded {added} demo users")


@app.command()
def doctors(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by name or specialization"),
):
    """List doctors."""
    from medecho.core.database import session_scope
    from medecho.core.repository import UserRepository
    from medecho.core.schemas import UserProfile

    async def _run() -> list[UserProfile]:
        async with session_scope() as session:
            rows = await UserRepository(session).list_doctors(search=search)
            return [UserProfile.model_validate(r) for r in rows]

    found = asyncio.run(_run())
    if not found:
        console.print("[yellow]No doctors found[/yellow]")
        return

    table = Table(title="Doctors")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Specialization")
    table.add_column("Contact")
    table.add_column("Available")
    for doc in found:
        table.add_row(
            doc.id,
            doc.name,
            doc.specialization or "-",
            doc.contact or "-",
            "yes" if doc.is_available else "no",
        )
    console.print(table)


@app.command()
def slots(
    provider_id: str = typer.Argument(..., help="Doctor id"),
    date: str = typer.Argument(..., help="Date as YYYY-MM-DD"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show bookable start times for a doctor on a date."""
    from medecho.core.database import session_scope
    from medecho.scheduling.clock import parse_date

    if parse_date(date) is None:
        console.print(f"[red]Invalid date: {date}. Use YYYY-MM-DD[/red]")
        raise typer.Exit(1)

    async def _run() -> list[str]:
        async with session_scope() as session:
            return await _booking_service(session).available_slots(provider_id, date)

    free = asyncio.run(_run())
    if output_json:
        console.print(json.dumps(free, indent=2))
        return
    if not free:
        console.print(f"[yellow]No free slots for {provider_id} on {date}[/yellow]")
        return
    console.print(
        Panel(
            "  ".join(free),
            title=f"Free slots: {provider_id} on {date}",
            border_style="green",
        )
    )


@app.command()
def schedule(
    provider_id: str = typer.Argument(..., help="Doctor id"),
):
    """Show a doctor's weekly template and blackouts."""
    from medecho.core.database import session_scope
    from medecho.core.repository import ProfileRepository

    async def _run():
        async with session_scope() as session:
            return await ProfileRepository(session).get(provider_id)

    profile = asyncio.run(_run())
    if profile is None:
        console.print(f"[red]Unknown doctor: {provider_id}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Weekly schedule: {provider_id} (version {profile.version})")
    table.add_column("Day")
    table.add_column("Active")
    table.add_column("Hours")
    for day in profile.schedules:
        hours = ", ".join(f"{r.start}-{r.end}" for r in day.ranges) or "-"
        table.add_row(day.day_name, "[green]yes[/green]" if day.is_active else "[dim]no[/dim]", hours)
    console.print(table)

    if profile.blocked_slots:
        blocked = Table(title="Blocked")
        blocked.add_column("ID", style="cyan")
        blocked.add_column("Date")
        blocked.add_column("Time")
        blocked.add_column("Reason")
        for b in sorted(profile.blocked_slots, key=lambda b: b.date):
            when = "all day" if b.is_all_day or b.range is None else f"{b.range.start}-{b.range.end}"
            blocked.add_row(b.id, b.date, when, b.reason)
        console.print(blocked)


@app.command()
def block(
    provider_id: str = typer.Argument(..., help="Doctor id"),
    date: str = typer.Argument(..., help="Date as YYYY-MM-DD"),
    reason: str = typer.Option(..., "--reason", "-r", help="Why the time is blocked"),
    start: Optional[str] = typer.Option(None, "--start", help="HH:MM; omit for all day"),
    end: Optional[str] = typer.Option(None, "--end", help="HH:MM; omit for all day"),
):
    """Block out a date (or part of it) for a doctor."""
    from medecho.core.database import session_scope
    from medecho.scheduling import ProviderNotFoundError
    from medecho.scheduling import store
    from medecho.scheduling.clock import parse_date

    if parse_date(date) is None:
        console.print(f"[red]Invalid date: {date}. Use YYYY-MM-DD[/red]")
        raise typer.Exit(1)

    blocked = store.new_blocked_slot(
        date, reason, is_all_day=start is None and end is None, start=start, end=end
    )

    async def _run():
        async with session_scope() as session:
            service = _booking_service(session)
            before = await service.backend.get_profile(provider_id)
            after = await service.edit_profile(
                provider_id, lambda p: store.add_blocked_slot(p, blocked)
            )
            return before, after

    try:
        before, after = asyncio.run(_run())
    except ProviderNotFoundError:
        console.print(f"[red]Unknown doctor: {provider_id}[/red]")
        raise typer.Exit(1)

    if before is not None and after.version == before.version:
        console.print("[yellow]Block rejected: check the reason and both times[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]Blocked[/green] {date} for {provider_id} ({blocked.id})")


@app.command()
def reminders(
    user_id: str = typer.Argument(..., help="Patient or doctor id"),
    hours: Optional[int] = typer.Option(None, "--hours", help="Lead window in hours"),
):
    """List reminders for a user's upcoming appointments."""
    from datetime import timedelta

    from medecho.core.database import session_scope
    from medecho.core.repository import AppointmentRepository
    from medecho.scheduling.clock import calendar_from_settings
    from medecho.scheduling.reminders import upcoming_reminders

    calendar = calendar_from_settings()
    lead = timedelta(hours=hours or get_settings().reminder_lead_hours)

    async def _run():
        async with session_scope() as session:
            return await AppointmentRepository(session).list()

    appointments = asyncio.run(_run())
    found = upcoming_reminders(appointments, user_id, calendar.now(), lead, calendar=calendar)
    if not found:
        console.print("[dim]No upcoming appointments[/dim]")
        return
    for note in found:
        console.print(f"[bold]{note.title}[/bold]: {note.message}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the REST API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"Starting MedEcho API server on {host}:{port}")
    uvicorn.run(
        "medecho.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )

"""Form backend CLI - serve, schema setup and quick lookups."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings

app = typer.Typer(
    name="formbackend",
    help="Hosted endpoints for third-party HTML forms",
    no_args_is_help=True,
)
console = Console()


@app.command("serve")
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP service."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console.print(f"[bold cyan]Starting Form Backend at http://{host}:{port}[/bold cyan]")
    uvicorn.run("formbackend.app:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_db():
    """Create the database tables."""
    from .database import engine, init_models

    async def _run():
        try:
            await init_models(engine)
        finally:
            await engine.dispose()

    asyncio.run(_run())
    console.print(f"[green]Database schema ready[/green] ({engine.url.render_as_string(hide_password=True)})")


@app.command("create-form")
def create_form(
    owner_email: str = typer.Option(..., "--owner-email", help="Where notifications go"),
    name: str = typer.Option(None, "--name", help="Display name"),
    honeypot_field: str = typer.Option(None, "--honeypot-field", help="Hidden field name"),
):
    """Register a new form and print its endpoints."""
    from .database import async_session_factory, engine
    from .services import form_svc

    async def _run():
        try:
            async with async_session_factory() as db:
                return await form_svc.create_form(
                    db,
                    owner_email=owner_email,
                    name=name,
                    honeypot_field=honeypot_field,
                    default_honeypot_field=settings.default_honeypot_field,
                )
        finally:
            await engine.dispose()

    try:
        form = asyncio.run(_run())
    except form_svc.InvalidFormData as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    base = settings.public_base_url.rstrip("/")
    console.print(
        Panel(
            f"[bold]ID:[/bold] {form.id}\n"
            f"[bold]Submit:[/bold] POST {base}/api/forms/{form.id}/submit\n"
            f"[bold]Dashboard:[/bold] {base}/dashboard/{form.id}\n"
            f"[bold]Honeypot field:[/bold] {form.honeypot_field}",
            title=form.label,
        )
    )


@app.command("stats")
def stats(form_id: str = typer.Argument(..., help="Form ID")):
    """Show submission totals for a form."""
    from datetime import timedelta

    from .database import async_session_factory, engine
    from .services.errors import FormNotFound
    from .services.stats_svc import SubmissionStatsEngine
    from .services.submission_store import SubmissionStore

    async def _run():
        try:
            store = SubmissionStore(async_session_factory)
            stats_engine = SubmissionStatsEngine(
                async_session_factory, store,
                recent_window=timedelta(days=settings.recent_window_days),
            )
            return await stats_engine.stats(form_id)
        finally:
            await engine.dispose()

    try:
        result = asyncio.run(_run())
    except FormNotFound:
        console.print(f"[red]Form '{form_id}' not found[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Submissions for {form_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Total", str(result.total))
    table.add_row("Spam blocked", str(result.spam_count))
    table.add_row("Legitimate", str(result.legit_count))
    table.add_row(f"Last {settings.recent_window_days} days", str(result.recent_count))
    console.print(table)


if __name__ == "__main__":
    app()

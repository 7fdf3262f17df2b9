"""
Santelle - CLI Entry Point.

Usage:
    santelle quiz                 Take the plan quiz in the terminal
    santelle quiz --persist       ...and store the result in Supabase
    santelle recommend 3 2 2 3    Recommendation for a set of answers
    santelle responses            List stored quiz responses
    santelle serve                Start the API server
    santelle health               Check configuration
"""

import asyncio
import logging
import sys

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="santelle",
    help="Santelle - plan quiz and waitlist tools.",
    add_completion=False,
)
console = Console()


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging and quiet noisy HTTP libraries."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    load_dotenv()
    from santelle.config import settings

    setup_logging(settings.log_level, verbose)


# =============================================================================
# Quiz
# =============================================================================


def _ask_option(question) -> int:
    while True:
        raw = console.input("[bold blue]Your answer:[/bold blue] ").strip()
        if raw.isdigit() and question.is_valid_option(int(raw)):
            return int(raw)
        console.print(f"[red]Enter a number between 1 and {len(question.options)}.[/red]")


async def _run_quiz(persist: bool) -> None:
    from quiz.flow import QuizFlow
    from quiz.plans import PLANS
    from quiz.questions import QUIZ_QUESTIONS
    from quiz.state import QuizPhase
    from santelle.config import get_settings
    from santelle.db import InMemoryQuizRecordStore, InMemoryWaitlistService
    from santelle.db import SupabaseQuizRecordStore, SupabaseWaitlistService

    settings = get_settings()
    if persist:
        store, waitlist = SupabaseQuizRecordStore(), SupabaseWaitlistService()
    else:
        store, waitlist = InMemoryQuizRecordStore(), InMemoryWaitlistService()

    flow = QuizFlow.from_settings(settings, store=store, waitlist=waitlist)
    flow.start()

    while flow.phase == QuizPhase.QUESTIONING:
        question = QUIZ_QUESTIONS[flow.session.current_question]
        console.print(f"\n[bold]{flow.session.current_question + 1}/{len(QUIZ_QUESTIONS)} {question.title}[/bold]")
        console.print(question.prompt)
        for i, option in enumerate(question.options, start=1):
            console.print(f"  [cyan]{i}[/cyan]. {option}")
        flow.select_answer(_ask_option(question))
        await flow.next()

    recommended = PLANS[flow.session.recommended_plan]
    console.print(
        Panel.fit(
            f"[bold green]{recommended.name}[/bold green] - {recommended.frequency}",
            title="Recommended plan",
            border_style="green",
        )
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("#")
    table.add_column("Plan")
    table.add_column("Frequency")
    for i, plan in enumerate(PLANS, start=1):
        marker = " *" if plan is recommended else ""
        table.add_row(str(i), plan.name + marker, plan.frequency)
    console.print(table)

    while flow.phase == QuizPhase.PLAN_SELECTION:
        raw = console.input("[bold blue]Choose a plan (number, Enter for recommended):[/bold blue] ").strip()
        if not raw:
            await flow.select_plan(recommended.name)
        elif raw.isdigit() and 1 <= int(raw) <= len(PLANS):
            await flow.select_plan(PLANS[int(raw) - 1].name)
        else:
            console.print("[red]Unknown plan.[/red]")

    while flow.phase == QuizPhase.LEAD_CAPTURE:
        email = console.input("[bold blue]Email for the waitlist (blank to skip):[/bold blue] ").strip()
        if not email:
            break
        result = await flow.submit_email(email)
        if not result.accepted:
            console.print(f"[red]{result.message}[/red]")

    await flow.close()

    if flow.session.is_complete:
        console.print(f"\n[green]You're on the list, {flow.session.email}![/green]")
    else:
        console.print("\n[dim]No email saved.[/dim]")
    if flow.session.record_id:
        console.print(f"[dim]Quiz record: {flow.session.record_id}[/dim]")


@app.command()
def quiz(
    persist: bool = typer.Option(False, "--persist", help="Store answers and email in Supabase"),
) -> None:
    """Take the plan quiz interactively."""
    console.print(
        Panel.fit(
            "[bold]Santelle plan quiz[/bold]\n"
            "Four quick questions to find the testing plan that fits you.",
            title="Welcome",
            border_style="magenta",
        )
    )
    try:
        asyncio.run(_run_quiz(persist))
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Quiz abandoned.[/dim]")


@app.command()
def recommend(
    q1: int = typer.Argument(..., help="Answer to q1 (1-4)"),
    q2: int = typer.Argument(..., help="Answer to q2 (1-3)"),
    q3: int = typer.Argument(..., help="Answer to q3 (1-3)"),
    q4: int = typer.Argument(..., help="Answer to q4 (1-3)"),
) -> None:
    """Show the recommended plan for a set of answers."""
    from quiz.errors import QuizError
    from quiz.plans import plan_for_tier, plan_index
    from quiz.recommendation import CompleteAnswers, recommend_plan

    try:
        answers = CompleteAnswers(q1=q1, q2=q2, q3=q3, q4=q4)
    except QuizError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    tier = recommend_plan(answers)
    plan = plan_for_tier(tier)
    console.print(f"Tier: [bold]{tier.name.lower()}[/bold] ({int(tier)})")
    console.print(f"Plan: [bold green]{plan.name}[/bold green] - {plan.frequency} (index {plan_index(tier)})")


@app.command()
def responses(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows to show"),
) -> None:
    """List stored quiz responses, newest first."""
    from santelle.db import SupabaseQuizRecordStore

    try:
        rows = asyncio.run(SupabaseQuizRecordStore().list_records(limit=limit))
    except Exception as e:
        console.print(f"[red]FAIL Could not fetch quiz responses: {e}[/red]")
        raise typer.Exit(1)

    columns = ("created_at", "q1", "q2", "q3", "q4", "plan", "email", "signup?")
    table = Table(title=f"Quiz responses ({len(rows)})", show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if row.get(column) is None else str(row[column]) for column in columns))
    console.print(table)


@app.command()
def health() -> None:
    """Check configuration."""
    from santelle.config import get_settings

    console.print("\n[bold]Santelle Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.santelle_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Store backend: {settings.store_backend}")

        if settings.supabase_url.startswith("https://") and settings.supabase_service_role_key:
            console.print("[green]OK[/green] Supabase configured")
        elif settings.store_backend == "supabase":
            console.print("[red]FAIL[/red] Supabase URL or service role key missing")
            raise typer.Exit(1)
        else:
            console.print("[dim]INFO[/dim] Supabase not configured (memory backend)")

        console.print(f"[green]OK[/green] DNS resolver: {settings.dns_resolver_url}")
        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from santelle import __version__

    console.print(f"Santelle version {__version__}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the API server."""
    import os

    import uvicorn

    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Santelle API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "santelle.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


if __name__ == "__main__":
    app()

"""CLI commands for the IELTS Writing service.

Commands:
- init-db: Create the database schema
- serve: Run the Web API
- set-role: Promote or demote an account
- mark: Score an essay file from the terminal
- progress: Show a student's dashboard
"""

from pathlib import Path

import typer
from rich.console import Console

from ielts_writing.config.app_config import load_app_config
from ielts_writing.core.bands import CRITERIA, CRITERION_NAMES, compute_recent_band
from ielts_writing.core.errors import MalformedOracleOutputError, OracleUnavailableError
from ielts_writing.core.marker import MIN_MARKABLE_WORDS, count_words, mark_essay
from ielts_writing.core.personalisation import build_personalisation
from ielts_writing.db.database import init_db as do_init_db
from ielts_writing.db.profiles_repository import ROLES, get_profile_by_email, set_role
from ielts_writing.db.submissions_repository import list_submissions
from ielts_writing.llm.client import LLMClient

app = typer.Typer(
    name="ielts",
    help="IELTS Writing practice service with AI marking.",
    no_args_is_help=True,
)

console = Console()

PROGRESS_LIMIT = 20


def _open_db() -> None:
    do_init_db(load_app_config().db_path)


@app.command(name="init-db")
def init_db() -> None:
    """Create the database and its tables if missing."""
    path = load_app_config().db_path
    do_init_db(path)
    console.print(f"[green]✓ Database ready[/green] [dim]{path}[/dim]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run("ielts_writing.web.api:app", host=host, port=port, reload=reload)


@app.command(name="set-role")
def set_role_command(
    email: str = typer.Argument(..., help="Account email"),
    role: str = typer.Argument(..., help="student, teacher or admin"),
) -> None:
    """Change the role of an existing account."""
    if role not in ROLES:
        console.print(f"[red]✗ Unknown role '{role}'. Use one of: {', '.join(ROLES)}[/red]")
        raise typer.Exit(code=1)

    _open_db()
    profile = set_role(email, role)
    if profile is None:
        console.print(f"[red]✗ No account for {email}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {profile.email} is now {profile.role}[/green]")


@app.command()
def mark(
    essay_file: Path = typer.Argument(..., help="Text file with the essay"),
    prompt: str = typer.Option(..., "--prompt", help="Question the essay answers"),
    task: str = typer.Option("task2", "--task", "-t", help="task1 or task2"),
) -> None:
    """Score an essay file; nothing is recorded."""
    if task not in ("task1", "task2"):
        console.print("[red]✗ --task must be task1 or task2[/red]")
        raise typer.Exit(code=1)
    if not essay_file.exists():
        console.print(f"[red]✗ File not found: {essay_file}[/red]")
        raise typer.Exit(code=1)

    essay = essay_file.read_text(encoding="utf-8")
    word_count = count_words(essay)
    if word_count < MIN_MARKABLE_WORDS:
        console.print(f"[red]✗ Please write at least {MIN_MARKABLE_WORDS} words.[/red]")
        raise typer.Exit(code=1)

    console.print(f"[blue]Marking {word_count} words...[/blue]")
    try:
        feedback = mark_essay(
            LLMClient(),
            essay=essay,
            prompt_text=prompt,
            task_type=task,
            word_count=word_count,
        )
    except OracleUnavailableError as e:
        console.print(f"[red]✗ AI marking failed: {e}[/red]")
        raise typer.Exit(code=1)
    except MalformedOracleOutputError:
        console.print("[red]✗ AI returned malformed feedback. Please try again.[/red]")
        raise typer.Exit(code=1)

    from rich.table import Table

    table = Table(show_header=True, header_style="bold")
    table.add_column("Criterion")
    table.add_column("Band", justify="right")
    bands = feedback.criteria_scores.bands()
    for key in CRITERIA:
        table.add_row(CRITERION_NAMES[key], f"{bands[key]:.1f}")
    console.print(table)
    console.print(f"[bold]Overall band:[/bold] {feedback.overall_band:.1f}")

    if feedback.examiner_summary:
        console.print(f"\n{feedback.examiner_summary}")
    for tip in feedback.improvements():
        console.print(f"  • {tip}")


@app.command()
def progress(email: str = typer.Argument(..., help="Student email")) -> None:
    """Show a student's recent band and coaching recommendation."""
    _open_db()
    profile = get_profile_by_email(email)
    if profile is None:
        console.print(f"[red]✗ No account for {email}[/red]")
        raise typer.Exit(code=1)

    submissions = list_submissions(profile.user_id, PROGRESS_LIMIT)
    recent = compute_recent_band(submissions)
    plan = build_personalisation(profile, submissions)

    console.print(f"[bold]{profile.full_name}[/bold] [dim]{profile.email}[/dim]")
    console.print(f"  [dim]current:[/dim]  {profile.current_band:.1f}")
    console.print(f"  [dim]target:[/dim]   {profile.target_band:.1f}")
    console.print(f"  [dim]recent:[/dim]   {recent:.1f}" if recent is not None else "  [dim]recent:[/dim]   -")
    console.print(f"  [dim]attempts:[/dim] {len(submissions)}")
    console.print()
    console.print(f"  [dim]tier:[/dim]      {plan.difficulty}")
    console.print(f"  [dim]practise:[/dim]  {plan.recommended_task}")
    console.print(f"  [dim]focus on:[/dim]  {', '.join(CRITERION_NAMES[c] for c in plan.emphasis_criteria)}")
    console.print(f"\n{plan.coaching_note}")


if __name__ == "__main__":
    app()

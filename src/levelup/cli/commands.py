"""CLI commands for the progression engine.

Commands:
- init-db: Create the database schema
- submit: Grade a quiz attempt from an answers file
- progress: Best result and unlock state per tier
- unlocked: Whether a tier is open
- summary: Section scores, total and gap to target
- history: Submission history of a course
- scales: Configured scaled-score bands
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from levelup.config.app_config import load_app_config, resolve_db_path
from levelup.core.engine import ProgressionEngine
from levelup.core.errors import (
    InvalidSubmissionError,
    SubmissionPersistenceError,
)
from levelup.core.models import try_parse_tier
from levelup.db import courses_repository
from levelup.db.database import init_db

app = typer.Typer(
    name="levelup",
    help="Adaptive difficulty scoring and tier progression.",
    no_args_is_help=True,
)

console = Console()


def _engine() -> ProgressionEngine:
    """Engine on the configured database (created if missing)."""
    config = load_app_config()
    db_path = init_db(resolve_db_path(config))
    return ProgressionEngine.from_db(db_path, config)


def _resolve_tier_or_exit(level: str):
    tier = try_parse_tier(level)
    if tier is None:
        console.print(f"[red]✗ Unknown level: {level} (use easy, medium or hard)[/red]")
        raise typer.Exit(code=1)
    return tier


def _load_answers(answers_path: Path) -> tuple[list[str] | None, list[str], int | None]:
    """Read an answers file.

    Accepted shapes:
    ["A", "", "12"]
    {"answers": ["A", "", "12"], "duration_seconds": 600}
    {"answers": [{"question_id": "q1", "response": "A"}, ...]}

    Returns:
        (question_ids or None, answers, duration_seconds)
    """
    with open(answers_path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        raw, duration = data, None
    elif isinstance(data, dict):
        raw = data.get("answers", [])
        duration = data.get("duration_seconds")
    else:
        raise ValueError("expected a list of answers or an object with 'answers'")

    if not isinstance(raw, list):
        raise ValueError("'answers' must be a list")

    if raw and all(isinstance(a, dict) for a in raw):
        question_ids = [str(a.get("question_id", "")) for a in raw]
        answers = ["" if a.get("response") is None else str(a["response"]) for a in raw]
        return question_ids, answers, duration

    return None, ["" if a is None else str(a) for a in raw], duration


@app.command(name="init-db")
def init_database() -> None:
    """Create the database and its tables."""
    db_path = init_db(resolve_db_path())
    console.print(f"[green]✓ Database ready:[/green] {db_path}")


@app.command()
def submit(
    course_id: str = typer.Argument(..., help="Course ID"),
    level: str = typer.Argument(..., help="Difficulty level (easy, medium, hard)"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
    answers: str = typer.Option(
        ..., "--answers", "-a", help="Path to answers JSON file"
    ),
) -> None:
    """Grade a quiz attempt.

    Without question ids in the answers file, answers are matched in order
    to the course level's questions.
    """
    tier = _resolve_tier_or_exit(level)
    answers_path = Path(answers).expanduser().resolve()

    if not answers_path.exists():
        console.print(f"[red]✗ Answers file not found: {answers_path}[/red]")
        raise typer.Exit(code=1)

    try:
        question_ids, answer_values, duration = _load_answers(answers_path)
    except (ValueError, OSError) as e:
        console.print(f"[red]✗ Could not read answers file: {e}[/red]")
        raise typer.Exit(code=1)

    engine = _engine()

    console.print(f"[blue]Grading {course_id}/{tier.label} for {student}...[/blue]")

    try:
        if question_ids is not None:
            result = engine.submit_by_question_ids(
                student, course_id, tier, question_ids, answer_values, duration
            )
        else:
            questions = courses_repository.get_questions(
                course_id, tier, db_path=resolve_db_path()
            )
            result = engine.submit(student, course_id, tier, questions, answer_values, duration)
    except InvalidSubmissionError as e:
        console.print(f"[red]✗ Invalid submission: {e}[/red]")
        raise typer.Exit(code=1)
    except SubmissionPersistenceError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    record = result.record
    color = "green" if record.percentage >= engine.config.scoring.pass_threshold else "yellow"
    console.print(f"[{color}]✓ {result.message}[/{color}]")
    console.print(f"  [dim]submission:[/dim] {record.submission_id}")
    console.print(f"  [dim]correct:[/dim]    {record.raw_score}/{record.total_questions}")
    for category, section in record.sections.items():
        console.print(
            f"  [dim]{category.value}:[/dim] {section.correct}/{section.total} -> {section.scaled}"
        )

    if result.progress is not None:
        console.print(
            f"  [dim]best:[/dim]       {result.progress.best_percentage:.0f}% "
            f"({result.progress.best_scaled})"
        )
    if result.next_tier_unlocked and tier.next_tier is not None:
        console.print(f"\n[cyan]{tier.next_tier.label} level unlocked[/cyan]")

    for warning in result.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")


@app.command()
def progress(
    course_id: str = typer.Argument(..., help="Course ID"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
) -> None:
    """Show best result and unlock state per level."""
    engine = _engine()
    levels = engine.level_states(student, course_id)

    table = Table(title=f"{student} · {course_id}")
    table.add_column("Level")
    table.add_column("Status")
    table.add_column("Best %", justify="right")
    table.add_column("Scaled", justify="right")

    for state in levels:
        if not state.unlocked:
            status = "[dim]locked[/dim]"
        elif state.passed:
            status = "[green]passed[/green]"
        else:
            status = "open"
        table.add_row(
            state.tier.label,
            status,
            f"{state.best_percentage:.0f}" if state.best_percentage is not None else "-",
            str(state.best_scaled) if state.best_scaled is not None else "-",
        )

    console.print(table)
    if all(s.passed for s in levels):
        console.print("[green]✓ Course completed[/green]")


@app.command()
def unlocked(
    course_id: str = typer.Argument(..., help="Course ID"),
    level: str = typer.Argument(..., help="Difficulty level"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
) -> None:
    """Exit 0 if the level is unlocked, 1 otherwise."""
    tier = _resolve_tier_or_exit(level)
    is_open = _engine().is_unlocked(student, course_id, tier)
    if is_open:
        console.print(f"[green]✓ {tier.label} is unlocked[/green]")
    else:
        console.print(f"[yellow]✗ {tier.label} is locked[/yellow]")
        raise typer.Exit(code=1)


@app.command()
def summary(
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
    course_id: str | None = typer.Option(
        None, "--course", "-c", help="Limit to one course"
    ),
) -> None:
    """Show section scores, total and gap to target."""
    result = _engine().summarize(student, course_id)

    console.print(f"[bold]Math:[/bold]              {result.math_score}")
    console.print(f"[bold]Reading & Writing:[/bold] {result.rw_score}")
    console.print(f"[bold]Total:[/bold]             {result.total} / target {result.target}")
    if result.gap > 0:
        console.print(f"  [yellow]{result.gap} points to target[/yellow]")
    else:
        console.print("  [green]Target reached[/green]")


@app.command()
def history(
    course_id: str = typer.Argument(..., help="Course ID"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
) -> None:
    """List submissions for a course, newest first."""
    submissions = _engine().list_submissions(student, course_id)
    if not submissions:
        console.print("[dim]No submissions yet.[/dim]")
        return

    table = Table(title=f"{student} · {course_id}")
    table.add_column("Date")
    table.add_column("Level")
    table.add_column("Correct", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Scaled", justify="right")
    for s in submissions:
        table.add_row(
            s.submitted_at[:19],
            s.tier.label,
            f"{s.raw_score}/{s.total_questions}",
            f"{s.percentage:.0f}",
            str(s.scaled_score),
        )
    console.print(table)


@app.command()
def scales() -> None:
    """Show the configured scaled-score bands."""
    scoring = _engine().config.scoring

    table = Table(title=f"Scaled score bands (pass ≥ {scoring.pass_threshold:g}%)")
    table.add_column("Category")
    table.add_column("Level")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for category, tiers in scoring.ranges.items():
        for tier, band in tiers.items():
            table.add_row(category, tier.capitalize(), str(band.min), str(band.max))
    console.print(table)

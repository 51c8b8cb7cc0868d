"""
Study Scheduler CLI.

Commands:
    study-scheduler init-db      - Create database tables
    study-scheduler next         - Recommend the next study tasks
    study-scheduler record <id>  - Record an attempt on a question
    study-scheduler queue        - Review queue with live retention and urgency
    study-scheduler mastery      - Mastery per topic
    study-scheduler stats        - Progress statistics
    study-scheduler session start|finish|show - Study sessions
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from config import get_settings
from study_scheduler.core.enums import (
    Difficulty,
    ErrorType,
    MasteryStage,
    Section,
    SessionStatus,
    SessionType,
    SupportLevel,
    TaskType,
)
from study_scheduler.core.logging_setup import configure_logging
from study_scheduler.core.models import Attempt

console = Console()

app = typer.Typer(
    name="study-scheduler",
    help="Adaptive study scheduler - what to study next, and how mastery evolves",
    no_args_is_help=True,
)

TASK_STYLES = {
    TaskType.CONSOLIDATION: "magenta",
    TaskType.REVIEW: "cyan",
    TaskType.NEW_TOPIC: "green",
}


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings())


def _now() -> datetime:
    return datetime.now(UTC)


def _format_progress_bar(level: float, width: int = 10) -> str:
    filled = int(level * width)
    return "#" * filled + "-" * (width - filled)


def _build_planner(store, settings, now: datetime):
    from study_scheduler.adaptive.recommendation import StudyPlanner
    from study_scheduler.adaptive.task_selector import TaskSelector
    from study_scheduler.db.repository import SqlQuestionPicker

    return StudyPlanner(
        TaskSelector(settings.get_selector_config()),
        SqlQuestionPicker(store, now, timedelta(hours=settings.recent_correct_window_hours)),
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create the learner store tables."""
    from study_scheduler.db.database import init_db

    init_db()
    rprint("[green]Database initialized[/green]")


@app.command("next")
def next_command(
    count: int | None = typer.Option(None, "--count", "-n", min=1, help="Number of tasks"),
    topic: str | None = typer.Option(None, "--topic", "-t", help="Scope recommendations to one topic"),
) -> None:
    """
    Recommend the next study tasks.

    Shows consolidations, due reviews and new topics in interleaved order.
    """
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SqlStudyStore

    settings = get_settings()
    if count is None:
        count = settings.default_task_count
    now = _now()

    try:
        with session_scope() as session:
            store = SqlStudyStore(session)
            planner = _build_planner(store, settings, now)
            plan = planner.get_next_tasks(store.load_snapshot(), count, now, topic_id=topic)
    except Exception as e:
        logger.exception("Failed to build study plan")
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if not plan.tasks:
        rprint("[yellow]Nothing to study right now.[/yellow]")
    else:
        table = Table(title="Next Tasks")
        table.add_column("#", justify="right")
        table.add_column("Task")
        table.add_column("Topic")
        table.add_column("Section")
        table.add_column("Difficulty")
        table.add_column("Support")
        table.add_column("Question")
        table.add_column("Why")

        for i, task in enumerate(plan.tasks, 1):
            style = TASK_STYLES[task.task_type]
            table.add_row(
                str(i),
                f"[{style}]{task.task_type.value}[/{style}]",
                task.topic_name,
                task.section.display_name,
                task.difficulty.value,
                task.support_level.label,
                task.question_id or "",
                task.reason,
            )
        console.print(table)

    rprint(
        f"\n[dim]Due: {plan.due_count} | Frontier: {plan.frontier_count} | "
        f"Consolidations: {plan.consolidation_count} | Review share: {plan.review_percentage}%[/dim]"
    )


@app.command("record")
def record_command(
    question_id: str = typer.Argument(..., help="Question that was answered"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Whether the answer was right"),
    time_ms: int = typer.Option(0, "--time-ms", help="Response time in milliseconds"),
    error_type: ErrorType | None = typer.Option(None, "--error-type", help="Error classification"),
    support: int = typer.Option(1, "--support-level", min=1, max=4, help="Support level in effect"),
    hints: int = typer.Option(0, "--hints", help="Hints used"),
    session_id: str | None = typer.Option(None, "--session", "-s", help="Study session the attempt belongs to"),
) -> None:
    """Record an attempt and update mastery, schedule and prerequisite credit."""
    from study_scheduler.adaptive.attempt_recorder import AttemptRecorder
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import (
        QuestionNotFoundError,
        SessionClosedError,
        SessionNotFoundError,
        SqlStudyStore,
    )

    settings = get_settings()
    now = _now()

    try:
        with session_scope() as session:
            store = SqlStudyStore(session)
            question = store.get_question(question_id)
            if session_id is not None:
                study_session = store.get_session(session_id)
                if study_session.status is not SessionStatus.IN_PROGRESS:
                    raise SessionClosedError(
                        f"Session {session_id} is already {study_session.status.value}"
                    )
                if question.id not in study_session.question_ids:
                    logger.warning(f"Question {question.id} is not part of session {session_id}")
            attempt = Attempt(
                id=str(uuid4()),
                question_id=question.id,
                topic_id=question.topic_id,
                is_correct=correct,
                time_spent_ms=time_ms,
                created_at=now,
                error_type=None if correct else error_type,
                support_level=SupportLevel(support),
                hints_used=hints,
                session_id=session_id,
            )
            recorder = AttemptRecorder(
                store, settings.get_schedule_bounds(), settings.fire_max_depth
            )
            outcome = recorder.record_attempt(attempt, now)

            planner = _build_planner(store, settings, now)
            hint = planner.get_next_tasks(
                store.load_snapshot(), 1, now, exclude_question_ids=[question.id]
            )
    except (QuestionNotFoundError, SessionNotFoundError, SessionClosedError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    record = outcome.mastery
    content = Text()
    content.append("Correct\n" if correct else "Incorrect\n", style="bold green" if correct else "bold red")
    content.append(f"Mastery: {_format_progress_bar(record.level)} {record.level:.0%} ")
    content.append(f"({record.stage.display_name})\n", style=record.stage.color)
    content.append(f"Next review: {outcome.review_entry.scheduled_at:%Y-%m-%d %H:%M} UTC\n")
    if outcome.credited:
        names = ", ".join(r.topic_id for r in outcome.credited)
        content.append(f"Prerequisite credit: {names}\n", style="dim")

    console.print(Panel(content, title=f"[bold]{question.topic_id}[/bold]", border_style="blue"))

    if hint.tasks:
        task = hint.tasks[0]
        style = TASK_STYLES[task.task_type]
        rprint(
            f"Next: [{style}]{task.task_type.value}[/{style}] {task.topic_name} "
            f"({task.question_id}, {task.difficulty.value})"
        )
    else:
        rprint("[dim]Next: nothing to study right now[/dim]")


@app.command("queue")
def queue_command(
    due_only: bool = typer.Option(False, "--due", help="Only show due reviews"),
) -> None:
    """Show the review queue with retention and urgency computed now."""
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SqlStudyStore
    from study_scheduler.study.retention_engine import score_review_queue

    now = _now()
    with session_scope() as session:
        snapshot = SqlStudyStore(session).load_snapshot()

    reviews = score_review_queue(snapshot.review_queue, snapshot.mastery, snapshot.graph, now)
    if due_only:
        reviews = [r for r in reviews if r.is_due]

    table = Table(title=f"Review Queue ({sum(r.is_due for r in reviews)} due)")
    table.add_column("Topic")
    table.add_column("Retention", justify="right")
    table.add_column("Urgency", justify="right")
    table.add_column("Scheduled")
    table.add_column("Due")

    for review in reviews:
        topic = snapshot.graph.get(review.topic_id)
        table.add_row(
            topic.name,
            f"{review.retention:.0%}",
            f"{review.urgency:.2f}",
            f"{review.scheduled_at:%Y-%m-%d %H:%M}",
            "[red]yes[/red]" if review.is_due else "",
        )
    console.print(table)


@app.command("mastery")
def mastery_command() -> None:
    """Show mastery for every topic, grouped by section."""
    from study_scheduler.adaptive.task_selector import is_topic_unlocked
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SqlStudyStore

    with session_scope() as session:
        snapshot = SqlStudyStore(session).load_snapshot()

    table = Table(title="Topic Mastery")
    table.add_column("Section")
    table.add_column("Topic")
    table.add_column("Mastery")
    table.add_column("Stage")
    table.add_column("Practice", justify="right")
    table.add_column("7d Acc", justify="right")
    table.add_column("Status")

    for topic in sorted(snapshot.graph, key=lambda t: (t.section.value, t.name)):
        record = snapshot.mastery.get(topic.id)
        level = record.level if record else 0.0
        stage = record.stage if record else MasteryStage.UNKNOWN
        practiced = record.practice_count if record else 0
        table.add_row(
            topic.section.display_name,
            topic.name,
            f"{_format_progress_bar(level)} {level:.0%}",
            f"[{stage.color}]{stage.display_name}[/{stage.color}]",
            str(practiced),
            f"{record.accuracy_7d:.0%}" if record and practiced else "-",
            "" if is_topic_unlocked(topic, snapshot.mastery) else "[dim]locked[/dim]",
        )
    console.print(table)


@app.command("stats")
def stats_command() -> None:
    """Show progress statistics."""
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SqlStudyStore
    from study_scheduler.study.stats import compute_learner_stats

    now = _now()
    with session_scope() as session:
        store = SqlStudyStore(session)
        stats = compute_learner_stats(store.list_all_attempts(), store.load_snapshot(), now)

    content = Text()
    content.append(f"Attempts: {stats.total_attempts}\n", style="bold")
    content.append(f"Accuracy: {stats.overall_accuracy:.0%} overall, {stats.accuracy_7d:.0%} last 7 days\n")
    content.append(f"Average mastery: {_format_progress_bar(stats.avg_mastery)} {stats.avg_mastery:.0%}\n")
    content.append(f"Due reviews: {stats.due_count}\n", style="cyan")
    if stats.streak_days > 0:
        content.append(f"Streak: {stats.streak_days} days\n", style="bold yellow")
    console.print(Panel(content, title="[bold]Progress[/bold]", border_style="blue"))

    table = Table(title="By Section")
    table.add_column("Section")
    table.add_column("Attempts", justify="right")
    table.add_column("Accuracy", justify="right")
    for section in stats.sections:
        table.add_row(section.section.display_name, str(section.total), f"{section.accuracy:.0%}")
    console.print(table)

    if stats.error_breakdown:
        errors = ", ".join(f"{k.value.lower()}: {v}" for k, v in stats.error_breakdown.items())
        rprint(f"[dim]Errors (30d): {errors}[/dim]")


# ============================================================================
# Study sessions
# ============================================================================

session_app = typer.Typer(help="Start, inspect and finish study sessions")
app.add_typer(session_app, name="session")


def _session_table(study_session, graph, questions, answered: set[str] | None = None) -> Table:
    by_id = {q.id: q for q in questions}
    table = Table(title=f"Session {study_session.id}")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Topic")
    table.add_column("Difficulty")
    if answered is not None:
        table.add_column("Answered")

    for i, question_id in enumerate(study_session.question_ids, 1):
        question = by_id.get(question_id)
        topic = graph.get(question.topic_id) if question else None
        row = [
            str(i),
            question_id,
            topic.name if topic else "",
            question.difficulty.value if question else "",
        ]
        if answered is not None:
            row.append("[green]yes[/green]" if question_id in answered else "")
        table.add_row(*row)
    return table


@session_app.command("start")
def session_start_command(
    count: int | None = typer.Option(None, "--count", "-n", min=1, help="Number of questions"),
    exam_sim: bool = typer.Option(False, "--exam-sim", help="Random questions, as in an exam"),
    session_type: SessionType = typer.Option(SessionType.PRACTICE, "--type", help="Session type"),
    section: Section | None = typer.Option(None, "--section", help="Random selection: only this section"),
    difficulty: Difficulty | None = typer.Option(None, "--difficulty", help="Random selection: only this difficulty"),
    time_limit_ms: int | None = typer.Option(None, "--time-limit-ms", min=1, help="Time limit for the session"),
) -> None:
    """
    Start a study session.

    Questions come from the study planner; exam simulations and sessions the
    planner cannot fill draw random questions from the bank.
    """
    from study_scheduler.adaptive.study_sessions import NoSessionQuestionsError, StudySessionManager
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SqlStudyStore

    settings = get_settings()
    if count is None:
        count = settings.default_task_count
    if exam_sim:
        session_type = SessionType.EXAM_SIM
    now = _now()

    try:
        with session_scope() as session:
            store = SqlStudyStore(session)
            manager = StudySessionManager(store, _build_planner(store, settings, now))
            study_session = manager.start(
                count,
                now,
                session_type=session_type,
                section=section,
                difficulty=difficulty,
                time_limit_ms=time_limit_ms,
            )
            table = _session_table(study_session, store.load_graph(), store.list_questions())
    except NoSessionQuestionsError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(table)
    rprint(
        f"\n[green]Started {study_session.session_type.value} session[/green] {study_session.id} "
        f"({study_session.total_questions} questions)"
    )
    rprint(f"[dim]Record answers with: record <question> --session {study_session.id}[/dim]")


@session_app.command("show")
def session_show_command(
    session_id: str = typer.Argument(..., help="Session id"),
) -> None:
    """Show a session's questions and progress."""
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SessionNotFoundError, SqlStudyStore

    try:
        with session_scope() as session:
            store = SqlStudyStore(session)
            study_session = store.get_session(session_id)
            attempts = store.list_session_attempts(session_id)
            table = _session_table(
                study_session,
                store.load_graph(),
                store.list_questions(),
                answered={a.question_id for a in attempts},
            )
    except SessionNotFoundError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(table)
    rprint(
        f"[dim]{study_session.session_type.value} | {study_session.status.value} | "
        f"{len(attempts)} attempts | started {study_session.started_at:%Y-%m-%d %H:%M} UTC[/dim]"
    )


@session_app.command("finish")
def session_finish_command(
    session_id: str = typer.Argument(..., help="Session id"),
    abandon: bool = typer.Option(False, "--abandon", help="Mark the session abandoned instead of completed"),
) -> None:
    """Finish a session and total its attempts."""
    from study_scheduler.adaptive.study_sessions import StudySessionManager
    from study_scheduler.db.database import session_scope
    from study_scheduler.db.repository import SessionClosedError, SessionNotFoundError, SqlStudyStore

    settings = get_settings()
    now = _now()
    status = SessionStatus.ABANDONED if abandon else SessionStatus.COMPLETED

    try:
        with session_scope() as session:
            store = SqlStudyStore(session)
            manager = StudySessionManager(store, _build_planner(store, settings, now))
            study_session = manager.finish(session_id, now, status)
    except (SessionNotFoundError, SessionClosedError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    content = Text()
    content.append(f"{study_session.status.value}\n", style="bold")
    content.append(f"Correct: {study_session.correct_count}/{study_session.total_questions}\n")
    content.append(f"Time: {study_session.total_time_ms / 1000:.0f}s\n")
    console.print(Panel(content, title=f"[bold]Session {study_session.id}[/bold]", border_style="blue"))


def run() -> None:
    app()


if __name__ == "__main__":
    run()

"""Interactive CLI application."""
import logging
import os
from functools import partial
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from jlpt_drill.content import SqliteContentStore
from jlpt_drill.db import init_db, DEFAULT_DB_PATH
from jlpt_drill.importer import import_file
from jlpt_drill.keys import month_label, parse_exam_key
from jlpt_drill.mistakes import clear_mistakes, count_mistakes, get_mistake_details, record_mistake
from jlpt_drill.models import (
    CATEGORIES, DAYS_PER_WEEK, KINDS, LEVEL_CHOICES, LEVELS, MAX_WEEK, MONTHS,
    DailyFilter, DailyRef, ExamFilter,
)
from jlpt_drill.pool import find_pool
from jlpt_drill.progress import AVAILABLE, DONE, LOCKED, ProgressTracker, week_done_count
from jlpt_drill.seed import is_seeded, seed_all
from jlpt_drill.session import COMPLETED, QuizSession
from jlpt_drill.settings import SettingsStore

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
STATUS_MARKS = {
    DONE: "[green]✓[/green]",
    AVAILABLE: "[cyan]●[/cyan]",
    LOCKED: "[dim]·[/dim]",
}


class SessionExitRequested(Exception):
    """Raised when the user leaves a practice session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    return int(session_prompt(prompt, choices=choices + list(EXIT_WORDS)))


def setup_logging() -> None:
    level = os.environ.get("JLPT_DRILL_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]JLPT Drill[/bold]\n[dim]Daily practice and mock exams[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(mistake_count: int = 0):
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("home", "Weekly progress"),
        ("daily", "Today's practice set"),
        ("exam", "Mock exam practice"),
        ("mistakes", f"Review wrong answers ({mistake_count} logged)"),
        ("settings", "Level and category"),
        ("import", "Add question content"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_question(session: QuizSession) -> None:
    q = session.current
    group = parse_exam_key(q.group_key)
    if group:
        title = f"{group.level} {group.year} {month_label(group.month)} · Q{q.item_number}"
    else:
        title = f"{q.group_key} · Q{q.item_number}"
    body = q.stem if not q.passage else f"[dim]{q.passage}[/dim]\n\n{q.stem}"
    console.print(Panel(
        body, title=f"{title} ({session.cursor + 1}/{session.total_available})",
        border_style="cyan",
    ))
    record = session.answer_at(session.cursor)
    for c in q.choices:
        marker = " "
        if record and c.is_correct:
            marker = "[green]✓[/green]"
        elif record and c.position == record.picked.position:
            marker = "[red]✗[/red]"
        console.print(f" {marker} [cyan]{c.position})[/cyan] {c.content}")


def show_feedback(session: QuizSession) -> None:
    record = session.answer_at(session.cursor)
    correct = session.current.correct_choice
    if record.correct:
        console.print("[green]Correct![/green]")
    elif correct:
        console.print(f"[red]Incorrect.[/red] Answer: [green]{correct.position}) {correct.content}[/green]")
    if correct and correct.explanation:
        console.print(f"[dim]{correct.explanation}[/dim]")


def show_summary(session: QuizSession) -> None:
    s = session.summary()
    console.print(Panel(
        f"[bold]Score: {s['score']}/{s['total']} ({s['percent']:.0f}%)[/bold]\n"
        f"[dim]Answered {s['answered']} questions[/dim]",
        title="Session complete", border_style="green",
    ))


def run_quiz_session(session: QuizSession) -> bool:
    """Walk the user through a loaded session. True once the last question is answered."""
    if session.is_empty:
        console.print("[yellow]No questions available![/yellow]")
        return False
    while True:
        console.print()
        show_question(session)
        if session.answered:
            show_feedback(session)
            if session.state == COMPLETED:
                show_summary(session)
                return True
            choice = session_prompt("[n]ext, [p]rev, [j]ump, [q]uit", choices=["n", "p", "j", *EXIT_WORDS])
        else:
            positions = [str(c.position) for c in session.current.choices]
            choice = session_prompt(
                "Your answer (or n/p/j)", choices=positions + ["n", "p", "j", *EXIT_WORDS],
            )
        if choice == "n":
            session.next()
        elif choice == "p":
            session.prev()
        elif choice == "j":
            numbers = [str(i) for i in range(1, session.total_available + 1)]
            session.jump_to(session_int_prompt("Question number", choices=numbers) - 1)
        else:
            picked = next(c for c in session.current.choices if str(c.position) == choice)
            session.pick(picked)
            session.submit()


def render_week_grid(tracker: ProgressTracker, level: str, category: str) -> None:
    tracker.refresh()
    completed = tracker.completed_tokens()
    unlocked = tracker.unlocked_week(level, category)
    table = Table(title=f"{level} {category} · unlocked through week {unlocked}")
    table.add_column("Week", justify="right")
    for day in range(1, DAYS_PER_WEEK + 1):
        table.add_column(f"D{day}", justify="center")
    table.add_column("Done", justify="right")
    for week in range(1, MAX_WEEK + 1):
        statuses = tracker.week_statuses(level, category, week)
        done = week_done_count(level, category, week, completed)
        style = None if week <= unlocked else "dim"
        table.add_row(str(week), *(STATUS_MARKS[s] for s in statuses), f"{done}/7", style=style)
    console.print(table)
    console.print("[dim]Finish all seven days of a week to unlock the next.[/dim]")


def cmd_home(db_path: str):
    tracker = ProgressTracker(SettingsStore(db_path))
    render_week_grid(tracker, tracker.preferred_level(), tracker.preferred_category())


def cmd_daily(db_path: str):
    tracker = ProgressTracker(SettingsStore(db_path))
    level, category = tracker.preferred_level(), tracker.preferred_category()
    render_week_grid(tracker, level, category)
    week = session_int_prompt("Week", choices=[str(w) for w in range(1, MAX_WEEK + 1)])
    day = session_int_prompt("Day", choices=[str(d) for d in range(1, DAYS_PER_WEEK + 1)])
    if tracker.day_status(level, category, week, day) == LOCKED:
        console.print("[yellow]That day is locked. Finish the earlier days first.[/yellow]")
        return
    session = QuizSession(mistake_log=partial(record_mistake, db_path))
    ref = DailyRef(level=level, category=category, week=week, day=day)
    if not session.load(SqliteContentStore(db_path), DailyFilter(ref=ref)):
        console.print("[yellow]No questions for this day yet. Pick another day.[/yellow]")
        return
    if run_quiz_session(session):
        before = tracker.unlocked_week(level, category)
        after = tracker.mark_done(level, category, week, day)
        console.print(f"[green]Week {week} day {day} done![/green]")
        if after > before:
            console.print(f"[bold green]Week {after} unlocked![/bold green]")


def cmd_exam(db_path: str):
    store = SqliteContentStore(db_path)
    exams = store.list_exams()
    if exams:
        table = Table(title="Available papers")
        table.add_column("Paper")
        table.add_column("Questions", justify="right")
        for e in exams:
            table.add_row(e["title"], str(e["question_count"]))
        console.print(table)
    level = Prompt.ask("Level", choices=list(LEVEL_CHOICES), default="random-pair")
    kind = Prompt.ask("Kind", choices=list(KINDS), default="language")
    year = Prompt.ask("Year (blank for any)", default="").strip()
    month = Prompt.ask("Month", choices=[*MONTHS, "any"], default="any")
    requested = ExamFilter(
        level=level, kind=kind,
        year=int(year) if year.isdigit() else None,
        month=None if month == "any" else month,
    )
    pool, used = find_pool(store, requested)
    if not pool:
        console.print("[yellow]No questions match. Try another level or kind.[/yellow]")
        return
    if used != requested:
        console.print(f"[dim]Nothing for the exact paper; widened to year={used.year or 'any'}, "
                      f"month={used.effective_month or 'any'}.[/dim]")
    session = QuizSession(mistake_log=partial(record_mistake, db_path))
    session.init(pool, mode="exam", meta=used)
    run_quiz_session(session)


def cmd_mistakes(db_path: str):
    mistakes = get_mistake_details(db_path, SqliteContentStore(db_path))
    if not mistakes:
        console.print("[green]No mistakes logged. Nice work![/green]")
        return
    table = Table(title="Mistakes")
    table.add_column("Question")
    table.add_column("Stem")
    table.add_column("Picked", justify="center")
    table.add_column("Answer")
    for m in mistakes:
        detail = m.detail
        correct = detail.correct_choice if detail else None
        table.add_row(
            f"{m.group_key} #{m.item_number}",
            detail.stem if detail else "[dim](question removed)[/dim]",
            str(m.picked_position),
            f"{correct.position}) {correct.content}" if correct else "",
        )
    console.print(table)
    if Confirm.ask("Clear the mistake log?", default=False):
        clear_mistakes(db_path)
        console.print("[dim]Mistake log cleared.[/dim]")


def cmd_settings(db_path: str):
    tracker = ProgressTracker(SettingsStore(db_path))
    level = Prompt.ask("Level", choices=list(LEVELS), default=tracker.preferred_level())
    category = Prompt.ask("Category", choices=list(CATEGORIES), default=tracker.preferred_category())
    tracker.set_preferred_level(level)
    tracker.set_preferred_category(category)
    console.print(f"[green]Practising {level} {category}.[/green]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path)
    console.print(f"[green]Imported {result['filename']}: {result['exams']} papers, "
                  f"{result['daily_sets']} daily sets, {result['questions']} questions[/green]")


COMMANDS = {
    "home": cmd_home,
    "daily": cmd_daily,
    "exam": cmd_exam,
    "mistakes": cmd_mistakes,
    "settings": cmd_settings,
    "import": cmd_import,
}


def main():
    setup_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
        seed_all(db_path)
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu(count_mistakes(db_path))
        choice = Prompt.ask("\n[bold]>[/bold]", default="home").strip().lower()
        try:
            if choice in ("quit", "exit", "q"):
                console.print("[dim]がんばって！[/dim]")
                break
            command = COMMANDS.get(choice)
            if command is None:
                console.print("[red]Unknown command. Try again.[/red]")
                continue
            command(db_path)
        except SessionExitRequested:
            console.print("[dim]Left the session. Answers so far are kept.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

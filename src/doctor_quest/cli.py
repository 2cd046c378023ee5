from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from doctor_quest.backend import BackendError
from doctor_quest.quiz import QuizController
from doctor_quest.quiz.summary import (
    progress_label,
    result_message,
    score_label,
    session_summary,
    stats_summary,
)
from doctor_quest.system import QuizSystem
from doctor_quest.utils.executors import ImmediateExecutor
from doctor_quest.utils.logging import get_logger

app = typer.Typer(help="DoctorQuest multiple-choice quiz.")
console = Console()
log = get_logger(__name__)


def _load_env_files() -> None:
    """Load the first .env found in the working directory or the project root."""
    candidate_paths = [Path.cwd() / ".env"]
    project_env = Path(__file__).resolve().parents[2] / ".env"
    if project_env not in candidate_paths:
        candidate_paths.append(project_env)
    for env_path in candidate_paths:
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
            break


_load_env_files()


def _load_system(config: Optional[Path]) -> QuizSystem:
    """Instantiate `QuizSystem`, turning configuration problems into CLI errors."""
    try:
        return QuizSystem.from_config(config)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def subjects(
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """List the subjects present in the question bank."""
    system = _load_system(config)
    controller = system.create_controller(executor=ImmediateExecutor())
    if not controller.load():
        console.print("[red]Could not load questions.[/red]")
        raise typer.Exit(code=1)
    for subject in controller.subjects:
        count = sum(1 for question in controller.questions if question.subject == subject)
        console.print(f"- {subject} ({count})")


@app.command()
def stats(
    user_id: str = typer.Argument(..., help="User identifier."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show the aggregate statistics stored for a user."""
    system = _load_system(config)
    try:
        snapshot = system.backend.fetch_user_stats(user_id)
    except BackendError as exc:
        log.error("stats_fetch_failed", user_id=user_id, error=str(exc))
        raise typer.Exit(code=1) from exc
    if snapshot is None:
        console.print("No history yet.")
        return
    table = Table(title=f"Statistics for {user_id}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for name, value in stats_summary(snapshot).items():
        suffix = "%" if name == "accuracy" else ""
        table.add_row(name.replace("_", " ").title(), f"{value}{suffix}")
    if snapshot.last_answered_at:
        table.add_row("Last Answered", snapshot.last_answered_at.isoformat())
    console.print(table)


@app.command("export-questions")
def export_questions(
    output: Path = typer.Argument(..., help="JSONL file to write."),
    subject: Optional[str] = typer.Option(None, help="Only export this subject."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Snapshot the question bank into a JSONL file for offline use."""
    system = _load_system(config)
    try:
        written = system.export_questions(output, subject)
    except BackendError as exc:
        log.error("export_failed", output=str(output), error=str(exc))
        raise typer.Exit(code=1) from exc
    console.print(f"Wrote {written} questions to {output}.")


def _render_question(controller: QuizController) -> None:
    question = controller.current_question
    state = controller.state
    console.print()
    console.print(f"[dim]{progress_label(state)}    {score_label(state)}[/dim]")
    badge = escape(f"[{question.subject}]")
    console.print(f"[cyan]{badge}[/cyan] [bold]{escape(question.question_text)}[/bold]")
    for option in question.options():
        marker = ""
        if state.revealed and option.key == question.correct_option:
            marker = " [green]✓[/green]"
        elif state.revealed and option.key == state.selected:
            marker = " [red]✗[/red]"
        console.print(f"  {option.key}. {escape(option.text)}{marker}")
    message = result_message(question, state)
    if message:
        colour = "green" if state.current_result else "red"
        console.print(f"[{colour}]{escape(message)}[/{colour}]")


def _render_stats(controller: QuizController) -> None:
    snapshot = controller.stats
    if controller.user_id is None or snapshot is None:
        return
    summary = stats_summary(snapshot)
    console.print(
        f"[dim]All-time: {summary['correct']}/{summary['total']} correct "
        f"({summary['accuracy']}%), streak {summary['current_streak']}[/dim]"
    )


@app.command()
def play(
    subject: Optional[str] = typer.Option(None, help="Only ask questions from this subject."),
    email: Optional[str] = typer.Option(None, help="Sign in to save results."),
    password: Optional[str] = typer.Option(None, help="Password for --email."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """
    Answer questions one at a time in the terminal.

    Type an option letter to answer, `n`/`p` to move, `r` to restart and `q`
    to quit. When signed in, each answer is saved and the all-time statistics
    are refreshed.
    """
    system = _load_system(config)
    controller, bridge = system.start_session(subject, executor=ImmediateExecutor())
    with bridge:
        if email:
            secret = password or typer.prompt("Password", hide_input=True)
            try:
                session = system.sign_in(email, secret)
            except BackendError as exc:
                console.print(f"[red]{exc}[/red]")
                raise typer.Exit(code=1) from exc
            console.print(f"Signed in as {session.email or session.user_id}.")

        if controller.current_question is None:
            console.print("No questions found.")
            return

        while True:
            _render_question(controller)
            _render_stats(controller)
            command = typer.prompt("Answer, [n]ext, [p]revious, [r]estart or [q]uit").strip()
            lowered = command.lower()
            if lowered == "q":
                break
            if lowered == "n":
                controller.next()
            elif lowered == "p":
                controller.previous()
            elif lowered == "r":
                controller.reset()
            elif controller.state.revealed:
                console.print("[yellow]Already answered; move on or restart.[/yellow]")
            else:
                try:
                    controller.select_answer(command.upper())
                except ValueError:
                    console.print(f"[yellow]Unknown option {command!r}.[/yellow]")
                    continue
                controller.submit_answer()

        summary = session_summary(controller.state)
        console.print(
            f"Answered {summary['answered']}, correct {summary['correct']} "
            f"({summary['accuracy']}%)."
        )
        if email:
            system.sign_out()
    controller.close()


if __name__ == "__main__":
    app()

"""Quiz commands."""

import asyncio
from collections.abc import Callable
from typing import Annotated

import typer

from studymate.application.config import AppConfig
from studymate.application.factory import build_session, get_study_api
from studymate.application.log_setup import setup_logging
from studymate.application.session.controller import SessionController
from studymate.application.session.scoring import format_duration, score_band
from studymate.domain.session.errors import (
    AuthenticationError,
    GenerationError,
    IncompleteSubmissionError,
    OutOfRangeError,
    SubmissionError,
)
from studymate.domain.session.models import ItemKind, ResultSnapshot, SessionStatus
from studymate.interface._common import ConsoleNotifier, _resolve_with_overrides, humanize_error

quiz_app = typer.Typer(help="Take multiple-choice quizzes generated from a note.", no_args_is_help=True)

Ask = Callable[[str], str]

MENU = "[1-{n}] answer  [n]ext  [p]rev  [j]ump  [s]ubmit  [q]uit"

_BAND_COLORS = {
    "high": typer.colors.GREEN,
    "medium": typer.colors.YELLOW,
    "low": typer.colors.RED,
}


@quiz_app.command("take")
def take(
    ctx: typer.Context,
    note_id: Annotated[str, typer.Argument(help="Note to generate the quiz from.")],
    count: Annotated[int | None, typer.Option(help="Number of questions.")] = None,
    api_url: Annotated[str | None, typer.Option(help="Study API base URL.")] = None,
):
    """[bold green]Take[/bold green] a freshly generated quiz."""
    config = _resolve_with_overrides(
        api_url=api_url,
        quiz_question_count=count,
        verbose=(ctx.obj or {}).get("verbose_bonus"),
    )
    code = asyncio.run(run_quiz(config, note_id))
    if code:
        raise typer.Exit(code=code)


async def run_quiz(config: AppConfig, note_id: str, ask: Ask | None = None) -> int:
    """Generate quizzes for a note until the user stops."""
    logger, _, run_id = setup_logging(config)
    logger.info(f"Run {run_id}: quiz for note {note_id}")
    ask = ask or _default_ask
    api = get_study_api(config)
    controller = build_session(api, ItemKind.QUIZ, config, ConsoleNotifier())
    try:
        while True:
            try:
                await controller.generate(note_id)
            except GenerationError as e:
                if isinstance(e.__cause__, AuthenticationError):
                    typer.secho(humanize_error(e), fg=typer.colors.RED, err=True)
                return 1
            if controller.status is SessionStatus.EMPTY:
                typer.echo("The generated quiz has no questions.")
                return 1

            result = await quiz_loop(controller, ask)
            if result is None:
                return 0
            render_result(result)
            if ask("Take another quiz? [y/N]").strip().lower() not in ("y", "yes"):
                return 0
            controller.restart()
    finally:
        controller.close()
        await api.aclose()


async def quiz_loop(controller: SessionController, ask: Ask) -> ResultSnapshot | None:
    """Run one quiz attempt. Returns None when the user quits without submitting."""
    while True:
        render_question(controller)
        item = controller.current_item
        choice = ask(MENU.format(n=len(item.choices))).strip().lower()

        if choice in ("q", "quit"):
            return None
        if choice.isdigit():
            try:
                controller.select_choice(int(choice) - 1)
            except OutOfRangeError:
                typer.echo(f"Pick an option between 1 and {len(item.choices)}.")
                continue
            controller.advance()
        elif choice == "n":
            controller.advance()
        elif choice == "p":
            controller.retreat()
        elif choice == "j":
            raw = ask(f"Question number (1-{len(controller.items)})")
            try:
                controller.jump_to(int(raw) - 1)
            except (ValueError, OutOfRangeError):
                typer.echo(f"'{raw}' is not a question number.")
        elif choice == "s":
            try:
                return await controller.submit()
            except IncompleteSubmissionError as e:
                if e.unanswered:
                    controller.jump_to(e.unanswered[0])
            except SubmissionError:
                # Already reported; the user may submit again
                continue
        else:
            typer.echo(f"Unknown command '{choice}'.")


def render_question(controller: SessionController) -> None:
    item = controller.current_item
    selected = controller.current_response.selected_choice_index
    answered = set(range(len(controller.items))) - set(controller.unanswered_indices())
    navigator = " ".join(
        f"[{i + 1}{'*' if i == controller.cursor else '+' if i in answered else ' '}]"
        for i in range(len(controller.items))
    )

    typer.echo("")
    typer.secho(
        f"Question {controller.cursor + 1} of {len(controller.items)}"
        f"  |  Time: {format_duration(controller.elapsed_seconds() or 0)}",
        bold=True,
    )
    typer.echo(navigator)
    typer.echo(item.prompt)
    for index, option in enumerate(item.choices):
        marker = "(x)" if index == selected else "( )"
        typer.echo(f"  {index + 1}. {marker} {option}")


def render_result(result: ResultSnapshot) -> None:
    typer.echo("")
    typer.secho(f"Score: {result.score:.0f}%", fg=_BAND_COLORS[score_band(result.score)], bold=True)
    typer.echo(
        f"You got {result.correct_count} out of {result.total_questions} questions correct"
    )
    typer.echo(f"Time taken: {format_duration(result.elapsed_seconds)}")

    for number, question in enumerate(result.questions, start=1):
        mark = "correct" if question.is_correct else "wrong"
        typer.echo("")
        typer.echo(f"{number}. {question.prompt} [{mark}]")
        for index, option in enumerate(question.choices):
            if index == question.correct_choice_index:
                prefix = "  +"
            elif index == question.selected_choice_index and not question.is_correct:
                prefix = "  x"
            else:
                prefix = "   "
            typer.echo(f"{prefix} {option}")
        if question.explanation:
            typer.echo(f"   Explanation: {question.explanation}")


def _default_ask(text: str) -> str:
    return typer.prompt(text, default="", show_default=False)

"""Flashcard review commands."""

import asyncio
from collections.abc import Callable
from typing import Annotated

import typer

from studymate.application.config import AppConfig
from studymate.application.factory import build_session, get_study_api
from studymate.application.log_setup import setup_logging
from studymate.application.session.controller import SessionController
from studymate.domain.session.errors import (
    ActionInProgressError,
    AuthenticationError,
    GenerationError,
    LoadError,
    NotFoundError,
    OutOfRangeError,
)
from studymate.domain.session.models import ItemKind, ReviewOutcome, SessionStatus
from studymate.interface._common import ConsoleNotifier, _resolve_with_overrides, humanize_error

flashcards_app = typer.Typer(help="Review flashcards for a note.", no_args_is_help=True)

Ask = Callable[[str], str]

MENU = "[f]lip  [y] got it  [x] need review  [n]ext  [p]rev  [j]ump  [r]estart  [q]uit"


@flashcards_app.command("review")
def review(
    ctx: typer.Context,
    note_id: Annotated[str, typer.Argument(help="Note whose flashcards to review.")],
    generate: Annotated[
        bool, typer.Option("--generate", help="Generate a fresh set before reviewing.")
    ] = False,
    count: Annotated[int | None, typer.Option(help="Number of flashcards to generate.")] = None,
    api_url: Annotated[str | None, typer.Option(help="Study API base URL.")] = None,
):
    """[bold green]Review[/bold green] the flashcards of a note."""
    config = _resolve_with_overrides(
        api_url=api_url,
        flashcard_count=count,
        verbose=(ctx.obj or {}).get("verbose_bonus"),
    )
    code = asyncio.run(run_review(config, note_id, generate=generate))
    if code:
        raise typer.Exit(code=code)


async def run_review(
    config: AppConfig, note_id: str, generate: bool = False, ask: Ask | None = None
) -> int:
    """Load (or generate) a note's flashcards and run the interactive loop."""
    logger, _, run_id = setup_logging(config)
    logger.info(f"Run {run_id}: flashcard review for note {note_id}")
    ask = ask or _default_ask
    api = get_study_api(config)
    controller = build_session(api, ItemKind.FLASHCARD, config, ConsoleNotifier())
    try:
        try:
            status = SessionStatus.EMPTY
            if not generate:
                status = await controller.load(note_id)
            if status is SessionStatus.EMPTY and (
                generate or _confirm(ask, "No flashcards found. Generate some now?")
            ):
                await controller.generate(note_id)
        except (LoadError, GenerationError, NotFoundError) as e:
            if isinstance(e.__cause__, AuthenticationError):
                typer.secho(humanize_error(e), fg=typer.colors.RED, err=True)
            return 1

        if controller.status is SessionStatus.EMPTY:
            typer.echo("No flashcards found. Generate some to get started!")
            return 0

        await review_loop(controller, ask)
        return 0
    finally:
        controller.close()
        await api.aclose()


async def review_loop(controller: SessionController, ask: Ask) -> None:
    while True:
        render_card(controller)
        choice = ask(MENU).strip().lower()

        if choice in ("q", "quit"):
            break
        if choice in ("f", ""):
            controller.flip()
        elif choice in ("y", "x"):
            if not controller.is_revealed:
                typer.echo("Flip the card first.")
                continue
            outcome = ReviewOutcome.CORRECT if choice == "y" else ReviewOutcome.INCORRECT
            try:
                await controller.review(outcome)
            except ActionInProgressError as e:
                typer.echo(str(e))
        elif choice == "n":
            controller.advance()
        elif choice == "p":
            controller.retreat()
        elif choice == "j":
            raw = ask(f"Card number (1-{len(controller.items)})")
            try:
                controller.jump_to(int(raw) - 1)
            except (ValueError, OutOfRangeError):
                typer.echo(f"'{raw}' is not a card number.")
        elif choice == "r":
            controller.restart()
        else:
            typer.echo(f"Unknown command '{choice}'.")

    render_summary(controller)


def render_card(controller: SessionController) -> None:
    item = controller.current_item
    typer.echo("")
    typer.secho(
        f"Card {controller.cursor + 1} of {len(controller.items)}"
        f"  |  Accuracy: {controller.accuracy_percent()}%"
        f"  |  Progress: {controller.progress_percent():.0f}%",
        bold=True,
    )
    typer.echo(f"Question: {item.prompt}")
    if controller.is_revealed:
        typer.secho(f"Answer:   {item.reveal}", fg=typer.colors.GREEN)
        if item.difficulty:
            typer.echo(f"Difficulty: {item.difficulty}")
    else:
        typer.secho("(flip to reveal the answer)", dim=True)


def render_summary(controller: SessionController) -> None:
    response = controller.current_response
    item = controller.current_item
    typer.echo("")
    typer.echo(f"Times reviewed: {item.review_count + response.attempt_count}")
    typer.echo(f"Correct:        {item.correct_count + response.correct_count}")
    typer.echo(f"Mastered:       {controller.mastered_count()}")
    typer.echo(f"Session accuracy: {controller.overall_accuracy_percent()}%")


def _confirm(ask: Ask, question: str) -> bool:
    return ask(f"{question} [y/N]").strip().lower() in ("y", "yes")


def _default_ask(text: str) -> str:
    return typer.prompt(text, default="", show_default=False)

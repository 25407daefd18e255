"""StudyMate CLI: root commands and subgroup registration."""

import asyncio
import json
import logging
import sys
from typing import Annotated

import typer

from studymate.application.config import AppConfig, resolve_config
from studymate.application.factory import get_study_api
from studymate.application.log_setup import level_for_verbosity
from studymate.domain.constants import DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT
from studymate.domain.session.errors import ApiError
from studymate.interface._common import _resolve_with_overrides, humanize_error

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studymate: Review flashcards and take quizzes on your study notes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from studymate.interface.flashcard_commands import flashcards_app  # noqa: E402
from studymate.interface.quiz_commands import quiz_app  # noqa: E402

app.add_typer(flashcards_app, name="flashcards")
app.add_typer(quiz_app, name="quiz")

config_app = typer.Typer(help="Manage studymate configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for studymate."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    logging.getLogger("studymate").setLevel(level_for_verbosity(verbose))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def notes(
    api_url: Annotated[str | None, typer.Option(help="Study API base URL.")] = None,
):
    """List the notes you can study."""
    config = _resolve_with_overrides(api_url=api_url)
    try:
        summaries = asyncio.run(_fetch_notes(config))
    except ApiError as e:
        typer.secho(humanize_error(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from e

    if not summaries:
        typer.echo("No notes yet. Upload one to get started.")
        return
    for note in summaries:
        typer.echo(f"{note.id}  {note.title}")


async def _fetch_notes(config: AppConfig):
    api = get_study_api(config)
    try:
        return await api.list_notes()
    finally:
        await api.aclose()


@app.command()
def server(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = DEFAULT_SERVER_HOST,
    port: Annotated[int, typer.Option(help="Port to listen on.")] = DEFAULT_SERVER_PORT,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes.")] = False,
):
    """Run the HTTP session server for browser front ends."""
    import uvicorn

    uvicorn.run("studymate.server:app", host=host, port=port, reload=reload)


@config_app.command("show")
def config_show():
    """Print the resolved configuration as JSON."""
    config = resolve_config()
    data = config.model_dump(mode="json")
    if data.get("api_token"):
        data["api_token"] = "***"
    typer.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    app()

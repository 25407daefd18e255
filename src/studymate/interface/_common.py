"""Helpers shared by the CLI command groups."""

from typing import Any

import typer

from studymate.application.config import AppConfig, resolve_config
from studymate.domain.session.errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    SessionError,
)
from studymate.domain.session.ports import Notification, Notifier

_COLORS = {
    "info": None,
    "success": typer.colors.GREEN,
    "error": typer.colors.RED,
}


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, letting explicitly passed CLI options win."""
    return resolve_config(overrides)


def humanize_error(e: Exception) -> str:
    """Turn an exception into a one-line message for the terminal."""
    cause = e.__cause__
    if isinstance(e, AuthenticationError) or isinstance(cause, AuthenticationError):
        return "Your session has expired. Set a fresh token with STUDYMATE_API_TOKEN."
    if isinstance(e, NotFoundError):
        return "Note not found."
    if isinstance(e, SessionError | ApiError):
        return str(e)
    return f"Unexpected error: {e}"


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal (errors go to stderr)."""

    def notify(self, notification: Notification) -> None:
        typer.secho(
            notification.message,
            fg=_COLORS[notification.level],
            err=notification.level == "error",
        )

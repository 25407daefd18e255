"""
Study API Factory
Centralizes the construction of the remote API adapter and session controllers.
"""

from studymate.application.config import AppConfig
from studymate.application.session.controller import SessionController
from studymate.domain.session.models import ItemKind
from studymate.domain.session.ports import Notifier, StudyApi
from studymate.infrastructure.adapters.study_api import StudyApiAdapter


def get_study_api(config: AppConfig) -> StudyApi:
    """
    Returns the StudyApi implementation configured for the remote API.
    """
    return StudyApiAdapter(
        base_url=config.api_url,
        token=config.api_token,
        timeout=config.request_timeout,
    )


def build_session(
    api: StudyApi,
    kind: ItemKind,
    config: AppConfig,
    notifier: Notifier | None = None,
) -> SessionController:
    """
    Returns a SessionController wired with the configured defaults for ``kind``.
    """
    default_count = (
        config.flashcard_count if kind is ItemKind.FLASHCARD else config.quiz_question_count
    )
    return SessionController(
        api,
        kind,
        notifier,
        default_count=default_count,
        advance_on_review=config.advance_on_review,
    )

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studymate.domain.constants import (
    DEFAULT_API_URL,
    DEFAULT_FLASHCARD_COUNT,
    DEFAULT_QUIZ_QUESTION_COUNT,
    DEFAULT_SESSION_TTL_SECONDS,
    REQUEST_TIMEOUT,
)

CONFIG_FILES = [
    Path.home() / ".config/studymate/config.toml",
    Path.home() / ".studymate.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for studymate.
    Supports loading from:
    1. Environment variables (STUDYMATE_*)
    2. Config file (~/.config/studymate/config.toml)
    3. Manual overrides (CLI / HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYMATE_",
        extra="ignore",
    )

    # Remote API
    api_url: str = DEFAULT_API_URL
    api_token: str | None = None
    request_timeout: float = REQUEST_TIMEOUT

    # Sessions
    flashcard_count: int = Field(default=DEFAULT_FLASHCARD_COUNT, gt=0)
    quiz_question_count: int = Field(default=DEFAULT_QUIZ_QUESTION_COUNT, gt=0)
    advance_on_review: bool = True

    # Server
    session_ttl_seconds: float = Field(default=DEFAULT_SESSION_TTL_SECONDS, gt=0)

    # Logging
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/studymate/logs")
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        # Earlier sources take priority
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> str:
        return str(v).rstrip("/")

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_log_dir(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studymate/config.toml (if exists)
    3. Environment variables (STUDYMATE_*)
    4. cli_overrides (passed from Typer or the HTTP server)
    """
    # Typer passes None for options the user did not set
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)

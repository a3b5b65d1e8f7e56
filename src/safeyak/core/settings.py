"""Application settings and configuration.

This module defines all configuration options for the SafeYak application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

HUGGINGFACE_TOXIC_BERT_URL = "https://api-inference.huggingface.co/models/unitary/toxic-bert"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every moderation, reputation and auto-lock policy constant lives here so
    it can be tuned centrally. Settings can be overridden via environment
    variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SafeYak", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./safeyak.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Toxicity scoring backend
    huggingface_api_key: str | None = Field(default=None, alias="HUGGINGFACE_API_KEY")
    moderation_api_url: str = Field(
        default=HUGGINGFACE_TOXIC_BERT_URL,
        alias="MODERATION_API_URL",
    )
    moderation_timeout_seconds: float = Field(default=5.0, alias="MODERATION_TIMEOUT_SECONDS")
    # "open" allows content when no scorer is configured, "closed" hides and blurs it.
    moderation_unconfigured_mode: Literal["open", "closed"] = Field(
        default="open",
        alias="MODERATION_UNCONFIGURED_MODE",
    )

    # Moderation thresholds (strictly greater than triggers the verdict)
    moderation_hide_threshold: float = Field(default=0.90, alias="MODERATION_HIDE_THRESHOLD")
    moderation_blur_threshold: float = Field(default=0.60, alias="MODERATION_BLUR_THRESHOLD")

    # Reputation deltas
    reputation_strike_penalty: int = Field(default=5, alias="REPUTATION_STRIKE_PENALTY")
    reputation_upvote_delta: int = Field(default=1, alias="REPUTATION_UPVOTE_DELTA")
    reputation_bookmark_delta: int = Field(default=2, alias="REPUTATION_BOOKMARK_DELTA")

    # Thread auto-lock trigger
    autolock_violation_threshold: int = Field(default=3, alias="AUTOLOCK_VIOLATION_THRESHOLD")
    autolock_on_severe: bool = Field(default=True, alias="AUTOLOCK_ON_SEVERE")

    # Content lifecycle
    post_cooldown_seconds: int = Field(default=15, alias="POST_COOLDOWN_SECONDS")
    max_body_length: int = Field(default=2000, alias="MAX_BODY_LENGTH")
    zones: list[str] = Field(
        default=["Campus", "Dorm", "Confessions", "Events", "Advice"],
        alias="ZONES",
    )
    feed_page_size: int = Field(default=50, alias="FEED_PAGE_SIZE")

    # Realtime fan-out
    realtime_queue_size: int = Field(default=256, alias="REALTIME_QUEUE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def moderation_configured(self) -> bool:
        """Return True when credentials for the toxicity backend are present."""
        return bool(self.huggingface_api_key)

    @property
    def moderation_thresholds(self) -> dict[str, float]:
        """Return moderation thresholds as a convenience dictionary.

        Returns:
            Dictionary with the hide and blur toxicity cut-offs
        """
        return {
            "hide": self.moderation_hide_threshold,
            "blur": self.moderation_blur_threshold,
        }


settings = Settings()

"""
Configuration

Settings come from the environment and an optional project-level .env file
through pydantic-settings, one BaseSettings class per concern:

    LLM_*        provider selection, API keys, models, sampling
    DATABASE_*   target PostgreSQL database
    PLANNER_*    plan defaults (page size, related schemas, JSON output)
    LOG_*        log level, format and optional log file

Usage:
    from querypilot.config import get_settings

    settings = get_settings()
    settings.planner.default_limit
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import AnyUrl, Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["openai", "anthropic", "local"]

# Providers that need a key, with the prefix their keys carry.
_KEY_PREFIXES = {"openai": "sk-", "anthropic": "sk-ant-"}


class LLMSettings(BaseSettings):
    """Which model writes query plans, and how it samples."""

    model_config = SettingsConfigDict(env_prefix="LLM_", env_file=".env", extra="ignore")

    default_provider: ProviderName = "openai"

    openai_api_key: str | None = Field(None, min_length=20)
    openai_model: str = "gpt-4o"

    anthropic_api_key: str | None = Field(None, min_length=20)
    anthropic_model: str = "claude-3-5-sonnet-20241022"

    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama or any OpenAI-compatible server",
    )
    local_model: str = "llama3.1:8b"

    # Plans are structured output; keep sampling deterministic by default
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0, le=16000)
    timeout: int = Field(default=60, gt=0, description="Request timeout in seconds")

    @field_validator("openai_api_key", "anthropic_api_key")
    @classmethod
    def check_key_prefix(cls, v: str | None, info: ValidationInfo) -> str | None:
        provider = info.field_name.removesuffix("_api_key")
        prefix = _KEY_PREFIXES[provider]
        if v and not v.startswith(prefix):
            raise ValueError(f"{provider} API key must start with '{prefix}'")
        return v

    def api_key_for(self, provider: ProviderName) -> str | None:
        """Configured key for a provider; always None for local."""
        return getattr(self, f"{provider}_api_key", None)

    def model_for(self, provider: ProviderName) -> str:
        return getattr(self, f"{provider}_model")


class DatabaseSettings(BaseSettings):
    """Target PostgreSQL database."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=".env", extra="ignore")

    url: AnyUrl | None = None
    schema_name: str = Field(
        default="public",
        min_length=1,
        description="Schema searched when describing tables",
    )
    pool_size: int = Field(default=5, gt=0, le=20)
    timeout: int = Field(default=30, gt=0, description="Statement timeout in seconds")

    @field_validator("url", mode="before")
    @classmethod
    def blank_url_is_unset(cls, v):
        return None if v == "" else v

    @field_validator("url")
    @classmethod
    def require_postgres_url(cls, v: AnyUrl | None) -> AnyUrl | None:
        if v is None:
            return v
        parsed = urlparse(str(v))
        # Driver suffixes such as postgresql+asyncpg are accepted
        if parsed.scheme.split("+")[0].lower() not in {"postgres", "postgresql"}:
            raise ValueError("DATABASE_URL must use the postgresql scheme.")
        if not parsed.hostname:
            raise ValueError("DATABASE_URL must include a host.")
        return v


class PlannerSettings(BaseSettings):
    """How the session shapes plans before they reach the database."""

    model_config = SettingsConfigDict(env_prefix="PLANNER_", env_file=".env", extra="ignore")

    default_limit: int = Field(
        default=20,
        gt=0,
        le=10000,
        description="Page size used when a plan does not specify one",
    )
    max_limit: int | None = Field(
        default=None,
        gt=0,
        description="Optional upper bound applied to plan page sizes",
    )
    include_related_schemas: bool = Field(
        default=True,
        description="Describe tables referenced by foreign keys in the schema context",
    )
    json_output: bool = Field(
        default=True,
        description="Ask providers with a JSON mode to reply with a bare JSON object",
    )

    @model_validator(mode="after")
    def cap_not_below_default(self) -> "PlannerSettings":
        if self.max_limit is not None and self.max_limit < self.default_limit:
            raise ValueError(
                f"max_limit ({self.max_limit}) must be >= default_limit ({self.default_limit})"
            )
        return self


class LoggingSettings(BaseSettings):
    """Logging output. LOG_FILE keeps a persistent record of plan requests."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: Path | None = None

    def configure(self) -> None:
        """Install root handlers: stderr always, plus the log file when set."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """All QueryPilot settings; logging is configured as soon as they load."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        self.logging.configure()
        logging.getLogger(__name__).info(
            f"Settings loaded (provider: {self.llm.default_provider})",
            extra={
                "llm_provider": self.llm.default_provider,
                "llm_model": self.llm.model_for(self.llm.default_provider),
                "database_schema": self.database.schema_name,
                "default_limit": self.planner.default_limit,
            },
        )
        return self


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    # QUERYPILOT_ENV_SOURCE=environment lets the process environment win
    env_source = os.getenv("QUERYPILOT_ENV_SOURCE", "dotenv").lower()
    if env_source in {"dotenv", "envfile", "file"} and _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()

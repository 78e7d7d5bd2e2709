"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching. Settings are
frozen once loaded and handed explicitly to the pipeline factory.

Usage:
    from chainsage.config import get_settings

    settings = get_settings()
    print(settings.llm.google_model)
    print(settings.provider.name)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainsage.llm.models import GenerationConfig

ProviderName = Literal["flipside", "dune", "covalent", "mobula"]


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    provider: Literal["google"] = Field(default="google", description="LLM provider")

    google_api_key: str | None = Field(
        None,
        description="Google Gemini API key",
        validation_alias=AliasChoices("LLM_GOOGLE_API_KEY", "GEMINI_API"),
    )
    google_model: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    google_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language REST API",
    )

    # Query generation favors deterministic output
    query_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    query_top_p: float = Field(default=0.05, ge=0.0, le=1.0)

    summary_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    summary_top_p: float = Field(default=0.9, ge=0.0, le=1.0)

    candidate_count: int = Field(
        default=1,
        ge=1,
        le=8,
        description="Number of candidates requested per generation",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("google_api_key", mode="before")
    @classmethod
    def normalize_api_key(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def query_generation_config(self) -> GenerationConfig:
        """Generation config for natural language to query translation."""
        return GenerationConfig(
            temperature=self.query_temperature,
            top_p=self.query_top_p,
            candidate_count=self.candidate_count,
        )

    def summary_generation_config(self) -> GenerationConfig:
        """Generation config for result summarization."""
        return GenerationConfig(
            temperature=self.summary_temperature,
            top_p=self.summary_top_p,
            candidate_count=self.candidate_count,
        )


class ProviderSettings(BaseSettings):
    """Blockchain data provider configuration."""

    name: ProviderName = Field(
        default="flipside",
        description="Data provider queried by the pipeline",
        validation_alias=AliasChoices("PROVIDER_NAME", "DATA_PROVIDER"),
    )

    # Flipside (JSON-RPC)
    flipside_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("PROVIDER_FLIPSIDE_API_KEY", "FLIPSIDE_API"),
    )
    flipside_rpc_url: str = Field(default="https://api-v2.flipsidecrypto.xyz/json-rpc")
    flipside_data_source: str = Field(default="snowflake-default")
    flipside_data_provider: str = Field(default="flipside")
    flipside_max_age_minutes: int = Field(
        default=0,
        ge=0,
        description="Reuse cached Flipside results younger than this (0 = always run)",
    )
    flipside_result_ttl_hours: int = Field(default=1, gt=0)

    # Dune (REST)
    dune_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("PROVIDER_DUNE_API_KEY", "DUNE_API"),
    )
    dune_base_url: str = Field(default="https://api.dune.com/api/v1")
    dune_private_queries: bool = Field(
        default=True,
        description="Create generated Dune queries as private",
    )

    # Covalent (generic REST job)
    covalent_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("PROVIDER_COVALENT_API_KEY", "COVALENT_API"),
    )
    covalent_base_url: str = Field(default="https://api.covalenthq.com/v1")
    covalent_submit_path: str = Field(default="/sql/jobs")
    covalent_status_path: str = Field(default="/sql/jobs/{job_id}")
    covalent_results_path: str = Field(default="/sql/jobs/{job_id}/results")

    # Mobula (synchronous REST)
    mobula_api_key: str | None = Field(
        None,
        validation_alias=AliasChoices("PROVIDER_MOBULA_API_KEY", "MOBULA_API", "MODULA_API"),
    )
    mobula_base_url: str = Field(default="https://api.mobula.io/api")

    model_config = SettingsConfigDict(
        env_prefix="PROVIDER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "flipside_api_key", "dune_api_key", "covalent_api_key", "mobula_api_key", mode="before"
    )
    @classmethod
    def normalize_api_key(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("covalent_status_path", "covalent_results_path")
    @classmethod
    def validate_job_path(cls, v: str) -> str:
        """Job paths must carry a {job_id} placeholder."""
        if "{job_id}" not in v:
            raise ValueError("REST job paths must contain a '{job_id}' placeholder")
        return v

    @property
    def api_key(self) -> str | None:
        """API key of the selected provider."""
        return getattr(self, f"{self.name}_api_key")

    @property
    def api_key_env(self) -> str:
        """Environment variable that supplies the selected provider's key."""
        return {
            "flipside": "FLIPSIDE_API",
            "dune": "DUNE_API",
            "covalent": "COVALENT_API",
            "mobula": "MOBULA_API",
        }[self.name]


class PollingSettings(BaseSettings):
    """Asynchronous job polling configuration."""

    interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Delay between status polls",
    )
    max_wait_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Wall-clock ceiling for a job measured from the first poll",
    )
    page_size: int = Field(
        default=1000,
        gt=0,
        le=100000,
        description="Rows fetched from the first result page",
    )

    model_config = SettingsConfigDict(
        env_prefix="POLL_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_interval(self) -> "PollingSettings":
        """Ensure at least one poll fits inside the ceiling."""
        if self.interval_seconds > self.max_wait_seconds:
            raise ValueError(
                f"interval_seconds ({self.interval_seconds}) must not exceed "
                f"max_wait_seconds ({self.max_wait_seconds})"
            )
        return self


class PipelineSettings(BaseSettings):
    """Pipeline behavior settings."""

    product_tag: str = Field(
        default="ChainSage Error",
        description="Prefix placed in front of user-facing failure messages",
    )
    sql_sentinel: str = Field(
        default="ERROR:",
        min_length=1,
        description="Marker the model emits when a question cannot become a query",
    )
    min_query_length: int = Field(
        default=10,
        ge=1,
        description="Shortest generated query accepted as plausible",
    )
    max_data_length: int = Field(
        default=5000,
        gt=0,
        description="Serialized result size above which rows are sampled",
    )
    max_sample_rows: int = Field(
        default=50,
        gt=0,
        description="Rows kept when a result set is sampled",
    )
    empty_result_message: str = Field(
        default="The query ran successfully but returned no data.",
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
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
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, provider, polling, pipeline, logging)
    and are immutable after construction.

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        CORS_ORIGINS: Allowed browser origins for the chat widget
        GEMINI_API / LLM_*: LLM configuration (see LLMSettings)
        PROVIDER_NAME, FLIPSIDE_API, DUNE_API, COVALENT_API, MOBULA_API,
            PROVIDER_*: Data provider configuration (see ProviderSettings)
        POLL_*: Job polling configuration (see PollingSettings)
        PIPELINE_*: Pipeline behavior (see PipelineSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.provider.name
        'flipside'
        >>> settings.missing_credentials()
        ['GEMINI_API', 'FLIPSIDE_API']
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(default="ChainSage", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, gt=0, le=65535, description="API server port")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def missing_credentials(self) -> list[str]:
        """Environment variable names of secrets the configured pipeline still needs."""
        missing = []
        if not self.llm.google_api_key:
            missing.append("GEMINI_API")
        if not self.provider.api_key:
            missing.append(self.provider.api_key_env)
        return missing

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "debug": self.debug,
                "llm_model": self.llm.google_model,
                "data_provider": self.provider.name,
                "poll_interval": self.polling.interval_seconds,
                "poll_max_wait": self.polling.max_wait_seconds,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("CHAINSAGE_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Singleton settings instance

    Example:
        >>> from chainsage.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.llm.google_model)
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()

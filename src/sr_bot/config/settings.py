"""Configuration settings for the speech recognition bot."""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TRANSCRIPTION_ENDPOINT = "http://127.0.0.1:8787/upload"


class _EnvFirstSettings(BaseSettings):
    """Settings base where environment variables win over init values.

    Init values come from the TOML file, so this keeps the documented
    "environment overrides file" order. Every section reads `.env` too.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class TelegramConfig(_EnvFirstSettings):
    """Telegram bot session settings."""

    token: str = Field(
        default="",
        validation_alias=AliasChoices("SR_BOT_TELEGRAM_TOKEN", "TELEGRAM_BOT_TOKEN"),
    )
    poll_timeout: int = Field(default=60)

    model_config = SettingsConfigDict(
        env_prefix="SR_BOT_TELEGRAM_",
        populate_by_name=True,
    )


class TranscriptionConfig(_EnvFirstSettings):
    """Transcription endpoint settings."""

    endpoint: str = Field(
        default=DEFAULT_TRANSCRIPTION_ENDPOINT,
        validation_alias=AliasChoices("SR_BOT_TRANSCRIPTION_ENDPOINT", "API_ENDPOINT"),
    )
    request_timeout: Optional[float] = Field(default=None)
    max_audio_bytes: Optional[int] = Field(default=None)
    temp_dir: Optional[Path] = Field(default=None)

    @field_validator("temp_dir", mode="before")
    @classmethod
    def validate_temp_dir(cls, v):
        if v and isinstance(v, str):
            return Path(v)
        return v or None

    @field_validator("max_audio_bytes")
    @classmethod
    def validate_max_audio_bytes(cls, v):
        if v is not None and v <= 0:
            raise ValueError("max_audio_bytes must be positive")
        return v

    model_config = SettingsConfigDict(
        env_prefix="SR_BOT_TRANSCRIPTION_",
        populate_by_name=True,
    )


class TelemetryConfig(_EnvFirstSettings):
    """OpenTelemetry exporter settings."""

    grpc_target: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SR_BOT_TELEMETRY_GRPC_TARGET", "TELEMETRY_GRPC_TARGET"),
    )
    service_name: str = Field(default="telegram-sr-bot")
    insecure: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="SR_BOT_TELEMETRY_",
        populate_by_name=True,
    )


class MetricsConfig(_EnvFirstSettings):
    """Metrics and health HTTP server settings."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=2112)

    model_config = SettingsConfigDict(env_prefix="SR_BOT_METRICS_")


class Settings(_EnvFirstSettings):
    """Main application settings."""

    app_name: str = Field(default="Telegram SR Bot")
    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {v!r}")
        return v

    model_config = SettingsConfigDict(
        env_prefix="SR_BOT_",
        case_sensitive=False,
    )

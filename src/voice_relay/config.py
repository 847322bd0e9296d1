"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`.

    Instances are immutable; build one at startup and pass it to the
    collaborator clients and the pipeline orchestrator.
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Speech-to-text (Sarvam)
    stt_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://api.sarvam.ai/speech-to-text"),
        validation_alias=AliasChoices("SARVAM_STT_URL", "stt_url"),
    )
    stt_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("SARVAM_STT_KEY", "stt_api_key"),
    )
    stt_model: str = Field(
        default="saarika:v2.5",
        validation_alias=AliasChoices("SARVAM_STT_MODEL", "stt_model"),
    )
    stt_language_code: str = Field(
        default="hi-IN",
        validation_alias=AliasChoices("SARVAM_STT_LANGUAGE", "stt_language_code"),
    )
    stt_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("STT_TIMEOUT", "stt_timeout"),
    )

    # Text-to-speech (Sarvam)
    tts_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://api.sarvam.ai/text-to-speech"),
        validation_alias=AliasChoices("SARVAM_TTS_URL", "tts_url"),
    )
    tts_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("SARVAM_TTS_KEY", "tts_api_key"),
    )
    tts_speaker: str = Field(
        default="anushka",
        validation_alias=AliasChoices("SARVAM_TTS_SPEAKER", "tts_speaker"),
    )
    tts_language_code: str = Field(
        default="hi-IN",
        validation_alias=AliasChoices("SARVAM_TTS_LANGUAGE", "tts_language_code"),
    )
    tts_enable_preprocessing: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "SARVAM_TTS_PREPROCESSING", "tts_enable_preprocessing"
        ),
    )
    tts_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("TTS_TIMEOUT", "tts_timeout"),
    )
    tts_sample_rate: int = Field(
        default=24000,
        ge=8000,
        validation_alias=AliasChoices("TTS_SAMPLE_RATE", "tts_sample_rate"),
    )

    # Conversational backend
    webhook_url: Optional[AnyHttpUrl] = Field(
        default=None,
        validation_alias=AliasChoices("WEBHOOK_URL", "webhook_url"),
    )
    webhook_timeout: float = Field(
        default=60.0,
        ge=1,
        validation_alias=AliasChoices("WEBHOOK_TIMEOUT", "webhook_timeout"),
    )

    # Upload handling and segmentation
    max_upload_bytes: int = Field(
        default=50 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices("MAX_UPLOAD_BYTES", "max_upload_bytes"),
    )
    min_sentence_chars: int = Field(
        default=2,
        ge=0,
        validation_alias=AliasChoices("MIN_SENTENCE_CHARS", "min_sentence_chars"),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )
    log_dir: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("LOG_DIR", "log_dir"),
    )
    log_retention_hours: int = Field(
        default=48,
        ge=0,
        validation_alias=AliasChoices("LOG_RETENTION_HOURS", "log_retention_hours"),
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]

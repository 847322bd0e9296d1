"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from voice_relay.config import Settings, get_settings


def test_defaults(monkeypatch) -> None:
    for name in ("WEBHOOK_URL", "STT_TIMEOUT", "TTS_TIMEOUT", "WEBHOOK_TIMEOUT", "LOG_DIR"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert str(settings.stt_url) == "https://api.sarvam.ai/speech-to-text"
    assert str(settings.tts_url) == "https://api.sarvam.ai/text-to-speech"
    assert settings.webhook_url is None
    assert settings.stt_timeout == 30
    assert settings.tts_timeout == 30
    assert settings.webhook_timeout == 60
    assert settings.max_upload_bytes == 50 * 1024 * 1024
    assert settings.tts_sample_rate == 24000
    assert settings.log_dir is None


def test_environment_aliases(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WEBHOOK_URL", "https://hooks.example.com/reply")
    monkeypatch.setenv("SARVAM_STT_KEY", "secret-stt")
    monkeypatch.setenv("SARVAM_TTS_SPEAKER", "meera")
    monkeypatch.setenv("WEBHOOK_TIMEOUT", "90")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

    settings = get_settings()

    assert str(settings.webhook_url) == "https://hooks.example.com/reply"
    assert settings.stt_api_key is not None
    assert settings.stt_api_key.get_secret_value() == "secret-stt"
    assert "secret-stt" not in repr(settings)
    assert settings.tts_speaker == "meera"
    assert settings.webhook_timeout == 90
    assert settings.max_upload_bytes == 1024
    assert settings.log_dir == tmp_path / "logs"
    assert get_settings() is settings


def test_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, stt_timeout=0)


def test_settings_are_frozen(settings) -> None:
    with pytest.raises(ValidationError):
        settings.stt_timeout = 5

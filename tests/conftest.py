import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from voice_relay.config import Settings, get_settings  # noqa: E402


@pytest.fixture
def make_settings():
    """Factory building isolated settings pointing at fake collaborators."""

    def _make(**overrides) -> Settings:
        values = {
            "stt_url": "https://stt.example.com/speech-to-text",
            "stt_api_key": "stt-key",
            "tts_url": "https://tts.example.com/text-to-speech",
            "tts_api_key": "tts-key",
            "webhook_url": "https://webhook.example.com/hook",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

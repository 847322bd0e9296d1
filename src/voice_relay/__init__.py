"""Voice relay: STT → conversational webhook → TTS."""

__version__ = "0.1.0"

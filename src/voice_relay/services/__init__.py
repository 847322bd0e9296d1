"""
Services used by the relay pipeline.

- stt_service / tts_service / webhook_service: httpx clients for the external
  collaborators
- text_segmenter: sentence cascade feeding TTS
- audio_container: merges per-sentence WAV clips into one container
"""

"""Text-to-speech rendering of section prose with Gemini."""
import os
import wave
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from utils.logger import setup_logger
from writing.models import VoiceSettings
import config

logger = setup_logger(__name__)

VOICE_NAMES = {
    "Nam": "Fenrir",
    "Nu": "Kore",
}


class SpeechError(Exception):
    """Raised when audio cannot be produced."""
    pass


class SpeechAgent(ABC):
    """Synthesizes narration audio."""

    @abstractmethod
    def synthesize_speech(self, text: str, settings: VoiceSettings) -> bytes:
        """Return raw 16-bit mono PCM audio, raise SpeechError on failure."""
        pass


class GeminiSpeechSynthesizer(SpeechAgent):
    """Narrates text with a Gemini TTS model."""

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        model: str = config.TTS_MODEL,
        max_chars: int = config.TTS_MAX_CHARS
    ):
        """Initialize synthesizer.

        Args:
            client: Google GenAI client, created from config if omitted
            model: TTS model name
            max_chars: Text beyond this many characters is not narrated
        """
        if client is None:
            if not config.GEMINI_API_KEY:
                raise SpeechError("GEMINI_API_KEY or GOOGLE_API_KEY must be set")
            client = genai.Client(api_key=config.GEMINI_API_KEY)

        self.client = client
        self.model = model
        self.max_chars = max_chars

    def synthesize_speech(self, text: str, settings: VoiceSettings) -> bytes:
        """Generate narration audio.

        Args:
            text: Prose to narrate
            settings: Voice and pace

        Returns:
            PCM audio bytes
        """
        if not settings.enabled:
            raise SpeechError("Voice output is disabled")
        if not text.strip():
            raise SpeechError("Nothing to narrate")

        voice_name = VOICE_NAMES[settings.voice]
        narration = text[:self.max_chars]
        if settings.speed != 1.0:
            narration = f"Read the following at {settings.speed:g}x normal speaking pace:\n{narration}"

        logger.info(f"Synthesizing {len(narration)} characters with voice {voice_name}")
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=narration,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name)
                        )
                    ),
                ),
            )
        except Exception as e:
            raise SpeechError(f"Speech generation failed: {e}") from e

        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            for part in response.candidates[0].content.parts:
                if part.inline_data is not None and part.inline_data.data:
                    return part.inline_data.data

        raise SpeechError("No audio generated")


def save_wav(pcm: bytes, output_path: Path, sample_rate: int = config.TTS_SAMPLE_RATE) -> Path:
    """Wrap 16-bit mono PCM in a WAV container.

    Args:
        pcm: Raw audio
        output_path: Destination file
        sample_rate: Samples per second

    Returns:
        The written path
    """
    output_path = Path(output_path)
    os.makedirs(output_path.parent, exist_ok=True)
    with wave.open(str(output_path), "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm)
    logger.info(f"Saved audio to {output_path}")
    return output_path

"""Lesson narration via text-to-speech."""

import base64

import structlog
from openai import AsyncOpenAI, OpenAIError

from tutorx.errors import GenerationFailed
from tutorx.tutoring.client import OpenAIProvider

logger = structlog.get_logger()

MAX_CHUNK_CHARS = 5000
NARRATION_INSTRUCTIONS = "Read this segment clearly, at a calm teaching pace."


def split_narration(lesson_text: str) -> list[str]:
    """Split lesson text into paragraph chunks, dropping blank ones."""
    return [chunk.strip() for chunk in lesson_text.split("\n\n") if chunk.strip()]


def audio_to_base64(audio: bytes) -> str:
    return base64.b64encode(audio).decode("ascii")


class SpeechSynthesizer(OpenAIProvider):
    """Synthesizes narration audio for a chunk of lesson text.

    Args:
        api_key: OpenAI API key.
        model: TTS model.
        voices: Voices the learner may choose from.
        default_voice: Voice used when none is requested.
        client: Pre-built client.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini-tts",
        voices: list[str] | None = None,
        default_voice: str = "coral",
        client: AsyncOpenAI | None = None,
    ):
        super().__init__(api_key, default_model=model, pro_model=model, client=client)
        self.voices = voices or [default_voice]
        self.default_voice = default_voice

    def resolve_voice(self, voice: str | None) -> str:
        if voice is None:
            return self.default_voice
        if voice not in self.voices:
            raise GenerationFailed(
                f"Unknown voice '{voice}'. Available: {', '.join(self.voices)}"
            )
        return voice

    async def synthesize(self, text_chunk: str, voice: str | None = None) -> bytes:
        """Return MP3 audio for one text chunk (truncated to 5000 characters)."""
        voice = self.resolve_voice(voice)
        try:
            response = await self.client.audio.speech.create(
                model=self.default_model,
                voice=voice,
                input=text_chunk[:MAX_CHUNK_CHARS],
                instructions=NARRATION_INSTRUCTIONS,
                response_format="mp3",
            )
        except OpenAIError as e:
            logger.exception("speech_synthesis_failed", voice=voice)
            raise GenerationFailed(f"Audio synthesis failed: {e}") from e

        audio = response.content
        if not audio:
            raise GenerationFailed("Audio synthesis returned no data.")
        logger.debug("speech_synthesized", voice=voice, chars=len(text_chunk), size=len(audio))
        return audio

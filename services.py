"""Transcription and translation collaborators (OpenAI)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from config import OpenAIConfig, TranslationConfig
from errors import (
    EmptyAudioError,
    EmptyTranscriptionError,
    TranscriptionError,
    TranscriptionStatusError,
    TranslationError,
)
from rate_limiter import RateLimiter

HTTP_LOG = logging.getLogger("relay.http")

TRANSLATION_PROMPT = (
    "You are a language translation app for VRChat. Answer only in the target language. "
    "Do not quote the translation. target_language={language} Text:\n\n{text}"
)


class TranscriptionResponse(BaseModel):
    text: str = ""


def build_translation_prompt(target_language: str, text: str) -> str:
    return TRANSLATION_PROMPT.format(language=target_language, text=text)


class WhisperTranscriber:
    """Posts WAV segments to the transcription endpoint."""

    def __init__(
        self,
        cfg: OpenAIConfig,
        rate_limiter: RateLimiter,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cfg = cfg
        self.rate_limiter = rate_limiter
        headers = {}
        if cfg.api_key:
            headers["Authorization"] = f"Bearer {cfg.api_key}"
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(cfg.timeout_s, connect=10.0), headers=headers
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def transcribe(self, wav: bytes) -> str:
        HTTP_LOG.info("Starting audio transcription. Audio data size: %d bytes", len(wav))
        if not wav:
            raise EmptyAudioError("Audio data is empty")

        await self.rate_limiter.acquire()

        files = {"file": ("audio.wav", wav, "audio/wav")}
        data = {"model": self.cfg.stt_model}
        HTTP_LOG.info("POST %s model=%s", self.cfg.stt_endpoint, self.cfg.stt_model)
        try:
            response = await self._client.post(self.cfg.stt_endpoint, data=data, files=files)
        except httpx.HTTPError as exc:
            raise TranscriptionError(f"transcription upload failed: {exc}") from exc

        if not response.is_success:
            raise TranscriptionStatusError(response.status_code, response.text)

        try:
            parsed = TranscriptionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise TranscriptionError(f"malformed transcription response: {exc}") from exc

        text = parsed.text.strip()
        if not text:
            raise EmptyTranscriptionError("Received empty transcription from API")
        HTTP_LOG.info("Transcription received: %s", text)
        return text


@dataclass
class Translation:
    text: str
    prompt: str


class ChatTranslator:
    """Rewrites a transcript into the target language via chat completions."""

    def __init__(
        self,
        cfg: OpenAIConfig,
        translation: TranslationConfig,
        rate_limiter: RateLimiter,
        *,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.cfg = cfg
        self.translation = translation
        self.rate_limiter = rate_limiter
        self._client = client

    def _ensure_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client
        if not self.cfg.api_key:
            raise TranslationError("OPENAI_API_KEY is not set (or openai_api_key.txt is missing).")
        self._client = AsyncOpenAI(
            api_key=self.cfg.api_key, base_url=self.cfg.base_url, timeout=self.cfg.timeout_s
        )
        return self._client

    async def translate(self, text: str) -> Translation:
        prompt = build_translation_prompt(self.translation.target_language, text)
        client = self._ensure_client()
        await self.rate_limiter.acquire()
        try:
            completion = await client.chat.completions.create(
                model=self.cfg.translation_model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            raise TranslationError(f"translation request failed: {exc}") from exc

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise TranslationError(f"malformed translation response: {exc}") from exc
        if content is None:
            raise TranslationError("malformed translation response: empty message")
        return Translation(text=content.strip(), prompt=prompt)


__all__ = [
    "TRANSLATION_PROMPT",
    "TranscriptionResponse",
    "build_translation_prompt",
    "WhisperTranscriber",
    "Translation",
    "ChatTranslator",
]

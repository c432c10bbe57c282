"""Asyncio consumer: segment events → transcription → translation → chatbox."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from audio_core import (
    PipelineEvent,
    RecordingStopped,
    SegmentEnded,
    SegmentPayload,
    SegmentStarted,
    wav_duration,
)
from capture import PipelineChannel
from chatbox import ChunkedDispatcher, DispatchResult, TypingIndicator
from config import RelayConfig
from errors import EmptyTranscriptionError, RelayError
from pricing import CostLedger, PriceTable, estimate_tokens
from services import Translation

RELAY_LOG = logging.getLogger("relay")


class Transcriber(Protocol):
    async def transcribe(self, wav: bytes) -> str: ...


class Translator(Protocol):
    async def translate(self, text: str) -> Translation: ...


class RelayPipeline:
    """Processes pipeline events one at a time, in channel order."""

    def __init__(
        self,
        cfg: RelayConfig,
        transcriber: Transcriber,
        translator: Translator,
        dispatcher: ChunkedDispatcher,
        typing: TypingIndicator,
        *,
        prices: Optional[PriceTable] = None,
        ledger: Optional[CostLedger] = None,
    ):
        self.cfg = cfg
        self.transcriber = transcriber
        self.translator = translator
        self.dispatcher = dispatcher
        self.typing = typing
        self.prices = prices or PriceTable()
        self.ledger = ledger or CostLedger()
        self.processed = 0

    async def run(self, channel: PipelineChannel) -> None:
        while True:
            event = await channel.receive()
            if event is None:
                break
            await self.handle(event)
        if channel.dropped:
            RELAY_LOG.warning("%d pipeline events were dropped (channel full)", channel.dropped)

    async def handle(self, event: PipelineEvent) -> None:
        if isinstance(event, SegmentStarted):
            self.typing.start_typing()
        elif isinstance(event, RecordingStopped):
            self.typing.stop_typing()
        elif isinstance(event, SegmentEnded):
            try:
                await self.process_segment(event.payload)
            except RelayError as exc:
                RELAY_LOG.error("Error processing audio: %s", exc)
            except Exception:  # noqa: BLE001
                RELAY_LOG.exception("Unexpected error processing audio")
            finally:
                self.processed += 1

    async def process_segment(self, payload: SegmentPayload) -> Optional[DispatchResult]:
        duration = wav_duration(payload.wav)
        min_duration = self.cfg.audio.min_transcription_duration
        if duration < min_duration:
            RELAY_LOG.info(
                "Audio too short (%.2fs). Minimum duration is %.2fs. Skipping transcription.",
                duration,
                min_duration,
            )
            self.typing.stop_typing()
            return None

        try:
            transcription = await self.transcriber.transcribe(payload.wav)
        except EmptyTranscriptionError:
            RELAY_LOG.info("Empty transcription; nothing to send")
            self.typing.stop_typing()
            return None
        RELAY_LOG.info("Transcription: %s", transcription)

        translation = await self.translator.translate(transcription)
        RELAY_LOG.info("Translation: %s", translation.text)

        self._record_cost(duration, translation)

        message = translation.text
        if self.cfg.translation.include_original_message:
            message = f"{message}\n{transcription}"
        result = await self.dispatcher.dispatch(message)

        self.typing.stop_typing()
        return result

    def _record_cost(self, duration: float, translation: Translation) -> None:
        transcription_cost = self.prices.transcription_cost(duration)
        translation_cost = self.prices.translation_cost(
            self.cfg.openai.translation_model,
            estimate_tokens(translation.prompt),
            estimate_tokens(translation.text),
        )
        cost = transcription_cost + translation_cost
        total = self.ledger.add(cost)
        RELAY_LOG.info("Estimated cost for this operation: $%.4f", cost)
        RELAY_LOG.info("Total cost so far: $%.4f", total)


__all__ = ["Transcriber", "Translator", "RelayPipeline"]

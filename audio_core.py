from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import numpy as np
import soundfile as sf


CAPTURE_LOG = logging.getLogger("relay.capture")


# ---------------------------------------------------------------------------
# WAV payload helpers


def encode_wav(samples: np.ndarray, sample_rate: int, channels: int) -> bytes:
    """Encode float samples as a self-contained 32-bit float WAV."""
    data = np.asarray(samples, dtype=np.float32)
    if data.ndim == 1:
        data = data.reshape(-1, channels)
    if data.shape[1] != channels:
        raise ValueError(f"expected {channels} channels, got {data.shape[1]}")
    buffer = io.BytesIO()
    sf.write(buffer, data, int(sample_rate), format="WAV", subtype="FLOAT")
    return buffer.getvalue()


def wav_duration(wav: bytes) -> float:
    """Return the duration in seconds of an in-memory WAV payload."""
    info = sf.info(io.BytesIO(wav))
    if info.samplerate <= 0:
        return 0.0
    return info.frames / float(info.samplerate)


# ---------------------------------------------------------------------------
# Pipeline events


@dataclass(frozen=True)
class SegmentPayload:
    """A finalized utterance, ready to leave the capture thread."""

    wav: bytes
    sample_rate: int
    channels: int
    frames: int
    started_at: float

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / float(self.sample_rate)


@dataclass(frozen=True)
class SegmentStarted:
    started_at: float


@dataclass(frozen=True)
class SegmentEnded:
    payload: SegmentPayload


@dataclass(frozen=True)
class RecordingStopped:
    pass


PipelineEvent = Union[SegmentStarted, SegmentEnded, RecordingStopped]


# ---------------------------------------------------------------------------
# Noise gate


class NoiseGate:
    """Peak detector with a timed hold so short dips don't close the gate."""

    def __init__(self, threshold: float, hold_time: float, clock: Callable[[], float] = time.monotonic):
        self.threshold = float(threshold)
        self.hold_time = float(hold_time)
        self._clock = clock
        self.last_active = clock()
        self.is_active = False

    @staticmethod
    def peak(samples: np.ndarray) -> float:
        if samples.size == 0:
            return 0.0
        return float(np.max(np.abs(samples)))

    def process(self, samples: np.ndarray) -> bool:
        if self.peak(samples) > self.threshold:
            self.last_active = self._clock()
            self.is_active = True
        elif self.is_active and self._clock() - self.last_active > self.hold_time:
            self.is_active = False
        return self.is_active


# ---------------------------------------------------------------------------
# Activity segmenter


class ActivitySegmenter:
    """Turns gate decisions into segment start/end events.

    Runs on the audio callback thread. The open segment is owned here and
    never shared; only the encoded ``SegmentPayload`` leaves via events.
    A segment ends after ``silence_frames`` consecutive callbacks with the
    gate closed. Blocks seen before that are kept so a pause inside one
    utterance does not split it.
    """

    IDLE = "idle"
    RECORDING = "recording"

    def __init__(
        self,
        gate: NoiseGate,
        sample_rate: int,
        channels: int,
        silence_frames: int,
        *,
        encoder: Callable[[np.ndarray, int, int], bytes] = encode_wav,
        wall_clock: Callable[[], float] = time.time,
    ):
        self.gate = gate
        self.sample_rate = int(sample_rate)
        self.channels = max(1, int(channels))
        self.silence_frames = max(1, int(silence_frames))
        self._encoder = encoder
        self._wall_clock = wall_clock
        self.state = self.IDLE
        self._blocks: List[np.ndarray] = []
        self._silent = 0
        self._started_at: Optional[float] = None

    @property
    def is_recording(self) -> bool:
        return self.state == self.RECORDING

    def process(self, block: np.ndarray) -> List[PipelineEvent]:
        """Feed one callback block; return the events it produced."""
        events: List[PipelineEvent] = []
        active = self.gate.process(block)

        if active:
            if self.state == self.IDLE:
                self.state = self.RECORDING
                self._started_at = self._wall_clock()
                CAPTURE_LOG.info("Sound detected. Starting recording...")
                events.append(SegmentStarted(self._started_at))
            self._append(block)
            self._silent = 0
        elif self.state == self.RECORDING:
            self._silent += 1
            if self._silent >= self.silence_frames:
                CAPTURE_LOG.info("Silence detected. Stopping recording and processing audio...")
                events.extend(self._finalize())
            else:
                self._append(block)

        return events

    def flush(self) -> List[PipelineEvent]:
        """Close any open segment (used when capture stops)."""
        if self.state != self.RECORDING:
            return []
        return self._finalize()

    # ---- helpers -----------------------------------------------------

    def _append(self, block: np.ndarray) -> None:
        data = np.asarray(block, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(-1, self.channels)
        # The callback reuses its buffer, so keep a copy.
        self._blocks.append(data.copy())

    def _finalize(self) -> List[PipelineEvent]:
        events: List[PipelineEvent] = []
        blocks = self._blocks
        started_at = self._started_at if self._started_at is not None else self._wall_clock()
        self._blocks = []
        self._silent = 0
        self._started_at = None
        self.state = self.IDLE

        if blocks:
            try:
                samples = np.concatenate(blocks, axis=0)
                if samples.shape[0] > 0:
                    wav = self._encoder(samples, self.sample_rate, self.channels)
                    payload = SegmentPayload(
                        wav=wav,
                        sample_rate=self.sample_rate,
                        channels=self.channels,
                        frames=int(samples.shape[0]),
                        started_at=started_at,
                    )
                    events.append(SegmentEnded(payload))
            except Exception as exc:  # noqa: BLE001
                CAPTURE_LOG.error("Segment encoding failed, dropping segment: %s", exc)

        events.append(RecordingStopped())
        return events


__all__ = [
    "CAPTURE_LOG",
    "encode_wav",
    "wav_duration",
    "SegmentPayload",
    "SegmentStarted",
    "SegmentEnded",
    "RecordingStopped",
    "PipelineEvent",
    "NoiseGate",
    "ActivitySegmenter",
]

from __future__ import annotations

import asyncio
import queue
import threading
from typing import Dict, List, Optional

import numpy as np

from audio_core import CAPTURE_LOG, ActivitySegmenter, NoiseGate, PipelineEvent
from config import AudioConfig
from errors import CaptureError


def _import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except (ImportError, OSError) as exc:
        raise CaptureError(f"sounddevice unavailable: {exc}") from exc
    return sd


# ---------------------------------------------------------------------------
# Device helpers


def list_input_devices() -> List[Dict[str, object]]:
    sd = _import_sounddevice()
    devices: List[Dict[str, object]] = []
    for i, dev in enumerate(sd.query_devices()):
        if dev["max_input_channels"] > 0:
            devices.append(
                {
                    "index": i,
                    "name": dev["name"],
                    "channels": dev["max_input_channels"],
                    "sample_rate": dev["default_samplerate"],
                }
            )
    return devices


def default_input_device() -> Optional[int]:
    sd = _import_sounddevice()
    default = sd.default.device
    idx = default[0] if isinstance(default, (list, tuple)) else default
    if idx is not None and idx >= 0:
        return int(idx)
    devs = list_input_devices()
    return int(devs[0]["index"]) if devs else None


# ---------------------------------------------------------------------------
# Pipeline channel


class PipelineChannel:
    """Bounded FIFO between the audio callback and the asyncio consumer.

    ``send_nowait`` never blocks: when the queue is full the event is
    dropped and counted. The consumer side awaits ``receive``.
    """

    def __init__(self, capacity: int = 100):
        self.capacity = max(1, int(capacity))
        self._queue: "queue.Queue[PipelineEvent]" = queue.Queue(maxsize=self.capacity)
        self._closed = threading.Event()
        self.dropped = 0

    def send_nowait(self, event: PipelineEvent) -> bool:
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            CAPTURE_LOG.warning("dropped %s: channel full", type(event).__name__)
            return False
        return True

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def get(self, timeout: float = 0.1) -> Optional[PipelineEvent]:
        """Blocking receive; ``None`` once closed and drained."""
        while True:
            try:
                return self._queue.get(timeout=timeout)
            except queue.Empty:
                if self._closed.is_set() and self._queue.empty():
                    return None

    async def receive(self, poll: float = 0.1) -> Optional[PipelineEvent]:
        return await asyncio.to_thread(self.get, poll)


# ---------------------------------------------------------------------------
# Capture thread


class AudioCapture(threading.Thread):
    """Keeps the input stream open and feeds the segmenter from its callback."""

    def __init__(self, cfg: AudioConfig, channel: PipelineChannel, device_idx: Optional[int] = None):
        super().__init__(name="audio-capture", daemon=True)
        self.cfg = cfg
        self.channel = channel
        self.device_idx = device_idx if device_idx is not None else cfg.device_index
        self.segmenter: Optional[ActivitySegmenter] = None
        self.error: Optional[BaseException] = None
        self._started = threading.Event()
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def wait_started(self, timeout: float = 5.0) -> None:
        """Block until the stream is running; raise if it never opened."""
        if not self._started.wait(timeout):
            raise CaptureError("audio stream did not start in time")
        if self.error is not None:
            raise CaptureError(f"Error starting audio recording: {self.error}") from self.error

    def build_segmenter(self, sample_rate: int, channels: int) -> ActivitySegmenter:
        gate = NoiseGate(self.cfg.noise_gate_threshold, self.cfg.noise_gate_hold_time)
        self.segmenter = ActivitySegmenter(gate, sample_rate, channels, self.cfg.silence_frames)
        return self.segmenter

    def on_block(self, indata: np.ndarray) -> None:
        # Hot path: gate, append, non-blocking sends only.
        for event in self.segmenter.process(indata):
            self.channel.send_nowait(event)

    def run(self) -> None:
        try:
            sd = _import_sounddevice()
            device = self.device_idx
            if device is None:
                device = default_input_device()
            if device is None:
                raise CaptureError("No input device available")
            info = sd.query_devices(device, "input")
            sample_rate = int(info["default_samplerate"])
            channels = max(1, int(info["max_input_channels"]))
            self.build_segmenter(sample_rate, channels)

            def cb(indata, _frames, _time_info, status):
                if status:
                    CAPTURE_LOG.debug("input status: %s", status)
                if self._stop_event.is_set():
                    raise sd.CallbackStop()
                self.on_block(indata)

            stream = sd.InputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype="float32",
                device=device,
                callback=cb,
            )
        except Exception as exc:  # noqa: BLE001
            self.error = exc
            self.channel.close()
            self._started.set()
            return

        CAPTURE_LOG.info(
            "Capturing from device %s (%d Hz, %d ch)", device, sample_rate, channels
        )
        try:
            with stream:
                self._started.set()
                while not self._stop_event.is_set():
                    sd.sleep(100)
        except Exception as exc:  # noqa: BLE001
            CAPTURE_LOG.error("An error occurred on the audio stream: %s", exc)
            self.error = exc
        finally:
            self._started.set()
            for event in self.segmenter.flush():
                self.channel.send_nowait(event)
            self.channel.close()


__all__ = [
    "list_input_devices",
    "default_input_device",
    "PipelineChannel",
    "AudioCapture",
]

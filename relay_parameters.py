from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

__all__ = [
    "AudioConfig",
    "OscConfig",
    "OpenAIConfig",
    "TranslationConfig",
    "RateLimitConfig",
    "RelayConfig",
    "load_openai_api_key",
    "load_relay_config",
]


def _env_int(name: str, default: int) -> int:
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() not in {"0", "false", "no", "off"}


DEFAULT_STT_MODEL = "whisper-1"
DEFAULT_STT_ENDPOINT = "https://api.openai.com/v1/audio/transcriptions"
DEFAULT_TRANSLATION_MODEL = "gpt-4o-mini"


def _default_key_file() -> Path:
    # Prefer openai_api_key.txt alongside the sources, fall back to the parent dir.
    script_dir = Path(__file__).resolve().parent
    candidates = [
        script_dir / "openai_api_key.txt",
        script_dir.parent / "openai_api_key.txt",
    ]
    for path in candidates:
        if path.exists():
            return path
    return candidates[0]


def load_openai_api_key() -> Optional[str]:
    """Load the OpenAI API key from env or a local text file."""
    key = os.environ.get("OPENAI_API_KEY")
    if key:
        key = key.strip()
        if key:
            return key

    key_file = os.environ.get("OPENAI_API_KEY_FILE")
    path = Path(key_file).expanduser() if key_file else _default_key_file()
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return text or None


@dataclass
class AudioConfig:
    """Noise gate + segmenter knobs."""

    # Peak amplitude (float samples, 0..1) that opens the gate
    noise_gate_threshold: float = 0.02
    # Seconds the gate stays open after the last loud block
    noise_gate_hold_time: float = 0.5
    # Consecutive gated-off callbacks that close a segment
    silence_frames: int = 50
    # Segments shorter than this never reach transcription
    min_transcription_duration: float = 1.0
    channel_capacity: int = 100
    device_index: Optional[int] = None

    @classmethod
    def from_env(cls) -> "AudioConfig":
        d = cls()
        device = os.environ.get("RELAY_DEVICE_INDEX")
        return cls(
            noise_gate_threshold=_env_float("RELAY_NOISE_GATE_THRESHOLD", d.noise_gate_threshold),
            noise_gate_hold_time=_env_float("RELAY_NOISE_GATE_HOLD_TIME", d.noise_gate_hold_time),
            silence_frames=_env_int("RELAY_SILENCE_FRAMES", d.silence_frames),
            min_transcription_duration=_env_float(
                "RELAY_MIN_TRANSCRIPTION_DURATION", d.min_transcription_duration
            ),
            channel_capacity=_env_int("RELAY_CHANNEL_CAPACITY", d.channel_capacity),
            device_index=int(device) if device and device.strip().isdigit() else d.device_index,
        )


@dataclass
class OscConfig:
    """Chatbox OSC target and pacing."""

    address: str = "127.0.0.1"
    output_port: int = 9000
    chunk_budget: int = 144
    max_message_chunks: int = 3
    # Delay between chatbox chunks (milliseconds)
    display_time_ms: int = 3000

    @property
    def display_time(self) -> float:
        return max(0, self.display_time_ms) / 1000.0

    @classmethod
    def from_env(cls) -> "OscConfig":
        d = cls()
        return cls(
            address=os.environ.get("RELAY_OSC_ADDRESS", d.address),
            output_port=_env_int("RELAY_OSC_PORT", d.output_port),
            chunk_budget=_env_int("RELAY_CHUNK_BUDGET", d.chunk_budget),
            max_message_chunks=_env_int("RELAY_MAX_CHUNKS", d.max_message_chunks),
            display_time_ms=_env_int("RELAY_DISPLAY_TIME_MS", d.display_time_ms),
        )


@dataclass
class OpenAIConfig:
    """Credentials and models for the transcription/translation services."""

    api_key: Optional[str] = None
    stt_model: str = DEFAULT_STT_MODEL
    stt_endpoint: str = DEFAULT_STT_ENDPOINT
    translation_model: str = DEFAULT_TRANSLATION_MODEL
    base_url: Optional[str] = None
    timeout_s: float = 60.0

    @classmethod
    def from_env(cls) -> "OpenAIConfig":
        d = cls()
        return cls(
            api_key=load_openai_api_key(),
            stt_model=os.environ.get("RELAY_STT_MODEL", d.stt_model),
            stt_endpoint=os.environ.get("RELAY_STT_ENDPOINT", d.stt_endpoint),
            translation_model=os.environ.get("RELAY_TRANSLATION_MODEL", d.translation_model),
            base_url=os.environ.get("OPENAI_BASE_URL", d.base_url),
            timeout_s=_env_float("OPENAI_TIMEOUT_S", d.timeout_s),
        )


@dataclass
class TranslationConfig:
    target_language: str = "English"
    include_original_message: bool = False

    @classmethod
    def from_env(cls) -> "TranslationConfig":
        d = cls()
        return cls(
            target_language=os.environ.get("RELAY_TARGET_LANGUAGE", d.target_language),
            include_original_message=_env_bool("RELAY_INCLUDE_ORIGINAL", d.include_original_message),
        )


@dataclass
class RateLimitConfig:
    requests_per_minute: int = 20

    @classmethod
    def from_env(cls) -> "RateLimitConfig":
        d = cls()
        return cls(requests_per_minute=max(1, _env_int("RELAY_REQUESTS_PER_MINUTE", d.requests_per_minute)))


@dataclass
class RelayConfig:
    """Everything the relay needs, grouped by collaborator."""

    audio: AudioConfig = field(default_factory=AudioConfig)
    osc: OscConfig = field(default_factory=OscConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cost_file: Optional[str] = "total_cost.txt"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        cost_file = os.environ.get("RELAY_COST_FILE", "total_cost.txt").strip()
        return cls(
            audio=AudioConfig.from_env(),
            osc=OscConfig.from_env(),
            openai=OpenAIConfig.from_env(),
            translation=TranslationConfig.from_env(),
            rate_limit=RateLimitConfig.from_env(),
            cost_file=cost_file or None,
        )


def load_relay_config() -> RelayConfig:
    return RelayConfig.from_env()

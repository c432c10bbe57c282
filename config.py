from __future__ import annotations
import os

# === Simple knobs (edit these numbers if you dislike envs) ===
TARGET_LANGUAGE = os.environ.get("RELAY_TARGET_LANGUAGE", "English")
TRANSLATION_MODEL = os.environ.get("RELAY_TRANSLATION_MODEL", "gpt-4o-mini")
REQUESTS_PER_MINUTE = os.environ.get("RELAY_REQUESTS_PER_MINUTE", "20")

# Gate + segment shaping (amplitude / seconds / callback count)
AUDIO = {
    "NOISE_GATE_THRESHOLD": float(os.environ.get("RELAY_NOISE_GATE_THRESHOLD", "0.02")),
    "NOISE_GATE_HOLD_TIME": float(os.environ.get("RELAY_NOISE_GATE_HOLD_TIME", "0.5")),
    "SILENCE_FRAMES": int(os.environ.get("RELAY_SILENCE_FRAMES", "50")),
    "MIN_TRANSCRIPTION_DURATION": float(os.environ.get("RELAY_MIN_TRANSCRIPTION_DURATION", "1.0")),
}

# Chatbox pacing (characters / chunks / milliseconds)
CHATBOX = {
    "CHUNK_BUDGET": int(os.environ.get("RELAY_CHUNK_BUDGET", "144")),
    "MAX_CHUNKS": int(os.environ.get("RELAY_MAX_CHUNKS", "3")),
    "DISPLAY_TIME_MS": int(os.environ.get("RELAY_DISPLAY_TIME_MS", "3000")),
}

# Write env once so downstream .from_env() picks them up predictably.
os.environ.setdefault("RELAY_TARGET_LANGUAGE", TARGET_LANGUAGE)
os.environ.setdefault("RELAY_TRANSLATION_MODEL", TRANSLATION_MODEL)
os.environ.setdefault("RELAY_REQUESTS_PER_MINUTE", REQUESTS_PER_MINUTE)

os.environ.setdefault("RELAY_NOISE_GATE_THRESHOLD", str(AUDIO["NOISE_GATE_THRESHOLD"]))
os.environ.setdefault("RELAY_NOISE_GATE_HOLD_TIME", str(AUDIO["NOISE_GATE_HOLD_TIME"]))
os.environ.setdefault("RELAY_SILENCE_FRAMES", str(AUDIO["SILENCE_FRAMES"]))
os.environ.setdefault("RELAY_MIN_TRANSCRIPTION_DURATION", str(AUDIO["MIN_TRANSCRIPTION_DURATION"]))

os.environ.setdefault("RELAY_CHUNK_BUDGET", str(CHATBOX["CHUNK_BUDGET"]))
os.environ.setdefault("RELAY_MAX_CHUNKS", str(CHATBOX["MAX_CHUNKS"]))
os.environ.setdefault("RELAY_DISPLAY_TIME_MS", str(CHATBOX["DISPLAY_TIME_MS"]))

# Re-export dataclasses and helpers so the rest of the code imports from `config`.
from relay_parameters import (  # noqa: E402
    AudioConfig,
    OpenAIConfig,
    OscConfig,
    RateLimitConfig,
    RelayConfig,
    TranslationConfig,
    load_openai_api_key,
    load_relay_config,
)

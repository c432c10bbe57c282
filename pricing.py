from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

RELAY_LOG = logging.getLogger("relay")

__all__ = ["PriceTable", "CostLedger", "estimate_tokens", "DEFAULT_GPT_PRICES"]

# USD per million tokens: (input, output)
DEFAULT_GPT_PRICES: Dict[str, Tuple[float, float]] = {
    "gpt-4o": (5.00, 15.00),
    "gpt-4o-2024-08-06": (2.50, 10.00),
    "gpt-4o-2024-05-13": (5.00, 15.00),
    "gpt-4o-mini": (0.150, 0.600),
    "gpt-4o-mini-2024-07-18": (0.150, 0.600),
}

WHISPER_PRICE_PER_MINUTE = 0.006


def estimate_tokens(text: str) -> int:
    # Rough estimate: 1 token ~ 4 UTF-8 bytes
    return len(text.encode("utf-8")) // 4


@dataclass(frozen=True)
class PriceTable:
    gpt_prices: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_GPT_PRICES))
    whisper_price_per_minute: float = WHISPER_PRICE_PER_MINUTE

    def gpt_price(self, model: str) -> Tuple[float, float]:
        # Unknown models are priced at zero.
        return self.gpt_prices.get(model, (0.0, 0.0))

    def transcription_cost(self, duration_s: float) -> float:
        return (duration_s / 60.0) * self.whisper_price_per_minute

    def translation_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        input_price, output_price = self.gpt_price(model)
        return (input_tokens / 1_000_000.0) * input_price + (output_tokens / 1_000_000.0) * output_price


class CostLedger:
    """Running cost total, optionally persisted to a plain text file."""

    def __init__(self, path: Optional[Path] = None, total: float = 0.0):
        self.path = Path(path) if path else None
        self.total = float(total)

    @classmethod
    def load(cls, path: Optional[Path]) -> "CostLedger":
        if path is None:
            return cls()
        path = Path(path)
        try:
            total = float(path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            total = 0.0
        return cls(path, total)

    def add(self, cost: float) -> float:
        self.total += cost
        self.save()
        return self.total

    def save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.write_text(repr(self.total), encoding="utf-8")
        except OSError as exc:
            RELAY_LOG.error("Failed to save total cost: %s", exc)

"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Collects OSC sends; optionally fails on the n-th send."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.sent: list[tuple[str, list]] = []
        self.fail_on = fail_on
        self.calls = 0

    def send(self, address, args) -> None:
        self.calls += 1
        if self.fail_on is not None and self.calls == self.fail_on:
            raise OSError("network unreachable")
        self.sent.append((address, list(args)))

    def messages(self, address: str) -> list[list]:
        return [args for addr, args in self.sent if addr == address]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()

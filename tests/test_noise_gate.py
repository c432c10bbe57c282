import numpy as np

from audio_core import NoiseGate


def _block(amplitude: float, frames: int = 256) -> np.ndarray:
    return np.full((frames, 1), amplitude, dtype=np.float32)


def test_gate_opens_on_peak_above_threshold(clock):
    gate = NoiseGate(threshold=0.1, hold_time=0.5, clock=clock)
    assert gate.process(_block(0.05)) is False

    clock.advance(1.0)
    assert gate.process(_block(0.3)) is True
    assert gate.last_active == 1.0


def test_gate_uses_peak_not_average(clock):
    gate = NoiseGate(threshold=0.1, hold_time=0.5, clock=clock)
    block = np.zeros((512, 1), dtype=np.float32)
    block[100, 0] = -0.4  # one negative spike is enough
    assert gate.process(block) is True


def test_threshold_is_exclusive(clock):
    gate = NoiseGate(threshold=0.25, hold_time=0.5, clock=clock)
    assert gate.process(_block(0.25)) is False


def test_gate_holds_then_closes(clock):
    gate = NoiseGate(threshold=0.1, hold_time=0.5, clock=clock)
    gate.process(_block(0.5))

    clock.advance(0.25)
    assert gate.process(_block(0.0)) is True
    clock.advance(0.25)
    assert gate.process(_block(0.0)) is True  # exactly at hold_time, still open
    clock.advance(0.25)
    assert gate.process(_block(0.0)) is False


def test_loud_block_resets_hold_timer(clock):
    gate = NoiseGate(threshold=0.1, hold_time=0.5, clock=clock)
    gate.process(_block(0.5))
    clock.advance(0.4)
    gate.process(_block(0.5))
    clock.advance(0.4)
    assert gate.process(_block(0.0)) is True
    clock.advance(0.2)
    assert gate.process(_block(0.0)) is False


def test_empty_block_counts_as_silence(clock):
    gate = NoiseGate(threshold=0.1, hold_time=0.5, clock=clock)
    assert gate.process(np.zeros((0, 1), dtype=np.float32)) is False

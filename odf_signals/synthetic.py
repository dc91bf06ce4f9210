"""
Synthetic Audio Generators

Deterministic test signals with known onset times, used by the demo mode,
the fixture generator and the test suite. No external audio files required.
"""

import numpy as np
from typing import List, Tuple


def generate_click_track(
    duration: float = 4.0,
    sr: int = 44100,
    bpm: float = 120.0,
    click_ms: float = 10.0,
    freq: float = 1000.0
) -> Tuple[np.ndarray, List[float]]:
    """
    Generate decaying sine clicks on a steady beat over silence.

    Parameters:
        duration: Duration in seconds
        sr: Sample rate
        bpm: Clicks per minute
        click_ms: Click length in milliseconds
        freq: Click tone frequency in Hz

    Returns:
        Tuple of (audio, onset_times)
    """
    samples = int(duration * sr)
    audio = np.zeros(samples, dtype=np.float32)

    beat_interval = int(round(sr * 60.0 / bpm))
    click_samples = int(sr * click_ms / 1000.0)
    t = np.arange(click_samples) / sr
    # Exponential decay envelope
    click = np.exp(-t * 300.0) * np.sin(2 * np.pi * freq * t)

    onset_times = []
    for start in range(0, samples, beat_interval):
        end = min(start + click_samples, samples)
        audio[start:end] += click[:end - start]
        onset_times.append(start / sr)

    return audio, onset_times


def generate_tone_bursts(
    duration: float = 4.0,
    sr: int = 44100,
    burst_sec: float = 0.25,
    gap_sec: float = 0.25,
    freqs: Tuple[float, ...] = (220.0, 440.0, 660.0, 880.0)
) -> Tuple[np.ndarray, List[float]]:
    """
    Generate alternating tone bursts and silences, cycling through freqs.

    Each burst has a hard attack, so onsets sit exactly at burst starts.

    Returns:
        Tuple of (audio, onset_times)
    """
    samples = int(duration * sr)
    audio = np.zeros(samples, dtype=np.float32)

    burst_samples = int(burst_sec * sr)
    period = burst_samples + int(gap_sec * sr)

    onset_times = []
    for k, start in enumerate(range(0, samples, period)):
        end = min(start + burst_samples, samples)
        t = np.arange(end - start) / sr
        audio[start:end] = 0.8 * np.sin(2 * np.pi * freqs[k % len(freqs)] * t)
        onset_times.append(start / sr)

    return audio, onset_times


def generate_steady_tone(duration: float = 2.0, sr: int = 44100, freq: float = 440.0) -> np.ndarray:
    """Generate a constant sine tone (no onsets after the first frame)."""
    t = np.arange(int(duration * sr)) / sr
    return (0.5 * np.sin(2 * np.pi * freq * t)).astype(np.float32)

"""
Audio I/O Module

Handles audio loading, preprocessing, and hop-sized chunking for the
detection function engine. All operations are deterministic.
"""

import numpy as np
from typing import Dict, Iterator, Optional, Tuple

import librosa


# Target RMS level for 'loudness' normalization (dBFS)
DEFAULT_RMS_TARGET_DB: float = -20.0

MONO_METHODS: Tuple[str, ...] = ('average', 'left', 'right')


def load_audio(
    file_path: str,
    target_sr: Optional[int] = None,
    mono_method: str = 'average'
) -> Tuple[np.ndarray, int]:
    """
    Decode an audio file into a mono float32 signal.

    Multichannel files are decoded with all channels and folded down with
    convert_to_mono(), so 'left' and 'right' pick a single channel.

    Parameters:
        file_path: Path to audio file (any format librosa can read)
        target_sr: Resample to this rate (None = keep the file's rate)
        mono_method: Channel folding, see convert_to_mono()

    Returns:
        Tuple of (audio, sample_rate)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If mono_method is unknown
    """
    channels, sr = librosa.load(file_path, sr=None, mono=False)
    audio = convert_to_mono(channels, mono_method)

    if target_sr is not None and sr != target_sr:
        audio = librosa.resample(audio, orig_sr=sr, target_sr=target_sr)
        sr = target_sr

    return audio.astype(np.float32), sr


def convert_to_mono(audio: np.ndarray, method: str = 'average') -> np.ndarray:
    """
    Fold a channels-first signal (librosa layout) down to one channel.

    Parameters:
        audio: (n_samples,) or (n_channels, n_samples) array
        method: 'average' (librosa.to_mono), 'left' (first channel) or
            'right' (last channel)

    Returns:
        Mono audio array (1D)

    Raises:
        ValueError: If method is unknown or audio is not 1D/2D
    """
    if method not in MONO_METHODS:
        raise ValueError(f"Unknown mono conversion method: {method}")

    if audio.ndim == 1:
        return audio
    if audio.ndim != 2:
        raise ValueError(f"Expected (channels, samples) audio, got shape {audio.shape}")

    if method == 'average':
        return librosa.to_mono(audio)
    return audio[0] if method == 'left' else audio[-1]


def normalize_audio(
    audio: np.ndarray,
    method: str = 'peak',
    rms_target_db: float = DEFAULT_RMS_TARGET_DB
) -> Tuple[np.ndarray, float]:
    """
    Normalize audio amplitude.

    Parameters:
        audio: Audio array
        method: Normalization method
            - 'peak': Scale so max absolute value is 1.0
            - 'loudness': Scale to rms_target_db RMS level
            - 'none': Leave unchanged
        rms_target_db: Target RMS in dBFS for 'loudness'

    Returns:
        Tuple of (normalized_audio, normalization_factor)

    Raises:
        ValueError: If method is invalid
    """
    if method == 'none':
        return audio, 1.0

    elif method == 'peak':
        peak = np.abs(audio).max() if len(audio) > 0 else 0.0
        if peak == 0:
            # Silent audio
            return audio, 1.0
        factor = 1.0 / peak
        return audio * factor, factor

    elif method == 'loudness':
        rms = np.sqrt(np.mean(audio ** 2)) if len(audio) > 0 else 0.0
        if rms == 0:
            # Silent audio
            return audio, 1.0
        target_linear = 10 ** (rms_target_db / 20.0)
        factor = target_linear / rms
        return audio * factor, factor

    else:
        raise ValueError(f"Unknown normalization method: {method}")


def validate_audio(audio: np.ndarray, sr: int, max_duration: Optional[float] = None) -> None:
    """
    Validate audio array for processing.

    Parameters:
        audio: Audio array to validate
        sr: Sample rate (Hz)
        max_duration: Maximum allowed duration in seconds (None = unlimited)

    Raises:
        ValueError: If audio is invalid
    """
    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}")

    if audio.ndim != 1:
        raise ValueError(f"Expected mono 1D audio, got shape {audio.shape}")

    if len(audio) == 0:
        raise ValueError("Audio array is empty")

    if not np.isfinite(audio).all():
        raise ValueError("Audio contains NaN or infinite values")

    duration = len(audio) / sr
    if max_duration is not None and duration > max_duration:
        raise ValueError(
            f"Audio duration ({duration:.1f}s) exceeds maximum "
            f"({max_duration:.1f}s)"
        )


def iter_hops(audio: np.ndarray, hop_size: int) -> Iterator[np.ndarray]:
    """
    Yield consecutive hop-sized chunks of a signal.

    The final partial chunk is zero-padded to hop_size, so every chunk can
    be passed straight to OnsetDetectionFunction.compute_sample().

    Parameters:
        audio: 1D audio array
        hop_size: Chunk length in samples

    Yields:
        float64 arrays of exactly hop_size samples

    Raises:
        ValueError: If hop_size is not positive
    """
    if hop_size <= 0:
        raise ValueError(f"hop_size must be positive, got {hop_size}")

    samples = np.asarray(audio, dtype=np.float64)
    for start in range(0, len(samples), hop_size):
        chunk = samples[start:start + hop_size]
        if len(chunk) < hop_size:
            chunk = np.concatenate([chunk, np.zeros(hop_size - len(chunk))])
        yield chunk


def preprocess_audio(
    file_path: str,
    target_sr: Optional[int] = None,
    normalize_method: str = 'peak',
    max_duration: Optional[float] = None
) -> Dict:
    """
    Load, normalize and validate one audio file.

    Parameters:
        file_path: Path to audio file
        target_sr: Target sample rate (None = native)
        normalize_method: 'peak', 'loudness' or 'none'
        max_duration: Maximum allowed duration in seconds

    Returns:
        Dictionary with:
            - audio: preprocessed mono audio
            - sample_rate: sample rate in Hz
            - duration: duration in seconds
            - preprocessing: metadata about the steps applied
    """
    audio, sr = load_audio(file_path, target_sr)
    audio, factor = normalize_audio(audio, normalize_method)
    validate_audio(audio, sr, max_duration)

    return {
        'audio': audio,
        'sample_rate': sr,
        'duration': len(audio) / sr,
        'preprocessing': {
            'normalization_method': normalize_method,
            'normalization_factor': float(factor),
            'target_sr': target_sr,
        }
    }

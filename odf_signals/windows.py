"""
Window Generator Module

Per-sample analysis window weights for the onset detection engine.
Windows are computed once per (window type, frame size) and treated as
read-only afterwards.

All windows use n = 0 .. frame_size - 1 and N = frame_size - 1.
"""

import warnings

import numpy as np

from odf_signals.kernel_params import WindowKind, WindowType, resolve_window


DEFAULT_TUKEY_ALPHA: float = 0.5


def rectangular_window(frame_size: int) -> np.ndarray:
    """Rectangular window: 1.0 everywhere."""
    return np.ones(frame_size, dtype=np.float64)


def hanning_window(frame_size: int) -> np.ndarray:
    """
    Hanning window.

    CONTRACT:
    - w[n] = 0.5 * (1 - cos(2*pi*n/N))
    - Symmetric: w[n] == w[frame_size - 1 - n]
    - w[0] == w[frame_size - 1] == 0 for frame_size > 1
    """
    if frame_size == 1:
        return rectangular_window(1)
    N = float(frame_size - 1)
    n = np.arange(frame_size, dtype=np.float64)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * (n / N)))


def hamming_window(frame_size: int) -> np.ndarray:
    """Hamming window: 0.54 - 0.46*cos(2*pi*n/N)."""
    if frame_size == 1:
        return rectangular_window(1)
    N = float(frame_size - 1)
    n = np.arange(frame_size, dtype=np.float64)
    return 0.54 - 0.46 * np.cos(2.0 * np.pi * (n / N))


def blackman_window(frame_size: int) -> np.ndarray:
    """Blackman window: 0.42 - 0.5*cos(2*pi*n/N) + 0.08*cos(4*pi*n/N)."""
    if frame_size == 1:
        return rectangular_window(1)
    N = float(frame_size - 1)
    n = np.arange(frame_size, dtype=np.float64)
    return (
        0.42
        - 0.5 * np.cos(2.0 * np.pi * (n / N))
        + 0.08 * np.cos(4.0 * np.pi * (n / N))
    )


def tukey_window(frame_size: int, alpha: float = DEFAULT_TUKEY_ALPHA) -> np.ndarray:
    """
    Tukey (tapered cosine) window.

    CONTRACT:
    - Centred index m runs from -(frame_size // 2) + 1 to frame_size // 2
      (one past the end for odd sizes)
    - Flat top: w = 1.0 where |m| <= alpha * N / 2
    - Taper: w = 0.5 * (1 + cos(pi * (2*m / (alpha*N) - 1))) elsewhere

    Parameters:
        frame_size: Window length in samples
        alpha: Taper ratio in (0, 1]

    Returns:
        Window weights (frame_size,)
    """
    if frame_size == 1:
        return rectangular_window(1)
    N = float(frame_size - 1)
    m = np.arange(frame_size, dtype=np.float64) - (frame_size // 2) + 1

    half_flat = alpha * (N / 2.0)
    taper = 0.5 * (1.0 + np.cos(np.pi * (((2.0 * m) / (alpha * N)) - 1.0)))

    return np.where(np.abs(m) <= half_flat, 1.0, taper)


_WINDOW_FUNCTIONS = {
    WindowType.RECTANGULAR: rectangular_window,
    WindowType.HANNING: hanning_window,
    WindowType.HAMMING: hamming_window,
    WindowType.BLACKMAN: blackman_window,
}


def compute_window(
    window: WindowKind,
    frame_size: int,
    tukey_alpha: float = DEFAULT_TUKEY_ALPHA
) -> np.ndarray:
    """
    Compute the analysis window for a frame size.

    CONTRACT:
    - Output: (frame_size,) float64 array
    - Deterministic: same input -> same output
    - Unrecognized window kinds produce a Hanning window and a UserWarning

    Parameters:
        window: WindowType member, its integer value or its name
        frame_size: Window length in samples (positive)
        tukey_alpha: Taper ratio, only used by the Tukey window

    Returns:
        Window weights

    Raises:
        ValueError: If frame_size is not positive
    """
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")

    window_type = resolve_window(window)
    if window_type is None:
        warnings.warn(
            f"Unknown window type {window!r}, using Hanning window"
        )
        window_type = WindowType.HANNING

    if window_type == WindowType.TUKEY:
        return tukey_window(frame_size, tukey_alpha)

    return _WINDOW_FUNCTIONS[window_type](frame_size)

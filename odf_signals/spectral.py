"""
Spectral Transform Stage

Windows the current frame, rotates it so the frame centre sits at index 0,
and runs a forward DFT. Magnitude and phase helpers turn the complex bins
into the spectra the detection functions consume.

The forward transform is injected: any callable taking frame_size complex
samples and returning frame_size complex bins (standard DFT convention, no
normalization) can replace ScipyFFT, including deterministic test doubles.
"""

from typing import Callable

import numpy as np
from scipy import fft as scipy_fft


ForwardTransform = Callable[[np.ndarray], np.ndarray]


class ScipyFFT:
    """
    Forward DFT of a fixed size backed by scipy.fft.

    Sized once at construction, mirroring a transform plan; the detector
    creates a new one whenever frame_size changes and closes the old one.
    """

    def __init__(self, frame_size: int, workers: int = 1) -> None:
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        self.frame_size = frame_size
        self.workers = workers
        self._closed = False

    def __call__(self, samples: np.ndarray) -> np.ndarray:
        if self._closed:
            raise RuntimeError("Transform has been closed")
        if samples.shape != (self.frame_size,):
            raise ValueError(
                f"Expected {self.frame_size} input samples, got shape {samples.shape}"
            )
        return scipy_fft.fft(samples, n=self.frame_size, workers=self.workers)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the transform; later calls raise RuntimeError."""
        self._closed = True


def prepare_transform_input(frame: np.ndarray, window: np.ndarray) -> np.ndarray:
    """
    Window the frame and swap its halves.

    CONTRACT:
    - Input: frame and window, both (frame_size,)
    - Output: (frame_size,) complex128, imaginary part zero
    - out[i] = frame[i + h] * window[i + h] for the second half,
      followed by the first half (h = frame_size // 2)
    - Even sizes: the two halves are exchanged exactly
    - Odd sizes: rotation by h samples (ifftshift)

    Parameters:
        frame: Current frame samples
        window: Window weights

    Returns:
        Transform input buffer
    """
    windowed = np.asarray(frame, dtype=np.float64) * window
    return scipy_fft.ifftshift(windowed).astype(np.complex128)


def compute_spectrum(
    frame: np.ndarray,
    window: np.ndarray,
    transform: ForwardTransform
) -> np.ndarray:
    """
    Compute the complex spectrum of one frame.

    CONTRACT:
    - Output: (frame_size,) complex array from the injected transform
    - Deterministic for a deterministic transform

    Raises:
        ValueError: If the transform returns the wrong number of bins
    """
    bins = np.asarray(transform(prepare_transform_input(frame, window)))
    if bins.shape != (len(frame),):
        raise ValueError(
            f"Transform returned shape {bins.shape}, expected ({len(frame)},)"
        )
    return bins


def magnitude_spectrum(spectrum: np.ndarray, mirror: bool = False) -> np.ndarray:
    """
    Per-bin magnitude sqrt(re^2 + im^2).

    With mirror=True only bins 0..N/2 are computed; bins above Nyquist are
    copied as mag[i] = mag[N - i], which is exact for real input frames.

    Parameters:
        spectrum: Complex bins (frame_size,)
        mirror: Mirror the lower half instead of computing the upper half

    Returns:
        Magnitudes (frame_size,) float64
    """
    re = spectrum.real
    im = spectrum.imag
    if not mirror:
        return np.sqrt(re * re + im * im)

    n = len(spectrum)
    half = n // 2
    mag = np.empty(n, dtype=np.float64)
    mag[:half + 1] = np.sqrt(re[:half + 1] ** 2 + im[:half + 1] ** 2)
    mag[half + 1:] = mag[1:n - half][::-1]
    return mag


def phase_spectrum(spectrum: np.ndarray) -> np.ndarray:
    """Per-bin phase atan2(im, re) in [-pi, pi]."""
    return np.arctan2(spectrum.imag, spectrum.real)

"""
Frame Assembler Module

Sliding-window framing of a mono sample stream. Each push advances the
frame by hop_size samples; consecutive frames overlap by
frame_size - hop_size samples.
"""

import numpy as np


class FrameBuffer:
    """
    Rolling buffer holding the most recent frame_size samples.

    CONTRACT:
    - frame always has exactly frame_size samples, most recent last
    - push() accepts exactly hop_size finite samples; a rejected chunk
      leaves the frame unchanged
    - After pushes c1..cN with N * hop_size >= frame_size, frame equals the
      trailing frame_size samples of c1 || c2 || ... || cN
    - Starts zero-filled; reset() zero-fills again
    - Not thread-safe: one buffer per stream
    """

    def __init__(self, hop_size: int, frame_size: int) -> None:
        if frame_size <= 0 or hop_size <= 0:
            raise ValueError("hop_size and frame_size must be positive")
        if hop_size > frame_size:
            raise ValueError(
                f"hop_size ({hop_size}) must not exceed frame_size ({frame_size})"
            )
        self.hop_size: int = hop_size
        self.frame_size: int = frame_size
        self._frame = np.zeros(frame_size, dtype=np.float64)

    @property
    def frame(self) -> np.ndarray:
        """Current frame (read-only view)."""
        view = self._frame.view()
        view.flags.writeable = False
        return view

    def push(self, chunk) -> np.ndarray:
        """
        Shift the frame left by hop_size and append a new chunk.

        Parameters:
            chunk: Sequence of exactly hop_size real samples

        Returns:
            The updated frame (read-only view)

        Raises:
            ValueError: If chunk is not one-dimensional with hop_size samples,
                or contains NaN/inf values
        """
        samples = np.asarray(chunk, dtype=np.float64)
        if samples.ndim != 1 or samples.shape[0] != self.hop_size:
            raise ValueError(
                f"Expected {self.hop_size} samples per chunk, got shape {samples.shape}"
            )
        if not np.isfinite(samples).all():
            raise ValueError("Chunk contains NaN or infinite values")

        keep = self.frame_size - self.hop_size
        if keep > 0:
            self._frame[:keep] = self._frame[self.hop_size:]
        self._frame[keep:] = samples

        return self.frame

    def reset(self) -> None:
        """Zero-fill the frame."""
        self._frame.fill(0.0)

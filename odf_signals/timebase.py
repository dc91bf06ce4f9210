"""
Timebase Module - Detection Function Time Axis

Maps detection function sample indices to times in seconds.

TIMEBASE RULES:
- Sample k is produced after pushing hop chunk k (0-based)
- Its frame covers stream samples [(k+1)*hop - frame_size, (k+1)*hop)
- Frame centre time: t[k] = ((k+1)*hop - frame_size/2) / sr, clamped at 0
  (early frames are partly made of the initial zero fill)
- Frame count for n samples: ceil(n / hop), the last chunk zero-padded
"""

import numpy as np
from typing import Optional


# =============================================================================
# VERSION
# =============================================================================

# Timebase version - bump when frame/time calculation logic changes
TIMEBASE_VERSION: str = "1"


# =============================================================================
# CONSTANTS
# =============================================================================

EPSILON_SEC: float = 1e-6  # Floating point tolerance for comparisons


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def compute_frame_count(n_samples: int, hop_size: int) -> int:
    """
    Number of detection function samples for a signal.

    CONTRACT:
    - Output: ceil(n_samples / hop_size), 0 for empty signals
    - Returns 0 for non-positive hop_size

    Parameters:
        n_samples: Signal length in samples
        hop_size: Hop size in samples

    Returns:
        Number of frames
    """
    if n_samples <= 0 or hop_size <= 0:
        return 0
    return -(-n_samples // hop_size)


def frame_index_to_time(
    frame_idx: int,
    hop_size: int,
    sample_rate: int,
    frame_size: int
) -> float:
    """
    Centre time of one frame in seconds.

    Parameters:
        frame_idx: Detection function sample index (0-based)
        hop_size: Hop size in samples
        sample_rate: Sample rate in Hz
        frame_size: Frame size in samples

    Returns:
        Frame centre time, never negative
    """
    centre = (frame_idx + 1) * hop_size - frame_size / 2.0
    return max(0.0, centre / sample_rate)


def compute_odf_time_axis(
    n_frames: int,
    hop_size: int,
    sample_rate: int,
    frame_size: int,
    duration_sec: Optional[float] = None
) -> np.ndarray:
    """
    Centre times of every detection function sample.

    CONTRACT:
    - Output: (n_frames,) float64, non-decreasing, >= 0
    - If duration_sec provided: max(output) <= duration_sec

    Parameters:
        n_frames: Number of detection function samples
        hop_size: Hop size in samples
        sample_rate: Sample rate in Hz
        frame_size: Frame size in samples
        duration_sec: Optional maximum time for final clamping

    Returns:
        Array of frame centre times
    """
    if n_frames <= 0:
        return np.array([], dtype=np.float64)

    centres = (np.arange(n_frames) + 1) * hop_size - frame_size / 2.0
    times = np.maximum(centres / float(sample_rate), 0.0)

    if duration_sec is not None:
        times = np.minimum(times, duration_sec)

    return times


def time_to_frame_index(
    time_sec: float,
    hop_size: int,
    sample_rate: int,
    frame_size: int
) -> int:
    """
    Index of the frame whose centre is nearest to time_sec.

    Inverse of frame_index_to_time for times past the first frame centre;
    earlier times map to frame 0.
    """
    position = (time_sec * sample_rate + frame_size / 2.0) / hop_size - 1.0
    return max(0, int(np.floor(position + 0.5)))

"""
odf-signals - Source Modules

This package contains the onset detection function engine:
- kernel_params: Metric/window kinds and parameter dataclasses
- windows: Analysis window generation
- framing: Sliding-window frame assembly
- spectral: Windowed, half-swapped forward transform
- kernel: The ten detection functions and phase wrapping
- detector: Per-stream engine (configure / compute_sample)
- timebase: Detection function time axis
- audio_io: Audio loading and hop chunking
- export: JSON and plot generation
- synthetic: Test signals with known onset times
"""

from odf_signals.detector import OnsetDetectionFunction, compute_onset_detection_function
from odf_signals.kernel_params import OnsetMetric, WindowType

__version__ = "1.0.0"

__all__ = [
    "OnsetDetectionFunction",
    "compute_onset_detection_function",
    "OnsetMetric",
    "WindowType",
]

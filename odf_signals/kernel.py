"""
Onset Metric Engine - Detection Function Kernel

Ten onset detection functions over the current frame / spectrum and an
explicit history context, plus the principal-argument phase wrap.

DESIGN CONSTRAINTS:
- No I/O operations (no file reading/writing)
- No plotting or visualization
- No thresholding or peak picking
- Explicit state management (OdfHistory, no hidden globals)
- No config module imports - all parameters are explicit
- Only numpy and scipy dependencies (no librosa)

METRIC FUNCTION SHAPE:
    metric(frame, spectrum, history) -> float

- frame: current frame samples (frame_size,)
- spectrum: complex bins (frame_size,) or None for time-domain metrics
- history: OdfHistory, updated in place before returning

Every rectified variant keeps a strict `> 0` boundary; ties contribute 0.
"""

import math
from typing import Callable, Dict, NamedTuple, Optional

import numpy as np

from odf_signals.kernel_params import MetricKind, OnsetMetric, resolve_metric
from odf_signals.spectral import (
    ForwardTransform,
    compute_spectrum,
    magnitude_spectrum,
    phase_spectrum,
)


# =============================================================================
# DEFAULT PARAMETERS (Explicit - No Config Imports)
# =============================================================================

DEFAULT_PHASE_MAGNITUDE_THRESHOLD: float = 0.1

# Score returned for unrecognized metric kinds
FALLBACK_ODF_VALUE: float = 1.0

TWO_PI: float = 2.0 * math.pi

# Beyond this magnitude the wrap loops are preceded by an fmod reduction
_PRINCARG_LOOP_LIMIT: float = 64.0 * math.pi


# =============================================================================
# STATEFUL CLASS FOR FRAME-TO-FRAME HISTORY
# =============================================================================

class OdfHistory:
    """
    Explicit state container for detection function history.

    CONTRACT:
    - All spectral arrays have length frame_size
    - Zero-filled on construction and reset()
    - Owned by one stream; metrics mutate it in place
    - Not thread-safe: calls must be serialized by the owner
    """

    def __init__(self, frame_size: int) -> None:
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        self.frame_size: int = frame_size
        self.prev_magnitude = np.zeros(frame_size, dtype=np.float64)
        self.prev_phase = np.zeros(frame_size, dtype=np.float64)
        self.prev_phase2 = np.zeros(frame_size, dtype=np.float64)
        self.prev_energy_sum: float = 0.0

    def reset(self) -> None:
        """Reset state to initial values."""
        self.prev_magnitude.fill(0.0)
        self.prev_phase.fill(0.0)
        self.prev_phase2.fill(0.0)
        self.prev_energy_sum = 0.0

    def _push_phase(self, phase: np.ndarray) -> None:
        self.prev_phase2[:] = self.prev_phase
        self.prev_phase[:] = phase


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def princarg(phase: float) -> float:
    """
    Wrap a phase value into (-pi, pi].

    CONTRACT:
    - Adds 2*pi while value <= -pi, then subtracts 2*pi while value > pi
    - Output in (-pi, pi]; identity for inputs already in range
    - Idempotent: princarg(princarg(x)) == princarg(x)

    Parameters:
        phase: Phase value in radians (finite)

    Returns:
        Wrapped phase value

    Raises:
        ValueError: If phase is NaN or infinite
    """
    value = float(phase)
    if not math.isfinite(value):
        raise ValueError(f"Cannot wrap non-finite phase: {phase}")

    if abs(value) > _PRINCARG_LOOP_LIMIT:
        value = math.fmod(value, TWO_PI)

    while value <= -math.pi:
        value = value + TWO_PI

    while value > math.pi:
        value = value - TWO_PI

    return value


def princarg_array(phases: np.ndarray) -> np.ndarray:
    """
    Elementwise princarg over an array.

    Applies the same add/subtract loops to every element, so each result
    matches princarg() on the corresponding scalar.

    Raises:
        ValueError: If any value is NaN or infinite
    """
    values = np.array(phases, dtype=np.float64, copy=True)
    if not np.all(np.isfinite(values)):
        raise ValueError("Cannot wrap non-finite phase values")

    large = np.abs(values) > _PRINCARG_LOOP_LIMIT
    if np.any(large):
        values[large] = np.fmod(values[large], TWO_PI)

    low = values <= -math.pi
    while np.any(low):
        values[low] += TWO_PI
        low = values <= -math.pi

    high = values > math.pi
    while np.any(high):
        values[high] -= TWO_PI
        high = values > math.pi

    return values


def _frequency_weights(n_bins: int) -> np.ndarray:
    # 1-based bin index
    return np.arange(1, n_bins + 1, dtype=np.float64)


def _complex_distance(
    magnitude: np.ndarray,
    prev_magnitude: np.ndarray,
    phase_deviation: np.ndarray
) -> np.ndarray:
    # Law of cosines; rounding can push the radicand just below zero
    radicand = (
        magnitude * magnitude
        + prev_magnitude * prev_magnitude
        - 2.0 * magnitude * prev_magnitude * np.cos(phase_deviation)
    )
    return np.sqrt(np.maximum(radicand, 0.0))


# =============================================================================
# TIME-DOMAIN DETECTION FUNCTIONS
# =============================================================================

def energy_envelope(
    frame: np.ndarray,
    spectrum: Optional[np.ndarray],
    history: OdfHistory
) -> float:
    """
    Sum of squared samples over the frame.

    CONTRACT:
    - Output >= 0, invariant to the sign of the samples
    - History untouched
    """
    return float(np.sum(frame * frame))


def energy_difference(
    frame: np.ndarray,
    spectrum: Optional[np.ndarray],
    history: OdfHistory
) -> float:
    """
    Half-wave rectified first difference of frame energy.

    CONTRACT:
    - Output = energy - prev_energy if positive, else 0.0
    - Updates history.prev_energy_sum
    """
    total = float(np.sum(frame * frame))
    sample = total - history.prev_energy_sum
    history.prev_energy_sum = total

    if sample > 0:
        return sample
    return 0.0


# =============================================================================
# MAGNITUDE-BASED DETECTION FUNCTIONS
# =============================================================================

def spectral_difference(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """
    Sum of absolute magnitude changes across all bins.

    Magnitudes above Nyquist are mirrored from the lower half.
    Updates history.prev_magnitude.
    """
    magnitude = magnitude_spectrum(spectrum, mirror=True)
    total = np.sum(np.abs(magnitude - history.prev_magnitude))
    history.prev_magnitude[:] = magnitude
    return float(total)


def spectral_difference_hwr(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """
    Spectral difference counting only magnitude increases.

    CONTRACT:
    - Output <= spectral_difference for the same input and history
    - Updates history.prev_magnitude
    """
    magnitude = magnitude_spectrum(spectrum, mirror=True)
    diff = magnitude - history.prev_magnitude
    total = np.sum(diff[diff > 0])
    history.prev_magnitude[:] = magnitude
    return float(total)


def high_frequency_content(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """
    Magnitudes weighted linearly by 1-based bin index.

    Updates history.prev_magnitude so a later switch to a difference
    metric starts from this frame.
    """
    magnitude = magnitude_spectrum(spectrum)
    total = np.sum(magnitude * _frequency_weights(len(magnitude)))
    history.prev_magnitude[:] = magnitude
    return float(total)


def high_frequency_spectral_difference(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """Absolute magnitude changes weighted by 1-based bin index."""
    magnitude = magnitude_spectrum(spectrum)
    diff = np.abs(magnitude - history.prev_magnitude)
    total = np.sum(diff * _frequency_weights(len(magnitude)))
    history.prev_magnitude[:] = magnitude
    return float(total)


def high_frequency_spectral_difference_hwr(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """Magnitude increases weighted by 1-based bin index."""
    magnitude = magnitude_spectrum(spectrum)
    diff = magnitude - history.prev_magnitude
    weighted = diff * _frequency_weights(len(magnitude))
    total = np.sum(weighted[diff > 0])
    history.prev_magnitude[:] = magnitude
    return float(total)


# =============================================================================
# PHASE-BASED DETECTION FUNCTIONS
# =============================================================================

def phase_deviation(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory,
    magnitude_threshold: float = DEFAULT_PHASE_MAGNITUDE_THRESHOLD
) -> float:
    """
    Sum of wrapped second-order phase differences.

    CONTRACT:
    - dev[i] = phase[i] - 2*prev_phase[i] + prev_phase2[i]
    - Only bins with magnitude > magnitude_threshold contribute
    - Each contribution is |princarg(dev[i])|, so output >= 0
    - Updates both phase histories for every bin (magnitude history untouched)

    Parameters:
        frame: Current frame (unused)
        spectrum: Complex bins
        history: OdfHistory to read and update
        magnitude_threshold: Near-silent bins at or below this are skipped

    Returns:
        Detection function value
    """
    phase = phase_spectrum(spectrum)
    magnitude = magnitude_spectrum(spectrum)

    active = magnitude > magnitude_threshold
    deviation = phase[active] - 2.0 * history.prev_phase[active] + history.prev_phase2[active]
    total = np.sum(np.abs(princarg_array(deviation)))

    history._push_phase(phase)
    return float(total)


def complex_spectral_difference(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """
    Complex-domain distance between observed and predicted bins.

    CONTRACT:
    - Per bin: sqrt(mag^2 + prev_mag^2 - 2*mag*prev_mag*cos(dev)),
      dev = phase - 2*prev_phase + prev_phase2 (not wrapped)
    - Summed over every bin
    - Updates prev_magnitude and both phase histories
    """
    phase = phase_spectrum(spectrum)
    magnitude = magnitude_spectrum(spectrum)

    deviation = phase - 2.0 * history.prev_phase + history.prev_phase2
    total = np.sum(_complex_distance(magnitude, history.prev_magnitude, deviation))

    history._push_phase(phase)
    history.prev_magnitude[:] = magnitude
    return float(total)


def complex_spectral_difference_hwr(
    frame: np.ndarray,
    spectrum: np.ndarray,
    history: OdfHistory
) -> float:
    """
    Complex spectral difference restricted to bins whose magnitude grew.

    Bins with mag - prev_mag > 0 contribute; all others are ignored.
    Updates prev_magnitude and both phase histories.
    """
    phase = phase_spectrum(spectrum)
    magnitude = magnitude_spectrum(spectrum)

    deviation = phase - 2.0 * history.prev_phase + history.prev_phase2
    rising = (magnitude - history.prev_magnitude) > 0
    distance = _complex_distance(
        magnitude[rising], history.prev_magnitude[rising], deviation[rising]
    )
    total = np.sum(distance)

    history._push_phase(phase)
    history.prev_magnitude[:] = magnitude
    return float(total)


# =============================================================================
# DISPATCH
# =============================================================================

MetricFn = Callable[[np.ndarray, Optional[np.ndarray], OdfHistory], float]


class MetricFunction(NamedTuple):
    """Dispatch table entry: the metric and whether it needs a spectrum."""
    func: MetricFn
    needs_spectrum: bool


METRIC_FUNCTIONS: Dict[OnsetMetric, MetricFunction] = {
    OnsetMetric.ENERGY_ENVELOPE: MetricFunction(energy_envelope, False),
    OnsetMetric.ENERGY_DIFFERENCE: MetricFunction(energy_difference, False),
    OnsetMetric.SPECTRAL_DIFFERENCE: MetricFunction(spectral_difference, True),
    OnsetMetric.SPECTRAL_DIFFERENCE_HWR: MetricFunction(spectral_difference_hwr, True),
    OnsetMetric.PHASE_DEVIATION: MetricFunction(phase_deviation, True),
    OnsetMetric.COMPLEX_SPECTRAL_DIFFERENCE: MetricFunction(complex_spectral_difference, True),
    OnsetMetric.COMPLEX_SPECTRAL_DIFFERENCE_HWR: MetricFunction(complex_spectral_difference_hwr, True),
    OnsetMetric.HIGH_FREQUENCY_CONTENT: MetricFunction(high_frequency_content, True),
    OnsetMetric.HIGH_FREQUENCY_SPECTRAL_DIFFERENCE: MetricFunction(high_frequency_spectral_difference, True),
    OnsetMetric.HIGH_FREQUENCY_SPECTRAL_DIFFERENCE_HWR: MetricFunction(high_frequency_spectral_difference_hwr, True),
}


def needs_spectrum(metric: MetricKind) -> bool:
    """True if the metric consumes a spectrum (unknown kinds do not)."""
    resolved = resolve_metric(metric)
    if resolved is None:
        return False
    return METRIC_FUNCTIONS[resolved].needs_spectrum


def compute_odf_sample(
    metric: MetricKind,
    frame: np.ndarray,
    window: np.ndarray,
    transform: ForwardTransform,
    history: OdfHistory,
    phase_magnitude_threshold: float = DEFAULT_PHASE_MAGNITUDE_THRESHOLD
) -> float:
    """
    Compute one detection function value for the current frame.

    CONTRACT:
    - Time-domain metrics never call the transform
    - Spectral metrics transform the windowed, half-swapped frame once
    - Unrecognized metrics return FALLBACK_ODF_VALUE and leave history alone
    - history is updated in place by the selected metric

    Parameters:
        metric: OnsetMetric member, integer value or name
        frame: Current frame (frame_size,)
        window: Window weights (frame_size,)
        transform: Forward DFT of size frame_size
        history: History context for this stream
        phase_magnitude_threshold: Magnitude floor for phase deviation

    Returns:
        Detection function value
    """
    resolved = resolve_metric(metric)
    if resolved is None:
        return FALLBACK_ODF_VALUE

    entry = METRIC_FUNCTIONS[resolved]
    spectrum = compute_spectrum(frame, window, transform) if entry.needs_spectrum else None

    if resolved == OnsetMetric.PHASE_DEVIATION:
        return phase_deviation(frame, spectrum, history, phase_magnitude_threshold)

    return entry.func(frame, spectrum, history)

"""
Kernel Parameters Module - Detection Function Kinds and Tunable Constants

These parameters control how the onset detection function engine frames,
windows and scores audio. Engine modules take them as explicit arguments;
nothing here reads the root config module.

USAGE:
    from odf_signals.kernel_params import KernelConfig, DEFAULT_CONFIG

    # Use default config
    config = DEFAULT_CONFIG

    # Create custom config
    custom = KernelConfig(
        frame=FrameParams(frame_size=2048, hop_size=512),
        odf=OdfParams(metric=OnsetMetric.SPECTRAL_DIFFERENCE)
    )
"""

from dataclasses import dataclass, field
from enum import IntEnum
from numbers import Integral
from typing import Dict, Optional, Union


class OnsetMetric(IntEnum):
    """
    Onset detection function variants.

    Integer values are stable and may be stored in configuration files.
    Values outside this set are accepted by the engine and score a
    constant 1.0.
    """
    ENERGY_ENVELOPE = 0
    ENERGY_DIFFERENCE = 1
    SPECTRAL_DIFFERENCE = 2
    SPECTRAL_DIFFERENCE_HWR = 3
    PHASE_DEVIATION = 4
    COMPLEX_SPECTRAL_DIFFERENCE = 5
    COMPLEX_SPECTRAL_DIFFERENCE_HWR = 6
    HIGH_FREQUENCY_CONTENT = 7
    HIGH_FREQUENCY_SPECTRAL_DIFFERENCE = 8
    HIGH_FREQUENCY_SPECTRAL_DIFFERENCE_HWR = 9


class WindowType(IntEnum):
    """Analysis window shapes. Unknown values fall back to HANNING."""
    RECTANGULAR = 0
    HANNING = 1
    HAMMING = 2
    BLACKMAN = 3
    TUKEY = 4


MetricKind = Union[OnsetMetric, int, str]
WindowKind = Union[WindowType, int, str]


def _resolve_kind(kind, enum_cls):
    if isinstance(kind, enum_cls):
        return kind
    if isinstance(kind, str):
        try:
            return enum_cls[kind.strip().upper()]
        except KeyError:
            return None
    if isinstance(kind, bool):
        return None
    if isinstance(kind, Integral):
        try:
            return enum_cls(int(kind))
        except ValueError:
            return None
    return None


def resolve_metric(kind: MetricKind) -> Optional[OnsetMetric]:
    """
    Map a metric member, integer value or name onto OnsetMetric.

    Returns:
        The matching OnsetMetric, or None if the kind is not recognized
    """
    return _resolve_kind(kind, OnsetMetric)


def resolve_window(kind: WindowKind) -> Optional[WindowType]:
    """
    Map a window member, integer value or name onto WindowType.

    Returns:
        The matching WindowType, or None if the kind is not recognized
    """
    return _resolve_kind(kind, WindowType)


@dataclass(frozen=True)
class FrameParams:
    """
    Framing parameters.

    Attributes:
        frame_size: Samples per analysis frame (default 1024 = ~23ms at 44100 Hz)
        hop_size: New samples per call (default 512 = 2x overlap)
        sample_rate: Sample rate in Hz, only used for time axes (default 44100)
    """
    frame_size: int = 1024
    hop_size: int = 512
    sample_rate: int = 44100

    @property
    def overlap(self) -> int:
        """Samples shared by consecutive frames."""
        return self.frame_size - self.hop_size


@dataclass(frozen=True)
class OdfParams:
    """
    Detection function parameters.

    Attributes:
        metric: Detection function variant (default COMPLEX_SPECTRAL_DIFFERENCE_HWR)
        window: Analysis window (default HANNING)
        phase_magnitude_threshold: Bins at or below this magnitude are ignored
            by phase deviation (default 0.1)
        tukey_alpha: Taper ratio of the Tukey window (default 0.5)
    """
    metric: MetricKind = OnsetMetric.COMPLEX_SPECTRAL_DIFFERENCE_HWR
    window: WindowKind = WindowType.HANNING
    phase_magnitude_threshold: float = 0.1
    tukey_alpha: float = 0.5


@dataclass
class KernelConfig:
    """
    Complete kernel configuration aggregating all parameter groups.

    Example usage:
        config = KernelConfig()  # All defaults
        config = KernelConfig(odf=OdfParams(window=WindowType.HAMMING))
    """
    frame: FrameParams = field(default_factory=FrameParams)
    odf: OdfParams = field(default_factory=OdfParams)

    def to_dict(self) -> Dict:
        """
        Export all parameters as a flat dictionary for JSON serialization.

        Unrecognized kinds are exported as given.

        Returns:
            Dictionary with all parameter values
        """
        metric = resolve_metric(self.odf.metric)
        window = resolve_window(self.odf.window)
        return {
            # Frame params
            'frame_size': self.frame.frame_size,
            'hop_size': self.frame.hop_size,
            'sample_rate': self.frame.sample_rate,

            # Detection function params
            'metric': metric.name.lower() if metric is not None else self.odf.metric,
            'window': window.name.lower() if window is not None else self.odf.window,
            'phase_magnitude_threshold': self.odf.phase_magnitude_threshold,
            'tukey_alpha': self.odf.tukey_alpha,
        }


# Default configuration instance
DEFAULT_CONFIG = KernelConfig()


def validate_frame_sizes(hop_size: int, frame_size: int) -> None:
    """
    Check the hop/frame relationship.

    Raises:
        ValueError: If either size is non-positive or hop_size > frame_size
    """
    if isinstance(frame_size, bool) or not isinstance(frame_size, Integral):
        raise ValueError(f"frame_size must be an integer, got {frame_size!r}")
    if isinstance(hop_size, bool) or not isinstance(hop_size, Integral):
        raise ValueError(f"hop_size must be an integer, got {hop_size!r}")
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")
    if hop_size <= 0:
        raise ValueError(f"hop_size must be positive, got {hop_size}")
    if hop_size > frame_size:
        raise ValueError(
            f"hop_size ({hop_size}) must not exceed frame_size ({frame_size}), "
            f"samples would be skipped"
        )


def validate_config(config: KernelConfig) -> bool:
    """
    Validate configuration parameters for consistency.

    Unknown metric or window kinds are not errors; they resolve to the
    documented fallbacks when the engine is configured.

    Parameters:
        config: KernelConfig instance to validate

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    validate_frame_sizes(config.frame.hop_size, config.frame.frame_size)

    if config.frame.sample_rate <= 0:
        raise ValueError("sample_rate must be positive")
    if config.odf.phase_magnitude_threshold < 0:
        raise ValueError("phase_magnitude_threshold must be non-negative")
    if not (0.0 < config.odf.tukey_alpha <= 1.0):
        raise ValueError("tukey_alpha must be in (0, 1]")

    return True


# Validate default config on import
validate_config(DEFAULT_CONFIG)

"""
odf-signals - Configuration

All tunable parameters and constants with documentation.
Every default value includes rationale.
"""

from typing import Tuple

# =============================================================================
# FRAME-LEVEL PARAMETERS
# =============================================================================

# Frame size for spectral analysis (samples)
# Why: 1024 samples at 44100 Hz ≈ 23ms, short enough to localize attacks
#      while resolving bass content down to ~43 Hz
FRAME_SIZE: int = 1024

# Hop size between frames (samples)
# Why: 512 samples = 2x overlap ≈ 11.6ms per detection function sample,
#      standard resolution for beat tracking front-ends
HOP_SIZE: int = 512

# Target sample rate for processing (Hz)
# Why: 44100 Hz keeps the full bandwidth that high frequency content
#      metrics rely on
TARGET_SAMPLE_RATE: int = 44100

# =============================================================================
# DETECTION FUNCTION PARAMETERS
# =============================================================================

# Default detection function (OnsetMetric name)
# Why: Half-wave rectified complex spectral difference reacts to both
#      energy and phase changes, and ignores decays
ODF_METRIC: str = 'complex_spectral_difference_hwr'

# Default analysis window (WindowType name)
# Why: Hanning has low sidelobes and zero endpoints, so the half swap before
#      the transform introduces no discontinuity
ODF_WINDOW: str = 'hanning'

# Magnitude floor for phase deviation
# Why: Phase in near-silent bins is numerical noise; 0.1 suppresses it
#      for peak-normalized input
PHASE_MAGNITUDE_THRESHOLD: float = 0.1

# Tukey window taper ratio
# Why: 0.5 = half the frame flat, half tapered, a balance between
#      rectangular and Hanning
TUKEY_ALPHA: float = 0.5

# =============================================================================
# AUDIO PREPROCESSING PARAMETERS
# =============================================================================

# Normalization method: 'peak', 'loudness' or 'none'
# Why: 'peak' is deterministic and keeps the phase magnitude floor meaningful
NORMALIZATION_METHOD: str = 'peak'

# Maximum track duration to process (seconds)
# Why: 600 seconds (10 minutes) covers most tracks, prevents memory issues
MAX_TRACK_DURATION_SEC: float = 600.0

# File extensions picked up when the CLI is given a directory
# Why: formats librosa decodes out of the box
AUDIO_EXTENSIONS: Tuple[str, ...] = ('.wav', '.flac', '.mp3', '.ogg', '.aiff', '.aif')

# =============================================================================
# OUTPUT PARAMETERS
# =============================================================================

# JSON schema version
# Why: Versioning allows future format changes while maintaining compatibility
SCHEMA_VERSION: str = "1.0.0"

# Plot resolution (dots per inch)
# Why: 150 DPI is good balance of quality and file size for screen viewing
PLOT_DPI: int = 150

# Plot figure size (width, height in inches)
# Why: wide aspect for a timeline view of the detection function
PLOT_FIGSIZE: tuple = (14, 6)

# =============================================================================
# VALIDATION
# =============================================================================

def validate_config() -> bool:
    """
    Validate configuration parameters for consistency.

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    if FRAME_SIZE <= 0 or HOP_SIZE <= 0:
        raise ValueError("FRAME_SIZE and HOP_SIZE must be positive")

    if HOP_SIZE > FRAME_SIZE:
        raise ValueError("HOP_SIZE must not exceed FRAME_SIZE")

    if TARGET_SAMPLE_RATE <= 0:
        raise ValueError("TARGET_SAMPLE_RATE must be positive")

    if PHASE_MAGNITUDE_THRESHOLD < 0:
        raise ValueError("PHASE_MAGNITUDE_THRESHOLD must be non-negative")

    if not (0.0 < TUKEY_ALPHA <= 1.0):
        raise ValueError("TUKEY_ALPHA must be in (0, 1]")

    if NORMALIZATION_METHOD not in ('peak', 'loudness', 'none'):
        raise ValueError(f"Unknown NORMALIZATION_METHOD: {NORMALIZATION_METHOD}")

    return True


# Validate on import
validate_config()

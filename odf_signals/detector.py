"""
Onset Detection Function Engine

Stateful per-stream entry point tying together the frame assembler, the
window, the spectral transform and the metric kernel.

States:
- uninitialized: no buffers; compute_sample() raises RuntimeError
- ready: buffers allocated and zeroed by configure()

One instance serves one mono stream. Calls must be sequential; separate
instances share no state and may run on separate threads.
"""

import warnings
from typing import Callable, Optional

import numpy as np

from odf_signals.framing import FrameBuffer
from odf_signals.kernel import (
    DEFAULT_PHASE_MAGNITUDE_THRESHOLD,
    OdfHistory,
    compute_odf_sample,
)
from odf_signals.kernel_params import (
    MetricKind,
    OdfParams,
    OnsetMetric,
    WindowKind,
    WindowType,
    resolve_metric,
    resolve_window,
    validate_frame_sizes,
)
from odf_signals.spectral import ScipyFFT
from odf_signals.windows import DEFAULT_TUKEY_ALPHA, compute_window


TransformFactory = Callable[[int], Callable[[np.ndarray], np.ndarray]]


class OnsetDetectionFunction:
    """
    Per-frame onset detection function for one mono sample stream.

    Example:
        odf = OnsetDetectionFunction(512, 1024, OnsetMetric.SPECTRAL_DIFFERENCE)
        for chunk in chunks:          # each chunk has 512 samples
            value = odf.compute_sample(chunk)

    Parameters:
        hop_size: New samples per call (configures immediately with frame_size)
        frame_size: Samples per analysis frame
        metric: Detection function (member, integer value or name)
        window: Analysis window (member, integer value or name)
        transform_factory: Builds a forward DFT for a frame size; the result
            may expose close(), which is called when it is replaced
        phase_magnitude_threshold: Magnitude floor for phase deviation
        tukey_alpha: Taper ratio of the Tukey window
    """

    def __init__(
        self,
        hop_size: Optional[int] = None,
        frame_size: Optional[int] = None,
        metric: MetricKind = OnsetMetric.COMPLEX_SPECTRAL_DIFFERENCE_HWR,
        window: WindowKind = WindowType.HANNING,
        transform_factory: TransformFactory = ScipyFFT,
        phase_magnitude_threshold: float = DEFAULT_PHASE_MAGNITUDE_THRESHOLD,
        tukey_alpha: float = DEFAULT_TUKEY_ALPHA,
    ) -> None:
        self._metric: MetricKind = metric
        self._window_type: WindowKind = window
        self._transform_factory = transform_factory
        self.phase_magnitude_threshold = phase_magnitude_threshold
        self.tukey_alpha = tukey_alpha

        self._frames: Optional[FrameBuffer] = None
        self._window: Optional[np.ndarray] = None
        self._history: Optional[OdfHistory] = None
        self._transform = None

        if hop_size is not None or frame_size is not None:
            self.configure(hop_size, frame_size, metric, window)

    @classmethod
    def from_params(
        cls,
        hop_size: int,
        frame_size: int,
        params: OdfParams,
        transform_factory: TransformFactory = ScipyFFT,
    ) -> 'OnsetDetectionFunction':
        """Build a configured engine from OdfParams."""
        return cls(
            hop_size,
            frame_size,
            metric=params.metric,
            window=params.window,
            transform_factory=transform_factory,
            phase_magnitude_threshold=params.phase_magnitude_threshold,
            tukey_alpha=params.tukey_alpha,
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def configure(
        self,
        hop_size: int,
        frame_size: int,
        metric: Optional[MetricKind] = None,
        window: Optional[WindowKind] = None,
    ) -> None:
        """
        (Re)initialize all buffers and reset every history value to zero.

        metric/window of None keep the currently selected kinds.

        Raises:
            ValueError: If either size is non-positive or hop_size > frame_size;
                the engine is left uninitialized (as it is for any exception
                raised by the transform factory)
        """
        self._release()

        validate_frame_sizes(hop_size, frame_size)

        if metric is not None:
            self._metric = metric
        if window is not None:
            self._window_type = window

        if resolve_metric(self._metric) is None:
            warnings.warn(
                f"Unknown onset metric {self._metric!r}, "
                f"detection function will be constant 1.0"
            )

        # Nothing is assigned until every piece is built, so a failure
        # anywhere leaves the engine uninitialized
        analysis_window = compute_window(self._window_type, frame_size, self.tukey_alpha)
        analysis_window.flags.writeable = False
        frames = FrameBuffer(hop_size, frame_size)
        history = OdfHistory(frame_size)
        transform = self._transform_factory(frame_size)

        self._window = analysis_window
        self._frames = frames
        self._history = history
        self._transform = transform

    def set_metric(self, metric: MetricKind) -> None:
        """
        Select the metric for future calls.

        History is kept, so the first value after a switch compares against
        whatever the previous metric last stored.
        """
        if resolve_metric(metric) is None:
            warnings.warn(
                f"Unknown onset metric {metric!r}, "
                f"detection function will be constant 1.0"
            )
        self._metric = metric

    def reset(self) -> None:
        """Zero the frame and all history, keeping the configuration."""
        self._require_ready()
        self._frames.reset()
        self._history.reset()

    def close(self) -> None:
        """Release buffers and the transform; the engine becomes uninitialized."""
        self._release()

    def _release(self) -> None:
        transform = self._transform
        self._frames = None
        self._window = None
        self._history = None
        self._transform = None
        close = getattr(transform, 'close', None)
        if close is not None:
            close()

    def _require_ready(self) -> None:
        if not self.is_ready:
            raise RuntimeError(
                "OnsetDetectionFunction is not configured, call configure() first"
            )

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def compute_sample(self, buffer) -> float:
        """
        Advance the frame by one hop and return its onset strength.

        Parameters:
            buffer: Exactly hop_size real samples

        Returns:
            Detection function value for the new frame

        Raises:
            RuntimeError: If the engine is not configured
            ValueError: If buffer does not hold exactly hop_size finite samples
        """
        self._require_ready()
        frame = self._frames.push(buffer)
        return compute_odf_sample(
            self._metric,
            frame,
            self._window,
            self._transform,
            self._history,
            self.phase_magnitude_threshold,
        )

    def process(self, audio: np.ndarray) -> np.ndarray:
        """
        Run the detection function over a whole signal.

        The signal is cut into hop_size chunks, the last one zero-padded.
        History carries over from earlier calls; call reset() first to start
        from silence.

        Parameters:
            audio: 1D sample array

        Returns:
            (ceil(len(audio) / hop_size),) float64 detection function values

        Raises:
            ValueError: If audio is not 1D, empty, or contains NaN/inf values
        """
        self._require_ready()
        samples = np.asarray(audio, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Expected 1D audio, got shape {samples.shape}")
        if samples.size == 0:
            raise ValueError("Audio array is empty")
        if not np.isfinite(samples).all():
            raise ValueError("Audio contains NaN or infinite values")

        hop = self.hop_size
        n_frames = -(-len(samples) // hop)
        padded = np.zeros(n_frames * hop, dtype=np.float64)
        padded[:len(samples)] = samples

        odf = np.zeros(n_frames, dtype=np.float64)
        for i in range(n_frames):
            odf[i] = self.compute_sample(padded[i * hop:(i + 1) * hop])

        return odf

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._frames is not None

    @property
    def hop_size(self) -> int:
        self._require_ready()
        return self._frames.hop_size

    @property
    def frame_size(self) -> int:
        self._require_ready()
        return self._frames.frame_size

    @property
    def metric(self) -> MetricKind:
        """Selected metric; an OnsetMetric when recognized, else as given."""
        resolved = resolve_metric(self._metric)
        return resolved if resolved is not None else self._metric

    @property
    def window_type(self) -> WindowType:
        """Window in use; unrecognized kinds report HANNING."""
        resolved = resolve_window(self._window_type)
        return resolved if resolved is not None else WindowType.HANNING

    @property
    def window(self) -> np.ndarray:
        self._require_ready()
        return self._window

    @property
    def frame(self) -> np.ndarray:
        self._require_ready()
        return self._frames.frame

    @property
    def history(self) -> OdfHistory:
        self._require_ready()
        return self._history


def compute_onset_detection_function(
    audio: np.ndarray,
    hop_size: int,
    frame_size: int,
    metric: MetricKind = OnsetMetric.COMPLEX_SPECTRAL_DIFFERENCE_HWR,
    window: WindowKind = WindowType.HANNING,
) -> np.ndarray:
    """
    Detection function of a whole signal with a fresh engine.

    CONTRACT:
    - Output: (ceil(len(audio) / hop_size),) float64, one value per hop
    - Deterministic: same input -> same output

    Parameters:
        audio: 1D sample array
        hop_size: Hop size in samples
        frame_size: Frame size in samples
        metric: Detection function
        window: Analysis window

    Returns:
        Detection function values
    """
    odf = OnsetDetectionFunction(hop_size, frame_size, metric, window)
    try:
        return odf.process(audio)
    finally:
        odf.close()

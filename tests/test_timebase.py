"""
Timebase Module Tests

Tests for detection function frame counts and time axes.
"""

import pytest
import numpy as np

from odf_signals import timebase
from odf_signals.detector import compute_onset_detection_function


class TestFrameCount:
    """Tests for compute_frame_count."""

    def test_exact_multiple(self):
        """Signals that are a whole number of hops."""
        assert timebase.compute_frame_count(2048, 512) == 4

    def test_partial_hop_rounds_up(self):
        """A trailing partial hop still yields a frame."""
        assert timebase.compute_frame_count(2049, 512) == 5

    @pytest.mark.parametrize("n_samples,hop_size", [(0, 512), (-5, 512), (100, 0)])
    def test_degenerate_inputs(self, n_samples, hop_size):
        """Empty signals and invalid hops give zero frames."""
        assert timebase.compute_frame_count(n_samples, hop_size) == 0

    def test_matches_detector_output(self):
        """Frame count equals the number of values the engine produces."""
        audio = np.zeros(3000)
        values = compute_onset_detection_function(audio, 256, 1024)
        assert len(values) == timebase.compute_frame_count(len(audio), 256)


class TestFrameTimes:
    """Tests for frame_index_to_time and compute_odf_time_axis."""

    def test_frame_centre(self):
        """Frame k is centred (k+1)*hop - frame/2 samples into the stream."""
        t = timebase.frame_index_to_time(3, 512, 44100, 1024)
        assert t == pytest.approx((4 * 512 - 512) / 44100)

    def test_early_frames_clamped(self):
        """Frames centred before the stream start report time 0."""
        assert timebase.frame_index_to_time(0, 128, 44100, 1024) == 0.0

    def test_axis_matches_scalar(self):
        """Vectorized axis agrees with per-frame times."""
        axis = timebase.compute_odf_time_axis(10, 256, 22050, 1024)
        expected = [timebase.frame_index_to_time(k, 256, 22050, 1024) for k in range(10)]
        np.testing.assert_allclose(axis, expected)

    def test_axis_non_decreasing_and_non_negative(self):
        """Time axis is monotonic and starts at or after 0."""
        axis = timebase.compute_odf_time_axis(100, 512, 44100, 2048)
        assert np.all(axis >= 0.0)
        assert np.all(np.diff(axis) >= 0.0)

    def test_axis_clamped_to_duration(self):
        """With duration_sec, no time exceeds the track end."""
        duration = 1.0
        n_frames = timebase.compute_frame_count(44100, 512)
        axis = timebase.compute_odf_time_axis(n_frames, 512, 44100, 1024, duration_sec=duration)
        assert axis.max() <= duration + timebase.EPSILON_SEC

    def test_empty_axis(self):
        """Zero frames give an empty axis."""
        axis = timebase.compute_odf_time_axis(0, 512, 44100, 1024)
        assert axis.shape == (0,)


class TestTimeToFrameIndex:
    """Tests for time_to_frame_index."""

    @pytest.mark.parametrize("idx", [1, 2, 10, 250])
    def test_inverse_of_frame_time(self, idx):
        """Round trip through frame centre time."""
        t = timebase.frame_index_to_time(idx, 512, 44100, 1024)
        assert timebase.time_to_frame_index(t, 512, 44100, 1024) == idx

    def test_negative_time(self):
        """Times before the first centre map to frame 0."""
        assert timebase.time_to_frame_index(-1.0, 512, 44100, 1024) == 0

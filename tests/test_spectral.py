"""
Spectral Transform Stage Tests

Tests for the half-swap, the scipy-backed transform and the
magnitude/phase helpers.
"""

import pytest
import numpy as np

from odf_signals import spectral


class TestPrepareTransformInput:
    """Tests for windowing and half-swapping."""

    def test_even_halves_exchanged(self):
        """Even frame sizes swap the two halves exactly."""
        frame = np.arange(8, dtype=np.float64)
        out = spectral.prepare_transform_input(frame, np.ones(8))
        np.testing.assert_array_equal(out.real, [4, 5, 6, 7, 0, 1, 2, 3])
        np.testing.assert_array_equal(out.imag, np.zeros(8))
        assert out.dtype == np.complex128

    def test_window_applied_before_swap(self):
        """Samples are weighted by the window before the halves are swapped."""
        frame = np.ones(4)
        window = np.array([0.1, 0.2, 0.3, 0.4])
        out = spectral.prepare_transform_input(frame, window)
        np.testing.assert_allclose(out.real, [0.3, 0.4, 0.1, 0.2])

    def test_odd_size_rotation(self):
        """Odd frame sizes rotate so the centre sample lands at index 0."""
        frame = np.arange(5, dtype=np.float64)
        out = spectral.prepare_transform_input(frame, np.ones(5))
        np.testing.assert_array_equal(out.real, [2, 3, 4, 0, 1])


class TestScipyFFT:
    """Tests for the default forward transform."""

    def test_matches_numpy_fft(self):
        """Standard unnormalized DFT."""
        rng = np.random.default_rng(0)
        x = rng.standard_normal(16).astype(np.complex128)
        fft = spectral.ScipyFFT(16)
        np.testing.assert_allclose(fft(x), np.fft.fft(x), atol=1e-10)

    def test_wrong_size(self):
        """Input length must match the planned size."""
        fft = spectral.ScipyFFT(16)
        with pytest.raises(ValueError):
            fft(np.zeros(8, dtype=np.complex128))

    def test_closed_transform_raises(self):
        """A closed transform cannot be used."""
        fft = spectral.ScipyFFT(4)
        fft.close()
        assert fft.closed
        with pytest.raises(RuntimeError):
            fft(np.zeros(4, dtype=np.complex128))

    def test_non_positive_size(self):
        """Frame size must be positive."""
        with pytest.raises(ValueError):
            spectral.ScipyFFT(0)


class TestComputeSpectrum:
    """Tests for compute_spectrum with injected transforms."""

    def test_injected_transform_receives_swapped_input(self):
        """The transform is called once with the prepared buffer."""
        calls = []

        def identity(samples):
            calls.append(samples.copy())
            return samples

        frame = np.arange(4, dtype=np.float64)
        out = spectral.compute_spectrum(frame, np.ones(4), identity)
        assert len(calls) == 1
        np.testing.assert_array_equal(out.real, [2, 3, 0, 1])

    def test_wrong_output_shape(self):
        """A transform returning the wrong number of bins is rejected."""
        with pytest.raises(ValueError):
            spectral.compute_spectrum(np.zeros(4), np.ones(4), lambda s: s[:2])

    def test_impulse_at_centre_is_flat(self):
        """An impulse at the frame centre has unit magnitude and zero phase."""
        frame = np.zeros(8)
        frame[4] = 1.0
        spectrum = spectral.compute_spectrum(frame, np.ones(8), spectral.ScipyFFT(8))
        np.testing.assert_allclose(spectral.magnitude_spectrum(spectrum), np.ones(8), atol=1e-12)
        np.testing.assert_allclose(spectral.phase_spectrum(spectrum), np.zeros(8), atol=1e-12)


class TestMagnitudeSpectrum:
    """Tests for magnitude_spectrum."""

    def test_plain_magnitude(self):
        """sqrt(re^2 + im^2) per bin."""
        spectrum = np.array([3 + 4j, 0j, -1j, 1 + 0j])
        np.testing.assert_allclose(spectral.magnitude_spectrum(spectrum), [5, 0, 1, 1])

    def test_mirror_even(self):
        """Upper bins copy mag[N - i] for even sizes."""
        spectrum = np.array([1, 2, 3, 4, 5, 99, 99, 99], dtype=np.complex128)
        mag = spectral.magnitude_spectrum(spectrum, mirror=True)
        np.testing.assert_array_equal(mag, [1, 2, 3, 4, 5, 4, 3, 2])

    def test_mirror_odd(self):
        """Upper bins copy mag[N - i] for odd sizes."""
        spectrum = np.array([1, 2, 3, 99, 99], dtype=np.complex128)
        mag = spectral.magnitude_spectrum(spectrum, mirror=True)
        np.testing.assert_array_equal(mag, [1, 2, 3, 3, 2])

    def test_mirror_matches_plain_for_real_input(self):
        """Mirroring is exact for spectra of real frames."""
        rng = np.random.default_rng(1)
        spectrum = np.fft.fft(rng.standard_normal(32))
        np.testing.assert_allclose(
            spectral.magnitude_spectrum(spectrum, mirror=True),
            spectral.magnitude_spectrum(spectrum),
            atol=1e-10
        )


class TestPhaseSpectrum:
    """Tests for phase_spectrum."""

    def test_quadrants(self):
        """atan2(im, re) per bin."""
        spectrum = np.array([1 + 0j, 1j, -1 + 0j, -1j])
        np.testing.assert_allclose(
            spectral.phase_spectrum(spectrum),
            [0.0, np.pi / 2, np.pi, -np.pi / 2]
        )

"""
Audio I/O and Export Tests

Tests for preprocessing helpers, hop chunking and the JSON/plot outputs.
"""

import json

import pytest
import numpy as np
from scipy.io import wavfile

import config
from odf_signals import audio_io, export
from odf_signals.kernel_params import KernelConfig
from odf_signals.synthetic import generate_click_track
from odf_signals.timebase import compute_odf_time_axis


# =============================================================================
# AUDIO I/O
# =============================================================================

class TestNormalizeAudio:
    """Tests for normalize_audio."""

    def test_peak(self):
        """Peak normalization scales the largest sample to 1.0."""
        audio = np.array([0.25, -0.5, 0.1])
        out, factor = audio_io.normalize_audio(audio, 'peak')
        assert np.abs(out).max() == pytest.approx(1.0)
        assert factor == pytest.approx(2.0)

    def test_loudness(self):
        """Loudness normalization reaches the target RMS."""
        audio = np.random.default_rng(0).standard_normal(1000)
        out, _ = audio_io.normalize_audio(audio, 'loudness', rms_target_db=-20.0)
        rms_db = 20 * np.log10(np.sqrt(np.mean(out ** 2)))
        assert rms_db == pytest.approx(-20.0)

    def test_silence_untouched(self):
        """Silent audio keeps factor 1.0."""
        out, factor = audio_io.normalize_audio(np.zeros(10), 'peak')
        assert factor == 1.0
        assert not out.any()

    def test_unknown_method(self):
        """Unknown methods are rejected."""
        with pytest.raises(ValueError):
            audio_io.normalize_audio(np.ones(4), 'rms')


class TestConvertToMono:
    """Tests for convert_to_mono."""

    def test_average(self):
        """Channels are averaged sample by sample."""
        stereo = np.array([[1.0, 2.0, 0.0], [3.0, 4.0, 0.0]])
        np.testing.assert_allclose(audio_io.convert_to_mono(stereo), [2.0, 3.0, 0.0])

    def test_left_and_right(self):
        """'left' and 'right' select the first and last channel."""
        stereo = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        np.testing.assert_array_equal(audio_io.convert_to_mono(stereo, 'left'), [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(audio_io.convert_to_mono(stereo, 'right'), [4.0, 5.0, 6.0])

    def test_mono_passthrough(self):
        """1D input is returned unchanged."""
        mono = np.array([0.5, -0.5])
        assert audio_io.convert_to_mono(mono) is mono

    def test_stereo_file_folded(self, tmp_path):
        """A stereo WAV loads as the average of its channels."""
        sr = 8000
        left = np.full(800, 0.2, dtype=np.float32)
        right = np.full(800, 0.6, dtype=np.float32)
        path = tmp_path / "stereo.wav"
        wavfile.write(path, sr, np.stack([left, right], axis=1))

        audio, loaded_sr = audio_io.load_audio(str(path))
        assert loaded_sr == sr
        assert audio.shape == (800,)
        np.testing.assert_allclose(audio, 0.4, atol=1e-6)

        right_only, _ = audio_io.load_audio(str(path), mono_method='right')
        np.testing.assert_allclose(right_only, 0.6, atol=1e-6)

    def test_invalid_method(self):
        """Unknown conversion methods are rejected."""
        with pytest.raises(ValueError):
            audio_io.convert_to_mono(np.zeros(4), 'center')


class TestValidateAudio:
    """Tests for validate_audio."""

    def test_valid(self):
        """Finite mono audio passes."""
        audio_io.validate_audio(np.zeros(100), 44100)

    @pytest.mark.parametrize("audio,sr", [
        (np.zeros(100), 0),
        (np.zeros((2, 100)), 44100),
        (np.zeros(0), 44100),
        (np.array([0.0, np.inf]), 44100),
    ])
    def test_invalid(self, audio, sr):
        """Bad sample rate, shape, emptiness or values are rejected."""
        with pytest.raises(ValueError):
            audio_io.validate_audio(audio, sr)

    def test_max_duration(self):
        """Audio longer than max_duration is rejected."""
        with pytest.raises(ValueError):
            audio_io.validate_audio(np.zeros(44100 * 2), 44100, max_duration=1.0)


class TestIterHops:
    """Tests for iter_hops."""

    def test_chunks_and_padding(self):
        """Chunks have hop_size samples; the last one is zero-padded."""
        chunks = list(audio_io.iter_hops(np.arange(10, dtype=np.float64), 4))
        assert len(chunks) == 3
        np.testing.assert_array_equal(chunks[0], [0, 1, 2, 3])
        np.testing.assert_array_equal(chunks[2], [8, 9, 0, 0])

    def test_invalid_hop(self):
        """hop_size must be positive."""
        with pytest.raises(ValueError):
            list(audio_io.iter_hops(np.zeros(4), 0))


class TestPreprocessAudio:
    """Tests for loading a file from disk."""

    def test_wav_roundtrip_metadata(self, tmp_path):
        """A written WAV loads as normalized mono audio with metadata."""
        sr = 22050
        audio, _ = generate_click_track(duration=1.0, sr=sr)
        path = tmp_path / "clicks.wav"
        wavfile.write(path, sr, (0.5 * audio).astype(np.float32))

        data = audio_io.preprocess_audio(str(path), normalize_method='peak')

        assert data['sample_rate'] == sr
        assert data['duration'] == pytest.approx(1.0)
        assert data['audio'].ndim == 1
        assert np.abs(data['audio']).max() == pytest.approx(1.0, abs=1e-5)
        assert data['preprocessing']['normalization_method'] == 'peak'
        assert data['preprocessing']['target_sr'] is None

    def test_max_duration_enforced(self, tmp_path):
        """Files over the duration limit are rejected."""
        path = tmp_path / "long.wav"
        wavfile.write(path, 8000, np.full(16000, 0.1, dtype=np.float32))
        with pytest.raises(ValueError):
            audio_io.preprocess_audio(str(path), max_duration=1.0)


# =============================================================================
# EXPORT
# =============================================================================

def make_odf_json(n_frames=5):
    """Build a small result dict through create_odf_json."""
    params = KernelConfig().to_dict()
    values = np.linspace(0.0, 1.0, n_frames)
    times = compute_odf_time_axis(n_frames, params['hop_size'], params['sample_rate'], params['frame_size'])
    metadata = {
        'duration': n_frames * params['hop_size'] / params['sample_rate'],
        'sample_rate': params['sample_rate'],
        'preprocessing': {'normalization_method': 'none'},
    }
    return export.create_odf_json(metadata, params, values, times)


class TestCreateOdfJson:
    """Tests for create_odf_json."""

    def test_schema(self):
        """Top-level sections and values are present."""
        result = make_odf_json()
        assert result['schema_version'] == config.SCHEMA_VERSION
        assert result['odf']['length'] == 5
        assert result['odf']['stats']['max'] == pytest.approx(1.0)
        assert result['odf']['stats']['mean'] == pytest.approx(0.5)
        assert result['params']['metric'] == 'complex_spectral_difference_hwr'
        assert result['params']['window'] == 'hanning'
        assert result['track_metadata']['time_axis_info']['time_axis_valid']

    def test_length_mismatch(self):
        """Values and times must line up."""
        params = KernelConfig().to_dict()
        with pytest.raises(ValueError):
            export.create_odf_json(
                {'duration': 1.0, 'sample_rate': 44100}, params, np.zeros(3), np.zeros(4)
            )

    def test_serializable(self):
        """NumpyEncoder handles arrays and numpy scalars."""
        result = make_odf_json()
        text = json.dumps(result, cls=export.NumpyEncoder)
        loaded = json.loads(text)
        assert len(loaded['odf']['values']) == 5


class TestExportAllOutputs:
    """Tests for writing outputs to disk."""

    def test_json_only(self, tmp_path):
        """Without plots only the JSON file is written."""
        written = export.export_all_outputs(make_odf_json(), tmp_path, "track", generate_plots=False)
        assert set(written) == {'odf_json'}
        assert written['odf_json'].name == "track_odf.json"
        with open(written['odf_json']) as f:
            loaded = json.load(f)
        assert loaded['odf']['length'] == 5

    def test_with_plot(self, tmp_path):
        """Plots are rendered next to the JSON."""
        audio = np.zeros(2560)
        written = export.export_all_outputs(make_odf_json(), tmp_path / "out", "track", audio=audio)
        assert written['plot'].exists()
        assert written['plot'].suffix == ".png"

"""
Tests for chordkit/spectral.py - windowed FFT magnitude spectrum.
"""
import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chordkit import spectral
from chordkit.spectral import SpectralAnalyzer, TransformUnavailableError, is_power_of_two


class TestConstruction:
    """Test analyzer construction and validation."""

    def test_default_transform_size(self):
        analyzer = SpectralAnalyzer()
        assert analyzer.transform_size == 4096
        assert analyzer.half_size == 2048

    @pytest.mark.parametrize("size", [0, 3, 1000, 4095, -8])
    def test_rejects_non_power_of_two(self, size):
        with pytest.raises(ValueError):
            SpectralAnalyzer(size)

    def test_power_of_two_helper(self):
        assert is_power_of_two(1024)
        assert not is_power_of_two(1000)
        assert not is_power_of_two(0)

    def test_hann_window_shape(self):
        """Window is periodic Hann: zero at the start, one in the middle."""
        analyzer = SpectralAnalyzer(1024)
        assert analyzer._window[0] == pytest.approx(0.0)
        assert analyzer._window[512] == pytest.approx(1.0)

    def test_missing_transform_backend_is_fatal(self, monkeypatch):
        """A backend that cannot write into the preallocated buffer aborts construction."""
        def no_out_rfft(a, n=None, axis=-1, norm=None):
            return np.zeros(len(a) // 2 + 1, dtype=np.complex128)

        monkeypatch.setattr(spectral.np.fft, "rfft", no_out_rfft)
        with pytest.raises(TransformUnavailableError):
            SpectralAnalyzer(256)


class TestAnalyze:
    """Test spectrum computation."""

    def test_short_input_returns_none(self, sample_rate):
        analyzer = SpectralAnalyzer(4096)
        assert analyzer.analyze(np.zeros(4095), sample_rate) is None
        assert analyzer.analyze([], sample_rate) is None

    def test_output_lengths(self, sine_wave_440hz, sample_rate):
        analyzer = SpectralAnalyzer(4096)
        magnitudes, frequencies = analyzer.analyze(sine_wave_440hz, sample_rate)
        assert len(magnitudes) == 2048
        assert len(frequencies) == 2048

    def test_frequency_axis(self, sine_wave_440hz, sample_rate):
        analyzer = SpectralAnalyzer(4096)
        _, frequencies = analyzer.analyze(sine_wave_440hz, sample_rate)
        assert frequencies[0] == 0.0
        assert frequencies[1] == pytest.approx(sample_rate / 4096)
        assert frequencies[100] == pytest.approx(100 * sample_rate / 4096)

    def test_frequency_axis_follows_sample_rate(self, sine_wave_440hz):
        analyzer = SpectralAnalyzer(4096)
        _, frequencies = analyzer.analyze(sine_wave_440hz, 44100)
        assert frequencies[1] == pytest.approx(44100 / 4096)
        _, frequencies = analyzer.analyze(sine_wave_440hz, 48000)
        assert frequencies[1] == pytest.approx(48000 / 4096)

    def test_silence_is_zero_db(self, silence_block, sample_rate):
        """Zero power sits exactly on the floor reference."""
        analyzer = SpectralAnalyzer(4096)
        magnitudes, _ = analyzer.analyze(silence_block, sample_rate)
        assert np.all(magnitudes == 0.0)

    def test_tone_peaks_at_expected_bin(self, sine_wave_440hz, sample_rate):
        """440 Hz lies at bin 40.87 with 4096 points at 44.1 kHz."""
        analyzer = SpectralAnalyzer(4096)
        magnitudes, _ = analyzer.analyze(sine_wave_440hz, sample_rate)
        assert int(np.argmax(magnitudes)) == 41
        assert magnitudes[41] > 60.0

    def test_only_first_block_is_used(self, sine_wave_440hz, sample_rate):
        analyzer = SpectralAnalyzer(4096)
        longer = np.concatenate([sine_wave_440hz, np.ones(1000)])
        first = analyzer.analyze(sine_wave_440hz, sample_rate)[0].copy()
        second = analyzer.analyze(longer, sample_rate)[0].copy()
        np.testing.assert_array_equal(first, second)

    def test_buffers_are_reused(self, sine_wave_440hz, silence_block, sample_rate):
        """Every call returns the same preallocated arrays."""
        analyzer = SpectralAnalyzer(4096)
        window = analyzer._window
        mags_a, freqs_a = analyzer.analyze(sine_wave_440hz, sample_rate)
        mags_b, freqs_b = analyzer.analyze(silence_block, sample_rate)
        assert mags_a is mags_b
        assert freqs_a is freqs_b
        assert analyzer._window is window

    def test_accepts_float32_and_column_input(self, sine_wave_440hz, sample_rate):
        analyzer = SpectralAnalyzer(4096)
        expected = analyzer.analyze(sine_wave_440hz, sample_rate)[0].copy()
        column = sine_wave_440hz.astype(np.float32).reshape(-1, 1)
        magnitudes, _ = analyzer.analyze(column, sample_rate)
        assert int(np.argmax(magnitudes)) == int(np.argmax(expected))

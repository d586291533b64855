"""
Pytest fixtures for chord detector tests.
"""
import pytest
import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chordkit.common import get_rate, get_transform_size
from chordkit.instruments import FrequencyWindow, PianoRange
from chordkit.pitch import Pitch, midi_to_frequency, note_name


@pytest.fixture
def sample_rate():
    """Standard sample rate."""
    return get_rate()


@pytest.fixture
def transform_size():
    """Standard analysis block size."""
    return get_transform_size()


@pytest.fixture
def make_block(sample_rate, transform_size):
    """Factory for a block of summed sine tones (phase 0)."""
    def _make(frequencies, amplitude=0.5, n=None, dtype=np.float64):
        n = transform_size if n is None else n
        t = np.arange(n) / sample_rate
        signal = np.zeros(n)
        for freq in frequencies:
            signal += amplitude * np.sin(2 * np.pi * freq * t)
        return signal.astype(dtype)
    return _make


@pytest.fixture
def silence_block(transform_size):
    """Silent audio block."""
    return np.zeros(transform_size, dtype=np.float32)


@pytest.fixture
def sine_wave_440hz(make_block):
    """A 440Hz sine wave (A4 note)."""
    return make_block([440.0])


@pytest.fixture
def c_major_chord(make_block):
    """A C major chord (C4, E4, G4)."""
    return make_block([261.63, 329.63, 392.00], amplitude=0.33)


@pytest.fixture
def guitar_window():
    return FrequencyWindow(50.0, 500.0)


@pytest.fixture
def piano_window():
    return PianoRange.FULL.frequency_window


@pytest.fixture
def make_pitches():
    """Factory for Pitch lists from MIDI note numbers."""
    def _make(midi_notes):
        return [
            Pitch(
                frequency=midi_to_frequency(m),
                amplitude=1.0,
                note_name=note_name(m),
                midi_note=m,
            )
            for m in midi_notes
        ]
    return _make


@pytest.fixture
def mock_args():
    """Create mock argparse namespace for CLI tests."""
    class MockArgs:
        def __init__(self):
            self.instrument = 'guitar'
            self.tuning = None
            self.piano_range = None
            self.low_freq = None
            self.high_freq = None
            self.sample_rate = 44100
            self.transform_size = 4096
            self.max_pending = 4
            self.device = None
            self.notes_only = False
            self.show_frequencies = False
            self.debug = False
            self.log = False

    return MockArgs()


@pytest.fixture
def mock_config():
    """Create mock config dictionary for web tests."""
    return {
        'instrument': 'guitar',
        'tuning': 'standard',
        'sample_rate': 44100,
        'transform_size': 4096,
        'notes_only': False,
        'show_frequencies': False,
        'debug': False,
        'log': False,
    }

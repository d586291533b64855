"""
Real-time pitch and chord detection from short audio blocks.
"""
from chordkit.chords import Chord, ChordMatcher, ChordQuality, ChordRecognitionResult, recognize_chord
from chordkit.detector import PitchDetector
from chordkit.instruments import FrequencyWindow, GuitarTuning, Instrument, PianoRange, frequency_window_for
from chordkit.pitch import Pitch
from chordkit.spectral import SpectralAnalyzer, TransformUnavailableError

__all__ = [
    "Chord",
    "ChordMatcher",
    "ChordQuality",
    "ChordRecognitionResult",
    "FrequencyWindow",
    "GuitarTuning",
    "Instrument",
    "PianoRange",
    "Pitch",
    "PitchDetector",
    "SpectralAnalyzer",
    "TransformUnavailableError",
    "frequency_window_for",
    "recognize_chord",
]

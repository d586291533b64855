"""
Pitch and chord detection for one audio block.

Pipeline:
1. SpectralAnalyzer: Hann window + FFT -> decibel-like magnitude spectrum
2. find_peaks: local maxima inside the frequency window, parabolic refinement
3. collect_pitches: frequency -> note, near-duplicate suppression, loudest first
4. ChordMatcher: pitch-class set -> best chord template and confidence
"""
import logging

from chordkit.chords import ChordMatcher
from chordkit.instruments import FrequencyWindow, GUITAR_WINDOW
from chordkit.peaks import find_peaks
from chordkit.pitch import collect_pitches
from chordkit.spectral import SpectralAnalyzer


class PitchDetector:
    """
    Entry point used by the worker, the CLI and the web server.

    An instance keeps private FFT buffers, so calls must come from one thread
    at a time. Use one detector per audio stream.
    """

    def __init__(self, transform_size=4096, window=None, matcher=None, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.analyzer = SpectralAnalyzer(transform_size, logger=self.logger)
        self.matcher = matcher or ChordMatcher()
        self._window = window or GUITAR_WINDOW

    @property
    def transform_size(self):
        return self.analyzer.transform_size

    @property
    def frequency_window(self):
        return self._window

    @frequency_window.setter
    def frequency_window(self, window):
        self._window = window
        self.logger.debug("Frequency window set to %.1f-%.1f Hz", window.min_freq, window.max_freq)

    def set_frequency_window(self, min_freq, max_freq):
        """Set the search/validation band used by subsequent calls."""
        self.frequency_window = FrequencyWindow(float(min_freq), float(max_freq))

    def detect_pitches(self, samples, sample_rate):
        """
        Detect the pitches present in a block of samples.

        Args:
            samples: at least transform_size mono samples
            sample_rate: sample rate in Hz

        Returns:
            list of Pitch, loudest first; empty for short input or when no
            peak qualifies
        """
        spectrum = self.analyzer.analyze(samples, sample_rate)
        if spectrum is None:
            return []

        magnitudes, frequencies = spectrum
        window = self._window
        peaks = find_peaks(magnitudes, frequencies, window)
        return collect_pitches(peaks, window)

    def recognize_chord(self, pitches):
        return self.matcher.recognize(pitches)

    def process_block(self, samples, sample_rate):
        """Detect pitches and the chord they form. Returns (pitches, result)."""
        pitches = self.detect_pitches(samples, sample_rate)
        result = self.recognize_chord(pitches)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "block: notes=%s chord=%s conf=%.3f",
                [p.note_name for p in pitches], result.display_name, result.confidence,
            )
        return pitches, result

"""
Unified configuration interface for CLI and web.
"""
from chordkit.common import get_max_pending, get_rate, get_transform_size
from chordkit.instruments import (
    FrequencyWindow, INSTRUMENT_PRESETS, Instrument,
    frequency_window_for, parse_instrument, parse_tuning,
)


class AudioConfig:
    """
    Unified configuration interface that wraps both argparse namespace (CLI)
    and dictionary (web) configurations.
    """

    def __init__(self, source):
        """
        Initialize config from either argparse namespace or dictionary.

        Args:
            source: argparse.Namespace or dict
        """
        self._source = source
        self._is_dict = isinstance(source, dict)

    def get(self, key, default=None):
        """Get a configuration value."""
        if self._is_dict:
            value = self._source.get(key, default)
        else:
            value = getattr(self._source, key, default)
        return default if value is None else value

    def __getitem__(self, key):
        return self.get(key)

    def __contains__(self, key):
        if self._is_dict:
            return key in self._source
        return hasattr(self._source, key)

    @property
    def instrument(self):
        return parse_instrument(self.get('instrument', 'guitar'))

    @property
    def tuning(self):
        """GuitarTuning for guitar, PianoRange for piano."""
        name = self.get('tuning')
        if name is None and self.instrument is Instrument.PIANO:
            name = self.get('piano_range')
        return parse_tuning(self.instrument, name)

    @property
    def low_freq(self):
        freq = self.get('low_freq')
        if freq:
            return float(freq)
        return frequency_window_for(self.instrument, self.tuning).min_freq

    @property
    def high_freq(self):
        freq = self.get('high_freq')
        if freq:
            return float(freq)
        return frequency_window_for(self.instrument, self.tuning).max_freq

    @property
    def frequency_window(self):
        """Explicit low/high override if given, else the instrument preset."""
        return FrequencyWindow(self.low_freq, self.high_freq)

    @property
    def instrument_name(self):
        name = self.get('instrument_name')
        if name:
            return name
        base = INSTRUMENT_PRESETS[self.instrument.value]['name']
        return f"{base} - {self.tuning.display_name}"

    @property
    def sample_rate(self):
        return int(self.get('sample_rate', get_rate()))

    @property
    def transform_size(self):
        return int(self.get('transform_size', get_transform_size()))

    @property
    def max_pending(self):
        return int(self.get('max_pending', get_max_pending()))

    @property
    def device(self):
        return self.get('device')

    @property
    def notes_only(self):
        return bool(self.get('notes_only', False))

    @property
    def show_frequencies(self):
        return bool(self.get('show_frequencies', False))

    @property
    def debug(self):
        return bool(self.get('debug', False))

    @property
    def log(self):
        return bool(self.get('log', False))

    def to_dict(self):
        """Convert config to dictionary."""
        return {
            'instrument': self.instrument.value,
            'tuning': self.tuning.value,
            'low_freq': self.low_freq,
            'high_freq': self.high_freq,
            'instrument_name': self.instrument_name,
            'sample_rate': self.sample_rate,
            'transform_size': self.transform_size,
            'max_pending': self.max_pending,
            'notes_only': self.notes_only,
            'show_frequencies': self.show_frequencies,
            'debug': self.debug,
            'log': self.log,
        }

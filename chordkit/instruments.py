"""
Instrument, tuning and piano-range tables.

These only matter to the detector through the frequency window they select:
every guitar tuning listens on 50-500 Hz, while a piano range maps its MIDI
bounds to Hz.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from chordkit.pitch import midi_to_frequency


@dataclass(frozen=True)
class FrequencyWindow:
    """Inclusive band (Hz) used for both peak search and pitch validation."""
    min_freq: float
    max_freq: float

    def __post_init__(self):
        if self.min_freq <= 0:
            raise ValueError(f"Window minimum must be positive, got {self.min_freq}")
        if self.min_freq >= self.max_freq:
            raise ValueError(
                f"Window minimum ({self.min_freq}) must be below maximum ({self.max_freq})"
            )

    def contains(self, frequency: float) -> bool:
        return self.min_freq <= frequency <= self.max_freq

    @classmethod
    def from_midi(cls, low_midi: int, high_midi: int) -> "FrequencyWindow":
        return cls(midi_to_frequency(low_midi), midi_to_frequency(high_midi))


class Instrument(Enum):
    GUITAR = "guitar"
    PIANO = "piano"


class GuitarTuning(Enum):
    """Guitar tunings with their open strings as MIDI notes, low to high."""
    STANDARD = "standard"
    DROP_D = "drop_d"
    HALF_STEP_DOWN = "half_step_down"
    OPEN_G = "open_g"
    OPEN_D = "open_d"
    DADGAD = "dadgad"

    @property
    def display_name(self) -> str:
        return _GUITAR_TUNING_NAMES[self]

    @property
    def open_strings(self) -> Tuple[int, ...]:
        return _GUITAR_OPEN_STRINGS[self]


_GUITAR_TUNING_NAMES = {
    GuitarTuning.STANDARD: "Standard (EADGBE)",
    GuitarTuning.DROP_D: "Drop D (DADGBE)",
    GuitarTuning.HALF_STEP_DOWN: "Half Step Down (D#G#C#F#A#D#)",
    GuitarTuning.OPEN_G: "Open G (DGDGBD)",
    GuitarTuning.OPEN_D: "Open D (DADF#AD)",
    GuitarTuning.DADGAD: "DADGAD",
}

_GUITAR_OPEN_STRINGS = {
    GuitarTuning.STANDARD: (40, 45, 50, 55, 59, 64),        # E2 A2 D3 G3 B3 E4
    GuitarTuning.DROP_D: (38, 45, 50, 55, 59, 64),          # D2 A2 D3 G3 B3 E4
    GuitarTuning.HALF_STEP_DOWN: (39, 44, 49, 54, 58, 63),  # D#2 G#2 C#3 F#3 A#3 D#4
    GuitarTuning.OPEN_G: (38, 43, 47, 50, 55, 62),          # D2 G2 B2 D3 G3 D4
    GuitarTuning.OPEN_D: (38, 45, 50, 54, 57, 62),          # D2 A2 D3 F#3 A3 D4
    GuitarTuning.DADGAD: (38, 45, 50, 55, 57, 62),          # D2 A2 D3 G3 A3 D4
}


class PianoRange(Enum):
    """Piano listening ranges as inclusive MIDI bounds."""
    FULL = "full"
    BASS = "bass"
    MIDDLE = "middle"
    TREBLE = "treble"

    @property
    def display_name(self) -> str:
        return _PIANO_RANGE_NAMES[self]

    @property
    def midi_range(self) -> Tuple[int, int]:
        return _PIANO_MIDI_RANGES[self]

    @property
    def frequency_window(self) -> FrequencyWindow:
        low, high = self.midi_range
        return FrequencyWindow.from_midi(low, high)


_PIANO_RANGE_NAMES = {
    PianoRange.FULL: "Full Range (A0-C8)",
    PianoRange.BASS: "Bass (A0-E3)",
    PianoRange.MIDDLE: "Middle (F3-B5)",
    PianoRange.TREBLE: "Treble (C6-C8)",
}

_PIANO_MIDI_RANGES = {
    PianoRange.FULL: (21, 108),
    PianoRange.BASS: (21, 52),
    PianoRange.MIDDLE: (53, 83),
    PianoRange.TREBLE: (84, 108),
}

# E2 low string down to drop tunings, up to B4 around the 19th fret
GUITAR_WINDOW = FrequencyWindow(50.0, 500.0)

# Instrument presets offered by the CLI and the web server
INSTRUMENT_PRESETS = {
    'guitar': {
        'name': 'Guitar',
        'tunings': [t.value for t in GuitarTuning],
        'default_tuning': GuitarTuning.STANDARD.value,
    },
    'piano': {
        'name': 'Piano',
        'tunings': [r.value for r in PianoRange],
        'default_tuning': PianoRange.FULL.value,
    },
}


def parse_instrument(name: Union[str, Instrument]) -> Instrument:
    if isinstance(name, Instrument):
        return name
    try:
        return Instrument(str(name).lower())
    except ValueError:
        raise ValueError(
            f"Unknown instrument '{name}' (choose from {', '.join(INSTRUMENT_PRESETS)})"
        ) from None


def parse_tuning(instrument: Instrument, name: Optional[str]):
    """Resolve a tuning (guitar) or range (piano) name; None means the default."""
    enum_cls = GuitarTuning if instrument is Instrument.GUITAR else PianoRange
    if name is None:
        return enum_cls(INSTRUMENT_PRESETS[instrument.value]['default_tuning'])
    if isinstance(name, enum_cls):
        return name
    try:
        return enum_cls(str(name).lower())
    except ValueError:
        choices = ', '.join(m.value for m in enum_cls)
        raise ValueError(
            f"Unknown {instrument.value} tuning '{name}' (choose from {choices})"
        ) from None


def frequency_window_for(instrument, tuning=None) -> FrequencyWindow:
    """
    Frequency window selected by an instrument and its tuning/range.

    Args:
        instrument: Instrument or its name
        tuning: GuitarTuning / PianoRange, its name, or None for the default

    Returns:
        FrequencyWindow for the detector
    """
    instrument = parse_instrument(instrument)
    if instrument is Instrument.GUITAR:
        # Validate the name even though every tuning shares one window
        parse_tuning(instrument, tuning)
        return GUITAR_WINDOW
    return parse_tuning(instrument, tuning).frequency_window

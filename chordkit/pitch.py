"""
Frequency to musical pitch mapping.

A refined spectral peak becomes a Pitch once it is inside the active
frequency window and rounds to a MIDI note on the piano keyboard (A0..C8).
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

MIDI_MIN = 21   # A0
MIDI_MAX = 108  # C8

# Two peaks closer than this fraction of the candidate's frequency are the
# same pitch (~15 cents); collapses split peaks and near-unison partials.
DUPLICATE_TOLERANCE = 0.009


@dataclass(frozen=True)
class Pitch:
    """A detected note: refined frequency, peak level and its MIDI identity."""
    frequency: float
    amplitude: float
    note_name: str
    midi_note: int

    @property
    def pitch_class(self) -> int:
        return self.midi_note % 12


def frequency_to_midi(freq: float) -> float:
    """Fractional MIDI note number for a frequency (A4 = 440 Hz = 69)."""
    return 69.0 + 12.0 * math.log2(freq / 440.0)


def midi_to_frequency(midi_note: float) -> float:
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def note_name(midi_note: int) -> str:
    """Note name with octave, e.g. 60 -> "C4"."""
    note_index = ((midi_note % 12) + 12) % 12
    octave = (midi_note // 12) - 1
    return f"{NOTES[note_index]}{octave}"


def to_pitch(frequency: float, amplitude: float, window) -> Optional[Pitch]:
    """
    Map a frequency to a Pitch.

    Args:
        frequency: refined peak frequency in Hz
        amplitude: peak level in the analyzer's decibel-like unit
        window: active FrequencyWindow

    Returns:
        Pitch, or None when the frequency is outside the window or does not
        round to a note in [21, 108]
    """
    if frequency <= 0 or not window.contains(frequency):
        return None

    rounded_midi = int(round(frequency_to_midi(frequency)))
    if rounded_midi < MIDI_MIN or rounded_midi > MIDI_MAX:
        return None

    return Pitch(
        frequency=float(frequency),
        amplitude=float(amplitude),
        note_name=note_name(rounded_midi),
        midi_note=rounded_midi,
    )


def is_duplicate(candidate: float, accepted: Iterable[Pitch]) -> bool:
    return any(
        abs(p.frequency - candidate) < candidate * DUPLICATE_TOLERANCE
        for p in accepted
    )


def collect_pitches(peaks: Iterable[Tuple[float, float]], window) -> List[Pitch]:
    """
    Turn spectral peaks into a deduplicated pitch list, loudest first.

    Peaks are scanned in the order given (the peak extractor yields them in
    ascending bin order), and the first of two near-identical frequencies
    wins. The survivors are then sorted by amplitude, descending; the sort
    is stable so equal amplitudes keep ascending frequency order.
    """
    pitches: List[Pitch] = []
    for frequency, magnitude in peaks:
        pitch = to_pitch(frequency, magnitude, window)
        if pitch is None:
            continue
        if is_duplicate(pitch.frequency, pitches):
            continue
        pitches.append(pitch)

    pitches.sort(key=lambda p: p.amplitude, reverse=True)
    return pitches

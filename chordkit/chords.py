"""
Chord recognition from a set of detected pitches.

Every root (C..B) is paired with every chord quality, 120 candidates in a
fixed order: roots ascending, qualities in declaration order. Each candidate
is scored by the geometric mean of

  completeness - fraction of the chord's notes that were detected
  purity       - fraction of the detected notes that belong to the chord

The first candidate with the highest score wins; an exact tie goes to the
chord with fewer notes.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from chordkit.pitch import NOTES, Pitch

# Semitone offsets from the root, indexed by ChordQuality.value
CHORD_INTERVALS = (
    (0, 4, 7),       # major
    (0, 3, 7),       # minor
    (0, 3, 6),       # diminished
    (0, 4, 8),       # augmented
    (0, 4, 7, 10),   # dominant 7th
    (0, 4, 7, 11),   # major 7th
    (0, 3, 7, 10),   # minor 7th
    (0, 2, 7),       # sus2
    (0, 5, 7),       # sus4
    (0, 7),          # power chord
)

CHORD_SYMBOLS = ("", "m", "dim", "aug", "7", "maj7", "m7", "sus2", "sus4", "5")

MIN_MATCHED_NOTES = 2
MIN_CONFIDENCE = 0.5
# Candidates this far below the current best are never considered
DOMINANCE_MARGIN = 0.05


class ChordQuality(Enum):
    MAJOR = 0
    MINOR = 1
    DIMINISHED = 2
    AUGMENTED = 3
    DOMINANT7 = 4
    MAJOR7 = 5
    MINOR7 = 6
    SUSPENDED2 = 7
    SUSPENDED4 = 8
    POWER = 9

    @property
    def intervals(self):
        return CHORD_INTERVALS[self.value]

    @property
    def symbol(self):
        return CHORD_SYMBOLS[self.value]


# Scan order for recognition
QUALITIES = tuple(ChordQuality)


@dataclass(frozen=True)
class Chord:
    root: int
    quality: ChordQuality
    bass: Optional[int] = None

    @property
    def root_name(self) -> str:
        return NOTES[self.root]

    @property
    def bass_name(self) -> Optional[str]:
        return NOTES[self.bass] if self.bass is not None else None

    @property
    def pitch_classes(self) -> frozenset:
        return frozenset((self.root + offset) % 12 for offset in self.quality.intervals)

    @property
    def display_name(self) -> str:
        """e.g. "Am", "G7", "Cmaj7/E" (slash only when the bass is not the root)."""
        name = f"{self.root_name}{self.quality.symbol}"
        if self.bass is not None and self.bass != self.root:
            name += f"/{self.bass_name}"
        return name

    def __str__(self):
        return self.display_name


@dataclass(frozen=True)
class ChordRecognitionResult:
    chord: Optional[Chord]
    confidence: float

    @classmethod
    def none(cls) -> "ChordRecognitionResult":
        return cls(chord=None, confidence=0.0)

    @property
    def display_name(self) -> Optional[str]:
        return self.chord.display_name if self.chord else None


class ChordMatcher:
    """Stateless template matcher; safe to share between threads."""

    def __init__(self, min_confidence=MIN_CONFIDENCE):
        self.min_confidence = min_confidence

    def recognize(self, pitches: Sequence[Pitch]) -> ChordRecognitionResult:
        """
        Name the chord formed by the given pitches.

        Args:
            pitches: detected pitches, any order

        Returns:
            ChordRecognitionResult; (None, 0.0) when fewer than two pitches
            are given or no candidate reaches the minimum confidence
        """
        if len(pitches) < 2:
            return ChordRecognitionResult.none()

        detected = {p.midi_note % 12 for p in pitches}
        detected_count = len(detected)
        bass = min(pitches, key=lambda p: p.midi_note).midi_note % 12

        best_chord = None
        best_confidence = 0.0
        best_size = math.inf

        for root in range(12):
            for quality in QUALITIES:
                required = {(root + offset) % 12 for offset in quality.intervals}
                chord_size = len(required)

                matched = len(detected & required)
                if matched < MIN_MATCHED_NOTES:
                    continue

                completeness = matched / chord_size
                purity = matched / detected_count
                confidence = math.sqrt(completeness * purity)

                if confidence < best_confidence - DOMINANCE_MARGIN:
                    continue
                if confidence < best_confidence and chord_size >= best_size:
                    continue

                if confidence > best_confidence or (
                        confidence == best_confidence and chord_size < best_size):
                    best_confidence = confidence
                    best_size = chord_size
                    best_chord = Chord(root=root, quality=quality, bass=bass)

        if best_chord is not None and best_confidence >= self.min_confidence:
            return ChordRecognitionResult(chord=best_chord, confidence=best_confidence)
        return ChordRecognitionResult.none()


_default_matcher = ChordMatcher()


def recognize_chord(pitches: Sequence[Pitch]) -> ChordRecognitionResult:
    return _default_matcher.recognize(pitches)

"""
Output handler classes for CLI and web interfaces.
"""
import time
from abc import ABC, abstractmethod

from chordkit.common import clear_line


class OutputHandler(ABC):
    """
    Abstract base class for output handling.
    Defines the interface for outputting detection results.
    """

    def handle(self, pitches, result, notes_only=False):
        """Dispatch one detection outcome to the matching output method."""
        if notes_only:
            return self.notes_detected(pitches) if pitches else self.no_detection()
        if result.chord is not None:
            return self.chord_detected(result, pitches)
        return self.no_detection()

    @abstractmethod
    def chord_detected(self, result, pitches):
        """Output a chord detection result."""
        pass

    @abstractmethod
    def notes_detected(self, pitches):
        """Output a notes-only detection result."""
        pass

    @abstractmethod
    def no_detection(self):
        """Output when nothing is detected."""
        pass


class ConsoleOutputHandler(OutputHandler):
    """
    Output handler for CLI - prints to stdout.
    """

    def __init__(self, config):
        self.log_mode = config.get('log', False)
        self.show_frequencies = config.get('show_frequencies', False)
        self.debug = config.get('debug', False)

    def _get_timestamp(self):
        return time.strftime("%Y-%m-%d %H:%M:%S")

    def _format_notes(self, pitches):
        ordered = sorted(pitches, key=lambda p: p.midi_note)
        if self.show_frequencies:
            return ", ".join(f"{p.note_name}({p.frequency:.0f}Hz)" for p in ordered)
        return ", ".join(p.note_name for p in ordered)

    def _emit(self, text):
        if self.log_mode:
            print(f"[{self._get_timestamp()}] {text}")
        else:
            clear_line()
            print(text, end='\r', flush=True)

    def chord_detected(self, result, pitches):
        chord_display = result.display_name
        if self.debug:
            chord_display += f" ({result.confidence:.2f})"

        if self.show_frequencies and pitches:
            self._emit(f"Notes: {self._format_notes(pitches)} -> {chord_display}")
        else:
            self._emit(chord_display)
        return None

    def notes_detected(self, pitches):
        self._emit(f"Notes: {self._format_notes(pitches)}")
        return None

    def no_detection(self):
        if not self.log_mode:
            clear_line()
            print("Listening...", end='\r', flush=True)
        return None


class DictOutputHandler(OutputHandler):
    """
    Output handler for web - returns JSON-serializable dicts.
    """

    def _notes(self, pitches):
        return [[p.note_name, round(p.frequency, 2)] for p in pitches]

    def chord_detected(self, result, pitches):
        chord = result.chord
        return {
            "type": "chord",
            "chord": chord.display_name,
            "root": chord.root_name,
            "quality": chord.quality.name.lower(),
            "bass": chord.bass_name,
            "confidence": round(result.confidence, 4),
            "notes": self._notes(pitches),
            "timestamp": time.time(),
        }

    def notes_detected(self, pitches):
        return {
            "type": "notes",
            "notes": self._notes(pitches),
            "timestamp": time.time(),
        }

    def no_detection(self):
        return {
            "type": "listening",
            "timestamp": time.time(),
        }

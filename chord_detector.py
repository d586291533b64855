# file: chord_detector.py
import argparse
import sys

from chordkit.common import (
    get_block_duration, get_channels, get_max_pending, get_rate, get_transform_size,
    set_rate, set_transform_size,
)
from chordkit.config import AudioConfig
from chordkit.detector import PitchDetector
from chordkit.instruments import GuitarTuning, INSTRUMENT_PRESETS, PianoRange
from chordkit.logging_config import LOG_FORMATS, setup_logging
from chordkit.output import ConsoleOutputHandler
from chordkit.spectral import TransformUnavailableError
from chordkit.worker import DetectionWorker


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Real-time chord detector')

    # --- Instrument / frequency range ---
    parser.add_argument('--instrument', choices=list(INSTRUMENT_PRESETS.keys()), default='guitar',
                        help='Instrument preset for frequency filtering (default: guitar)')
    parser.add_argument('--tuning', choices=[t.value for t in GuitarTuning],
                        help='Guitar tuning (default: standard)')
    parser.add_argument('--piano-range', choices=[r.value for r in PianoRange],
                        help='Piano range (default: full)')
    parser.add_argument('--low-freq', type=float, help='Custom low frequency cutoff (Hz)')
    parser.add_argument('--high-freq', type=float, help='Custom high frequency cutoff (Hz)')

    # --- Output modes ---
    parser.add_argument('--log', action='store_true', help='Print one timestamped line per detection')
    parser.add_argument('--show-frequencies', action='store_true', help='Show detected notes alongside chords')
    parser.add_argument('--notes-only', action='store_true', help='Show only detected notes, skip chord naming')
    parser.add_argument('--debug', action='store_true', help='Show chord confidence and per-block diagnostics')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Diagnostic log level (default: WARNING)')
    parser.add_argument('--log-file', type=str, help='Also write diagnostics to this file')
    parser.add_argument('--log-format', choices=LOG_FORMATS, default='text',
                        help='Diagnostic log format (default: text)')

    # --- Device / timing ---
    parser.add_argument('--list-devices', action='store_true', help='List available audio input devices and exit')
    parser.add_argument('--device', type=int, help='Audio input device ID (use --list-devices to see available devices)')
    parser.add_argument('--sample-rate', type=int, default=get_rate(),
                        help=f'Capture sample rate in Hz (default: {get_rate()})')
    parser.add_argument('--transform-size', type=int, default=get_transform_size(),
                        help=f'Samples per analysed block, a power of two (default: {get_transform_size()})')
    parser.add_argument('--max-pending', type=int, default=get_max_pending(),
                        help=f'Blocks allowed to queue before new ones are dropped (default: {get_max_pending()})')

    args = parser.parse_args(argv)

    if args.instrument == 'piano' and args.tuning:
        parser.error('--tuning applies to guitar; use --piano-range for piano')
    if args.instrument == 'guitar' and args.piano_range:
        parser.error('--piano-range applies to piano; use --tuning for guitar')
    if args.piano_range:
        args.tuning = args.piano_range

    return args


def list_devices():
    import sounddevice as sd

    print("Available audio input devices:")
    for i, device in enumerate(sd.query_devices()):
        if device['max_input_channels'] > 0:
            default_marker = " (DEFAULT)" if i == sd.default.device[0] else ""
            print(f"  [{i}] {device['name']} - {device['max_input_channels']} channel(s){default_marker}")


def print_configuration(config):
    window = config.frequency_window
    custom = " (Custom)" if config.get('low_freq') or config.get('high_freq') else ""
    print("📊 Configuration:")
    print(f"  Instrument: {config.instrument_name}")
    print(f"  Frequency Range: {window.min_freq:.1f}-{window.max_freq:.1f} Hz{custom}")
    print(f"  Sample Rate: {get_rate()} Hz, block: {get_transform_size()} samples "
          f"({1000.0 * get_block_duration():.0f} ms)")
    if config.notes_only:
        print("🎵 NOTES ONLY MODE: Showing detected notes, skipping chord naming")
    elif config.log:
        print("📝 Logging mode: Showing timestamped chord detections")


# --- Main Application Logic ---
def main(argv=None):
    """
    Capture audio, detect chords on a background worker and print them.
    """
    args = parse_args(argv)
    logger = setup_logging(
        level='DEBUG' if args.debug else args.log_level,
        log_file=args.log_file,
        log_format=args.log_format,
    )

    if args.list_devices:
        list_devices()
        return 0

    try:
        config = AudioConfig(args)
        window = config.frequency_window
        detector = PitchDetector(config.transform_size, window=window, logger=logger)
    except (ValueError, TransformUnavailableError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    set_rate(config.sample_rate)
    set_transform_size(config.transform_size)

    print(f"🎸 Chord detector listening for {config.instrument_name}... Press Ctrl+C to stop.")
    print_configuration(config)

    output = ConsoleOutputHandler(config)

    def on_result(pitches, result):
        output.handle(pitches, result, notes_only=config.notes_only)

    worker = DetectionWorker(
        detector, on_result,
        sample_rate=config.sample_rate,
        max_pending=config.max_pending,
        logger=logger,
    )
    worker.start()

    try:
        # sounddevice needs PortAudio at import time
        from chordkit.capture import capture_loop

        capture_loop(
            worker,
            chunk=get_transform_size(),
            rate=get_rate(),
            channels=get_channels(),
            device=config.device,
        )
    except KeyboardInterrupt:
        print("\n🛑 Stopping chord detector.")
    except Exception as e:
        print(f"\nAn error occurred: {e}", file=sys.stderr)
        print("Common reasons for errors:", file=sys.stderr)
        print("1. Microphone not detected or properly configured.", file=sys.stderr)
        print("2. Insufficient permissions (check your OS privacy settings for microphone access).", file=sys.stderr)
        print("3. Another application is already using the microphone.", file=sys.stderr)
        return 1
    finally:
        worker.stop()
        if worker.dropped_count:
            logger.info("Dropped %d blocks while the worker was busy", worker.dropped_count)

    return 0


if __name__ == '__main__':
    sys.exit(main())

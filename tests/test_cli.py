"""
Tests for chord_detector.py - argument parsing and the main loop.

Capture is replaced by a fake chordkit.capture module, so these run
without PortAudio.
"""
import logging
import types
from unittest.mock import patch

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import chord_detector
from chordkit import common
from chordkit.logging_config import JsonFormatter


@pytest.fixture(autouse=True)
def restore_settings():
    rate, size = common.get_rate(), common.get_transform_size()
    yield
    common.set_rate(rate)
    common.set_transform_size(size)
    logger = logging.getLogger("chordkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def fake_capture():
    """Install a chordkit.capture whose loop records its arguments and is interrupted."""
    module = types.ModuleType("chordkit.capture")
    module.calls = []

    def capture_loop(worker, chunk, rate, channels=1, device=None, should_stop=None):
        module.calls.append({'worker': worker, 'chunk': chunk, 'rate': rate, 'device': device})
        raise KeyboardInterrupt

    module.capture_loop = capture_loop
    with patch.dict(sys.modules, {"chordkit.capture": module}):
        yield module


class TestParseArgs:
    """Test command line parsing."""

    def test_defaults(self):
        args = chord_detector.parse_args([])
        assert args.instrument == 'guitar'
        assert args.tuning is None
        assert args.transform_size == 4096
        assert args.log_level == 'WARNING'
        assert args.log_format == 'text'

    def test_piano_range_becomes_tuning(self):
        args = chord_detector.parse_args(['--instrument', 'piano', '--piano-range', 'bass'])
        assert args.tuning == 'bass'

    def test_tuning_with_piano_rejected(self):
        with pytest.raises(SystemExit):
            chord_detector.parse_args(['--instrument', 'piano', '--tuning', 'drop_d'])

    def test_piano_range_with_guitar_rejected(self):
        with pytest.raises(SystemExit):
            chord_detector.parse_args(['--piano-range', 'bass'])

    def test_unknown_log_format_rejected(self):
        with pytest.raises(SystemExit):
            chord_detector.parse_args(['--log-format', 'xml'])


class TestMain:
    """Test the capture/worker lifecycle with capture faked out."""

    def test_bad_transform_size_exits_with_error(self, capsys):
        assert chord_detector.main(['--transform-size', '1000']) == 1
        assert 'power of two' in capsys.readouterr().err

    def test_interrupt_stops_cleanly(self, capsys, fake_capture):
        assert chord_detector.main(['--log']) == 0
        assert 'Stopping chord detector' in capsys.readouterr().out
        worker = fake_capture.calls[0]['worker']
        assert not worker.is_running

    def test_capture_settings_follow_arguments(self, capsys, fake_capture):
        assert chord_detector.main(['--sample-rate', '48000', '--transform-size', '8192', '--device', '2']) == 0
        assert fake_capture.calls[0]['rate'] == 48000
        assert fake_capture.calls[0]['chunk'] == 8192
        assert fake_capture.calls[0]['device'] == 2
        assert common.get_block_duration() == pytest.approx(8192 / 48000)
        assert '(171 ms)' in capsys.readouterr().out

    def test_json_log_format(self, capsys, fake_capture):
        assert chord_detector.main(['--log-format', 'json', '--log-level', 'INFO']) == 0
        handlers = logging.getLogger("chordkit").handlers
        assert handlers
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)

"""
Microphone capture for the CLI.
"""
import logging

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)


def grab_audio_chunk(chunk, rate, channels, device=None):
    """Grab a chunk of audio from the microphone as a flat float32 array"""
    try:
        # Use the default input device if not specified
        if device is None:
            default_input = sd.default.device[0]
            if default_input is not None and default_input >= 0:
                device = default_input

        recording = sd.rec(chunk, samplerate=rate, channels=channels, dtype='float32', device=device)
        sd.wait()  # Wait until recording is finished

        if np.all(recording == 0):
            logger.warning(
                "Recording returned all zeros - check microphone permissions "
                "and that the input device is working"
            )

        # Detection is mono; keep the first channel
        if recording.ndim > 1:
            recording = recording[:, 0]
        return np.ascontiguousarray(recording, dtype=np.float32)
    except PermissionError as e:
        logger.error("Permission error opening the microphone: %s", e)
        raise
    except Exception as e:
        logger.error("Error capturing audio: %s", e)
        raise


def capture_loop(worker, chunk, rate, channels=1, device=None, should_stop=None):
    """
    Record blocks and hand them to the detection worker until stopped.

    Args:
        worker: started DetectionWorker
        chunk: samples per block
        rate: sample rate in Hz
        channels: input channels to record
        device: optional sounddevice input device
        should_stop: optional callable returning True to end the loop; the
            loop also ends once the worker has been stopped

    Returns:
        number of blocks captured
    """
    captured = 0
    while worker.is_running and (should_stop is None or not should_stop()):
        samples = grab_audio_chunk(chunk, rate, channels, device=device)
        worker.submit(samples)
        captured += 1
    return captured

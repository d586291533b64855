"""
Background detection worker.

The capture side submits sample blocks into a bounded queue; a single
consumer thread runs them through the detector and hands each outcome to a
callback. The detector is only ever touched by the consumer thread.
"""
import logging
import queue
import threading

_STOP = object()


class DetectionWorker:
    """
    Serializes detection for one audio stream.

    Args:
        detector: PitchDetector owned by this worker
        on_result: callable(pitches, result) invoked on the worker thread
        sample_rate: sample rate of submitted blocks
        max_pending: blocks allowed to wait; further blocks are dropped
        logger: optional logger
    """

    def __init__(self, detector, on_result, sample_rate, max_pending=4, logger=None):
        if max_pending < 1:
            raise ValueError(f"max_pending must be at least 1, got {max_pending}")
        self.detector = detector
        self.on_result = on_result
        self.sample_rate = sample_rate
        self.logger = logger or logging.getLogger(__name__)

        self._queue = queue.Queue(maxsize=max_pending)
        self._thread = None
        self._running = False
        # Guards _running together with enqueueing, so nothing lands behind _STOP
        self._state_lock = threading.Lock()
        self._window_lock = threading.Lock()
        self._pending_window = None

        self.processed_count = 0
        self.dropped_count = 0

    @property
    def is_running(self):
        return self._running

    def start(self):
        with self._state_lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(
                target=self._run, name="chord-detection-worker", daemon=True
            )
            self._thread.start()
        self.logger.debug("Detection worker started (max_pending=%d)", self._queue.maxsize)

    def submit(self, samples):
        """
        Queue a block for detection without blocking.

        Returns:
            True if queued, False if the worker is stopped or backlogged
        """
        with self._state_lock:
            if not self._running:
                return False
            try:
                self._queue.put_nowait(samples)
            except queue.Full:
                self.dropped_count += 1
                self.logger.debug("Worker backlogged, dropped block (%d dropped)", self.dropped_count)
                return False
            return True

    def set_frequency_window(self, window):
        """Apply a new frequency window before the next block is analysed."""
        with self._window_lock:
            self._pending_window = window

    def _apply_pending_window(self):
        with self._window_lock:
            window, self._pending_window = self._pending_window, None
        if window is not None:
            self.detector.frequency_window = window

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._apply_pending_window()
                try:
                    pitches, result = self.detector.process_block(item, self.sample_rate)
                except Exception:
                    self.logger.exception("Detection failed for block")
                    continue
                self.processed_count += 1
                try:
                    self.on_result(pitches, result)
                except Exception:
                    self.logger.exception("Result callback failed")
            finally:
                self._queue.task_done()

    def join_pending(self):
        """Block until every queued block has been processed."""
        self._queue.join()

    def stop(self, timeout=2.0):
        """Finish queued blocks, then stop the consumer thread."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            thread = self._thread
            self._thread = None
        # Blocks while the queue is full; the consumer keeps draining it
        self._queue.put(_STOP)
        thread.join(timeout)
        if thread.is_alive():
            self.logger.warning("Detection worker did not stop within %.1fs", timeout)
        self.logger.debug(
            "Detection worker stopped: processed=%d dropped=%d",
            self.processed_count, self.dropped_count,
        )

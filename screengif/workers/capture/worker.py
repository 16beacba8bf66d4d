import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import screengif.helpers.config as cfg
from screengif.errors import CaptureFailure
from screengif.helpers.general import available_workers
from screengif.helpers.paths import frame_path
from screengif.helpers.screenshot import capture_screenshot
from screengif.logger import logger
from screengif.models import CaptureSession

SEQUENCE_WIDTH = cfg.SEQUENCE_WIDTH
FRAME_EXTENSION = cfg.FRAME_EXTENSION


class SequenceCounter:
    """
    Monotonic sequence number source. `next()` is a single locked increment,
    so concurrent callers never receive the same number.
    """

    def __init__(self, start: int = 0):
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class CaptureScheduler:
    """
    Issues one capture task per tick at a fixed interval and waits for all of them.

    Each tick takes the next sequence number, submits a capture task to a bounded
    thread pool without waiting for it, and sleeps for the interval. When the stop
    condition fires, the scheduler blocks on a semaphore until every submitted task
    has released it, so all frame files are complete when `run()` returns.

    A failing task (sink returns False or raises) is logged and recorded on
    `failures`, and any file it left at its destination is removed; it never stops
    the loop and is never retried.
    """

    def __init__(self, frame_sink: Callable = capture_screenshot,
                 executor: Optional[Executor] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 sequence_width: int = SEQUENCE_WIDTH,
                 extension: str = FRAME_EXTENSION):
        """
        Args:
            frame_sink (Callable, optional): `sink(destination) -> bool`. Defaults to `capture_screenshot`.
            executor (Executor, optional): Externally owned pool. When omitted, each run creates and shuts down its own.
            clock (Callable, optional): Monotonic clock in seconds. Defaults to `time.monotonic`.
            sleep (Callable, optional): Sleep function in seconds. Defaults to `time.sleep`.
            sequence_width (int, optional): Zero padding of frame file names. Defaults to `SEQUENCE_WIDTH`.
            extension (str, optional): Frame file extension. Defaults to `FRAME_EXTENSION`.
        """
        self.frame_sink = frame_sink
        self.executor = executor
        self.clock = clock
        self.sleep = sleep
        self.sequence_width = sequence_width
        self.extension = extension

        self.failures: List[CaptureFailure] = []
        self.completed = 0
        self._lock = threading.Lock()
        self._in_flight = 0

    def _capture(self, sequence: int, destination, done: threading.Semaphore):
        failure = None
        try:
            if self.frame_sink(destination):
                logger.debug("processed %s.", destination)
            else:
                failure = CaptureFailure(sequence, destination, "sink returned False")
                logger.warning("Capture #%d failed: sink returned False", sequence)
        except Exception as e:
            failure = CaptureFailure(sequence, destination, str(e), e)
            logger.exception("Capture #%d failed: %s", sequence, e)
        finally:
            if failure is not None:
                # a failed frame must not leave a partial file behind
                try:
                    Path(destination).unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Could not remove failed frame %s: %s", destination, e)
            with self._lock:
                self._in_flight -= 1
                self.completed += 1
                if failure is not None:
                    self.failures.append(failure)
            done.release()

    def _should_continue(self, session: CaptureSession, deadline: Optional[float]) -> bool:
        if deadline is not None and self.clock() >= deadline:
            return False
        if session.stop_predicate is not None and not session.stop_predicate():
            return False
        return True

    def run(self, session: CaptureSession, worker_count: int = 0) -> Tuple[int, int]:
        """
        Capture frames until the session's stop condition fires.

        Args:
            session (CaptureSession): Frame rate, stop condition and frames directory.
            worker_count (int, optional): Pool size when the scheduler owns the pool; 0 means one per logical CPU.

        Returns:
            Tuple[int, int]: (frames issued, interval in milliseconds)
        """
        interval_ms = session.interval_ms
        workers = available_workers(worker_count)
        session.frames_dir.mkdir(parents=True, exist_ok=True)

        self.failures = []
        self.completed = 0
        self._in_flight = 0

        own_executor = self.executor is None
        executor = self.executor or ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="CaptureThread")

        counter = SequenceCounter()
        done = threading.Semaphore(0)
        issued = 0
        saturated = False

        deadline = None
        if session.duration_seconds is not None:
            deadline = self.clock() + session.duration_seconds

        logger.info("Capture started: fps=%d interval=%dms workers=%d dir=%s",
                    session.fps, interval_ms, workers, session.frames_dir)
        try:
            while self._should_continue(session, deadline):
                sequence = counter.next()
                destination = frame_path(session.frames_dir, sequence,
                                         self.sequence_width, self.extension)
                logger.debug("submitting task #%d.", sequence)
                with self._lock:
                    self._in_flight += 1
                    in_flight = self._in_flight
                try:
                    executor.submit(self._capture, sequence, destination, done)
                except BaseException:
                    with self._lock:
                        self._in_flight -= 1
                    raise
                issued += 1
                # unbounded queue: ticks never wait on a saturated pool
                if in_flight > workers and not saturated:
                    saturated = True
                    logger.warning("Capture pool saturated: %d tasks in flight for %d workers",
                                   in_flight, workers)
                elif in_flight <= workers:
                    saturated = False
                self.sleep(interval_ms / 1000.0)
        finally:
            for _ in range(issued):
                done.acquire()
            if own_executor:
                executor.shutdown(wait=True)
            logger.info("finished submissions %d (%d failed)", issued, len(self.failures))

        return issued, interval_ms

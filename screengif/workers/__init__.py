"""
==========================
Worker Management Module
==========================

This module provides the capture scheduler and the signal wiring used to stop a recording early.

Features:
- Re-exports `CaptureScheduler` and `SequenceCounter` from `screengif.workers.capture`.
- `install_stop_handlers`: route SIGINT / SIGTERM to a stop event instead of killing the process,
  so in-flight captures finish and the GIF is still written.

Usage:
>>> stop_event = threading.Event()
>>> previous = install_stop_handlers(stop_event)
>>> session = CaptureSession(fps=15, frames_dir=dir, duration_seconds=10, stop_predicate=lambda: not stop_event.is_set())
>>> CaptureScheduler().run(session)
>>> restore_signal_handlers(previous)

*Created: 2026-10-19*
"""

import signal
import threading

from screengif.workers.capture import CaptureScheduler, SequenceCounter

from screengif.logger import logger


def install_stop_handlers(stop_event: threading.Event, signals=(signal.SIGINT, signal.SIGTERM)) -> dict:
    """
    Make the given signals set `stop_event` instead of interrupting the capture loop.
    Must be called from the main thread.

    Returns:
        dict: The previous handlers, for `restore_signal_handlers`.
    """
    def _handler(signum, _frame):
        logger.info("Received signal %s, stopping capture...", signal.Signals(signum).name)
        stop_event.set()

    previous = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: dict):
    for sig, handler in previous.items():
        signal.signal(sig, handler)

"""
==========================
Screenshot Capture Worker Module
==========================

This module provides the capture scheduler that takes screenshots at a fixed frame rate.
Capture tasks run on a bounded thread pool; the scheduler waits for every task it issued before returning.
(Configure `capture.fps`, `capture.duration_seconds` and `capture.workers` in `.config.yml` to adjust the cadence and pool size.)


Features:
- Implements a `CaptureScheduler` class that issues one capture task per tick.
- Assigns strictly increasing sequence numbers with a locked `SequenceCounter`.
- Records failed captures without stopping the schedule.
- Blocks on a drain barrier until all issued tasks have completed.

Usage:
>>> from screengif.workers.capture import CaptureScheduler
>>> frame_count, interval_ms = CaptureScheduler().run(session, worker_count=4)


*Created: 2026-10-19*
"""
from screengif.workers.capture.worker import *

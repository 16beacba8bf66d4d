"""
==========================
Main Application Module
==========================

This module provides the main entry point for the recorder.
It captures the screen at a fixed frame rate for a fixed duration and writes the frames,
in capture order, to an animated GIF.

Usage:
>>> from screengif import start_app
>>> start_app()

>>> from screengif import record_gif, CaptureSession
>>> record_gif(CaptureSession(fps=15, frames_dir="captured", duration_seconds=2), "out.gif")

*Created: 2026-10-19*
"""
from screengif.app import RecordingResult, record_gif, start_app
from screengif.models import AnimationSpec, CaptureSession, FrameHandle, OrderedFrameSet

__version__ = "0.1.0"

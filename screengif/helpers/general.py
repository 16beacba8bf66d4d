"""
==========================
Helpers - General Operations
==========================

This module provides general helper functions for the recorder, including directory management
and worker pool sizing.

Features:
- `ensure_dirs`: Ensure all necessary directories exist by creating them if they do not.
- `clear_frames`: Remove frames left in the capture directory by an earlier run.
- `available_workers`: Resolve the capture pool size.


Usage:
>>> from screengif.helpers.general import ensure_dirs, available_workers
>>> ensure_dirs()  # Ensure all necessary directories exist
>>> available_workers(0)  # 0 means one worker per logical CPU

*Created: 2026-10-19*
"""

import os
from pathlib import Path

import psutil

import screengif.helpers.config as cfg
from screengif.logger import logger


def ensure_dirs(paths=None) -> None:
    """
    Ensure all necessary directories exist by creating them if they do not.

    Args:
        paths (list, optional): Directories to create. Defaults to `MAIN_PATHS` from config.
    """
    for d in (cfg.MAIN_PATHS if paths is None else paths):
        os.makedirs(d, exist_ok=True)


def clear_frames(frames_dir, extension: str = cfg.FRAME_EXTENSION) -> int:
    """
    Remove frame files from an earlier run so they cannot leak into the next GIF.
    Sessions are never resumed, so anything matching the frame extension is stale.

    Args:
        frames_dir (str | Path): Capture directory.
        extension (str, optional): Frame extension without the dot. Defaults to `FRAME_EXTENSION`.

    Returns:
        int: Number of files removed.
    """
    frames_dir = Path(frames_dir)
    if not frames_dir.is_dir():
        return 0

    suffix = "." + extension.lstrip(".").lower()
    removed = 0
    for p in frames_dir.iterdir():
        if p.is_file() and p.suffix.lower() == suffix:
            p.unlink()
            removed += 1

    if removed:
        logger.info("Removed %d stale frames from %s", removed, frames_dir)
    return removed


def available_workers(configured: int = 0) -> int:
    """
    Resolve the capture pool size. A positive value is used as is,
    0 means one worker per logical CPU.
    """
    if configured and configured > 0:
        return int(configured)
    return psutil.cpu_count(logical=True) or 1

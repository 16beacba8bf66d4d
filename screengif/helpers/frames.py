"""
==========================
Helpers - Frame Sequencing
==========================

This module turns the capture directory into the ordered list of frames the GIF encoder consumes.

Features:
- `order_frames`: list frame files, derive their sequence numbers and sort them numerically.

Usage:
>>> from screengif.helpers.frames import order_frames
>>> frames = order_frames("captured", "png", expected_count=30)
>>> frames.sequences  # (1, 2, ..., 30)

*Created: 2026-10-19*
"""

from pathlib import Path
from typing import Optional

from screengif.errors import EmptyCaptureError, FrameSequenceError
from screengif.helpers.config import FRAME_EXTENSION
from screengif.helpers.paths import sequence_from_path
from screengif.logger import logger
from screengif.models import FrameHandle, OrderedFrameSet


def order_frames(directory, extension: str = FRAME_EXTENSION,
                 expected_count: Optional[int] = None) -> OrderedFrameSet:
    """
    Collect the captured frames in `directory` and order them by sequence number.

    Implementation:
    1. List files whose extension matches (case-insensitive).
    2. Derive the sequence number from the all-digit file stem; other names are skipped with a warning.
    3. Reject two files that resolve to the same sequence number.
    4. Sort numerically and wrap in an `OrderedFrameSet`.

    Args:
        directory (str | Path): Capture directory.
        extension (str, optional): Frame extension, with or without the dot. Defaults to `FRAME_EXTENSION`.
        expected_count (int, optional): Number of frames the scheduler issued, used to report gaps.

    Returns:
        OrderedFrameSet: The frames in ascending sequence order.

    Raises:
        EmptyCaptureError: If no frame file is found.
        FrameSequenceError: If two files share a sequence number.
    """
    directory = Path(directory)
    suffix = "." + extension.lstrip(".").lower()

    if not directory.is_dir():
        raise EmptyCaptureError(f"Capture directory does not exist: {directory}")

    by_sequence = {}
    for p in directory.iterdir():
        if not p.is_file() or p.suffix.lower() != suffix:
            continue
        seq = sequence_from_path(p)
        if seq is None:
            logger.warning("Ignoring file with non-numeric name: %s", p)
            continue
        if seq in by_sequence:
            raise FrameSequenceError(
                f"Duplicate frame #{seq}: {by_sequence[seq]} and {p}")
        by_sequence[seq] = p

    if not by_sequence:
        raise EmptyCaptureError(f"No *{suffix} frames found in {directory}")

    handles = [FrameHandle(seq, by_sequence[seq]) for seq in sorted(by_sequence)]
    frames = OrderedFrameSet(handles, expected_count=expected_count)

    if frames.missing:
        logger.warning("%d of %d frames missing: %s",
                       len(frames.missing), expected_count, list(frames.missing))
    logger.info("Ordered %d frames from %s", len(frames), directory)
    return frames

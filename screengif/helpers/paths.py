import re
from pathlib import Path
from typing import Optional

from screengif.helpers.config import FRAME_EXTENSION, SEQUENCE_WIDTH

_SEQUENCE_STEM = re.compile(r"^\d+$")


def frame_path(frames_dir, sequence: int, width: int = SEQUENCE_WIDTH,
               extension: str = FRAME_EXTENSION) -> Path:
    """
    Path of the frame with the given sequence number.
    The number is zero-padded so lexical order equals numeric order.
    """
    return Path(frames_dir) / f"{sequence:0{width}d}.{extension.lstrip('.')}"


def sequence_from_path(path) -> Optional[int]:
    # frames are named NNNNNN.<ext>; anything else is not ours
    stem = Path(path).stem
    if not _SEQUENCE_STEM.match(stem):
        return None
    return int(stem)

"""
==========================
Screenshot Helper Module
==========================

This module provides the frame sink used by the capture scheduler.
It implements mss library to capture the screen and PIL library to save the captured image.

Features:
- Implements a `capture_screenshot` function that grabs the whole virtual screen and saves it.
- uses mss library to capture the screen
- uses PIL library to encode and save the captured image
- writes to a temporary file first and renames it, so a half-written frame never carries the frame name

Usage:
>>> from screengif.helpers.screenshot import capture_screenshot
>>> capture_screenshot(Path("captured/000001.png")) -> True / False

*Created: 2026-10-19*
"""

import os
from pathlib import Path

from mss import mss
from PIL import Image

from screengif.logger import logger

_FORMATS = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".webp": "WEBP",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
}


def capture_screenshot(destination, monitor: int = 0) -> bool:
    """
    Capture one screenshot and save it to `destination`.

    Implementation:
    1. Grab the monitor using mss (0 is the union of all monitors).
    2. Convert the raw BGRA buffer to an RGB PIL Image.
    3. Save to `<destination>.part` in the format implied by the extension.
    4. Rename the temporary file onto `destination`.

    Errors are not swallowed here; the capture task that calls this logs them.

    Args:
        destination (str | Path): Frame file to write.
        monitor (int, optional): mss monitor index. Defaults to 0.

    Returns:
        bool: True if the frame was written, False if the grab returned no pixels.
    """
    destination = Path(destination)
    fmt = _FORMATS.get(destination.suffix.lower())
    if fmt is None:
        raise ValueError(f"Unsupported frame extension: {destination.suffix}")

    with mss() as sct:
        raw = sct.grab(sct.monitors[monitor])
        if raw.width == 0 or raw.height == 0:
            logger.warning("Empty grab for %s", destination)
            return False
        pil_img = Image.frombytes("RGB", raw.size, raw.rgb)

    tmp = destination.with_name(destination.name + ".part")
    try:
        pil_img.save(tmp, fmt)
        os.replace(tmp, destination)
    finally:
        pil_img.close()
        if tmp.exists():
            tmp.unlink()
    return True

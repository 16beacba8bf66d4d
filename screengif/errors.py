"""
==========================
Errors Module
==========================

Exception types raised by the recorder.

- `CaptureFailure`: one capture task did not produce a frame. Recorded, never raised out of the scheduler.
- `EmptyCaptureError`: no frames were found when ordering the capture directory.
- `FrameSequenceError`: the captured frames do not form a strictly increasing sequence.
- `MalformedFrameError`: a frame cannot be read or does not match the first frame's image model.
- `EncodeIOError`: the GIF output could not be opened, written or finalized.
- `ConfigError`: the YAML configuration is invalid.

*Created: 2026-10-19*
"""


class ScreenGifError(Exception):
    """Base class for all recorder errors."""


class ConfigError(ScreenGifError):
    pass


class CaptureFailure(ScreenGifError):
    """
    A single capture task failed. The scheduler keeps these on its `failures`
    list instead of raising them.
    """

    def __init__(self, sequence: int, destination, reason: str, cause: Exception = None):
        super().__init__(f"capture #{sequence} -> {destination} failed: {reason}")
        self.sequence = sequence
        self.destination = destination
        self.reason = reason
        self.cause = cause


class EmptyCaptureError(ScreenGifError):
    pass


class FrameSequenceError(ScreenGifError):
    pass


class MalformedFrameError(ScreenGifError):
    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class EncodeIOError(ScreenGifError):
    pass

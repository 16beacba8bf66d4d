"""
==========================
Models Module
==========================

Value types shared by the capture, sequencing and encoding stages.

- `CaptureSession`: frame rate, duration / stop predicate and frames directory for one run.
- `FrameHandle`: one captured frame (sequence number + file path).
- `OrderedFrameSet`: frame handles in strictly increasing sequence order.
- `AnimationSpec`: per-frame delay and loop directive for the GIF.

*Created: 2026-10-19*
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Tuple

from screengif.errors import FrameSequenceError

# interval_ms is whole milliseconds, so anything faster would truncate to 0
MAX_FPS = 1000


@dataclass(frozen=True)
class CaptureSession:
    """
    Immutable description of one capture run.

    Capturing continues while the deadline (`duration_seconds`) has not passed
    and `stop_predicate`, if given, keeps returning True.
    """

    fps: int
    frames_dir: Path
    duration_seconds: Optional[float] = None
    stop_predicate: Optional[Callable[[], bool]] = None
    loop_continuously: bool = False
    comment: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.fps, bool) or not isinstance(self.fps, int) or self.fps <= 0:
            raise ValueError(f"fps must be a positive integer, got {self.fps!r}")
        if self.fps > MAX_FPS:
            raise ValueError(f"fps must be at most {MAX_FPS} (1 ms interval), got {self.fps}")
        if self.duration_seconds is None and self.stop_predicate is None:
            raise ValueError("a session needs a duration or a stop predicate")
        if self.duration_seconds is not None and self.duration_seconds <= 0:
            raise ValueError(
                f"duration_seconds must be positive, got {self.duration_seconds!r}")
        object.__setattr__(self, "frames_dir", Path(self.frames_dir))

    @property
    def interval_ms(self) -> int:
        # truncating, 15 fps -> 66 ms
        return 1000 // self.fps


@dataclass(frozen=True, order=True)
class FrameHandle:
    sequence: int
    path: Path = field(compare=False)


class OrderedFrameSet:
    """
    Frame handles sorted by sequence number.

    Construction fails with `FrameSequenceError` unless the sequence numbers are
    strictly increasing. Gaps are allowed (failed captures leave holes) and are
    exposed through `missing` when the expected frame count is known.
    """

    def __init__(self, handles: Sequence[FrameHandle], expected_count: Optional[int] = None):
        handles = tuple(handles)
        for prev, cur in zip(handles, handles[1:]):
            if cur.sequence <= prev.sequence:
                raise FrameSequenceError(
                    f"sequence numbers must strictly increase: #{prev.sequence} "
                    f"({prev.path}) followed by #{cur.sequence} ({cur.path})")
        self._handles = handles
        self.expected_count = expected_count

    @property
    def handles(self) -> Tuple[FrameHandle, ...]:
        return self._handles

    @property
    def sequences(self) -> Tuple[int, ...]:
        return tuple(h.sequence for h in self._handles)

    @property
    def missing(self) -> Tuple[int, ...]:
        if self.expected_count is None:
            return ()
        present = set(self.sequences)
        return tuple(n for n in range(1, self.expected_count + 1) if n not in present)

    def __iter__(self) -> Iterator[FrameHandle]:
        return iter(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __getitem__(self, index):
        return self._handles[index]

    def __repr__(self):
        return f"OrderedFrameSet(len={len(self)}, missing={list(self.missing)})"


@dataclass(frozen=True)
class AnimationSpec:
    """
    Per-frame delay and loop directive.

    `delay_units` is in hundredths of a second, the GIF's native unit.
    """

    delay_units: int
    loop_continuously: bool = False
    comment: Optional[str] = None

    def __post_init__(self):
        if self.delay_units < 0 or self.delay_units > 0xFFFF:
            raise ValueError(f"delay_units out of range: {self.delay_units}")

    @classmethod
    def from_interval(cls, interval_ms: int, loop_continuously: bool = False,
                      comment: Optional[str] = None) -> "AnimationSpec":
        return cls(delay_units=interval_ms // 10,
                   loop_continuously=loop_continuously, comment=comment)

    @classmethod
    def from_session(cls, session: CaptureSession) -> "AnimationSpec":
        return cls.from_interval(session.interval_ms, session.loop_continuously, session.comment)

    @property
    def loop_count(self) -> int:
        # NETSCAPE2.0 loop count: 0 loops forever, 1 plays once more
        return 0 if self.loop_continuously else 1

"""Shared pytest configuration and fixtures for the recorder test suite."""

import os
import sys
import threading
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Tests run against the built-in defaults, not a developer's .config.yml
os.environ["SCREENGIF_CONFIG"] = str(PROJECT_ROOT / "tests" / "no-such-config.yml")

from PIL import Image  # noqa: E402

from screengif.helpers.paths import sequence_from_path  # noqa: E402

FRAME_SIZE = (8, 6)


def color_for(sequence: int):
    """A distinct, exactly representable colour per sequence number."""
    return ((sequence * 37) % 256, (sequence * 91) % 256, (sequence * 53 + 11) % 256)


class FakeClock:
    """Monotonic clock whose `sleep` advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


class SolidFrameSink:
    """
    Frame sink writing a small solid-colour PNG per call.
    Sequence numbers listed in `fail_on` return False, those in `raise_on` raise.
    """

    def __init__(self, fail_on=(), raise_on=(), size=FRAME_SIZE, delay: float = 0.0):
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)
        self.size = size
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, destination) -> bool:
        seq = sequence_from_path(destination)
        with self._lock:
            self.calls.append(seq)
        if self.delay:
            threading.Event().wait(self.delay)
        if seq in self.raise_on:
            raise RuntimeError(f"boom #{seq}")
        if seq in self.fail_on:
            return False
        Image.new("RGB", self.size, color_for(seq)).save(destination, "PNG")
        return True


def write_frames(directory: Path, sequences, size=FRAME_SIZE, mode="RGB"):
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for seq in sequences:
        p = directory / f"{seq:06d}.png"
        color = color_for(seq) if mode == "RGB" else color_for(seq)[0]
        Image.new(mode, size, color).save(p, "PNG")
        paths.append(p)
    return paths


def tick_limit(n: int):
    """Stop predicate that allows exactly `n` ticks."""
    state = {"calls": 0}

    def predicate():
        state["calls"] += 1
        return state["calls"] <= n

    return predicate


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def frames_dir(tmp_path) -> Path:
    d = tmp_path / "captured"
    d.mkdir()
    return d

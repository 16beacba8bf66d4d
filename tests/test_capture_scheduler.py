import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from conftest import SolidFrameSink, color_for, tick_limit
from screengif.errors import CaptureFailure
from screengif.helpers.frames import order_frames
from screengif.helpers.paths import sequence_from_path
from screengif.models import CaptureSession
from screengif.workers.capture import CaptureScheduler, SequenceCounter


def make_scheduler(sink, clock, **kwargs):
    return CaptureScheduler(frame_sink=sink, clock=clock, sleep=clock.sleep, **kwargs)


def test_fifteen_fps_for_two_seconds(frames_dir, fake_clock):
    sink = SolidFrameSink()
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=15, frames_dir=frames_dir, duration_seconds=2)

    frame_count, interval_ms = scheduler.run(session, worker_count=4)

    assert interval_ms == 66
    assert abs(frame_count - 2000 // 66) <= 1
    assert sorted(sink.calls) == list(range(1, frame_count + 1))
    assert scheduler.completed == frame_count
    assert scheduler.failures == []
    assert all(s == pytest.approx(0.066) for s in fake_clock.sleeps)


def test_frame_files_are_zero_padded(frames_dir, fake_clock):
    scheduler = make_scheduler(SolidFrameSink(), fake_clock)
    session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(3))

    scheduler.run(session, worker_count=2)

    names = sorted(p.name for p in frames_dir.iterdir())
    assert names == ["000001.png", "000002.png", "000003.png"]


def test_drain_barrier_waits_for_slow_captures(frames_dir, fake_clock):
    sink = SolidFrameSink(delay=0.05)
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=50, frames_dir=frames_dir, stop_predicate=tick_limit(12))

    frame_count, _ = scheduler.run(session, worker_count=3)

    assert frame_count == 12
    assert scheduler.completed == 12
    assert len(list(frames_dir.glob("*.png"))) == 12


def test_failed_capture_leaves_a_gap(frames_dir, fake_clock):
    sink = SolidFrameSink(fail_on={5})
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(10))

    frame_count, _ = scheduler.run(session, worker_count=4)
    frames = order_frames(frames_dir, "png", expected_count=frame_count)

    assert frame_count == 10
    assert [f.sequence for f in scheduler.failures] == [5]
    assert isinstance(scheduler.failures[0], CaptureFailure)
    assert frames.sequences == (1, 2, 3, 4, 6, 7, 8, 9, 10)
    assert frames.missing == (5,)


def test_raising_sink_does_not_stop_the_schedule(frames_dir, fake_clock):
    sink = SolidFrameSink(raise_on={2, 3})
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(6))

    frame_count, _ = scheduler.run(session, worker_count=2)

    assert frame_count == 6
    assert sorted(f.sequence for f in scheduler.failures) == [2, 3]
    assert all(isinstance(f.cause, RuntimeError) for f in scheduler.failures)
    assert len(order_frames(frames_dir, "png")) == 4


def test_predicate_false_from_the_start(frames_dir, fake_clock):
    sink = SolidFrameSink()
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=15, frames_dir=frames_dir, stop_predicate=lambda: False)

    assert scheduler.run(session, worker_count=1) == (0, 66)
    assert sink.calls == []


def test_external_executor_is_left_running(frames_dir, fake_clock):
    with ThreadPoolExecutor(max_workers=2) as executor:
        scheduler = make_scheduler(SolidFrameSink(), fake_clock, executor=executor)
        session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(4))

        frame_count, _ = scheduler.run(session)

        assert frame_count == 4
        assert executor.submit(lambda: 42).result() == 42


def test_scheduler_can_run_twice(tmp_path, fake_clock):
    scheduler = make_scheduler(SolidFrameSink(fail_on={1}), fake_clock)

    first = CaptureSession(fps=10, frames_dir=tmp_path / "a", stop_predicate=tick_limit(3))
    second = CaptureSession(fps=10, frames_dir=tmp_path / "b", stop_predicate=tick_limit(2))

    assert scheduler.run(first, worker_count=1) == (3, 100)
    assert scheduler.run(second, worker_count=1) == (2, 100)
    assert [f.sequence for f in scheduler.failures] == [1]
    assert scheduler.completed == 2


def test_sequence_counter_never_repeats():
    counter = SequenceCounter()
    seen = []
    lock = threading.Lock()

    def worker():
        local = [counter.next() for _ in range(1000)]
        with lock:
            seen.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(seen) == list(range(1, 8001))
    assert counter.value == 8000


@pytest.mark.parametrize("kwargs", [
    {"fps": 0, "duration_seconds": 1},
    {"fps": -5, "duration_seconds": 1},
    {"fps": 2.5, "duration_seconds": 1},
    {"fps": 10},
    {"fps": 10, "duration_seconds": 0},
    {"fps": 1001, "duration_seconds": 1},
    {"fps": 5000, "duration_seconds": 1},
])
def test_invalid_sessions(tmp_path, kwargs):
    with pytest.raises(ValueError):
        CaptureSession(frames_dir=tmp_path, **kwargs)


@pytest.mark.parametrize("fps,expected", [(1, 1000), (15, 66), (30, 33), (60, 16), (1000, 1)])
def test_interval_truncates(tmp_path, fps, expected):
    assert CaptureSession(fps=fps, frames_dir=tmp_path, duration_seconds=1).interval_ms == expected


class PartialWriteSink(SolidFrameSink):
    """Writes the frame file first, then reports failure or raises."""

    def __call__(self, destination) -> bool:
        seq = sequence_from_path(destination)
        with self._lock:
            self.calls.append(seq)
        Image.new("RGB", self.size, color_for(seq)).save(destination, "PNG")
        if seq in self.raise_on:
            raise RuntimeError(f"boom #{seq}")
        return seq not in self.fail_on


def test_failed_capture_removes_its_file(frames_dir, fake_clock):
    sink = PartialWriteSink(fail_on={5}, raise_on={7})
    scheduler = make_scheduler(sink, fake_clock)
    session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(10))

    frame_count, _ = scheduler.run(session, worker_count=3)
    frames = order_frames(frames_dir, "png", expected_count=frame_count)

    assert sorted(f.sequence for f in scheduler.failures) == [5, 7]
    assert len(frames) == frame_count - len(scheduler.failures)
    assert frames.missing == (5, 7)
    assert not (frames_dir / "000005.png").exists()


def test_saturation_is_logged_once_per_episode(frames_dir, fake_clock, caplog):
    release = threading.Event()

    def blocked_sink(destination):
        release.wait(5)
        return False

    scheduler = make_scheduler(blocked_sink, fake_clock)
    session = CaptureSession(fps=10, frames_dir=frames_dir, stop_predicate=tick_limit(8))

    def stop_blocking(seconds):
        fake_clock.sleep(seconds)
        if len(fake_clock.sleeps) == 8:
            release.set()

    scheduler.sleep = stop_blocking
    with caplog.at_level(logging.WARNING, logger="screengif"):
        scheduler.run(session, worker_count=1)

    saturated = [r for r in caplog.records if "saturated" in r.getMessage()]
    assert len(saturated) == 1

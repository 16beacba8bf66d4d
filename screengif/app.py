import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import screengif.helpers.config as cfg
from screengif.errors import CaptureFailure
from screengif.helpers.frames import order_frames
from screengif.helpers.general import clear_frames, ensure_dirs
from screengif.helpers.gif import encode_gif
from screengif.helpers.screenshot import capture_screenshot
from screengif.logger import configure_logger, logger, shutdown_logger
from screengif.models import AnimationSpec, CaptureSession
from screengif.workers import CaptureScheduler, install_stop_handlers, restore_signal_handlers


@dataclass
class RecordingResult:
    out_file: Path
    frames_issued: int
    frames_encoded: int
    interval_ms: int
    failures: List[CaptureFailure] = field(default_factory=list)


def record_gif(session: CaptureSession, out_file, worker_count: int = 0,
               frame_sink: Callable = capture_screenshot,
               scheduler: Optional[CaptureScheduler] = None) -> RecordingResult:
    """
    Capture a session and encode it into an animated GIF.

    Implementation:
    1. Remove frames left in the frames directory by an earlier run.
    2. Run the capture scheduler until the session stops; it returns once every capture task is done.
    3. Order the frame files by sequence number.
    4. Encode them with a delay equal to the capture interval.

    Args:
        session (CaptureSession): What to capture and for how long.
        out_file (str | Path): GIF to write.
        worker_count (int, optional): Capture pool size, 0 for one per logical CPU.
        frame_sink (Callable, optional): `sink(destination) -> bool`. Defaults to `capture_screenshot`.
        scheduler (CaptureScheduler, optional): Pre-built scheduler, e.g. with a custom clock.

    Returns:
        RecordingResult: Counts, interval and failed captures.

    Raises:
        EmptyCaptureError: If no frame was captured.
        MalformedFrameError: If a frame cannot be encoded.
        EncodeIOError: If the GIF cannot be written.
    """
    out_file = Path(out_file)
    out_file.parent.mkdir(parents=True, exist_ok=True)

    if scheduler is None:
        scheduler = CaptureScheduler(frame_sink=frame_sink)
    clear_frames(session.frames_dir, scheduler.extension)

    frame_count, interval_ms = scheduler.run(session, worker_count)

    frames = order_frames(session.frames_dir, scheduler.extension, expected_count=frame_count)
    spec = AnimationSpec.from_session(session)
    encoded = encode_gif(frames, spec, out_file)

    logger.info("wrote an animated gif to %s", out_file.resolve())
    return RecordingResult(out_file=out_file, frames_issued=frame_count, frames_encoded=encoded,
                           interval_ms=interval_ms, failures=list(scheduler.failures))


def session_from_config(stop_event: Optional[threading.Event] = None) -> CaptureSession:
    predicate = None
    if stop_event is not None:
        predicate = lambda: not stop_event.is_set()  # noqa: E731
    duration = cfg.CAPTURE_DURATION_SECONDS if cfg.CAPTURE_DURATION_SECONDS > 0 else None
    return CaptureSession(
        fps=cfg.CAPTURE_FPS,
        frames_dir=cfg.FRAMES_DIR,
        duration_seconds=duration,
        stop_predicate=predicate,
        loop_continuously=cfg.GIF_LOOP,
        comment=cfg.GIF_COMMENT,
    )


def start_app():
    """
    Entry point: record one GIF using the settings in `.config.yml`.
    SIGINT / SIGTERM end the capture early; the frames captured so far are still encoded.
    Fatal errors are logged and re-raised.
    """
    ensure_dirs()
    configure_logger()

    stop_event = threading.Event()
    previous = install_stop_handlers(stop_event)
    try:
        session = session_from_config(stop_event)
        return record_gif(session, cfg.GIF_PATH, worker_count=cfg.CAPTURE_WORKERS)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.exception("Fatal error while recording: %s", e)
        raise
    finally:
        restore_signal_handlers(previous)
        shutdown_logger()

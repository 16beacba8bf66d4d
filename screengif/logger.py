"""
==========================
Logger Module
==========================

This module provides a logging setup for the recorder using Python's built-in logging library.
Capture tasks log from worker threads, so records go through a queue and a single listener
writes them to a rotating file and the console.

Features:
- Uses `QueueHandler` to send log records to a queue.
- Uses `QueueListener` to write them to file and console.
- Configurable log folder, file size and backup count.
- Formats log messages with timestamp, level, thread name, and message.

Usage:
>>> from screengif.logger import logger, configure_logger, shutdown_logger
>>> configure_logger()
>>> logger.info("This is an info message.")
>>> shutdown_logger()  # Important to stop the listener when done.

*Created: 2026-10-19*
"""

import logging
import logging.handlers
import os
import queue as std_queue
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s"

# Public logger object other modules import
logger = logging.getLogger("screengif")
logger.setLevel(logging.INFO)

# If nothing configures logging, fall back to console so imports can safely log.
if not logger.handlers:
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

# Internal state
_configured = False
_queue: Optional[std_queue.Queue] = None
_listener: Optional[logging.handlers.QueueListener] = None


def configure_logger(log_folder=None, level: int = logging.INFO,
                     max_bytes: int = 5 * 1024 * 1024, backup_count: int = 5):
    """
    Configure the logger with file and console handlers behind a queue.
    Calling it again after a successful configuration is a no-op.

    Args:
        log_folder (str | Path, optional): Folder for `recorder.log`. Defaults to `LOG_FOLDER` from config.
        level (int, optional): Logger level. Defaults to logging.INFO.
        max_bytes (int, optional): Size at which the log file rotates. Defaults to 5 MB.
        backup_count (int, optional): Rotated files to keep. Defaults to 5.
    """
    global _configured, _queue, _listener

    if _configured:
        return

    if log_folder is None:
        from screengif.helpers import config as default_config
        log_folder = default_config.LOG_FOLDER

    os.makedirs(log_folder, exist_ok=True)
    log_file = os.path.join(log_folder, "recorder.log")

    logger.setLevel(level)

    # Remove the import-time console handler so output is not duplicated
    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT)

    _queue = std_queue.Queue(-1)
    logger.addHandler(logging.handlers.QueueHandler(_queue))

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setFormatter(fmt)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(fmt)

    _listener = logging.handlers.QueueListener(
        _queue, file_handler, console_handler)
    _listener.start()

    _configured = True


def shutdown_logger():
    """
    Stop the listener, flush and close every handler, and restore the console fallback.
    """
    global _listener, _configured, _queue

    if _listener:
        _listener.stop()
        for h in _listener.handlers:
            h.flush()
            h.close()
        _listener = None

    for h in list(logger.handlers):
        h.flush()
        h.close()
        logger.removeHandler(h)

    _queue = None
    _configured = False

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

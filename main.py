"""
===========================
APP: Screen to GIF Recorder
===========================

What it does:
- Captures the screen at a fixed frame rate for a fixed duration.
- Captures run on a bounded thread pool and are numbered in capture order.
- Assembles the captured frames, in order, into an animated GIF.
- Settings are read from `.config.yml`.

License: GPLv3
"""
from screengif import start_app


if __name__ == "__main__":
    start_app()

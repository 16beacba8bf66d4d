"""
==========================
GIF Helper Module
==========================

This module provides the animated GIF writer that turns the ordered frames into the final artifact.
Frames are written one at a time, so only the frame being encoded is held in memory.


Features:
- `GifMetadataTemplate`: the graphic-control, comment and loop blocks, built once and reused for every frame.
- `GifSequenceWriter`: writes a GIF89a stream frame by frame and always terminates it on close.
- `encode_gif`: opens the output, feeds every frame of an `OrderedFrameSet` to the writer and finalizes it.

PIL quantizes each frame to a palette and LZW-compresses the pixels (`GifImagePlugin.getdata`);
the container blocks around them are written here.

Usage:
>>> from screengif.helpers.gif import encode_gif
>>> encode_gif(frames, AnimationSpec.from_interval(66), "out/out.gif")


*Created: 2026-10-19*
"""

import enum
import struct
from dataclasses import dataclass
from typing import Optional

from PIL import GifImagePlugin, Image

from screengif.errors import EmptyCaptureError, EncodeIOError, MalformedFrameError
from screengif.logger import logger
from screengif.models import AnimationSpec, OrderedFrameSet

GIF_HEADER = b"GIF89a"
GIF_TRAILER = b";"

EXTENSION_INTRODUCER = 0x21
GRAPHIC_CONTROL_LABEL = 0xF9
COMMENT_LABEL = 0xFE
APPLICATION_LABEL = 0xFF

DISPOSAL_NONE = 0

GLOBAL_COLOR_TABLE_ENTRIES = 256
MAX_DIMENSION = 0xFFFF


def _sub_blocks(data: bytes) -> bytes:
    out = bytearray()
    for i in range(0, len(data), 255):
        chunk = data[i:i + 255]
        out.append(len(chunk))
        out += chunk
    out.append(0)
    return bytes(out)


@dataclass(frozen=True)
class GifMetadataTemplate:
    """
    Per-frame metadata shared by every frame of the stream.

    Attributes:
        delay_units (int): Frame delay in hundredths of a second.
        loop_count (int): NETSCAPE2.0 loop count, 0 loops forever.
        comment (str, optional): Free-text comment written before each frame.
        disposal (int): Disposal method, 0 ("none").
    """

    delay_units: int
    loop_count: int
    comment: Optional[str] = None
    disposal: int = DISPOSAL_NONE

    @classmethod
    def from_spec(cls, spec: AnimationSpec) -> "GifMetadataTemplate":
        return cls(delay_units=spec.delay_units, loop_count=spec.loop_count,
                   comment=spec.comment)

    @property
    def graphic_control(self) -> bytes:
        # packed: reserved(3) | disposal(3) | user input(1) | transparency(1)
        packed = (self.disposal & 0x07) << 2
        return struct.pack("<BBBBHBB", EXTENSION_INTRODUCER, GRAPHIC_CONTROL_LABEL,
                           4, packed, self.delay_units, 0, 0)

    @property
    def comment_block(self) -> bytes:
        if not self.comment:
            return b""
        text = self.comment.encode("ascii", errors="replace")
        return bytes([EXTENSION_INTRODUCER, COMMENT_LABEL]) + _sub_blocks(text)

    @property
    def loop_block(self) -> bytes:
        return (bytes([EXTENSION_INTRODUCER, APPLICATION_LABEL, 11]) + b"NETSCAPE2.0"
                + struct.pack("<BBHB", 3, 1, self.loop_count & 0xFFFF, 0))

    @property
    def frame_prefix(self) -> bytes:
        return self.graphic_control + self.comment_block


class EncoderState(enum.Enum):
    UNOPENED = "unopened"
    PREPARED = "prepared"
    WRITING = "writing"
    FINALIZED = "finalized"


class GifSequenceWriter:
    """
    Sequential animated GIF writer over an open binary stream.

    The first frame fixes the image model (PIL mode and size) and supplies the global
    colour table; every later frame must share the model and carries its own local
    colour table. `close()` writes the trailer once, on success and after errors alike.
    The stream itself belongs to the caller.

    States: UNOPENED -> PREPARED -> WRITING -> FINALIZED.
    """

    def __init__(self, stream, spec: AnimationSpec):
        self.stream = stream
        self.spec = spec
        self.state = EncoderState.UNOPENED
        self.frames_written = 0
        self.template: Optional[GifMetadataTemplate] = None
        self._mode: Optional[str] = None
        self._size = None
        self._header_written = False

    def __enter__(self):
        self.prepare()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
            return False
        try:
            self.close()
        except EncodeIOError:
            logger.exception("Failed to finalize GIF after an earlier error")
        return False

    def prepare(self):
        """Build the metadata template reused for every frame."""
        if self.state is not EncoderState.UNOPENED:
            raise RuntimeError(f"prepare() called in state {self.state.value}")
        self.template = GifMetadataTemplate.from_spec(self.spec)
        self.state = EncoderState.PREPARED

    def _write(self, data: bytes):
        try:
            self.stream.write(data)
        except OSError as e:
            raise EncodeIOError(f"GIF write failed: {e}") from e

    def _check_model(self, img: Image.Image, source):
        if img.mode != self._mode:
            raise MalformedFrameError(
                source, f"mode {img.mode} does not match first frame mode {self._mode}")
        if img.size != self._size:
            raise MalformedFrameError(
                source, f"size {img.size} does not match first frame size {self._size}")

    @staticmethod
    def _quantize(img: Image.Image) -> Image.Image:
        rgb = img if img.mode == "RGB" else img.convert("RGB")
        return rgb.quantize(colors=GLOBAL_COLOR_TABLE_ENTRIES)

    def _write_stream_header(self, paletted: Image.Image):
        width, height = paletted.size
        palette = bytes((paletted.getpalette() or [])[:GLOBAL_COLOR_TABLE_ENTRIES * 3])
        palette = palette.ljust(GLOBAL_COLOR_TABLE_ENTRIES * 3, b"\x00")

        # global colour table present, 8-bit colour resolution, 256 entries
        flags = 0x80 | (7 << 4) | 7
        self._write(GIF_HEADER + struct.pack("<HHBBB", width, height, flags, 0, 0))
        self._write(palette)
        self._write(self.template.loop_block)
        self._header_written = True

    def add_to_sequence(self, img: Image.Image, source=None):
        """
        Append one frame.

        Args:
            img (Image.Image): Frame pixels.
            source (optional): Where the frame came from, used in error messages.

        Raises:
            MalformedFrameError: If the frame does not match the first frame's model.
            EncodeIOError: If the stream cannot be written.
        """
        if self.state is EncoderState.UNOPENED:
            self.prepare()
        if self.state is EncoderState.FINALIZED:
            raise RuntimeError("cannot add frames to a finalized GIF")

        source = source if source is not None else f"frame {self.frames_written + 1}"

        if self.state is EncoderState.PREPARED:
            width, height = img.size
            if not (0 < width <= MAX_DIMENSION and 0 < height <= MAX_DIMENSION):
                raise MalformedFrameError(source, f"size {img.size} is not encodable as GIF")
            self._mode = img.mode
            self._size = img.size
            paletted = self._quantize(img)
            self._write_stream_header(paletted)
            self.state = EncoderState.WRITING
            data = GifImagePlugin.getdata(paletted)
        else:
            self._check_model(img, source)
            paletted = self._quantize(img)
            data = GifImagePlugin.getdata(paletted, include_color_table=True)

        self._write(self.template.frame_prefix + b"".join(data))
        self.frames_written += 1

    def close(self):
        """
        Terminate the stream. Safe to call more than once; only the first call writes.
        """
        if self.state is EncoderState.FINALIZED:
            return
        self.state = EncoderState.FINALIZED
        if self._header_written:
            self._write(GIF_TRAILER)
            try:
                self.stream.flush()
            except OSError as e:
                raise EncodeIOError(f"GIF flush failed: {e}") from e


def read_frame(path) -> Image.Image:
    """
    Open a frame file and load its pixels.

    Raises:
        MalformedFrameError: If the file is not a readable image.
    """
    try:
        img = Image.open(path)
    except OSError as e:
        raise MalformedFrameError(path, f"unreadable frame: {e}") from e
    try:
        img.load()
    except OSError as e:
        img.close()
        raise MalformedFrameError(path, f"unreadable frame: {e}") from e
    return img


def encode_gif(frames: OrderedFrameSet, spec: AnimationSpec, out_file, opener=open) -> int:
    """
    Encode ordered frames into an animated GIF.

    Implementation:
    1. Refuse an empty frame set before touching the output.
    2. Open the output once with `opener(out_file, "wb")`.
    3. Read each frame in sequence order and append it to a `GifSequenceWriter`.
    4. Finalize the writer and close the output on every exit path.

    Args:
        frames (OrderedFrameSet): Frames in ascending sequence order.
        spec (AnimationSpec): Delay and loop directive.
        out_file (str | Path): Output GIF path.
        opener (callable, optional): Opens the output stream. Defaults to `open`.

    Returns:
        int: Number of frames written.

    Raises:
        EmptyCaptureError: If `frames` is empty.
        MalformedFrameError: If a frame is unreadable or does not match the first frame.
        EncodeIOError: If the output cannot be opened, written or closed.
    """
    if len(frames) == 0:
        raise EmptyCaptureError("No frames to encode")

    logger.debug("Encoding %d frames to %s", len(frames), out_file)
    try:
        stream = opener(out_file, "wb")
    except OSError as e:
        raise EncodeIOError(f"Could not open {out_file}: {e}") from e

    writer = GifSequenceWriter(stream, spec)
    ok = False
    try:
        writer.prepare()
        for handle in frames:
            logger.debug("processing %s", handle.path)
            img = read_frame(handle.path)
            try:
                writer.add_to_sequence(img, source=handle.path)
            finally:
                img.close()
        ok = True
    finally:
        try:
            writer.close()
        except EncodeIOError:
            if ok:
                raise
            logger.exception("Could not finalize %s after an encoding error", out_file)
        finally:
            try:
                stream.close()
            except OSError as e:
                if ok:
                    raise EncodeIOError(f"Could not close {out_file}: {e}") from e
                logger.exception("Could not close %s", out_file)

    logger.info("Created GIF: %s (frames=%d, delay=%d/100s, loop=%d)",
                out_file, writer.frames_written, spec.delay_units, spec.loop_count)
    return writer.frames_written

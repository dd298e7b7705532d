"""
PNG output for rendered pixel buffers.

The destination is opened as soon as a PngSink is created, so an unwritable
path is reported before any rendering work. If anything fails between open
and a successful write, the partial file is removed.
"""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np
from PIL import Image


class ImageSinkError(RuntimeError):
    """Opening, validating or encoding the output image failed."""


def _as_pixels(buffer) -> np.ndarray:
    if hasattr(buffer, "complete") and not buffer.complete:
        raise ImageSinkError("Refusing to write a partially rendered buffer")

    pixels = np.asarray(getattr(buffer, "pixels", buffer))
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ImageSinkError(f"Expected an (H, W, 3) RGB buffer, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ImageSinkError(f"Expected 8-bit channels (uint8), got {pixels.dtype}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ImageSinkError("Cannot write an empty image")
    return pixels


class PngSink:
    """Write one 8-bit RGB PNG to `path`."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        try:
            self._fh = open(self.path, "wb")
        except OSError as e:
            raise ImageSinkError(f"Could not open file for writing: {self.path}: {e.strerror or e}") from e
        self.written = False

    @property
    def closed(self) -> bool:
        return self._fh.closed

    def write(self, buffer) -> Path:
        if self.closed:
            raise ImageSinkError(f"Sink for {self.path} is already closed")
        try:
            pixels = _as_pixels(buffer)
            im = Image.fromarray(np.ascontiguousarray(pixels))
            im.save(self._fh, format="PNG")
            self._fh.flush()
        except ImageSinkError:
            self.discard()
            raise
        except (OSError, ValueError) as e:
            self.discard()
            raise ImageSinkError(f"Error during PNG creation: {e}") from e

        self.written = True
        self.close()
        return self.path

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def discard(self) -> None:
        """Close the handle and delete whatever was written so far."""
        self.close()
        if self.path.exists():
            os.remove(self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None or not self.written:
            self.discard()
        else:
            self.close()
        return False


def write_png(path: str | Path, buffer) -> Path:
    """Validate and write `buffer` (PixelBuffer or uint8 array) in one go."""
    pixels = _as_pixels(buffer)
    with PngSink(path) as sink:
        return sink.write(pixels)

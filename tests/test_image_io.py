import numpy as np
import pytest
from PIL import Image

from heart_fractal.image_io import ImageSinkError, PngSink, write_png
from heart_fractal.render import PixelBuffer


@pytest.fixture
def pixels():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(3, 5, 3), dtype=np.uint8)


def test_write_png_roundtrip(tmp_path, pixels):
    out = write_png(tmp_path / "img.png", pixels)

    with Image.open(out) as im:
        assert im.format == "PNG"
        assert im.mode == "RGB"
        assert im.size == (5, 3)
        np.testing.assert_array_equal(np.asarray(im), pixels)


def test_sink_accepts_pixel_buffer(tmp_path, pixels):
    buf = PixelBuffer(5, 3)
    for y, row in enumerate(pixels):
        buf.set_row(y, row)

    with PngSink(tmp_path / "buf.png") as sink:
        sink.write(buf)

    assert sink.closed
    with Image.open(tmp_path / "buf.png") as im:
        np.testing.assert_array_equal(np.asarray(im), pixels)


def test_open_failure_reports_reason(tmp_path):
    with pytest.raises(ImageSinkError, match="Could not open file for writing"):
        PngSink(tmp_path / "no_such_dir" / "img.png")


def test_partial_buffer_is_refused(tmp_path):
    buf = PixelBuffer(4, 2)
    buf.set_row(0, np.zeros((4, 3)))
    path = tmp_path / "partial.png"

    sink = PngSink(path)
    with pytest.raises(ImageSinkError, match="partially rendered"):
        sink.write(buf)

    assert sink.closed
    assert not path.exists()


@pytest.mark.parametrize("bad", [
    np.zeros((3, 5), dtype=np.uint8),
    np.zeros((3, 5, 4), dtype=np.uint8),
    np.zeros((3, 5, 3), dtype=np.float64),
    np.zeros((0, 5, 3), dtype=np.uint8),
])
def test_invalid_buffers_leave_no_file(tmp_path, bad):
    path = tmp_path / "bad.png"
    with pytest.raises(ImageSinkError):
        with PngSink(path) as sink:
            sink.write(bad)

    assert not path.exists()


def test_exception_inside_block_removes_file(tmp_path):
    path = tmp_path / "aborted.png"
    with pytest.raises(KeyboardInterrupt):
        with PngSink(path):
            assert path.exists()
            raise KeyboardInterrupt

    assert not path.exists()


def test_write_after_close_fails(tmp_path, pixels):
    sink = PngSink(tmp_path / "once.png")
    sink.write(pixels)

    with pytest.raises(ImageSinkError, match="already closed"):
        sink.write(pixels)
    assert (tmp_path / "once.png").exists()

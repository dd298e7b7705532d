import multiprocessing
import os
from functools import partial

import numpy as np

from heart_fractal.iterators import DEFAULT_CONFIG, HeartConfig, escape_time_array
from heart_fractal.utils import clamp_channels


class PixelBuffer:
    """
    HEIGHT x WIDTH grid of 8-bit RGB triples.

    Rows are written whole by the renderer. `complete` turns True once every
    row has been written at least once.
    """

    def __init__(self, width: int, height: int):
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self._written = np.zeros(height, dtype=bool)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def missing_rows(self) -> int:
        return int((~self._written).sum())

    @property
    def complete(self) -> bool:
        return self.missing_rows == 0

    def set_row(self, y: int, row) -> None:
        row = np.asarray(row)
        if row.shape != (self.width, 3):
            raise ValueError(f"Row {y} has shape {row.shape}, expected {(self.width, 3)}")
        self.pixels[y] = clamp_channels(row)
        self._written[y] = True

    def get(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def rows(self):
        for y in range(self.height):
            yield self.pixels[y]

    def __len__(self):
        return self.width * self.height


def pixel_offset(x, y, cfg: HeartConfig = DEFAULT_CONFIG):
    """
    Plane coordinate of the top-left corner of pixel (x, y).

    x may be an array of column indices; the result then carries an array of
    x offsets.
    """
    scale_x = cfg.plane_width / cfg.width
    scale_y = cfg.plane_height / cfg.height
    return (x - cfg.width / 2.0) * scale_x, (y - cfg.height / 2.0) * scale_y


def _sample_grid(xs, y, cfg: HeartConfig) -> np.ndarray:
    """
    Sub-pixel sample points for pixels xs of row y.

    Returns shape (len(xs), n*n); sample k = sy*n + sx sits at
    (offset_x + (sx+0.5)*scale_x/n, offset_y + (sy+0.5)*scale_y/n).
    """
    n = cfg.supersample
    scale_x = cfg.plane_width / cfg.width
    scale_y = cfg.plane_height / cfg.height

    xs = np.asarray(xs, dtype=np.float64)
    offset_x, offset_y = pixel_offset(xs, y, cfg)

    points = np.empty((xs.size, n * n), dtype=np.complex128)
    for sy in range(n):
        zy = offset_y + (sy + 0.5) * scale_y / n
        for sx in range(n):
            zx = offset_x + (sx + 0.5) * scale_x / n
            points[:, sy * n + sx] = zx + 1j * zy
    return points


def supersample_points(x: int, y: int, cfg: HeartConfig = DEFAULT_CONFIG) -> np.ndarray:
    """The n*n sample points of one pixel, row-major over (sy, sx)."""
    return _sample_grid([x], y, cfg)[0]


def colorize_iters(iters, max_iter: int) -> np.ndarray:
    """
    Escape time -> RGB.

    Interior (iters == max_iter) is black; otherwise the channels cycle as
    (15n, 3n, 5n) mod 256.
    """
    iters = np.asarray(iters, dtype=np.int64)
    rgb = np.stack([(iters * 15) % 256, (iters * 3) % 256, (iters * 5) % 256], axis=-1)
    rgb[iters == max_iter] = 0
    return clamp_channels(rgb)


def average_colors(colors) -> np.ndarray:
    """Mean over the sample axis (second to last), truncated to an integer."""
    colors = np.asarray(colors, dtype=np.int64)
    k = colors.shape[-2]
    return clamp_channels(colors.sum(axis=-2) // k)


def render_row(y: int, cfg: HeartConfig = DEFAULT_CONFIG) -> np.ndarray:
    """Final colors of row y, shape (width, 3) uint8."""
    points = _sample_grid(np.arange(cfg.width), y, cfg)
    iters = escape_time_array(points, cfg)
    return average_colors(colorize_iters(iters, cfg.max_iter))


def render_pixel(x: int, y: int, cfg: HeartConfig = DEFAULT_CONFIG) -> tuple[int, int, int]:
    iters = escape_time_array(_sample_grid([x], y, cfg), cfg)
    r, g, b = average_colors(colorize_iters(iters, cfg.max_iter))[0]
    return int(r), int(g), int(b)


def _render_row_task(y: int, cfg: HeartConfig):
    return y, render_row(y, cfg)


def render_image(cfg: HeartConfig = DEFAULT_CONFIG, workers=None, progress=False) -> PixelBuffer:
    """
    Render every row of the canvas into a new PixelBuffer.

    Rows go to a process pool one at a time (chunksize=1), so a worker that
    finishes a cheap row immediately picks up the next one. workers=1 renders
    in this process. Returns only once all rows are in the buffer.
    """
    if workers is None:
        workers = os.cpu_count() or 1
    workers = max(1, min(int(workers), cfg.height))

    buffer = PixelBuffer(cfg.width, cfg.height)
    task = partial(_render_row_task, cfg=cfg)
    report_every = max(1, cfg.height // 10)

    def _collect(results):
        for done, (y, row) in enumerate(results, start=1):
            buffer.set_row(y, row)
            if progress and (done % report_every == 0 or done == cfg.height):
                print(f"[render] {done}/{cfg.height} rows")

    if workers == 1:
        _collect(map(task, range(cfg.height)))
    else:
        with multiprocessing.Pool(processes=workers) as pool:
            _collect(pool.imap_unordered(task, range(cfg.height), chunksize=1))

    if not buffer.complete:
        raise RuntimeError(f"Render finished with {buffer.missing_rows} rows missing")

    return buffer

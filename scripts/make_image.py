import os
import sys
from pathlib import Path

# Ensure repository root is on sys.path so `heart_fractal` imports work when
# running this script directly (e.g. `python scripts/make_image.py`).
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from heart_fractal.image_io import ImageSinkError, PngSink
from heart_fractal.iterators import DEFAULT_CONFIG
from heart_fractal.render import render_image

OUTPUT_FILE = "heart_fractal.png"


def main(cfg=DEFAULT_CONFIG, outfile=OUTPUT_FILE, workers=None):
    """
    Render the heart fractal into `outfile` (relative to the working directory).

    Returns the process exit status: 0 on success, 1 if the output file can't
    be opened or written.
    """
    cwd = os.getcwd()
    print(f"Current working directory: {cwd}")

    out_path = Path(outfile)
    try:
        sink = PngSink(out_path)
    except ImageSinkError as e:
        print(e, file=sys.stderr)
        return 1

    print("Successfully opened file for writing")
    print(f"[run] {cfg.width}x{cfg.height}, max_iter={cfg.max_iter}, "
          f"{cfg.supersample}x{cfg.supersample} supersampling")

    try:
        with sink:
            print("Starting fractal generation...")
            buffer = render_image(cfg, workers=workers, progress=True)
            print("Fractal generation complete")

            print("Writing PNG file...")
            sink.write(buffer)
            print("PNG file written")
    except ImageSinkError as e:
        print(e, file=sys.stderr)
        return 1

    print(f"Heart fractal has been generated as '{out_path.resolve()}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())

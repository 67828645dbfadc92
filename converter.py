import logging
import sys
from pathlib import Path

import qoi as OfficialQOI

from qoitga import PixelBuffer, load_image

INPUT_IMAGE = "fruits.tga"


def load_bitmap(in_path) -> PixelBuffer:
    pixel_data, _ = load_image(str(in_path))
    return PixelBuffer.from_array(pixel_data)


def to_png(in_path, png_path):
    bitmap = load_bitmap(in_path)
    bitmap.to_image().save(png_path, format="PNG")
    print(f"Converted {in_path} to {png_path}")


def to_qoi(in_path, qoi_path):
    bitmap = load_bitmap(in_path)

    # Encoding is left to the qoi package
    encoded = OfficialQOI.encode(bitmap.to_array().copy())

    with open(qoi_path, "wb") as f:
        f.write(encoded)
    print(f"Converted {in_path} to {qoi_path} ({len(encoded)} bytes)")


def convert(in_path, out_path=None):
    in_path = Path(in_path)
    out_path = Path(out_path) if out_path else in_path.with_suffix(".png")

    if out_path.suffix.lower() == ".qoi":
        to_qoi(in_path, out_path)
    else:
        to_png(in_path, out_path)
    return out_path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    args = sys.argv[1:]
    if not args:
        args = [INPUT_IMAGE]
    if len(args) > 2:
        print("usage: converter.py INPUT [OUTPUT]")
        sys.exit(2)

    convert(*args)

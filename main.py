import logging

import qoi as OfficialQOI

from qoitga import decode_file

INPUT_IMAGE = "fruits.tga"
OUTPUT_QOI = "fruits.qoi"

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    result = decode_file(INPUT_IMAGE)
    if not result.ok:
        raise SystemExit(f"Could not decode {INPUT_IMAGE}: {result.status} {result.reason}")

    bitmap = result.bitmap
    print(f"Loaded {result.format} image {INPUT_IMAGE}: {bitmap.width}x{bitmap.height}")
    print(f"Decoded {INPUT_IMAGE} to {len(bitmap.pixels)} bytes of RGBA")

    # Re-encode with the qoi package
    encoded = OfficialQOI.encode(bitmap.to_array().copy())

    with open(OUTPUT_QOI, "wb") as f:
        f.write(encoded)

    print(f"Encoded QOI to {len(encoded)} bytes")

#! Our decoder is pure Python and the qoi package is a C extension, so expect a wide gap.
#! The point is to check correctness on real images and keep an eye on the ratio.

import sys
import time

import numpy as np

import qoi as OfficialQOI
from qoitga import QOIDecoder, load_image

INPUT_IMAGE = "fruits.png"


def time_compare(pixel_data: np.ndarray):
    encoded = OfficialQOI.encode(np.array(pixel_data))
    print(f"Encoded QOI to {len(encoded)} bytes")

    start_time = time.time()
    reference = OfficialQOI.decode(encoded)
    end_time = time.time()
    print(f"qoi package decoded in {end_time - start_time:.4f} seconds")

    start_time = time.time()
    ours = QOIDecoder.decode(encoded)
    end_time = time.time()
    print(f"QOIDecoder decoded in {end_time - start_time:.4f} seconds")

    channels = reference.shape[2]
    assert np.array_equal(ours.to_array()[..., :channels], reference), "Decoded data mismatch!"


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else INPUT_IMAGE
    pixel_data, desc = load_image(path)
    print(
        f"Loaded image {path}: {desc['width']}x{desc['height']} Channels: {desc['channels']}"
    )
    print(f"Original {path} {pixel_data.nbytes} bytes")

    time_compare(pixel_data)

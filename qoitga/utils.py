import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .dispatch import QOI_EXTS, TARGA_EXTS, decode_file
from .reader import ImageDecodeError

logger = logging.getLogger(__name__)

SUPPORTED_EXTS = QOI_EXTS | TARGA_EXTS


def load_image(filepath: str) -> tuple[np.ndarray, dict]:
    """Load an image and return pixel data as numpy array + description."""

    path = Path(filepath)
    ext = path.suffix.lower()

    if ext in SUPPORTED_EXTS:
        # QOI / TARGA - decoded by this package, always RGBA
        result = decode_file(path)
        if not result.ok:
            raise ImageDecodeError(f"Cannot decode {filepath}: {result.reason or result.status}")
        bitmap = result.bitmap
        logger.debug("Loaded %s as %s", filepath, result.format)
        return bitmap.to_array(), {
            "width": bitmap.width,
            "height": bitmap.height,
            "channels": 4,
            "colorspace": 0,
        }

    # Standard formats (PNG, JPEG, etc.)
    img = Image.open(path)

    # Convert to RGB or RGBA
    if img.mode == "RGBA":
        channels = 4
    else:
        img = img.convert("RGB")
        channels = 3

    return np.array(img), {
        "width": img.size[0],
        "height": img.size[1],
        "channels": channels,
        "colorspace": 0,
    }

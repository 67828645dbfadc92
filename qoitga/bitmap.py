from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded image in canonical RGBA8 layout.

    Pixels are stored row-major, four bytes per pixel (R, G, B, A), with the
    visually topmost row first.
    """

    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError("PixelBuffer: Invalid dimensions")
        if not isinstance(self.pixels, bytes):
            object.__setattr__(self, "pixels", bytes(self.pixels))
        if len(self.pixels) != self.width * self.height * 4:
            raise ValueError("PixelBuffer: The length of pixels is incorrect")

    def pixel(self, x: int, y: int) -> tuple:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        i = (y * self.width + x) * 4
        return tuple(self.pixels[i : i + 4])

    def to_array(self) -> np.ndarray:
        """Read-only (height, width, 4) uint8 view over the pixel bytes."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, 4
        )

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a bitmap from an (h, w, 3) or (h, w, 4) uint8 array."""
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError("PixelBuffer.from_array: Expected shape (h, w, 3|4)")

        height, width, channels = array.shape
        if channels == 3:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), alpha], axis=2)

        return cls(width, height, np.ascontiguousarray(array, dtype=np.uint8).tobytes())
